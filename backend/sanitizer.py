"""
Lauren's List - Input Sanitizer
Copyright (c) 2026 beautifulplanet
Licensed under MIT License

Cleans user-supplied titles before they reach any source.
"""

import re
from dataclasses import dataclass

from models import InvalidInput

MAX_QUERY_LENGTH = 200  # Titles are truncated to this many characters

# Security: strip markup and inline handlers before the title is sent anywhere
_SCRIPT_BLOCK_RE = re.compile(r"<script[^>]*>.*?</script>", re.IGNORECASE | re.DOTALL)
_TAG_RE = re.compile(r"<[^>]*>")
_EVENT_HANDLER_RE = re.compile(r"on\w+\s*=\s*[\"'][^\"']*[\"']", re.IGNORECASE)
_CONTROL_CHARS_RE = re.compile(r"[\x00-\x1f\x7f]")


@dataclass(frozen=True)
class SearchQuery:
    title: str
    exact_match: bool = False


def sanitize_input(raw) -> str:
    """Remove tags, scripts, event handlers and control characters; cap the length."""
    if not raw or not isinstance(raw, str):
        return ""

    sanitized = _SCRIPT_BLOCK_RE.sub("", raw)
    sanitized = _TAG_RE.sub("", sanitized)
    sanitized = _EVENT_HANDLER_RE.sub("", sanitized)
    sanitized = _CONTROL_CHARS_RE.sub("", sanitized[:MAX_QUERY_LENGTH])
    return sanitized.strip()


def _is_quoted(value: str) -> bool:
    return bool(value) and value[0] == value[-1] and value[0] in ("'", '"')


def parse_query(raw) -> SearchQuery:
    """
    Turn raw user input into a SearchQuery.

    A title wrapped in single or double quotes asks for exact-title matching.
    Raises InvalidInput when nothing usable is left.
    """
    title = sanitize_input(raw)
    exact_match = False

    if _is_quoted(title):
        title = title[1:-1].strip()
        exact_match = True

    if not title:
        raise InvalidInput("Please enter a title to search")

    return SearchQuery(title=title, exact_match=exact_match)
