"""
Lauren's List - Shared Types
Copyright (c) 2026 beautifulplanet
Licensed under MIT License

Records passed between the matcher, the sources, the aggregator and the API.
"""

from enum import Enum
from typing import Optional
from dataclasses import dataclass, field


class InvalidInput(ValueError):
    """Raised when a title or media type cannot be checked."""


class SourceUnavailable(Exception):
    """Raised inside a source when it is not configured or its data is unusable."""


class MediaType(str, Enum):
    BOOK = "book"
    MOVIE = "movie"

    @classmethod
    def parse(cls, value) -> "MediaType":
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            raise InvalidInput(f"Unsupported media type: {value!r}") from None


class DetectionMethod(str, Enum):
    """Which signal decided a verdict."""
    KNOWN_LIST = "KnownList"
    CATEGORY_LIST = "CategoryList"
    TRIGGER_DATABASE = "TriggerDatabase"
    TERM_SCAN = "TermScan"
    NONE = "None"


@dataclass(frozen=True)
class Work:
    title: str
    media_type: MediaType
    exact_match: bool = False


@dataclass(frozen=True)
class CuratedMatch:
    matched: bool
    matched_entry: Optional[str] = None


@dataclass(frozen=True)
class SourceResult:
    """
    What one source returned for a work.

    `found` is False for "no match" and for any failure; `text` is then empty.
    `member` is only meaningful for sources that report list membership.
    """
    source_name: str
    text: str = ""
    found: bool = False
    title: str = ""
    member: bool = False

    @classmethod
    def not_found(cls, source_name: str) -> "SourceResult":
        return cls(source_name=source_name)


@dataclass(frozen=True)
class MembershipFlag:
    name: str
    matched: bool
    method: DetectionMethod


@dataclass(frozen=True)
class Verdict:
    safe: bool
    confidence: float
    matched_terms: tuple[str, ...]
    detection_method: DetectionMethod
    rationale: str

    def to_dict(self) -> dict:
        return {
            "safe": self.safe,
            "confidence": self.confidence,
            "matchedTerms": list(self.matched_terms),
            "detectionMethod": self.detection_method.value,
            "reason": self.rationale,
        }


@dataclass
class Classification:
    work: Work
    verdict: Verdict
    results: list[SourceResult] = field(default_factory=list)
    metadata_found: bool = False
