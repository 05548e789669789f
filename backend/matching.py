"""
Lauren's List - Title & Term Matching
Copyright (c) 2026 beautifulplanet
Licensed under MIT License

Title normalization, curated list lookup and term scanning.
All functions here are pure and deterministic.
"""

import re
from typing import Iterable, Optional, Sequence

from models import CuratedMatch

# Characters dropped by the loose title form
STRIP_PUNCTUATION = ".,!?;:'\""
_PUNCTUATION_TABLE = str.maketrans("", "", STRIP_PUNCTUATION)
_WHITESPACE_RE = re.compile(r"\s+")

# Words ignored by the word-overlap fallback
STOP_WORDS = frozenset({
    "a", "an", "the", "of", "in", "on", "at", "to", "for", "with", "by", "and", "or", "but",
})

FUZZY_MIN_SCORE = 0.6        # Share of query words found in the candidate
FUZZY_MIN_TOTAL_SCORE = 0.5  # Share of the longer title's words that matched


def normalize(raw: str) -> str:
    """Lower-case, drop . , ! ? ; : ' " and collapse whitespace."""
    lowered = raw.lower().translate(_PUNCTUATION_TABLE)
    return _WHITESPACE_RE.sub(" ", lowered).strip()


def normalize_strict(raw: str) -> str:
    return raw.lower().strip()


def _contains_either(a: str, b: str) -> bool:
    if not a or not b:
        return False
    return a in b or b in a


def match_curated(title: str, entries: Sequence[str]) -> CuratedMatch:
    """
    Find the first curated entry related to `title`.

    An entry matches when, for the strict pair or the loose pair of forms,
    either string contains the other. Partial titles therefore match
    (e.g. "Ove" hits "a man called ove"). The earliest entry in list order wins.
    """
    strict_title = normalize_strict(title)
    loose_title = normalize(title)

    for entry in entries:
        if _contains_either(strict_title, normalize_strict(entry)):
            return CuratedMatch(matched=True, matched_entry=entry)
        if _contains_either(loose_title, normalize(entry)):
            return CuratedMatch(matched=True, matched_entry=entry)

    return CuratedMatch(matched=False)


def scan_terms(text: str, vocabulary: Iterable[str]) -> list[str]:
    """
    Return the vocabulary terms found in `text`.

    Plain case-insensitive substring search, no word boundaries or stemming.
    Output follows vocabulary order, each term once.
    """
    haystack = text.lower()
    found = []
    seen = set()

    for term in vocabulary:
        needle = term.lower()
        if not needle or needle in seen:
            continue
        if needle in haystack:
            found.append(needle)
            seen.add(needle)

    return found


def significant_words(title: str) -> list[str]:
    words = title.lower().split()
    return [w for w in words if len(w) > 1 and w not in STOP_WORDS]


def word_overlap_score(query: str, candidate: str) -> tuple[float, float]:
    """
    Score how many significant query words appear in `candidate`.

    Returns (score, total_score): matches over query words, and matches over
    the word count of whichever title is longer.
    """
    query_words = significant_words(query)
    candidate_words = significant_words(candidate)
    if not query_words or not candidate_words:
        return 0.0, 0.0

    matches = 0
    for word in query_words:
        if any(word == cw or word in cw or cw in word for cw in candidate_words):
            matches += 1

    score = matches / len(query_words)
    total_score = matches / max(len(query_words), len(candidate_words))
    return score, total_score


def best_fuzzy_match(query: str, candidates: Iterable[str]) -> Optional[str]:
    """Pick the candidate with the best word overlap, or None below the thresholds."""
    best = None
    best_score = 0.0

    for candidate in candidates:
        score, total_score = word_overlap_score(query, candidate)
        if score >= FUZZY_MIN_SCORE and total_score >= FUZZY_MIN_TOTAL_SCORE and score > best_score:
            best = candidate
            best_score = score

    return best
