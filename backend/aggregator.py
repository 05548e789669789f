"""
Lauren's List - Verdict Aggregator
Copyright (c) 2026 beautifulplanet
Licensed under MIT License

Combines curated list, membership and term signals into one verdict.

Precedence (first rule that fires decides):
1. Curated list match          -> not safe, KnownList
2. Any membership flag         -> not safe, that source's method
3. Any matched term            -> not safe, TermScan
4. Nothing                     -> safe
"""

from typing import Sequence

from models import CuratedMatch, DetectionMethod, MembershipFlag, Verdict, Work

# Fixed confidence per detection method
CONFIDENCE = {
    DetectionMethod.KNOWN_LIST: 0.95,
    DetectionMethod.CATEGORY_LIST: 0.95,
    DetectionMethod.TRIGGER_DATABASE: 0.95,
    DetectionMethod.TERM_SCAN: 0.8,
    DetectionMethod.NONE: 0.9,
}

# How each membership method is described in the rationale
MEMBERSHIP_DESCRIPTIONS = {
    DetectionMethod.TRIGGER_DATABASE: "flagged for cancer or terminal illness content by {name}",
    DetectionMethod.CATEGORY_LIST: "listed in {name} of works about cancer",
}


def _format_terms(terms: Sequence[str]) -> str:
    return ", ".join(terms)


def aggregate(work: Work, curated_match: CuratedMatch,
              membership_flags: Sequence[MembershipFlag],
              term_matches: Sequence[str]) -> Verdict:
    """Build the verdict for one work. Pure and deterministic."""
    terms = tuple(term_matches)

    if curated_match.matched:
        method = DetectionMethod.KNOWN_LIST
        rationale = (
            f'"{work.title}" is a known cancer-themed {work.media_type.value} '
            f'(matches "{curated_match.matched_entry}" on the curated list).'
        )
        if terms:
            rationale += f" Related terms also found: {_format_terms(terms)}."
        return Verdict(False, CONFIDENCE[method], terms, method, rationale)

    for flag in membership_flags:
        if flag.matched:
            method = flag.method
            template = MEMBERSHIP_DESCRIPTIONS.get(method, "listed by {name}")
            rationale = f'"{work.title}" is {template.format(name=flag.name)}.'
            if terms:
                rationale += f" Related terms also found: {_format_terms(terms)}."
            return Verdict(False, CONFIDENCE[method], terms, method, rationale)

    if terms:
        method = DetectionMethod.TERM_SCAN
        rationale = f"Cancer-related content detected. Found terms: {_format_terms(terms)}."
        return Verdict(False, CONFIDENCE[method], terms, method, rationale)

    method = DetectionMethod.NONE
    rationale = (
        "No cancer-related content detected. "
        "The analysis searched for cancer-related terms and themes."
    )
    return Verdict(True, CONFIDENCE[method], (), method, rationale)
