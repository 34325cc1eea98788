"""Keyword rules that flag a card line as an address or a job title."""
from __future__ import annotations
import re

ADDRESS_KEYWORDS = frozenset({
    "road", "phase", "sector", "street", "extn",
    "block", "complex", "tower", "floor", "plot",
})

DESIGNATION_KEYWORDS = frozenset({
    "lead", "manager", "director", "chief", "head",
    "engineer", "developer", "designer", "consultant", "analyst",
    "specialist", "coordinator", "executive", "officer", "president",
    "vp", "founder",
})

RE_HAS_DIGIT = re.compile(r"\d")


def _has_keyword(line: str, keywords: frozenset[str]) -> bool:
    low = line.lower()
    return any(k in low for k in keywords)


def is_address(line: str) -> bool:
    """A digit plus any address keyword, matched as a plain substring."""
    if not line:
        return False
    return bool(RE_HAS_DIGIT.search(line)) and _has_keyword(line, ADDRESS_KEYWORDS)


def is_designation(line: str) -> bool:
    if not line:
        return False
    return _has_keyword(line, DESIGNATION_KEYWORDS)
