"""Strip contact noise (emails, links, phone numbers, digits) from a name line."""
from __future__ import annotations
import re
from typing import Optional

RE_EMAIL = re.compile(r"\S+@\S+\.\S+")
RE_URL = re.compile(r"https?://\S+")
RE_WWW = re.compile(r"www\.\S+")
# optional "+", then 7+ chars of digits/dashes/parens/spaces, digit at both ends
# ASCII digits and word boundaries: "Zéph" loses its "ph", "٣" survives
RE_PHONE = re.compile(r"\+?\d[\d\-)( ]{5,}\d", re.ASCII)
RE_DIGITS = re.compile(r"\d+", re.ASCII)

NOISE_WORDS = ("contact", "ph", "tel", "phone", "mobile")
RE_NOISE = re.compile(
    r"\b(?:" + "|".join(re.escape(w) for w in NOISE_WORDS) + r")\b",
    re.IGNORECASE | re.ASCII,
)

RE_WS = re.compile(r"\s+")

_RULES = (RE_EMAIL, RE_URL, RE_WWW, RE_PHONE, RE_DIGITS, RE_NOISE)


def _clean_once(line: str) -> str:
    for rule in _RULES:
        line = rule.sub("", line)
    return RE_WS.sub(" ", line).strip()


def sanitize_name(line: Optional[str]) -> str:
    """Remove PII-like substrings from a candidate name line.

    Rules are applied in order, each as a global substitution, and the result
    is whitespace-collapsed. ``None`` or an empty line gives ``""``.

    A deletion can splice a new match together (``"ww1w.x"`` turns into
    ``"www.x"`` once digits go), so the rules are reapplied until the line
    stops changing.
    """
    if not line:
        return ""
    cleaned = _clean_once(line)
    while cleaned != line:
        line, cleaned = cleaned, _clean_once(cleaned)
    return cleaned
