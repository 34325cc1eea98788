"""Shape checks for incoming ``ocrLines`` payloads (HTTP body or batch row)."""
from __future__ import annotations
from typing import Any


class OcrLinesValidationError(ValueError):
    """Payload does not carry a usable ``ocrLines`` array."""


def parse_ocr_lines(body: Any) -> list[str]:
    if not isinstance(body, dict) or not isinstance(body.get("ocrLines"), list):
        raise OcrLinesValidationError("ocrLines must be an array")
    lines = body["ocrLines"]
    if not all(isinstance(line, str) for line in lines):
        raise OcrLinesValidationError("ocrLines must contain only strings")
    return lines
