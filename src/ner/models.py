"""Pydantic models for tagged tokens, merged spans and the extracted card."""
from __future__ import annotations
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class EntityLabel(str, Enum):
    """Entity types emitted by CoNLL-style taggers (dslim/bert-base-NER)."""
    PER = "PER"
    ORG = "ORG"
    LOC = "LOC"
    MISC = "MISC"
    O = "O"


class Boundary(str, Enum):
    BEGIN = "B"
    INSIDE = "I"


class TaggedToken(BaseModel):
    """A single sub-word token as returned by the tagger.

    ``text`` never carries the tokenizer's continuation marker; sub-word
    fragments are flagged with ``is_continuation`` instead.
    """
    model_config = ConfigDict(frozen=True)

    text: str
    label: EntityLabel
    boundary: Boundary = Boundary.BEGIN
    confidence: float = Field(0.0, ge=0, le=1)
    is_continuation: bool = False
    index: int = 0
    start: Optional[int] = None
    end: Optional[int] = None

    @classmethod
    def from_tag(cls, tag: str, text: str, confidence: float,
                 is_continuation: bool = False, **kwargs) -> "TaggedToken":
        """Build a token from a raw tag string such as ``"B-ORG"`` or ``"O"``."""
        if tag == "O":
            return cls(text=text, label=EntityLabel.O, boundary=Boundary.INSIDE,
                       confidence=confidence, is_continuation=is_continuation, **kwargs)
        prefix, _, label = tag.partition("-")
        if not label:
            raise ValueError(f"Malformed entity tag: {tag!r}")
        return cls(
            text=text,
            label=EntityLabel(label),
            boundary=Boundary(prefix),
            confidence=confidence,
            is_continuation=is_continuation,
            **kwargs,
        )

    def is_begin(self, label: EntityLabel | None = None) -> bool:
        if self.boundary is not Boundary.BEGIN or self.label is EntityLabel.O:
            return False
        return label is None or self.label is label

    def is_inside(self, label: EntityLabel) -> bool:
        return self.boundary is Boundary.INSIDE and self.label is label


class EntitySpan(BaseModel):
    """A contiguous run of tokens of one entity type."""
    text: str
    score: float
    label: EntityLabel = EntityLabel.ORG
    token_count: int = 0


class ExtractionResult(BaseModel):
    """Structured fields extracted from one business card."""
    name: str = ""
    company: Optional[str] = None
    address: list[str] = []
    designation: list[str] = []
