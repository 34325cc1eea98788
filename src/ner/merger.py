"""Rebuild entity spans from per-token B-/I- tags.

Taggers label each word piece separately. This module stitches the pieces of
one entity type back together: continuation fragments are glued onto the
previous piece, whole words are joined with a space, and any tag that breaks
the run closes the current span.
"""
from __future__ import annotations
import re
from typing import Iterable, Optional

from .models import EntityLabel, EntitySpan, TaggedToken

_WS = re.compile(r"\s+")


class _OpenSpan:
    __slots__ = ("segments", "scores")

    def __init__(self, token: TaggedToken):
        self.segments = [token.text]
        self.scores = [token.confidence]

    def extend(self, token: TaggedToken) -> None:
        if token.is_continuation:
            self.segments[-1] += token.text
        else:
            self.segments.append(token.text)
        self.scores.append(token.confidence)

    def close(self, label: EntityLabel) -> EntitySpan:
        text = _WS.sub(" ", " ".join(self.segments)).strip()
        return EntitySpan(
            text=text,
            score=sum(self.scores) / len(self.scores),
            label=label,
            token_count=len(self.scores),
        )


def merge_entities(tokens: Iterable[TaggedToken],
                   target: EntityLabel = EntityLabel.ORG) -> list[EntitySpan]:
    """Merge consecutive ``target`` tokens into scored spans, in input order."""
    spans: list[EntitySpan] = []
    current: Optional[_OpenSpan] = None

    for tok in tokens:
        if tok.is_begin(target):
            if current is not None:
                spans.append(current.close(target))
            current = _OpenSpan(tok)
        elif tok.is_inside(target) and current is not None:
            current.extend(tok)
        elif current is not None:
            spans.append(current.close(target))
            current = None

    if current is not None:
        spans.append(current.close(target))
    return spans


def best_span(spans: Iterable[EntitySpan]) -> Optional[EntitySpan]:
    """Highest-scoring span; the earliest one wins a tie."""
    best = None
    for span in spans:
        if best is None or span.score > best.score:
            best = span
    return best
