"""Route OCR lines into card fields and resolve the final record.

Each line is tagged once. Its first tagged token decides whether it names a
person or a company; keyword rules decide address and designation
membership independently. Company lines are then re-tagged as one text so
that a name split across lines can be merged back into a single span.
"""
from __future__ import annotations
import asyncio
import logging
from dataclasses import dataclass, field
from typing import Optional, Protocol, Sequence

from src.ner.merger import best_span, merge_entities
from src.ner.models import EntityLabel, EntitySpan, ExtractionResult, TaggedToken

from .classifier import is_address, is_designation
from .sanitizer import sanitize_name

log = logging.getLogger(__name__)

# Position of the first word piece; index 0 is the tokenizer's [CLS] marker.
FIRST_WORD_INDEX = 1


class Tagger(Protocol):
    async def tag(self, text: str) -> list[TaggedToken]:
        ...


@dataclass
class Buckets:
    persons: list[str] = field(default_factory=list)
    companies: list[str] = field(default_factory=list)
    locations: list[str] = field(default_factory=list)
    designations: list[str] = field(default_factory=list)


def dominant_type(tokens: Sequence[TaggedToken]) -> Optional[EntityLabel]:
    """Label of the most confident Begin tag sitting on the first word piece."""
    best: Optional[TaggedToken] = None
    for tok in tokens:
        if tok.is_begin() and tok.index == FIRST_WORD_INDEX:
            if best is None or tok.confidence > best.confidence:
                best = tok
    return best.label if best is not None else None


def route_line(line: str, tokens: Sequence[TaggedToken], buckets: Buckets) -> None:
    """Append ``line`` to every bucket it qualifies for."""
    if tokens and tokens[0].is_begin(EntityLabel.LOC):
        buckets.locations.append(line)
    elif is_designation(line):
        buckets.designations.append(line)
    elif is_address(line):
        buckets.locations.append(line)

    kind = dominant_type(tokens)
    if kind is EntityLabel.PER:
        buckets.persons.append(line)
    elif kind is EntityLabel.ORG:
        buckets.companies.append(line)


def resolve_company(companies: Sequence[str], merged: Optional[EntitySpan]) -> Optional[str]:
    if len(companies) == 1:
        return companies[0]
    return merged.text if merged is not None else None


class FieldAggregator:
    """Turns one card's OCR lines into an :class:`ExtractionResult`."""

    def __init__(self, tagger: Tagger):
        self.tagger = tagger

    async def merged_company(self, companies: Sequence[str]) -> Optional[EntitySpan]:
        company_text = " ".join(companies)
        if not company_text.strip():
            return None
        tokens = await self.tagger.tag(company_text)
        if len(tokens) <= 1:
            return None
        return best_span(merge_entities(tokens, EntityLabel.ORG))

    async def tag_lines(self, lines: Sequence[str]) -> list[list[TaggedToken]]:
        """Tag every line concurrently; the first failure cancels the rest."""
        tasks = [asyncio.ensure_future(self.tagger.tag(line)) for line in lines]
        try:
            return list(await asyncio.gather(*tasks))
        except BaseException:
            for t in tasks:
                t.cancel()
            raise

    async def extract(self, lines: Sequence[str]) -> ExtractionResult:
        tagged = await self.tag_lines(lines)

        buckets = Buckets()
        for line, tokens in zip(lines, tagged):
            route_line(line, tokens, buckets)

        merged = await self.merged_company(buckets.companies)
        company = resolve_company(buckets.companies, merged)
        log.debug(
            "Routed %d lines: persons=%d companies=%d locations=%d designations=%d company=%r",
            len(lines), len(buckets.persons), len(buckets.companies),
            len(buckets.locations), len(buckets.designations), company,
        )

        return ExtractionResult(
            name=sanitize_name(buckets.persons[0] if buckets.persons else None),
            company=company,
            address=list(buckets.locations),
            designation=list(buckets.designations),
        )
