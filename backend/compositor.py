"""Merge per-kind occurrences and segment a message for rendering."""

from __future__ import annotations

from typing import Iterable, List, Mapping, Optional

from grammar import grammar_for
from models import (
    EntityLookup,
    EntitySummary,
    InvalidReferenceSegment,
    MessageSegment,
    Occurrence,
    ReferenceKind,
    TextSegment,
    ValidReferenceSegment,
)

INVALID_PREVIEW_LENGTH = 8


class OverlappingReferenceError(ValueError):
    """Two occurrences claim the same characters of a message."""

    def __init__(self, first: Occurrence, second: Occurrence):
        super().__init__(
            f"{second.kind.value} reference at {second.start}-{second.end} overlaps "
            f"{first.kind.value} reference at {first.start}-{first.end}"
        )
        self.first = first
        self.second = second


def merge_occurrences(
    occurrences_by_kind: Mapping[ReferenceKind, Iterable[Occurrence]],
) -> List[Occurrence]:
    """Concatenate every kind's occurrences and order them by start offset."""
    merged = sorted(
        (occurrence for occurrences in occurrences_by_kind.values() for occurrence in occurrences),
        key=lambda occurrence: occurrence.start,
    )
    for previous, current in zip(merged, merged[1:]):
        if current.start < previous.end:
            raise OverlappingReferenceError(previous, current)
    return merged


def valid_display(kind: ReferenceKind, entity: EntitySummary) -> str:
    grammar = grammar_for(kind)
    return f"{grammar.chip_prefix}{getattr(entity, grammar.label_field)}"


def invalid_display(kind: ReferenceKind, identifier: str) -> str:
    return f"{grammar_for(kind).sigil}{identifier[:INVALID_PREVIEW_LENGTH]}..."


def _reference_segment(
    occurrence: Occurrence, lookup: Optional[EntityLookup]
) -> MessageSegment:
    entity = (lookup or {}).get(occurrence.identifier)
    if entity is None:
        return InvalidReferenceSegment(
            kind=occurrence.kind,
            content=invalid_display(occurrence.kind, occurrence.identifier),
            occurrence=occurrence,
        )
    return ValidReferenceSegment(
        kind=occurrence.kind,
        content=valid_display(occurrence.kind, entity),
        entity=entity,
        occurrence=occurrence,
    )


def compose(
    text: str,
    occurrences_by_kind: Mapping[ReferenceKind, Iterable[Occurrence]],
    lookups_by_kind: Mapping[ReferenceKind, EntityLookup],
) -> List[MessageSegment]:
    """
    Split a message into text and reference segments.

    Args:
        text: The original message
        occurrences_by_kind: Scanner output per kind
        lookups_by_kind: Resolved entities per kind, keyed by lower-case id

    Returns:
        Segments in document order; joining each segment's ``source`` gives
        back ``text`` exactly
    """
    occurrences = merge_occurrences(occurrences_by_kind)
    if not occurrences:
        return [TextSegment(content=text)]

    segments: List[MessageSegment] = []
    last_index = 0

    for occurrence in occurrences:
        if text[occurrence.start:occurrence.end] != occurrence.text:
            raise ValueError(
                f"Occurrence at {occurrence.start}-{occurrence.end} does not match the message text"
            )

        if occurrence.start > last_index:
            segments.append(TextSegment(content=text[last_index:occurrence.start]))

        segments.append(_reference_segment(occurrence, lookups_by_kind.get(occurrence.kind)))
        last_index = occurrence.end

    if last_index < len(text):
        segments.append(TextSegment(content=text[last_index:]))

    return segments


def reconstruct(segments: Iterable[MessageSegment]) -> str:
    return "".join(segment.source for segment in segments)
