"""Service layer for coordinating scanning, resolution, and composition."""

from __future__ import annotations

from typing import List, Optional

from compositor import compose
from cursor_query import extract_active_query, extract_query
from models import (
    AutocompleteResponsePayload,
    CursorQuery,
    CursorQueryPayload,
    MessageSegment,
    MilestoneSummary,
    OccurrencePayload,
    ParseResponsePayload,
    ReferenceKind,
    RenderResponsePayload,
    ScanResultPayload,
    SegmentPayload,
    SuggestionInsertion,
    TaskSummary,
    TextSegment,
)
from resolver import DEFAULT_SEARCH_LIMIT, EntityResolver, StaticEntityResolver, resolve_all
from scanner import scan_all
from serializer import apply_suggestion, milestone_status_label, milestone_status_tone, to_reference_token


def segment_payload(segment: MessageSegment) -> SegmentPayload:
    if isinstance(segment, TextSegment):
        return SegmentPayload(type=segment.type, content=segment.content, source=segment.source)

    occurrence = segment.occurrence
    payload = SegmentPayload(
        type=segment.type,
        content=segment.content,
        source=segment.source,
        kind=segment.kind,
        start=occurrence.start,
        end=occurrence.end,
    )
    entity = getattr(segment, "entity", None)
    if isinstance(entity, TaskSummary):
        payload.task = entity
    elif isinstance(entity, MilestoneSummary):
        payload.milestone = entity
        payload.status_label = milestone_status_label(entity.status)
        payload.status_tone = milestone_status_tone(entity.status)
    return payload


class ReferenceService:
    """Turns chat text into renderable segments and autocomplete suggestions."""

    def __init__(
        self,
        resolver: EntityResolver | None = None,
        search_limit: int = DEFAULT_SEARCH_LIMIT,
    ):
        self.resolver = resolver or StaticEntityResolver()
        self.search_limit = search_limit

    def parse(self, text: str) -> ParseResponsePayload:
        results = {
            kind: ScanResultPayload(
                identifiers=list(scan.identifiers),
                occurrences=[OccurrencePayload.from_occurrence(o) for o in scan.occurrences],
            )
            for kind, scan in scan_all(text).items()
        }
        return ParseResponsePayload(results=results)

    async def segments(self, text: str) -> List[MessageSegment]:
        scans = scan_all(text)
        lookups = await resolve_all(
            self.resolver, {kind: scan.identifiers for kind, scan in scans.items()}
        )
        return compose(text, {kind: scan.occurrences for kind, scan in scans.items()}, lookups)

    async def render(self, text: str) -> RenderResponsePayload:
        segments = await self.segments(text)
        return RenderResponsePayload(segments=[segment_payload(s) for s in segments])

    def query_at(
        self, text: str, cursor: int, kind: Optional[ReferenceKind] = None
    ) -> Optional[CursorQuery]:
        if kind is None:
            return extract_active_query(text, cursor)
        return extract_query(text, cursor, kind)

    async def autocomplete(
        self, text: str, cursor: int, limit: Optional[int] = None
    ) -> AutocompleteResponsePayload:
        query = extract_active_query(text, cursor)
        if query is None:
            return AutocompleteResponsePayload()

        payload = AutocompleteResponsePayload(query=CursorQueryPayload.from_query(query))
        if not query.query:
            return payload

        try:
            payload.suggestions = await self.resolver.search(
                query.kind, query.query, limit or self.search_limit
            )
        except Exception as exc:  # A failed search only hides suggestions
            print(f"Autocomplete search failed for {query.kind.value}: {exc}")
        return payload

    def token(self, kind: ReferenceKind, identifier: str) -> str:
        return to_reference_token(kind, identifier)

    def insert(
        self, text: str, cursor: int, kind: ReferenceKind, identifier: str
    ) -> SuggestionInsertion:
        query = extract_query(text, cursor, kind)
        if query is None:
            # No open trigger: insert at the caret.
            query = CursorQuery(kind=ReferenceKind(kind), query="", start=cursor, end=cursor)
        return apply_suggestion(text, query, identifier)
