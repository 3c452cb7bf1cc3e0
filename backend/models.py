"""Shared backend models for chat references."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field


class ReferenceKind(str, Enum):
    TASK = "task"
    MILESTONE = "milestone"


class SegmentType(str, Enum):
    TEXT = "text"
    REFERENCE = "reference"
    INVALID_REFERENCE = "invalid-reference"


# Entity summaries supplied by the resolver


class TaskSummary(BaseModel):
    id: str
    title: str


class MilestoneSummary(BaseModel):
    id: str
    name: str
    progress_percentage: float = 0.0
    status: str = "not_started"


EntitySummary = Union[TaskSummary, MilestoneSummary]
EntityLookup = Dict[str, EntitySummary]


@dataclass(frozen=True)
class Occurrence:
    """One matched reference token inside a message."""

    kind: ReferenceKind
    identifier: str
    start: int
    end: int
    text: str


@dataclass
class RawScanResult:
    identifiers: List[str] = field(default_factory=list)
    occurrences: List[Occurrence] = field(default_factory=list)


@dataclass(frozen=True)
class CursorQuery:
    """An in-progress reference under the editor cursor."""

    kind: ReferenceKind
    query: str
    start: int
    end: int


@dataclass(frozen=True)
class SuggestionInsertion:
    text: str
    cursor: int


# Message segments


@dataclass(frozen=True)
class TextSegment:
    content: str

    @property
    def type(self) -> SegmentType:
        return SegmentType.TEXT

    @property
    def source(self) -> str:
        return self.content


@dataclass(frozen=True)
class ValidReferenceSegment:
    kind: ReferenceKind
    content: str
    entity: EntitySummary
    occurrence: Occurrence

    @property
    def type(self) -> SegmentType:
        return SegmentType.REFERENCE

    @property
    def source(self) -> str:
        return self.occurrence.text


@dataclass(frozen=True)
class InvalidReferenceSegment:
    kind: ReferenceKind
    content: str
    occurrence: Occurrence

    @property
    def type(self) -> SegmentType:
        return SegmentType.INVALID_REFERENCE

    @property
    def source(self) -> str:
        return self.occurrence.text


MessageSegment = Union[TextSegment, ValidReferenceSegment, InvalidReferenceSegment]


# API payloads


class OccurrencePayload(BaseModel):
    kind: ReferenceKind
    identifier: str
    start: int
    end: int
    text: str

    @classmethod
    def from_occurrence(cls, occurrence: Occurrence) -> "OccurrencePayload":
        return cls(
            kind=occurrence.kind,
            identifier=occurrence.identifier,
            start=occurrence.start,
            end=occurrence.end,
            text=occurrence.text,
        )


class ScanResultPayload(BaseModel):
    identifiers: List[str] = Field(default_factory=list)
    occurrences: List[OccurrencePayload] = Field(default_factory=list)


class ParseResponsePayload(BaseModel):
    results: Dict[ReferenceKind, ScanResultPayload] = Field(default_factory=dict)


class SegmentPayload(BaseModel):
    type: SegmentType
    content: str
    source: str
    kind: Optional[ReferenceKind] = None
    start: Optional[int] = None
    end: Optional[int] = None
    task: Optional[TaskSummary] = None
    milestone: Optional[MilestoneSummary] = None
    status_label: Optional[str] = None
    status_tone: Optional[str] = None


class RenderResponsePayload(BaseModel):
    segments: List[SegmentPayload] = Field(default_factory=list)


class CursorQueryPayload(BaseModel):
    kind: ReferenceKind
    query: str
    start: int
    end: int

    @classmethod
    def from_query(cls, query: CursorQuery) -> "CursorQueryPayload":
        return cls(kind=query.kind, query=query.query, start=query.start, end=query.end)


class QueryResponsePayload(BaseModel):
    query: Optional[CursorQueryPayload] = None


class AutocompleteResponsePayload(BaseModel):
    query: Optional[CursorQueryPayload] = None
    suggestions: List[Union[TaskSummary, MilestoneSummary]] = Field(default_factory=list)


class TokenResponsePayload(BaseModel):
    token: str


class InsertResponsePayload(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    text: str
    cursor_offset: int = Field(alias="cursor_offset")


# Request payloads


class MessageRequest(BaseModel):
    text: str


class QueryRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    text: str
    cursor_offset: int = Field(alias="cursor_offset", ge=0)
    kind: Optional[ReferenceKind] = None


class AutocompleteRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    text: str
    cursor_offset: int = Field(alias="cursor_offset", ge=0)
    limit: Optional[int] = Field(default=None, ge=1, le=20)


class TokenRequest(BaseModel):
    kind: ReferenceKind
    identifier: str


class InsertRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    text: str
    cursor_offset: int = Field(alias="cursor_offset", ge=0)
    kind: ReferenceKind
    identifier: str


class OpenProjectRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    project_id: str = Field(alias="project_id")
