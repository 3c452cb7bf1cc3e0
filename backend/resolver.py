"""Entity lookup boundary for reference validation and autocomplete.

Resolvers map identifiers (or a partial search query) to entity summaries.
Failures never propagate into rendering: a lookup that cannot be completed is
reported and treated as "nothing found".
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Dict, Iterable, List, Mapping, Optional, Protocol, Sequence, Type
from urllib.parse import quote

import httpx
from pydantic import BaseModel, ValidationError

from grammar import grammar_for
from models import EntityLookup, EntitySummary, MilestoneSummary, ReferenceKind, TaskSummary

DEFAULT_SEARCH_LIMIT = 5


class ResolverClosedError(RuntimeError):
    """Raised when a closed resolver is asked to reconnect."""


class EntityResolver(Protocol):
    async def resolve(self, kind: ReferenceKind, identifiers: Sequence[str]) -> EntityLookup:
        ...

    async def search(
        self, kind: ReferenceKind, query: str, limit: int = DEFAULT_SEARCH_LIMIT
    ) -> List[EntitySummary]:
        ...


_SUMMARY_MODELS: Dict[ReferenceKind, Type[BaseModel]] = {
    ReferenceKind.TASK: TaskSummary,
    ReferenceKind.MILESTONE: MilestoneSummary,
}


def _unique_lower(identifiers: Iterable[str]) -> List[str]:
    seen = set()
    ordered: List[str] = []
    for identifier in identifiers:
        key = identifier.lower()
        if key not in seen:
            seen.add(key)
            ordered.append(key)
    return ordered


@dataclass(frozen=True)
class _Endpoints:
    validate_path: str
    validate_field: str
    search_path: str
    search_param: str
    collection: str


_ENDPOINTS: Dict[ReferenceKind, _Endpoints] = {
    ReferenceKind.TASK: _Endpoints(
        validate_path="/api/client/projects/{project_id}/tasks/validate",
        validate_field="taskIds",
        search_path="/api/client/projects/{project_id}/tasks/search",
        search_param="q",
        collection="tasks",
    ),
    ReferenceKind.MILESTONE: _Endpoints(
        validate_path="/api/client/projects/{project_id}/milestones/validate",
        validate_field="milestoneIds",
        search_path="/api/client/projects/{project_id}/milestones",
        search_param="search",
        collection="milestones",
    ),
}


class HttpEntityResolver:
    """Resolves references against the project chat API."""

    def __init__(
        self,
        base_url: str,
        project_id: str,
        timeout: float = 5.0,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.base_url = base_url
        self.project_id = project_id
        self.timeout = timeout
        self._client = client
        self._closed = False

    async def _get_client(self) -> httpx.AsyncClient:
        if self._closed:
            raise ResolverClosedError(f"Resolver for project {self.project_id} is closed")
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                headers={"Content-Type": "application/json"},
                timeout=httpx.Timeout(self.timeout),
            )
        return self._client

    async def aclose(self) -> None:
        self._closed = True
        if self._client is not None and not self._client.is_closed:
            await self._client.aclose()

    def _path(self, template: str) -> str:
        return template.format(project_id=quote(self.project_id, safe=""))

    def _parse_summaries(self, kind: ReferenceKind, data: object) -> List[EntitySummary]:
        endpoints = _ENDPOINTS[kind]
        if not isinstance(data, dict):
            print(f"Reference {kind.value} payload is not an object; ignoring")
            return []

        model = _SUMMARY_MODELS[kind]
        summaries: List[EntitySummary] = []
        items = data.get(endpoints.collection)
        if items is None:
            return []
        if not isinstance(items, list):
            print(f"Reference {kind.value} payload field '{endpoints.collection}' is not a list; ignoring")
            return []

        for item in items:
            try:
                summaries.append(model.model_validate(item))
            except ValidationError as exc:
                print(f"Skipping malformed {kind.value} entry: {exc.error_count()} error(s)")
        return summaries

    async def resolve(self, kind: ReferenceKind, identifiers: Sequence[str]) -> EntityLookup:
        kind = ReferenceKind(kind)
        ids = _unique_lower(identifiers)
        if not ids:
            return {}

        endpoints = _ENDPOINTS[kind]
        try:
            client = await self._get_client()
            response = await client.post(
                self._path(endpoints.validate_path), json={endpoints.validate_field: ids}
            )
            response.raise_for_status()
            data = response.json()
        except (httpx.HTTPError, ValueError, ResolverClosedError) as exc:
            print(f"Reference lookup failed for {kind.value}: {exc}")
            return {}

        requested = set(ids)
        lookup: EntityLookup = {}
        for summary in self._parse_summaries(kind, data):
            key = summary.id.lower()
            if key in requested:
                lookup[key] = summary
        return lookup

    async def search(
        self, kind: ReferenceKind, query: str, limit: int = DEFAULT_SEARCH_LIMIT
    ) -> List[EntitySummary]:
        kind = ReferenceKind(kind)
        if not query:
            return []

        endpoints = _ENDPOINTS[kind]
        try:
            client = await self._get_client()
            response = await client.get(
                self._path(endpoints.search_path),
                params={endpoints.search_param: query, "limit": limit},
            )
            response.raise_for_status()
            data = response.json()
        except (httpx.HTTPError, ValueError, ResolverClosedError) as exc:
            print(f"Reference search failed for {kind.value}: {exc}")
            return []

        return self._parse_summaries(kind, data)[:limit]


class StaticEntityResolver:
    """In-memory resolver over fixed entity lists."""

    def __init__(
        self,
        tasks: Iterable[TaskSummary] = (),
        milestones: Iterable[MilestoneSummary] = (),
    ):
        self._entities: Dict[ReferenceKind, Dict[str, EntitySummary]] = {
            ReferenceKind.TASK: {task.id.lower(): task for task in tasks},
            ReferenceKind.MILESTONE: {milestone.id.lower(): milestone for milestone in milestones},
        }

    async def resolve(self, kind: ReferenceKind, identifiers: Sequence[str]) -> EntityLookup:
        known = self._entities.get(ReferenceKind(kind), {})
        return {key: known[key] for key in _unique_lower(identifiers) if key in known}

    async def search(
        self, kind: ReferenceKind, query: str, limit: int = DEFAULT_SEARCH_LIMIT
    ) -> List[EntitySummary]:
        if not query:
            return []
        kind = ReferenceKind(kind)
        label_field = grammar_for(kind).label_field
        needle = query.lower()
        matches = [
            entity
            for entity in self._entities.get(kind, {}).values()
            if needle in getattr(entity, label_field).lower()
        ]
        return matches[:limit]


async def resolve_all(
    resolver: EntityResolver, identifiers_by_kind: Mapping[ReferenceKind, Sequence[str]]
) -> Dict[ReferenceKind, EntityLookup]:
    """Resolve every kind concurrently; a failing kind resolves to nothing."""
    kinds = [kind for kind, identifiers in identifiers_by_kind.items() if identifiers]
    results = await asyncio.gather(
        *(resolver.resolve(kind, identifiers_by_kind[kind]) for kind in kinds),
        return_exceptions=True,
    )

    lookups: Dict[ReferenceKind, EntityLookup] = {}
    for kind, result in zip(kinds, results):
        if isinstance(result, Exception):
            print(f"Reference lookup failed for {kind.value}: {result}")
            lookups[kind] = {}
        elif isinstance(result, BaseException):
            raise result
        else:
            lookups[kind] = result
    return lookups
