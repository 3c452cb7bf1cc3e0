"""Backend application state for project-scoped services."""

from __future__ import annotations

import os
import threading
from dataclasses import dataclass
from typing import Optional

from resolver import DEFAULT_SEARCH_LIMIT, EntityResolver, HttpEntityResolver, StaticEntityResolver
from services import ReferenceService


@dataclass(frozen=True)
class ReferenceSettings:
    resolver_base_url: str = "http://127.0.0.1:3000"
    project_id: str = ""
    resolver_timeout: float = 5.0
    search_limit: int = DEFAULT_SEARCH_LIMIT
    host: str = "127.0.0.1"
    port: int = 8000

    @classmethod
    def from_env(cls) -> "ReferenceSettings":
        return cls(
            resolver_base_url=os.environ.get("CHATREFS_RESOLVER_BASE_URL", "http://127.0.0.1:3000"),
            project_id=os.environ.get("CHATREFS_PROJECT_ID", "").strip(),
            resolver_timeout=float(os.environ.get("CHATREFS_RESOLVER_TIMEOUT", "5.0")),
            search_limit=int(os.environ.get("CHATREFS_SEARCH_LIMIT", str(DEFAULT_SEARCH_LIMIT))),
            host=os.environ.get("CHATREFS_HOST", "127.0.0.1"),
            port=int(os.environ.get("CHATREFS_PORT", "8000")),
        )


@dataclass
class ProjectServices:
    project_id: str
    resolver: EntityResolver
    references: ReferenceService


class ReferenceAppState:
    """Holds the currently-open project and its reference services."""

    def __init__(self, settings: Optional[ReferenceSettings] = None):
        self._lock = threading.RLock()
        self.settings = settings or ReferenceSettings.from_env()
        self._services: Optional[ProjectServices] = None
        self._load_project(self.settings.project_id)

    def current(self) -> ProjectServices:
        with self._lock:
            assert self._services is not None
            return self._services

    def open_project(self, project_id: str) -> ProjectServices:
        """Switch projects; returns the services that were replaced."""
        with self._lock:
            previous = self._services
            self._load_project(project_id)
            assert previous is not None
            return previous

    def _load_project(self, project_id: str) -> None:
        project_id = (project_id or "").strip()
        if project_id:
            resolver: EntityResolver = HttpEntityResolver(
                base_url=self.settings.resolver_base_url,
                project_id=project_id,
                timeout=self.settings.resolver_timeout,
            )
        else:
            # Without a project there is nothing to resolve against.
            resolver = StaticEntityResolver()

        self._services = ProjectServices(
            project_id=project_id,
            resolver=resolver,
            references=ReferenceService(resolver=resolver, search_limit=self.settings.search_limit),
        )
