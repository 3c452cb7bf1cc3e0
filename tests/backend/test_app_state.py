"""
Unit tests for settings and project-scoped application state.
"""

import os
import sys

sys.path.insert(0, os.path.join(os.path.dirname(__file__), "../../backend"))

from app_state import ReferenceAppState, ReferenceSettings
from resolver import HttpEntityResolver, StaticEntityResolver


class TestReferenceAppState:
    """Test suite for ReferenceAppState."""

    def test_settings_from_env(self, monkeypatch):
        monkeypatch.setenv("CHATREFS_RESOLVER_BASE_URL", "http://chat.test")
        monkeypatch.setenv("CHATREFS_PROJECT_ID", " p42 ")
        monkeypatch.setenv("CHATREFS_RESOLVER_TIMEOUT", "2.5")
        monkeypatch.setenv("CHATREFS_SEARCH_LIMIT", "8")
        monkeypatch.setenv("CHATREFS_PORT", "9001")

        settings = ReferenceSettings.from_env()

        assert settings.resolver_base_url == "http://chat.test"
        assert settings.project_id == "p42"
        assert settings.resolver_timeout == 2.5
        assert settings.search_limit == 8
        assert settings.port == 9001

    def test_settings_defaults(self, monkeypatch):
        for name in ("CHATREFS_RESOLVER_BASE_URL", "CHATREFS_PROJECT_ID", "CHATREFS_SEARCH_LIMIT"):
            monkeypatch.delenv(name, raising=False)

        settings = ReferenceSettings.from_env()
        assert settings.project_id == ""
        assert settings.search_limit == 5

    def test_without_project_uses_static_resolver(self):
        state = ReferenceAppState(ReferenceSettings())
        services = state.current()

        assert services.project_id == ""
        assert isinstance(services.resolver, StaticEntityResolver)
        assert services.references.resolver is services.resolver

    def test_open_project_switches_resolver(self):
        state = ReferenceAppState(ReferenceSettings(resolver_base_url="http://chat.test", search_limit=3))

        previous = state.open_project("p7")
        current = state.current()

        assert previous.project_id == ""
        assert current.project_id == "p7"
        assert isinstance(current.resolver, HttpEntityResolver)
        assert current.resolver.project_id == "p7"
        assert current.resolver.base_url == "http://chat.test"
        assert current.references.search_limit == 3
