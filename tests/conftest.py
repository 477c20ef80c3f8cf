"""Shared pytest fixtures."""

import os

# Settings are read at import time by the API module
os.environ.setdefault("GROQ_API_KEY", "test-key")
os.environ.setdefault("LOG_TO_FILE", "false")
os.environ.setdefault("APP_ENV", "test")

import pytest

from jarvis.core.config import get_settings
from jarvis.services.orchestrator import ConversationOrchestrator, reset_orchestrator
from jarvis.tools.cache import ToolResultCache, reset_tool_cache
from jarvis.tools.registry import ToolRegistry
from jarvis.tools.web_search import WebSearchTool
from tests.helpers import FakeClock, FakeSearch, ScriptedLLM


@pytest.fixture(autouse=True)
def _reset_globals():
    get_settings.cache_clear()
    reset_tool_cache()
    reset_orchestrator()
    yield
    get_settings.cache_clear()
    reset_tool_cache()
    reset_orchestrator()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def cache(clock: FakeClock) -> ToolResultCache:
    return ToolResultCache(ttl_seconds=3600, max_entries=100, sweep_interval_seconds=60, timer=clock)


@pytest.fixture
def search() -> FakeSearch:
    return FakeSearch()


@pytest.fixture
def registry(cache: ToolResultCache, search: FakeSearch) -> ToolRegistry:
    registry = ToolRegistry(timeout_seconds=5)
    registry.register(WebSearchTool(cache=cache, backend=search, max_results=5))
    return registry


@pytest.fixture
def make_orchestrator(registry: ToolRegistry):
    def _make(script, **kwargs) -> ConversationOrchestrator:
        return ConversationOrchestrator(ScriptedLLM(script), registry, **kwargs)
    return _make
