"""
Tools module - Capabilities the model may call during a turn.

- base.py       : BaseTool interface
- registry.py   : Name -> tool mapping, schema export, safe execution
- cache.py      : TTL cache for tool results
- web_search.py : The webSearch tool
"""
from typing import Optional

from jarvis.tools.base import BaseTool
from jarvis.tools.cache import ToolResultCache, get_tool_cache, reset_tool_cache
from jarvis.tools.registry import ToolRegistry
from jarvis.tools.web_search import WebSearchTool


def build_default_registry(
    cache: Optional[ToolResultCache] = None,
    timeout_seconds: Optional[float] = None,
    max_results: Optional[int] = None
) -> ToolRegistry:
    """Registry holding the built-in tools, configured from settings."""
    from jarvis.core.config import get_settings
    settings = get_settings()

    registry = ToolRegistry(
        timeout_seconds=timeout_seconds if timeout_seconds is not None else settings.tool_timeout_seconds
    )
    registry.register(
        WebSearchTool(
            cache=cache,
            max_results=max_results if max_results is not None else settings.search_max_results,
        )
    )
    return registry


__all__ = [
    "BaseTool",
    "ToolRegistry",
    "ToolResultCache",
    "WebSearchTool",
    "build_default_registry",
    "get_tool_cache",
    "reset_tool_cache",
]
