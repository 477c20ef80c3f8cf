"""
webSearch tool - Live web lookups through DuckDuckGo.

Results are cached by normalized query, so "Latest iPhone news" and
"  latest iphone news " cost one search between them within the TTL.
"""
import asyncio
import json
from typing import Any, Callable, Dict, List, Optional

from ddgs import DDGS

from jarvis.core.exceptions import ToolExecutionError
from jarvis.core.logging_config import get_logger
from jarvis.tools.base import BaseTool
from jarvis.tools.cache import ToolResultCache, get_tool_cache, normalize_key

logger = get_logger(__name__)

TOOL_NAME = "webSearch"

# query, max_results -> list of result records or a raw provider payload
SearchBackend = Callable[[str, int], Any]


def duckduckgo_search(query: str, max_results: int) -> List[Dict[str, str]]:
    """
    Run a DuckDuckGo text search.

    Returns:
        List of {title, url, snippet} dicts
    """
    results: List[Dict[str, str]] = []
    with DDGS() as ddgs:
        for hit in ddgs.text(query, max_results=max_results):
            results.append(
                {
                    "title": hit.get("title", ""),
                    "url": hit.get("href", ""),
                    "snippet": hit.get("body", ""),
                }
            )
    return results


class WebSearchTool(BaseTool):
    """Search the web for current information."""

    name = TOOL_NAME
    description = (
        "Search the web for current or real-time information: news, recent "
        "events, prices, scores, people, or anything you do not already know."
    )
    parameters = {
        "type": "object",
        "properties": {
            "query": {
                "type": "string",
                "description": "The search query to look up"
            }
        },
        "required": ["query"],
    }

    def __init__(
        self,
        cache: Optional[ToolResultCache] = None,
        backend: SearchBackend = duckduckgo_search,
        max_results: int = 5
    ):
        """
        Args:
            cache: Result cache; the process-wide cache when omitted
            backend: Search function, injectable for tests
            max_results: Results requested per search
        """
        self.cache = cache if cache is not None else get_tool_cache()
        self.backend = backend
        self.max_results = max_results

    async def invoke(self, args: Dict[str, Any]) -> str:
        query = args.get("query")
        if not isinstance(query, str) or not query.strip():
            raise ToolExecutionError(self.name, "A non-empty 'query' string is required")

        key = normalize_key(query)

        cached = self.cache.get(key)
        if cached is not None:
            logger.info(f"webSearch served from cache: {key[:60]!r}")
            return cached

        logger.info(f"webSearch querying backend: {key[:60]!r}")
        payload = await asyncio.to_thread(self.backend, query.strip(), self.max_results)

        serialized = json.dumps(payload, ensure_ascii=False, default=str)
        self.cache.set(key, serialized)

        count = len(payload) if isinstance(payload, list) else 1
        logger.info(f"webSearch returned {count} result(s)")
        return serialized
