"""
Tool Registry - Tool registration, discovery, and invocation.

Maps a tool name to its implementation and exposes every registered
schema to the model. Execution never raises: unknown tools, exceptions
and timeouts all come back as a JSON error observation so the model can
reason about the failure instead of the loop crashing.
"""
import asyncio
import json
from typing import Any, Dict, List, Optional

from jarvis.core.logging_config import get_logger
from jarvis.memory.conversation import ToolCall
from jarvis.tools.base import BaseTool

logger = get_logger(__name__)


def error_observation(message: str) -> str:
    """Structured error payload appended as a tool's response."""
    return json.dumps({"error": message}, ensure_ascii=False)


def serialize_result(result: Any) -> str:
    """Serialize a tool result for the transcript; strings pass through."""
    if isinstance(result, str):
        return result
    return json.dumps(result, ensure_ascii=False, default=str)


class ToolRegistry:
    """Manages tool registration and invocation."""

    def __init__(self, timeout_seconds: Optional[float] = None):
        """
        Args:
            timeout_seconds: Per-call limit applied by execute(); None disables it
        """
        self._tools: Dict[str, BaseTool] = {}
        self.timeout_seconds = timeout_seconds

    def register(self, tool: BaseTool) -> None:
        """Register a tool by its name, replacing any previous one."""
        if tool.name in self._tools:
            logger.warning(f"Replacing registered tool: {tool.name}")
        self._tools[tool.name] = tool
        logger.debug(f"Registered tool: {tool.name}")

    def get(self, name: str) -> BaseTool:
        """Get a tool by name."""
        if name not in self._tools:
            raise KeyError(f"Tool '{name}' not registered")
        return self._tools[name]

    def names(self) -> List[str]:
        """Return all registered tool names."""
        return list(self._tools.keys())

    def schemas(self) -> List[Dict[str, Any]]:
        """Function specs for every registered tool, in registration order."""
        return [tool.schema() for tool in self._tools.values()]

    def __contains__(self, name: str) -> bool:
        return name in self._tools

    def __len__(self) -> int:
        return len(self._tools)

    async def execute(self, call: ToolCall) -> str:
        """
        Run one tool call and return the observation text.

        Args:
            call: Tool call emitted by the model

        Returns:
            Serialized result, or {"error": ...} JSON on any failure
        """
        tool = self._tools.get(call.name)
        if tool is None:
            logger.warning(f"Model requested unknown tool: {call.name}")
            return error_observation(f"Unknown tool: {call.name}")

        logger.info(f"Executing tool: {call.name} args={call.arguments}")

        try:
            if self.timeout_seconds:
                result = await asyncio.wait_for(
                    tool.invoke(dict(call.arguments)),
                    timeout=self.timeout_seconds
                )
            else:
                result = await tool.invoke(dict(call.arguments))
        except asyncio.TimeoutError:
            logger.error(f"Tool {call.name} timed out after {self.timeout_seconds}s")
            return error_observation(
                f"Tool '{call.name}' timed out after {self.timeout_seconds} seconds"
            )
        except Exception as e:
            logger.error(f"Tool {call.name} failed: {e}")
            return error_observation(str(e) or e.__class__.__name__)

        return serialize_result(result)
