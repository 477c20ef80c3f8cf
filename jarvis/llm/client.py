"""
LLM Client for Groq API integration.

This module provides a clean interface to the Groq chat completion API
with function calling. It handles:
- API client initialization
- Request/response conversion to our Message/ToolCall types
- Error classification (tool-use protocol failures vs. everything else)

Why a separate client class:
1. Encapsulation - Groq details hidden from the conversation loop
2. Testability - Easy to swap in a fake for tests
3. Flexibility - Another provider only needs the same complete() method
"""
import json
from typing import Any, Dict, List, Optional, Sequence

from groq import APIError, AsyncGroq

from jarvis.core.config import Settings, get_settings
from jarvis.core.exceptions import LLMError, ToolUseFailedError
from jarvis.core.logging_config import get_logger
from jarvis.memory.conversation import Message, ToolCall

logger = get_logger(__name__)

TOOL_USE_FAILED_CODE = "tool_use_failed"

# Compatibility shim: older responses only say it in prose
_TOOL_USE_FAILED_MARKERS = (
    "tool_use_failed",
    "tool use failed",
    "failed to call a function",
)


def _error_code(exc: Exception) -> Optional[str]:
    """Pull the structured error code out of a Groq API error, if any."""
    code = getattr(exc, "code", None)
    if isinstance(code, str):
        return code

    body = getattr(exc, "body", None)
    if isinstance(body, dict):
        if isinstance(body.get("code"), str):
            return body["code"]
        inner = body.get("error")
        if isinstance(inner, dict) and isinstance(inner.get("code"), str):
            return inner["code"]
    return None


def classify_error(exc: Exception) -> LLMError:
    """
    Map a model-service exception to our error hierarchy.

    Returns:
        ToolUseFailedError when the model emitted an unusable tool call,
        LLMError for everything else (auth, quota, network, ...)
    """
    if _error_code(exc) == TOOL_USE_FAILED_CODE:
        return ToolUseFailedError(str(exc))

    message = str(exc).lower()
    if any(marker in message for marker in _TOOL_USE_FAILED_MARKERS):
        return ToolUseFailedError(str(exc))

    return LLMError(str(exc))


def parse_tool_calls(raw_tool_calls: Optional[Sequence[Any]]) -> List[ToolCall]:
    """
    Normalize tool calls from a Groq response message.

    Malformed JSON arguments decode to an empty dict.
    """
    out: List[ToolCall] = []
    if not raw_tool_calls:
        return out

    for tc in raw_tool_calls:
        function = getattr(tc, "function", None)
        if function is None:
            continue

        try:
            args = json.loads(function.arguments or "{}")
        except (json.JSONDecodeError, TypeError):
            logger.warning(f"Undecodable arguments for tool {function.name}: {function.arguments!r}")
            args = {}
        if not isinstance(args, dict):
            args = {}

        out.append(ToolCall(id=tc.id, name=function.name, arguments=args))

    return out


class LLMClient:
    """
    Async client for Groq chat completions with tool calling.

    Example:
        >>> client = LLMClient()
        >>> reply = await client.complete([Message.user("Hi")])
        >>> reply.content
        'Good evening. How may I help?'
    """

    def __init__(self, settings: Optional[Settings] = None, client: Optional[AsyncGroq] = None):
        """
        Args:
            settings: Application settings; loaded from the environment if omitted
            client: Pre-built Groq client (tests pass a fake)
        """
        self.settings = settings or get_settings()
        self.client = client or AsyncGroq(
            api_key=self.settings.groq_api_key,
            timeout=self.settings.llm_timeout_seconds,
        )

        self.model = self.settings.llm_model
        self.temperature = self.settings.llm_temperature
        self.max_tokens = self.settings.llm_max_tokens

        logger.info(f"LLM client initialized (Groq, model={self.model})")

    async def complete(
        self,
        messages: Sequence[Message],
        tools: Optional[List[Dict[str, Any]]] = None
    ) -> Message:
        """
        Request one assistant message.

        Args:
            messages: Full ordered message sequence for this round
            tools: Function specs to offer; None disables tool use

        Returns:
            The assistant Message, with tool_calls if the model requested any

        Raises:
            ToolUseFailedError: The model produced a malformed tool call
            LLMError: Any other model-service failure
        """
        request: Dict[str, Any] = {
            "model": self.model,
            "messages": [m.to_dict() for m in messages],
            "temperature": self.temperature,
            "max_tokens": self.max_tokens,
        }
        if tools:
            request["tools"] = tools
            request["tool_choice"] = "auto"

        logger.debug(
            f"Requesting completion: messages={len(messages)}, "
            f"tools={'on' if tools else 'off'}"
        )

        try:
            response = await self.client.chat.completions.create(**request)
        except APIError as e:
            error = classify_error(e)
            logger.error(f"Groq request failed ({error.error_code}): {e}")
            raise error from e

        usage = getattr(response, "usage", None)
        if usage is not None:
            logger.debug(
                f"Token usage: prompt={getattr(usage, 'prompt_tokens', '?')}, "
                f"completion={getattr(usage, 'completion_tokens', '?')}"
            )

        choice = response.choices[0]
        tool_calls = parse_tool_calls(getattr(choice.message, "tool_calls", None))
        return Message.assistant(choice.message.content, tool_calls)
