"""
Input Validators - Sanitization and validation utilities.

This module validates what callers hand to a conversation turn:
- Message sanitization
- Caller-supplied history shape
"""
import re
from typing import Any, Dict, List, Optional, Tuple

from jarvis.core.logging_config import get_logger

logger = get_logger(__name__)

MAX_MESSAGE_LENGTH = 4000
MAX_HISTORY_MESSAGES = 50

HISTORY_ROLES = {"system", "user", "assistant", "tool"}

# Horizontal whitespace only; newlines are meaningful in chat input
_HORIZONTAL_WS = re.compile(r"[ \t]+")


def sanitize_message(message: str, max_length: int = MAX_MESSAGE_LENGTH) -> str:
    """
    Sanitize a user message.

    - Removes null bytes
    - Strips leading/trailing whitespace
    - Collapses runs of spaces and tabs
    - Limits length

    Args:
        message: Raw user message
        max_length: Maximum allowed length

    Returns:
        Sanitized message
    """
    if not message:
        return ""

    cleaned = message.replace("\x00", "")
    cleaned = cleaned.strip()
    cleaned = _HORIZONTAL_WS.sub(" ", cleaned)

    if len(cleaned) > max_length:
        cleaned = cleaned[:max_length]

    return cleaned


def validate_message(message: Optional[str]) -> Tuple[bool, str, Optional[str]]:
    """
    Full validation and sanitization of a message.

    Args:
        message: Raw user message

    Returns:
        Tuple of (is_valid, sanitized_message, error_message)
    """
    if message is None or not isinstance(message, str):
        return False, "", "Message is required"

    if not message.strip():
        return False, "", "Message cannot be empty"

    sanitized = sanitize_message(message)

    if not sanitized:
        return False, "", "Message cannot be empty after sanitization"

    if len(message.strip()) > MAX_MESSAGE_LENGTH:
        logger.warning(
            f"Message truncated from {len(message)} to {MAX_MESSAGE_LENGTH} characters"
        )

    return True, sanitized, None


def validate_history(history: Optional[List[Dict[str, Any]]]) -> Tuple[bool, Optional[str]]:
    """
    Check that caller-supplied history is a list of role/content records
    and that every tool message answers a call from the assistant message
    before it.

    Args:
        history: Prior turns as plain dicts

    Returns:
        Tuple of (is_valid, error_message)
    """
    if history is None:
        return True, None

    # Ids requested by the latest assistant message; a run of tool messages answers them
    open_call_ids: set = set()
    for index, entry in enumerate(history):
        role = entry.get("role")
        if role not in HISTORY_ROLES:
            return False, f"Invalid role at history[{index}]: {role!r}"
        content = entry.get("content")
        if content is not None and not isinstance(content, str):
            return False, f"Invalid content at history[{index}]: must be text"

        if role == "tool":
            if entry.get("tool_call_id") not in open_call_ids:
                return False, f"Tool message at history[{index}] does not answer a preceding tool call"
        elif role == "assistant":
            open_call_ids = {call.get("id") for call in entry.get("tool_calls") or []}
        else:
            open_call_ids = set()

    return True, None


def trim_history(
    history: List[Dict[str, Any]],
    max_messages: int = MAX_HISTORY_MESSAGES
) -> List[Dict[str, Any]]:
    """
    Keep the most recent messages of a long history.

    Tool messages left at the front lose the assistant message that
    requested them, so they are dropped too.
    """
    if len(history) <= max_messages:
        return history

    trimmed = history[-max_messages:]
    while trimmed and trimmed[0].get("role") == "tool":
        trimmed = trimmed[1:]

    logger.info(f"History trimmed from {len(history)} to {len(trimmed)} messages")
    return trimmed
