"""
Conversation Memory - Data structures for conversation history.

This module provides the message types that flow through a turn:
- ToolCall: A tool invocation emitted by the model
- Message: Individual message in a conversation
- ConversationMemory: Caller-side history holder (used by the CLI)

History is never persisted. A caller that wants multi-turn context keeps
its own ConversationMemory and hands the messages to the orchestrator on
every turn.
"""
import json
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Literal, Optional

from jarvis.core.exceptions import ValidationError


Role = Literal["system", "user", "assistant", "tool"]
ROLES = ("system", "user", "assistant", "tool")


@dataclass(frozen=True)
class ToolCall:
    """
    A structured request, emitted by the model, to invoke a tool.

    Attributes:
        id: Identifier the model assigned; echoed back on the tool message
        name: Registered tool name
        arguments: Decoded JSON arguments
    """
    id: str
    name: str
    arguments: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to the function-calling wire format."""
        return {
            "id": self.id,
            "type": "function",
            "function": {
                "name": self.name,
                "arguments": json.dumps(self.arguments, ensure_ascii=False),
            },
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ToolCall":
        """
        Parse either the wire format or a flat {id, name, arguments} record.

        String arguments are decoded as JSON; undecodable arguments become {}.
        """
        function = data.get("function") or {}
        name = function.get("name") or data.get("name")
        raw_args = function.get("arguments", data.get("arguments"))

        if isinstance(raw_args, str):
            try:
                arguments = json.loads(raw_args or "{}")
            except json.JSONDecodeError:
                arguments = {}
        else:
            arguments = raw_args or {}

        if not isinstance(arguments, dict):
            arguments = {}

        if not name:
            raise ValidationError("Tool call is missing a function name", field="tool_calls")

        return cls(id=str(data.get("id", "")), name=name, arguments=arguments)


@dataclass
class Message:
    """
    Represents a single message in a conversation.

    Attributes:
        role: system, user, assistant or tool
        content: Message text (None for a pure tool-call assistant message)
        tool_calls: Tool invocations requested by an assistant message
        tool_call_id: For tool messages, the ToolCall.id being answered
        name: For tool messages, the tool that produced the observation
        timestamp: When the message was created

    Example:
        >>> msg = Message(role="user", content="What's 2+2?")
        >>> msg.to_dict()
        {'role': 'user', 'content': "What's 2+2?"}
    """
    role: Role
    content: Optional[str] = None
    tool_calls: List[ToolCall] = field(default_factory=list)
    tool_call_id: Optional[str] = None
    name: Optional[str] = None
    timestamp: datetime = field(default_factory=datetime.utcnow)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dict format for the LLM API."""
        data: Dict[str, Any] = {"role": self.role, "content": self.content}
        if self.tool_calls:
            data["tool_calls"] = [tc.to_dict() for tc in self.tool_calls]
        if self.tool_call_id is not None:
            data["tool_call_id"] = self.tool_call_id
        if self.name is not None:
            data["name"] = self.name
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Message":
        """
        Build a Message from caller-supplied history.

        Raises:
            ValidationError: If the role is unknown
        """
        role = data.get("role")
        if role not in ROLES:
            raise ValidationError(f"Invalid message role: {role!r}", field="history")

        tool_calls = [ToolCall.from_dict(tc) for tc in data.get("tool_calls") or []]

        return cls(
            role=role,
            content=data.get("content"),
            tool_calls=tool_calls,
            tool_call_id=data.get("tool_call_id"),
            name=data.get("name"),
        )

    @classmethod
    def system(cls, content: str) -> "Message":
        return cls(role="system", content=content)

    @classmethod
    def user(cls, content: str) -> "Message":
        return cls(role="user", content=content)

    @classmethod
    def assistant(cls, content: Optional[str], tool_calls: Optional[List[ToolCall]] = None) -> "Message":
        return cls(role="assistant", content=content, tool_calls=list(tool_calls or []))

    @classmethod
    def tool(cls, tool_call: ToolCall, content: str) -> "Message":
        return cls(role="tool", content=content, tool_call_id=tool_call.id, name=tool_call.name)


class ConversationMemory:
    """
    Holds conversation history for a single caller session.

    The orchestrator treats history as read-only input; this class is the
    caller's side of that contract.

    Attributes:
        max_messages: Maximum number of messages to retain
        created_at: When the session was created
        last_activity: Last message timestamp

    Example:
        >>> memory = ConversationMemory()
        >>> memory.add_user_message("Hello!")
        >>> memory.add_assistant_message("Hi! How can I help?")
        >>> len(memory.get_history_for_llm())
        2
    """

    def __init__(self, max_messages: int = 20):
        """
        Initialize conversation memory.

        Args:
            max_messages: Maximum messages to keep (oldest removed first)
        """
        self.max_messages = max_messages
        self.messages: List[Message] = []
        self.created_at = datetime.utcnow()
        self.last_activity = self.created_at

    def add_user_message(self, content: str) -> Message:
        """Add a user message to the conversation."""
        message = Message.user(content)
        self.add(message)
        return message

    def add_assistant_message(self, content: str) -> Message:
        """Add an assistant response to the conversation."""
        message = Message.assistant(content)
        self.add(message)
        return message

    def add(self, message: Message) -> None:
        """Append a message and enforce the size limit."""
        self.messages.append(message)
        self.last_activity = message.timestamp
        self._trim()

    def _trim(self) -> None:
        if len(self.messages) > self.max_messages:
            self.messages = self.messages[-self.max_messages:]

        # A tool message must follow the assistant message that requested it
        while self.messages and self.messages[0].role == "tool":
            self.messages.pop(0)

    def get_history(self) -> List[Message]:
        """Get all messages in the conversation."""
        return self.messages.copy()

    def get_history_for_llm(self) -> List[Dict[str, Any]]:
        """Get conversation history formatted for the LLM API."""
        return [msg.to_dict() for msg in self.messages]

    def clear(self) -> None:
        """Clear all messages from the conversation."""
        self.messages = []
        self.last_activity = datetime.utcnow()

    @property
    def message_count(self) -> int:
        """Number of messages in the conversation."""
        return len(self.messages)

    @property
    def is_empty(self) -> bool:
        """Check if conversation has no messages."""
        return len(self.messages) == 0
