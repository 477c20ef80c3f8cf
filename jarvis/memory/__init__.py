"""
Memory Package - Conversation message types and caller-side history.

Nothing here is persisted. History lives only as long as the caller
(a CLI session, a browser tab) keeps it.

Example:
    >>> from jarvis.memory import ConversationMemory
    >>> memory = ConversationMemory()
    >>> memory.add_user_message("Hello!")
"""
from jarvis.memory.conversation import ConversationMemory, Message, ToolCall

__all__ = [
    "ConversationMemory",
    "Message",
    "ToolCall",
]
