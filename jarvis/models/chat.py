"""
Request and Response models for the Chat API.

These Pydantic models define the contract between the browser frontend
and the server. They provide:
- Type validation
- Automatic documentation
- Request/response serialization
"""
from datetime import datetime
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, Field


class HistoryMessage(BaseModel):
    """
    One prior message supplied by the caller.

    The frontend only sends user/assistant text; tool fields are accepted
    so a full transcript can be replayed.
    """
    role: Literal["system", "user", "assistant", "tool"]
    content: Optional[str] = None
    tool_calls: Optional[List[Dict[str, Any]]] = None
    tool_call_id: Optional[str] = None
    name: Optional[str] = None


class ChatRequest(BaseModel):
    """
    Request model for the /chat endpoint.

    Attributes:
        message: The user's new message. Optional at the schema level so a
            missing message is reported as a 400 by the route.
        history: Prior turns, oldest first, excluding the new message.
    """
    message: Optional[str] = Field(
        default=None,
        description="The user's message or question",
        examples=["Latest iPhone news"]
    )
    history: List[HistoryMessage] = Field(
        default_factory=list,
        description="Conversation so far, owned by the caller"
    )


class ChatResponse(BaseModel):
    """Response model for the /chat endpoint."""
    reply: str = Field(
        ...,
        description="The assistant's natural language response"
    )


class ErrorResponse(BaseModel):
    """Error body returned by /chat."""
    error: str


class HealthResponse(BaseModel):
    """Response model for the /health endpoint."""
    status: str = Field(default="healthy")
    version: str
    timestamp: datetime = Field(default_factory=datetime.utcnow)
