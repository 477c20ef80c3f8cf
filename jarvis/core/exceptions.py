"""
Custom Exceptions - Application-specific error classes.

This module defines a hierarchy of exceptions for clean error handling:
- Each exception has a status code and error code
- Used by the API layer for consistent error responses
- The orchestrator inspects LLM error subclasses to pick a fallback
"""
from typing import Optional


class AssistantException(Exception):
    """
    Base exception for all assistant errors.

    Subclass this for specific error types.
    """
    status_code: int = 500
    error_code: str = "internal_error"

    def __init__(self, message: str, details: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.details = details

    def to_dict(self) -> dict:
        """Convert to error response dict."""
        return {
            "error": self.error_code,
            "message": self.message,
            "details": self.details
        }


class ValidationError(AssistantException):
    """Raised when input validation fails."""
    status_code = 400
    error_code = "validation_error"

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message, details=f"field={field}" if field else None)
        self.field = field


class LLMError(AssistantException):
    """Raised when LLM API calls fail (auth, quota, network, ...)."""
    status_code = 503
    error_code = "llm_error"

    def __init__(self, message: str = "LLM service unavailable"):
        super().__init__(message)


class ToolUseFailedError(LLMError):
    """
    Raised when the model service rejects a completion because the model
    produced a malformed tool call.

    The orchestrator answers this with a single retry without tools.
    """
    error_code = "tool_use_failed"

    def __init__(self, message: str = "Model failed to call a tool"):
        super().__init__(message)


class ToolExecutionError(AssistantException):
    """Raised inside a tool; converted to an error observation by the registry."""
    status_code = 502
    error_code = "tool_error"

    def __init__(self, tool_name: str, message: str):
        super().__init__(message, details=f"tool={tool_name}")
        self.tool_name = tool_name


class OrchestratorError(AssistantException):
    """Raised when a conversation turn cannot be completed."""
    status_code = 500
    error_code = "turn_failed"

    def __init__(self, message: str = "Failed to process chat message"):
        super().__init__(message)
