"""
LLM module - Language model integration.

This module handles all LLM interactions:
- API calls to Groq
- Response parsing into Message/ToolCall
- Error classification for the loop's fallback policy
"""
from jarvis.llm.client import LLMClient, classify_error

__all__ = [
    "LLMClient",
    "classify_error",
]
