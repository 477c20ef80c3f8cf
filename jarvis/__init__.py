"""
Jarvis - a tool-augmented chat assistant.

This package is organized by responsibility:
- api/       : FastAPI routes and HTTP handling
- core/      : Configuration, logging, errors and validation
- services/  : The conversation loop and its loop guard
- llm/       : Groq client and prompt templates
- tools/     : Tool registry, result cache and the webSearch tool
- memory/    : Message types and caller-side history
- models/    : Pydantic models for request/response schemas
- cli.py     : Terminal chat
"""

__version__ = "0.1.0"
