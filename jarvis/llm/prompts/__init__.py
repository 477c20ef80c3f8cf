"""
Prompts module - LLM prompt templates.

Prompts are stored as separate Python files for:
- Version control of prompt changes
- Clear documentation of prompt purpose
"""
from jarvis.llm.prompts.assistant_prompts import (
    FORCED_ANSWER_INSTRUCTION,
    ITERATIONS_EXHAUSTED_REPLY,
    get_assistant_system_prompt,
)

__all__ = [
    "FORCED_ANSWER_INSTRUCTION",
    "ITERATIONS_EXHAUSTED_REPLY",
    "get_assistant_system_prompt",
]
