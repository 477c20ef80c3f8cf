"""
Services module - The conversation loop and its guards.

Services contain the core application logic:
- No HTTP concerns (those belong in api/)
- No terminal concerns (those belong in cli.py)
- Orchestrate between the LLM client and the tool registry
"""
from jarvis.services.loop_guard import LoopGuard
from jarvis.services.orchestrator import (
    ConversationOrchestrator,
    TurnResult,
    TurnState,
    get_orchestrator,
    reset_orchestrator,
)

__all__ = [
    "ConversationOrchestrator",
    "LoopGuard",
    "TurnResult",
    "TurnState",
    "get_orchestrator",
    "reset_orchestrator",
]
