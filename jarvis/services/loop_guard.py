"""
Loop Guard - Repetition detection for tool calls within one turn.

A model that fails to use a tool's answer tends to ask for the same call
again. The guard counts identical (name, arguments) signatures and flags
the call once a signature has been seen max_same_calls_allowed times.
Distinct calls are never limited here; the orchestrator's iteration cap
bounds those.

One LoopGuard belongs to one turn. Never share an instance across turns.
"""
import json
from collections import Counter
from typing import Any, Dict, List

from jarvis.core.logging_config import get_logger

logger = get_logger(__name__)


class LoopGuard:
    """
    Tracks tool-call signatures for the current turn.

    Example:
        >>> guard = LoopGuard(max_same_calls_allowed=2)
        >>> guard.record_and_check("webSearch", {"query": "X"})
        False
        >>> guard.record_and_check("webSearch", {"query": "X"})
        True
    """

    def __init__(self, max_same_calls_allowed: int = 2):
        if max_same_calls_allowed < 1:
            raise ValueError("max_same_calls_allowed must be at least 1")
        self.max_same_calls_allowed = max_same_calls_allowed
        self._signatures: List[str] = []
        self._counts: Counter = Counter()

    @staticmethod
    def signature(name: str, args: Dict[str, Any]) -> str:
        """Name plus canonical JSON of the arguments (sorted keys, compact)."""
        canonical = json.dumps(args or {}, sort_keys=True, separators=(",", ":"), default=str)
        return f"{name}{canonical}"

    def reset(self) -> None:
        """Forget every recorded signature. Called once per user turn."""
        self._signatures.clear()
        self._counts.clear()

    def record_and_check(self, name: str, args: Dict[str, Any]) -> bool:
        """
        Record a tool call and report whether it is now a repeat.

        Returns:
            True iff this exact signature has been seen at least
            max_same_calls_allowed times, this call included
        """
        sig = self.signature(name, args)
        self._signatures.append(sig)
        self._counts[sig] += 1

        repeated = self._counts[sig] >= self.max_same_calls_allowed
        if repeated:
            logger.warning(
                f"Repeated tool call detected ({self._counts[sig]}x): {sig[:120]}"
            )
        return repeated

    def count(self, name: str, args: Dict[str, Any]) -> int:
        """How many times this call has been recorded this turn."""
        return self._counts[self.signature(name, args)]

    @property
    def signatures(self) -> List[str]:
        """Recorded signatures in call order."""
        return list(self._signatures)
