"""
Conversation Orchestrator - The tool-augmented conversation loop.

One turn runs as:
1. Build messages: system prompt + caller history + new user message
2. Ask the model for a completion, offering every registered tool
3. Plain text answer -> done
4. Tool calls -> check the loop guard, run the tools concurrently,
   append one observation per call (in request order), go to 2
5. Out of iterations -> fixed apology

Fallbacks:
- A repeated identical tool call stops tool use; the model is told to
  answer with what it has and asked once more with tools disabled.
- A tool-use protocol error from the model service is retried once with
  tools disabled. Any other model error propagates to the caller.
- Tool failures never propagate; they arrive as {"error": ...} observations.

Nothing here is process-wide: each turn gets its own message list and
its own LoopGuard, so concurrent turns are independent. Only the tool
cache (inside the tools) is shared.
"""
import asyncio
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple, Union

from jarvis.core.exceptions import ToolUseFailedError
from jarvis.core.logging_config import get_logger
from jarvis.llm.client import LLMClient
from jarvis.llm.prompts import (
    FORCED_ANSWER_INSTRUCTION,
    ITERATIONS_EXHAUSTED_REPLY,
    get_assistant_system_prompt,
)
from jarvis.memory.conversation import Message, ToolCall
from jarvis.services.loop_guard import LoopGuard
from jarvis.tools.registry import ToolRegistry

logger = get_logger(__name__)

HistoryItem = Union[Message, Dict[str, Any]]


class TurnState(str, Enum):
    """Where a turn is in the generate/act/observe cycle."""
    AWAITING_MODEL = "awaiting_model"
    TOOL_REQUESTED = "tool_requested"
    EXECUTING_TOOLS = "executing_tools"
    DONE = "done"
    FORCED_ANSWER = "forced_answer"
    FAILED = "failed"


@dataclass
class TurnResult:
    """
    Outcome of one conversation turn.

    Attributes:
        reply: Text to show the user
        state: Terminal state (DONE, FORCED_ANSWER or FAILED)
        iterations: Completion requests made inside the main loop
        messages: Full message sequence of the turn, for debugging
        tools_executed: Tool calls actually run
        turn_start: Index in messages of the first message produced this turn
    """
    reply: str
    state: TurnState
    iterations: int
    messages: List[Message] = field(default_factory=list)
    tools_executed: int = 0
    turn_start: int = 0

    @property
    def new_messages(self) -> List[Message]:
        """Assistant messages produced during this turn."""
        return [m for m in self.messages[self.turn_start:] if m.role == "assistant"]


class ConversationOrchestrator:
    """
    Drives the model through tool rounds until it produces an answer.

    Example:
        >>> orchestrator = ConversationOrchestrator(LLMClient(), build_default_registry())
        >>> await orchestrator.reply("What's 2+2?")
        '4'
    """

    def __init__(
        self,
        llm: LLMClient,
        registry: ToolRegistry,
        max_iterations: int = 5,
        max_same_calls_allowed: int = 2,
        system_prompt_builder: Callable[[Sequence[str]], str] = get_assistant_system_prompt
    ):
        """
        Args:
            llm: Model client exposing async complete(messages, tools)
            registry: Tools offered to the model
            max_iterations: Model rounds allowed per turn
            max_same_calls_allowed: Identical tool calls tolerated per turn
            system_prompt_builder: Builds the system prompt from tool names
        """
        if max_iterations < 1:
            raise ValueError("max_iterations must be at least 1")

        self.llm = llm
        self.registry = registry
        self.max_iterations = max_iterations
        self.max_same_calls_allowed = max_same_calls_allowed
        self.system_prompt_builder = system_prompt_builder

    async def reply(
        self,
        user_message: str,
        history: Optional[Sequence[HistoryItem]] = None
    ) -> str:
        """Run a turn and return only the reply text."""
        result = await self.run_turn(user_message, history)
        return result.reply

    async def run_turn(
        self,
        user_message: str,
        history: Optional[Sequence[HistoryItem]] = None
    ) -> TurnResult:
        """
        Run one full conversation turn.

        Args:
            user_message: The new user message
            history: Prior turns (Message objects or wire dicts), read-only

        Returns:
            TurnResult with the reply and the turn's transcript

        Raises:
            LLMError: The model service failed in a way that is not retried
        """
        guard = LoopGuard(self.max_same_calls_allowed)
        guard.reset()

        messages = self._build_messages(user_message, history)
        turn_start = len(messages)
        tools = self.registry.schemas() or None
        tools_executed = 0

        for iteration in range(1, self.max_iterations + 1):
            logger.info(f"Turn iteration {iteration}/{self.max_iterations}: {TurnState.AWAITING_MODEL.value}")

            response, retried = await self._request_completion(messages, tools)

            if retried and response.tool_calls:
                # Calls returned on a tool-less retry are never run
                response = Message.assistant(response.content)

            if retried or not response.tool_calls:
                messages.append(response)
                reply = response.content or ""
                logger.info(
                    f"Turn done after {iteration} iteration(s): "
                    f"reply_length={len(reply)}, tools_executed={tools_executed}"
                )
                return TurnResult(reply, TurnState.DONE, iteration, messages, tools_executed, turn_start)

            calls = response.tool_calls
            logger.info(f"{TurnState.TOOL_REQUESTED.value}: {len(calls)} call(s) {[c.name for c in calls]}")

            # Record every call in the batch before deciding
            flags = [guard.record_and_check(call.name, call.arguments) for call in calls]
            if any(flags):
                reply = await self._forced_answer(messages)
                logger.info(f"Turn ended with forced answer after {iteration} iteration(s)")
                return TurnResult(reply, TurnState.FORCED_ANSWER, iteration, messages, tools_executed, turn_start)

            messages.append(response)
            logger.debug(f"{TurnState.EXECUTING_TOOLS.value}: {len(calls)} call(s)")
            observations = await self._execute_tools(calls)
            for call, observation in zip(calls, observations):
                messages.append(Message.tool(call, observation))
            tools_executed += len(calls)

        logger.warning(
            f"Iteration budget exhausted ({self.max_iterations}) without a final answer"
        )
        return TurnResult(
            ITERATIONS_EXHAUSTED_REPLY,
            TurnState.FAILED,
            self.max_iterations,
            messages,
            tools_executed,
            turn_start
        )

    def _build_messages(
        self,
        user_message: str,
        history: Optional[Sequence[HistoryItem]]
    ) -> List[Message]:
        """System prompt + copy of the caller's history + the new user message."""
        messages = [Message.system(self.system_prompt_builder(self.registry.names()))]
        for item in history or []:
            messages.append(item if isinstance(item, Message) else Message.from_dict(item))
        messages.append(Message.user(user_message))
        return messages

    async def _request_completion(
        self,
        messages: List[Message],
        tools: Optional[List[Dict[str, Any]]]
    ) -> Tuple[Message, bool]:
        """
        Ask the model for the next message.

        Returns:
            (response, retried) where retried means the tool-less fallback
            was used and the response is final
        """
        try:
            return await self.llm.complete(messages, tools=tools), False
        except ToolUseFailedError as e:
            logger.warning(f"Model tool-use failed, retrying once without tools: {e}")
            return await self.llm.complete(messages, tools=None), True

    async def _forced_answer(self, messages: List[Message]) -> str:
        """Stop tool use and ask for an answer from what was gathered."""
        messages.append(Message.user(FORCED_ANSWER_INSTRUCTION))
        response = await self.llm.complete(messages, tools=None)
        messages.append(response)
        return response.content or ""

    async def _execute_tools(self, calls: List[ToolCall]) -> List[str]:
        """Run a batch concurrently; results come back in request order."""
        return list(await asyncio.gather(*(self.registry.execute(call) for call in calls)))


# Global orchestrator instance; holds no per-turn state
_orchestrator: Optional[ConversationOrchestrator] = None


def get_orchestrator() -> ConversationOrchestrator:
    """Get or create the orchestrator wired from settings."""
    global _orchestrator
    if _orchestrator is None:
        from jarvis.core.config import get_settings
        from jarvis.tools import build_default_registry

        settings = get_settings()
        _orchestrator = ConversationOrchestrator(
            llm=LLMClient(settings),
            registry=build_default_registry(),
            max_iterations=settings.max_iterations,
            max_same_calls_allowed=settings.max_same_calls_allowed,
        )
        logger.info(
            f"Orchestrator initialized: max_iterations={settings.max_iterations}, "
            f"max_same_calls_allowed={settings.max_same_calls_allowed}"
        )
    return _orchestrator


def reset_orchestrator() -> None:
    """Forget the global orchestrator (used by tests)."""
    global _orchestrator
    _orchestrator = None
