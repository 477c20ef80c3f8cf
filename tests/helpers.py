"""Test doubles for the model service, the search backend and the clock."""

from typing import Any, Dict, List, Optional, Sequence, Union

from jarvis.memory.conversation import Message, ToolCall


class FakeClock:
    """Monotonic clock the tests move by hand."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeSearch:
    """Search backend that records queries and returns canned hits."""

    def __init__(self, payload: Any = None):
        self.queries: List[str] = []
        self.payload = payload

    def __call__(self, query: str, max_results: int) -> Any:
        self.queries.append(query)
        if self.payload is not None:
            return self.payload
        return [
            {"title": f"Result for {query}", "url": "https://example.com/1", "snippet": "First hit"},
            {"title": "Another", "url": "https://example.com/2", "snippet": "Second hit"},
        ]


class ScriptedLLM:
    """
    Stands in for LLMClient: returns (or raises) scripted items in order
    and records every request.
    """

    def __init__(self, script: Sequence[Union[Message, Exception]]):
        self.script = list(script)
        self.calls: List[Dict[str, Any]] = []

    async def complete(self, messages: Sequence[Message], tools: Optional[List[Dict[str, Any]]] = None) -> Message:
        self.calls.append({"messages": list(messages), "tools": tools})
        if not self.script:
            raise AssertionError("ScriptedLLM ran out of responses")
        item = self.script.pop(0)
        if isinstance(item, Exception):
            raise item
        return item


def text_reply(content: Optional[str]) -> Message:
    return Message.assistant(content)


def tool_reply(*calls: ToolCall) -> Message:
    return Message.assistant(None, list(calls))


def search_call(query: str, call_id: str = "call_1") -> ToolCall:
    return ToolCall(id=call_id, name="webSearch", arguments={"query": query})


