"""Tests for the conversation loop."""

import asyncio
import json

import pytest

from jarvis.core.exceptions import LLMError, ToolUseFailedError
from jarvis.llm.prompts import FORCED_ANSWER_INSTRUCTION, ITERATIONS_EXHAUSTED_REPLY
from jarvis.memory.conversation import Message, ToolCall
from jarvis.services.orchestrator import ConversationOrchestrator, TurnState
from jarvis.tools.base import BaseTool
from jarvis.tools.registry import ToolRegistry
from tests.helpers import ScriptedLLM, search_call, text_reply, tool_reply


def _assert_tool_messages_follow_their_request(messages):
    """Every tool message answers a call from the nearest preceding assistant message."""
    for index, message in enumerate(messages):
        if message.role != "tool":
            continue
        cursor = index - 1
        while messages[cursor].role == "tool":
            cursor -= 1
        requester = messages[cursor]
        assert requester.role == "assistant"
        assert message.tool_call_id in {tc.id for tc in requester.tool_calls}


class TestPlainAnswers:
    @pytest.mark.asyncio
    async def test_plain_text_answer_ends_turn_in_one_iteration(self, make_orchestrator, search):
        orchestrator = make_orchestrator([text_reply("4")])

        result = await orchestrator.run_turn("What's 2+2?")

        assert result.reply == "4"
        assert result.state == TurnState.DONE
        assert result.iterations == 1
        assert search.queries == []

    @pytest.mark.asyncio
    async def test_request_offers_tools_with_system_prompt_history_and_user(self, make_orchestrator):
        orchestrator = make_orchestrator([text_reply("Hello again")])
        history = [
            {"role": "user", "content": "Hi"},
            {"role": "assistant", "content": "Good evening."},
        ]

        await orchestrator.run_turn("Remember me?", history)

        [call] = orchestrator.llm.calls
        roles = [m.role for m in call["messages"]]
        assert roles == ["system", "user", "assistant", "user"]
        assert "webSearch" in call["messages"][0].content
        assert call["messages"][-1].content == "Remember me?"
        assert [t["function"]["name"] for t in call["tools"]] == ["webSearch"]

    @pytest.mark.asyncio
    async def test_history_is_not_modified(self, make_orchestrator):
        orchestrator = make_orchestrator([text_reply("ok")])
        history = [{"role": "user", "content": "Hi"}]

        await orchestrator.run_turn("Again", history)

        assert history == [{"role": "user", "content": "Hi"}]

    @pytest.mark.asyncio
    async def test_new_messages_holds_only_this_turns_assistant_output(self, make_orchestrator):
        orchestrator = make_orchestrator([text_reply("fresh")])
        history = [Message.user("Hi"), Message.assistant("old")]

        result = await orchestrator.run_turn("Again", history)

        assert [m.content for m in result.new_messages] == ["fresh"]

    @pytest.mark.asyncio
    async def test_none_content_becomes_empty_reply(self, make_orchestrator):
        orchestrator = make_orchestrator([text_reply(None)])
        assert await orchestrator.reply("Hello?") == ""


class TestToolRounds:
    @pytest.mark.asyncio
    async def test_search_then_answer(self, make_orchestrator, search, cache):
        orchestrator = make_orchestrator([
            tool_reply(search_call("latest iPhone news")),
            text_reply("Apple announced a new iPhone this week."),
        ])

        result = await orchestrator.run_turn("Latest iPhone news")

        assert result.reply == "Apple announced a new iPhone this week."
        assert result.state == TurnState.DONE
        assert result.iterations == 2
        assert result.tools_executed == 1
        assert search.queries == ["latest iPhone news"]
        assert cache.get("latest iphone news") is not None

        second_request = orchestrator.llm.calls[1]["messages"]
        assert second_request[-2].role == "assistant"
        assert second_request[-1].role == "tool"
        assert second_request[-1].tool_call_id == "call_1"
        assert json.loads(second_request[-1].content)[0]["title"] == "Result for latest iPhone news"
        _assert_tool_messages_follow_their_request(result.messages)

    @pytest.mark.asyncio
    async def test_tool_error_is_observed_and_loop_continues(self, make_orchestrator):
        orchestrator = make_orchestrator([
            tool_reply(ToolCall(id="c1", name="webSearch", arguments={})),
            text_reply("I couldn't search, sorry."),
        ])

        result = await orchestrator.run_turn("Search for nothing")

        assert result.state == TurnState.DONE
        observation = orchestrator.llm.calls[1]["messages"][-1]
        assert observation.role == "tool"
        assert "error" in json.loads(observation.content)

    @pytest.mark.asyncio
    async def test_distinct_searches_in_one_turn_are_allowed(self, make_orchestrator, search):
        orchestrator = make_orchestrator([
            tool_reply(search_call("a", "c1")),
            tool_reply(search_call("b", "c2")),
            tool_reply(search_call("c", "c3")),
            text_reply("done"),
        ])

        result = await orchestrator.run_turn("Compare a, b and c")

        assert result.reply == "done"
        assert search.queries == ["a", "b", "c"]

    @pytest.mark.asyncio
    async def test_batch_observations_keep_request_order(self, cache):
        class DelayTool(BaseTool):
            name = "delay"
            description = "Sleep then echo."
            parameters = {"type": "object", "properties": {"ms": {"type": "integer"}}}

            async def invoke(self, args):
                await asyncio.sleep(args["ms"] / 1000)
                return f"slept {args['ms']}"

        registry = ToolRegistry()
        registry.register(DelayTool())
        llm = ScriptedLLM([
            tool_reply(
                ToolCall(id="slow", name="delay", arguments={"ms": 50}),
                ToolCall(id="fast", name="delay", arguments={"ms": 1}),
            ),
            text_reply("both done"),
        ])
        orchestrator = ConversationOrchestrator(llm, registry)

        result = await orchestrator.run_turn("Run both")

        tool_messages = [m for m in result.messages if m.role == "tool"]
        assert [m.tool_call_id for m in tool_messages] == ["slow", "fast"]
        assert [m.content for m in tool_messages] == ["slept 50", "slept 1"]
        _assert_tool_messages_follow_their_request(result.messages)


class TestLoopGuard:
    @pytest.mark.asyncio
    async def test_repeated_search_forces_answer_without_searching_again(self, make_orchestrator, search):
        orchestrator = make_orchestrator([
            tool_reply(search_call("X", "c1")),
            tool_reply(search_call("X", "c2")),
            text_reply("Based on what I found, X is fine."),
        ])

        result = await orchestrator.run_turn("Tell me about X")

        assert result.state == TurnState.FORCED_ANSWER
        assert result.reply == "Based on what I found, X is fine."
        assert search.queries == ["X"]

        forced_request = orchestrator.llm.calls[-1]
        assert forced_request["tools"] is None
        assert forced_request["messages"][-1].role == "user"
        assert forced_request["messages"][-1].content == FORCED_ANSWER_INSTRUCTION
        _assert_tool_messages_follow_their_request(forced_request["messages"])

    @pytest.mark.asyncio
    async def test_repeat_anywhere_in_batch_abandons_whole_batch(self, make_orchestrator, search):
        orchestrator = make_orchestrator([
            tool_reply(search_call("X", "c1")),
            tool_reply(search_call("Y", "c2"), search_call("X", "c3")),
            text_reply("answer"),
        ])

        result = await orchestrator.run_turn("X and Y")

        assert result.state == TurnState.FORCED_ANSWER
        assert search.queries == ["X"]

    @pytest.mark.asyncio
    async def test_empty_forced_answer_is_returned(self, make_orchestrator):
        orchestrator = make_orchestrator([
            tool_reply(search_call("X", "c1")),
            tool_reply(search_call("X", "c2")),
            text_reply(""),
        ])

        result = await orchestrator.run_turn("X?")

        assert result.state == TurnState.FORCED_ANSWER
        assert result.reply == ""

    @pytest.mark.asyncio
    async def test_signatures_do_not_carry_over_between_turns(self, make_orchestrator, search, cache):
        orchestrator = make_orchestrator([
            tool_reply(search_call("X", "c1")),
            text_reply("first"),
            tool_reply(search_call("X", "c2")),
            text_reply("second"),
        ])

        first = await orchestrator.run_turn("X?")
        second = await orchestrator.run_turn("X again?")

        assert first.state == TurnState.DONE
        assert second.state == TurnState.DONE
        assert second.tools_executed == 1
        # The second search is served from the cache
        assert search.queries == ["X"]
        assert cache.stats()["hits"] == 1

    @pytest.mark.asyncio
    async def test_concurrent_turns_have_independent_guards(self, registry):
        def script():
            return [tool_reply(search_call("X", "c1")), text_reply("ok")]

        first = ConversationOrchestrator(ScriptedLLM(script()), registry)
        second = ConversationOrchestrator(ScriptedLLM(script()), registry)

        results = await asyncio.gather(first.run_turn("X?"), second.run_turn("X?"))

        assert [r.state for r in results] == [TurnState.DONE, TurnState.DONE]


class TestIterationBudget:
    @pytest.mark.asyncio
    async def test_exhausted_budget_returns_apology(self, make_orchestrator, search):
        orchestrator = make_orchestrator(
            [tool_reply(search_call(f"q{i}", f"c{i}")) for i in range(5)]
        )

        result = await orchestrator.run_turn("Keep searching")

        assert result.reply == ITERATIONS_EXHAUSTED_REPLY
        assert result.state == TurnState.FAILED
        assert result.iterations == 5
        assert len(orchestrator.llm.calls) == 5
        assert len(search.queries) == 5

    @pytest.mark.asyncio
    async def test_custom_iteration_cap(self, make_orchestrator):
        orchestrator = make_orchestrator(
            [tool_reply(search_call("a", "c1")), tool_reply(search_call("b", "c2"))],
            max_iterations=2,
        )

        assert await orchestrator.reply("go") == ITERATIONS_EXHAUSTED_REPLY

    def test_iteration_cap_must_be_positive(self, registry):
        with pytest.raises(ValueError):
            ConversationOrchestrator(ScriptedLLM([]), registry, max_iterations=0)


class TestModelErrors:
    @pytest.mark.asyncio
    async def test_tool_use_failure_retries_once_without_tools(self, make_orchestrator):
        orchestrator = make_orchestrator([
            ToolUseFailedError("Failed to call a function"),
            text_reply("Here is my answer without searching."),
        ])

        result = await orchestrator.run_turn("Latest news")

        assert result.reply == "Here is my answer without searching."
        assert result.state == TurnState.DONE
        first, retry = orchestrator.llm.calls
        assert first["tools"] is not None
        assert retry["tools"] is None
        assert retry["messages"] == first["messages"]

    @pytest.mark.asyncio
    async def test_retry_response_is_final_even_with_tool_calls(self, make_orchestrator, search):
        orchestrator = make_orchestrator([
            ToolUseFailedError("tool_use_failed"),
            Message.assistant("partial", [search_call("X")]),
        ])

        result = await orchestrator.run_turn("X?")

        assert result.reply == "partial"
        assert search.queries == []
        assert result.messages[-1].tool_calls == []
        assert all(m.role != "tool" for m in result.messages)

    @pytest.mark.asyncio
    async def test_failed_retry_propagates(self, make_orchestrator):
        orchestrator = make_orchestrator([
            ToolUseFailedError("tool_use_failed"),
            LLMError("still broken"),
        ])

        with pytest.raises(LLMError, match="still broken"):
            await orchestrator.run_turn("X?")

    @pytest.mark.asyncio
    async def test_other_model_errors_propagate_without_retry(self, make_orchestrator):
        orchestrator = make_orchestrator([LLMError("invalid api key")])

        with pytest.raises(LLMError, match="invalid api key"):
            await orchestrator.run_turn("Hi")

        assert len(orchestrator.llm.calls) == 1
