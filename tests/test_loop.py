"""Tests for the tool-calling conversation loop (zep_agent.agent.loop).

The completion service is replaced by a :class:`ScriptedLLM`; the tool
executor is either real (over a mocked memory service) or a MagicMock when
a test needs to count or fail executions.
"""

from __future__ import annotations

import logging
from unittest.mock import MagicMock

import pytest

from zep_agent.agent.loop import RECOVERY_MESSAGE, ConversationError, ConversationLoop
from zep_agent.llm.base import CompletionResponse, LLMError, TextBlock
from zep_agent.memory_service import MemoryServiceError
from zep_agent.tools.executor import ToolExecutor, ToolResult
from zep_agent.tools.registry import TOOL_DEFINITIONS

from conftest import ScriptedLLM, text_response, tool_response, tool_use


def _make_loop(llm, memory, config, session, executor=None):
    if executor is None:
        executor = ToolExecutor(memory, user_id=session.user_id)
    return ConversationLoop(
        llm=llm,
        memory=memory,
        executor=executor,
        session=session,
        config=config,
    )


def _tool_result_ids(message: dict) -> list[str]:
    if message["role"] != "user" or not isinstance(message["content"], list):
        return []
    return [b["tool_use_id"] for b in message["content"] if b["type"] == "tool_result"]


# ---------------------------------------------------------------------------
# Termination
# ---------------------------------------------------------------------------


class TestTextOnlyResponse:
    def test_returns_text_without_tools(self, mock_memory, default_config, session):
        llm = ScriptedLLM([text_response("Hello John!")])
        executor = MagicMock()
        loop = _make_loop(llm, mock_memory, default_config, session, executor)

        answer = loop.run_turn("Hi there")

        assert answer == "Hello John!"
        assert executor.execute.call_count == 0
        assert len(llm.requests) == 1

    def test_request_shape(self, mock_memory, default_config, session):
        llm = ScriptedLLM([text_response("ok")])
        loop = _make_loop(llm, mock_memory, default_config, session)

        loop.run_turn("Hi there")

        request = llm.requests[0]
        assert request["temperature"] == 0.0
        assert request["max_tokens"] == 1024
        assert request["messages"] == [{"role": "user", "content": "Hi there"}]
        assert [t["name"] for t in request["tools"]] == [t.name for t in TOOL_DEFINITIONS]
        assert "John likes hiking." in request["system"]
        mock_memory.get_context.assert_called_once_with(session.session_id)

    def test_empty_response_gives_empty_answer(
        self, mock_memory, default_config, session
    ):
        llm = ScriptedLLM([CompletionResponse(content=[])])
        loop = _make_loop(llm, mock_memory, default_config, session)

        assert loop.run_turn("Hi") == ""


# ---------------------------------------------------------------------------
# Tool rounds
# ---------------------------------------------------------------------------


class TestSingleToolRound:
    def test_one_tool_then_text(self, mock_memory, default_config, session):
        llm = ScriptedLLM([
            tool_response(tool_use("tu_1", "graph_search", query="hobbies")),
            text_response("You like hiking."),
        ])
        executor = MagicMock()
        executor.execute.return_value = ToolResult("tu_1", {"edges": []})
        loop = _make_loop(llm, mock_memory, default_config, session, executor)

        answer = loop.run_turn("What do I like?")

        assert answer == "You like hiking."
        assert executor.execute.call_count == 1
        invocation = executor.execute.call_args[0][0]
        assert invocation.id == "tu_1"
        assert invocation.name == "graph_search"
        assert invocation.arguments == {"query": "hobbies"}

    def test_second_request_carries_assistant_content_and_result(
        self, mock_memory, default_config, session
    ):
        llm = ScriptedLLM([
            tool_response(
                TextBlock("Let me check."),
                tool_use("tu_1", "graph_search", query="hobbies"),
            ),
            text_response("You like hiking."),
        ])
        loop = _make_loop(llm, mock_memory, default_config, session)

        loop.run_turn("What do I like?")

        messages = llm.requests[1]["messages"]
        assert [m["role"] for m in messages] == ["user", "assistant", "user"]
        assert messages[1]["content"] == [
            {"type": "text", "text": "Let me check."},
            {
                "type": "tool_use",
                "id": "tu_1",
                "name": "graph_search",
                "input": {"query": "hobbies"},
            },
        ]
        result_block = messages[2]["content"][0]
        assert result_block["tool_use_id"] == "tu_1"
        assert "John likes hiking" in result_block["content"]
        mock_memory.graph_search.assert_called_once_with("john.doe", "hobbies")

    def test_interleaved_text_kept_when_final_response_is_empty(
        self, mock_memory, default_config, session
    ):
        llm = ScriptedLLM([
            tool_response(
                TextBlock("Saving that for later."),
                tool_use("tu_1", "graph_add", data="John likes tea", type="text"),
            ),
            CompletionResponse(content=[]),
        ])
        loop = _make_loop(llm, mock_memory, default_config, session)

        assert loop.run_turn("I like tea") == "Saving that for later."


class TestTranscriptWellFormed:
    def test_every_tool_use_answered_before_next_request(
        self, mock_memory, default_config, session
    ):
        llm = ScriptedLLM([
            tool_response(
                tool_use("tu_1", "graph_search", query="tea"),
                tool_use("tu_2", "get_user_nodes"),
            ),
            tool_response(tool_use("tu_3", "get_episodes", lastN=3)),
            text_response("Done."),
        ])
        loop = _make_loop(llm, mock_memory, default_config, session)

        assert loop.run_turn("Tell me everything") == "Done."
        assert len(llm.requests) == 3

        for request in llm.requests[1:]:
            requested: list[str] = []
            answered: list[str] = []
            for message in request["messages"]:
                if message["role"] == "assistant":
                    requested.extend(
                        b["id"] for b in message["content"] if b["type"] == "tool_use"
                    )
                answered.extend(_tool_result_ids(message))
            assert sorted(requested) == sorted(answered)
            assert len(answered) == len(set(answered))

        # Results for one assistant message share a single user message.
        assert _tool_result_ids(llm.requests[1]["messages"][2]) == ["tu_1", "tu_2"]
        mock_memory.get_episodes.assert_called_once_with("john.doe", last_n=3)


# ---------------------------------------------------------------------------
# Failures
# ---------------------------------------------------------------------------


class TestPartialFailure:
    def test_first_tool_failure_short_circuits(
        self, mock_memory, default_config, session
    ):
        llm = ScriptedLLM([
            tool_response(
                tool_use("tu_1", "get_node", uuid="missing"),
                tool_use("tu_2", "get_edge", uuid="other"),
            ),
            text_response("never requested"),
        ])
        executor = MagicMock()
        executor.execute.side_effect = MemoryServiceError(
            "graph.node.get", "not found", status_code=404
        )
        loop = _make_loop(llm, mock_memory, default_config, session, executor)

        answer = loop.run_turn("Who is that?")

        assert answer == RECOVERY_MESSAGE
        assert executor.execute.call_count == 1
        assert len(llm.requests) == 1
        mock_memory.add_messages.assert_not_called()

    def test_unknown_tool_recovers(self, mock_memory, default_config, session):
        llm = ScriptedLLM([tool_response(tool_use("tu_1", "delete_everything"))])
        loop = _make_loop(llm, mock_memory, default_config, session)

        assert loop.run_turn("Forget me") == RECOVERY_MESSAGE

    def test_tool_failure_logged_once_at_error(
        self, mock_memory, default_config, session, caplog
    ):
        caplog.set_level(logging.INFO, logger="zep_agent")
        llm = ScriptedLLM([tool_response(tool_use("tu_1", "delete_everything"))])
        loop = _make_loop(llm, mock_memory, default_config, session)

        loop.run_turn("Forget me")

        errors = [r for r in caplog.records if r.levelno >= logging.ERROR]
        assert len(errors) == 1
        assert errors[0].name == "zep_agent.tools.executor"

    def test_unexpected_executor_error_recovers(
        self, mock_memory, default_config, session
    ):
        llm = ScriptedLLM([
            tool_response(tool_use("tu_1", "graph_search", query="x")),
            text_response("never requested"),
        ])
        executor = MagicMock()
        executor.execute.side_effect = RuntimeError("bug")
        loop = _make_loop(llm, mock_memory, default_config, session, executor)

        assert loop.run_turn("hi") == RECOVERY_MESSAGE
        assert len(llm.requests) == 1
        mock_memory.add_messages.assert_not_called()

    @pytest.mark.parametrize("last_n", [float("inf"), float("nan")])
    def test_non_finite_episode_limit_recovers(
        self, mock_memory, default_config, session, last_n
    ):
        llm = ScriptedLLM([
            tool_response(tool_use("tu_1", "get_episodes", lastN=last_n)),
            text_response("never requested"),
        ])
        loop = _make_loop(llm, mock_memory, default_config, session)

        assert loop.run_turn("What did we talk about?") == RECOVERY_MESSAGE
        assert len(llm.requests) == 1
        mock_memory.get_episodes.assert_not_called()

    def test_unrenderable_result_recovers(self, mock_memory, default_config, session):
        circular: dict = {}
        circular["self"] = circular
        mock_memory.get_user_nodes.return_value = circular
        llm = ScriptedLLM([
            tool_response(tool_use("tu_1", "get_user_nodes")),
            text_response("never requested"),
        ])
        loop = _make_loop(llm, mock_memory, default_config, session)

        assert loop.run_turn("Who do I know?") == RECOVERY_MESSAGE
        assert len(llm.requests) == 1

    def test_completion_error_propagates(self, mock_memory, default_config, session):
        llm = MagicMock()
        llm.complete.side_effect = LLMError("rate limited")
        loop = _make_loop(llm, mock_memory, default_config, session)

        with pytest.raises(LLMError):
            loop.run_turn("hi")
        mock_memory.add_messages.assert_not_called()

    def test_round_limit(self, mock_memory, default_config, session):
        default_config.agent.max_tool_rounds = 2
        llm = ScriptedLLM([
            tool_response(tool_use(f"tu_{i}", "get_user_edges")) for i in range(3)
        ])
        loop = _make_loop(llm, mock_memory, default_config, session)

        with pytest.raises(ConversationError):
            loop.run_turn("loop forever")


class TestContextFailure:
    def test_missing_context_does_not_fail_turn(
        self, mock_memory, default_config, session
    ):
        mock_memory.get_context.side_effect = MemoryServiceError("memory.get", "down")
        llm = ScriptedLLM([text_response("Hi")])
        loop = _make_loop(llm, mock_memory, default_config, session)

        assert loop.run_turn("Hello") == "Hi"
        assert "Here is relevant context" not in llm.requests[0]["system"]


# ---------------------------------------------------------------------------
# Persistence
# ---------------------------------------------------------------------------


class TestPersistence:
    def test_clean_turn_persists_exchange(self, mock_memory, default_config, session):
        llm = ScriptedLLM([
            tool_response(tool_use("tu_1", "graph_search", query="hobbies")),
            text_response("You like hiking."),
        ])
        loop = _make_loop(llm, mock_memory, default_config, session)

        loop.run_turn("What do I like?")

        assert mock_memory.add_messages.call_count == 1
        args, kwargs = mock_memory.add_messages.call_args
        assert args[0] == session.session_id
        messages = args[1]
        assert [m["role_type"] for m in messages] == ["user", "assistant"]
        assert [m["content"] for m in messages] == ["What do I like?", "You like hiking."]
        assert kwargs["return_context"] is True
        assert loop.last_context == "updated context"

    def test_persist_failure_keeps_answer(self, mock_memory, default_config, session):
        mock_memory.add_messages.side_effect = MemoryServiceError("memory.add", "boom")
        llm = ScriptedLLM([text_response("Still here")])
        loop = _make_loop(llm, mock_memory, default_config, session)

        assert loop.run_turn("Hello") == "Still here"

    def test_turn_counters(self, mock_memory, default_config, session):
        llm = ScriptedLLM([
            text_response("one"),
            tool_response(tool_use("tu_1", "get_user_edges")),
            text_response("two"),
        ])
        loop = _make_loop(llm, mock_memory, default_config, session)

        loop.run_turn("first")
        loop.run_turn("second")

        assert loop.turn_count == 2
        assert loop.tool_calls == 1

