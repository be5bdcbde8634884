"""Shared pytest fixtures for zep-agent tests."""

from __future__ import annotations

import copy
from typing import Any
from unittest.mock import MagicMock

import pytest

from zep_agent.config import AgentConfig, Config, DisplayConfig, IdentityConfig
from zep_agent.llm.base import CompletionResponse, TextBlock, ToolUseBlock
from zep_agent.memory_service import MemoryService, Session


# ---------------------------------------------------------------------------
# Scripted completion backend
# ---------------------------------------------------------------------------

class ScriptedLLM:
    """Completion backend that replays a fixed list of responses.

    Every request is recorded (with a deep copy of its messages) so tests
    can inspect exactly what was sent on each round.
    """

    def __init__(self, responses: list[CompletionResponse]):
        self._responses = list(responses)
        self.requests: list[dict[str, Any]] = []

    def complete(self, system, messages, tools, max_tokens, temperature):
        self.requests.append({
            "system": system,
            "messages": copy.deepcopy(messages),
            "tools": tools,
            "max_tokens": max_tokens,
            "temperature": temperature,
        })
        if not self._responses:
            raise AssertionError("ScriptedLLM ran out of responses")
        return self._responses.pop(0)

    def name(self) -> str:
        return "ScriptedLLM (test)"


def text_response(text: str) -> CompletionResponse:
    return CompletionResponse(content=[TextBlock(text)], stop_reason="end_turn")


def tool_response(*blocks) -> CompletionResponse:
    return CompletionResponse(content=list(blocks), stop_reason="tool_use")


def tool_use(block_id: str, name: str, **arguments) -> ToolUseBlock:
    return ToolUseBlock(id=block_id, name=name, input=arguments)


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def default_config():
    """Return a default Config for testing."""
    return Config(
        model="mock-model",
        anthropic_api_key="test-anthropic-key",
        zep_api_key="test-zep-key",
        identity=IdentityConfig(),
        agent=AgentConfig(max_tool_rounds=5),
        display=DisplayConfig(show_tool_calls=False),
    )


@pytest.fixture
def session():
    return Session(session_id="session_1700000000000", user_id="john.doe")


@pytest.fixture
def mock_memory():
    """A MemoryService double that succeeds with canned values."""
    memory = MagicMock(spec=MemoryService)
    memory.get_context.return_value = "John likes hiking."
    memory.add_messages.return_value = "updated context"
    memory.graph_search.return_value = {"edges": [{"fact": "John likes hiking"}]}
    memory.graph_add.return_value = {"uuid": "episode-1"}
    memory.get_user_edges.return_value = []
    memory.get_user_nodes.return_value = []
    memory.get_episodes.return_value = {"episodes": []}
    return memory
