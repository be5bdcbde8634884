"""
Core types for the completion backend.

Defines the content blocks a completion returns, the response wrapper, the
abstract backend interface, and the common :class:`LLMError`.
"""

from __future__ import annotations

import abc
from dataclasses import dataclass, field
from typing import Any, Union


class LLMError(Exception):
    """Raised when a completion request fails for any reason."""


# ---------------------------------------------------------------------------
# Content blocks
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class TextBlock:
    """Plain text emitted by the model."""

    text: str

    def to_api(self) -> dict[str, Any]:
        return {"type": "text", "text": self.text}


@dataclass(frozen=True)
class ToolUseBlock:
    """A request from the model to call a tool.

    Attributes:
        id: Correlation token; the matching tool result must echo it.
        name: Tool name from the registry.
        input: Structured arguments chosen by the model.
    """

    id: str
    name: str
    input: dict[str, Any] = field(default_factory=dict)

    def to_api(self) -> dict[str, Any]:
        return {
            "type": "tool_use",
            "id": self.id,
            "name": self.name,
            "input": dict(self.input),
        }


ContentBlock = Union[TextBlock, ToolUseBlock]


@dataclass
class CompletionResponse:
    """A single model response.

    Attributes:
        content: Ordered content blocks exactly as the model emitted them.
        model: Model identifier that produced the response.
        stop_reason: Provider stop reason (``"end_turn"``, ``"tool_use"``...).
        input_tokens: Prompt tokens consumed.
        output_tokens: Completion tokens generated.
    """

    content: list[ContentBlock]
    model: str = ""
    stop_reason: str | None = None
    input_tokens: int = 0
    output_tokens: int = 0

    @property
    def tool_uses(self) -> list[ToolUseBlock]:
        return [b for b in self.content if isinstance(b, ToolUseBlock)]

    @property
    def has_tool_use(self) -> bool:
        return any(isinstance(b, ToolUseBlock) for b in self.content)

    @property
    def text(self) -> str:
        """All text blocks joined, or ``""`` when the model sent none."""
        return "\n\n".join(
            b.text for b in self.content if isinstance(b, TextBlock) and b.text
        )


# ---------------------------------------------------------------------------
# Backend interface
# ---------------------------------------------------------------------------

class CompletionBackend(abc.ABC):
    """Abstract interface every completion backend must implement."""

    @abc.abstractmethod
    def complete(
        self,
        system: str,
        messages: list[dict[str, Any]],
        tools: list[dict[str, Any]],
        max_tokens: int,
        temperature: float,
    ) -> CompletionResponse:
        """Request one completion.

        Args:
            system: System preamble.
            messages: API-ready message list (see
                :meth:`zep_agent.agent.transcript.Transcript.to_api`).
            tools: API-ready tool catalog.
            max_tokens: Output-length budget.
            temperature: Sampling temperature.

        Raises:
            LLMError: On any API, network, or rate-limit error.
        """

    @abc.abstractmethod
    def name(self) -> str:
        """Return a short, human-readable name for this backend."""
