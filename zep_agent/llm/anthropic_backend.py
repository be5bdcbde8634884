"""
Anthropic (Claude) completion backend.

Uses the ``anthropic`` Python SDK to call the Messages API with a tool
catalog, and converts the returned content blocks into
:class:`~.base.TextBlock` / :class:`~.base.ToolUseBlock`.
"""

from __future__ import annotations

import logging
from typing import Any

from .base import (
    CompletionBackend,
    CompletionResponse,
    ContentBlock,
    LLMError,
    TextBlock,
    ToolUseBlock,
)

logger = logging.getLogger(__name__)


class AnthropicBackend(CompletionBackend):
    """Completion backend powered by the Anthropic Messages API.

    Args:
        api_key: Anthropic API key.  Must not be empty.
        model: Model identifier to use for completions.
        client: Pre-built ``anthropic.Anthropic`` client (mainly for tests).

    Raises:
        LLMError: If *api_key* is missing or the ``anthropic`` package is
            not installed.
    """

    def __init__(
        self,
        api_key: str | None,
        model: str = "claude-sonnet-4-20250514",
        client: Any = None,
    ) -> None:
        self.model = model

        if client is not None:
            self._client = client
            return

        if not api_key:
            raise LLMError(
                "Anthropic API key is required. "
                "Set the ANTHROPIC_API_KEY environment variable or pass it explicitly."
            )

        try:
            import anthropic
        except ImportError as exc:
            raise LLMError(
                "The 'anthropic' package is required for AnthropicBackend. "
                "Install it with: pip install anthropic"
            ) from exc

        self._client = anthropic.Anthropic(api_key=api_key)
        logger.info("AnthropicBackend initialised with model=%s", self.model)

    # ------------------------------------------------------------------
    # complete
    # ------------------------------------------------------------------

    def complete(
        self,
        system: str,
        messages: list[dict[str, Any]],
        tools: list[dict[str, Any]],
        max_tokens: int,
        temperature: float,
    ) -> CompletionResponse:
        """Send one Messages API request and convert the result.

        Raises:
            LLMError: On any API, network, or rate-limit error.
        """
        kwargs: dict[str, Any] = dict(
            model=self.model,
            max_tokens=max_tokens,
            temperature=temperature,
            messages=messages,
        )
        if system:
            kwargs["system"] = system
        if tools:
            kwargs["tools"] = tools

        logger.debug("Sending %d message(s) to %s", len(messages), self.model)
        try:
            response = self._client.messages.create(**kwargs)
        except Exception as exc:
            raise LLMError(f"Anthropic completion request failed: {exc}") from exc

        content = [
            block
            for block in (self._convert_block(raw) for raw in response.content or [])
            if block is not None
        ]
        usage = getattr(response, "usage", None)
        result = CompletionResponse(
            content=content,
            model=getattr(response, "model", self.model),
            stop_reason=getattr(response, "stop_reason", None),
            input_tokens=getattr(usage, "input_tokens", 0) or 0,
            output_tokens=getattr(usage, "output_tokens", 0) or 0,
        )
        logger.debug(
            "Received %d block(s), stop_reason=%s, tool_uses=%d",
            len(result.content),
            result.stop_reason,
            len(result.tool_uses),
        )
        return result

    # ------------------------------------------------------------------
    # name
    # ------------------------------------------------------------------

    def name(self) -> str:
        """Return a human-readable backend identifier."""
        return f"Anthropic ({self.model})"

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _convert_block(raw: Any) -> ContentBlock | None:
        """Map an SDK content block to a local block type.

        Block types other than ``text`` and ``tool_use`` (e.g. ``thinking``)
        are dropped.
        """
        block_type = getattr(raw, "type", None)
        if block_type == "text":
            return TextBlock(text=raw.text)
        if block_type == "tool_use":
            return ToolUseBlock(id=raw.id, name=raw.name, input=dict(raw.input or {}))
        logger.debug("Ignoring content block of type %r", block_type)
        return None
