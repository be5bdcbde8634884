"""
Completion backend package for **zep-agent**.

Public API
----------
- :func:`create_backend` -- factory that builds the backend from a config.
- :class:`~.base.CompletionBackend` -- abstract base class.
- :class:`~.base.CompletionResponse` -- model response dataclass.
- :class:`~.base.TextBlock`, :class:`~.base.ToolUseBlock` -- content blocks.
- :class:`~.base.LLMError` -- common exception type.
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

__all__ = [
    "create_backend",
    "CompletionBackend",
    "CompletionResponse",
    "ContentBlock",
    "LLMError",
    "TextBlock",
    "ToolUseBlock",
]


def create_backend(config: Any) -> CompletionBackend:
    """Instantiate the completion backend described by *config*.

    Args:
        config: A :class:`~zep_agent.config.Config` (or any object exposing
            ``anthropic_api_key`` and ``model``).

    Raises:
        LLMError: If the backend cannot be initialised (missing key,
            missing package).
    """
    from .anthropic_backend import AnthropicBackend

    api_key = getattr(config, "anthropic_api_key", None)
    model = getattr(config, "model", None)
    logger.info("Creating AnthropicBackend for model=%s", model)
    if model:
        return AnthropicBackend(api_key=api_key, model=model)
    return AnthropicBackend(api_key=api_key)
