"""
The per-turn message transcript.

A :class:`Transcript` is an append-only list of three entry kinds: the
user's text, the assistant's content blocks, and tool results.  It knows
which tool-use blocks are still unanswered and refuses to serialize itself
for the completion API while any are, or while a result answers a token
that was never requested.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Iterator, Sequence, Union

from zep_agent.llm.base import ContentBlock, ToolUseBlock

logger = logging.getLogger(__name__)


class TranscriptError(Exception):
    """Raised when the transcript would be sent in an inconsistent state."""


# ---------------------------------------------------------------------------
# Entries
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class UserText:
    text: str


@dataclass(frozen=True)
class AssistantContent:
    blocks: tuple[ContentBlock, ...]

    @property
    def tool_uses(self) -> tuple[ToolUseBlock, ...]:
        return tuple(b for b in self.blocks if isinstance(b, ToolUseBlock))


@dataclass(frozen=True)
class ToolResultEntry:
    tool_use_id: str
    content: str
    is_error: bool = False


TranscriptEntry = Union[UserText, AssistantContent, ToolResultEntry]


# ---------------------------------------------------------------------------
# Transcript
# ---------------------------------------------------------------------------

class Transcript:
    """Ordered, append-only conversation state for a single turn."""

    def __init__(self) -> None:
        self._entries: list[TranscriptEntry] = []

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[TranscriptEntry]:
        return iter(self._entries)

    @property
    def entries(self) -> tuple[TranscriptEntry, ...]:
        return tuple(self._entries)

    # ------------------------------------------------------------------
    # Appending
    # ------------------------------------------------------------------

    def add_user_text(self, text: str) -> None:
        self._entries.append(UserText(text))

    def add_assistant_content(self, blocks: Sequence[ContentBlock]) -> None:
        if not blocks:
            raise TranscriptError("assistant content must contain at least one block")
        self._entries.append(AssistantContent(tuple(blocks)))

    def add_tool_result(
        self,
        tool_use_id: str,
        content: str,
        is_error: bool = False,
    ) -> None:
        """Answer an outstanding tool-use block.

        Raises:
            TranscriptError: If *tool_use_id* is not an unanswered tool use.
        """
        if tool_use_id not in self.unanswered_tool_uses():
            raise TranscriptError(
                f"tool result for {tool_use_id!r} does not answer an open tool use"
            )
        self._entries.append(ToolResultEntry(tool_use_id, content, is_error))

    # ------------------------------------------------------------------
    # Invariant
    # ------------------------------------------------------------------

    def unanswered_tool_uses(self) -> list[str]:
        """Correlation tokens of tool uses without a result, in emitted order."""
        open_ids: list[str] = []
        for entry in self._entries:
            if isinstance(entry, AssistantContent):
                open_ids.extend(b.id for b in entry.tool_uses)
            elif isinstance(entry, ToolResultEntry):
                if entry.tool_use_id in open_ids:
                    open_ids.remove(entry.tool_use_id)
        return open_ids

    def is_well_formed(self) -> bool:
        return not self.unanswered_tool_uses()

    # ------------------------------------------------------------------
    # Serialization
    # ------------------------------------------------------------------

    def to_api(self) -> list[dict[str, Any]]:
        """Render the transcript as a Messages API ``messages`` list.

        Consecutive tool results are grouped into a single ``user`` message,
        as the API expects all results for one assistant message together.

        Raises:
            TranscriptError: If any tool use is still unanswered.
        """
        dangling = self.unanswered_tool_uses()
        if dangling:
            raise TranscriptError(
                f"transcript has unanswered tool uses: {', '.join(dangling)}"
            )

        messages: list[dict[str, Any]] = []
        for entry in self._entries:
            if isinstance(entry, UserText):
                messages.append({"role": "user", "content": entry.text})
            elif isinstance(entry, AssistantContent):
                messages.append({
                    "role": "assistant",
                    "content": [b.to_api() for b in entry.blocks],
                })
            else:
                block: dict[str, Any] = {
                    "type": "tool_result",
                    "tool_use_id": entry.tool_use_id,
                    "content": entry.content,
                }
                if entry.is_error:
                    block["is_error"] = True
                previous = messages[-1] if messages else None
                if (
                    previous is not None
                    and previous["role"] == "user"
                    and isinstance(previous["content"], list)
                ):
                    previous["content"].append(block)
                else:
                    messages.append({"role": "user", "content": [block]})
        return messages
