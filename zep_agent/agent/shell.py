"""
Interactive shell.

Reads one line at a time and hands it to the conversation loop.  A failed
turn is reported and the shell keeps going; only ``exit``, end of input or
``Ctrl-C`` stop it.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Callable

from zep_agent.utils.display import (
    display_error,
    display_goodbye,
    display_response,
)

if TYPE_CHECKING:
    from zep_agent.agent.loop import ConversationLoop

logger = logging.getLogger(__name__)

EXIT_COMMAND = "exit"


class Shell:
    """Line-oriented REPL around a :class:`ConversationLoop`.

    Args:
        loop: The conversation loop that answers each line.
        read_line: Input function, ``input`` by default.
    """

    def __init__(
        self,
        loop: ConversationLoop,
        read_line: Callable[[str], str] = input,
    ) -> None:
        self.loop = loop
        self._read_line = read_line

    def run(self) -> int:
        """Serve lines until the user leaves.

        Returns:
            The process exit code (always ``0``).
        """
        try:
            while True:
                line = self.get_input()
                if line is None:
                    break
                command = line.strip()
                if not command:
                    continue
                if command.lower() == EXIT_COMMAND:
                    break
                self.handle_line(line)
        except KeyboardInterrupt:
            pass

        display_goodbye(
            turn_count=self.loop.turn_count,
            tool_calls=self.loop.tool_calls,
        )
        return 0

    def get_input(self) -> str | None:
        """Prompt for a line; ``None`` on end of input."""
        try:
            return self._read_line("You: ")
        except EOFError:
            return None

    def handle_line(self, line: str) -> None:
        try:
            answer = self.loop.run_turn(line)
        except Exception as exc:  # noqa: BLE001
            display_error(str(exc))
            logger.exception("Turn failed")
            return
        display_response(answer)
