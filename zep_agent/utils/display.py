"""Terminal display functions for zep-agent.

All user-facing output goes through this module, rendered with ``rich``.
Log output goes to stderr separately (see :mod:`zep_agent.utils.logger`).
"""

from __future__ import annotations

import json
import logging
from typing import Any

from rich.console import Console
from rich.markdown import Markdown
from rich.markup import escape
from rich.panel import Panel
from rich.theme import Theme

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Console singleton
# ---------------------------------------------------------------------------

_THEME = Theme({
    "info": "dim cyan",
    "error": "bold red",
    "tool": "dim yellow",
    "heading": "bold cyan",
    "muted": "dim",
})

console = Console(theme=_THEME)


# ---------------------------------------------------------------------------
# Welcome / Goodbye
# ---------------------------------------------------------------------------

def display_welcome(user_name: str, session_id: str, backend_name: str) -> None:
    """Show the welcome banner.

    Args:
        user_name: Display name of the configured identity.
        session_id: The Zep session for this run.
        backend_name: Human-readable name of the completion backend.
    """
    body = "\n".join([
        f"User: {user_name}",
        f"Session: {session_id} | Backend: {backend_name}",
        "Claude initialized with memory capabilities. Type 'exit' to quit.",
    ])
    panel = Panel(
        body,
        title="[bold]Zep Memory Agent[/bold]",
        border_style="cyan",
        padding=(1, 2),
    )
    console.print()
    console.print(panel)
    console.print()


def display_goodbye(turn_count: int, tool_calls: int) -> None:
    """Show the session summary on exit."""
    panel = Panel(
        f"Turns: {turn_count}\nTool calls: {tool_calls}",
        title="[bold]Session Complete[/bold]",
        border_style="green",
        padding=(0, 2),
    )
    console.print()
    console.print(panel)
    console.print()


# ---------------------------------------------------------------------------
# Conversation
# ---------------------------------------------------------------------------

def display_response(content: str) -> None:
    """Render the assistant's answer as markdown."""
    console.print()
    console.print("[heading]Claude:[/heading]")
    console.print(Markdown(content or "_(no response)_"), width=min(console.width, 100))
    console.print()


def display_tool_call(name: str, arguments: dict[str, Any]) -> None:
    """Print a one-line notice for a tool the model is calling."""
    try:
        args = json.dumps(arguments, ensure_ascii=False)
    except (TypeError, ValueError):
        args = repr(arguments)
    if len(args) > 80:
        args = args[:77] + "..."
    console.print(f"[tool]  -> {escape(name)} {escape(args)}[/tool]", highlight=False)


# ---------------------------------------------------------------------------
# Errors
# ---------------------------------------------------------------------------

def display_error(message: str) -> None:
    """Display an error message."""
    console.print(f"[error]Error:[/error] {escape(message)}", highlight=False)
