"""
System prompt templates for zep-agent.

Contains the default preamble that tells the model it has memory tools, and
a builder that appends the session's memory context from Zep.
"""

from __future__ import annotations

# ---------------------------------------------------------------------------
# Default system prompt
# ---------------------------------------------------------------------------

DEFAULT_SYSTEM_PROMPT: str = """\
You are a helpful AI assistant with access to long-term memory via Zep.
Use your tools naturally when you need to check or store information.

Guidelines for using your memory tools:

1. **Store what matters.**  When the user tells you something worth
   remembering (preferences, plans, facts about their life), save it with
   ``graph_add``.
2. **Search before guessing.**  If a question may depend on something from
   an earlier conversation, use ``graph_search`` or ``get_episodes`` first.
3. **Be natural.**  Do not narrate your tool use; answer as if you simply
   remember.
4. **Be helpful first.**  Memory is a means to help with the current
   request, not the focus of the conversation.
"""


# ---------------------------------------------------------------------------
# Prompt builder
# ---------------------------------------------------------------------------

def build_system_prompt(
    memory_context: str,
    custom_prompt: str | None = None,
) -> str:
    """Assemble the system preamble sent with every completion of a turn.

    Args:
        memory_context: Context string returned by Zep for the session.
            Pass an empty string when the session has no history yet.
        custom_prompt: If provided, replaces :data:`DEFAULT_SYSTEM_PROMPT`.

    Returns:
        The fully assembled system prompt string.
    """
    base = custom_prompt if custom_prompt else DEFAULT_SYSTEM_PROMPT

    sections: list[str] = [base.rstrip()]

    if memory_context and memory_context.strip():
        sections.append(
            "Here is relevant context from your memory:\n\n"
            f"{memory_context.strip()}"
        )

    return "\n\n".join(sections)
