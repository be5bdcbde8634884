"""
Agent package -- conversation loop, transcript, bootstrap and shell.

Exports:
    ConversationLoop: Runs a user turn through the completion/tool cycle.
    SessionBootstrap: Get-or-create for the identity and session.
    Shell: The interactive line reader.
"""

from zep_agent.agent.loop import RECOVERY_MESSAGE, ConversationError, ConversationLoop
from zep_agent.agent.session import BootstrapError, SessionBootstrap, new_session_id
from zep_agent.agent.shell import Shell
from zep_agent.agent.transcript import Transcript, TranscriptError

__all__ = [
    "RECOVERY_MESSAGE",
    "BootstrapError",
    "ConversationError",
    "ConversationLoop",
    "SessionBootstrap",
    "Shell",
    "Transcript",
    "TranscriptError",
    "new_session_id",
]
