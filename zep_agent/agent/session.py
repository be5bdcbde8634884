"""
Identity and session bootstrap.

Before the first turn the configured user and this run's session must exist
in Zep.  Each is probed first and only created when the probe reports it
missing (or cannot tell), so calling :meth:`SessionBootstrap.ensure_ready`
again is free of side effects.
"""

from __future__ import annotations

import logging
import time
from typing import TYPE_CHECKING

from zep_agent.memory_service import Identity, MemoryServiceError, Session

if TYPE_CHECKING:
    from zep_agent.memory_service import MemoryService

logger = logging.getLogger(__name__)


class BootstrapError(Exception):
    """Raised when the user or session cannot be created."""


def new_session_id(now: float | None = None) -> str:
    """Return a fresh session ID, unique per process start.

    Args:
        now: Epoch seconds to derive the ID from (defaults to the clock).
    """
    if now is None:
        now = time.time()
    return f"session_{int(now * 1000)}"


class SessionBootstrap:
    """Get-or-create for the fixed identity and this run's session.

    Args:
        memory: The memory service wrapper.
        identity: The user this deployment talks to.
        session_id: Session for this process run.
    """

    def __init__(
        self,
        memory: MemoryService,
        identity: Identity,
        session_id: str,
    ) -> None:
        self.memory = memory
        self.identity = identity
        self.session = Session(session_id=session_id, user_id=identity.user_id)

    def ensure_ready(self) -> Session:
        """Make sure the user and the session exist.

        Returns:
            The ready :class:`Session`.

        Raises:
            BootstrapError: If either record has to be created and creation
                fails.
        """
        self._ensure_user()
        self._ensure_session()
        return self.session

    def _ensure_user(self) -> None:
        user_id = self.identity.user_id
        try:
            found = self.memory.find_user(user_id) is not None
        except MemoryServiceError as exc:
            logger.warning("Could not look up user %s, creating it: %s", user_id, exc)
            found = False

        if found:
            logger.debug("User %s already exists", user_id)
            return

        try:
            self.memory.create_user(self.identity)
        except MemoryServiceError as exc:
            raise BootstrapError(f"Could not create user {user_id!r}: {exc}") from exc

    def _ensure_session(self) -> None:
        session_id = self.session.session_id
        try:
            found = self.memory.find_session(session_id) is not None
        except MemoryServiceError as exc:
            logger.warning(
                "Could not look up session %s, creating it: %s", session_id, exc
            )
            found = False

        if found:
            logger.debug("Session %s already exists", session_id)
            return

        try:
            self.memory.create_session(self.session)
        except MemoryServiceError as exc:
            raise BootstrapError(
                f"Could not create session {session_id!r}: {exc}"
            ) from exc
