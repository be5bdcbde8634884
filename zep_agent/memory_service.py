"""Python wrapper around the Zep Cloud memory service.

This is the **only** module that communicates with Zep.  Every public method
maps to a single SDK call.  SDK and transport failures are re-raised as
:class:`MemoryServiceError`; the ``find_*`` probes report a missing record
as ``None`` instead of an exception.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable

logger = logging.getLogger(__name__)

_NOT_FOUND = 404


# ---------------------------------------------------------------------------
# Data classes
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Identity:
    """A Zep user as this agent knows it."""

    user_id: str
    email: str | None = None
    first_name: str | None = None
    last_name: str | None = None


@dataclass(frozen=True)
class Session:
    """The Zep session a process run writes its conversation into."""

    session_id: str
    user_id: str


# ---------------------------------------------------------------------------
# Exception
# ---------------------------------------------------------------------------

class MemoryServiceError(Exception):
    """Raised when a Zep call fails.

    Attributes:
        operation: Short name of the failed operation (``"graph.search"``...).
        status_code: HTTP status reported by the SDK, if any.
    """

    def __init__(
        self,
        operation: str,
        message: str,
        status_code: int | None = None,
    ) -> None:
        self.operation = operation
        self.status_code = status_code
        status = f" (HTTP {status_code})" if status_code is not None else ""
        super().__init__(f"Zep {operation} failed{status}: {message}")


# ---------------------------------------------------------------------------
# MemoryService class
# ---------------------------------------------------------------------------

class MemoryService:
    """Interface to Zep Cloud users, sessions, memory and the knowledge graph.

    Args:
        api_key: Zep project API key.
        client: Pre-built ``zep_cloud.client.Zep`` instance.  When given,
            *api_key* is ignored.

    Raises:
        MemoryServiceError: If no client can be built (missing key or
            missing ``zep-cloud`` package).
    """

    def __init__(self, api_key: str | None = None, client: Any = None) -> None:
        if client is not None:
            self._client = client
            return

        if not api_key:
            raise MemoryServiceError(
                "init",
                "Zep API key is required. Set the ZEP_API_KEY environment "
                "variable or add zep_api_key to the config file.",
            )

        try:
            from zep_cloud.client import Zep
        except ImportError as exc:
            raise MemoryServiceError(
                "init",
                "The 'zep-cloud' package is required. "
                "Install it with: pip install zep-cloud",
            ) from exc

        self._client = Zep(api_key=api_key)
        logger.info("Zep client initialised")

    # ------------------------------------------------------------------
    # Users
    # ------------------------------------------------------------------

    def find_user(self, user_id: str) -> Any | None:
        """Return the Zep user, or ``None`` if it does not exist."""
        return self._probe("user.get", lambda: self._client.user.get(user_id))

    def create_user(self, identity: Identity) -> Any:
        """Create the user described by *identity*."""
        logger.info("Creating Zep user %s", identity.user_id)
        return self._call(
            "user.add",
            lambda: self._client.user.add(
                user_id=identity.user_id,
                email=identity.email,
                first_name=identity.first_name,
                last_name=identity.last_name,
            ),
        )

    # ------------------------------------------------------------------
    # Sessions and conversation memory
    # ------------------------------------------------------------------

    def find_session(self, session_id: str) -> Any | None:
        """Return the Zep session, or ``None`` if it does not exist."""
        return self._probe(
            "memory.get_session",
            lambda: self._client.memory.get_session(session_id),
        )

    def create_session(self, session: Session) -> Any:
        """Create *session*, bound to its user."""
        logger.info(
            "Creating Zep session %s for user %s", session.session_id, session.user_id
        )
        return self._call(
            "memory.add_session",
            lambda: self._client.memory.add_session(
                session_id=session.session_id,
                user_id=session.user_id,
            ),
        )

    def get_context(self, session_id: str) -> str:
        """Return the session's memory context string (``""`` when empty)."""
        memory = self._call("memory.get", lambda: self._client.memory.get(session_id))
        return getattr(memory, "context", None) or ""

    def add_messages(
        self,
        session_id: str,
        messages: list[dict[str, str]],
        return_context: bool = True,
    ) -> str | None:
        """Append chat messages to the session.

        Args:
            session_id: Target session.
            messages: Dicts with ``role_type`` (``"user"`` / ``"assistant"``),
                ``role`` and ``content``, in conversation order.
            return_context: Ask Zep to return the refreshed context string.

        Returns:
            The updated context string when requested and available.
        """
        from zep_cloud.types import Message

        payload = [
            Message(
                role_type=m["role_type"],
                role=m.get("role"),
                content=m["content"],
            )
            for m in messages
        ]
        response = self._call(
            "memory.add",
            lambda: self._client.memory.add(
                session_id,
                messages=payload,
                return_context=return_context,
            ),
        )
        return getattr(response, "context", None)

    # ------------------------------------------------------------------
    # Knowledge graph
    # ------------------------------------------------------------------

    def graph_add(self, user_id: str, data_type: str, data: str) -> Any:
        """Add a text, message or JSON episode to the user's graph."""
        return self._call(
            "graph.add",
            lambda: self._client.graph.add(user_id=user_id, type=data_type, data=data),
        )

    def graph_search(self, user_id: str, query: str) -> Any:
        """Semantic search over the user's graph."""
        return self._call(
            "graph.search",
            lambda: self._client.graph.search(user_id=user_id, query=query),
        )

    def get_edge(self, uuid: str) -> Any:
        """Fetch one relationship (edge) by UUID."""
        return self._call("graph.edge.get", lambda: self._client.graph.edge.get(uuid))

    def get_node(self, uuid: str) -> Any:
        """Fetch one entity (node) by UUID."""
        return self._call("graph.node.get", lambda: self._client.graph.node.get(uuid))

    def get_user_edges(self, user_id: str) -> Any:
        return self._call(
            "graph.edge.get_by_user_id",
            lambda: self._client.graph.edge.get_by_user_id(user_id),
        )

    def get_user_nodes(self, user_id: str) -> Any:
        return self._call(
            "graph.node.get_by_user_id",
            lambda: self._client.graph.node.get_by_user_id(user_id),
        )

    def get_episodes(self, user_id: str, last_n: int | None = None) -> Any:
        """List the user's episodes, optionally only the *last_n* most recent."""
        kwargs: dict[str, Any] = {} if last_n is None else {"lastn": last_n}
        return self._call(
            "graph.episode.get_by_user_id",
            lambda: self._client.graph.episode.get_by_user_id(user_id, **kwargs),
        )

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _call(self, operation: str, fn: Callable[[], Any]) -> Any:
        """Run one SDK call, converting any failure to MemoryServiceError."""
        logger.debug("Zep call: %s", operation)
        try:
            return fn()
        except Exception as exc:
            raise MemoryServiceError(
                operation, str(exc), status_code=_status_code(exc)
            ) from exc

    def _probe(self, operation: str, fn: Callable[[], Any]) -> Any | None:
        """Like :meth:`_call`, but a 404 yields ``None``."""
        try:
            return self._call(operation, fn)
        except MemoryServiceError as exc:
            if exc.status_code == _NOT_FOUND:
                logger.debug("Zep %s: not found", operation)
                return None
            raise


def _status_code(exc: BaseException) -> int | None:
    """Pull the HTTP status off an SDK ``ApiError`` (or anything like it)."""
    status = getattr(exc, "status_code", None)
    return status if isinstance(status, int) else None
