"""
Tool execution against the memory service.

A :class:`ToolInvocation` is first parsed into one of seven typed call
variants (unknown names and malformed arguments are rejected before any
network traffic), then dispatched to :class:`~zep_agent.memory_service.MemoryService`.
Results are returned unchanged; memory-service failures propagate.
"""

from __future__ import annotations

import dataclasses
import datetime
import json
import logging
import math
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Union

from zep_agent.tools.registry import GRAPH_DATA_TYPES

if TYPE_CHECKING:
    from zep_agent.memory_service import MemoryService

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Errors
# ---------------------------------------------------------------------------

class ToolError(Exception):
    """Base class for tool failures raised before the memory service is hit."""


class UnknownToolError(ToolError):
    """The model asked for a tool that is not in the registry."""

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"Unknown tool requested: {name!r}")


class ToolArgumentError(ToolError):
    """The model supplied missing or mistyped arguments."""


# ---------------------------------------------------------------------------
# Invocation and result
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ToolInvocation:
    id: str
    name: str
    arguments: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class ToolResult:
    """Outcome of one invocation.

    Attributes:
        invocation_id: Correlation token of the tool-use block.
        payload: The memory service response, untouched.
        is_error: Whether *payload* describes a failure.
    """

    invocation_id: str
    payload: Any
    is_error: bool = False

    def content(self) -> str:
        return serialize_payload(self.payload)


# ---------------------------------------------------------------------------
# Typed call variants
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class GraphAdd:
    data: str
    data_type: str


@dataclass(frozen=True)
class GraphSearch:
    query: str


@dataclass(frozen=True)
class GetEdge:
    uuid: str


@dataclass(frozen=True)
class GetNode:
    uuid: str


@dataclass(frozen=True)
class GetUserEdges:
    pass


@dataclass(frozen=True)
class GetUserNodes:
    pass


@dataclass(frozen=True)
class GetEpisodes:
    last_n: int | None = None


ToolCall = Union[
    GraphAdd, GraphSearch, GetEdge, GetNode, GetUserEdges, GetUserNodes, GetEpisodes
]


def _require_str(args: dict[str, Any], key: str, tool: str) -> str:
    value = args.get(key)
    if not isinstance(value, str) or not value:
        raise ToolArgumentError(f"{tool}: '{key}' must be a non-empty string")
    return value


def _optional_count(args: dict[str, Any], key: str, tool: str) -> int | None:
    value = args.get(key)
    # 0 and a missing key both mean "everything".
    if value is None or value == 0:
        return None
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ToolArgumentError(f"{tool}: '{key}' must be a number")
    if isinstance(value, float) and not math.isfinite(value):
        raise ToolArgumentError(f"{tool}: '{key}' must be a finite number")
    if value != int(value) or value < 0:
        raise ToolArgumentError(f"{tool}: '{key}' must be a positive whole number")
    return int(value)


def parse_invocation(invocation: ToolInvocation) -> ToolCall:
    """Turn an untyped invocation into its typed call variant.

    Raises:
        UnknownToolError: If the name is not in the registry.
        ToolArgumentError: If required arguments are missing or mistyped.
    """
    name = invocation.name
    args = invocation.arguments or {}

    if name == "graph_add":
        data_type = _require_str(args, "type", name)
        if data_type not in GRAPH_DATA_TYPES:
            raise ToolArgumentError(
                f"graph_add: 'type' must be one of {', '.join(GRAPH_DATA_TYPES)}"
            )
        return GraphAdd(data=_require_str(args, "data", name), data_type=data_type)
    if name == "graph_search":
        return GraphSearch(query=_require_str(args, "query", name))
    if name == "get_edge":
        return GetEdge(uuid=_require_str(args, "uuid", name))
    if name == "get_node":
        return GetNode(uuid=_require_str(args, "uuid", name))
    if name == "get_user_edges":
        return GetUserEdges()
    if name == "get_user_nodes":
        return GetUserNodes()
    if name == "get_episodes":
        return GetEpisodes(last_n=_optional_count(args, "lastN", name))

    raise UnknownToolError(name)


# ---------------------------------------------------------------------------
# Executor
# ---------------------------------------------------------------------------

class ToolExecutor:
    """Runs tool invocations against the memory service for one user.

    Args:
        memory: The memory service wrapper.
        user_id: The identity every user-scoped tool operates on.
    """

    def __init__(self, memory: MemoryService, user_id: str) -> None:
        self.memory = memory
        self.user_id = user_id

    def execute(self, invocation: ToolInvocation) -> ToolResult:
        """Execute one invocation.

        Raises:
            UnknownToolError: For a name outside the registry.
            ToolArgumentError: For invalid arguments.
            MemoryServiceError: When the memory service call fails.
        """
        logger.info("Executing tool: %s", invocation.name)
        try:
            call = parse_invocation(invocation)
            payload = self._dispatch(call)
        except Exception as exc:
            logger.error("Error executing tool %s: %s", invocation.name, exc)
            raise

        if logger.isEnabledFor(logging.DEBUG):
            try:
                logger.debug("Tool result: %s", serialize_payload(payload, indent=2))
            except (TypeError, ValueError) as exc:
                logger.debug("Tool result could not be rendered: %s", exc)

        return ToolResult(invocation_id=invocation.id, payload=payload)

    def _dispatch(self, call: ToolCall) -> Any:
        if isinstance(call, GraphAdd):
            return self.memory.graph_add(self.user_id, call.data_type, call.data)
        if isinstance(call, GraphSearch):
            return self.memory.graph_search(self.user_id, call.query)
        if isinstance(call, GetEdge):
            return self.memory.get_edge(call.uuid)
        if isinstance(call, GetNode):
            return self.memory.get_node(call.uuid)
        if isinstance(call, GetUserEdges):
            return self.memory.get_user_edges(self.user_id)
        if isinstance(call, GetUserNodes):
            return self.memory.get_user_nodes(self.user_id)
        if isinstance(call, GetEpisodes):
            return self.memory.get_episodes(self.user_id, last_n=call.last_n)
        raise TypeError(f"unhandled tool call variant: {type(call).__name__}")


# ---------------------------------------------------------------------------
# Serialization
# ---------------------------------------------------------------------------

def _jsonable(obj: Any) -> Any:
    """``json.dumps`` fallback for SDK models, dataclasses and datetimes."""
    if hasattr(obj, "model_dump"):
        return obj.model_dump(mode="json", exclude_none=True)
    if dataclasses.is_dataclass(obj) and not isinstance(obj, type):
        return dataclasses.asdict(obj)
    if isinstance(obj, (datetime.datetime, datetime.date)):
        return obj.isoformat()
    if hasattr(obj, "dict"):
        return obj.dict()
    return str(obj)


def serialize_payload(payload: Any, indent: int | None = None) -> str:
    """Render a tool payload as JSON text for the transcript."""
    return json.dumps(payload, default=_jsonable, indent=indent, ensure_ascii=False)
