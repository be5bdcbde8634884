"""
The tool catalog offered to the model.

Seven memory tools, defined once and sent unchanged with every completion
request of a process.  Descriptions that mention the user carry a
``{user_name}`` placeholder filled in by :func:`tools_for_api`.
"""

from __future__ import annotations

from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Mapping

# Accepted values for graph_add's ``type`` argument.
GRAPH_DATA_TYPES: tuple[str, ...] = ("text", "message", "json")


@dataclass(frozen=True)
class ToolDefinition:
    """A callable tool as the model sees it."""

    name: str
    description: str
    input_schema: Mapping[str, Any]

    def to_api(self, user_name: str = "the user") -> dict[str, Any]:
        return {
            "name": self.name,
            "description": self.description.format(user_name=user_name),
            "input_schema": _thaw(self.input_schema),
        }


def _schema(
    properties: dict[str, Any] | None = None,
    required: list[str] | None = None,
    description: str | None = None,
) -> Mapping[str, Any]:
    schema: dict[str, Any] = {"type": "object", "properties": properties or {}}
    if required:
        schema["required"] = list(required)
    if description:
        schema["description"] = description
    return MappingProxyType(schema)


def _thaw(value: Any) -> Any:
    """Deep-copy a (possibly read-only) schema into plain dicts and lists."""
    if isinstance(value, Mapping):
        return {k: _thaw(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_thaw(v) for v in value]
    return value


_NO_INPUT = "No input needed - automatically uses the current user's ID"


TOOL_DEFINITIONS: tuple[ToolDefinition, ...] = (
    ToolDefinition(
        name="graph_add",
        description=(
            "Add new information to your long-term memory. Use this whenever "
            "you learn something important about the user or context that "
            "should be remembered for future conversations."
        ),
        input_schema=_schema(
            properties={
                "data": {
                    "type": "string",
                    "description": (
                        "The information to store (text or JSON string). For "
                        "text/message types, include speaker and content. For "
                        "JSON, include relevant structured data."
                    ),
                },
                "type": {
                    "type": "string",
                    "enum": list(GRAPH_DATA_TYPES),
                    "description": (
                        "Format of the data: 'text' for plain text, 'message' "
                        "for conversational data, 'json' for structured data"
                    ),
                },
            },
            required=["data", "type"],
        ),
    ),
    ToolDefinition(
        name="graph_search",
        description=(
            "Search your memory graph for any relevant information about a "
            "topic, person, or previous conversation. Use this to recall past "
            "interactions or stored knowledge."
        ),
        input_schema=_schema(
            properties={
                "query": {
                    "type": "string",
                    "description": (
                        "Natural language description of what you want to find "
                        "in memory. Be specific about the information you're "
                        "looking for."
                    ),
                },
            },
            required=["query"],
        ),
    ),
    ToolDefinition(
        name="get_edge",
        description=(
            "Retrieve a specific relationship or fact from memory using its "
            "UUID. Use this when you need to get more details about a specific "
            "connection you've found through search."
        ),
        input_schema=_schema(
            properties={
                "uuid": {
                    "type": "string",
                    "description": (
                        "The unique identifier of the edge (relationship/fact) "
                        "you want to retrieve"
                    ),
                },
            },
            required=["uuid"],
        ),
    ),
    ToolDefinition(
        name="get_node",
        description=(
            "Retrieve information about a specific entity (person, object, "
            "concept) from memory using its UUID. Use this when you need "
            "detailed information about something you've found through search."
        ),
        input_schema=_schema(
            properties={
                "uuid": {
                    "type": "string",
                    "description": (
                        "The unique identifier of the node (entity) you want "
                        "to retrieve"
                    ),
                },
            },
            required=["uuid"],
        ),
    ),
    ToolDefinition(
        name="get_user_edges",
        description=(
            "Retrieve all known facts and relationships about {user_name}. Use "
            "this to get a complete picture of what you know about the user."
        ),
        input_schema=_schema(description=_NO_INPUT),
    ),
    ToolDefinition(
        name="get_user_nodes",
        description=(
            "Retrieve all entities (people, objects, concepts) directly "
            "connected to {user_name} in memory. Use this to understand what "
            "topics and entities are relevant to the user."
        ),
        input_schema=_schema(description=_NO_INPUT),
    ),
    ToolDefinition(
        name="get_episodes",
        description=(
            "Retrieve specific conversations or interactions with the user. "
            "Use this to recall detailed context from past conversations."
        ),
        input_schema=_schema(
            properties={
                "lastN": {
                    "type": "number",
                    "description": (
                        "Optional: Number of most recent episodes to retrieve. "
                        "Omit to get all episodes."
                    ),
                },
            },
        ),
    ),
)

_BY_NAME: Mapping[str, ToolDefinition] = MappingProxyType(
    {tool.name: tool for tool in TOOL_DEFINITIONS}
)


def tool_names() -> tuple[str, ...]:
    return tuple(_BY_NAME)


def get_tool(name: str) -> ToolDefinition | None:
    return _BY_NAME.get(name)


def tools_for_api(user_name: str = "the user") -> list[dict[str, Any]]:
    """Render the whole catalog in Messages API ``tools`` format."""
    return [tool.to_api(user_name) for tool in TOOL_DEFINITIONS]
