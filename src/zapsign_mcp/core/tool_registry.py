"""Tool registry for managing MCP tools in a transport-agnostic way."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Callable, Dict, Iterable, List, Literal, Mapping, Sequence, Tuple

from mcp import types
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from .exceptions import DuplicateToolError, ToolNotFoundError, ToolRegistrationError

logger = logging.getLogger(__name__)

ToolHandler = Callable[[Dict[str, Any]], Any]

# (tag, loader) pairs; each loader returns tool envelopes
ToolSource = Tuple[str, Callable[[], Iterable[Mapping[str, Any]]]]


def _empty_parameters() -> Dict[str, Any]:
    return {"type": "object", "properties": {}, "required": []}


class FunctionSpec(BaseModel):
    """The ``definition.function`` block of a tool envelope."""

    name: str = Field(min_length=1)
    description: str = ""
    parameters: Dict[str, Any] = Field(default_factory=_empty_parameters)

    @field_validator("parameters")
    @classmethod
    def _check_parameters(cls, value: Dict[str, Any]) -> Dict[str, Any]:
        if value.get("type", "object") != "object":
            raise ValueError("parameters must describe an object")
        properties = value.get("properties", {})
        if not isinstance(properties, dict):
            raise ValueError("parameters.properties must be a mapping")
        required = value.get("required", [])
        if not isinstance(required, list) or not all(isinstance(item, str) for item in required):
            raise ValueError("parameters.required must be a list of names")
        undeclared = sorted(set(required) - set(properties))
        if undeclared:
            raise ValueError(f"required parameters not declared in properties: {', '.join(undeclared)}")
        return {**value, "type": "object", "properties": properties, "required": required}


class DefinitionSpec(BaseModel):
    type: Literal["function"] = "function"
    function: FunctionSpec


class ToolEnvelope(BaseModel):
    """Contract every tool module hands to the registry."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    function: Callable[..., Any]
    definition: DefinitionSpec


@dataclass(frozen=True)
class ToolDescriptor:
    """Definition of an MCP tool."""

    name: str
    description: str
    parameters: Mapping[str, Any]
    handler: ToolHandler = field(repr=False, compare=False)
    source: str = ""

    @property
    def required(self) -> Tuple[str, ...]:
        return tuple(self.parameters.get("required", ()))

    @classmethod
    def from_envelope(cls, envelope: Mapping[str, Any], source: str = "") -> ToolDescriptor:
        try:
            parsed = ToolEnvelope.model_validate(envelope)
        except ValidationError as exc:
            raise ToolRegistrationError(f"Invalid tool envelope from '{source or 'unknown'}': {exc}") from exc

        spec = parsed.definition.function
        return cls(
            name=spec.name,
            description=spec.description,
            parameters=MappingProxyType(dict(spec.parameters)),
            handler=parsed.function,
            source=source,
        )

    def to_mcp_format(self) -> Dict[str, Any]:
        """Convert to MCP tools/list format."""
        tool = types.Tool(
            name=self.name,
            description=self.description,
            inputSchema=dict(self.parameters),
        )
        return tool.model_dump(mode="json", by_alias=True, exclude_none=True)


class ToolRegistry:
    """Registry for managing MCP tools.

    Registration order is listing order. Descriptors are read-only once
    registered, so one registry can be shared by every session.
    """

    def __init__(self) -> None:
        self._tools: Dict[str, ToolDescriptor] = {}

    def __len__(self) -> int:
        return len(self._tools)

    def __contains__(self, name: object) -> bool:
        return name in self._tools

    def register(self, envelope: Mapping[str, Any], source: str = "") -> ToolDescriptor:
        """Validate a tool envelope and register the resulting descriptor.

        Raises:
            ToolRegistrationError: If the envelope does not match the contract
            DuplicateToolError: If a tool with the same name is already registered
        """
        descriptor = ToolDescriptor.from_envelope(envelope, source=source)
        if descriptor.name in self._tools:
            raise DuplicateToolError(descriptor.name)
        self._tools[descriptor.name] = descriptor
        logger.debug(f"Registered tool: {descriptor.name}")
        return descriptor

    def discover(self, sources: Iterable[ToolSource]) -> Tuple[ToolDescriptor, ...]:
        """Load every source in order, skipping the ones that fail.

        A source whose loader raises, or an envelope that fails validation, is
        logged and skipped so one broken tool cannot hide the rest of the
        catalog. Name collisions are configuration errors and propagate.
        """
        for tag, loader in sources:
            try:
                envelopes = list(loader())
            except Exception as exc:
                logger.error(f"Failed to load tools from '{tag}': {exc}", exc_info=True)
                continue

            loaded = 0
            for envelope in envelopes:
                try:
                    self.register(envelope, source=tag)
                except DuplicateToolError:
                    raise
                except ToolRegistrationError as exc:
                    logger.error(str(exc))
                    continue
                loaded += 1
            logger.debug(f"Registered {loaded} tools from '{tag}'")

        return self.descriptors()

    def get(self, name: str) -> ToolDescriptor:
        """Get a tool by name."""
        try:
            return self._tools[name]
        except KeyError:
            raise ToolNotFoundError(name) from None

    def descriptors(self) -> Tuple[ToolDescriptor, ...]:
        return tuple(self._tools.values())

    def list_tools(self) -> List[Dict[str, Any]]:
        """List all registered tools in MCP format."""
        return [tool.to_mcp_format() for tool in self._tools.values()]

    def by_source(self) -> Dict[str, Sequence[ToolDescriptor]]:
        """Descriptors grouped by the tag of the source that registered them."""
        grouped: Dict[str, List[ToolDescriptor]] = {}
        for tool in self._tools.values():
            grouped.setdefault(tool.source or "default", []).append(tool)
        return grouped
