"""Tool registry — tool contract, parameter descriptors, and lookup."""
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence, Tuple

from ..errors import ToolValidationError

logger = logging.getLogger(__name__)

_TYPE_CHECKS = {
    "string": (str,),
    "integer": (int,),
    "number": (int, float),
    "boolean": (bool,),
}


@dataclass(frozen=True)
class ToolParam:
    name: str
    type: str = "string"
    description: str = ""
    required: bool = True
    default: Any = None
    enum: Tuple[str, ...] = ()

    def describe(self) -> str:
        """Structural type as shown to the routing model."""
        kind = f"enum[{', '.join(self.enum)}]" if self.enum else self.type
        return kind if self.required else f"optional {kind}"


@dataclass
class ToolInput:
    query: str
    parameters: Dict[str, Any] = field(default_factory=dict)


@dataclass
class ToolOutput:
    success: bool
    data: Any = None
    error: Optional[str] = None

    @classmethod
    def ok(cls, data: Any) -> "ToolOutput":
        return cls(success=True, data=data)

    @classmethod
    def fail(cls, error: str) -> "ToolOutput":
        return cls(success=False, error=error)


@dataclass(frozen=True)
class ToolDescriptor:
    name: str
    description: str
    parameters: Dict[str, str]


class Tool:
    """Base class for tools.

    Subclasses set ``name``, ``description`` and ``params`` and implement
    ``execute``. ``execute`` must always return a ToolOutput; failures are
    reported through ``ToolOutput.fail`` rather than raised.
    """

    name: str = ""
    description: str = ""
    params: Sequence[ToolParam] = ()

    async def execute(self, tool_input: ToolInput) -> ToolOutput:
        raise NotImplementedError

    def describe_parameters(self) -> Dict[str, str]:
        return {p.name: p.describe() for p in self.params}

    def validate_parameters(self, parameters: Optional[Dict[str, Any]]) -> Dict[str, Any]:
        """Check ``parameters`` against ``params``; return them with defaults applied."""
        parameters = dict(parameters or {})
        known = {p.name for p in self.params}
        unexpected = sorted(set(parameters) - known)
        if unexpected:
            logger.debug(f"Tool {self.name}: ignoring unknown parameter(s) {unexpected}")

        cleaned: Dict[str, Any] = {}
        for p in self.params:
            value = parameters.get(p.name)
            if value is None:
                if p.required:
                    raise ToolValidationError(f"Missing required parameter: {p.name}")
                cleaned[p.name] = p.default
                continue
            expected = _TYPE_CHECKS.get(p.type, (object,))
            # bool is an int subclass; don't let True pass as a number
            if not isinstance(value, expected) or (isinstance(value, bool) and p.type != "boolean"):
                raise ToolValidationError(f"Parameter {p.name} must be of type {p.type}")
            if p.enum and value not in p.enum:
                raise ToolValidationError(f"Parameter {p.name} must be one of: {', '.join(p.enum)}")
            cleaned[p.name] = value
        return cleaned


class ToolRegistry:
    """Case-insensitive name → Tool lookup consulted by the router and executor."""

    def __init__(self):
        self._tools: Dict[str, Tool] = {}

    def register(self, tool: Tool) -> None:
        key = tool.name.lower()
        if not key:
            raise ValueError("Tool name must not be empty")
        if key in self._tools:
            raise ValueError(f"Tool already registered: {tool.name}")
        self._tools[key] = tool
        logger.info(f"Registered tool: {tool.name}")

    def get(self, name: str) -> Optional[Tool]:
        if not name:
            return None
        return self._tools.get(name.lower())

    def all(self) -> List[Tool]:
        return list(self._tools.values())

    def describe_all(self) -> List[ToolDescriptor]:
        return [
            ToolDescriptor(name=t.name, description=t.description, parameters=t.describe_parameters())
            for t in self._tools.values()
        ]

    def descriptions_for_llm(self) -> str:
        """Generate tool list for the routing system prompt."""
        lines = []
        for desc in sorted(self.describe_all(), key=lambda d: d.name):
            if desc.parameters:
                params_text = "{" + ", ".join(f"{k}: {v}" for k, v in desc.parameters.items()) + "}"
            else:
                params_text = "none"
            lines.append(f"- {desc.name}: {desc.description} | params: {params_text}")
        return "\n".join(lines)
