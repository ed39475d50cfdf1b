"""JSON-RPC envelopes, tool descriptors and the generic tool invocation wrapper."""

import typing as t
from dataclasses import dataclass, field

from fastmcp.utilities.logging import get_logger

logger = get_logger(__name__)


JSONRPC_VERSION = "2.0"



# ENVELOPES
# =========


@dataclass(frozen=True)
class Request:
    """Decoded request line. Requests without a method are never built."""

    method: str
    id: int = 0
    params: t.Any = None


@dataclass(frozen=True)
class Response:
    id: int
    result: t.Any

    def ToDict(self) -> dict[str, t.Any]:
        return {"jsonrpc": JSONRPC_VERSION, "id": self.id, "result": self.result}


def ParseRequest(payload: t.Any) -> Request | None:
    """Build a request from a decoded JSON value.
    Returns None for values that are not objects, or have a missing/empty method:
    those are skipped without any response.
    """

    if not isinstance(payload, dict):
        return None

    method = payload.get("method")
    if not isinstance(method, str) or method == "":
        return None

    # ids are integers, anything else falls back to 0
    requestId = payload.get("id")
    if not isinstance(requestId, int) or isinstance(requestId, bool):
        requestId = 0

    return Request(method=method, id=requestId, params=payload.get("params"))



# TOOL DESCRIPTORS
# ================


ToolHandler = t.Callable[..., dict[str, t.Any]]


@dataclass(frozen=True)
class ToolDescriptor:
    """Tool declared in the catalog: name, description and input schema."""

    name: str
    description: str
    properties: dict[str, t.Any] = field(default_factory=dict)
    required: tuple[str, ...] = ()

    @property
    def inputSchema(self) -> dict[str, t.Any]:
        schema: dict[str, t.Any] = {"type": "object", "properties": self.properties}
        if self.required:
            schema["required"] = list(self.required)
        return schema

    def ToDict(self) -> dict[str, t.Any]:
        return {
            "name": self.name,
            "description": self.description,
            "inputSchema": self.inputSchema,
            "required": list(self.required),
        }


@dataclass(frozen=True)
class RegisteredTool:
    descriptor: ToolDescriptor
    handler: ToolHandler


class ToolRegistry:
    """Static catalog of tools, in declaration order."""

    def __init__(self):
        self._tools: dict[str, RegisteredTool] = {}

    def tool(self, name: str, description: str,
             properties: dict[str, t.Any] | None = None,
             required: t.Sequence[str] = ()) -> t.Callable[[ToolHandler], ToolHandler]:
        """Register a handler under the given name: registry.tool(name="...", ...)(Handler)"""

        def decorator(handler: ToolHandler) -> ToolHandler:
            if name in self._tools:
                raise ValueError(f"Tool '{name}' is already registered")
            descriptor = ToolDescriptor(name, description, dict(properties or {}), tuple(required))
            self._tools[name] = RegisteredTool(descriptor, handler)
            return handler
        return decorator

    def Get(self, name: str) -> RegisteredTool | None:
        return self._tools.get(name)

    def Descriptors(self) -> list[ToolDescriptor]:
        return [tool.descriptor for tool in self._tools.values()]

    def __len__(self) -> int:
        return len(self._tools)

    def __contains__(self, name: str) -> bool:
        return name in self._tools



# TOOL INVOCATION
# ===============


def IsMissing(value: t.Any) -> bool:
    """Required arguments must be present and non-empty."""
    return value is None or (isinstance(value, (str, list, dict)) and len(value) == 0)


def Failure(message: str) -> dict[str, t.Any]:
    return {"success": False, "error": message}


def InvokeTool(tool: RegisteredTool, context: t.Any, arguments: dict[str, t.Any]) -> dict[str, t.Any]:
    """Validate arguments, run the handler, and wrap its payload into a result.
    No exception escapes: failures become {"success": false, "error": message}.
    """

    for fieldName in tool.descriptor.required:
        if IsMissing(arguments.get(fieldName)):
            return Failure(f"{fieldName} is required")

    try:
        payload = tool.handler(context, arguments)
    except Exception as e:
        logger.debug(f"Tool {tool.descriptor.name} failed: {e}")
        return Failure(str(e) or type(e).__name__)

    return {"success": True, **(payload or {})}
