"""Request loop: one JSON-RPC request per input line, one response line per handled request."""

import json
import typing as t

from fastmcp.utilities.logging import get_logger

from access_mcp.protocol import Request, Response, ToolRegistry, ParseRequest, InvokeTool
from access_mcp.tools import Context

logger = get_logger(__name__)


class Dispatcher:
    """Routes requests to the tool registry. Holds no database state of its own:
    the gateway lives in the context, created once and shared by all requests.
    """

    def __init__(self, registry: ToolRegistry, context: Context):
        self.registry = registry
        self.context = context


    # METHODS
    # =======

    def Initialize(self) -> dict[str, t.Any]:
        settings = self.context.settings
        return {
            "protocolVersion": settings.protocol_version,
            "capabilities": {},
            "serverInfo": {"name": settings.server_name, "version": settings.server_version},
        }


    def ListTools(self) -> dict[str, t.Any]:
        return {"tools": [descriptor.ToDict() for descriptor in self.registry.Descriptors()]}


    def CallTool(self, params: t.Any) -> dict[str, t.Any]:
        """Run the tool named in params. Malformed params raise ValueError (no response is sent)."""

        if not isinstance(params, dict):
            raise ValueError("tools/call requires params with name and arguments")

        name, arguments = params.get("name"), params.get("arguments")
        if not isinstance(name, str):
            raise ValueError("tools/call requires a tool name")

        # unknown tools are reported before arguments are looked at
        tool = self.registry.Get(name)
        if tool is None:
            return {"error": f"Unknown tool: {name}"}

        if not isinstance(arguments, dict):
            raise ValueError(f"tools/call for {name} requires an arguments object")
        return InvokeTool(tool, self.context, arguments)


    def Dispatch(self, request: Request) -> Response:
        if request.method == "initialize":
            result = self.Initialize()
        elif request.method == "tools/list":
            result = self.ListTools()
        elif request.method == "tools/call":
            result = self.CallTool(request.params)
        else:
            result = {"error": f"Unknown method: {request.method}"}
        return Response(id=request.id, result=result)


    # TRANSPORT
    # =========

    def HandleLine(self, line: str) -> dict[str, t.Any] | None:
        """Handle one input line, returning the response to send, or None to send nothing."""

        if not line.strip():
            return None

        try:
            payload = json.loads(line)
        except (ValueError, RecursionError) as e:
            # invalid JSON, or nesting too deep to decode
            logger.error(f"JSON parsing error: {e}")
            return None

        # lines without a method are ignored, without any response
        request = ParseRequest(payload)
        if request is None:
            logger.debug("Ignoring request without method")
            return None

        try:
            return self.Dispatch(request).ToDict()
        except Exception as e:
            logger.error(f"Error processing request {request.id} ({request.method}): {e}")
            return None


    def Serve(self, inStream: t.TextIO, outStream: t.TextIO) -> int:
        """Process requests until end of input. Returns the process exit code."""

        while True:
            try:
                line = inStream.readline()
            except (OSError, ValueError) as e:
                logger.error(f"Fatal error reading requests: {e}")
                return 1

            # end of input
            if line == "":
                return 0

            response = self.HandleLine(line)
            if response is None:
                continue

            try:
                outStream.write(json.dumps(response, default=str) + "\n")
                outStream.flush()
            except OSError as e:
                logger.error(f"Fatal error writing response: {e}")
                return 1
