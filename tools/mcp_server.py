# =============================================================================
# tools/mcp_server.py  —  FastMCP Tool Server (both Fastalert tools)
# =============================================================================
#
# WHAT THIS FILE DOES:
#   Declares the two MCP tools the host can call and routes each call to
#   core/client.py.  Each tool is a thin wrapper: validate input, make ONE
#   client call, format the result as text.
#
# HOW IT WORKS (the flow):
#   1. The host lists tools and sees list_channels / send_message with their
#      JSON input schemas (TOOL_CATALOG below, advertised verbatim)
#   2. It calls a tool by name via MCP
#   3. FastMCP routes the call to FastalertTool.run()  (unregistered names
#      go through UnknownToolMiddleware instead)
#   4. handle_call() dispatches to the client and formats the reply
#   5. The host receives a text block — with isError set on failure
#
# WHY NOT @mcp.tool() FUNCTIONS?
#   FastMCP derives input schemas from Python signatures, and the Fastalert
#   API needs a hyphenated "channel-uuid" argument.  So the schemas are
#   written out by hand and attached to a small Tool subclass instead.
#
# ERRORS NEVER ESCAPE:
#   Unknown tools, bad arguments, upstream ApiErrors and transport failures
#   all end up as a "❌ Error: ..." reply with isError=true.  The host always
#   gets a normal reply envelope, never a protocol-level failure.
# =============================================================================

import json
import logging
import sys
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import Any, AsyncIterator, Awaitable, Callable, Optional

from fastmcp import FastMCP
from fastmcp.exceptions import ToolError
from fastmcp.server.middleware import Middleware, MiddlewareContext
from fastmcp.tools import Tool
from fastmcp.tools.tool import ToolResult
from mcp.shared.exceptions import McpError
from mcp.types import METHOD_NOT_FOUND, ErrorData, TextContent
from pydantic import Field

from core.client import FastalertClient
from core.models import MESSAGE_ACTIONS, ApiError, Message

SERVER_NAME = "fastalert"
SERVER_VERSION = "0.3.0"

# =============================================================================
# Logging Setup
# =============================================================================
# STDOUT is the MCP transport, so every log line goes to STDERR.
# Cyan = incoming call, yellow = progress, green = response, red = failure.
# =============================================================================

_CYAN = "\033[36m"
_GREEN = "\033[32m"
_YELLOW = "\033[33m"
_RED = "\033[31m"
_RESET = "\033[0m"

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [MCP] %(message)s",
    datefmt="%H:%M:%S",
    stream=sys.stderr,
)


def _log_request(tool_name: str, arguments: dict[str, Any]) -> None:
    """Log an incoming tool call with its arguments in CYAN."""
    param_str = ", ".join(f"{k}={v!r}" for k, v in arguments.items())
    logging.info(f"{_CYAN}{tool_name} called with: {param_str}{_RESET}")


def _log_status(message: str) -> None:
    logging.info(f"{_YELLOW}  → {message}{_RESET}")


def _log_response(tool_name: str, reply: "ToolReply") -> "ToolReply":
    """Log the reply text (GREEN, or RED for errors), then return it."""
    color = _RED if reply.is_error else _GREEN
    logging.info(f"{color}  ← {tool_name} response: {reply.text}{_RESET}")
    return reply


# =============================================================================
# Tool catalog
# =============================================================================
# Advertised to the host exactly as written.  The host's LLM reads the
# descriptions to decide when to call each tool.
# =============================================================================
TOOL_CATALOG: list[dict[str, Any]] = [
    {
        "name": "list_channels",
        "description": "List all channels, optionally filtered by name.",
        "inputSchema": {
            "type": "object",
            "properties": {
                "name": {
                    "type": "string",
                    "description": "Optional channel name filter",
                },
            },
        },
    },
    {
        "name": "send_message",
        "description": "Send a message to one or more channels.",
        "inputSchema": {
            "type": "object",
            "properties": {
                "channel-uuid": {
                    "type": "array",
                    "description": "Channel UUIDs to send to.",
                    "items": {"type": "string", "example": "abc-cl1-xyz-123"},
                    "minItems": 1,
                },
                "title": {
                    "type": "string",
                    "description": "Message title.",
                },
                "content": {
                    "type": "string",
                    "description": "Message body.",
                },
                "action": {
                    "type": "string",
                    "enum": list(MESSAGE_ACTIONS),
                    "description": "Optional message action type.",
                },
                "action_value": {
                    "type": "string",
                    "description": "Value corresponding to the action type.",
                },
                "image": {
                    "type": "string",
                    "description": "Optional image URL or binary string.",
                },
            },
            "required": ["channel-uuid", "title", "content"],
        },
    },
]
TOOL_NAMES = frozenset(entry["name"] for entry in TOOL_CATALOG)


# =============================================================================
# Reply formatting
# =============================================================================
ERROR_PREFIX = "❌ Error: "


@dataclass(frozen=True)
class ToolReply:
    text: str
    is_error: bool = False


def respond(data: Any) -> ToolReply:
    """Format a successful result.

    Lists become one "• <json>" line per item, strings pass through as-is,
    anything else is pretty-printed JSON.
    """
    if isinstance(data, list):
        text = "\n".join(
            f"• {json.dumps(item, separators=(',', ':'), ensure_ascii=False)}"
            for item in data
        )
    elif isinstance(data, str):
        text = data
    else:
        text = json.dumps(data, indent=2, ensure_ascii=False)
    return ToolReply(text=text)


def respond_error(err: Any) -> ToolReply:
    message = err.message if isinstance(err, ApiError) else str(err)
    return ToolReply(text=f"{ERROR_PREFIX}{message}", is_error=True)


# =============================================================================
# Dispatch
# =============================================================================
async def handle_call(
    client: FastalertClient,
    name: str,
    arguments: Optional[dict[str, Any]] = None,
) -> ToolReply:
    """Run one tool call and return its reply.  Never raises."""
    args = arguments or {}
    _log_request(name, args)

    try:
        if name == "list_channels":
            result = await client.search_channels(name=args.get("name"))
        elif name == "send_message":
            message = Message.from_arguments(args)
            _log_status(f"Sending '{message.title}' to {len(message.channel_uuid)} channel(s)")
            result = await client.send_message(message)
        else:
            raise McpError(ErrorData(code=METHOD_NOT_FOUND, message=f"Unknown tool: {name}"))
    except Exception as err:
        return _log_response(name, respond_error(err))

    if isinstance(result, ApiError):
        return _log_response(name, respond_error(result))

    if isinstance(result, list):
        _log_status(f"Got {len(result)} record(s)")
    return _log_response(name, respond(result))


class FastalertTool(Tool):
    """A catalog entry bound to the dispatcher.

    FastMCP turns a raised ToolError into an isError=true text reply, so an
    error reply is surfaced by raising one with the formatted text.
    """

    handler: Callable[[str, dict[str, Any]], Awaitable[ToolReply]] = Field(exclude=True)

    async def run(self, arguments: dict[str, Any]) -> ToolResult:
        reply = await self.handler(self.name, arguments)
        if reply.is_error:
            raise ToolError(reply.text)
        return ToolResult(content=[TextContent(type="text", text=reply.text)])


class UnknownToolMiddleware(Middleware):
    """Send calls for unregistered tool names through the dispatcher.

    FastMCP rejects unknown names with its own bare "Unknown tool" text.
    Routing them to handle_call gives them the same "❌ Error: ..." reply
    as every other failure.
    """

    def __init__(self, handler: Callable[[str, dict[str, Any]], Awaitable[ToolReply]]) -> None:
        self.handler = handler

    async def on_call_tool(self, context: MiddlewareContext, call_next: Callable) -> Any:
        name = context.message.name
        if name in TOOL_NAMES:
            return await call_next(context)

        reply = await self.handler(name, context.message.arguments or {})
        raise ToolError(reply.text)


# =============================================================================
# Server factory
# =============================================================================
def create_server(client: FastalertClient) -> FastMCP:
    """Build the FastMCP server with both tools registered.

    The client's connection pool is closed when the server shuts down.
    """

    @asynccontextmanager
    async def lifespan(server: FastMCP) -> AsyncIterator[dict[str, Any]]:
        try:
            yield {}
        finally:
            await client.aclose()

    mcp = FastMCP(SERVER_NAME, version=SERVER_VERSION, lifespan=lifespan)

    async def dispatch(name: str, arguments: dict[str, Any]) -> ToolReply:
        return await handle_call(client, name, arguments)

    for entry in TOOL_CATALOG:
        mcp.add_tool(
            FastalertTool(
                name=entry["name"],
                description=entry["description"],
                parameters=entry["inputSchema"],
                handler=dispatch,
            )
        )
    mcp.add_middleware(UnknownToolMiddleware(dispatch))
    return mcp
