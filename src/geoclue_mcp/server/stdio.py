"""
MCP stdio transport.

Adapts a Dispatcher to the low-level ``mcp`` Server: tool and resource
catalogs are advertised from the descriptors, tool calls and resource reads
are forwarded to the dispatcher one at a time. stdout carries the protocol,
so nothing in here may print.
"""

import asyncio
import logging
from typing import Any, Dict, List, Optional

import mcp.server.stdio
import mcp.types as types
from mcp.server import NotificationOptions, Server
from mcp.server.lowlevel.helper_types import ReadResourceContents
from mcp.server.models import InitializationOptions

from .dispatcher import Dispatcher

logger = logging.getLogger(__name__)


class ToolInvocationError(Exception):
    """Raised inside a tool handler so the SDK answers with ``isError``."""


class ResourceReadError(Exception):
    """Raised inside a resource handler so the SDK answers with an error."""


def tool_definitions(dispatcher: Dispatcher) -> List[types.Tool]:
    return [
        types.Tool(
            name=op.name,
            description=op.description,
            inputSchema=op.input_schema(),
        )
        for op in dispatcher.list_operations()
    ]


def resource_definitions(dispatcher: Dispatcher) -> List[types.Resource]:
    return [
        types.Resource(
            uri=res.uri,
            name=res.name,
            description=res.description,
            mimeType=res.mime_type,
        )
        for res in dispatcher.list_resources()
    ]


def call_tool_contents(dispatcher: Dispatcher, name: str,
                       arguments: Optional[Dict[str, Any]]) -> List[types.TextContent]:
    """
    Run one tool and wrap its text for the client.

    Raises:
        ToolInvocationError: the operation failed; the message is the
            rendered ``Error: ...`` text
    """
    result = dispatcher.invoke(name, arguments)
    if not result.success:
        raise ToolInvocationError(result.render_text())
    return [types.TextContent(type="text", text=result.render_text())]


def read_resource_contents(dispatcher: Dispatcher, uri: str) -> List[ReadResourceContents]:
    """
    Read one resource.

    Raises:
        ResourceReadError: unknown URI or failed read, message names the URI
    """
    result = dispatcher.read_resource(uri)
    if not result.success:
        raise ResourceReadError(result.render_text())
    return [ReadResourceContents(content=result.raw_output, mime_type=result.data['mime_type'])]


def create_mcp_server(dispatcher: Dispatcher) -> Server:
    """Low-level MCP server bound to ``dispatcher``."""
    server = Server(dispatcher.name)

    @server.list_tools()
    async def handle_list_tools() -> List[types.Tool]:
        return tool_definitions(dispatcher)

    @server.call_tool()
    async def handle_call_tool(name: str, arguments: Optional[Dict[str, Any]]) -> List[types.TextContent]:
        return call_tool_contents(dispatcher, name, arguments)

    @server.list_resources()
    async def handle_list_resources() -> List[types.Resource]:
        return resource_definitions(dispatcher)

    @server.read_resource()
    async def handle_read_resource(uri) -> List[ReadResourceContents]:
        return read_resource_contents(dispatcher, str(uri))

    return server


async def serve_stdio(dispatcher: Dispatcher):
    server = create_mcp_server(dispatcher)
    options = InitializationOptions(
        server_name=dispatcher.name,
        server_version=dispatcher.version,
        capabilities=server.get_capabilities(
            notification_options=NotificationOptions(),
            experimental_capabilities={},
        ),
    )
    logger.info(f"{dispatcher.name} {dispatcher.version} running on stdio")
    async with mcp.server.stdio.stdio_server() as (read_stream, write_stream):
        await server.run(read_stream, write_stream, options)


def run_stdio(dispatcher: Dispatcher):
    """Serve ``dispatcher`` over stdin/stdout until the client disconnects."""
    try:
        asyncio.run(serve_stdio(dispatcher))
    except KeyboardInterrupt:
        logger.info(f"{dispatcher.name} interrupted")
