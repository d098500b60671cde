"""MCP server roles, the request dispatcher and the stdio transport."""

from .dispatcher import Dispatcher, OperationDescriptor, Parameter, ResourceDescriptor
from .servers import SERVER_BUILDERS, build_server

__all__ = [
    'Dispatcher',
    'OperationDescriptor',
    'Parameter',
    'ResourceDescriptor',
    'SERVER_BUILDERS',
    'build_server',
]
