"""MCP configuration document and the read-only service configuration views."""

from .mcp_config import (
    ConfigManager,
    ConfigStore,
    McpConfigDocument,
    ServerEntry,
    ValidationFinding,
    ValidationReport,
    merge_server_config,
    validate_document,
)

__all__ = [
    'ConfigManager',
    'ConfigStore',
    'McpConfigDocument',
    'ServerEntry',
    'ValidationFinding',
    'ValidationReport',
    'merge_server_config',
    'validate_document',
]
