"""
Error taxonomy for geoclue-mcp.

Every failure the servers report has a stable ``kind`` string so callers
can tell a refused connection from a rejected config update without
parsing message text.
"""

from typing import List, Optional


class GeoclueMcpError(Exception):
    """Base class for all geoclue-mcp failures."""

    kind = "error"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class UnknownOperation(GeoclueMcpError):
    """Invoked operation name is not registered on this server."""

    kind = "unknown_operation"

    def __init__(self, name: str):
        super().__init__(f"Tool {name} not found")
        self.name = name


class UnknownResource(GeoclueMcpError):
    """Requested resource URI is not registered on this server."""

    kind = "unknown_resource"

    def __init__(self, uri: str):
        super().__init__(f"Resource {uri} not found")
        self.uri = uri


class InvalidParameter(GeoclueMcpError):
    """Caller argument is missing, unknown, or has the wrong shape."""

    kind = "invalid_parameter"


class ProbeTimeout(GeoclueMcpError):
    """Probe did not complete before its timeout."""

    kind = "probe_timeout"


class ProbeRefused(GeoclueMcpError):
    """Remote side actively refused the connection."""

    kind = "probe_refused"


class EndpointError(GeoclueMcpError):
    """Endpoint answered with a non-success status or was unreachable."""

    kind = "endpoint_error"

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class LogUnavailable(GeoclueMcpError):
    """No log backend could be queried for the unit."""

    kind = "log_unavailable"


class ConfigLoadFailure(GeoclueMcpError):
    """Configuration source is missing, unreadable, or not valid JSON."""

    kind = "config_load_failure"


class ConfigValidationFailure(GeoclueMcpError):
    """Config document violates one or more rules.

    Carries every violated finding, not just the first.
    """

    kind = "config_validation_failure"

    def __init__(self, findings: List):
        self.findings = list(findings)
        lines = "; ".join(f.message for f in self.findings)
        super().__init__(f"Configuration is invalid: {lines}")


class ConfigPersistFailure(GeoclueMcpError):
    """Validated document could not be written to storage."""

    kind = "config_persist_failure"


class UnknownServer(GeoclueMcpError):
    """Server entry does not exist in the config document."""

    kind = "unknown_server"

    def __init__(self, server_name: str):
        super().__init__(f"Server {server_name} not found in MCP configuration")
        self.server_name = server_name
