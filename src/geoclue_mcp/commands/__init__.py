"""
geoclue-mcp Commands Layer

Transport-independent operations behind the three MCP servers and the CLI.
Every function returns a CommandResult or raises a GeoclueMcpError.

Usage:
    from geoclue_mcp.commands import metrics, monitoring, config

    # Metrics endpoint
    result = metrics.get_metrics("127.0.0.1", 9090)
    result = metrics.check_service_health()

    # Monitoring
    result = monitoring.health_check(include_metrics=False)
    result = monitoring.log_analysis("geoclue-prometheus-exporter", lines=100)

    # Configuration
    manager = ConfigManager(ConfigStore("~/.config/geoclue-mcp/config.json"))
    result = config.validate_config(manager)
    result = config.update_mcp_config(manager, "geoclue-metrics", {"args": ["--debug"]})

All commands return CommandResult with:
    - success: bool
    - message: str (rendered text for the client)
    - data: dict (structured payload)
    - error: str (error details if failed)
"""

from .base import CommandResult, ResultStatus
from . import config, metrics, monitoring

__all__ = ['CommandResult', 'ResultStatus', 'config', 'metrics', 'monitoring']
