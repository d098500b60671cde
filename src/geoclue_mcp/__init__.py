"""
geoclue-mcp

Diagnostic and configuration MCP servers for the GeoClue Prometheus exporter.

Three server roles are provided, each runnable over stdio:
    metrics     - exporter metrics and parsed location
    config      - MCP config document, systemd unit and deployment views
    monitoring  - health checks, service state, resources, logs

Usage:
    from geoclue_mcp.server import build_server
    from geoclue_mcp.utils.env_config import Settings

    dispatcher = build_server('monitoring', Settings.from_env())
    result = dispatcher.invoke('health_check', {'include_metrics': False})
    print(result.message)
"""

from .__version__ import __version__

__all__ = ['__version__']
