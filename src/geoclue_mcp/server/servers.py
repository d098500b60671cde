"""
Server Roles

Builds the operation and resource catalog of each of the three MCP servers
(metrics, config, monitoring) from the effective Settings. Defaults that
depend on the deployment (host, port, service names, paths) are bound here
so the commands layer stays settings-free.
"""

import json
import logging
from functools import partial
from typing import Callable, Dict

from ..__version__ import __version__
from ..commands import config as config_cmds
from ..commands import metrics as metrics_cmds
from ..commands import monitoring as monitoring_cmds
from ..config.mcp_config import ConfigManager, ConfigStore
from ..config.service_files import read_deployment_config, read_systemd_unit
from ..core.diagnostics import probes
from ..core.diagnostics.views import ViewTarget, alerts_view, dashboard_view, performance_view
from ..utils.env_config import Settings
from .dispatcher import Dispatcher, Parameter, ResourceDescriptor

logger = logging.getLogger(__name__)

JSON_MIME = 'application/json'
TEXT_MIME = 'text/plain'


def _json(payload) -> str:
    return json.dumps(payload, indent=2)


def _host_param(settings: Settings, description: str = "Host address of the metrics server") -> Parameter:
    return Parameter('host', 'string', description, default=settings.metrics_host)


def _port_param(settings: Settings, description: str = "Port of the metrics server") -> Parameter:
    return Parameter('port', 'integer', description, default=settings.metrics_port)


def _service_param(settings: Settings, description: str = "Name of the service") -> Parameter:
    return Parameter('service_name', 'string', description, default=settings.service_name)


def _view_target(settings: Settings) -> ViewTarget:
    return ViewTarget(
        service_name=settings.service_name,
        dependency_service=settings.dependency_service,
        host=settings.metrics_host,
        port=settings.metrics_port,
        path=settings.metrics_path,
    )


# =============================================================================
# Metrics server
# =============================================================================

def build_metrics_server(settings: Settings) -> Dispatcher:
    server = Dispatcher('geoclue-metrics-server', __version__)
    path = settings.metrics_path

    server.operation(
        'get_metrics',
        "Fetch Prometheus metrics from the exporter endpoint",
        _host_param(settings),
        _port_param(settings),
        Parameter('path', 'string', "Metrics endpoint path", default=path),
    )(metrics_cmds.get_metrics)

    server.operation(
        'get_geolocation_metrics',
        "Get specific geolocation metrics (latitude, longitude, accuracy)",
        _host_param(settings),
        _port_param(settings),
        Parameter('metric_filter', 'string',
                  'Filter for specific metrics (e.g., "geoclue_latitude")', default='geoclue_'),
    )(partial(metrics_cmds.get_geolocation_metrics, path=path))

    server.operation(
        'check_service_health',
        "Check if the geoclue exporter service is healthy",
        _host_param(settings),
        _port_param(settings),
    )(partial(metrics_cmds.check_service_health, path=path))

    host, port = settings.metrics_host, settings.metrics_port
    server.register_resource(ResourceDescriptor(
        uri='geoclue://metrics/current',
        name='Current Metrics',
        description='Current Prometheus metrics from the exporter',
        mime_type=TEXT_MIME,
        reader=lambda: probes.fetch_metrics(host, port, path),
    ))
    server.register_resource(ResourceDescriptor(
        uri='geoclue://location/current',
        name='Current Location',
        description='Current geolocation data',
        mime_type=JSON_MIME,
        reader=lambda: _json(metrics_cmds.current_location(host, port, path)),
    ))
    return server


# =============================================================================
# Config server
# =============================================================================

def build_config_server(settings: Settings, manager: ConfigManager = None) -> Dispatcher:
    server = Dispatcher('geoclue-config-server', __version__)
    if manager is None:
        manager = ConfigManager(ConfigStore(settings.config_path))
    service_name = settings.service_name
    deployment_paths = settings.deployment_paths

    server.operation(
        'get_service_config',
        "Get current service configuration",
        Parameter('config_type', 'string', "Type of configuration to retrieve",
                  default='all', enum=config_cmds.CONFIG_TYPES),
    )(partial(config_cmds.get_service_config, manager,
              service_name=service_name, deployment_paths=deployment_paths))

    server.operation(
        'update_mcp_config',
        "Update MCP server configuration",
        Parameter('server_name', 'string', "Name of the MCP server to configure", required=True),
        Parameter('config', 'object', "Configuration object to merge", required=True),
    )(partial(config_cmds.update_mcp_config, manager))

    server.operation(
        'get_service_status',
        "Get systemd service status",
        _service_param(settings),
    )(config_cmds.get_service_status)

    server.operation(
        'get_service_args',
        "Get current service command line arguments",
    )(partial(config_cmds.get_service_args, service_name))

    server.operation(
        'validate_config',
        "Validate service configuration",
        Parameter('config_type', 'string', "Type of configuration to validate",
                  default='mcp', enum=config_cmds.VALIDATION_TYPES),
    )(partial(config_cmds.validate_config, manager,
              service_name=service_name, deployment_paths=deployment_paths))

    server.register_resource(ResourceDescriptor(
        uri='geoclue://config/mcp',
        name='MCP Configuration',
        description='Current MCP server configuration',
        mime_type=JSON_MIME,
        reader=lambda: _json(manager.load().to_dict()),
    ))
    server.register_resource(ResourceDescriptor(
        uri='geoclue://config/systemd',
        name='Systemd Service Configuration',
        description='Systemd service unit configuration',
        mime_type=TEXT_MIME,
        reader=lambda: read_systemd_unit(service_name),
    ))
    server.register_resource(ResourceDescriptor(
        uri='geoclue://config/deployment',
        name='NixOS Module Configuration',
        description='NixOS module configuration',
        mime_type=TEXT_MIME,
        reader=lambda: read_deployment_config(deployment_paths),
    ))
    return server


# =============================================================================
# Monitoring server
# =============================================================================

def build_monitoring_server(settings: Settings) -> Dispatcher:
    server = Dispatcher('geoclue-monitoring-server', __version__)

    server.operation(
        'health_check',
        "Comprehensive health check of the geoclue exporter service",
        _host_param(settings, "Host address to check"),
        _port_param(settings, "Port to check"),
        Parameter('include_metrics', 'boolean', "Include metrics validation in health check",
                  default=True),
    )(partial(monitoring_cmds.health_check,
              service_name=settings.service_name,
              dependency_service=settings.dependency_service,
              metrics_path=settings.metrics_path))

    server.operation(
        'service_status',
        "Get detailed systemd service status",
        _service_param(settings, "Name of the service to check"),
    )(monitoring_cmds.service_status)

    server.operation(
        'system_resources',
        "Check system resources (CPU, memory, disk) for the service",
        _service_param(settings, "Name of the service to monitor"),
    )(monitoring_cmds.system_resources)

    server.operation(
        'network_connectivity',
        "Test network connectivity and port accessibility",
        _host_param(settings, "Host to test connectivity to"),
        _port_param(settings, "Port to test"),
        Parameter('timeout', 'integer', "Connection timeout in milliseconds", default=5000),
    )(monitoring_cmds.network_connectivity)

    server.operation(
        'log_analysis',
        "Analyze service logs for issues",
        _service_param(settings, "Name of the service to analyze logs for"),
        Parameter('lines', 'integer', "Number of log lines to analyze", default=50),
    )(monitoring_cmds.log_analysis)

    server.operation(
        'geoclue_dependency_check',
        "Check GeoClue2 service dependency status",
    )(partial(monitoring_cmds.geoclue_dependency_check, settings.dependency_service))

    target = _view_target(settings)
    server.register_resource(ResourceDescriptor(
        uri='geoclue://monitoring/dashboard',
        name='Monitoring Dashboard',
        description='Complete monitoring dashboard data',
        mime_type=JSON_MIME,
        reader=lambda: _json(dashboard_view(target)),
    ))
    server.register_resource(ResourceDescriptor(
        uri='geoclue://monitoring/alerts',
        name='Service Alerts',
        description='Current service alerts and warnings',
        mime_type=JSON_MIME,
        reader=lambda: _json(alerts_view(target)),
    ))
    server.register_resource(ResourceDescriptor(
        uri='geoclue://monitoring/performance',
        name='Performance Metrics',
        description='Service performance metrics over time',
        mime_type=JSON_MIME,
        reader=lambda: _json(performance_view(target)),
    ))
    return server


SERVER_BUILDERS: Dict[str, Callable[[Settings], Dispatcher]] = {
    'metrics': build_metrics_server,
    'config': build_config_server,
    'monitoring': build_monitoring_server,
}


def build_server(role: str, settings: Settings = None) -> Dispatcher:
    """Dispatcher for one server role ('metrics', 'config' or 'monitoring')."""
    if role not in SERVER_BUILDERS:
        raise ValueError(f"Unknown server role: {role} (choose from {', '.join(SERVER_BUILDERS)})")
    settings = settings or Settings.from_env()
    server = SERVER_BUILDERS[role](settings)
    logger.debug(f"Built {server.name} with {len(server.list_operations())} tools")
    return server
