"""
Metrics Commands

Access to the exporter's metrics endpoint and the location it reports.
"""

import json
import logging
import time
from datetime import datetime

from ..core.diagnostics import probes
from ..core.exporter import filter_metrics, parse_location
from ..errors import EndpointError, ProbeTimeout
from .base import CommandResult

logger = logging.getLogger(__name__)


def get_metrics(host: str = "127.0.0.1", port: int = 9090, path: str = "/metrics") -> CommandResult:
    """
    Fetch the raw metrics exposition.

    Fetch failures propagate as ProbeTimeout / EndpointError.
    """
    metrics = probes.fetch_metrics(host, port, path)
    return CommandResult.ok(
        f"Prometheus Metrics from {host}:{port}{path}:\n\n{metrics}",
        data={'host': host, 'port': port, 'path': path},
        raw=metrics
    )


def current_location(host: str = "127.0.0.1", port: int = 9090, path: str = "/metrics") -> dict:
    """Parsed location plus the time it was read."""
    location = parse_location(probes.fetch_metrics(host, port, path))
    location['timestamp'] = datetime.now().astimezone().isoformat()
    return location


def get_geolocation_metrics(host: str = "127.0.0.1", port: int = 9090,
                            metric_filter: str = "geoclue_", path: str = "/metrics") -> CommandResult:
    """
    Filtered metric lines and the parsed location.

    Args:
        host: Exporter host
        port: Exporter port
        metric_filter: Substring a metric line must contain
        path: Metrics path
    """
    metrics = probes.fetch_metrics(host, port, path)
    lines = filter_metrics(metrics, metric_filter)
    location = parse_location(metrics)
    location['timestamp'] = datetime.now().astimezone().isoformat()

    return CommandResult.ok(
        f"Geolocation Metrics:\n\n" + "\n".join(lines)
        + f"\n\nParsed Location Data:\n{json.dumps(location, indent=2)}",
        data={'metrics': lines, 'location': location}
    )


def check_service_health(host: str = "127.0.0.1", port: int = 9090, path: str = "/metrics") -> CommandResult:
    """
    Whether the exporter answers metrics requests.

    An unreachable exporter is a normal answer (a warning result), not an
    operation failure.
    """
    start = time.monotonic()
    try:
        probes.fetch_metrics(host, port, path)
    except (ProbeTimeout, EndpointError) as e:
        return CommandResult.warn(
            f"Service Health Check: ❌ UNHEALTHY\nHost: {host}:{port}\nError: {e.message}",
            data={'healthy': False, 'host': host, 'port': port, 'error': e.message}
        )

    response_ms = round((time.monotonic() - start) * 1000, 1)
    return CommandResult.ok(
        f"Service Health Check: ✅ HEALTHY\nHost: {host}:{port}\n"
        f"Response Time: {response_ms}ms\nStatus: Service is responding to metrics requests",
        data={'healthy': True, 'host': host, 'port': port, 'response_time_ms': response_ms}
    )
