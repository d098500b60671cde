"""
Derived monitoring views.

Dashboard, alerts and performance are rebuilt from one fresh round of
queries on every read; nothing here is stored.
"""

import logging
import subprocess
import time
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, List, Optional

import psutil

from ...errors import GeoclueMcpError
from ...utils import service_check
from ..exporter import has_geoclue_metrics, parse_location
from . import probes
from .models import Alert, AlertSeverity

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ViewTarget:
    """What the views look at."""
    service_name: str = "geoclue-prometheus-exporter"
    dependency_service: str = "geoclue"
    host: str = "127.0.0.1"
    port: int = 9090
    path: str = "/metrics"


def _timestamp() -> str:
    return datetime.now().astimezone().isoformat()


def _service_state(service_name: str) -> Optional[str]:
    """Active state, or None when systemd cannot be asked."""
    try:
        return service_check.get_active_state(service_name)
    except (subprocess.TimeoutExpired, OSError) as e:
        logger.debug(f"Cannot query {service_name}: {e}")
        return None


def _enabled_state(service_name: str) -> Optional[str]:
    try:
        return service_check.get_enabled_state(service_name)
    except (subprocess.TimeoutExpired, OSError) as e:
        logger.debug(f"Cannot query {service_name}: {e}")
        return None


def _fetch(target: ViewTarget) -> Optional[str]:
    try:
        return probes.fetch_metrics(target.host, target.port, target.path,
                                    timeout=probes.HEALTH_FETCH_TIMEOUT)
    except GeoclueMcpError as e:
        logger.debug(f"Metrics endpoint unavailable: {e.message}")
        return None


@dataclass(frozen=True)
class ServiceObservation:
    """
    One round of external queries shared by every part of a view.

    ``state`` / ``dependency`` are None when systemd cannot be asked,
    ``metrics`` is None when the endpoint is unreachable.
    """
    state: Optional[str]
    dependency: Optional[str]
    metrics: Optional[str]


def observe(target: ViewTarget) -> ServiceObservation:
    return ServiceObservation(
        state=_service_state(target.service_name),
        dependency=_service_state(target.dependency_service),
        metrics=_fetch(target),
    )


def build_alerts(target: ViewTarget, state: Optional[str], dependency: Optional[str],
                 metrics: Optional[str]) -> List[Alert]:
    """Alerts for already collected observations, most severe conditions first."""
    alerts: List[Alert] = []

    if state is None:
        alerts.append(Alert(AlertSeverity.CRITICAL, "Cannot determine service status"))
    elif state != 'active':
        alerts.append(Alert(AlertSeverity.CRITICAL, f"Service is {state}"))

    if metrics is None:
        alerts.append(Alert(AlertSeverity.CRITICAL, "Metrics endpoint not accessible"))
    elif not has_geoclue_metrics(metrics):
        alerts.append(Alert(AlertSeverity.WARNING, "Metrics endpoint has no geoclue metrics"))

    if dependency != 'active':
        alerts.append(Alert(
            AlertSeverity.WARNING,
            f"GeoClue dependency {target.dependency_service} is {dependency or 'unknown'}"
        ))

    return alerts


def _alerts_for(target: ViewTarget, seen: ServiceObservation) -> List[Dict[str, Any]]:
    alerts = build_alerts(target, state=seen.state, dependency=seen.dependency, metrics=seen.metrics)
    return [a.to_dict() for a in alerts]


def alerts_view(target: ViewTarget) -> Dict[str, Any]:
    return {
        'alerts': _alerts_for(target, observe(target)),
        'timestamp': _timestamp(),
    }


def dashboard_view(target: ViewTarget) -> Dict[str, Any]:
    seen = observe(target)
    metrics = seen.metrics
    dashboard: Dict[str, Any] = {
        'timestamp': _timestamp(),
        'service': target.service_name,
        'status': {
            'service_active': seen.state == 'active',
            'service_enabled': _enabled_state(target.service_name) == 'enabled',
            'dependency_active': seen.dependency == 'active',
        },
        'metrics': {
            'endpoint_available': metrics is not None,
            'has_geoclue_data': bool(metrics) and has_geoclue_metrics(metrics),
        },
        'alerts': _alerts_for(target, seen),
    }
    if metrics:
        dashboard['metrics']['location'] = parse_location(metrics)
    return dashboard


def performance_view(target: ViewTarget) -> Dict[str, Any]:
    performance: Dict[str, Any] = {
        'timestamp': _timestamp(),
        'cpu_usage': None,
        'memory_usage': None,
        'response_time': None,
    }

    try:
        pid = service_check.get_main_pid(target.service_name)
        if pid:
            performance['cpu_usage'], performance['memory_usage'] = probes.process_usage(pid)
    except (subprocess.TimeoutExpired, OSError, psutil.Error) as e:
        logger.debug(f"No process usage for {target.service_name}: {e}")

    start = time.monotonic()
    if _fetch(target) is not None:
        performance['response_time'] = round((time.monotonic() - start) * 1000, 1)

    return performance
