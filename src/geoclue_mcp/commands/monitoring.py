"""
Monitoring Commands

Health checks, service state, resource usage, connectivity and log
analysis for the exporter service.
"""

import logging
import subprocess
from typing import List

import psutil

from ..core.diagnostics import probes
from ..core.diagnostics.engine import DEFAULT_DEPENDENCY, DEFAULT_SERVICE, run_health_check
from ..core.diagnostics.log_analyzer import analyze_logs
from ..core.diagnostics.models import CheckStatus, HealthStatus
from ..utils import service_check
from .base import CommandResult

logger = logging.getLogger(__name__)

SECTION_SEPARATOR = "\n\n---\n\n"


def health_check(host: str = "127.0.0.1", port: int = 9090, include_metrics: bool = True,
                 service_name: str = DEFAULT_SERVICE,
                 dependency_service: str = DEFAULT_DEPENDENCY,
                 metrics_path: str = "/metrics") -> CommandResult:
    """Run every health probe and report the rollup."""
    report = run_health_check(
        host=host,
        port=port,
        include_metrics=include_metrics,
        service_name=service_name,
        dependency_service=dependency_service,
        metrics_path=metrics_path,
    )
    if report.overall_status == HealthStatus.HEALTHY:
        return CommandResult.ok(report.to_text(), data=report.to_dict())
    return CommandResult.warn(report.to_text(), data=report.to_dict())


def service_status(service_name: str = DEFAULT_SERVICE) -> CommandResult:
    """systemctl status, is-enabled and is-active output for one unit."""
    service_check.validate_unit_name(service_name)
    queries = [
        (f"systemctl status {service_name} --no-pager", service_check.get_status_text),
        (f"systemctl is-enabled {service_name}", service_check.get_enabled_state),
        (f"systemctl is-active {service_name}", service_check.get_active_state),
    ]

    sections = []
    for label, query in queries:
        try:
            output = query(service_name)
        except FileNotFoundError:
            output = "systemctl not available"
        except subprocess.TimeoutExpired:
            output = "Timeout querying systemd"
        except OSError as e:
            output = str(e)
        sections.append(f"Command: {label}\nOutput: {output}")

    return CommandResult.ok(
        f"Service Status for {service_name}:\n\n" + SECTION_SEPARATOR.join(sections),
        data={'service_name': service_name}
    )


def system_resources(service_name: str = DEFAULT_SERVICE) -> CommandResult:
    """Process and host resource usage; a stopped service is reported, not failed."""
    snapshot = probes.probe_resources(service_name)
    return CommandResult.ok(snapshot.to_text(), data=snapshot.to_dict())


def network_connectivity(host: str = "127.0.0.1", port: int = 9090, timeout: int = 5000) -> CommandResult:
    """
    TCP reachability of host:port, plus localhost and listening-socket checks.

    Args:
        timeout: Connection timeout in milliseconds
    """
    timeout_s = probes.bounded_timeout(timeout / 1000.0)
    outcome = probes.probe_connectivity(host, port, timeout_s)
    if outcome.status != CheckStatus.PASS:
        return CommandResult.warn(
            f"Network Connectivity Test:\n\n❌ Connection to {host}:{port} failed: "
            f"{outcome.details['error']}",
            data=outcome.to_dict()
        )

    results: List[str] = [f"✅ Connection to {host}:{port} successful ({outcome.value:g}ms)"]

    if host == '127.0.0.1':
        localhost = probes.probe_connectivity('localhost', port, timeout_s, name='localhost')
        if localhost.status == CheckStatus.PASS:
            results.append("✅ localhost connection successful")
        else:
            results.append(f"⚠️ localhost connection failed: {localhost.message}")

    try:
        if probes.is_port_listening(port):
            results.append(f"✅ Port {port} is listening")
        else:
            results.append(f"⚠️ Port {port} not found among listening sockets")
    except (psutil.Error, OSError) as e:
        results.append(f"⚠️ Could not check port status: {e}")

    return CommandResult.ok(
        "Network Connectivity Test:\n\n" + "\n".join(results),
        data=outcome.to_dict()
    )


def log_analysis(service_name: str = DEFAULT_SERVICE, lines: int = 50) -> CommandResult:
    """
    Classify the unit's most recent journal lines.

    LogUnavailable propagates when the journal cannot be queried.
    """
    text = probes.probe_logs(service_name, lines)
    summary = analyze_logs(text, lines)
    return CommandResult.ok(summary.to_text(service_name), data=summary.to_dict())


def geoclue_dependency_check(dependency_service: str = DEFAULT_DEPENDENCY) -> CommandResult:
    """GeoClue unit state and its D-Bus registration, each checked on its own."""
    outcome = probes.probe_service_state(dependency_service, optional=True, name='geoclue')
    sections = [f"GeoClue Service: {outcome.to_line()}"]

    try:
        sections.append(f"GeoClue Service Status:\n{service_check.get_status_text(dependency_service)}")
    except (subprocess.TimeoutExpired, OSError) as e:
        sections.append(f"GeoClue service check failed: {e}")

    dbus_found = None
    try:
        names = service_check.list_bus_names('geoclue')
        dbus_found = bool(names)
        listing = "\n".join(names) if names else "GeoClue not found on D-Bus"
        sections.append(f"D-Bus Services:\n{listing}")
    except (subprocess.TimeoutExpired, OSError) as e:
        sections.append(f"D-Bus check failed: {e}")

    return CommandResult.ok(
        "GeoClue Dependency Check:\n\n" + SECTION_SEPARATOR.join(sections),
        data={'service': outcome.to_dict(), 'dbus_registered': dbus_found}
    )
