"""
Probe Executors

Each probe performs one bounded external check. Probes share no state and
release every socket, HTTP response and file they open on all exit paths.

Connectivity, metrics and service-state probes return a ProbeOutcome; the
lower-level helpers (open_connection, fetch_metrics) raise typed errors
from geoclue_mcp.errors so callers can render them however they need.
"""

import os
import socket
import subprocess
import time
import logging
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

import psutil
import requests

from ...errors import (
    ConfigLoadFailure,
    EndpointError,
    GeoclueMcpError,
    InvalidParameter,
    ProbeRefused,
    ProbeTimeout,
)
from ...utils import service_check
from ..exporter import GEOCLUE_PREFIX
from .models import CheckStatus, ConnectionFailure, ProbeOutcome, ResourceSnapshot

logger = logging.getLogger(__name__)

CONNECT_TIMEOUT = 5.0
MAX_CONNECT_TIMEOUT = 30.0
HEALTH_FETCH_TIMEOUT = 10.0
METRICS_FETCH_TIMEOUT = 30.0
MAX_LOG_LINES = 1000
CPU_SAMPLE_INTERVAL = 0.1


def _elapsed_ms(start: float) -> float:
    return round((time.monotonic() - start) * 1000, 1)


def bounded_timeout(timeout: float) -> float:
    """Clamp a timeout in seconds to (0, MAX_CONNECT_TIMEOUT]."""
    if timeout is None or timeout <= 0:
        raise InvalidParameter(f"timeout must be positive, got {timeout}")
    return min(float(timeout), MAX_CONNECT_TIMEOUT)


def _validate_port(port: int) -> int:
    if not isinstance(port, int) or isinstance(port, bool) or not 0 < port < 65536:
        raise InvalidParameter(f"port must be between 1 and 65535, got {port!r}")
    return port


# === Connectivity ===

def open_connection(host: str, port: int, timeout: float = CONNECT_TIMEOUT) -> float:
    """
    Open and immediately close a TCP connection.

    Returns:
        Connect time in milliseconds

    Raises:
        ProbeTimeout: no answer before ``timeout`` seconds
        ProbeRefused: the port is closed
        EndpointError: any other socket failure (unresolvable host, ...)
    """
    _validate_port(port)
    timeout = bounded_timeout(timeout)
    start = time.monotonic()
    sock = None
    try:
        sock = socket.create_connection((host, port), timeout=timeout)
        return _elapsed_ms(start)
    except socket.timeout:
        raise ProbeTimeout(f"Connection timeout after {timeout:g}s")
    except ConnectionRefusedError as e:
        raise ProbeRefused(f"Connection refused: {e.strerror or e}")
    except OSError as e:
        raise EndpointError(f"Connection failed: {e}")
    finally:
        if sock is not None:
            sock.close()


def probe_connectivity(host: str, port: int, timeout: float = CONNECT_TIMEOUT,
                       name: str = "network") -> ProbeOutcome:
    """PASS iff a TCP connection to host:port completes before the timeout."""
    start = time.monotonic()
    try:
        elapsed = open_connection(host, port, timeout)
    except ProbeTimeout as e:
        reason = ConnectionFailure.TIMEOUT
        error = e
    except ProbeRefused as e:
        reason = ConnectionFailure.REFUSED
        error = e
    except EndpointError as e:
        reason = ConnectionFailure.OTHER
        error = e
    else:
        return ProbeOutcome(
            name=name,
            status=CheckStatus.PASS,
            message=f"Network connectivity OK ({host}:{port}, {elapsed:g}ms)",
            value=elapsed,
            details={'host': host, 'port': port},
        )

    return ProbeOutcome(
        name=name,
        status=CheckStatus.FAIL,
        message=f"Network connectivity failed: {error.message}",
        value=_elapsed_ms(start),
        details={'host': host, 'port': port, 'reason': reason.value, 'error': error.message},
    )


def is_port_listening(port: int) -> bool:
    """True if a local TCP socket is in LISTEN state on ``port``."""
    _validate_port(port)
    for conn in psutil.net_connections(kind='tcp'):
        if conn.status == psutil.CONN_LISTEN and conn.laddr and conn.laddr.port == port:
            return True
    return False


# === Metrics endpoint ===

def metrics_url(host: str, port: int, path: str = "/metrics") -> str:
    _validate_port(port)
    if not isinstance(path, str) or not path.startswith('/'):
        raise InvalidParameter(f"path must start with '/', got {path!r}")
    if ':' in host and not host.startswith('['):
        host = f"[{host}]"
    return f"http://{host}:{port}{path}"


def fetch_metrics(host: str, port: int, path: str = "/metrics",
                  timeout: float = METRICS_FETCH_TIMEOUT) -> str:
    """
    GET the metrics endpoint.

    Returns:
        Response body

    Raises:
        ProbeTimeout: no response before ``timeout``
        EndpointError: connection error or non-success status
    """
    url = metrics_url(host, port, path)
    logger.debug(f"Fetching metrics from {url}")
    try:
        with requests.get(url, timeout=timeout) as response:
            if not 200 <= response.status_code < 300:
                raise EndpointError(
                    f"HTTP {response.status_code}: {response.reason}",
                    status_code=response.status_code
                )
            return response.text
    except requests.Timeout:
        raise ProbeTimeout("Request timeout")
    except requests.ConnectionError as e:
        raise EndpointError(f"Connection failed: {e}")
    except requests.RequestException as e:
        raise EndpointError(f"Request failed: {e}")


def probe_metrics(host: str, port: int, path: str = "/metrics",
                  timeout: float = HEALTH_FETCH_TIMEOUT,
                  marker: str = GEOCLUE_PREFIX, name: str = "metrics") -> ProbeOutcome:
    """
    PASS when the endpoint answers with a body carrying ``marker``.

    A success response without the marker (an empty body included) is WARN;
    a failed request is FAIL.
    """
    start = time.monotonic()
    try:
        body = fetch_metrics(host, port, path, timeout)
    except (ProbeTimeout, EndpointError) as e:
        return ProbeOutcome(
            name=name,
            status=CheckStatus.FAIL,
            message=f"Metrics check failed: {e.message}",
            value=_elapsed_ms(start),
        )

    elapsed = _elapsed_ms(start)
    if body.strip() and marker in body:
        return ProbeOutcome(
            name=name,
            status=CheckStatus.PASS,
            message=f"Metrics endpoint responding with {marker} metrics",
            value=elapsed,
        )
    return ProbeOutcome(
        name=name,
        status=CheckStatus.WARN,
        message=f"Metrics endpoint responding but no {marker} metrics found",
        value=elapsed,
    )


# === Service manager ===

def probe_service_state(service_name: str, optional: bool = False,
                        name: str = "service") -> ProbeOutcome:
    """
    PASS when the unit is active.

    An inactive or unqueryable unit is FAIL, or WARN when ``optional``
    (dependency services).
    """
    not_ok = CheckStatus.WARN if optional else CheckStatus.FAIL
    service_check.validate_unit_name(service_name)
    try:
        state = service_check.get_active_state(service_name)
    except FileNotFoundError:
        return ProbeOutcome(name=name, status=not_ok,
                            message="Service status check failed: systemctl not available")
    except subprocess.TimeoutExpired:
        return ProbeOutcome(name=name, status=not_ok,
                            message="Service status check failed: systemctl timed out")
    except OSError as e:
        return ProbeOutcome(name=name, status=not_ok,
                            message=f"Service status check failed: {e}")

    try:
        enabled = service_check.get_enabled_state(service_name)
    except (subprocess.TimeoutExpired, OSError):
        enabled = "unknown"

    return ProbeOutcome(
        name=name,
        status=CheckStatus.PASS if state == 'active' else not_ok,
        message=f"{service_name} status: {state}",
        details={'service': service_name, 'active_state': state, 'enabled_state': enabled},
    )


# === Process and host resources ===

def collect_process_stats(pid: int) -> Dict[str, Any]:
    """CPU, memory and uptime of one process (psutil.Error propagates)."""
    proc = psutil.Process(pid)
    cpu = proc.cpu_percent(interval=CPU_SAMPLE_INTERVAL)
    with proc.oneshot():
        mem = proc.memory_info()
        return {
            'pid': pid,
            'ppid': proc.ppid(),
            'command': " ".join(proc.cmdline()) or proc.name(),
            'cpu_percent': round(cpu, 1),
            'memory_percent': round(proc.memory_percent(), 2),
            'rss_kb': mem.rss // 1024,
            'vsz_kb': mem.vms // 1024,
            'uptime_seconds': int(time.time() - proc.create_time()),
        }


def process_usage(pid: int) -> Tuple[float, float]:
    """(cpu_percent, memory_percent) of one process."""
    proc = psutil.Process(pid)
    return round(proc.cpu_percent(interval=CPU_SAMPLE_INTERVAL), 1), round(proc.memory_percent(), 2)


def _collect_load() -> Dict[str, Any]:
    load1, load5, load15 = os.getloadavg()
    return {'load_1m': round(load1, 2), 'load_5m': round(load5, 2), 'load_15m': round(load15, 2)}


def _collect_memory() -> Dict[str, Any]:
    mem = psutil.virtual_memory()
    return {
        'memory_total_mb': mem.total // (1024 * 1024),
        'memory_available_mb': mem.available // (1024 * 1024),
        'memory_percent': mem.percent,
    }


def _collect_disk(path: str = '/') -> Dict[str, Any]:
    disk = psutil.disk_usage(path)
    return {
        'disk_total_gb': round(disk.total / (1024 ** 3), 1),
        'disk_free_gb': round(disk.free / (1024 ** 3), 1),
        'disk_percent': disk.percent,
    }


HOST_COLLECTORS = (
    ('load', _collect_load),
    ('memory', _collect_memory),
    ('disk', _collect_disk),
)


def probe_resources(service_name: str) -> ResourceSnapshot:
    """
    Process and host resource usage of a service.

    No main PID yields a snapshot with ``running=False``; that is not a
    failure. Every section is collected independently and its error is
    recorded inline.
    """
    service_check.validate_unit_name(service_name)
    snapshot = ResourceSnapshot(service_name=service_name)

    pid = None
    try:
        pid = service_check.get_main_pid(service_name)
    except (subprocess.TimeoutExpired, OSError) as e:
        snapshot.errors['process'] = f"Failed to get process information: {e}"

    if pid:
        snapshot.pid = pid
        snapshot.running = True
        try:
            snapshot.process = collect_process_stats(pid)
        except psutil.Error as e:
            snapshot.errors['process'] = f"Failed to inspect PID {pid}: {e}"

    for section, collector in HOST_COLLECTORS:
        try:
            snapshot.host.update(collector())
        except (OSError, psutil.Error) as e:
            snapshot.errors[section] = str(e)

    return snapshot


# === Logs and files ===

def probe_logs(service_name: str, line_count: int = 50) -> str:
    """
    Last ``line_count`` journal lines of a unit.

    Raises:
        InvalidParameter: line_count out of range
        LogUnavailable: no log backend for the unit
    """
    if not isinstance(line_count, int) or not 0 < line_count <= MAX_LOG_LINES:
        raise InvalidParameter(f"lines must be between 1 and {MAX_LOG_LINES}, got {line_count!r}")
    return service_check.get_journal_tail(service_name, line_count)


def read_text_file(path) -> str:
    """
    Read a UTF-8 text file.

    Raises:
        ConfigLoadFailure: missing or unreadable
    """
    try:
        with open(Path(path), 'r', encoding='utf-8') as f:
            return f.read()
    except (OSError, UnicodeDecodeError) as e:
        raise ConfigLoadFailure(f"Failed to read {path}: {e}")


def describe_error(exc: Exception) -> str:
    """Message text for a probe failure of any kind."""
    if isinstance(exc, GeoclueMcpError):
        return exc.message
    return str(exc) or exc.__class__.__name__
