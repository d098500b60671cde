"""
Service Manager and Journal Queries

Thin wrappers around systemctl, journalctl and busctl. Every call uses an
argument vector with a timeout; unit names coming from callers are checked
against UNIT_NAME_PATTERN before any child process is started.

Usage:
    from geoclue_mcp.utils.service_check import get_active_state, get_main_pid

    state = get_active_state('geoclue-prometheus-exporter')
    pid = get_main_pid('geoclue-prometheus-exporter')
"""

import re
import subprocess
import logging
from typing import List, Optional

from ..errors import InvalidParameter, LogUnavailable

logger = logging.getLogger(__name__)

UNIT_NAME_PATTERN = re.compile(r'^[A-Za-z0-9][A-Za-z0-9@._:-]*$')
MAX_UNIT_NAME = 256

SYSTEMCTL_TIMEOUT = 5
STATUS_TIMEOUT = 10
JOURNAL_TIMEOUT = 10

UNIT_FILE_PATHS = [
    '/etc/systemd/system',
    '/lib/systemd/system',
    '/usr/lib/systemd/system',
]


def validate_unit_name(name: str) -> str:
    """
    Reject unit names that could be mistaken for options or paths.

    Returns:
        The name unchanged

    Raises:
        InvalidParameter: name is empty, too long, or has unexpected characters
    """
    if not isinstance(name, str) or not name:
        raise InvalidParameter("service_name must be a non-empty string")
    if len(name) > MAX_UNIT_NAME or not UNIT_NAME_PATTERN.match(name):
        raise InvalidParameter(f"Invalid service name: {name!r}")
    return name


def _systemctl(args: List[str], timeout: int = SYSTEMCTL_TIMEOUT) -> subprocess.CompletedProcess:
    return subprocess.run(
        ['systemctl'] + args,
        capture_output=True,
        text=True,
        timeout=timeout
    )


def get_active_state(service_name: str) -> str:
    """
    Return the systemd active state ("active", "inactive", "failed", ...).

    Raises:
        InvalidParameter: bad unit name
        subprocess.TimeoutExpired, FileNotFoundError, OSError: query failed
    """
    validate_unit_name(service_name)
    result = _systemctl(['is-active', service_name])
    return result.stdout.strip() or "unknown"


def get_enabled_state(service_name: str) -> str:
    """Return the unit file state ("enabled", "disabled", "static", ...)."""
    validate_unit_name(service_name)
    result = _systemctl(['is-enabled', service_name])
    return result.stdout.strip() or "unknown"


def get_main_pid(service_name: str) -> Optional[int]:
    """
    Resolve the main process id of a unit.

    Returns:
        The PID, or None when the unit has no running main process
    """
    validate_unit_name(service_name)
    result = _systemctl(['show', service_name, '--property=MainPID', '--value'])
    value = result.stdout.strip()
    try:
        pid = int(value)
    except ValueError:
        return None
    return pid if pid > 0 else None


def get_status_text(service_name: str) -> str:
    """Full ``systemctl status`` output (non-zero exit is normal for inactive units)."""
    validate_unit_name(service_name)
    result = _systemctl(['status', service_name, '--no-pager'], timeout=STATUS_TIMEOUT)
    text = result.stdout
    if result.stderr.strip():
        text = f"{text}\nErrors:\n{result.stderr}"
    return text


def get_unit_file_text(service_name: str) -> Optional[str]:
    """``systemctl cat`` output, or None when systemd knows no such unit."""
    validate_unit_name(service_name)
    unit = service_name if service_name.endswith('.service') else f"{service_name}.service"
    result = _systemctl(['cat', unit], timeout=STATUS_TIMEOUT)
    if result.returncode != 0:
        return None
    return result.stdout


def get_journal_tail(service_name: str, lines: int) -> str:
    """
    Retrieve the last ``lines`` journal lines of a unit.

    Raises:
        LogUnavailable: journalctl missing, timed out, or refused the query
    """
    validate_unit_name(service_name)
    try:
        result = subprocess.run(
            ['journalctl', '-u', service_name, '-n', str(int(lines)), '--no-pager', '-q'],
            capture_output=True,
            text=True,
            timeout=JOURNAL_TIMEOUT
        )
    except FileNotFoundError:
        raise LogUnavailable("journalctl not available")
    except subprocess.TimeoutExpired:
        raise LogUnavailable(f"Timeout retrieving logs for {service_name}")
    except OSError as e:
        raise LogUnavailable(f"Error retrieving logs for {service_name}: {e}")

    if result.returncode != 0:
        detail = result.stderr.strip() or f"exit code {result.returncode}"
        raise LogUnavailable(f"No logs available for {service_name}: {detail}")
    return result.stdout


def list_bus_names(fragment: str) -> List[str]:
    """
    Return ``busctl list`` lines containing ``fragment``.

    Raises:
        FileNotFoundError, subprocess.TimeoutExpired, OSError: busctl unusable
    """
    result = subprocess.run(
        ['busctl', 'list', '--no-pager'],
        capture_output=True,
        text=True,
        timeout=SYSTEMCTL_TIMEOUT
    )
    return [line for line in result.stdout.splitlines() if fragment in line]
