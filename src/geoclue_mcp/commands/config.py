"""
Configuration Commands

MCP config document management and read-only views of the exporter's
systemd and deployment configuration.
"""

import json
import logging
import subprocess
from typing import Any, Dict, Iterable, List

import psutil

from ..config.mcp_config import ConfigManager, ValidationFinding, ValidationReport
from ..config.service_files import read_deployment_config, read_systemd_unit
from ..core.diagnostics.engine import DEFAULT_SERVICE
from ..errors import ConfigLoadFailure, InvalidParameter
from ..utils import service_check
from .base import CommandResult

logger = logging.getLogger(__name__)

CONFIG_TYPES = ('systemd', 'deployment', 'mcp', 'all')
VALIDATION_TYPES = ('systemd', 'deployment', 'mcp')

DEPLOYMENT_MISSING = "Deployment configuration files not found in expected locations"


def get_service_config(manager: ConfigManager, config_type: str = "all",
                       service_name: str = DEFAULT_SERVICE,
                       deployment_paths: Iterable[str] = ()) -> CommandResult:
    """Collect the requested configuration views; each section fails on its own."""
    if config_type not in CONFIG_TYPES:
        raise InvalidParameter(f"config_type must be one of: {', '.join(CONFIG_TYPES)}")

    config_data: Dict[str, Any] = {}

    if config_type in ('all', 'mcp'):
        try:
            config_data['mcp'] = manager.load().to_dict()
        except ConfigLoadFailure as e:
            config_data['mcp'] = {'error': e.message}

    if config_type in ('all', 'systemd'):
        config_data['systemd'] = read_systemd_unit(service_name)

    if config_type in ('all', 'deployment'):
        config_data['deployment'] = read_deployment_config(deployment_paths)

    return CommandResult.ok(
        f"Service Configuration ({config_type}):\n\n{json.dumps(config_data, indent=2)}",
        data=config_data
    )


def update_mcp_config(manager: ConfigManager, server_name: str, config: Dict[str, Any]) -> CommandResult:
    """
    Merge ``config`` into an existing server entry and persist.

    UnknownServer, ConfigValidationFailure and ConfigPersistFailure
    propagate to the dispatcher.
    """
    document = manager.update_server(server_name, config)
    entry = document.servers[server_name].to_dict()
    return CommandResult.ok(
        f"Successfully updated MCP configuration for server: {server_name}\n\n"
        f"Updated config:\n{json.dumps(entry, indent=2)}",
        data={'server_name': server_name, 'config': entry}
    )


def get_service_status(service_name: str = DEFAULT_SERVICE) -> CommandResult:
    """``systemctl status`` output; an inactive unit is still a normal answer."""
    try:
        status = service_check.get_status_text(service_name)
    except FileNotFoundError:
        return CommandResult.fail("systemctl not available", kind="endpoint_error")
    except subprocess.TimeoutExpired:
        return CommandResult.fail(f"Timeout getting status of {service_name}", kind="probe_timeout")

    return CommandResult.ok(
        f"Service Status for {service_name}:\n\n{status}",
        data={'service_name': service_name},
        raw=status
    )


def get_service_args(service_name: str = DEFAULT_SERVICE) -> CommandResult:
    """Command line of the running service process."""
    try:
        pid = service_check.get_main_pid(service_name)
    except FileNotFoundError:
        return CommandResult.fail("systemctl not available", kind="endpoint_error")
    except subprocess.TimeoutExpired:
        return CommandResult.fail(f"Timeout resolving PID of {service_name}", kind="probe_timeout")

    if not pid:
        return CommandResult.ok(
            "Service is not currently running. Check systemd service configuration "
            "for configured arguments.",
            data={'running': False}
        )

    try:
        cmdline = psutil.Process(pid).cmdline()
    except psutil.Error as e:
        return CommandResult.fail(f"Failed to get service args: {e}", kind="endpoint_error")

    return CommandResult.ok(
        f"Current Service Process (PID {pid}):\n\n{' '.join(cmdline)}",
        data={'running': True, 'pid': pid, 'args': cmdline}
    )


def _validate_systemd(service_name: str) -> ValidationReport:
    text = read_systemd_unit(service_name)
    findings: List[ValidationFinding] = []
    found = '[Service]' in text or 'ExecStart' in text
    findings.append(ValidationFinding(
        'unit_present',
        "Systemd unit found" if found else "Systemd unit not found",
        found
    ))
    has_exec = any(line.strip().startswith('ExecStart=') for line in text.splitlines())
    findings.append(ValidationFinding(
        'exec_start',
        "ExecStart configured" if has_exec else "Missing ExecStart",
        has_exec
    ))
    return ValidationReport(findings)


def _validate_deployment(deployment_paths: Iterable[str]) -> ValidationReport:
    text = read_deployment_config(deployment_paths)
    found = text != DEPLOYMENT_MISSING
    return ValidationReport([ValidationFinding(
        'deployment_present',
        "Deployment module found" if found else DEPLOYMENT_MISSING,
        found
    )])


def validate_config(manager: ConfigManager, config_type: str = "mcp",
                    service_name: str = DEFAULT_SERVICE,
                    deployment_paths: Iterable[str] = ()) -> CommandResult:
    """
    Evaluate every rule for one configuration type.

    Violations are reported in the result text and data, not raised.
    """
    if config_type not in VALIDATION_TYPES:
        raise InvalidParameter(f"config_type must be one of: {', '.join(VALIDATION_TYPES)}")

    if config_type == 'mcp':
        try:
            report = manager.validate()
        except ConfigLoadFailure as e:
            report = ValidationReport([ValidationFinding('document', e.message, False)])
    elif config_type == 'systemd':
        report = _validate_systemd(service_name)
    else:
        report = _validate_deployment(deployment_paths)

    if report.is_valid:
        return CommandResult.ok(report.to_text(config_type), data=report.to_dict())
    return CommandResult.warn(report.to_text(config_type), data=report.to_dict())
