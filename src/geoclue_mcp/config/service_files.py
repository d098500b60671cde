"""Read-only views of the exporter's systemd unit and deployment modules."""

import logging
import subprocess
from pathlib import Path
from typing import Iterable, List

from ..errors import ConfigLoadFailure
from ..core.diagnostics.probes import read_text_file
from ..utils import service_check

logger = logging.getLogger(__name__)


def read_systemd_unit(service_name: str,
                      search_paths: Iterable[str] = tuple(service_check.UNIT_FILE_PATHS)) -> str:
    """
    Unit file text: first match in ``search_paths``, then ``systemctl cat``.

    Returns a "not found" message instead of raising when neither works.
    """
    service_check.validate_unit_name(service_name)
    unit = service_name if service_name.endswith('.service') else f"{service_name}.service"

    for directory in search_paths:
        try:
            return read_text_file(Path(directory) / unit)
        except ConfigLoadFailure:
            continue

    try:
        text = service_check.get_unit_file_text(service_name)
    except (subprocess.TimeoutExpired, OSError) as e:
        return f"Systemd service configuration not found or accessible: {e}"
    if text is None:
        return "Systemd service configuration not found or accessible"
    return text


def read_deployment_config(paths: Iterable[str]) -> str:
    """Concatenate every readable deployment module, each under a header."""
    sections: List[str] = []
    for path in paths:
        try:
            content = read_text_file(Path(path).expanduser())
        except ConfigLoadFailure as e:
            logger.debug(e.message)
            continue
        sections.append(f"=== {path} ===\n{content}")

    if not sections:
        return "Deployment configuration files not found in expected locations"
    return "\n\n".join(sections)
