"""Environment configuration loader"""

import logging
import os
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Dict, Optional, Tuple

from rich.console import Console
from rich.table import Table

logger = logging.getLogger(__name__)

# Default configuration values
DEFAULTS = {
    # Exporter under observation
    'GEOCLUE_MCP_SERVICE_NAME': 'geoclue-prometheus-exporter',
    'GEOCLUE_MCP_DEPENDENCY_SERVICE': 'geoclue',
    'GEOCLUE_MCP_METRICS_HOST': '127.0.0.1',
    'GEOCLUE_MCP_METRICS_PORT': '9090',
    'GEOCLUE_MCP_METRICS_PATH': '/metrics',

    # Configuration sources
    'GEOCLUE_MCP_CONFIG_PATH': '~/.config/geoclue-mcp/config.json',
    'GEOCLUE_MCP_DEPLOYMENT_PATHS': (
        'nixos-module.nix:nixos-module-alloy.nix:'
        '/etc/nixos/modules/geoclue-prometheus-exporter.nix'
    ),

    # Logging
    'GEOCLUE_MCP_LOG_LEVEL': 'INFO',
    'GEOCLUE_MCP_LOG_FILE': '',
}


def find_env_file() -> Optional[Path]:
    """Find the .env file in standard locations"""
    search_paths = [
        Path.cwd() / '.env',
        Path.home() / '.config' / 'geoclue-mcp' / '.env',
    ]

    for path in search_paths:
        if path.exists():
            return path

    return None


def load_env_file(env_path: Optional[Path] = None) -> Dict[str, str]:
    """Load environment variables from a .env file

    Variables already present in the environment win over the file.

    Args:
        env_path: Optional path to .env file. If None, auto-discovers.

    Returns:
        Dictionary of variables read from the file
    """
    loaded_vars = {}

    if env_path is None:
        env_path = find_env_file()

    if env_path is None or not env_path.exists():
        return loaded_vars

    try:
        with open(env_path, 'r') as f:
            for line in f:
                line = line.strip()

                # Skip empty lines and comments
                if not line or line.startswith('#') or '=' not in line:
                    continue

                key, _, value = line.partition('=')
                key = key.strip()
                value = value.strip()

                # Remove quotes if present
                if len(value) >= 2 and value[0] in ('"', "'") and value[-1] == value[0]:
                    value = value[1:-1]

                if key:
                    loaded_vars[key] = value
                    os.environ.setdefault(key, value)

    except OSError as e:
        logger.warning(f"Could not load .env file {env_path}: {e}")

    return loaded_vars


def get_config(key: str, default: Optional[str] = None) -> str:
    """Get configuration value from environment or defaults

    Priority:
    1. Environment variable
    2. Provided default
    3. Built-in default
    """
    if key in os.environ:
        return os.environ[key]
    if default is not None:
        return default
    return DEFAULTS.get(key, '')


def get_config_int(key: str, default: int = 0) -> int:
    """Get integer configuration value"""
    value = get_config(key, str(default))
    try:
        return int(value)
    except ValueError:
        logger.warning(f"{key}={value!r} is not an integer, using {default}")
        return default


@dataclass(frozen=True)
class Settings:
    """Effective settings for one server process."""
    service_name: str = DEFAULTS['GEOCLUE_MCP_SERVICE_NAME']
    dependency_service: str = DEFAULTS['GEOCLUE_MCP_DEPENDENCY_SERVICE']
    metrics_host: str = DEFAULTS['GEOCLUE_MCP_METRICS_HOST']
    metrics_port: int = int(DEFAULTS['GEOCLUE_MCP_METRICS_PORT'])
    metrics_path: str = DEFAULTS['GEOCLUE_MCP_METRICS_PATH']
    config_path: Path = Path(DEFAULTS['GEOCLUE_MCP_CONFIG_PATH']).expanduser()
    deployment_paths: Tuple[str, ...] = tuple(DEFAULTS['GEOCLUE_MCP_DEPLOYMENT_PATHS'].split(':'))
    log_level: str = DEFAULTS['GEOCLUE_MCP_LOG_LEVEL']
    log_file: Optional[str] = None

    @classmethod
    def from_env(cls, env_path: Optional[Path] = None) -> 'Settings':
        load_env_file(env_path)
        deployment = get_config('GEOCLUE_MCP_DEPLOYMENT_PATHS')
        return cls(
            service_name=get_config('GEOCLUE_MCP_SERVICE_NAME'),
            dependency_service=get_config('GEOCLUE_MCP_DEPENDENCY_SERVICE'),
            metrics_host=get_config('GEOCLUE_MCP_METRICS_HOST'),
            metrics_port=get_config_int('GEOCLUE_MCP_METRICS_PORT',
                                        int(DEFAULTS['GEOCLUE_MCP_METRICS_PORT'])),
            metrics_path=get_config('GEOCLUE_MCP_METRICS_PATH'),
            config_path=Path(get_config('GEOCLUE_MCP_CONFIG_PATH')).expanduser(),
            deployment_paths=tuple(p for p in deployment.split(':') if p),
            log_level=get_config('GEOCLUE_MCP_LOG_LEVEL').upper(),
            log_file=get_config('GEOCLUE_MCP_LOG_FILE') or None,
        )


def show_settings(settings: Settings, console: Optional[Console] = None):
    """Display effective settings"""
    console = console or Console()
    table = Table(title="geoclue-mcp Settings", show_header=True, header_style="bold cyan")
    table.add_column("Setting", style="cyan")
    table.add_column("Value")

    for f in fields(settings):
        value = getattr(settings, f.name)
        if isinstance(value, tuple):
            value = "\n".join(value) or "(none)"
        table.add_row(f.name, str(value) if value is not None else "(none)")

    console.print(table)
