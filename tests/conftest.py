"""
Shared fixtures.

Run: python3 -m pytest tests/ -v
"""

import json
import sys
from pathlib import Path

import pytest

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from geoclue_mcp.utils.env_config import Settings


SAMPLE_CONFIG = {
    "mcpVersion": "2024-11-05",
    "servers": {
        "geoclue-metrics": {
            "command": "geoclue-mcp-metrics",
            "args": [],
            "env": {"GEOCLUE_MCP_METRICS_PORT": "9090"},
        },
        "geoclue-monitoring": {
            "command": "geoclue-mcp-monitoring",
        },
    },
    "description": "geoclue exporter MCP servers",
}

SAMPLE_METRICS = """# HELP up Exporter is up
# TYPE up gauge
up 1
# HELP geoclue_latitude Latitude in degrees
# TYPE geoclue_latitude gauge
geoclue_latitude 52.5
geoclue_longitude 13.4
geoclue_accuracy{source="wifi"} 25
process_cpu_seconds_total 1.5
"""


@pytest.fixture
def config_file(tmp_path):
    """A valid MCP config document on disk."""
    path = tmp_path / "config.json"
    path.write_text(json.dumps(SAMPLE_CONFIG, indent=2) + "\n")
    return path


@pytest.fixture
def settings(tmp_path, config_file):
    """Settings pointing at the temporary config document."""
    deployment = tmp_path / "nixos-module.nix"
    deployment.write_text("{ services.geoclue-prometheus-exporter.enable = true; }\n")
    return Settings(
        config_path=config_file,
        deployment_paths=(str(deployment), str(tmp_path / "missing.nix")),
    )
