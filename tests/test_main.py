"""
Tests for the geoclue-mcp command line.

Run: python3 -m pytest tests/test_main.py -v
"""

import json
from unittest.mock import patch

import pytest

from geoclue_mcp import main as cli
from geoclue_mcp.core.diagnostics.models import CheckStatus, ProbeOutcome


@pytest.fixture(autouse=True)
def quiet_logging():
    with patch('geoclue_mcp.main.setup_logging'):
        yield


def _patch_probes(network=CheckStatus.PASS, service=CheckStatus.PASS):
    return [
        patch('geoclue_mcp.core.diagnostics.probes.probe_connectivity',
              return_value=ProbeOutcome('network', network, "network")),
        patch('geoclue_mcp.core.diagnostics.probes.probe_service_state',
              return_value=ProbeOutcome('service', service, "service")),
    ]


class TestParser:

    def test_serve_requires_known_role(self):
        with pytest.raises(SystemExit):
            cli.build_parser().parse_args(['serve', 'billing'])

    def test_health_flags(self):
        args = cli.build_parser().parse_args(['health', '--port', '9100', '--no-metrics', '--json'])

        assert args.port == 9100
        assert args.no_metrics is True
        assert args.json is True


class TestHealthCommand:

    def _run(self, argv, **statuses):
        patches = _patch_probes(**statuses)
        for p in patches:
            p.start()
        try:
            return cli.main(argv)
        finally:
            for p in patches:
                p.stop()

    def test_healthy_exit_code(self, capsys):
        assert self._run(['health', '--no-metrics']) == 0

    def test_degraded_exit_code(self):
        assert self._run(['health', '--no-metrics'], service=CheckStatus.WARN) == 1

    def test_unhealthy_exit_code(self):
        assert self._run(['health', '--no-metrics'], network=CheckStatus.FAIL) == 2

    def test_json_output(self, capsys):
        self._run(['health', '--no-metrics', '--json'])

        report = json.loads(capsys.readouterr().out)
        assert report['overall_status'] == 'healthy'
        assert 'metrics' not in report['checks']


class TestValidateCommand:

    def test_valid_config(self, config_file):
        assert cli.main(['validate', '--config', str(config_file)]) == 0

    def test_invalid_config(self, tmp_path):
        path = tmp_path / "config.json"
        path.write_text(json.dumps({"servers": {"a": {}}}))

        assert cli.main(['validate', '--config', str(path)]) == 1

    def test_unreadable_config(self, tmp_path):
        assert cli.main(['validate', '--config', str(tmp_path / "missing.json")]) == 1


class TestServeCommand:

    def test_serve_builds_requested_role(self):
        with patch('geoclue_mcp.main.run_stdio') as mock_run:
            assert cli.main(['serve', 'monitoring']) == 0

        dispatcher = mock_run.call_args[0][0]
        assert dispatcher.name == 'geoclue-monitoring-server'

    def test_role_entry_points(self):
        with patch('geoclue_mcp.main.run_stdio') as mock_run:
            cli.main_config()

        assert mock_run.call_args[0][0].name == 'geoclue-config-server'


class TestShowConfig:

    def test_show_config(self, capsys):
        assert cli.main(['show-config']) == 0
        assert "service_name" in capsys.readouterr().out
