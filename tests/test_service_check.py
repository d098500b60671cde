"""
Tests for systemd / journal query wrappers.

Run: python3 -m pytest tests/test_service_check.py -v
"""

import pytest
import subprocess
from unittest.mock import patch, MagicMock

from geoclue_mcp.errors import InvalidParameter, LogUnavailable
from geoclue_mcp.utils.service_check import (
    validate_unit_name,
    get_active_state,
    get_main_pid,
    get_status_text,
    get_unit_file_text,
    get_journal_tail,
    list_bus_names,
)


def _completed(stdout="", stderr="", returncode=0):
    result = MagicMock()
    result.stdout = stdout
    result.stderr = stderr
    result.returncode = returncode
    return result


class TestValidateUnitName:
    """Tests for validate_unit_name."""

    @pytest.mark.parametrize("name", [
        "geoclue-prometheus-exporter",
        "geoclue",
        "getty@tty1.service",
        "dbus-org.freedesktop.GeoClue2",
    ])
    def test_accepts_unit_names(self, name):
        assert validate_unit_name(name) == name

    @pytest.mark.parametrize("name", [
        "",
        "--all",
        "../etc/passwd",
        "foo bar",
        "foo;rm -rf /",
        "a" * 300,
    ])
    def test_rejects_bad_names(self, name):
        with pytest.raises(InvalidParameter):
            validate_unit_name(name)

    def test_rejects_non_string(self):
        with pytest.raises(InvalidParameter):
            validate_unit_name(None)


class TestActiveState:

    def test_returns_stripped_state(self):
        with patch('subprocess.run', return_value=_completed("failed\n", returncode=3)) as mock_run:
            assert get_active_state('geoclue') == "failed"

            args = mock_run.call_args[0][0]
            assert args == ['systemctl', 'is-active', 'geoclue']

    def test_empty_output_is_unknown(self):
        with patch('subprocess.run', return_value=_completed("")):
            assert get_active_state('geoclue') == "unknown"

    def test_invalid_name_never_runs_systemctl(self):
        with patch('subprocess.run') as mock_run:
            with pytest.raises(InvalidParameter):
                get_active_state('--user')
            mock_run.assert_not_called()


class TestMainPid:

    def test_running_service(self):
        with patch('subprocess.run', return_value=_completed("1234\n")) as mock_run:
            assert get_main_pid('geoclue-prometheus-exporter') == 1234

            args = mock_run.call_args[0][0]
            assert '--property=MainPID' in args
            assert '--value' in args

    def test_zero_pid_means_not_running(self):
        with patch('subprocess.run', return_value=_completed("0\n")):
            assert get_main_pid('geoclue-prometheus-exporter') is None

    def test_garbage_output(self):
        with patch('subprocess.run', return_value=_completed("not-a-pid\n")):
            assert get_main_pid('geoclue-prometheus-exporter') is None


class TestStatusAndUnitFile:

    def test_status_includes_stderr(self):
        with patch('subprocess.run', return_value=_completed("● geoclue.service\n", "Warning: stale\n", 3)):
            text = get_status_text('geoclue')

            assert "● geoclue.service" in text
            assert "Warning: stale" in text

    def test_unit_file_found(self):
        with patch('subprocess.run', return_value=_completed("[Service]\nExecStart=/bin/true\n")) as mock_run:
            assert "ExecStart" in get_unit_file_text('geoclue-prometheus-exporter')
            assert mock_run.call_args[0][0] == ['systemctl', 'cat', 'geoclue-prometheus-exporter.service']

    def test_unit_file_missing(self):
        with patch('subprocess.run', return_value=_completed("", "No files found\n", 1)):
            assert get_unit_file_text('nope') is None


class TestJournalTail:

    def test_returns_lines(self):
        with patch('subprocess.run', return_value=_completed("line1\nline2\n")) as mock_run:
            assert get_journal_tail('geoclue', 20) == "line1\nline2\n"

            args = mock_run.call_args[0][0]
            assert args == ['journalctl', '-u', 'geoclue', '-n', '20', '--no-pager', '-q']

    def test_journalctl_missing(self):
        with patch('subprocess.run', side_effect=FileNotFoundError):
            with pytest.raises(LogUnavailable, match="journalctl not available"):
                get_journal_tail('geoclue', 20)

    def test_timeout(self):
        with patch('subprocess.run', side_effect=subprocess.TimeoutExpired('journalctl', 10)):
            with pytest.raises(LogUnavailable):
                get_journal_tail('geoclue', 20)

    def test_nonzero_exit(self):
        with patch('subprocess.run', return_value=_completed("", "Permission denied", 1)):
            with pytest.raises(LogUnavailable, match="Permission denied"):
                get_journal_tail('geoclue', 20)


class TestBusNames:

    def test_filters_listing(self):
        listing = (
            "NAME                      PID PROCESS\n"
            "org.freedesktop.GeoClue2  812 geoclue\n"
            "org.freedesktop.login1    501 systemd-logind\n"
        )
        with patch('subprocess.run', return_value=_completed(listing)):
            names = list_bus_names('GeoClue')

            assert len(names) == 1
            assert "org.freedesktop.GeoClue2" in names[0]
