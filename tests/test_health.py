"""
Tests for the health aggregator.

Run: python3 -m pytest tests/test_health.py -v
"""

import pytest
from unittest.mock import patch

from geoclue_mcp.core.diagnostics.engine import (
    HealthAggregator,
    AggregatorState,
    compute_overall_status,
    default_probes,
    run_health_check,
)
from geoclue_mcp.core.diagnostics.models import CheckStatus, HealthStatus, ProbeOutcome
from geoclue_mcp.errors import ProbeTimeout


def _outcome(name, status):
    return ProbeOutcome(name=name, status=status, message=f"{name} {status.value}")


class TestComputeOverallStatus:

    def test_all_pass_is_healthy(self):
        outcomes = [_outcome('a', CheckStatus.PASS), _outcome('b', CheckStatus.PASS)]
        assert compute_overall_status(outcomes) == HealthStatus.HEALTHY

    def test_warn_is_degraded(self):
        outcomes = [_outcome('a', CheckStatus.PASS), _outcome('b', CheckStatus.WARN)]
        assert compute_overall_status(outcomes) == HealthStatus.DEGRADED

    def test_any_fail_is_unhealthy(self):
        outcomes = [_outcome('a', CheckStatus.WARN), _outcome('b', CheckStatus.FAIL)]
        assert compute_overall_status(outcomes) == HealthStatus.UNHEALTHY

    def test_order_does_not_matter(self):
        outcomes = [_outcome('a', CheckStatus.FAIL), _outcome('b', CheckStatus.PASS),
                    _outcome('c', CheckStatus.WARN)]
        assert compute_overall_status(outcomes) == compute_overall_status(reversed(outcomes))

    def test_empty_is_healthy(self):
        assert compute_overall_status([]) == HealthStatus.HEALTHY


class TestHealthAggregator:

    def test_exception_becomes_fail(self):
        def broken():
            raise ProbeTimeout("Request timeout")

        agg = HealthAggregator()
        outcome = agg.run('metrics', broken)

        assert outcome.status == CheckStatus.FAIL
        assert outcome.message == "metrics check failed: Request timeout"

    def test_unexpected_exception_becomes_fail(self):
        def broken():
            raise ValueError("boom")

        report = HealthAggregator().run_all([('network', broken)]).finalize()

        assert report.checks['network'].status == CheckStatus.FAIL
        assert report.overall_status == HealthStatus.UNHEALTHY

    def test_outcome_takes_slot_name(self):
        agg = HealthAggregator()
        agg.run('geoclue_dependency', lambda: _outcome('service', CheckStatus.PASS))
        report = agg.finalize()

        assert list(report.checks) == ['geoclue_dependency']
        assert report.checks['geoclue_dependency'].name == 'geoclue_dependency'

    def test_order_preserved(self):
        probes = [(name, lambda n=name: _outcome(n, CheckStatus.PASS))
                  for name in ('network', 'service', 'metrics', 'geoclue_dependency')]
        report = HealthAggregator().run_all(probes).finalize()

        assert list(report.checks) == ['network', 'service', 'metrics', 'geoclue_dependency']

    def test_frozen_after_finalize(self):
        agg = HealthAggregator()
        agg.add(_outcome('network', CheckStatus.PASS))
        agg.finalize()

        assert agg.state == AggregatorState.FINALIZED
        with pytest.raises(RuntimeError):
            agg.add(_outcome('service', CheckStatus.PASS))
        with pytest.raises(RuntimeError):
            agg.finalize()

    def test_report_counts(self):
        agg = HealthAggregator()
        agg.add(_outcome('network', CheckStatus.FAIL))
        agg.add(_outcome('service', CheckStatus.WARN))
        agg.add(_outcome('metrics', CheckStatus.WARN))
        report = agg.finalize()

        assert report.fail_count == 1
        assert report.warn_count == 2
        assert not report.is_healthy

    def test_report_text(self):
        agg = HealthAggregator()
        agg.add(_outcome('network', CheckStatus.PASS))
        text = agg.finalize().to_text()

        assert text.startswith("Health Check Results:")
        assert "Overall Status: ✅ HEALTHY" in text
        assert "network: ✅ PASS" in text


class TestDefaultProbes:

    def test_order_with_metrics(self):
        names = [name for name, _ in default_probes(include_metrics=True)]
        assert names == ['network', 'service', 'metrics', 'geoclue_dependency']

    def test_metrics_can_be_disabled(self):
        names = [name for name, _ in default_probes(include_metrics=False)]
        assert names == ['network', 'service', 'geoclue_dependency']


class TestRunHealthCheck:
    """Full health check with every probe mocked."""

    def _patched(self):
        return [
            patch('geoclue_mcp.core.diagnostics.probes.probe_connectivity',
                  return_value=_outcome('network', CheckStatus.PASS)),
            patch('geoclue_mcp.core.diagnostics.probes.probe_service_state',
                  return_value=_outcome('service', CheckStatus.PASS)),
            patch('geoclue_mcp.core.diagnostics.probes.probe_metrics',
                  return_value=_outcome('metrics', CheckStatus.WARN)),
        ]

    def test_disabling_metrics_leaves_other_checks_unchanged(self):
        patches = self._patched()
        for p in patches:
            p.start()
        try:
            with_metrics = run_health_check(include_metrics=True)
            without_metrics = run_health_check(include_metrics=False)
        finally:
            for p in patches:
                p.stop()

        assert with_metrics.overall_status == HealthStatus.DEGRADED
        assert without_metrics.overall_status == HealthStatus.HEALTHY
        assert 'metrics' not in without_metrics.checks
        for name in ('network', 'service', 'geoclue_dependency'):
            assert with_metrics.checks[name].status == without_metrics.checks[name].status
