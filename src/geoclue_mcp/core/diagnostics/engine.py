"""
Health Aggregator

Runs an ordered list of probes, converts any exception a probe raises into
a FAIL outcome, and rolls the outcomes up into one HealthStatus once every
probe has reported.

Usage:
    from geoclue_mcp.core.diagnostics.engine import run_health_check

    report = run_health_check('127.0.0.1', 9090, include_metrics=True)
    print(report.overall_status.value)
"""

import logging
from datetime import datetime
from enum import Enum
from typing import Callable, Dict, Iterable, List, Optional, Tuple

from . import probes
from .models import CheckStatus, HealthReport, HealthStatus, ProbeOutcome

logger = logging.getLogger(__name__)

ProbeFn = Callable[[], ProbeOutcome]

DEFAULT_SERVICE = "geoclue-prometheus-exporter"
DEFAULT_DEPENDENCY = "geoclue"


class AggregatorState(Enum):
    COLLECTING = "collecting"
    FINALIZED = "finalized"


def compute_overall_status(outcomes: Iterable[ProbeOutcome]) -> HealthStatus:
    """Rollup depends only on how many outcomes FAILed or WARNed."""
    statuses = [o.status for o in outcomes]
    if statuses.count(CheckStatus.FAIL) > 0:
        return HealthStatus.UNHEALTHY
    if statuses.count(CheckStatus.WARN) > 0:
        return HealthStatus.DEGRADED
    return HealthStatus.HEALTHY


class HealthAggregator:
    """
    Collects probe outcomes, then finalizes them into a HealthReport.

    Outcomes keep insertion order. After finalize() the aggregator is
    frozen; further run/add calls raise RuntimeError.
    """

    def __init__(self):
        self._outcomes: Dict[str, ProbeOutcome] = {}
        self.state = AggregatorState.COLLECTING

    def _require_collecting(self):
        if self.state != AggregatorState.COLLECTING:
            raise RuntimeError("Health report already finalized")

    def add(self, outcome: ProbeOutcome):
        self._require_collecting()
        self._outcomes[outcome.name] = outcome

    def run(self, name: str, probe: ProbeFn) -> ProbeOutcome:
        """Run one probe; an exception becomes a FAIL outcome named ``name``."""
        self._require_collecting()
        try:
            outcome = probe()
            if outcome.name != name:
                outcome = ProbeOutcome(
                    name=name,
                    status=outcome.status,
                    message=outcome.message,
                    value=outcome.value,
                    details=outcome.details,
                    timestamp=outcome.timestamp,
                )
        except Exception as e:
            logger.warning(f"Probe {name} raised: {e}")
            outcome = ProbeOutcome(
                name=name,
                status=CheckStatus.FAIL,
                message=f"{name} check failed: {probes.describe_error(e)}",
            )
        self.add(outcome)
        return outcome

    def run_all(self, probe_list: List[Tuple[str, ProbeFn]]) -> 'HealthAggregator':
        for name, probe in probe_list:
            self.run(name, probe)
        return self

    def finalize(self) -> HealthReport:
        self._require_collecting()
        self.state = AggregatorState.FINALIZED
        report = HealthReport(
            checks=dict(self._outcomes),
            overall_status=compute_overall_status(self._outcomes.values()),
            generated_at=datetime.now().astimezone(),
        )
        logger.info(
            f"Health check finalized: {report.overall_status.value} "
            f"({report.fail_count} failed, {report.warn_count} warnings)"
        )
        return report


def default_probes(host: str = "127.0.0.1", port: int = 9090,
                   include_metrics: bool = True,
                   service_name: str = DEFAULT_SERVICE,
                   dependency_service: Optional[str] = DEFAULT_DEPENDENCY,
                   metrics_path: str = "/metrics") -> List[Tuple[str, ProbeFn]]:
    """The fixed probe order: network, service, [metrics], dependency."""
    probe_list: List[Tuple[str, ProbeFn]] = [
        ('network', lambda: probes.probe_connectivity(host, port)),
        ('service', lambda: probes.probe_service_state(service_name)),
    ]
    if include_metrics:
        probe_list.append(
            ('metrics', lambda: probes.probe_metrics(host, port, metrics_path))
        )
    if dependency_service:
        probe_list.append(
            ('geoclue_dependency',
             lambda: probes.probe_service_state(dependency_service, optional=True))
        )
    return probe_list


def run_health_check(host: str = "127.0.0.1", port: int = 9090,
                     include_metrics: bool = True,
                     service_name: str = DEFAULT_SERVICE,
                     dependency_service: Optional[str] = DEFAULT_DEPENDENCY,
                     metrics_path: str = "/metrics") -> HealthReport:
    """Run the default probes and return the finalized report."""
    probe_list = default_probes(
        host=host,
        port=port,
        include_metrics=include_metrics,
        service_name=service_name,
        dependency_service=dependency_service,
        metrics_path=metrics_path,
    )
    return HealthAggregator().run_all(probe_list).finalize()
