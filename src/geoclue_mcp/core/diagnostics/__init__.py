"""
Diagnostics for the GeoClue exporter.

Usage:
    from geoclue_mcp.core.diagnostics import run_health_check, HealthStatus

    report = run_health_check(include_metrics=False)
    if report.overall_status != HealthStatus.HEALTHY:
        print(report.to_text())
"""

from .models import (
    Alert,
    AlertSeverity,
    CheckStatus,
    ConnectionFailure,
    HealthReport,
    HealthStatus,
    LogSummary,
    ProbeOutcome,
    ResourceSnapshot,
)
from .engine import HealthAggregator, compute_overall_status, run_health_check
from .log_analyzer import LogCategory, analyze_logs, substring_classifier

__all__ = [
    'Alert',
    'AlertSeverity',
    'CheckStatus',
    'ConnectionFailure',
    'HealthReport',
    'HealthStatus',
    'LogSummary',
    'ProbeOutcome',
    'ResourceSnapshot',
    'HealthAggregator',
    'compute_overall_status',
    'run_health_check',
    'LogCategory',
    'analyze_logs',
    'substring_classifier',
]
