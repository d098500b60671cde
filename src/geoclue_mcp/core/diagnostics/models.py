"""
Diagnostic Data Models

Shared by the probes, the health aggregator, the log analyzer and the
derived views. Every result type serializes to plain dicts for JSON
resources and renders to text for tool responses.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional


# === Status Enums ===

class CheckStatus(Enum):
    """Status of a single probe."""
    PASS = "pass"       # Check passed
    WARN = "warn"       # Answered, but something is off
    FAIL = "fail"       # Check failed - action required


class HealthStatus(Enum):
    """Overall rollup of a set of probe outcomes."""
    HEALTHY = "healthy"
    DEGRADED = "degraded"
    UNHEALTHY = "unhealthy"


class ConnectionFailure(Enum):
    """Why a connectivity probe failed."""
    TIMEOUT = "timeout"
    REFUSED = "refused"
    OTHER = "other"


class AlertSeverity(Enum):
    WARNING = "warning"
    CRITICAL = "critical"


STATUS_MARKERS = {
    CheckStatus.PASS: "✅ PASS",
    CheckStatus.WARN: "⚠️ WARN",
    CheckStatus.FAIL: "❌ FAIL",
}

HEALTH_MARKERS = {
    HealthStatus.HEALTHY: "✅ HEALTHY",
    HealthStatus.DEGRADED: "⚠️ DEGRADED",
    HealthStatus.UNHEALTHY: "❌ UNHEALTHY",
}


def _now() -> datetime:
    return datetime.now().astimezone()


# === Core Result Types ===

@dataclass(frozen=True)
class ProbeOutcome:
    """
    Result of a single probe.

    Every probe produces exactly one ProbeOutcome per invocation; outcomes
    are never cached.

    Attributes:
        name: Probe name (e.g., "network", "service")
        status: PASS, WARN or FAIL
        message: Short description of the result
        value: Optional measured number (response time in ms, ...)
        details: Additional structured data
        timestamp: When the probe finished
    """
    name: str
    status: CheckStatus
    message: str
    value: Optional[float] = None
    details: Optional[Dict[str, Any]] = None
    timestamp: datetime = field(default_factory=_now)

    def to_dict(self) -> dict:
        """Serialize for API/JSON output."""
        return {
            "name": self.name,
            "status": self.status.value,
            "message": self.message,
            "value": self.value,
            "details": self.details,
            "timestamp": self.timestamp.isoformat(),
        }

    def to_line(self) -> str:
        return f"{self.name}: {STATUS_MARKERS[self.status]} - {self.message}"


@dataclass(frozen=True)
class HealthReport:
    """
    Finalized health check.

    Attributes:
        checks: Probe outcomes keyed by probe name, in execution order
        overall_status: Rollup of the outcomes
        generated_at: When the report was finalized
    """
    checks: Dict[str, ProbeOutcome]
    overall_status: HealthStatus
    generated_at: datetime = field(default_factory=_now)

    @property
    def fail_count(self) -> int:
        return sum(1 for c in self.checks.values() if c.status == CheckStatus.FAIL)

    @property
    def warn_count(self) -> int:
        return sum(1 for c in self.checks.values() if c.status == CheckStatus.WARN)

    @property
    def is_healthy(self) -> bool:
        return self.overall_status == HealthStatus.HEALTHY

    def to_dict(self) -> dict:
        return {
            "timestamp": self.generated_at.isoformat(),
            "overall_status": self.overall_status.value,
            "checks": {name: c.to_dict() for name, c in self.checks.items()},
        }

    def to_text(self) -> str:
        lines = [
            "Health Check Results:",
            "",
            f"Overall Status: {HEALTH_MARKERS[self.overall_status]}",
            f"Timestamp: {self.generated_at.isoformat()}",
            "",
            "Detailed Checks:",
        ]
        lines.extend(c.to_line() for c in self.checks.values())
        return "\n".join(lines)


@dataclass(frozen=True)
class LogSummary:
    """Classification of a bounded window of log lines."""
    total_lines: int
    error_count: int
    warning_count: int
    recent_entries: List[str] = field(default_factory=list)
    flagged_entries: List[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "total_lines": self.total_lines,
            "error_count": self.error_count,
            "warning_count": self.warning_count,
            "recent_entries": list(self.recent_entries),
            "flagged_entries": list(self.flagged_entries),
        }

    def to_text(self, service_name: str) -> str:
        if self.flagged_entries:
            flagged = "Recent errors/warnings:\n" + "\n".join(self.flagged_entries)
        else:
            flagged = "No recent errors or warnings found."
        return (
            f"Log Analysis for {service_name}:\n\n"
            f"Summary:\n"
            f"- Total lines analyzed: {self.total_lines}\n"
            f"- Errors found: {self.error_count}\n"
            f"- Warnings found: {self.warning_count}\n\n"
            f"Recent entries:\n" + "\n".join(self.recent_entries) + "\n\n"
            + flagged
        )


@dataclass
class ResourceSnapshot:
    """
    Process and host resource usage for one service.

    ``running`` is False when the service manager reports no main PID;
    that is an informational state, not a failure. Sub-collection
    failures land in ``errors`` keyed by section.
    """
    service_name: str
    pid: Optional[int] = None
    running: bool = False
    process: Dict[str, Any] = field(default_factory=dict)
    host: Dict[str, Any] = field(default_factory=dict)
    errors: Dict[str, str] = field(default_factory=dict)
    timestamp: datetime = field(default_factory=_now)

    def to_dict(self) -> dict:
        return {
            "service_name": self.service_name,
            "pid": self.pid,
            "running": self.running,
            "process": self.process,
            "host": self.host,
            "errors": self.errors,
            "timestamp": self.timestamp.isoformat(),
        }

    def to_text(self) -> str:
        sections = []
        if self.running:
            proc = "\n".join(f"  {k}: {v}" for k, v in self.process.items())
            sections.append(f"Process Information (PID {self.pid}):\n{proc}")
        elif 'process' not in self.errors:
            sections.append("Service is not currently running (no PID found)")
        if self.host:
            host = "\n".join(f"  {k}: {v}" for k, v in self.host.items())
            sections.append(f"System Resources:\n{host}")
        for section, error in self.errors.items():
            sections.append(f"Failed to collect {section}: {error}")
        body = "\n\n---\n\n".join(sections)
        return f"System Resources for {self.service_name}:\n\n{body}"


@dataclass(frozen=True)
class Alert:
    """Derived alert; never persisted."""
    severity: AlertSeverity
    message: str
    timestamp: datetime = field(default_factory=_now)

    def to_dict(self) -> dict:
        return {
            "severity": self.severity.value,
            "message": self.message,
            "timestamp": self.timestamp.isoformat(),
        }
