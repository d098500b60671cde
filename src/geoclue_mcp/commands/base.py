"""
Base classes for the commands layer.

CommandResult provides a consistent return type across all operations,
whichever server role exposes them.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Optional
from enum import Enum

from ..errors import GeoclueMcpError


class ResultStatus(Enum):
    """Command execution status."""
    SUCCESS = "success"
    ERROR = "error"
    WARNING = "warning"


@dataclass
class CommandResult:
    """
    Unified result type for all operations.

    Attributes:
        success: Whether the operation succeeded
        status: Detailed status enum
        message: Human-readable text returned to the caller
        data: Operation-specific structured data
        error: Error message if failed
        error_kind: Stable error kind (see geoclue_mcp.errors) if failed
        raw_output: Raw payload (resource body, command output)
    """
    success: bool
    status: ResultStatus = ResultStatus.SUCCESS
    message: str = ""
    data: Dict[str, Any] = field(default_factory=dict)
    error: Optional[str] = None
    error_kind: Optional[str] = None
    raw_output: Optional[str] = None

    def __bool__(self) -> bool:
        return self.success

    @classmethod
    def ok(cls, message: str = "Success", data: Dict[str, Any] = None, raw: str = None) -> 'CommandResult':
        """Create a successful result."""
        return cls(
            success=True,
            status=ResultStatus.SUCCESS,
            message=message,
            data=data or {},
            raw_output=raw
        )

    @classmethod
    def fail(cls, message: str, error: str = None, kind: str = "error",
             data: Dict[str, Any] = None) -> 'CommandResult':
        """Create a failed result."""
        return cls(
            success=False,
            status=ResultStatus.ERROR,
            message=message,
            error=error or message,
            error_kind=kind,
            data=data or {}
        )

    @classmethod
    def warn(cls, message: str, data: Dict[str, Any] = None) -> 'CommandResult':
        """Create a warning result (answered, but the target is not healthy)."""
        return cls(
            success=True,
            status=ResultStatus.WARNING,
            message=message,
            data=data or {}
        )

    @classmethod
    def from_error(cls, exc: GeoclueMcpError) -> 'CommandResult':
        """Render a taxonomy error as a failed result."""
        data = {}
        findings = getattr(exc, 'findings', None)
        if findings:
            data['findings'] = [f.to_dict() for f in findings]
        return cls.fail(exc.message, kind=exc.kind, data=data)

    def render_text(self) -> str:
        """Text shown to the protocol client."""
        if self.success:
            return self.message
        return f"Error: {self.error or self.message}"

    def to_dict(self) -> dict:
        return {
            "success": self.success,
            "status": self.status.value,
            "message": self.message,
            "data": self.data,
            "error": self.error,
            "error_kind": self.error_kind,
        }
