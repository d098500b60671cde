"""
Log window analysis.

Classification is a plain callable from a line to a LogCategory (or None),
so a structured journal parser can replace the substring heuristic
without touching analyze_logs().
"""

from enum import Enum
from typing import Callable, List, Optional

from .models import LogSummary

RECENT_ENTRIES = 10
FLAGGED_ENTRIES = 5

# journalctl status lines such as "-- No entries --" or "-- Boot 3f2a... --"
JOURNAL_MARKER = "-- "


class LogCategory(Enum):
    ERROR = "error"
    WARNING = "warning"


LineClassifier = Callable[[str], Optional[LogCategory]]


def substring_classifier(line: str) -> Optional[LogCategory]:
    """Case-insensitive "error" / "warn" containment; error wins."""
    lowered = line.lower()
    if 'error' in lowered:
        return LogCategory.ERROR
    if 'warn' in lowered:
        return LogCategory.WARNING
    return None


def analyze_logs(text: str, line_count: Optional[int] = None,
                 classifier: LineClassifier = substring_classifier) -> LogSummary:
    """
    Classify the most recent ``line_count`` log lines of ``text``.

    Blank lines and journalctl marker lines are not log entries.

    Args:
        text: Raw log output, oldest line first
        line_count: Window size; None keeps every line
        classifier: Maps a line to a category or None

    Returns:
        LogSummary with counts, the last 10 lines and the last 5 flagged lines
    """
    lines = [line for line in text.splitlines()
             if line.strip() and not line.startswith(JOURNAL_MARKER)]
    if line_count is not None:
        lines = lines[-line_count:] if line_count > 0 else []

    errors = 0
    warnings = 0
    flagged: List[str] = []
    for line in lines:
        category = classifier(line)
        if category is LogCategory.ERROR:
            errors += 1
        elif category is LogCategory.WARNING:
            warnings += 1
        else:
            continue
        flagged.append(line)

    return LogSummary(
        total_lines=len(lines),
        error_count=errors,
        warning_count=warnings,
        recent_entries=lines[-RECENT_ENTRIES:],
        flagged_entries=flagged[-FLAGGED_ENTRIES:],
    )
