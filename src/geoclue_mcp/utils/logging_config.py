"""
geoclue-mcp Logging Configuration

Provides centralized logging setup. Console output goes to stderr:
stdout is the MCP protocol channel and must carry nothing else.

Usage:
    from geoclue_mcp.utils.logging_config import setup_logging
    setup_logging(level="DEBUG", log_file="/var/log/geoclue-mcp.log")
"""

import logging
import logging.handlers
import sys
from pathlib import Path
from typing import Optional, Union

_initialized = False

DEFAULT_FORMAT = "%(asctime)s | %(name)s | %(levelname)s | %(message)s"

LEVEL_COLORS = {
    'DEBUG': '\033[36m',     # Cyan
    'INFO': '\033[32m',      # Green
    'WARNING': '\033[33m',   # Yellow
    'ERROR': '\033[31m',     # Red
    'CRITICAL': '\033[35m',  # Magenta
}
RESET = '\033[0m'

NOISY_LOGGERS = ['urllib3', 'requests', 'mcp', 'asyncio']


class ColoredFormatter(logging.Formatter):
    """Formatter that adds colors to log levels for terminal output."""

    def __init__(self, fmt=None, datefmt=None, use_colors=True, stream=None):
        super().__init__(fmt, datefmt)
        stream = stream or sys.stderr
        self.use_colors = use_colors and hasattr(stream, 'isatty') and stream.isatty()

    def format(self, record):
        if self.use_colors and record.levelname in LEVEL_COLORS:
            record = logging.makeLogRecord(record.__dict__)
            record.levelname = f"{LEVEL_COLORS[record.levelname]}{record.levelname}{RESET}"
        return super().format(record)


def _resolve_level(level: Union[int, str]) -> int:
    if isinstance(level, int):
        return level
    resolved = logging.getLevelName(str(level).upper())
    return resolved if isinstance(resolved, int) else logging.INFO


def setup_logging(
    level: Union[int, str] = logging.INFO,
    log_file: Optional[str] = None,
    log_format: str = DEFAULT_FORMAT,
    use_colors: bool = True,
    max_bytes: int = 10 * 1024 * 1024,  # 10MB
    backup_count: int = 5,
    force: bool = False,
) -> None:
    """
    Configure the root logger once per process.

    Args:
        level: Logging level or level name
        log_file: Optional file path for a rotating log file
        log_format: Log message format string
        use_colors: Enable colored level names when stderr is a terminal
        max_bytes: Max log file size before rotation
        backup_count: Number of backup files to keep
        force: Reconfigure even if already initialized
    """
    global _initialized

    if _initialized and not force:
        return

    level = _resolve_level(level)
    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.handlers.clear()

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(level)
    console_handler.setFormatter(ColoredFormatter(log_format, use_colors=use_colors))
    root_logger.addHandler(console_handler)

    if log_file:
        log_path = Path(log_file).expanduser()
        log_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.handlers.RotatingFileHandler(
            log_path,
            maxBytes=max_bytes,
            backupCount=backup_count,
        )
        file_handler.setLevel(level)
        file_handler.setFormatter(logging.Formatter(log_format))
        root_logger.addHandler(file_handler)

    for lib_name in NOISY_LOGGERS:
        logging.getLogger(lib_name).setLevel(logging.WARNING)

    _initialized = True
