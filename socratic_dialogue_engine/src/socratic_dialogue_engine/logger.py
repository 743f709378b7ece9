"""
Structured Logging for the Dialogue Engine

Provides readable, structured logging with:
- Color-coded log levels (only when attached to a terminal)
- Per-component icons
- Pretty printing for state snapshots
- One-line turn summaries
"""

import logging
import sys
from datetime import datetime
from typing import Any, Dict, Optional, Sequence

RESET = '\033[0m'
BOLD = '\033[1m'
DIM = '\033[90m'

LEVEL_STYLES = {
    # level: (color, icon)
    'DEBUG': ('\033[36m', '🔍'),
    'INFO': ('\033[32m', 'ℹ️'),
    'WARNING': ('\033[33m', '⚠️'),
    'ERROR': ('\033[31m', '❌'),
    'CRITICAL': ('\033[35m', '🚨'),
}

# Keyed on the last dotted part of the logger name
COMPONENT_ICONS = {
    'dialogue_engine': '🎓',
    'text_generator': '🤖',
    'compliance_filter': '🛡️',
    'assessment_mode': '📝',
    'difficulty_adapter': '📊',
    'depth_tracker': '🧭',
    'question_selector': '❓',
}

# Third-party loggers that are too chatty at INFO
QUIET_LOGGERS = ('asyncio', 'httpx', 'httpcore', 'openai')


class ColoredFormatter(logging.Formatter):
    """One-line records: time, icon, level, logger name and message."""

    def __init__(self, use_colors: bool = True, stream=None):
        super().__init__()
        stream = stream or sys.stdout
        self.use_colors = use_colors and hasattr(stream, "isatty") and stream.isatty()

    def _paint(self, text: str, color: str) -> str:
        return f"{color}{text}{RESET}" if self.use_colors else text

    def format(self, record: logging.LogRecord) -> str:
        level_color, level_icon = LEVEL_STYLES.get(record.levelname, (RESET, '•'))
        icon = COMPONENT_ICONS.get(record.name.rsplit('.', 1)[-1], level_icon)
        clock = datetime.fromtimestamp(record.created).strftime('%H:%M:%S.%f')[:-3]

        line = " ".join([
            self._paint(f"[{clock}]", DIM),
            icon,
            self._paint(f"{record.levelname:8s}", level_color),
            self._paint(record.name, BOLD),
            f"| {record.getMessage()}",
        ])
        if record.exc_info:
            line = f"{line}\n{self.formatException(record.exc_info)}"
        return line


class StructuredLogger:
    """Logger wrapper with optional data payloads and section banners."""

    def __init__(self, name: str, logger: Optional[logging.Logger] = None):
        self.logger = logger or logging.getLogger(name)

    def _format_data(self, data: Any, indent: int = 2) -> str:
        """Render nested dicts/lists over multiple lines; long lists are abbreviated."""
        if isinstance(data, dict):
            pad = ' ' * indent
            body = "\n".join(
                f"{pad}{key}: {self._format_data(value, indent + 2)}"
                for key, value in data.items()
            )
            return "{\n" + body + "\n" + ' ' * (indent - 2) + "}"
        if isinstance(data, (list, tuple)):
            items = [str(item) for item in data]
            if len(items) > 5:
                return f"[{', '.join(items[:3])}, ... ({len(items)} items total)]"
            return f"[{', '.join(items)}]"
        return str(data)

    def _log(self, level: int, message: str, data: Optional[Dict[str, Any]] = None, **kwargs):
        if data:
            message = f"{message}\n{self._format_data(data)}"
        self.logger.log(level, message, **kwargs)

    def section(self, title: str, data: Optional[Dict[str, Any]] = None):
        """Log a banner that opens a new section (e.g. a new problem)."""
        rule = "=" * 80
        self._log(logging.INFO, f"\n{rule}\n📋 {title.upper()}\n{rule}", data)

    def subsection(self, title: str, data: Optional[Dict[str, Any]] = None):
        """Log a smaller banner inside the current section."""
        rule = "-" * 60
        self._log(logging.INFO, f"\n{rule}\n  → {title}\n{rule}", data)

    def success(self, message: str, data: Optional[Dict[str, Any]] = None):
        self._log(logging.INFO, f"✅ {message}", data)

    def debug(self, message: str, data: Optional[Dict[str, Any]] = None):
        self._log(logging.DEBUG, message, data)

    def info(self, message: str, data: Optional[Dict[str, Any]] = None):
        self._log(logging.INFO, message, data)

    def warning(self, message: str, data: Optional[Dict[str, Any]] = None):
        self._log(logging.WARNING, message, data)

    def error(self, message: str, error: Optional[BaseException] = None, data: Optional[Dict[str, Any]] = None):
        """Log an error, attaching exception info when given."""
        if error is not None:
            message = f"{message} Error: {type(error).__name__}: {error}"
        self._log(logging.ERROR, message, data, exc_info=error)

    def turn(
        self,
        turn_number: int,
        question_type: str,
        confidence: float,
        depth: int,
        difficulty: str,
        understanding_check: bool = False,
        concepts: Sequence[str] = (),
    ):
        """Log a one-line summary of a tutoring turn."""
        parts = [f"turn={turn_number}", f"type={question_type}"]
        if understanding_check:
            parts.append("[understanding check]")
        parts += [f"confidence={confidence:.2f}", f"depth={depth}", f"difficulty={difficulty}"]
        if concepts:
            parts.append(f"concepts={','.join(concepts)}")
        self._log(logging.INFO, " ".join(parts))


def setup_logging(level: int = logging.INFO, use_colors: bool = True) -> logging.Logger:
    """Install the colored console handler on the root logger, replacing existing handlers."""
    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(level)
    handler.setFormatter(ColoredFormatter(use_colors=use_colors, stream=sys.stdout))

    root = logging.getLogger()
    for existing in list(root.handlers):
        root.removeHandler(existing)
    root.setLevel(level)
    root.addHandler(handler)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
    return root


def get_logger(name: str) -> StructuredLogger:
    """Get a structured logger instance."""
    return StructuredLogger(name, logging.getLogger(name))
