"""structlog configuration."""

import logging
import sys
from pathlib import Path
from typing import Any, MutableMapping, Optional, TextIO

import structlog

FILE_KEY_ORDER = ["timestamp", "level", "event"]


class LogFileWriter:
    """Processor that copies every event to a file as a key/value line."""

    def __init__(self, stream: TextIO) -> None:
        self.stream = stream
        self._render = structlog.processors.KeyValueRenderer(key_order=FILE_KEY_ORDER)

    def __call__(self, logger: Any, method_name: str, event_dict: MutableMapping[str, Any]) -> MutableMapping[str, Any]:
        self.stream.write(self._render(logger, method_name, dict(event_dict)) + "\n")
        self.stream.flush()
        return event_dict


def configure_logging(level: str = "INFO", log_file: Optional[Path] = None) -> Optional[TextIO]:
    """Configure structlog for the CLI.

    Events go to stderr with console rendering. When ``log_file`` is given
    they are also appended to that file as plain key/value lines.

    Args:
        level: Minimum level name (DEBUG, INFO, WARNING, ...)
        log_file: Optional path of a log file

    Returns:
        The opened log file, which the caller must close, or None
    """
    numeric_level = logging.getLevelName(level.upper())
    if not isinstance(numeric_level, int):
        numeric_level = logging.INFO

    processors = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="%Y-%m-%d %H:%M:%S", utc=True),
    ]

    stream: Optional[TextIO] = None
    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        stream = open(log_file, "a", encoding="utf-8")
        processors.append(LogFileWriter(stream))

    processors.append(structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty()))

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(numeric_level),
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=False,
    )
    return stream
