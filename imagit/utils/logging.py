"""Logging for imagit runs.

structlog renders through stdlib handlers: a colored console stream on stderr
and one plain-text log file per CLI run under the configured log directory.
"""

import logging
import sys
import uuid
from datetime import datetime
from logging.handlers import TimedRotatingFileHandler
from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from structlog.typing import EventDict, WrappedLogger

import structlog
from rich.console import Console

# Third-party loggers kept at WARNING or above
QUIET_LOGGERS = ("PIL", "asyncio")

# Longest value rendered as-is; longer strings are cut, bytes summarized
MAX_VALUE_LENGTH = 500

# Keys ConsoleRenderer treats as its own rather than event context
_RENDERER_KEYS = frozenset({"event", "level", "timestamp", "_record", "_from_structlog"})

_console: Console | None = None


class SafeStreamHandler(logging.StreamHandler):
    """Stream handler that survives unencodable characters.

    File names can hold characters a console encoding (CP1252 on Windows)
    cannot show; those are replaced instead of raising.
    """

    def emit(self, record: logging.LogRecord) -> None:
        try:
            msg = self.format(record)
            try:
                self.stream.write(msg + self.terminator)
            except UnicodeEncodeError:
                encoding = self.stream.encoding or "utf-8"
                safe = msg.encode(encoding, errors="replace").decode(encoding, errors="replace")
                self.stream.write(safe + self.terminator)
            self.flush()
        except RecursionError:
            raise
        except Exception:
            self.handleError(record)


def get_console() -> Console:
    """Rich console shared by progress bars and CLI output (stderr)."""
    global _console
    if _console is None:
        _console = Console(stderr=True)
    return _console


def _filter_event_dict(
    _logger: "WrappedLogger", _method_name: str, event_dict: "EventDict"
) -> "EventDict":
    """Shorten oversized values such as embedded ICC profiles or EXIF blobs."""
    for key, value in list(event_dict.items()):
        if isinstance(value, (bytes, bytearray)):
            if len(value) > MAX_VALUE_LENGTH:
                event_dict[key] = f"[BINARY DATA: {len(value)} bytes]"
        elif isinstance(value, str) and len(value) > MAX_VALUE_LENGTH:
            event_dict[key] = f"{value[:MAX_VALUE_LENGTH]}... [{len(value)} chars total]"
    return event_dict


def _add_separator(
    _logger: "WrappedLogger", _method_name: str, event_dict: "EventDict"
) -> "EventDict":
    """Append `` |`` to the event when context fields follow it."""
    if "event" in event_dict and not _RENDERER_KEYS.issuperset(event_dict):
        event_dict["event"] = f"{event_dict['event']} |"
    return event_dict


_SHARED_PROCESSORS: list[structlog.types.Processor] = [
    structlog.contextvars.merge_contextvars,
    structlog.stdlib.add_log_level,
    structlog.processors.TimeStamper(fmt="iso"),
    structlog.processors.StackInfoRenderer(),
    structlog.processors.UnicodeDecoder(),
    _filter_event_dict,
    _add_separator,
]


def _formatter(colors: bool) -> structlog.stdlib.ProcessorFormatter:
    return structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=_SHARED_PROCESSORS,
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            structlog.dev.ConsoleRenderer(
                colors=colors,
                exception_formatter=structlog.dev.plain_traceback,
                pad_event_to=0,
                pad_level=False,
            ),
        ],
    )


def _level(name: str) -> int:
    return getattr(logging, name.upper(), logging.INFO)


def setup_logging(
    console_level: str = "INFO",
    log_file: Path | None = None,
    file_level: str = "DEBUG",
) -> None:
    """Route structlog events to stderr and, optionally, a rotating log file.

    Args:
        console_level: Lowest level shown on the console
        log_file: Log file path; rotated at midnight, 7 days kept
        file_level: Lowest level written to the log file
    """
    levels = [_level(console_level)]

    root = logging.getLogger()
    root.handlers.clear()

    console_handler = SafeStreamHandler(sys.stderr)
    console_handler.setLevel(levels[0])
    console_handler.setFormatter(_formatter(colors=True))
    root.addHandler(console_handler)

    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = TimedRotatingFileHandler(
            log_file,
            when="midnight",
            backupCount=7,
            encoding="utf-8",
        )
        file_handler.suffix = "%Y-%m-%d"
        file_handler.setLevel(_level(file_level))
        file_handler.setFormatter(_formatter(colors=False))
        root.addHandler(file_handler)
        levels.append(file_handler.level)

    root.setLevel(min(levels))
    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(max(root.level, logging.WARNING))

    structlog.configure(
        processors=[
            *_SHARED_PROCESSORS,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=False,
    )


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """Return a structlog logger bound to ``name``."""
    return structlog.get_logger(name)


def create_task_log_path(log_dir: str | Path, prefix: str = "task") -> tuple[str, Path]:
    """Reserve a unique log file name for one run.

    Example:
        >>> task_id, log_path = create_task_log_path(".logs", "convert")
        >>> print(log_path)  # .logs/convert_20260109_143052_a1b2c3d4.log
    """
    log_dir_path = Path(log_dir)
    log_dir_path.mkdir(parents=True, exist_ok=True)

    task_id = uuid.uuid4().hex[:8]
    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    return task_id, log_dir_path / f"{prefix}_{timestamp}_{task_id}.log"


def setup_task_logging(
    log_dir: str | Path,
    prefix: str = "task",
    verbose: bool = False,
    level: str = "INFO",
) -> tuple[str, Path]:
    """Configure logging for one CLI run.

    The console shows warnings and errors only, so progress bars stay
    readable; ``verbose`` shows everything. The run's log file receives
    events at ``level`` and above.

    Args:
        log_dir: Directory for run log files
        prefix: Log file name prefix (the command name)
        verbose: Show DEBUG output on the console
        level: Lowest level written to the log file

    Returns:
        Tuple of (task_id, log_file_path)
    """
    task_id, log_path = create_task_log_path(log_dir, prefix)
    setup_logging(
        console_level="DEBUG" if verbose else "WARNING",
        log_file=log_path,
        file_level=level,
    )
    return task_id, log_path
