"""
Structured logging for the isosurface package.

Provides:
- JSONFormatter: one JSON object per line, extras included
- ConsoleFormatter: compact coloured lines for a terminal
- setup_logging / configure_default_logging for the "isosurface" logger
- log_timing context manager and timed decorator for stage timings
- LogContext for stamping fields onto every record in a scope

Usage:
    from isosurface.logging_config import setup_logging, log_timing

    setup_logging(level=logging.DEBUG, json_file="isosurface.log.json")

    logger = logging.getLogger(__name__)
    with log_timing(logger, "Voxelize", voxel_size=0.1) as timing:
        grid.voxelize(shape)
    print(timing['elapsed_seconds'])
"""

import json
import logging
import sys
import time
from contextlib import contextmanager
from datetime import datetime
from functools import wraps
from pathlib import Path
from typing import Any, Callable, Dict, Iterator, List, Optional, TypeVar, Union

F = TypeVar('F', bound=Callable[..., Any])

PACKAGE_LOGGER = "isosurface"

# Attributes every LogRecord carries; anything else came in through `extra`
_RECORD_ATTRS = frozenset(
    logging.LogRecord('', 0, '', 0, '', (), None).__dict__
) | {'message', 'asctime', 'taskName'}


def record_extras(record: logging.LogRecord) -> Dict[str, Any]:
    """Fields attached to a record via `extra=` (or a LogContext)."""
    return {
        key: value for key, value in record.__dict__.items()
        if key not in _RECORD_ATTRS
    }


def _json_safe(value: Any) -> Any:
    try:
        json.dumps(value)
        return value
    except (TypeError, ValueError):
        return str(value)


class JSONFormatter(logging.Formatter):
    """Formats each record as a single-line JSON object.

    Keys: timestamp, level, logger, message, plus "location" for DEBUG and
    WARNING-or-worse records, "exception" when exc_info is set, and every
    extra field (values that JSON cannot encode are stringified).
    """

    def __init__(self, include_extra: bool = True):
        super().__init__()
        self.include_extra = include_extra

    def format(self, record: logging.LogRecord) -> str:
        entry: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        if record.levelno <= logging.DEBUG or record.levelno >= logging.WARNING:
            entry["location"] = {
                "file": record.filename,
                "line": record.lineno,
                "function": record.funcName,
            }

        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)

        if self.include_extra:
            for key, value in record_extras(record).items():
                entry[key] = _json_safe(value)

        return json.dumps(entry, ensure_ascii=False)


class ConsoleFormatter(logging.Formatter):
    """Human-readable formatter.

    Format: [HH:MM:SS] LEVEL logger: message [key=value, ...]
    The "isosurface." prefix is dropped from logger names.
    """

    COLORS = {
        'DEBUG': '\033[36m',
        'INFO': '\033[32m',
        'WARNING': '\033[33m',
        'ERROR': '\033[31m',
        'CRITICAL': '\033[35m',
    }
    RESET = '\033[0m'

    def __init__(self, use_colors: bool = True, show_extra: bool = True):
        super().__init__()
        self.use_colors = use_colors
        self.show_extra = show_extra

    @staticmethod
    def _format_value(value: Any) -> str:
        if isinstance(value, float):
            return f"{value:.3g}"
        if isinstance(value, (list, tuple)) and len(value) > 3:
            return f"[...{len(value)} items]"
        return str(value)

    def format(self, record: logging.LogRecord) -> str:
        time_str = datetime.fromtimestamp(record.created).strftime("%H:%M:%S")

        level = f"{record.levelname:8}"
        if self.use_colors and record.levelname in self.COLORS:
            level = f"{self.COLORS[record.levelname]}{level}{self.RESET}"

        name = record.name
        prefix = PACKAGE_LOGGER + "."
        if name.startswith(prefix):
            name = name[len(prefix):]

        line = f"[{time_str}] {level} {name}: {record.getMessage()}"

        if self.show_extra:
            extras = [
                f"{key}={self._format_value(value)}"
                for key, value in record_extras(record).items()
            ]
            if extras:
                line += " [" + ", ".join(extras) + "]"

        if record.exc_info:
            line += "\n" + self.formatException(record.exc_info)

        return line


def setup_logging(
    level: int = logging.INFO,
    json_file: Optional[Union[str, Path]] = None,
    console: bool = True,
    use_colors: bool = True,
    root_logger: bool = False,
) -> logging.Logger:
    """Configure handlers for the isosurface logger.

    Existing handlers on the target logger are replaced.

    Args:
        level: Minimum log level
        json_file: Also write JSON lines to this file
        console: Write human-readable lines to stderr
        use_colors: Colour the console level names
        root_logger: Configure the root logger instead of "isosurface"

    Returns:
        The configured logger
    """
    logger = logging.getLogger("" if root_logger else PACKAGE_LOGGER)
    logger.setLevel(level)

    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    if console:
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setLevel(level)
        console_handler.setFormatter(ConsoleFormatter(use_colors=use_colors))
        logger.addHandler(console_handler)

    if json_file:
        json_handler = logging.FileHandler(Path(json_file), encoding='utf-8')
        json_handler.setLevel(level)
        json_handler.setFormatter(JSONFormatter())
        logger.addHandler(json_handler)

    if not root_logger:
        logger.propagate = False

    return logger


def get_logger(name: str) -> logging.Logger:
    """Logger for a module (pass __name__)."""
    return logging.getLogger(name)


@contextmanager
def log_timing(
    logger: logging.Logger,
    operation: str,
    level: int = logging.DEBUG,
    **extra_fields: Any
) -> Iterator[Dict[str, Any]]:
    """Log the start, completion and duration of a block.

    Yields a dict the block may add fields to; on success it also receives
    "elapsed_seconds" and everything in it is logged with the completion
    record. Exceptions are logged at ERROR and re-raised.

    Example:
        with log_timing(logger, "Build mesh", builder="surface_nets") as info:
            build_mesh(...)
            info['triangles'] = mesh.n_faces
    """
    timing_info: Dict[str, Any] = {}
    start = time.perf_counter()
    logger.log(level, f"Starting: {operation}", extra={
        "event": "start",
        "operation": operation,
        **extra_fields,
    })

    try:
        yield timing_info
    except Exception as exc:
        elapsed = time.perf_counter() - start
        logger.error(f"Failed: {operation} ({elapsed:.3f}s) - {exc}", extra={
            "event": "error",
            "operation": operation,
            "elapsed_seconds": elapsed,
            "error": str(exc),
            **extra_fields,
        })
        raise

    elapsed = time.perf_counter() - start
    timing_info['elapsed_seconds'] = elapsed
    logger.log(level, f"Completed: {operation} ({elapsed:.3f}s)", extra={
        "event": "complete",
        "operation": operation,
        **extra_fields,
        **timing_info,
    })


def timed(
    logger: Optional[logging.Logger] = None,
    level: int = logging.DEBUG,
    operation: Optional[str] = None,
) -> Callable[[F], F]:
    """Decorator wrapping every call of a function in log_timing.

    Args:
        logger: Logger to use (the function's module logger if None)
        level: Log level for start/complete records
        operation: Operation name (the function name if None)
    """
    def decorator(func: F) -> F:
        func_logger = logger or logging.getLogger(func.__module__)
        op_name = operation or func.__name__

        @wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            with log_timing(func_logger, op_name, level):
                return func(*args, **kwargs)

        return wrapper  # type: ignore
    return decorator


class _ContextFilter(logging.Filter):
    def __init__(self, fields: Dict[str, Any]):
        super().__init__()
        self.fields = fields

    def filter(self, record: logging.LogRecord) -> bool:
        for key, value in self.fields.items():
            setattr(record, key, value)
        return True


class LogContext:
    """Adds fields to every record emitted through the isosurface handlers.

    The filter is attached to the handlers (not the logger) so that records
    from child loggers such as "isosurface.voxel_grid" get the fields too.
    Contexts nest; the innermost one is available via LogContext.current().
    That pointer is process-wide and only __enter__/__exit__ change it.

    Example:
        with LogContext(run="sphere-0.05"):
            pipeline.update_voxel_grid()
    """

    _current: Optional['LogContext'] = None

    def __init__(self, **fields: Any):
        self.fields = fields
        self._previous: Optional['LogContext'] = None
        self._filter = _ContextFilter(fields)
        self._handlers: List[logging.Handler] = []

    def __enter__(self) -> 'LogContext':
        self._previous = LogContext._current
        LogContext._current = self

        self._handlers = list(logging.getLogger(PACKAGE_LOGGER).handlers)
        for handler in self._handlers:
            handler.addFilter(self._filter)
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        for handler in self._handlers:
            handler.removeFilter(self._filter)
        self._handlers = []
        LogContext._current = self._previous

    @classmethod
    def current(cls) -> Optional['LogContext']:
        return cls._current


def configure_default_logging(verbose: bool = False) -> logging.Logger:
    """Console logging at DEBUG (verbose) or INFO."""
    return setup_logging(level=logging.DEBUG if verbose else logging.INFO)
