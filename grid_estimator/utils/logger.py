"""
Structured logging for the grid estimator.

The estimator is usually embedded in a larger application, so nothing is
configured on import: library code only asks for loggers, and the host (or
``GridEstimatorService.from_config``) calls :func:`setup_logging` once.
"""

import logging
import logging.handlers
import sys
from pathlib import Path
from typing import Any

import structlog
from structlog.types import Processor

DEFAULT_LOG_FILE = Path("logs") / "estimator.log"


def _build_handlers(
    level: int,
    log_to_console: bool,
    log_file: Path | None,
) -> list[logging.Handler]:
    handlers: list[logging.Handler] = []

    if log_to_console:
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setLevel(level)
        handlers.append(console_handler)

    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.handlers.RotatingFileHandler(
            log_file,
            maxBytes=5 * 1024 * 1024,  # 5 MB
            backupCount=3,
            encoding="utf-8",
        )
        file_handler.setLevel(level)
        handlers.append(file_handler)

    return handlers


def _build_processors(json_logs: bool, colors: bool) -> list[Processor]:
    processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
    ]
    if json_logs:
        processors.append(structlog.processors.format_exc_info)
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=colors))
    return processors


def setup_logging(
    log_level: str = "INFO",
    log_to_console: bool = True,
    log_to_file: bool = False,
    json_logs: bool = False,
    log_file: Path | None = None,
) -> None:
    """
    Configure structlog and the stdlib root logger.

    Args:
        log_level: DEBUG, INFO, WARNING, ERROR or CRITICAL; anything else means INFO
        log_to_console: Write to stdout
        log_to_file: Write to a rotating file
        json_logs: Render JSON lines instead of console output
        log_file: File used when ``log_to_file`` is set (default: logs/estimator.log)
    """
    level = getattr(logging, log_level.upper(), logging.INFO)
    if not isinstance(level, int):
        level = logging.INFO

    handlers = _build_handlers(
        level,
        log_to_console,
        (log_file or DEFAULT_LOG_FILE) if log_to_file else None,
    )

    structlog.configure(
        processors=_build_processors(json_logs, colors=log_to_console),
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(format="%(message)s", level=level, handlers=handlers, force=True)

    # aiohttp is chatty at debug level
    logging.getLogger("aiohttp").setLevel(logging.WARNING)


def get_logger(name: str) -> structlog.BoundLogger:
    """Get a structlog logger for a module (typically ``__name__``)."""
    return structlog.get_logger(name)


class LoggerMixin:
    """Gives a class a ``logger`` named after it."""

    @property
    def logger(self) -> structlog.BoundLogger:
        return get_logger(self.__class__.__name__)


class log_context:
    """
    Bind request context (symbol, interval, ...) for the duration of a block.

    On exit the previous values are restored, so nested blocks that bind the
    same key do not strip it from the enclosing block.

    Usage:
        with log_context(symbol="BTCUSDT", interval="1d"):
            logger.info("Fetching bars")
    """

    def __init__(self, **kwargs: Any) -> None:
        self.context = kwargs
        self._tokens: dict[str, Any] = {}

    def __enter__(self) -> None:
        self._tokens = structlog.contextvars.bind_contextvars(**self.context)

    def __exit__(self, *args: Any) -> None:
        structlog.contextvars.reset_contextvars(**self._tokens)
