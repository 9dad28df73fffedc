"""Logging helpers for :mod:`sfcparse`.

Library modules only emit structured events through :func:`get_logger`;
handlers are installed by :func:`configure_logging`, which the CLI calls and
embedding applications may call (or replace with their own setup).
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Iterable

from rich.console import Console
from rich.logging import RichHandler
import structlog

Logger = structlog.stdlib.BoundLogger

_CONSOLE_PROCESSOR = structlog.dev.ConsoleRenderer(colors=False)
_FILE_PROCESSOR = structlog.processors.JSONRenderer(sort_keys=True)
_TIMESTAMPER = structlog.processors.TimeStamper(fmt="iso", utc=True)
_FOREIGN_PRE_CHAIN = [
    structlog.contextvars.merge_contextvars,
    structlog.stdlib.add_log_level,
    _TIMESTAMPER,
]


def _normalize_level(level: str) -> int:
    """Return the logging module level constant for ``level``.

    Raises:
        ValueError: If the level name is not recognized.
    """

    normalized = level.strip().upper()
    value = logging.getLevelName(normalized)
    if isinstance(value, str):  # ``getLevelName`` echoes unknown names.
        raise ValueError(f"Unsupported log level: {level!r}")
    return value


def _reset_root_logger(
    root: logging.Logger,
    handlers: Iterable[logging.Handler],
) -> None:
    """Replace root handlers with the provided ones."""

    for handler in list(root.handlers):
        root.removeHandler(handler)
        handler.close()
    for handler in handlers:
        root.addHandler(handler)


def _configure_structlog() -> None:
    """Route structlog events through stdlib logging handlers."""

    structlog.reset_defaults()
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_log_level,
            _TIMESTAMPER,
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )


def _build_file_handler(log_file: Path, level: int) -> logging.FileHandler:
    """Return a handler writing one JSON object per event to ``log_file``."""

    log_file.parent.mkdir(parents=True, exist_ok=True)
    handler = logging.FileHandler(log_file, encoding="utf-8", delay=True)
    handler.setLevel(level)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            processor=_FILE_PROCESSOR,
            foreign_pre_chain=_FOREIGN_PRE_CHAIN,
        )
    )
    return handler


def _build_console_handler(
    level: int,
    console: Console | None = None,
) -> RichHandler:
    """Return a Rich-backed console handler writing to stderr by default."""

    handler = RichHandler(
        console=console or Console(stderr=True),
        rich_tracebacks=True,
        show_path=False,
        markup=False,
        enable_link_path=False,
        log_time_format="%H:%M:%S",
    )
    handler.setLevel(level)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            processor=_CONSOLE_PROCESSOR,
            foreign_pre_chain=_FOREIGN_PRE_CHAIN,
        )
    )
    return handler


def configure_logging(
    *,
    level: str = "WARNING",
    log_file: str | Path | None = None,
    console: Console | None = None,
) -> None:
    """Configure structlog alongside stdlib logging.

    Args:
        level: Log level name applied to the root logger (case-insensitive).
        log_file: Optional path receiving JSON-formatted events.
        console: Optional Rich console override, primarily for testing.

    Raises:
        ValueError: If ``level`` is not a recognized log level name.
    """

    log_level = _normalize_level(level)

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)

    _configure_structlog()

    handlers: list[logging.Handler] = [
        _build_console_handler(log_level, console=console)
    ]
    if log_file is not None:
        path = Path(log_file).expanduser().resolve(strict=False)
        handlers.append(_build_file_handler(path, log_level))

    _reset_root_logger(root_logger, handlers)
    logging.captureWarnings(True)


def get_logger(name: str | None = None, **initial_context: Any) -> Logger:
    """Return a structured logger bound to an optional context."""

    return structlog.get_logger(name).bind(**initial_context)


__all__ = ["Logger", "configure_logging", "get_logger"]
