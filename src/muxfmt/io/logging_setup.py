"""Centralized logging bootstrap for muxfmt.

Diagnostics for templates go to the reply address, never to the log; the log
carries operational messages only (ignored requests, malformed events, slow
batches).

// [LAW:single-enforcer] Logger handler wiring is enforced in this module only.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from logging.handlers import RotatingFileHandler
from pathlib import Path


@dataclass(frozen=True)
class LoggingRuntime:
    """Resolved runtime logging configuration."""

    level_name: str
    level: int
    file_path: str | None


_RUNTIME: LoggingRuntime | None = None


def _parse_level(raw: str) -> tuple[str, int]:
    normalized = str(raw or "INFO").strip().upper()
    level = getattr(logging, normalized, logging.INFO)
    if not isinstance(level, int):
        level = logging.INFO
    return str(logging.getLevelName(level)), int(level)


def _default_log_path() -> str:
    log_dir = Path(os.environ.get("MUXFMT_LOG_DIR", os.path.expanduser("~/.local/share/muxfmt/logs")))
    return str(log_dir / "muxfmt.log")


def _make_stream_handler(level: int) -> logging.Handler:
    handler = logging.StreamHandler()
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter("[%(name)s] %(levelname)s %(message)s"))
    return handler


def _make_file_handler(level: int, file_path: str) -> logging.Handler:
    handler = RotatingFileHandler(
        file_path,
        maxBytes=20 * 1024 * 1024,
        backupCount=5,
        encoding="utf-8",
    )
    handler.setLevel(level)
    handler.setFormatter(
        logging.Formatter(
            "%(asctime)s %(levelname)s %(name)s %(message)s",
            datefmt="%Y-%m-%dT%H:%M:%S",
        )
    )
    return handler


def configure(*, log_file: bool = True) -> LoggingRuntime:
    """Configure the muxfmt logger hierarchy with stderr + rotating file handlers.

    Idempotent: repeated calls return the originally configured runtime.
    The file handler is skipped when ``log_file`` is False or the log
    directory cannot be created.
    """
    global _RUNTIME
    if _RUNTIME is not None:
        return _RUNTIME

    level_name, level = _parse_level(os.environ.get("MUXFMT_LOG_LEVEL", "INFO"))

    logger = logging.getLogger("muxfmt")
    logger.setLevel(level)
    logger.propagate = False
    logger.handlers.clear()
    logger.addHandler(_make_stream_handler(level))

    file_path: str | None = None
    if log_file:
        file_path = os.environ.get("MUXFMT_LOG_FILE", _default_log_path())
        try:
            Path(file_path).parent.mkdir(parents=True, exist_ok=True)
            logger.addHandler(_make_file_handler(level, file_path))
        except OSError as e:
            logger.warning("file logging disabled: %s", e)
            file_path = None

    logging.captureWarnings(True)

    _RUNTIME = LoggingRuntime(level_name=level_name, level=level, file_path=file_path)
    return _RUNTIME


def get_runtime() -> LoggingRuntime | None:
    """Return configured logging runtime, if configure() has run."""
    return _RUNTIME


def reset() -> None:
    """Drop handlers and forget the runtime. Used by tests."""
    global _RUNTIME
    logger = logging.getLogger("muxfmt")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.propagate = True
    logger.setLevel(logging.NOTSET)
    _RUNTIME = None
