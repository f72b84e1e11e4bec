"""Logging configuration using loguru.

Stdlib logging (uvicorn, httpx, botocore) is intercepted and routed into
loguru, so the engine has a single sink and a single format.

Identity and inference requests carry their API key as a ``key=`` query
parameter.  URLs end up in transport error messages, so every record passes
through ``redact_secrets`` before it is written.
"""

from __future__ import annotations

import logging
import re
import sys
from typing import TYPE_CHECKING, Any, TextIO

from loguru import logger

if TYPE_CHECKING:
    from loguru import Record

_QUIET_LOGGERS = ("uvicorn.access", "httpx", "httpcore", "botocore", "boto3", "urllib3")

_KEY_PARAM_RE = re.compile(r"([?&]key=)[^&\s'\"]+")

_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | "
    "<level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - "
    "<level>{message}</level>"
)


def redact_secrets(text: str) -> str:
    """Mask API keys passed as ``key=`` query parameters."""
    return _KEY_PARAM_RE.sub(r"\1***", text)


def _patch_record(record: Record) -> None:
    record["message"] = redact_secrets(record["message"])


class _InterceptHandler(logging.Handler):
    """Bridge stdlib logging records into loguru."""

    def emit(self, record: logging.LogRecord) -> None:
        try:
            level: str | int = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno

        frame = logging.currentframe()
        depth = 2
        while frame and frame.f_code.co_filename == logging.__file__:
            frame = frame.f_back
            depth += 1

        logger.opt(depth=depth, exception=record.exc_info).log(level, record.getMessage())


def setup_logging(level: str = "INFO", *, sink: TextIO | Any = None) -> None:
    """Make loguru the only sink.

    Called by the app lifespan and the ``projects`` CLI command.  ``sink``
    defaults to ``sys.stderr`` looked up at call time.
    """
    level = level.upper()

    logger.remove()
    logger.configure(patcher=_patch_record)
    logger.add(sink if sink is not None else sys.stderr, level=level, format=_FORMAT)

    logging.basicConfig(handlers=[_InterceptHandler()], level=0, force=True)
    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    logger.debug("Logging initialised (level={})", level)
