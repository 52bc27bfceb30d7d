"""
Goal: Set up loguru logging to stderr and a rolling log file under the app's log dir.
Helper URLs carry the csrf/oauth tokens, so scrub them before anything is written.
"""

import re
import sys
from pathlib import Path
from typing import Optional

from loguru import logger

from webhelper.settings import LOG_DIR

_QUERY_TOKEN = re.compile(r"\b(csrf|oauth)=[^&\s]+", re.IGNORECASE)
_LONG_TOKEN = re.compile(r"[A-Za-z0-9_-]{32,}")


def sanitize(msg: str) -> str:
    """Remove token values from a log line."""
    msg = _QUERY_TOKEN.sub(r"\1=[REDACTED]", msg)
    return _LONG_TOKEN.sub("[REDACTED]", msg)


def _scrub(record) -> bool:
    record["message"] = sanitize(record["message"])
    return True


def configure_logging(level: str = "INFO", log_dir: Optional[Path] = None) -> None:
    logger.remove()
    logger.add(sys.stderr, level=level, colorize=True, backtrace=False, diagnose=False, filter=_scrub)

    log_dir = Path(log_dir or LOG_DIR)
    try:
        log_dir.mkdir(parents=True, exist_ok=True)
    except OSError:
        logger.warning("Log directory {} is not writable; file logging disabled", log_dir)
        return
    logger.add(
        str(log_dir / "{time:YYYY-MM-DD}.log"),
        rotation="00:00",
        retention="14 days",
        level="INFO",
        backtrace=False,
        diagnose=False,
        enqueue=True,
        encoding="utf-8",
        filter=_scrub,
    )
