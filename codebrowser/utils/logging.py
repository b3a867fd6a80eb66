"""Centralized logging configuration using Loguru.

Every module logs through the single loguru logger configured here, so that
worker threads, the dispatcher and the CLI share one set of sinks.

Usage:
    from codebrowser.utils.logging import logger
    logger.info("Message")
    logger.debug("Debug message")  # Only shows if CODEBROWSER_LOG_LEVEL=DEBUG

Environment Variables:
    CODEBROWSER_LOG_LEVEL: DEBUG|INFO|WARNING|ERROR (default: INFO)
    CODEBROWSER_LOG_JSON: 0|1 (default: 0, human-readable)
    CODEBROWSER_LOG_FILE: path to an NDJSON log file (optional)
"""

import json
import os
import sys
from pathlib import Path

from loguru import logger

# Remove default handler
logger.remove()

NUMERIC_LEVELS = {
    "TRACE": 10,
    "DEBUG": 20,
    "INFO": 30,
    "WARNING": 40,
    "ERROR": 50,
    "CRITICAL": 60,
}

_log_level = os.environ.get("CODEBROWSER_LOG_LEVEL", "INFO").upper()
_json_mode = os.environ.get("CODEBROWSER_LOG_JSON", "0") == "1"
_log_file = os.environ.get("CODEBROWSER_LOG_FILE")


def _record_to_json(record) -> str:
    """Serialize a loguru record as one NDJSON line."""
    payload = {
        "level": NUMERIC_LEVELS.get(record["level"].name, 30),
        "time": int(record["time"].timestamp() * 1000),
        "msg": record["message"],
        "pid": record["process"].id,
        "thread": record["thread"].name,
    }
    for key, value in record["extra"].items():
        payload[key] = value
    if record["exception"]:
        payload["err"] = {
            "type": record["exception"].type.__name__ if record["exception"].type else "Error",
            "message": str(record["exception"].value) if record["exception"].value else "",
        }
    return json.dumps(payload, default=str)


def json_sink(message):
    """Write log records to stdout as NDJSON.

    Never call logger.* inside a sink, it recurses.
    """
    sys.stdout.write(_record_to_json(message.record) + "\n")
    sys.stdout.flush()


# Thread name is included because log lines from the pool interleave
_human_format = (
    "<green>{time:HH:mm:ss}</green> | "
    "<level>{level: <8}</level> | "
    "<magenta>{thread.name}</magenta> | "
    "<cyan>{name}:{function}:{line}</cyan> - "
    "<level>{message}</level>"
)

logger.level("DEBUG", color="<blue>")
logger.level("INFO", color="<white>")
logger.level("WARNING", color="<yellow>")
logger.level("ERROR", color="<red>")
logger.level("CRITICAL", color="<red><bold>")

if _json_mode:
    logger.add(json_sink, level=_log_level, colorize=False, enqueue=False)
else:
    logger.add(
        sys.stderr,
        level=_log_level,
        format=_human_format,
        colorize=None,  # Auto-detect: colors if TTY, plain if piped
    )

if _log_file:
    def _file_json_sink(message):
        """Append NDJSON records to the configured log file."""
        with open(_log_file, "a", encoding="utf-8") as f:
            f.write(_record_to_json(message.record) + "\n")

    logger.add(_file_json_sink, level="DEBUG")


def configure_file_logging(log_dir: Path, level: str = "DEBUG") -> int:
    """Add a rotating human-readable log file under ``log_dir``.

    Returns the handler id so callers can remove it when the run ends.
    """
    log_dir.mkdir(parents=True, exist_ok=True)
    log_file = log_dir / "codebrowser.log"

    return logger.add(
        log_file,
        rotation="10 MB",
        retention="7 days",
        level=level,
        enqueue=True,
        format="{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {thread.name} | {name}:{function}:{line} - {message}",
    )


__all__ = [
    "logger",
    "configure_file_logging",
    "json_sink",
]
