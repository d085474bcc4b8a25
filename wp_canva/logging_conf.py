"""Logging configuration built around structlog JSON logging."""

from __future__ import annotations

import logging
import logging.config
import os
from pathlib import Path

import structlog

_LOGGING_INITIALISED = False


def default_log_dir() -> Path:
    env_root = os.environ.get("WP_CANVA_HOME")
    if env_root:
        return Path(env_root).expanduser().resolve() / "logs"
    return Path(__file__).resolve().parents[1] / "logs"


def configure_logging(verbose: bool = False) -> structlog.BoundLogger:
    """Configure structlog + stdlib handlers and return application logger."""

    global _LOGGING_INITIALISED
    log_dir = default_log_dir()
    log_dir.mkdir(parents=True, exist_ok=True)
    error_log = log_dir / "error.log"
    pipeline_log = log_dir / "pipeline.log"
    error_log.touch(exist_ok=True)
    pipeline_log.touch(exist_ok=True)

    if not _LOGGING_INITIALISED:
        level = "DEBUG" if verbose else "WARNING"
        logging.config.dictConfig(
            {
                "version": 1,
                "disable_existing_loggers": False,
                "formatters": {
                    "plain": {
                        "()": "pythonjsonlogger.jsonlogger.JsonFormatter",
                        "fmt": "%(asctime)s %(levelname)s %(name)s %(message)s",
                    }
                },
                "handlers": {
                    # console stays quiet unless --verbose; files keep the full trail
                    "console": {
                        "class": "logging.StreamHandler",
                        "level": level,
                        "formatter": "plain",
                    },
                    "pipeline_file": {
                        "class": "logging.FileHandler",
                        "level": "INFO",
                        "filename": str(pipeline_log),
                        "formatter": "plain",
                        "encoding": "utf-8",
                    },
                    "error_file": {
                        "class": "logging.FileHandler",
                        "level": "ERROR",
                        "filename": str(error_log),
                        "formatter": "plain",
                        "encoding": "utf-8",
                    },
                },
                "loggers": {
                    "wp_canva": {
                        "handlers": ["console", "pipeline_file", "error_file"],
                        "level": "DEBUG" if verbose else "INFO",
                        "propagate": False,
                    },
                },
            }
        )

        structlog.configure(
            processors=[
                structlog.contextvars.merge_contextvars,
                structlog.processors.TimeStamper(fmt="iso"),
                structlog.stdlib.add_log_level,
                structlog.processors.StackInfoRenderer(),
                structlog.processors.format_exc_info,
                structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
            ],
            logger_factory=structlog.stdlib.LoggerFactory(),
            cache_logger_on_first_use=True,
        )
        _LOGGING_INITIALISED = True
    return structlog.get_logger("wp_canva")


def stage_logger(stage: str, verbose: bool = False) -> structlog.BoundLogger:
    """Return a logger bound to one pipeline stage."""

    logger_name = f"wp_canva.{stage}"
    configure_logging(verbose)
    return structlog.get_logger(logger_name).bind(stage=stage)


def tail_log(path: Path, line_count: int = 100) -> list[str]:
    """Return the last N lines from a log file."""

    if not path.exists():
        return []
    with path.open("r", encoding="utf-8", errors="ignore") as stream:
        lines = stream.readlines()
    return lines[-line_count:]


__all__ = ["configure_logging", "default_log_dir", "stage_logger", "tail_log"]
