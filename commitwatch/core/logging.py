"""structlog on top of stdlib logging, so library records share one renderer."""

from __future__ import annotations

import logging.config
import os

import structlog

# third-party loggers and the level they are capped at
_LIBRARY_LEVELS = {
    "uvicorn.access": "WARNING",
    "uvicorn.error": "INFO",
    "sqlalchemy.engine": "WARNING",
    "asyncpg": "WARNING",
    "aiosqlite": "WARNING",
    "httpx": "WARNING",
    "httpcore": "WARNING",
}


def _pre_chain() -> list[structlog.types.Processor]:
    return [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
    ]


def _renderer(fmt: str) -> structlog.types.Processor:
    if fmt == "json":
        return structlog.processors.JSONRenderer()
    return structlog.dev.ConsoleRenderer()


def setup_logging(level: str | None = None, fmt: str | None = None) -> None:
    """Route structlog and stdlib records through a single stdout handler.

    *level* and *fmt* default to ``COMMITWATCH_LOG_LEVEL`` (INFO) and
    ``COMMITWATCH_LOG_FORMAT`` (``console`` or ``json``).
    """
    level = (level or os.environ.get("COMMITWATCH_LOG_LEVEL", "INFO")).upper()
    fmt = (fmt or os.environ.get("COMMITWATCH_LOG_FORMAT", "console")).lower()
    pre_chain = _pre_chain()

    structlog.configure(
        processors=[*pre_chain, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    loggers = {name: {"level": lib_level} for name, lib_level in _LIBRARY_LEVELS.items()}
    loggers["commitwatch"] = {"level": level}

    logging.config.dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "rendered": {
                    "()": structlog.stdlib.ProcessorFormatter,
                    "foreign_pre_chain": pre_chain,
                    "processors": [
                        structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                        _renderer(fmt),
                    ],
                },
            },
            "handlers": {
                "stdout": {
                    "class": "logging.StreamHandler",
                    "stream": "ext://sys.stdout",
                    "formatter": "rendered",
                },
            },
            "root": {"handlers": ["stdout"], "level": level},
            "loggers": loggers,
        }
    )
