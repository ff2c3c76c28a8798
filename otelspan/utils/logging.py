"""
Logging Configuration Module

Provides structured logging with loguru. Supports JSON output, optional log
rotation, and stamps every record with the active trace context.
"""

import json
import sys
from pathlib import Path
from typing import Any

from loguru import logger
from opentelemetry import trace

from otelspan.utils.config import Settings, get_settings

HUMAN_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | "
    "<level>{level: <8}</level> | "
    "<cyan>{module}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> | "
    "trace=<magenta>{extra[trace_id]}</magenta> | "
    "<level>{message}</level>"
)

FILE_FORMAT = (
    "{time:YYYY-MM-DD HH:mm:ss.SSS} | {level: <8} | {module}:{function}:{line} | "
    "trace={extra[trace_id]} span={extra[span_id]} | {message}"
)


def trace_context_patcher(record: dict[str, Any]) -> None:
    """Add the current trace and span ids to the record extras."""
    ctx = trace.get_current_span().get_span_context()
    if ctx.is_valid:
        record["extra"]["trace_id"] = format(ctx.trace_id, "032x")
        record["extra"]["span_id"] = format(ctx.span_id, "016x")
    else:
        record["extra"].setdefault("trace_id", "no-trace")
        record["extra"].setdefault("span_id", "no-span")


def serialize_record(record: dict[str, Any]) -> str:
    """Serialize log record to JSON format."""
    subset = {
        "timestamp": record["time"].isoformat(),
        "level": record["level"].name,
        "message": record["message"],
        "module": record["module"],
        "function": record["function"],
        "line": record["line"],
    }

    if record.get("extra"):
        subset["extra"] = record["extra"]

    if record["exception"]:
        subset["exception"] = {
            "type": record["exception"].type.__name__ if record["exception"].type else None,
            "value": str(record["exception"].value) if record["exception"].value else None,
            "traceback": record["exception"].traceback is not None,
        }

    return json.dumps(subset, default=str)


def json_sink(message: Any) -> None:
    """Custom sink for JSON formatted logs."""
    print(serialize_record(message.record), file=sys.stdout, flush=True)


def setup_logging(settings: Settings | None = None) -> None:
    """Configure loguru sinks and the trace context patcher."""
    settings = settings or get_settings()

    logger.remove()
    logger.configure(patcher=trace_context_patcher)

    if settings.is_production or settings.log_json:
        # JSON format for production (easier to parse in log aggregators)
        logger.add(json_sink, level=settings.log_level, serialize=False)
    else:
        logger.add(
            sys.stdout,
            format=HUMAN_FORMAT,
            level=settings.log_level,
            colorize=True,
        )

    if settings.log_dir:
        log_dir = Path(settings.log_dir)
        log_dir.mkdir(parents=True, exist_ok=True)

        logger.add(
            log_dir / "otelspan_{time:YYYY-MM-DD}.log",
            rotation="00:00",
            retention="30 days",
            compression="gz",
            level=settings.log_level,
            format=FILE_FORMAT,
        )

    logger.info(f"Logging configured: level={settings.log_level}, env={settings.app_env}")


def get_logger(name: str = __name__) -> "logger":
    """
    Get a logger instance with context.

    Args:
        name: Logger name (usually module name)

    Returns:
        Logger instance bound with the given name
    """
    return logger.bind(logger_name=name)
