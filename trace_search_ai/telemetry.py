"""Logging and tracing setup for the trace search translator."""

import json
import logging
import os
import sys

from opentelemetry import trace

# Libraries that log every HTTP exchange at DEBUG.
_CHATTY_LOGGERS = ["httpx", "httpcore", "asyncio"]


def get_tracer(name: str) -> trace.Tracer:
    """Returns a tracer for the given module name."""
    return trace.get_tracer(name)


class JsonFormatter(logging.Formatter):
    """JSON log formatter with OpenTelemetry trace correlation."""

    def format(self, record: logging.LogRecord) -> str:
        log_obj = {
            "timestamp": self.formatTime(record, self.datefmt),
            "severity": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "func": record.funcName,
        }

        span_context = trace.get_current_span().get_span_context()
        if span_context.is_valid:
            log_obj["trace_id"] = format(span_context.trace_id, "032x")
            log_obj["span_id"] = format(span_context.span_id, "016x")

        if record.exc_info:
            log_obj["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_obj)


def setup_logging(level: int = logging.INFO) -> None:
    """Configures logging for the translator.

    LOG_LEVEL overrides ``level``; LOG_FORMAT=JSON switches to structured
    output on stdout, anything else keeps the plain text format.

    Args:
        level: The logging level to use (default: INFO)
    """
    env_level = os.environ.get("LOG_LEVEL", "").upper()
    if env_level in ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]:
        level = getattr(logging, env_level)

    for logger_name in _CHATTY_LOGGERS:
        logging.getLogger(logger_name).setLevel(max(level, logging.INFO))

    log_format = os.environ.get("LOG_FORMAT", "TEXT").upper()
    if log_format == "JSON":
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(JsonFormatter())
        root = logging.getLogger()
        root.handlers = [handler]
        root.setLevel(level)
    else:
        logging.basicConfig(
            level=level,
            format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
            force=True,
        )
