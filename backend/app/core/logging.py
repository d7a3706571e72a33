"""Logging configuration for the application.

Configures structlog to integrate with Python's logging module so that
structlog events and stdlib records (uvicorn, SQLAlchemy, Alembic) share one
processor chain and one output format.
"""

import logging
import sys
from collections.abc import MutableMapping
from typing import Any

import structlog
from opentelemetry import trace


def _add_otel_context(
    logger: logging.Logger, method_name: str, event_dict: MutableMapping[str, Any]
) -> MutableMapping[str, Any]:
    """Add OpenTelemetry trace and span IDs to log events for correlation."""
    span = trace.get_current_span()
    if span and span.is_recording():
        ctx = span.get_span_context()
        event_dict["trace_id"] = format(ctx.trace_id, "032x")
        event_dict["span_id"] = format(ctx.span_id, "016x")
    return event_dict


# structlog attaches the bound logger as _logger, which the OTLP exporter cannot serialize
OTEL_DROP_ATTRIBUTES = ("_logger",)


def _build_otel_handler(level: int, logger_provider: Any) -> logging.Handler:  # noqa: ANN401
    """
    Build an OTLP LoggingHandler that drops non-serializable record attributes.

    The SDK import is deferred so the handler class only exists when OTEL
    export is switched on.
    """
    from opentelemetry.sdk._logs import LoggingHandler  # noqa: PLC0415

    class AttrFilteredLoggingHandler(LoggingHandler):
        @staticmethod
        def _get_attributes(record: logging.LogRecord) -> Any:  # noqa: ANN401
            attributes = LoggingHandler._get_attributes(record)
            if attributes is None:
                return None
            filtered = dict(attributes)
            for attr in OTEL_DROP_ATTRIBUTES:
                filtered.pop(attr, None)
            return filtered

    return AttrFilteredLoggingHandler(level=level, logger_provider=logger_provider)


def configure_logging(*, log_level: str = "INFO", json_output: bool = False) -> None:
    """
    Configure structlog to integrate with Python's logging module.

    Args:
        log_level: Log level string (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        json_output: Render JSON lines instead of the colored console format
    """
    normalized_level = log_level.upper()

    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        _add_otel_context,
    ]

    structlog.configure(
        processors=[
            *shared_processors,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    if json_output:
        renderer: structlog.types.Processor = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=True)

    formatter = structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=shared_processors,
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            renderer,
        ],
    )

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(getattr(logging, normalized_level))

    # Lazy import to avoid circular dependency (telemetry imports structlog loggers)
    from app.core.config import settings  # noqa: PLC0415

    if settings.OTEL_ENABLED:
        from app.core.telemetry import get_logger_provider  # noqa: PLC0415

        if logger_provider := get_logger_provider():
            otel_handler = _build_otel_handler(getattr(logging, settings.OTEL_LOG_LEVEL), logger_provider)
            root_logger.addHandler(otel_handler)

            structlog.get_logger(__name__).info(
                "otel_logging_handler_attached",
                level=settings.OTEL_LOG_LEVEL,
                endpoint=settings.OTEL_EXPORTER_OTLP_LOGS_ENDPOINT,
            )

    noisy_loggers = [
        "aiosqlite",  # Per-statement debug output
        "sqlalchemy.engine.Engine",  # Controlled by DATABASE_ECHO instead
        "opentelemetry.exporter.otlp.proto.http",  # OTLP export logs
        "uvicorn.access",  # Replaced by AccessLoggingMiddleware
    ]
    for logger_name in noisy_loggers:
        logging.getLogger(logger_name).setLevel(logging.WARNING)
