"""Structured logging for the gamification engine."""

import logging

import structlog

from ehub.config import Settings


def _app_context(settings: Settings) -> structlog.types.Processor:
    """Stamp every entry with the deployment it came from."""

    def add_app_context(
        _logger: structlog.types.WrappedLogger, _method: str, event_dict: structlog.types.EventDict
    ) -> structlog.types.EventDict:
        event_dict.setdefault("app_version", settings.app_version)
        event_dict.setdefault("environment", settings.environment)
        return event_dict

    return add_app_context


def setup_logging(settings: Settings) -> None:
    """Configure structlog; JSON in deployed environments, console when ``log_format`` asks for it."""
    renderer: structlog.types.Processor = (
        structlog.processors.JSONRenderer() if settings.log_format == "json" else structlog.dev.ConsoleRenderer()
    )

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.add_log_level,
            structlog.stdlib.add_logger_name,
            _app_context(settings),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.format_exc_info,
            renderer,
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(level=getattr(logging, settings.log_level.upper(), logging.INFO))
    # SQL statement logging follows debug.
    logging.getLogger("sqlalchemy.engine").setLevel(logging.INFO if settings.debug else logging.WARNING)
