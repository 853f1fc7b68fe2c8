"""Observability setup: Pydantic Logfire plus the standard logging module.

Modules log through ``logging.getLogger(__name__)`` with event-style messages and
structured ``extra`` fields; once configure_logfire() runs, Logfire receives those
records alongside its own spans.

    logger.info("task_created", extra={"task_id": "42"})
    log_with_user_context(logger, "info", "task_checklist_updated", user_id="7", task_id="42")
"""

import logging

import logfire
from fastapi import FastAPI

from src.core.config import Settings


def configure_logfire(settings: Settings) -> None:
    """Configure Pydantic Logfire and route standard logging records through it."""
    logfire.configure(
        token=settings.logfire_token,
        service_name="taskboard",
        service_version="0.1.0",
        environment=settings.environment,
        send_to_logfire="if-token-present",
    )
    logging.basicConfig(handlers=[logfire.LogfireLoggingHandler()], level=logging.INFO)

    logger = logging.getLogger(__name__)
    logger.info("Logfire configured successfully")


def instrument_fastapi(app: FastAPI, settings: Settings) -> None:
    """Add Logfire request instrumentation to the FastAPI application when a token is configured."""
    logger = logging.getLogger(__name__)
    if not settings.logfire_token:
        logger.info("FastAPI instrumentation skipped", extra={"reason": "no_logfire_token"})
        return

    logfire.instrument_fastapi(app)
    logger.info("FastAPI instrumentation configured")


def span(name: str) -> logfire.LogfireSpan:
    """Create a custom span for service layer functions.

    Usage:
        with span("task_service.create_task"):
            # Your service logic here
            pass
    """
    return logfire.span(name)


def log_with_context(
    logger: logging.Logger,
    level: str,
    message: str,
    **context: object,
) -> None:
    """Log a message with structured context fields.

    Args:
        logger: Logger instance to use
        level: Log level ("debug", "info", "warning", "error", "critical")
        message: Log message
        **context: Additional context fields (user_id, task_id, action, etc.)
    """
    log_method = getattr(logger, level.lower())
    log_method(message, extra=context)


def log_with_user_context(
    logger: logging.Logger,
    level: str,
    message: str,
    user_id: str | None = None,
    **extra: object,
) -> None:
    """Log a message with the acting user's id attached.

    Usage:
        log_with_user_context(logger, "info", "Checklist updated", user_id="123", task_id="42")
    """
    context = {"user_id": user_id, **extra} if user_id else extra
    log_with_context(logger, level, message, **context)
