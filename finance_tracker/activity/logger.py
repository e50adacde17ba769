"""
Activity Logger

DESIGN DECISION: Every record change, sign-in and external call is
logged as a structured event. Logging must never break the action
that triggered it, so the logger swallows its own failures.

The logger:
- Is async so services can await it alongside their own calls
- Routes each event to the structlog level matching its severity
- Keeps the user id on every line so one user's history can be grepped
"""

import logging
from typing import Optional
from uuid import UUID

import structlog

from finance_tracker.config import get_settings
from finance_tracker.models.activity import (
    ActivityEvent,
    ActivityEventBuilder,
    ActivitySeverity,
)


def configure_logging(level: Optional[str] = None) -> None:
    """
    Configure stdlib logging and structlog.

    Called once at import time with the level from AppSettings.
    Safe to call again (e.g. from tests) with a different level.
    """
    if level is None:
        level = get_settings().app.log_level
    logging.basicConfig(format="%(message)s", level=level.upper())
    logging.getLogger().setLevel(level.upper())

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            structlog.processors.JSONRenderer()
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


configure_logging()


class ActivityLogger:
    """
    Central activity logging service.

    Keeps the last few events per user in memory as well, so the UI can
    show a user their own "recent activity" without reading the log file.
    Events without a user id are kept under None and never shown to a
    signed-in user.
    """

    def __init__(self, history_size: int = 50):
        self._logger = structlog.get_logger("finance_tracker.activity")
        self._history: dict[Optional[str], list[ActivityEvent]] = {}
        self._history_size = history_size

    def recent_events(self, user_id: Optional[str]) -> list[ActivityEvent]:
        """The given user's most recent events, newest first."""
        return list(reversed(self._history.get(user_id, [])))

    async def log(self, event: ActivityEvent) -> bool:
        """
        Log an activity event.

        Returns False if the event could not be written. Never raises.
        """
        try:
            log_dict = event.to_log_dict()

            if event.severity == ActivitySeverity.ERROR:
                self._logger.error("activity_event", **log_dict)
            elif event.severity == ActivitySeverity.WARNING:
                self._logger.warning("activity_event", **log_dict)
            elif event.severity == ActivitySeverity.DEBUG:
                self._logger.debug("activity_event", **log_dict)
            else:
                self._logger.info("activity_event", **log_dict)

            history = self._history.setdefault(event.user_id, [])
            history.append(event)
            if len(history) > self._history_size:
                del history[:-self._history_size]
            return True
        except Exception as e:
            logging.getLogger(__name__).error("activity logging failed: %s", e)
            return False

    async def log_record_changed(
        self,
        entity_type: str,
        action: str,
        entity_id: UUID,
        user_id: str,
        details: Optional[dict] = None,
    ) -> None:
        """Log an account/transaction/investment create, update or delete."""
        await self.log(ActivityEventBuilder.record_changed(
            entity_type=entity_type,
            action=action,
            entity_id=entity_id,
            user_id=user_id,
            details=details,
        ))

    async def log_storage_error(
        self,
        operation: str,
        error_message: str,
        user_id: Optional[str] = None,
    ) -> None:
        await self.log(ActivityEventBuilder.storage_error(
            operation=operation,
            error_message=error_message,
            user_id=user_id,
        ))

    async def log_external_service_error(
        self,
        service: str,
        error_message: str,
        user_id: Optional[str] = None,
    ) -> None:
        await self.log(ActivityEventBuilder.external_service_error(
            service=service,
            error_message=error_message,
            user_id=user_id,
        ))
