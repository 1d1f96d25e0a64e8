"""
Activity Logger

DESIGN DECISION: Every significant action is logged as a structured event.
This provides:
1. Traceability of what a user did in a session
2. Debugging capability for sync, insert and delete failures
3. A record of failures the UI deliberately keeps quiet (AI insights)

The activity logger:
- Only writes to the local structured log (no persistence)
- Never raises - logging must not break the dashboard
"""

from typing import Optional

import structlog

from smartcash.models.activity import (
    ActivityEvent,
    ActivityEventBuilder,
    ActivityEventType,
    ActivitySeverity,
)


# Configure structlog for local logging
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


class ActivityLogger:
    """Central activity logging service."""

    def __init__(self, logger=None):
        self._logger = logger or structlog.get_logger("smartcash.activity")

    def log(self, event: ActivityEvent) -> None:
        """Log an activity event at the level implied by its severity."""
        log_dict = event.to_log_dict()

        if event.severity == ActivitySeverity.ERROR:
            self._logger.error("activity_event", **log_dict)
        elif event.severity == ActivitySeverity.WARNING:
            self._logger.warning("activity_event", **log_dict)
        elif event.severity == ActivitySeverity.DEBUG:
            self._logger.debug("activity_event", **log_dict)
        else:
            self._logger.info("activity_event", **log_dict)

    def log_session(
        self,
        event_type: ActivityEventType,
        user_email: Optional[str],
        description: str,
    ) -> None:
        self.log(ActivityEventBuilder.session_event(event_type, user_email, description))

    def log_auth_failed(
        self,
        action: str,
        user_email: Optional[str],
        error_message: str,
    ) -> None:
        self.log(ActivityEventBuilder.auth_failed(action, user_email, error_message))

    def log_admin_mode(
        self,
        event_type: ActivityEventType,
        user_email: Optional[str],
    ) -> None:
        self.log(ActivityEventBuilder.admin_mode(event_type, user_email))

    def log_transactions_loaded(
        self,
        count: int,
        admin_mode: bool,
        user_email: Optional[str],
    ) -> None:
        self.log(ActivityEventBuilder.transactions_loaded(count, admin_mode, user_email))

    def log_sync_failed(
        self,
        error_message: str,
        user_email: Optional[str],
    ) -> None:
        self.log(ActivityEventBuilder.sync_failed(error_message, user_email))

    def log_validation_failed(
        self,
        issues: list[dict],
        user_email: Optional[str],
    ) -> None:
        self.log(ActivityEventBuilder.validation_failed(issues, user_email))

    def log_transaction_created(
        self,
        transaction_id: str,
        amount: str,
        transaction_type: str,
        user_email: Optional[str],
    ) -> None:
        self.log(
            ActivityEventBuilder.transaction_created(
                transaction_id=transaction_id,
                amount=amount,
                transaction_type=transaction_type,
                user_email=user_email,
            )
        )

    def log_create_failed(
        self,
        error_message: str,
        user_email: Optional[str],
    ) -> None:
        self.log(ActivityEventBuilder.create_failed(error_message, user_email))

    def log_transaction_deleted(
        self,
        transaction_id: str,
        user_email: Optional[str],
    ) -> None:
        self.log(ActivityEventBuilder.transaction_deleted(transaction_id, user_email))

    def log_delete_failed(
        self,
        transaction_id: str,
        error_message: str,
        rolled_back: bool,
        user_email: Optional[str],
    ) -> None:
        self.log(
            ActivityEventBuilder.delete_failed(
                transaction_id=transaction_id,
                error_message=error_message,
                rolled_back=rolled_back,
                user_email=user_email,
            )
        )

    def log_insights_generated(
        self,
        insight_count: int,
        transaction_count: int,
        admin_mode: bool,
        user_email: Optional[str],
    ) -> None:
        self.log(
            ActivityEventBuilder.insights_generated(
                insight_count=insight_count,
                transaction_count=transaction_count,
                admin_mode=admin_mode,
                user_email=user_email,
            )
        )

    def log_external_service_error(
        self,
        service: str,
        error_message: str,
    ) -> None:
        self.log(ActivityEventBuilder.external_service_error(service, error_message))
