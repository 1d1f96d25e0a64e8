"""
Activity Event Models for SmartCash

Every significant user action and every backend failure produces one
structured event. Events are written to the local structured log only.
They give us:
1. Traceability of what happened during a session
2. Debugging information when a sync or delete goes wrong
3. A single place where failures that the UI swallows still get recorded
"""

from datetime import datetime
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


class ActivityEventType(str, Enum):
    """Types of events we record."""
    # Session
    SESSION_RESTORED = "session_restored"
    USER_SIGNED_UP = "user_signed_up"
    USER_SIGNED_IN = "user_signed_in"
    USER_SIGNED_OUT = "user_signed_out"
    PASSWORD_RESET_REQUESTED = "password_reset_requested"
    GUEST_SESSION_STARTED = "guest_session_started"
    AUTH_FAILED = "auth_failed"

    # Admin gate
    ADMIN_MODE_ENABLED = "admin_mode_enabled"
    ADMIN_MODE_DENIED = "admin_mode_denied"
    ADMIN_MODE_DISABLED = "admin_mode_disabled"

    # Transactions
    TRANSACTIONS_LOADED = "transactions_loaded"
    SYNC_FAILED = "sync_failed"
    VALIDATION_FAILED = "validation_failed"
    TRANSACTION_CREATED = "transaction_created"
    CREATE_FAILED = "create_failed"
    TRANSACTION_DELETED = "transaction_deleted"
    DELETE_FAILED = "delete_failed"

    # Insights
    INSIGHTS_GENERATED = "insights_generated"

    # System events
    EXTERNAL_SERVICE_ERROR = "external_service_error"


class ActivitySeverity(str, Enum):
    """Severity level for activity events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


class ActivityEvent(BaseModel):
    """A single activity event."""

    event_id: UUID = Field(
        default_factory=uuid4,
        description="Unique event identifier"
    )
    timestamp: datetime = Field(
        default_factory=datetime.utcnow,
        description="When the event occurred (UTC)"
    )

    event_type: ActivityEventType
    severity: ActivitySeverity = ActivitySeverity.INFO

    # Who triggered it (absent in demo mode)
    user_email: Optional[str] = None

    # What entity is this about?
    entity_type: Optional[str] = Field(
        default=None,
        description="Type of entity (e.g., 'transaction', 'session')"
    )
    entity_id: Optional[str] = None

    description: str = Field(..., max_length=500)
    details: dict[str, Any] = Field(default_factory=dict)
    error_message: Optional[str] = None

    is_user_action: bool = False

    def to_log_dict(self) -> dict:
        """Convert to a dictionary suitable for structured logging."""
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "user_email": self.user_email,
            "entity_type": self.entity_type,
            "entity_id": self.entity_id,
            "description": self.description,
            "details": self.details,
            "error_message": self.error_message,
            "is_user_action": self.is_user_action,
        }


class ActivityEventBuilder:
    """
    Helper class to build activity events with common patterns.

    Usage:
        event = ActivityEventBuilder.transaction_created(transaction, email)
        event = ActivityEventBuilder.sync_failed(error_message, email)
    """

    @staticmethod
    def session_event(
        event_type: ActivityEventType,
        user_email: Optional[str],
        description: str,
    ) -> ActivityEvent:
        return ActivityEvent(
            event_type=event_type,
            entity_type="session",
            user_email=user_email,
            description=description,
            is_user_action=True,
        )

    @staticmethod
    def auth_failed(
        action: str,
        user_email: Optional[str],
        error_message: str,
    ) -> ActivityEvent:
        return ActivityEvent(
            event_type=ActivityEventType.AUTH_FAILED,
            severity=ActivitySeverity.WARNING,
            entity_type="session",
            user_email=user_email,
            description=f"Authentication failed during {action}",
            details={"action": action},
            error_message=error_message,
            is_user_action=True,
        )

    @staticmethod
    def admin_mode(
        event_type: ActivityEventType,
        user_email: Optional[str],
    ) -> ActivityEvent:
        severity = (
            ActivitySeverity.WARNING
            if event_type == ActivityEventType.ADMIN_MODE_DENIED
            else ActivitySeverity.INFO
        )
        return ActivityEvent(
            event_type=event_type,
            severity=severity,
            entity_type="session",
            user_email=user_email,
            description=f"Admin gate: {event_type.value.replace('_', ' ')}",
            is_user_action=True,
        )

    @staticmethod
    def transactions_loaded(
        count: int,
        admin_mode: bool,
        user_email: Optional[str],
    ) -> ActivityEvent:
        return ActivityEvent(
            event_type=ActivityEventType.TRANSACTIONS_LOADED,
            entity_type="transaction",
            user_email=user_email,
            description=f"Loaded {count} transactions",
            details={"count": count, "admin_mode": admin_mode},
        )

    @staticmethod
    def sync_failed(
        error_message: str,
        user_email: Optional[str],
    ) -> ActivityEvent:
        return ActivityEvent(
            event_type=ActivityEventType.SYNC_FAILED,
            severity=ActivitySeverity.ERROR,
            entity_type="transaction",
            user_email=user_email,
            description="Could not load transactions",
            error_message=error_message,
        )

    @staticmethod
    def validation_failed(
        issues: list[dict],
        user_email: Optional[str],
    ) -> ActivityEvent:
        return ActivityEvent(
            event_type=ActivityEventType.VALIDATION_FAILED,
            severity=ActivitySeverity.WARNING,
            entity_type="transaction",
            user_email=user_email,
            description=f"Entry form rejected with {len(issues)} issues",
            details={"issues": issues},
            is_user_action=True,
        )

    @staticmethod
    def transaction_created(
        transaction_id: str,
        amount: str,
        transaction_type: str,
        user_email: Optional[str],
    ) -> ActivityEvent:
        return ActivityEvent(
            event_type=ActivityEventType.TRANSACTION_CREATED,
            entity_type="transaction",
            entity_id=transaction_id,
            user_email=user_email,
            description=f"Transaction saved: {transaction_type} R$ {amount}",
            details={"amount": amount, "type": transaction_type},
            is_user_action=True,
        )

    @staticmethod
    def create_failed(
        error_message: str,
        user_email: Optional[str],
    ) -> ActivityEvent:
        return ActivityEvent(
            event_type=ActivityEventType.CREATE_FAILED,
            severity=ActivitySeverity.ERROR,
            entity_type="transaction",
            user_email=user_email,
            description="Could not save transaction",
            error_message=error_message,
            is_user_action=True,
        )

    @staticmethod
    def transaction_deleted(
        transaction_id: str,
        user_email: Optional[str],
    ) -> ActivityEvent:
        return ActivityEvent(
            event_type=ActivityEventType.TRANSACTION_DELETED,
            entity_type="transaction",
            entity_id=transaction_id,
            user_email=user_email,
            description="Transaction deleted",
            is_user_action=True,
        )

    @staticmethod
    def delete_failed(
        transaction_id: str,
        error_message: str,
        rolled_back: bool,
        user_email: Optional[str],
    ) -> ActivityEvent:
        return ActivityEvent(
            event_type=ActivityEventType.DELETE_FAILED,
            severity=ActivitySeverity.ERROR,
            entity_type="transaction",
            entity_id=transaction_id,
            user_email=user_email,
            description="Could not delete transaction from storage",
            details={"rolled_back": rolled_back},
            error_message=error_message,
            is_user_action=True,
        )

    @staticmethod
    def insights_generated(
        insight_count: int,
        transaction_count: int,
        admin_mode: bool,
        user_email: Optional[str],
    ) -> ActivityEvent:
        return ActivityEvent(
            event_type=ActivityEventType.INSIGHTS_GENERATED,
            entity_type="insight",
            user_email=user_email,
            description=f"Generated {insight_count} insights",
            details={
                "insight_count": insight_count,
                "transaction_count": transaction_count,
                "admin_mode": admin_mode,
            },
            is_user_action=True,
        )

    @staticmethod
    def external_service_error(
        service: str,
        error_message: str,
    ) -> ActivityEvent:
        return ActivityEvent(
            event_type=ActivityEventType.EXTERNAL_SERVICE_ERROR,
            severity=ActivitySeverity.ERROR,
            description=f"External service error: {service}",
            error_message=error_message,
            details={"service": service},
        )
