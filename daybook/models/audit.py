"""
Activity Models for Daybook

Every significant action in the dashboard is logged as an ActivityEvent.
This provides:
1. A trace of what the ledger did and when
2. Debugging information when the AI service misbehaves
3. Correlation of the steps of one fetch cycle or commentary request

DESIGN DECISION: Events are only written to the structured log.
The ledger entry is the one piece of persisted state; activity is not.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ActivityEventType(str, Enum):
    """Types of events we log."""
    # Ledger
    LEDGER_LOADED = "ledger_loaded"
    LEDGER_LOAD_FAILED = "ledger_load_failed"
    LEDGER_SAVE_FAILED = "ledger_save_failed"
    TRANSACTION_ADDED = "transaction_added"
    TRANSACTION_REJECTED = "transaction_rejected"
    TRANSACTION_REMOVED = "transaction_removed"

    # Commentary
    COMMENTARY_REQUESTED = "commentary_requested"
    COMMENTARY_APPLIED = "commentary_applied"
    COMMENTARY_DISCARDED = "commentary_discarded"

    # Weather
    WEATHER_FETCHED = "weather_fetched"
    WEATHER_FAILED = "weather_failed"
    IMAGE_GENERATED = "image_generated"

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
        default_factory=_utcnow,
        description="When the event occurred (UTC)"
    )
    event_type: ActivityEventType
    severity: ActivitySeverity = ActivitySeverity.INFO

    # What entity is this about?
    entity_type: Optional[str] = None
    entity_id: Optional[str] = None

    # Ties together the steps of one fetch cycle or one commentary request
    correlation_id: Optional[UUID] = None

    description: str = Field(..., max_length=500)
    details: dict[str, Any] = Field(default_factory=dict)
    error_message: Optional[str] = None
    is_user_action: bool = False

    def to_log_dict(self) -> dict:
        """
        Convert to a dictionary suitable for structured logging.
        """
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "entity_type": self.entity_type,
            "entity_id": self.entity_id,
            "correlation_id": str(self.correlation_id) if self.correlation_id else None,
            "description": self.description,
            "details": self.details,
            "error_message": self.error_message,
            "is_user_action": self.is_user_action,
        }


class ActivityEventBuilder:
    """
    Helper class to build activity events with common patterns.

    Usage:
        event = ActivityEventBuilder.transaction_added(tx_id, 12000, "food")
        event = ActivityEventBuilder.weather_failed(error, correlation_id)
    """

    @staticmethod
    def ledger_loaded(count: int) -> ActivityEvent:
        return ActivityEvent(
            event_type=ActivityEventType.LEDGER_LOADED,
            entity_type="ledger",
            description=f"Ledger loaded with {count} transactions",
            details={"count": count},
        )

    @staticmethod
    def ledger_load_failed(error_message: str) -> ActivityEvent:
        return ActivityEvent(
            event_type=ActivityEventType.LEDGER_LOAD_FAILED,
            severity=ActivitySeverity.WARNING,
            entity_type="ledger",
            description="Stored ledger could not be parsed; starting empty",
            error_message=error_message,
        )

    @staticmethod
    def ledger_save_failed(error_message: str) -> ActivityEvent:
        return ActivityEvent(
            event_type=ActivityEventType.LEDGER_SAVE_FAILED,
            severity=ActivitySeverity.ERROR,
            entity_type="ledger",
            description="Ledger could not be written to local storage",
            error_message=error_message,
        )

    @staticmethod
    def transaction_added(
        transaction_id: str,
        amount: int,
        category: str,
    ) -> ActivityEvent:
        return ActivityEvent(
            event_type=ActivityEventType.TRANSACTION_ADDED,
            entity_type="transaction",
            entity_id=transaction_id,
            description=f"Transaction added: {category} ₩{amount:,}",
            details={"amount": amount, "category": category},
            is_user_action=True,
        )

    @staticmethod
    def transaction_rejected(raw_amount: Optional[str], category: Optional[str]) -> ActivityEvent:
        return ActivityEvent(
            event_type=ActivityEventType.TRANSACTION_REJECTED,
            severity=ActivitySeverity.DEBUG,
            entity_type="transaction",
            description="Submission ignored: amount or category missing",
            details={"raw_amount": raw_amount, "category": category},
            is_user_action=True,
        )

    @staticmethod
    def transaction_removed(transaction_id: str) -> ActivityEvent:
        return ActivityEvent(
            event_type=ActivityEventType.TRANSACTION_REMOVED,
            entity_type="transaction",
            entity_id=transaction_id,
            description="Transaction removed",
            is_user_action=True,
        )

    @staticmethod
    def commentary_requested(
        sequence: int,
        total: int,
        categories: list[str],
        correlation_id: UUID,
    ) -> ActivityEvent:
        return ActivityEvent(
            event_type=ActivityEventType.COMMENTARY_REQUESTED,
            entity_type="commentary",
            entity_id=str(sequence),
            correlation_id=correlation_id,
            description=f"Spending comment requested for ₩{total:,}",
            details={"total": total, "categories": categories},
        )

    @staticmethod
    def commentary_applied(
        sequence: int,
        comment: str,
        correlation_id: UUID,
    ) -> ActivityEvent:
        return ActivityEvent(
            event_type=ActivityEventType.COMMENTARY_APPLIED,
            entity_type="commentary",
            entity_id=str(sequence),
            correlation_id=correlation_id,
            description="Spending comment applied",
            details={"comment": comment},
        )

    @staticmethod
    def commentary_discarded(
        sequence: int,
        latest: int,
        correlation_id: UUID,
    ) -> ActivityEvent:
        return ActivityEvent(
            event_type=ActivityEventType.COMMENTARY_DISCARDED,
            severity=ActivitySeverity.DEBUG,
            entity_type="commentary",
            entity_id=str(sequence),
            correlation_id=correlation_id,
            description=f"Stale spending comment #{sequence} discarded (latest #{latest})",
            details={"sequence": sequence, "latest": latest},
        )

    @staticmethod
    def weather_fetched(
        location: str,
        condition: str,
        correlation_id: UUID,
    ) -> ActivityEvent:
        return ActivityEvent(
            event_type=ActivityEventType.WEATHER_FETCHED,
            entity_type="weather",
            correlation_id=correlation_id,
            description="Weather fetched",
            details={"location": location, "condition": condition},
        )

    @staticmethod
    def weather_failed(error_message: str, correlation_id: UUID) -> ActivityEvent:
        return ActivityEvent(
            event_type=ActivityEventType.WEATHER_FAILED,
            severity=ActivitySeverity.WARNING,
            entity_type="weather",
            correlation_id=correlation_id,
            description="Weather fetch failed; keeping previous snapshot",
            error_message=error_message,
        )

    @staticmethod
    def image_generated(succeeded: bool, correlation_id: UUID) -> ActivityEvent:
        return ActivityEvent(
            event_type=ActivityEventType.IMAGE_GENERATED,
            severity=ActivitySeverity.INFO if succeeded else ActivitySeverity.WARNING,
            entity_type="image",
            correlation_id=correlation_id,
            description="Weather image generated" if succeeded else "Weather image unavailable",
            details={"succeeded": succeeded},
        )

    @staticmethod
    def external_service_error(
        service: str,
        error_message: str,
        correlation_id: Optional[UUID] = None,
    ) -> ActivityEvent:
        return ActivityEvent(
            event_type=ActivityEventType.EXTERNAL_SERVICE_ERROR,
            severity=ActivitySeverity.ERROR,
            description=f"External service error: {service}",
            error_message=error_message,
            details={"service": service},
            correlation_id=correlation_id,
        )
