"""
Activity Logger

DESIGN DECISION: Every significant action in the dashboard is logged.
This provides:
1. Traceability of ledger changes
2. Debugging capability when the AI service misbehaves
3. Correlation IDs to trace one fetch cycle or commentary request

The activity logger:
- Writes structured JSON through structlog only
- Keeps no state of its own; events are not persisted
"""

from typing import Optional
from uuid import UUID, uuid4

import structlog

from daybook.models.audit import (
    ActivityEvent,
    ActivityEventBuilder,
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
        structlog.processors.JSONRenderer(ensure_ascii=False)
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)


class ActivityLogger:
    """
    Central activity logging service.

    Components receive one instance and report through the helper
    methods below rather than building events themselves.
    """

    def __init__(self, name: str = "daybook"):
        self._logger = structlog.get_logger(name)

    def log(self, event: ActivityEvent) -> None:
        """Log an activity event at the level matching its severity."""
        log_dict = event.to_log_dict()
        if event.severity == ActivitySeverity.ERROR:
            self._logger.error("activity_event", **log_dict)
        elif event.severity == ActivitySeverity.WARNING:
            self._logger.warning("activity_event", **log_dict)
        elif event.severity == ActivitySeverity.DEBUG:
            self._logger.debug("activity_event", **log_dict)
        else:
            self._logger.info("activity_event", **log_dict)

    # Ledger

    def log_ledger_loaded(self, count: int) -> None:
        self.log(ActivityEventBuilder.ledger_loaded(count))

    def log_ledger_load_failed(self, error_message: str) -> None:
        self.log(ActivityEventBuilder.ledger_load_failed(error_message))

    def log_ledger_save_failed(self, error_message: str) -> None:
        self.log(ActivityEventBuilder.ledger_save_failed(error_message))

    def log_transaction_added(self, transaction_id: str, amount: int, category: str) -> None:
        self.log(ActivityEventBuilder.transaction_added(transaction_id, amount, category))

    def log_transaction_rejected(self, raw_amount: Optional[str], category: Optional[str]) -> None:
        self.log(ActivityEventBuilder.transaction_rejected(raw_amount, category))

    def log_transaction_removed(self, transaction_id: str) -> None:
        self.log(ActivityEventBuilder.transaction_removed(transaction_id))

    # Commentary

    def log_commentary_requested(
        self,
        sequence: int,
        total: int,
        categories: list[str],
        correlation_id: UUID,
    ) -> None:
        self.log(ActivityEventBuilder.commentary_requested(
            sequence=sequence,
            total=total,
            categories=categories,
            correlation_id=correlation_id,
        ))

    def log_commentary_applied(self, sequence: int, comment: str, correlation_id: UUID) -> None:
        self.log(ActivityEventBuilder.commentary_applied(sequence, comment, correlation_id))

    def log_commentary_discarded(self, sequence: int, latest: int, correlation_id: UUID) -> None:
        self.log(ActivityEventBuilder.commentary_discarded(sequence, latest, correlation_id))

    # Weather

    def log_weather_fetched(self, location: str, condition: str, correlation_id: UUID) -> None:
        self.log(ActivityEventBuilder.weather_fetched(location, condition, correlation_id))

    def log_weather_failed(self, error_message: str, correlation_id: UUID) -> None:
        self.log(ActivityEventBuilder.weather_failed(error_message, correlation_id))

    def log_image_generated(self, succeeded: bool, correlation_id: UUID) -> None:
        self.log(ActivityEventBuilder.image_generated(succeeded, correlation_id))

    def log_external_service_error(
        self,
        service: str,
        error_message: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log external service error."""
        self.log(ActivityEventBuilder.external_service_error(
            service=service,
            error_message=error_message,
            correlation_id=correlation_id,
        ))


def create_correlation_id() -> UUID:
    """
    Create a new correlation ID for tracking related events.

    Use this at the start of a fetch cycle or commentary request.
    Pass it through all subsequent operations.
    """
    return uuid4()
