"""
Audit Logger

DESIGN DECISION: Every significant action in the system is logged.
This provides:
1. Complete traceability of changes to transactions and budgets
2. Debugging capability for unreliable AI output
3. A record of silent recoveries (corrupt storage, ignored categories)

The audit logger:
- Is synchronous, like the storage writes it sits next to
- Gracefully handles failures (doesn't crash the app if logging fails)
- Supports correlation IDs to trace related events
"""

from typing import Any, Optional
from uuid import UUID, uuid4

import structlog

from finsight.models.audit import AuditEvent, AuditEventBuilder
from finsight.services.storage import AuditStorageInterface


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


class AuditLogger:
    """
    Central audit logging service.

    Logs events both to:
    1. Structured local log (for debugging)
    2. Audit storage (for persistence), when configured
    """

    def __init__(
        self,
        storage: Optional[AuditStorageInterface] = None,
    ):
        """
        Initialize audit logger.

        Args:
            storage: Storage backend for persistence.
                    If None, only logs locally.
        """
        self._storage = storage
        self._logger = structlog.get_logger("finsight.audit")

    def log(self, event: AuditEvent) -> bool:
        """
        Log an audit event.

        Always logs locally. Persists to storage if available.

        Returns True if storage write succeeded (or no storage configured).
        """
        log_dict = event.to_log_dict()

        if event.severity.value in ("error", "critical"):
            self._logger.error("audit_event", **log_dict)
        elif event.severity.value == "warning":
            self._logger.warning("audit_event", **log_dict)
        elif event.severity.value == "debug":
            self._logger.debug("audit_event", **log_dict)
        else:
            self._logger.info("audit_event", **log_dict)

        if self._storage:
            try:
                return self._storage.append_event(event)
            except Exception as e:
                # Log failure but don't raise
                self._logger.error(
                    "audit_storage_failed",
                    error=str(e),
                    event_id=str(event.event_id),
                )
                return False

        return True

    def log_transaction_added(
        self,
        transaction_id: str,
        amount: str,
        category: str,
        transaction_type: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log a committed transaction."""
        self.log(AuditEventBuilder.transaction_added(
            transaction_id=transaction_id,
            amount=amount,
            category=category,
            transaction_type=transaction_type,
            correlation_id=correlation_id,
        ))

    def log_transaction_deleted(self, transaction_id: str) -> None:
        """Log a deleted transaction."""
        self.log(AuditEventBuilder.transaction_deleted(transaction_id))

    def log_validation_failed(
        self,
        issues: list[dict],
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log a draft that was blocked at submission."""
        self.log(AuditEventBuilder.validation_failed(
            issues=issues,
            correlation_id=correlation_id,
        ))

    def log_budget_updated(
        self,
        category: str,
        old_limit: Optional[str],
        new_limit: str,
    ) -> None:
        """Log a budget limit change."""
        self.log(AuditEventBuilder.budget_updated(
            category=category,
            old_limit=old_limit,
            new_limit=new_limit,
        ))

    def log_storage_seeded(self, key: str, record_count: int) -> None:
        """Log first-run seeding of a storage key."""
        self.log(AuditEventBuilder.storage_seeded(key, record_count))

    def log_storage_corrupt(self, key: str, error_message: str) -> None:
        """Log a corrupt record that was replaced by defaults."""
        self.log(AuditEventBuilder.storage_corrupt(key, error_message))

    def log_ai_request(
        self,
        slot: str,
        status: str,
        details: Optional[dict] = None,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log the outcome of an AI request."""
        self.log(AuditEventBuilder.ai_request_completed(
            slot=slot,
            status=status,
            details=details,
            correlation_id=correlation_id,
        ))

    def log_ai_response_malformed(
        self,
        slot: str,
        error_message: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log AI output that could not be parsed."""
        self.log(AuditEventBuilder.ai_response_malformed(
            slot=slot,
            error_message=error_message,
            correlation_id=correlation_id,
        ))

    def log_ai_result_superseded(self, slot: str, ticket: int) -> None:
        """Log a stale AI result that was discarded."""
        self.log(AuditEventBuilder.ai_result_superseded(slot, ticket))

    def log_unknown_category(
        self,
        value: Any,
        source: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log a category value outside the closed set."""
        self.log(AuditEventBuilder.unknown_category_ignored(
            value=value,
            source=source,
            correlation_id=correlation_id,
        ))

    def log_external_service_error(
        self,
        service: str,
        error_message: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log external service error."""
        self.log(AuditEventBuilder.external_service_error(
            service=service,
            error_message=error_message,
            correlation_id=correlation_id,
        ))


def create_correlation_id() -> UUID:
    """
    Create a new correlation ID for tracking related events.

    Use this at the start of a new user action (e.g., opening the
    add-transaction form). Pass it through all subsequent operations.
    """
    return uuid4()
