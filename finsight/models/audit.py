"""
Audit Models for FinSight

Every significant action in the system is logged for audit purposes.
This provides:
1. Traceability of every change to the transaction log and budgets
2. Visibility into how often the AI backend returns unusable output
3. A record of silent recoveries (corrupt storage, ignored categories)

DESIGN DECISION: Audit logs are append-only. We never delete or modify them.
"""

import json
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class AuditEventType(str, Enum):
    """Types of events we audit."""
    # Transaction log
    TRANSACTION_ADDED = "transaction_added"
    TRANSACTION_DELETED = "transaction_deleted"
    VALIDATION_FAILED = "validation_failed"

    # Budgets
    BUDGET_UPDATED = "budget_updated"

    # Persistence
    STORAGE_SEEDED = "storage_seeded"
    STORAGE_CORRUPT = "storage_corrupt"

    # AI assistance
    AI_REQUEST_COMPLETED = "ai_request_completed"
    AI_RESPONSE_MALFORMED = "ai_response_malformed"
    AI_RESULT_SUPERSEDED = "ai_result_superseded"
    UNKNOWN_CATEGORY_IGNORED = "unknown_category_ignored"

    # System events
    EXTERNAL_SERVICE_ERROR = "external_service_error"


class AuditSeverity(str, Enum):
    """Severity level for audit events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class AuditEvent(BaseModel):
    """
    A single audit event.

    This is the core unit of our audit trail.
    Every significant action creates one of these.
    """

    # Identity
    event_id: UUID = Field(
        default_factory=uuid4,
        description="Unique event identifier"
    )
    timestamp: datetime = Field(
        default_factory=_utc_now,
        description="When the event occurred (UTC)"
    )

    # Event classification
    event_type: AuditEventType = Field(
        ...,
        description="Type of event"
    )
    severity: AuditSeverity = Field(
        default=AuditSeverity.INFO,
        description="Event severity"
    )

    # Context - what entity is this about?
    entity_type: Optional[str] = Field(
        default=None,
        description="Type of entity (e.g., 'transaction', 'budget', 'ai_slot')"
    )
    entity_id: Optional[str] = Field(
        default=None,
        description="ID of the entity this event relates to"
    )

    # Correlation - for tracking related events
    correlation_id: Optional[UUID] = Field(
        default=None,
        description="ID to correlate related events (e.g., AI fill then confirm)"
    )

    description: str = Field(
        ...,
        max_length=500,
        description="Human-readable description of what happened"
    )
    details: dict[str, Any] = Field(
        default_factory=dict,
        description="Additional event-specific data"
    )

    error_message: Optional[str] = None

    is_user_action: bool = Field(
        default=False,
        description="Was this triggered by a user action?"
    )

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

    def to_json_line(self) -> str:
        """Serialize as one line of the append-only audit log."""
        return json.dumps(self.to_log_dict(), default=str)


class AuditEventBuilder:
    """
    Helper class to build audit events with common patterns.

    Usage:
        event = AuditEventBuilder.transaction_added(transaction_id, amount, category)
        event = AuditEventBuilder.storage_corrupt("finsight_budgets", error)
    """

    @staticmethod
    def transaction_added(
        transaction_id: str,
        amount: str,
        category: str,
        transaction_type: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.TRANSACTION_ADDED,
            entity_type="transaction",
            entity_id=transaction_id,
            correlation_id=correlation_id,
            description=f"Transaction added: {transaction_type} {amount} ({category})",
            details={
                "amount": amount,
                "category": category,
                "type": transaction_type,
            },
            is_user_action=True,
        )

    @staticmethod
    def transaction_deleted(transaction_id: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.TRANSACTION_DELETED,
            entity_type="transaction",
            entity_id=transaction_id,
            description="Transaction deleted",
            is_user_action=True,
        )

    @staticmethod
    def validation_failed(
        issues: list[dict],
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.VALIDATION_FAILED,
            severity=AuditSeverity.WARNING,
            entity_type="draft",
            correlation_id=correlation_id,
            description=f"Draft rejected with {len(issues)} issues",
            details={"issues": issues},
            is_user_action=True,
        )

    @staticmethod
    def budget_updated(
        category: str,
        old_limit: Optional[str],
        new_limit: str,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.BUDGET_UPDATED,
            entity_type="budget",
            entity_id=category,
            description=f"Budget for {category} set to {new_limit}",
            details={
                "old_limit": old_limit,
                "new_limit": new_limit,
            },
            is_user_action=True,
        )

    @staticmethod
    def storage_seeded(key: str, record_count: int) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.STORAGE_SEEDED,
            entity_type="storage",
            entity_id=key,
            description=f"Seeded {record_count} default records under {key}",
            details={"record_count": record_count},
        )

    @staticmethod
    def storage_corrupt(key: str, error_message: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.STORAGE_CORRUPT,
            severity=AuditSeverity.WARNING,
            entity_type="storage",
            entity_id=key,
            description=f"Persisted record {key} is unreadable, falling back to defaults",
            error_message=error_message,
        )

    @staticmethod
    def ai_request_completed(
        slot: str,
        status: str,
        details: Optional[dict] = None,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.AI_REQUEST_COMPLETED,
            entity_type="ai_slot",
            entity_id=slot,
            correlation_id=correlation_id,
            description=f"AI request for {slot} finished: {status}",
            details={"status": status, **(details or {})},
        )

    @staticmethod
    def ai_response_malformed(
        slot: str,
        error_message: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.AI_RESPONSE_MALFORMED,
            severity=AuditSeverity.WARNING,
            entity_type="ai_slot",
            entity_id=slot,
            correlation_id=correlation_id,
            description=f"AI response for {slot} could not be parsed",
            error_message=error_message,
        )

    @staticmethod
    def ai_result_superseded(slot: str, ticket: int) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.AI_RESULT_SUPERSEDED,
            severity=AuditSeverity.DEBUG,
            entity_type="ai_slot",
            entity_id=slot,
            description=f"Discarded stale result for {slot}",
            details={"ticket": ticket},
        )

    @staticmethod
    def unknown_category_ignored(
        value: Any,
        source: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.UNKNOWN_CATEGORY_IGNORED,
            severity=AuditSeverity.WARNING,
            entity_type="category",
            correlation_id=correlation_id,
            description=f"Ignored category outside the known set (from {source})",
            details={"value": str(value), "source": source},
        )

    @staticmethod
    def external_service_error(
        service: str,
        error_message: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.EXTERNAL_SERVICE_ERROR,
            severity=AuditSeverity.ERROR,
            description=f"External service error: {service}",
            error_message=error_message,
            details={"service": service},
            correlation_id=correlation_id,
        )
