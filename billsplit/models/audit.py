"""
Audit Models for billsplit

Every ledger mutation, committed or rejected, produces an audit event.
This provides:
1. Traceability of who changed what in a bill
2. Debugging information when a mutation is rejected
3. A history the presentation layer can show

DESIGN DECISION: Audit events are append-only. We never delete or modify them.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class LedgerEventType(str, Enum):
    """Types of ledger events we audit."""
    # Participants
    PARTICIPANT_ADDED = "participant_added"
    PARTICIPANT_REMOVED = "participant_removed"

    # Expenses
    EXPENSE_ADDED = "expense_added"
    EXPENSE_UPDATED = "expense_updated"
    EXPENSE_REMOVED = "expense_removed"
    SPLIT_PAYMENT_UPDATED = "split_payment_updated"

    # Bill lifecycle
    BILL_LOADED = "bill_loaded"
    BILL_ARCHIVED = "bill_archived"

    # Failures
    MUTATION_REJECTED = "mutation_rejected"


class AuditSeverity(str, Enum):
    """Severity level for audit events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


class LedgerEvent(BaseModel):
    """
    A single audit event.

    Every committed or rejected ledger mutation creates one of these.
    """

    event_id: UUID = Field(
        default_factory=uuid4,
        description="Unique event identifier"
    )
    timestamp: datetime = Field(
        default_factory=_utcnow,
        description="When the event occurred (UTC)"
    )

    event_type: LedgerEventType = Field(
        ...,
        description="Type of event"
    )
    severity: AuditSeverity = Field(
        default=AuditSeverity.INFO,
        description="Event severity"
    )

    bill_id: str = Field(
        ...,
        description="Bill the event belongs to"
    )
    entity_type: Optional[str] = Field(
        default=None,
        description="Type of entity (e.g., 'participant', 'expense', 'bill')"
    )
    entity_id: Optional[str] = Field(
        default=None,
        description="ID of the entity this event relates to"
    )

    correlation_id: Optional[UUID] = Field(
        default=None,
        description="ID to correlate related events (e.g., one user session)"
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

    error_code: Optional[str] = None
    error_message: Optional[str] = None

    def to_log_dict(self) -> dict:
        """
        Convert to a dictionary suitable for structured logging.
        """
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "bill_id": self.bill_id,
            "entity_type": self.entity_type,
            "entity_id": self.entity_id,
            "correlation_id": str(self.correlation_id) if self.correlation_id else None,
            "description": self.description,
            "details": self.details,
            "error_code": self.error_code,
            "error_message": self.error_message,
        }


class LedgerEventBuilder:
    """
    Helper class to build audit events with common patterns.

    Usage:
        event = LedgerEventBuilder.expense_added(bill_id, expense_id, ...)
        event = LedgerEventBuilder.mutation_rejected(bill_id, "remove_participant", error)
    """

    @staticmethod
    def participant_added(
        bill_id: str,
        participant_id: str,
        name: str,
        correlation_id: Optional[UUID] = None
    ) -> LedgerEvent:
        return LedgerEvent(
            event_type=LedgerEventType.PARTICIPANT_ADDED,
            bill_id=bill_id,
            entity_type="participant",
            entity_id=participant_id,
            correlation_id=correlation_id,
            description=f"Participant added: {name}",
            details={"name": name},
        )

    @staticmethod
    def participant_removed(
        bill_id: str,
        participant_id: str,
        correlation_id: Optional[UUID] = None
    ) -> LedgerEvent:
        return LedgerEvent(
            event_type=LedgerEventType.PARTICIPANT_REMOVED,
            bill_id=bill_id,
            entity_type="participant",
            entity_id=participant_id,
            correlation_id=correlation_id,
            description=f"Participant removed: {participant_id}",
        )

    @staticmethod
    def expense_added(
        bill_id: str,
        expense_id: str,
        amount: str,
        payer_id: str,
        rule: str,
        correlation_id: Optional[UUID] = None
    ) -> LedgerEvent:
        return LedgerEvent(
            event_type=LedgerEventType.EXPENSE_ADDED,
            bill_id=bill_id,
            entity_type="expense",
            entity_id=expense_id,
            correlation_id=correlation_id,
            description=f"Expense added: {amount} paid by {payer_id} ({rule} split)",
            details={
                "amount": amount,
                "payer_id": payer_id,
                "rule": rule,
            },
        )

    @staticmethod
    def expense_updated(
        bill_id: str,
        expense_id: str,
        previous_amount: str,
        amount: str,
        correlation_id: Optional[UUID] = None
    ) -> LedgerEvent:
        return LedgerEvent(
            event_type=LedgerEventType.EXPENSE_UPDATED,
            bill_id=bill_id,
            entity_type="expense",
            entity_id=expense_id,
            correlation_id=correlation_id,
            description=f"Expense updated: {previous_amount} -> {amount}",
            details={
                "previous_amount": previous_amount,
                "amount": amount,
            },
        )

    @staticmethod
    def expense_removed(
        bill_id: str,
        expense_id: str,
        amount: str,
        correlation_id: Optional[UUID] = None
    ) -> LedgerEvent:
        return LedgerEvent(
            event_type=LedgerEventType.EXPENSE_REMOVED,
            bill_id=bill_id,
            entity_type="expense",
            entity_id=expense_id,
            correlation_id=correlation_id,
            description=f"Expense removed: {amount}",
            details={"amount": amount},
        )

    @staticmethod
    def split_payment_updated(
        bill_id: str,
        expense_id: str,
        participant_id: str,
        is_paid: bool,
        correlation_id: Optional[UUID] = None
    ) -> LedgerEvent:
        state = "paid" if is_paid else "unpaid"
        return LedgerEvent(
            event_type=LedgerEventType.SPLIT_PAYMENT_UPDATED,
            bill_id=bill_id,
            entity_type="expense",
            entity_id=expense_id,
            correlation_id=correlation_id,
            description=f"Share of {participant_id} marked {state}",
            details={
                "participant_id": participant_id,
                "is_paid": is_paid,
            },
        )

    @staticmethod
    def bill_loaded(
        bill_id: str,
        participant_count: int,
        expense_count: int,
        correlation_id: Optional[UUID] = None
    ) -> LedgerEvent:
        return LedgerEvent(
            event_type=LedgerEventType.BILL_LOADED,
            bill_id=bill_id,
            entity_type="bill",
            entity_id=bill_id,
            correlation_id=correlation_id,
            description=(
                f"Bill loaded with {participant_count} participants "
                f"and {expense_count} expenses"
            ),
            details={
                "participant_count": participant_count,
                "expense_count": expense_count,
            },
        )

    @staticmethod
    def bill_archived(
        bill_id: str,
        correlation_id: Optional[UUID] = None
    ) -> LedgerEvent:
        return LedgerEvent(
            event_type=LedgerEventType.BILL_ARCHIVED,
            bill_id=bill_id,
            entity_type="bill",
            entity_id=bill_id,
            correlation_id=correlation_id,
            description="Bill archived",
        )

    @staticmethod
    def mutation_rejected(
        bill_id: str,
        operation: str,
        error: Exception,
        entity_id: Optional[str] = None,
        correlation_id: Optional[UUID] = None
    ) -> LedgerEvent:
        return LedgerEvent(
            event_type=LedgerEventType.MUTATION_REJECTED,
            severity=AuditSeverity.WARNING,
            bill_id=bill_id,
            entity_id=entity_id,
            correlation_id=correlation_id,
            description=f"{operation} rejected: {type(error).__name__}",
            details={"operation": operation},
            error_code=type(error).__name__,
            error_message=str(error),
        )
