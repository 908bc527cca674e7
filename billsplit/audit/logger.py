"""
Audit Logger

DESIGN DECISION: Every ledger mutation is logged, committed or rejected.
This provides:
1. Traceability of changes to a bill
2. Debugging capability when a mutation is rejected
3. A history the presentation layer can show

The audit logger:
- Is synchronous (the ledger has no suspension points)
- Keeps an append-only in-memory trail of events
- Never replaces raising: rejected mutations are logged, then re-raised
  by the ledger
- Supports correlation IDs to trace related events
"""

import logging
from typing import Optional
from uuid import UUID, uuid4

import structlog

from billsplit.config import get_settings
from billsplit.models.audit import AuditSeverity, LedgerEvent, LedgerEventBuilder


_log_settings = get_settings().logging

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
        (
            structlog.processors.JSONRenderer()
            if _log_settings.json_output
            else structlog.dev.ConsoleRenderer()
        ),
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)
logging.getLogger("billsplit").setLevel(_log_settings.level)


class AuditLogger:
    """
    Central audit logging service.

    Logs events both to:
    1. Structured local log (structlog)
    2. An in-memory trail, readable through `events`
    """

    def __init__(self, correlation_id: Optional[UUID] = None):
        """
        Initialize audit logger.

        Args:
            correlation_id: Attached to every event this logger builds.
                            A fresh one is created if omitted.
        """
        self._events: list[LedgerEvent] = []
        self._correlation_id = correlation_id or create_correlation_id()
        self._logger = structlog.get_logger("billsplit.audit")

    @property
    def correlation_id(self) -> UUID:
        return self._correlation_id

    @property
    def events(self) -> list[LedgerEvent]:
        """All events logged so far, oldest first."""
        return list(self._events)

    def events_for(self, entity_id: str) -> list[LedgerEvent]:
        """Events about one participant, expense or bill."""
        return [event for event in self._events if event.entity_id == entity_id]

    def log(self, event: LedgerEvent) -> None:
        """
        Log an audit event locally and append it to the trail.
        """
        log_dict = event.to_log_dict()

        if event.severity == AuditSeverity.ERROR:
            self._logger.error("audit_event", **log_dict)
        elif event.severity == AuditSeverity.WARNING:
            self._logger.warning("audit_event", **log_dict)
        elif event.severity == AuditSeverity.DEBUG:
            self._logger.debug("audit_event", **log_dict)
        else:
            self._logger.info("audit_event", **log_dict)

        self._events.append(event)

    def log_participant_added(self, bill_id: str, participant_id: str, name: str) -> None:
        self.log(LedgerEventBuilder.participant_added(
            bill_id=bill_id,
            participant_id=participant_id,
            name=name,
            correlation_id=self._correlation_id,
        ))

    def log_participant_removed(self, bill_id: str, participant_id: str) -> None:
        self.log(LedgerEventBuilder.participant_removed(
            bill_id=bill_id,
            participant_id=participant_id,
            correlation_id=self._correlation_id,
        ))

    def log_expense_added(
        self,
        bill_id: str,
        expense_id: str,
        amount: str,
        payer_id: str,
        rule: str,
    ) -> None:
        self.log(LedgerEventBuilder.expense_added(
            bill_id=bill_id,
            expense_id=expense_id,
            amount=amount,
            payer_id=payer_id,
            rule=rule,
            correlation_id=self._correlation_id,
        ))

    def log_expense_updated(
        self,
        bill_id: str,
        expense_id: str,
        previous_amount: str,
        amount: str,
    ) -> None:
        self.log(LedgerEventBuilder.expense_updated(
            bill_id=bill_id,
            expense_id=expense_id,
            previous_amount=previous_amount,
            amount=amount,
            correlation_id=self._correlation_id,
        ))

    def log_expense_removed(self, bill_id: str, expense_id: str, amount: str) -> None:
        self.log(LedgerEventBuilder.expense_removed(
            bill_id=bill_id,
            expense_id=expense_id,
            amount=amount,
            correlation_id=self._correlation_id,
        ))

    def log_split_payment_updated(
        self,
        bill_id: str,
        expense_id: str,
        participant_id: str,
        is_paid: bool,
    ) -> None:
        self.log(LedgerEventBuilder.split_payment_updated(
            bill_id=bill_id,
            expense_id=expense_id,
            participant_id=participant_id,
            is_paid=is_paid,
            correlation_id=self._correlation_id,
        ))

    def log_bill_loaded(self, bill_id: str, participant_count: int, expense_count: int) -> None:
        self.log(LedgerEventBuilder.bill_loaded(
            bill_id=bill_id,
            participant_count=participant_count,
            expense_count=expense_count,
            correlation_id=self._correlation_id,
        ))

    def log_bill_archived(self, bill_id: str) -> None:
        self.log(LedgerEventBuilder.bill_archived(
            bill_id=bill_id,
            correlation_id=self._correlation_id,
        ))

    def log_mutation_rejected(
        self,
        bill_id: str,
        operation: str,
        error: Exception,
        entity_id: Optional[str] = None,
    ) -> None:
        """Log a rejected mutation. The caller still raises the error."""
        self.log(LedgerEventBuilder.mutation_rejected(
            bill_id=bill_id,
            operation=operation,
            error=error,
            entity_id=entity_id,
            correlation_id=self._correlation_id,
        ))


def create_correlation_id() -> UUID:
    """
    Create a new correlation ID for tracking related events.

    Use one per user session or request and pass it to AuditLogger.
    """
    return uuid4()
