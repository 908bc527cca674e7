"""
Data Models Package

This package contains all Pydantic models used by billsplit.
All data flowing through the accounting core must conform to these schemas.
"""

from billsplit.models.bill import (
    Bill,
    Expense,
    Participant,
    ParticipantRole,
    ParticipantSummary,
    Split,
    SplitRule,
    Transfer,
    ValidationIssue,
    ValidationResult,
)
from billsplit.models.audit import (
    AuditSeverity,
    LedgerEvent,
    LedgerEventBuilder,
    LedgerEventType,
)

__all__ = [
    # Ledger models
    "Bill",
    "Expense",
    "Participant",
    "ParticipantRole",
    "ParticipantSummary",
    "Split",
    "SplitRule",
    "Transfer",
    "ValidationIssue",
    "ValidationResult",
    # Audit models
    "AuditSeverity",
    "LedgerEvent",
    "LedgerEventBuilder",
    "LedgerEventType",
]
