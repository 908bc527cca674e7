"""
billsplit - Bill-Splitting Accounting Core

Splits shared expenses among participants, folds them into net balances
and plans the transfers that settle everyone up.

DESIGN PRINCIPLES:
1. Money is fixed-point (Decimal cents), never binary float
2. Splits always add up to the expense exactly
3. Every ledger mutation is validated, then committed or rejected whole
4. Balances and settlement plans are recomputed, never cached
5. Every change is auditable
"""

from billsplit.core import (
    EmptyParticipantSetError,
    ExpenseNotFoundError,
    InvalidAmountError,
    InvalidRuleError,
    InvariantViolationError,
    LedgerError,
    NegativeRemainderError,
    OverAllocatedError,
    RemainderParticipantError,
    UnknownParticipantError,
    apply_transfers,
    compute_balances,
    plan_settlement,
    resolve_splits,
    summarize_participants,
)
from billsplit.ledger import BillLedger
from billsplit.models import (
    Bill,
    Expense,
    Participant,
    ParticipantRole,
    ParticipantSummary,
    Split,
    SplitRule,
    Transfer,
)

__version__ = "1.0.0"

__all__ = [
    "BillLedger",
    # Operations
    "apply_transfers",
    "compute_balances",
    "plan_settlement",
    "resolve_splits",
    "summarize_participants",
    # Models
    "Bill",
    "Expense",
    "Participant",
    "ParticipantRole",
    "ParticipantSummary",
    "Split",
    "SplitRule",
    "Transfer",
    # Errors
    "EmptyParticipantSetError",
    "ExpenseNotFoundError",
    "InvalidAmountError",
    "InvalidRuleError",
    "InvariantViolationError",
    "LedgerError",
    "NegativeRemainderError",
    "OverAllocatedError",
    "RemainderParticipantError",
    "UnknownParticipantError",
]
