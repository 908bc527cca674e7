"""
Accounting core: split resolution, balance aggregation and settlement planning.

All functions here are pure. The only mutable state lives in BillLedger.
"""

from billsplit.core.balances import compute_balances, summarize_participants
from billsplit.core.errors import (
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
)
from billsplit.core.money import from_minor_units, to_minor_units, to_money
from billsplit.core.settlement import apply_transfers, plan_settlement
from billsplit.core.splits import resolve_splits

__all__ = [
    # Operations
    "apply_transfers",
    "compute_balances",
    "plan_settlement",
    "resolve_splits",
    "summarize_participants",
    # Money helpers
    "from_minor_units",
    "to_minor_units",
    "to_money",
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
