"""
Ledger Error Taxonomy

Every failure in the accounting core is a local validation failure.
Nothing here is retried: the error is raised at the offending call and
the caller decides how to present it.
"""

from decimal import Decimal
from typing import Optional

from billsplit.models.bill import ValidationIssue


class LedgerError(Exception):
    """Base exception for all accounting core errors."""
    pass


class InvalidAmountError(LedgerError):
    """Amount is negative, non-finite, non-numeric or finer than one cent."""

    def __init__(self, value: object, message: str):
        self.value = value
        super().__init__(message)


class InvalidRuleError(LedgerError):
    """The split rule tag is not one of the supported rules."""

    def __init__(self, rule: object):
        self.rule = rule
        super().__init__(f"Unknown split rule: {rule}")


class EmptyParticipantSetError(LedgerError):
    """An expense or split was given zero participants."""
    pass


class UnknownParticipantError(LedgerError):
    """A referenced participant id is not part of the bill."""

    def __init__(self, participant_id: str, message: Optional[str] = None):
        self.participant_id = participant_id
        super().__init__(message or f"Unknown participant: {participant_id}")


class NegativeRemainderError(LedgerError):
    """The remainder participant of a custom split would owe a negative amount."""
    pass


class OverAllocatedError(NegativeRemainderError):
    """Explicit custom amounts add up to more than the expense total."""

    def __init__(self, explicit_total: Decimal, amount: Decimal):
        self.explicit_total = explicit_total
        self.amount = amount
        super().__init__(
            f"Custom amounts total {explicit_total} which exceeds "
            f"the expense amount {amount}"
        )


class RemainderParticipantError(LedgerError):
    """A custom split must leave exactly one participant without an explicit amount."""
    pass


class InvariantViolationError(LedgerError):
    """
    A mutation would break a ledger invariant.

    The ledger state is unchanged when this is raised.
    """

    def __init__(
        self,
        message: str,
        issues: Optional[list[ValidationIssue]] = None,
    ):
        self.issues = issues or []
        super().__init__(message)


class ExpenseNotFoundError(LedgerError):
    """No expense with the given id exists in the bill."""

    def __init__(self, expense_id: str):
        self.expense_id = expense_id
        super().__init__(f"Expense not found: {expense_id}")
