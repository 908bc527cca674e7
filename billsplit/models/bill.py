"""
Core Data Models for billsplit

These models define the strict schemas for everything the accounting
core consumes and produces. They are designed to:
1. Enforce type safety at runtime
2. Provide clear validation error messages
3. Be immutable snapshots (a change produces a new record)
4. Be serializable for whatever storage layer the host application uses

DESIGN DECISION: Money is always Decimal with two decimal places.
Binary floats cannot guarantee that splits add up to the expense total.
"""

from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Optional
from uuid import uuid4

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    ValidationInfo,
    field_validator,
)


def _new_id() -> str:
    return str(uuid4())


# =============================================================================
# ENUMS - Finite set of valid values
# =============================================================================

class ParticipantRole(str, Enum):
    """
    Account tier of a participant.

    Used by the presentation layer for permission checks.
    The accounting core only cares about OWNER (the owner cannot be removed).
    """
    GUEST = "guest"
    STANDARD = "standard"
    PREMIUM = "premium"
    OWNER = "owner"


class SplitRule(str, Enum):
    """How an expense is divided among the participants it covers."""
    EQUAL = "equal"    # Same share each, leftover cents spread deterministically
    CUSTOM = "custom"  # Explicit amounts, one participant takes the remainder


# =============================================================================
# CORE LEDGER MODELS
# =============================================================================

class Participant(BaseModel):
    """A member of a bill."""
    model_config = ConfigDict(str_strip_whitespace=True, frozen=True)

    id: str = Field(
        default_factory=_new_id,
        min_length=1,
        max_length=64,
        description="Identifier, unique within a bill"
    )
    name: str = Field(
        ...,
        min_length=1,
        max_length=100,
        description="Display name"
    )
    email: Optional[str] = Field(
        default=None,
        max_length=254,
        description="Contact address"
    )
    role: ParticipantRole = Field(
        default=ParticipantRole.STANDARD,
        description="Account tier, for the caller's permission checks"
    )


class Split(BaseModel):
    """
    One participant's owed share of one expense.

    is_paid is caller-owned state. Balance and settlement computations
    never read or change it.
    """
    model_config = ConfigDict(frozen=True)

    participant_id: str = Field(
        ...,
        min_length=1,
        description="Participant who owes this share"
    )
    amount: Decimal = Field(
        ...,
        ge=0,
        decimal_places=2,
        description="Owed amount"
    )
    is_paid: bool = Field(
        default=False,
        description="Has this share been paid back?"
    )


class Expense(BaseModel):
    """
    A shared expense paid by one participant.

    CRITICAL: The splits are resolved by the split calculator when the
    expense is created or edited. They are never edited piecemeal.
    """
    model_config = ConfigDict(str_strip_whitespace=True, frozen=True)

    id: str = Field(
        default_factory=_new_id,
        min_length=1,
        description="Unique expense ID"
    )
    description: str = Field(
        default="",
        max_length=200,
        description="What the money was spent on"
    )
    amount: Decimal = Field(
        ...,
        ge=0,
        decimal_places=2,
        description="Total amount of the expense"
    )
    payer_id: str = Field(
        ...,
        min_length=1,
        description="Participant who fronted the money"
    )
    expense_date: date = Field(
        default_factory=date.today,
        description="When the expense happened"
    )
    rule: SplitRule = Field(
        default=SplitRule.EQUAL,
        description="Split rule used to resolve the splits"
    )
    splits: tuple[Split, ...] = Field(
        default_factory=tuple,
        description="Resolved shares, in participant order"
    )
    remainder_participant_id: Optional[str] = Field(
        default=None,
        description="Custom split only: participant who absorbs the remainder"
    )

    @property
    def participant_ids(self) -> list[str]:
        """Participants covered by this expense, in split order."""
        return [split.participant_id for split in self.splits]

    @property
    def split_total(self) -> Decimal:
        """Sum of all split amounts."""
        return sum((split.amount for split in self.splits), Decimal("0.00"))

    def split_for(self, participant_id: str) -> Optional[Split]:
        """Return the split owed by a participant, if they are covered."""
        for split in self.splits:
            if split.participant_id == participant_id:
                return split
        return None


class Bill(BaseModel):
    """
    A snapshot of one group expense-sharing session.

    This is what balance aggregation and settlement planning read.
    The ledger produces a fresh snapshot after every committed mutation.
    """
    model_config = ConfigDict(str_strip_whitespace=True, frozen=True)

    id: str = Field(
        default_factory=_new_id,
        min_length=1,
        description="Unique bill ID"
    )
    title: str = Field(
        ...,
        min_length=1,
        max_length=200,
        description="Bill title (presentation only)"
    )
    description: str = Field(
        default="",
        max_length=1000,
        description="Bill description (presentation only)"
    )
    created_on: date = Field(
        default_factory=date.today,
        description="When the bill was created"
    )
    owner_id: Optional[str] = Field(
        default=None,
        description="Participant who created the bill"
    )
    participants: tuple[Participant, ...] = Field(default_factory=tuple)
    expenses: tuple[Expense, ...] = Field(default_factory=tuple)
    is_archived: bool = False

    @property
    def participant_ids(self) -> list[str]:
        return [participant.id for participant in self.participants]

    @property
    def total_amount(self) -> Decimal:
        """Sum of all expense amounts in the bill."""
        return sum((expense.amount for expense in self.expenses), Decimal("0.00"))

    def get_participant(self, participant_id: str) -> Optional[Participant]:
        for participant in self.participants:
            if participant.id == participant_id:
                return participant
        return None

    def get_expense(self, expense_id: str) -> Optional[Expense]:
        for expense in self.expenses:
            if expense.id == expense_id:
                return expense
        return None


# =============================================================================
# COMPUTED RESULT MODELS
# =============================================================================

class Transfer(BaseModel):
    """A suggested payment that moves balances toward zero."""
    model_config = ConfigDict(frozen=True)

    from_id: str = Field(
        ...,
        description="Debtor who pays"
    )
    to_id: str = Field(
        ...,
        description="Creditor who receives"
    )
    amount: Decimal = Field(
        ...,
        gt=0,
        description="Amount to pay"
    )

    @field_validator('to_id')
    @classmethod
    def validate_distinct_parties(cls, v: str, info: ValidationInfo) -> str:
        """A participant never pays themselves."""
        if info.data.get('from_id') == v:
            raise ValueError("Transfer sender and recipient must differ")
        return v


class ParticipantSummary(BaseModel):
    """One row of the balance summary: what a participant paid, owes and nets."""
    model_config = ConfigDict(frozen=True)

    participant_id: str
    name: str
    total_paid: Decimal
    total_owed: Decimal
    balance: Decimal

    @property
    def status(self) -> str:
        if self.balance > 0:
            return "gets back"
        if self.balance < 0:
            return "owes"
        return "settled"


# =============================================================================
# VALIDATION MODELS
# =============================================================================

class ValidationIssue(BaseModel):
    """A single validation issue found in a bill snapshot."""

    field: str = Field(
        ...,
        description="Record or field with the issue (e.g., 'expense:<id>')"
    )
    issue_type: str = Field(
        ...,
        description="Type of issue (e.g., 'unknown_participant', 'split_sum_mismatch')"
    )
    message: str = Field(
        ...,
        description="Human-readable description of the issue"
    )
    severity: str = Field(
        ...,
        pattern="^(error|warning|info)$",
        description="Issue severity"
    )
    suggested_fix: Optional[str] = Field(
        default=None,
        description="Suggested fix if available"
    )


class ValidationResult(BaseModel):
    """
    Result of the two-stage ledger validation.

    Stage 1: Structural validation (ids, references, uniqueness)
    Stage 2: Arithmetic validation (split sums, balance sum)
    """

    bill_id: str = Field(
        ...,
        description="ID of the bill being validated"
    )

    structure_valid: bool = Field(
        ...,
        description="Did structural validation pass?"
    )
    arithmetic_valid: bool = Field(
        ...,
        description="Did arithmetic validation pass?"
    )
    is_valid: bool = Field(
        ...,
        description="Overall validation result"
    )

    issues: list[ValidationIssue] = Field(
        default_factory=list,
        description="All validation issues found"
    )
    warnings: list[str] = Field(
        default_factory=list,
        description="Non-blocking warnings"
    )

    @property
    def has_errors(self) -> bool:
        """Check if there are any error-level issues."""
        return any(issue.severity == "error" for issue in self.issues)

    @property
    def error_count(self) -> int:
        """Count error-level issues."""
        return sum(1 for issue in self.issues if issue.severity == "error")

    @property
    def errors(self) -> list[ValidationIssue]:
        return [issue for issue in self.issues if issue.severity == "error"]
