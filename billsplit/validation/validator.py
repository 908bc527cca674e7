"""
Two-Stage Ledger Validation

DESIGN DECISION: A bill snapshot is validated in two distinct stages:

STAGE 1 - STRUCTURAL VALIDATION:
- Participant ids are unique and within the participant limit
- The owner is a participant
- Every payer and every split references a current participant
- No expense covers the same participant twice
- Every expense covers at least one participant

STAGE 2 - ARITHMETIC VALIDATION:
- Amounts are non-negative
- Splits add up to the expense amount
- Balances add up to zero
- Suspiciously large expenses (warning only)

WHY TWO STAGES:
Arithmetic checks assume references resolve. Running them on a
structurally broken snapshot would only produce noise.

IMPORTANT: Validation NEVER fixes anything. It reports issues;
the ledger decides to reject the mutation.
"""

from decimal import Decimal
from typing import Iterable, Optional

from billsplit.config import LedgerSettings, get_settings
from billsplit.core.balances import compute_balances
from billsplit.core.money import ZERO
from billsplit.models.bill import (
    Bill,
    Expense,
    ValidationIssue,
    ValidationResult,
)


class LedgerValidator:
    """
    Validates bill snapshots against the ledger invariants.

    Stage 1: Structural validation
    Stage 2: Arithmetic validation (only if stage 1 passes)
    """

    def __init__(self, settings: Optional[LedgerSettings] = None):
        """
        Initialize validator.

        Args:
            settings: Ledger policy. Defaults to the cached application settings.
        """
        self._settings = settings or get_settings().ledger

    @property
    def epsilon(self) -> Decimal:
        return self._settings.settlement_epsilon

    def _validate_structure(
        self,
        bill: Bill,
    ) -> tuple[bool, list[ValidationIssue]]:
        """
        Stage 1: Structural validation.

        Returns: (is_valid, list_of_issues)
        """
        issues = []

        participant_ids = set()
        for participant in bill.participants:
            if participant.id in participant_ids:
                issues.append(ValidationIssue(
                    field=f"participant:{participant.id}",
                    issue_type="duplicate_participant",
                    message=f"Participant id {participant.id} is used more than once",
                    severity="error",
                    suggested_fix="Give every participant a unique id",
                ))
            participant_ids.add(participant.id)

        if len(participant_ids) > self._settings.max_participants:
            issues.append(ValidationIssue(
                field="participants",
                issue_type="too_many_participants",
                message=(
                    f"Bill has {len(participant_ids)} participants; "
                    f"the limit is {self._settings.max_participants}"
                ),
                severity="error",
            ))

        if bill.owner_id is not None and bill.owner_id not in participant_ids:
            issues.append(ValidationIssue(
                field="owner_id",
                issue_type="unknown_participant",
                message=f"Bill owner {bill.owner_id} is not a participant",
                severity="error",
            ))

        expense_ids = set()
        for expense in bill.expenses:
            if expense.id in expense_ids:
                issues.append(ValidationIssue(
                    field=f"expense:{expense.id}",
                    issue_type="duplicate_expense",
                    message=f"Expense id {expense.id} is used more than once",
                    severity="error",
                ))
            expense_ids.add(expense.id)
            issues.extend(self.validate_expense_references(expense, participant_ids))

        is_valid = not any(issue.severity == "error" for issue in issues)

        return is_valid, issues

    def validate_expense_references(
        self,
        expense: Expense,
        participant_ids: Iterable[str],
    ) -> list[ValidationIssue]:
        """Check that an expense only references the given participants, once each."""
        issues = []
        known = set(participant_ids)
        field = f"expense:{expense.id}"

        if expense.payer_id not in known:
            issues.append(ValidationIssue(
                field=field,
                issue_type="unknown_participant",
                message=f"Payer {expense.payer_id} is not a participant",
                severity="error",
                suggested_fix="Choose a payer from the bill's participants",
            ))

        if not expense.splits:
            issues.append(ValidationIssue(
                field=field,
                issue_type="empty_splits",
                message="Expense does not cover any participant",
                severity="error",
            ))

        covered = set()
        for split in expense.splits:
            if split.participant_id not in known:
                issues.append(ValidationIssue(
                    field=field,
                    issue_type="unknown_participant",
                    message=f"Split references unknown participant {split.participant_id}",
                    severity="error",
                ))
            if split.participant_id in covered:
                issues.append(ValidationIssue(
                    field=field,
                    issue_type="duplicate_split",
                    message=f"Participant {split.participant_id} appears in more than one split",
                    severity="error",
                ))
            covered.add(split.participant_id)

        if (
            expense.remainder_participant_id is not None
            and expense.remainder_participant_id not in covered
        ):
            issues.append(ValidationIssue(
                field=field,
                issue_type="unknown_remainder_participant",
                message=(
                    f"Remainder participant {expense.remainder_participant_id} "
                    "is not covered by the expense"
                ),
                severity="error",
            ))

        return issues

    def _validate_arithmetic(
        self,
        bill: Bill,
    ) -> tuple[bool, list[ValidationIssue]]:
        """
        Stage 2: Arithmetic validation.

        Returns: (is_valid, list_of_issues)
        """
        issues = []

        for expense in bill.expenses:
            issues.extend(self.validate_expense_amounts(expense))

        imbalance = sum(compute_balances(bill).values(), ZERO)
        if abs(imbalance) >= self.epsilon:
            issues.append(ValidationIssue(
                field="balances",
                issue_type="balance_imbalance",
                message=f"Balances add up to {imbalance} instead of zero",
                severity="error",
            ))

        is_valid = not any(issue.severity == "error" for issue in issues)

        return is_valid, issues

    def validate_expense_amounts(self, expense: Expense) -> list[ValidationIssue]:
        """Check the amounts of a single expense."""
        issues = []
        field = f"expense:{expense.id}"

        if expense.amount < 0:
            issues.append(ValidationIssue(
                field=field,
                issue_type="negative_amount",
                message=f"Expense amount {expense.amount} is negative",
                severity="error",
            ))

        for split in expense.splits:
            if split.amount < 0:
                issues.append(ValidationIssue(
                    field=field,
                    issue_type="negative_amount",
                    message=f"Share of {split.participant_id} ({split.amount}) is negative",
                    severity="error",
                ))

        difference = expense.split_total - expense.amount
        if abs(difference) >= self.epsilon:
            issues.append(ValidationIssue(
                field=field,
                issue_type="split_sum_mismatch",
                message=(
                    f"Shares add up to {expense.split_total} "
                    f"but the expense is {expense.amount}"
                ),
                severity="error",
                suggested_fix="Re-resolve the splits for this expense",
            ))

        if expense.amount > self._settings.max_expense_amount:
            issues.append(ValidationIssue(
                field=field,
                issue_type="suspicious_value",
                message=(
                    f"Amount ({self._settings.format_amount(expense.amount)}) "
                    "seems unusually high"
                ),
                severity="warning",
                suggested_fix="Please verify this amount is correct",
            ))

        return issues

    def validate_bill(self, bill: Bill) -> ValidationResult:
        """
        Run full two-stage validation pipeline.

        Returns:
            ValidationResult with all issues found
        """
        all_issues = []

        structure_valid, structure_issues = self._validate_structure(bill)
        all_issues.extend(structure_issues)

        # Only run stage 2 if stage 1 passes
        arithmetic_valid = False
        if structure_valid:
            arithmetic_valid, arithmetic_issues = self._validate_arithmetic(bill)
            all_issues.extend(arithmetic_issues)

        warnings = [issue.message for issue in all_issues if issue.severity == "warning"]

        return ValidationResult(
            bill_id=bill.id,
            structure_valid=structure_valid,
            arithmetic_valid=arithmetic_valid,
            is_valid=structure_valid and arithmetic_valid,
            issues=all_issues,
            warnings=warnings,
        )

    def get_user_friendly_summary(
        self,
        result: ValidationResult,
    ) -> str:
        """
        Generate a readable summary of validation results.

        This is what the presentation layer shows when a change is rejected.
        """
        if result.is_valid and not result.warnings:
            return "All checks passed."

        lines = []

        if result.has_errors:
            lines.append("The bill cannot be saved in this state:")
            for issue in result.errors:
                lines.append(f"   - {issue.message}")
                if issue.suggested_fix:
                    lines.append(f"     Fix: {issue.suggested_fix}")

        if result.warnings:
            if lines:
                lines.append("")
            lines.append("Please verify the following:")
            for warning in result.warnings:
                lines.append(f"   - {warning}")

        return "\n".join(lines)
