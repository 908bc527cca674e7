"""Tests for the two-stage ledger validator."""

from decimal import Decimal

from billsplit.config import LedgerSettings
from billsplit.models.bill import Bill, Expense, Participant, Split, SplitRule
from billsplit.validation import LedgerValidator


PARTICIPANTS = (
    Participant(id="A", name="Ann"),
    Participant(id="B", name="Ben"),
)


def expense(amount="20.00", payer_id="A", splits=None, expense_id="e1") -> Expense:
    if splits is None:
        splits = [("A", "10.00"), ("B", "10.00")]
    return Expense(
        id=expense_id,
        amount=Decimal(amount),
        payer_id=payer_id,
        rule=SplitRule.CUSTOM,
        splits=tuple(
            Split(participant_id=pid, amount=Decimal(value)) for pid, value in splits
        ),
    )


def bill(expenses=(), participants=PARTICIPANTS, owner_id=None) -> Bill:
    return Bill(
        id="bill-1",
        title="Groceries",
        owner_id=owner_id,
        participants=participants,
        expenses=tuple(expenses),
    )


def issue_types(result):
    return [issue.issue_type for issue in result.issues]


class TestStructuralValidation:
    """Stage 1 checks."""

    def test_valid_bill(self):
        result = LedgerValidator().validate_bill(bill([expense()]))
        assert result.is_valid is True
        assert result.structure_valid is True
        assert result.arithmetic_valid is True
        assert result.issues == []

    def test_unknown_payer(self):
        result = LedgerValidator().validate_bill(bill([expense(payer_id="Z")]))
        assert result.structure_valid is False
        assert "unknown_participant" in issue_types(result)

    def test_unknown_split_participant(self):
        result = LedgerValidator().validate_bill(
            bill([expense(splits=[("A", "10.00"), ("Z", "10.00")])])
        )
        assert result.has_errors
        assert "unknown_participant" in issue_types(result)

    def test_duplicate_split(self):
        result = LedgerValidator().validate_bill(
            bill([expense(splits=[("A", "10.00"), ("A", "10.00")])])
        )
        assert "duplicate_split" in issue_types(result)

    def test_empty_splits(self):
        result = LedgerValidator().validate_bill(bill([expense(splits=[])]))
        assert "empty_splits" in issue_types(result)

    def test_remainder_participant_must_be_covered(self):
        stray = expense().model_copy(update={"remainder_participant_id": "Z"})
        result = LedgerValidator().validate_bill(bill([stray]))
        assert result.structure_valid is False
        assert "unknown_remainder_participant" in issue_types(result)

    def test_duplicate_participant(self):
        participants = PARTICIPANTS + (Participant(id="A", name="Another Ann"),)
        result = LedgerValidator().validate_bill(bill(participants=participants))
        assert "duplicate_participant" in issue_types(result)

    def test_duplicate_expense_id(self):
        result = LedgerValidator().validate_bill(bill([expense(), expense()]))
        assert "duplicate_expense" in issue_types(result)

    def test_owner_must_be_participant(self):
        result = LedgerValidator().validate_bill(bill(owner_id="Z"))
        assert result.is_valid is False

    def test_participant_limit(self):
        settings = LedgerSettings(max_participants=2)
        participants = PARTICIPANTS + (Participant(id="C", name="Cat"),)
        result = LedgerValidator(settings).validate_bill(bill(participants=participants))
        assert "too_many_participants" in issue_types(result)

    def test_arithmetic_skipped_when_structure_fails(self):
        broken = expense(payer_id="Z", splits=[("A", "1.00")])
        result = LedgerValidator().validate_bill(bill([broken]))
        assert result.arithmetic_valid is False
        assert "split_sum_mismatch" not in issue_types(result)


class TestArithmeticValidation:
    """Stage 2 checks."""

    def test_split_sum_mismatch(self):
        result = LedgerValidator().validate_bill(
            bill([expense(splits=[("A", "10.00"), ("B", "9.99")])])
        )
        assert result.structure_valid is True
        assert result.arithmetic_valid is False
        assert "split_sum_mismatch" in issue_types(result)

    def test_imbalance_reported(self):
        result = LedgerValidator().validate_bill(
            bill([expense(splits=[("A", "5.00"), ("B", "5.00")])])
        )
        assert "balance_imbalance" in issue_types(result)

    def test_large_amount_is_only_a_warning(self):
        settings = LedgerSettings(max_expense_amount=Decimal("10"))
        result = LedgerValidator(settings).validate_bill(bill([expense()]))
        assert result.is_valid is True
        assert "suspicious_value" in issue_types(result)
        assert len(result.warnings) == 1

    def test_negative_amount_constructed_without_validation(self):
        bad_split = Split.model_construct(participant_id="B", amount=Decimal("-5.00"), is_paid=False)
        bad = Expense.model_construct(
            id="e1",
            description="",
            amount=Decimal("5.00"),
            payer_id="A",
            rule=SplitRule.CUSTOM,
            splits=(Split(participant_id="A", amount=Decimal("10.00")), bad_split),
        )
        result = LedgerValidator().validate_bill(bill([bad]))
        assert "negative_amount" in issue_types(result)


class TestUserFriendlySummary:
    """Tests for get_user_friendly_summary."""

    def test_all_passed(self):
        validator = LedgerValidator()
        result = validator.validate_bill(bill([expense()]))
        assert validator.get_user_friendly_summary(result) == "All checks passed."

    def test_lists_errors_and_fixes(self):
        validator = LedgerValidator()
        result = validator.validate_bill(
            bill([expense(splits=[("A", "10.00"), ("B", "9.99")])])
        )
        summary = validator.get_user_friendly_summary(result)
        assert "cannot be saved" in summary
        assert "Shares add up to 19.99" in summary
        assert "Fix: Re-resolve the splits" in summary
