"""Tests for balance aggregation."""

from decimal import Decimal

from billsplit.core.balances import compute_balances, summarize_participants
from billsplit.core.splits import resolve_splits
from billsplit.models.bill import Bill, Expense, Participant, SplitRule


def make_bill(expenses=()) -> Bill:
    return Bill(
        title="Weekend trip",
        participants=(
            Participant(id="A", name="Ann"),
            Participant(id="B", name="Ben"),
            Participant(id="C", name="Cat"),
        ),
        expenses=tuple(expenses),
    )


def make_expense(amount, payer_id, rule, ids, custom_amounts=None) -> Expense:
    return Expense(
        amount=Decimal(amount),
        payer_id=payer_id,
        rule=rule,
        splits=tuple(resolve_splits(amount, rule, ids, custom_amounts=custom_amounts)),
    )


def scenario_expenses():
    return [
        make_expense("180.00", "A", SplitRule.EQUAL, ["A", "B", "C"]),
        make_expense(
            "60.00", "B", SplitRule.CUSTOM, ["A", "B", "C"],
            custom_amounts={"A": "25", "B": "25"},
        ),
    ]


class TestComputeBalances:
    """Tests for compute_balances."""

    def test_no_expenses_everyone_settled(self):
        balances = compute_balances(make_bill())
        assert balances == {"A": Decimal("0"), "B": Decimal("0"), "C": Decimal("0")}

    def test_two_expense_scenario(self):
        balances = compute_balances(make_bill(scenario_expenses()))
        assert balances == {
            "A": Decimal("95.00"),
            "B": Decimal("-25.00"),
            "C": Decimal("-70.00"),
        }

    def test_keys_follow_participant_order(self):
        balances = compute_balances(make_bill(scenario_expenses()))
        assert list(balances) == ["A", "B", "C"]

    def test_sum_is_zero(self):
        expenses = scenario_expenses() + [
            make_expense("100.00", "C", SplitRule.EQUAL, ["A", "B", "C"]),
            make_expense("0.07", "B", SplitRule.EQUAL, ["A", "C"]),
        ]
        balances = compute_balances(make_bill(expenses))
        assert sum(balances.values()) == Decimal("0")

    def test_order_independent(self):
        expenses = scenario_expenses()
        forward = compute_balances(make_bill(expenses))
        backward = compute_balances(make_bill(reversed(expenses)))
        assert forward == backward

    def test_idempotent(self):
        bill = make_bill(scenario_expenses())
        assert compute_balances(bill) == compute_balances(bill)

    def test_paid_flag_is_ignored(self):
        expense = scenario_expenses()[0]
        paid = expense.model_copy(update={
            "splits": tuple(s.model_copy(update={"is_paid": True}) for s in expense.splits),
        })
        assert compute_balances(make_bill([expense])) == compute_balances(make_bill([paid]))

    def test_payer_outside_split(self):
        expense = make_expense("30.00", "A", SplitRule.EQUAL, ["B", "C"])
        balances = compute_balances(make_bill([expense]))
        assert balances == {
            "A": Decimal("30.00"),
            "B": Decimal("-15.00"),
            "C": Decimal("-15.00"),
        }


class TestSummarizeParticipants:
    """Tests for the paid / owed / balance summary."""

    def test_summary_rows(self):
        summaries = summarize_participants(make_bill(scenario_expenses()))
        by_id = {summary.participant_id: summary for summary in summaries}

        assert [s.participant_id for s in summaries] == ["A", "B", "C"]
        assert by_id["A"].name == "Ann"
        assert by_id["A"].total_paid == Decimal("180.00")
        assert by_id["A"].total_owed == Decimal("85.00")
        assert by_id["A"].balance == Decimal("95.00")
        assert by_id["A"].status == "gets back"
        assert by_id["B"].total_paid == Decimal("60.00")
        assert by_id["B"].total_owed == Decimal("85.00")
        assert by_id["B"].status == "owes"
        assert by_id["C"].total_paid == Decimal("0")
        assert by_id["C"].balance == Decimal("-70.00")

    def test_summary_matches_balances(self):
        bill = make_bill(scenario_expenses())
        balances = compute_balances(bill)
        for summary in summarize_participants(bill):
            assert summary.balance == balances[summary.participant_id]
