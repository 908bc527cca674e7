"""Tests for the settlement planner."""

import pytest
from decimal import Decimal

from billsplit.core.errors import InvariantViolationError
from billsplit.core.settlement import apply_transfers, plan_settlement
from billsplit.models.bill import Transfer


def as_tuples(transfers):
    return [(t.from_id, t.to_id, t.amount) for t in transfers]


def non_zero_count(balances):
    return sum(1 for value in balances.values() if Decimal(str(value)) != 0)


class TestPlanSettlement:
    """Tests for plan_settlement."""

    def test_three_party_scenario(self):
        balances = {"A": Decimal("95"), "B": Decimal("-25"), "C": Decimal("-70")}
        transfers = plan_settlement(balances)
        assert as_tuples(transfers) == [
            ("C", "A", Decimal("70.00")),
            ("B", "A", Decimal("25.00")),
        ]

    def test_all_zero_gives_empty_plan(self):
        assert plan_settlement({"A": Decimal("0"), "B": Decimal("0")}) == []

    def test_empty_balances(self):
        assert plan_settlement({}) == []

    def test_two_parties(self):
        transfers = plan_settlement({"A": "-12.34", "B": "12.34"})
        assert as_tuples(transfers) == [("A", "B", Decimal("12.34"))]

    def test_ties_broken_by_id(self):
        balances = {
            "d2": Decimal("-10"),
            "d1": Decimal("-10"),
            "c2": Decimal("10"),
            "c1": Decimal("10"),
        }
        transfers = plan_settlement(balances)
        assert as_tuples(transfers) == [
            ("d1", "c1", Decimal("10.00")),
            ("d2", "c2", Decimal("10.00")),
        ]

    def test_one_cent_debt_is_still_settled(self):
        transfers = plan_settlement({"A": "0.01", "B": "-0.01"})
        assert as_tuples(transfers) == [("B", "A", Decimal("0.01"))]

    def test_unbalanced_map_is_rejected(self):
        with pytest.raises(InvariantViolationError):
            plan_settlement({"A": Decimal("10")})
        with pytest.raises(InvariantViolationError):
            plan_settlement({"A": Decimal("10"), "B": Decimal("-9")})

    def test_custom_epsilon(self):
        # With a 1.00 threshold the 0.50 balances count as settled
        balances = {"A": "0.50", "B": "-0.50", "C": "5", "D": "-5"}
        transfers = plan_settlement(balances, epsilon=Decimal("1.00"))
        assert as_tuples(transfers) == [("D", "C", Decimal("5.00"))]

    @pytest.mark.parametrize("balances", [
        {"A": "95", "B": "-25", "C": "-70"},
        {"A": "40", "B": "40", "C": "-30", "D": "-30", "E": "-20"},
        {"A": "-33.34", "B": "16.67", "C": "16.67"},
        {"A": "100", "B": "-1", "C": "-1", "D": "-1", "E": "-97"},
        {"A": "10", "B": "-10", "C": "0", "D": "25.5", "E": "-25.5"},
    ])
    def test_plan_zeroes_every_balance_within_bound(self, balances):
        transfers = plan_settlement(balances)

        settled = apply_transfers(balances, transfers)
        assert all(value == 0 for value in settled.values())
        assert len(transfers) <= non_zero_count(balances) - 1
        assert all(transfer.amount > 0 for transfer in transfers)

    def test_deterministic(self):
        balances = {"A": "40", "B": "40", "C": "-30", "D": "-30", "E": "-20"}
        assert plan_settlement(balances) == plan_settlement(dict(reversed(list(balances.items()))))

    def test_does_not_mutate_input(self):
        balances = {"A": Decimal("95"), "B": Decimal("-25"), "C": Decimal("-70")}
        plan_settlement(balances)
        assert balances == {"A": Decimal("95"), "B": Decimal("-25"), "C": Decimal("-70")}


class TestApplyTransfers:
    """Tests for apply_transfers."""

    def test_moves_balances_toward_zero(self):
        balances = {"A": Decimal("95"), "B": Decimal("-25"), "C": Decimal("-70")}
        result = apply_transfers(
            balances,
            [Transfer(from_id="C", to_id="A", amount=Decimal("70"))],
        )
        assert result == {
            "A": Decimal("25.00"),
            "B": Decimal("-25.00"),
            "C": Decimal("0.00"),
        }

    def test_no_transfers(self):
        assert apply_transfers({"A": "1.50", "B": "-1.50"}, []) == {
            "A": Decimal("1.50"),
            "B": Decimal("-1.50"),
        }
