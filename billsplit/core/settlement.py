"""
Settlement Planner

Given net balances, produce the transfers that bring every balance to zero.

ALGORITHM (greedy largest-magnitude matching):
1. Split participants into debtors (balance <= -epsilon) and creditors
   (balance >= epsilon). Anyone closer to zero is already settled.
2. Keep both groups in max-heaps keyed by remaining magnitude,
   ties broken by participant id.
3. Match the largest debtor with the largest creditor for
   min(debt, credit), emit a transfer, push back whoever has something left.
4. Stop when either side runs out. Residuals below epsilon are dropped.

Every match fully settles at least one party and the final match settles
both, so a plan never has more than K - 1 transfers for K non-zero balances.

The planner only sees the balance map, never the ledger.
"""

import heapq
from decimal import Decimal
from typing import Iterable, Mapping, Optional

from billsplit.config import get_settings
from billsplit.core.errors import InvariantViolationError
from billsplit.core.money import ZERO, AmountLike, to_money
from billsplit.models.bill import Transfer


def plan_settlement(
    balances: Mapping[str, AmountLike],
    epsilon: Optional[Decimal] = None,
) -> list[Transfer]:
    """
    Minimal list of transfers that zeroes every balance.

    Args:
        balances: Net balance per participant (positive = is owed)
        epsilon: Settled threshold; defaults to settings

    Returns:
        Transfers in the order they were matched

    Raises:
        InvariantViolationError: Balances do not sum to zero
        InvalidAmountError: A balance is not a cent-precision number
    """
    if epsilon is None:
        epsilon = get_settings().ledger.settlement_epsilon

    parsed = {
        participant_id: to_money(balance, allow_negative=True)
        for participant_id, balance in balances.items()
    }

    imbalance = sum(parsed.values(), ZERO)
    if abs(imbalance) >= epsilon:
        raise InvariantViolationError(
            f"Balances must sum to zero before settling, off by {imbalance}"
        )

    # Max-heaps via negated magnitude; the id breaks ties deterministically.
    debtors = [(balance, pid) for pid, balance in parsed.items() if balance <= -epsilon]
    creditors = [(-balance, pid) for pid, balance in parsed.items() if balance >= epsilon]
    heapq.heapify(debtors)
    heapq.heapify(creditors)

    transfers = []
    while debtors and creditors:
        neg_debt, debtor_id = heapq.heappop(debtors)
        neg_credit, creditor_id = heapq.heappop(creditors)
        debt, credit = -neg_debt, -neg_credit

        amount = min(debt, credit)
        transfers.append(Transfer(from_id=debtor_id, to_id=creditor_id, amount=amount))

        debt -= amount
        credit -= amount
        if debt >= epsilon:
            heapq.heappush(debtors, (-debt, debtor_id))
        if credit >= epsilon:
            heapq.heappush(creditors, (-credit, creditor_id))

    return transfers


def apply_transfers(
    balances: Mapping[str, AmountLike],
    transfers: Iterable[Transfer],
) -> dict[str, Decimal]:
    """
    Balances after every transfer has been paid.

    The payer's balance moves up by the amount, the recipient's moves down.
    """
    result = {
        participant_id: to_money(balance, allow_negative=True)
        for participant_id, balance in balances.items()
    }
    for transfer in transfers:
        result[transfer.from_id] = result.get(transfer.from_id, ZERO) + transfer.amount
        result[transfer.to_id] = result.get(transfer.to_id, ZERO) - transfer.amount
    return result
