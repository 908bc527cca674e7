"""
Balance Aggregation

Folds every expense of a bill snapshot into one net balance per participant:
- The payer is credited the full expense amount (what they fronted)
- Each covered participant is debited their split (what they owe)

Positive balance = is owed money. Negative = owes money. Zero = settled.

The fold uses exact Decimal addition, so the result does not depend on
expense or split order. Invariant checks belong to the ledger; nothing is
validated here.
"""

from decimal import Decimal

from billsplit.core.money import ZERO
from billsplit.models.bill import Bill, ParticipantSummary


def compute_balances(bill: Bill) -> dict[str, Decimal]:
    """
    Net balance per participant, keyed in participant order.
    """
    balances = {participant.id: ZERO for participant in bill.participants}

    for expense in bill.expenses:
        balances[expense.payer_id] = balances.get(expense.payer_id, ZERO) + expense.amount
        for split in expense.splits:
            balances[split.participant_id] = (
                balances.get(split.participant_id, ZERO) - split.amount
            )

    return balances


def summarize_participants(bill: Bill) -> list[ParticipantSummary]:
    """
    Paid / owed / balance breakdown for every participant.

    This is the balance summary table shown next to the settlement plan.
    """
    paid = {participant.id: ZERO for participant in bill.participants}
    owed = {participant.id: ZERO for participant in bill.participants}

    for expense in bill.expenses:
        paid[expense.payer_id] = paid.get(expense.payer_id, ZERO) + expense.amount
        for split in expense.splits:
            owed[split.participant_id] = owed.get(split.participant_id, ZERO) + split.amount

    return [
        ParticipantSummary(
            participant_id=participant.id,
            name=participant.name,
            total_paid=paid[participant.id],
            total_owed=owed[participant.id],
            balance=paid[participant.id] - owed[participant.id],
        )
        for participant in bill.participants
    ]
