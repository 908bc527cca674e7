"""
Split Calculator

Turns an expense amount, a split rule and the participants it covers
into concrete owed shares.

EQUAL SPLIT:
- Work in integer cents
- Everyone gets amount // N cents
- The amount % N leftover cents go one each to the first participants
  in the remainder order (caller's order, or sorted id)
- The shares always add up to the amount exactly

CUSTOM SPLIT:
- Every participant but one has an explicit amount
- The one left out (the remainder participant) owes whatever is left

This module is pure: no ledger access, no logging.
"""

from decimal import Decimal
from typing import Iterable, Mapping, Optional, Union

from billsplit.config import get_settings
from billsplit.core.errors import (
    EmptyParticipantSetError,
    InvalidRuleError,
    InvariantViolationError,
    OverAllocatedError,
    RemainderParticipantError,
    UnknownParticipantError,
)
from billsplit.core.money import (
    ZERO,
    AmountLike,
    from_minor_units,
    to_minor_units,
    to_money,
)
from billsplit.models.bill import Split, SplitRule


def resolve_splits(
    amount: AmountLike,
    rule: Union[SplitRule, str],
    participant_ids: Iterable[str],
    custom_amounts: Optional[Mapping[str, AmountLike]] = None,
    known_participants: Optional[Iterable[str]] = None,
    remainder_order: Optional[str] = None,
) -> list[Split]:
    """
    Resolve an expense into one Split per covered participant.

    Args:
        amount: Expense total (>= 0, cent precision)
        rule: SplitRule.EQUAL or SplitRule.CUSTOM
        participant_ids: Covered participants, in display order
        custom_amounts: For CUSTOM, explicit amounts for all but one participant
        known_participants: If given, every covered id must be in it
        remainder_order: "insertion" or "identifier"; defaults to settings

    Returns:
        Splits in the order of participant_ids, all unpaid

    Raises:
        InvalidAmountError: Bad amount or bad custom amount
        InvalidRuleError: Rule tag is not equal or custom
        EmptyParticipantSetError: No participants
        UnknownParticipantError: Id outside known_participants / participant_ids
        InvariantViolationError: Same participant listed twice
        OverAllocatedError: Custom amounts exceed the total
        RemainderParticipantError: Custom split without exactly one remainder participant
    """
    total = to_money(amount)
    rule = parse_rule(rule)
    ids = list(participant_ids)

    if not ids:
        raise EmptyParticipantSetError("An expense must cover at least one participant")

    seen = set()
    for participant_id in ids:
        if participant_id in seen:
            raise InvariantViolationError(
                f"Participant {participant_id} is listed more than once"
            )
        seen.add(participant_id)

    if known_participants is not None:
        known = set(known_participants)
        for participant_id in ids:
            if participant_id not in known:
                raise UnknownParticipantError(participant_id)

    if rule == SplitRule.EQUAL:
        order = remainder_order or get_settings().ledger.remainder_order
        return _equal_splits(total, ids, order)

    return _custom_splits(total, ids, custom_amounts or {})


def parse_rule(rule: Union[SplitRule, str]) -> SplitRule:
    """Coerce a rule tag to a SplitRule, raising InvalidRuleError for anything else."""
    try:
        return SplitRule(rule)
    except ValueError:
        raise InvalidRuleError(rule) from None


def find_remainder_participant(
    participant_ids: Iterable[str],
    custom_amounts: Mapping[str, AmountLike],
) -> str:
    """
    Return the one covered participant without an explicit custom amount.

    Raises:
        RemainderParticipantError: Zero or several participants lack an amount
    """
    remainder_ids = [pid for pid in participant_ids if pid not in custom_amounts]
    if len(remainder_ids) != 1:
        raise RemainderParticipantError(
            "A custom split needs explicit amounts for all but exactly one "
            f"participant; {len(remainder_ids)} left without an amount"
        )
    return remainder_ids[0]


def _equal_splits(total: Decimal, ids: list[str], order: str) -> list[Split]:
    base, leftover = divmod(to_minor_units(total), len(ids))

    if order == "identifier":
        ranking = sorted(ids)
    elif order == "insertion":
        ranking = ids
    else:
        raise ValueError(f"Unknown remainder order: {order}")
    extra_cent = set(ranking[:leftover])

    return [
        Split(
            participant_id=participant_id,
            amount=from_minor_units(base + (1 if participant_id in extra_cent else 0)),
        )
        for participant_id in ids
    ]


def _custom_splits(
    total: Decimal,
    ids: list[str],
    custom_amounts: Mapping[str, AmountLike],
) -> list[Split]:
    covered = set(ids)
    for participant_id in custom_amounts:
        if participant_id not in covered:
            raise UnknownParticipantError(
                participant_id,
                f"Custom amount given for {participant_id}, "
                "who is not covered by this expense",
            )

    explicit = {
        participant_id: to_money(value)
        for participant_id, value in custom_amounts.items()
    }

    remainder_id = find_remainder_participant(ids, explicit)

    explicit_total = sum(explicit.values(), ZERO)
    if explicit_total > total:
        raise OverAllocatedError(explicit_total, total)

    remainder = total - explicit_total
    return [
        Split(
            participant_id=participant_id,
            amount=remainder if participant_id == remainder_id else explicit[participant_id],
        )
        for participant_id in ids
    ]
