"""
Bill Ledger

This module owns the only mutable state of the accounting core:
the participants and expenses of one bill.

DESIGN DECISION: Every mutation is commit-or-reject.
1. Build a candidate snapshot (a new frozen Bill)
2. Validate it against the ledger invariants
3. Replace the current snapshot only if validation passes

A rejected mutation leaves the ledger exactly as it was, is written to the
audit trail, and the error is re-raised to the caller unchanged.

Balances and settlement plans are never stored. They are recomputed from
the current snapshot on every call.

The ledger does not lock. Callers that share a ledger between writers
must serialize mutations themselves.
"""

from contextlib import contextmanager
from datetime import date
from decimal import Decimal
from typing import Iterable, Iterator, Mapping, Optional, Union

import structlog
from pydantic import ValidationError

from billsplit.audit import AuditLogger
from billsplit.config import LedgerSettings, get_settings
from billsplit.core.balances import compute_balances, summarize_participants
from billsplit.core.errors import (
    ExpenseNotFoundError,
    InvariantViolationError,
    LedgerError,
    UnknownParticipantError,
)
from billsplit.core.money import AmountLike, to_money
from billsplit.core.settlement import plan_settlement
from billsplit.core.splits import find_remainder_participant, parse_rule, resolve_splits
from billsplit.models.bill import (
    Bill,
    Expense,
    Participant,
    ParticipantRole,
    ParticipantSummary,
    Split,
    SplitRule,
    Transfer,
)
from billsplit.validation import LedgerValidator


class BillLedger:
    """
    Validated mutable aggregate for one bill.

    Create a new bill with BillLedger.create(...), or wrap a snapshot
    from storage with BillLedger.from_bill(...).
    """

    def __init__(
        self,
        bill: Bill,
        validator: Optional[LedgerValidator] = None,
        audit_logger: Optional[AuditLogger] = None,
        settings: Optional[LedgerSettings] = None,
    ):
        self._settings = settings or get_settings().ledger
        self._validator = validator or LedgerValidator(self._settings)
        self._audit = audit_logger or AuditLogger()
        self._logger = structlog.get_logger("billsplit.ledger")
        self._bill = bill

    @classmethod
    def create(
        cls,
        title: str,
        description: str = "",
        owner: Optional[Participant] = None,
        bill_id: Optional[str] = None,
        created_on: Optional[date] = None,
        validator: Optional[LedgerValidator] = None,
        audit_logger: Optional[AuditLogger] = None,
        settings: Optional[LedgerSettings] = None,
    ) -> "BillLedger":
        """
        Start a new, empty bill.

        If an owner is given they become the first participant and
        cannot be removed later.
        """
        fields = {"title": title, "description": description}
        if bill_id is not None:
            fields["id"] = bill_id
        if created_on is not None:
            fields["created_on"] = created_on
        if owner is not None:
            fields["owner_id"] = owner.id
            fields["participants"] = (owner,)

        return cls(
            Bill(**fields),
            validator=validator,
            audit_logger=audit_logger,
            settings=settings,
        )

    @classmethod
    def from_bill(
        cls,
        bill: Bill,
        validator: Optional[LedgerValidator] = None,
        audit_logger: Optional[AuditLogger] = None,
        settings: Optional[LedgerSettings] = None,
    ) -> "BillLedger":
        """
        Wrap a bill snapshot supplied by a storage or session layer.

        Raises:
            InvariantViolationError: The snapshot breaks a ledger invariant
        """
        ledger = cls(bill, validator=validator, audit_logger=audit_logger, settings=settings)
        with ledger._rejections("load_bill", bill.id):
            ledger._check(bill)
        ledger._audit.log_bill_loaded(bill.id, len(bill.participants), len(bill.expenses))
        return ledger

    # =========================================================================
    # READ ACCESSORS
    # =========================================================================

    @property
    def bill_id(self) -> str:
        return self._bill.id

    @property
    def participants(self) -> tuple[Participant, ...]:
        return self._bill.participants

    @property
    def expenses(self) -> tuple[Expense, ...]:
        return self._bill.expenses

    @property
    def is_archived(self) -> bool:
        return self._bill.is_archived

    @property
    def audit_logger(self) -> AuditLogger:
        return self._audit

    def snapshot(self) -> Bill:
        """The current immutable bill snapshot."""
        return self._bill

    def get_participant(self, participant_id: str) -> Participant:
        participant = self._bill.get_participant(participant_id)
        if participant is None:
            raise UnknownParticipantError(participant_id)
        return participant

    def get_expense(self, expense_id: str) -> Expense:
        expense = self._bill.get_expense(expense_id)
        if expense is None:
            raise ExpenseNotFoundError(expense_id)
        return expense

    # =========================================================================
    # RECOMPUTED VIEWS
    # =========================================================================

    def balances(self) -> dict[str, Decimal]:
        return compute_balances(self._bill)

    def summaries(self) -> list[ParticipantSummary]:
        return summarize_participants(self._bill)

    def settlement(self) -> list[Transfer]:
        return plan_settlement(
            compute_balances(self._bill),
            epsilon=self._settings.settlement_epsilon,
        )

    # =========================================================================
    # PARTICIPANT MUTATIONS
    # =========================================================================

    def add_participant(
        self,
        name: str,
        email: Optional[str] = None,
        role: Union[ParticipantRole, str] = ParticipantRole.STANDARD,
        participant_id: Optional[str] = None,
    ) -> Participant:
        """
        Add a participant to the bill.

        Raises:
            InvariantViolationError: The id is already taken, or the bill is archived
        """
        with self._rejections("add_participant", participant_id):
            self._ensure_active()

            fields = {"name": name, "email": email, "role": role}
            if participant_id is not None:
                fields["id"] = participant_id
            participant = Participant(**fields)

            if self._bill.get_participant(participant.id) is not None:
                raise InvariantViolationError(
                    f"Participant id {participant.id} is already in the bill"
                )

            self._commit(self._bill.model_copy(update={
                "participants": self._bill.participants + (participant,),
            }))

        self._audit.log_participant_added(self.bill_id, participant.id, participant.name)
        return participant

    def remove_participant(self, participant_id: str) -> None:
        """
        Remove a participant who has no part in any expense.

        Raises:
            UnknownParticipantError: Not a participant
            InvariantViolationError: Owner, payer, or holder of a split
        """
        with self._rejections("remove_participant", participant_id):
            self._ensure_active()
            self.get_participant(participant_id)

            if participant_id == self._bill.owner_id:
                raise InvariantViolationError(
                    f"Participant {participant_id} owns the bill and cannot be removed"
                )

            for expense in self._bill.expenses:
                if expense.payer_id == participant_id:
                    raise InvariantViolationError(
                        f"Participant {participant_id} paid for expense {expense.id} "
                        "and cannot be removed"
                    )
                if expense.split_for(participant_id) is not None:
                    raise InvariantViolationError(
                        f"Participant {participant_id} has a share in expense {expense.id} "
                        "and cannot be removed"
                    )

            self._commit(self._bill.model_copy(update={
                "participants": tuple(
                    participant for participant in self._bill.participants
                    if participant.id != participant_id
                ),
            }))

        self._audit.log_participant_removed(self.bill_id, participant_id)

    # =========================================================================
    # EXPENSE MUTATIONS
    # =========================================================================

    def add_expense(
        self,
        amount: AmountLike,
        rule: Union[SplitRule, str],
        payer_id: str,
        participant_ids: Optional[Iterable[str]] = None,
        custom_amounts: Optional[Mapping[str, AmountLike]] = None,
        description: str = "",
        expense_date: Optional[date] = None,
    ) -> Expense:
        """
        Resolve and store a new expense.

        The payer's own share starts out paid, every other share unpaid.

        Args:
            amount: Expense total
            rule: Split rule
            payer_id: Participant who paid
            participant_ids: Covered participants; defaults to everyone in the bill
            custom_amounts: Explicit shares for a custom split
            description: What the expense was for
            expense_date: Defaults to today

        Raises:
            InvalidAmountError, EmptyParticipantSetError, UnknownParticipantError,
            InvalidRuleError, OverAllocatedError, RemainderParticipantError,
            InvariantViolationError
        """
        with self._rejections("add_expense"):
            self._ensure_active()
            expense = self._build_expense(
                amount=amount,
                rule=rule,
                payer_id=payer_id,
                participant_ids=participant_ids,
                custom_amounts=custom_amounts,
                description=description,
                expense_date=expense_date,
            )

            self._commit(self._bill.model_copy(update={
                "expenses": self._bill.expenses + (expense,),
            }))

        self._audit.log_expense_added(
            self.bill_id,
            expense.id,
            str(expense.amount),
            expense.payer_id,
            expense.rule.value,
        )
        return expense

    def update_expense(
        self,
        expense_id: str,
        amount: Optional[AmountLike] = None,
        rule: Optional[Union[SplitRule, str]] = None,
        payer_id: Optional[str] = None,
        participant_ids: Optional[Iterable[str]] = None,
        custom_amounts: Optional[Mapping[str, AmountLike]] = None,
        description: Optional[str] = None,
        expense_date: Optional[date] = None,
    ) -> Expense:
        """
        Re-resolve an expense and replace it atomically.

        Omitted arguments keep their stored values. For a custom expense
        edited without new custom amounts, the stored shares are reused and
        the stored remainder participant keeps absorbing the remainder.
        Paid flags carry over for participants who stay covered; the
        payer's own share is always paid.

        Raises:
            ExpenseNotFoundError, plus everything add_expense raises
        """
        with self._rejections("update_expense", expense_id):
            self._ensure_active()
            existing = self.get_expense(expense_id)

            rule = parse_rule(rule) if rule is not None else existing.rule
            ids = list(participant_ids) if participant_ids is not None else existing.participant_ids
            if (
                rule == SplitRule.CUSTOM
                and custom_amounts is None
                and existing.rule == SplitRule.CUSTOM
                and ids == existing.participant_ids
            ):
                remainder_id = existing.remainder_participant_id or ids[-1]
                custom_amounts = {
                    split.participant_id: split.amount
                    for split in existing.splits
                    if split.participant_id != remainder_id
                }

            resolved = self._build_expense(
                amount=existing.amount if amount is None else amount,
                rule=rule,
                payer_id=existing.payer_id if payer_id is None else payer_id,
                participant_ids=ids,
                custom_amounts=custom_amounts,
                description=existing.description if description is None else description,
                expense_date=existing.expense_date if expense_date is None else expense_date,
                expense_id=existing.id,
            )
            splits = []
            for split in resolved.splits:
                previous = existing.split_for(split.participant_id)
                if previous is not None and split.participant_id != resolved.payer_id:
                    split = split.model_copy(update={"is_paid": previous.is_paid})
                splits.append(split)
            updated = resolved.model_copy(update={"splits": tuple(splits)})

            self._commit(self._bill.model_copy(update={
                "expenses": tuple(
                    updated if expense.id == expense_id else expense
                    for expense in self._bill.expenses
                ),
            }))

        self._audit.log_expense_updated(
            self.bill_id,
            expense_id,
            str(existing.amount),
            str(updated.amount),
        )
        return updated

    def remove_expense(self, expense_id: str) -> None:
        """
        Delete an expense together with its splits.

        Raises:
            ExpenseNotFoundError: No such expense
        """
        with self._rejections("remove_expense", expense_id):
            self._ensure_active()
            existing = self.get_expense(expense_id)

            self._commit(self._bill.model_copy(update={
                "expenses": tuple(
                    expense for expense in self._bill.expenses
                    if expense.id != expense_id
                ),
            }))

        self._audit.log_expense_removed(self.bill_id, expense_id, str(existing.amount))

    def set_split_paid(
        self,
        expense_id: str,
        participant_id: str,
        is_paid: bool = True,
    ) -> Split:
        """
        Mark one participant's share of an expense as paid (or unpaid).

        Amounts, balances and the settlement plan are not affected.

        Raises:
            ExpenseNotFoundError: No such expense
            UnknownParticipantError: Participant is not covered by the expense
        """
        with self._rejections("set_split_paid", expense_id):
            self._ensure_active()
            expense = self.get_expense(expense_id)
            split = expense.split_for(participant_id)
            if split is None:
                raise UnknownParticipantError(
                    participant_id,
                    f"Participant {participant_id} has no share in expense {expense_id}",
                )

            updated_split = split.model_copy(update={"is_paid": is_paid})
            updated_expense = expense.model_copy(update={
                "splits": tuple(
                    updated_split if s.participant_id == participant_id else s
                    for s in expense.splits
                ),
            })

            self._commit(self._bill.model_copy(update={
                "expenses": tuple(
                    updated_expense if e.id == expense_id else e
                    for e in self._bill.expenses
                ),
            }))

        self._audit.log_split_payment_updated(self.bill_id, expense_id, participant_id, is_paid)
        return updated_split

    # =========================================================================
    # BILL LIFECYCLE
    # =========================================================================

    def archive(self) -> Bill:
        """
        Archive the bill. An archived bill rejects every further mutation.

        Archiving an archived bill is a no-op.
        """
        if self._bill.is_archived:
            return self._bill

        self._commit(self._bill.model_copy(update={"is_archived": True}))
        self._audit.log_bill_archived(self.bill_id)
        return self._bill

    # =========================================================================
    # INTERNALS
    # =========================================================================

    def _build_expense(
        self,
        amount: AmountLike,
        rule: Union[SplitRule, str],
        payer_id: str,
        participant_ids: Optional[Iterable[str]],
        custom_amounts: Optional[Mapping[str, AmountLike]],
        description: str,
        expense_date: Optional[date],
        expense_id: Optional[str] = None,
    ) -> Expense:
        total = to_money(amount)
        rule = parse_rule(rule)
        self.get_participant(payer_id)

        known = self._bill.participant_ids
        ids = known if participant_ids is None else list(participant_ids)

        splits = resolve_splits(
            total,
            rule,
            ids,
            custom_amounts=custom_amounts,
            known_participants=known,
            remainder_order=self._settings.remainder_order,
        )
        splits = [
            split.model_copy(update={"is_paid": True}) if split.participant_id == payer_id else split
            for split in splits
        ]

        fields = {
            "description": description,
            "amount": total,
            "payer_id": payer_id,
            "rule": rule,
            "splits": tuple(splits),
        }
        if rule == SplitRule.CUSTOM:
            fields["remainder_participant_id"] = find_remainder_participant(
                ids, custom_amounts or {}
            )
        if expense_id is not None:
            fields["id"] = expense_id
        if expense_date is not None:
            fields["expense_date"] = expense_date
        return Expense(**fields)

    def _ensure_active(self) -> None:
        if self._bill.is_archived:
            raise InvariantViolationError(f"Bill {self.bill_id} is archived")

    def _check(self, candidate: Bill) -> None:
        result = self._validator.validate_bill(candidate)

        if result.has_errors:
            raise InvariantViolationError(
                self._validator.get_user_friendly_summary(result),
                issues=result.errors,
            )

        for warning in result.warnings:
            self._logger.warning("validation_warning", bill_id=candidate.id, warning=warning)

    def _commit(self, candidate: Bill) -> None:
        self._check(candidate)
        self._bill = candidate

    @contextmanager
    def _rejections(self, operation: str, entity_id: Optional[str] = None) -> Iterator[None]:
        """Audit any rejected mutation, then let the error propagate."""
        try:
            yield
        except (LedgerError, ValidationError) as error:
            self._audit.log_mutation_rejected(self.bill_id, operation, error, entity_id)
            raise
