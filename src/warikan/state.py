"""Event state management - validated actions, cache invalidation, autosave."""

import logging
import threading
from collections.abc import Sequence
from datetime import datetime
from typing import Any

from . import ledger, templates
from .cache import CalculationCache
from .config import get_settings
from .models import (
    CalculationSummary,
    ErrorCode,
    Member,
    MemberBalance,
    Payment,
    Settlement,
    ValidationIssue,
    ValidationResult,
    WarikanState,
)
from .storage import StateStorage, StorageError
from .validation import (
    validate_amount,
    validate_event_name,
    validate_member_name,
    validate_payment_input,
    validate_setup_completion,
)

logger = logging.getLogger(__name__)


def _clean_memo(memo: str | None) -> str | None:
    if memo is None:
        return None
    memo = memo.strip()
    return memo or None


class WarikanStore:
    """
    Owns the event state and applies every change to it.

    Each action validates its input first. A rejected action leaves the state
    untouched and returns the errors; an accepted one replaces the state,
    clears the calculation cache and schedules a save.

    Saves are debounced: with a positive autosave_delay, a burst of actions
    produces one write after the delay. Call flush() (or use the store as a
    context manager) to write immediately.
    """

    def __init__(
        self,
        storage: StateStorage | None = None,
        autosave_delay: float | None = None,
    ):
        """
        Initialize WarikanStore.

        Args:
            storage: Where to persist state (None keeps it in memory only)
            autosave_delay: Seconds to wait before saving (default: settings)
        """
        if autosave_delay is None:
            autosave_delay = get_settings().autosave_delay
        self.storage = storage
        self.autosave_delay = autosave_delay

        self._lock = threading.RLock()
        self._timer: threading.Timer | None = None
        self._dirty = False
        self._state = storage.load() if storage else WarikanState()

    def __enter__(self) -> "WarikanStore":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.flush()

    # === Read side ===

    @property
    def state(self) -> WarikanState:
        return self._state

    @property
    def has_pending_save(self) -> bool:
        return self._dirty

    def find_member(self, member_id: str) -> Member | None:
        return self._state.find_member(member_id)

    def find_member_by_name(self, name: str) -> Member | None:
        folded = name.strip().casefold()
        return next((m for m in self._state.members if m.name.casefold() == folded), None)

    def find_payment(self, payment_id: str) -> Payment | None:
        return self._state.find_payment(payment_id)

    def member_balances(self) -> list[MemberBalance]:
        return CalculationCache.balances(self._state.members, self._state.payments)

    def settlements(self) -> list[Settlement]:
        return CalculationCache.settlements(self.member_balances())

    def summary(self) -> CalculationSummary:
        return ledger.summarize(self._state.members, self._state.payments, self.settlements())

    def setup_validation(self) -> ValidationResult[dict[str, Any]]:
        return validate_setup_completion(self._state.event_name, self._state.members)

    # === Event ===

    def set_event_name(self, name: str) -> ValidationResult[str]:
        result = validate_event_name(name)
        if not result.is_valid:
            return self._reject("set_event_name", result)

        self._commit(self._state.model_copy(update={"event_name": result.data}))
        return result

    # === Members ===

    def add_member(self, name: str) -> ValidationResult[Member]:
        result = validate_member_name(name, self._state.members)
        if not result.is_valid:
            return self._reject("add_member", result)

        member = Member(name=result.data)
        self._commit(self._state.model_copy(update={"members": [*self._state.members, member]}))
        logger.info("Added member %s", member.id)
        return ValidationResult.success(member)

    def edit_member(self, member_id: str, name: str) -> ValidationResult[Member]:
        """Rename a member, checking uniqueness against everyone else."""
        existing = self.find_member(member_id)
        if existing is None:
            return self._reject("edit_member", self._member_not_found(member_id))

        result = validate_member_name(name, self._state.members, exclude_id=member_id)
        if not result.is_valid:
            return self._reject("edit_member", result)

        renamed = existing.model_copy(update={"name": result.data})
        members = [renamed if m.id == member_id else m for m in self._state.members]
        self._commit(self._state.model_copy(update={"members": members}))
        return ValidationResult.success(renamed)

    def remove_member(self, member_id: str) -> ValidationResult[Member]:
        """Remove a member together with every payment they made."""
        existing = self.find_member(member_id)
        if existing is None:
            return self._reject("remove_member", self._member_not_found(member_id))

        members = [m for m in self._state.members if m.id != member_id]
        payments = [p for p in self._state.payments if p.payer_id != member_id]
        removed = len(self._state.payments) - len(payments)
        self._commit(self._state.model_copy(update={"members": members, "payments": payments}))
        logger.info("Removed member %s and %d payment(s)", member_id, removed)
        return ValidationResult.success(existing)

    # === Payments ===

    def add_payment(
        self,
        payer_id: str,
        amount: Any,
        memo: str | None = None,
    ) -> ValidationResult[Payment]:
        errors: list[ValidationIssue] = []
        if self.find_member(payer_id) is None:
            errors.extend(self._member_not_found(payer_id).errors)

        amount_result = validate_amount(amount)
        errors.extend(amount_result.errors)

        if errors:
            return self._reject("add_payment", ValidationResult.failure(*errors))

        payment = Payment(payer_id=payer_id, amount=amount_result.data, memo=_clean_memo(memo))
        self._commit(self._state.model_copy(update={"payments": [*self._state.payments, payment]}))
        return ValidationResult.success(payment)

    def add_split_payment(
        self,
        payer_id: str,
        amount: Any,
        payee_ids: Sequence[str],
        memo: str | None = None,
    ) -> ValidationResult[list[Payment]]:
        """
        Record one expense as one same-payer payment per payee.

        The amount is split with ledger.calculate_payment_split (earlier
        payees absorb the remainder) and each payment's memo names its payee.
        """
        result = validate_payment_input(payer_id, amount, payee_ids)
        if not result.is_valid:
            return self._reject("add_split_payment", result)

        form = result.data
        assert form is not None
        errors: list[ValidationIssue] = []
        for ref in [form.payer_id, *form.payee_ids]:
            if self.find_member(ref) is None:
                errors.extend(self._member_not_found(ref).errors)
        if errors:
            return self._reject("add_split_payment", ValidationResult.failure(*errors))

        shares = ledger.calculate_payment_split(form.amount, len(form.payee_ids))
        created = []
        for payee_id, share in zip(form.payee_ids, shares):
            if share <= 0:
                continue
            payee = self.find_member(payee_id)
            assert payee is not None
            created.append(
                Payment(
                    payer_id=form.payer_id,
                    amount=share,
                    memo=templates.format_split_memo(payee.name, memo),
                )
            )

        self._commit(self._state.model_copy(update={"payments": [*self._state.payments, *created]}))
        return ValidationResult.success(created)

    def edit_payment(
        self,
        payment_id: str,
        payer_id: str | None = None,
        amount: Any = None,
        memo: str | None = None,
    ) -> ValidationResult[Payment]:
        """
        Replace the payer, amount and/or memo of a payment.

        Arguments left as None keep their current value; an empty memo clears
        it.
        """
        existing = self.find_payment(payment_id)
        if existing is None:
            return self._reject(
                "edit_payment",
                ValidationResult.error(
                    ErrorCode.INVALID_SELECTION,
                    templates.PAYMENT_NOT_FOUND.format(ref=payment_id),
                ),
            )

        update: dict[str, Any] = {}
        errors: list[ValidationIssue] = []

        if payer_id is not None:
            if self.find_member(payer_id) is None:
                errors.extend(self._member_not_found(payer_id).errors)
            else:
                update["payer_id"] = payer_id

        if amount is not None:
            amount_result = validate_amount(amount)
            errors.extend(amount_result.errors)
            if amount_result.is_valid:
                update["amount"] = amount_result.data

        if memo is not None:
            update["memo"] = _clean_memo(memo)

        if errors:
            return self._reject("edit_payment", ValidationResult.failure(*errors))

        update["updated_at"] = datetime.now()
        edited = existing.model_copy(update=update)
        payments = [edited if p.id == payment_id else p for p in self._state.payments]
        self._commit(self._state.model_copy(update={"payments": payments}))
        return ValidationResult.success(edited)

    def remove_payment(self, payment_id: str) -> ValidationResult[Payment]:
        existing = self.find_payment(payment_id)
        if existing is None:
            return self._reject(
                "remove_payment",
                ValidationResult.error(
                    ErrorCode.INVALID_SELECTION,
                    templates.PAYMENT_NOT_FOUND.format(ref=payment_id),
                ),
            )

        payments = [p for p in self._state.payments if p.id != payment_id]
        self._commit(self._state.model_copy(update={"payments": payments}))
        return ValidationResult.success(existing)

    # === Reset & persistence ===

    def reset(self) -> None:
        """Drop all data, cached calculations and the saved snapshot."""
        with self._lock:
            self._cancel_timer()
            self._state = WarikanState()
            self._dirty = False
            CalculationCache.clear()
            if self.storage:
                self.storage.clear()
        logger.info("State reset")

    def flush(self) -> None:
        """Write any pending change to storage now."""
        with self._lock:
            self._cancel_timer()
            if self._dirty and self.storage:
                self.storage.save(self._state)
            self._dirty = False

    def _commit(self, new_state: WarikanState) -> None:
        with self._lock:
            self._state = new_state.model_copy(update={"last_updated": datetime.now()})
            CalculationCache.clear()
            self._dirty = True
            self._schedule_save()

    def _schedule_save(self) -> None:
        if self.storage is None:
            return
        if self.autosave_delay <= 0:
            self.flush()
            return

        self._cancel_timer()
        self._timer = threading.Timer(self.autosave_delay, self._autosave)
        self._timer.daemon = True
        self._timer.start()

    def _autosave(self) -> None:
        try:
            self.flush()
        except StorageError as e:
            logger.error("Autosave failed: %s", e)

    def _cancel_timer(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    @staticmethod
    def _member_not_found(ref: str) -> ValidationResult[Any]:
        return ValidationResult.error(
            ErrorCode.INVALID_SELECTION,
            templates.MEMBER_NOT_FOUND.format(ref=ref),
        )

    @staticmethod
    def _reject(action: str, result: ValidationResult[Any]) -> ValidationResult[Any]:
        logger.info("Rejected %s: %s", action, "; ".join(result.messages))
        return result
