"""Pure settlement logic for an event. No I/O, no side effects.

All amounts are whole currency units, so every operation here is integer
arithmetic and no money is created or lost in rounding.
"""

import logging
from collections.abc import Sequence

from .models import (
    BalanceStatus,
    CalculationSummary,
    Member,
    MemberBalance,
    Payment,
    Settlement,
)

logger = logging.getLogger(__name__)


class OrphanedPaymentError(ValueError):
    """A payment's payer is not among the members being calculated."""

    pass


def calculate_payment_split(total_amount: int, payee_count: int) -> list[int]:
    """
    Split an amount into payee_count integer shares.

    Every share is the floor of the even split; the first
    ``total_amount % payee_count`` shares get one extra unit, so the shares
    always sum exactly to total_amount.

    Args:
        total_amount: Amount to split
        payee_count: Number of shares

    Returns:
        List of shares in payee order (empty if payee_count <= 0)
    """
    if payee_count <= 0:
        return []

    base, remainder = divmod(total_amount, payee_count)
    return [base + 1 if i < remainder else base for i in range(payee_count)]


def balance_status(balance: int) -> BalanceStatus:
    if balance > 0:
        return BalanceStatus.RECEIVE
    if balance < 0:
        return BalanceStatus.PAY
    return BalanceStatus.SETTLED


def calculate_member_balances(
    members: Sequence[Member],
    payments: Sequence[Payment],
) -> list[MemberBalance]:
    """
    Compute each member's paid amount minus their fair share.

    The total is divided evenly among all members. Leftover units from the
    integer division go to the first members in collection order, so member
    order is the tie-break and results are reproducible.

    Positive balance = member is owed money
    Negative balance = member owes money

    Args:
        members: Members in canonical order
        payments: Payments, each made by one of the members

    Returns:
        One MemberBalance per member, in member order. Balances sum to zero.

    Raises:
        OrphanedPaymentError: If a payment's payer is not in members
    """
    if not members:
        return []

    paid: dict[str, int] = {m.id: 0 for m in members}
    total = 0
    for payment in payments:
        if payment.payer_id not in paid:
            raise OrphanedPaymentError(
                f"Payment {payment.id} was made by unknown member {payment.payer_id}"
            )
        paid[payment.payer_id] += payment.amount
        total += payment.amount

    shares = calculate_payment_split(total, len(members))

    balances = []
    for member, share in zip(members, shares):
        balance = paid[member.id] - share
        balances.append(
            MemberBalance(
                member_id=member.id,
                member_name=member.name,
                balance=balance,
                status=balance_status(balance),
            )
        )
    return balances


def calculate_minimal_settlements(balances: Sequence[MemberBalance]) -> list[Settlement]:
    """
    Compute transfers that bring every balance to zero.

    Greedy netting: creditors and debtors are each sorted largest first
    (stable, so equal amounts keep member order), then the current debtor pays
    the current creditor the smaller of the two outstanding amounts until
    both lists are exhausted.

    This keeps the transfer count at most debtors + creditors - 1, which is
    optimal for the usual few-payers case but not for every distribution;
    the exact minimum is NP-hard in general.

    Args:
        balances: Member balances summing to zero

    Returns:
        List of settlements, empty when everyone is settled
    """
    creditors = sorted(
        ([b.member_name, b.balance] for b in balances if b.balance > 0),
        key=lambda x: x[1],
        reverse=True,
    )
    debtors = sorted(
        ([b.member_name, -b.balance] for b in balances if b.balance < 0),
        key=lambda x: x[1],
        reverse=True,
    )

    settlements: list[Settlement] = []
    ci = di = 0

    while ci < len(creditors) and di < len(debtors):
        creditor = creditors[ci]
        debtor = debtors[di]
        transfer = min(creditor[1], debtor[1])

        settlements.append(Settlement(from_member=debtor[0], to_member=creditor[0], amount=transfer))

        creditor[1] -= transfer
        debtor[1] -= transfer

        if creditor[1] == 0:
            ci += 1
        if debtor[1] == 0:
            di += 1

    if ci < len(creditors) or di < len(debtors):
        # Only reachable when the balances do not sum to zero.
        logger.warning(
            "Unbalanced input: %d creditor(s) and %d debtor(s) left unsettled",
            len(creditors) - ci,
            len(debtors) - di,
        )

    return settlements


def verify_settlements(
    balances: Sequence[MemberBalance],
    settlements: Sequence[Settlement],
) -> bool:
    """
    Check that applying the settlements zeroes every balance.

    Also rejects self-transfers, non-positive amounts and unknown names.
    """
    remaining = {b.member_name: b.balance for b in balances}
    for s in settlements:
        if s.from_member == s.to_member or s.amount <= 0:
            return False
        if s.from_member not in remaining or s.to_member not in remaining:
            return False
        remaining[s.from_member] += s.amount
        remaining[s.to_member] -= s.amount
    return all(v == 0 for v in remaining.values())


def calculate_statistics(
    members: Sequence[Member],
    payments: Sequence[Payment],
) -> dict[str, int | float]:
    """Total paid, average per person and counts."""
    total = sum(p.amount for p in payments)
    return {
        "total_amount": total,
        "average_per_person": total / len(members) if members else 0.0,
        "payment_count": len(payments),
        "member_count": len(members),
    }


def summarize(
    members: Sequence[Member],
    payments: Sequence[Payment],
    settlements: Sequence[Settlement] | None = None,
) -> CalculationSummary:
    """
    Build the event summary.

    Args:
        members: Members in canonical order
        payments: All payments
        settlements: Precomputed settlements (computed here if omitted)
    """
    if settlements is None:
        settlements = calculate_minimal_settlements(calculate_member_balances(members, payments))

    stats = calculate_statistics(members, payments)
    return CalculationSummary(
        total_amount=int(stats["total_amount"]),
        average_per_person=float(stats["average_per_person"]),
        payment_count=int(stats["payment_count"]),
        member_count=int(stats["member_count"]),
        settlements_count=len(settlements),
    )
