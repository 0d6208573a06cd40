"""Response message templates - all user-facing text lives here.

Validation messages, list formatting and CLI responses are kept together so
wording can change without touching the calculation or state code.
"""

from collections.abc import Sequence

from .models import BalanceStatus, Member, MemberBalance, Payment, Settlement

CURRENCY_SYMBOL = "¥"


def format_amount(amount: int) -> str:
    """Format an amount with thousands separators."""
    return f"{amount:,}"


def format_currency(amount: int) -> str:
    """Format amount with currency symbol."""
    sign = "-" if amount < 0 else ""
    return f"{sign}{CURRENCY_SYMBOL}{format_amount(abs(amount))}"


def format_balance(balance: int) -> str:
    """Format a balance with an explicit sign (±0 when settled)."""
    if balance > 0:
        return f"+{format_amount(balance)}"
    if balance < 0:
        return f"-{format_amount(-balance)}"
    return "±0"


def truncate(text: str, max_length: int) -> str:
    """Shorten text to max_length, marking the cut with an ellipsis."""
    text = text.strip()
    if len(text) <= max_length:
        return text
    return f"{text[: max_length - 1]}…"


def format_memo(memo: str | None, max_length: int = 20) -> str:
    if not memo:
        return ""
    return truncate(memo, max_length)


def format_split_memo(payee_name: str, memo: str | None = None) -> str:
    """Memo for one share of a split payment: ``[payee] memo``."""
    memo = (memo or "").strip()
    return f"[{payee_name}] {memo}" if memo else f"[{payee_name}]"


BALANCE_LABELS: dict[BalanceStatus, str] = {
    BalanceStatus.RECEIVE: "to receive",
    BalanceStatus.PAY: "to pay",
    BalanceStatus.SETTLED: "settled",
}


def format_balances_list(balances: Sequence[MemberBalance]) -> str:
    """Format member balances for display, one line per member."""
    if not balances:
        return "No members yet."

    lines = []
    for b in balances:
        lines.append(f"• {b.member_name}: {format_balance(b.balance)} ({BALANCE_LABELS[b.status]})")
    return "\n".join(lines)


def format_settlements_list(settlements: Sequence[Settlement]) -> str:
    """Format list of transfers for display."""
    if not settlements:
        return ALL_SETTLED

    lines = []
    for s in settlements:
        lines.append(f"• {s.from_member} → {s.to_member}: {format_currency(s.amount)}")
    return "\n".join(lines)


def format_payments_list(payments: Sequence[Payment], members: Sequence[Member]) -> str:
    """Format payments for display, resolving payer names."""
    if not payments:
        return NO_PAYMENTS

    names = {m.id: m.name for m in members}
    lines = []
    for p in payments:
        payer = names.get(p.payer_id, UNKNOWN_MEMBER)
        memo = format_memo(p.memo)
        suffix = f" - {memo}" if memo else ""
        lines.append(f"• [{p.id[:8]}] {payer} paid {format_currency(p.amount)}{suffix}")
    return "\n".join(lines)


def format_members_list(members: Sequence[Member]) -> str:
    if not members:
        return "No members yet."
    return "\n".join(f"• [{m.id[:8]}] {m.name}" for m in members)


# === VALIDATION MESSAGES ===

FIELD_REQUIRED = "{label} is required"
FIELD_TOO_SHORT = "{label} must be at least {min_length} characters"
FIELD_TOO_LONG = "{label} must be {max_length} characters or fewer"

MEMBER_NAME_LABEL = "Member name"
EVENT_NAME_LABEL = "Event name"
MEMBER_NAME_DUPLICATE = "A member named {name} already exists"

AMOUNT_NOT_A_NUMBER = "Enter a valid number"
AMOUNT_NOT_WHOLE = "Amount must be a whole number"
AMOUNT_POSITIVE = "Amount must be a positive number"
AMOUNT_TOO_LARGE = "Amount must be {max_amount} or less"

MIN_MEMBERS_REQUIRED = "At least {min_members} members are required"
PAYER_REQUIRED = "Select who paid"
PAYEES_REQUIRED = "Select at least one member to split with"
MEMBER_NOT_FOUND = "Member not found: {ref}"
PAYMENT_NOT_FOUND = "Payment not found: {ref}"

UNKNOWN_MEMBER = "(unknown)"


# === SUCCESS TEMPLATES ===

EVENT_SET = "🎉 Event: *{event_name}*"

MEMBER_ADDED = "✅ Added {name}"

MEMBER_RENAMED = "✅ Renamed {old_name} → {new_name}"

MEMBER_REMOVED = "🗑️ Removed {name} and {payment_count} payment(s)"

PAYMENT_ADDED = "✅ {payer} paid {amount_display}{memo}"

SPLIT_PAYMENT_ADDED = "✅ {payer} paid {amount_display}, split → {shares}"

PAYMENT_UPDATED = "✏️ Updated payment: {payer} {amount_display}{memo}"

PAYMENT_REMOVED = "🗑️ Removed payment: {payer} {amount_display}"

RESET_DONE = "🧹 All data cleared."


# === READ TEMPLATES ===

BALANCES = "📊 *{event_name}* Balances\n\n{balances}"

SETTLEMENTS = "💸 *{event_name}* Settle up\n\n{settlements}"

SUMMARY = (
    "📋 *{event_name}* Summary\n\n"
    "👥 Members: {member_count}\n"
    "💰 Total: {total_display} ({payment_count} payment(s))\n"
    "➗ Per person: {average_display}\n"
    "🔄 Transfers needed: {settlements_count}\n\n"
    "{settlements}"
)

SETUP_INCOMPLETE = "⚠️ Setup incomplete:\n{errors}"


# === ERROR TEMPLATES ===

ERROR_VALIDATION = "⚠️ {message}"


# === NOTHING TO DO ===

NO_PAYMENTS = "No payments yet."

ALL_SETTLED = "✨ All settled up!"

UNTITLED_EVENT = "Untitled event"
