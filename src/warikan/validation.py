"""Pure validation rules for names, amounts and setup. Never raises."""

from collections.abc import Sequence
from decimal import Decimal, InvalidOperation
from typing import Any

from . import templates
from .config import get_settings
from .models import ErrorCode, Member, PaymentInput, ValidationIssue, ValidationResult


def validate_string(
    value: Any,
    *,
    required: bool = False,
    max_length: int | None = None,
    min_length: int | None = None,
    label: str = "This field",
) -> ValidationResult[str]:
    """
    Trim and check a free-text value, collecting every failed rule.

    Args:
        value: Raw input (None is treated as empty)
        required: Whether an empty value is an error
        max_length: Maximum length after trimming
        min_length: Minimum length after trimming
        label: Field name used in messages

    Returns:
        ValidationResult with the trimmed string on success
    """
    trimmed = "" if value is None else str(value).strip()
    errors: list[ValidationIssue] = []

    if required and not trimmed:
        errors.append(
            ValidationIssue(
                code=ErrorCode.REQUIRED_FIELD,
                message=templates.FIELD_REQUIRED.format(label=label),
            )
        )

    if min_length and len(trimmed) < min_length:
        errors.append(
            ValidationIssue(
                code=ErrorCode.INVALID_LENGTH,
                message=templates.FIELD_TOO_SHORT.format(label=label, min_length=min_length),
            )
        )

    if max_length is not None and len(trimmed) > max_length:
        errors.append(
            ValidationIssue(
                code=ErrorCode.INVALID_LENGTH,
                message=templates.FIELD_TOO_LONG.format(label=label, max_length=max_length),
            )
        )

    if errors:
        return ValidationResult.failure(*errors)
    return ValidationResult.success(trimmed)


def validate_member_name(
    name: Any,
    existing_members: Sequence[Member] = (),
    exclude_id: str | None = None,
) -> ValidationResult[str]:
    """
    Validate a member name against the length rule and its siblings.

    Names compare case-insensitively. When renaming, pass the member's own id
    as exclude_id so the current name does not count as a duplicate.
    """
    result = validate_string(
        name,
        required=True,
        max_length=get_settings().member_name_max,
        label=templates.MEMBER_NAME_LABEL,
    )
    if not result.is_valid:
        return result

    trimmed = result.data
    assert trimmed is not None
    folded = trimmed.casefold()
    for member in existing_members:
        if member.id != exclude_id and member.name.casefold() == folded:
            return ValidationResult.error(
                ErrorCode.DUPLICATE_VALUE,
                templates.MEMBER_NAME_DUPLICATE.format(name=member.name),
            )

    return result


def validate_event_name(name: Any) -> ValidationResult[str]:
    return validate_string(
        name,
        required=True,
        max_length=get_settings().event_name_max,
        label=templates.EVENT_NAME_LABEL,
    )


def _to_decimal(value: Any) -> Decimal | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, str):
        text = value.strip().replace(",", "")
        try:
            return Decimal(text)
        except InvalidOperation:
            return None
    if isinstance(value, (int, float)):
        return Decimal(str(value))
    return None


def validate_amount(value: Any, max_amount: int | None = None) -> ValidationResult[int]:
    """
    Parse and check an amount entered by the user.

    Accepts ints, floats and numeric strings (thousands separators allowed).
    The amount must be finite, a whole number of currency units, positive and
    no larger than the policy ceiling.

    Args:
        value: Raw amount input
        max_amount: Upper bound (default: settings.max_amount)

    Returns:
        ValidationResult with the amount as int on success
    """
    if max_amount is None:
        max_amount = get_settings().max_amount

    number = _to_decimal(value)
    if number is None or not number.is_finite():
        return ValidationResult.error(ErrorCode.INVALID_AMOUNT, templates.AMOUNT_NOT_A_NUMBER)

    if number <= 0:
        return ValidationResult.error(ErrorCode.INVALID_AMOUNT, templates.AMOUNT_POSITIVE)

    if number > max_amount:
        return ValidationResult.error(
            ErrorCode.INVALID_AMOUNT,
            templates.AMOUNT_TOO_LARGE.format(max_amount=templates.format_amount(max_amount)),
        )

    if number != number.to_integral_value():
        return ValidationResult.error(ErrorCode.INVALID_AMOUNT, templates.AMOUNT_NOT_WHOLE)

    return ValidationResult.success(int(number))


def validate_setup_completion(
    event_name: Any,
    members: Sequence[Member],
) -> ValidationResult[dict[str, Any]]:
    """
    Check that setup is complete: a valid event name and enough members.

    All failures are reported together.
    """
    min_members = get_settings().min_members
    errors: list[ValidationIssue] = []

    event_result = validate_event_name(event_name)
    errors.extend(event_result.errors)

    if len(members) < min_members:
        errors.append(
            ValidationIssue(
                code=ErrorCode.INSUFFICIENT_MEMBERS,
                message=templates.MIN_MEMBERS_REQUIRED.format(min_members=min_members),
            )
        )

    if errors:
        return ValidationResult.failure(*errors)
    return ValidationResult.success({"event_name": event_result.data, "members": list(members)})


def validate_payment_input(
    payer_id: str | None,
    amount: Any,
    payee_ids: Sequence[str],
) -> ValidationResult[PaymentInput]:
    """
    Validate a payment to be split among payees.

    The payer is dropped from the payees; duplicates are removed keeping
    first-seen order, which is the order remainder units are handed out in.
    """
    errors: list[ValidationIssue] = []

    if not payer_id:
        errors.append(
            ValidationIssue(code=ErrorCode.INVALID_SELECTION, message=templates.PAYER_REQUIRED)
        )

    amount_result = validate_amount(amount)
    errors.extend(amount_result.errors)

    payees = [pid for pid in dict.fromkeys(payee_ids) if pid and pid != payer_id]
    if not payees:
        errors.append(
            ValidationIssue(code=ErrorCode.INVALID_SELECTION, message=templates.PAYEES_REQUIRED)
        )

    if errors:
        return ValidationResult.failure(*errors)
    return ValidationResult.success(
        PaymentInput(payer_id=payer_id, amount=amount_result.data, payee_ids=payees)
    )
