"""Tests for Warikan validation rules."""

import pytest

from warikan.config import get_settings
from warikan.models import ErrorCode, Member
from warikan.validation import (
    validate_amount,
    validate_event_name,
    validate_member_name,
    validate_payment_input,
    validate_setup_completion,
    validate_string,
)


class TestValidateString:
    """Tests for the generic string check."""

    def test_trims(self) -> None:
        result = validate_string("  hello  ", required=True)
        assert result.is_valid
        assert result.data == "hello"

    def test_required(self) -> None:
        result = validate_string("   ", required=True, label="Name")
        assert result.codes == [ErrorCode.REQUIRED_FIELD]
        assert result.messages == ["Name is required"]

    def test_optional_empty_is_valid(self) -> None:
        assert validate_string("").is_valid

    def test_none_is_empty(self) -> None:
        assert validate_string(None, required=True).codes == [ErrorCode.REQUIRED_FIELD]

    def test_collects_all_errors(self) -> None:
        result = validate_string("", required=True, min_length=2)
        assert result.codes == [ErrorCode.REQUIRED_FIELD, ErrorCode.INVALID_LENGTH]

    def test_max_length(self) -> None:
        result = validate_string("abcdef", max_length=5, label="Code")
        assert result.codes == [ErrorCode.INVALID_LENGTH]
        assert result.messages == ["Code must be 5 characters or fewer"]


class TestValidateMemberName:
    """Tests for member name validation."""

    def test_valid_name(self) -> None:
        result = validate_member_name("  Alice ", [])
        assert result.is_valid
        assert result.data == "Alice"

    def test_empty_name(self) -> None:
        result = validate_member_name("   ", [])
        assert result.codes == [ErrorCode.REQUIRED_FIELD]

    def test_twenty_characters_allowed(self) -> None:
        assert validate_member_name("x" * 20, []).is_valid

    def test_too_long(self) -> None:
        result = validate_member_name("x" * 21, [])
        assert result.codes == [ErrorCode.INVALID_LENGTH]

    def test_length_checked_after_trim(self) -> None:
        assert validate_member_name("  " + "x" * 20 + "  ", []).is_valid

    def test_duplicate_case_insensitive(self) -> None:
        existing = [Member(name="Alice")]
        result = validate_member_name("ALICE", existing)
        assert result.codes == [ErrorCode.DUPLICATE_VALUE]
        assert "Alice" in result.messages[0]

    def test_duplicate_after_trim(self) -> None:
        existing = [Member(name="Alice")]
        assert not validate_member_name(" alice ", existing).is_valid

    def test_rename_excludes_self(self) -> None:
        alice = Member(name="Alice")
        result = validate_member_name("alice", [alice, Member(name="Bob")], exclude_id=alice.id)
        assert result.is_valid
        assert result.data == "alice"

    def test_rename_to_sibling_name(self) -> None:
        alice = Member(name="Alice")
        result = validate_member_name("bob", [alice, Member(name="Bob")], exclude_id=alice.id)
        assert result.codes == [ErrorCode.DUPLICATE_VALUE]

    def test_limit_from_settings(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("WARIKAN_MEMBER_NAME_MAX", "5")
        get_settings.cache_clear()
        assert not validate_member_name("Sixsix", []).is_valid


class TestValidateEventName:
    """Tests for event name validation."""

    def test_valid(self) -> None:
        assert validate_event_name(" Trip ").data == "Trip"

    def test_empty(self) -> None:
        assert validate_event_name("").codes == [ErrorCode.REQUIRED_FIELD]

    def test_fifty_characters_allowed(self) -> None:
        assert validate_event_name("e" * 50).is_valid

    def test_too_long(self) -> None:
        assert validate_event_name("e" * 51).codes == [ErrorCode.INVALID_LENGTH]


class TestValidateAmount:
    """Tests for amount validation."""

    @pytest.mark.parametrize(
        ("value", "expected"),
        [
            (1, 1),
            (100, 100),
            ("250", 250),
            (" 1,200 ", 1200),
            (300.0, 300),
            ("1e3", 1000),
            (1_000_000, 1_000_000),
        ],
    )
    def test_valid_amounts(self, value: object, expected: int) -> None:
        result = validate_amount(value)
        assert result.is_valid
        assert result.data == expected
        assert isinstance(result.data, int)

    @pytest.mark.parametrize(
        "value",
        [0, -1, "-5", "abc", "", None, float("nan"), float("inf"), "Infinity", True, 1_000_001],
    )
    def test_invalid_amounts(self, value: object) -> None:
        result = validate_amount(value)
        assert not result.is_valid
        assert result.codes == [ErrorCode.INVALID_AMOUNT]

    def test_fractional_amount(self) -> None:
        result = validate_amount("10.5")
        assert result.messages == ["Amount must be a whole number"]

    def test_non_positive_message(self) -> None:
        assert validate_amount(0).messages == ["Amount must be a positive number"]

    def test_too_large_message(self) -> None:
        assert validate_amount(2_000_000).messages == ["Amount must be 1,000,000 or less"]

    def test_custom_ceiling(self) -> None:
        assert validate_amount(5000, max_amount=10_000).is_valid
        assert not validate_amount(10_001, max_amount=10_000).is_valid

    def test_ceiling_from_settings(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("WARIKAN_MAX_AMOUNT", "10")
        get_settings.cache_clear()
        assert not validate_amount(11).is_valid
        assert validate_amount(10).is_valid


class TestValidateSetupCompletion:
    """Tests for the setup gate."""

    def test_one_member_is_invalid(self) -> None:
        result = validate_setup_completion("Trip", [Member(name="Aki")])
        assert not result.is_valid
        assert result.codes == [ErrorCode.INSUFFICIENT_MEMBERS]

    def test_two_members_is_valid(self) -> None:
        members = [Member(name="Aki"), Member(name="Ben")]
        result = validate_setup_completion(" Trip ", members)
        assert result.is_valid
        assert result.data == {"event_name": "Trip", "members": members}

    def test_aggregates_all_errors(self) -> None:
        result = validate_setup_completion("", [])
        assert result.codes == [ErrorCode.REQUIRED_FIELD, ErrorCode.INSUFFICIENT_MEMBERS]
        assert len(result.messages) == 2


class TestValidatePaymentInput:
    """Tests for split payment form validation."""

    def test_valid(self) -> None:
        result = validate_payment_input("a", "300", ["b", "c"])
        assert result.is_valid
        assert result.data is not None
        assert result.data.amount == 300
        assert result.data.payee_ids == ["b", "c"]

    def test_payer_removed_from_payees(self) -> None:
        result = validate_payment_input("a", 300, ["a", "b"])
        assert result.data is not None
        assert result.data.payee_ids == ["b"]

    def test_duplicate_payees_removed(self) -> None:
        result = validate_payment_input("a", 300, ["c", "b", "c"])
        assert result.data is not None
        assert result.data.payee_ids == ["c", "b"]

    def test_only_payer_selected(self) -> None:
        result = validate_payment_input("a", 300, ["a"])
        assert result.codes == [ErrorCode.INVALID_SELECTION]

    def test_collects_all_errors(self) -> None:
        result = validate_payment_input("", "abc", [])
        assert result.codes == [
            ErrorCode.INVALID_SELECTION,
            ErrorCode.INVALID_AMOUNT,
            ErrorCode.INVALID_SELECTION,
        ]
