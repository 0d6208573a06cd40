"""Pydantic models for Warikan bill splitting."""

from datetime import datetime
from enum import Enum
from typing import Annotated, Any, Generic, TypeVar
from uuid import uuid4

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    StringConstraints,
    computed_field,
    field_validator,
    model_validator,
)

STATE_VERSION = "1.0.0"

T = TypeVar("T")

# Identifiers are opaque, non-empty tokens; amounts are whole currency units.
MemberId = Annotated[str, StringConstraints(min_length=1)]
PaymentId = Annotated[str, StringConstraints(min_length=1)]
PositiveAmount = Annotated[int, Field(gt=0)]


def new_id() -> str:
    """Generate a fresh opaque identifier."""
    return uuid4().hex


def _reject_bool(v: Any) -> Any:
    if isinstance(v, bool):
        raise ValueError("amount must be a number, not a boolean")
    return v


class ErrorCode(str, Enum):
    """Validation failure categories."""

    REQUIRED_FIELD = "required_field"
    INVALID_LENGTH = "invalid_length"
    DUPLICATE_VALUE = "duplicate_value"
    INVALID_AMOUNT = "invalid_amount"
    INSUFFICIENT_MEMBERS = "insufficient_members"
    INVALID_SELECTION = "invalid_selection"


class BalanceStatus(str, Enum):
    """Which way money flows for a member."""

    RECEIVE = "receive"
    PAY = "pay"
    SETTLED = "settled"


class ValidationIssue(BaseModel):
    """A single validation failure with a human-readable message."""

    code: ErrorCode
    message: str


class ValidationResult(BaseModel, Generic[T]):
    """
    Outcome of a validation or a state action.

    Failures carry every collected issue; successes carry the cleaned value.
    Never raised - callers inspect ``is_valid``.
    """

    data: T | None = None
    errors: list[ValidationIssue] = Field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return not self.errors

    @property
    def messages(self) -> list[str]:
        return [issue.message for issue in self.errors]

    @property
    def codes(self) -> list[ErrorCode]:
        return [issue.code for issue in self.errors]

    @classmethod
    def success(cls, data: Any = None) -> "ValidationResult[Any]":
        return cls(data=data)

    @classmethod
    def failure(cls, *issues: ValidationIssue) -> "ValidationResult[Any]":
        return cls(errors=list(issues))

    @classmethod
    def error(cls, code: ErrorCode, message: str) -> "ValidationResult[Any]":
        return cls.failure(ValidationIssue(code=code, message=message))


def is_member_id(value: Any) -> bool:
    return isinstance(value, str) and len(value) > 0


def is_payment_id(value: Any) -> bool:
    return isinstance(value, str) and len(value) > 0


def is_positive_amount(value: Any) -> bool:
    """True for a whole, strictly positive number of currency units."""
    if isinstance(value, bool):
        return False
    if isinstance(value, float):
        return value.is_integer() and value > 0
    return isinstance(value, int) and value > 0


def create_member_id(value: str) -> ValidationResult[str]:
    """Wrap a raw string as a member id if it passes identifier validation."""
    if is_member_id(value):
        return ValidationResult.success(value)
    return ValidationResult.error(ErrorCode.REQUIRED_FIELD, "Invalid member ID")


def create_payment_id(value: str) -> ValidationResult[str]:
    """Wrap a raw string as a payment id if it passes identifier validation."""
    if is_payment_id(value):
        return ValidationResult.success(value)
    return ValidationResult.error(ErrorCode.REQUIRED_FIELD, "Invalid payment ID")


def create_positive_amount(value: int | float) -> ValidationResult[int]:
    """Wrap a number as a positive amount, coercing integral floats to int."""
    if is_positive_amount(value):
        return ValidationResult.success(int(value))
    return ValidationResult.error(ErrorCode.INVALID_AMOUNT, "Amount must be positive")


class Member(BaseModel):
    """A participant in the event."""

    id: MemberId = Field(default_factory=new_id)
    name: str
    created_at: datetime | None = Field(default_factory=datetime.now)


class Payment(BaseModel):
    """Money one member paid on behalf of the group."""

    id: PaymentId = Field(default_factory=new_id)
    payer_id: MemberId
    amount: PositiveAmount
    memo: str | None = None
    created_at: datetime = Field(default_factory=datetime.now)
    updated_at: datetime | None = None

    @field_validator("amount", mode="before")
    @classmethod
    def coerce_amount(cls, v: Any) -> Any:
        return _reject_bool(v)


class PaymentInput(BaseModel):
    """Validated form input for a payment split among several payees."""

    payer_id: MemberId
    amount: PositiveAmount
    payee_ids: list[MemberId]


class MemberBalance(BaseModel):
    """Paid amount minus fair share for one member. Derived, never stored."""

    model_config = ConfigDict(frozen=True)

    member_id: MemberId
    member_name: str
    balance: int
    status: BalanceStatus

    @computed_field  # type: ignore[prop-decorator]
    @property
    def absolute_amount(self) -> int:
        return abs(self.balance)


class Settlement(BaseModel):
    """A single transfer from a debtor to a creditor, by member name."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    from_member: str = Field(alias="from")
    to_member: str = Field(alias="to")
    amount: PositiveAmount

    @field_validator("amount", mode="before")
    @classmethod
    def coerce_amount(cls, v: Any) -> Any:
        return _reject_bool(v)


class CalculationSummary(BaseModel):
    """Headline figures for an event."""

    total_amount: int = Field(ge=0)
    average_per_person: float
    payment_count: int
    member_count: int
    settlements_count: int


class WarikanState(BaseModel):
    """The event with its members and payments (aggregate root)."""

    event_name: str = ""
    members: list[Member] = Field(default_factory=list)
    payments: list[Payment] = Field(default_factory=list)
    last_updated: datetime = Field(default_factory=datetime.now)
    version: str = STATE_VERSION

    @model_validator(mode="after")
    def check_references(self) -> "WarikanState":
        member_ids = [m.id for m in self.members]
        if len(set(member_ids)) != len(member_ids):
            raise ValueError("duplicate member id")

        payment_ids = [p.id for p in self.payments]
        if len(set(payment_ids)) != len(payment_ids):
            raise ValueError("duplicate payment id")

        seen_names: set[str] = set()
        for member in self.members:
            if not member.name or member.name != member.name.strip():
                raise ValueError(f"member {member.id} has a blank or untrimmed name")
            folded = member.name.casefold()
            if folded in seen_names:
                raise ValueError(f"duplicate member name {member.name!r}")
            seen_names.add(folded)

        known = set(member_ids)
        for payment in self.payments:
            if payment.payer_id not in known:
                raise ValueError(f"payment {payment.id} references unknown member {payment.payer_id}")
        return self

    def find_member(self, member_id: str) -> Member | None:
        return next((m for m in self.members if m.id == member_id), None)

    def find_payment(self, payment_id: str) -> Payment | None:
        return next((p for p in self.payments if p.id == payment_id), None)
