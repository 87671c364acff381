"""
models.py
Domain records (members, supplements), plans, and their store record shape.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field, fields
from enum import Enum
from typing import Any


class PaymentStatus(str, Enum):
    PAID = "Paid"
    PARTIAL = "Partial"
    NOT_PAID = "Not Paid"


class Gender(str, Enum):
    MALE = "Male"
    FEMALE = "Female"
    OTHER = "Other"


# Plan lengths as (unit, amount), used for end_date auto-calculation
PLAN_DURATIONS = {
    "15 Days": ("days", 15),
    "1 Month": ("months", 1),
    "2 Months": ("months", 2),
    "3 Months": ("months", 3),
    "6 Months": ("months", 6),
    "1 Year": ("months", 12),
}

MEMBER_PREFIX = "KV"
SUPPLEMENT_PREFIX = "SUP"
MEMBER_COUNTER = "memberIdCounter"
SUPPLEMENT_COUNTER = "supplementIdCounter"


def _camel(name: str) -> str:
    head, *rest = name.split("_")
    return head + "".join(p.title() for p in rest)


def _number(value: Any) -> float:
    if value is None or value == "":
        return 0.0
    return float(value)


class Record:
    """Mixin converting between a dataclass and the flat camelCase store mapping."""

    NUMERIC: tuple[str, ...] = ()

    def to_record(self) -> dict[str, Any]:
        return {_camel(k): v for k, v in asdict(self).items()}

    @classmethod
    def normalize(cls, data: dict[str, Any]) -> dict[str, Any]:
        """Known fields keyed by attribute name; camelCase wins when both spellings are present."""
        values = {}
        for f in fields(cls):
            key = _camel(f.name)
            if key in data:
                values[f.name] = data[key]
            elif f.name in data:
                values[f.name] = data[f.name]
        return values

    @classmethod
    def from_record(cls, data: dict[str, Any], record_id: str | None = None):
        values = cls.normalize(data)
        for name in cls.NUMERIC:
            values[name] = _number(values.get(name))
        if record_id is not None:
            values["id"] = record_id
        return cls(**values)


@dataclass(frozen=True)
class Member(Record):
    id: str
    full_name: str
    age: int = 0
    gender: str = Gender.MALE.value
    contact_number: str | None = None
    membership_plan: str = "1 Month"
    start_date: str = ""
    end_date: str = ""
    gym_fees: float = 0.0
    payment_status: str = PaymentStatus.NOT_PAID.value
    amount_paid: float = 0.0
    due_amount: float = 0.0
    expected_payment_date: str | None = None
    remarks: str = ""
    registration_date: str = ""
    photo: str | None = None

    NUMERIC = ("gym_fees", "amount_paid", "due_amount")


@dataclass(frozen=True)
class Supplement(Record):
    id: str
    member_id: str
    member_name: str = ""
    purchase_date: str = ""
    supplement_amount: float = 0.0
    payment_status: str = PaymentStatus.NOT_PAID.value
    amount_paid: float = 0.0
    due_amount: float = 0.0
    expected_payment_date: str | None = None
    remarks: str = ""
    created_date: str = ""

    NUMERIC = ("supplement_amount", "amount_paid", "due_amount")


@dataclass(frozen=True)
class ReportStats:
    new_members: int = 0
    active_members: int = 0
    expired_members: int = 0
    gym_collected: float = 0.0
    gym_due: float = 0.0
    supplement_sales: float = 0.0
    supplement_due: float = 0.0
    supplements_sold: int = 0


@dataclass(frozen=True)
class Notification:
    message: str
    level: str = "success"  # success/error/info
    extra: dict = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return self.level != "error"
