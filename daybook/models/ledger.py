"""
Ledger Data Models for Daybook

These models define the shape of a spending entry, both in memory and
as the JSON record kept in local storage.

DESIGN DECISION: A Transaction is immutable once created.
The ledger only ever adds or removes whole entries, so a frozen model
keeps the list trivially consistent.
"""

import re
from datetime import datetime, timedelta, timezone, tzinfo
from enum import Enum
from types import MappingProxyType
from typing import Mapping, NamedTuple, Optional
from uuid import uuid4

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    TypeAdapter,
    field_validator,
)


EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)
_MILLISECOND = timedelta(milliseconds=1)
_NON_DIGITS = re.compile(r"[^0-9]")


# =============================================================================
# ENUMS AND LOOKUP TABLES
# =============================================================================

class Category(str, Enum):
    """
    Spending categories.

    DESIGN DECISION: A closed set of four tags keeps the input a
    single tap and gives the commentary prompt stable vocabulary.
    """
    FOOD = "food"
    SNACK = "snack"
    SHOPPING = "shopping"
    OTHER = "other"


class CategoryInfo(NamedTuple):
    """How a category is presented."""
    label: str
    icon: str
    color: str


CATEGORY_INFO: Mapping[Category, CategoryInfo] = MappingProxyType({
    Category.FOOD: CategoryInfo(label="밥값", icon="🍚", color="orange"),
    Category.SNACK: CategoryInfo(label="음료/간식", icon="☕", color="amber"),
    Category.SHOPPING: CategoryInfo(label="쇼핑", icon="🛍️", color="blue"),
    Category.OTHER: CategoryInfo(label="기타", icon="⋯", color="gray"),
})


# =============================================================================
# TRANSACTION
# =============================================================================

def new_transaction_id() -> str:
    """Generate an opaque unique transaction id."""
    return uuid4().hex


def to_epoch_millis(moment: datetime) -> int:
    """Convert an aware datetime to integer epoch milliseconds."""
    return (moment - EPOCH) // _MILLISECOND


def from_epoch_millis(millis: int, tz: tzinfo = timezone.utc) -> datetime:
    """Convert epoch milliseconds to an aware datetime in `tz`."""
    return (EPOCH + timedelta(milliseconds=millis)).astimezone(tz)


class Transaction(BaseModel):
    """
    A single spending entry.

    Created on submission, removed on deletion, never edited.
    """
    model_config = ConfigDict(frozen=True)

    id: str = Field(
        default_factory=new_transaction_id,
        min_length=1,
        description="Opaque unique identifier"
    )
    amount: int = Field(
        ...,
        ge=0,
        description="Amount in KRW"
    )
    category: Category = Field(
        ...,
        description="Spending category"
    )
    timestamp: datetime = Field(
        ...,
        description="When the spending happened (timezone-aware)"
    )

    @field_validator("timestamp")
    @classmethod
    def require_aware_timestamp(cls, v: datetime) -> datetime:
        if v.tzinfo is None or v.utcoffset() is None:
            raise ValueError("Transaction timestamp must be timezone-aware")
        return v

    @property
    def info(self) -> CategoryInfo:
        return CATEGORY_INFO[self.category]

    def to_record(self) -> dict:
        """
        Convert to the JSON record kept in local storage.

        Shape: {id, amount, category, date} with date in epoch milliseconds.
        """
        return {
            "id": self.id,
            "amount": self.amount,
            "category": self.category.value,
            "date": to_epoch_millis(self.timestamp),
        }


class TransactionRecord(BaseModel):
    """The stored form of a Transaction."""
    model_config = ConfigDict(extra="ignore")

    id: str = Field(..., min_length=1)
    amount: int = Field(..., ge=0)
    category: Category
    date: int

    def to_transaction(self, tz: tzinfo = timezone.utc) -> Transaction:
        return Transaction(
            id=self.id,
            amount=self.amount,
            category=self.category,
            timestamp=from_epoch_millis(self.date, tz),
        )


LEDGER_ADAPTER = TypeAdapter(list[TransactionRecord])


# =============================================================================
# INPUT HELPERS
# =============================================================================

def parse_amount(raw: Optional[str], max_amount: int) -> Optional[int]:
    """
    Parse a user-typed amount.

    Every non-digit character is dropped first, so "12,000" and
    "₩12,000" both read as 12000. Returns None for input without
    digits and for values above `max_amount`.
    """
    if raw is None:
        return None
    digits = _NON_DIGITS.sub("", str(raw)).lstrip("0")
    if not digits:
        # Either nothing numeric or an explicit zero
        return 0 if _NON_DIGITS.sub("", str(raw)) else None
    if len(digits) > len(str(max_amount)):
        return None
    value = int(digits)
    if value > max_amount:
        return None
    return value


def format_amount(value: Optional[int | str]) -> str:
    """Format an amount with thousands separators; empty for 0 or blank."""
    if not value:
        return ""
    return f"{int(value):,}"


def normalize_amount_input(raw: Optional[str], max_amount: int) -> str:
    """
    Rewrite a typed amount for display: "12000원" -> "12,000".

    Zero stays "0" so it can still be submitted; unusable input clears.
    """
    parsed = parse_amount(raw, max_amount)
    if parsed is None:
        return ""
    return format_amount(parsed) or "0"
