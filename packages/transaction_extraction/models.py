"""Data models for ``transaction_extraction``.

``TransactionDraft`` is the single output entity of every extraction path. It
is a frozen Pydantic model so the same field validators gate local extractor
output and remote (model-produced) payloads alike; see
:mod:`transaction_extraction.validation` for the payload-level gate.
"""

from __future__ import annotations

import datetime as dt
from decimal import Decimal
from enum import StrEnum
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

# ---------------------------------------------------------------------------
# Closed enumerations
# ---------------------------------------------------------------------------

Direction = Literal["income", "expense"]
"""Whether a transaction adds to (``income``) or draws from (``expense``) funds."""

DIRECTIONS: tuple[str, ...] = ("income", "expense")


class Category(StrEnum):
    """Closed set of spending/income categories.

    Member values are the display strings exchanged with callers and with the
    remote extractor's JSON schema.
    """

    FOOD = "Food & Dining"
    GROCERIES = "Groceries"
    TRANSPORT = "Transport"
    FUEL = "Fuel"
    HOUSING = "Housing & Rent"
    UTILITIES = "Utilities (Bills)"
    EMI = "EMI / Loan"
    ENTERTAINMENT = "Entertainment"
    HEALTH = "Health & Medical"
    SHOPPING = "Shopping"
    TRAVEL = "Travel"
    EDUCATION = "Education"
    INVESTMENT = "Investment"
    SALARY = "Salary"
    FREELANCE = "Freelance"
    OTHER = "Other"


DEFAULT_CATEGORY: Category = Category.OTHER


# ---------------------------------------------------------------------------
# Errors
# ---------------------------------------------------------------------------


class FormatError(ValueError):
    """Raised when a delimited statement lacks a recognizable header row."""


# ---------------------------------------------------------------------------
# Draft record
# ---------------------------------------------------------------------------


class TransactionDraft(BaseModel):
    """An unpersisted, extracted candidate financial record.

    Invariants enforced on construction:

    - ``amount`` is a finite decimal strictly greater than zero.
    - ``direction`` is ``"income"`` or ``"expense"``.
    - ``category`` is a :class:`Category` value.
    - ``date`` is a real calendar date (ISO ``YYYY-MM-DD`` strings accepted).
    - ``description`` is non-empty after trimming.
    """

    model_config = ConfigDict(frozen=True, extra="forbid", str_strip_whitespace=True)

    amount: Decimal = Field(gt=0)
    direction: Direction
    category: Category
    date: dt.date
    description: str = Field(min_length=1)

    @field_validator("amount", mode="before")
    @classmethod
    def _coerce_amount_input(cls, v: object) -> object:
        # bool is an int subclass; ``True`` must not become an amount of 1.
        if isinstance(v, bool):
            raise ValueError("amount must be a number")
        if isinstance(v, float):
            return Decimal(str(v))
        return v

    @field_validator("amount")
    @classmethod
    def _amount_finite(cls, v: Decimal) -> Decimal:
        if not v.is_finite():
            raise ValueError("amount must be finite")
        return v

    @field_validator("date", mode="before")
    @classmethod
    def _date_iso_only(cls, v: object) -> object:
        # Pydantic's lax mode would also accept unix timestamps; only dates or
        # ISO strings are meaningful here.
        if isinstance(v, str):
            try:
                return dt.date.fromisoformat(v.strip())
            except ValueError as exc:
                raise ValueError(f"date must be ISO YYYY-MM-DD, got {v!r}") from exc
        if isinstance(v, dt.datetime):
            return v.date()
        if not isinstance(v, dt.date):
            raise ValueError("date must be an ISO date string")
        return v

    def to_json_dict(self) -> dict[str, object]:
        """Return a JSON-friendly mapping (amount as a plain number string)."""

        return {
            "amount": format(self.amount, "f"),
            "direction": self.direction,
            "category": self.category.value,
            "date": self.date.isoformat(),
            "description": self.description,
        }


__all__ = [
    "Category",
    "DEFAULT_CATEGORY",
    "DIRECTIONS",
    "Direction",
    "FormatError",
    "TransactionDraft",
]
