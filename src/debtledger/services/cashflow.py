"""Recurring incomes and expenses expressed as monthly figures."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Mapping

from .accrual import coerce_amount


class Frequency(str, Enum):
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    ONE_TIME = "oneTime"


_MONTHLY_FACTORS = {
    Frequency.DAILY: 30,
    Frequency.WEEKLY: 4,
    Frequency.MONTHLY: 1,
    Frequency.ONE_TIME: 0,
}


@dataclass(slots=True)
class CashFlow:
    """A named recurring amount; one-time flows do not count toward a month."""

    name: str
    amount: float
    frequency: Frequency = Frequency.MONTHLY

    def __post_init__(self) -> None:
        self.amount = coerce_amount(self.amount)
        if not isinstance(self.frequency, Frequency):
            try:
                self.frequency = Frequency(self.frequency or Frequency.MONTHLY.value)
            except ValueError:
                raise ValueError(f"Unknown frequency {self.frequency!r}") from None

    def monthly_value(self) -> float:
        return self.amount * _MONTHLY_FACTORS[self.frequency]

    def to_dict(self) -> dict[str, Any]:
        return {"name": self.name, "amount": self.amount, "frequency": self.frequency.value}

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any]):
        return cls(
            name=str(raw.get("name") or ""),
            amount=raw.get("amount"),
            frequency=raw.get("frequency") or Frequency.MONTHLY,
        )


class Income(CashFlow):
    __slots__ = ()


class Expense(CashFlow):
    __slots__ = ()


__all__ = ["CashFlow", "Expense", "Frequency", "Income"]
