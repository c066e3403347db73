"""Interest accrual policy shared by the ledger and the payoff simulator.

Two entry points are exposed. ``repayment_at_end`` is the closed-form total
owed at maturity, computed from the *initial* principal across the inclusive
day span of the loan. ``interest_for_period`` is the incremental accrual
charged against the *current* principal when a payment is applied or a
projection step is simulated. Both read the same ``DebtTerms``.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import date, datetime, time, timezone
from decimal import ROUND_FLOOR, Decimal
from enum import Enum
from typing import Any, Optional

AVERAGE_DAYS_PER_MONTH = 30.44
DAYS_PER_YEAR = 365
SECONDS_PER_DAY = 86400


class InterestType(str, Enum):
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    YEARLY = "yearly"
    ONE_TIME = "oneTime"
    FRIENDLY = "friendly"


class InterestMode(str, Enum):
    FIXED = "fixed"
    PERCENTAGE = "percentage"


class RepaymentPlan(str, Enum):
    CUSTOM = "custom"
    EMI_WEEKLY = "emiWeekly"
    EMI_MONTHLY = "emiMonthly"
    EMI_DAILY = "emiDaily"
    INTEREST_ONLY = "interestOnly"
    ONE_TIME = "oneTime"


def coerce_amount(value: Any) -> float:
    """Return ``value`` as a finite float, treating anything invalid as zero."""

    if value is None or isinstance(value, bool):
        return 0.0
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0.0
    if math.isnan(number) or math.isinf(number):
        return 0.0
    return number


def round_currency(amount: float) -> int:
    """Round to whole currency units, halves toward positive infinity."""

    return int((Decimal(str(amount)) + Decimal("0.5")).to_integral_value(rounding=ROUND_FLOOR))


def parse_timestamp(value: Any) -> Optional[datetime]:
    """Normalise a date, datetime or ISO-8601 string to a naive datetime.

    Aware values are converted to UTC first. ``None`` and empty strings map to
    ``None``; anything else unparseable raises ``ValueError``.
    """

    if value is None:
        return None
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, date):
        parsed = datetime.combine(value, time.min)
    elif isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        parsed = datetime.fromisoformat(text)
    else:
        raise ValueError(f"Unsupported timestamp value: {value!r}")
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed


def start_of_day(moment: datetime) -> datetime:
    return datetime.combine(moment.date(), time.min)


def end_of_day(moment: datetime) -> datetime:
    return datetime.combine(moment.date(), time(23, 59, 59, 999000))


def days_inclusive(start: datetime, end: datetime) -> int:
    """Whole days between two midnights plus one; a same-day span is 1."""

    return (end.date() - start.date()).days + 1


def days_between(start: datetime, end: datetime) -> int:
    """Whole elapsed days between two timestamps, never negative."""

    seconds = (end - start).total_seconds()
    return max(0, math.floor(seconds / SECONDS_PER_DAY))


def _coerce_enum(enum_cls, value, default):
    if value is None or value == "":
        return default
    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(value)
    except ValueError:
        allowed = ", ".join(member.value for member in enum_cls)
        raise ValueError(
            f"Unknown {enum_cls.__name__} {value!r}; expected one of: {allowed}"
        ) from None


@dataclass(frozen=True, slots=True)
class DebtTerms:
    """Validated accrual and repayment parameters for a debt.

    Enum fields accept members or their string values; unknown values raise
    ``ValueError``. Numeric fields coerce to ``0.0`` when missing or invalid.
    ``interest_rate`` is a decimal fraction (0.02 means 2%).
    """

    interest_type: InterestType = InterestType.MONTHLY
    interest_mode: Optional[InterestMode] = None
    interest_value: float = 0.0
    interest_rate: float = 0.0
    plan: RepaymentPlan = RepaymentPlan.CUSTOM
    emi_amount: float = 0.0

    def __post_init__(self) -> None:
        # frozen dataclass: normalise through object.__setattr__
        object.__setattr__(
            self, "interest_type", _coerce_enum(InterestType, self.interest_type, InterestType.MONTHLY)
        )
        object.__setattr__(
            self, "interest_mode", _coerce_enum(InterestMode, self.interest_mode, None)
        )
        object.__setattr__(self, "plan", _coerce_enum(RepaymentPlan, self.plan, RepaymentPlan.CUSTOM))
        object.__setattr__(self, "interest_value", coerce_amount(self.interest_value))
        object.__setattr__(self, "interest_rate", coerce_amount(self.interest_rate))
        object.__setattr__(self, "emi_amount", coerce_amount(self.emi_amount))


def interest_for_period(principal: float, terms: DebtTerms, periods: float) -> float:
    """Incremental interest accrued on ``principal`` over ``periods``.

    Daily and yearly types count periods in days, monthly in month
    equivalents. Weekly, one-time and friendly debts accrue nothing here.
    """

    kind = terms.interest_type
    if kind is InterestType.DAILY:
        if terms.interest_mode is InterestMode.PERCENTAGE:
            return principal * terms.interest_value * periods / 100
        if terms.interest_mode is InterestMode.FIXED:
            return terms.interest_value * periods
        return 0.0
    if kind is InterestType.MONTHLY:
        return principal * terms.interest_rate * periods
    if kind is InterestType.YEARLY:
        return principal * (terms.interest_rate / DAYS_PER_YEAR) * periods
    return 0.0


def elapsed_periods(interest_type: InterestType, since: datetime, until: datetime) -> float:
    """Accrual periods between two payments.

    Daily debts count whole days. Every other type charges at least one
    full period, measured in month equivalents.
    """

    days = days_between(since, until)
    if interest_type is InterestType.DAILY:
        return float(days)
    return max(1.0, days / AVERAGE_DAYS_PER_MONTH)


def repayment_at_end(
    initial_principal: float,
    terms: DebtTerms,
    start_date: datetime,
    end_date: Optional[datetime],
) -> Optional[int]:
    """Closed-form amount owed at maturity, rounded to whole units.

    Returns ``None`` when no maturity total is defined, i.e. there is no
    ``end_date`` for a type that depends on elapsed time.
    """

    kind = terms.interest_type
    if kind is InterestType.ONE_TIME:
        return round_currency(initial_principal + max(0.0, terms.interest_value))
    if kind is InterestType.FRIENDLY:
        return round_currency(initial_principal)
    if end_date is None:
        return None

    days = days_inclusive(start_date, end_date)
    interest = 0.0
    if kind is InterestType.DAILY:
        if terms.interest_mode is InterestMode.FIXED:
            interest = terms.interest_value * days
        elif terms.interest_mode is InterestMode.PERCENTAGE:
            interest = initial_principal * terms.interest_value * days / 100
    elif kind is InterestType.MONTHLY:
        interest = initial_principal * terms.interest_rate * (days / AVERAGE_DAYS_PER_MONTH)
    elif kind is InterestType.YEARLY:
        interest = initial_principal * (terms.interest_rate / DAYS_PER_YEAR) * days

    return round_currency(initial_principal + max(0.0, interest))


__all__ = [
    "AVERAGE_DAYS_PER_MONTH",
    "DebtTerms",
    "InterestMode",
    "InterestType",
    "RepaymentPlan",
    "coerce_amount",
    "days_between",
    "days_inclusive",
    "elapsed_periods",
    "end_of_day",
    "interest_for_period",
    "parse_timestamp",
    "repayment_at_end",
    "round_currency",
    "start_of_day",
]
