"""Payoff projection for a single debt."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import TYPE_CHECKING, Optional

from .accrual import InterestType, RepaymentPlan, interest_for_period, parse_timestamp

if TYPE_CHECKING:
    from .ledger import Debt

# Upper bound on simulated installments. Reaching it means the balance is not
# converging (e.g. a lump-sum debt compounding with no periodic payment), and
# the projection reports no payoff date.
MAX_PROJECTION_STEPS = 1200

# Balances at or below this are treated as settled.
PAYOFF_TOLERANCE = 0.01


@dataclass(slots=True)
class ProjectedPayment:
    """One simulated installment."""

    date: datetime
    payment: float
    interest: float
    remaining_principal: float


@dataclass(slots=True)
class PayoffProjection:
    """Outcome of ``predict_payoff``."""

    payoff_date: Optional[datetime]
    interest_paid: float
    never_closes: bool = False
    steps: int = 0
    schedule: list[ProjectedPayment] = field(default_factory=list)

    @property
    def converged(self) -> bool:
        return self.payoff_date is not None


def projection_interval_days(interest_type: InterestType, plan: RepaymentPlan) -> int:
    """Days between simulated installments."""

    if interest_type is InterestType.DAILY or plan is RepaymentPlan.EMI_DAILY:
        return 1
    if plan is RepaymentPlan.EMI_WEEKLY:
        return 7
    return 30


def predict_payoff(debt: "Debt", from_date: Optional[datetime] = None) -> PayoffProjection:
    """Project installments of ``debt.emi_amount`` until the balance clears.

    Interest for each step is charged on the simulated principal. When the
    installment cannot cover that interest on a periodic plan, the debt never
    closes and the projection stops immediately. One-time plans have no
    periodic installment, so their balance grows by the accrued interest every
    step.
    """

    terms = debt.terms
    interval = projection_interval_days(terms.interest_type, terms.plan)
    current = parse_timestamp(from_date) or datetime.now()
    principal = debt.principal
    total_interest = debt.interest_paid
    lump_sum = terms.plan is RepaymentPlan.ONE_TIME
    schedule: list[ProjectedPayment] = []

    steps = 0
    while principal > PAYOFF_TOLERANCE and steps < MAX_PROJECTION_STEPS:
        steps += 1
        interest = interest_for_period(principal, terms, interval)

        if terms.emi_amount <= interest and not lump_sum:
            return PayoffProjection(
                payoff_date=None,
                interest_paid=total_interest,
                never_closes=True,
                steps=steps,
                schedule=schedule,
            )

        total_interest += interest
        if lump_sum:
            principal += interest
            payment = 0.0
        else:
            principal -= max(0.0, terms.emi_amount - interest)
            payment = terms.emi_amount

        current = current + timedelta(days=interval)
        schedule.append(
            ProjectedPayment(
                date=current,
                payment=payment,
                interest=interest,
                remaining_principal=max(0.0, principal),
            )
        )

    return PayoffProjection(
        payoff_date=current if principal <= PAYOFF_TOLERANCE else None,
        interest_paid=total_interest,
        steps=steps,
        schedule=schedule,
    )


__all__ = [
    "MAX_PROJECTION_STEPS",
    "PAYOFF_TOLERANCE",
    "PayoffProjection",
    "ProjectedPayment",
    "predict_payoff",
    "projection_interval_days",
]
