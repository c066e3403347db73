"""Debt ledger: payment application, history replay and summaries."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import TYPE_CHECKING, Any, Mapping, Optional

from ..logging_config import get_logger
from .accrual import (
    DebtTerms,
    InterestMode,
    InterestType,
    RepaymentPlan,
    coerce_amount,
    elapsed_periods,
    end_of_day,
    interest_for_period,
    parse_timestamp,
    repayment_at_end,
    round_currency,
    start_of_day,
)

if TYPE_CHECKING:
    from .payoff import PayoffProjection

logger = get_logger(__name__)


def _required_timestamp(raw: Mapping[str, Any], key: str) -> datetime:
    value = parse_timestamp(raw.get(key))
    if value is None:
        raise ValueError(f"Missing timestamp for {key!r}")
    return value


@dataclass(frozen=True, slots=True)
class Payment:
    """A single payment record."""

    amount: float
    date: datetime

    def to_dict(self) -> dict[str, Any]:
        return {"amount": self.amount, "date": self.date.isoformat()}

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any]) -> "Payment":
        return cls(amount=coerce_amount(raw.get("amount")), date=_required_timestamp(raw, "date"))


@dataclass(frozen=True, slots=True)
class PaymentEvent:
    """Entry in a debt's append-only payment log.

    ``kind`` is ``recorded``, ``amended`` or ``removed``. ``index`` is the
    position in the payment list the command targeted; ``previous`` holds
    the record an amendment or removal replaced.
    """

    kind: str
    payment: Optional[Payment]
    index: Optional[int] = None
    previous: Optional[Payment] = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "kind": self.kind,
            "index": self.index,
            "payment": self.payment.to_dict() if self.payment else None,
            "previous": self.previous.to_dict() if self.previous else None,
        }

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any]) -> "PaymentEvent":
        payment = raw.get("payment")
        previous = raw.get("previous")
        return cls(
            kind=str(raw["kind"]),
            index=raw.get("index"),
            payment=Payment.from_dict(payment) if payment else None,
            previous=Payment.from_dict(previous) if previous else None,
        )


@dataclass(slots=True)
class DebtSummary:
    """Read-only snapshot of a debt consumed by dashboards."""

    id: int
    name: str
    start_date: datetime
    end_date: Optional[datetime]
    initial_principal: int
    pending_principal: int
    repayment_at_end: int
    interest_payable: int
    interest_type: InterestType
    interest_mode: Optional[InterestMode]
    interest_value: float
    payoff_date: Optional[datetime]
    never_closes: bool
    overdue: bool

    def as_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "startDate": self.start_date.isoformat(),
            "endDate": self.end_date.isoformat() if self.end_date else None,
            "initialPrincipal": self.initial_principal,
            "pendingPrincipal": self.pending_principal,
            "repaymentAtEnd": self.repayment_at_end,
            "interestPayable": self.interest_payable,
            "interestType": self.interest_type.value,
            "interestMode": self.interest_mode.value if self.interest_mode else None,
            "interestValue": self.interest_value,
            "payoffDate": self.payoff_date.isoformat() if self.payoff_date else None,
            "neverCloses": self.never_closes,
            "overdue": self.overdue,
        }


@dataclass(eq=False)
class Debt:
    """A single liability and its payment history.

    ``principal``, ``interest_paid`` and ``last_payment_date`` are running
    totals derived from ``payments``; ``recalculate_from_payments`` rebuilds
    them from ``initial_principal`` and ``start_date``.
    """

    id: int
    name: str
    initial_principal: float
    start_date: datetime
    terms: DebtTerms = field(default_factory=DebtTerms)
    end_date: Optional[datetime] = None
    principal: Optional[float] = None
    last_payment_date: Optional[datetime] = None
    interest_paid: float = 0.0
    payments: list[Payment] = field(default_factory=list)
    events: list[PaymentEvent] = field(default_factory=list)

    def __post_init__(self) -> None:
        self.initial_principal = max(0.0, coerce_amount(self.initial_principal))
        self.start_date = parse_timestamp(self.start_date) or datetime.now()
        self.end_date = parse_timestamp(self.end_date)
        if self.end_date is not None and self.end_date < self.start_date:
            raise ValueError(
                f"end_date {self.end_date.isoformat()} precedes start_date "
                f"{self.start_date.isoformat()}"
            )
        if self.principal is None:
            self.principal = self.initial_principal
        self.principal = max(0.0, coerce_amount(self.principal))
        self.last_payment_date = parse_timestamp(self.last_payment_date) or self.start_date
        self.interest_paid = coerce_amount(self.interest_paid)

    # Term shortcuts

    @property
    def interest_type(self) -> InterestType:
        return self.terms.interest_type

    @property
    def interest_mode(self) -> Optional[InterestMode]:
        return self.terms.interest_mode

    @property
    def interest_value(self) -> float:
        return self.terms.interest_value

    @property
    def interest_rate(self) -> float:
        return self.terms.interest_rate

    @property
    def plan(self) -> RepaymentPlan:
        return self.terms.plan

    @property
    def emi_amount(self) -> float:
        return self.terms.emi_amount

    # Accrual

    def interest_for_period(self, periods: float) -> float:
        """Interest on the current outstanding principal over ``periods``."""

        return interest_for_period(self.principal, self.terms, periods)

    def repayment_at_end(self) -> int:
        """Closed-form total owed at maturity.

        Without an end date there is no maturity total for time-based types;
        the rounded current principal is reported instead.
        """

        total = repayment_at_end(self.initial_principal, self.terms, self.start_date, self.end_date)
        if total is None:
            return round_currency(self.principal)
        return total

    # Commands

    def apply_payment(self, amount: Any, date: Any = None) -> bool:
        """Apply a payment interest-first and capitalise any shortfall.

        Returns ``False`` (and changes nothing) for non-positive amounts.
        """

        paid = coerce_amount(amount)
        if paid <= 0:
            return False
        paid_on = parse_timestamp(date) or datetime.now()
        payment = self._apply(Payment(amount=paid, date=paid_on))
        self.events.append(PaymentEvent(kind="recorded", payment=payment, index=len(self.payments) - 1))
        return True

    def _apply(self, payment: Payment) -> Payment:
        periods = elapsed_periods(self.interest_type, self.last_payment_date, payment.date)
        interest = self.interest_for_period(periods)
        self.interest_paid += interest

        if payment.amount >= interest:
            self.principal = max(0.0, self.principal - (payment.amount - interest))
        else:
            self.principal += interest - payment.amount

        self.last_payment_date = payment.date
        self.payments.append(payment)
        logger.debug(
            "Applied payment",
            extra={
                "debt_id": self.id,
                "amount": payment.amount,
                "interest": interest,
                "principal": self.principal,
            },
        )
        return payment

    def recalculate_from_payments(self) -> None:
        """Rebuild derived state by replaying payments in date order."""

        ordered = sorted(self.payments, key=lambda p: p.date)
        self.principal = self.initial_principal
        self.interest_paid = 0.0
        self.last_payment_date = self.start_date
        self.payments = []
        for payment in ordered:
            if payment.amount > 0:
                self._apply(payment)

    def delete_payment(self, index: int) -> Payment:
        """Remove the payment at ``index`` and replay the remaining history."""

        removed = self._payment_at(index)
        del self.payments[index]
        self.events.append(PaymentEvent(kind="removed", payment=None, index=index, previous=removed))
        self.recalculate_from_payments()
        return removed

    def update_payment(self, index: int, amount: Any, date: Any = None) -> Payment:
        """Replace the payment at ``index`` and replay the history."""

        previous = self._payment_at(index)
        replacement = Payment(
            amount=coerce_amount(amount),
            date=parse_timestamp(date) or previous.date,
        )
        self.payments[index] = replacement
        self.events.append(
            PaymentEvent(kind="amended", payment=replacement, index=index, previous=previous)
        )
        self.recalculate_from_payments()
        return replacement

    def _payment_at(self, index: int) -> Payment:
        if not 0 <= index < len(self.payments):
            raise IndexError(f"Debt {self.id} has no payment at index {index}")
        return self.payments[index]

    # Queries

    def is_overdue(self, today: Optional[datetime] = None) -> bool:
        """True once the calendar day after ``end_date`` starts with money still owed."""

        if self.end_date is None or self.principal <= 0:
            return False
        now = parse_timestamp(today) or datetime.now()
        return start_of_day(now) > end_of_day(self.end_date)

    def predict_payoff(self, from_date: Optional[datetime] = None) -> "PayoffProjection":
        from .payoff import predict_payoff

        return predict_payoff(self, from_date)

    def summary(self, today: Optional[datetime] = None) -> DebtSummary:
        payoff = self.predict_payoff(today)
        at_end = self.repayment_at_end()
        return DebtSummary(
            id=self.id,
            name=self.name,
            start_date=self.start_date,
            end_date=self.end_date,
            initial_principal=round_currency(self.initial_principal),
            pending_principal=round_currency(self.principal),
            repayment_at_end=at_end,
            interest_payable=max(0, at_end - round_currency(self.initial_principal)),
            interest_type=self.interest_type,
            interest_mode=self.interest_mode,
            interest_value=self.interest_value,
            payoff_date=payoff.payoff_date,
            never_closes=payoff.never_closes,
            overdue=self.is_overdue(today),
        )

    # Persistence

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "principal": self.principal,
            "initialPrincipal": self.initial_principal,
            "interestType": self.interest_type.value,
            "interestMode": self.interest_mode.value if self.interest_mode else None,
            "interestValue": self.interest_value,
            "interestRate": self.interest_rate,
            "plan": self.plan.value,
            "emiAmount": self.emi_amount,
            "startDate": self.start_date.isoformat(),
            "endDate": self.end_date.isoformat() if self.end_date else None,
            "lastPaymentDate": self.last_payment_date.isoformat(),
            "interestPaid": self.interest_paid,
            "payments": [payment.to_dict() for payment in self.payments],
            "events": [event.to_dict() for event in self.events],
        }

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any]) -> "Debt":
        """Restore a debt exactly as persisted, without replaying."""

        terms = DebtTerms(
            interest_type=raw.get("interestType"),
            interest_mode=raw.get("interestMode"),
            interest_value=raw.get("interestValue"),
            interest_rate=raw.get("interestRate"),
            plan=raw.get("plan"),
            emi_amount=raw.get("emiAmount"),
        )
        initial = raw.get("initialPrincipal", raw.get("principal"))
        return cls(
            id=int(raw["id"]),
            name=str(raw.get("name") or ""),
            initial_principal=initial,
            start_date=_required_timestamp(raw, "startDate"),
            terms=terms,
            end_date=parse_timestamp(raw.get("endDate")),
            principal=raw.get("principal", initial),
            last_payment_date=parse_timestamp(raw.get("lastPaymentDate")),
            interest_paid=raw.get("interestPaid"),
            payments=[Payment.from_dict(item) for item in raw.get("payments") or []],
            events=[PaymentEvent.from_dict(item) for item in raw.get("events") or []],
        )


__all__ = ["Debt", "DebtSummary", "Payment", "PaymentEvent"]
