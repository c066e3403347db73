"""Portfolio of debts with cash flows, dashboard and payoff priorities."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Iterable, Mapping, Optional

from ..logging_config import get_logger
from .accrual import DebtTerms, RepaymentPlan, round_currency
from .cashflow import CashFlow, Expense, Income
from .ledger import Debt, DebtSummary, Payment

logger = get_logger(__name__)


@dataclass(slots=True)
class Dashboard:
    """Portfolio-wide figures, rounded to whole currency units."""

    total_debt: int
    monthly_income: int
    monthly_expense: int
    monthly_debt_payment: int
    surplus: int
    debt_free_date: Optional[datetime]
    debt_breakdown: list[DebtSummary] = field(default_factory=list)

    def as_dict(self) -> dict[str, Any]:
        return {
            "totalDebt": self.total_debt,
            "monthlyIncome": self.monthly_income,
            "monthlyExpense": self.monthly_expense,
            "monthlyDebtPayment": self.monthly_debt_payment,
            "surplus": self.surplus,
            "debtFreeDate": self.debt_free_date.isoformat() if self.debt_free_date else None,
            "debtBreakdown": [summary.as_dict() for summary in self.debt_breakdown],
        }


@dataclass(slots=True)
class PayoffSuggestion:
    """Single-debt recommendations for each payoff strategy."""

    avalanche: Debt
    snowball: Debt


class DebtPortfolio:
    """Owns debts, incomes and expenses and assigns debt ids.

    Financial logic lives on ``Debt``; the portfolio delegates and aggregates.
    """

    def __init__(self) -> None:
        self.debts: list[Debt] = []
        self.incomes: list[Income] = []
        self.expenses: list[Expense] = []
        self.id_seq = 1

    # Debt commands

    def add_debt(
        self,
        name: str,
        principal: Any,
        start_date: Any = None,
        end_date: Any = None,
        **terms: Any,
    ) -> Debt:
        """Create a debt with the next id.

        ``terms`` are ``DebtTerms`` fields (``interest_type``, ``plan``, ...).
        Validation errors leave the id sequence untouched.
        """

        debt = Debt(
            id=self.id_seq,
            name=name,
            initial_principal=principal,
            start_date=start_date,
            end_date=end_date,
            terms=DebtTerms(**terms),
        )
        self.id_seq += 1
        self.debts.append(debt)
        logger.info("Added debt", extra={"debt_id": debt.id, "debt_name": debt.name})
        return debt

    def get_debt(self, debt_id: int) -> Debt:
        for debt in self.debts:
            if debt.id == debt_id:
                return debt
        raise KeyError(f"No debt with id {debt_id}")

    def remove_debt(self, debt_id: int) -> Debt:
        debt = self.get_debt(debt_id)
        self.debts.remove(debt)
        logger.info("Removed debt", extra={"debt_id": debt_id})
        return debt

    def record_payment(self, debt_id: int, amount: Any, date: Any = None) -> bool:
        return self.get_debt(debt_id).apply_payment(amount, date)

    def update_payment(self, debt_id: int, index: int, amount: Any, date: Any = None) -> Payment:
        return self.get_debt(debt_id).update_payment(index, amount, date)

    def delete_payment(self, debt_id: int, index: int) -> Payment:
        return self.get_debt(debt_id).delete_payment(index)

    # Cash flow commands

    def add_income(self, name: str, amount: Any, frequency: Any = "monthly") -> Income:
        income = Income(name=name, amount=amount, frequency=frequency)
        self.incomes.append(income)
        return income

    def add_expense(self, name: str, amount: Any, frequency: Any = "monthly") -> Expense:
        expense = Expense(name=name, amount=amount, frequency=frequency)
        self.expenses.append(expense)
        return expense

    def update_income(self, index: int, name: str, amount: Any, frequency: Any = "monthly") -> Income:
        self.incomes[index] = Income(name=name, amount=amount, frequency=frequency)
        return self.incomes[index]

    def update_expense(self, index: int, name: str, amount: Any, frequency: Any = "monthly") -> Expense:
        self.expenses[index] = Expense(name=name, amount=amount, frequency=frequency)
        return self.expenses[index]

    def remove_income(self, index: int) -> Income:
        return self.incomes.pop(index)

    def remove_expense(self, index: int) -> Expense:
        return self.expenses.pop(index)

    # Aggregates

    def total_debt(self) -> float:
        return sum(debt.principal for debt in self.debts)

    def monthly_income(self) -> float:
        return _sum_monthly(self.incomes)

    def monthly_expense(self) -> float:
        return _sum_monthly(self.expenses)

    def monthly_debt_payment(self) -> float:
        """EMIs for periodic plans; lump-sum debts count their maturity total."""

        total = 0.0
        for debt in self.debts:
            if debt.plan is RepaymentPlan.ONE_TIME:
                total += debt.repayment_at_end()
            else:
                total += debt.emi_amount
        return total

    def surplus(self) -> float:
        return self.monthly_income() - self.monthly_expense() - self.monthly_debt_payment()

    def debt_free_date(self, today: Optional[datetime] = None) -> Optional[datetime]:
        """Latest projected payoff date; debts without one are skipped."""

        dates = [debt.predict_payoff(today).payoff_date for debt in self.debts]
        dates = [value for value in dates if value is not None]
        return max(dates) if dates else None

    def dashboard(self, today: Optional[datetime] = None) -> Dashboard:
        return Dashboard(
            total_debt=round_currency(self.total_debt()),
            monthly_income=round_currency(self.monthly_income()),
            monthly_expense=round_currency(self.monthly_expense()),
            monthly_debt_payment=round_currency(self.monthly_debt_payment()),
            surplus=round_currency(self.surplus()),
            debt_free_date=self.debt_free_date(today),
            debt_breakdown=[debt.summary(today) for debt in self.debts],
        )

    # Prioritisation

    def active_debts(self) -> list[Debt]:
        return [debt for debt in self.debts if debt.principal > 0]

    def avalanche_target(self) -> Optional[Debt]:
        """Highest interest rate first; lowest id wins ties."""

        active = self.active_debts()
        if not active:
            return None
        return min(active, key=lambda debt: (-debt.interest_rate, debt.id))

    def snowball_target(self) -> Optional[Debt]:
        """Smallest outstanding principal first; lowest id wins ties."""

        active = self.active_debts()
        if not active:
            return None
        return min(active, key=lambda debt: (debt.principal, debt.id))

    def payoff_suggestions(self) -> Optional[PayoffSuggestion]:
        avalanche = self.avalanche_target()
        snowball = self.snowball_target()
        if avalanche is None or snowball is None:
            return None
        return PayoffSuggestion(avalanche=avalanche, snowball=snowball)

    # Persistence

    def to_dict(self) -> dict[str, Any]:
        return {
            "idSeq": self.id_seq,
            "debts": [debt.to_dict() for debt in self.debts],
            "incomes": [income.to_dict() for income in self.incomes],
            "expenses": [expense.to_dict() for expense in self.expenses],
        }

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any]) -> "DebtPortfolio":
        portfolio = cls()
        portfolio.debts = [Debt.from_dict(item) for item in raw.get("debts") or []]
        portfolio.incomes = [Income.from_dict(item) for item in raw.get("incomes") or []]
        portfolio.expenses = [Expense.from_dict(item) for item in raw.get("expenses") or []]
        highest_id = max((debt.id for debt in portfolio.debts), default=0)
        portfolio.id_seq = max(int(raw.get("idSeq") or 1), highest_id + 1)
        return portfolio


def _sum_monthly(flows: Iterable[CashFlow]) -> float:
    return sum(flow.monthly_value() for flow in flows)


__all__ = ["Dashboard", "DebtPortfolio", "PayoffSuggestion"]
