"""debtledger: debt ledgers, payoff projections and portfolio dashboards."""

from __future__ import annotations

from .config import BaseConfig, DevConfig
from .services.accrual import DebtTerms, InterestMode, InterestType, RepaymentPlan
from .services.cashflow import Expense, Frequency, Income
from .services.ledger import Debt, DebtSummary, Payment
from .services.payoff import MAX_PROJECTION_STEPS, PayoffProjection, predict_payoff
from .services.portfolio import Dashboard, DebtPortfolio, PayoffSuggestion

__all__ = [
    "BaseConfig",
    "Dashboard",
    "Debt",
    "DebtPortfolio",
    "DebtSummary",
    "DebtTerms",
    "DevConfig",
    "Expense",
    "Frequency",
    "Income",
    "InterestMode",
    "InterestType",
    "MAX_PROJECTION_STEPS",
    "Payment",
    "PayoffProjection",
    "PayoffSuggestion",
    "RepaymentPlan",
    "predict_payoff",
]
