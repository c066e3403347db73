"""Service module exports."""

from . import accrual, advisor, cashflow, ledger, payoff, portfolio, storage

__all__ = [
    "accrual",
    "advisor",
    "cashflow",
    "ledger",
    "payoff",
    "portfolio",
    "storage",
]
