"""Rule-based finance checks and an optional AI advisor.

``run_finance_rules`` condenses a portfolio into the snapshot the advisor is
allowed to talk about. ``FinanceAdvisor.ask`` sends that snapshot to a chat
completions backend when one is configured and otherwise, or on any backend
failure, answers from templates.
"""

from __future__ import annotations

import json
import math
import re
from dataclasses import asdict, dataclass, field
from datetime import datetime
from typing import Any, Optional

import requests

from ..config import BaseConfig
from ..logging_config import get_logger
from .accrual import round_currency
from .portfolio import DebtPortfolio

logger = get_logger(__name__)

HIGH_INTEREST_SHARE = 0.3
SAFE_EMI_SHARE = 0.6

SYSTEM_PROMPT = (
    "You are a personal finance assistant. "
    "Base all advice strictly on the provided financial snapshot. "
    "Do not invent numbers."
)


@dataclass(slots=True)
class RulesSummary:
    total_income: float
    total_expenses: float
    total_emi: float
    total_debt: float
    surplus: float
    risk_level: str


@dataclass(slots=True)
class OverdueAlert:
    name: str
    amount: int
    end_date: Optional[datetime]


@dataclass(slots=True)
class Recommendations:
    priority_debt: Optional[str]
    can_take_new_emi: bool
    safe_emi_amount: float


@dataclass(slots=True)
class FinanceRules:
    summary: RulesSummary
    recommendations: Recommendations
    overdue: list[OverdueAlert] = field(default_factory=list)

    def as_dict(self) -> dict[str, Any]:
        return {
            "summary": asdict(self.summary),
            "alerts": {"overdue_debts": [asdict(alert) for alert in self.overdue]},
            "recommendations": asdict(self.recommendations),
        }


def run_finance_rules(portfolio: DebtPortfolio, today: Optional[datetime] = None) -> FinanceRules:
    summaries = [debt.summary(today) for debt in portfolio.debts]
    total_income = portfolio.monthly_income()
    total_expenses = portfolio.monthly_expense()
    total_emi = sum(debt.emi_amount for debt in portfolio.debts)
    total_debt = sum(max(0.0, debt.principal) for debt in portfolio.debts)
    surplus = total_income - total_expenses - total_emi

    overdue = [
        OverdueAlert(name=s.name, amount=s.pending_principal, end_date=s.end_date)
        for s in summaries
        if s.overdue
    ]
    if overdue:
        risk_level = "HIGH"
    elif surplus < 0:
        risk_level = "MEDIUM"
    else:
        risk_level = "LOW"

    costly = [s for s in summaries if s.interest_payable > s.initial_principal * HIGH_INTEREST_SHARE]
    costly.sort(key=lambda s: (-s.interest_payable, s.id))

    return FinanceRules(
        summary=RulesSummary(
            total_income=total_income,
            total_expenses=total_expenses,
            total_emi=total_emi,
            total_debt=total_debt,
            surplus=surplus,
            risk_level=risk_level,
        ),
        overdue=overdue,
        recommendations=Recommendations(
            priority_debt=costly[0].name if costly else None,
            can_take_new_emi=surplus > 0,
            safe_emi_amount=max(0.0, surplus * SAFE_EMI_SHARE),
        ),
    )


def _fmt(amount: float) -> str:
    return f"{round_currency(amount or 0):,}"


def rule_based_advice(question: str, rules: FinanceRules, currency: str = "₹") -> str:
    """Plain-text advice assembled from the rules snapshot."""

    summary = rules.summary
    text = question.lower()
    sections: list[str] = []

    months_match = re.search(r"(\d+)\s*months?", text)
    if "surplus" in text and months_match:
        months = int(months_match.group(1))
        sections.append(
            "Surplus projection\n"
            f"- In {months} months your accumulated surplus will be "
            f"{currency}{_fmt(summary.surplus * months)}"
        )

    if "debt" in text and ("when" in text or "how long" in text):
        if summary.surplus > 0:
            horizon = f"{math.ceil(summary.total_debt / summary.surplus)} months"
        else:
            horizon = "never at the current surplus"
        sections.append(
            "Debt timeline\n"
            f"- Total debt: {currency}{_fmt(summary.total_debt)}\n"
            f"- Debt-free in: {horizon}"
        )

    snapshot = (
        "Financial snapshot\n"
        f"- Risk level: {summary.risk_level}\n"
        f"- Monthly surplus: {currency}{_fmt(summary.surplus)}"
    )
    if rules.overdue:
        names = ", ".join(alert.name for alert in rules.overdue)
        snapshot += f"\n- Overdue: {names}"
    if rules.recommendations.priority_debt:
        snapshot += f"\n- Pay down first: {rules.recommendations.priority_debt}"
    sections.append(snapshot)
    return "\n\n".join(sections)


class FinanceAdvisor:
    """Answers questions about a rules snapshot, preferring the AI backend."""

    def __init__(self, config: BaseConfig, session: Optional[requests.Session] = None):
        self.config = config
        self.session = session or requests.Session()

    def ask(self, question: str, rules: FinanceRules) -> str:
        if not self.config.advisor_enabled:
            return rule_based_advice(question, rules, self.config.CURRENCY_SYMBOL)
        try:
            return self._ask_backend(question, rules)
        except (requests.RequestException, KeyError, IndexError, TypeError, ValueError) as exc:
            logger.warning("AI advisor failed, using rule-based advice", extra={"error": str(exc)})
            return rule_based_advice(question, rules, self.config.CURRENCY_SYMBOL)

    def _ask_backend(self, question: str, rules: FinanceRules) -> str:
        snapshot = json.dumps(rules.as_dict(), indent=2, default=str)
        payload = {
            "model": self.config.ADVISOR_MODEL,
            "temperature": 0.7,
            "max_tokens": 300,
            "messages": [
                {"role": "system", "content": SYSTEM_PROMPT},
                {"role": "user", "content": f"USER QUESTION: {question}\nSNAPSHOT: {snapshot}"},
            ],
        }
        resp = self.session.post(
            self.config.ADVISOR_URL,
            json=payload,
            headers={"Authorization": f"Bearer {self.config.ADVISOR_API_KEY}"},
            timeout=self.config.ADVISOR_TIMEOUT,
        )
        resp.raise_for_status()
        content = resp.json()["choices"][0]["message"]["content"]
        if not isinstance(content, str) or not content.strip():
            raise ValueError("empty advisor response")
        return content.strip()


__all__ = [
    "FinanceAdvisor",
    "FinanceRules",
    "run_finance_rules",
    "rule_based_advice",
]
