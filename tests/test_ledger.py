"""Tests for debt payment application, history replay and summaries."""

from __future__ import annotations

from datetime import datetime

import pytest

from debtledger.services.ledger import Debt, Payment
from tests.conftest import assert_float_equal

JAN_1 = datetime(2024, 1, 1)


def _daily_fixed(debt_factory, principal=1000.0, value=10.0, **kwargs):
    return debt_factory(
        principal=principal,
        interest_type="daily",
        interest_mode="fixed",
        interest_value=value,
        **kwargs,
    )


class TestApplyPayment:
    def test_interest_paid_first_then_principal(self, debt_factory):
        """Daily fixed 50/day, 3 days elapsed: 150 interest, 50 to principal."""
        debt = _daily_fixed(debt_factory, principal=5000, value=50)

        assert debt.apply_payment(200, datetime(2024, 1, 4)) is True

        assert_float_equal(debt.principal, 4950.0)
        assert_float_equal(debt.interest_paid, 150.0)
        assert debt.last_payment_date == datetime(2024, 1, 4)
        assert debt.payments == [Payment(amount=200.0, date=datetime(2024, 1, 4))]

    def test_shortfall_capitalises(self, debt_factory):
        debt = _daily_fixed(debt_factory, principal=5000, value=50)

        debt.apply_payment(100, datetime(2024, 1, 4))

        assert_float_equal(debt.principal, 5050.0)
        assert_float_equal(debt.interest_paid, 150.0)

    def test_overpayment_is_absorbed_at_zero(self, debt_factory):
        debt = _daily_fixed(debt_factory, principal=100, value=1)

        debt.apply_payment(500, datetime(2024, 1, 2))

        assert debt.principal == 0.0

    @pytest.mark.parametrize("amount", [0, -25, None, "abc"])
    def test_non_positive_amounts_are_ignored(self, debt_factory, amount):
        debt = _daily_fixed(debt_factory)

        assert debt.apply_payment(amount, datetime(2024, 1, 5)) is False

        assert debt.principal == 1000.0
        assert debt.interest_paid == 0.0
        assert debt.last_payment_date == JAN_1
        assert debt.payments == []
        assert debt.events == []

    def test_periodic_debt_charges_a_full_period_same_day(self, debt_factory):
        debt = debt_factory(principal=10000, interest_type="monthly", interest_rate=0.02)

        debt.apply_payment(1000, JAN_1)

        assert_float_equal(debt.interest_paid, 200.0)
        assert_float_equal(debt.principal, 9200.0)

    def test_out_of_order_payment_accrues_nothing(self, debt_factory):
        debt = _daily_fixed(debt_factory)
        debt.apply_payment(100, datetime(2024, 1, 11))

        debt.apply_payment(100, datetime(2024, 1, 6))

        # No sorting on insert; the earlier date sees zero elapsed days
        assert [p.date.day for p in debt.payments] == [11, 6]
        assert_float_equal(debt.principal, 900.0)

    def test_records_event(self, debt_factory):
        debt = _daily_fixed(debt_factory)
        debt.apply_payment(100, datetime(2024, 1, 6))

        assert len(debt.events) == 1
        assert debt.events[0].kind == "recorded"
        assert debt.events[0].index == 0


class TestReplay:
    @pytest.fixture
    def debt(self, debt_factory):
        debt = _daily_fixed(debt_factory)
        debt.apply_payment(200, datetime(2024, 1, 11))
        debt.apply_payment(100, datetime(2024, 1, 6))
        debt.apply_payment(300, datetime(2024, 1, 21))
        return debt

    def test_recalculate_restores_chronological_state(self, debt):
        assert_float_equal(debt.principal, 650.0)

        debt.recalculate_from_payments()

        assert [p.date.day for p in debt.payments] == [6, 11, 21]
        assert_float_equal(debt.principal, 600.0)
        assert_float_equal(debt.interest_paid, 200.0)
        assert debt.last_payment_date == datetime(2024, 1, 21)

    def test_recalculate_is_idempotent(self, debt):
        debt.recalculate_from_payments()
        first = (debt.principal, debt.interest_paid, list(debt.payments))

        debt.recalculate_from_payments()

        assert (debt.principal, debt.interest_paid, debt.payments) == first

    def test_replay_does_not_log_new_events(self, debt):
        debt.recalculate_from_payments()
        assert [event.kind for event in debt.events] == ["recorded"] * 3

    def test_delete_payment_replays(self, debt):
        debt.recalculate_from_payments()

        removed = debt.delete_payment(1)

        assert removed == Payment(amount=200.0, date=datetime(2024, 1, 11))
        assert len(debt.payments) == 2
        assert_float_equal(debt.principal, 800.0)
        assert_float_equal(debt.interest_paid, 200.0)
        assert debt.events[-1].kind == "removed"
        assert debt.events[-1].previous == removed

    def test_update_payment_replays(self, debt):
        debt.recalculate_from_payments()

        debt.update_payment(0, 50, datetime(2024, 1, 6))

        assert_float_equal(debt.principal, 650.0)
        assert debt.events[-1].kind == "amended"
        assert debt.events[-1].previous.amount == 100.0

    def test_update_keeps_date_when_omitted(self, debt):
        debt.recalculate_from_payments()

        updated = debt.update_payment(2, 250)

        assert updated.date == datetime(2024, 1, 21)

    def test_update_to_zero_drops_the_record(self, debt):
        debt.update_payment(0, 0)
        assert len(debt.payments) == 2

    @pytest.mark.parametrize("index", [-1, 3, 10])
    def test_bad_index_raises(self, debt, index):
        with pytest.raises(IndexError):
            debt.delete_payment(index)
        with pytest.raises(IndexError):
            debt.update_payment(index, 10)

    def test_final_state_depends_only_on_payment_set(self, debt_factory):
        first = _daily_fixed(debt_factory)
        first.apply_payment(100, datetime(2024, 1, 6))
        first.apply_payment(300, datetime(2024, 1, 21))
        first.apply_payment(999, datetime(2024, 1, 2))
        first.update_payment(2, 200, datetime(2024, 1, 11))

        second = _daily_fixed(debt_factory)
        second.apply_payment(300, datetime(2024, 1, 21))
        second.apply_payment(200, datetime(2024, 1, 11))
        second.apply_payment(50, datetime(2024, 1, 16))
        second.apply_payment(100, datetime(2024, 1, 6))
        second.delete_payment(2)

        assert_float_equal(first.principal, second.principal)
        assert_float_equal(first.interest_paid, second.interest_paid)
        assert_float_equal(first.principal, 600.0)
        assert first.payments == second.payments


class TestOverdue:
    @pytest.fixture
    def debt(self, debt_factory):
        return debt_factory(principal=1000, end_date=datetime(2024, 1, 10))

    @pytest.mark.parametrize(
        "today", [datetime(2024, 1, 10), datetime(2024, 1, 10, 23, 59, 59), datetime(2024, 1, 5)]
    )
    def test_not_overdue_through_end_day(self, debt, today):
        assert debt.is_overdue(today) is False

    def test_overdue_from_next_day(self, debt):
        assert debt.is_overdue(datetime(2024, 1, 11)) is True

    def test_paid_off_debt_is_never_overdue(self, debt):
        debt.principal = 0.0
        assert debt.is_overdue(datetime(2025, 1, 1)) is False

    def test_no_end_date_is_never_overdue(self, debt_factory):
        assert debt_factory().is_overdue(datetime(2099, 1, 1)) is False


class TestDebtConstruction:
    def test_end_before_start_rejected(self, debt_factory):
        with pytest.raises(ValueError, match="precedes"):
            debt_factory(start_date=datetime(2024, 2, 1), end_date=datetime(2024, 1, 1))

    def test_unknown_interest_type_rejected(self, debt_factory):
        with pytest.raises(ValueError):
            debt_factory(interest_type="hourly")

    def test_initial_state(self, debt_factory):
        debt = debt_factory(principal="2500")
        assert debt.principal == 2500.0
        assert debt.initial_principal == 2500.0
        assert debt.last_payment_date == debt.start_date
        assert debt.interest_paid == 0.0

    def test_repayment_at_end_without_end_date_uses_current_principal(self, debt_factory):
        debt = _daily_fixed(debt_factory, principal=1000, value=10)
        debt.apply_payment(20, datetime(2024, 1, 6))  # 50 interest, 30 capitalised

        assert debt.repayment_at_end() == 1030


class TestSummary:
    def test_summary_fields(self, debt_factory):
        debt = _daily_fixed(
            debt_factory, principal=5000, value=50, end_date=datetime(2024, 1, 10), name="Loan"
        )

        summary = debt.summary(today=datetime(2024, 1, 20))

        assert summary.name == "Loan"
        assert summary.pending_principal == 5000
        assert summary.repayment_at_end == 5500
        assert summary.interest_payable == 500
        assert summary.never_closes is True
        assert summary.payoff_date is None
        assert summary.overdue is True

    def test_currency_figures_are_whole_units(self, debt_factory):
        summary = debt_factory(principal=2500.6, interest_type="friendly").summary(JAN_1)

        assert summary.initial_principal == 2501
        assert summary.pending_principal == 2501
        assert summary.repayment_at_end == 2501
        assert summary.interest_payable == 0

    def test_as_dict_uses_external_keys(self, debt_factory):
        payload = debt_factory(end_date=datetime(2024, 6, 1)).summary(JAN_1).as_dict()
        assert set(payload) == {
            "id", "name", "startDate", "endDate", "initialPrincipal", "pendingPrincipal",
            "repaymentAtEnd", "interestPayable", "interestType", "interestMode",
            "interestValue", "payoffDate", "neverCloses", "overdue",
        }
        assert payload["interestType"] == "monthly"
        assert payload["endDate"] == "2024-06-01T00:00:00"


class TestSerialization:
    def test_round_trip_preserves_state(self, debt_factory):
        debt = _daily_fixed(debt_factory, end_date=datetime(2024, 3, 1), plan="emiDaily", emi_amount=25)
        debt.apply_payment(200, datetime(2024, 1, 11))
        debt.apply_payment(100, datetime(2024, 1, 6))

        restored = Debt.from_dict(debt.to_dict())

        assert restored.principal == debt.principal
        assert restored.interest_paid == debt.interest_paid
        assert restored.last_payment_date == debt.last_payment_date
        assert restored.payments == debt.payments
        assert restored.events == debt.events
        assert restored.terms == debt.terms

    def test_from_dict_tolerates_minimal_record(self):
        debt = Debt.from_dict(
            {
                "id": 3,
                "name": "Legacy",
                "principal": 750,
                "startDate": "2024-01-01T00:00:00.000Z",
                "endDate": None,
                "interestType": "yearly",
                "interestRate": 0.12,
            }
        )

        assert debt.initial_principal == 750.0
        assert debt.end_date is None
        assert debt.last_payment_date == JAN_1
        assert debt.payments == []

    @pytest.mark.parametrize(
        "overrides",
        [
            {"startDate": ""},
            {"startDate": None},
            {"payments": [{"amount": 5, "date": None}]},
            {"payments": [{"amount": 5, "date": ""}]},
        ],
    )
    def test_from_dict_rejects_missing_timestamps(self, overrides):
        raw = {"id": 1, "name": "Loan", "principal": 100, "startDate": "2024-01-01"}
        raw.update(overrides)

        with pytest.raises(ValueError, match="Missing timestamp"):
            Debt.from_dict(raw)
