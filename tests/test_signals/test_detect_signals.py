"""
Tests for signal extraction over the sample user's history.

All windows end on ``AS_OF`` (2024-06-30); the 180-day window starts on
2024-01-02 and the 30-day window on 2024-05-31.
"""

from __future__ import annotations

from datetime import date

import pytest

from conftest import AS_OF, make_accounts, make_card_liability, make_transactions, make_user
from spendsense.models.account import Account, Transaction, TransactionCategory
from spendsense.signals import detect_signals


class TestDeterminism:
    def test_same_inputs_same_result(
        self, sample_user, sample_accounts, sample_transactions, sample_liabilities
    ):
        a = detect_signals(
            sample_user, sample_accounts, sample_transactions, sample_liabilities, "180d", AS_OF
        )
        b = detect_signals(
            sample_user, sample_accounts, sample_transactions, sample_liabilities, "180d", AS_OF
        )
        assert a == b
        assert a.model_dump_json() == b.model_dump_json()

    def test_input_order_does_not_matter(
        self, sample_user, sample_accounts, sample_transactions, sample_liabilities
    ):
        forward = detect_signals(
            sample_user, sample_accounts, sample_transactions, sample_liabilities, "180d", AS_OF
        )
        backward = detect_signals(
            sample_user,
            list(reversed(sample_accounts)),
            list(reversed(sample_transactions)),
            sample_liabilities,
            "180d",
            AS_OF,
        )
        assert forward == backward

    def test_result_carries_window_and_as_of(
        self, sample_user, sample_accounts, sample_transactions, sample_liabilities
    ):
        result = detect_signals(
            sample_user, sample_accounts, sample_transactions, sample_liabilities, "30d", AS_OF
        )
        assert result.user_id == "u001"
        assert result.window == "30d"
        assert result.as_of == AS_OF

    def test_unknown_window_raises(self, sample_user):
        with pytest.raises(ValueError, match="Unknown signal window"):
            detect_signals(sample_user, [], [], [], "90d", AS_OF)

    def test_other_users_records_ignored(
        self, sample_user, sample_accounts, sample_transactions, sample_liabilities
    ):
        own = detect_signals(
            sample_user, sample_accounts, sample_transactions, sample_liabilities, "180d", AS_OF
        )
        mixed = detect_signals(
            sample_user,
            sample_accounts + make_accounts("u999", card_balance=4900.0),
            sample_transactions + make_transactions("u999"),
            sample_liabilities + [make_card_liability("u999")],
            "180d",
            AS_OF,
        )
        assert own == mixed


class TestCreditSignals:
    def test_utilization_half(
        self, sample_user, sample_accounts, sample_transactions, sample_liabilities
    ):
        result = detect_signals(
            sample_user, sample_accounts, sample_transactions, sample_liabilities, "180d", AS_OF
        )
        assert len(result.credit.cards) == 1
        card = result.credit.cards[0]
        assert card.utilization == pytest.approx(0.5)
        assert card.card_mask == "4523"
        assert result.credit.highest_utilization == pytest.approx(0.5)
        assert result.credit.average_utilization == pytest.approx(0.5)

    def test_monthly_interest(
        self, sample_user, sample_accounts, sample_transactions, sample_liabilities
    ):
        # 2500 * 24% / 12
        result = detect_signals(
            sample_user, sample_accounts, sample_transactions, sample_liabilities, "180d", AS_OF
        )
        assert result.credit.total_interest_charges == pytest.approx(50.0)

    def test_payment_above_minimum_not_flagged(
        self, sample_user, sample_accounts, sample_transactions, sample_liabilities
    ):
        result = detect_signals(
            sample_user, sample_accounts, sample_transactions, sample_liabilities, "180d", AS_OF
        )
        assert result.credit.has_minimum_payment_only is False

    def test_payment_near_minimum_flagged(self, sample_user, sample_accounts):
        result = detect_signals(
            sample_user, sample_accounts, [], [make_card_liability(last_payment=80.0)], "30d", AS_OF
        )
        assert result.credit.has_minimum_payment_only is True

    def test_overdue_propagates(self, sample_user, sample_accounts):
        result = detect_signals(
            sample_user, sample_accounts, [], [make_card_liability(is_overdue=True)], "30d", AS_OF
        )
        assert result.credit.has_overdue is True

    def test_card_without_liability_skipped(self, sample_user, sample_accounts):
        result = detect_signals(sample_user, sample_accounts, [], [], "30d", AS_OF)
        assert result.credit.cards == []
        assert result.credit.highest_utilization == 0.0

    def test_missing_limit_uses_default(self, sample_user):
        card = Account(
            account_id="u001_cc",
            user_id="u001",
            name="No Limit Card",
            type="credit",
            subtype="credit card",
            current_balance=1000.0,
        )
        result = detect_signals(sample_user, [card], [], [make_card_liability()], "30d", AS_OF)
        assert result.credit.cards[0].limit == 5000.0
        assert result.credit.cards[0].utilization == pytest.approx(0.2)


class TestSubscriptionSignals:
    def test_netflix_monthly(
        self, sample_user, sample_accounts, sample_transactions, sample_liabilities
    ):
        result = detect_signals(
            sample_user, sample_accounts, sample_transactions, sample_liabilities, "180d", AS_OF
        )
        sub = result.subscription
        assert sub.total_recurring_count == 1
        netflix = sub.recurring_merchants[0]
        assert netflix.merchant_name == "Netflix"
        assert netflix.cadence == "monthly"
        assert netflix.occurrences == 6
        assert netflix.average_amount == pytest.approx(15.99)
        assert netflix.last_date == date(2024, 6, 15)
        assert sub.monthly_recurring_spend == pytest.approx(15.99)

    def test_short_window_has_too_few_charges(
        self, sample_user, sample_accounts, sample_transactions, sample_liabilities
    ):
        result = detect_signals(
            sample_user, sample_accounts, sample_transactions, sample_liabilities, "30d", AS_OF
        )
        assert result.subscription.total_recurring_count == 0
        assert result.subscription.monthly_recurring_spend == 0.0

    def test_irregular_gaps_not_recurring(self, sample_user):
        txns = [
            _debit(f"gym_{i}", d, 40.0, "City Gym")
            for i, d in enumerate([date(2024, 6, 1), date(2024, 6, 5), date(2024, 6, 28)])
        ]
        result = detect_signals(sample_user, [], txns, [], "30d", AS_OF)
        assert result.subscription.total_recurring_count == 0

    def test_weekly_cadence(self, sample_user):
        txns = [
            _debit(f"coffee_{i}", date(2024, 6, 3 + 7 * i), 5.0, "Corner Coffee")
            for i in range(4)
        ]
        result = detect_signals(sample_user, [], txns, [], "30d", AS_OF)
        merchant = result.subscription.recurring_merchants[0]
        assert merchant.cadence == "weekly"
        assert result.subscription.monthly_recurring_spend == pytest.approx(21.65)


class TestIncomeSignals:
    def test_biweekly_payroll(
        self, sample_user, sample_accounts, sample_transactions, sample_liabilities
    ):
        result = detect_signals(
            sample_user, sample_accounts, sample_transactions, sample_liabilities, "180d", AS_OF
        )
        income = result.income
        assert income.has_payroll_pattern is True
        assert income.payment_frequency == "biweekly"
        assert income.payment_variability == 0.0
        assert income.monthly_income == pytest.approx(4340.0)
        assert income.estimated_annual_income == pytest.approx(52080.0)
        assert income.has_income_gap is False
        assert income.longest_gap_days == 14

    def test_no_income(self, sample_user):
        result = detect_signals(sample_user, [], [], [], "180d", AS_OF)
        assert result.income.has_payroll_pattern is False
        assert result.income.payment_frequency is None
        assert result.income.estimated_annual_income == 0.0

    def test_long_gap_flagged(self, sample_user):
        txns = [
            _credit("pay_1", date(2024, 2, 1), 3000.0),
            _credit("pay_2", date(2024, 4, 1), 1000.0),
        ]
        result = detect_signals(sample_user, [], txns, [], "180d", AS_OF)
        assert result.income.has_income_gap is True
        assert result.income.longest_gap_days == 60
        assert result.income.payment_frequency == "variable"
        assert result.income.payment_variability == pytest.approx(0.5)


class TestSavingsSignals:
    def test_balance_without_activity(
        self, sample_user, sample_accounts, sample_transactions, sample_liabilities
    ):
        result = detect_signals(
            sample_user, sample_accounts, sample_transactions, sample_liabilities, "180d", AS_OF
        )
        assert result.savings.current_savings_balance == 6000.0
        assert result.savings.net_inflow == 0.0
        assert result.savings.growth_rate == 0.0

    def test_growth_from_inflow(self, sample_user):
        savings = make_accounts(savings_balance=1200.0)[1]
        txns = [_credit("xfer_1", date(2024, 6, 1), 200.0, account_id=savings.account_id,
                        category=TransactionCategory(primary="Transfer", detailed="Savings"))]
        result = detect_signals(sample_user, [savings], txns, [], "30d", AS_OF)
        assert result.savings.net_inflow == 200.0
        assert result.savings.growth_rate == pytest.approx(20.0)

    def test_growth_from_zero_start(self, sample_user):
        savings = make_accounts(savings_balance=200.0)[1]
        txns = [_credit("xfer_1", date(2024, 6, 1), 200.0, account_id=savings.account_id,
                        category=TransactionCategory(primary="Transfer", detailed="Savings"))]
        result = detect_signals(sample_user, [savings], txns, [], "30d", AS_OF)
        assert result.savings.growth_rate == 100.0

    def test_no_savings_accounts(self):
        result = detect_signals(make_user(), [], [], [], "30d", AS_OF)
        assert result.savings.current_savings_balance == 0.0
        assert result.savings.emergency_fund_coverage == 0.0


# ── Helpers ───────────────────────────────────────────────────────────────────

def _debit(txn_id: str, day: date, amount: float, merchant: str) -> Transaction:
    return Transaction(
        transaction_id=txn_id,
        account_id="u001_chk",
        user_id="u001",
        amount=-amount,
        date=day,
        name=merchant.upper(),
        merchant_name=merchant,
        category=TransactionCategory(primary="General Merchandise"),
        transaction_type="debit",
    )


def _credit(
    txn_id: str,
    day: date,
    amount: float,
    account_id: str = "u001_chk",
    category: TransactionCategory | None = None,
) -> Transaction:
    return Transaction(
        transaction_id=txn_id,
        account_id=account_id,
        user_id="u001",
        amount=amount,
        date=day,
        name="DEPOSIT",
        category=category or TransactionCategory(primary="Income", detailed="Payroll"),
        transaction_type="credit",
    )
