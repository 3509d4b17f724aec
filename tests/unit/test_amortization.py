"""Unit tests for the amortization helpers."""

import pytest

from app.services.amortization import (
    MAX_BISECTION_ITERATIONS,
    AmortizationError,
    estimate_annual_rate,
    monthly_payment,
    outstanding_balance,
)


class TestMonthlyPayment:
    """Test cases for the fixed-rate repayment formula."""

    def test_standard_loan(self):
        payment = monthly_payment(300000, 4.5, 20)
        assert payment == pytest.approx(1897.95, abs=0.5)

    def test_zero_rate_is_straight_line(self):
        assert monthly_payment(120000, 0, 10) == pytest.approx(1000.0)

    def test_higher_rate_costs_more(self):
        assert monthly_payment(300000, 4.5, 20) > monthly_payment(300000, 3.8, 20)

    @pytest.mark.parametrize(
        "principal,rate,term", [(300000, 4.5, 0), (300000, 4.5, -5), (0, 4.5, 20)]
    )
    def test_invalid_terms_raise(self, principal, rate, term):
        with pytest.raises(AmortizationError):
            monthly_payment(principal, rate, term)


class TestEstimateAnnualRate:
    """Test cases for recovering the rate behind a payment."""

    @pytest.mark.parametrize(
        "principal,rate,term",
        [(300000, 4.5, 20), (450000, 3.28, 25), (150000, 7.25, 10), (1000000, 3.0, 35)],
    )
    def test_round_trip(self, principal, rate, term):
        payment = monthly_payment(principal, rate, term)

        estimate = estimate_annual_rate(principal, term, payment)

        assert estimate.converged
        assert estimate.annual_rate == pytest.approx(rate, abs=0.01)
        assert 0 < estimate.iterations <= MAX_BISECTION_ITERATIONS

    def test_payment_below_straight_line_does_not_converge(self):
        # 450000 over 25 years cannot be repaid with 1000 a month at any rate
        estimate = estimate_annual_rate(450000, 25, 1000)

        assert not estimate.converged
        assert estimate.annual_rate is None

    @pytest.mark.parametrize(
        "principal,term,payment", [(0, 20, 2000), (300000, 0, 2000), (300000, 20, 0)]
    )
    def test_non_positive_inputs_do_not_converge(self, principal, term, payment):
        assert not estimate_annual_rate(principal, term, payment).converged


class TestOutstandingBalance:
    """Test cases for the remaining principal projection."""

    def test_balance_after_five_years(self):
        result = outstanding_balance(450000, 25, 2200, 5)

        assert result is not None
        assert 380000 < result.balance < 395000
        assert result.implied_rate == pytest.approx(3.28, abs=0.05)

    def test_nothing_paid_leaves_full_principal(self):
        payment = monthly_payment(300000, 4.0, 30)

        result = outstanding_balance(300000, 30, payment, 0)

        assert result.balance == pytest.approx(300000, abs=1)

    def test_balance_decreases_with_years_paid(self):
        balances = [outstanding_balance(450000, 25, 2200, years).balance for years in (1, 5, 10, 20)]

        assert balances == sorted(balances, reverse=True)

    def test_unknown_rate_returns_none(self):
        assert outstanding_balance(450000, 25, 1000, 5) is None
