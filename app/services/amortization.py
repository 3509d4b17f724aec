"""Closed-form loan amortization helpers.

Rates cross the public functions as annual percentages (4.5 means 4.5%);
internally everything is monthly fractions over ``term_years * 12`` periods.
"""

from app.models.refinance import OutstandingBalance, RateEstimate

MAX_BISECTION_ITERATIONS = 100
PAYMENT_TOLERANCE = 1e-6


class AmortizationError(ValueError):
    """Raised when a loan cannot be amortized with the given terms."""


def _annuity_payment(principal: float, monthly_rate: float, periods: int) -> float:
    growth = (1 + monthly_rate) ** periods
    if monthly_rate == 0 or growth == 1:
        return principal / periods
    return principal * monthly_rate * growth / (growth - 1)


def monthly_payment(
    principal: float, annual_rate_percent: float, term_years: float
) -> float:
    """Fixed-rate monthly repayment for a fully amortizing loan."""
    if term_years <= 0:
        raise AmortizationError(f"Term must be positive, got {term_years}")
    if principal <= 0:
        raise AmortizationError(f"Principal must be positive, got {principal}")

    periods = int(round(term_years * 12))
    return _annuity_payment(principal, annual_rate_percent / 100 / 12, periods)


def estimate_annual_rate(
    principal: float, term_years: float, observed_monthly_payment: float
) -> RateEstimate:
    """Recover the annual rate implied by a known monthly payment.

    Payment grows strictly with the rate, so bisection over the monthly rate
    in [0, 1) converges whenever a solution exists. Payments outside that
    range (below straight-line repayment, or above the principal) never
    converge and come back with ``converged=False``.
    """
    if term_years <= 0 or principal <= 0 or observed_monthly_payment <= 0:
        return RateEstimate(converged=False)

    periods = int(round(term_years * 12))
    low, high = 0.0, 1.0
    rate = (low + high) / 2

    for iteration in range(1, MAX_BISECTION_ITERATIONS + 1):
        estimated = _annuity_payment(principal, rate, periods)

        if abs(estimated - observed_monthly_payment) < PAYMENT_TOLERANCE:
            return RateEstimate(
                converged=True, annual_rate=rate * 12 * 100, iterations=iteration
            )

        if estimated > observed_monthly_payment:
            high = rate
        else:
            low = rate
        rate = (low + high) / 2

    return RateEstimate(converged=False, iterations=MAX_BISECTION_ITERATIONS)


def outstanding_balance(
    principal: float,
    term_years: float,
    monthly_payment: float,
    years_paid: float,
) -> OutstandingBalance | None:
    """Remaining principal after ``years_paid`` years of payments.

    Returns None when the implied rate cannot be estimated.
    """
    estimate = estimate_annual_rate(principal, term_years, monthly_payment)
    if not estimate.converged:
        return None

    rate = estimate.annual_rate / 100 / 12
    periods = int(round(term_years * 12))
    paid = int(round(years_paid * 12))
    growth = (1 + rate) ** periods

    if growth == 1:
        balance = principal * (periods - paid) / periods
    else:
        balance = principal * (growth - (1 + rate) ** paid) / (growth - 1)

    return OutstandingBalance(balance=balance, implied_rate=estimate.annual_rate)
