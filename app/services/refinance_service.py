"""Savings calculators for the two conversation paths.

Path A takes the current balance, tenure and rate. Path B infers the current
rate and balance from the original loan terms and the repayment history, and
reports zero savings when refinancing would not be worth pursuing.
"""

from app.config import Settings
from app.models.refinance import (
    Language,
    LoanDetails,
    PathADetails,
    RateQuote,
    SavingsResult,
)
from app.services.amortization import AmortizationError, monthly_payment, outstanding_balance
from app.services.interfaces import RateLookup
from app.services.validation import validate_path_a_inputs, validate_path_b_inputs
from app.utils.logger import LoggerMixin

NOT_APPLICABLE = "N/A"


class CalculationError(Exception):
    """A refinance pipeline could not produce a result."""


class InvalidCalculationInput(CalculationError):
    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class RateEstimationError(CalculationError):
    """The current rate could not be inferred from the loan history."""


def _money(value: float) -> float:
    return round(value, 2)


class RefinanceCalculationService(LoggerMixin):
    """Service to compute refinancing savings for both conversation paths"""

    def __init__(self, rate_lookup: RateLookup, settings: Settings):
        self.rate_lookup = rate_lookup
        self.settings = settings

    def _quote(self, loan_amount: float) -> RateQuote:
        try:
            return self.rate_lookup.lookup_best_rate(loan_amount)
        except Exception as e:
            self.logger.error(
                "Rate lookup raised, using default rate",
                loan_amount=loan_amount,
                error=str(e),
            )
            return RateQuote(
                rate=self.settings.default_rate,
                lender_name=self.settings.default_lender_name,
            )

    def calculate(
        self, loan: LoanDetails, language: Language = Language.ENGLISH
    ) -> SavingsResult:
        """Run whichever pipeline matches the path the loan details belong to"""
        if isinstance(loan, PathADetails):
            return self.calculate_path_a(
                loan.loan_amount, loan.tenure, loan.interest_rate, language
            )
        return self.calculate_path_b(
            loan.original_loan_amount,
            loan.original_tenure,
            loan.monthly_payment,
            loan.years_paid,
            language,
        )

    def calculate_path_a(
        self,
        loan_amount: float,
        tenure: int,
        current_rate: float,
        language: Language = Language.ENGLISH,
    ) -> SavingsResult:
        """Savings for a borrower who knows their current balance, tenure and rate"""
        validation = validate_path_a_inputs(
            loan_amount, tenure, current_rate, language, self.settings
        )
        if not validation.valid:
            raise InvalidCalculationInput(validation.message)

        try:
            current_payment = monthly_payment(loan_amount, current_rate, tenure)
            quote = self._quote(loan_amount)
            new_payment = monthly_payment(loan_amount, quote.rate, tenure)
        except AmortizationError as e:
            raise CalculationError(str(e)) from e

        monthly_savings = current_payment - new_payment
        result = SavingsResult(
            monthly_savings=_money(monthly_savings),
            yearly_savings=_money(monthly_savings * 12),
            lifetime_savings=_money(monthly_savings * tenure * 12),
            new_monthly_repayment=_money(new_payment),
            new_interest_rate=round(quote.rate, 2),
            lender_name=quote.lender_name,
            current_repayment=_money(current_payment),
        )

        self.logger.info(
            "Path A calculation completed",
            loan_amount=loan_amount,
            tenure=tenure,
            current_rate=current_rate,
            new_rate=result.new_interest_rate,
            lender_name=result.lender_name,
            monthly_savings=result.monthly_savings,
            lifetime_savings=result.lifetime_savings,
        )
        return result

    def calculate_path_b(
        self,
        original_loan_amount: float,
        original_tenure: int,
        observed_monthly_payment: float,
        years_paid: int,
        language: Language = Language.ENGLISH,
    ) -> SavingsResult:
        """Savings for a borrower who only knows the original terms and history"""
        validation = validate_path_b_inputs(
            original_loan_amount,
            original_tenure,
            observed_monthly_payment,
            years_paid,
            language,
            self.settings,
        )
        if not validation.valid:
            raise InvalidCalculationInput(validation.message)

        outstanding = outstanding_balance(
            original_loan_amount, original_tenure, observed_monthly_payment, years_paid
        )
        if outstanding is None or outstanding.balance <= 0:
            self.logger.warning(
                "Unable to estimate current interest rate",
                original_loan_amount=original_loan_amount,
                original_tenure=original_tenure,
                monthly_payment=observed_monthly_payment,
                years_paid=years_paid,
            )
            raise RateEstimationError("Unable to estimate the current interest rate")

        balance = _money(outstanding.balance)
        current_rate = round(outstanding.implied_rate, 2)
        remaining_tenure = original_tenure - years_paid

        quote = self._quote(balance)
        try:
            new_payment = monthly_payment(balance, quote.rate, remaining_tenure)
        except AmortizationError as e:
            raise CalculationError(str(e)) from e

        monthly_savings = observed_monthly_payment - new_payment
        lifetime_savings = monthly_savings * remaining_tenure * 12

        if monthly_savings <= 0 or lifetime_savings < self.settings.min_lifetime_savings:
            self.logger.info(
                "Savings too low to pursue",
                monthly_savings=_money(monthly_savings),
                lifetime_savings=_money(lifetime_savings),
                threshold=self.settings.min_lifetime_savings,
            )
            return SavingsResult(
                monthly_savings=0,
                yearly_savings=0,
                lifetime_savings=0,
                new_monthly_repayment=0,
                new_interest_rate=0,
                lender_name=NOT_APPLICABLE,
                current_repayment=_money(observed_monthly_payment),
                outstanding_balance=balance,
                current_interest_rate=current_rate,
            )

        result = SavingsResult(
            monthly_savings=_money(monthly_savings),
            yearly_savings=_money(monthly_savings * 12),
            lifetime_savings=_money(lifetime_savings),
            new_monthly_repayment=_money(new_payment),
            new_interest_rate=round(quote.rate, 2),
            lender_name=quote.lender_name,
            current_repayment=_money(observed_monthly_payment),
            outstanding_balance=balance,
            current_interest_rate=current_rate,
        )

        self.logger.info(
            "Path B calculation completed",
            outstanding_balance=balance,
            current_rate=current_rate,
            remaining_tenure=remaining_tenure,
            new_rate=result.new_interest_rate,
            lender_name=result.lender_name,
            monthly_savings=result.monthly_savings,
            lifetime_savings=result.lifetime_savings,
        )
        return result
