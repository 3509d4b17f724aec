from sqlalchemy.exc import SQLAlchemyError

from app.config import Settings
from app.models.refinance import RateQuote
from app.services.database_service import DatabaseService
from app.utils.logger import LoggerMixin


class BankRateService(LoggerMixin):
    """Best available lender rate for a loan amount, with a configured fallback"""

    def __init__(self, db_service: DatabaseService, settings: Settings):
        self.db = db_service
        self.settings = settings

    def default_quote(self) -> RateQuote:
        return RateQuote(
            rate=self.settings.default_rate,
            lender_name=self.settings.default_lender_name,
        )

    def lookup_best_rate(self, loan_amount: float) -> RateQuote:
        if loan_amount is None or loan_amount <= 0:
            self.logger.error("Invalid loan amount for rate lookup", loan_amount=loan_amount)
            return self.default_quote()

        try:
            bank_rate = self.db.find_best_rate(loan_amount)
        except SQLAlchemyError as e:
            self.logger.error(
                "Rate lookup failed, using default rate",
                loan_amount=loan_amount,
                error=str(e),
            )
            return self.default_quote()

        if bank_rate is None or not bank_rate.interest_rate:
            self.logger.warning(
                "No matching bank rate, using default rate", loan_amount=loan_amount
            )
            return self.default_quote()

        self.logger.info(
            "Selected bank rate",
            loan_amount=loan_amount,
            interest_rate=bank_rate.interest_rate,
            lender_name=bank_rate.lender_name,
            min_amount=bank_rate.min_amount,
            max_amount=bank_rate.max_amount,
        )
        return RateQuote(
            rate=round(bank_rate.interest_rate, 2),
            lender_name=bank_rate.lender_name or self.settings.default_lender_name,
        )
