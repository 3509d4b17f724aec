"""Database service for the profile mirror and bank-rate table"""

from typing import Any, Callable, Optional

from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.models.database import BankRate, UserProfile
from app.utils.logger import LoggerMixin, mask_chat_id

PROFILE_COLUMNS = frozenset(
    column.name
    for column in UserProfile.__table__.columns
    if column.name not in ("chat_identity", "created_at", "last_interaction_at")
)


class DatabaseService(LoggerMixin):
    """Service for database operations"""

    def __init__(self, session_factory: Callable[[], Session]):
        self.session_factory = session_factory

    def check_connection(self) -> bool:
        """Run a trivial query to confirm the database answers"""
        try:
            with self.session_factory() as db:
                db.execute(text("SELECT 1"))
            return True
        except SQLAlchemyError as e:
            self.logger.error("Database connection check failed", error=str(e))
            return False

    def load_profile(self, chat_identity: str) -> Optional[dict[str, Any]]:
        """Get the stored profile for a chat identity"""
        try:
            with self.session_factory() as db:
                profile = db.get(UserProfile, chat_identity)
                return profile.to_dict() if profile else None
        except SQLAlchemyError as e:
            self.logger.error(
                "Failed to load profile",
                error=str(e),
                chat_id=mask_chat_id(chat_identity),
            )
            return None

    def save_profile(self, chat_identity: str, fields: dict[str, Any]) -> bool:
        """Upsert the profile row; unknown keys are ignored"""
        values = {key: value for key, value in fields.items() if key in PROFILE_COLUMNS}
        try:
            with self.session_factory() as db:
                profile = db.get(UserProfile, chat_identity)
                if profile is None:
                    profile = UserProfile(chat_identity=chat_identity)
                    db.add(profile)
                for key, value in values.items():
                    setattr(profile, key, value)
                db.commit()

            self.logger.debug(
                "Saved profile",
                chat_id=mask_chat_id(chat_identity),
                fields=sorted(values),
            )
            return True
        except SQLAlchemyError as e:
            self.logger.error(
                "Failed to save profile",
                error=str(e),
                chat_id=mask_chat_id(chat_identity),
            )
            return False

    def find_best_rate(self, loan_amount: float) -> Optional[BankRate]:
        """Lowest rate whose amount band contains the loan amount"""
        try:
            with self.session_factory() as db:
                bank_rate = (
                    db.query(BankRate)
                    .filter(BankRate.min_amount <= loan_amount)
                    .filter(BankRate.max_amount >= loan_amount)
                    .order_by(BankRate.interest_rate.asc())
                    .first()
                )
                if bank_rate is not None:
                    db.expunge(bank_rate)
                return bank_rate
        except SQLAlchemyError as e:
            self.logger.error(
                "Failed to query bank rates", error=str(e), loan_amount=loan_amount
            )
            raise

    def add_bank_rate(
        self,
        lender_name: str,
        min_amount: float,
        max_amount: float,
        interest_rate: float,
    ) -> Optional[BankRate]:
        """Insert a bank rate band"""
        try:
            with self.session_factory() as db:
                bank_rate = BankRate(
                    lender_name=lender_name,
                    min_amount=min_amount,
                    max_amount=max_amount,
                    interest_rate=interest_rate,
                )
                db.add(bank_rate)
                db.commit()
                db.refresh(bank_rate)
                db.expunge(bank_rate)

            self.logger.info(
                "Added bank rate",
                lender_name=lender_name,
                min_amount=min_amount,
                max_amount=max_amount,
                interest_rate=interest_rate,
            )
            return bank_rate
        except SQLAlchemyError as e:
            self.logger.error("Failed to add bank rate", error=str(e))
            return None
