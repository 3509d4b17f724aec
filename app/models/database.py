"""Database models for the durable profile mirror and bank rates"""

from sqlalchemy import Column, DateTime, Float, Integer, String, create_engine
from sqlalchemy.orm import declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool
from sqlalchemy.sql import func

Base = declarative_base()


class UserProfile(Base):
    """Flat per-chat record mirroring the in-memory conversation profile"""

    __tablename__ = "user_profiles"

    chat_identity = Column(String, primary_key=True)
    name = Column(String, nullable=True)
    phone_number = Column(String, nullable=True)
    referral_code = Column(String, nullable=True)
    language = Column(String, nullable=True)
    phase = Column(String, nullable=True)

    # Path A
    loan_amount = Column(Float, nullable=True)
    tenure = Column(Integer, nullable=True)
    interest_rate = Column(Float, nullable=True)

    # Path B
    original_loan_amount = Column(Float, nullable=True)
    original_tenure = Column(Integer, nullable=True)
    monthly_payment = Column(Float, nullable=True)
    years_paid = Column(Integer, nullable=True)

    # Savings
    monthly_savings = Column(Float, nullable=True)
    yearly_savings = Column(Float, nullable=True)
    lifetime_savings = Column(Float, nullable=True)
    new_monthly_repayment = Column(Float, nullable=True)
    lender_name = Column(String, nullable=True)
    outstanding_balance = Column(Float, nullable=True)
    current_interest_rate = Column(Float, nullable=True)

    created_at = Column(DateTime, default=func.now(), nullable=False)
    last_interaction_at = Column(
        DateTime, default=func.now(), onupdate=func.now(), nullable=False
    )

    def to_dict(self) -> dict:
        return {
            column.name: getattr(self, column.name)
            for column in self.__table__.columns
        }


class BankRate(Base):
    """Lender rate offered for a loan-amount band"""

    __tablename__ = "bank_rates"

    id = Column(Integer, primary_key=True, autoincrement=True)
    lender_name = Column(String, nullable=False, default="Default Bank")
    min_amount = Column(Float, nullable=False)
    max_amount = Column(Float, nullable=False)
    interest_rate = Column(Float, nullable=False)
    created_at = Column(DateTime, default=func.now(), nullable=False)


# Database setup
def create_database_engine(database_url: str = "sqlite:///./refinance_bot.db"):
    """Create database engine"""
    kwargs = {}
    if database_url.startswith("sqlite"):
        kwargs["connect_args"] = {"check_same_thread": False}
        if database_url in ("sqlite://", "sqlite:///:memory:"):
            # Share the single in-memory database across sessions
            kwargs["poolclass"] = StaticPool
    return create_engine(database_url, echo=False, **kwargs)


def create_tables(engine):
    """Create all tables"""
    Base.metadata.create_all(bind=engine)


def get_session_maker(engine):
    """Get session maker"""
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)
