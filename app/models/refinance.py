from datetime import datetime
from enum import Enum
from typing import Annotated, Literal, Union

from pydantic import BaseModel, ConfigDict, Field


class Language(str, Enum):
    ENGLISH = "en"
    MALAY = "ms"
    CHINESE = "zh"


class Phase(str, Enum):
    START = "START"
    AWAITING_REFERRAL = "AWAITING_REFERRAL"
    LANGUAGE_SELECT = "LANGUAGE_SELECT"
    COLLECT_NAME = "COLLECT_NAME"
    CHOOSE_PATH = "CHOOSE_PATH"
    PATH_A_AMOUNT = "PATH_A_AMOUNT"
    PATH_A_TENURE = "PATH_A_TENURE"
    PATH_A_RATE = "PATH_A_RATE"
    PATH_B_AMOUNT = "PATH_B_AMOUNT"
    PATH_B_TENURE = "PATH_B_TENURE"
    PATH_B_PAYMENT = "PATH_B_PAYMENT"
    PATH_B_YEARS_PAID = "PATH_B_YEARS_PAID"
    SUMMARY_DELIVERED = "SUMMARY_DELIVERED"
    DONE = "DONE"


class ValidationResult(BaseModel):
    valid: bool
    message: str | None = None


class RateQuote(BaseModel):
    rate: float = Field(..., description="Annual interest rate in percent")
    lender_name: str


class RateEstimate(BaseModel):
    converged: bool
    annual_rate: float | None = Field(
        default=None, description="Implied annual rate in percent"
    )
    iterations: int = 0


class OutstandingBalance(BaseModel):
    balance: float
    implied_rate: float = Field(..., description="Implied annual rate in percent")


class SavingsResult(BaseModel):
    monthly_savings: float
    yearly_savings: float
    lifetime_savings: float
    new_monthly_repayment: float
    new_interest_rate: float
    lender_name: str
    current_repayment: float
    outstanding_balance: float | None = None
    current_interest_rate: float | None = None

    def is_beneficial(self, min_lifetime_savings: float) -> bool:
        return (
            self.monthly_savings > 0
            and self.lifetime_savings > 0
            and self.lifetime_savings >= min_lifetime_savings
        )


class PathADetails(BaseModel):
    path: Literal["A"] = "A"
    loan_amount: float | None = None
    tenure: int | None = None
    interest_rate: float | None = None

    @property
    def headline_amount(self) -> float | None:
        return self.loan_amount

    def is_complete(self) -> bool:
        return all(
            [
                self.loan_amount is not None,
                self.tenure is not None,
                self.interest_rate is not None,
            ]
        )


class PathBDetails(BaseModel):
    path: Literal["B"] = "B"
    original_loan_amount: float | None = None
    original_tenure: int | None = None
    monthly_payment: float | None = None
    years_paid: int | None = None

    @property
    def headline_amount(self) -> float | None:
        return self.original_loan_amount

    def is_complete(self) -> bool:
        return all(
            [
                self.original_loan_amount is not None,
                self.original_tenure is not None,
                self.monthly_payment is not None,
                self.years_paid is not None,
            ]
        )


LoanDetails = Annotated[Union[PathADetails, PathBDetails], Field(discriminator="path")]

LOAN_COLUMNS = tuple(
    name
    for name in (*PathADetails.model_fields, *PathBDetails.model_fields)
    if name != "path"
)
SAVINGS_COLUMNS = (
    "monthly_savings",
    "yearly_savings",
    "lifetime_savings",
    "new_monthly_repayment",
    "lender_name",
    "outstanding_balance",
    "current_interest_rate",
)


class Profile(BaseModel):
    name: str | None = None
    phone_number: str | None = None
    referral_code: str | None = None
    loan: LoanDetails | None = None
    savings: SavingsResult | None = None

    def to_record(self) -> dict:
        """Flatten into the column set of the durable profile mirror.

        Fields of the path not taken, and savings not yet computed, come out
        as None so a restart clears them in storage too.
        """
        record = dict.fromkeys((*LOAN_COLUMNS, *SAVINGS_COLUMNS))
        record.update(
            name=self.name,
            phone_number=self.phone_number,
            referral_code=self.referral_code,
        )
        if self.loan is not None:
            record.update(self.loan.model_dump(exclude={"path"}))
        if self.savings is not None:
            record.update(self.savings.model_dump(include=set(SAVINGS_COLUMNS)))
        return record


class ConversationState(BaseModel):
    chat_identity: str
    phase: Phase = Field(default=Phase.START)
    language: Language = Field(default=Language.ENGLISH)
    profile: Profile = Field(default_factory=Profile)

    def reset(self) -> None:
        """Go back to START, keeping identity, phone and referral code."""
        self.phase = Phase.START
        self.profile = Profile(
            phone_number=self.profile.phone_number,
            referral_code=self.profile.referral_code,
        )


class Lead(BaseModel):
    model_config = ConfigDict(frozen=True)

    chat_identity: str
    name: str | None = None
    phone: str | None = None
    referrer_code: str | None = None
    loan_amount: float
    estimated_savings: float
    monthly_savings: float
    yearly_savings: float
    new_monthly_repayment: float
    current_interest_rate: float | None = None
    current_repayment: float
    lender_name: str
    language: Language
    path: Literal["A", "B"]

    @classmethod
    def from_state(cls, state: ConversationState) -> "Lead":
        profile = state.profile
        if profile.loan is None or profile.savings is None:
            raise ValueError("Lead requires loan details and a savings result")
        if not profile.loan.is_complete():
            raise ValueError(f"Path {profile.loan.path} loan details are incomplete")

        savings = profile.savings
        if isinstance(profile.loan, PathADetails):
            current_rate = profile.loan.interest_rate
        else:
            current_rate = savings.current_interest_rate

        return cls(
            chat_identity=state.chat_identity,
            name=profile.name,
            phone=profile.phone_number,
            referrer_code=profile.referral_code,
            loan_amount=profile.loan.headline_amount or 0,
            estimated_savings=savings.lifetime_savings,
            monthly_savings=savings.monthly_savings,
            yearly_savings=savings.yearly_savings,
            new_monthly_repayment=savings.new_monthly_repayment,
            current_interest_rate=current_rate,
            current_repayment=savings.current_repayment,
            lender_name=savings.lender_name,
            language=state.language,
            path=profile.loan.path,
        )

    def to_portal_payload(self) -> dict:
        return {
            "name": self.name,
            "phone": self.phone or "N/A",
            "referrer_code": self.referrer_code or "N/A",
            "loan_amount": self.loan_amount,
            "estimated_savings": self.estimated_savings,
            "language": self.language.value,
        }


class SavingsRequest(BaseModel):
    """Body of the direct savings calculation endpoint."""

    chat_identity: str = Field(..., min_length=1)
    name: str | None = Field(default=None, max_length=100)
    phone_number: str | None = None
    referral_code: str | None = None
    language: Language = Field(default=Language.ENGLISH)
    loan: LoanDetails

    def to_state(self, savings: SavingsResult | None = None) -> ConversationState:
        return ConversationState(
            chat_identity=self.chat_identity,
            language=self.language,
            profile=Profile(
                name=self.name,
                phone_number=self.phone_number,
                referral_code=self.referral_code,
                loan=self.loan,
                savings=savings,
            ),
        )


class SavingsResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    savings_summary: SavingsResult = Field(..., alias="savingsSummary")
    convincing_message: str = Field(..., alias="convincingMessage")


class HealthResponse(BaseModel):
    status: Literal["healthy", "unhealthy"]
    database: Literal["ok", "unavailable"]
    uptime_seconds: float
    timestamp: datetime
