"""Field validators for refinance inputs.

Each validator takes an already-parsed value (None when the raw text was not a
number) plus a locale and returns a ValidationResult with a localized message.
"""

import math
import re

from app.config import Settings, settings as default_settings
from app.models.refinance import Language, ValidationResult
from app.utils.translations import error_message, format_currency

_NUMBER_PATTERN = re.compile(r"^[+-]?(\d+(\.\d*)?|\.\d+)$")

VALID = ValidationResult(valid=True)


def parse_number(text: str | None) -> float | None:
    """Parse chat text like '300,000', 'RM 2200' or '4.5%' into a float."""
    if text is None:
        return None
    cleaned = text.strip().replace(",", "").replace(" ", "")
    if cleaned[:2].upper() == "RM":
        cleaned = cleaned[2:]
    cleaned = cleaned.rstrip("%")
    if not _NUMBER_PATTERN.match(cleaned):
        return None
    value = float(cleaned)
    return value if math.isfinite(value) else None


def _is_number(value) -> bool:
    return (
        isinstance(value, (int, float))
        and not isinstance(value, bool)
        and math.isfinite(value)
    )


def _is_integer(value) -> bool:
    return _is_number(value) and float(value).is_integer()


def _fail(key: str, language: Language, **params) -> ValidationResult:
    return ValidationResult(valid=False, message=error_message(key, language, **params))


def validate_loan_amount(
    loan_amount, language: Language = Language.ENGLISH, config: Settings | None = None
) -> ValidationResult:
    config = config or default_settings
    if (
        not _is_number(loan_amount)
        or loan_amount < config.min_loan_amount
        or loan_amount > config.max_loan_amount
    ):
        return _fail(
            "invalidLoanAmount",
            language,
            min=format_currency(config.min_loan_amount),
            max=format_currency(config.max_loan_amount),
        )
    return VALID


def validate_tenure(
    tenure, minimum: int, maximum: int, language: Language = Language.ENGLISH
) -> ValidationResult:
    if not _is_integer(tenure) or tenure < minimum or tenure > maximum:
        return _fail("invalidTenure", language, min=minimum, max=maximum)
    return VALID


def validate_interest_rate(
    interest_rate, language: Language = Language.ENGLISH, config: Settings | None = None
) -> ValidationResult:
    config = config or default_settings
    if (
        not _is_number(interest_rate)
        or interest_rate < config.min_interest_rate
        or interest_rate > config.max_interest_rate
    ):
        return _fail(
            "invalidInterestRate",
            language,
            min=f"{config.min_interest_rate:g}",
            max=f"{config.max_interest_rate:g}",
        )
    return VALID


def validate_repayment(
    repayment, language: Language = Language.ENGLISH, config: Settings | None = None
) -> ValidationResult:
    config = config or default_settings
    if (
        not _is_number(repayment)
        or repayment < config.min_monthly_repayment
        or repayment > config.max_monthly_repayment
    ):
        return _fail(
            "invalidRepayment",
            language,
            min=format_currency(config.min_monthly_repayment),
            max=format_currency(config.max_monthly_repayment),
        )
    return VALID


def validate_years_paid(
    years_paid, original_tenure, language: Language = Language.ENGLISH
) -> ValidationResult:
    if (
        not _is_integer(years_paid)
        or not _is_number(original_tenure)
        or years_paid < 0
        or years_paid >= original_tenure
    ):
        return _fail("invalidYearsPaid", language)
    return VALID


def validate_path_a_inputs(
    loan_amount,
    tenure,
    interest_rate,
    language: Language = Language.ENGLISH,
    config: Settings | None = None,
) -> ValidationResult:
    config = config or default_settings
    checks = (
        lambda: validate_loan_amount(loan_amount, language, config),
        lambda: validate_tenure(
            tenure, config.path_a_min_tenure, config.path_a_max_tenure, language
        ),
        lambda: validate_interest_rate(interest_rate, language, config),
    )
    for check in checks:
        result = check()
        if not result.valid:
            return result
    return VALID


def validate_path_b_inputs(
    original_loan_amount,
    original_tenure,
    monthly_payment,
    years_paid,
    language: Language = Language.ENGLISH,
    config: Settings | None = None,
) -> ValidationResult:
    config = config or default_settings
    checks = (
        lambda: validate_loan_amount(original_loan_amount, language, config),
        lambda: validate_tenure(
            original_tenure,
            config.path_b_min_tenure,
            config.path_b_max_tenure,
            language,
        ),
        lambda: validate_repayment(monthly_payment, language, config),
        lambda: validate_years_paid(years_paid, original_tenure, language),
    )
    for check in checks:
        result = check()
        if not result.valid:
            return result
    return VALID
