# pitchfund/investment_schema.py
import re
from datetime import date
from typing import Annotated, Any, Dict, List, Literal, Optional, Union

from pydantic import (
    AfterValidator, BaseModel, BeforeValidator, ConfigDict, EmailStr, Field,
    FiniteFloat, HttpUrl, TypeAdapter, ValidationError,
)
from pydantic_core import PydanticCustomError

SLUG_RE = re.compile(r"^[a-z0-9-]+$")
COUNTRY_RE = re.compile(r"^[A-Z]{2}$")

_EMAIL = TypeAdapter(EmailStr)
_HTTP_URL = TypeAdapter(HttpUrl)


def _required(label: str):
    """Reject blank strings that normalization kept for required fields."""
    def check(value):
        if isinstance(value, str) and not value.strip():
            raise PydanticCustomError("required", f"{label} is required")
        return value
    return BeforeValidator(check)


def _rules(*checks):
    """
    Run every (predicate, message) pair against the value and report all that fail,
    in declaration order. The messages travel in the error context so they can be
    listed separately under the field.
    """
    def run(value):
        messages = [message for predicate, message in checks if not predicate(value)]
        if messages:
            raise PydanticCustomError("field_rules", "; ".join(messages), {"messages": messages})
        return value
    return AfterValidator(run)


def _max_len(n: int):
    return lambda v: len(v) <= n


def _is_email(value: str) -> bool:
    try:
        _EMAIL.validate_python(value)
    except ValidationError:
        return False
    return True


def _is_http_url(value: str) -> bool:
    try:
        _HTTP_URL.validate_python(value)
    except ValidationError:
        return False
    return True


def _is_iso_date(value: str) -> bool:
    try:
        date.fromisoformat(value)
    except ValueError:
        return False
    return True


Instrument = Literal["safe_post", "safe_pre", "convertible_note", "equity"]
Stage = Literal["pre_seed", "seed", "series_a", "series_b", "series_c"]
Fund = Literal["fund_i", "fund_ii", "fund_iii"]
IncorporationType = Literal["c_corp", "s_corp", "llc", "bcorp", "gmbh", "ltd", "plc", "other"]
Status = Literal["active", "acquihired", "exited", "dead"]


def positive_amount(label: str):
    return Annotated[FiniteFloat, _rules((lambda v: v > 0, f"{label} must be a positive number"))]


class InvestmentModel(BaseModel):
    # Form payloads are normalized first, so types are checked strictly
    model_config = ConfigDict(strict=True, extra="ignore")


class DealTermsStep(InvestmentModel):
    """Wizard step 0: the company basics and the terms of our check."""

    name: Annotated[str, _required("Company name"),
                    _rules((_max_len(255), "Company name too long"))]
    slug: Annotated[str, _required("Slug"),
                    _rules((_max_len(100), "Slug too long"),
                           (lambda v: bool(SLUG_RE.match(v)),
                            "Slug can only contain lowercase letters, numbers, and hyphens"))]
    description_raw: Annotated[str, _required("Company description"),
                               _rules((_max_len(5000), "Description too long (max 5000 characters)"))]

    investment_date: Annotated[str, _required("Investment date"),
                               _rules((_is_iso_date, "Investment date must be a valid date (YYYY-MM-DD)"))]
    investment_amount: positive_amount("Investment amount")

    instrument: Annotated[Instrument, _required("Investment instrument")] = "safe_post"
    stage_at_investment: Annotated[Stage, _required("Stage at investment")]
    round_size_usd: positive_amount("Round size")
    fund: Fund = "fund_i"

    reason_for_investing: Annotated[str, _required("Reason for investing"),
                                    _rules((_max_len(4000),
                                            "Reason for investing is too long (max 4000 characters)"))]
    country_of_incorp: Annotated[str, _required("Country of incorporation"),
                                 _rules((lambda v: len(v) == 2, "Use ISO-3166 alpha-2 country code (e.g. US)"),
                                        (lambda v: bool(COUNTRY_RE.match(v)),
                                         "Country code must be two uppercase letters"))]
    incorporation_type: Annotated[IncorporationType, _required("Incorporation type")]

    # SAFE / convertible note only
    conversion_cap_usd: Optional[positive_amount("Conversion cap")] = None
    discount_percent: Optional[Annotated[FiniteFloat, _rules((lambda v: v >= 0, "Discount cannot be negative"),
                                                       (lambda v: v <= 100, "Discount cannot exceed 100%"))]] = None
    # Equity only
    post_money_valuation: Optional[positive_amount("Post-money valuation")] = None

    has_pro_rata_rights: bool = False
    co_investors: Optional[str] = None


class CompanyProfileStep(InvestmentModel):
    """Wizard step 1: public-facing profile and the founder contact."""

    tagline: Annotated[str, _required("Tagline"),
                       _rules((_max_len(500), "Tagline too long"))]
    website_url: Annotated[str, _required("Website URL"),
                           _rules((_is_http_url, "Must be a valid URL"))]
    founder_email: Annotated[str, _required("Founder email"),
                             _rules((_is_email, "Must be a valid email address"))]
    founder_name: Optional[Annotated[str, _rules((_max_len(255), "Name too long"))]] = None
    status: Status = "active"


class InvestmentRecord(CompanyProfileStep, DealTermsStep):
    """A complete portfolio-company record, as persisted to the companies table."""

    id: Optional[str] = None


STEP_MODELS = {
    0: DealTermsStep,
    1: CompanyProfileStep,
}


# --- Instrument terms: exactly one group applies, picked by `instrument` -----

class SafeTerms(InvestmentModel):
    instrument: Literal["safe_post", "safe_pre"]
    conversion_cap_usd: FiniteFloat
    discount_percent: FiniteFloat


class ConvertibleNoteTerms(InvestmentModel):
    instrument: Literal["convertible_note"]
    conversion_cap_usd: FiniteFloat
    discount_percent: FiniteFloat


class EquityTerms(InvestmentModel):
    instrument: Literal["equity"]
    post_money_valuation: FiniteFloat


InstrumentTerms = Annotated[
    Union[SafeTerms, ConvertibleNoteTerms, EquityTerms],
    Field(discriminator="instrument"),
]

TERMS_ADAPTER = TypeAdapter(InstrumentTerms)


class ValidationResult(BaseModel):
    success: bool
    data: Optional[Dict[str, Any]] = None
    errors: Dict[str, List[str]] = {}
    warnings: List[str] = []
