import pytest

from pitchfund import validation
from pitchfund.field_map import STEP_FIELDS
from pitchfund.validation import (
    check_investment, conditional_requirements, prepare_form_data,
    validate_investment, validate_step,
)

SAFE_FAMILY = ["safe_post", "safe_pre", "convertible_note"]

CAP_REQUIRED = "Conversion cap is required for SAFE and convertible note investments"
DISCOUNT_REQUIRED = "Discount percentage is required for SAFE and convertible note investments"
POST_MONEY_REQUIRED = "Post-money valuation is required for equity investments"


def equity_record(record):
    record = dict(record, instrument="equity", post_money_valuation="5000000")
    del record["conversion_cap_usd"]
    del record["discount_percent"]
    return record


def test_valid_safe_record_passes(valid_record):
    result = validate_investment(valid_record)

    assert result.success
    assert result.errors == {}
    assert result.warnings == []
    assert result.data["name"] == "Acme Robotics"
    assert result.data["has_pro_rata_rights"] is True


@pytest.mark.parametrize("instrument", SAFE_FAMILY)
def test_safe_family_requires_cap(valid_record, instrument):
    del valid_record["conversion_cap_usd"]
    valid_record["instrument"] = instrument

    result = validate_investment(valid_record)

    assert not result.success
    assert result.errors == {"conversion_cap_usd": [CAP_REQUIRED]}


@pytest.mark.parametrize("instrument", SAFE_FAMILY)
def test_safe_family_requires_discount(valid_record, instrument):
    del valid_record["discount_percent"]
    valid_record["instrument"] = instrument

    result = validate_investment(valid_record)

    assert result.errors == {"discount_percent": [DISCOUNT_REQUIRED]}


@pytest.mark.parametrize("instrument", SAFE_FAMILY)
def test_safe_family_missing_both_terms(valid_record, instrument):
    del valid_record["conversion_cap_usd"]
    del valid_record["discount_percent"]
    valid_record["instrument"] = instrument

    result = validate_investment(valid_record)

    assert result.errors == {
        "conversion_cap_usd": [CAP_REQUIRED],
        "discount_percent": [DISCOUNT_REQUIRED],
    }


def test_missing_terms_reported_alongside_other_field_errors(valid_record):
    del valid_record["conversion_cap_usd"]
    valid_record["slug"] = "Acme Robotics"
    del valid_record["tagline"]

    result = validate_investment(valid_record)

    assert not result.success
    assert result.errors["conversion_cap_usd"] == [CAP_REQUIRED]
    assert "slug" in result.errors
    assert result.errors["tagline"] == ["Tagline is required"]


def test_equity_requires_only_post_money(valid_record):
    record = equity_record(valid_record)
    del record["post_money_valuation"]

    result = validate_investment(record)

    assert result.errors == {"post_money_valuation": [POST_MONEY_REQUIRED]}


def test_equity_without_safe_terms_passes(valid_record):
    result = validate_investment(equity_record(valid_record))

    assert result.success
    assert "conversion_cap_usd" not in result.data
    assert "discount_percent" not in result.data


def test_equity_drops_safe_terms_it_was_given(valid_record):
    record = dict(valid_record, instrument="equity", post_money_valuation="5000000")

    result = validate_investment(record)

    assert result.success
    assert "conversion_cap_usd" not in result.data
    assert "discount_percent" not in result.data


def test_safe_drops_post_money(valid_record):
    valid_record["post_money_valuation"] = "8000000"

    result = validate_investment(valid_record)

    assert result.success
    assert "post_money_valuation" not in result.data


def test_numeric_strings_become_numbers(valid_record):
    record = equity_record(valid_record)

    result = validate_investment(record)

    assert result.success
    for field, expected in [("investment_amount", 50000), ("post_money_valuation", 5000000),
                            ("round_size_usd", 2000000)]:
        assert isinstance(result.data[field], (int, float))
        assert not isinstance(result.data[field], bool)
        assert result.data[field] == expected


def test_lowercase_country_is_uppercased(valid_record):
    valid_record["country_of_incorp"] = "us"

    result = validate_investment(valid_record)

    assert result.success
    assert result.data["country_of_incorp"] == "US"


def test_country_reports_every_failing_rule(valid_record):
    valid_record["country_of_incorp"] = "usa"

    result = validate_investment(valid_record)

    assert result.errors == {"country_of_incorp": [
        "Use ISO-3166 alpha-2 country code (e.g. US)",
        "Country code must be two uppercase letters",
    ]}


@pytest.mark.parametrize("discount", [0, "0", 0.0])
def test_zero_discount_counts_as_present(valid_record, discount):
    valid_record["discount_percent"] = discount

    result = validate_investment(valid_record)

    assert result.success
    assert result.data["discount_percent"] == 0


def test_absent_discount_is_missing(valid_record):
    valid_record["discount_percent"] = ""

    result = validate_investment(valid_record)

    assert result.errors == {"discount_percent": [DISCOUNT_REQUIRED]}


@pytest.mark.parametrize("discount, message", [
    ("-5", "Discount cannot be negative"),
    ("150", "Discount cannot exceed 100%"),
])
def test_discount_out_of_range(valid_record, discount, message):
    valid_record["discount_percent"] = discount

    result = validate_investment(valid_record)

    assert result.errors == {"discount_percent": [message]}


def test_new_record_status_forced_active(valid_record):
    valid_record["status"] = "exited"

    result = validate_investment(valid_record)

    assert result.success
    assert result.data["status"] == "active"


def test_existing_record_keeps_status(valid_record):
    valid_record["status"] = "exited"
    valid_record["id"] = "3f6c2a9e-1d44-4b7a-9a51-0d2f6c1e8b10"

    result = validate_investment(valid_record)

    assert result.data["status"] == "exited"
    assert result.data["id"] == "3f6c2a9e-1d44-4b7a-9a51-0d2f6c1e8b10"


def test_validation_is_idempotent(valid_record):
    del valid_record["conversion_cap_usd"]
    valid_record["slug"] = "Not A Slug"

    first = validate_investment(valid_record)
    second = validate_investment(valid_record)

    assert first.model_dump_json() == second.model_dump_json()


def test_input_mapping_is_not_mutated(valid_record):
    before = dict(valid_record)
    validate_investment(valid_record)
    assert valid_record == before


@pytest.mark.parametrize("field, label", [("name", "Company name"), ("founder_email", "Founder email")])
def test_blank_required_field(valid_record, field, label):
    valid_record[field] = "   "

    result = validate_investment(valid_record)

    assert result.errors == {field: [f"{label} is required"]}


def test_missing_required_field(valid_record):
    del valid_record["reason_for_investing"]

    result = validate_investment(valid_record)

    assert result.errors == {"reason_for_investing": ["Reason for investing is required"]}


def test_blank_optional_fields_are_dropped(valid_record):
    valid_record["founder_name"] = ""
    valid_record["co_investors"] = None

    result = validate_investment(valid_record)

    assert result.success
    assert "founder_name" not in result.data
    assert "co_investors" not in result.data


def test_unparseable_amount_is_reported(valid_record):
    valid_record["investment_amount"] = "fifty thousand"

    result = validate_investment(valid_record)

    assert result.errors == {"investment_amount": ["Investment amount must be a number"]}


@pytest.mark.parametrize("field, label", [
    ("investment_amount", "Investment amount"),
    ("post_money_valuation", "Post-money valuation"),
    ("discount_percent", "Discount percentage"),
])
@pytest.mark.parametrize("value", [float("inf"), float("-inf"), float("nan")])
def test_non_finite_numbers_are_rejected(valid_record, field, label, value):
    if field == "post_money_valuation":
        valid_record = equity_record(valid_record)
    valid_record[field] = value

    result = validate_investment(valid_record)

    assert result.success is False
    assert result.errors == {field: [f"{label} must be a number"]}


@pytest.mark.parametrize("value, expected", [
    ("true", True), ("false", False), ("TRUE", False), ("True", False), (" true", False),
])
def test_pro_rata_string_must_be_exactly_true(valid_record, value, expected):
    valid_record["has_pro_rata_rights"] = value

    result = validate_investment(valid_record)

    assert result.success is True
    assert result.data["has_pro_rata_rights"] is expected


def test_non_positive_amount(valid_record):
    valid_record["round_size_usd"] = "0"

    result = validate_investment(valid_record)

    assert result.errors == {"round_size_usd": ["Round size must be a positive number"]}


def test_slug_reports_length_and_charset(valid_record):
    valid_record["slug"] = "A" * 101

    result = validate_investment(valid_record)

    assert result.errors == {"slug": [
        "Slug too long",
        "Slug can only contain lowercase letters, numbers, and hyphens",
    ]}


@pytest.mark.parametrize("field, value, message", [
    ("website_url", "acmerobotics", "Must be a valid URL"),
    ("founder_email", "jane@", "Must be a valid email address"),
    ("investment_date", "2024-13-01", "Investment date must be a valid date (YYYY-MM-DD)"),
    ("stage_at_investment", "series_z", "Invalid stage at investment"),
])
def test_single_field_rules(valid_record, field, value, message):
    valid_record[field] = value

    result = validate_investment(valid_record)

    assert result.errors == {field: [message]}


def test_unknown_instrument_skips_terms_check(valid_record):
    valid_record["instrument"] = "crypto_token"
    del valid_record["conversion_cap_usd"]

    result = validate_investment(valid_record)

    assert result.errors == {"instrument": ["Invalid investment instrument"]}


def test_instrument_defaults_to_post_money_safe(valid_record):
    del valid_record["instrument"]

    result = validate_investment(valid_record)

    assert result.success
    assert result.data["instrument"] == "safe_post"


def test_large_check_warns_but_passes(valid_record):
    valid_record["investment_amount"] = "3000000"

    result = validate_investment(valid_record)

    assert result.success
    assert result.warnings == ["Investment amount is larger than total round size"]


def test_step_zero_ignores_profile_fields(valid_record):
    payload = {k: v for k, v in valid_record.items() if k in STEP_FIELDS[0]}

    result = validate_step(0, payload)

    assert result.success
    assert "founder_email" not in result.data


def test_step_one_ignores_deal_fields(valid_record):
    payload = {k: v for k, v in valid_record.items() if k in STEP_FIELDS[1]}

    result = validate_step(1, payload)

    assert result.success
    assert result.data["status"] == "active"


def test_step_one_does_not_see_invalid_step_zero_values(valid_record):
    valid_record["slug"] = "Not A Slug"
    del valid_record["conversion_cap_usd"]

    assert validate_step(1, valid_record).success


def test_step_zero_checks_instrument_terms(valid_record):
    payload = {k: v for k, v in valid_record.items() if k in STEP_FIELDS[0]}
    del payload["discount_percent"]

    result = validate_step(0, payload)

    assert result.errors == {"discount_percent": [DISCOUNT_REQUIRED]}


def test_step_status_coercion_uses_record_id(valid_record):
    valid_record["status"] = "dead"

    assert validate_step(1, valid_record).data["status"] == "active"
    assert validate_step(1, dict(valid_record, id="42")).data["status"] == "dead"


def test_unknown_step():
    result = validate_step(2, {})

    assert result.errors == {"step": ["Unknown step 2"]}


def test_non_mapping_input():
    result = validate_investment(["not", "a", "form"])

    assert not result.success
    assert result.errors == {"general": ["Expected an object of form fields"]}


def test_unexpected_failure_becomes_general_error(monkeypatch, valid_record):
    def explode(*args, **kwargs):
        raise RuntimeError("boom")

    monkeypatch.setattr(validation, "prepare_form_data", explode)

    with pytest.raises(RuntimeError):
        check_investment(valid_record)

    result = validate_investment(valid_record)
    assert not result.success
    assert result.errors == {"general": ["Validation failed"]}
    assert validate_step(0, valid_record).errors == {"general": ["Validation failed"]}


def test_prepare_form_data():
    prepared = prepare_form_data({
        "name": "  Acme  ",
        "slug": "",
        "founder_name": "",
        "co_investors": None,
        "investment_amount": " 1500.50 ",
        "round_size_usd": "lots",
        "country_of_incorp": "gb",
        "has_pro_rata_rights": "false",
        "status": "exited",
    })

    assert prepared == {
        "name": "Acme",
        "slug": "",
        "investment_amount": 1500.5,
        "round_size_usd": "lots",
        "country_of_incorp": "GB",
        "has_pro_rata_rights": False,
        "status": "active",
    }


def test_conditional_requirements():
    assert conditional_requirements("convertible_note") == {
        "is_safe_or_note": True,
        "is_equity": False,
        "is_conversion_cap_required": True,
        "is_discount_required": True,
        "is_post_money_required": False,
    }
    assert conditional_requirements("equity")["is_post_money_required"] is True
    assert conditional_requirements("equity")["is_discount_required"] is False
