# pitchfund/validation.py
import logging
import math
from collections.abc import Mapping
from typing import Any, Dict, List, Optional

from pydantic import ValidationError

from pitchfund.field_map import (
    FIELD_LABELS, STEP_FIELDS, NUMERIC_FIELDS, REQUIRED_FIELDS, TRIMMED_FIELDS,
    COUNTRY_CODE_FIELDS, SAFE_INSTRUMENTS, EQUITY_INSTRUMENTS, INSTRUMENTS,
    SAFE_TERMS, EQUITY_TERMS, CONDITIONAL_MESSAGES,
)
from pitchfund.investment_schema import (
    DealTermsStep, InvestmentRecord, STEP_MODELS, TERMS_ADAPTER, ValidationResult,
)

logger = logging.getLogger(__name__)

_NUMBER_TYPE_ERRORS = {"float_type", "float_parsing", "int_type", "int_parsing", "finite_number"}

TERM_FIELDS = ("instrument",) + SAFE_TERMS + EQUITY_TERMS


def _parse_number(value: str) -> Optional[float]:
    try:
        parsed = float(value)
    except ValueError:
        return None
    return parsed if math.isfinite(parsed) else None


def prepare_form_data(data: Mapping, is_new: Optional[bool] = None) -> Dict[str, Any]:
    """
    Turn raw form values into something the schema can judge.

    Form controls hand us strings for everything, "" for untouched inputs and
    occasionally None for values restored from a saved draft. `is_new` defaults to
    "no id in `data`"; step validation passes it explicitly because the id never
    belongs to a step's field list.
    """
    prepared = dict(data)

    for field in TRIMMED_FIELDS:
        if isinstance(prepared.get(field), str):
            prepared[field] = prepared[field].strip()

    for field in NUMERIC_FIELDS:
        value = prepared.get(field)
        if isinstance(value, str) and value.strip():
            parsed = _parse_number(value.strip())
            # unparseable strings stay put so the schema reports them
            if parsed is not None:
                prepared[field] = parsed

    for key in list(prepared):
        value = prepared[key]
        if value is None or (isinstance(value, str) and value == "" and key not in REQUIRED_FIELDS):
            del prepared[key]

    for field in COUNTRY_CODE_FIELDS:
        if isinstance(prepared.get(field), str):
            prepared[field] = prepared[field].upper()

    if isinstance(prepared.get("has_pro_rata_rights"), str):
        prepared["has_pro_rata_rights"] = prepared["has_pro_rata_rights"] == "true"

    if "id" in prepared and not isinstance(prepared["id"], str):
        prepared["id"] = str(prepared["id"])

    if is_new is None:
        is_new = not data.get("id")
    if is_new:
        prepared["status"] = "active"

    # the companies table rejects terms from the other instrument family
    instrument = prepared.get("instrument")
    if instrument in SAFE_INSTRUMENTS:
        for field in EQUITY_TERMS:
            prepared.pop(field, None)
    elif instrument in EQUITY_INSTRUMENTS:
        for field in SAFE_TERMS:
            prepared.pop(field, None)

    return prepared


def _messages(err: Dict[str, Any]) -> List[str]:
    ctx = err.get("ctx") or {}
    if "messages" in ctx:
        return list(ctx["messages"])

    field = str(err["loc"][0]) if err["loc"] else ""
    label = FIELD_LABELS.get(field, "This field")
    kind = err["type"]
    if kind == "missing":
        return [f"{label} is required"]
    if kind == "literal_error":
        return [f"Invalid {label.lower()}"]
    if kind in _NUMBER_TYPE_ERRORS:
        return [f"{label} must be a number"]
    if kind == "string_type":
        return [f"{label} must be text"]
    if kind == "bool_type":
        return [f"{label} must be true or false"]
    return [err["msg"]]


def group_errors(exc: ValidationError) -> Dict[str, List[str]]:
    """Field path -> messages, in the order pydantic evaluated the rules."""
    grouped: Dict[str, List[str]] = {}
    for err in exc.errors():
        path = ".".join(str(p) for p in err["loc"]) or "general"
        grouped.setdefault(path, []).extend(_messages(err))
    return grouped


def check_terms(values: Mapping) -> Dict[str, List[str]]:
    """
    Validate the instrument-specific terms as a tagged union on `instrument`.
    Errors land on the dependent field, never on `instrument` itself.
    """
    terms = {k: values[k] for k in TERM_FIELDS if values.get(k) is not None}
    terms.setdefault("instrument", DealTermsStep.model_fields["instrument"].default)
    try:
        TERMS_ADAPTER.validate_python(terms)
    except ValidationError as e:
        errors: Dict[str, List[str]] = {}
        for err in e.errors():
            # loc is (tag, field) for a tagged union
            field = str(err["loc"][-1])
            message = CONDITIONAL_MESSAGES.get(field) if err["type"] == "missing" else None
            errors.setdefault(field, []).append(message or err["msg"])
        return errors
    return {}


def conditional_requirements(instrument: str) -> Dict[str, bool]:
    is_safe_or_note = instrument in SAFE_INSTRUMENTS
    is_equity = instrument in EQUITY_INSTRUMENTS
    return {
        "is_safe_or_note": is_safe_or_note,
        "is_equity": is_equity,
        "is_conversion_cap_required": is_safe_or_note,
        "is_discount_required": is_safe_or_note,
        "is_post_money_required": is_equity,
    }


def _check(model, prepared: Dict[str, Any]) -> ValidationResult:
    checks_terms = "instrument" in model.model_fields
    try:
        record = model.model_validate(prepared)
    except ValidationError as e:
        errors = group_errors(e)
        # terms can still be judged when every field they read came through clean
        if checks_terms and not any(f in errors for f in TERM_FIELDS):
            for field, messages in check_terms(prepared).items():
                errors.setdefault(field, []).extend(messages)
        return ValidationResult(success=False, errors=errors)

    data = record.model_dump(exclude_none=True)
    if checks_terms:
        errors = check_terms(data)
        if errors:
            return ValidationResult(success=False, errors=errors)
    return ValidationResult(success=True, data=data)


def _not_a_mapping(data: Any) -> Optional[ValidationResult]:
    if isinstance(data, Mapping):
        return None
    return ValidationResult(success=False, errors={"general": ["Expected an object of form fields"]})


def check_investment(data: Mapping) -> ValidationResult:
    """Validate a whole record. Only unexpected faults raise."""
    rejected = _not_a_mapping(data)
    if rejected:
        return rejected

    result = _check(InvestmentRecord, prepare_form_data(data))
    if result.success and result.data["investment_amount"] > result.data["round_size_usd"]:
        return result.model_copy(update={"warnings": ["Investment amount is larger than total round size"]})
    return result


def check_step(step: int, data: Mapping) -> ValidationResult:
    """Validate one wizard page against its own field list. Only unexpected faults raise."""
    rejected = _not_a_mapping(data)
    if rejected:
        return rejected

    fields = STEP_FIELDS.get(step)
    if fields is None:
        return ValidationResult(success=False, errors={"step": [f"Unknown step {step}"]})

    step_data = {k: v for k, v in data.items() if k in fields}
    prepared = prepare_form_data(step_data, is_new=not data.get("id"))
    return _check(STEP_MODELS[step], prepared)


def _general_failure() -> ValidationResult:
    return ValidationResult(success=False, errors={"general": ["Validation failed"]})


def validate_investment(data: Mapping) -> ValidationResult:
    try:
        return check_investment(data)
    except Exception:
        logger.exception("Unexpected failure while validating investment record")
        return _general_failure()


def validate_step(step: int, data: Mapping) -> ValidationResult:
    try:
        return check_step(step, data)
    except Exception:
        logger.exception(f"Unexpected failure while validating wizard step {step}")
        return _general_failure()


def is_known_instrument(instrument: str) -> bool:
    return instrument in INSTRUMENTS
