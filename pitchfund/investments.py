# pitchfund/investments.py
import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, Header, HTTPException, Request
from fastapi.responses import JSONResponse

from pitchfund import supabase
from pitchfund.supabase import SupabaseError
from pitchfund.validation import (
    validate_investment, validate_step, conditional_requirements, is_known_instrument,
)

logger = logging.getLogger(__name__)

router = APIRouter()

PORTFOLIO_COLUMNS = "id,name,slug,tagline,website_url,logo_url,status,industry_tags,stage_at_investment,fund"


async def _form_payload(request: Request) -> Any:
    try:
        return await request.json()
    except ValueError:
        raise HTTPException(status_code=400, detail="Request body must be JSON")


def bearer_token(authorization: Optional[str]) -> str:
    if not authorization or not authorization.lower().startswith("bearer "):
        raise HTTPException(status_code=401, detail="Missing bearer token")
    return authorization[7:].strip()


@router.post("/investments/validate/{step}")
async def validate_wizard_step(step: int, request: Request):
    payload = await _form_payload(request)
    return validate_step(step, payload)


@router.post("/investments/validate")
async def validate_record(request: Request):
    payload = await _form_payload(request)
    return validate_investment(payload)


@router.get("/investments/requirements")
def requirements(instrument: str):
    if not is_known_instrument(instrument):
        raise HTTPException(status_code=400, detail=f"Unknown instrument: {instrument}")
    return conditional_requirements(instrument)


@router.post("/investments", status_code=201)
async def create_investment(request: Request, authorization: Optional[str] = Header(None)):
    token = bearer_token(authorization)
    payload = await _form_payload(request)

    result = validate_investment(payload)
    if not result.success:
        return JSONResponse(status_code=422, content=result.model_dump())

    try:
        row: Dict[str, Any] = supabase.insert_row("companies", result.data, access_token=token)
    except SupabaseError as e:
        logger.warning(f"Supabase rejected company insert ({e.status_code}): {e.message}")
        raise HTTPException(status_code=e.status_code, detail=e.message)

    logger.info(f"Created company {row.get('slug', result.data['slug'])}")
    return {"company": row, "warnings": result.warnings}


@router.get("/portfolio")
def portfolio():
    try:
        companies = supabase.select_rows("companies", {"select": PORTFOLIO_COLUMNS, "order": "name.asc"})
    except SupabaseError as e:
        logger.error(f"Portfolio fetch failed ({e.status_code}): {e.message}")
        raise HTTPException(status_code=502, detail="Could not load portfolio")
    return {"companies": companies}
