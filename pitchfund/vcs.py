# pitchfund/vcs.py
import logging
import re
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from fastapi import APIRouter, Header, HTTPException

from pitchfund import supabase
from pitchfund.investments import bearer_token
from pitchfund.supabase import SupabaseError

logger = logging.getLogger(__name__)

router = APIRouter()

# columns of the vcs table besides id, name and the timestamps
VC_FIELDS = [
    "firm_name", "role_title", "bio", "profile_image_url", "thepitch_profile_url",
    "linkedin_url", "twitter_url", "instagram_url", "youtube_url", "tiktok_url",
    "website_url", "podcast_url", "wikipedia_url",
]
TRIMMED_VC_FIELDS = ["firm_name", "role_title", "bio"]


def _text(value: Any) -> Optional[str]:
    if not isinstance(value, str):
        return None
    return value.strip() or None


def new_vc_row(name: str, body: Dict[str, Any]) -> Dict[str, Any]:
    row = {"name": name}
    for field in VC_FIELDS:
        value = body.get(field)
        row[field] = _text(value) if field in TRIMMED_VC_FIELDS else (value or None)
    return row


def merge_vc(existing: Dict[str, Any], body: Dict[str, Any]) -> Dict[str, Any]:
    """Incoming non-empty values win; everything else keeps what is stored."""
    merged = {field: body.get(field) or existing.get(field) for field in VC_FIELDS}
    merged["updated_at"] = datetime.now(timezone.utc).isoformat()
    return merged


def search_filter(search: str) -> str:
    term = re.sub(r"[(),*]", "", search).strip()
    return f"(name.ilike.*{term}*,firm_name.ilike.*{term}*)"


@router.get("/vcs")
def list_vcs(search: str = None, firm: str = None, limit: int = 50, offset: int = 0):
    params = {"select": "*", "order": "name.asc", "limit": str(limit), "offset": str(offset)}
    if search:
        params["or"] = search_filter(search)
    if firm:
        params["firm_name"] = f"eq.{firm}"

    try:
        vcs = supabase.select_rows("vcs", params)
    except SupabaseError as e:
        logger.error(f"VC list failed ({e.status_code}): {e.message}")
        raise HTTPException(status_code=e.status_code, detail=f"Failed to fetch VCs: {e.message}")
    return {"success": True, "data": vcs, "total": len(vcs)}


@router.post("/vcs")
def create_vc(body: dict, authorization: Optional[str] = Header(None)):
    """Create a VC, or fold new details into the existing row with the same name."""
    token = bearer_token(authorization)
    name = _text(body.get("name"))
    if not name:
        raise HTTPException(status_code=400, detail="VC name is required")

    try:
        existing = supabase.select_rows("vcs", {"select": "*", "name": f"eq.{name}", "limit": "1"}, token)
        if existing:
            vc_id = existing[0]["id"]
            rows = supabase.update_rows("vcs", {"id": f"eq.{vc_id}"}, merge_vc(existing[0], body), token)
            vc, action = (rows[0] if rows else existing[0]), "updated"
        else:
            vc, action = supabase.insert_row("vcs", new_vc_row(name, body), token), "created"
    except SupabaseError as e:
        logger.warning(f"VC upsert failed ({e.status_code}): {e.message}")
        raise HTTPException(status_code=e.status_code, detail=f"Failed to create/update VC: {e.message}")

    logger.info(f"VC {action}: {name}")
    return {"success": True, "data": vc, "action": action}


@router.put("/vcs")
def update_vc(body: dict, authorization: Optional[str] = Header(None)):
    token = bearer_token(authorization)
    vc_id = body.get("id")
    if not vc_id:
        raise HTTPException(status_code=400, detail="VC ID is required for updates")

    values = {k: v for k, v in body.items() if k in VC_FIELDS or k == "name"}
    values["updated_at"] = datetime.now(timezone.utc).isoformat()
    try:
        rows = supabase.update_rows("vcs", {"id": f"eq.{vc_id}"}, values, token)
    except SupabaseError as e:
        logger.warning(f"VC update failed ({e.status_code}): {e.message}")
        raise HTTPException(status_code=e.status_code, detail=f"Failed to update VC: {e.message}")
    if not rows:
        raise HTTPException(status_code=404, detail="VC not found")
    return {"success": True, "data": rows[0]}


@router.delete("/vcs")
def delete_vc(id: str = None, authorization: Optional[str] = Header(None)):
    token = bearer_token(authorization)
    if not id:
        raise HTTPException(status_code=400, detail="VC ID is required for deletion")
    try:
        supabase.delete_rows("vcs", {"id": f"eq.{id}"}, token)
    except SupabaseError as e:
        logger.warning(f"VC delete failed ({e.status_code}): {e.message}")
        raise HTTPException(status_code=e.status_code, detail=f"Failed to delete VC: {e.message}")
    logger.info(f"VC deleted: {id}")
    return {"success": True, "message": "VC deleted successfully"}
