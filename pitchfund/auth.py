# pitchfund/auth.py
import logging
from urllib.parse import quote

from fastapi import APIRouter, HTTPException
from fastapi.responses import RedirectResponse
from pydantic import ValidationError

from pitchfund import config, supabase
from pitchfund.subscribe import Subscriber
from pitchfund.supabase import SupabaseError

logger = logging.getLogger(__name__)

router = APIRouter()

LOGIN_PATH = "/auth/login"


def redirect_for_role(role: str) -> str:
    return "/admin" if role == "admin" else "/portfolio"


def _login_redirect(error: str) -> RedirectResponse:
    return RedirectResponse(f"{LOGIN_PATH}?error={quote(error)}", status_code=303)


@router.post("/login")
def login(body: dict):
    try:
        email = Subscriber.model_validate({"email": str(body.get("email") or "").strip()}).email
    except ValidationError:
        raise HTTPException(status_code=400, detail="Please enter a valid email address")
    try:
        supabase.send_magic_link(email, f"{config.SITE_URL}/auth/callback")
    except SupabaseError as e:
        logger.warning(f"Magic link request failed ({e.status_code}): {e.message}")
        raise HTTPException(status_code=e.status_code, detail=e.message)
    return {"ok": True, "message": "Check your email for the login link"}


@router.get("/callback")
def callback(token_hash: str = None, type: str = "email", error: str = None):
    if error:
        logger.info(f"Auth provider returned error: {error}")
        return _login_redirect("Authentication failed")
    if not token_hash:
        return RedirectResponse(LOGIN_PATH, status_code=303)

    try:
        session = supabase.verify_token_hash(token_hash, type)
        access_token = session["access_token"]
        user_id = session["user"]["id"]

        role = supabase.get_profile_role(user_id, access_token)
        if role is None:
            # first sign-in: every new account starts as a limited partner
            supabase.create_profile(user_id, access_token, "lp")
            role = "lp"
    except (SupabaseError, KeyError, TypeError) as e:
        logger.warning(f"Auth callback failed: {e}")
        return _login_redirect("Authentication failed")

    response = RedirectResponse(redirect_for_role(role), status_code=303)
    response.set_cookie(
        config.AUTH_COOKIE_NAME,
        access_token,
        max_age=session.get("expires_in", 3600),
        httponly=True,
        secure=config.SITE_URL.startswith("https://"),
        samesite="lax",
    )
    return response


@router.post("/logout")
def logout():
    response = RedirectResponse("/", status_code=303)
    response.delete_cookie(config.AUTH_COOKIE_NAME)
    return response
