# pitchfund/supabase.py
import logging
from typing import Any, Dict, List, Optional

import requests

from pitchfund import config

logger = logging.getLogger(__name__)


class SupabaseError(Exception):
    def __init__(self, status_code: int, message: str):
        super().__init__(message)
        self.status_code = status_code
        self.message = message


def _headers(access_token: Optional[str] = None) -> Dict[str, str]:
    # RLS sees whoever owns the bearer token; the anon key alone is a public visitor
    return {
        "apikey": config.SUPABASE_ANON_KEY,
        "Authorization": f"Bearer {access_token or config.SUPABASE_ANON_KEY}",
        "Content-Type": "application/json",
    }


def _send(method: str, url: str, **kwargs) -> requests.Response:
    try:
        return getattr(requests, method)(url, timeout=config.REQUEST_TIMEOUT, **kwargs)
    except requests.RequestException as e:
        logger.exception(f"Supabase request to {url} failed")
        raise SupabaseError(502, f"Could not reach Supabase: {e}")


def _check(response: requests.Response) -> Any:
    if response.status_code >= 400:
        try:
            body = response.json()
        except ValueError:
            body = {}
        if isinstance(body, dict):
            message = body.get("message") or body.get("msg") or body.get("error_description") or response.text
        else:
            message = response.text
        raise SupabaseError(response.status_code, message)
    if not response.content:
        return None
    return response.json()


def select_rows(table: str, params: Dict[str, str], access_token: Optional[str] = None) -> List[Dict[str, Any]]:
    url = f"{config.SUPABASE_URL}/rest/v1/{table}"
    response = _send("get", url, headers=_headers(access_token), params=params)
    return _check(response) or []


def insert_row(table: str, row: Dict[str, Any], access_token: Optional[str] = None) -> Dict[str, Any]:
    url = f"{config.SUPABASE_URL}/rest/v1/{table}"
    headers = {**_headers(access_token), "Prefer": "return=representation"}
    response = _send("post", url, headers=headers, json=row)
    rows = _check(response) or []
    return rows[0] if rows else row


def update_rows(table: str, filters: Dict[str, str], values: Dict[str, Any],
                access_token: Optional[str] = None) -> List[Dict[str, Any]]:
    url = f"{config.SUPABASE_URL}/rest/v1/{table}"
    headers = {**_headers(access_token), "Prefer": "return=representation"}
    response = _send("patch", url, headers=headers, params=filters, json=values)
    return _check(response) or []


def delete_rows(table: str, filters: Dict[str, str], access_token: Optional[str] = None) -> None:
    url = f"{config.SUPABASE_URL}/rest/v1/{table}"
    _check(_send("delete", url, headers=_headers(access_token), params=filters))


def rpc(function: str, args: Optional[Dict[str, Any]] = None, access_token: Optional[str] = None) -> Any:
    """Call a Postgres function exposed through PostgREST."""
    url = f"{config.SUPABASE_URL}/rest/v1/rpc/{function}"
    return _check(_send("post", url, headers=_headers(access_token), json=args or {}))


def send_magic_link(email: str, redirect_to: str) -> None:
    url = f"{config.SUPABASE_URL}/auth/v1/otp"
    response = _send(
        "post", url,
        headers=_headers(),
        params={"redirect_to": redirect_to},
        json={"email": email, "create_user": True},
    )
    _check(response)


def verify_token_hash(token_hash: str, otp_type: str = "email") -> Dict[str, Any]:
    """Exchange the token hash from a magic-link email for a session."""
    url = f"{config.SUPABASE_URL}/auth/v1/verify"
    response = _send(
        "post", url,
        headers=_headers(),
        json={"type": otp_type, "token_hash": token_hash},
    )
    return _check(response) or {}


def get_profile_role(user_id: str, access_token: str) -> Optional[str]:
    rows = select_rows("profiles", {"select": "role", "id": f"eq.{user_id}"}, access_token)
    return rows[0].get("role") if rows else None


def create_profile(user_id: str, access_token: str, role: str = "lp") -> None:
    insert_row("profiles", {"id": user_id, "role": role}, access_token)
