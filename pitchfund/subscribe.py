# pitchfund/subscribe.py
import logging

import requests
from fastapi import APIRouter, HTTPException
from pydantic import BaseModel, EmailStr, ValidationError

from pitchfund import config

logger = logging.getLogger(__name__)

router = APIRouter()

BEEHIIV_API = "https://api.beehiiv.com/v2"


class Subscriber(BaseModel):
    email: EmailStr


def beehiiv_subscribe(email: str) -> requests.Response:
    url = f"{BEEHIIV_API}/publications/{config.BEEHIIV_PUBLICATION_ID}/subscriptions"
    return requests.post(
        url,
        headers={
            "Authorization": f"Bearer {config.BEEHIIV_API_TOKEN}",
            "Content-Type": "application/json",
        },
        json={"email": email, "send_welcome_email": False, "reactivate_existing": False},
        timeout=config.REQUEST_TIMEOUT,
    )


@router.post("/subscribe")
def subscribe(body: dict):
    try:
        subscriber = Subscriber.model_validate({"email": str(body.get("email") or "").strip()})
    except ValidationError:
        raise HTTPException(status_code=400, detail="Please enter a valid email address")

    if not config.BEEHIIV_API_TOKEN or not config.BEEHIIV_PUBLICATION_ID:
        logger.error("Beehiiv API token or publication id is not configured")
        raise HTTPException(status_code=500, detail="Server configuration error")

    try:
        response = beehiiv_subscribe(subscriber.email)
    except requests.RequestException:
        logger.exception("Beehiiv request failed")
        raise HTTPException(status_code=500, detail="Internal server error")

    try:
        data = response.json()
    except ValueError:
        data = {}
    if not isinstance(data, dict):
        data = {}

    if not response.ok:
        logger.warning(f"Beehiiv returned {response.status_code}: {data}")
        raise HTTPException(status_code=response.status_code, detail=data.get("message") or "Subscription failed")

    if (data.get("data") or {}).get("status") == "invalid":
        raise HTTPException(status_code=400, detail="Please enter a valid email address")

    return {"ok": True, "message": "Successfully subscribed!"}
