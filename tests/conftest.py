import json

import pytest
import requests
from fastapi.testclient import TestClient

from main import app


class FakeResponse:
    """Just enough of requests.Response for the code under test."""

    def __init__(self, status_code=200, json_data=None, text=None, content=None, url=None):
        self.status_code = status_code
        self.url = url
        self._json = json_data
        if content is None:
            if text is None:
                text = json.dumps(json_data) if json_data is not None else ""
            content = text.encode("utf-8")
        self.content = content
        self.text = text if text is not None else content.decode("utf-8", "replace")

    @property
    def ok(self):
        return self.status_code < 400

    def json(self):
        if self._json is None:
            raise ValueError("No JSON body")
        return self._json

    def raise_for_status(self):
        if not self.ok:
            raise requests.HTTPError(f"{self.status_code} Error")


@pytest.fixture
def fake_response():
    return FakeResponse


@pytest.fixture
def client():
    return TestClient(app)


@pytest.fixture
def valid_record():
    """A complete SAFE deal as the admin wizard submits it: every value a string."""
    return {
        "name": "Acme Robotics",
        "slug": "acme-robotics",
        "description_raw": "Warehouse robots that restock shelves for mid-size grocers.",
        "investment_date": "2024-03-15",
        "investment_amount": "50000",
        "instrument": "safe_post",
        "stage_at_investment": "seed",
        "round_size_usd": "2000000",
        "fund": "fund_i",
        "reason_for_investing": "Founders ran logistics at a national grocery chain.",
        "country_of_incorp": "US",
        "incorporation_type": "c_corp",
        "conversion_cap_usd": "10000000",
        "discount_percent": "20",
        "has_pro_rata_rights": "true",
        "tagline": "Robots that restock shelves overnight",
        "website_url": "https://acmerobotics.io",
        "founder_email": "jane@acmerobotics.io",
        "founder_name": "Jane Park",
    }
