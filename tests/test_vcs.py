import pytest

from pitchfund import supabase
from pitchfund.supabase import SupabaseError
from pitchfund.vcs import merge_vc, new_vc_row, search_filter

AUTH = {"Authorization": "Bearer admin-session-token"}

JANE = {
    "id": "vc-1",
    "name": "Jane Park",
    "firm_name": "Shelf Ventures",
    "role_title": "General Partner",
    "linkedin_url": "https://www.linkedin.com/in/janepark",
}


def test_new_vc_row_trims_text_and_nulls_blanks():
    row = new_vc_row("Jane Park", {"firm_name": "  Shelf Ventures ", "bio": "   ", "linkedin_url": ""})

    assert row["name"] == "Jane Park"
    assert row["firm_name"] == "Shelf Ventures"
    assert row["bio"] is None
    assert row["linkedin_url"] is None
    assert row["wikipedia_url"] is None


def test_merge_keeps_stored_values_for_blank_input():
    merged = merge_vc(JANE, {"firm_name": "Aisle Capital", "role_title": ""})

    assert merged["firm_name"] == "Aisle Capital"
    assert merged["role_title"] == "General Partner"
    assert merged["linkedin_url"] == "https://www.linkedin.com/in/janepark"
    assert "updated_at" in merged


def test_search_filter_strips_syntax():
    assert search_filter("shelf (ventures)") == "(name.ilike.*shelf ventures*,firm_name.ilike.*shelf ventures*)"


def test_list_vcs(client, monkeypatch):
    seen = {}

    def fake_select(table, params, access_token=None):
        seen.update(table=table, params=params)
        return [JANE]

    monkeypatch.setattr(supabase, "select_rows", fake_select)

    r = client.get("/api/vcs", params={"search": "shelf", "firm": "Shelf Ventures", "limit": 10, "offset": 20})

    assert r.status_code == 200
    assert r.json() == {"success": True, "data": [JANE], "total": 1}
    assert seen["table"] == "vcs"
    assert seen["params"]["order"] == "name.asc"
    assert seen["params"]["limit"] == "10"
    assert seen["params"]["offset"] == "20"
    assert seen["params"]["firm_name"] == "eq.Shelf Ventures"
    assert seen["params"]["or"] == "(name.ilike.*shelf*,firm_name.ilike.*shelf*)"


def test_list_vcs_upstream_failure(client, monkeypatch):
    def fail(*args, **kwargs):
        raise SupabaseError(502, "Could not reach Supabase: connection refused")

    monkeypatch.setattr(supabase, "select_rows", fail)

    r = client.get("/api/vcs")

    assert r.status_code == 502
    assert r.json()["detail"].startswith("Failed to fetch VCs")


def test_create_requires_token(client):
    assert client.post("/api/vcs", json={"name": "Jane Park"}).status_code == 401


def test_create_requires_name(client):
    r = client.post("/api/vcs", json={"name": "  "}, headers=AUTH)

    assert r.status_code == 400
    assert r.json()["detail"] == "VC name is required"


def test_create_new_vc(client, monkeypatch):
    inserted = []
    monkeypatch.setattr(supabase, "select_rows", lambda table, params, token=None: [])
    monkeypatch.setattr(supabase, "insert_row",
                        lambda table, row, token=None: inserted.append((table, row, token)) or dict(row, id="vc-2"))

    r = client.post("/api/vcs", json={"name": " Sam Ortiz ", "firm_name": "Harbor Street"}, headers=AUTH)

    assert r.status_code == 200
    assert r.json()["action"] == "created"
    assert r.json()["data"]["id"] == "vc-2"
    table, row, token = inserted[0]
    assert (table, token) == ("vcs", "admin-session-token")
    assert row["name"] == "Sam Ortiz"


def test_create_existing_name_updates(client, monkeypatch):
    updates = []

    def fake_update(table, filters, values, token=None):
        updates.append((filters, values))
        return [dict(JANE, **values)]

    monkeypatch.setattr(supabase, "select_rows", lambda table, params, token=None: [JANE])
    monkeypatch.setattr(supabase, "update_rows", fake_update)
    monkeypatch.setattr(supabase, "insert_row", lambda *a, **k: pytest.fail("should not insert"))

    r = client.post("/api/vcs", json={"name": "Jane Park", "firm_name": "Aisle Capital"}, headers=AUTH)

    assert r.status_code == 200
    assert r.json()["action"] == "updated"
    filters, values = updates[0]
    assert filters == {"id": "eq.vc-1"}
    assert values["firm_name"] == "Aisle Capital"
    assert values["role_title"] == "General Partner"


def test_update_requires_id(client):
    r = client.put("/api/vcs", json={"firm_name": "Aisle Capital"}, headers=AUTH)

    assert r.status_code == 400
    assert r.json()["detail"] == "VC ID is required for updates"


def test_update_ignores_unknown_columns(client, monkeypatch):
    seen = {}

    def fake_update(table, filters, values, token=None):
        seen.update(filters=filters, values=values)
        return [dict(JANE, **values)]

    monkeypatch.setattr(supabase, "update_rows", fake_update)

    r = client.put("/api/vcs", json={"id": "vc-1", "bio": "Backs grocery tech.", "is_admin": True}, headers=AUTH)

    assert r.status_code == 200
    assert seen["filters"] == {"id": "eq.vc-1"}
    assert seen["values"]["bio"] == "Backs grocery tech."
    assert "is_admin" not in seen["values"]


def test_update_missing_vc(client, monkeypatch):
    monkeypatch.setattr(supabase, "update_rows", lambda *a, **k: [])

    r = client.put("/api/vcs", json={"id": "nope", "bio": "x"}, headers=AUTH)

    assert r.status_code == 404


def test_delete_vc(client, monkeypatch):
    deleted = []
    monkeypatch.setattr(supabase, "delete_rows", lambda table, filters, token=None: deleted.append((table, filters)))

    r = client.delete("/api/vcs", params={"id": "vc-1"}, headers=AUTH)

    assert r.status_code == 200
    assert r.json() == {"success": True, "message": "VC deleted successfully"}
    assert deleted == [("vcs", {"id": "eq.vc-1"})]


def test_delete_requires_id(client):
    r = client.delete("/api/vcs", headers=AUTH)

    assert r.status_code == 400
    assert r.json()["detail"] == "VC ID is required for deletion"
