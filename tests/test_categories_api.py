from __future__ import annotations

from fastapi.testclient import TestClient

from conftest import bearer, make_article


def test_list_categories_sorted_by_name(client: TestClient, db):
    for name, slug in (("Printers", "printers"), ("Accounts", "accounts")):
        db.table("categories").insert({"name": name, "slug": slug}).execute()
    data = client.get("/api/categories").json()["data"]
    assert [c["name"] for c in data] == ["Accounts", "Printers"]


def test_category_articles_only_published(client: TestClient, staff_token, category):
    make_article(client, staff_token, title="Connect to VPN", category_id=category.id)
    make_article(client, staff_token, title="VPN Draft", category_id=category.id, status="draft")

    body = client.get("/api/categories/network-vpn/articles").json()["data"]
    assert body["category"]["slug"] == "network-vpn"
    assert [a["title"] for a in body["articles"]] == ["Connect to VPN"]
    assert body["pagination"] == {"total": 1, "limit": 20, "offset": 0, "hasMore": False}


def test_unknown_category(client: TestClient):
    r = client.get("/api/categories/nope/articles")
    assert (r.status_code, r.json()["error"]) == (404, "Category not found")


def test_create_category_is_admin_only(client: TestClient, staff_token, admin_token):
    payload = {"name": "Mobile Devices", "icon": "📱"}
    assert client.post("/api/categories", json=payload, headers=bearer(staff_token)).status_code == 403

    r = client.post("/api/categories", json=payload, headers=bearer(admin_token))
    assert r.status_code == 201
    assert r.json()["data"]["slug"] == "mobile-devices"
    assert r.json()["data"]["icon"] == "📱"

    r = client.post("/api/categories", json=payload, headers=bearer(admin_token))
    assert r.status_code == 400


def test_tags_listing_and_creation(client: TestClient, staff_token, user_token):
    assert client.post("/api/tags", json={"name": "VPN"}, headers=bearer(user_token)).status_code == 403
    assert client.post("/api/tags", json={"name": "  "}, headers=bearer(staff_token)).status_code == 400

    assert client.post("/api/tags", json={"name": "VPN"}, headers=bearer(staff_token)).status_code == 201
    assert client.post("/api/tags", json={"name": "vpn"}, headers=bearer(staff_token)).status_code == 400
    assert [t["slug"] for t in client.get("/api/tags").json()["data"]] == ["vpn"]
