from __future__ import annotations

from fastapi.testclient import TestClient

from conftest import bearer, break_queries, make_article


def test_listing_defaults_to_published_with_pagination(client: TestClient, staff_token, category):
    make_article(client, staff_token, title="Connect to VPN", category_id=category.id)
    make_article(client, staff_token, title="Reset MFA")
    make_article(client, staff_token, title="Draft Notes", status="draft")

    r = client.get("/api/articles?limit=1")
    assert r.status_code == 200
    body = r.json()
    assert body["pagination"] == {"total": 2, "limit": 1, "offset": 0, "hasMore": True}
    assert len(body["data"]) == 1

    titles = {a["title"] for a in client.get("/api/articles").json()["data"]}
    assert titles == {"Connect to VPN", "Reset MFA"}


def test_list_items_embed_category_and_author(client: TestClient, staff_token, category):
    make_article(client, staff_token, title="Connect to VPN", category_id=category.id)
    item = client.get("/api/articles").json()["data"][0]
    assert item["category"] == {"id": category.id, "name": "Network & VPN", "slug": "network-vpn", "icon": "🌐"}
    assert item["author"]["full_name"] == "Sam Staff"
    assert "email" not in item["author"]


def test_filter_by_category_slug(client: TestClient, staff_token, category):
    make_article(client, staff_token, title="Connect to VPN", category_id=category.id)
    make_article(client, staff_token, title="Printer Jam")

    data = client.get("/api/articles?category=network-vpn").json()["data"]
    assert [a["title"] for a in data] == ["Connect to VPN"]


def test_draft_visible_to_staff_only_with_status_filter(client: TestClient, staff_token, user_token):
    make_article(client, staff_token, title="Secret Draft", status="draft")

    assert client.get("/api/articles").json()["data"] == []

    r = client.get("/api/articles?status=draft", headers=bearer(staff_token))
    assert [a["title"] for a in r.json()["data"]] == ["Secret Draft"]

    r = client.get("/api/articles?status=all", headers=bearer(staff_token))
    assert r.json()["pagination"]["total"] == 1

    assert client.get("/api/articles?status=draft").status_code == 403
    assert client.get("/api/articles?status=draft", headers=bearer(user_token)).status_code == 403


def test_invalid_status_filter(client: TestClient, staff_token):
    r = client.get("/api/articles?status=deleted", headers=bearer(staff_token))
    assert r.status_code == 400


def test_get_by_slug_increments_views_and_includes_detail(client: TestClient, staff_token):
    created = make_article(client, staff_token, title="How to Connect to VPN")
    assert created["slug"] == "how-to-connect-to-vpn"
    assert created["view_count"] == 0

    first = client.get("/api/articles/how-to-connect-to-vpn").json()["data"]
    second = client.get("/api/articles/how-to-connect-to-vpn").json()["data"]
    assert (first["view_count"], second["view_count"]) == (1, 2)
    assert second["author"]["email"] == "staff@example.com"
    assert second["tags"] == []


def test_hidden_articles_are_not_found_by_slug(client: TestClient, staff_token):
    make_article(client, staff_token, title="Work In Progress", status="draft")
    r = client.get("/api/articles/work-in-progress")
    assert (r.status_code, r.json()["error"]) == (404, "Article not found")
    assert client.get("/api/articles/work-in-progress", headers=bearer(staff_token)).status_code == 200
    assert client.get("/api/articles/does-not-exist").status_code == 404


def test_increment_view_endpoint(client: TestClient, staff_token):
    a = make_article(client, staff_token, title="Counter")
    r = client.post(f"/api/articles/{a['id']}/view")
    assert r.status_code == 200
    assert r.json()["message"] == "View count updated"
    assert client.post("/api/articles/missing/view").status_code == 404


def test_create_requires_staff(client: TestClient, user_token):
    payload = {"title": "Nope", "content": "<p>x</p>"}
    r = client.post("/api/articles", json=payload)
    assert (r.status_code, r.json()["error"]) == (401, "No token provided")

    r = client.post("/api/articles", json=payload, headers=bearer(user_token))
    assert (r.status_code, r.json()["error"]) == (403, "You do not have permission to access this resource")


def test_create_validation(client: TestClient, staff_token):
    r = client.post("/api/articles", json={"title": "Only title"}, headers=bearer(staff_token))
    assert (r.status_code, r.json()["error"]) == (400, "Title and content are required")

    make_article(client, staff_token, title="Unique Title")
    r = client.post("/api/articles", json={"title": "unique title!", "content": "<p>x</p>"}, headers=bearer(staff_token))
    assert (r.status_code, r.json()["error"]) == (400, "An article with this title already exists")

    r = client.post(
        "/api/articles",
        json={"title": "Bad Category", "content": "<p>x</p>", "category_id": "nope"},
        headers=bearer(staff_token),
    )
    assert (r.status_code, r.json()["error"]) == (400, "Category not found")


def test_create_defaults_to_draft_and_computes_read_time(client: TestClient, staff_token):
    content = "<p>" + "word " * 450 + "</p>"
    r = client.post("/api/articles", json={"title": "Long Read", "content": content}, headers=bearer(staff_token))
    assert r.status_code == 201
    data = r.json()["data"]
    assert data["status"] == "draft"
    assert data["estimated_read_time"] == 3
    assert r.json()["message"] == "Article created successfully"


def test_update_article(client: TestClient, staff_token, category):
    a = make_article(client, staff_token, title="Old Title", quick_answer="Do the thing.", category_id=category.id)

    r = client.put(
        f"/api/articles/{a['id']}",
        json={"title": "New Title", "status": "archived", "quick_answer": None},
        headers=bearer(staff_token),
    )
    assert r.status_code == 200
    data = r.json()["data"]
    assert data["slug"] == "new-title"
    assert data["status"] == "archived"
    assert data["quick_answer"] is None
    # Fields not sent are left alone.
    assert data["category"]["id"] == category.id
    assert data["content"] == a["content"]


def test_update_rejects_slug_collision_and_unknown_article(client: TestClient, staff_token):
    make_article(client, staff_token, title="First")
    second = make_article(client, staff_token, title="Second")

    r = client.put(f"/api/articles/{second['id']}", json={"title": "First"}, headers=bearer(staff_token))
    assert (r.status_code, r.json()["error"]) == (400, "An article with this title already exists")

    r = client.put("/api/articles/missing", json={"title": "X Y"}, headers=bearer(staff_token))
    assert r.status_code == 404


def test_tags_are_linked_and_replaced(client: TestClient, staff_token):
    vpn = client.post("/api/tags", json={"name": "VPN"}, headers=bearer(staff_token)).json()["data"]
    wifi = client.post("/api/tags", json={"name": "Wi-Fi"}, headers=bearer(staff_token)).json()["data"]

    a = make_article(client, staff_token, title="Tagged", tags=[vpn["id"]])
    assert [t["name"] for t in a["tags"]] == ["VPN"]

    r = client.put(f"/api/articles/{a['id']}", json={"tags": [wifi["id"]]}, headers=bearer(staff_token))
    assert [t["name"] for t in r.json()["data"]["tags"]] == ["Wi-Fi"]

    r = client.put(f"/api/articles/{a['id']}", json={"tags": ["unknown"]}, headers=bearer(staff_token))
    assert r.status_code == 400


def test_delete_is_admin_only(client: TestClient, staff_token, admin_token):
    a = make_article(client, staff_token, title="Short Lived")

    r = client.delete(f"/api/articles/{a['id']}", headers=bearer(staff_token))
    assert r.status_code == 403

    r = client.delete(f"/api/articles/{a['id']}", headers=bearer(admin_token))
    assert (r.status_code, r.json()["message"]) == (200, "Article deleted successfully")
    assert client.get("/api/articles/short-lived").status_code == 404
    assert client.delete(f"/api/articles/{a['id']}", headers=bearer(admin_token)).status_code == 404


def test_listing_data_access_failure_returns_500(client: TestClient, staff_token, monkeypatch):
    make_article(client, staff_token, title="Connect to VPN")
    break_queries(monkeypatch)

    r = client.get("/api/articles")
    assert r.status_code == 500
    assert r.json() == {"success": False, "error": "Server error while fetching articles"}

    r = client.get("/api/articles/connect-to-vpn")
    assert r.status_code == 500
    assert r.json() == {"success": False, "error": "Server error while fetching article"}
