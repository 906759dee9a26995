from __future__ import annotations

from fastapi.testclient import TestClient

from conftest import bearer, break_queries, make_article


def _search_logs(db):
    return db.table("search_logs").select().execute().data


def test_query_validation_writes_no_log(client: TestClient, db):
    r = client.get("/api/search")
    assert (r.status_code, r.json()["error"]) == (400, "Search query is required")

    r = client.get("/api/search?q=%20v%20")
    assert (r.status_code, r.json()["error"]) == (400, "Search query must be at least 2 characters")

    assert _search_logs(db) == []


def test_ordered_list_quick_answer_and_source(client: TestClient, staff_token):
    make_article(
        client,
        staff_token,
        title="Connect to VPN",
        content="<p>Steps:</p><ol><li>Open client</li><li>Sign in</li><li>Connect</li></ol>",
    )
    body = client.get("/api/search?q=vpn").json()["data"]
    assert body["quickAnswer"] == "1. Open client\n2. Sign in\n3. Connect"
    assert body["sourceArticle"] == {"title": "Connect to VPN", "slug": "connect-to-vpn"}
    assert body["searchTerm"] == "vpn"
    assert body["totalResults"] == 1
    assert body["articles"][0]["author"]["full_name"] == "Sam Staff"


def test_curated_quick_answer_wins(client: TestClient, staff_token):
    make_article(
        client,
        staff_token,
        title="Printer Offline",
        content="<ol><li>Ignored</li></ol>",
        quick_answer="Power-cycle the printer.",
    )
    assert client.get("/api/search?q=printer").json()["data"]["quickAnswer"] == "Power-cycle the printer."


def test_only_published_articles_match(client: TestClient, staff_token):
    make_article(client, staff_token, title="Legacy Fax Setup", status="archived")
    make_article(client, staff_token, title="Fax Draft", status="draft")

    body = client.get("/api/search?q=fax").json()["data"]
    assert body["articles"] == []
    assert body["totalResults"] == 0
    assert body["quickAnswer"] is None
    assert body["sourceArticle"] is None


def test_results_ranked_by_views(client: TestClient, staff_token):
    make_article(client, staff_token, title="Email Basics")
    make_article(client, staff_token, title="Email Rules")
    for _ in range(3):
        client.get("/api/articles/email-rules")

    titles = [a["title"] for a in client.get("/api/search?q=EMAIL").json()["data"]["articles"]]
    assert titles == ["Email Rules", "Email Basics"]


def test_search_is_logged_with_user_and_top_result(client: TestClient, db, staff_token, user_token):
    a = make_article(client, staff_token, title="Reset Password")

    client.get("/api/search?q=password", headers=bearer(user_token))
    client.get("/api/search?q=nothing-here")

    logs = sorted(_search_logs(db), key=lambda s: s.created_at)
    assert [(s.search_term, s.results_count) for s in logs] == [("password", 1), ("nothing-here", 0)]
    assert logs[0].top_result_id == a["id"]
    assert logs[0].user_id is not None
    assert logs[1].top_result_id is None
    assert logs[1].user_id is None


def test_bad_token_on_search_is_treated_as_anonymous(client: TestClient, db, staff_token):
    make_article(client, staff_token, title="Laptop Battery")
    r = client.get("/api/search?q=battery", headers=bearer("not-a-token"))
    assert r.status_code == 200
    assert _search_logs(db)[0].user_id is None


def test_non_ascii_terms_match_case_insensitively(client: TestClient, staff_token):
    make_article(client, staff_token, title="Ärger mit Drucker")
    body = client.get("/api/search", params={"q": "ärger"}).json()["data"]
    assert body["totalResults"] == 1
    assert body["sourceArticle"]["title"] == "Ärger mit Drucker"


def test_data_access_failure_returns_500_without_data(client: TestClient, staff_token, monkeypatch):
    make_article(client, staff_token, title="Connect to VPN")
    break_queries(monkeypatch, table="articles")

    r = client.get("/api/search?q=vpn")
    assert r.status_code == 500
    assert r.json() == {"success": False, "error": "Server error while searching"}


def test_failed_search_log_still_returns_results(client: TestClient, db, staff_token, monkeypatch):
    make_article(client, staff_token, title="Connect to VPN")
    break_queries(monkeypatch, table="search_logs", action="insert")

    r = client.get("/api/search?q=vpn")
    assert r.status_code == 200
    assert r.json()["data"]["totalResults"] == 1

    monkeypatch.undo()
    assert _search_logs(db) == []
