from __future__ import annotations

import sys
from pathlib import Path
from typing import Any, Dict, Iterator, Optional

import pytest
from fastapi.testclient import TestClient

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from itkit.api.server import create_app
from itkit.auth.crud import create_user
from itkit.config import Config
from itkit.store import Database, DataAccessError, TableQuery


ADMIN_EMAIL = "admin@itkit.local"
ADMIN_PASSWORD = "admin123"
STAFF_EMAIL = "staff@example.com"
STAFF_PASSWORD = "staffpass"


@pytest.fixture()
def cfg(tmp_path: Path) -> Config:
    return Config(
        DB_DSN=str(tmp_path / "itkit.sqlite"),
        AUTH_JWT_SECRET="test-secret",
        AUTH_BOOTSTRAP_ADMIN_EMAIL=ADMIN_EMAIL,
        AUTH_BOOTSTRAP_ADMIN_PASSWORD=ADMIN_PASSWORD,
        CORS_ALLOW_ORIGINS="",
        API_BASE_URL="http://testserver/api",
        SUPPORT_EMAIL="help@example.com",
        WEB_COOKIE_SECURE=False,
    )


@pytest.fixture()
def client(cfg: Config) -> Iterator[TestClient]:
    # Entering the client runs the lifespan: schema + bootstrap admin.
    with TestClient(create_app(cfg)) as c:
        yield c


@pytest.fixture()
def db(client: TestClient) -> Database:
    return client.app.state.db


def bearer(token: str) -> Dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


def login(client: TestClient, email: str, password: str) -> str:
    r = client.post("/api/auth/login", json={"email": email, "password": password})
    assert r.status_code == 200, r.text
    return r.json()["data"]["token"]


@pytest.fixture()
def admin_token(client: TestClient) -> str:
    return login(client, ADMIN_EMAIL, ADMIN_PASSWORD)


@pytest.fixture()
def staff_token(client: TestClient, db: Database) -> str:
    create_user(db, email=STAFF_EMAIL, password=STAFF_PASSWORD, full_name="Sam Staff", role="it_staff")
    return login(client, STAFF_EMAIL, STAFF_PASSWORD)


@pytest.fixture()
def user_token(client: TestClient) -> str:
    r = client.post(
        "/api/auth/register",
        json={"email": "reader@example.com", "password": "readerpass", "full_name": "Riley Reader"},
    )
    assert r.status_code == 201, r.text
    return r.json()["data"]["token"]


@pytest.fixture()
def category(db: Database) -> Any:
    return db.table("categories").insert(
        {"name": "Network & VPN", "slug": "network-vpn", "icon": "🌐", "description": "Connectivity"}
    ).execute().first()


def make_article(
    client: TestClient,
    token: str,
    *,
    title: str,
    content: str = "<p>Restart the device. Then try again.</p>",
    status: str = "published",
    category_id: Optional[str] = None,
    **extra: Any,
) -> Dict[str, Any]:
    payload: Dict[str, Any] = {"title": title, "content": content, "status": status, **extra}
    if category_id:
        payload["category_id"] = category_id
    r = client.post("/api/articles", json=payload, headers=bearer(token))
    assert r.status_code == 201, r.text
    return r.json()["data"]


def break_queries(
    monkeypatch: pytest.MonkeyPatch,
    *,
    table: Optional[str] = None,
    action: Optional[str] = None,
) -> None:
    """Make matching TableQuery.execute calls fail as if the driver errored."""
    real_execute = TableQuery.execute

    def execute(self: TableQuery):
        if (table is None or self._table == table) and (action is None or self._action == action):
            raise DataAccessError(f"{self._table}: connection lost")
        return real_execute(self)

    monkeypatch.setattr(TableQuery, "execute", execute)
