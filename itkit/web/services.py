from __future__ import annotations

from typing import Any, Dict, List, Optional

from itkit.web.api import ApiClient


class ArticleService:
    def __init__(self, api: ApiClient):
        self.api = api

    def list(
        self,
        *,
        status: Optional[str] = None,
        category: Optional[str] = None,
        limit: int = 20,
        offset: int = 0,
    ) -> Dict[str, Any]:
        """Returns `{"data": [...], "pagination": {...}}`."""
        body = self.api.get("/articles", status=status, category=category, limit=limit, offset=offset)
        return {"data": body.get("data") or [], "pagination": body.get("pagination") or {}}

    def get_by_slug(self, slug: str) -> Dict[str, Any]:
        return self.api.get(f"/articles/{slug}").get("data") or {}

    def create(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        return self.api.post("/articles", payload).get("data") or {}

    def update(self, article_id: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        return self.api.put(f"/articles/{article_id}", payload).get("data") or {}

    def delete(self, article_id: str) -> None:
        self.api.delete(f"/articles/{article_id}")


class CategoryService:
    def __init__(self, api: ApiClient):
        self.api = api

    def list(self) -> List[Dict[str, Any]]:
        return self.api.get("/categories").get("data") or []

    def articles(self, slug: str, *, limit: int = 20, offset: int = 0) -> Dict[str, Any]:
        return self.api.get(f"/categories/{slug}/articles", limit=limit, offset=offset).get("data") or {}

    def create(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        return self.api.post("/categories", payload).get("data") or {}


class TagService:
    def __init__(self, api: ApiClient):
        self.api = api

    def list(self) -> List[Dict[str, Any]]:
        return self.api.get("/tags").get("data") or []


class SearchService:
    def __init__(self, api: ApiClient):
        self.api = api

    def search(self, q: str) -> Dict[str, Any]:
        return self.api.get("/search", q=q).get("data") or {}


class FeedbackService:
    def __init__(self, api: ApiClient):
        self.api = api

    def submit_helpful(self, article_id: str, is_helpful: bool, comment: Optional[str] = None) -> None:
        payload: Dict[str, Any] = {"article_id": article_id, "is_helpful": bool(is_helpful)}
        if comment:
            payload["comment"] = comment
        self.api.post("/feedback/helpful", payload)

    def mark_ticket_prevented(self, article_id: str, issue_type: Optional[str] = None) -> None:
        payload: Dict[str, Any] = {"article_id": article_id}
        if issue_type:
            payload["issue_type"] = issue_type
        self.api.post("/feedback/ticket-prevented", payload)


class AuthService:
    def __init__(self, api: ApiClient):
        self.api = api

    def login(self, email: str, password: str) -> Dict[str, Any]:
        """Returns `{"user": {...}, "token": "..."}`."""
        return self.api.post("/auth/login", {"email": email, "password": password}).get("data") or {}

    def register(self, email: str, password: str, full_name: str) -> Dict[str, Any]:
        payload = {"email": email, "password": password, "full_name": full_name}
        return self.api.post("/auth/register", payload).get("data") or {}

    def profile(self) -> Dict[str, Any]:
        return self.api.get("/auth/profile").get("data") or {}

    def update_profile(self, full_name: str) -> Dict[str, Any]:
        return self.api.put("/auth/profile", {"full_name": full_name}).get("data") or {}


class AnalyticsService:
    def __init__(self, api: ApiClient):
        self.api = api

    def summary(self) -> Dict[str, Any]:
        return self.api.get("/analytics/summary").get("data") or {}
