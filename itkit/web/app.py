from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, List, Optional

from fastapi import FastAPI, Request
from fastapi.responses import HTMLResponse, JSONResponse, RedirectResponse, Response
from fastapi.staticfiles import StaticFiles
from fastapi.templating import Jinja2Templates

from itkit.config import Config, load_config
from itkit.models import ARTICLE_STATUSES, STAFF_ROLES
from itkit.web.api import ApiClient, ApiClientError
from itkit.web.services import (
    AnalyticsService,
    ArticleService,
    AuthService,
    CategoryService,
    FeedbackService,
    SearchService,
    TagService,
)


BASE_DIR = Path(__file__).resolve().parent

HOME_ARTICLE_LIMIT = 10
RELATED_ARTICLE_LIMIT = 3
ADMIN_ARTICLE_LIMIT = 100
ADMIN_STATUS_FILTERS = ("all",) + ARTICLE_STATUSES


def _debug(msg: str) -> None:
    print(f"[web] {msg}")


# -----------------------------
# Request helpers
# -----------------------------


def _cfg(request: Request) -> Config:
    return request.app.state.cfg


def _token(request: Request) -> Optional[str]:
    return request.cookies.get(_cfg(request).WEB_COOKIE_NAME) or None


def _api(request: Request) -> ApiClient:
    base: ApiClient = request.app.state.api
    return base.with_token(_token(request))


def _current_user(request: Request) -> Optional[Dict[str, Any]]:
    """Resolve the signed-in user from the session cookie (cached per request)."""
    if hasattr(request.state, "user"):
        return request.state.user
    user = None
    if _token(request):
        try:
            user = AuthService(_api(request)).profile() or None
        except ApiClientError as e:
            _debug(f"Session token rejected: {e.error}")
    request.state.user = user
    return user


def _is_staff(user: Optional[Dict[str, Any]]) -> bool:
    return bool(user) and user.get("role") in STAFF_ROLES


def _render(request: Request, template: str, context: Dict[str, Any], status_code: int = 200) -> HTMLResponse:
    cfg = _cfg(request)
    user = _current_user(request)
    base = {
        "user": user,
        "is_staff": _is_staff(user),
        "is_admin": bool(user) and user.get("role") == "admin",
        "support_email": cfg.SUPPORT_EMAIL,
        "app_version": cfg.APP_VERSION,
    }
    base.update(context)
    return request.app.state.templates.TemplateResponse(request, template, base, status_code=status_code)


def _error_page(request: Request, err: ApiClientError) -> HTMLResponse:
    status = err.status_code if 400 <= err.status_code < 600 else 502
    return _render(request, "error.html", {"status_code": status, "error": err.error}, status_code=status)


def _set_session_cookie(response: Response, *, token: str, cfg: Config) -> None:
    response.set_cookie(
        key=cfg.WEB_COOKIE_NAME,
        value=str(token),
        httponly=True,
        samesite=cfg.WEB_COOKIE_SAMESITE,
        secure=cfg.WEB_COOKIE_SECURE,
        max_age=int(cfg.AUTH_TOKEN_EXPIRE_MINUTES) * 60,
        path="/",
    )


def _clear_session_cookie(response: Response, *, cfg: Config) -> None:
    response.delete_cookie(key=cfg.WEB_COOKIE_NAME, path="/")


def _wants_json(request: Request) -> bool:
    return request.headers.get("x-requested-with", "").lower() == "fetch"


def _form_str(form: Any, key: str) -> str:
    return str(form.get(key) or "").strip()


def _article_payload(form: Any) -> Dict[str, Any]:
    return {
        "title": _form_str(form, "title"),
        "content": str(form.get("content") or ""),
        "quick_answer": _form_str(form, "quick_answer") or None,
        "category_id": _form_str(form, "category_id") or None,
        "status": _form_str(form, "status") or "draft",
        "tags": [str(t) for t in form.getlist("tags") if t],
    }


def _related(articles: List[Dict[str, Any]], current_id: str) -> List[Dict[str, Any]]:
    return [a for a in articles if a.get("id") != current_id][:RELATED_ARTICLE_LIMIT]


def _search_context(request: Request, q: str) -> Dict[str, Any]:
    term = (q or "").strip()
    ctx: Dict[str, Any] = {"q": term, "result": None, "error": None}
    if len(term) < 2:
        return ctx
    try:
        ctx["result"] = SearchService(_api(request)).search(term)
    except ApiClientError as e:
        ctx["error"] = e.error
    return ctx


# -----------------------------
# App factory
# -----------------------------


def create_web_app(cfg: Optional[Config] = None, *, session: Any = None) -> FastAPI:
    """Server-rendered ITKit frontend.

    Every page is backed by calls to the REST API at `cfg.API_BASE_URL`.
    `session` replaces the underlying HTTP session (tests wire this to the API
    app's TestClient).
    """
    cfg = cfg or load_config()

    app = FastAPI(title="ITKit", version=cfg.APP_VERSION, docs_url=None, redoc_url=None, openapi_url=None)
    app.state.cfg = cfg
    app.state.api = ApiClient(cfg.API_BASE_URL, timeout=cfg.API_TIMEOUT_SECONDS, session=session)
    app.state.templates = Jinja2Templates(directory=str(BASE_DIR / "templates"))
    app.mount("/static", StaticFiles(directory=str(BASE_DIR / "static")), name="static")

    # -----------------------------
    # Public pages
    # -----------------------------

    @app.get("/", response_class=HTMLResponse)
    def home(request: Request) -> HTMLResponse:
        api = _api(request)
        try:
            listing = ArticleService(api).list(limit=HOME_ARTICLE_LIMIT)
            categories = CategoryService(api).list()
        except ApiClientError as e:
            return _error_page(request, e)
        return _render(request, "home.html", {"articles": listing["data"], "categories": categories})

    @app.get("/category/{slug}", response_class=HTMLResponse)
    def category_page(request: Request, slug: str, offset: int = 0) -> HTMLResponse:
        try:
            data = CategoryService(_api(request)).articles(slug, offset=max(0, offset))
        except ApiClientError as e:
            return _error_page(request, e)
        return _render(
            request,
            "category.html",
            {
                "category": data.get("category") or {},
                "articles": data.get("articles") or [],
                "pagination": data.get("pagination") or {},
            },
        )

    @app.get("/article/{slug}", response_class=HTMLResponse)
    def article_page(request: Request, slug: str, feedback: Optional[str] = None) -> HTMLResponse:
        api = _api(request)
        try:
            article = ArticleService(api).get_by_slug(slug)
        except ApiClientError as e:
            return _error_page(request, e)

        related: List[Dict[str, Any]] = []
        category = article.get("category") or {}
        if category.get("slug"):
            try:
                listing = ArticleService(api).list(category=category["slug"], limit=RELATED_ARTICLE_LIMIT + 1)
                related = _related(listing["data"], article.get("id", ""))
            except ApiClientError as e:
                _debug(f"Related articles unavailable for {slug}: {e.error}")

        return _render(request, "article.html", {"article": article, "related": related, "feedback": feedback})

    @app.get("/search", response_class=HTMLResponse)
    def search_page(request: Request, q: str = "") -> HTMLResponse:
        return _render(request, "search.html", _search_context(request, q))

    @app.get("/search/results", response_class=HTMLResponse)
    def search_results(request: Request, q: str = "") -> HTMLResponse:
        """Results fragment for the live (debounced) search box."""
        return _render(request, "_search_results.html", _search_context(request, q))

    # -----------------------------
    # Feedback
    # -----------------------------

    @app.post("/feedback/helpful")
    async def feedback_helpful(request: Request) -> Response:
        form = await request.form()
        article_id = _form_str(form, "article_id")
        slug = _form_str(form, "slug")
        is_helpful = _form_str(form, "is_helpful").lower() in ("1", "true", "yes")
        try:
            FeedbackService(_api(request)).submit_helpful(article_id, is_helpful, _form_str(form, "comment") or None)
        except ApiClientError as e:
            if _wants_json(request):
                return JSONResponse({"success": False, "error": e.error}, status_code=e.status_code)
            return _error_page(request, e)

        if _wants_json(request):
            return JSONResponse({"success": True, "message": "Thanks for your feedback!"})
        return RedirectResponse(url=f"/article/{slug}?feedback=thanks", status_code=303)

    @app.post("/feedback/ticket-prevented")
    async def feedback_ticket_prevented(request: Request) -> Response:
        form = await request.form()
        article_id = _form_str(form, "article_id")
        slug = _form_str(form, "slug")
        try:
            FeedbackService(_api(request)).mark_ticket_prevented(article_id, _form_str(form, "issue_type") or None)
        except ApiClientError as e:
            if _wants_json(request):
                return JSONResponse({"success": False, "error": e.error}, status_code=e.status_code)
            return _error_page(request, e)

        if _wants_json(request):
            return JSONResponse({"success": True, "message": "Great! Glad we could help."})
        return RedirectResponse(url=f"/article/{slug}?feedback=solved", status_code=303)

    # -----------------------------
    # Session
    # -----------------------------

    @app.get("/login", response_class=HTMLResponse)
    def login_page(request: Request) -> HTMLResponse:
        return _render(request, "login.html", {"email": "", "error": None})

    @app.post("/login")
    async def login_submit(request: Request) -> Response:
        form = await request.form()
        email = _form_str(form, "email")
        password = str(form.get("password") or "")
        try:
            data = AuthService(request.app.state.api).login(email, password)
        except ApiClientError as e:
            return _render(request, "login.html", {"email": email, "error": e.error}, status_code=e.status_code)

        user = data.get("user") or {}
        target = "/admin" if _is_staff(user) else "/"
        response = RedirectResponse(url=target, status_code=303)
        _set_session_cookie(response, token=str(data.get("token") or ""), cfg=cfg)
        _debug(f"Signed in {user.get('email')} role={user.get('role')}")
        return response

    @app.get("/register", response_class=HTMLResponse)
    def register_page(request: Request) -> HTMLResponse:
        return _render(request, "register.html", {"email": "", "full_name": "", "error": None})

    @app.post("/register")
    async def register_submit(request: Request) -> Response:
        form = await request.form()
        email = _form_str(form, "email")
        full_name = _form_str(form, "full_name")
        password = str(form.get("password") or "")
        try:
            data = AuthService(request.app.state.api).register(email, password, full_name)
        except ApiClientError as e:
            ctx = {"email": email, "full_name": full_name, "error": e.error}
            return _render(request, "register.html", ctx, status_code=e.status_code)

        response = RedirectResponse(url="/", status_code=303)
        _set_session_cookie(response, token=str(data.get("token") or ""), cfg=cfg)
        return response

    @app.post("/logout")
    def logout(request: Request) -> Response:
        response = RedirectResponse(url="/", status_code=303)
        _clear_session_cookie(response, cfg=cfg)
        return response

    @app.get("/profile", response_class=HTMLResponse)
    def profile_page(request: Request, msg: Optional[str] = None) -> Response:
        user = _current_user(request)
        if user is None:
            return RedirectResponse(url="/login", status_code=303)
        ctx = {"full_name": user.get("full_name") or "", "error": None, "msg": msg}
        return _render(request, "profile.html", ctx)

    @app.post("/profile")
    async def profile_submit(request: Request) -> Response:
        if _current_user(request) is None:
            return RedirectResponse(url="/login", status_code=303)
        form = await request.form()
        full_name = _form_str(form, "full_name")
        try:
            updated = AuthService(_api(request)).update_profile(full_name)
        except ApiClientError as e:
            ctx = {"full_name": full_name, "error": e.error, "msg": None}
            return _render(request, "profile.html", ctx, status_code=e.status_code)
        _debug(f"Profile updated for {updated.get('email')}")
        return RedirectResponse(url="/profile?msg=saved", status_code=303)

    # -----------------------------
    # Admin
    # -----------------------------

    def _staff_gate(request: Request) -> Optional[Response]:
        user = _current_user(request)
        if user is None:
            return RedirectResponse(url="/login", status_code=303)
        if not _is_staff(user):
            err = ApiClientError(403, "You do not have permission to access this resource")
            return _error_page(request, err)
        return None

    @app.get("/admin", response_class=HTMLResponse)
    def admin_dashboard(request: Request, status: str = "all", msg: Optional[str] = None) -> Response:
        gate = _staff_gate(request)
        if gate is not None:
            return gate

        st = status if status in ADMIN_STATUS_FILTERS else "all"
        api = _api(request)
        try:
            listing = ArticleService(api).list(status=st, limit=ADMIN_ARTICLE_LIMIT)
            summary = AnalyticsService(api).summary()
        except ApiClientError as e:
            return _error_page(request, e)

        return _render(
            request,
            "admin/dashboard.html",
            {
                "articles": listing["data"],
                "pagination": listing["pagination"],
                "summary": summary,
                "status": st,
                "status_filters": ADMIN_STATUS_FILTERS,
                "msg": msg,
            },
        )

    def _form_context(request: Request, article: Dict[str, Any], *, error: Optional[str] = None) -> Dict[str, Any]:
        api = _api(request)
        # API detail rows carry nested category / tag objects; re-posted forms carry ids.
        category = article.get("category") or {}
        linked = article.get("tags") or []
        return {
            "article": article,
            "editing": bool(article.get("id")),
            "current_category_id": article.get("category_id") or category.get("id") or "",
            "selected_tags": [t.get("id") if isinstance(t, dict) else t for t in linked],
            "categories": CategoryService(api).list(),
            "tags": TagService(api).list(),
            "statuses": ARTICLE_STATUSES,
            "error": error,
        }

    @app.get("/admin/articles/new", response_class=HTMLResponse)
    def new_article_page(request: Request) -> Response:
        gate = _staff_gate(request)
        if gate is not None:
            return gate
        try:
            ctx = _form_context(request, {"status": "published"})
        except ApiClientError as e:
            return _error_page(request, e)
        return _render(request, "admin/article_form.html", ctx)

    @app.post("/admin/articles/new")
    async def new_article_submit(request: Request) -> Response:
        gate = _staff_gate(request)
        if gate is not None:
            return gate
        form = await request.form()
        payload = _article_payload(form)
        try:
            ArticleService(_api(request)).create(payload)
        except ApiClientError as e:
            ctx = _form_context(request, payload, error=e.error)
            return _render(request, "admin/article_form.html", ctx, status_code=e.status_code)
        return RedirectResponse(url="/admin?msg=created", status_code=303)

    @app.get("/admin/articles/{slug}/edit", response_class=HTMLResponse)
    def edit_article_page(request: Request, slug: str) -> Response:
        gate = _staff_gate(request)
        if gate is not None:
            return gate
        try:
            article = ArticleService(_api(request)).get_by_slug(slug)
            ctx = _form_context(request, article)
        except ApiClientError as e:
            return _error_page(request, e)
        return _render(request, "admin/article_form.html", ctx)

    @app.post("/admin/articles/{article_id}/update")
    async def edit_article_submit(request: Request, article_id: str) -> Response:
        gate = _staff_gate(request)
        if gate is not None:
            return gate
        form = await request.form()
        payload = _article_payload(form)
        try:
            ArticleService(_api(request)).update(article_id, payload)
        except ApiClientError as e:
            ctx = _form_context(request, dict(payload, id=article_id), error=e.error)
            return _render(request, "admin/article_form.html", ctx, status_code=e.status_code)
        return RedirectResponse(url="/admin?msg=updated", status_code=303)

    @app.post("/admin/articles/{article_id}/delete")
    def delete_article_submit(request: Request, article_id: str) -> Response:
        gate = _staff_gate(request)
        if gate is not None:
            return gate
        try:
            ArticleService(_api(request)).delete(article_id)
        except ApiClientError as e:
            return _error_page(request, e)
        return RedirectResponse(url="/admin?msg=deleted", status_code=303)

    def _categories_page(
        request: Request,
        form: Dict[str, str],
        *,
        error: Optional[str] = None,
        status_code: int = 200,
    ) -> Response:
        try:
            categories = CategoryService(_api(request)).list()
        except ApiClientError as e:
            return _error_page(request, e)
        ctx = {"categories": categories, "form": form, "error": error}
        return _render(request, "admin/categories.html", ctx, status_code=status_code)

    @app.get("/admin/categories", response_class=HTMLResponse)
    def categories_admin_page(request: Request) -> Response:
        gate = _staff_gate(request)
        if gate is not None:
            return gate
        return _categories_page(request, {})

    @app.post("/admin/categories")
    async def categories_admin_submit(request: Request) -> Response:
        gate = _staff_gate(request)
        if gate is not None:
            return gate
        form = await request.form()
        payload = {k: _form_str(form, k) or None for k in ("name", "slug", "icon", "description")}
        try:
            created = CategoryService(_api(request)).create(payload)
        except ApiClientError as e:
            shown = {k: v or "" for k, v in payload.items()}
            return _categories_page(request, shown, error=e.error, status_code=e.status_code)
        _debug(f"Created category {created.get('slug')}")
        return RedirectResponse(url="/admin/categories", status_code=303)

    return app


app = create_web_app()
