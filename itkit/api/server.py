from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Dict, Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from itkit.api.envelope import register_exception_handlers
from itkit.api.routes import analytics, articles, auth, categories, feedback, search, tags
from itkit.auth.crud import bootstrap_admin_if_needed
from itkit.config import Config, load_config
from itkit.store import Database
from itkit.util.time import utcnow_iso


def _debug(msg: str) -> None:
    print(f"[api] {msg}")


def create_app(cfg: Optional[Config] = None) -> FastAPI:
    """Build the API app.

    The data-access handle is created here and lives on `app.state.db` for the
    lifetime of the process; the schema is ensured at startup.
    """
    cfg = cfg or load_config()
    db = Database(cfg.DB_DSN)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        db.init()
        boot = bootstrap_admin_if_needed(cfg, db)
        if boot:
            _debug(f"Bootstrapped initial admin user: email={boot.get('email')} role={boot.get('role')}")
        _debug(f"ITKit API ready (env={cfg.APP_ENV}, db={db.dialect})")
        yield

    app = FastAPI(title="ITKit API", version=cfg.APP_VERSION, lifespan=lifespan)
    app.state.cfg = cfg
    app.state.db = db

    # The frontend runs on its own origin in development (FRONTEND_URL).
    origins = [o.strip() for o in (cfg.CORS_ALLOW_ORIGINS or "").split(",") if o.strip()]
    if origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=origins,
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    register_exception_handlers(app)

    # -----------------------------
    # Health / info
    # -----------------------------

    @app.get("/health")
    def health() -> Dict[str, Any]:
        return {"status": "ok", "message": "ITKit Backend API is running", "timestamp": utcnow_iso()}

    @app.get("/api")
    def api_info() -> Dict[str, Any]:
        return {"message": "Welcome to ITKit API", "version": cfg.APP_VERSION}

    # -----------------------------
    # Resources
    # -----------------------------

    app.include_router(auth.router, prefix="/api/auth", tags=["auth"])
    app.include_router(articles.router, prefix="/api/articles", tags=["articles"])
    app.include_router(categories.router, prefix="/api/categories", tags=["categories"])
    app.include_router(feedback.router, prefix="/api/feedback", tags=["feedback"])
    app.include_router(search.router, prefix="/api/search", tags=["search"])
    app.include_router(tags.router, prefix="/api/tags", tags=["tags"])
    app.include_router(analytics.router, prefix="/api/analytics", tags=["analytics"])

    return app


app = create_app()
