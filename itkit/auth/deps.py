from __future__ import annotations

from typing import Callable, Optional

import jwt
from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from itkit.api.envelope import ApiError
from itkit.config import Config
from itkit.models import User
from itkit.store import Database

from .crud import get_user_by_id
from .security import decode_access_token


_bearer = HTTPBearer(auto_error=False)


def _unauthorized(error: str) -> ApiError:
    return ApiError(401, error, headers={"WWW-Authenticate": "Bearer"})


def get_config(request: Request) -> Config:
    cfg = getattr(request.app.state, "cfg", None)
    if cfg is None:
        raise ApiError(500, "Server configuration missing")
    return cfg


def get_db(request: Request) -> Database:
    db = getattr(request.app.state, "db", None)
    if db is None:
        raise ApiError(500, "Database not initialized")
    return db


def _user_from_token(token: str, cfg: Config, db: Database) -> User:
    try:
        payload = decode_access_token(token=token, secret=cfg.AUTH_JWT_SECRET)
    except (jwt.InvalidTokenError, ValueError):
        raise _unauthorized("Invalid or expired token")

    user_id = payload.get("id")
    if not user_id:
        raise _unauthorized("Invalid or expired token")

    try:
        user = get_user_by_id(db, str(user_id))
    except Exception:
        raise ApiError(500, "Authentication failed")
    if user is None:
        raise _unauthorized("User not found")
    return user


def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(_bearer),
    cfg: Config = Depends(get_config),
    db: Database = Depends(get_db),
) -> User:
    """Authenticate a request from `Authorization: Bearer <token>`.

    Verifies the token and loads the user row it names; the record is what
    handlers receive as the request's user.
    """
    if credentials is None or not credentials.credentials:
        raise _unauthorized("No token provided")
    return _user_from_token(credentials.credentials, cfg, db)


def get_optional_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(_bearer),
    cfg: Config = Depends(get_config),
    db: Database = Depends(get_db),
) -> Optional[User]:
    """Like get_current_user, but anonymous callers (or bad tokens) yield None."""
    if credentials is None or not credentials.credentials:
        return None
    try:
        return _user_from_token(credentials.credentials, cfg, db)
    except ApiError:
        return None


def require_roles(*roles: str) -> Callable[..., User]:
    """Dependency factory: authenticated user whose role is one of `roles`."""
    allowed = tuple(roles)

    def _dep(user: User = Depends(get_current_user)) -> User:
        if user.role not in allowed:
            raise ApiError(403, "You do not have permission to access this resource")
        return user

    return _dep


require_staff = require_roles("it_staff", "admin")
require_admin = require_roles("admin")
