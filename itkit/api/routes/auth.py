from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from itkit.api.envelope import ApiError, ok
from itkit.auth.crud import create_user, update_full_name, verify_user_credentials
from itkit.auth.deps import get_config, get_current_user, get_db
from itkit.auth.security import create_access_token
from itkit.config import Config
from itkit.models import User
from itkit.store import Database
from itkit.util.text import is_valid_email, validate_registration


router = APIRouter()


def _debug(msg: str) -> None:
    print(f"[auth] {msg}")


class RegisterRequest(BaseModel):
    email: Optional[str] = None
    password: Optional[str] = None
    full_name: Optional[str] = None


class LoginRequest(BaseModel):
    email: Optional[str] = None
    password: Optional[str] = None


class UpdateProfileRequest(BaseModel):
    full_name: Optional[str] = None


def _issue_token(cfg: Config, user: User) -> str:
    return create_access_token(
        secret=cfg.AUTH_JWT_SECRET,
        user_id=user.id,
        email=user.email,
        role=user.role,
        expires_minutes=int(cfg.AUTH_TOKEN_EXPIRE_MINUTES),
    )


@router.post("/register")
def register(
    payload: RegisterRequest,
    cfg: Config = Depends(get_config),
    db: Database = Depends(get_db),
) -> JSONResponse:
    email = (payload.email or "").strip()
    password = payload.password or ""
    full_name = payload.full_name or ""

    error = validate_registration(email, password, full_name)
    if error:
        raise ApiError(400, error)

    try:
        user = create_user(db, email=email, password=password, full_name=full_name, role="user")
    except ValueError as e:
        if str(e) == "email_exists":
            raise ApiError(400, "User with this email already exists")
        raise ApiError(400, str(e))
    except Exception as e:
        _debug(f"Registration error: {e!r}")
        raise ApiError(500, "Server error during registration")

    token = _issue_token(cfg, user)
    return ok(
        {"user": user.public(), "token": token},
        message="User registered successfully",
        status_code=201,
    )


@router.post("/login")
def login(
    payload: LoginRequest,
    cfg: Config = Depends(get_config),
    db: Database = Depends(get_db),
) -> JSONResponse:
    email = (payload.email or "").strip()
    password = payload.password or ""
    if not email or not password:
        raise ApiError(400, "Email and password are required")
    if not is_valid_email(email):
        raise ApiError(400, "Invalid email format")

    try:
        user = verify_user_credentials(db, email, password)
    except Exception as e:
        _debug(f"Login error: {e!r}")
        raise ApiError(500, "Server error during login")

    if user is None:
        raise ApiError(401, "Invalid email or password")

    token = _issue_token(cfg, user)
    return ok({"user": user.public(), "token": token}, message="Login successful")


@router.get("/profile")
def get_profile(user: User = Depends(get_current_user)) -> JSONResponse:
    return ok(user.public())


@router.put("/profile")
def update_profile(
    payload: UpdateProfileRequest,
    user: User = Depends(get_current_user),
    db: Database = Depends(get_db),
) -> JSONResponse:
    full_name = (payload.full_name or "").strip()
    if len(full_name) < 2:
        raise ApiError(400, "Full name must be at least 2 characters long")

    try:
        updated = update_full_name(db, user.id, full_name)
    except Exception as e:
        _debug(f"Update profile error: {e!r}")
        raise ApiError(500, "Failed to update profile")
    if updated is None:
        raise ApiError(500, "Failed to update profile")

    return ok(updated.public(), message="Profile updated successfully")
