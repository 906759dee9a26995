"""Password hashing and bearer tokens.

Tokens are HS256 JWTs carrying the caller's identity claims `{id, email, role}`
plus `iat` / `exp`. The API trusts only `id` from a verified token and reloads
the user row, so a role change takes effect on the next request.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any, Dict

import jwt
from passlib.context import CryptContext


JWT_ALGORITHM = "HS256"
IDENTITY_CLAIMS = ("id", "email", "role")

_pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")


def hash_password(password: str) -> str:
    if not password:
        raise ValueError("password_blank")
    return _pwd_context.hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    """False for a wrong password and for a stored hash passlib cannot identify."""
    if not (password and password_hash):
        return False
    try:
        return _pwd_context.verify(password, password_hash)
    except ValueError:
        return False


def create_access_token(
    *,
    secret: str,
    user_id: str,
    email: str,
    role: str,
    expires_minutes: int,
) -> str:
    if not secret:
        raise ValueError("jwt_secret_blank")

    issued = datetime.now(timezone.utc)
    claims: Dict[str, Any] = {
        "id": str(user_id),
        "email": email,
        "role": role,
        "iat": issued,
        "exp": issued + timedelta(minutes=max(1, int(expires_minutes))),
    }
    return jwt.encode(claims, secret, algorithm=JWT_ALGORITHM)


def decode_access_token(*, token: str, secret: str) -> Dict[str, Any]:
    """Verified claims of `token`.

    Raises jwt.InvalidTokenError (expired, bad signature, missing claims) or
    ValueError for blank input.
    """
    if not token or not secret:
        raise ValueError("token_or_secret_blank")
    return jwt.decode(
        token,
        secret,
        algorithms=[JWT_ALGORITHM],
        options={"require": ["exp", "iat", *IDENTITY_CLAIMS]},
    )
