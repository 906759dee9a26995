from __future__ import annotations

from typing import Any, Dict, Optional

from itkit.config import Config
from itkit.models import USER_ROLES, User
from itkit.store import ConflictError, Database

from .security import hash_password, verify_password


def normalize_email(email: str) -> str:
    return (email or "").strip().lower()


def get_user_by_email(db: Database, email: str) -> Optional[User]:
    e = normalize_email(email)
    if not e:
        return None
    return db.table("users").select().eq("email", e).limit(1).execute().first()


def get_user_by_id(db: Database, user_id: str) -> Optional[User]:
    if not user_id:
        return None
    return db.table("users").select().eq("id", str(user_id)).limit(1).execute().first()


def verify_user_credentials(db: Database, email: str, password: str) -> Optional[User]:
    user = get_user_by_email(db, email)
    if user is None:
        return None
    if not verify_password(password, user.password_hash):
        return None
    return user


def create_user(
    db: Database,
    *,
    email: str,
    password: str,
    full_name: str,
    role: str = "user",
) -> User:
    e = normalize_email(email)
    if not e:
        raise ValueError("email_blank")
    if role not in USER_ROLES:
        raise ValueError("invalid_role")

    # Use the normalized email for uniqueness checks.
    if get_user_by_email(db, e) is not None:
        raise ValueError("email_exists")

    try:
        res = db.table("users").insert(
            {
                "email": e,
                "password_hash": hash_password(password),
                "full_name": (full_name or "").strip(),
                "role": role,
            }
        ).execute()
    except ConflictError:
        # Lost a race with a concurrent registration for the same email.
        raise ValueError("email_exists")

    user = res.first()
    assert user is not None
    return user


def update_full_name(db: Database, user_id: str, full_name: str) -> Optional[User]:
    res = db.table("users").update({"full_name": full_name.strip()}).eq("id", str(user_id)).execute()
    return res.first()


def count_users(db: Database) -> int:
    res = db.table("users").select(count=True).limit(0).execute()
    return int(res.count or 0)


def bootstrap_admin_if_needed(cfg: Config, db: Database) -> Optional[Dict[str, Any]]:
    """Create the first admin user if the users table is empty.

    Controlled via environment variables so a fresh deployment has a deterministic way to log in:

    - AUTH_BOOTSTRAP_ADMIN_EMAIL (default: admin@itkit.local)
    - AUTH_BOOTSTRAP_ADMIN_PASSWORD (default: admin123)

    This only runs when there are 0 rows in `users`.
    """
    if count_users(db) > 0:
        return None

    email = normalize_email(cfg.AUTH_BOOTSTRAP_ADMIN_EMAIL)
    password = cfg.AUTH_BOOTSTRAP_ADMIN_PASSWORD

    # If env explicitly clears these, don't create anything.
    if not email or not password:
        return None

    u = create_user(
        db,
        email=email,
        password=password,
        full_name=cfg.AUTH_BOOTSTRAP_ADMIN_NAME or "Admin",
        role="admin",
    )
    return u.public()
