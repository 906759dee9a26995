"""Authentication / authorization helpers.

Auth is intentionally lightweight:

- Users table (email/password hash + role: user | it_staff | admin)
- JWT access tokens (`Authorization: Bearer <token>`), signed with HS256, 7-day expiry

`get_current_user` is the single authentication dependency; `require_roles`
layers role checks on top of it per route.
"""

from .crud import bootstrap_admin_if_needed, create_user
from .deps import get_current_user, get_optional_user, require_admin, require_roles, require_staff

__all__ = [
    "get_current_user",
    "get_optional_user",
    "require_admin",
    "require_roles",
    "require_staff",
    "bootstrap_admin_if_needed",
    "create_user",
]
