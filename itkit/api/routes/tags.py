from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from itkit.api.envelope import ApiError, ok
from itkit.auth.deps import get_db, require_staff
from itkit.models import User
from itkit.store import ConflictError, Database
from itkit.util.text import slugify


router = APIRouter()


def _debug(msg: str) -> None:
    print(f"[tags] {msg}")


class CreateTagRequest(BaseModel):
    name: Optional[str] = None


@router.get("")
def list_tags(db: Database = Depends(get_db)) -> JSONResponse:
    try:
        tags = db.table("tags").select().order("name").execute().data
    except Exception as e:
        _debug(f"Get tags error: {e!r}")
        raise ApiError(500, "Server error while fetching tags")
    return ok([t.to_dict() for t in tags])


@router.post("")
def create_tag(
    payload: CreateTagRequest,
    _user: User = Depends(require_staff),
    db: Database = Depends(get_db),
) -> JSONResponse:
    name = (payload.name or "").strip()
    slug = slugify(name)
    if not slug:
        raise ApiError(400, "Tag name is required")

    try:
        if db.table("tags").select().eq("slug", slug).limit(1).execute().first() is not None:
            raise ApiError(400, "A tag with this name already exists")
        created = db.table("tags").insert({"name": name, "slug": slug}).execute().first()
    except ApiError:
        raise
    except ConflictError:
        raise ApiError(400, "A tag with this name already exists")
    except Exception as e:
        _debug(f"Create tag error: {e!r}")
        raise ApiError(500, "Server error while creating tag")

    assert created is not None
    return ok(created.to_dict(), message="Tag created successfully", status_code=201)
