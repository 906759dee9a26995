from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from itkit.api.envelope import ApiError, ok, pagination
from itkit.api.shaping import article_list_items
from itkit.auth.deps import get_db, require_admin
from itkit.models import User
from itkit.store import ConflictError, Database
from itkit.util.text import slugify


router = APIRouter()


def _debug(msg: str) -> None:
    print(f"[categories] {msg}")


class CreateCategoryRequest(BaseModel):
    name: Optional[str] = None
    slug: Optional[str] = None
    icon: Optional[str] = None
    description: Optional[str] = None


@router.get("")
def list_categories(db: Database = Depends(get_db)) -> JSONResponse:
    try:
        categories = db.table("categories").select().order("name").execute().data
    except Exception as e:
        _debug(f"Get categories error: {e!r}")
        raise ApiError(500, "Server error while fetching categories")
    return ok([c.to_dict() for c in categories])


@router.get("/{slug}/articles")
def list_category_articles(
    slug: str,
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
    db: Database = Depends(get_db),
) -> JSONResponse:
    try:
        category = db.table("categories").select().eq("slug", slug).limit(1).execute().first()
        if category is None:
            raise ApiError(404, "Category not found")

        res = (
            db.table("articles")
            .select(count=True)
            .eq("category_id", category.id)
            .eq("status", "published")
            .order("created_at", desc=True)
            .range(offset, offset + limit - 1)
            .execute()
        )
        articles = article_list_items(db, res.data)
    except ApiError:
        raise
    except Exception as e:
        _debug(f"Get articles by category error: {e!r}")
        raise ApiError(500, "Server error while fetching articles")

    return ok(
        {
            "category": category.to_dict(),
            "articles": articles,
            "pagination": pagination(int(res.count or 0), limit, offset),
        }
    )


@router.post("")
def create_category(
    payload: CreateCategoryRequest,
    _admin: User = Depends(require_admin),
    db: Database = Depends(get_db),
) -> JSONResponse:
    name = (payload.name or "").strip()
    if len(name) < 2:
        raise ApiError(400, "Category name must be at least 2 characters long")
    slug = slugify(payload.slug or name)
    if not slug:
        raise ApiError(400, "Category slug must contain letters or numbers")

    values = {"name": name, "slug": slug, "description": payload.description or None}
    if payload.icon:
        values["icon"] = payload.icon

    try:
        if db.table("categories").select().eq("slug", slug).limit(1).execute().first() is not None:
            raise ApiError(400, "A category with this slug already exists")
        created = db.table("categories").insert(values).execute().first()
    except ApiError:
        raise
    except ConflictError:
        raise ApiError(400, "A category with this slug already exists")
    except Exception as e:
        _debug(f"Create category error: {e!r}")
        raise ApiError(500, "Server error while creating category")

    assert created is not None
    return ok(created.to_dict(), message="Category created successfully", status_code=201)
