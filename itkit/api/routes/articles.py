from __future__ import annotations

from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from itkit.api.envelope import ApiError, ok, pagination
from itkit.api.shaping import article_detail, article_list_items
from itkit.auth.deps import get_db, get_optional_user, require_admin, require_staff
from itkit.models import ARTICLE_STATUSES, Article, User
from itkit.store import ConflictError, Database
from itkit.util.text import estimated_read_time, slugify


router = APIRouter()


def _debug(msg: str) -> None:
    print(f"[articles] {msg}")


class CreateArticleRequest(BaseModel):
    title: Optional[str] = None
    content: Optional[str] = None
    quick_answer: Optional[str] = None
    category_id: Optional[str] = None
    status: str = "draft"
    tags: List[str] = []


class UpdateArticleRequest(BaseModel):
    title: Optional[str] = None
    content: Optional[str] = None
    quick_answer: Optional[str] = None
    category_id: Optional[str] = None
    status: Optional[str] = None
    tags: Optional[List[str]] = None


def _get_article(db: Database, article_id: str) -> Optional[Article]:
    return db.table("articles").select().eq("id", article_id).limit(1).execute().first()


def _slug_owner(db: Database, slug: str) -> Optional[Article]:
    return db.table("articles").select().eq("slug", slug).limit(1).execute().first()


def _check_status(status: str) -> str:
    s = (status or "").strip().lower()
    if s not in ARTICLE_STATUSES:
        raise ApiError(400, f"Invalid status. Must be one of: {', '.join(ARTICLE_STATUSES)}")
    return s


def _check_category(db: Database, category_id: Optional[str]) -> None:
    if not category_id:
        return
    if db.table("categories").select().eq("id", category_id).limit(1).execute().first() is None:
        raise ApiError(400, "Category not found")


def _check_tags(db: Database, tag_ids: List[str]) -> List[str]:
    wanted = list(dict.fromkeys(t for t in tag_ids if t))
    if not wanted:
        return []
    found = {t.id for t in db.table("tags").select().in_("id", wanted).execute().data}
    missing = [t for t in wanted if t not in found]
    if missing:
        raise ApiError(400, f"Unknown tag id(s): {', '.join(missing)}")
    return wanted


def _replace_tags(db: Database, article_id: str, tag_ids: List[str]) -> None:
    db.table("article_tags").delete().eq("article_id", article_id).execute()
    if tag_ids:
        db.table("article_tags").insert([{"article_id": article_id, "tag_id": t} for t in tag_ids]).execute()


# -----------------------------
# List / read
# -----------------------------


@router.get("")
def list_articles(
    status: Optional[str] = "published",
    category: Optional[str] = None,
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
    user: Optional[User] = Depends(get_optional_user),
    db: Database = Depends(get_db),
) -> JSONResponse:
    """List articles, newest first.

    `status` defaults to published; `all` disables the status filter. Anything other
    than published is staff-only.
    """
    st = (status or "published").strip().lower()
    if st != "all":
        _check_status(st)
    if st != "published" and (user is None or not user.is_staff):
        raise ApiError(403, "Only IT staff can view unpublished articles")

    try:
        q = db.table("articles").select(count=True)
        if st != "all":
            q = q.eq("status", st)

        if category:
            cat = db.table("categories").select().eq("slug", category).limit(1).execute().first()
            # Unknown category slugs are ignored rather than rejected.
            if cat is not None:
                q = q.eq("category_id", cat.id)

        res = q.order("created_at", desc=True).range(offset, offset + limit - 1).execute()
        items = article_list_items(db, res.data)
    except Exception as e:
        _debug(f"Get articles error: {e!r}")
        raise ApiError(500, "Server error while fetching articles")

    return ok(items, pagination=pagination(int(res.count or 0), limit, offset))


@router.get("/{slug}")
def get_article_by_slug(
    slug: str,
    user: Optional[User] = Depends(get_optional_user),
    db: Database = Depends(get_db),
) -> JSONResponse:
    try:
        article = _slug_owner(db, slug)
        if article is None or (article.status != "published" and (user is None or not user.is_staff)):
            raise ApiError(404, "Article not found")

        bumped = db.table("articles").increment("view_count").eq("id", article.id).execute().first()
        data = article_detail(db, bumped or article)
    except ApiError:
        raise
    except Exception as e:
        _debug(f"Get article error: {e!r}")
        raise ApiError(500, "Server error while fetching article")

    return ok(data)


@router.post("/{article_id}/view")
def increment_view_count(article_id: str, db: Database = Depends(get_db)) -> JSONResponse:
    try:
        if _get_article(db, article_id) is None:
            raise ApiError(404, "Article not found")
        db.table("articles").increment("view_count").eq("id", article_id).execute()
    except ApiError:
        raise
    except Exception as e:
        _debug(f"Increment view error: {e!r}")
        raise ApiError(500, "Server error while updating view count")

    return ok(message="View count updated")


# -----------------------------
# Write (staff / admin)
# -----------------------------


@router.post("")
def create_article(
    payload: CreateArticleRequest,
    user: User = Depends(require_staff),
    db: Database = Depends(get_db),
) -> JSONResponse:
    title = (payload.title or "").strip()
    content = payload.content or ""
    if not title or not content.strip():
        raise ApiError(400, "Title and content are required")

    status = _check_status(payload.status or "draft")
    slug = slugify(title)
    if not slug:
        raise ApiError(400, "Title must contain letters or numbers")

    try:
        if _slug_owner(db, slug) is not None:
            raise ApiError(400, "An article with this title already exists")
        _check_category(db, payload.category_id)
        tag_ids = _check_tags(db, payload.tags)

        try:
            created = db.table("articles").insert(
                {
                    "title": title,
                    "slug": slug,
                    "content": content,
                    "quick_answer": payload.quick_answer or None,
                    "category_id": payload.category_id or None,
                    "author_id": user.id,
                    "status": status,
                    "estimated_read_time": estimated_read_time(content),
                }
            ).execute().first()
        except ConflictError:
            raise ApiError(400, "An article with this title already exists")
        if created is None:
            raise ApiError(500, "Failed to create article")

        if tag_ids:
            _replace_tags(db, created.id, tag_ids)

        data = article_detail(db, created)
    except ApiError:
        raise
    except Exception as e:
        _debug(f"Create article error: {e!r}")
        raise ApiError(500, "Server error while creating article")

    _debug(f"Created article slug={slug} status={status} author={user.email}")
    return ok(data, message="Article created successfully", status_code=201)


@router.put("/{article_id}")
def update_article(
    article_id: str,
    payload: UpdateArticleRequest,
    _user: User = Depends(require_staff),
    db: Database = Depends(get_db),
) -> JSONResponse:
    provided = payload.model_fields_set

    try:
        existing = _get_article(db, article_id)
        if existing is None:
            raise ApiError(404, "Article not found")

        changes: Dict[str, Any] = {}

        title = (payload.title or "").strip()
        if title:
            slug = slugify(title)
            if not slug:
                raise ApiError(400, "Title must contain letters or numbers")
            owner = _slug_owner(db, slug)
            if owner is not None and owner.id != existing.id:
                raise ApiError(400, "An article with this title already exists")
            changes["title"] = title
            changes["slug"] = slug

        if payload.content:
            changes["content"] = payload.content
            changes["estimated_read_time"] = estimated_read_time(payload.content)

        if "quick_answer" in provided:
            changes["quick_answer"] = payload.quick_answer or None

        if "category_id" in provided:
            _check_category(db, payload.category_id)
            changes["category_id"] = payload.category_id or None

        if payload.status:
            changes["status"] = _check_status(payload.status)

        tag_ids = _check_tags(db, payload.tags) if payload.tags is not None else None

        try:
            updated = db.table("articles").update(changes).eq("id", existing.id).execute().first()
        except ConflictError:
            raise ApiError(400, "An article with this title already exists")
        if updated is None:
            raise ApiError(500, "Failed to update article")

        if tag_ids is not None:
            _replace_tags(db, existing.id, tag_ids)

        data = article_detail(db, updated)
    except ApiError:
        raise
    except Exception as e:
        _debug(f"Update article error: {e!r}")
        raise ApiError(500, "Server error while updating article")

    return ok(data, message="Article updated successfully")


@router.delete("/{article_id}")
def delete_article(
    article_id: str,
    _admin: User = Depends(require_admin),
    db: Database = Depends(get_db),
) -> JSONResponse:
    try:
        if _get_article(db, article_id) is None:
            raise ApiError(404, "Article not found")
        # Feedback, tag links and ticket preventions cascade; search logs keep the term.
        db.table("articles").delete().eq("id", article_id).execute()
    except ApiError:
        raise
    except Exception as e:
        _debug(f"Delete article error: {e!r}")
        raise ApiError(500, "Server error while deleting article")

    return ok(message="Article deleted successfully")
