from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from itkit.api.envelope import ApiError, ok
from itkit.auth.deps import get_db, get_optional_user
from itkit.models import User
from itkit.store import Database


router = APIRouter()


def _debug(msg: str) -> None:
    print(f"[feedback] {msg}")


class FeedbackRequest(BaseModel):
    article_id: Optional[str] = None
    is_helpful: Optional[bool] = None
    comment: Optional[str] = None


class TicketPreventionRequest(BaseModel):
    article_id: Optional[str] = None
    issue_type: Optional[str] = None


def _article_exists(db: Database, article_id: str) -> bool:
    return db.table("articles").select().eq("id", article_id).limit(1).execute().first() is not None


@router.post("/helpful")
def submit_feedback(
    payload: FeedbackRequest,
    user: Optional[User] = Depends(get_optional_user),
    db: Database = Depends(get_db),
) -> JSONResponse:
    """Record a helpful / not-helpful vote and bump the matching article counter."""
    if not payload.article_id or payload.is_helpful is None:
        raise ApiError(400, "article_id and is_helpful are required")

    try:
        if not _article_exists(db, payload.article_id):
            raise ApiError(404, "Article not found")

        db.table("article_feedback").insert(
            {
                "article_id": payload.article_id,
                "user_id": user.id if user else None,
                "is_helpful": bool(payload.is_helpful),
                "comment": (payload.comment or "").strip() or None,
            }
        ).execute()

        counter = "helpful_count" if payload.is_helpful else "not_helpful_count"
        db.table("articles").increment(counter).eq("id", payload.article_id).execute()
    except ApiError:
        raise
    except Exception as e:
        _debug(f"Submit feedback error: {e!r}")
        raise ApiError(500, "Server error while submitting feedback")

    return ok(message="Feedback submitted successfully", status_code=201)


@router.post("/ticket-prevented")
def mark_ticket_prevented(
    payload: TicketPreventionRequest,
    user: Optional[User] = Depends(get_optional_user),
    db: Database = Depends(get_db),
) -> JSONResponse:
    if not payload.article_id:
        raise ApiError(400, "article_id is required")

    try:
        if not _article_exists(db, payload.article_id):
            raise ApiError(404, "Article not found")

        db.table("ticket_preventions").insert(
            {
                "article_id": payload.article_id,
                "user_id": user.id if user else None,
                "issue_type": (payload.issue_type or "").strip() or None,
            }
        ).execute()
    except ApiError:
        raise
    except Exception as e:
        _debug(f"Mark as ticket prevention error: {e!r}")
        raise ApiError(500, "Server error while recording ticket prevention")

    return ok(message="Marked as ticket prevention successfully", status_code=201)
