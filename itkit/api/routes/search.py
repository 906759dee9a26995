from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from itkit.api.envelope import ApiError, ok
from itkit.api.shaping import article_list_items
from itkit.auth.deps import get_db, get_optional_user
from itkit.models import User
from itkit.search import MIN_QUERY_LENGTH, run_search
from itkit.store import Database


router = APIRouter()


def _debug(msg: str) -> None:
    print(f"[search] {msg}")


@router.get("")
def search_articles(
    q: Optional[str] = None,
    user: Optional[User] = Depends(get_optional_user),
    db: Database = Depends(get_db),
) -> JSONResponse:
    """Search published articles. Anonymous callers are allowed; a valid token attributes the search."""
    term = (q or "").strip()
    if not term:
        raise ApiError(400, "Search query is required")
    if len(term) < MIN_QUERY_LENGTH:
        raise ApiError(400, f"Search query must be at least {MIN_QUERY_LENGTH} characters")

    try:
        result = run_search(db, term, user_id=user.id if user else None)
        articles = article_list_items(db, result["articles"])
    except Exception as e:
        _debug(f"Search error: {e!r}")
        raise ApiError(500, "Server error while searching")

    return ok(
        {
            "quickAnswer": result["quickAnswer"],
            "sourceArticle": result["sourceArticle"],
            "articles": articles,
            "searchTerm": term,
            "totalResults": len(articles),
        }
    )
