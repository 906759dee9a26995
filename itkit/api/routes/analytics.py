from __future__ import annotations

from collections import Counter
from typing import Any, Dict, List

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from itkit.api.envelope import ApiError, ok
from itkit.auth.deps import get_db, require_staff
from itkit.models import Article, User
from itkit.store import Database


router = APIRouter()

TOP_ARTICLES = 5
TOP_SEARCH_TERMS = 10
# Top search terms are computed over this many of the most recent searches.
SEARCH_LOG_WINDOW = 1000


def _debug(msg: str) -> None:
    print(f"[analytics] {msg}")


def _helpful_percentage(a: Article) -> int:
    votes = a.helpful_count + a.not_helpful_count
    if votes <= 0:
        return 0
    return round(a.helpful_count * 100 / votes)


def build_summary(db: Database) -> Dict[str, Any]:
    articles = db.table("articles").select().execute().data
    searches = db.table("search_logs").select(count=True).order("created_at", desc=True).limit(SEARCH_LOG_WINDOW).execute()
    prevented = db.table("ticket_preventions").select(count=True).limit(0).execute()

    top = sorted(articles, key=lambda a: (a.view_count, a.created_at), reverse=True)[:TOP_ARTICLES]
    top_articles: List[Dict[str, Any]] = [
        {
            "id": a.id,
            "title": a.title,
            "slug": a.slug,
            "view_count": a.view_count,
            "helpful_count": a.helpful_count,
            "not_helpful_count": a.not_helpful_count,
            "helpful_percentage": _helpful_percentage(a),
        }
        for a in top
    ]

    terms = Counter(s.search_term.strip().lower() for s in searches.data)
    top_terms = [
        {"search_term": term, "search_count": n}
        for term, n in sorted(terms.items(), key=lambda kv: (-kv[1], kv[0]))[:TOP_SEARCH_TERMS]
    ]

    return {
        "totalArticles": len(articles),
        "totalViews": sum(a.view_count for a in articles),
        "totalSearches": int(searches.count or 0),
        "totalTicketsPrevented": int(prevented.count or 0),
        "topArticles": top_articles,
        "topSearchTerms": top_terms,
    }


@router.get("/summary")
def analytics_summary(
    _user: User = Depends(require_staff),
    db: Database = Depends(get_db),
) -> JSONResponse:
    try:
        data = build_summary(db)
    except Exception as e:
        _debug(f"Analytics summary error: {e!r}")
        raise ApiError(500, "Server error while building analytics")
    return ok(data)
