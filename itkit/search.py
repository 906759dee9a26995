"""Free-text article search and quick-answer extraction.

Search is a plain case-insensitive substring match (ILIKE) over title, content
and the curated quick answer of published articles, ranked by view count.

The quick answer for the top hit is the curated `quick_answer` when one exists.
Otherwise it is extracted from the body with a few regular expressions, in this
order: first ordered list -> first unordered list -> first three sentences.
This is a heuristic, not an HTML parser: it assumes flat, well-formed list markup.
"""

from __future__ import annotations

import re
from typing import Any, Dict, List, Optional

from itkit.models import Article
from itkit.store import Database, DataAccessError
from itkit.util.text import strip_tags


MIN_QUERY_LENGTH = 2
MAX_RESULTS = 20
MAX_LIST_ITEMS = 5
MAX_SENTENCES = 3
SEARCH_COLUMNS = ("title", "content", "quick_answer")

_OL_RE = re.compile(r"<ol\b[^>]*>(.*?)</ol>", re.IGNORECASE | re.DOTALL)
_UL_RE = re.compile(r"<ul\b[^>]*>(.*?)</ul>", re.IGNORECASE | re.DOTALL)
_LI_RE = re.compile(r"<li\b[^>]*>(.*?)</li>", re.IGNORECASE | re.DOTALL)
_SENTENCE_RE = re.compile(r"[^.!?]+[.!?]+")


def _debug(msg: str) -> None:
    print(f"[search] {msg}")


def _list_items(block: str) -> List[str]:
    # Item text may wrap across lines; collapse it to single spaces.
    return [" ".join(strip_tags(item).split()) for item in _LI_RE.findall(block)][:MAX_LIST_ITEMS]


def extract_quick_answer(content: str | None) -> Optional[str]:
    """Derive a short answer from an article body, or None when nothing fits."""
    html = content or ""

    m = _OL_RE.search(html)
    if m:
        items = _list_items(m.group(1))
        if items:
            return "\n".join(f"{i}. {item}" for i, item in enumerate(items, start=1))

    m = _UL_RE.search(html)
    if m:
        items = _list_items(m.group(1))
        if items:
            return "\n".join(f"• {item}" for item in items)

    sentences = _SENTENCE_RE.findall(strip_tags(html))
    if sentences:
        return " ".join(s.strip() for s in sentences[:MAX_SENTENCES]).strip()

    return None


def quick_answer_for(article: Article) -> Optional[str]:
    if article.quick_answer:
        return article.quick_answer
    return extract_quick_answer(article.content)


def find_published(db: Database, term: str) -> List[Article]:
    res = (
        db.table("articles")
        .select()
        .eq("status", "published")
        .ilike_any(SEARCH_COLUMNS, term)
        .order("view_count", desc=True)
        .order("created_at", desc=True)
        .limit(MAX_RESULTS)
        .execute()
    )
    return list(res.data)


def log_search(
    db: Database,
    *,
    term: str,
    results_count: int,
    top_result_id: Optional[str],
    user_id: Optional[str],
) -> None:
    db.table("search_logs").insert(
        {
            "search_term": term,
            "results_count": int(results_count),
            "top_result_id": top_result_id,
            "user_id": user_id,
        }
    ).execute()


def run_search(db: Database, term: str, *, user_id: Optional[str] = None) -> Dict[str, Any]:
    """Search published articles for an already-validated term and record it.

    Returns the matched records plus the quick answer / source article for the top hit.
    """
    articles = find_published(db, term)

    quick_answer: Optional[str] = None
    source: Optional[Dict[str, str]] = None
    if articles:
        top = articles[0]
        quick_answer = quick_answer_for(top)
        source = {"title": top.title, "slug": top.slug}

    try:
        log_search(
            db,
            term=term,
            results_count=len(articles),
            top_result_id=articles[0].id if articles else None,
            user_id=user_id,
        )
    except DataAccessError as e:
        # Search logging is best effort.
        _debug(f"search log insert failed: {e}")
    _debug(f"term={term!r} results={len(articles)} user={user_id}")

    return {
        "articles": articles,
        "quickAnswer": quick_answer,
        "sourceArticle": source,
    }
