"""Response shaping for articles: embed category / author / tags next to each row."""

from __future__ import annotations

from typing import Any, Dict, List, Sequence

from itkit.models import Article, Category, Tag, User
from itkit.store import Database


def _categories_by_id(db: Database, ids: Sequence[str]) -> Dict[str, Category]:
    wanted = [i for i in ids if i]
    if not wanted:
        return {}
    return {c.id: c for c in db.table("categories").select().in_("id", wanted).execute().data}


def _authors_by_id(db: Database, ids: Sequence[str]) -> Dict[str, User]:
    wanted = [i for i in ids if i]
    if not wanted:
        return {}
    return {u.id: u for u in db.table("users").select().in_("id", wanted).execute().data}


def article_list_items(
    db: Database,
    articles: Sequence[Article],
    *,
    author_email: bool = False,
) -> List[Dict[str, Any]]:
    """List shape: article columns + category {id, name, slug, icon} + author {id, full_name}."""
    cats = _categories_by_id(db, [a.category_id for a in articles if a.category_id])
    authors = _authors_by_id(db, [a.author_id for a in articles if a.author_id])

    out: List[Dict[str, Any]] = []
    for a in articles:
        d = a.to_dict()
        cat = cats.get(a.category_id or "")
        author = authors.get(a.author_id or "")
        d["category"] = cat.summary() if cat else None
        d["author"] = {"id": author.id, "full_name": author.full_name} if author else None
        if author is not None and author_email:
            d["author"]["email"] = author.email
        out.append(d)
    return out


def article_tags(db: Database, article_id: str) -> List[Tag]:
    links = db.table("article_tags").select().eq("article_id", article_id).execute().data
    if not links:
        return []
    tags = db.table("tags").select().in_("id", [link.tag_id for link in links]).order("name").execute().data
    return list(tags)


def article_detail(db: Database, article: Article) -> Dict[str, Any]:
    """Detail shape: list shape + author email + tags."""
    d = article_list_items(db, [article], author_email=True)[0]
    d["tags"] = [t.to_dict() for t in article_tags(db, article.id)]
    return d
