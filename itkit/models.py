"""Typed records, one per table.

Rows coming back from the database are converted with `Record.from_row`, which
checks required columns, enumerations and numeric types. A malformed row raises
RecordValidationError instead of leaking into a response.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, ClassVar, Dict, Mapping, Optional, Tuple, Type, TypeVar


USER_ROLES: Tuple[str, ...] = ("user", "it_staff", "admin")
STAFF_ROLES: Tuple[str, ...] = ("it_staff", "admin")
ARTICLE_STATUSES: Tuple[str, ...] = ("draft", "published", "archived")


class RecordValidationError(ValueError):
    """Raised when a database row does not match its record type."""


R = TypeVar("R", bound="Record")


def _require(cond: bool, msg: str) -> None:
    if not cond:
        raise RecordValidationError(msg)


def _text(row: Mapping[str, Any], key: str, *, nullable: bool = False) -> Optional[str]:
    v = row.get(key)
    if v is None:
        _require(nullable, f"{key} is required")
        return None
    return str(v)


def _int(row: Mapping[str, Any], key: str) -> int:
    v = row.get(key)
    _require(v is not None and not isinstance(v, bool), f"{key} must be an integer")
    try:
        return int(v)
    except (TypeError, ValueError):
        raise RecordValidationError(f"{key} must be an integer")


def _choice(row: Mapping[str, Any], key: str, allowed: Tuple[str, ...]) -> str:
    v = _text(row, key)
    _require(v in allowed, f"{key} must be one of {', '.join(allowed)}")
    return str(v)


@dataclass(frozen=True)
class Record:
    table: ClassVar[str] = ""

    @classmethod
    def from_row(cls: Type[R], row: Mapping[str, Any]) -> R:
        raise NotImplementedError

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class User(Record):
    table: ClassVar[str] = "users"

    id: str
    email: str
    password_hash: str
    full_name: str
    role: str
    created_at: str
    updated_at: str

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "User":
        return cls(
            id=str(_text(row, "id")),
            email=str(_text(row, "email")),
            password_hash=str(_text(row, "password_hash")),
            full_name=str(_text(row, "full_name")),
            role=_choice(row, "role", USER_ROLES),
            created_at=str(_text(row, "created_at")),
            updated_at=str(_text(row, "updated_at")),
        )

    def public(self) -> Dict[str, Any]:
        """User without sensitive data (for responses and request context)."""
        return {
            "id": self.id,
            "email": self.email,
            "full_name": self.full_name,
            "role": self.role,
            "created_at": self.created_at,
        }

    @property
    def is_staff(self) -> bool:
        return self.role in STAFF_ROLES


@dataclass(frozen=True)
class Category(Record):
    table: ClassVar[str] = "categories"

    id: str
    name: str
    slug: str
    icon: str
    description: Optional[str]
    created_at: str

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "Category":
        return cls(
            id=str(_text(row, "id")),
            name=str(_text(row, "name")),
            slug=str(_text(row, "slug")),
            icon=_text(row, "icon", nullable=True) or "",
            description=_text(row, "description", nullable=True),
            created_at=str(_text(row, "created_at")),
        )

    def summary(self) -> Dict[str, Any]:
        return {"id": self.id, "name": self.name, "slug": self.slug, "icon": self.icon}


@dataclass(frozen=True)
class Article(Record):
    table: ClassVar[str] = "articles"

    id: str
    title: str
    slug: str
    content: str
    quick_answer: Optional[str]
    category_id: Optional[str]
    author_id: Optional[str]
    status: str
    view_count: int
    helpful_count: int
    not_helpful_count: int
    estimated_read_time: int
    created_at: str
    updated_at: str

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "Article":
        return cls(
            id=str(_text(row, "id")),
            title=str(_text(row, "title")),
            slug=str(_text(row, "slug")),
            content=str(_text(row, "content")),
            quick_answer=_text(row, "quick_answer", nullable=True),
            category_id=_text(row, "category_id", nullable=True),
            author_id=_text(row, "author_id", nullable=True),
            status=_choice(row, "status", ARTICLE_STATUSES),
            view_count=_int(row, "view_count"),
            helpful_count=_int(row, "helpful_count"),
            not_helpful_count=_int(row, "not_helpful_count"),
            estimated_read_time=_int(row, "estimated_read_time"),
            created_at=str(_text(row, "created_at")),
            updated_at=str(_text(row, "updated_at")),
        )


@dataclass(frozen=True)
class Tag(Record):
    table: ClassVar[str] = "tags"

    id: str
    name: str
    slug: str
    created_at: str

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "Tag":
        return cls(
            id=str(_text(row, "id")),
            name=str(_text(row, "name")),
            slug=str(_text(row, "slug")),
            created_at=str(_text(row, "created_at")),
        )


@dataclass(frozen=True)
class ArticleTag(Record):
    table: ClassVar[str] = "article_tags"

    article_id: str
    tag_id: str
    created_at: str

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "ArticleTag":
        return cls(
            article_id=str(_text(row, "article_id")),
            tag_id=str(_text(row, "tag_id")),
            created_at=str(_text(row, "created_at")),
        )


@dataclass(frozen=True)
class ArticleFeedback(Record):
    table: ClassVar[str] = "article_feedback"

    id: str
    article_id: str
    user_id: Optional[str]
    is_helpful: bool
    comment: Optional[str]
    created_at: str

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "ArticleFeedback":
        # SQLite stores the flag as 0/1, Postgres as a boolean.
        flag = row.get("is_helpful")
        _require(flag in (0, 1, True, False), "is_helpful must be a boolean")
        return cls(
            id=str(_text(row, "id")),
            article_id=str(_text(row, "article_id")),
            user_id=_text(row, "user_id", nullable=True),
            is_helpful=bool(flag),
            comment=_text(row, "comment", nullable=True),
            created_at=str(_text(row, "created_at")),
        )


@dataclass(frozen=True)
class SearchLog(Record):
    table: ClassVar[str] = "search_logs"

    id: str
    search_term: str
    results_count: int
    user_id: Optional[str]
    top_result_id: Optional[str]
    created_at: str

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "SearchLog":
        return cls(
            id=str(_text(row, "id")),
            search_term=str(_text(row, "search_term")),
            results_count=_int(row, "results_count"),
            user_id=_text(row, "user_id", nullable=True),
            top_result_id=_text(row, "top_result_id", nullable=True),
            created_at=str(_text(row, "created_at")),
        )


@dataclass(frozen=True)
class TicketPrevention(Record):
    table: ClassVar[str] = "ticket_preventions"

    id: str
    article_id: str
    user_id: Optional[str]
    issue_type: Optional[str]
    created_at: str

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "TicketPrevention":
        return cls(
            id=str(_text(row, "id")),
            article_id=str(_text(row, "article_id")),
            user_id=_text(row, "user_id", nullable=True),
            issue_type=_text(row, "issue_type", nullable=True),
            created_at=str(_text(row, "created_at")),
        )


RECORD_TYPES: Dict[str, Type[Record]] = {
    cls.table: cls
    for cls in (User, Category, Article, Tag, ArticleTag, ArticleFeedback, SearchLog, TicketPrevention)
}
