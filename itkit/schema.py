"""Database schema for ITKit.

Production runs on Postgres; local development and the test-suite use SQLite.

Timestamps are ISO-8601 TEXT (UTC, with 'Z') for portability across engines. ISO
strings sort lexicographically in time order, so `ORDER BY created_at` is correct.
Primary keys are UUID strings generated by the application, so inserts never need
engine-specific RETURNING / lastrowid handling.

NOTE: The Postgres schema is generated from the SQLite schema with a small set of
transformations (types only).
"""

from __future__ import annotations

import re
from typing import Dict, Tuple


SCHEMA_SQLITE = r"""
PRAGMA foreign_keys = ON;

-- Users / Auth
CREATE TABLE IF NOT EXISTS users (
    id TEXT PRIMARY KEY,
    email TEXT NOT NULL UNIQUE,
    password_hash TEXT NOT NULL,
    full_name TEXT NOT NULL,
    role TEXT NOT NULL DEFAULT 'user' CHECK (role IN ('user','it_staff','admin')),
    created_at TEXT NOT NULL,
    updated_at TEXT NOT NULL
);
CREATE INDEX IF NOT EXISTS idx_users_role ON users (role);

CREATE TABLE IF NOT EXISTS categories (
    id TEXT PRIMARY KEY,
    name TEXT NOT NULL,
    slug TEXT NOT NULL UNIQUE,
    icon TEXT NOT NULL DEFAULT '📄',
    description TEXT,
    created_at TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS articles (
    id TEXT PRIMARY KEY,
    title TEXT NOT NULL,
    slug TEXT NOT NULL UNIQUE,
    content TEXT NOT NULL,
    quick_answer TEXT,
    category_id TEXT REFERENCES categories(id) ON DELETE SET NULL,
    author_id TEXT REFERENCES users(id) ON DELETE SET NULL,
    status TEXT NOT NULL DEFAULT 'draft' CHECK (status IN ('draft','published','archived')),
    view_count INTEGER NOT NULL DEFAULT 0,
    helpful_count INTEGER NOT NULL DEFAULT 0,
    not_helpful_count INTEGER NOT NULL DEFAULT 0,
    estimated_read_time INTEGER NOT NULL DEFAULT 1,
    created_at TEXT NOT NULL,
    updated_at TEXT NOT NULL
);
CREATE INDEX IF NOT EXISTS idx_articles_status_created ON articles (status, created_at);
CREATE INDEX IF NOT EXISTS idx_articles_category ON articles (category_id, status);
CREATE INDEX IF NOT EXISTS idx_articles_views ON articles (status, view_count);

CREATE TABLE IF NOT EXISTS tags (
    id TEXT PRIMARY KEY,
    name TEXT NOT NULL,
    slug TEXT NOT NULL UNIQUE,
    created_at TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS article_tags (
    article_id TEXT NOT NULL REFERENCES articles(id) ON DELETE CASCADE,
    tag_id TEXT NOT NULL REFERENCES tags(id) ON DELETE CASCADE,
    created_at TEXT NOT NULL,
    PRIMARY KEY (article_id, tag_id)
);

CREATE TABLE IF NOT EXISTS article_feedback (
    id TEXT PRIMARY KEY,
    article_id TEXT NOT NULL REFERENCES articles(id) ON DELETE CASCADE,
    user_id TEXT REFERENCES users(id) ON DELETE SET NULL,
    is_helpful INTEGER NOT NULL,
    comment TEXT,
    created_at TEXT NOT NULL
);
CREATE INDEX IF NOT EXISTS idx_feedback_article ON article_feedback (article_id, created_at);

CREATE TABLE IF NOT EXISTS search_logs (
    id TEXT PRIMARY KEY,
    search_term TEXT NOT NULL,
    results_count INTEGER NOT NULL DEFAULT 0,
    user_id TEXT REFERENCES users(id) ON DELETE SET NULL,
    top_result_id TEXT REFERENCES articles(id) ON DELETE SET NULL,
    created_at TEXT NOT NULL
);
CREATE INDEX IF NOT EXISTS idx_search_logs_created ON search_logs (created_at);

CREATE TABLE IF NOT EXISTS ticket_preventions (
    id TEXT PRIMARY KEY,
    article_id TEXT NOT NULL REFERENCES articles(id) ON DELETE CASCADE,
    user_id TEXT REFERENCES users(id) ON DELETE SET NULL,
    issue_type TEXT,
    created_at TEXT NOT NULL
);
CREATE INDEX IF NOT EXISTS idx_ticket_preventions_article ON ticket_preventions (article_id);
"""


def _sqlite_to_postgres(sql: str) -> str:
    s = sql
    # Postgres has no PRAGMA.
    s = re.sub(r"^\s*PRAGMA[^;]*;\s*$", "", s, flags=re.MULTILINE)
    # Feedback flag is a real boolean on Postgres.
    s = s.replace("is_helpful INTEGER NOT NULL", "is_helpful BOOLEAN NOT NULL")
    return s


SCHEMA_POSTGRES = _sqlite_to_postgres(SCHEMA_SQLITE)


# Column whitelist per table. The query builder interpolates column names into SQL,
# so only names listed here are ever accepted.
TABLE_COLUMNS: Dict[str, Tuple[str, ...]] = {
    "users": ("id", "email", "password_hash", "full_name", "role", "created_at", "updated_at"),
    "categories": ("id", "name", "slug", "icon", "description", "created_at"),
    "articles": (
        "id",
        "title",
        "slug",
        "content",
        "quick_answer",
        "category_id",
        "author_id",
        "status",
        "view_count",
        "helpful_count",
        "not_helpful_count",
        "estimated_read_time",
        "created_at",
        "updated_at",
    ),
    "tags": ("id", "name", "slug", "created_at"),
    "article_tags": ("article_id", "tag_id", "created_at"),
    "article_feedback": ("id", "article_id", "user_id", "is_helpful", "comment", "created_at"),
    "search_logs": ("id", "search_term", "results_count", "user_id", "top_result_id", "created_at"),
    "ticket_preventions": ("id", "article_id", "user_id", "issue_type", "created_at"),
}


def get_schema_sql(dialect: str) -> str:
    d = (dialect or "").lower()
    if d.startswith("post"):
        return SCHEMA_POSTGRES
    return SCHEMA_SQLITE
