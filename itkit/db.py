"""Connections for the two supported engines.

`connect()` yields an object with the sqlite3 surface the store relies on
(`execute(sql, params) -> cursor`, `executescript`). SQL is always written with
qmark placeholders; on Postgres it is rewritten for psycopg2 before execution.
"""

from __future__ import annotations

import re
import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Iterator, Sequence
from urllib.parse import urlparse

import psycopg2
import psycopg2.extras

from itkit.schema import get_schema_sql


# Arbitrary app-wide key for pg_advisory_lock around schema DDL.
_SCHEMA_LOCK_KEY = 72_657_115
# Single- or double-quoted SQL literal (doubled quote = escaped quote).
_QUOTED_RE = re.compile(r"""('(?:[^']|'')*'|"(?:[^"]|"")*")""")


def _debug(msg: str) -> None:
    print(f"[db] {msg}")


def detect_dialect(dsn: str) -> str:
    """'postgres' for postgres:// or postgresql:// URLs, otherwise 'sqlite'."""
    scheme = urlparse((dsn or "").strip()).scheme.lower()
    return "postgres" if scheme in ("postgres", "postgresql") else "sqlite"


def _qmark_to_pct(sql: str) -> str:
    """Rewrite qmark SQL for psycopg2.

    `?` outside quoted literals becomes `%s`; every literal `%` is doubled since
    psycopg2 formats the whole statement when parameters are passed.
    """
    parts = _QUOTED_RE.split(sql)
    for i, part in enumerate(parts):
        part = part.replace("%", "%%")
        # re.split with one group alternates: unquoted, quoted, unquoted, ...
        if i % 2 == 0:
            part = part.replace("?", "%s")
        parts[i] = part
    return "".join(parts)


def _casefold(value: Any) -> Any:
    return value.casefold() if isinstance(value, str) else value


def _sqlite_path(dsn: str) -> str:
    s = (dsn or "").strip()
    if s.lower().startswith("sqlite:///"):
        s = s[len("sqlite:///") :]
    return s


class PGConnection:
    """psycopg2 connection behind the sqlite3-style calls the store makes."""

    def __init__(self, raw: Any):
        self.raw = raw

    def execute(self, sql: str, params: Sequence[Any] | None = None) -> Any:
        cur = self.raw.cursor()
        cur.execute(_qmark_to_pct(sql), tuple(params or ()))
        return cur

    def executescript(self, script: str) -> None:
        for stmt in (s.strip() for s in script.split(";")):
            if stmt:
                self.execute(stmt)

    def commit(self) -> None:
        self.raw.commit()

    def rollback(self) -> None:
        self.raw.rollback()

    def close(self) -> None:
        self.raw.close()


def _open(dsn: str) -> Any:
    if detect_dialect(dsn) == "postgres":
        return PGConnection(psycopg2.connect(dsn, cursor_factory=psycopg2.extras.RealDictCursor))

    path = _sqlite_path(dsn)
    Path(path).parent.mkdir(parents=True, exist_ok=True)
    conn = sqlite3.connect(path, timeout=30, check_same_thread=False)
    conn.row_factory = sqlite3.Row
    # SQLite LIKE only folds ASCII; ilike_any compares casefold(col) instead.
    conn.create_function("casefold", 1, _casefold, deterministic=True)
    conn.execute("PRAGMA journal_mode=WAL;")
    conn.execute("PRAGMA busy_timeout=5000;")
    conn.execute("PRAGMA foreign_keys=ON;")
    return conn


@contextmanager
def connect(db_dsn: str) -> Iterator[Any]:
    """One unit of work: commit when the block exits cleanly, otherwise roll back."""
    conn = _open(db_dsn)
    try:
        yield conn
        conn.commit()
    except Exception:
        conn.rollback()
        raise
    finally:
        conn.close()


def init_db(db_dsn: str) -> None:
    """Create all tables and indexes if missing."""
    dialect = detect_dialect(db_dsn)
    _debug(f"Ensuring schema ({dialect})")
    with connect(db_dsn) as conn:
        ddl = get_schema_sql(dialect)
        if dialect == "sqlite":
            conn.executescript(ddl)
            return

        # Several API workers may boot at once; only one runs DDL at a time.
        conn.execute("SELECT pg_advisory_lock(?)", [_SCHEMA_LOCK_KEY])
        try:
            conn.executescript(ddl)
        finally:
            conn.execute("SELECT pg_advisory_unlock(?)", [_SCHEMA_LOCK_KEY])
