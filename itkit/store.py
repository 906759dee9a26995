"""Data access layer.

`Database` is the one data-access handle per process. It is constructed
explicitly (see `itkit.api.server.create_app`), initialized at startup and passed to
request handlers through `app.state`; there is no module-level client.

Queries are table-scoped and built fluently, then run with `execute()`:

    db.table("articles").select(count=True).eq("status", "published") \
        .order("created_at", desc=True).range(0, 19).execute()

Every `execute()` opens its own connection, commits and closes it. Results come
back as typed records (see `itkit.models`), never as raw rows.
"""

from __future__ import annotations

import sqlite3
import uuid
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Any, Generic, Iterator, List, Mapping, Optional, Sequence, Tuple, TypeVar

import psycopg2

from itkit.db import connect, detect_dialect, init_db
from itkit.models import RECORD_TYPES, Record
from itkit.schema import TABLE_COLUMNS
from itkit.util.time import utcnow_iso


R = TypeVar("R", bound=Record)


class DataAccessError(RuntimeError):
    """A query failed in the database driver."""


class ConflictError(DataAccessError):
    """A write violated a uniqueness / foreign-key constraint."""


@dataclass
class QueryResult(Generic[R]):
    data: List[R] = field(default_factory=list)
    # Exact row count for select(count=True); affected rows for delete().
    count: Optional[int] = None

    def first(self) -> Optional[R]:
        return self.data[0] if self.data else None


def _escape_like(term: str) -> str:
    return term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


class TableQuery:
    """Fluent query against a single table."""

    def __init__(self, db: "Database", table: str):
        if table not in TABLE_COLUMNS:
            raise ValueError(f"unknown_table: {table}")
        self._db = db
        self._table = table
        self._record = RECORD_TYPES[table]
        self._columns = TABLE_COLUMNS[table]

        self._action = "select"
        self._values: List[dict] = []
        self._increment: Tuple[str, int] | None = None
        self._count = False

        self._where: List[Tuple[str, List[Any]]] = []
        self._order: List[Tuple[str, bool]] = []
        self._limit: int | None = None
        self._offset = 0

    # -----------------------------
    # Actions
    # -----------------------------

    def select(self, *, count: bool = False) -> "TableQuery":
        self._action = "select"
        self._count = count
        return self

    def insert(self, values: Mapping[str, Any] | Sequence[Mapping[str, Any]]) -> "TableQuery":
        rows = [values] if isinstance(values, Mapping) else list(values)
        now = utcnow_iso()
        prepared: List[dict] = []
        for row in rows:
            r = dict(row)
            self._check_columns(r.keys())
            if "id" in self._columns and not r.get("id"):
                r["id"] = str(uuid.uuid4())
            for ts in ("created_at", "updated_at"):
                if ts in self._columns and not r.get(ts):
                    r[ts] = now
            prepared.append(r)
        self._action = "insert"
        self._values = prepared
        return self

    def update(self, values: Mapping[str, Any]) -> "TableQuery":
        v = dict(values)
        self._check_columns(v.keys())
        if "updated_at" in self._columns and "updated_at" not in v:
            v["updated_at"] = utcnow_iso()
        self._action = "update"
        self._values = [v]
        return self

    def increment(self, column: str, by: int = 1) -> "TableQuery":
        """Atomic `column = column + by` on every matched row."""
        self._check_columns([column])
        self._action = "increment"
        self._increment = (column, int(by))
        return self

    def delete(self) -> "TableQuery":
        self._action = "delete"
        return self

    # -----------------------------
    # Filters / modifiers
    # -----------------------------

    def eq(self, column: str, value: Any) -> "TableQuery":
        self._check_columns([column])
        if value is None:
            self._where.append((f"{column} IS NULL", []))
        else:
            self._where.append((f"{column} = ?", [value]))
        return self

    def neq(self, column: str, value: Any) -> "TableQuery":
        self._check_columns([column])
        self._where.append((f"{column} <> ?", [value]))
        return self

    def in_(self, column: str, values: Sequence[Any]) -> "TableQuery":
        self._check_columns([column])
        vals = list(dict.fromkeys(values))
        if not vals:
            self._where.append(("1 = 0", []))
            return self
        marks = ",".join("?" for _ in vals)
        self._where.append((f"{column} IN ({marks})", vals))
        return self

    def ilike_any(self, columns: Sequence[str], term: str) -> "TableQuery":
        """Case-insensitive substring match of `term` against any of `columns` (OR'd)."""
        self._check_columns(columns)
        if self._db.dialect == "postgres":
            pattern = f"%{_escape_like(term)}%"
            clauses = [f"{c} ILIKE ? ESCAPE '\\'" for c in columns]
        else:
            pattern = f"%{_escape_like(term.casefold())}%"
            clauses = [f"casefold({c}) LIKE ? ESCAPE '\\'" for c in columns]
        self._where.append(("(" + " OR ".join(clauses) + ")", [pattern] * len(columns)))
        return self

    def order(self, column: str, *, desc: bool = False) -> "TableQuery":
        self._check_columns([column])
        self._order.append((column, desc))
        return self

    def limit(self, n: int) -> "TableQuery":
        self._limit = max(0, int(n))
        return self

    def range(self, start: int, end: int) -> "TableQuery":
        """Inclusive row range, zero-based (rows start..end)."""
        start = max(0, int(start))
        self._offset = start
        self._limit = max(0, int(end) - start + 1)
        return self

    # -----------------------------
    # Execution
    # -----------------------------

    def execute(self) -> QueryResult:
        try:
            with self._db.connection() as conn:
                if self._action == "select":
                    return self._run_select(conn)
                if self._action == "insert":
                    return self._run_insert(conn)
                if self._action in ("update", "increment"):
                    return self._run_update(conn)
                return self._run_delete(conn)
        except (sqlite3.IntegrityError, psycopg2.IntegrityError) as e:
            raise ConflictError(f"{self._table}: {e}") from e
        except (sqlite3.Error, psycopg2.Error) as e:
            raise DataAccessError(f"{self._table}: {e}") from e

    def _check_columns(self, columns: Sequence[str] | Any) -> None:
        for c in columns:
            if c not in self._columns:
                raise ValueError(f"unknown_column: {self._table}.{c}")

    def _where_sql(self) -> Tuple[str, List[Any]]:
        if not self._where:
            return "", []
        params: List[Any] = []
        for _, p in self._where:
            params.extend(p)
        return " WHERE " + " AND ".join(c for c, _ in self._where), params

    def _records(self, rows: Sequence[Any]) -> List[Any]:
        return [self._record.from_row(dict(r)) for r in rows]

    def _run_select(self, conn: Any) -> QueryResult:
        where, params = self._where_sql()
        sql = f"SELECT * FROM {self._table}{where}"
        if self._order:
            sql += " ORDER BY " + ", ".join(f"{c} {'DESC' if d else 'ASC'}" for c, d in self._order)
        page_params: List[Any] = []
        if self._limit is not None:
            sql += " LIMIT ? OFFSET ?"
            page_params = [self._limit, self._offset]

        rows = conn.execute(sql, params + page_params).fetchall()

        count = None
        if self._count:
            row = conn.execute(f"SELECT COUNT(*) AS n FROM {self._table}{where}", params).fetchone()
            count = int(row["n"])
        return QueryResult(data=self._records(rows), count=count)

    def _run_insert(self, conn: Any) -> QueryResult:
        for r in self._values:
            cols = list(r.keys())
            marks = ",".join("?" for _ in cols)
            conn.execute(
                f"INSERT INTO {self._table} ({', '.join(cols)}) VALUES ({marks})",
                [r[c] for c in cols],
            )

        if "id" not in self._columns:
            return QueryResult(data=[self._record.from_row(r) for r in self._values])

        ids = [r["id"] for r in self._values]
        marks = ",".join("?" for _ in ids)
        rows = conn.execute(f"SELECT * FROM {self._table} WHERE id IN ({marks})", ids).fetchall()
        by_id = {str(dict(r)["id"]): r for r in rows}
        return QueryResult(data=self._records([by_id[i] for i in ids if i in by_id]))

    def _run_update(self, conn: Any) -> QueryResult:
        if not self._where:
            raise ValueError(f"refusing unfiltered {self._action} on {self._table}")
        where, params = self._where_sql()

        if self._action == "increment":
            assert self._increment is not None
            col, by = self._increment
            set_sql = f"{col} = {col} + ?"
            set_params: List[Any] = [by]
            if "updated_at" in self._columns:
                set_sql += ", updated_at = ?"
                set_params.append(utcnow_iso())
        else:
            v = self._values[0]
            set_sql = ", ".join(f"{c} = ?" for c in v)
            set_params = list(v.values())

        conn.execute(f"UPDATE {self._table} SET {set_sql}{where}", set_params + params)
        # Read back through the same filter; callers filter by primary key.
        rows = conn.execute(f"SELECT * FROM {self._table}{where}", params).fetchall()
        return QueryResult(data=self._records(rows))

    def _run_delete(self, conn: Any) -> QueryResult:
        if not self._where:
            raise ValueError(f"refusing unfiltered delete on {self._table}")
        where, params = self._where_sql()
        cur = conn.execute(f"DELETE FROM {self._table}{where}", params)
        return QueryResult(count=int(cur.rowcount or 0))


class Database:
    """Explicit data-access handle: holds the DSN and hands out table queries."""

    def __init__(self, dsn: str):
        self.dsn = dsn
        self.dialect = detect_dialect(dsn)

    def init(self) -> None:
        init_db(self.dsn)

    @contextmanager
    def connection(self) -> Iterator[Any]:
        with connect(self.dsn) as conn:
            yield conn

    def table(self, name: str) -> TableQuery:
        return TableQuery(self, name)
