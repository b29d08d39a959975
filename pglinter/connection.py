"""Database connection management and the query-execution handle."""

from __future__ import annotations

import contextlib
import itertools
import os
from typing import Any, Iterator

import psycopg2
import psycopg2.extras


def connect(
    host: str | None = None,
    port: int | None = None,
    dbname: str | None = None,
    user: str | None = None,
    password: str | None = None,
    dsn: str | None = None,
    readonly: bool = True,
) -> psycopg2.extensions.connection:
    """Create a database connection from explicit args or a DSN string.

    Falls back to standard PG* environment variables. Lint runs only read
    catalogs and statistics views, so the session is read-only unless the
    caller needs to write the rule catalog.
    """
    if dsn:
        conn = psycopg2.connect(dsn)
    else:
        params = {}
        if host:
            params["host"] = host
        if port:
            params["port"] = port
        if dbname:
            params["dbname"] = dbname
        if user:
            params["user"] = user
        if password:
            params["password"] = password
        elif os.environ.get("PGPASSWORD"):
            params["password"] = os.environ["PGPASSWORD"]
        conn = psycopg2.connect(**params)

    conn.set_session(readonly=readonly, autocommit=True)
    return conn


def get_pg_version(runner: QueryRunner) -> str:
    """Return the PostgreSQL server version string."""
    return str(runner.fetch_scalar("SELECT version()") or "")


class QueryRunner:
    """Thin execution handle injected into the engine and the catalog.

    Wraps a DB-API connection and hands rows back as dicts keyed by column
    name. Timeouts and cancellation belong to the underlying connection.
    """

    _savepoint_ids = itertools.count(1)

    def __init__(self, conn: Any):
        self.conn = conn

    def fetch_all(self, query: str, params: dict | tuple | None = None) -> list[dict]:
        with self.conn.cursor(cursor_factory=psycopg2.extras.RealDictCursor) as cur:
            if params is None:
                cur.execute(query)
            else:
                cur.execute(query, params)
            if cur.description is None:
                return []
            return [dict(row) for row in cur.fetchall()]

    def fetch_scalar(self, query: str, params: dict | tuple | None = None) -> Any:
        """First column of the first row, or None for an empty result."""
        rows = self.fetch_all(query, params)
        if not rows:
            return None
        return next(iter(rows[0].values()), None)

    def execute(self, query: str, params: dict | tuple | None = None) -> int:
        with self.conn.cursor() as cur:
            cur.execute(query, params)
            return cur.rowcount

    @property
    def in_transaction(self) -> bool:
        return not getattr(self.conn, "autocommit", False)

    @contextlib.contextmanager
    def savepoint(self) -> Iterator[None]:
        """Isolate a unit of work so its failure leaves the session usable.

        Outside a transaction every statement already stands alone, so this
        is a no-op.
        """
        if not self.in_transaction:
            yield
            return
        name = f"pglinter_sp_{next(self._savepoint_ids)}"
        self.execute(f"SAVEPOINT {name}")
        try:
            yield
        except Exception:
            self.execute(f"ROLLBACK TO SAVEPOINT {name}")
            raise
        else:
            self.execute(f"RELEASE SAVEPOINT {name}")
