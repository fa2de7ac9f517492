from __future__ import annotations

import logging
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Iterator

import psycopg
from psycopg import Connection, Cursor

from .config import DbConfig

logger = logging.getLogger(__name__)

SCHEMA_PATH = Path(__file__).with_name("schema.sql")

READ_WRITE = "BEGIN;"
READ_ONLY_SNAPSHOT = "BEGIN ISOLATION LEVEL REPEATABLE READ READ ONLY;"


class DbError(Exception):
    pass


@dataclass(frozen=True)
class Db:
    """Hands out short-lived PostgreSQL connections.

    Connections run in autocommit mode; ``transaction`` and ``snapshot``
    issue their own BEGIN so callers decide where the boundaries are.
    """

    cfg: DbConfig

    def connect(self) -> Connection:
        try:
            return psycopg.connect(**self.cfg.connect_kwargs(), autocommit=True)
        except psycopg.Error as e:
            logger.error("Connection to %s:%s/%s failed: %s", self.cfg.host, self.cfg.port, self.cfg.name, e)
            raise DbError(
                "Cannot connect to the washdesk database. Check the [db] section of config.toml "
                "and that PostgreSQL is reachable."
            ) from e

    @contextmanager
    def session(self) -> Iterator[Connection]:
        conn = self.connect()
        try:
            yield conn
        finally:
            conn.close()

    @contextmanager
    def _within(self, begin: str) -> Iterator[Connection]:
        with self.session() as conn:
            conn.execute(begin)
            try:
                yield conn
            except Exception:
                conn.execute("ROLLBACK;")
                raise
            conn.execute("COMMIT;")

    def transaction(self):
        return self._within(READ_WRITE)

    def snapshot(self):
        """Read-only transaction where every statement sees the same data."""
        return self._within(READ_ONLY_SNAPSHOT)

    def apply_schema(self) -> None:
        ddl = SCHEMA_PATH.read_text(encoding="utf-8")
        with self.transaction() as conn:
            conn.execute(ddl)
        logger.info("Schema applied from %s", SCHEMA_PATH.name)


def _columns(cur: Cursor) -> list[str]:
    return [d.name for d in cur.description]


def fetch_one(cur: Cursor) -> dict | None:
    row = cur.fetchone()
    return dict(zip(_columns(cur), row)) if row else None


def fetch_all(cur: Cursor) -> list[dict]:
    names = _columns(cur)
    return [dict(zip(names, row)) for row in cur.fetchall()]
