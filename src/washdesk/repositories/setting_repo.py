from __future__ import annotations

from psycopg import Connection
from psycopg.types.json import Jsonb

from ..db import fetch_all, fetch_one
from ..domain import Setting

BUSINESS_INFO = "business_info"

_COLUMNS = "id, category, name, value, description"


class SettingRepository:
    def get(self, conn: Connection, key: str) -> Setting | None:
        cur = conn.execute(f"SELECT {_COLUMNS} FROM settings WHERE id = %s;", (key,))
        row = fetch_one(cur)
        return Setting(**row) if row else None

    def list(self, conn: Connection, category: str | None = None) -> list[Setting]:
        if category:
            cur = conn.execute(
                f"SELECT {_COLUMNS} FROM settings WHERE category = %s ORDER BY id;",
                (category,),
            )
        else:
            cur = conn.execute(f"SELECT {_COLUMNS} FROM settings ORDER BY category, id;")
        return [Setting(**r) for r in fetch_all(cur)]

    def upsert(
        self,
        conn: Connection,
        *,
        key: str,
        category: str,
        name: str,
        value: object,
        description: str | None = None,
    ) -> None:
        conn.execute(
            """
            INSERT INTO settings(id, category, name, value, description)
            VALUES (%s, %s, %s, %s, %s)
            ON CONFLICT (id) DO UPDATE SET
              category = EXCLUDED.category,
              name = EXCLUDED.name,
              value = EXCLUDED.value,
              description = EXCLUDED.description,
              updated_at = now();
            """,
            (key, category, name, Jsonb(value), description),
        )
