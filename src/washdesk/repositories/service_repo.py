from __future__ import annotations

from psycopg import Connection

from ..db import fetch_all, fetch_one
from ..domain import Service

_COLUMNS = "id, name, price, description, active"


class ServiceRepository:
    """Catalog of washes and add-ons offered to customers."""

    def create(self, conn: Connection, *, name: str, price: int, description: str | None, active: bool = True) -> int:
        cur = conn.execute(
            """
            INSERT INTO services(name, price, description, active)
            VALUES (%s, %s, %s, %s)
            RETURNING id;
            """,
            (name, price, description, active),
        )
        return int(cur.fetchone()[0])

    def upsert_by_name(self, conn: Connection, *, name: str, price: int, description: str | None, active: bool = True) -> int:
        cur = conn.execute(
            """
            INSERT INTO services(name, price, description, active)
            VALUES (%s, %s, %s, %s)
            ON CONFLICT (name) DO UPDATE SET
              price = EXCLUDED.price,
              description = EXCLUDED.description,
              active = EXCLUDED.active,
              updated_at = now()
            RETURNING id;
            """,
            (name, price, description, active),
        )
        return int(cur.fetchone()[0])

    def update(self, conn: Connection, service_id: int, *, name: str, price: int, description: str | None, active: bool) -> bool:
        cur = conn.execute(
            """
            UPDATE services
            SET name = %s, price = %s, description = %s, active = %s, updated_at = now()
            WHERE id = %s;
            """,
            (name, price, description, active, service_id),
        )
        return cur.rowcount == 1

    def set_active(self, conn: Connection, service_id: int, active: bool) -> bool:
        cur = conn.execute(
            "UPDATE services SET active = %s, updated_at = now() WHERE id = %s;",
            (active, service_id),
        )
        return cur.rowcount == 1

    def delete(self, conn: Connection, service_id: int) -> bool:
        cur = conn.execute("DELETE FROM services WHERE id = %s;", (service_id,))
        return cur.rowcount == 1

    def get(self, conn: Connection, service_id: int) -> Service | None:
        cur = conn.execute(f"SELECT {_COLUMNS} FROM services WHERE id = %s;", (service_id,))
        row = fetch_one(cur)
        return Service(**row) if row else None

    def get_many(self, conn: Connection, service_ids: list[int]) -> dict[int, Service]:
        if not service_ids:
            return {}
        cur = conn.execute(
            f"SELECT {_COLUMNS} FROM services WHERE id = ANY(%s);",
            (list(service_ids),),
        )
        return {r["id"]: Service(**r) for r in fetch_all(cur)}

    def list(self, conn: Connection, *, active_only: bool = False) -> list[Service]:
        where = "WHERE active" if active_only else ""
        cur = conn.execute(f"SELECT {_COLUMNS} FROM services {where} ORDER BY price, name;")
        return [Service(**r) for r in fetch_all(cur)]
