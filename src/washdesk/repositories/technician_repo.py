from __future__ import annotations

from psycopg import Connection

from ..db import fetch_all, fetch_one
from ..domain import Technician

_COLUMNS = "id, name, email, phone, active"


class TechnicianRepository:
    def create(self, conn: Connection, *, name: str, email: str | None, phone: str | None, active: bool = True) -> int:
        cur = conn.execute(
            """
            INSERT INTO technicians(name, email, phone, active)
            VALUES (%s, %s, %s, %s)
            RETURNING id;
            """,
            (name, email, phone, active),
        )
        return int(cur.fetchone()[0])

    def update(self, conn: Connection, technician_id: int, *, name: str, email: str | None, phone: str | None, active: bool) -> bool:
        cur = conn.execute(
            """
            UPDATE technicians
            SET name = %s, email = %s, phone = %s, active = %s, updated_at = now()
            WHERE id = %s;
            """,
            (name, email, phone, active, technician_id),
        )
        return cur.rowcount == 1

    def set_active(self, conn: Connection, technician_id: int, active: bool) -> bool:
        cur = conn.execute(
            "UPDATE technicians SET active = %s, updated_at = now() WHERE id = %s;",
            (active, technician_id),
        )
        return cur.rowcount == 1

    def delete(self, conn: Connection, technician_id: int) -> bool:
        cur = conn.execute("DELETE FROM technicians WHERE id = %s;", (technician_id,))
        return cur.rowcount == 1

    def get(self, conn: Connection, technician_id: int) -> Technician | None:
        cur = conn.execute(f"SELECT {_COLUMNS} FROM technicians WHERE id = %s;", (technician_id,))
        row = fetch_one(cur)
        return Technician(**row) if row else None

    def list(self, conn: Connection, *, active_only: bool = False) -> list[Technician]:
        where = "WHERE active" if active_only else ""
        cur = conn.execute(f"SELECT {_COLUMNS} FROM technicians {where} ORDER BY name;")
        return [Technician(**r) for r in fetch_all(cur)]
