from __future__ import annotations

from psycopg import Connection

from ..db import fetch_all, fetch_one
from ..domain import Customer, CustomerStats

_COLUMNS = "id, name, phone, email, location"


def _stats(row: dict) -> CustomerStats:
    return CustomerStats(
        customer=Customer(
            id=row["id"],
            name=row["name"],
            phone=row["phone"],
            email=row["email"],
            location=row["location"],
        ),
        bookings=int(row["bookings"]),
        total_spent=int(row["total_spent"]),
        last_booking=row["last_booking"],
    )


class CustomerRepository:
    def create(self, conn: Connection, *, name: str, phone: str, email: str | None, location: str | None) -> int:
        cur = conn.execute(
            """
            INSERT INTO customers(name, phone, email, location)
            VALUES (%s, %s, %s, %s)
            RETURNING id;
            """,
            (name, phone, email, location),
        )
        return int(cur.fetchone()[0])

    def update(
        self,
        conn: Connection,
        customer_id: int,
        *,
        name: str,
        phone: str,
        email: str | None,
        location: str | None,
    ) -> bool:
        cur = conn.execute(
            """
            UPDATE customers
            SET name = %s, phone = %s, email = %s, location = %s, updated_at = now()
            WHERE id = %s;
            """,
            (name, phone, email, location, customer_id),
        )
        return cur.rowcount == 1

    def delete(self, conn: Connection, customer_id: int) -> bool:
        cur = conn.execute("DELETE FROM customers WHERE id = %s;", (customer_id,))
        return cur.rowcount == 1

    def get(self, conn: Connection, customer_id: int) -> Customer | None:
        cur = conn.execute(f"SELECT {_COLUMNS} FROM customers WHERE id = %s;", (customer_id,))
        row = fetch_one(cur)
        return Customer(**row) if row else None

    def find_by_phone(self, conn: Connection, phone: str) -> Customer | None:
        cur = conn.execute(
            f"SELECT {_COLUMNS} FROM customers WHERE phone = %s ORDER BY id LIMIT 1;",
            (phone,),
        )
        row = fetch_one(cur)
        return Customer(**row) if row else None

    def list(self, conn: Connection, limit: int = 100) -> list[Customer]:
        cur = conn.execute(
            f"SELECT {_COLUMNS} FROM customers ORDER BY name LIMIT %s;",
            (limit,),
        )
        return [Customer(**r) for r in fetch_all(cur)]

    def count(self, conn: Connection) -> int:
        cur = conn.execute("SELECT COUNT(*) FROM customers;")
        return int(cur.fetchone()[0])

    def list_with_stats(self, conn: Connection, *, search: str | None = None, limit: int = 500) -> list[CustomerStats]:
        where = ""
        params: list = []
        if search and search.strip():
            pattern = f"%{search.strip()}%"
            where = "WHERE c.name ILIKE %s OR c.email ILIKE %s OR c.phone ILIKE %s OR c.location ILIKE %s"
            params.extend([pattern] * 4)
        params.append(limit)

        cur = conn.execute(
            f"""
            SELECT
              c.id, c.name, c.phone, c.email, c.location,
              COUNT(b.id) AS bookings,
              COALESCE(SUM(b.total_amount), 0) AS total_spent,
              MAX(b.date) AS last_booking
            FROM customers c
            LEFT JOIN bookings b ON b.customer_id = c.id
            {where}
            GROUP BY c.id
            ORDER BY c.name
            LIMIT %s;
            """,
            params,
        )
        return [_stats(r) for r in fetch_all(cur)]
