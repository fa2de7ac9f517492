from __future__ import annotations

from datetime import date

from psycopg import Connection

from ..db import fetch_all, fetch_one
from ..domain import Booking, BookingLine

_COLUMNS = "id, booking_reference, customer_id, date, time, location, notes, status, total_amount"


class BookingRepository:
    def create(
        self,
        conn: Connection,
        *,
        booking_reference: str,
        customer_id: int | None,
        date: date,
        time: str,
        location: str,
        notes: str | None,
        status: str,
        total_amount: int,
    ) -> int:
        cur = conn.execute(
            """
            INSERT INTO bookings(booking_reference, customer_id, date, time, location, notes, status, total_amount)
            VALUES (%s, %s, %s, %s, %s, %s, %s, %s)
            RETURNING id;
            """,
            (booking_reference, customer_id, date, time, location, notes, status, total_amount),
        )
        return int(cur.fetchone()[0])

    def update(
        self,
        conn: Connection,
        booking_id: int,
        *,
        customer_id: int | None,
        date: date,
        time: str,
        location: str,
        notes: str | None,
        status: str,
    ) -> bool:
        cur = conn.execute(
            """
            UPDATE bookings
            SET customer_id = %s, date = %s, time = %s, location = %s, notes = %s, status = %s,
                updated_at = now()
            WHERE id = %s;
            """,
            (customer_id, date, time, location, notes, status, booking_id),
        )
        return cur.rowcount == 1

    def set_status(self, conn: Connection, booking_id: int, status: str) -> bool:
        cur = conn.execute(
            "UPDATE bookings SET status = %s, updated_at = now() WHERE id = %s;",
            (status, booking_id),
        )
        return cur.rowcount == 1

    def set_total(self, conn: Connection, booking_id: int, total_amount: int) -> None:
        conn.execute(
            "UPDATE bookings SET total_amount = %s, updated_at = now() WHERE id = %s;",
            (total_amount, booking_id),
        )

    def delete(self, conn: Connection, booking_id: int) -> bool:
        cur = conn.execute("DELETE FROM bookings WHERE id = %s;", (booking_id,))
        return cur.rowcount == 1

    def get(self, conn: Connection, booking_id: int) -> Booking | None:
        cur = conn.execute(f"SELECT {_COLUMNS} FROM bookings WHERE id = %s;", (booking_id,))
        row = fetch_one(cur)
        return Booking(**row) if row else None

    def list_by_status(self, conn: Connection, statuses: tuple[str, ...]) -> list[Booking]:
        cur = conn.execute(
            f"SELECT {_COLUMNS} FROM bookings WHERE status = ANY(%s) ORDER BY date, id;",
            (list(statuses),),
        )
        return [Booking(**r) for r in fetch_all(cur)]

    # --- booking_services ---------------------------------------------------

    def add_line(self, conn: Connection, *, booking_id: int, service_id: int, quantity: int, price_at_booking: int) -> None:
        conn.execute(
            """
            INSERT INTO booking_services(booking_id, service_id, quantity, price_at_booking)
            VALUES (%s, %s, %s, %s);
            """,
            (booking_id, service_id, quantity, price_at_booking),
        )

    def delete_lines(self, conn: Connection, booking_id: int) -> int:
        cur = conn.execute("DELETE FROM booking_services WHERE booking_id = %s;", (booking_id,))
        return cur.rowcount

    def list_lines(self, conn: Connection, booking_id: int) -> list[BookingLine]:
        cur = conn.execute(
            """
            SELECT booking_id, service_id, quantity, price_at_booking
            FROM booking_services
            WHERE booking_id = %s
            ORDER BY id;
            """,
            (booking_id,),
        )
        return [BookingLine(**r) for r in fetch_all(cur)]

    # --- read models ----------------------------------------------------------

    def list_detailed(
        self,
        conn: Connection,
        *,
        booking_id: int | None = None,
        statuses: tuple[str, ...] | None = None,
        search: str | None = None,
        date_from: date | None = None,
        date_to: date | None = None,
    ) -> list[dict]:
        """Bookings joined with customer name/phone and the names of their services."""
        clauses = []
        params: list = []
        if booking_id is not None:
            clauses.append("b.id = %s")
            params.append(booking_id)
        if statuses:
            clauses.append("b.status = ANY(%s)")
            params.append(list(statuses))
        if search and search.strip():
            clauses.append("(b.booking_reference ILIKE %s OR c.name ILIKE %s OR b.location ILIKE %s)")
            params.extend([f"%{search.strip()}%"] * 3)
        if date_from is not None:
            clauses.append("b.date >= %s")
            params.append(date_from)
        if date_to is not None:
            clauses.append("b.date <= %s")
            params.append(date_to)
        where = ("WHERE " + " AND ".join(clauses)) if clauses else ""

        cur = conn.execute(
            f"""
            SELECT
              b.id, b.booking_reference, b.customer_id, b.date, b.time, b.location, b.notes,
              b.status, b.total_amount,
              c.name AS customer_name, c.phone,
              ARRAY(
                SELECT s.name
                FROM booking_services bs
                JOIN services s ON s.id = bs.service_id
                WHERE bs.booking_id = b.id
                ORDER BY bs.id
              ) AS services
            FROM bookings b
            LEFT JOIN customers c ON c.id = b.customer_id
            {where}
            ORDER BY b.date DESC, b.time DESC, b.id DESC;
            """,
            params,
        )
        return fetch_all(cur)
