from __future__ import annotations

from datetime import date

from psycopg import Connection

from ..db import fetch_all, fetch_one
from ..domain import Job

_COLUMNS = "id, job_reference, booking_id, technician_id, date, status, start_time, end_time, notes"


class JobRepository:
    def create(
        self,
        conn: Connection,
        *,
        job_reference: str,
        booking_id: int | None,
        technician_id: int | None,
        date: date,
        status: str,
        notes: str | None,
    ) -> int:
        cur = conn.execute(
            """
            INSERT INTO jobs(job_reference, booking_id, technician_id, date, status, notes)
            VALUES (%s, %s, %s, %s, %s, %s)
            RETURNING id;
            """,
            (job_reference, booking_id, technician_id, date, status, notes),
        )
        return int(cur.fetchone()[0])

    def create_for_booking(
        self,
        conn: Connection,
        *,
        booking_id: int,
        job_reference: str,
        technician_id: int | None,
        date: date,
        status: str,
        notes: str | None,
    ) -> int | None:
        """Insert the job for a booking unless one already exists.

        Returns the new id, or None when another job already holds the booking.
        """
        cur = conn.execute(
            """
            INSERT INTO jobs(job_reference, booking_id, technician_id, date, status, notes)
            VALUES (%s, %s, %s, %s, %s, %s)
            ON CONFLICT (booking_id) DO NOTHING
            RETURNING id;
            """,
            (job_reference, booking_id, technician_id, date, status, notes),
        )
        row = cur.fetchone()
        return int(row[0]) if row else None

    def copy_booking_services(self, conn: Connection, *, job_id: int, booking_id: int) -> int:
        cur = conn.execute(
            """
            INSERT INTO job_services(job_id, service_id, quantity, price)
            SELECT %s, service_id, quantity, price_at_booking
            FROM booking_services
            WHERE booking_id = %s;
            """,
            (job_id, booking_id),
        )
        return cur.rowcount

    def get(self, conn: Connection, job_id: int) -> Job | None:
        cur = conn.execute(f"SELECT {_COLUMNS} FROM jobs WHERE id = %s;", (job_id,))
        row = fetch_one(cur)
        return Job(**row) if row else None

    def get_by_booking(self, conn: Connection, booking_id: int) -> Job | None:
        cur = conn.execute(f"SELECT {_COLUMNS} FROM jobs WHERE booking_id = %s;", (booking_id,))
        row = fetch_one(cur)
        return Job(**row) if row else None

    def set_technician(self, conn: Connection, job_id: int, technician_id: int | None) -> bool:
        cur = conn.execute(
            "UPDATE jobs SET technician_id = %s, updated_at = now() WHERE id = %s;",
            (technician_id, job_id),
        )
        return cur.rowcount == 1

    def set_status(self, conn: Connection, job_id: int, status: str) -> bool:
        cur = conn.execute(
            "UPDATE jobs SET status = %s, updated_at = now() WHERE id = %s;",
            (status, job_id),
        )
        return cur.rowcount == 1

    def delete_services(self, conn: Connection, job_id: int) -> int:
        cur = conn.execute("DELETE FROM job_services WHERE job_id = %s;", (job_id,))
        return cur.rowcount

    def delete(self, conn: Connection, job_id: int) -> bool:
        cur = conn.execute("DELETE FROM jobs WHERE id = %s;", (job_id,))
        return cur.rowcount == 1

    def list_detailed(self, conn: Connection) -> list[dict]:
        """Jobs with booking, customer and technician names, newest first.

        Service names come from the booking's lines so they follow edits to the booking.
        """
        cur = conn.execute(
            """
            SELECT
              j.id, j.job_reference, j.booking_id, j.technician_id, j.date, j.status,
              j.start_time, j.end_time, j.notes,
              b.booking_reference, b.location, COALESCE(b.total_amount, 0) AS total_amount,
              c.name AS customer_name,
              t.name AS technician_name,
              ARRAY(
                SELECT s.name
                FROM booking_services bs
                JOIN services s ON s.id = bs.service_id
                WHERE bs.booking_id = j.booking_id
                ORDER BY bs.id
              ) AS services
            FROM jobs j
            LEFT JOIN bookings b ON b.id = j.booking_id
            LEFT JOIN customers c ON c.id = b.customer_id
            LEFT JOIN technicians t ON t.id = j.technician_id
            ORDER BY j.date DESC, j.id DESC;
            """
        )
        return fetch_all(cur)
