from __future__ import annotations

from datetime import date

from psycopg import Connection

from ..db import fetch_all, fetch_one
from ..domain import Invoice

_COLUMNS = (
    "id, invoice_number, job_id, customer_id, issue_date, due_date, amount, tax_amount, "
    "total_amount, payment_status, payment_date, payment_method, notes"
)


class InvoiceRepository:
    def create(
        self,
        conn: Connection,
        *,
        invoice_number: str,
        job_id: int | None,
        customer_id: int | None,
        issue_date: date,
        due_date: date,
        amount: int,
        tax_amount: int,
        total_amount: int,
        notes: str | None = None,
    ) -> int:
        cur = conn.execute(
            """
            INSERT INTO invoices(invoice_number, job_id, customer_id, issue_date, due_date,
                                 amount, tax_amount, total_amount, payment_status, notes)
            VALUES (%s, %s, %s, %s, %s, %s, %s, %s, 'Pending', %s)
            RETURNING id;
            """,
            (invoice_number, job_id, customer_id, issue_date, due_date, amount, tax_amount, total_amount, notes),
        )
        return int(cur.fetchone()[0])

    def get(self, conn: Connection, invoice_id: int) -> Invoice | None:
        cur = conn.execute(f"SELECT {_COLUMNS} FROM invoices WHERE id = %s;", (invoice_id,))
        row = fetch_one(cur)
        return Invoice(**row) if row else None

    def record_payment(self, conn: Connection, invoice_id: int, *, method: str, paid_on: date) -> bool:
        cur = conn.execute(
            """
            UPDATE invoices
            SET payment_status = 'Paid', payment_method = %s, payment_date = %s, updated_at = now()
            WHERE id = %s;
            """,
            (method, paid_on, invoice_id),
        )
        return cur.rowcount == 1

    def set_status(self, conn: Connection, invoice_id: int, status: str) -> bool:
        cur = conn.execute(
            "UPDATE invoices SET payment_status = %s, updated_at = now() WHERE id = %s;",
            (status, invoice_id),
        )
        return cur.rowcount == 1

    def mark_overdue(self, conn: Connection, today: date) -> int:
        cur = conn.execute(
            """
            UPDATE invoices
            SET payment_status = 'Overdue', updated_at = now()
            WHERE payment_status = 'Pending' AND due_date < %s;
            """,
            (today,),
        )
        return cur.rowcount

    def delete(self, conn: Connection, invoice_id: int) -> bool:
        cur = conn.execute("DELETE FROM invoices WHERE id = %s;", (invoice_id,))
        return cur.rowcount == 1

    def list_detailed(self, conn: Connection, *, status: str | None = None, search: str | None = None) -> list[dict]:
        clauses = []
        params: list = []
        if status:
            clauses.append("i.payment_status = %s")
            params.append(status)
        if search and search.strip():
            clauses.append(
                "(i.invoice_number ILIKE %s OR j.job_reference ILIKE %s "
                "OR b.booking_reference ILIKE %s OR c.name ILIKE %s)"
            )
            params.extend([f"%{search.strip()}%"] * 4)
        where = ("WHERE " + " AND ".join(clauses)) if clauses else ""

        cur = conn.execute(
            f"""
            SELECT
              i.id, i.invoice_number, i.job_id, i.customer_id, i.issue_date, i.due_date,
              i.amount, i.tax_amount, i.total_amount, i.payment_status, i.payment_date,
              i.payment_method, i.notes,
              j.job_reference, j.booking_id, b.booking_reference,
              c.name AS customer_name
            FROM invoices i
            LEFT JOIN jobs j ON j.id = i.job_id
            LEFT JOIN bookings b ON b.id = j.booking_id
            LEFT JOIN customers c ON c.id = i.customer_id
            {where}
            ORDER BY i.issue_date DESC, i.id DESC;
            """,
            params,
        )
        return fetch_all(cur)
