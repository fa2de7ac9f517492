from __future__ import annotations

import calendar
from datetime import date

from psycopg import Connection

from .db import fetch_all, fetch_one


def month_bounds(today: date) -> tuple[date, date]:
    last_day = calendar.monthrange(today.year, today.month)[1]
    return today.replace(day=1), today.replace(day=last_day)


def dashboard_stats(conn: Connection, today: date) -> dict:
    first, last = month_bounds(today)
    # revenue counts each piece of work once: through its job when there is one, else the booking itself
    cur = conn.execute(
        """
        SELECT
          (SELECT COUNT(*) FROM bookings WHERE date = %s) AS bookings_today,
          (SELECT COUNT(*) FROM jobs WHERE status = 'Scheduled') AS pending_jobs,
          (SELECT COALESCE(SUM(b.total_amount), 0)
             FROM bookings b
             LEFT JOIN jobs j ON j.booking_id = b.id
            WHERE COALESCE(j.date, b.date) BETWEEN %s AND %s
              AND COALESCE(j.status, b.status) IN ('InProgress', 'Completed')) AS revenue_month,
          (SELECT COUNT(*) FROM customers) AS total_customers;
        """,
        (today, first, last),
    )
    row = fetch_one(cur)
    return {k: int(v or 0) for k, v in row.items()}


def upcoming_bookings(conn: Connection, today: date, limit: int = 20) -> list[dict]:
    cur = conn.execute(
        """
        SELECT
          b.id, b.booking_reference, b.time, b.status,
          COALESCE(c.name, 'Unknown') AS customer_name,
          COALESCE((
            SELECT s.name
            FROM booking_services bs
            JOIN services s ON s.id = bs.service_id
            WHERE bs.booking_id = b.id
            ORDER BY bs.id
            LIMIT 1
          ), 'No service') AS service
        FROM bookings b
        LEFT JOIN customers c ON c.id = b.customer_id
        WHERE b.date = %s
        ORDER BY b.time
        LIMIT %s;
        """,
        (today, limit),
    )
    return fetch_all(cur)


def accounting_summary(conn: Connection, date_from: date, date_to: date) -> dict:
    cur = conn.execute(
        """
        SELECT
          COUNT(*) AS invoice_count,
          COALESCE(SUM(total_amount) FILTER (WHERE payment_status <> 'Cancelled'), 0) AS invoiced_total,
          COALESCE(SUM(total_amount) FILTER (WHERE payment_status = 'Paid'), 0) AS paid_total,
          COALESCE(SUM(total_amount) FILTER (WHERE payment_status = 'Pending'), 0) AS pending_total,
          COALESCE(SUM(total_amount) FILTER (WHERE payment_status = 'Overdue'), 0) AS overdue_total,
          COALESCE(SUM(tax_amount) FILTER (WHERE payment_status = 'Paid'), 0) AS tax_collected
        FROM invoices
        WHERE issue_date BETWEEN %s AND %s;
        """,
        (date_from, date_to),
    )
    row = fetch_one(cur)
    return {k: int(v or 0) for k, v in row.items()}


def revenue_by_service(conn: Connection, date_from: date, date_to: date, limit: int = 10) -> list[dict]:
    cur = conn.execute(
        """
        SELECT
          s.name,
          SUM(bs.quantity) AS total_qty,
          SUM(bs.quantity * bs.price_at_booking) AS total_value
        FROM booking_services bs
        JOIN bookings b ON b.id = bs.booking_id
        JOIN services s ON s.id = bs.service_id
        WHERE b.date BETWEEN %s AND %s AND b.status <> 'Cancelled'
        GROUP BY s.name
        ORDER BY total_value DESC
        LIMIT %s;
        """,
        (date_from, date_to, limit),
    )
    return fetch_all(cur)
