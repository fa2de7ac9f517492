from __future__ import annotations

import csv
import io
import zipfile
from pathlib import Path
from typing import Iterable

from .domain import CustomerStats, JobView
from .formatting import format_date


def job_export_rows(jobs: Iterable[JobView]) -> list[dict]:
    return [
        {
            "Job ID": j.key,
            "Job Reference": j.job_reference,
            "Booking Reference": j.booking_reference or "",
            "Customer": j.customer_name or "Unknown",
            "Services": "; ".join(j.services),
            "Date": format_date(j.date),
            "Technician": j.technician_name,
            "Status": j.status,
            "Amount": j.amount,
            "Location": j.location or "",
            "From Booking": "yes" if j.is_from_booking else "no",
        }
        for j in jobs
    ]


def customer_export_rows(customers: Iterable[CustomerStats]) -> list[dict]:
    return [
        {
            "Name": s.customer.name,
            "Phone": s.customer.phone,
            "Email": s.customer.email or "",
            "Location": s.customer.location or "",
            "Bookings": s.bookings,
            "Total Spent": s.total_spent,
            "Last Booking": format_date(s.last_booking),
        }
        for s in customers
    ]


def invoice_export_rows(invoices: Iterable[dict]) -> list[dict]:
    return [
        {
            "Invoice": r["invoice_number"],
            "Customer": r.get("customer_name") or "Unknown",
            "Job": r.get("job_reference") or "",
            "Booking": r.get("booking_reference") or "",
            "Issued": format_date(r["issue_date"]),
            "Due": format_date(r["due_date"]),
            "Amount": r["amount"],
            "Tax": r["tax_amount"],
            "Total": r["total_amount"],
            "Status": r["payment_status"],
            "Paid On": format_date(r.get("payment_date")),
            "Method": r.get("payment_method") or "",
        }
        for r in invoices
    ]


def rows_to_csv(rows: list[dict]) -> str:
    buf = io.StringIO()
    if rows:
        writer = csv.DictWriter(buf, fieldnames=list(rows[0].keys()))
        writer.writeheader()
        writer.writerows(rows)
    return buf.getvalue()


def export_sheets(path: str | Path, sheets: dict[str, list[dict]]) -> Path:
    """Write one CSV for a single sheet, or a ZIP holding one CSV per sheet."""
    if not sheets:
        raise ValueError("Nothing to export.")

    p = Path(path)
    if len(sheets) == 1:
        rows = next(iter(sheets.values()))
        out = p.with_suffix(".csv")
        out.write_text(rows_to_csv(rows), encoding="utf-8", newline="")
        return out

    out = p.with_suffix(".zip")
    with zipfile.ZipFile(out, "w", compression=zipfile.ZIP_DEFLATED) as zf:
        for name, rows in sheets.items():
            zf.writestr(f"{name}.csv", rows_to_csv(rows))
    return out
