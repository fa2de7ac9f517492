from __future__ import annotations

import logging
from datetime import date, timedelta

from psycopg import Connection

from ..domain import PAYMENT_STATUSES, JobKey
from ..repositories.booking_repo import BookingRepository
from ..repositories.invoice_repo import InvoiceRepository
from ..repositories.job_repo import JobRepository
from .errors import NotFoundError, ValidationError
from .job_service import JobService
from .references import invoice_number

logger = logging.getLogger(__name__)


class InvoiceService:
    def __init__(
        self,
        *,
        invoice_repo: InvoiceRepository,
        job_repo: JobRepository,
        booking_repo: BookingRepository,
        job_service: JobService,
        due_days: int = 7,
        tax_rate: float = 0.0,
    ) -> None:
        self.invoice_repo = invoice_repo
        self.job_repo = job_repo
        self.booking_repo = booking_repo
        self.job_service = job_service
        self.due_days = due_days
        self.tax_rate = tax_rate

    def generate_for_job(self, conn: Connection, key: JobKey, *, issue_date: date) -> int:
        job_id = self.job_service.materialize(conn, key)
        job = self.job_repo.get(conn, job_id)
        if job.booking_id is None:
            raise ValidationError(f"Job {job.job_reference} has no booking to bill.")
        booking = self.booking_repo.get(conn, job.booking_id)
        if booking is None:
            raise NotFoundError(f"Booking #{job.booking_id} not found.")

        amount = booking.total_amount
        tax = round(amount * self.tax_rate)
        invoice_id = self.invoice_repo.create(
            conn,
            invoice_number=invoice_number(job.job_reference, issue_date),
            job_id=job.id,
            customer_id=booking.customer_id,
            issue_date=issue_date,
            due_date=issue_date + timedelta(days=self.due_days),
            amount=amount,
            tax_amount=tax,
            total_amount=amount + tax,
        )
        logger.info("Generated invoice #%s for job %s (%s)", invoice_id, job.job_reference, amount + tax)
        return invoice_id

    def record_payment(self, conn: Connection, invoice_id: int, *, method: str, paid_on: date) -> None:
        if not (method or "").strip():
            raise ValidationError("Payment method cannot be empty.")
        invoice = self.invoice_repo.get(conn, invoice_id)
        if invoice is None:
            raise NotFoundError(f"Invoice #{invoice_id} not found.")
        if invoice.payment_status == "Paid":
            raise ValidationError(f"Invoice {invoice.invoice_number} is already paid.")
        if invoice.payment_status == "Cancelled":
            raise ValidationError(f"Invoice {invoice.invoice_number} is cancelled.")
        self.invoice_repo.record_payment(conn, invoice_id, method=method.strip(), paid_on=paid_on)

    def set_status(self, conn: Connection, invoice_id: int, status: str) -> None:
        if status not in PAYMENT_STATUSES:
            raise ValidationError(f"Invalid payment status: {status}")
        if not self.invoice_repo.set_status(conn, invoice_id, status):
            raise NotFoundError(f"Invoice #{invoice_id} not found.")

    def cancel(self, conn: Connection, invoice_id: int) -> None:
        self.set_status(conn, invoice_id, "Cancelled")

    def mark_overdue(self, conn: Connection, today: date) -> int:
        n = self.invoice_repo.mark_overdue(conn, today)
        if n:
            logger.info("Marked %d invoice(s) overdue", n)
        return n

    def list_invoices(self, conn: Connection, *, status: str | None = None, search: str | None = None) -> list[dict]:
        return self.invoice_repo.list_detailed(
            conn,
            status=status if status and status != "all" else None,
            search=search,
        )
