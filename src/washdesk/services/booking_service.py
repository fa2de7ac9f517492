from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from datetime import date

import psycopg
from psycopg import Connection

from ..domain import JOB_STATUSES, STATUSES, Service
from ..repositories.booking_repo import BookingRepository
from ..repositories.customer_repo import CustomerRepository
from ..repositories.job_repo import JobRepository
from ..repositories.service_repo import ServiceRepository
from .errors import NotFoundError, ValidationError
from .job_service import JobService
from .references import booking_reference

logger = logging.getLogger(__name__)


@dataclass
class BookingInput:
    date: date
    time: str
    location: str
    service_ids: list[int]
    customer_id: int | None = None
    notes: str | None = None
    status: str = "Draft"


class BookingService:
    def __init__(
        self,
        *,
        customer_repo: CustomerRepository,
        service_repo: ServiceRepository,
        booking_repo: BookingRepository,
        job_repo: JobRepository,
        job_service: JobService,
    ) -> None:
        self.customer_repo = customer_repo
        self.service_repo = service_repo
        self.booking_repo = booking_repo
        self.job_repo = job_repo
        self.job_service = job_service

    def create_booking(self, conn: Connection, data: BookingInput, *, reference: str | None = None) -> int:
        self._validate(data)
        if not data.service_ids:
            raise ValidationError("Select at least one service.")
        if data.customer_id is not None and self.customer_repo.get(conn, data.customer_id) is None:
            raise ValidationError(f"Unknown customer #{data.customer_id}.")

        services = self._lookup_services(conn, data.service_ids)
        booking_id = self.booking_repo.create(
            conn,
            booking_reference=reference or booking_reference(),
            customer_id=data.customer_id,
            date=data.date,
            time=data.time.strip(),
            location=data.location.strip(),
            notes=_clean(data.notes),
            status=data.status,
            total_amount=sum(s.price for s in services),
        )
        self._write_lines(conn, booking_id, services)
        self._after_status_change(conn, booking_id, data.status)
        return booking_id

    def book_online(
        self,
        conn: Connection,
        *,
        name: str,
        phone: str,
        email: str | None,
        data: BookingInput,
    ) -> int:
        """Public booking form: reuse the customer with this phone number or register a new one."""
        if not (name or "").strip():
            raise ValidationError("Name is required.")
        if not (phone or "").strip():
            raise ValidationError("Phone number is required.")

        offered = {s.id for s in self.service_repo.list(conn, active_only=True)}
        unavailable = [sid for sid in data.service_ids if sid not in offered]
        if unavailable:
            raise ValidationError("One or more selected services are no longer offered.")

        customer = self.customer_repo.find_by_phone(conn, phone.strip())
        if customer is None:
            customer_id = self.customer_repo.create(
                conn,
                name=name.strip(),
                phone=phone.strip(),
                email=_clean(email),
                location=_clean(data.location),
            )
        else:
            customer_id = customer.id

        return self.create_booking(conn, replace(data, customer_id=customer_id, status="Draft"))

    def update_booking(self, conn: Connection, booking_id: int, data: BookingInput, *, replace_services: bool = True) -> None:
        """Update a booking. With replace_services the selection and total are rewritten too."""
        self._validate(data)
        current = self.booking_repo.get(conn, booking_id)
        if current is None:
            raise NotFoundError(f"Booking #{booking_id} not found.")
        if replace_services and not data.service_ids:
            raise ValidationError("Select at least one service.")
        if data.customer_id is not None and self.customer_repo.get(conn, data.customer_id) is None:
            raise ValidationError(f"Unknown customer #{data.customer_id}.")

        self.booking_repo.update(
            conn,
            booking_id,
            customer_id=data.customer_id,
            date=data.date,
            time=data.time.strip(),
            location=data.location.strip(),
            notes=_clean(data.notes),
            status=data.status,
        )
        if replace_services:
            self.replace_services(conn, booking_id, data.service_ids)
        # jobs follow booking status transitions only; edits to other fields leave the job alone
        if data.status != current.status:
            self._after_status_change(conn, booking_id, data.status)

    def replace_services(self, conn: Connection, booking_id: int, service_ids: list[int]) -> int:
        """Swap the booking's service lines for a new selection; returns the new total."""
        services = self._lookup_services(conn, service_ids)
        self.booking_repo.delete_lines(conn, booking_id)
        self._write_lines(conn, booking_id, services)
        total = sum(line.price_at_booking * line.quantity for line in self.booking_repo.list_lines(conn, booking_id))
        self.booking_repo.set_total(conn, booking_id, total)
        return total

    def update_status(self, conn: Connection, booking_id: int, status: str) -> None:
        if status not in STATUSES:
            raise ValidationError(f"Invalid status: {status}")
        if not self.booking_repo.set_status(conn, booking_id, status):
            raise NotFoundError(f"Booking #{booking_id} not found.")
        self._after_status_change(conn, booking_id, status)

    def delete_booking(self, conn: Connection, booking_id: int) -> None:
        if self.booking_repo.get(conn, booking_id) is None:
            raise NotFoundError(f"Booking #{booking_id} not found.")
        job = self.job_repo.get_by_booking(conn, booking_id)
        if job is not None:
            self.job_repo.delete_services(conn, job.id)
            self.job_repo.delete(conn, job.id)
        self.booking_repo.delete_lines(conn, booking_id)
        self.booking_repo.delete(conn, booking_id)
        logger.info("Deleted booking #%s", booking_id)

    def get_booking(self, conn: Connection, booking_id: int) -> dict:
        rows = self.booking_repo.list_detailed(conn, booking_id=booking_id)
        if not rows:
            raise NotFoundError(f"Booking #{booking_id} not found.")
        row = rows[0]
        row["service_ids"] = [line.service_id for line in self.booking_repo.list_lines(conn, booking_id)]
        return row

    def list_bookings(
        self,
        conn: Connection,
        *,
        status: str | None = None,
        search: str | None = None,
        date_from: date | None = None,
        date_to: date | None = None,
    ) -> list[dict]:
        return self.booking_repo.list_detailed(
            conn,
            statuses=(status,) if status and status != "all" else None,
            search=search,
            date_from=date_from,
            date_to=date_to,
        )

    def _after_status_change(self, conn: Connection, booking_id: int, status: str) -> None:
        job = self.job_repo.get_by_booking(conn, booking_id)
        if job is not None:
            if status in JOB_STATUSES:
                if job.status != status:
                    self.job_repo.set_status(conn, job.id, status)
            else:
                logger.info("Booking #%s moved to %s; job #%s keeps status %s", booking_id, status, job.id, job.status)
            return

        if status == "Scheduled":
            # best effort: the booking stands even if its job cannot be created
            try:
                with conn.transaction():
                    self.job_service.ensure_job_for_booking(conn, booking_id)
            except (psycopg.Error, NotFoundError):
                logger.exception("Could not auto-create job for booking #%s", booking_id)

    def _lookup_services(self, conn: Connection, service_ids: list[int]) -> list[Service]:
        found = self.service_repo.get_many(conn, service_ids)
        missing = [sid for sid in service_ids if sid not in found]
        if missing:
            raise ValidationError(f"Unknown service id(s): {', '.join(str(m) for m in missing)}")
        return [found[sid] for sid in service_ids]

    def _write_lines(self, conn: Connection, booking_id: int, services: list[Service]) -> None:
        for s in services:
            self.booking_repo.add_line(
                conn,
                booking_id=booking_id,
                service_id=s.id,
                quantity=1,
                price_at_booking=s.price,
            )

    def _validate(self, data: BookingInput) -> None:
        if data.status not in STATUSES:
            raise ValidationError(f"Invalid status: {data.status}")
        if data.date is None:
            raise ValidationError("Date is required.")
        if not (data.time or "").strip():
            raise ValidationError("Time is required.")
        if not (data.location or "").strip():
            raise ValidationError("Location is required.")


def _clean(value: str | None) -> str | None:
    return (value.strip() or None) if value else None
