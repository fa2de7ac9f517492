from __future__ import annotations

import logging
from datetime import date
from typing import Callable

from psycopg import Connection

from ..domain import (
    ACTIVE_WORK_STATUSES,
    AUTO_JOB_STATUSES,
    JOB_STATUSES,
    STATUSES,
    Booking,
    BookingDerivedJob,
    BookingJobKey,
    JobKey,
    JobRowKey,
    JobView,
    RealJob,
)
from ..repositories.booking_repo import BookingRepository
from ..repositories.job_repo import JobRepository
from ..repositories.technician_repo import TechnicianRepository
from .errors import NotFoundError, ValidationError
from .references import job_reference

logger = logging.getLogger(__name__)


def _real_job(row: dict) -> RealJob:
    return RealJob(
        id=row["id"],
        job_reference=row["job_reference"],
        booking_id=row["booking_id"],
        booking_reference=row["booking_reference"],
        customer_name=row["customer_name"],
        services=tuple(row["services"] or ()),
        date=row["date"],
        status=row["status"],
        amount=int(row["total_amount"] or 0),
        technician_id=row["technician_id"],
        technician=row["technician_name"],
        location=row["location"],
        notes=row["notes"],
        start_time=row["start_time"],
        end_time=row["end_time"],
    )


def _derived_job(row: dict) -> BookingDerivedJob:
    return BookingDerivedJob(
        booking_id=row["id"],
        booking_reference=row["booking_reference"],
        customer_name=row["customer_name"],
        services=tuple(row["services"] or ()),
        date=row["date"],
        status=row["status"],
        amount=int(row["total_amount"] or 0),
        location=row["location"],
        notes=row["notes"],
    )


def _matches(job: JobView, needle: str) -> bool:
    haystack = (
        job.job_reference,
        job.booking_reference,
        job.customer_name,
        job.technician_name,
        job.location,
    )
    return any(needle in (v or "").lower() for v in haystack)


class JobService:
    """Keeps the job board in step with bookings.

    A booking that is being worked on always shows up exactly once: as its job
    row when one exists, otherwise as a BookingDerivedJob. Jobs are created
    from bookings with an insert that yields to an existing row for the same
    booking, so callers never need to check first.
    """

    def __init__(
        self,
        *,
        job_repo: JobRepository,
        booking_repo: BookingRepository,
        technician_repo: TechnicianRepository,
        new_reference: Callable[[], str] = job_reference,
    ) -> None:
        self.job_repo = job_repo
        self.booking_repo = booking_repo
        self.technician_repo = technician_repo
        self.new_reference = new_reference

    def list_jobs(self, conn: Connection, *, status: str | None = None, search: str | None = None) -> list[JobView]:
        job_rows = self.job_repo.list_detailed(conn)
        booking_rows = self.booking_repo.list_detailed(conn, statuses=ACTIVE_WORK_STATUSES)

        covered = {r["booking_id"] for r in job_rows if r["booking_id"] is not None}
        jobs: list[JobView] = [_real_job(r) for r in job_rows]
        jobs.extend(_derived_job(r) for r in booking_rows if r["id"] not in covered)

        if status and status != "all":
            jobs = [j for j in jobs if j.status == status]
        if search and search.strip():
            needle = search.strip().lower()
            jobs = [j for j in jobs if _matches(j, needle)]
        return jobs

    def create_job(
        self,
        conn: Connection,
        *,
        date: date,
        status: str = "Scheduled",
        technician_id: int | None = None,
        notes: str | None = None,
    ) -> int:
        if status not in JOB_STATUSES:
            raise ValidationError(f"Invalid job status: {status}")
        self._check_technician(conn, technician_id)
        return self.job_repo.create(
            conn,
            job_reference=self.new_reference(),
            booking_id=None,
            technician_id=technician_id,
            date=date,
            status=status,
            notes=notes,
        )

    def ensure_job_for_booking(self, conn: Connection, booking_id: int, *, technician_id: int | None = None) -> int | None:
        """Create the booking's job if it has none. Returns the new id, or None if it already had one."""
        booking = self._booking(conn, booking_id)
        return self._create_from_booking(conn, booking, technician_id=technician_id)

    def auto_create_jobs(self, conn: Connection) -> int:
        created = 0
        for booking in self.booking_repo.list_by_status(conn, AUTO_JOB_STATUSES):
            if self._create_from_booking(conn, booking) is not None:
                created += 1
        if created:
            logger.info("Auto-created %d job(s) from bookings", created)
        return created

    def materialize(self, conn: Connection, key: JobKey) -> int:
        """Return a real job id for the key, creating the job from its booking if needed."""
        if isinstance(key, JobRowKey):
            if self.job_repo.get(conn, key.job_id) is None:
                raise NotFoundError(f"Job #{key.job_id} not found.")
            return key.job_id

        booking = self._booking(conn, key.booking_id)
        job_id = self._create_from_booking(conn, booking)
        if job_id is None:
            job_id = self.job_repo.get_by_booking(conn, booking.id).id
        return job_id

    def assign_technician(self, conn: Connection, key: JobKey, technician_id: int | None) -> int:
        """Set or clear (technician_id=None) the technician. Returns the job id."""
        self._check_technician(conn, technician_id)

        if isinstance(key, BookingJobKey):
            booking = self._booking(conn, key.booking_id)
            job_id = self._create_from_booking(conn, booking, technician_id=technician_id)
            if job_id is not None:
                return job_id
            existing = self.job_repo.get_by_booking(conn, booking.id)
            self.job_repo.set_technician(conn, existing.id, technician_id)
            return existing.id

        if not self.job_repo.set_technician(conn, key.job_id, technician_id):
            raise NotFoundError(f"Job #{key.job_id} not found.")
        return key.job_id

    def update_status(self, conn: Connection, key: JobKey, status: str) -> None:
        if isinstance(key, BookingJobKey):
            if status not in STATUSES:
                raise ValidationError(f"Invalid status: {status}")
            if not self.booking_repo.set_status(conn, key.booking_id, status):
                raise NotFoundError(f"Booking #{key.booking_id} not found.")
            # the board may be stale: a job can have appeared since it was rendered
            existing = self.job_repo.get_by_booking(conn, key.booking_id)
            if existing is not None and status in JOB_STATUSES:
                self.job_repo.set_status(conn, existing.id, status)
            return

        if status not in JOB_STATUSES:
            raise ValidationError(f"Invalid job status: {status}")
        if not self.job_repo.set_status(conn, key.job_id, status):
            raise NotFoundError(f"Job #{key.job_id} not found.")

    def delete(self, conn: Connection, key: JobKey) -> None:
        if isinstance(key, BookingJobKey):
            raise ValidationError(
                "This job comes straight from a booking and has no job record. "
                "Change the booking's status instead."
            )
        if self.job_repo.get(conn, key.job_id) is None:
            raise NotFoundError(f"Job #{key.job_id} not found.")
        self.job_repo.delete_services(conn, key.job_id)
        self.job_repo.delete(conn, key.job_id)

    def _create_from_booking(self, conn: Connection, booking: Booking, *, technician_id: int | None = None) -> int | None:
        job_id = self.job_repo.create_for_booking(
            conn,
            booking_id=booking.id,
            job_reference=self.new_reference(),
            technician_id=technician_id,
            date=booking.date,
            status=booking.status if booking.status in JOB_STATUSES else "Scheduled",
            notes=booking.notes,
        )
        if job_id is None:
            return None
        self.job_repo.copy_booking_services(conn, job_id=job_id, booking_id=booking.id)
        logger.info("Created job #%s for booking %s", job_id, booking.booking_reference)
        return job_id

    def _booking(self, conn: Connection, booking_id: int) -> Booking:
        booking = self.booking_repo.get(conn, booking_id)
        if booking is None:
            raise NotFoundError(f"Booking #{booking_id} not found.")
        return booking

    def _check_technician(self, conn: Connection, technician_id: int | None) -> None:
        if technician_id is not None and self.technician_repo.get(conn, technician_id) is None:
            raise ValidationError(f"Unknown technician #{technician_id}.")
