from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Literal, Optional, Union

Status = Literal["Draft", "Scheduled", "InProgress", "Completed", "Cancelled"]
PaymentStatus = Literal["Paid", "Pending", "Overdue", "Cancelled"]

# Bookings use every status; a job never sits in Draft.
STATUSES: tuple[str, ...] = ("Draft", "Scheduled", "InProgress", "Completed", "Cancelled")
JOB_STATUSES: tuple[str, ...] = ("Scheduled", "InProgress", "Completed", "Cancelled")
# Bookings in these statuses show up on the job board even without a job row.
ACTIVE_WORK_STATUSES: tuple[str, ...] = ("InProgress", "Completed")
# Bookings in these statuses get a job row from the bulk auto-create.
AUTO_JOB_STATUSES: tuple[str, ...] = ("Scheduled", "InProgress", "Completed")
PAYMENT_STATUSES: tuple[str, ...] = ("Paid", "Pending", "Overdue", "Cancelled")

UNASSIGNED = "Unassigned"
BOOKING_KEY_PREFIX = "booking-"


@dataclass(frozen=True)
class Customer:
    id: int
    name: str
    phone: str
    email: Optional[str]
    location: Optional[str]


@dataclass(frozen=True)
class Service:
    id: int
    name: str
    price: int
    description: Optional[str]
    active: bool


@dataclass(frozen=True)
class Booking:
    id: int
    booking_reference: str
    customer_id: Optional[int]
    date: date
    time: str
    location: str
    notes: Optional[str]
    status: Status
    total_amount: int


@dataclass(frozen=True)
class BookingLine:
    booking_id: int
    service_id: int
    quantity: int
    price_at_booking: int


@dataclass(frozen=True)
class Technician:
    id: int
    name: str
    email: Optional[str]
    phone: Optional[str]
    active: bool


@dataclass(frozen=True)
class Job:
    id: int
    job_reference: str
    booking_id: Optional[int]
    technician_id: Optional[int]
    date: date
    status: Status
    start_time: Optional[str]
    end_time: Optional[str]
    notes: Optional[str]


@dataclass(frozen=True)
class Invoice:
    id: int
    invoice_number: str
    job_id: Optional[int]
    customer_id: Optional[int]
    issue_date: date
    due_date: date
    amount: int
    tax_amount: int
    total_amount: int
    payment_status: PaymentStatus
    payment_date: Optional[date]
    payment_method: Optional[str]
    notes: Optional[str]


@dataclass(frozen=True)
class Setting:
    id: str
    category: str
    name: str
    value: object
    description: Optional[str]


# --- job board -------------------------------------------------------------


@dataclass(frozen=True)
class RealJob:
    """A row of the jobs table, joined with its booking, customer and technician."""

    id: int
    job_reference: str
    booking_id: Optional[int]
    booking_reference: Optional[str]
    customer_name: Optional[str]
    services: tuple[str, ...]
    date: date
    status: Status
    amount: int
    technician_id: Optional[int]
    technician: Optional[str]
    location: Optional[str]
    notes: Optional[str] = None
    start_time: Optional[str] = None
    end_time: Optional[str] = None

    @property
    def key(self) -> str:
        return str(self.id)

    @property
    def is_from_booking(self) -> bool:
        return False

    @property
    def technician_name(self) -> str:
        return self.technician or UNASSIGNED


@dataclass(frozen=True)
class BookingDerivedJob:
    """An in-progress or completed booking that has no job row yet."""

    booking_id: int
    booking_reference: str
    customer_name: Optional[str]
    services: tuple[str, ...]
    date: date
    status: Status
    amount: int
    location: Optional[str]
    notes: Optional[str] = None

    @property
    def key(self) -> str:
        return f"{BOOKING_KEY_PREFIX}{self.booking_id}"

    @property
    def job_reference(self) -> str:
        return self.booking_reference

    @property
    def is_from_booking(self) -> bool:
        return True

    @property
    def technician_id(self) -> None:
        return None

    @property
    def technician_name(self) -> str:
        return UNASSIGNED


JobView = Union[RealJob, BookingDerivedJob]


@dataclass(frozen=True)
class JobRowKey:
    job_id: int


@dataclass(frozen=True)
class BookingJobKey:
    booking_id: int


JobKey = Union[JobRowKey, BookingJobKey]


def parse_job_key(text: str) -> JobKey:
    """Turn the identifier used in URLs and forms back into a typed key."""
    raw = (text or "").strip()
    try:
        if raw.startswith(BOOKING_KEY_PREFIX):
            return BookingJobKey(booking_id=int(raw[len(BOOKING_KEY_PREFIX):]))
        return JobRowKey(job_id=int(raw))
    except ValueError:
        raise ValueError(f"Invalid job identifier: {text!r}") from None


def format_job_key(key: JobKey) -> str:
    if isinstance(key, BookingJobKey):
        return f"{BOOKING_KEY_PREFIX}{key.booking_id}"
    return str(key.job_id)


@dataclass(frozen=True)
class CustomerStats:
    customer: Customer
    bookings: int = 0
    total_spent: int = 0
    last_booking: Optional[date] = None
