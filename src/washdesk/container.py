from __future__ import annotations

from dataclasses import dataclass, field

from .config import BusinessConfig
from .repositories.booking_repo import BookingRepository
from .repositories.customer_repo import CustomerRepository
from .repositories.invoice_repo import InvoiceRepository
from .repositories.job_repo import JobRepository
from .repositories.service_repo import ServiceRepository
from .repositories.setting_repo import SettingRepository
from .repositories.technician_repo import TechnicianRepository
from .services.booking_service import BookingService
from .services.invoice_service import InvoiceService
from .services.job_service import JobService


@dataclass
class Repositories:
    customers: CustomerRepository = field(default_factory=CustomerRepository)
    services: ServiceRepository = field(default_factory=ServiceRepository)
    bookings: BookingRepository = field(default_factory=BookingRepository)
    technicians: TechnicianRepository = field(default_factory=TechnicianRepository)
    jobs: JobRepository = field(default_factory=JobRepository)
    invoices: InvoiceRepository = field(default_factory=InvoiceRepository)
    settings: SettingRepository = field(default_factory=SettingRepository)


@dataclass
class Services:
    repos: Repositories
    jobs: JobService
    bookings: BookingService
    invoices: InvoiceService


def build_services(repos: Repositories, business: BusinessConfig | None = None) -> Services:
    business = business or BusinessConfig()
    jobs = JobService(
        job_repo=repos.jobs,
        booking_repo=repos.bookings,
        technician_repo=repos.technicians,
    )
    bookings = BookingService(
        customer_repo=repos.customers,
        service_repo=repos.services,
        booking_repo=repos.bookings,
        job_repo=repos.jobs,
        job_service=jobs,
    )
    invoices = InvoiceService(
        invoice_repo=repos.invoices,
        job_repo=repos.jobs,
        booking_repo=repos.bookings,
        job_service=jobs,
        due_days=business.invoice_due_days,
        tax_rate=business.tax_rate,
    )
    return Services(repos=repos, jobs=jobs, bookings=bookings, invoices=invoices)
