"""In-memory stand-ins for the PostgreSQL repositories.

The fakes keep the constraints the services rely on: one job per booking,
unique service names and foreign keys that refuse to orphan rows.
``FakeConn.transaction()`` behaves like a savepoint and restores the store
when the block raises.
"""
from __future__ import annotations

import copy
from contextlib import contextmanager
from dataclasses import dataclass, field, replace
from datetime import date

import psycopg
import pytest
from werkzeug.security import generate_password_hash

from washdesk.auth import AdminAccount
from washdesk.config import AppConfig, AuthConfig, BusinessConfig, DbConfig
from washdesk.container import Repositories, build_services
from washdesk.domain import (
    Booking,
    BookingLine,
    Customer,
    CustomerStats,
    Invoice,
    Job,
    Service,
    Setting,
    Technician,
)
from washdesk.services.booking_service import BookingInput

ADMIN_EMAIL = "admin@washdesk.test"
ADMIN_PASSWORD = "let-me-in"


@dataclass
class Store:
    customers: dict[int, Customer] = field(default_factory=dict)
    services: dict[int, Service] = field(default_factory=dict)
    bookings: dict[int, Booking] = field(default_factory=dict)
    booking_lines: dict[int, BookingLine] = field(default_factory=dict)
    technicians: dict[int, Technician] = field(default_factory=dict)
    jobs: dict[int, Job] = field(default_factory=dict)
    job_services: dict[int, dict] = field(default_factory=dict)
    invoices: dict[int, Invoice] = field(default_factory=dict)
    settings: dict[str, Setting] = field(default_factory=dict)
    next_id: int = 1

    def new_id(self) -> int:
        self.next_id += 1
        return self.next_id - 1

    def lines_for(self, booking_id: int) -> list[BookingLine]:
        return [line for _, line in sorted(self.booking_lines.items()) if line.booking_id == booking_id]

    def service_names(self, booking_id: int | None) -> list[str]:
        if booking_id is None:
            return []
        return [self.services[line.service_id].name for line in self.lines_for(booking_id)]


class FakeConn:
    def __init__(self, store: Store) -> None:
        self.store = store

    @contextmanager
    def transaction(self):
        saved = copy.deepcopy(self.store.__dict__)
        try:
            yield self
        except Exception:
            self.store.__dict__.update(saved)
            raise


class FakeDb:
    def __init__(self, store: Store) -> None:
        self.conn = FakeConn(store)

    @contextmanager
    def session(self):
        yield self.conn

    @contextmanager
    def transaction(self):
        with self.conn.transaction():
            yield self.conn

    snapshot = session

    def apply_schema(self) -> None:
        pass


class FakeCustomerRepository:
    def __init__(self, store: Store) -> None:
        self.store = store

    def create(self, conn, *, name, phone, email, location):
        cid = self.store.new_id()
        self.store.customers[cid] = Customer(id=cid, name=name, phone=phone, email=email, location=location)
        return cid

    def update(self, conn, customer_id, *, name, phone, email, location):
        if customer_id not in self.store.customers:
            return False
        self.store.customers[customer_id] = Customer(
            id=customer_id, name=name, phone=phone, email=email, location=location
        )
        return True

    def delete(self, conn, customer_id):
        if self.store.customers.pop(customer_id, None) is None:
            return False
        for b in list(self.store.bookings.values()):
            if b.customer_id == customer_id:
                self.store.bookings[b.id] = replace(b, customer_id=None)
        return True

    def get(self, conn, customer_id):
        return self.store.customers.get(customer_id)

    def find_by_phone(self, conn, phone):
        matches = [c for c in self.store.customers.values() if c.phone == phone]
        return min(matches, key=lambda c: c.id) if matches else None

    def list(self, conn, limit=100):
        return sorted(self.store.customers.values(), key=lambda c: c.name)[:limit]

    def count(self, conn):
        return len(self.store.customers)

    def list_with_stats(self, conn, *, search=None, limit=500):
        needle = (search or "").strip().lower()
        out = []
        for c in sorted(self.store.customers.values(), key=lambda c: c.name):
            if needle and not any(needle in (v or "").lower() for v in (c.name, c.email, c.phone, c.location)):
                continue
            mine = [b for b in self.store.bookings.values() if b.customer_id == c.id]
            out.append(
                CustomerStats(
                    customer=c,
                    bookings=len(mine),
                    total_spent=sum(b.total_amount for b in mine),
                    last_booking=max((b.date for b in mine), default=None),
                )
            )
        return out[:limit]


class FakeServiceRepository:
    def __init__(self, store: Store) -> None:
        self.store = store

    def create(self, conn, *, name, price, description, active=True):
        if any(s.name == name for s in self.store.services.values()):
            raise psycopg.errors.UniqueViolation(f"duplicate service name {name!r}")
        sid = self.store.new_id()
        self.store.services[sid] = Service(id=sid, name=name, price=price, description=description, active=active)
        return sid

    def upsert_by_name(self, conn, *, name, price, description, active=True):
        for s in self.store.services.values():
            if s.name == name:
                self.store.services[s.id] = replace(s, price=price, description=description, active=active)
                return s.id
        return self.create(conn, name=name, price=price, description=description, active=active)

    def update(self, conn, service_id, *, name, price, description, active):
        if service_id not in self.store.services:
            return False
        if any(s.name == name and s.id != service_id for s in self.store.services.values()):
            raise psycopg.errors.UniqueViolation(f"duplicate service name {name!r}")
        self.store.services[service_id] = Service(
            id=service_id, name=name, price=price, description=description, active=active
        )
        return True

    def set_active(self, conn, service_id, active):
        s = self.store.services.get(service_id)
        if s is None:
            return False
        self.store.services[service_id] = replace(s, active=active)
        return True

    def delete(self, conn, service_id):
        if any(line.service_id == service_id for line in self.store.booking_lines.values()):
            raise psycopg.errors.ForeignKeyViolation("service is referenced by booking_services")
        return self.store.services.pop(service_id, None) is not None

    def get(self, conn, service_id):
        return self.store.services.get(service_id)

    def get_many(self, conn, service_ids):
        return {sid: self.store.services[sid] for sid in service_ids if sid in self.store.services}

    def list(self, conn, *, active_only=False):
        rows = [s for s in self.store.services.values() if s.active or not active_only]
        return sorted(rows, key=lambda s: (s.price, s.name))


class FakeBookingRepository:
    def __init__(self, store: Store) -> None:
        self.store = store

    def create(self, conn, *, booking_reference, customer_id, date, time, location, notes, status, total_amount):
        bid = self.store.new_id()
        self.store.bookings[bid] = Booking(
            id=bid,
            booking_reference=booking_reference,
            customer_id=customer_id,
            date=date,
            time=time,
            location=location,
            notes=notes,
            status=status,
            total_amount=total_amount,
        )
        return bid

    def update(self, conn, booking_id, *, customer_id, date, time, location, notes, status):
        b = self.store.bookings.get(booking_id)
        if b is None:
            return False
        self.store.bookings[booking_id] = replace(
            b, customer_id=customer_id, date=date, time=time, location=location, notes=notes, status=status
        )
        return True

    def set_status(self, conn, booking_id, status):
        b = self.store.bookings.get(booking_id)
        if b is None:
            return False
        self.store.bookings[booking_id] = replace(b, status=status)
        return True

    def set_total(self, conn, booking_id, total_amount):
        b = self.store.bookings.get(booking_id)
        if b is not None:
            self.store.bookings[booking_id] = replace(b, total_amount=total_amount)

    def delete(self, conn, booking_id):
        if self.store.lines_for(booking_id):
            raise psycopg.errors.ForeignKeyViolation("booking is referenced by booking_services")
        if any(j.booking_id == booking_id for j in self.store.jobs.values()):
            raise psycopg.errors.ForeignKeyViolation("booking is referenced by jobs")
        return self.store.bookings.pop(booking_id, None) is not None

    def get(self, conn, booking_id):
        return self.store.bookings.get(booking_id)

    def list_by_status(self, conn, statuses):
        rows = [b for b in self.store.bookings.values() if b.status in statuses]
        return sorted(rows, key=lambda b: (b.date, b.id))

    def add_line(self, conn, *, booking_id, service_id, quantity, price_at_booking):
        lid = self.store.new_id()
        self.store.booking_lines[lid] = BookingLine(
            booking_id=booking_id, service_id=service_id, quantity=quantity, price_at_booking=price_at_booking
        )

    def delete_lines(self, conn, booking_id):
        doomed = [lid for lid, line in self.store.booking_lines.items() if line.booking_id == booking_id]
        for lid in doomed:
            del self.store.booking_lines[lid]
        return len(doomed)

    def list_lines(self, conn, booking_id):
        return self.store.lines_for(booking_id)

    def list_detailed(self, conn, *, booking_id=None, statuses=None, search=None, date_from=None, date_to=None):
        needle = (search or "").strip().lower()
        out = []
        for b in self.store.bookings.values():
            customer = self.store.customers.get(b.customer_id)
            if booking_id is not None and b.id != booking_id:
                continue
            if statuses and b.status not in statuses:
                continue
            if date_from is not None and b.date < date_from:
                continue
            if date_to is not None and b.date > date_to:
                continue
            name = customer.name if customer else None
            if needle and not any(needle in (v or "").lower() for v in (b.booking_reference, name, b.location)):
                continue
            out.append(
                {
                    "id": b.id,
                    "booking_reference": b.booking_reference,
                    "customer_id": b.customer_id,
                    "date": b.date,
                    "time": b.time,
                    "location": b.location,
                    "notes": b.notes,
                    "status": b.status,
                    "total_amount": b.total_amount,
                    "customer_name": name,
                    "phone": customer.phone if customer else None,
                    "services": self.store.service_names(b.id),
                }
            )
        return sorted(out, key=lambda r: (r["date"], r["time"], r["id"]), reverse=True)


class FakeTechnicianRepository:
    def __init__(self, store: Store) -> None:
        self.store = store

    def create(self, conn, *, name, email, phone, active=True):
        tid = self.store.new_id()
        self.store.technicians[tid] = Technician(id=tid, name=name, email=email, phone=phone, active=active)
        return tid

    def update(self, conn, technician_id, *, name, email, phone, active):
        if technician_id not in self.store.technicians:
            return False
        self.store.technicians[technician_id] = Technician(
            id=technician_id, name=name, email=email, phone=phone, active=active
        )
        return True

    def set_active(self, conn, technician_id, active):
        t = self.store.technicians.get(technician_id)
        if t is None:
            return False
        self.store.technicians[technician_id] = replace(t, active=active)
        return True

    def delete(self, conn, technician_id):
        if self.store.technicians.pop(technician_id, None) is None:
            return False
        for j in list(self.store.jobs.values()):
            if j.technician_id == technician_id:
                self.store.jobs[j.id] = replace(j, technician_id=None)
        return True

    def get(self, conn, technician_id):
        return self.store.technicians.get(technician_id)

    def list(self, conn, *, active_only=False):
        rows = [t for t in self.store.technicians.values() if t.active or not active_only]
        return sorted(rows, key=lambda t: t.name)


class FakeJobRepository:
    def __init__(self, store: Store) -> None:
        self.store = store

    def create(self, conn, *, job_reference, booking_id, technician_id, date, status, notes):
        if booking_id is not None and self.get_by_booking(conn, booking_id) is not None:
            raise psycopg.errors.UniqueViolation('duplicate key value violates unique constraint "jobs_booking_id_key"')
        jid = self.store.new_id()
        self.store.jobs[jid] = Job(
            id=jid,
            job_reference=job_reference,
            booking_id=booking_id,
            technician_id=technician_id,
            date=date,
            status=status,
            start_time=None,
            end_time=None,
            notes=notes,
        )
        return jid

    def create_for_booking(self, conn, *, booking_id, job_reference, technician_id, date, status, notes):
        if self.get_by_booking(conn, booking_id) is not None:
            return None
        return self.create(
            conn,
            job_reference=job_reference,
            booking_id=booking_id,
            technician_id=technician_id,
            date=date,
            status=status,
            notes=notes,
        )

    def copy_booking_services(self, conn, *, job_id, booking_id):
        lines = self.store.lines_for(booking_id)
        for line in lines:
            self.store.job_services[self.store.new_id()] = {
                "job_id": job_id,
                "service_id": line.service_id,
                "quantity": line.quantity,
                "price": line.price_at_booking,
            }
        return len(lines)

    def get(self, conn, job_id):
        return self.store.jobs.get(job_id)

    def get_by_booking(self, conn, booking_id):
        return next((j for j in self.store.jobs.values() if j.booking_id == booking_id), None)

    def set_technician(self, conn, job_id, technician_id):
        j = self.store.jobs.get(job_id)
        if j is None:
            return False
        self.store.jobs[job_id] = replace(j, technician_id=technician_id)
        return True

    def set_status(self, conn, job_id, status):
        j = self.store.jobs.get(job_id)
        if j is None:
            return False
        self.store.jobs[job_id] = replace(j, status=status)
        return True

    def delete_services(self, conn, job_id):
        doomed = [k for k, row in self.store.job_services.items() if row["job_id"] == job_id]
        for k in doomed:
            del self.store.job_services[k]
        return len(doomed)

    def delete(self, conn, job_id):
        if any(row["job_id"] == job_id for row in self.store.job_services.values()):
            raise psycopg.errors.ForeignKeyViolation("job is referenced by job_services")
        if self.store.jobs.pop(job_id, None) is None:
            return False
        for inv in list(self.store.invoices.values()):
            if inv.job_id == job_id:
                self.store.invoices[inv.id] = replace(inv, job_id=None)
        return True

    def list_detailed(self, conn):
        out = []
        for j in self.store.jobs.values():
            booking = self.store.bookings.get(j.booking_id)
            customer = self.store.customers.get(booking.customer_id) if booking else None
            tech = self.store.technicians.get(j.technician_id)
            out.append(
                {
                    "id": j.id,
                    "job_reference": j.job_reference,
                    "booking_id": j.booking_id,
                    "technician_id": j.technician_id,
                    "date": j.date,
                    "status": j.status,
                    "start_time": j.start_time,
                    "end_time": j.end_time,
                    "notes": j.notes,
                    "booking_reference": booking.booking_reference if booking else None,
                    "location": booking.location if booking else None,
                    "total_amount": booking.total_amount if booking else 0,
                    "customer_name": customer.name if customer else None,
                    "technician_name": tech.name if tech else None,
                    "services": self.store.service_names(j.booking_id),
                }
            )
        return sorted(out, key=lambda r: (r["date"], r["id"]), reverse=True)


class FakeInvoiceRepository:
    def __init__(self, store: Store) -> None:
        self.store = store

    def create(
        self,
        conn,
        *,
        invoice_number,
        job_id,
        customer_id,
        issue_date,
        due_date,
        amount,
        tax_amount,
        total_amount,
        notes=None,
    ):
        iid = self.store.new_id()
        self.store.invoices[iid] = Invoice(
            id=iid,
            invoice_number=invoice_number,
            job_id=job_id,
            customer_id=customer_id,
            issue_date=issue_date,
            due_date=due_date,
            amount=amount,
            tax_amount=tax_amount,
            total_amount=total_amount,
            payment_status="Pending",
            payment_date=None,
            payment_method=None,
            notes=notes,
        )
        return iid

    def get(self, conn, invoice_id):
        return self.store.invoices.get(invoice_id)

    def record_payment(self, conn, invoice_id, *, method, paid_on):
        inv = self.store.invoices.get(invoice_id)
        if inv is None:
            return False
        self.store.invoices[invoice_id] = replace(
            inv, payment_status="Paid", payment_method=method, payment_date=paid_on
        )
        return True

    def set_status(self, conn, invoice_id, status):
        inv = self.store.invoices.get(invoice_id)
        if inv is None:
            return False
        self.store.invoices[invoice_id] = replace(inv, payment_status=status)
        return True

    def mark_overdue(self, conn, today):
        n = 0
        for inv in list(self.store.invoices.values()):
            if inv.payment_status == "Pending" and inv.due_date < today:
                self.store.invoices[inv.id] = replace(inv, payment_status="Overdue")
                n += 1
        return n

    def delete(self, conn, invoice_id):
        return self.store.invoices.pop(invoice_id, None) is not None

    def list_detailed(self, conn, *, status=None, search=None):
        out = []
        for inv in self.store.invoices.values():
            if status and inv.payment_status != status:
                continue
            job = self.store.jobs.get(inv.job_id)
            booking = self.store.bookings.get(job.booking_id) if job else None
            customer = self.store.customers.get(inv.customer_id)
            row = {
                "id": inv.id,
                "invoice_number": inv.invoice_number,
                "job_id": inv.job_id,
                "customer_id": inv.customer_id,
                "issue_date": inv.issue_date,
                "due_date": inv.due_date,
                "amount": inv.amount,
                "tax_amount": inv.tax_amount,
                "total_amount": inv.total_amount,
                "payment_status": inv.payment_status,
                "payment_date": inv.payment_date,
                "payment_method": inv.payment_method,
                "notes": inv.notes,
                "job_reference": job.job_reference if job else None,
                "booking_id": job.booking_id if job else None,
                "booking_reference": booking.booking_reference if booking else None,
                "customer_name": customer.name if customer else None,
            }
            needle = (search or "").strip().lower()
            fields = (row["invoice_number"], row["job_reference"], row["booking_reference"], row["customer_name"])
            if needle and not any(needle in (v or "").lower() for v in fields):
                continue
            out.append(row)
        return sorted(out, key=lambda r: (r["issue_date"], r["id"]), reverse=True)


class FakeSettingRepository:
    def __init__(self, store: Store) -> None:
        self.store = store

    def get(self, conn, key):
        return self.store.settings.get(key)

    def list(self, conn, category=None):
        rows = [s for s in self.store.settings.values() if category is None or s.category == category]
        return sorted(rows, key=lambda s: (s.category, s.id))

    def upsert(self, conn, *, key, category, name, value, description=None):
        self.store.settings[key] = Setting(id=key, category=category, name=name, value=value, description=description)


# --- fixtures -------------------------------------------------------------------


@pytest.fixture
def store() -> Store:
    return Store()


@pytest.fixture
def conn(store) -> FakeConn:
    return FakeConn(store)


@pytest.fixture
def fake_db(store) -> FakeDb:
    return FakeDb(store)


@pytest.fixture
def repos(store) -> Repositories:
    return Repositories(
        customers=FakeCustomerRepository(store),
        services=FakeServiceRepository(store),
        bookings=FakeBookingRepository(store),
        technicians=FakeTechnicianRepository(store),
        jobs=FakeJobRepository(store),
        invoices=FakeInvoiceRepository(store),
        settings=FakeSettingRepository(store),
    )


@pytest.fixture
def services(repos):
    return build_services(repos)


@pytest.fixture
def catalog(repos, conn) -> dict[str, int]:
    """Service ids by name."""
    return {
        "Basic Wash": repos.services.create(conn, name="Basic Wash", price=25000, description="Exterior wash"),
        "Interior Detail": repos.services.create(conn, name="Interior Detail", price=40000, description=None),
        "Engine Bay": repos.services.create(conn, name="Engine Bay", price=15000, description=None),
    }


@pytest.fixture
def customer_id(repos, conn) -> int:
    return repos.customers.create(conn, name="Jane Namusoke", phone="0772000111", email="jane@example.com", location="Ntinda")


@pytest.fixture
def technician_id(repos, conn) -> int:
    return repos.technicians.create(conn, name="Okello Brian", email=None, phone="0701000222")


@pytest.fixture
def make_booking(services, conn, catalog, customer_id):
    """Create a booking through BookingService; services are given by name."""

    def _make(status="Draft", names=("Basic Wash",), day=date(2024, 3, 14), time="09:30", notes=None):
        data = BookingInput(
            date=day,
            time=time,
            location="Ntinda, Kampala",
            service_ids=[catalog[n] for n in names],
            customer_id=customer_id,
            notes=notes,
            status=status,
        )
        return services.bookings.create_booking(conn, data)

    return _make


@pytest.fixture
def app_config() -> AppConfig:
    return AppConfig(
        name="WashDesk Test",
        log_level="DEBUG",
        secret_key="test-secret",
        db=DbConfig(host="localhost", port=5432, name="washdesk_test", user="test", password="test"),
        business=BusinessConfig(currency="UGX", invoice_due_days=7, tax_rate=0.0),
        auth=AuthConfig(
            admins=(
                AdminAccount(
                    email=ADMIN_EMAIL,
                    password_hash=generate_password_hash(ADMIN_PASSWORD, method="pbkdf2:sha256:1000"),
                ),
            )
        ),
    )


@pytest.fixture
def admin_credentials() -> tuple[str, str]:
    return ADMIN_EMAIL, ADMIN_PASSWORD
