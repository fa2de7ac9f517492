from __future__ import annotations

from datetime import date

import psycopg

from .config import BusinessConfig
from .container import Repositories, build_services
from .db import Db
from .domain import parse_job_key
from .exporting import export_sheets, job_export_rows
from .formatting import format_date, format_money
from .importers import DataImportError, import_customers_csv, import_services_json
from .reports import dashboard_stats, month_bounds, revenue_by_service, upcoming_bookings
from .services.booking_service import BookingInput
from .services.errors import NotFoundError, ValidationError


def _prompt(msg: str) -> str:
    return input(msg).strip()


def _int_list(raw: str) -> list[int]:
    return [int(x) for x in raw.replace(",", " ").split()]


def run_cli(db: Db, business: BusinessConfig) -> None:
    repos = Repositories()
    services = build_services(repos, business)
    money = lambda amount: format_money(amount, business.currency)  # noqa: E731

    while True:
        print("\n=== WashDesk CLI ===")
        print("1) List customers")
        print("2) List services")
        print("3) Create booking")
        print("4) Change booking status")
        print("5) Job board")
        print("6) Auto-create jobs from bookings")
        print("7) Assign technician")
        print("8) Change job status")
        print("9) Generate invoice for job")
        print("10) Record invoice payment")
        print("11) Dashboard")
        print("12) Export job board")
        print("13) Import customers CSV")
        print("14) Import services JSON")
        print("15) Initialize database schema")
        print("0) Exit")

        choice = _prompt("> ")
        try:
            if choice == "0":
                return

            elif choice == "1":
                with db.session() as conn:
                    rows = repos.customers.list_with_stats(conn)
                for s in rows:
                    c = s.customer
                    print(
                        f"#{c.id} {c.name} phone={c.phone} bookings={s.bookings} "
                        f"spent={money(s.total_spent)} last={format_date(s.last_booking)}"
                    )

            elif choice == "2":
                with db.session() as conn:
                    rows = repos.services.list(conn)
                for s in rows:
                    print(f"#{s.id} {s.name} price={money(s.price)} active={s.active}")

            elif choice == "3":
                customer_id = int(_prompt("customer_id: "))
                data = BookingInput(
                    customer_id=customer_id,
                    date=date.fromisoformat(_prompt("date (YYYY-MM-DD): ")),
                    time=_prompt("time (HH:MM): "),
                    location=_prompt("location: "),
                    notes=_prompt("notes (optional): ") or None,
                    status=_prompt("status (Draft/Scheduled) [Draft]: ") or "Draft",
                    service_ids=_int_list(_prompt("service ids (comma separated): ")),
                )
                # booking, its service lines and any job are written together
                with db.transaction() as conn:
                    booking_id = services.bookings.create_booking(conn, data)
                print(f"Created booking_id={booking_id}")

            elif choice == "4":
                booking_id = int(_prompt("booking_id: "))
                status = _prompt("new status: ")
                with db.transaction() as conn:
                    services.bookings.update_status(conn, booking_id, status)
                print("Booking updated.")

            elif choice == "5":
                status = _prompt("status filter (blank for all): ") or None
                with db.snapshot() as conn:
                    jobs = services.jobs.list_jobs(conn, status=status)
                for j in jobs:
                    origin = " (from booking)" if j.is_from_booking else ""
                    print(
                        f"[{j.key}] {j.job_reference} booking={j.booking_reference} "
                        f"customer={j.customer_name} date={format_date(j.date)} status={j.status} "
                        f"tech={j.technician_name} amount={money(j.amount)}{origin}"
                    )

            elif choice == "6":
                with db.transaction() as conn:
                    n = services.jobs.auto_create_jobs(conn)
                print(f"Jobs created: {n}")

            elif choice == "7":
                key = parse_job_key(_prompt("job id (or booking-<id>): "))
                raw = _prompt("technician_id (blank to unassign): ")
                with db.transaction() as conn:
                    job_id = services.jobs.assign_technician(conn, key, int(raw) if raw else None)
                print(f"Job #{job_id} updated.")

            elif choice == "8":
                key = parse_job_key(_prompt("job id (or booking-<id>): "))
                status = _prompt("new status: ")
                with db.transaction() as conn:
                    services.jobs.update_status(conn, key, status)
                print("Status updated.")

            elif choice == "9":
                key = parse_job_key(_prompt("job id (or booking-<id>): "))
                with db.transaction() as conn:
                    invoice_id = services.invoices.generate_for_job(conn, key, issue_date=date.today())
                print(f"Created invoice_id={invoice_id}")

            elif choice == "10":
                invoice_id = int(_prompt("invoice_id: "))
                method = _prompt("method (cash/mobile money/card): ") or "cash"
                with db.transaction() as conn:
                    services.invoices.record_payment(conn, invoice_id, method=method, paid_on=date.today())
                print("Payment recorded.")

            elif choice == "11":
                today = date.today()
                first, last = month_bounds(today)
                with db.session() as conn:
                    stats = dashboard_stats(conn, today)
                    upcoming = upcoming_bookings(conn, today)
                    tops = revenue_by_service(conn, first, last, limit=5)
                print(
                    f"Bookings today: {stats['bookings_today']}  Pending jobs: {stats['pending_jobs']}  "
                    f"Revenue this month: {money(stats['revenue_month'])}  Customers: {stats['total_customers']}"
                )
                for b in upcoming:
                    print(f"  {b['time']} {b['customer_name']} - {b['service']} [{b['status']}]")
                print("Top services this month:")
                for t in tops:
                    print(f"  {t['name']} qty={t['total_qty']} value={money(t['total_value'])}")

            elif choice == "12":
                path = _prompt("output file [jobs]: ") or "jobs"
                with db.snapshot() as conn:
                    jobs = services.jobs.list_jobs(conn)
                out = export_sheets(path, {"Jobs": job_export_rows(jobs)})
                print(f"Exported {len(jobs)} job(s) to {out}")

            elif choice == "13":
                path = _prompt("path to customers.csv: ")
                with db.transaction() as conn:
                    n = import_customers_csv(conn, path, repos.customers)
                print(f"Imported customers: {n}")

            elif choice == "14":
                path = _prompt("path to services.json: ")
                with db.transaction() as conn:
                    n = import_services_json(conn, path, repos.services)
                print(f"Imported/updated services: {n}")

            elif choice == "15":
                db.apply_schema()
                print("Schema applied.")

            else:
                print("Unknown choice.")

        except ValidationError as e:
            print(f"[INPUT ERROR] {e}")
        except NotFoundError as e:
            print(f"[NOT FOUND] {e}")
        except DataImportError as e:
            print(f"[IMPORT ERROR] {e}")
        except ValueError as e:
            print(f"[VALUE ERROR] {e}")
        except (psycopg.Error, OSError) as e:
            print(f"[ERROR] {type(e).__name__}: {e}")
