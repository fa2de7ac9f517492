from __future__ import annotations

import logging
from datetime import date, datetime
from functools import wraps

import psycopg
from psycopg import errors as pg_errors
from flask import Flask, Response, flash, g, redirect, render_template, request, session, url_for

from washdesk.auth import AuthContext, AuthError, AuthSession
from washdesk.config import AppConfig, ConfigError, configure_logging, load_config
from washdesk.container import Repositories, Services, build_services
from washdesk.db import Db, DbError
from washdesk.domain import JOB_STATUSES, PAYMENT_STATUSES, STATUSES, parse_job_key
from washdesk.exporting import customer_export_rows, invoice_export_rows, job_export_rows, rows_to_csv
from washdesk.formatting import format_date, format_money
from washdesk.reports import accounting_summary, dashboard_stats, month_bounds, upcoming_bookings
from washdesk.repositories.setting_repo import BUSINESS_INFO
from washdesk.services.booking_service import BookingInput
from washdesk.services.errors import NotFoundError, ValidationError

logger = logging.getLogger(__name__)

app = Flask(__name__)
app.secret_key = "change-this-secret-key-in-production"

db: Db = None
cfg: AppConfig = None
repos = Repositories()
services: Services = build_services(repos)

_INPUT_ERRORS = (ValidationError, NotFoundError, ValueError)
_BACKEND_ERRORS = (DbError, psycopg.Error)
_SESSION_KEY = "admin"


def configure(app_cfg: AppConfig, database: Db, repositories: Repositories | None = None) -> Flask:
    global cfg, db, repos, services
    cfg = app_cfg
    db = database
    repos = repositories or Repositories()
    services = build_services(repos, cfg.business)
    app.secret_key = cfg.secret_key
    return app


def _backend_error(e: Exception) -> None:
    logger.error("Backend error on %s %s", request.method, request.path, exc_info=e)
    flash("The database could not complete that request. Please try again.", "danger")


@app.template_filter("money")
def _money_filter(amount) -> str:
    return format_money(amount, cfg.business.currency if cfg else "UGX")


@app.template_filter("day")
def _day_filter(value) -> str:
    return format_date(value)


@app.context_processor
def _inject_globals() -> dict:
    return {
        "app_name": cfg.name if cfg else "WashDesk",
        "statuses": STATUSES,
        "job_statuses": JOB_STATUSES,
        "payment_statuses": PAYMENT_STATUSES,
        "current_admin": g.auth.session if "auth" in g else None,
    }


# --- auth ---------------------------------------------------------------------


def _persist_auth(event: str, current: AuthSession | None) -> None:
    if event == "SIGNED_IN" and current is not None:
        session[_SESSION_KEY] = {"email": current.email, "signed_in_at": current.signed_in_at.isoformat()}
    else:
        session.pop(_SESSION_KEY, None)


@app.before_request
def _load_auth() -> None:
    stored = session.get(_SESSION_KEY)
    current = None
    if stored:
        current = AuthSession(email=stored["email"], signed_in_at=datetime.fromisoformat(stored["signed_in_at"]))
    g.auth = AuthContext(cfg.auth.admins if cfg else (), current)
    g.auth.subscribe(_persist_auth)


@app.teardown_request
def _close_auth(exc) -> None:
    auth = g.pop("auth", None)
    if auth is not None:
        auth.close()


def login_required(view):
    @wraps(view)
    def wrapped(*args, **kwargs):
        if not g.auth.is_authenticated:
            return redirect(url_for("login", next=request.path))
        return view(*args, **kwargs)

    return wrapped


@app.route("/admin/login", methods=["GET", "POST"])
def login():
    if request.method == "POST":
        try:
            g.auth.sign_in(request.form.get("email", ""), request.form.get("password", ""))
            next_url = request.args.get("next") or ""
            # only follow local paths
            if not next_url.startswith("/") or next_url.startswith("//"):
                next_url = url_for("dashboard")
            return redirect(next_url)
        except AuthError as e:
            flash(str(e), "warning")
    return render_template("login.html")


@app.route("/admin/logout", methods=["POST"])
def logout():
    g.auth.sign_out()
    flash("Signed out", "success")
    return redirect(url_for("login"))


# --- public -------------------------------------------------------------------


@app.route("/")
def index():
    offered = []
    try:
        with db.session() as conn:
            offered = repos.services.list(conn, active_only=True)
    except _BACKEND_ERRORS as e:
        _backend_error(e)
    return render_template("index.html", services=offered)


def _booking_form() -> BookingInput:
    raw_date = request.form.get("date", "").strip()
    raw_customer = request.form.get("customer_id", "").strip()
    return BookingInput(
        date=date.fromisoformat(raw_date) if raw_date else None,
        time=request.form.get("time", "").strip(),
        location=request.form.get("location", "").strip(),
        service_ids=[int(x) for x in request.form.getlist("service_ids")],
        customer_id=int(raw_customer) if raw_customer else None,
        notes=request.form.get("notes", "").strip() or None,
        status=request.form.get("status", "Draft"),
    )


@app.route("/book", methods=["GET", "POST"])
def book():
    if request.method == "POST":
        try:
            data = _booking_form()
            with db.transaction() as conn:
                booking_id = services.bookings.book_online(
                    conn,
                    name=request.form.get("name", ""),
                    phone=request.form.get("phone", ""),
                    email=request.form.get("email", ""),
                    data=data,
                )
            logger.info("Online booking #%s received", booking_id)
            flash("Thank you! Your booking request was received. We will call to confirm.", "success")
            return redirect(url_for("index"))
        except _INPUT_ERRORS as e:
            flash(str(e), "warning")
        except _BACKEND_ERRORS as e:
            _backend_error(e)

    offered = []
    try:
        with db.session() as conn:
            offered = repos.services.list(conn, active_only=True)
    except _BACKEND_ERRORS as e:
        _backend_error(e)
    return render_template("book.html", services=offered, form=request.form)


# --- dashboard ----------------------------------------------------------------


@app.route("/admin")
@login_required
def dashboard():
    today = date.today()
    # keep the job board complete; a failure here must not hide the dashboard
    try:
        with db.transaction() as conn:
            services.jobs.auto_create_jobs(conn)
    except _BACKEND_ERRORS:
        logger.exception("Auto-creating jobs from bookings failed")

    try:
        first, last = month_bounds(today)
        with db.snapshot() as conn:
            stats = dashboard_stats(conn, today)
            upcoming = upcoming_bookings(conn, today)
            accounts = accounting_summary(conn, first, last)
        return render_template("dashboard.html", stats=stats, upcoming=upcoming, accounts=accounts, today=today)
    except _BACKEND_ERRORS as e:
        _backend_error(e)
        return render_template("dashboard.html", stats=None, upcoming=[], accounts=None, today=today)


# --- bookings -----------------------------------------------------------------


@app.route("/admin/bookings")
@login_required
def bookings_list():
    status = request.args.get("status", "all")
    q = request.args.get("q", "").strip()
    rows = []
    try:
        with db.session() as conn:
            rows = services.bookings.list_bookings(conn, status=status, search=q or None)
    except _BACKEND_ERRORS as e:
        _backend_error(e)
    return render_template("bookings_list.html", bookings=rows, status=status, q=q)


def _booking_form_page(booking: dict | None):
    try:
        with db.session() as conn:
            customers = repos.customers.list(conn, limit=500)
            catalog = repos.services.list(conn)
    except _BACKEND_ERRORS as e:
        _backend_error(e)
        return redirect(url_for("bookings_list"))
    return render_template("booking_form.html", booking=booking, customers=customers, catalog=catalog)


@app.route("/admin/bookings/new", methods=["GET", "POST"])
@login_required
def bookings_new():
    if request.method == "POST":
        try:
            data = _booking_form()
            with db.transaction() as conn:
                booking_id = services.bookings.create_booking(conn, data)
            flash(f"Booking #{booking_id} created", "success")
            return redirect(url_for("bookings_list"))
        except _INPUT_ERRORS as e:
            flash(str(e), "warning")
        except _BACKEND_ERRORS as e:
            _backend_error(e)
    return _booking_form_page(None)


@app.route("/admin/bookings/<int:booking_id>/edit", methods=["GET", "POST"])
@login_required
def bookings_edit(booking_id: int):
    if request.method == "POST":
        try:
            data = _booking_form()
            with db.transaction() as conn:
                services.bookings.update_booking(conn, booking_id, data)
            flash("Booking updated", "success")
            return redirect(url_for("bookings_list"))
        except _INPUT_ERRORS as e:
            flash(str(e), "warning")
        except _BACKEND_ERRORS as e:
            _backend_error(e)

    try:
        with db.session() as conn:
            booking = services.bookings.get_booking(conn, booking_id)
    except NotFoundError as e:
        flash(str(e), "warning")
        return redirect(url_for("bookings_list"))
    except _BACKEND_ERRORS as e:
        _backend_error(e)
        return redirect(url_for("bookings_list"))
    return _booking_form_page(booking)


@app.route("/admin/bookings/<int:booking_id>/status", methods=["POST"])
@login_required
def bookings_status(booking_id: int):
    try:
        with db.transaction() as conn:
            services.bookings.update_status(conn, booking_id, request.form.get("status", ""))
        flash("Booking status updated", "success")
    except _INPUT_ERRORS as e:
        flash(str(e), "warning")
    except _BACKEND_ERRORS as e:
        _backend_error(e)
    return redirect(request.referrer or url_for("bookings_list"))


@app.route("/admin/bookings/<int:booking_id>/delete", methods=["POST"])
@login_required
def bookings_delete(booking_id: int):
    try:
        with db.transaction() as conn:
            services.bookings.delete_booking(conn, booking_id)
        flash("Booking deleted", "success")
    except _INPUT_ERRORS as e:
        flash(str(e), "warning")
    except _BACKEND_ERRORS as e:
        _backend_error(e)
    return redirect(url_for("bookings_list"))


# --- customers ----------------------------------------------------------------


@app.route("/admin/customers")
@login_required
def customers_list():
    q = request.args.get("q", "").strip()
    rows = []
    try:
        with db.session() as conn:
            rows = repos.customers.list_with_stats(conn, search=q or None)
    except _BACKEND_ERRORS as e:
        _backend_error(e)
    return render_template("customers_list.html", customers=rows, q=q)


def _customer_fields() -> dict:
    return {
        "name": request.form.get("name", "").strip(),
        "phone": request.form.get("phone", "").strip(),
        "email": request.form.get("email", "").strip() or None,
        "location": request.form.get("location", "").strip() or None,
    }


@app.route("/admin/customers/new", methods=["GET", "POST"])
@login_required
def customers_new():
    if request.method == "POST":
        fields = _customer_fields()
        if not fields["name"] or not fields["phone"]:
            flash("Name and phone are required", "warning")
            return render_template("customer_form.html", customer=fields)
        try:
            with db.transaction() as conn:
                repos.customers.create(conn, **fields)
            flash("Customer created", "success")
            return redirect(url_for("customers_list"))
        except _BACKEND_ERRORS as e:
            _backend_error(e)
    return render_template("customer_form.html", customer=None)


@app.route("/admin/customers/<int:customer_id>/edit", methods=["GET", "POST"])
@login_required
def customers_edit(customer_id: int):
    if request.method == "POST":
        fields = _customer_fields()
        if not fields["name"] or not fields["phone"]:
            flash("Name and phone are required", "warning")
            return render_template("customer_form.html", customer=dict(fields, id=customer_id))
        try:
            with db.transaction() as conn:
                found = repos.customers.update(conn, customer_id, **fields)
            flash("Customer updated" if found else "Customer not found", "success" if found else "warning")
            return redirect(url_for("customers_list"))
        except _BACKEND_ERRORS as e:
            _backend_error(e)

    try:
        with db.session() as conn:
            customer = repos.customers.get(conn, customer_id)
    except _BACKEND_ERRORS as e:
        _backend_error(e)
        return redirect(url_for("customers_list"))
    if customer is None:
        flash("Customer not found", "warning")
        return redirect(url_for("customers_list"))
    return render_template("customer_form.html", customer=customer)


@app.route("/admin/customers/<int:customer_id>/delete", methods=["POST"])
@login_required
def customers_delete(customer_id: int):
    try:
        with db.transaction() as conn:
            found = repos.customers.delete(conn, customer_id)
        flash("Customer deleted" if found else "Customer not found", "success" if found else "warning")
    except _BACKEND_ERRORS as e:
        _backend_error(e)
    return redirect(url_for("customers_list"))


def _csv_download(rows: list[dict], stem: str) -> Response:
    return Response(
        rows_to_csv(rows),
        mimetype="text/csv",
        headers={"Content-Disposition": f"attachment; filename={stem}-{date.today():%Y%m%d}.csv"},
    )


@app.route("/admin/customers/export")
@login_required
def customers_export():
    try:
        with db.session() as conn:
            rows = repos.customers.list_with_stats(conn, search=request.args.get("q") or None)
    except _BACKEND_ERRORS as e:
        _backend_error(e)
        return redirect(url_for("customers_list"))
    return _csv_download(customer_export_rows(rows), "customers")


# --- jobs ---------------------------------------------------------------------


@app.route("/admin/jobs")
@login_required
def jobs_list():
    status = request.args.get("status", "all")
    q = request.args.get("q", "").strip()
    jobs, technicians = [], []
    try:
        with db.snapshot() as conn:
            jobs = services.jobs.list_jobs(conn, status=status, search=q or None)
            technicians = repos.technicians.list(conn, active_only=True)
    except _BACKEND_ERRORS as e:
        _backend_error(e)
    return render_template("jobs_list.html", jobs=jobs, technicians=technicians, status=status, q=q)


@app.route("/admin/jobs/new", methods=["POST"])
@login_required
def jobs_new():
    try:
        raw_tech = request.form.get("technician_id", "").strip()
        with db.transaction() as conn:
            job_id = services.jobs.create_job(
                conn,
                date=date.fromisoformat(request.form.get("date", "").strip()),
                technician_id=int(raw_tech) if raw_tech else None,
                notes=request.form.get("notes", "").strip() or None,
            )
        flash(f"Job #{job_id} created", "success")
    except _INPUT_ERRORS as e:
        flash(str(e), "warning")
    except _BACKEND_ERRORS as e:
        _backend_error(e)
    return redirect(url_for("jobs_list"))


@app.route("/admin/jobs/auto-create", methods=["POST"])
@login_required
def jobs_auto_create():
    try:
        with db.transaction() as conn:
            n = services.jobs.auto_create_jobs(conn)
        flash(f"Created {n} job(s) from bookings" if n else "Every booking already has a job", "success")
    except _BACKEND_ERRORS as e:
        _backend_error(e)
    return redirect(url_for("jobs_list"))


@app.route("/admin/jobs/<key>/technician", methods=["POST"])
@login_required
def jobs_assign(key: str):
    try:
        job_key = parse_job_key(key)
        raw = request.form.get("technician_id", "").strip()
        with db.transaction() as conn:
            services.jobs.assign_technician(conn, job_key, int(raw) if raw else None)
        flash("Technician updated", "success")
    except _INPUT_ERRORS as e:
        flash(str(e), "warning")
    except _BACKEND_ERRORS as e:
        _backend_error(e)
    return redirect(request.referrer or url_for("jobs_list"))


@app.route("/admin/jobs/<key>/status", methods=["POST"])
@login_required
def jobs_status(key: str):
    try:
        job_key = parse_job_key(key)
        with db.transaction() as conn:
            services.jobs.update_status(conn, job_key, request.form.get("status", ""))
        flash("Job status updated", "success")
    except _INPUT_ERRORS as e:
        flash(str(e), "warning")
    except _BACKEND_ERRORS as e:
        _backend_error(e)
    return redirect(request.referrer or url_for("jobs_list"))


@app.route("/admin/jobs/<key>/delete", methods=["POST"])
@login_required
def jobs_delete(key: str):
    try:
        job_key = parse_job_key(key)
        with db.transaction() as conn:
            services.jobs.delete(conn, job_key)
        flash("Job deleted", "success")
    except _INPUT_ERRORS as e:
        flash(str(e), "warning")
    except _BACKEND_ERRORS as e:
        _backend_error(e)
    return redirect(url_for("jobs_list"))


@app.route("/admin/jobs/<key>/invoice", methods=["POST"])
@login_required
def jobs_invoice(key: str):
    try:
        job_key = parse_job_key(key)
        with db.transaction() as conn:
            invoice_id = services.invoices.generate_for_job(conn, job_key, issue_date=date.today())
        flash(f"Invoice #{invoice_id} generated", "success")
        return redirect(url_for("invoices_list"))
    except _INPUT_ERRORS as e:
        flash(str(e), "warning")
    except _BACKEND_ERRORS as e:
        _backend_error(e)
    return redirect(url_for("jobs_list"))


@app.route("/admin/jobs/export")
@login_required
def jobs_export():
    try:
        with db.snapshot() as conn:
            jobs = services.jobs.list_jobs(
                conn,
                status=request.args.get("status", "all"),
                search=request.args.get("q") or None,
            )
    except _BACKEND_ERRORS as e:
        _backend_error(e)
        return redirect(url_for("jobs_list"))
    return _csv_download(job_export_rows(jobs), "jobs")


# --- technicians --------------------------------------------------------------


@app.route("/admin/technicians")
@login_required
def technicians_list():
    rows = []
    try:
        with db.session() as conn:
            rows = repos.technicians.list(conn)
    except _BACKEND_ERRORS as e:
        _backend_error(e)
    return render_template("technicians_list.html", technicians=rows)


@app.route("/admin/technicians/new", methods=["POST"])
@login_required
def technicians_new():
    name = request.form.get("name", "").strip()
    if not name:
        flash("Technician name is required", "warning")
        return redirect(url_for("technicians_list"))
    try:
        with db.transaction() as conn:
            repos.technicians.create(
                conn,
                name=name,
                email=request.form.get("email", "").strip() or None,
                phone=request.form.get("phone", "").strip() or None,
            )
        flash("Technician added", "success")
    except _BACKEND_ERRORS as e:
        _backend_error(e)
    return redirect(url_for("technicians_list"))


@app.route("/admin/technicians/<int:technician_id>/toggle", methods=["POST"])
@login_required
def technicians_toggle(technician_id: int):
    try:
        with db.transaction() as conn:
            tech = repos.technicians.get(conn, technician_id)
            if tech is None:
                raise NotFoundError(f"Technician #{technician_id} not found.")
            repos.technicians.set_active(conn, technician_id, not tech.active)
        flash(f"{tech.name} is now {'inactive' if tech.active else 'active'}", "success")
    except _INPUT_ERRORS as e:
        flash(str(e), "warning")
    except _BACKEND_ERRORS as e:
        _backend_error(e)
    return redirect(url_for("technicians_list"))


@app.route("/admin/technicians/<int:technician_id>/delete", methods=["POST"])
@login_required
def technicians_delete(technician_id: int):
    try:
        with db.transaction() as conn:
            found = repos.technicians.delete(conn, technician_id)
        flash("Technician removed" if found else "Technician not found", "success" if found else "warning")
    except _BACKEND_ERRORS as e:
        _backend_error(e)
    return redirect(url_for("technicians_list"))


# --- invoices -----------------------------------------------------------------


@app.route("/admin/invoices")
@login_required
def invoices_list():
    status = request.args.get("status", "all")
    q = request.args.get("q", "").strip()
    rows, accounts = [], None
    try:
        first, last = month_bounds(date.today())
        with db.snapshot() as conn:
            rows = services.invoices.list_invoices(conn, status=status, search=q or None)
            accounts = accounting_summary(conn, first, last)
    except _BACKEND_ERRORS as e:
        _backend_error(e)
    return render_template("invoices_list.html", invoices=rows, accounts=accounts, status=status, q=q)


@app.route("/admin/invoices/<int:invoice_id>/pay", methods=["POST"])
@login_required
def invoices_pay(invoice_id: int):
    try:
        with db.transaction() as conn:
            services.invoices.record_payment(
                conn,
                invoice_id,
                method=request.form.get("method", ""),
                paid_on=date.today(),
            )
        flash("Payment recorded", "success")
    except _INPUT_ERRORS as e:
        flash(str(e), "warning")
    except _BACKEND_ERRORS as e:
        _backend_error(e)
    return redirect(url_for("invoices_list"))


@app.route("/admin/invoices/<int:invoice_id>/cancel", methods=["POST"])
@login_required
def invoices_cancel(invoice_id: int):
    try:
        with db.transaction() as conn:
            services.invoices.cancel(conn, invoice_id)
        flash("Invoice cancelled", "success")
    except _INPUT_ERRORS as e:
        flash(str(e), "warning")
    except _BACKEND_ERRORS as e:
        _backend_error(e)
    return redirect(url_for("invoices_list"))


@app.route("/admin/invoices/mark-overdue", methods=["POST"])
@login_required
def invoices_mark_overdue():
    try:
        with db.transaction() as conn:
            n = services.invoices.mark_overdue(conn, date.today())
        flash(f"{n} invoice(s) marked overdue", "success")
    except _BACKEND_ERRORS as e:
        _backend_error(e)
    return redirect(url_for("invoices_list"))


@app.route("/admin/invoices/export")
@login_required
def invoices_export():
    try:
        with db.session() as conn:
            rows = services.invoices.list_invoices(
                conn,
                status=request.args.get("status", "all"),
                search=request.args.get("q") or None,
            )
    except _BACKEND_ERRORS as e:
        _backend_error(e)
        return redirect(url_for("invoices_list"))
    return _csv_download(invoice_export_rows(rows), "invoices")


# --- settings: service catalog and business info --------------------------------


@app.route("/admin/settings")
@login_required
def settings():
    catalog, business = [], {}
    try:
        with db.session() as conn:
            catalog = repos.services.list(conn)
            stored = repos.settings.get(conn, BUSINESS_INFO)
        business = stored.value if stored else {}
    except _BACKEND_ERRORS as e:
        _backend_error(e)
    return render_template("settings.html", catalog=catalog, business=business)


@app.route("/admin/settings/business", methods=["POST"])
@login_required
def settings_business():
    value = {k: request.form.get(k, "").strip() for k in ("name", "phone", "email", "address")}
    try:
        with db.transaction() as conn:
            repos.settings.upsert(
                conn,
                key=BUSINESS_INFO,
                category="business",
                name="Business information",
                value=value,
                description="Shown on invoices and the public site",
            )
        flash("Business information saved", "success")
    except _BACKEND_ERRORS as e:
        _backend_error(e)
    return redirect(url_for("settings"))


def _service_fields() -> dict:
    name = request.form.get("name", "").strip()
    if not name:
        raise ValidationError("Service name is required.")
    price = int(request.form.get("price", "0") or 0)
    if price < 0:
        raise ValidationError("Price cannot be negative.")
    return {
        "name": name,
        "price": price,
        "description": request.form.get("description", "").strip() or None,
        "active": request.form.get("active") == "on",
    }


@app.route("/admin/services/new", methods=["POST"])
@login_required
def services_new():
    try:
        fields = _service_fields()
        with db.transaction() as conn:
            repos.services.create(conn, **fields)
        flash("Service added", "success")
    except _INPUT_ERRORS as e:
        flash(str(e), "warning")
    except pg_errors.UniqueViolation:
        flash("A service with that name already exists.", "warning")
    except _BACKEND_ERRORS as e:
        _backend_error(e)
    return redirect(url_for("settings"))


@app.route("/admin/services/<int:service_id>/edit", methods=["POST"])
@login_required
def services_edit(service_id: int):
    try:
        fields = _service_fields()
        with db.transaction() as conn:
            if not repos.services.update(conn, service_id, **fields):
                raise NotFoundError(f"Service #{service_id} not found.")
        flash("Service updated", "success")
    except _INPUT_ERRORS as e:
        flash(str(e), "warning")
    except pg_errors.UniqueViolation:
        flash("A service with that name already exists.", "warning")
    except _BACKEND_ERRORS as e:
        _backend_error(e)
    return redirect(url_for("settings"))


@app.route("/admin/services/<int:service_id>/toggle", methods=["POST"])
@login_required
def services_toggle(service_id: int):
    try:
        with db.transaction() as conn:
            svc = repos.services.get(conn, service_id)
            if svc is None:
                raise NotFoundError(f"Service #{service_id} not found.")
            repos.services.set_active(conn, service_id, not svc.active)
        flash(f"{svc.name} is now {'hidden' if svc.active else 'offered'}", "success")
    except _INPUT_ERRORS as e:
        flash(str(e), "warning")
    except _BACKEND_ERRORS as e:
        _backend_error(e)
    return redirect(url_for("settings"))


@app.route("/admin/services/<int:service_id>/delete", methods=["POST"])
@login_required
def services_delete(service_id: int):
    try:
        with db.transaction() as conn:
            found = repos.services.delete(conn, service_id)
        flash("Service deleted" if found else "Service not found", "success" if found else "warning")
    except pg_errors.ForeignKeyViolation:
        flash("This service is used by bookings. Hide it instead of deleting it.", "warning")
    except _BACKEND_ERRORS as e:
        _backend_error(e)
    return redirect(url_for("settings"))


if __name__ == "__main__":
    try:
        app_cfg = load_config("config.toml")
        configure_logging(app_cfg.log_level)
        configure(app_cfg, Db(app_cfg.db))
        app.run(debug=True, host="127.0.0.1", port=5000)
    except ConfigError as e:
        print(f"[CONFIG ERROR] {e}")
        raise SystemExit(2)
