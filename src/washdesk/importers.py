from __future__ import annotations

import csv
import json
import logging
from pathlib import Path

from psycopg import Connection

from .repositories.customer_repo import CustomerRepository
from .repositories.service_repo import ServiceRepository

logger = logging.getLogger(__name__)

CUSTOMER_COLUMNS = frozenset({"name", "phone"})


class DataImportError(Exception):
    pass


def _existing(path: str | Path) -> Path:
    p = Path(path)
    if not p.is_file():
        raise DataImportError(f"File not found: {p}")
    return p


def _text(value) -> str | None:
    cleaned = str(value or "").strip()
    return cleaned or None


def import_customers_csv(conn: Connection, path: str | Path, customer_repo: CustomerRepository) -> int:
    """Add customers from a CSV with at least ``name`` and ``phone`` columns.

    Rows whose phone number is already on file are skipped, so the same
    export can be imported twice.
    """
    src = _existing(path)
    added = 0
    with src.open("r", encoding="utf-8", newline="") as f:
        reader = csv.DictReader(f)
        missing = CUSTOMER_COLUMNS - set(reader.fieldnames or ())
        if missing:
            raise DataImportError(f"{src.name} is missing required columns: {', '.join(sorted(missing))}")

        for line_no, row in enumerate(reader, start=2):
            name, phone = _text(row.get("name")), _text(row.get("phone"))
            if name is None or phone is None:
                logger.debug("Skipping %s line %d: name and phone are required", src.name, line_no)
                continue
            if customer_repo.find_by_phone(conn, phone) is not None:
                continue
            customer_repo.create(
                conn,
                name=name,
                phone=phone,
                email=_text(row.get("email")),
                location=_text(row.get("location")),
            )
            added += 1

    logger.info("Imported %d customers from %s", added, src.name)
    return added


def _price_of(entry: dict, name: str) -> int:
    raw = entry.get("price", 0)
    try:
        price = int(raw)
    except (TypeError, ValueError) as e:
        raise DataImportError(f"Invalid price for {name!r}: {raw!r}") from e
    if price < 0:
        raise DataImportError(f"Negative price for {name!r}: {price}")
    return price


def import_services_json(conn: Connection, path: str | Path, service_repo: ServiceRepository) -> int:
    """Create or update catalog services from a JSON list, matched by name."""
    src = _existing(path)
    try:
        entries = json.loads(src.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise DataImportError(f"Invalid JSON in {src.name}: {e}") from e

    if not isinstance(entries, list):
        raise DataImportError(f"{src.name} must hold a JSON list of service objects")

    saved = 0
    for entry in entries:
        name = _text(entry.get("name")) if isinstance(entry, dict) else None
        if name is None:
            continue
        service_repo.upsert_by_name(
            conn,
            name=name,
            price=_price_of(entry, name),
            description=_text(entry.get("description")),
            active=bool(entry.get("active", True)),
        )
        saved += 1

    logger.info("Imported %d services from %s", saved, src.name)
    return saved
