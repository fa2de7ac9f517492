from __future__ import annotations

from datetime import date


def format_money(amount: int | float | None, currency: str = "UGX") -> str:
    return f"{currency} {round(amount or 0):,}"


def format_date(value: date | None) -> str:
    return value.strftime("%Y-%m-%d") if value else ""
