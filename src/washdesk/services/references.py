from __future__ import annotations

import random
import time
from datetime import date


def booking_reference(now: float | None = None) -> str:
    # BK + last six digits of the millisecond clock; not guaranteed unique
    millis = int((time.time() if now is None else now) * 1000)
    return f"BK{millis % 1_000_000:06d}"


def job_reference(rng: random.Random | None = None) -> str:
    n = (rng or random).randint(0, 9999)
    return f"{n:04d}"


def invoice_number(job_reference: str, issue_date: date) -> str:
    return f"INV-{job_reference}-{issue_date:%Y%m%d}"
