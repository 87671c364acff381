"""
utils.py
Validation, dates, IDs, formatting, sample data.
"""

from __future__ import annotations

import base64
from datetime import date, datetime, timedelta, timezone, tzinfo

from models import PLAN_DURATIONS


def parse_iso(d: str) -> date:
    return date.fromisoformat(d)


def safe_date(d: str | None) -> date | None:
    """Parse a YYYY-MM-DD string (a timestamp prefix is accepted); None if blank or invalid."""
    if not d:
        return None
    try:
        return date.fromisoformat(str(d)[:10])
    except ValueError:
        return None


def local_date(ts: str | None, tz: tzinfo | None = None) -> date | None:
    """
    Calendar date of an ISO timestamp in `tz` (the machine's zone when None).
    Timestamps without an offset are taken as already local.
    """
    if not ts:
        return None
    try:
        moment = datetime.fromisoformat(str(ts).replace("Z", "+00:00"))
    except ValueError:
        return safe_date(ts)
    if moment.tzinfo is None:
        return moment.date()
    return moment.astimezone(tz).date()


def timestamp_iso(moment: datetime | None = None) -> str:
    """UTC timestamp with milliseconds and a Z suffix, e.g. 2024-05-01T10:00:00.000Z."""
    moment = moment or datetime.now(timezone.utc)
    moment = moment.astimezone(timezone.utc)
    return moment.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def add_months(start: date, months: int) -> date:
    """
    Add months while keeping day in valid range (e.g., Jan 31 + 1 month => Feb 28/29).
    """
    y = start.year + (start.month - 1 + months) // 12
    m = (start.month - 1 + months) % 12 + 1
    # last day of target month
    if m == 12:
        next_month = date(y + 1, 1, 1)
    else:
        next_month = date(y, m + 1, 1)
    last_day = next_month - timedelta(days=1)
    day = min(start.day, last_day.day)
    return date(y, m, day)


def calc_end_date(start_date_iso: str, plan: str) -> str:
    start = parse_iso(start_date_iso)
    unit, amount = PLAN_DURATIONS.get(plan, ("months", 1))
    if unit == "days":
        return (start + timedelta(days=amount)).isoformat()
    return add_months(start, amount).isoformat()


def format_id(prefix: str, seq: int) -> str:
    """KV + 1 -> KV0001. Numbers wider than four digits are kept whole."""
    return f"{prefix}{int(seq):04d}"


def due_amount(total, paid) -> float:
    return float(total) - float(paid)


def format_currency(amount, symbol: str = "₹") -> str:
    return f"{symbol}{float(amount):,.2f}"


def image_to_data_url(data: bytes, mime: str = "image/jpeg") -> str:
    """Encode uploaded image bytes as the opaque photo string stored on a member."""
    return f"data:{mime};base64,{base64.b64encode(data).decode('ascii')}"


def data_url_to_bytes(photo: str) -> bytes:
    _, _, payload = photo.partition("base64,")
    return base64.b64decode(payload)


def _check_amounts(errors: list[str], total_label: str, total, paid) -> None:
    try:
        t = float(total)
        p = float(paid)
    except (TypeError, ValueError):
        errors.append(f"{total_label} and amount paid must be numeric.")
        return
    if t < 0 or p < 0:
        errors.append(f"{total_label} and amount paid cannot be negative.")


def validate_member_inputs(full_name: str, age, gym_fees, amount_paid, start_date: str, end_date: str) -> list[str]:
    errors: list[str] = []
    if not full_name.strip():
        errors.append("Full name is required.")
    try:
        if not 1 <= int(age) <= 120:
            errors.append("Age must be between 1 and 120.")
    except (TypeError, ValueError):
        errors.append("Age must be a whole number.")
    _check_amounts(errors, "Gym fees", gym_fees, amount_paid)
    sd = safe_date(start_date)
    ed = safe_date(end_date)
    if sd is None or ed is None:
        errors.append("Start/end dates must be valid ISO dates (YYYY-MM-DD).")
    elif ed < sd:
        errors.append("End date cannot be before start date.")
    return errors


def validate_supplement_inputs(member_id: str, supplement_amount, amount_paid, purchase_date: str) -> list[str]:
    errors: list[str] = []
    if not member_id:
        errors.append("Select a member.")
    _check_amounts(errors, "Supplement amount", supplement_amount, amount_paid)
    try:
        if float(supplement_amount) <= 0:
            errors.append("Supplement amount must be > 0.")
    except (TypeError, ValueError):
        pass
    if safe_date(purchase_date) is None:
        errors.append("Purchase date must be a valid ISO date (YYYY-MM-DD).")
    return errors


def insert_sample_data(service) -> list[str]:
    """
    Register 3 members and a few supplements through the service
    (safe to run multiple times: adds new records each time).
    """
    today = date.today()

    members = [
        dict(full_name="Arjun Mehta", age=28, gender="Male", contact_number="9800000001",
             membership_plan="1 Month", start_date=(today - timedelta(days=25)).isoformat(),
             gym_fees=1500, payment_status="Paid", amount_paid=1500),
        dict(full_name="Priya Nair", age=31, gender="Female", contact_number="9800000002",
             membership_plan="3 Months", start_date=(today - timedelta(days=10)).isoformat(),
             gym_fees=4000, payment_status="Partial", amount_paid=2500,
             expected_payment_date=(today + timedelta(days=14)).isoformat()),
        dict(full_name="Rahul Verma", age=24, gender="Male", contact_number=None,
             membership_plan="15 Days", start_date=(today - timedelta(days=40)).isoformat(),
             gym_fees=800, payment_status="Not Paid", amount_paid=0),
    ]

    ids = []
    for m in members:
        m["end_date"] = calc_end_date(m["start_date"], m["membership_plan"])
        note = service.register_member(m)
        ids.append(note.extra["id"])

    service.add_supplement(dict(member_id=ids[0], purchase_date=today.isoformat(),
                                supplement_amount=2200, payment_status="Paid", amount_paid=2200,
                                remarks="Whey protein 1kg"))
    service.add_supplement(dict(member_id=ids[1], purchase_date=today.isoformat(),
                                supplement_amount=900, payment_status="Partial", amount_paid=400,
                                remarks="Creatine"))
    return ids
