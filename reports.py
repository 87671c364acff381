"""
reports.py
Report aggregation over the current member/supplement collections.
"""

from __future__ import annotations

from dataclasses import asdict
from datetime import date, timedelta, tzinfo
from typing import Iterable

import pandas as pd

from models import Member, ReportStats, Supplement
from utils import local_date, safe_date

MEMBER_COLUMNS = [
    "id", "full_name", "age", "gender", "contact_number", "membership_plan", "start_date", "end_date",
    "gym_fees", "payment_status", "amount_paid", "due_amount", "expected_payment_date", "remarks",
    "registration_date",
]
SUPPLEMENT_COLUMNS = [
    "id", "member_id", "member_name", "purchase_date", "supplement_amount", "payment_status",
    "amount_paid", "due_amount", "expected_payment_date", "remarks", "created_date",
]


def is_active(member: Member, today: date) -> bool:
    start, end = safe_date(member.start_date), safe_date(member.end_date)
    return start is not None and end is not None and start <= today <= end


def is_expired(member: Member, today: date) -> bool:
    end = safe_date(member.end_date)
    return end is not None and end < today


def _month(d: date | None) -> tuple[int, int] | None:
    return (d.year, d.month) if d else None


def compute_report_stats(
    members: Iterable[Member], supplements: Iterable[Supplement], today: date, tz: tzinfo | None = None
) -> ReportStats:
    """
    Summary figures for the dashboard. Pure; recompute whenever inputs change.

    Registration timestamps are stored in UTC; they are read in `tz` (the
    machine's zone when None) so "new this month" agrees with `today`.
    """
    members = list(members)
    supplements = list(supplements)
    current_month = (today.year, today.month)

    return ReportStats(
        new_members=sum(1 for m in members if _month(local_date(m.registration_date, tz)) == current_month),
        active_members=sum(1 for m in members if is_active(m, today)),
        expired_members=sum(1 for m in members if is_expired(m, today)),
        gym_collected=sum(m.amount_paid for m in members),
        gym_due=sum(m.due_amount for m in members),
        supplement_sales=sum(s.amount_paid for s in supplements),
        supplement_due=sum(s.due_amount for s in supplements),
        supplements_sold=len(supplements),
    )


def members_frame(members: Iterable[Member]) -> pd.DataFrame:
    rows = [asdict(m) for m in members]
    if not rows:
        return pd.DataFrame(columns=MEMBER_COLUMNS)
    return pd.DataFrame(rows)[MEMBER_COLUMNS]


def supplements_frame(supplements: Iterable[Supplement]) -> pd.DataFrame:
    rows = [asdict(s) for s in supplements]
    if not rows:
        return pd.DataFrame(columns=SUPPLEMENT_COLUMNS)
    return pd.DataFrame(rows)[SUPPLEMENT_COLUMNS]


def dues_frame(members: Iterable[Member], supplements: Iterable[Supplement]) -> pd.DataFrame:
    """Outstanding balances across memberships and supplements, largest first."""
    rows = [
        {"kind": "membership", "id": m.id, "member_id": m.id, "member_name": m.full_name,
         "due_amount": m.due_amount, "expected_payment_date": m.expected_payment_date}
        for m in members if m.due_amount > 0
    ]
    rows += [
        {"kind": "supplement", "id": s.id, "member_id": s.member_id, "member_name": s.member_name,
         "due_amount": s.due_amount, "expected_payment_date": s.expected_payment_date}
        for s in supplements if s.due_amount > 0
    ]
    cols = ["kind", "id", "member_id", "member_name", "due_amount", "expected_payment_date"]
    if not rows:
        return pd.DataFrame(columns=cols)
    df = pd.DataFrame(rows, columns=cols)
    return df.sort_values(["due_amount", "id"], ascending=[False, True], kind="stable").reset_index(drop=True)


def expiring_soon(members: Iterable[Member], today: date, days: int = 7) -> list[Member]:
    """Active members whose plan ends within the next `days` days, soonest first."""
    horizon = today + timedelta(days=days)
    out = [m for m in members if is_active(m, today) and safe_date(m.end_date) <= horizon]
    return sorted(out, key=lambda m: (m.end_date, m.id))


def collections_by_month(members: Iterable[Member], supplements: Iterable[Supplement]) -> pd.DataFrame:
    """Amount paid per month: memberships by registration month, supplements by purchase month."""
    rows = [{"month": (m.registration_date or "")[:7], "gym": m.amount_paid, "supplements": 0.0} for m in members]
    rows += [{"month": (s.purchase_date or "")[:7], "gym": 0.0, "supplements": s.amount_paid} for s in supplements]
    rows = [r for r in rows if len(r["month"]) == 7]
    if not rows:
        return pd.DataFrame(columns=["month", "gym", "supplements", "total"])
    df = pd.DataFrame(rows).groupby("month", as_index=False)[["gym", "supplements"]].sum()
    df["total"] = df["gym"] + df["supplements"]
    return df.sort_values("month", ascending=False).reset_index(drop=True)


def to_csv_bytes(df: pd.DataFrame) -> bytes:
    return df.to_csv(index=False).encode("utf-8")
