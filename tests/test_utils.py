"""
Tests for date helpers, ID formatting, validation and photo encoding.
"""

from __future__ import annotations

from datetime import date, datetime, timedelta, timezone

import pytest

import utils


@pytest.mark.parametrize(
    "start,plan,expected",
    [
        ("2024-01-01", "15 Days", "2024-01-16"),
        ("2024-01-31", "1 Month", "2024-02-29"),
        ("2023-01-31", "1 Month", "2023-02-28"),
        ("2024-03-15", "2 Months", "2024-05-15"),
        ("2024-11-30", "3 Months", "2025-02-28"),
        ("2024-07-01", "6 Months", "2025-01-01"),
        ("2024-02-29", "1 Year", "2025-02-28"),
    ],
)
def test_calc_end_date(start, plan, expected) -> None:
    assert utils.calc_end_date(start, plan) == expected


def test_format_id() -> None:
    assert utils.format_id("KV", 1) == "KV0001"
    assert utils.format_id("SUP", 42) == "SUP0042"
    assert utils.format_id("KV", 12345) == "KV12345"


def test_timestamp_iso_is_utc_with_millis() -> None:
    ist = timezone(timedelta(hours=5, minutes=30))
    moment = datetime(2024, 5, 10, 15, 0, 0, 123456, tzinfo=ist)
    assert utils.timestamp_iso(moment) == "2024-05-10T09:30:00.123Z"


def test_safe_date() -> None:
    assert utils.safe_date("2024-05-10") == date(2024, 5, 10)
    assert utils.safe_date("2024-05-10T09:30:00.000Z") == date(2024, 5, 10)
    assert utils.safe_date("") is None
    assert utils.safe_date(None) is None
    assert utils.safe_date("10/05/2024") is None


def test_validate_member_inputs() -> None:
    assert utils.validate_member_inputs("Asha", 27, 500, 200, "2024-05-01", "2024-06-01") == []
    errors = utils.validate_member_inputs(" ", 0, -1, 0, "2024-06-01", "2024-05-01")
    assert "Full name is required." in errors
    assert "Age must be between 1 and 120." in errors
    assert "Gym fees and amount paid cannot be negative." in errors
    assert "End date cannot be before start date." in errors


def test_validate_supplement_inputs() -> None:
    assert utils.validate_supplement_inputs("KV0001", 900, 100, "2024-05-10") == []
    errors = utils.validate_supplement_inputs("", 0, 0, "nope")
    assert errors == [
        "Select a member.",
        "Supplement amount must be > 0.",
        "Purchase date must be a valid ISO date (YYYY-MM-DD).",
    ]


def test_photo_data_url() -> None:
    url = utils.image_to_data_url(b"\x89PNG", "image/png")
    assert url.startswith("data:image/png;base64,")
    assert utils.data_url_to_bytes(url) == b"\x89PNG"


def test_format_currency() -> None:
    assert utils.format_currency(1234.5) == "₹1,234.50"


def test_insert_sample_data(service, state) -> None:
    ids = utils.insert_sample_data(service)
    assert ids == ["KV0001", "KV0002", "KV0003"]
    assert len(state.supplements) == 2
    assert state.members.get("KV0002").due_amount == 1500


def test_local_date() -> None:
    ist = timezone(timedelta(hours=5, minutes=30))
    assert utils.local_date("2024-05-31T19:30:00.000Z", ist) == date(2024, 6, 1)
    assert utils.local_date("2024-05-31T19:30:00.000Z", timezone.utc) == date(2024, 5, 31)
    assert utils.local_date("2024-05-31T19:30:00", ist) == date(2024, 5, 31)
    assert utils.local_date("2024-05-31", ist) == date(2024, 5, 31)
    assert utils.local_date("", ist) is None
    assert utils.local_date("garbage", ist) is None
