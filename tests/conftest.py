"""
Shared fixtures: a fresh store replica per test and a fixed clock.
"""

from __future__ import annotations

from datetime import datetime, timezone

import pytest

from services import GymService
from store import SyncStore
from sync import LocalState

FIXED_NOW = datetime(2024, 5, 10, 9, 30, tzinfo=timezone.utc)


@pytest.fixture
def db_file(tmp_path):
    return tmp_path / "gym.db"


@pytest.fixture
def sync_store(db_file):
    s = SyncStore(db_file)
    yield s
    s.close()


@pytest.fixture
def state(sync_store):
    return LocalState().attach(sync_store)


@pytest.fixture
def service(sync_store, state):
    return GymService(sync_store, state, now=lambda: FIXED_NOW)


def member_payload(**overrides) -> dict:
    data = dict(
        full_name="Asha Rao", age=27, gender="Female", contact_number="9800000000",
        membership_plan="1 Month", start_date="2024-05-01", end_date="2024-06-01",
        gym_fees=500, payment_status="Partial", amount_paid=200,
        expected_payment_date="2024-05-20", remarks="",
    )
    data.update(overrides)
    return data


def supplement_payload(member_id: str, **overrides) -> dict:
    data = dict(
        member_id=member_id, purchase_date="2024-05-10", supplement_amount=1200,
        payment_status="Partial", amount_paid=1000, expected_payment_date=None, remarks="Whey",
    )
    data.update(overrides)
    return data
