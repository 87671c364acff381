"""
Tests for the store record shape of members and supplements.
"""

from __future__ import annotations

from models import Member, Supplement


def test_member_record_uses_camel_case_keys() -> None:
    m = Member(id="KV0001", full_name="Asha", gym_fees=500.0, amount_paid=200.0, due_amount=300.0)
    record = m.to_record()
    assert record["fullName"] == "Asha"
    assert record["gymFees"] == 500.0
    assert record["expectedPaymentDate"] is None
    assert Member.from_record(record) == m


def test_from_record_ignores_unknown_keys_and_defaults_numbers() -> None:
    s = Supplement.from_record({"_": {"#": "meta"}, "memberId": "KV0001", "supplementAmount": "900"}, "SUP0001")
    assert s.id == "SUP0001"
    assert s.supplement_amount == 900.0
    assert s.amount_paid == 0.0
    assert s.due_amount == 0.0
