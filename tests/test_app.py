"""
Tests for the registration page, driven through Streamlit's script test harness.
"""

from __future__ import annotations

from pathlib import Path

import pytest
from streamlit.testing.v1 import AppTest

import auth
import db

APP = str(Path(__file__).resolve().parent.parent / "app.py")


@pytest.fixture
def app(db_file, monkeypatch) -> AppTest:
    monkeypatch.setenv("KV_DB_FILE", str(db_file))
    auth.ensure_admin(db_file, rounds=4)
    db.clear_force_password_change(db_file)

    at = AppTest.from_file(APP, default_timeout=30)
    at.session_state["logged_in"] = True
    at.session_state["username"] = "admin"
    return at.run()


def _button(at: AppTest, label: str):
    return next(b for b in at.button if b.label == label)


def test_blank_registration_form_shows_no_errors(app) -> None:
    assert not app.exception
    assert [e.value for e in app.error] == []


def test_age_input_matches_validation(app) -> None:
    assert app.number_input(key="reg_age").min == 1


def test_submit_with_missing_name_reports_error(app) -> None:
    _button(app, "Register member").click().run()
    assert "Full name is required." in [e.value for e in app.error]


def test_submit_registers_member(app, db_file) -> None:
    app.text_input(key="reg_name").input("Asha Rao").run()
    _button(app, "Register member").click().run()

    assert not app.exception
    assert app.session_state["page"] == "Members"
    assert "Member registered successfully!" in [s.value for s in app.success]
