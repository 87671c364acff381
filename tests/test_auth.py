"""
Tests for the owner account.
"""

from __future__ import annotations

import auth
import db


def test_default_admin_and_forced_change(db_file) -> None:
    auth.ensure_admin(db_file, rounds=4)
    assert db.is_force_password_change(db_file)
    assert auth.login("admin", "admin123", db_file)
    assert not auth.login("admin", "wrong", db_file)
    assert not auth.login("nobody", "admin123", db_file)

    auth.change_password("admin", "s3cret!", db_file, rounds=4)
    assert not db.is_force_password_change(db_file)
    assert auth.login("admin", "s3cret!", db_file)

    # a second start does not recreate the account
    auth.ensure_admin(db_file, rounds=4)
    assert auth.login("admin", "s3cret!", db_file)


def test_password_truncated_to_72_bytes() -> None:
    hashed = auth.hash_password("x" * 80, rounds=4)
    assert auth.verify_password("x" * 72, hashed)


def test_password_errors() -> None:
    assert auth.password_errors("abc", "abd") == [
        "Password must be at least 6 characters.",
        "Passwords do not match.",
    ]
    assert auth.password_errors("abcdef", "abcdef") == []
