"""
auth.py
Owner account for the console (bcrypt hashing, verify, login, change password).

The account is local to each replica; it is never written to the synced store.
"""

from __future__ import annotations

from pathlib import Path

import bcrypt

import db
from logger import get_logger

log = get_logger(__name__)

DEFAULT_USERNAME = "admin"
DEFAULT_PASSWORD = "admin123"
MIN_PASSWORD_LENGTH = 6


def _to_bcrypt_secret(password: str) -> bytes:
    """
    bcrypt only uses the first 72 BYTES of the password.
    We truncate to 72 bytes to avoid ValueError and to make behavior explicit.
    """
    return password.encode("utf-8")[:72]


def hash_password(password: str, rounds: int = 12) -> str:
    """Returns a bcrypt hash as a UTF-8 string (stored in SQLite)."""
    hashed = bcrypt.hashpw(_to_bcrypt_secret(password), bcrypt.gensalt(rounds=rounds))
    return hashed.decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    return bcrypt.checkpw(_to_bcrypt_secret(password), password_hash.encode("utf-8"))


def ensure_admin(db_file: Path | str | None = None, rounds: int = 12) -> None:
    """Create the default owner account on first run (hashing only when needed)."""
    if db.has_admin(db_file):
        return
    db.init_db(hash_password(DEFAULT_PASSWORD, rounds=rounds), db_file=db_file)
    log.info("created default owner account %r", DEFAULT_USERNAME)


def login(username: str, password: str, db_file: Path | str | None = None) -> bool:
    admin = db.fetch_one("SELECT * FROM admin_users WHERE username = ?", (username,), db_file=db_file)
    if not admin:
        return False
    ok = verify_password(password, admin["password_hash"])
    if not ok:
        log.warning("failed login for %r", username)
    return ok


def password_errors(new_password: str, confirm: str) -> list[str]:
    errors = []
    if len(new_password) < MIN_PASSWORD_LENGTH:
        errors.append(f"Password must be at least {MIN_PASSWORD_LENGTH} characters.")
    if new_password != confirm:
        errors.append("Passwords do not match.")
    return errors


def change_password(username: str, new_password: str, db_file: Path | str | None = None, rounds: int = 12) -> None:
    db.execute(
        "UPDATE admin_users SET password_hash = ? WHERE username = ?",
        (hash_password(new_password, rounds=rounds), username),
        db_file=db_file,
    )
    db.clear_force_password_change(db_file)
    log.info("password changed for %r", username)
