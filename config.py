"""
config.py
Environment configuration (loaded from .env via python-dotenv).

Callers use the accessors below rather than reading os.environ directly.
"""

from __future__ import annotations

import os
from pathlib import Path

from dotenv import load_dotenv

PROJECT_ROOT = Path(__file__).resolve().parent


def load_config() -> None:
    """Load .env from the project root. Idempotent."""
    load_dotenv(PROJECT_ROOT / ".env", override=False)


def get_optional(key: str, default: str = "") -> str:
    load_config()
    val = os.getenv(key, "").strip()
    return val if val else default


def get_optional_int(key: str, default: int) -> int:
    """Get optional env var as int; return default if missing or invalid."""
    raw = get_optional(key)
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


# --- Public config accessors ---

def db_file() -> Path:
    """SQLite file holding the store replica and the owner account."""
    raw = get_optional("KV_DB_FILE")
    if not raw:
        return PROJECT_ROOT / "gym.db"
    path = Path(raw)
    return path if path.is_absolute() else PROJECT_ROOT / path


def peer_files() -> list[Path]:
    """Peer replica database files exchanged with on "Sync now"."""
    raw = get_optional("KV_PEERS")
    return [Path(p.strip()) for p in raw.split(",") if p.strip()]


def log_level() -> str:
    return get_optional("KV_LOG_LEVEL", "INFO").upper()


def log_file() -> Path | None:
    raw = get_optional("KV_LOG_FILE")
    return Path(raw) if raw else None


def currency_symbol() -> str:
    return get_optional("KV_CURRENCY", "₹")


def expiry_window_days() -> int:
    """Days ahead counted as "expiring soon". Default 7."""
    return get_optional_int("KV_EXPIRY_WINDOW_DAYS", 7)
