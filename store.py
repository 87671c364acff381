"""
store.py
Peer-synchronized key-value graph store (one replica per SQLite file).

Each collection ("soul") holds keyed nodes. A write is a full value, or None
for a tombstone, stamped with a millisecond state. Replicas merge by
last-write-wins on state; equal states fall back to comparing the encoded
values so every replica picks the same winner.

Subscribers receive (key, value) for every applied change. Local writes are
delivered inside put(); writes made by other sessions on the same file are
delivered by poll(), and writes from peer replicas by sync_with().
"""

from __future__ import annotations

import json
import time
from pathlib import Path
from typing import Any, Callable

import db
from logger import get_logger

log = get_logger(__name__)

MEMBERS = "kv_fitness_members"
SUPPLEMENTS = "kv_fitness_supplements"
COUNTERS = "kv_fitness_counters"

Listener = Callable[[str, Any], None]


def encode(value: Any) -> str:
    return json.dumps(value, sort_keys=True, separators=(",", ":"), ensure_ascii=False)


def wins(incoming_state: int, incoming_raw: str, current_state: int, current_raw: str) -> bool:
    """Merge rule: greater state wins; ties go to the lexically greater encoding."""
    if incoming_state != current_state:
        return incoming_state > current_state
    return incoming_raw > current_raw


def _now_ms() -> int:
    return int(time.time() * 1000)


class SyncStore:
    def __init__(self, db_file: Path | str | None = None, clock: Callable[[], int] = _now_ms):
        self.db_file = db_file
        self._clock = clock
        self._listeners: dict[str, list[Listener]] = {}
        self._last_state = 0
        db.create_tables(db_file)
        row = db.fetch_one("SELECT COALESCE(MAX(seq), 0) AS s FROM nodes", db_file=db_file)
        self._cursor = int(row["s"])

    # ---------- reads ----------

    def get(self, collection: str, key: str) -> Any:
        row = db.fetch_one(
            "SELECT value FROM nodes WHERE soul = ? AND key = ?", (collection, key), db_file=self.db_file
        )
        return json.loads(row["value"]) if row else None

    def items(self, collection: str, include_tombstones: bool = False) -> list[tuple[str, Any]]:
        rows = db.fetch_all(
            "SELECT key, value FROM nodes WHERE soul = ? ORDER BY seq ASC", (collection,), db_file=self.db_file
        )
        out = [(r["key"], json.loads(r["value"])) for r in rows]
        if include_tombstones:
            return out
        return [(k, v) for k, v in out if v is not None]

    def nodes(self) -> list[tuple[str, str, Any, int]]:
        """All nodes as (collection, key, value, state), tombstones included."""
        rows = db.fetch_all("SELECT soul, key, value, state FROM nodes ORDER BY seq ASC", db_file=self.db_file)
        return [(r["soul"], r["key"], json.loads(r["value"]), int(r["state"])) for r in rows]

    # ---------- writes ----------

    def _next_state(self, current: int) -> int:
        # Local writes always supersede what this replica has already seen.
        state = max(self._clock(), self._last_state + 1, current + 1)
        self._last_state = state
        return state

    def _write(self, collection: str, key: str, value: Any, state: int | None) -> bool:
        """Apply a write under the merge rule. state=None means a local write."""
        raw = encode(value)
        with db.get_conn(self.db_file) as conn:
            row = conn.execute(
                "SELECT value, state FROM nodes WHERE soul = ? AND key = ?", (collection, key)
            ).fetchone()
            if state is None:
                state = self._next_state(int(row["state"]) if row else 0)
            elif row and not wins(state, raw, int(row["state"]), row["value"]):
                return False
            conn.execute(
                """
                INSERT INTO nodes(soul, key, value, state, seq)
                VALUES(?, ?, ?, ?, (SELECT COALESCE(MAX(seq), 0) + 1 FROM nodes))
                ON CONFLICT(soul, key) DO UPDATE SET
                    value=excluded.value, state=excluded.state, seq=excluded.seq
                """,
                (collection, key, raw, state),
            )
        log.debug("write %s/%s state=%s tombstone=%s", collection, key, state, value is None)
        return True

    def put(self, collection: str, key: str, value: Any) -> None:
        self._write(collection, key, value, None)
        self._emit(collection, key, value)

    def delete(self, collection: str, key: str) -> None:
        self.put(collection, key, None)

    def merge(self, collection: str, key: str, value: Any, state: int) -> bool:
        """Apply a replicated write; returns True if it won locally."""
        applied = self._write(collection, key, value, state)
        if applied:
            self._emit(collection, key, value)
        return applied

    # ---------- change notifications ----------

    def subscribe(self, collection: str, listener: Listener) -> Callable[[], None]:
        """Register a listener and replay the collection's current records to it."""
        self._listeners.setdefault(collection, []).append(listener)
        for key, value in self.items(collection):
            listener(key, value)

        def unsubscribe() -> None:
            listeners = self._listeners.get(collection, [])
            if listener in listeners:
                listeners.remove(listener)

        return unsubscribe

    def _emit(self, collection: str, key: str, value: Any) -> None:
        for listener in list(self._listeners.get(collection, [])):
            listener(key, value)

    def poll(self) -> int:
        """Deliver writes made to this file since the last poll. Returns the count."""
        rows = db.fetch_all(
            "SELECT soul, key, value, seq FROM nodes WHERE seq > ? ORDER BY seq ASC",
            (self._cursor,),
            db_file=self.db_file,
        )
        for r in rows:
            self._emit(r["soul"], r["key"], json.loads(r["value"]))
            self._cursor = max(self._cursor, int(r["seq"]))
        return len(rows)

    def sync_with(self, peer: "SyncStore") -> int:
        """Exchange nodes with a peer replica both ways. Returns nodes changed locally."""
        pulled = sum(self.merge(*node) for node in peer.nodes())
        pushed = sum(peer.merge(*node) for node in self.nodes())
        log.info("synced with %s: %d pulled, %d pushed", peer.db_file, pulled, pushed)
        return pulled

    def close(self) -> None:
        self._listeners.clear()
