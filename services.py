"""
services.py
Domain operations: registration, update, delete, supplement purchases.

Each operation derives its computed fields (IDs, due amounts, timestamps),
writes through the store, and returns a Notification for the UI. Local state
is updated by the store's change notifications, not by these functions.
"""

from __future__ import annotations

from dataclasses import replace
from datetime import datetime, timezone
from typing import Any, Callable

import store as kv
import utils
from logger import get_logger
from models import (
    MEMBER_COUNTER,
    MEMBER_PREFIX,
    SUPPLEMENT_COUNTER,
    SUPPLEMENT_PREFIX,
    Member,
    Notification,
    Supplement,
)
from sync import LocalState

log = get_logger(__name__)

MEMBER_DERIVED = ("id", "registration_date", "due_amount")
SUPPLEMENT_DERIVED = ("id", "created_date", "due_amount", "member_name")


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class GymService:
    def __init__(self, sync_store: kv.SyncStore, state: LocalState, now: Callable[[], datetime] = _utcnow):
        self.store = sync_store
        self.state = state
        self._now = now

    def _mint(self, counter: str, prefix: str) -> tuple[str, int]:
        seq = self.state.counters[counter]
        return utils.format_id(prefix, seq), seq

    def register_member(self, data: dict[str, Any]) -> Notification:
        member_id, seq = self._mint(MEMBER_COUNTER, MEMBER_PREFIX)
        payload = {k: v for k, v in Member.normalize(data).items() if k not in MEMBER_DERIVED}
        payload["due_amount"] = utils.due_amount(payload.get("gym_fees") or 0, payload.get("amount_paid") or 0)
        payload["registration_date"] = utils.timestamp_iso(self._now())
        member = Member.from_record(payload, member_id)

        self.store.put(kv.MEMBERS, member_id, member.to_record())
        self.store.put(kv.COUNTERS, MEMBER_COUNTER, seq + 1)
        log.info("registered member %s (due %.2f)", member_id, member.due_amount)
        return Notification("Member registered successfully!", "success", {"id": member_id})

    def update_member(self, member: Member) -> Notification:
        """Overwrite the whole record; concurrent edits resolve last-writer-wins."""
        self.store.put(kv.MEMBERS, member.id, member.to_record())
        log.info("updated member %s", member.id)
        return Notification("Member updated successfully!", "success", {"id": member.id})

    def delete_member(self, member_id: str) -> Notification:
        self.store.delete(kv.MEMBERS, member_id)
        # Cascade covers supplements known locally only.
        removed = [s.id for s in self.state.supplements_for(member_id)]
        for supplement_id in removed:
            self.store.delete(kv.SUPPLEMENTS, supplement_id)
        log.info("deleted member %s and %d supplement(s)", member_id, len(removed))
        return Notification("Member and associated supplements deleted.", "success", {"id": member_id, "supplements": removed})

    def add_supplement(self, data: dict[str, Any]) -> Notification:
        member_id = Supplement.normalize(data).get("member_id")
        member = self.state.members.get(member_id) if member_id else None
        if member is None:
            log.warning("supplement rejected: member %r not found", member_id)
            return Notification("Selected member not found!", "error")

        supplement_id, seq = self._mint(SUPPLEMENT_COUNTER, SUPPLEMENT_PREFIX)
        payload = {k: v for k, v in Supplement.normalize(data).items() if k not in SUPPLEMENT_DERIVED}
        payload["member_id"] = member.id
        payload["member_name"] = member.full_name
        payload["due_amount"] = utils.due_amount(payload.get("supplement_amount") or 0, payload.get("amount_paid") or 0)
        payload["created_date"] = utils.timestamp_iso(self._now())
        supplement = Supplement.from_record(payload, supplement_id)

        self.store.put(kv.SUPPLEMENTS, supplement_id, supplement.to_record())
        self.store.put(kv.COUNTERS, SUPPLEMENT_COUNTER, seq + 1)
        log.info("added supplement %s for member %s", supplement_id, member.id)
        return Notification("Supplement added successfully!", "success", {"id": supplement_id})

    def attach_photo(self, member_id: str, photo: str) -> Notification:
        member = self.state.members.get(member_id)
        if member is None:
            log.warning("photo rejected: member %r not found", member_id)
            return Notification("Selected member not found!", "error")
        return self.update_member(replace(member, photo=photo))
