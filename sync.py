"""
sync.py
Local view of the store: ordered member/supplement collections and ID counters,
kept current by applying store change notifications.
"""

from __future__ import annotations

from typing import Any, Callable, Generic, Iterator, TypeVar

import store as kv
from logger import get_logger
from models import MEMBER_COUNTER, SUPPLEMENT_COUNTER, Member, Supplement

log = get_logger(__name__)

T = TypeVar("T", Member, Supplement)


class Collection(Generic[T]):
    """Insertion-ordered records, at most one per ID."""

    def __init__(self, factory: Callable[[dict, str], T]):
        self._factory = factory
        self._items: list[T] = []

    def apply(self, record_id: str, snapshot: Any) -> None:
        """
        Apply one change notification:
        - None (tombstone): remove the record if present.
        - mapping: append if new, otherwise replace in place.
        """
        index = self.index(record_id)
        if snapshot is None:
            if index is not None:
                del self._items[index]
            return
        try:
            if not isinstance(snapshot, dict):
                raise TypeError("record is not a mapping")
            record = self._factory(snapshot, record_id)
        except (TypeError, ValueError) as exc:
            log.warning("ignoring malformed record %s: %s", record_id, exc)
            return
        if index is None:
            self._items.append(record)
        else:
            self._items[index] = record

    def index(self, record_id: str) -> int | None:
        for i, item in enumerate(self._items):
            if item.id == record_id:
                return i
        return None

    def get(self, record_id: str) -> T | None:
        i = self.index(record_id)
        return None if i is None else self._items[i]

    def all(self) -> list[T]:
        return list(self._items)

    def __iter__(self) -> Iterator[T]:
        return iter(list(self._items))

    def __len__(self) -> int:
        return len(self._items)


class LocalState:
    """Members, supplements and counters as last seen from the store."""

    def __init__(self):
        self.members: Collection[Member] = Collection(lambda data, rid: Member.from_record(data, rid))
        self.supplements: Collection[Supplement] = Collection(lambda data, rid: Supplement.from_record(data, rid))
        self.counters = {MEMBER_COUNTER: 1, SUPPLEMENT_COUNTER: 1}
        self._store: kv.SyncStore | None = None
        self._unsubscribe: list[Callable[[], None]] = []

    def attach(self, sync_store: kv.SyncStore) -> "LocalState":
        """Subscribe to the store; current records are replayed immediately."""
        self._store = sync_store
        self._unsubscribe = [
            sync_store.subscribe(kv.MEMBERS, self.members.apply),
            sync_store.subscribe(kv.SUPPLEMENTS, self.supplements.apply),
            sync_store.subscribe(kv.COUNTERS, self.on_counter),
        ]
        for name in (MEMBER_COUNTER, SUPPLEMENT_COUNTER):
            if not sync_store.get(kv.COUNTERS, name):
                self.on_counter(name, None)
        return self

    def detach(self) -> None:
        for unsubscribe in self._unsubscribe:
            unsubscribe()
        self._unsubscribe = []
        self._store = None

    def on_counter(self, name: str, value: Any) -> None:
        """Adopt a counter value; an uninitialized counter is bootstrapped to 1 in the store."""
        if value:
            try:
                self.counters[name] = int(value)
            except (TypeError, ValueError):
                log.warning("ignoring malformed counter %s: %r", name, value)
            return
        self.counters[name] = 1
        if self._store is not None:
            self._store.put(kv.COUNTERS, name, 1)

    def supplements_for(self, member_id: str) -> list[Supplement]:
        return [s for s in self.supplements if s.member_id == member_id]
