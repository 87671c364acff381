"""
Tests for the store replica: puts, tombstones, notifications, merge rule, peer sync.
"""

from __future__ import annotations

from store import COUNTERS, MEMBERS, SyncStore, encode, wins


def test_put_get_and_tombstone(sync_store) -> None:
    sync_store.put(MEMBERS, "KV0001", {"fullName": "Asha"})
    assert sync_store.get(MEMBERS, "KV0001") == {"fullName": "Asha"}

    sync_store.delete(MEMBERS, "KV0001")
    assert sync_store.get(MEMBERS, "KV0001") is None
    assert sync_store.items(MEMBERS) == []
    assert sync_store.items(MEMBERS, include_tombstones=True) == [("KV0001", None)]


def test_subscribe_replays_existing_and_receives_changes(sync_store) -> None:
    sync_store.put(MEMBERS, "KV0001", {"fullName": "Asha"})
    seen = []
    unsubscribe = sync_store.subscribe(MEMBERS, lambda k, v: seen.append((k, v)))
    assert seen == [("KV0001", {"fullName": "Asha"})]

    sync_store.put(MEMBERS, "KV0002", {"fullName": "Ravi"})
    sync_store.delete(MEMBERS, "KV0001")
    assert seen[1:] == [("KV0002", {"fullName": "Ravi"}), ("KV0001", None)]

    unsubscribe()
    sync_store.put(MEMBERS, "KV0003", {"fullName": "Meena"})
    assert len(seen) == 3


def test_subscribers_only_see_their_collection(sync_store) -> None:
    seen = []
    sync_store.subscribe(COUNTERS, lambda k, v: seen.append((k, v)))
    sync_store.put(MEMBERS, "KV0001", {"fullName": "Asha"})
    sync_store.put(COUNTERS, "memberIdCounter", 2)
    assert seen == [("memberIdCounter", 2)]


def test_poll_delivers_writes_from_another_session(db_file) -> None:
    a = SyncStore(db_file)
    b = SyncStore(db_file)
    seen = []
    b.subscribe(MEMBERS, lambda k, v: seen.append((k, v)))

    a.put(MEMBERS, "KV0001", {"fullName": "Asha"})
    assert seen == []
    assert b.poll() == 1
    assert seen == [("KV0001", {"fullName": "Asha"})]
    assert b.poll() == 0


def test_local_writes_supersede_stored_state(db_file) -> None:
    s = SyncStore(db_file, clock=lambda: 1000)
    s.put(MEMBERS, "KV0001", {"fullName": "first"})
    s.put(MEMBERS, "KV0001", {"fullName": "second"})
    assert s.get(MEMBERS, "KV0001") == {"fullName": "second"}


def test_merge_rule() -> None:
    assert wins(2, encode("a"), 1, encode("b"))
    assert not wins(1, encode("z"), 2, encode("a"))
    # equal states: lexically greater encoding wins, identical values do not re-apply
    assert wins(5, encode("b"), 5, encode("a"))
    assert not wins(5, encode("a"), 5, encode("a"))


def test_merge_ignores_older_state(sync_store) -> None:
    assert sync_store.merge(MEMBERS, "KV0001", {"fullName": "new"}, 2000)
    assert not sync_store.merge(MEMBERS, "KV0001", {"fullName": "old"}, 1000)
    assert sync_store.get(MEMBERS, "KV0001") == {"fullName": "new"}


def test_peers_converge_after_sync(tmp_path) -> None:
    a = SyncStore(tmp_path / "a.db", clock=lambda: 1000)
    b = SyncStore(tmp_path / "b.db", clock=lambda: 2000)

    a.put(MEMBERS, "KV0001", {"fullName": "from a"})
    a.put(MEMBERS, "KV0002", {"fullName": "only a"})
    b.put(MEMBERS, "KV0001", {"fullName": "from b"})
    b.delete(MEMBERS, "KV0003")

    pulled = a.sync_with(b)
    assert pulled == 2

    def contents(s):
        return sorted((c, k, v) for c, k, v, _ in s.nodes())

    assert contents(a) == contents(b)
    assert a.get(MEMBERS, "KV0001") == {"fullName": "from b"}
    assert b.get(MEMBERS, "KV0002") == {"fullName": "only a"}
    assert a.sync_with(b) == 0
