"""Tests for the lock-based in-memory refresh session store."""

from __future__ import annotations

import threading
from datetime import UTC, datetime, timedelta

import pytest

from jobless.services._shared.ports import (
    InMemoryRefreshSessionStore,
    NewRefreshSession,
    RotationResult,
    tokens_match,
)


def _now() -> datetime:
    return datetime.now(UTC)


def _new(user_id: int, sid: str, token: str, *, ttl: timedelta = timedelta(hours=1)):
    return NewRefreshSession(
        session_id=sid, user_id=user_id, token=token, expires_at=_now() + ttl
    )


@pytest.fixture()
def store() -> InMemoryRefreshSessionStore:
    return InMemoryRefreshSessionStore()


def test_tokens_match():
    assert tokens_match("abc", "abc")
    assert not tokens_match("abc", "abd")
    assert not tokens_match("abc", "abcd")


def test_rotation_outcomes(store):
    store.create(_new(1, "s1", "tok-1"))
    now = _now()

    assert (
        store.rotate(
            old_session_id="s1", presented_token="bad", replacement=_new(1, "x", "x"), now=now
        )
        is RotationResult.TOKEN_MISMATCH
    )
    assert (
        store.rotate(
            old_session_id="s1", presented_token="tok-1", replacement=_new(1, "s2", "tok-2"), now=now
        )
        is RotationResult.OK
    )
    assert (
        store.rotate(
            old_session_id="s1", presented_token="tok-1", replacement=_new(1, "s3", "tok-3"), now=now
        )
        is RotationResult.NOT_FOUND
    )
    assert store.get("s1") is None
    assert store.get("s2").token == "tok-2"
    assert store.get("s3") is None


def test_expired_session_is_deleted_on_rotation(store):
    store.create(_new(1, "s1", "tok-1", ttl=timedelta(seconds=30)))

    result = store.rotate(
        old_session_id="s1",
        presented_token="tok-1",
        replacement=_new(1, "s2", "tok-2"),
        now=_now() + timedelta(minutes=1),
    )

    assert result is RotationResult.EXPIRED
    assert store.get("s1") is None
    assert store.get("s2") is None


def test_concurrent_rotation_has_exactly_one_winner(store):
    store.create(_new(1, "s1", "tok-1"))
    workers = 8
    barrier = threading.Barrier(workers)
    results: list[RotationResult] = []
    results_lock = threading.Lock()

    def attempt(i: int) -> None:
        barrier.wait()
        outcome = store.rotate(
            old_session_id="s1",
            presented_token="tok-1",
            replacement=_new(1, f"s-{i}", f"tok-{i}"),
            now=_now(),
        )
        with results_lock:
            results.append(outcome)

    threads = [threading.Thread(target=attempt, args=(i,)) for i in range(workers)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert results.count(RotationResult.OK) == 1
    assert results.count(RotationResult.NOT_FOUND) == workers - 1
    assert len(store.list_user_sessions(1)) == 1


def test_delete_and_housekeeping(store):
    store.create(_new(1, "a", "tok-a"))
    store.create(_new(1, "b", "tok-b", ttl=timedelta(seconds=1)))
    store.create(_new(2, "c", "tok-c"))

    assert store.delete("a", user_id=2) is False
    assert store.delete("a", user_id=1) is True
    assert store.purge_expired(_now() + timedelta(minutes=1)) == 1
    assert store.delete_all_for_user(2) == 1
    assert store.list_user_sessions(1) == []
    assert store.list_user_sessions(2) == []


def test_session_ids_are_random_hex(store):
    ids = {store.new_session_id() for _ in range(20)}
    assert len(ids) == 20
    assert all(len(i) == 64 for i in ids)
