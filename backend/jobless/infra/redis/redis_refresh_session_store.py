# comments in English; reST docstrings
from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import cast

import redis  # type: ignore[import-untyped]

from jobless.services._shared.ports import (
    NewRefreshSession,
    RefreshSessionStore,
    RefreshSessionView,
    RotationResult,
    tokens_match,
)


def _b(value: bytes | str | None, default: str = "") -> str:
    if value is None:
        return default
    return value.decode() if isinstance(value, bytes | bytearray) else str(value)


@dataclass(slots=True)
class RedisRefreshSessionStore(RefreshSessionStore):
    """
    Redis-backed refresh session store with atomic rotation.

    Layout: one hash per session (``rs:{id}``) expiring with the session, plus
    a per-user index set (``rs:u:{user_id}``) of session ids.

    :param r: A Redis client (already connected).
    """

    r: redis.Redis

    # -------------------- helpers --------------------

    @staticmethod
    def _k(session_id: str) -> str:
        return f"rs:{session_id}"

    @staticmethod
    def _ku(user_id: int | str) -> str:
        return f"rs:u:{user_id}"

    @staticmethod
    def _to_ts(dt: datetime) -> float:
        if dt.tzinfo is None:
            dt = dt.replace(tzinfo=UTC)
        return dt.timestamp()

    def _ttl(self, expires_at: datetime, now: datetime) -> int:
        return max(1, math.ceil(self._to_ts(expires_at) - self._to_ts(now)))

    def _mapping(self, session: NewRefreshSession, now: datetime) -> dict[str, str]:
        return {
            "user_id": str(session.user_id),
            "token": session.token,
            "expires_at": repr(self._to_ts(session.expires_at)),
            "created_at": repr(self._to_ts(now)),
        }

    def _view(self, session_id: str, h: dict[bytes, bytes]) -> RefreshSessionView:
        return RefreshSessionView(
            session_id=session_id,
            user_id=int(_b(h.get(b"user_id"), "0")),
            token=_b(h.get(b"token")),
            expires_at=datetime.fromtimestamp(float(_b(h.get(b"expires_at"), "0")), tz=UTC),
            created_at=datetime.fromtimestamp(float(_b(h.get(b"created_at"), "0")), tz=UTC),
        )

    def _members(self, user_id: int | str) -> list[str]:
        return sorted(_b(m) for m in self.r.smembers(self._ku(user_id)))

    # -------------------- API ------------------------

    def create(self, session: NewRefreshSession) -> None:
        now = datetime.now(UTC)
        key = self._k(session.session_id)
        pipe = self.r.pipeline(transaction=True)
        pipe.hset(key, mapping=self._mapping(session, now))
        pipe.expire(key, self._ttl(session.expires_at, now))
        pipe.sadd(self._ku(session.user_id), session.session_id)
        pipe.execute()

    def get(self, session_id: str) -> RefreshSessionView | None:
        h = self.r.hgetall(self._k(session_id))
        if not h:
            return None
        return self._view(session_id, h)

    def rotate(
        self,
        *,
        old_session_id: str,
        presented_token: str,
        replacement: NewRefreshSession,
        now: datetime,
    ) -> RotationResult:
        """
        Atomically consume ``old_session_id`` and create ``replacement``.

        Uses WATCH/MULTI/EXEC: if another client touches the old key between
        the read and the commit, the transaction aborts and the loop re-reads,
        at which point the key is gone and ``NOT_FOUND`` is returned.
        """
        k_old = self._k(old_session_id)
        k_new = self._k(replacement.session_id)

        while True:
            try:
                with self.r.pipeline() as p:
                    p.watch(k_old)

                    h = cast(dict[bytes, bytes], p.hgetall(k_old))
                    if not h:
                        p.unwatch()
                        return RotationResult.NOT_FOUND
                    if not tokens_match(_b(h.get(b"token")), presented_token):
                        p.unwatch()
                        return RotationResult.TOKEN_MISMATCH

                    k_user = self._ku(_b(h.get(b"user_id")))
                    expired = float(_b(h.get(b"expires_at"), "0")) <= self._to_ts(now)

                    p.multi()
                    p.delete(k_old)
                    p.srem(k_user, old_session_id)
                    if not expired:
                        p.hset(k_new, mapping=self._mapping(replacement, now))
                        p.expire(k_new, self._ttl(replacement.expires_at, now))
                        p.sadd(self._ku(replacement.user_id), replacement.session_id)
                    p.execute()

                return RotationResult.EXPIRED if expired else RotationResult.OK

            except redis.WatchError:
                # Concurrent modification detected; retry loop
                continue

    def delete(self, session_id: str, *, user_id: int | None = None) -> bool:
        key = self._k(session_id)
        owner = self.r.hget(key, "user_id")
        if owner is None:
            return False
        if user_id is not None and _b(owner) != str(user_id):
            return False

        with self.r.pipeline(transaction=True) as p:
            p.delete(key)
            p.srem(self._ku(_b(owner)), session_id)
            out = cast(list[int], p.execute())
        return bool(out[0])

    def delete_all_for_user(self, user_id: int) -> int:
        members = self._members(user_id)
        if not members:
            return 0
        pipe = self.r.pipeline(transaction=True)
        for session_id in members:
            pipe.delete(self._k(session_id))
        pipe.delete(self._ku(user_id))
        out = cast(list[int], pipe.execute())
        return sum(int(n) for n in out[:-1])

    def list_user_sessions(self, user_id: int) -> list[RefreshSessionView]:
        views: list[RefreshSessionView] = []
        stale: list[str] = []
        for session_id in self._members(user_id):
            v = self.get(session_id)
            if v:
                views.append(v)
            else:
                # Hash expired through its TTL; drop it from the index.
                stale.append(session_id)

        if stale:
            self.r.srem(self._ku(user_id), *stale)
        return sorted(views, key=lambda v: v.created_at, reverse=True)

    def purge_expired(self, now: datetime) -> int:
        removed = 0
        now_ts = self._to_ts(now)
        for k_user in self.r.scan_iter(match=self._ku("*")):
            k_user_s = _b(k_user)
            for session_id in sorted(_b(m) for m in self.r.smembers(k_user_s)):
                exp = self.r.hget(self._k(session_id), "expires_at")
                if exp is None:
                    self.r.srem(k_user_s, session_id)
                elif float(_b(exp)) <= now_ts:
                    with self.r.pipeline(transaction=True) as p:
                        p.delete(self._k(session_id))
                        p.srem(k_user_s, session_id)
                        out = cast(list[int], p.execute())
                    removed += int(out[0])
        return removed
