"""Concurrent refresh requests against a file-backed SQLite database.

Each worker thread gets its own application context and therefore its own
SQLAlchemy session, the way gunicorn threads do in production.
"""

from __future__ import annotations

import threading

import pytest

from jobless.core import config
from jobless.core.extensions import db
from jobless.factory import create_app
from tests.helpers.http import register

WORKERS = 8


@pytest.fixture(autouse=True)
def _factories_session():
    """Requests here use the real per-context session, not the SAVEPOINT one."""
    yield


@pytest.fixture()
def file_app(tmp_path):
    """Application bound to a throwaway SQLite file shared by all threads."""
    FileBackedConfig = type(
        "FileBackedConfig",
        (config.TestingConfig,),
        {
            "SQLALCHEMY_DATABASE_URI": f"sqlite:///{tmp_path / 'sessions.db'}",
            "SQLALCHEMY_ENGINE_OPTIONS": {
                "connect_args": {"check_same_thread": False, "timeout": 30},
            },
            "JWT_SECRET": "race-access-secret-0123456789abcdef",
            "JWT_REFRESH_SECRET": "race-refresh-secret-0123456789abcdef",
            "LOG_LEVEL": "WARNING",
        },
    )
    app = create_app(FileBackedConfig)
    with app.app_context():
        db.create_all()
    yield app
    with app.app_context():
        db.session.remove()
        db.drop_all()
        db.engine.dispose()


def _refresh_concurrently(app, tokens: list[str]) -> list[int]:
    barrier = threading.Barrier(len(tokens))
    statuses: list[int] = []
    statuses_lock = threading.Lock()

    def attempt(token: str) -> None:
        client = app.test_client()
        barrier.wait()
        resp = client.post("/api/auth/refresh", json={"refreshToken": token})
        with statuses_lock:
            statuses.append(resp.status_code)

    threads = [threading.Thread(target=attempt, args=(t,)) for t in tokens]
    for t in threads:
        t.start()
    for t in threads:
        t.join()
    return statuses


def test_same_token_refreshed_concurrently_succeeds_once(file_app):
    resp = register(file_app.test_client(), email="racer@example.com")
    assert resp.status_code == 201
    token = resp.get_json()["data"]["refreshToken"]

    statuses = _refresh_concurrently(file_app, [token] * WORKERS)

    assert statuses.count(200) == 1
    assert statuses.count(401) == WORKERS - 1


def test_independent_users_refresh_concurrently(file_app):
    client = file_app.test_client()
    tokens = []
    for i in range(WORKERS):
        resp = register(client, email=f"parallel{i}@example.com")
        assert resp.status_code == 201
        tokens.append(resp.get_json()["data"]["refreshToken"])

    statuses = _refresh_concurrently(file_app, tokens)

    assert statuses == [200] * WORKERS
