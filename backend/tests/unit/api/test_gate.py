"""Tests for the bearer-token request gate."""

from __future__ import annotations

import pytest
from flask import Flask, g
from freezegun import freeze_time

from jobless.api.deps import (
    authenticate_request,
    extract_bearer_token,
    optional_auth,
    require_auth,
)
from jobless.infra.jwt.pyjwt_token_codec import PyJWTTokenCodec
from jobless.services._shared.errors import InvalidTokenError
from jobless.services._shared.ports import Identity

ACCESS = "gate-access-secret-0123456789abcdef"
REFRESH = "gate-refresh-secret-0123456789abcdef"


@pytest.fixture()
def codec() -> PyJWTTokenCodec:
    return PyJWTTokenCodec(access_secret=ACCESS, refresh_secret=REFRESH)


@pytest.fixture()
def pair(codec):
    return codec.issue_token_pair(Identity(user_id=3, email="g@example.com", full_name="Gate"), "s")


@pytest.mark.parametrize(
    ("header", "expected"),
    [
        (None, None),
        ("", None),
        ("Bearer", None),
        ("Bearer ", None),
        ("Bearer    ", None),
        ("Basic abc", None),
        ("bearer abc", None),
        ("Bearer abc", "abc"),
        ("Bearer  abc ", "abc"),
    ],
)
def test_extract_bearer_token(header, expected):
    assert extract_bearer_token(header) == expected


def test_valid_access_token(codec, pair):
    result = authenticate_request(f"Bearer {pair.access_token}", codec)
    assert result.error is None
    assert result.identity == Identity(user_id=3, email="g@example.com", full_name="Gate")


def test_refresh_token_is_not_an_access_token(codec, pair):
    result = authenticate_request(f"Bearer {pair.refresh_token}", codec)
    assert result.identity is None
    assert isinstance(result.error, InvalidTokenError)


def test_missing_header(codec):
    result = authenticate_request(None, codec)
    assert result.identity is None
    assert result.error is None


def test_expired_token(codec):
    with freeze_time("2020-01-01 00:00:00"):
        token = codec.issue_token_pair(
            Identity(user_id=3, email="g@example.com", full_name="Gate"), "s"
        ).access_token

    result = authenticate_request(f"Bearer {token}", codec)
    assert result.identity is None
    assert result.error is not None


def test_optional_auth_never_rejects(codec, pair):
    app = Flask(__name__)
    app.extensions["token_codec"] = codec

    @app.get("/whoami")
    @optional_auth
    def whoami(identity):
        return {"userId": identity.user_id if identity else None}

    client = app.test_client()
    assert client.get("/whoami").get_json() == {"userId": None}
    junk = client.get("/whoami", headers={"Authorization": "Bearer junk"})
    assert junk.get_json() == {"userId": None}
    ok = client.get("/whoami", headers={"Authorization": f"Bearer {pair.access_token}"})
    assert ok.get_json() == {"userId": 3}


def test_identity_only_reaches_the_view_as_an_argument(codec, pair):
    app = Flask(__name__)
    app.extensions["token_codec"] = codec
    seen = {}

    @app.get("/private")
    @require_auth
    def private(identity):
        seen["identity"] = identity
        seen["on_g"] = "identity" in g
        return {"userId": identity.user_id}

    resp = app.test_client().get(
        "/private", headers={"Authorization": f"Bearer {pair.access_token}"}
    )

    assert resp.status_code == 200
    assert seen["identity"].email == "g@example.com"
    assert seen["on_g"] is False
