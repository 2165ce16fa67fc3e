"""HTTP helper utilities for tests."""

from __future__ import annotations


def json_headers(auth_token: str | None = None) -> dict[str, str]:
    """Return standard JSON headers.

    Parameters
    ----------
    auth_token:
        Optional bearer token to include.

    Returns
    -------
    dict[str, str]
        HTTP headers dictionary.
    """

    headers = {"Content-Type": "application/json", "Accept": "application/json"}
    if auth_token:
        headers["Authorization"] = f"Bearer {auth_token}"
    return headers


def register(client, *, email: str, password: str = "secret123", full_name: str = "Ada Lovelace"):
    """POST ``/api/auth/register`` and return the response."""

    return client.post(
        "/api/auth/register",
        json={"email": email, "password": password, "fullName": full_name},
    )


def login(client, *, email: str, password: str = "secret123"):
    """POST ``/api/auth/login`` and return the response."""

    return client.post("/api/auth/login", json={"email": email, "password": password})
