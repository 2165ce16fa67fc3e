"""Jobless API: authentication and session-token lifecycle."""

from __future__ import annotations

from jobless.factory import create_app

__all__ = ["create_app"]
