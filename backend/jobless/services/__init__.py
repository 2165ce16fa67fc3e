"""Service layer public API.

Re-exports
----------
- Base primitives (from ``jobless.services._shared.base``)
    * :class:`BaseService`

- Auth service (from ``jobless.services.auth``)
    * :class:`AuthService`
"""

from __future__ import annotations

from ._shared.base import BaseService
from .auth.service import AuthService

__all__ = [
    "AuthService",
    "BaseService",
]
