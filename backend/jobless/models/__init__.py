from jobless.models.refresh_session import RefreshSession
from jobless.models.user import User

__all__ = [
    "RefreshSession",
    "User",
]
