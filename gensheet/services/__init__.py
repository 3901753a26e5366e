"""Service layer modules."""

from gensheet.services.user_service import (
    authenticate,
    get_user_by_email,
    get_user_by_id,
    revoke_all_sessions,
)

__all__ = [
    "authenticate",
    "get_user_by_email",
    "get_user_by_id",
    "revoke_all_sessions",
]
