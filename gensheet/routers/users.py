"""Users router - user administration (ADMIN only)."""

import logging
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from gensheet.core.deps import (
    get_current_session,
    get_db,
    require_confirmation,
    require_csrf_header,
)
from gensheet.core.permissions import require_http
from gensheet.core.structured_logging import build_log_context
from gensheet.db.enums import Role
from gensheet.schemas.auth import UserSession
from gensheet.schemas.user import UserCreate, UserRead, UserUpdate
from gensheet.services import user_service
from gensheet.services.user_service import DuplicateEmailError, OrganizationNotFoundError

logger = logging.getLogger(__name__)

router = APIRouter()


def _get_user_or_404(db: Session, user_id: UUID):
    user = user_service.get_user_by_id(db, user_id)
    if not user:
        raise HTTPException(status_code=404, detail="User not found")
    return user


@router.get("", response_model=list[UserRead])
def list_users(
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
    q: str | None = Query(None, description="Search in name and email"),
    role: Role | None = None,
):
    """List users with their checksheet and result counts."""
    require_http(session, "user", "manage")
    users = user_service.list_users(db, q=q, role=role)
    counts = user_service.get_activity_counts(db, [u.id for u in users])
    return [user_service.to_read(u, counts) for u in users]


@router.post(
    "",
    response_model=UserRead,
    status_code=201,
    dependencies=[Depends(require_csrf_header)],
)
def create_user(
    data: UserCreate,
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    require_http(session, "user", "manage")
    try:
        user = user_service.create_user(db, data)
    except DuplicateEmailError as e:
        raise HTTPException(status_code=409, detail=str(e))
    except OrganizationNotFoundError as e:
        raise HTTPException(status_code=400, detail=str(e))

    logger.info(
        "User created by admin",
        extra=build_log_context(user_id=session.user_id, route="/users", method="POST"),
    )
    return user_service.to_read(user)


@router.patch(
    "/{user_id}",
    response_model=UserRead,
    dependencies=[Depends(require_csrf_header)],
)
def update_user(
    user_id: UUID,
    data: UserUpdate,
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    """
    Update a user. Leave `password` unset to keep the current one.

    Changing the password or role, or deactivating, signs the user out
    everywhere.
    """
    require_http(session, "user", "manage")
    user = _get_user_or_404(db, user_id)
    try:
        user = user_service.update_user(db, user, data)
    except DuplicateEmailError as e:
        raise HTTPException(status_code=409, detail=str(e))
    except OrganizationNotFoundError as e:
        raise HTTPException(status_code=400, detail=str(e))
    counts = user_service.get_activity_counts(db, [user.id])
    return user_service.to_read(user, counts)


@router.delete(
    "/{user_id}",
    dependencies=[Depends(require_csrf_header), Depends(require_confirmation)],
)
def delete_user(
    user_id: UUID,
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    """Delete a user and everything they created. Requires `?confirm=true`."""
    require_http(session, "user", "manage")
    if user_id == session.user_id:
        raise HTTPException(status_code=400, detail="You cannot delete your own account")
    user = _get_user_or_404(db, user_id)
    user_service.delete_user(db, user)
    return {"deleted": True, "id": str(user_id)}
