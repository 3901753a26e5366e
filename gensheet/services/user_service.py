"""User service - administration, profile and session management."""

import logging
from uuid import UUID

from sqlalchemy import func, or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from gensheet.core.security import hash_password, verify_password
from gensheet.db.enums import Role
from gensheet.db.models import Checksheet, ChecksheetResult, Organization, User
from gensheet.schemas.auth import ProfileUpdate
from gensheet.schemas.user import UserCreate, UserRead, UserUpdate

logger = logging.getLogger(__name__)


class UserServiceError(Exception):
    """Base exception for user service errors."""

    pass


class DuplicateEmailError(UserServiceError):
    """Email already registered."""

    pass


class OrganizationNotFoundError(UserServiceError):
    """Referenced organization does not exist."""

    pass


def get_user_by_id(db: Session, user_id: UUID) -> User | None:
    """Get user by ID."""
    return db.query(User).filter(User.id == user_id).first()


def get_user_by_email(db: Session, email: str) -> User | None:
    """Get user by email (case-insensitive)."""
    return db.query(User).filter(User.email == email.strip().lower()).first()


def authenticate(db: Session, email: str, password: str) -> User | None:
    """Return the active user matching the credentials, or None."""
    user = get_user_by_email(db, email)
    if not user or not user.is_active:
        return None
    if not verify_password(password, user.password_hash):
        return None
    return user


def revoke_all_sessions(db: Session, user_id: UUID) -> bool:
    """
    Revoke all sessions for a user by bumping token_version.

    Existing tokens with old version will fail validation.

    Returns:
        True if user found and sessions revoked, False if user not found
    """
    user = get_user_by_id(db, user_id)
    if not user:
        return False

    user.token_version += 1
    db.commit()
    return True


def list_users(
    db: Session,
    q: str | None = None,
    role: Role | None = None,
) -> list[User]:
    """List users, newest first, optionally filtered by name/email and role."""
    query = db.query(User)
    if q:
        pattern = f"%{q.strip()}%"
        query = query.filter(or_(User.name.ilike(pattern), User.email.ilike(pattern)))
    if role:
        query = query.filter(User.role == role.value)
    return query.order_by(User.created_at.desc()).all()


def get_activity_counts(db: Session, user_ids: list[UUID]) -> dict[UUID, tuple[int, int]]:
    """Batch (checksheet_count, result_count) per user id."""
    if not user_ids:
        return {}
    checksheet_counts = dict(
        db.query(Checksheet.creator_id, func.count(Checksheet.id))
        .filter(Checksheet.creator_id.in_(user_ids))
        .group_by(Checksheet.creator_id)
        .all()
    )
    result_counts = dict(
        db.query(ChecksheetResult.inspector_id, func.count(ChecksheetResult.id))
        .filter(ChecksheetResult.inspector_id.in_(user_ids))
        .group_by(ChecksheetResult.inspector_id)
        .all()
    )
    return {uid: (checksheet_counts.get(uid, 0), result_counts.get(uid, 0)) for uid in user_ids}


def to_read(user: User, counts: dict[UUID, tuple[int, int]] | None = None) -> UserRead:
    checksheet_count, result_count = (counts or {}).get(user.id, (0, 0))
    read = UserRead.model_validate(user)
    return read.model_copy(update={
        "checksheet_count": checksheet_count,
        "result_count": result_count,
    })


def _check_organization(db: Session, organization_id: UUID | None) -> None:
    if organization_id is not None and db.get(Organization, organization_id) is None:
        raise OrganizationNotFoundError("Organization not found")


def create_user(db: Session, data: UserCreate) -> User:
    """
    Create a user with a hashed password.

    Raises:
        DuplicateEmailError: email already registered
        OrganizationNotFoundError: unknown organization_id
    """
    email = data.email.lower()
    if get_user_by_email(db, email):
        raise DuplicateEmailError("User with this email already exists")
    _check_organization(db, data.organization_id)

    user = User(
        email=email,
        name=data.name,
        password_hash=hash_password(data.password),
        role=data.role.value,
        organization_id=data.organization_id,
    )
    db.add(user)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise DuplicateEmailError("User with this email already exists")
    db.refresh(user)
    logger.info(f"User created with role {user.role}", extra={"user_id": str(user.id)})
    return user


def update_user(db: Session, user: User, data: UserUpdate) -> User:
    """
    Admin update. A new password, role change or deactivation revokes
    the user's existing sessions.

    Raises:
        DuplicateEmailError: new email already registered
        OrganizationNotFoundError: unknown organization_id
    """
    update_data = data.model_dump(exclude_unset=True)
    revoke = False

    if update_data.get("email"):
        email = update_data["email"].lower()
        existing = get_user_by_email(db, email)
        if existing and existing.id != user.id:
            raise DuplicateEmailError("User with this email already exists")
        user.email = email

    if "name" in update_data:
        user.name = update_data["name"]

    if update_data.get("password"):
        user.password_hash = hash_password(update_data["password"])
        revoke = True

    if update_data.get("role") is not None and update_data["role"].value != user.role:
        user.role = update_data["role"].value
        revoke = True

    if "organization_id" in update_data:
        _check_organization(db, update_data["organization_id"])
        user.organization_id = update_data["organization_id"]

    if update_data.get("is_active") is not None and update_data["is_active"] != user.is_active:
        user.is_active = update_data["is_active"]
        revoke = revoke or not user.is_active

    if revoke:
        user.token_version += 1

    db.commit()
    db.refresh(user)
    return user


def update_profile(db: Session, user: User, data: ProfileUpdate) -> User:
    """Self-service profile update; only explicitly provided fields change."""
    for field, value in data.model_dump(exclude_unset=True).items():
        if value is None and field in ("language", "timezone"):
            continue
        setattr(user, field, value)
    db.commit()
    db.refresh(user)
    return user


def delete_user(db: Session, user: User) -> None:
    """Delete a user; their checksheets and results cascade."""
    logger.info("User deleted", extra={"user_id": str(user.id)})
    db.delete(user)
    db.commit()
