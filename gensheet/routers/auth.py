"""Authentication router - email/password login and session management."""

import logging

from fastapi import APIRouter, Depends, HTTPException, Request, Response
from sqlalchemy.orm import Session

from gensheet.core.config import settings
from gensheet.core.deps import COOKIE_NAME, get_current_session, get_db, require_csrf_header
from gensheet.core.rate_limit import limiter, per_minute
from gensheet.core.security import create_session_token
from gensheet.core.structured_logging import build_log_context
from gensheet.db.models import Organization, User
from gensheet.schemas.auth import LoginRequest, MeResponse, ProfileUpdate, UserSession
from gensheet.services import user_service

logger = logging.getLogger(__name__)

router = APIRouter()


def _me_response(db: Session, user: User) -> MeResponse:
    org = db.get(Organization, user.organization_id) if user.organization_id else None
    return MeResponse(
        user_id=user.id,
        email=user.email,
        name=user.name,
        role=user.role,
        org_id=user.organization_id,
        org_name=org.name if org else None,
        phone=user.phone,
        image=user.image,
        language=user.language,
        timezone=user.timezone,
    )


# =============================================================================
# Session Endpoints
# =============================================================================

@router.post("/login")
@limiter.limit(per_minute(settings.RATE_LIMIT_AUTH))
def login(
    request: Request,
    response: Response,
    body: LoginRequest,
    db: Session = Depends(get_db),
) -> MeResponse:
    """
    Sign in with email and password.

    Sets an httpOnly session cookie; the same error is returned for an
    unknown email and a wrong password.
    """
    user = user_service.authenticate(db, body.email, body.password)
    if not user:
        logger.info("Login failed", extra=build_log_context(route="/auth/login", method="POST"))
        raise HTTPException(status_code=401, detail="Invalid email or password")

    token = create_session_token(
        user_id=user.id,
        org_id=user.organization_id,
        role=user.role,
        token_version=user.token_version,
    )
    response.set_cookie(
        key=COOKIE_NAME,
        value=token,
        max_age=settings.JWT_EXPIRES_HOURS * 3600,
        httponly=True,
        samesite="lax",
        secure=settings.cookie_secure,
        path="/",
    )
    logger.info(
        "Login succeeded",
        extra=build_log_context(user_id=user.id, org_id=user.organization_id, route="/auth/login"),
    )
    return _me_response(db, user)


@router.get("/me")
def get_me(
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
) -> MeResponse:
    """
    Get current authenticated user info.

    Used by clients to bootstrap auth state on page load.
    """
    user = db.get(User, session.user_id)
    return _me_response(db, user)


@router.patch("/me", dependencies=[Depends(require_csrf_header)])
def update_me(
    body: ProfileUpdate,
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
) -> MeResponse:
    """
    Update current user's profile.

    Updateable fields: name, phone, image, language, timezone
    """
    user = db.get(User, session.user_id)
    user = user_service.update_profile(db, user, body)
    return _me_response(db, user)


@router.post("/logout", dependencies=[Depends(require_csrf_header)])
def logout(
    response: Response,
    session: UserSession = Depends(get_current_session),
):
    """
    Clear session cookie.

    Requires X-Requested-With header for CSRF protection.
    """
    logger.info("Logout", extra=build_log_context(user_id=session.user_id, route="/auth/logout"))
    response.delete_cookie(COOKIE_NAME, path="/")
    return {"status": "logged_out"}
