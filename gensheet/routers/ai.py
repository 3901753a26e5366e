"""AI router - checksheet generation and improvement suggestions."""

import logging

from fastapi import APIRouter, Depends, HTTPException, Request
from sqlalchemy.orm import Session

from gensheet.core.config import settings
from gensheet.core.deps import get_current_session, get_db, require_csrf_header
from gensheet.core.permissions import require_http
from gensheet.core.rate_limit import limiter, per_minute
from gensheet.core.structured_logging import build_log_context
from gensheet.routers.checksheets import load_checksheet
from gensheet.schemas.ai import (
    GenerateRequest,
    GenerateResponse,
    SuggestionsRequest,
    SuggestionsResponse,
)
from gensheet.schemas.auth import UserSession
from gensheet.services import ai_checksheet_service, checksheet_service
from gensheet.services.ai_checksheet_service import AIGenerationError

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post(
    "/generate",
    response_model=GenerateResponse,
    dependencies=[Depends(require_csrf_header)],
)
@limiter.limit(per_minute(settings.RATE_LIMIT_AI))
async def generate(
    request: Request,  # Required by limiter
    body: GenerateRequest,
    session: UserSession = Depends(get_current_session),
):
    """
    Generate a checksheet structure from a natural-language request.

    Nothing is saved; the client reviews the draft and creates it through
    POST /checksheets.
    """
    require_http(session, "ai", "generate")
    try:
        data = await ai_checksheet_service.generate_checksheet(body.prompt, body.category)
    except AIGenerationError as e:
        logger.warning(
            f"AI generation failed ({type(e).__name__})",
            extra=build_log_context(user_id=session.user_id, route="/ai/generate", method="POST"),
        )
        raise HTTPException(status_code=e.status_code, detail=e.message)
    return GenerateResponse(success=True, data=data)


@router.post(
    "/suggestions",
    response_model=SuggestionsResponse,
    dependencies=[Depends(require_csrf_header)],
)
@limiter.limit(per_minute(settings.RATE_LIMIT_AI))
async def suggestions(
    request: Request,  # Required by limiter
    body: SuggestionsRequest,
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    """Suggest improvements for a saved checksheet (by id) or an unsaved draft."""
    require_http(session, "ai", "generate")

    if body.checksheet_id is not None:
        checksheet = load_checksheet(db, session, body.checksheet_id)
        payload = checksheet_service.to_read(db, checksheet).model_dump(
            mode="json",
            include={"title", "description", "category", "industry", "checkpoints"},
        )
    elif body.checksheet:
        payload = body.checksheet
    else:
        raise HTTPException(status_code=400, detail="checksheet_id or checksheet is required")

    try:
        items = await ai_checksheet_service.suggest_improvements(payload)
    except AIGenerationError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    return SuggestionsResponse(success=True, suggestions=items)
