"""Search router - global search endpoint."""

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.orm import Session

from gensheet.core.config import settings
from gensheet.core.deps import get_current_session, get_db
from gensheet.core.rate_limit import limiter, per_minute
from gensheet.schemas.auth import UserSession
from gensheet.schemas.search import SearchResponse
from gensheet.services import search_service

router = APIRouter()


@router.get("", response_model=SearchResponse)
@limiter.limit(per_minute(settings.RATE_LIMIT_SEARCH))
def global_search(
    request: Request,  # Required for slowapi rate limiter
    q: str | None = Query(None, max_length=200, description="Search query"),
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    """
    Search checksheets, public templates and results by title/description.

    Results are limited to what the caller may see, five per kind.
    Queries shorter than two characters return empty lists.
    """
    return search_service.search(db, session, q)
