"""Global search across checksheets, templates and results."""

from sqlalchemy import or_
from sqlalchemy.orm import Session, selectinload

from gensheet.core.access import checksheet_scope, result_scope
from gensheet.db.models import BestPracticeTemplate, Checksheet, ChecksheetResult
from gensheet.schemas.auth import UserSession


MIN_QUERY_LENGTH = 2
RESULTS_PER_KIND = 5


def search(db: Session, session: UserSession, q: str | None) -> dict[str, list]:
    """
    Case-insensitive title/description search.

    Queries shorter than two characters return empty lists. Each kind is
    capped at five hits and limited to what the caller may see; results
    match through their checksheet.
    """
    empty: dict[str, list] = {"checksheets": [], "templates": [], "results": []}
    q = (q or "").strip()
    if len(q) < MIN_QUERY_LENGTH:
        return empty

    pattern = f"%{q}%"

    checksheets = (
        db.query(Checksheet)
        .filter(checksheet_scope(session))
        .filter(or_(Checksheet.title.ilike(pattern), Checksheet.description.ilike(pattern)))
        .order_by(Checksheet.updated_at.desc())
        .limit(RESULTS_PER_KIND)
        .all()
    )

    templates = (
        db.query(BestPracticeTemplate)
        .filter(BestPracticeTemplate.is_public.is_(True))
        .filter(
            or_(
                BestPracticeTemplate.title.ilike(pattern),
                BestPracticeTemplate.description.ilike(pattern),
            )
        )
        .order_by(BestPracticeTemplate.usage_count.desc())
        .limit(RESULTS_PER_KIND)
        .all()
    )

    results = (
        db.query(ChecksheetResult)
        .join(ChecksheetResult.checksheet)
        .filter(result_scope(session))
        .filter(or_(Checksheet.title.ilike(pattern), Checksheet.description.ilike(pattern)))
        .options(selectinload(ChecksheetResult.checksheet), selectinload(ChecksheetResult.inspector))
        .order_by(ChecksheetResult.created_at.desc())
        .limit(RESULTS_PER_KIND)
        .all()
    )

    return {
        "checksheets": [
            {
                "id": cs.id,
                "title": cs.title,
                "description": cs.description,
                "category": cs.category,
                "status": cs.status,
                "created_at": cs.created_at,
            }
            for cs in checksheets
        ],
        "templates": [
            {
                "id": t.id,
                "title": t.title,
                "description": t.description,
                "category": t.category,
                "usage_count": t.usage_count,
            }
            for t in templates
        ],
        "results": [
            {
                "id": r.id,
                "checksheet_id": r.checksheet_id,
                "checksheet_title": r.checksheet.title,
                "inspector_name": r.inspector.name if r.inspector else None,
                "status": r.status,
                "created_at": r.created_at,
            }
            for r in results
        ],
    }
