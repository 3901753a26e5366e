"""Templates router - best-practice checksheet catalog."""

from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from gensheet.core.deps import get_current_session, get_db, require_csrf_header
from gensheet.core.permissions import require_http
from gensheet.routers.checksheets import load_checksheet
from gensheet.schemas.auth import UserSession
from gensheet.schemas.checksheet import ChecksheetRead
from gensheet.schemas.template import (
    TemplateCategory,
    TemplateFromChecksheet,
    TemplateListResponse,
    TemplateRead,
)
from gensheet.services import checksheet_service, template_service
from gensheet.utils.pagination import DEFAULT_PER_PAGE, MAX_PER_PAGE, page_count

router = APIRouter()


@router.get("", response_model=TemplateListResponse)
def list_templates(
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
    page: int = Query(1, ge=1),
    per_page: int = Query(DEFAULT_PER_PAGE, ge=1, le=MAX_PER_PAGE),
    q: str | None = Query(None, description="Search in title and description"),
    category: str | None = None,
):
    """List public templates, most used first."""
    templates, total = template_service.list_templates(
        db=db, page=page, per_page=per_page, q=q, category=category
    )
    return TemplateListResponse(
        items=[template_service.to_list_item(t) for t in templates],
        total=total,
        page=page,
        per_page=per_page,
        pages=page_count(total, per_page),
    )


@router.get("/categories", response_model=list[TemplateCategory])
def list_categories(
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    return [
        TemplateCategory(category=category, count=count)
        for category, count in template_service.list_categories(db)
    ]


@router.get("/{template_id}", response_model=TemplateRead)
def get_template(
    template_id: UUID,
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    template = template_service.get_template(db, template_id)
    if not template:
        raise HTTPException(status_code=404, detail="Template not found")
    return template_service.to_read(template)


@router.post(
    "",
    response_model=TemplateRead,
    status_code=201,
    dependencies=[Depends(require_csrf_header)],
)
def publish_template(
    data: TemplateFromChecksheet,
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    """Publish a visible checksheet to the catalog (admins and supervisors)."""
    require_http(session, "template", "publish")
    checksheet = load_checksheet(db, session, data.checksheet_id)
    template = template_service.publish_checksheet(
        db,
        session,
        checksheet,
        title=data.title,
        description=data.description,
        category=data.category,
        is_public=data.is_public,
    )
    return template_service.to_read(template)


@router.post(
    "/{template_id}/clone",
    response_model=ChecksheetRead,
    status_code=201,
    dependencies=[Depends(require_csrf_header)],
)
def clone_template(
    template_id: UUID,
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    """
    Clone a template into a new DRAFT checksheet owned by the caller.

    Increments the template's usage count.
    """
    require_http(session, "template", "clone")
    template = template_service.get_template(db, template_id)
    if not template:
        raise HTTPException(status_code=404, detail="Template not found")
    checksheet = template_service.clone_template(db, session, template)
    return checksheet_service.to_read(db, checksheet)
