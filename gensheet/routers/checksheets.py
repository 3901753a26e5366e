"""Checksheets router - authoring, lifecycle and checkpoint ordering."""

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
from gensheet.db.enums import ChecksheetStatus
from gensheet.db.models import Checksheet
from gensheet.schemas.auth import UserSession
from gensheet.schemas.checksheet import (
    CheckpointOrderUpdate,
    ChecksheetCreate,
    ChecksheetListResponse,
    ChecksheetRead,
    ChecksheetUpdate,
)
from gensheet.services import checksheet_service
from gensheet.services.checksheet_service import (
    AccessDeniedError,
    CheckpointMismatchError,
    ChecksheetNotFoundError,
    InvalidTransitionError,
    VersionConflictError,
)
from gensheet.utils.pagination import DEFAULT_PER_PAGE, MAX_PER_PAGE, page_count

router = APIRouter()


def load_checksheet(db: Session, session: UserSession, checksheet_id: UUID) -> Checksheet:
    """Fetch a visible checksheet or raise 404/403."""
    try:
        return checksheet_service.get_visible_checksheet(db, session, checksheet_id)
    except ChecksheetNotFoundError:
        raise HTTPException(status_code=404, detail="Checksheet not found")
    except AccessDeniedError:
        raise HTTPException(status_code=403, detail="Not authorized to view this checksheet")


@router.get("", response_model=ChecksheetListResponse)
def list_checksheets(
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
    page: int = Query(1, ge=1),
    per_page: int = Query(DEFAULT_PER_PAGE, ge=1, le=MAX_PER_PAGE),
    q: str | None = Query(None, description="Search in title and description"),
    category: str | None = None,
    status: ChecksheetStatus | None = None,
    is_template: bool | None = None,
):
    """List checksheets created by the caller or shared within their organization."""
    checksheets, total = checksheet_service.list_checksheets(
        db=db,
        session=session,
        page=page,
        per_page=per_page,
        q=q,
        category=category,
        status=status,
        is_template=is_template,
    )
    counts = checksheet_service.get_counts(db, [cs.id for cs in checksheets])

    return ChecksheetListResponse(
        items=[checksheet_service.to_list_item(cs, counts) for cs in checksheets],
        total=total,
        page=page,
        per_page=per_page,
        pages=page_count(total, per_page),
    )


@router.post(
    "",
    response_model=ChecksheetRead,
    status_code=201,
    dependencies=[Depends(require_csrf_header)],
)
def create_checksheet(
    data: ChecksheetCreate,
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    """Create a DRAFT checksheet with its checkpoints (orders 0..N-1)."""
    require_http(session, "checksheet", "create")
    checksheet = checksheet_service.create_checksheet(db, session, data)
    return checksheet_service.to_read(db, checksheet)


@router.get("/{checksheet_id}", response_model=ChecksheetRead)
def get_checksheet(
    checksheet_id: UUID,
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    checksheet = load_checksheet(db, session, checksheet_id)
    return checksheet_service.to_read(db, checksheet)


@router.patch(
    "/{checksheet_id}",
    response_model=ChecksheetRead,
    dependencies=[Depends(require_csrf_header)],
)
def update_checksheet(
    checksheet_id: UUID,
    data: ChecksheetUpdate,
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    """
    Update checksheet fields, status and checkpoints.

    A status change needs owner/admin rights; every other field needs edit
    rights. Send `expected_version` to get 409 instead of overwriting a
    concurrent edit.
    """
    checksheet = load_checksheet(db, session, checksheet_id)

    status_changes = data.status is not None and data.status.value != checksheet.status
    edits_fields = bool(data.model_fields_set - {"status", "expected_version"})
    if status_changes:
        require_http(session, "checksheet", "change_status", checksheet)
    if edits_fields or not status_changes:
        require_http(session, "checksheet", "edit", checksheet)

    try:
        checksheet = checksheet_service.update_checksheet(db, checksheet, data)
    except VersionConflictError as e:
        raise HTTPException(status_code=409, detail=str(e))
    except InvalidTransitionError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except CheckpointMismatchError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return checksheet_service.to_read(db, checksheet)


@router.delete(
    "/{checksheet_id}",
    dependencies=[Depends(require_csrf_header), Depends(require_confirmation)],
)
def delete_checksheet(
    checksheet_id: UUID,
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    """Delete a checksheet with its checkpoints and results. Requires `?confirm=true`."""
    checksheet = load_checksheet(db, session, checksheet_id)
    require_http(session, "checksheet", "delete", checksheet)
    checksheet_service.delete_checksheet(db, checksheet)
    return {"deleted": True, "id": str(checksheet_id)}


@router.post(
    "/{checksheet_id}/duplicate",
    response_model=ChecksheetRead,
    status_code=201,
    dependencies=[Depends(require_csrf_header)],
)
def duplicate_checksheet(
    checksheet_id: UUID,
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    source = load_checksheet(db, session, checksheet_id)
    require_http(session, "checksheet", "duplicate", source)
    copy = checksheet_service.duplicate_checksheet(db, session, source)
    return checksheet_service.to_read(db, copy)


@router.put(
    "/{checksheet_id}/checkpoints/order",
    response_model=ChecksheetRead,
    dependencies=[Depends(require_csrf_header)],
)
def reorder_checkpoints(
    checksheet_id: UUID,
    data: CheckpointOrderUpdate,
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    """Reorder checkpoints; `checkpoint_ids` must be a permutation of the current ids."""
    checksheet = load_checksheet(db, session, checksheet_id)
    require_http(session, "checksheet", "edit", checksheet)
    try:
        checksheet = checksheet_service.reorder_checkpoints(db, checksheet, data.checkpoint_ids)
    except CheckpointMismatchError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return checksheet_service.to_read(db, checksheet)
