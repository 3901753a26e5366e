"""Results router - checksheet executions and their responses."""

import logging
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from gensheet.core.deps import get_current_session, get_db, require_csrf_header
from gensheet.core.permissions import require_http
from gensheet.core.structured_logging import build_log_context
from gensheet.db.enums import ResultStatus
from gensheet.db.models import ChecksheetResult
from gensheet.routers.checksheets import load_checksheet
from gensheet.schemas.auth import UserSession
from gensheet.schemas.result import ResultCreate, ResultListResponse, ResultRead, ResultUpdate
from gensheet.services import result_service
from gensheet.services.checksheet_service import AccessDeniedError
from gensheet.services.result_service import (
    ChecksheetNotExecutableError,
    ResponseValidationError,
    ResultNotFoundError,
)
from gensheet.utils.pagination import DEFAULT_PER_PAGE, MAX_PER_PAGE, page_count

logger = logging.getLogger(__name__)

router = APIRouter()


def _load_result(db: Session, session: UserSession, result_id: UUID) -> ChecksheetResult:
    try:
        return result_service.get_visible_result(db, session, result_id)
    except ResultNotFoundError:
        raise HTTPException(status_code=404, detail="Result not found")
    except AccessDeniedError:
        raise HTTPException(status_code=403, detail="Not authorized to view this result")


@router.get("", response_model=ResultListResponse)
def list_results(
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
    page: int = Query(1, ge=1),
    per_page: int = Query(DEFAULT_PER_PAGE, ge=1, le=MAX_PER_PAGE),
    checksheet_id: UUID | None = None,
    status: ResultStatus | None = None,
):
    """
    List results.

    Inspectors see their own executions; supervisors and viewers also see
    executions of their organization's checksheets.
    """
    results, total = result_service.list_results(
        db=db,
        session=session,
        page=page,
        per_page=per_page,
        checksheet_id=checksheet_id,
        status=status,
    )
    return ResultListResponse(
        items=[result_service.to_list_item(r) for r in results],
        total=total,
        page=page,
        per_page=per_page,
        pages=page_count(total, per_page),
    )


@router.post(
    "",
    response_model=ResultRead,
    status_code=201,
    dependencies=[Depends(require_csrf_header)],
)
def create_result(
    data: ResultCreate,
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    """
    Record an execution.

    With `status=COMPLETED` every required checkpoint must have a value.
    """
    checksheet = load_checksheet(db, session, data.checksheet_id)
    require_http(session, "checksheet", "execute", checksheet)

    try:
        result = result_service.create_result(db, session, checksheet, data)
    except ChecksheetNotExecutableError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except ResponseValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))

    logger.info(
        "Result submitted",
        extra=build_log_context(
            user_id=session.user_id,
            org_id=session.org_id,
            route="/results",
            method="POST",
            checksheet_id=checksheet.id,
            result_id=result.id,
        ),
    )
    return result_service.to_read(result)


@router.get("/{result_id}", response_model=ResultRead)
def get_result(
    result_id: UUID,
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    result = _load_result(db, session, result_id)
    return result_service.to_read(result)


@router.patch(
    "/{result_id}",
    response_model=ResultRead,
    dependencies=[Depends(require_csrf_header)],
)
def update_result(
    result_id: UUID,
    data: ResultUpdate,
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    """Update a result; responses are upserted per checkpoint."""
    result = _load_result(db, session, result_id)
    require_http(session, "result", "edit", result)

    try:
        result = result_service.update_result(db, result, data)
    except ResponseValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return result_service.to_read(result)


@router.delete("/{result_id}", dependencies=[Depends(require_csrf_header)])
def delete_result(
    result_id: UUID,
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    result = _load_result(db, session, result_id)
    require_http(session, "result", "delete", result)
    result_service.delete_result(db, result)
    return {"deleted": True, "id": str(result_id)}
