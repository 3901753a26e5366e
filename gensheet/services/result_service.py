"""Result service - checksheet executions and their recorded responses."""

import logging
from uuid import UUID

from sqlalchemy.orm import Session, selectinload

from gensheet.core.access import can_view_result, result_scope
from gensheet.db.enums import ChecksheetStatus, ResponseStatus, ResultStatus
from gensheet.db.models import (
    Checkpoint, CheckpointResponse, Checksheet, ChecksheetResult, utcnow,
)
from gensheet.schemas.auth import UserSession
from gensheet.schemas.result import (
    ResponseIn, ResponseRead, ResultCreate, ResultListItem, ResultRead, ResultUpdate,
)
from gensheet.services.checksheet_service import AccessDeniedError
from gensheet.services.response_values import InvalidValueError, coerce_value, missing_required
from gensheet.utils.pagination import page_offset

logger = logging.getLogger(__name__)


class ResultServiceError(Exception):
    """Base exception for result service errors."""

    pass


class ResultNotFoundError(ResultServiceError):
    """Result not found."""

    pass


class ResponseValidationError(ResultServiceError):
    """Submitted responses violate a business rule (400)."""

    pass


class ChecksheetNotExecutableError(ResultServiceError):
    """Archived checksheets cannot be executed."""

    pass


# =============================================================================
# Reads
# =============================================================================

def _result_query(db: Session):
    return db.query(ChecksheetResult).options(
        selectinload(ChecksheetResult.checksheet),
        selectinload(ChecksheetResult.inspector),
        selectinload(ChecksheetResult.responses).selectinload(CheckpointResponse.checkpoint),
    )


def get_result(db: Session, result_id: UUID) -> ChecksheetResult | None:
    return _result_query(db).filter(ChecksheetResult.id == result_id).first()


def get_visible_result(db: Session, session: UserSession, result_id: UUID) -> ChecksheetResult:
    """
    Load a result the caller may see.

    Raises:
        ResultNotFoundError: no such id
        AccessDeniedError: exists but outside the caller's scope
    """
    result = get_result(db, result_id)
    if not result:
        raise ResultNotFoundError(f"Result {result_id} not found")
    if not can_view_result(session, result):
        raise AccessDeniedError("Result is outside your scope")
    return result


def list_results(
    db: Session,
    session: UserSession,
    page: int = 1,
    per_page: int = 20,
    checksheet_id: UUID | None = None,
    status: ResultStatus | None = None,
) -> tuple[list[ChecksheetResult], int]:
    """List results visible to the caller, newest first."""
    query = (
        db.query(ChecksheetResult)
        .join(ChecksheetResult.checksheet)
        .filter(result_scope(session))
    )
    if checksheet_id:
        query = query.filter(ChecksheetResult.checksheet_id == checksheet_id)
    if status:
        query = query.filter(ChecksheetResult.status == status.value)

    total = query.count()
    results = (
        query.options(
            selectinload(ChecksheetResult.checksheet),
            selectinload(ChecksheetResult.inspector),
            selectinload(ChecksheetResult.responses),
        )
        .order_by(ChecksheetResult.created_at.desc())
        .offset(page_offset(page, per_page))
        .limit(per_page)
        .all()
    )
    return results, total


def visible_results(db: Session, session: UserSession) -> list[ChecksheetResult]:
    """Every result in the caller's scope (reports)."""
    return (
        db.query(ChecksheetResult)
        .join(ChecksheetResult.checksheet)
        .filter(result_scope(session))
        .options(selectinload(ChecksheetResult.responses))
        .all()
    )


def to_list_item(result: ChecksheetResult) -> ResultListItem:
    return ResultListItem(
        id=result.id,
        checksheet_id=result.checksheet_id,
        checksheet_title=result.checksheet.title if result.checksheet else None,
        checksheet_category=result.checksheet.category if result.checksheet else None,
        inspector_id=result.inspector_id,
        inspector_name=result.inspector.name if result.inspector else None,
        status=result.status,
        location=result.location,
        response_count=len(result.responses),
        created_at=result.created_at,
        completed_at=result.completed_at,
    )


def to_read(result: ChecksheetResult) -> ResultRead:
    responses = sorted(
        result.responses,
        key=lambda r: r.checkpoint.order if r.checkpoint else 0,
    )
    return ResultRead(
        id=result.id,
        checksheet_id=result.checksheet_id,
        checksheet_title=result.checksheet.title if result.checksheet else None,
        checksheet_category=result.checksheet.category if result.checksheet else None,
        inspector_id=result.inspector_id,
        inspector_name=result.inspector.name if result.inspector else None,
        inspector_email=result.inspector.email if result.inspector else None,
        status=result.status,
        location=result.location,
        gps_lat=result.gps_lat,
        gps_lng=result.gps_lng,
        notes=result.notes,
        responses=[
            ResponseRead(
                id=r.id,
                checkpoint_id=r.checkpoint_id,
                checkpoint_title=r.checkpoint.title if r.checkpoint else None,
                field_type=r.checkpoint.field_type if r.checkpoint else None,
                is_required=r.checkpoint.is_required if r.checkpoint else None,
                value=r.value,
                text_value=r.text_value,
                number_value=r.number_value,
                bool_value=r.bool_value,
                date_value=r.date_value,
                photo_urls=r.photo_urls or [],
                file_urls=r.file_urls or [],
                gps_lat=r.gps_lat,
                gps_lng=r.gps_lng,
                status=r.status,
                notes=r.notes,
                created_at=r.created_at,
            )
            for r in responses
        ],
        created_at=result.created_at,
        updated_at=result.updated_at,
        completed_at=result.completed_at,
    )


# =============================================================================
# Writes
# =============================================================================

def _apply_response(
    response: CheckpointResponse,
    checkpoint: Checkpoint,
    item: ResponseIn,
) -> None:
    try:
        coerced = coerce_value(
            checkpoint.field_type, checkpoint.config, item.value, item.photo_urls, item.file_urls
        )
    except InvalidValueError as e:
        raise ResponseValidationError(f"{checkpoint.title}: {e}") from None

    response.value = item.value
    for column, typed in coerced.as_columns().items():
        setattr(response, column, typed)
    response.photo_urls = coerced.photo_urls
    response.file_urls = coerced.file_urls
    if coerced.gps_lat is None and item.gps_lat is not None:
        response.gps_lat = item.gps_lat
        response.gps_lng = item.gps_lng
    if item.status is not None:
        response.status = item.status.value
    elif response.status is None:
        response.status = ResponseStatus.PENDING.value
    response.notes = item.notes


def _upsert_responses(
    result: ChecksheetResult,
    checkpoints: dict[UUID, Checkpoint],
    items: list[ResponseIn],
) -> None:
    """
    Record responses, one per checkpoint.

    Raises:
        ResponseValidationError: foreign checkpoint, duplicate checkpoint or bad value
    """
    seen: set[UUID] = set()
    existing = {r.checkpoint_id: r for r in result.responses}
    for item in items:
        checkpoint = checkpoints.get(item.checkpoint_id)
        if checkpoint is None:
            raise ResponseValidationError(
                f"Checkpoint {item.checkpoint_id} does not belong to this checksheet"
            )
        if item.checkpoint_id in seen:
            raise ResponseValidationError(f"Duplicate response for checkpoint {checkpoint.title}")
        seen.add(item.checkpoint_id)

        response = existing.get(item.checkpoint_id)
        if response is None:
            response = CheckpointResponse(checkpoint_id=checkpoint.id, status=None)
            result.responses.append(response)
        _apply_response(response, checkpoint, item)


def _require_complete(result: ChecksheetResult, checkpoints: list[Checkpoint]) -> None:
    answers = {r.checkpoint_id: r for r in result.responses}
    missing = missing_required(checkpoints, answers)
    if missing:
        titles = ", ".join(cp.title for cp in missing)
        raise ResponseValidationError(f"Required checkpoints are missing responses: {titles}")


def create_result(
    db: Session,
    session: UserSession,
    checksheet: Checksheet,
    data: ResultCreate,
) -> ChecksheetResult:
    """
    Record an execution of `checksheet` by the caller.

    With status COMPLETED every required checkpoint must be answered and
    completed_at is stamped.

    Raises:
        ChecksheetNotExecutableError: checksheet is archived
        ResponseValidationError: invalid responses
    """
    if checksheet.status == ChecksheetStatus.ARCHIVED.value:
        raise ChecksheetNotExecutableError("Archived checksheets cannot be executed")

    result = ChecksheetResult(
        checksheet_id=checksheet.id,
        inspector_id=session.user_id,
        status=ResultStatus.IN_PROGRESS.value,
        location=data.location,
        gps_lat=data.gps_lat,
        gps_lng=data.gps_lng,
        notes=data.notes,
        responses=[],
    )
    checkpoints = {cp.id: cp for cp in checksheet.checkpoints}
    _upsert_responses(result, checkpoints, data.responses)

    if data.status == ResultStatus.COMPLETED:
        _require_complete(result, checksheet.checkpoints)
        result.status = ResultStatus.COMPLETED.value
        result.completed_at = utcnow()

    db.add(result)
    db.commit()
    logger.info(
        f"Result recorded ({result.status}, {len(data.responses)} responses)",
        extra={"result_id": str(result.id), "checksheet_id": str(checksheet.id)},
    )
    return get_result(db, result.id)


def update_result(db: Session, result: ChecksheetResult, data: ResultUpdate) -> ChecksheetResult:
    """
    Update result fields and upsert responses.

    Raises:
        ResponseValidationError: invalid responses or incomplete on completion
    """
    update_data = data.model_dump(exclude_unset=True, exclude={"responses", "status"})
    for field, value in update_data.items():
        setattr(result, field, value)

    checkpoints = list(result.checksheet.checkpoints)
    if data.responses is not None:
        _upsert_responses(result, {cp.id: cp for cp in checkpoints}, data.responses)

    if data.status is not None:
        if data.status == ResultStatus.COMPLETED:
            _require_complete(result, checkpoints)
            if result.completed_at is None or result.status != ResultStatus.COMPLETED.value:
                result.completed_at = utcnow()
        else:
            result.completed_at = None
        result.status = data.status.value

    db.commit()
    return get_result(db, result.id)


def delete_result(db: Session, result: ChecksheetResult) -> None:
    """Delete a result; responses cascade."""
    db.delete(result)
    db.commit()
