"""Checksheet service - authoring, lifecycle and checkpoint ordering."""

import logging
from uuid import UUID

from sqlalchemy import func, or_
from sqlalchemy.orm import Session, selectinload

from gensheet.core.access import can_view_checksheet, checksheet_scope
from gensheet.db.enums import (
    CHECKSHEET_STATUS_TRANSITIONS, DEFAULT_CHECKSHEET_STATUS, ChecksheetStatus,
)
from gensheet.db.models import Checkpoint, Checksheet, ChecksheetResult, utcnow
from gensheet.schemas.auth import UserSession
from gensheet.schemas.checksheet import (
    CheckpointIn, ChecksheetCreate, ChecksheetListItem, ChecksheetRead, ChecksheetUpdate,
)
from gensheet.utils.pagination import page_offset

logger = logging.getLogger(__name__)


class ChecksheetServiceError(Exception):
    """Base exception for checksheet service errors."""

    pass


class ChecksheetNotFoundError(ChecksheetServiceError):
    """Checksheet not found."""

    pass


class AccessDeniedError(ChecksheetServiceError):
    """Record exists but is outside the caller's visibility scope."""

    pass


class InvalidTransitionError(ChecksheetServiceError):
    """Requested status change is not an allowed lifecycle transition."""

    def __init__(self, current: str, target: str):
        self.current = current
        self.target = target
        super().__init__(f"Cannot change status from {current} to {target}")


class CheckpointMismatchError(ChecksheetServiceError):
    """Checkpoint ids do not belong to the checksheet (or are incomplete)."""

    pass


class VersionConflictError(ChecksheetServiceError):
    """Raised when expected_version doesn't match current version."""

    def __init__(self, expected: int, actual: int):
        self.expected = expected
        self.actual = actual
        super().__init__(f"Version conflict: expected {expected}, got {actual}")


def check_version(current_version: int, expected_version: int) -> None:
    """
    Check if expected version matches current.

    Raises:
        VersionConflictError if mismatch
    """
    if current_version != expected_version:
        raise VersionConflictError(expected_version, current_version)


# =============================================================================
# Reads
# =============================================================================

def get_checksheet(db: Session, checksheet_id: UUID) -> Checksheet | None:
    """Load a checksheet with its checkpoints (no access check)."""
    return (
        db.query(Checksheet)
        .options(selectinload(Checksheet.checkpoints), selectinload(Checksheet.creator))
        .filter(Checksheet.id == checksheet_id)
        .first()
    )


def get_visible_checksheet(db: Session, session: UserSession, checksheet_id: UUID) -> Checksheet:
    """
    Load a checksheet the caller may see.

    Raises:
        ChecksheetNotFoundError: no such id
        AccessDeniedError: exists but outside the caller's scope
    """
    checksheet = get_checksheet(db, checksheet_id)
    if not checksheet:
        raise ChecksheetNotFoundError(f"Checksheet {checksheet_id} not found")
    if not can_view_checksheet(session, checksheet):
        raise AccessDeniedError("Checksheet is outside your organization")
    return checksheet


def list_checksheets(
    db: Session,
    session: UserSession,
    page: int = 1,
    per_page: int = 20,
    q: str | None = None,
    category: str | None = None,
    status: ChecksheetStatus | None = None,
    is_template: bool | None = None,
) -> tuple[list[Checksheet], int]:
    """List checksheets visible to the caller, newest first."""
    query = db.query(Checksheet).filter(checksheet_scope(session))

    if q:
        pattern = f"%{q.strip()}%"
        query = query.filter(or_(Checksheet.title.ilike(pattern), Checksheet.description.ilike(pattern)))
    if category:
        query = query.filter(Checksheet.category == category)
    if status:
        query = query.filter(Checksheet.status == status.value)
    if is_template is not None:
        query = query.filter(Checksheet.is_template == is_template)

    total = query.count()
    checksheets = (
        query.options(selectinload(Checksheet.creator))
        .order_by(Checksheet.created_at.desc())
        .offset(page_offset(page, per_page))
        .limit(per_page)
        .all()
    )
    return checksheets, total


def get_counts(db: Session, checksheet_ids: list[UUID]) -> dict[UUID, tuple[int, int]]:
    """Batch (checkpoint_count, result_count) per checksheet id."""
    if not checksheet_ids:
        return {}

    checkpoint_counts = dict(
        db.query(Checkpoint.checksheet_id, func.count(Checkpoint.id))
        .filter(Checkpoint.checksheet_id.in_(checksheet_ids))
        .group_by(Checkpoint.checksheet_id)
        .all()
    )
    result_counts = dict(
        db.query(ChecksheetResult.checksheet_id, func.count(ChecksheetResult.id))
        .filter(ChecksheetResult.checksheet_id.in_(checksheet_ids))
        .group_by(ChecksheetResult.checksheet_id)
        .all()
    )
    return {
        cid: (checkpoint_counts.get(cid, 0), result_counts.get(cid, 0))
        for cid in checksheet_ids
    }


def to_list_item(checksheet: Checksheet, counts: dict[UUID, tuple[int, int]]) -> ChecksheetListItem:
    checkpoint_count, result_count = counts.get(checksheet.id, (0, 0))
    return ChecksheetListItem(
        id=checksheet.id,
        title=checksheet.title,
        description=checksheet.description,
        category=checksheet.category,
        industry=checksheet.industry,
        tags=checksheet.tags or [],
        is_template=checksheet.is_template,
        status=checksheet.status,
        version=checksheet.version,
        creator_id=checksheet.creator_id,
        creator_name=checksheet.creator.name if checksheet.creator else None,
        checkpoint_count=checkpoint_count,
        result_count=result_count,
        created_at=checksheet.created_at,
        updated_at=checksheet.updated_at,
    )


def to_read(db: Session, checksheet: Checksheet) -> ChecksheetRead:
    result_count = (
        db.query(func.count(ChecksheetResult.id))
        .filter(ChecksheetResult.checksheet_id == checksheet.id)
        .scalar()
    ) or 0
    read = ChecksheetRead.model_validate(checksheet)
    return read.model_copy(update={
        "creator_name": checksheet.creator.name if checksheet.creator else None,
        "result_count": result_count,
    })


# =============================================================================
# Writes
# =============================================================================

def _new_checkpoint(item: CheckpointIn, order: int) -> Checkpoint:
    return Checkpoint(
        order=order,
        title=item.title,
        description=item.description,
        field_type=item.field_type.value,
        section=item.section,
        is_required=item.is_required,
        config=item.config,
    )


def create_checksheet(db: Session, session: UserSession, data: ChecksheetCreate) -> Checksheet:
    """Create a DRAFT checksheet owned by the caller, in the caller's organization."""
    checksheet = Checksheet(
        title=data.title,
        description=data.description,
        category=data.category,
        industry=data.industry,
        tags=data.tags,
        is_template=data.is_template,
        status=DEFAULT_CHECKSHEET_STATUS.value,
        creator_id=session.user_id,
        organization_id=session.org_id,
        checkpoints=[_new_checkpoint(item, order) for order, item in enumerate(data.checkpoints)],
    )
    db.add(checksheet)
    db.commit()
    db.refresh(checksheet)
    logger.info(
        f"Checksheet created with {len(data.checkpoints)} checkpoints",
        extra={"checksheet_id": str(checksheet.id), "user_id": str(session.user_id)},
    )
    return checksheet


def _park_orders(db: Session, checkpoints: list[Checkpoint]) -> None:
    """Move checkpoints to negative orders so final orders can be assigned without collisions."""
    for index, checkpoint in enumerate(checkpoints):
        checkpoint.order = -(index + 1)
    db.flush()


def _sync_checkpoints(db: Session, checksheet: Checksheet, items: list[CheckpointIn]) -> None:
    """
    Replace the checkpoint list.

    Known ids are updated in place (their responses survive), new entries
    are inserted, and checkpoints missing from `items` are deleted along
    with their responses. Orders end up exactly 0..N-1.
    """
    existing = {cp.id: cp for cp in checksheet.checkpoints}
    unknown = [item.id for item in items if item.id is not None and item.id not in existing]
    if unknown:
        raise CheckpointMismatchError("Checkpoint does not belong to this checksheet")

    keep_ids = {item.id for item in items if item.id is not None}
    kept = [cp for cp in checksheet.checkpoints if cp.id in keep_ids]
    checksheet.checkpoints = kept
    _park_orders(db, kept)

    final: list[Checkpoint] = []
    for order, item in enumerate(items):
        if item.id is None:
            final.append(_new_checkpoint(item, order))
            continue
        checkpoint = existing[item.id]
        checkpoint.order = order
        checkpoint.title = item.title
        checkpoint.description = item.description
        checkpoint.field_type = item.field_type.value
        checkpoint.section = item.section
        checkpoint.is_required = item.is_required
        checkpoint.config = item.config
        final.append(checkpoint)

    checksheet.checkpoints = final
    db.flush()


def change_status(checksheet: Checksheet, target: ChecksheetStatus) -> None:
    """
    Apply a lifecycle transition.

    Raises:
        InvalidTransitionError: target not reachable from the current status
    """
    current = ChecksheetStatus(checksheet.status)
    if target == current:
        return
    if target not in CHECKSHEET_STATUS_TRANSITIONS.get(current, set()):
        raise InvalidTransitionError(current.value, target.value)
    checksheet.status = target.value


def update_checksheet(db: Session, checksheet: Checksheet, data: ChecksheetUpdate) -> Checksheet:
    """
    Update checksheet fields, status and (optionally) the full checkpoint list.

    Uses exclude_unset=True so only explicitly provided fields are updated.
    Bumps `version` on every successful update.

    Raises:
        VersionConflictError: expected_version given and stale
        InvalidTransitionError: disallowed status change
        CheckpointMismatchError: checkpoint id from another checksheet
    """
    if data.expected_version is not None:
        check_version(checksheet.version, data.expected_version)

    update_data = data.model_dump(exclude_unset=True, exclude={"checkpoints", "expected_version", "status"})

    # Fields that can be cleared (set to None)
    clearable_fields = {"description", "category", "industry"}

    for field, value in update_data.items():
        if value is None and field not in clearable_fields:
            continue
        setattr(checksheet, field, value)

    if data.status is not None:
        change_status(checksheet, data.status)

    if data.checkpoints is not None:
        _sync_checkpoints(db, checksheet, data.checkpoints)

    checksheet.version += 1
    checksheet.updated_at = utcnow()
    db.commit()
    db.refresh(checksheet)
    return checksheet


def reorder_checkpoints(db: Session, checksheet: Checksheet, checkpoint_ids: list[UUID]) -> Checksheet:
    """
    Reorder checkpoints to match `checkpoint_ids` (a permutation of the current ids).

    Raises:
        CheckpointMismatchError: ids are not exactly the checksheet's checkpoints
    """
    by_id = {cp.id: cp for cp in checksheet.checkpoints}
    if set(checkpoint_ids) != set(by_id) or len(checkpoint_ids) != len(by_id):
        raise CheckpointMismatchError("checkpoint_ids must list every checkpoint of this checksheet exactly once")

    _park_orders(db, list(checksheet.checkpoints))
    ordered = [by_id[cid] for cid in checkpoint_ids]
    for order, checkpoint in enumerate(ordered):
        checkpoint.order = order
    checksheet.checkpoints = ordered

    checksheet.version += 1
    checksheet.updated_at = utcnow()
    db.commit()
    db.refresh(checksheet)
    return checksheet


def duplicate_checksheet(db: Session, session: UserSession, source: Checksheet) -> Checksheet:
    """Copy a checksheet and its checkpoints into a new DRAFT owned by the caller."""
    copy = Checksheet(
        title=f"{source.title} (Copy)",
        description=source.description,
        category=source.category,
        industry=source.industry,
        tags=list(source.tags or []),
        is_template=False,
        status=DEFAULT_CHECKSHEET_STATUS.value,
        creator_id=session.user_id,
        organization_id=session.org_id,
        checkpoints=[
            Checkpoint(
                order=order,
                title=cp.title,
                description=cp.description,
                field_type=cp.field_type,
                section=cp.section,
                is_required=cp.is_required,
                config=dict(cp.config or {}),
            )
            for order, cp in enumerate(source.checkpoints)
        ],
    )
    db.add(copy)
    db.commit()
    db.refresh(copy)
    return copy


def delete_checksheet(db: Session, checksheet: Checksheet) -> None:
    """Delete a checksheet; checkpoints, results and responses cascade."""
    logger.info("Checksheet deleted", extra={"checksheet_id": str(checksheet.id)})
    db.delete(checksheet)
    db.commit()
