"""Template service for the best-practice checksheet catalog."""

import logging
from typing import Any
from uuid import UUID

from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from gensheet.db.enums import DEFAULT_CHECKSHEET_STATUS, DEFAULT_SECTION, FieldType
from gensheet.db.models import BestPracticeTemplate, Checkpoint, Checksheet
from gensheet.schemas.auth import UserSession
from gensheet.schemas.checkpoint_config import normalize_config
from gensheet.schemas.template import TemplateListItem, TemplateRead
from gensheet.utils.pagination import page_offset

logger = logging.getLogger(__name__)


def list_templates(
    db: Session,
    page: int = 1,
    per_page: int = 20,
    q: str | None = None,
    category: str | None = None,
) -> tuple[list[BestPracticeTemplate], int]:
    """List public templates, most used first."""
    query = db.query(BestPracticeTemplate).filter(BestPracticeTemplate.is_public.is_(True))

    if q:
        pattern = f"%{q.strip()}%"
        query = query.filter(
            or_(
                BestPracticeTemplate.title.ilike(pattern),
                BestPracticeTemplate.description.ilike(pattern),
            )
        )
    if category:
        query = query.filter(BestPracticeTemplate.category == category)

    total = query.count()
    templates = (
        query.order_by(BestPracticeTemplate.usage_count.desc(), BestPracticeTemplate.title)
        .offset(page_offset(page, per_page))
        .limit(per_page)
        .all()
    )
    return templates, total


def list_categories(db: Session) -> list[tuple[str, int]]:
    """Public template categories with their template counts."""
    rows = (
        db.query(BestPracticeTemplate.category, func.count(BestPracticeTemplate.id))
        .filter(BestPracticeTemplate.is_public.is_(True))
        .group_by(BestPracticeTemplate.category)
        .order_by(BestPracticeTemplate.category)
        .all()
    )
    return [(category, count) for category, count in rows]


def get_template(db: Session, template_id: UUID) -> BestPracticeTemplate | None:
    """Get a public template by ID."""
    return (
        db.query(BestPracticeTemplate)
        .filter(BestPracticeTemplate.id == template_id, BestPracticeTemplate.is_public.is_(True))
        .first()
    )


def template_checkpoints(template: BestPracticeTemplate) -> list[dict[str, Any]]:
    data = template.template_data or {}
    checkpoints = data.get("checkpoints") if isinstance(data, dict) else None
    return [cp for cp in (checkpoints or []) if isinstance(cp, dict)]


def to_list_item(template: BestPracticeTemplate) -> TemplateListItem:
    return TemplateListItem(
        id=template.id,
        title=template.title,
        description=template.description,
        category=template.category,
        industry=template.industry,
        usage_count=template.usage_count,
        checkpoint_count=len(template_checkpoints(template)),
        created_at=template.created_at,
    )


def to_read(template: BestPracticeTemplate) -> TemplateRead:
    read = TemplateRead.model_validate(template)
    return read.model_copy(update={
        "created_by_name": template.created_by.name if template.created_by else None,
    })


# =============================================================================
# Clone / Publish
# =============================================================================

def _first(raw: dict[str, Any], *keys: str, default: Any = None) -> Any:
    for key in keys:
        value = raw.get(key)
        if value is not None:
            return value
    return default


def checkpoint_from_template(raw: dict[str, Any], order: int) -> Checkpoint:
    """
    Build a checkpoint from a loosely shaped template entry.

    Accepts `title|question`, `fieldType|field_type|type`,
    `isRequired|is_required|required`. Unknown field types become TEXT;
    a config that does not fit its field type is dropped and the
    checkpoint falls back to TEXT.
    """
    field_type = str(_first(raw, "fieldType", "field_type", "type", default=FieldType.TEXT.value)).upper()
    if not FieldType.has_value(field_type):
        field_type = FieldType.TEXT.value

    raw_config = raw.get("config") if isinstance(raw.get("config"), dict) else {}
    try:
        config = normalize_config(field_type, raw_config)
    except ValueError as e:
        logger.warning(f"Template checkpoint config dropped: {e}")
        field_type = FieldType.TEXT.value
        config = {}

    return Checkpoint(
        order=order,
        title=str(_first(raw, "title", "question", default="")) or f"Checkpoint {order + 1}",
        description=_first(raw, "description", default=None),
        field_type=field_type,
        section=_first(raw, "section", default=None) or DEFAULT_SECTION,
        is_required=bool(_first(raw, "isRequired", "is_required", "required", default=False)),
        config=config,
    )


def clone_template(db: Session, session: UserSession, template: BestPracticeTemplate) -> Checksheet:
    """
    Create a DRAFT checksheet from a template and bump the template's usage.

    The new checksheet is owned by the caller, lives in the caller's
    organization, and has exactly one checkpoint per template entry.
    """
    entries = template_checkpoints(template)
    checksheet = Checksheet(
        title=f"{template.title} (Copy)",
        description=template.description or "",
        category=template.category,
        industry=template.industry,
        tags=[],
        is_template=False,
        status=DEFAULT_CHECKSHEET_STATUS.value,
        creator_id=session.user_id,
        organization_id=session.org_id,
        checkpoints=[checkpoint_from_template(raw, order) for order, raw in enumerate(entries)],
    )
    db.add(checksheet)

    # Atomic increment (no read-modify-write race)
    db.query(BestPracticeTemplate).filter(BestPracticeTemplate.id == template.id).update(
        {BestPracticeTemplate.usage_count: BestPracticeTemplate.usage_count + 1},
        synchronize_session=False,
    )
    db.commit()
    db.refresh(checksheet)
    logger.info(
        f"Template cloned into checksheet with {len(entries)} checkpoints",
        extra={"checksheet_id": str(checksheet.id), "user_id": str(session.user_id)},
    )
    return checksheet


def publish_checksheet(
    db: Session,
    session: UserSession,
    checksheet: Checksheet,
    title: str | None = None,
    description: str | None = None,
    category: str | None = None,
    is_public: bool = True,
) -> BestPracticeTemplate:
    """Snapshot a checksheet's checkpoints into a catalog template."""
    template = BestPracticeTemplate(
        title=title or checksheet.title,
        description=description if description is not None else checksheet.description,
        category=category or checksheet.category or "general",
        industry=checksheet.industry,
        template_data={
            "checkpoints": [
                {
                    "title": cp.title,
                    "description": cp.description,
                    "fieldType": cp.field_type,
                    "section": cp.section,
                    "isRequired": cp.is_required,
                    "config": cp.config or {},
                }
                for cp in checksheet.checkpoints
            ]
        },
        is_public=is_public,
        created_by_user_id=session.user_id,
    )
    db.add(template)
    db.commit()
    db.refresh(template)
    return template
