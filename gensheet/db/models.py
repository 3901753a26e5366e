"""SQLAlchemy ORM models for tenants, users, checksheets and their executions."""

import uuid
from datetime import datetime, timezone

from sqlalchemy import (
    JSON, Boolean, Float, ForeignKey, Index, Integer, String, Text, UniqueConstraint, Uuid,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from gensheet.db.base import Base
from gensheet.db.enums import (
    DEFAULT_CHECKSHEET_STATUS, DEFAULT_RESPONSE_STATUS, DEFAULT_RESULT_STATUS,
    DEFAULT_SECTION, FieldType, Role,
)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


# =============================================================================
# Auth & Tenant Models
# =============================================================================

class Organization(Base):
    """
    A tenant in the multi-tenant system.

    Checksheets belong to an organization and are shared with its members.
    """
    __tablename__ = "organizations"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    slug: Mapped[str] = mapped_column(String(100), unique=True, nullable=False)
    created_at: Mapped[datetime] = mapped_column(default=utcnow, nullable=False)

    members: Mapped[list["User"]] = relationship(back_populates="organization")


class User(Base):
    """
    A person who signs in with email and password.

    `token_version` is bumped to revoke every outstanding session.
    """
    __tablename__ = "users"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    name: Mapped[str | None] = mapped_column(String(255))
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    role: Mapped[str] = mapped_column(String(20), default=Role.INSPECTOR.value, nullable=False)
    organization_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("organizations.id", ondelete="SET NULL"), nullable=True
    )
    phone: Mapped[str | None] = mapped_column(String(50))
    image: Mapped[str | None] = mapped_column(String(1024))
    language: Mapped[str] = mapped_column(String(10), default="en", nullable=False)
    timezone: Mapped[str] = mapped_column(String(50), default="UTC", nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    token_version: Mapped[int] = mapped_column(Integer, default=1, nullable=False)
    created_at: Mapped[datetime] = mapped_column(default=utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(default=utcnow, onupdate=utcnow, nullable=False)

    organization: Mapped["Organization | None"] = relationship(back_populates="members")


# =============================================================================
# Checksheets
# =============================================================================

class Checksheet(Base):
    """
    A reusable inspection form made of ordered checkpoints.

    Lifecycle: DRAFT -> ACTIVE <-> ARCHIVED. `version` is bumped on every update.
    """
    __tablename__ = "checksheets"
    __table_args__ = (
        Index("idx_checksheets_org", "organization_id"),
        Index("idx_checksheets_creator", "creator_id"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text)
    category: Mapped[str | None] = mapped_column(String(100))
    industry: Mapped[str | None] = mapped_column(String(100))
    tags: Mapped[list] = mapped_column(JSON, default=list, nullable=False)
    is_template: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    status: Mapped[str] = mapped_column(
        String(20), default=DEFAULT_CHECKSHEET_STATUS.value, nullable=False
    )
    version: Mapped[int] = mapped_column(Integer, default=1, nullable=False)
    creator_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    organization_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("organizations.id", ondelete="SET NULL"), nullable=True
    )
    created_at: Mapped[datetime] = mapped_column(default=utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(default=utcnow, nullable=False)

    creator: Mapped["User"] = relationship()
    checkpoints: Mapped[list["Checkpoint"]] = relationship(
        back_populates="checksheet",
        cascade="all, delete-orphan",
        order_by="Checkpoint.order",
    )
    results: Mapped[list["ChecksheetResult"]] = relationship(
        back_populates="checksheet",
        cascade="all, delete-orphan",
    )


class Checkpoint(Base):
    """One typed question within a checksheet; `order` is 0..N-1 per checksheet."""
    __tablename__ = "checkpoints"
    __table_args__ = (
        UniqueConstraint("checksheet_id", "order", name="uq_checkpoints_checksheet_order"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    checksheet_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("checksheets.id", ondelete="CASCADE"), nullable=False
    )
    order: Mapped[int] = mapped_column(Integer, nullable=False)
    title: Mapped[str] = mapped_column(String(500), nullable=False)
    description: Mapped[str | None] = mapped_column(Text)
    field_type: Mapped[str] = mapped_column(String(20), default=FieldType.TEXT.value, nullable=False)
    section: Mapped[str] = mapped_column(String(255), default=DEFAULT_SECTION, nullable=False)
    is_required: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    config: Mapped[dict] = mapped_column(JSON, default=dict, nullable=False)

    checksheet: Mapped["Checksheet"] = relationship(back_populates="checkpoints")
    responses: Mapped[list["CheckpointResponse"]] = relationship(
        back_populates="checkpoint",
        cascade="all, delete-orphan",
    )


# =============================================================================
# Executions
# =============================================================================

class ChecksheetResult(Base):
    """One run-through of a checksheet by an inspector."""
    __tablename__ = "checksheet_results"
    __table_args__ = (
        Index("idx_results_checksheet", "checksheet_id"),
        Index("idx_results_inspector", "inspector_id"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    checksheet_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("checksheets.id", ondelete="CASCADE"), nullable=False
    )
    inspector_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    status: Mapped[str] = mapped_column(
        String(20), default=DEFAULT_RESULT_STATUS.value, nullable=False
    )
    location: Mapped[str | None] = mapped_column(String(500))
    gps_lat: Mapped[float | None] = mapped_column(Float)
    gps_lng: Mapped[float | None] = mapped_column(Float)
    notes: Mapped[str | None] = mapped_column(Text)
    created_at: Mapped[datetime] = mapped_column(default=utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(default=utcnow, onupdate=utcnow, nullable=False)
    completed_at: Mapped[datetime | None] = mapped_column(nullable=True)

    checksheet: Mapped["Checksheet"] = relationship(back_populates="results")
    inspector: Mapped["User"] = relationship()
    responses: Mapped[list["CheckpointResponse"]] = relationship(
        back_populates="result",
        cascade="all, delete-orphan",
    )


class CheckpointResponse(Base):
    """
    The recorded answer to one checkpoint within a result.

    `value` keeps the raw recorded string; the typed columns hold the
    same answer coerced according to the checkpoint's field type.
    """
    __tablename__ = "checkpoint_responses"
    __table_args__ = (
        UniqueConstraint("result_id", "checkpoint_id", name="uq_responses_result_checkpoint"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    result_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("checksheet_results.id", ondelete="CASCADE"), nullable=False
    )
    checkpoint_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("checkpoints.id", ondelete="CASCADE"), nullable=False
    )
    value: Mapped[str | None] = mapped_column(Text)
    text_value: Mapped[str | None] = mapped_column(Text)
    number_value: Mapped[float | None] = mapped_column(Float)
    bool_value: Mapped[bool | None] = mapped_column(Boolean)
    date_value: Mapped[datetime | None] = mapped_column(nullable=True)
    photo_urls: Mapped[list] = mapped_column(JSON, default=list, nullable=False)
    file_urls: Mapped[list] = mapped_column(JSON, default=list, nullable=False)
    gps_lat: Mapped[float | None] = mapped_column(Float)
    gps_lng: Mapped[float | None] = mapped_column(Float)
    status: Mapped[str] = mapped_column(
        String(20), default=DEFAULT_RESPONSE_STATUS.value, nullable=False
    )
    notes: Mapped[str | None] = mapped_column(Text)
    created_at: Mapped[datetime] = mapped_column(default=utcnow, nullable=False)

    result: Mapped["ChecksheetResult"] = relationship(back_populates="responses")
    checkpoint: Mapped["Checkpoint"] = relationship(back_populates="responses")


# =============================================================================
# Template Catalog
# =============================================================================

class BestPracticeTemplate(Base):
    """
    Public catalog entry that can be cloned into a new checksheet.

    `template_data` holds `{"checkpoints": [...]}` in the loose shape
    produced by seeds and the AI generator.
    """
    __tablename__ = "best_practice_templates"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text)
    category: Mapped[str] = mapped_column(String(100), default="general", nullable=False)
    industry: Mapped[str | None] = mapped_column(String(100))
    template_data: Mapped[dict] = mapped_column(JSON, default=dict, nullable=False)
    is_public: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    usage_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    created_by_user_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    created_at: Mapped[datetime] = mapped_column(default=utcnow, nullable=False)

    created_by: Mapped["User | None"] = relationship()
