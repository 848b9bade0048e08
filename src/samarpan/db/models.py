"""ORM models for the volunteering marketplace schema.

Column types are kept portable (string UUIDs, generic JSON with a JSONB
variant, non-native-safe enums) so the same metadata runs on PostgreSQL in
production and SQLite in the test-suite.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import Any

from sqlalchemy import (
    JSON,
    Boolean,
    DateTime,
    Enum,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column, relationship

from samarpan.db.base import Base
from samarpan.db.enums import (
    ApplicationStatus,
    BadgeType,
    Duration,
    OpportunityStatus,
    OpportunityType,
    UserRole,
    Visibility,
)


def _uuid() -> str:
    return str(uuid.uuid4())


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _enum(enum_cls: type, name: str) -> Enum:
    """Store enum *values* (e.g. ``1-3days``), not member names."""
    return Enum(
        enum_cls,
        name=name,
        values_callable=lambda members: [m.value for m in members],
        validate_strings=True,
    )


_JSONBlob = JSON().with_variant(JSONB(), "postgresql")


# ---------------------------------------------------------------------------
# Sessions
# ---------------------------------------------------------------------------


class Session(Base):
    """Server-side session store. ``sess`` is an opaque JSON blob."""

    __tablename__ = "sessions"
    __table_args__ = (Index("IDX_session_expire", "expire"),)

    sid: Mapped[str] = mapped_column(String(128), primary_key=True)
    sess: Mapped[dict[str, Any]] = mapped_column(_JSONBlob, nullable=False)
    expire: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    user_id: Mapped[str | None] = mapped_column(String(36), nullable=True, index=True)


# ---------------------------------------------------------------------------
# Users
# ---------------------------------------------------------------------------


class User(Base):
    """Institutional account (student or admin)."""

    __tablename__ = "users"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    email: Mapped[str] = mapped_column(String(320), unique=True, nullable=False)
    password_hash: Mapped[str | None] = mapped_column("password", String(256), nullable=True)
    first_name: Mapped[str | None] = mapped_column(String(100), nullable=True)
    last_name: Mapped[str | None] = mapped_column(String(100), nullable=True)
    profile_image_url: Mapped[str | None] = mapped_column(String(512), nullable=True)
    role: Mapped[UserRole] = mapped_column(_enum(UserRole, "user_role"), default=UserRole.STUDENT, nullable=False)
    program: Mapped[str | None] = mapped_column(String(64), nullable=True)
    coins: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    anonymize_leaderboard: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, onupdate=_utcnow, nullable=False
    )

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN


# ---------------------------------------------------------------------------
# Opportunities
# ---------------------------------------------------------------------------


class Opportunity(Base):
    """A volunteering listing created by an admin."""

    __tablename__ = "opportunities"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    short_description: Mapped[str] = mapped_column(String(160), nullable=False)
    full_description: Mapped[str] = mapped_column(Text, nullable=False)
    type: Mapped[OpportunityType] = mapped_column(_enum(OpportunityType, "opportunity_type"), nullable=False)
    duration: Mapped[Duration] = mapped_column(_enum(Duration, "duration"), nullable=False)
    custom_duration: Mapped[str | None] = mapped_column(String(100), nullable=True)
    location: Mapped[str | None] = mapped_column(String(200), nullable=True)
    schedule: Mapped[str | None] = mapped_column(String(200), nullable=True)
    capacity: Mapped[int | None] = mapped_column(Integer, nullable=True)
    total_required_hours: Mapped[int | None] = mapped_column(Integer, nullable=True)
    status: Mapped[OpportunityStatus] = mapped_column(
        _enum(OpportunityStatus, "opportunity_status"), default=OpportunityStatus.OPEN, nullable=False
    )
    coins_per_hour: Mapped[int] = mapped_column(Integer, default=10, nullable=False)
    max_coins: Mapped[int] = mapped_column(Integer, default=100, nullable=False)
    visibility: Mapped[Visibility] = mapped_column(
        _enum(Visibility, "visibility"), default=Visibility.PUBLIC, nullable=False
    )
    contact_email: Mapped[str | None] = mapped_column(String(320), nullable=True)
    contact_phone: Mapped[str | None] = mapped_column(String(32), nullable=True)
    image_url: Mapped[str | None] = mapped_column(String(512), nullable=True)
    created_by: Mapped[str] = mapped_column(String(36), ForeignKey("users.id"), nullable=False, index=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, onupdate=_utcnow, nullable=False
    )

    creator: Mapped[User] = relationship("User", lazy="selectin")
    skill_rows: Mapped[list[OpportunitySkill]] = relationship(
        "OpportunitySkill",
        back_populates="opportunity",
        cascade="all, delete-orphan",
        lazy="selectin",
        order_by="OpportunitySkill.id",
    )

    @property
    def skills(self) -> list[str]:
        return [row.skill for row in self.skill_rows]


class OpportunitySkill(Base):
    """One required skill of an opportunity."""

    __tablename__ = "opportunity_skills"
    __table_args__ = (UniqueConstraint("opportunity_id", "skill", name="uq_opportunity_skills_pair"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    opportunity_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("opportunities.id", ondelete="CASCADE"), nullable=False, index=True
    )
    skill: Mapped[str] = mapped_column(String(64), nullable=False, index=True)

    opportunity: Mapped[Opportunity] = relationship("Opportunity", back_populates="skill_rows")


# ---------------------------------------------------------------------------
# Applications
# ---------------------------------------------------------------------------


class Application(Base):
    """A user's claim on an opportunity."""

    __tablename__ = "applications"
    __table_args__ = (UniqueConstraint("user_id", "opportunity_id", name="uq_applications_user_opportunity"),)

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    user_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    opportunity_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("opportunities.id", ondelete="CASCADE"), nullable=False, index=True
    )
    status: Mapped[ApplicationStatus] = mapped_column(
        _enum(ApplicationStatus, "application_status"), default=ApplicationStatus.PENDING, nullable=False
    )
    applied_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow, nullable=False)
    completed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    coins_awarded: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    hours_completed: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    submitted_hours: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    hour_submission_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    admin_feedback: Mapped[str | None] = mapped_column(Text, nullable=True)

    user: Mapped[User] = relationship("User", lazy="selectin")
    opportunity: Mapped[Opportunity] = relationship("Opportunity", lazy="selectin")


# ---------------------------------------------------------------------------
# Badges
# ---------------------------------------------------------------------------


class Badge(Base):
    """Achievement definition unlocked at a coin threshold."""

    __tablename__ = "badges"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    name: Mapped[str] = mapped_column(String(100), unique=True, nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    icon: Mapped[str | None] = mapped_column(String(64), nullable=True)
    coins_required: Mapped[int] = mapped_column(Integer, nullable=False)
    type: Mapped[BadgeType] = mapped_column(_enum(BadgeType, "badge_type"), default=BadgeType.MILESTONE, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow, nullable=False)


class UserBadge(Base):
    """Earned-badge record."""

    __tablename__ = "user_badges"
    __table_args__ = (UniqueConstraint("user_id", "badge_id", name="uq_user_badges_user_badge"),)

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    user_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    badge_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("badges.id", ondelete="CASCADE"), nullable=False
    )
    earned_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow, nullable=False)

    badge: Mapped[Badge] = relationship("Badge", lazy="selectin")
