"""SQLAlchemy table definitions.

These map to the frozen dataclass domain models in lms_core/models/.
Repos convert between rows and domain dataclasses; nothing outside
lms_core/repos/ touches a Row class.
"""

from __future__ import annotations

import datetime

from sqlalchemy import (
    Boolean,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column

from lms_core.db.engine import Base


class UserRow(Base):
    __tablename__ = "users"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    email: Mapped[str] = mapped_column(String(320), unique=True, nullable=False)
    name: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    role: Mapped[str] = mapped_column(
        String(32), nullable=False, default="customer"
    )  # customer|admin


# --- Catalog ---


class CourseRow(Base):
    __tablename__ = "courses"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    title: Mapped[str] = mapped_column(String(500), nullable=False)
    tier: Mapped[str] = mapped_column(
        String(16), nullable=False, default="STANDARD"
    )  # STANDARD|PREMIUM
    is_published: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)


class LessonRow(Base):
    __tablename__ = "lessons"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    course_id: Mapped[str] = mapped_column(
        String(64), ForeignKey("courses.id"), nullable=False, index=True
    )
    position: Mapped[int] = mapped_column(Integer, nullable=False)
    title: Mapped[str] = mapped_column(String(500), nullable=False)


class LearningPathRow(Base):
    __tablename__ = "learning_paths"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    title: Mapped[str] = mapped_column(String(500), nullable=False)


class LearningPathCourseRow(Base):
    __tablename__ = "learning_path_courses"

    learning_path_id: Mapped[str] = mapped_column(
        String(64), ForeignKey("learning_paths.id"), primary_key=True
    )
    course_id: Mapped[str] = mapped_column(
        String(64), ForeignKey("courses.id"), primary_key=True
    )
    position: Mapped[int] = mapped_column(Integer, nullable=False, default=0)


# --- Commerce ---


class PurchaseRow(Base):
    __tablename__ = "purchases"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    user_id: Mapped[str] = mapped_column(
        String(64), ForeignKey("users.id"), nullable=False
    )
    course_id: Mapped[str] = mapped_column(
        String(64), ForeignKey("courses.id"), nullable=False
    )
    status: Mapped[str] = mapped_column(
        String(16), nullable=False, default="pending"
    )  # pending|paid|refunded
    purchased_at: Mapped[datetime.datetime] = mapped_column(
        DateTime(timezone=True), nullable=False
    )

    __table_args__ = (Index("ix_purchases_user_course", "user_id", "course_id"),)


class SubscriptionPlanRow(Base):
    __tablename__ = "subscription_plans"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    tier: Mapped[str] = mapped_column(
        String(32), nullable=False
    )  # starter|professional|founder (legacy rows: pro|elite)


class SubscriptionRow(Base):
    __tablename__ = "subscriptions"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    user_id: Mapped[str] = mapped_column(
        String(64), ForeignKey("users.id"), nullable=False, index=True
    )
    plan_id: Mapped[str] = mapped_column(
        String(64), ForeignKey("subscription_plans.id"), nullable=False
    )
    status: Mapped[str] = mapped_column(
        String(16), nullable=False, default="pending"
    )  # active|pending|past_due|paused|cancelled|expired
    current_period_end: Mapped[datetime.datetime] = mapped_column(
        DateTime(timezone=True), nullable=False
    )


# --- Learning progress ---


class LessonProgressRow(Base):
    __tablename__ = "lesson_progress"

    user_id: Mapped[str] = mapped_column(
        String(64), ForeignKey("users.id"), primary_key=True
    )
    lesson_id: Mapped[str] = mapped_column(
        String(64), ForeignKey("lessons.id"), primary_key=True
    )
    completed_at: Mapped[datetime.datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    completion_percent: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    last_position: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    updated_at: Mapped[datetime.datetime] = mapped_column(
        DateTime(timezone=True), nullable=False
    )


# --- Certificates ---


class CertificateRow(Base):
    __tablename__ = "certificates"

    certificate_id: Mapped[str] = mapped_column(String(64), primary_key=True)
    user_id: Mapped[str] = mapped_column(
        String(64), ForeignKey("users.id"), nullable=False
    )
    course_id: Mapped[str | None] = mapped_column(
        String(64), ForeignKey("courses.id"), nullable=True
    )
    learning_path_id: Mapped[str | None] = mapped_column(
        String(64), ForeignKey("learning_paths.id"), nullable=True
    )
    type: Mapped[str] = mapped_column(String(16), nullable=False)  # course|path
    issued_at: Mapped[datetime.datetime] = mapped_column(
        DateTime(timezone=True), nullable=False
    )

    __table_args__ = (
        UniqueConstraint(
            "user_id", "course_id", "type", name="uq_certificates_user_course_type"
        ),
        UniqueConstraint(
            "user_id",
            "learning_path_id",
            "type",
            name="uq_certificates_user_path_type",
        ),
    )
