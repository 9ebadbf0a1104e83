"""create core tables

Revision ID: 3b7e91c4d2a0
Revises:
Create Date: 2026-10-19 00:00:00.000000

"""

from collections.abc import Sequence

import sqlalchemy as sa

from alembic import op

# revision identifiers, used by Alembic.
revision: str = "3b7e91c4d2a0"
down_revision: str | Sequence[str] | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.String(length=64), primary_key=True),
        sa.Column("email", sa.String(length=320), nullable=False, unique=True),
        sa.Column("name", sa.String(length=255), nullable=False, server_default=""),
        sa.Column(
            "role", sa.String(length=32), nullable=False, server_default="customer"
        ),
    )
    op.create_table(
        "courses",
        sa.Column("id", sa.String(length=64), primary_key=True),
        sa.Column("title", sa.String(length=500), nullable=False),
        sa.Column(
            "tier", sa.String(length=16), nullable=False, server_default="STANDARD"
        ),
        sa.Column(
            "is_published", sa.Boolean(), nullable=False, server_default=sa.false()
        ),
    )
    op.create_table(
        "lessons",
        sa.Column("id", sa.String(length=64), primary_key=True),
        sa.Column(
            "course_id",
            sa.String(length=64),
            sa.ForeignKey("courses.id"),
            nullable=False,
        ),
        sa.Column("position", sa.Integer(), nullable=False),
        sa.Column("title", sa.String(length=500), nullable=False),
    )
    op.create_index("ix_lessons_course_id", "lessons", ["course_id"])

    op.create_table(
        "learning_paths",
        sa.Column("id", sa.String(length=64), primary_key=True),
        sa.Column("title", sa.String(length=500), nullable=False),
    )
    op.create_table(
        "learning_path_courses",
        sa.Column(
            "learning_path_id",
            sa.String(length=64),
            sa.ForeignKey("learning_paths.id"),
            primary_key=True,
        ),
        sa.Column(
            "course_id",
            sa.String(length=64),
            sa.ForeignKey("courses.id"),
            primary_key=True,
        ),
        sa.Column("position", sa.Integer(), nullable=False, server_default="0"),
    )

    op.create_table(
        "purchases",
        sa.Column("id", sa.String(length=64), primary_key=True),
        sa.Column(
            "user_id", sa.String(length=64), sa.ForeignKey("users.id"), nullable=False
        ),
        sa.Column(
            "course_id",
            sa.String(length=64),
            sa.ForeignKey("courses.id"),
            nullable=False,
        ),
        sa.Column(
            "status", sa.String(length=16), nullable=False, server_default="pending"
        ),
        sa.Column("purchased_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index(
        "ix_purchases_user_course", "purchases", ["user_id", "course_id"]
    )

    op.create_table(
        "subscription_plans",
        sa.Column("id", sa.String(length=64), primary_key=True),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("tier", sa.String(length=32), nullable=False),
    )
    op.create_table(
        "subscriptions",
        sa.Column("id", sa.String(length=64), primary_key=True),
        sa.Column(
            "user_id", sa.String(length=64), sa.ForeignKey("users.id"), nullable=False
        ),
        sa.Column(
            "plan_id",
            sa.String(length=64),
            sa.ForeignKey("subscription_plans.id"),
            nullable=False,
        ),
        sa.Column(
            "status", sa.String(length=16), nullable=False, server_default="pending"
        ),
        sa.Column("current_period_end", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("ix_subscriptions_user_id", "subscriptions", ["user_id"])

    op.create_table(
        "lesson_progress",
        sa.Column(
            "user_id", sa.String(length=64), sa.ForeignKey("users.id"), primary_key=True
        ),
        sa.Column(
            "lesson_id",
            sa.String(length=64),
            sa.ForeignKey("lessons.id"),
            primary_key=True,
        ),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column(
            "completion_percent", sa.Integer(), nullable=False, server_default="0"
        ),
        sa.Column("last_position", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
    )

    op.create_table(
        "certificates",
        sa.Column("certificate_id", sa.String(length=64), primary_key=True),
        sa.Column(
            "user_id", sa.String(length=64), sa.ForeignKey("users.id"), nullable=False
        ),
        sa.Column(
            "course_id",
            sa.String(length=64),
            sa.ForeignKey("courses.id"),
            nullable=True,
        ),
        sa.Column(
            "learning_path_id",
            sa.String(length=64),
            sa.ForeignKey("learning_paths.id"),
            nullable=True,
        ),
        sa.Column("type", sa.String(length=16), nullable=False),
        sa.Column("issued_at", sa.DateTime(timezone=True), nullable=False),
        sa.UniqueConstraint(
            "user_id", "course_id", "type", name="uq_certificates_user_course_type"
        ),
        sa.UniqueConstraint(
            "user_id",
            "learning_path_id",
            "type",
            name="uq_certificates_user_path_type",
        ),
    )


def downgrade() -> None:
    op.drop_table("certificates")
    op.drop_table("lesson_progress")
    op.drop_index("ix_subscriptions_user_id", table_name="subscriptions")
    op.drop_table("subscriptions")
    op.drop_table("subscription_plans")
    op.drop_index("ix_purchases_user_course", table_name="purchases")
    op.drop_table("purchases")
    op.drop_table("learning_path_courses")
    op.drop_table("learning_paths")
    op.drop_index("ix_lessons_course_id", table_name="lessons")
    op.drop_table("lessons")
    op.drop_table("courses")
    op.drop_table("users")
