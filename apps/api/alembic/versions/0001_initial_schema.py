"""initial schema

Revision ID: 0001
Revises:
Create Date: 2026-10-19 09:00:00.000000

This migration creates:
1. users, with unique username and email
2. schools, with a unique name and a created_by reference to users
3. user_schools, the ordered user -> school assignment list
4. classrooms, unique per (school_id, name)
5. students, unique per (school_id, first_name, last_name, date_of_birth)

classrooms.school_id, students.school_id and students.classroom_id are plain
columns without foreign keys; school and classroom deletes clean them up in
application code.
"""

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision: str = "0001"
down_revision: str | Sequence[str] | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def _base_columns() -> list[sa.Column]:
    """Primary key and timestamps (from BaseModel)."""
    return [
        sa.Column("id", sa.String(length=24), nullable=False),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("CURRENT_TIMESTAMP"),
            nullable=False,
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("CURRENT_TIMESTAMP"),
            nullable=False,
        ),
    ]


def upgrade() -> None:
    """Create all tables."""
    op.create_table(
        "users",
        *_base_columns(),
        sa.Column("username", sa.String(length=50), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("password_hash", sa.Text(), nullable=False),
        sa.Column("role", sa.String(length=20), nullable=False, server_default="admin"),
        sa.Column("last_password_reset", sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_users_username"), "users", ["username"], unique=True)
    op.create_index(op.f("ix_users_email"), "users", ["email"], unique=True)
    op.create_index(op.f("ix_users_created_at"), "users", ["created_at"], unique=False)

    op.create_table(
        "schools",
        *_base_columns(),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("address", sa.Text(), nullable=True),
        sa.Column("capacity", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("created_by", sa.String(length=24), nullable=True),
        sa.PrimaryKeyConstraint("id"),
        # ON DELETE SET NULL: a school outlives the account that created it
        sa.ForeignKeyConstraint(
            ["created_by"],
            ["users.id"],
            name="fk_schools_created_by",
            ondelete="SET NULL",
        ),
    )
    op.create_index(op.f("ix_schools_name"), "schools", ["name"], unique=True)
    op.create_index(op.f("ix_schools_created_at"), "schools", ["created_at"], unique=False)

    op.create_table(
        "user_schools",
        sa.Column("id", sa.String(length=24), nullable=False),
        sa.Column("user_id", sa.String(length=24), nullable=False),
        sa.Column("school_id", sa.String(length=24), nullable=False),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("CURRENT_TIMESTAMP"),
            nullable=False,
        ),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(
            ["user_id"],
            ["users.id"],
            name="fk_user_schools_user_id",
            ondelete="CASCADE",
        ),
        sa.ForeignKeyConstraint(
            ["school_id"],
            ["schools.id"],
            name="fk_user_schools_school_id",
            ondelete="CASCADE",
        ),
        sa.UniqueConstraint("user_id", "school_id", name="uq_user_schools_user_school"),
    )
    op.create_index(op.f("ix_user_schools_user_id"), "user_schools", ["user_id"], unique=False)
    op.create_index(
        op.f("ix_user_schools_school_id"), "user_schools", ["school_id"], unique=False
    )

    op.create_table(
        "classrooms",
        *_base_columns(),
        sa.Column("school_id", sa.String(length=24), nullable=False),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("capacity", sa.Integer(), nullable=False),
        sa.Column("resources", sa.JSON(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("school_id", "name", name="uq_classrooms_school_name"),
    )
    op.create_index(op.f("ix_classrooms_school_id"), "classrooms", ["school_id"], unique=False)
    op.create_index(
        op.f("ix_classrooms_created_at"), "classrooms", ["created_at"], unique=False
    )

    op.create_table(
        "students",
        *_base_columns(),
        sa.Column("school_id", sa.String(length=24), nullable=True),
        sa.Column("classroom_id", sa.String(length=24), nullable=True),
        sa.Column("first_name", sa.String(length=100), nullable=False),
        sa.Column("last_name", sa.String(length=100), nullable=False),
        sa.Column("date_of_birth", sa.Date(), nullable=False),
        sa.Column(
            "enrollment_status",
            sa.String(length=20),
            nullable=False,
            server_default="enrolled",
        ),
        sa.Column("transfer_history", sa.JSON(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint(
            "school_id",
            "first_name",
            "last_name",
            "date_of_birth",
            name="uq_students_identity",
        ),
    )
    op.create_index(op.f("ix_students_school_id"), "students", ["school_id"], unique=False)
    op.create_index(op.f("ix_students_classroom_id"), "students", ["classroom_id"], unique=False)
    op.create_index(
        op.f("ix_students_enrollment_status"), "students", ["enrollment_status"], unique=False
    )
    op.create_index(op.f("ix_students_created_at"), "students", ["created_at"], unique=False)


def downgrade() -> None:
    """Drop all tables."""
    op.drop_table("students")
    op.drop_table("classrooms")
    op.drop_table("user_schools")
    op.drop_table("schools")
    op.drop_table("users")
