"""
User Models

Database models for platform users and their school assignments.
"""

from datetime import datetime
from enum import Enum

from sqlalchemy import DateTime, ForeignKey, String, Text, UniqueConstraint
from sqlalchemy import Enum as SAEnum
from sqlalchemy.orm import Mapped, mapped_column, relationship

from schoolhub.core.database import Base, generate_object_id
from schoolhub.modules.shared import BaseModel
from schoolhub.modules.shared.models import utcnow


class UserRole(str, Enum):
    """User roles in the system."""

    SUPERADMIN = "superadmin"
    ADMIN = "admin"


class UserSchool(Base):
    """
    Link row granting a user access to one school.

    Rows are kept in insertion order (by created_at, then id) so a user's
    school list reads back in the order schools were assigned.
    """

    __tablename__ = "user_schools"
    __table_args__ = (UniqueConstraint("user_id", "school_id", name="uq_user_schools_user_school"),)

    id: Mapped[str] = mapped_column(
        String(24),
        primary_key=True,
        default=generate_object_id,
    )
    user_id: Mapped[str] = mapped_column(
        String(24),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    # ON DELETE CASCADE: deleting a school removes it from every user's list
    school_id: Mapped[str] = mapped_column(
        String(24),
        ForeignKey("schools.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
    )


class User(BaseModel):
    """
    User model for authentication and authorization.

    Superadmins have no school assignments and may act on every school;
    admins act only on the schools linked through ``user_schools``.
    """

    __tablename__ = "users"

    username: Mapped[str] = mapped_column(
        String(50),
        unique=True,
        index=True,
        nullable=False,
    )
    email: Mapped[str] = mapped_column(
        String(255),
        unique=True,
        index=True,
        nullable=False,
    )
    password_hash: Mapped[str] = mapped_column(
        Text,
        nullable=False,
    )
    role: Mapped[UserRole] = mapped_column(
        SAEnum(
            UserRole,
            name="user_role",
            native_enum=False,
            length=20,
            values_callable=lambda roles: [role.value for role in roles],
        ),
        nullable=False,
        default=UserRole.ADMIN,
    )
    last_password_reset: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )

    school_links: Mapped[list[UserSchool]] = relationship(
        UserSchool,
        lazy="selectin",
        cascade="all, delete-orphan",
        order_by=[UserSchool.created_at, UserSchool.id],
    )

    @property
    def school_ids(self) -> list[str]:
        """Assigned school ids in assignment order."""
        return [link.school_id for link in self.school_links]

    def __repr__(self) -> str:
        return f"<User(id={self.id}, username={self.username}, role={self.role.value})>"
