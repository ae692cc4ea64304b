"""
School Models

Database models for school (tenant) management.
Each school is a tenant in the multi-tenant architecture.
"""

from sqlalchemy import ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from schoolhub.modules.shared import BaseModel


class School(BaseModel):
    """
    School tenant model.

    All school-scoped data (classrooms, students) references this model via
    school_id. Managed by superadmins only.
    """

    __tablename__ = "schools"

    name: Mapped[str] = mapped_column(
        String(200),
        unique=True,
        index=True,
        nullable=False,
    )
    address: Mapped[str | None] = mapped_column(
        Text,
        nullable=True,
    )
    capacity: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=0,
    )

    # Set once at creation
    created_by: Mapped[str | None] = mapped_column(
        String(24),
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
    )

    def __repr__(self) -> str:
        return f"<School(id={self.id}, name={self.name})>"
