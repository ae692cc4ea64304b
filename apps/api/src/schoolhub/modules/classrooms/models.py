"""
Classroom Models

Database model for classrooms within a school.
"""

from sqlalchemy import JSON, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from schoolhub.modules.shared import BaseModel


class Classroom(BaseModel):
    """
    Classroom model.

    school_id is a plain reference without a foreign key: deleting a school
    does not touch its classrooms.
    """

    __tablename__ = "classrooms"
    __table_args__ = (
        UniqueConstraint("school_id", "name", name="uq_classrooms_school_name"),
    )

    school_id: Mapped[str] = mapped_column(
        String(24),
        nullable=False,
        index=True,
    )
    name: Mapped[str] = mapped_column(
        String(200),
        nullable=False,
    )
    capacity: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
    )

    # Normalised resource names (JSON array of strings)
    resources: Mapped[list[str]] = mapped_column(
        JSON,
        nullable=False,
        default=list,
    )

    def __repr__(self) -> str:
        return f"<Classroom(id={self.id}, school_id={self.school_id}, name={self.name})>"
