"""
Student Models

Database model for students and their enrollment lifecycle.
"""

from datetime import date
from enum import Enum

from sqlalchemy import JSON, Date, String, UniqueConstraint
from sqlalchemy import Enum as SAEnum
from sqlalchemy.orm import Mapped, mapped_column

from schoolhub.modules.shared import BaseModel


class EnrollmentStatus(str, Enum):
    """Enrollment states of a student."""

    ENROLLED = "enrolled"
    TRANSFERRED = "transferred"
    GRADUATED = "graduated"
    SUSPENDED = "suspended"


class Student(BaseModel):
    """
    Student model.

    Lifecycle:
    enrolled -> transferred (classroom change while enrolled)
    any -> graduated (classroom cleared; no further transfers)
    any -> suspended (transfers keep the status)

    school_id becomes NULL when the owning school is deleted.
    """

    __tablename__ = "students"
    __table_args__ = (
        UniqueConstraint(
            "school_id",
            "first_name",
            "last_name",
            "date_of_birth",
            name="uq_students_identity",
        ),
    )

    school_id: Mapped[str | None] = mapped_column(
        String(24),
        nullable=True,
        index=True,
    )
    classroom_id: Mapped[str | None] = mapped_column(
        String(24),
        nullable=True,
        index=True,
    )
    first_name: Mapped[str] = mapped_column(
        String(100),
        nullable=False,
    )
    last_name: Mapped[str] = mapped_column(
        String(100),
        nullable=False,
    )
    date_of_birth: Mapped[date] = mapped_column(
        Date,
        nullable=False,
    )
    enrollment_status: Mapped[EnrollmentStatus] = mapped_column(
        SAEnum(
            EnrollmentStatus,
            name="enrollment_status",
            native_enum=False,
            length=20,
            values_callable=lambda statuses: [status.value for status in statuses],
        ),
        nullable=False,
        default=EnrollmentStatus.ENROLLED,
        index=True,
    )

    # Append-only list of {from_classroom_id, to_classroom_id, transferred_at}
    transfer_history: Mapped[list[dict]] = mapped_column(
        JSON,
        nullable=False,
        default=list,
    )

    def __repr__(self) -> str:
        return (
            f"<Student(id={self.id}, name={self.first_name} {self.last_name}, "
            f"status={self.enrollment_status.value})>"
        )
