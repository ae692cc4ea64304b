"""
Student Schemas

Request and response schemas for student enrollment. As with classrooms, the
school comes from the admin scope.
"""

from datetime import date, datetime

from pydantic import Field, field_validator, model_validator

from schoolhub.core.validators import Name, ObjectId, normalize_name
from schoolhub.modules.shared.schemas import (
    CamelModel,
    ClassroomRef,
    Pagination,
    SchoolRef,
    TimestampedSchema,
)
from schoolhub.modules.students.models import EnrollmentStatus

# ============================================
# Requests
# ============================================


class StudentCreate(CamelModel):
    first_name: Name
    last_name: Name
    date_of_birth: date
    classroom_id: ObjectId | None = None

    @field_validator("first_name", "last_name")
    @classmethod
    def lower_case(cls, value: str) -> str:
        return normalize_name(value)


class StudentUpdate(CamelModel):
    """Partial profile update; at least one field must be given."""

    first_name: Name | None = None
    last_name: Name | None = None
    date_of_birth: date | None = None

    @field_validator("first_name", "last_name")
    @classmethod
    def lower_case(cls, value: str | None) -> str | None:
        return normalize_name(value) if value is not None else None

    @model_validator(mode="after")
    def require_a_field(self) -> "StudentUpdate":
        if self.first_name is None and self.last_name is None and self.date_of_birth is None:
            raise ValueError("At least one of firstName, lastName or dateOfBirth is required")
        return self


class TransferRequest(CamelModel):
    classroom_id: ObjectId


class EnrollmentStatusRequest(CamelModel):
    enrollment_status: EnrollmentStatus


# ============================================
# Responses
# ============================================


class TransferRecord(CamelModel):
    """One entry of a student's transfer history."""

    from_classroom_id: str | None = None
    to_classroom_id: str
    transferred_at: datetime
    from_classroom: ClassroomRef | None = None
    to_classroom: ClassroomRef | None = None


class StudentResponse(TimestampedSchema):
    school_id: str | None = None
    school: SchoolRef | None = None
    classroom_id: str | None = None
    classroom: ClassroomRef | None = None
    first_name: str
    last_name: str
    date_of_birth: date
    enrollment_status: EnrollmentStatus
    transfer_history: list[TransferRecord] = Field(default_factory=list)


class StudentSummary(CamelModel):
    id: str
    first_name: str
    last_name: str
    enrollment_status: EnrollmentStatus


class StudentListResponse(CamelModel):
    students: list[StudentResponse]
    pagination: Pagination
    enrollment_stats: dict[str, int]


class StudentMessageResponse(CamelModel):
    student: StudentResponse
    message: str


class TransferResponse(CamelModel):
    student: StudentResponse
    transfer: TransferRecord
    message: str


class TransferHistoryResponse(CamelModel):
    student: StudentSummary
    transfer_history: list[TransferRecord]
