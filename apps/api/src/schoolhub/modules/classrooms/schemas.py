"""
Classroom Schemas

Request and response schemas for classroom management. The school is taken
from the admin scope (``schoolId`` in the query or body), so it is not part
of these payloads.
"""

from typing import Any

from pydantic import Field, field_validator, model_validator

from schoolhub.core.validators import Name, normalize_name, normalize_resources
from schoolhub.modules.shared.schemas import CamelModel, Pagination, SchoolRef, TimestampedSchema


class ClassroomCreate(CamelModel):
    name: Name
    capacity: int = Field(..., ge=1)
    resources: list[Any] = Field(default_factory=list)

    @field_validator("name")
    @classmethod
    def lower_case_name(cls, value: str) -> str:
        return normalize_name(value)

    @field_validator("resources")
    @classmethod
    def clean_resources(cls, value: list[Any]) -> list[str]:
        return normalize_resources(value)


class ClassroomUpdate(CamelModel):
    """Partial update; at least one field must be given."""

    name: Name | None = None
    capacity: int | None = Field(None, ge=1)

    @field_validator("name")
    @classmethod
    def lower_case_name(cls, value: str | None) -> str | None:
        return normalize_name(value) if value is not None else None

    @model_validator(mode="after")
    def require_a_field(self) -> "ClassroomUpdate":
        if self.name is None and self.capacity is None:
            raise ValueError("At least one of name or capacity is required")
        return self


class ResourcesRequest(CamelModel):
    """Resource list for add/remove; normalised by the service."""

    resources: list[Any] = Field(..., min_length=1)


class ReplaceResourcesRequest(CamelModel):
    """Resource list for replace; may be empty to clear the list."""

    resources: list[Any]


class ClassroomResponse(TimestampedSchema):
    school_id: str
    school: SchoolRef | None = None
    name: str
    capacity: int
    resources: list[str]
    student_count: int | None = None


class ClassroomListResponse(CamelModel):
    classrooms: list[ClassroomResponse]
    pagination: Pagination


class ClassroomCleanup(CamelModel):
    students_unassigned: int


class ClassroomDeleteResponse(CamelModel):
    classroom: ClassroomResponse
    cleanup: ClassroomCleanup
    message: str


class AddResourcesResponse(CamelModel):
    classroom: ClassroomResponse
    added_resources: list[str]
    message: str


class RemoveResourcesResponse(CamelModel):
    classroom: ClassroomResponse
    removed_resources: list[str]
    message: str


class ReplaceResourcesResponse(CamelModel):
    classroom: ClassroomResponse
    new_resources: list[str]
    message: str
