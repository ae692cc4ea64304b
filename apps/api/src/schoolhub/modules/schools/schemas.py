"""
School Schemas

Request and response schemas for school management.
"""

from pydantic import Field, field_validator, model_validator

from schoolhub.core.validators import Address, Name, normalize_name
from schoolhub.modules.shared.schemas import CamelModel, Pagination, TimestampedSchema, UserRef


class SchoolCreate(CamelModel):
    name: Name
    address: Address | None = None
    capacity: int = Field(0, ge=0)

    @field_validator("name")
    @classmethod
    def lower_case_name(cls, value: str) -> str:
        return normalize_name(value)


class SchoolUpdate(CamelModel):
    """Partial update; at least one field must be given."""

    name: Name | None = None
    address: Address | None = None
    capacity: int | None = Field(None, ge=0)

    @field_validator("name")
    @classmethod
    def lower_case_name(cls, value: str | None) -> str | None:
        return normalize_name(value) if value is not None else None

    @model_validator(mode="after")
    def require_a_field(self) -> "SchoolUpdate":
        if not self.model_fields_set & {"name", "address", "capacity"}:
            raise ValueError("At least one of name, address or capacity is required")
        return self


class SchoolResponse(TimestampedSchema):
    name: str
    address: str | None = None
    capacity: int
    created_by: UserRef | None = None


class SchoolListResponse(CamelModel):
    schools: list[SchoolResponse]
    pagination: Pagination


class SchoolCleanup(CamelModel):
    users_unassigned: int
    students_unassigned: int


class SchoolDeleteResponse(CamelModel):
    school: SchoolResponse
    cleanup: SchoolCleanup
    message: str
