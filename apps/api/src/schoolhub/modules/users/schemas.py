"""
User Schemas

Request and response schemas for user management.
"""

from datetime import datetime

from pydantic import EmailStr, Field, field_validator

from schoolhub.core.validators import ObjectId, Password, Username
from schoolhub.modules.shared.schemas import CamelModel, TimestampedSchema
from schoolhub.modules.users.models import UserRole


def _dedupe(values: list[str]) -> list[str]:
    return list(dict.fromkeys(values))


# ============================================
# Requests
# ============================================


class UserCreate(CamelModel):
    """Payload for creating a user (superadmin only)."""

    username: Username
    email: EmailStr
    password: Password
    role: UserRole
    school_ids: list[ObjectId] = Field(default_factory=list)

    @field_validator("username", "email")
    @classmethod
    def lower_case(cls, value: str) -> str:
        return value.lower()

    @field_validator("school_ids")
    @classmethod
    def unique_school_ids(cls, value: list[str]) -> list[str]:
        return _dedupe(value)


class AssignSchoolsRequest(CamelModel):
    school_ids: list[ObjectId] = Field(..., min_length=1)

    @field_validator("school_ids")
    @classmethod
    def unique_school_ids(cls, value: list[str]) -> list[str]:
        return _dedupe(value)


class UpdateRoleRequest(CamelModel):
    role: UserRole


# ============================================
# Responses
# ============================================


class UserResponse(TimestampedSchema):
    """User as returned by the API. The password hash is never included."""

    username: str
    email: str
    role: UserRole
    school_ids: list[str]
    last_password_reset: datetime | None = None


class UserMessageResponse(CamelModel):
    user: UserResponse
    message: str
