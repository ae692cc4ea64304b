"""Authentication schemas."""

from pydantic import EmailStr, Field, field_validator

from schoolhub.core.validators import Password
from schoolhub.modules.shared.schemas import CamelModel
from schoolhub.modules.users.schemas import UserResponse


class LoginRequest(CamelModel):
    """Login request schema."""

    username: str = Field(..., min_length=1, max_length=50)
    password: str = Field(..., min_length=1, max_length=128)

    @field_validator("username")
    @classmethod
    def normalize_username(cls, value: str) -> str:
        return value.strip().lower()


class LoginResponse(CamelModel):
    """Login response schema."""

    user: UserResponse
    long_token: str
    message: str = "Use longToken to generate shortToken to access protected routes"


class ShortTokenResponse(CamelModel):
    short_token: str


class PasswordResetRequest(CamelModel):
    email: EmailStr

    @field_validator("email")
    @classmethod
    def lower_case(cls, value: str) -> str:
        return value.lower()


class PasswordResetRequestResponse(CamelModel):
    message: str
    reset_token: str


class ResetPasswordRequest(CamelModel):
    """New password. The reset token travels in the ``token`` header, query or body."""

    password: Password
    token: str | None = None


class ResetPasswordResponse(CamelModel):
    user: UserResponse
    message: str
