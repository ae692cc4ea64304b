"""Authentication module."""

from schoolhub.modules.auth.router import router
from schoolhub.modules.auth.schemas import LoginRequest, LoginResponse, ShortTokenResponse

__all__ = ["router", "LoginRequest", "LoginResponse", "ShortTokenResponse"]
