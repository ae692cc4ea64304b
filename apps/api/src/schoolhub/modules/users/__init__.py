"""
Users module - Platform accounts and school assignments.
"""

from schoolhub.modules.users.models import User, UserRole, UserSchool
from schoolhub.modules.users.repository import UserRepository

__all__ = ["User", "UserRole", "UserSchool", "UserRepository"]
