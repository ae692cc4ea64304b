"""
Shared module - Model base and common schemas.
"""

from schoolhub.modules.shared.models import BaseModel

__all__ = ["BaseModel"]
