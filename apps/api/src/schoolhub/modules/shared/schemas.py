"""
Shared Schemas

Base schema with camelCase aliases, the pagination block, and the compact
reference shapes used when hydrating related entities.
"""

import math
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from schoolhub.core.validators import SearchTerm, camelize

DEFAULT_PAGE = 1
DEFAULT_LIMIT = 10
MAX_LIMIT = 100


class CamelModel(BaseModel):
    """Base for request and response bodies; fields are camelCase on the wire."""

    model_config = ConfigDict(
        alias_generator=camelize,
        populate_by_name=True,
        from_attributes=True,
    )


class ListQuery(CamelModel):
    """Paging and search parameters shared by every list endpoint."""

    page: int = Field(DEFAULT_PAGE, ge=1)
    limit: int = Field(DEFAULT_LIMIT, ge=1, le=MAX_LIMIT)
    search: SearchTerm | None = None

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit


class Pagination(CamelModel):
    page: int
    limit: int
    total: int
    total_pages: int

    @classmethod
    def build(cls, page: int, limit: int, total: int) -> "Pagination":
        return cls(page=page, limit=limit, total=total, total_pages=math.ceil(total / limit))


class SchoolRef(CamelModel):
    id: str
    name: str
    address: str | None = None


class ClassroomRef(CamelModel):
    id: str
    name: str
    capacity: int


class UserRef(CamelModel):
    id: str
    username: str
    email: str


class TimestampedSchema(CamelModel):
    id: str
    created_at: datetime
    updated_at: datetime

