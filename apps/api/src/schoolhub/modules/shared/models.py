"""
Shared Model Base

Columns every persisted entity carries.
"""

from datetime import UTC, datetime

from sqlalchemy import DateTime, String
from sqlalchemy.orm import Mapped, mapped_column

from schoolhub.core.database import Base, generate_object_id


def utcnow() -> datetime:
    return datetime.now(UTC)


class BaseModel(Base):
    """
    Abstract base adding an ObjectId-style primary key and timestamps.
    """

    __abstract__ = True

    id: Mapped[str] = mapped_column(
        String(24),
        primary_key=True,
        default=generate_object_id,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        index=True,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        onupdate=utcnow,
    )
