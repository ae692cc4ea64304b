"""
School Repository

Database operations for school management.
"""

import logging

from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from schoolhub.core.validators import like_pattern
from schoolhub.modules.schools.models import School

logger = logging.getLogger(__name__)


class SchoolRepository:
    """Repository for school database operations."""

    @staticmethod
    async def create(
        db: AsyncSession,
        *,
        name: str,
        address: str | None,
        capacity: int,
        created_by: str | None,
    ) -> School:
        """
        Create a new school record.

        Args:
            db: Database session
            name: Lower-cased school name (unique)
            address: Postal address (optional)
            capacity: Student capacity
            created_by: Id of the creating user

        Returns:
            Created School instance
        """
        school = School(
            name=name,
            address=address,
            capacity=capacity,
            created_by=created_by,
        )

        db.add(school)
        await db.commit()
        await db.refresh(school)

        logger.info(f"Created school: {school.id} - {school.name}")
        return school

    @staticmethod
    async def get_by_id(db: AsyncSession, school_id: str) -> School | None:
        return await db.get(School, school_id)

    @staticmethod
    async def get_by_name(db: AsyncSession, name: str) -> School | None:
        result = await db.execute(select(School).where(School.name == name))
        return result.scalar_one_or_none()

    @staticmethod
    async def get_by_ids(db: AsyncSession, school_ids: list[str]) -> dict[str, School]:
        """Schools keyed by id; unknown ids are absent from the result."""
        if not school_ids:
            return {}
        result = await db.execute(select(School).where(School.id.in_(set(school_ids))))
        return {school.id: school for school in result.scalars().all()}

    @staticmethod
    async def list_page(
        db: AsyncSession,
        *,
        offset: int,
        limit: int,
        search: str | None = None,
    ) -> tuple[list[School], int]:
        """
        Page through schools, newest first.

        Args:
            search: Case-insensitive substring matched against name or address

        Returns:
            Tuple of (schools on the page, total matching)
        """
        conditions = []
        if search:
            pattern = like_pattern(search)
            conditions.append(
                or_(
                    School.name.ilike(pattern, escape="\\"),
                    School.address.ilike(pattern, escape="\\"),
                )
            )

        total = await db.scalar(select(func.count()).select_from(School).where(*conditions))
        result = await db.execute(
            select(School)
            .where(*conditions)
            .order_by(School.created_at.desc(), School.id.desc())
            .offset(offset)
            .limit(limit)
        )
        return list(result.scalars().all()), total or 0

    @staticmethod
    async def update(db: AsyncSession, school: School, **fields) -> School:
        for field, value in fields.items():
            setattr(school, field, value)

        await db.commit()
        await db.refresh(school)

        logger.info(f"Updated school {school.id}: {sorted(fields)}")
        return school

    @staticmethod
    async def delete(db: AsyncSession, school: School) -> None:
        await db.delete(school)
        await db.commit()

        logger.info(f"Deleted school {school.id} - {school.name}")
