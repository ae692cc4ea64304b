"""
Classroom Repository

Database operations for classrooms. Every lookup used on behalf of an admin
is scoped by school_id.
"""

import logging

from sqlalchemy import String, column, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from schoolhub.core.validators import like_pattern
from schoolhub.modules.classrooms.models import Classroom

logger = logging.getLogger(__name__)


def _resource_matches(dialect: str, pattern: str):
    """EXISTS clause matching the pattern against each stored resource."""
    if dialect == "postgresql":
        elements = func.json_array_elements_text(Classroom.resources)
    else:
        elements = func.json_each(Classroom.resources)
    resource = elements.table_valued(column("value", String), name="resource")

    return (
        select(resource.c.value)
        .where(resource.c.value.ilike(pattern, escape="\\"))
        .exists()
    )


class ClassroomRepository:
    """Repository for classroom database operations."""

    @staticmethod
    async def create(
        db: AsyncSession,
        *,
        school_id: str,
        name: str,
        capacity: int,
        resources: list[str],
    ) -> Classroom:
        classroom = Classroom(
            school_id=school_id,
            name=name,
            capacity=capacity,
            resources=resources,
        )

        db.add(classroom)
        await db.commit()
        await db.refresh(classroom)

        logger.info(f"Created classroom: {classroom.id} - {classroom.name} (school {school_id})")
        return classroom

    @staticmethod
    async def get_in_school(
        db: AsyncSession,
        school_id: str,
        classroom_id: str,
    ) -> Classroom | None:
        """Classroom by id, only if it belongs to the school."""
        result = await db.execute(
            select(Classroom).where(
                Classroom.id == classroom_id,
                Classroom.school_id == school_id,
            )
        )
        return result.scalar_one_or_none()

    @staticmethod
    async def get_by_name(
        db: AsyncSession,
        school_id: str,
        name: str,
        exclude_id: str | None = None,
    ) -> Classroom | None:
        conditions = [Classroom.school_id == school_id, Classroom.name == name]
        if exclude_id:
            conditions.append(Classroom.id != exclude_id)
        result = await db.execute(select(Classroom).where(*conditions))
        return result.scalar_one_or_none()

    @staticmethod
    async def get_by_ids(db: AsyncSession, classroom_ids: list[str]) -> dict[str, Classroom]:
        """Classrooms keyed by id; deleted or unknown ids are absent."""
        if not classroom_ids:
            return {}
        result = await db.execute(select(Classroom).where(Classroom.id.in_(set(classroom_ids))))
        return {classroom.id: classroom for classroom in result.scalars().all()}

    @staticmethod
    async def list_page(
        db: AsyncSession,
        school_id: str,
        *,
        offset: int,
        limit: int,
        search: str | None = None,
    ) -> tuple[list[Classroom], int]:
        """
        Page through a school's classrooms, newest first.

        Args:
            search: Case-insensitive substring matched against the name or
                any resource

        Returns:
            Tuple of (classrooms on the page, total matching)
        """
        conditions = [Classroom.school_id == school_id]
        if search:
            pattern = like_pattern(search)
            conditions.append(
                or_(
                    Classroom.name.ilike(pattern, escape="\\"),
                    _resource_matches(db.get_bind().dialect.name, pattern),
                )
            )

        total = await db.scalar(select(func.count()).select_from(Classroom).where(*conditions))
        result = await db.execute(
            select(Classroom)
            .where(*conditions)
            .order_by(Classroom.created_at.desc(), Classroom.id.desc())
            .offset(offset)
            .limit(limit)
        )
        return list(result.scalars().all()), total or 0

    @staticmethod
    async def update(db: AsyncSession, classroom: Classroom, **fields) -> Classroom:
        for field, value in fields.items():
            setattr(classroom, field, value)

        await db.commit()
        await db.refresh(classroom)

        logger.info(f"Updated classroom {classroom.id}: {sorted(fields)}")
        return classroom

    @staticmethod
    async def set_resources(
        db: AsyncSession,
        classroom: Classroom,
        resources: list[str],
    ) -> Classroom:
        # Assign a new list so the JSON column change is detected
        classroom.resources = list(resources)

        await db.commit()
        await db.refresh(classroom)

        logger.info(f"Classroom {classroom.id} resources set to {classroom.resources}")
        return classroom

    @staticmethod
    async def delete(db: AsyncSession, classroom: Classroom) -> None:
        await db.delete(classroom)
        await db.commit()

        logger.info(f"Deleted classroom {classroom.id} - {classroom.name}")
