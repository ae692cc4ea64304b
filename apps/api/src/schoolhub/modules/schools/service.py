"""
School Service Layer

Business rules for school (tenant) management. Superadmin only.

Deleting a school cascades in three committed steps:
1. the school is removed from every user's assignments
2. every student of the school loses its school reference
3. the school row is deleted

Classrooms of a deleted school are left in place.
"""

import logging

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from schoolhub.core.auth import TokenContext
from schoolhub.core.errors import ConflictError, NotFoundError, service_operation
from schoolhub.core.validators import require_object_id
from schoolhub.modules.schools.models import School
from schoolhub.modules.schools.repository import SchoolRepository
from schoolhub.modules.schools.schemas import (
    SchoolCleanup,
    SchoolCreate,
    SchoolDeleteResponse,
    SchoolListResponse,
    SchoolResponse,
    SchoolUpdate,
)
from schoolhub.modules.shared.schemas import ListQuery, Pagination, UserRef
from schoolhub.modules.students import repository as student_repository
from schoolhub.modules.users.repository import UserRepository

logger = logging.getLogger(__name__)

DUPLICATE_SCHOOL_MESSAGE = "School with this name already exists"


async def _hydrate(db: AsyncSession, schools: list[School]) -> list[SchoolResponse]:
    """Expand created_by into {id, username, email}."""
    creators = await UserRepository.get_by_ids(
        db, [school.created_by for school in schools if school.created_by]
    )

    hydrated = []
    for school in schools:
        creator = creators.get(school.created_by)
        hydrated.append(
            SchoolResponse(
                id=school.id,
                name=school.name,
                address=school.address,
                capacity=school.capacity,
                created_by=UserRef.model_validate(creator) if creator else None,
                created_at=school.created_at,
                updated_at=school.updated_at,
            )
        )
    return hydrated


async def _get_school_or_404(db: AsyncSession, school_id: str) -> School:
    school = await SchoolRepository.get_by_id(db, require_object_id(school_id, "schoolId"))
    if not school:
        raise NotFoundError("School not found")
    return school


@service_operation
async def create_school(
    db: AsyncSession,
    token: TokenContext,
    data: SchoolCreate,
) -> SchoolResponse:
    """
    Create a school owned by the acting superadmin.

    Raises:
        ConflictError: Name already taken
    """
    if await SchoolRepository.get_by_name(db, data.name):
        logger.warning(f"Duplicate school rejected: {data.name}")
        raise ConflictError(DUPLICATE_SCHOOL_MESSAGE)

    try:
        school = await SchoolRepository.create(
            db,
            name=data.name,
            address=data.address,
            capacity=data.capacity,
            created_by=token.user_id,
        )
    except IntegrityError as e:
        await db.rollback()
        raise ConflictError(DUPLICATE_SCHOOL_MESSAGE) from e

    return (await _hydrate(db, [school]))[0]


@service_operation
async def list_schools(db: AsyncSession, query: ListQuery) -> SchoolListResponse:
    schools, total = await SchoolRepository.list_page(
        db,
        offset=query.offset,
        limit=query.limit,
        search=query.search or None,
    )
    return SchoolListResponse(
        schools=await _hydrate(db, schools),
        pagination=Pagination.build(query.page, query.limit, total),
    )


@service_operation
async def get_school(db: AsyncSession, school_id: str) -> SchoolResponse:
    school = await _get_school_or_404(db, school_id)
    return (await _hydrate(db, [school]))[0]


@service_operation
async def update_school(
    db: AsyncSession,
    school_id: str,
    data: SchoolUpdate,
) -> SchoolResponse:
    """
    Apply a partial update.

    Raises:
        NotFoundError: School does not exist
        ConflictError: New name belongs to another school
    """
    school = await _get_school_or_404(db, school_id)

    fields = {}
    if data.name is not None and data.name != school.name:
        if await SchoolRepository.get_by_name(db, data.name):
            raise ConflictError(DUPLICATE_SCHOOL_MESSAGE)
        fields["name"] = data.name
    if "address" in data.model_fields_set:
        fields["address"] = data.address
    if data.capacity is not None:
        fields["capacity"] = data.capacity

    if fields:
        try:
            school = await SchoolRepository.update(db, school, **fields)
        except IntegrityError as e:
            await db.rollback()
            raise ConflictError(DUPLICATE_SCHOOL_MESSAGE) from e

    return (await _hydrate(db, [school]))[0]


@service_operation
async def delete_school(db: AsyncSession, school_id: str) -> SchoolDeleteResponse:
    """
    Delete a school and detach its users and students.

    The steps commit one after another; a failure part way leaves the
    earlier steps applied.
    """
    school = await _get_school_or_404(db, school_id)
    snapshot = (await _hydrate(db, [school]))[0]

    users_unassigned = await UserRepository.unassign_school(db, school.id)
    students_unassigned = await student_repository.unassign_school(db, school.id)
    await SchoolRepository.delete(db, school)

    logger.info(
        f"School {school_id} deleted: {users_unassigned} user(s) and "
        f"{students_unassigned} student(s) unassigned"
    )
    return SchoolDeleteResponse(
        school=snapshot,
        cleanup=SchoolCleanup(
            users_unassigned=users_unassigned,
            students_unassigned=students_unassigned,
        ),
        message="School deleted successfully",
    )
