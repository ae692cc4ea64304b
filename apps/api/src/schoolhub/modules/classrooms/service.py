"""
Classroom Service Layer

Business rules for classrooms inside one school. The school comes from the
admin scope; a classroom outside that school is reported as not found.

Resource lists are always stored normalised (trimmed, lower-cased,
de-duplicated in first-seen order).
"""

import logging

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from schoolhub.core.auth import AdminScope
from schoolhub.core.errors import (
    BusinessRuleError,
    ConflictError,
    NotFoundError,
    service_operation,
)
from schoolhub.core.validators import normalize_resources, require_object_id
from schoolhub.modules.classrooms.models import Classroom
from schoolhub.modules.classrooms.repository import ClassroomRepository
from schoolhub.modules.classrooms.schemas import (
    AddResourcesResponse,
    ClassroomCleanup,
    ClassroomCreate,
    ClassroomDeleteResponse,
    ClassroomListResponse,
    ClassroomResponse,
    ClassroomUpdate,
    RemoveResourcesResponse,
    ReplaceResourcesResponse,
)
from schoolhub.modules.schools.repository import SchoolRepository
from schoolhub.modules.shared.schemas import ListQuery, Pagination, SchoolRef
from schoolhub.modules.students import repository as student_repository

logger = logging.getLogger(__name__)

DUPLICATE_CLASSROOM_MESSAGE = "Classroom with this name already exists in this school"
NOT_FOUND_MESSAGE = "Classroom not found or access denied"


async def _hydrate(
    db: AsyncSession,
    classrooms: list[Classroom],
    *,
    with_student_count: bool = False,
) -> list[ClassroomResponse]:
    """Expand school_id into {id, name, address}."""
    schools = await SchoolRepository.get_by_ids(db, [c.school_id for c in classrooms])

    hydrated = []
    for classroom in classrooms:
        school = schools.get(classroom.school_id)
        response = ClassroomResponse(
            id=classroom.id,
            school_id=classroom.school_id,
            school=SchoolRef.model_validate(school) if school else None,
            name=classroom.name,
            capacity=classroom.capacity,
            resources=list(classroom.resources or []),
            created_at=classroom.created_at,
            updated_at=classroom.updated_at,
        )
        if with_student_count:
            response.student_count = await student_repository.count_in_classroom(db, classroom.id)
        hydrated.append(response)
    return hydrated


async def _hydrate_one(db: AsyncSession, classroom: Classroom, **kwargs) -> ClassroomResponse:
    return (await _hydrate(db, [classroom], **kwargs))[0]


def _school_id(scope: AdminScope) -> str:
    return require_object_id(scope.school_id, "schoolId")


async def _get_classroom_or_404(
    db: AsyncSession,
    scope: AdminScope,
    classroom_id: str,
) -> Classroom:
    classroom = await ClassroomRepository.get_in_school(
        db,
        _school_id(scope),
        require_object_id(classroom_id, "classroomId"),
    )
    if not classroom:
        logger.warning(f"Classroom {classroom_id} not found in school {scope.school_id}")
        raise NotFoundError(NOT_FOUND_MESSAGE)
    return classroom


# ============================================
# CRUD
# ============================================


@service_operation
async def create_classroom(
    db: AsyncSession,
    scope: AdminScope,
    data: ClassroomCreate,
) -> ClassroomResponse:
    """
    Create a classroom in the scoped school.

    Raises:
        NotFoundError: School does not exist
        ConflictError: Name already used in this school
    """
    school_id = _school_id(scope)
    if not await SchoolRepository.get_by_id(db, school_id):
        raise NotFoundError("School not found")

    if await ClassroomRepository.get_by_name(db, school_id, data.name):
        logger.warning(f"Duplicate classroom '{data.name}' rejected in school {school_id}")
        raise ConflictError(DUPLICATE_CLASSROOM_MESSAGE)

    try:
        classroom = await ClassroomRepository.create(
            db,
            school_id=school_id,
            name=data.name,
            capacity=data.capacity,
            resources=data.resources,
        )
    except IntegrityError as e:
        await db.rollback()
        raise ConflictError(DUPLICATE_CLASSROOM_MESSAGE) from e

    return await _hydrate_one(db, classroom)


@service_operation
async def list_classrooms(
    db: AsyncSession,
    scope: AdminScope,
    query: ListQuery,
) -> ClassroomListResponse:
    classrooms, total = await ClassroomRepository.list_page(
        db,
        _school_id(scope),
        offset=query.offset,
        limit=query.limit,
        search=query.search or None,
    )
    return ClassroomListResponse(
        classrooms=await _hydrate(db, classrooms),
        pagination=Pagination.build(query.page, query.limit, total),
    )


@service_operation
async def get_classroom(
    db: AsyncSession,
    scope: AdminScope,
    classroom_id: str,
) -> ClassroomResponse:
    classroom = await _get_classroom_or_404(db, scope, classroom_id)
    return await _hydrate_one(db, classroom, with_student_count=True)


@service_operation
async def update_classroom(
    db: AsyncSession,
    scope: AdminScope,
    classroom_id: str,
    data: ClassroomUpdate,
) -> ClassroomResponse:
    """
    Rename and/or resize a classroom.

    Raises:
        NotFoundError: Classroom not in the scoped school
        ConflictError: New name already used in this school
    """
    classroom = await _get_classroom_or_404(db, scope, classroom_id)

    fields = {}
    if data.name is not None and data.name != classroom.name:
        if await ClassroomRepository.get_by_name(
            db, classroom.school_id, data.name, exclude_id=classroom.id
        ):
            raise ConflictError(DUPLICATE_CLASSROOM_MESSAGE)
        fields["name"] = data.name
    if data.capacity is not None:
        fields["capacity"] = data.capacity

    if fields:
        try:
            classroom = await ClassroomRepository.update(db, classroom, **fields)
        except IntegrityError as e:
            await db.rollback()
            raise ConflictError(DUPLICATE_CLASSROOM_MESSAGE) from e

    return await _hydrate_one(db, classroom)


@service_operation
async def delete_classroom(
    db: AsyncSession,
    scope: AdminScope,
    classroom_id: str,
) -> ClassroomDeleteResponse:
    """Unassign the classroom's students, then delete it."""
    classroom = await _get_classroom_or_404(db, scope, classroom_id)
    snapshot = await _hydrate_one(db, classroom)

    students_unassigned = await student_repository.unassign_classroom(db, classroom.id)
    await ClassroomRepository.delete(db, classroom)

    logger.info(f"Classroom {classroom.id} deleted, {students_unassigned} student(s) unassigned")
    return ClassroomDeleteResponse(
        classroom=snapshot,
        cleanup=ClassroomCleanup(students_unassigned=students_unassigned),
        message="Classroom deleted successfully",
    )


# ============================================
# Resources
# ============================================


@service_operation
async def add_resources(
    db: AsyncSession,
    scope: AdminScope,
    classroom_id: str,
    resources: list,
) -> AddResourcesResponse:
    """
    Union resources into the classroom's list.

    Raises:
        BusinessRuleError: Nothing left after normalisation
        NotFoundError: Classroom not in the scoped school
    """
    added = normalize_resources(resources)
    if not added:
        raise BusinessRuleError("No valid resources provided")

    classroom = await _get_classroom_or_404(db, scope, classroom_id)
    merged = normalize_resources([*classroom.resources, *added])
    classroom = await ClassroomRepository.set_resources(db, classroom, merged)

    return AddResourcesResponse(
        classroom=await _hydrate_one(db, classroom),
        added_resources=added,
        message=f"Added {len(added)} resource(s) successfully",
    )


@service_operation
async def remove_resources(
    db: AsyncSession,
    scope: AdminScope,
    classroom_id: str,
    resources: list,
) -> RemoveResourcesResponse:
    """Remove resources; entries not present are ignored."""
    removed = normalize_resources(resources)

    classroom = await _get_classroom_or_404(db, scope, classroom_id)
    remaining = [resource for resource in classroom.resources if resource not in removed]
    classroom = await ClassroomRepository.set_resources(db, classroom, remaining)

    return RemoveResourcesResponse(
        classroom=await _hydrate_one(db, classroom),
        removed_resources=removed,
        message="Resources removed successfully",
    )


@service_operation
async def replace_resources(
    db: AsyncSession,
    scope: AdminScope,
    classroom_id: str,
    resources: list,
) -> ReplaceResourcesResponse:
    """Replace the resource list; an empty list clears it."""
    new_resources = normalize_resources(resources)

    classroom = await _get_classroom_or_404(db, scope, classroom_id)
    classroom = await ClassroomRepository.set_resources(db, classroom, new_resources)

    return ReplaceResourcesResponse(
        classroom=await _hydrate_one(db, classroom),
        new_resources=new_resources,
        message="Resources replaced successfully",
    )
