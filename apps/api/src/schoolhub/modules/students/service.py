"""
Student Service Layer

Business rules for students inside one school.

Enrollment lifecycle:
- enroll: status ``enrolled``, optional classroom in the same school
- transfer: move to another classroom of the school and append a history
  record. A student who already had a classroom and is ``enrolled`` becomes
  ``transferred``; any other status is kept. Graduated students cannot move.
- status change: overwrite; ``graduated`` also clears the classroom

Student identity (school, first name, last name, date of birth) is unique.
"""

import logging
from datetime import UTC, datetime

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from schoolhub.core.auth import AdminScope
from schoolhub.core.errors import (
    BusinessRuleError,
    ConflictError,
    NotFoundError,
    service_operation,
)
from schoolhub.core.validators import require_object_id
from schoolhub.modules.classrooms.models import Classroom
from schoolhub.modules.classrooms.repository import ClassroomRepository
from schoolhub.modules.schools.repository import SchoolRepository
from schoolhub.modules.shared.schemas import ClassroomRef, ListQuery, Pagination, SchoolRef
from schoolhub.modules.students import repository
from schoolhub.modules.students.models import EnrollmentStatus, Student
from schoolhub.modules.students.schemas import (
    StudentCreate,
    StudentListResponse,
    StudentMessageResponse,
    StudentResponse,
    StudentSummary,
    StudentUpdate,
    TransferHistoryResponse,
    TransferRecord,
    TransferResponse,
)

logger = logging.getLogger(__name__)

DUPLICATE_STUDENT_MESSAGE = (
    "Student with the same name and date of birth already exists in this school"
)
NOT_FOUND_MESSAGE = "Student not found or access denied"
FOREIGN_CLASSROOM_MESSAGE = "Classroom not found or does not belong to your school"


# ============================================
# Hydration
# ============================================


def _transfer_records(
    history: list[dict],
    classrooms: dict[str, Classroom],
) -> list[TransferRecord]:
    records = []
    for entry in history or []:
        from_classroom = classrooms.get(entry.get("from_classroom_id"))
        to_classroom = classrooms.get(entry.get("to_classroom_id"))
        records.append(
            TransferRecord(
                from_classroom_id=entry.get("from_classroom_id"),
                to_classroom_id=entry["to_classroom_id"],
                transferred_at=entry["transferred_at"],
                from_classroom=ClassroomRef.model_validate(from_classroom)
                if from_classroom
                else None,
                to_classroom=ClassroomRef.model_validate(to_classroom) if to_classroom else None,
            )
        )
    return records


def _referenced_classroom_ids(students: list[Student]) -> list[str]:
    ids = []
    for student in students:
        if student.classroom_id:
            ids.append(student.classroom_id)
        for entry in student.transfer_history or []:
            ids.extend(
                classroom_id
                for classroom_id in (entry.get("from_classroom_id"), entry.get("to_classroom_id"))
                if classroom_id
            )
    return ids


async def _hydrate(db: AsyncSession, students: list[Student]) -> list[StudentResponse]:
    """Expand school, classroom and transfer history references."""
    schools = await SchoolRepository.get_by_ids(
        db, [student.school_id for student in students if student.school_id]
    )
    classrooms = await ClassroomRepository.get_by_ids(db, _referenced_classroom_ids(students))

    hydrated = []
    for student in students:
        school = schools.get(student.school_id)
        classroom = classrooms.get(student.classroom_id)
        hydrated.append(
            StudentResponse(
                id=student.id,
                school_id=student.school_id,
                school=SchoolRef.model_validate(school) if school else None,
                classroom_id=student.classroom_id,
                classroom=ClassroomRef.model_validate(classroom) if classroom else None,
                first_name=student.first_name,
                last_name=student.last_name,
                date_of_birth=student.date_of_birth,
                enrollment_status=student.enrollment_status,
                transfer_history=_transfer_records(student.transfer_history, classrooms),
                created_at=student.created_at,
                updated_at=student.updated_at,
            )
        )
    return hydrated


async def _hydrate_one(db: AsyncSession, student: Student) -> StudentResponse:
    return (await _hydrate(db, [student]))[0]


# ============================================
# Lookups
# ============================================


def _school_id(scope: AdminScope) -> str:
    return require_object_id(scope.school_id, "schoolId")


async def _get_student_or_404(db: AsyncSession, scope: AdminScope, student_id: str) -> Student:
    student = await repository.get_in_school(
        db,
        _school_id(scope),
        require_object_id(student_id, "studentId"),
    )
    if not student:
        logger.warning(f"Student {student_id} not found in school {scope.school_id}")
        raise NotFoundError(NOT_FOUND_MESSAGE)
    return student


async def _get_school_classroom_or_404(
    db: AsyncSession,
    school_id: str,
    classroom_id: str,
    message: str = FOREIGN_CLASSROOM_MESSAGE,
) -> Classroom:
    classroom = await ClassroomRepository.get_in_school(
        db, school_id, require_object_id(classroom_id, "classroomId")
    )
    if not classroom:
        raise NotFoundError(message)
    return classroom


# ============================================
# Operations
# ============================================


@service_operation
async def enroll_student(
    db: AsyncSession,
    scope: AdminScope,
    data: StudentCreate,
) -> StudentMessageResponse:
    """
    Enroll a student in the scoped school.

    Raises:
        NotFoundError: School missing, or classroom not in the school
        ConflictError: Same identity already enrolled in the school
    """
    school_id = _school_id(scope)
    if not await SchoolRepository.get_by_id(db, school_id):
        raise NotFoundError("School not found")

    if data.classroom_id:
        await _get_school_classroom_or_404(db, school_id, data.classroom_id)

    if await repository.find_duplicate(
        db,
        school_id=school_id,
        first_name=data.first_name,
        last_name=data.last_name,
        date_of_birth=data.date_of_birth,
    ):
        logger.warning(f"Duplicate student rejected in school {school_id}")
        raise ConflictError(DUPLICATE_STUDENT_MESSAGE)

    try:
        student = await repository.create(
            db,
            school_id=school_id,
            first_name=data.first_name,
            last_name=data.last_name,
            date_of_birth=data.date_of_birth,
            classroom_id=data.classroom_id,
        )
    except IntegrityError as e:
        await db.rollback()
        raise ConflictError(DUPLICATE_STUDENT_MESSAGE) from e

    return StudentMessageResponse(
        student=await _hydrate_one(db, student),
        message="Student enrolled successfully",
    )


@service_operation
async def list_students(
    db: AsyncSession,
    scope: AdminScope,
    query: ListQuery,
    *,
    enrollment_status: EnrollmentStatus | None = None,
    classroom_id: str | None = None,
) -> StudentListResponse:
    """
    Page through the school's students.

    Raises:
        NotFoundError: Classroom filter names a classroom outside the school
    """
    school_id = _school_id(scope)
    if classroom_id:
        await _get_school_classroom_or_404(
            db, school_id, classroom_id, "Classroom not found or access denied"
        )

    students, total = await repository.list_page(
        db,
        school_id,
        offset=query.offset,
        limit=query.limit,
        search=query.search or None,
        enrollment_status=enrollment_status,
        classroom_id=classroom_id,
    )
    stats = await repository.count_by_status(db, school_id)

    return StudentListResponse(
        students=await _hydrate(db, students),
        pagination=Pagination.build(query.page, query.limit, total),
        enrollment_stats={status.value: count for status, count in stats.items()},
    )


@service_operation
async def get_student(db: AsyncSession, scope: AdminScope, student_id: str) -> StudentResponse:
    student = await _get_student_or_404(db, scope, student_id)
    return await _hydrate_one(db, student)


@service_operation
async def update_student(
    db: AsyncSession,
    scope: AdminScope,
    student_id: str,
    data: StudentUpdate,
) -> StudentMessageResponse:
    """
    Update name and/or date of birth.

    Raises:
        NotFoundError: Student not in the scoped school
        ConflictError: Another student already has the resulting identity
    """
    student = await _get_student_or_404(db, scope, student_id)

    fields = {
        field: value
        for field, value in (
            ("first_name", data.first_name),
            ("last_name", data.last_name),
            ("date_of_birth", data.date_of_birth),
        )
        if value is not None and value != getattr(student, field)
    }

    if fields:
        if await repository.find_duplicate(
            db,
            school_id=student.school_id,
            first_name=fields.get("first_name", student.first_name),
            last_name=fields.get("last_name", student.last_name),
            date_of_birth=fields.get("date_of_birth", student.date_of_birth),
            exclude_id=student.id,
        ):
            raise ConflictError(DUPLICATE_STUDENT_MESSAGE)

        try:
            student = await repository.update_fields(db, student, **fields)
        except IntegrityError as e:
            await db.rollback()
            raise ConflictError(DUPLICATE_STUDENT_MESSAGE) from e

    return StudentMessageResponse(
        student=await _hydrate_one(db, student),
        message="Student profile updated successfully",
    )


@service_operation
async def delete_student(
    db: AsyncSession,
    scope: AdminScope,
    student_id: str,
) -> StudentMessageResponse:
    """Delete a student together with its transfer history."""
    student = await _get_student_or_404(db, scope, student_id)
    snapshot = await _hydrate_one(db, student)

    await repository.delete(db, student)

    return StudentMessageResponse(student=snapshot, message="Student deleted successfully")


@service_operation
async def transfer_student(
    db: AsyncSession,
    scope: AdminScope,
    student_id: str,
    classroom_id: str,
) -> TransferResponse:
    """
    Move a student to another classroom of the school.

    Raises:
        NotFoundError: Student or target classroom not in the scoped school
        BusinessRuleError: Student graduated, or already in the classroom
    """
    student = await _get_student_or_404(db, scope, student_id)

    if student.enrollment_status == EnrollmentStatus.GRADUATED:
        raise BusinessRuleError("Graduated students cannot be transferred")

    classroom = await _get_school_classroom_or_404(db, student.school_id, classroom_id)

    if student.classroom_id == classroom.id:
        raise BusinessRuleError("Student is already in this classroom")

    status = student.enrollment_status
    if student.classroom_id and status == EnrollmentStatus.ENROLLED:
        status = EnrollmentStatus.TRANSFERRED

    record = {
        "from_classroom_id": student.classroom_id,
        "to_classroom_id": classroom.id,
        "transferred_at": datetime.now(UTC).isoformat(),
    }
    student = await repository.append_transfer(
        db,
        student,
        record,
        classroom_id=classroom.id,
        enrollment_status=status,
    )

    hydrated = await _hydrate_one(db, student)
    return TransferResponse(
        student=hydrated,
        transfer=hydrated.transfer_history[-1],
        message="Student transferred successfully",
    )


@service_operation
async def update_enrollment_status(
    db: AsyncSession,
    scope: AdminScope,
    student_id: str,
    enrollment_status: EnrollmentStatus,
) -> StudentMessageResponse:
    """Overwrite the enrollment status; graduation clears the classroom."""
    student = await _get_student_or_404(db, scope, student_id)

    fields: dict = {"enrollment_status": enrollment_status}
    if enrollment_status == EnrollmentStatus.GRADUATED:
        fields["classroom_id"] = None

    student = await repository.update_fields(db, student, **fields)

    return StudentMessageResponse(
        student=await _hydrate_one(db, student),
        message=f"Enrollment status updated to {enrollment_status.value}",
    )


@service_operation
async def get_transfer_history(
    db: AsyncSession,
    scope: AdminScope,
    student_id: str,
) -> TransferHistoryResponse:
    """Student summary plus its transfers in the order they happened."""
    student = await _get_student_or_404(db, scope, student_id)
    classrooms = await ClassroomRepository.get_by_ids(db, _referenced_classroom_ids([student]))

    return TransferHistoryResponse(
        student=StudentSummary.model_validate(student),
        transfer_history=_transfer_records(student.transfer_history, classrooms),
    )
