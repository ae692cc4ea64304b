"""
Student Repository

Database operations for students, including the bulk updates run when a
classroom or school is deleted.
"""

import logging
from datetime import date

from sqlalchemy import func, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from schoolhub.core.validators import like_pattern
from schoolhub.modules.students.models import EnrollmentStatus, Student

logger = logging.getLogger(__name__)


async def create(
    db: AsyncSession,
    *,
    school_id: str,
    first_name: str,
    last_name: str,
    date_of_birth: date,
    classroom_id: str | None,
) -> Student:
    """Create a new enrolled student."""
    student = Student(
        school_id=school_id,
        classroom_id=classroom_id,
        first_name=first_name,
        last_name=last_name,
        date_of_birth=date_of_birth,
        enrollment_status=EnrollmentStatus.ENROLLED,
        transfer_history=[],
    )

    db.add(student)
    await db.commit()
    await db.refresh(student)

    logger.info(f"Enrolled student {student.id} in school {school_id}")
    return student


async def get_in_school(db: AsyncSession, school_id: str, student_id: str) -> Student | None:
    """Student by id, only if it belongs to the school."""
    result = await db.execute(
        select(Student).where(Student.id == student_id, Student.school_id == school_id)
    )
    return result.scalar_one_or_none()


async def find_duplicate(
    db: AsyncSession,
    *,
    school_id: str,
    first_name: str,
    last_name: str,
    date_of_birth: date,
    exclude_id: str | None = None,
) -> Student | None:
    """Find another student with the same identity in the school."""
    conditions = [
        Student.school_id == school_id,
        Student.first_name == first_name,
        Student.last_name == last_name,
        Student.date_of_birth == date_of_birth,
    ]
    if exclude_id:
        conditions.append(Student.id != exclude_id)

    result = await db.execute(select(Student).where(*conditions).limit(1))
    return result.scalar_one_or_none()


async def list_page(
    db: AsyncSession,
    school_id: str,
    *,
    offset: int,
    limit: int,
    search: str | None = None,
    enrollment_status: EnrollmentStatus | None = None,
    classroom_id: str | None = None,
) -> tuple[list[Student], int]:
    """
    Page through a school's students, newest first.

    Returns:
        Tuple of (students on the page, total matching)
    """
    conditions = [Student.school_id == school_id]
    if search:
        pattern = like_pattern(search)
        conditions.append(
            or_(
                Student.first_name.ilike(pattern, escape="\\"),
                Student.last_name.ilike(pattern, escape="\\"),
            )
        )
    if enrollment_status:
        conditions.append(Student.enrollment_status == enrollment_status)
    if classroom_id:
        conditions.append(Student.classroom_id == classroom_id)

    total = await db.scalar(select(func.count()).select_from(Student).where(*conditions))
    result = await db.execute(
        select(Student)
        .where(*conditions)
        .order_by(Student.created_at.desc(), Student.id.desc())
        .offset(offset)
        .limit(limit)
    )
    return list(result.scalars().all()), total or 0


async def count_by_status(db: AsyncSession, school_id: str) -> dict[EnrollmentStatus, int]:
    """Number of students in each enrollment status; statuses with none are 0."""
    result = await db.execute(
        select(Student.enrollment_status, func.count())
        .where(Student.school_id == school_id)
        .group_by(Student.enrollment_status)
    )
    counts = {status: 0 for status in EnrollmentStatus}
    for status, count in result.all():
        counts[EnrollmentStatus(status)] = count
    return counts


async def count_in_classroom(db: AsyncSession, classroom_id: str) -> int:
    return (
        await db.scalar(
            select(func.count()).select_from(Student).where(Student.classroom_id == classroom_id)
        )
        or 0
    )


async def update_fields(db: AsyncSession, student: Student, **fields) -> Student:
    for field, value in fields.items():
        setattr(student, field, value)

    await db.commit()
    await db.refresh(student)

    logger.info(f"Updated student {student.id}: {sorted(fields)}")
    return student


async def append_transfer(
    db: AsyncSession,
    student: Student,
    record: dict,
    *,
    classroom_id: str,
    enrollment_status: EnrollmentStatus,
) -> Student:
    """Move a student to a classroom and append the transfer record."""
    student.classroom_id = classroom_id
    student.enrollment_status = enrollment_status
    # Assign a new list so the JSON column change is detected
    student.transfer_history = [*(student.transfer_history or []), record]

    await db.commit()
    await db.refresh(student)

    logger.info(
        f"Transferred student {student.id}: "
        f"{record['from_classroom_id']} -> {record['to_classroom_id']}"
    )
    return student


async def unassign_classroom(db: AsyncSession, classroom_id: str) -> int:
    """
    Clear classroom_id on every student of a classroom.

    Returns:
        Number of students updated
    """
    result = await db.execute(
        update(Student)
        .where(Student.classroom_id == classroom_id)
        .values(classroom_id=None)
        .execution_options(synchronize_session="evaluate")
    )
    await db.commit()
    return result.rowcount or 0


async def unassign_school(db: AsyncSession, school_id: str) -> int:
    """
    Clear school_id on every student of a school.

    Returns:
        Number of students updated
    """
    result = await db.execute(
        update(Student)
        .where(Student.school_id == school_id)
        .values(school_id=None)
        .execution_options(synchronize_session="evaluate")
    )
    await db.commit()
    return result.rowcount or 0


async def delete(db: AsyncSession, student: Student) -> None:
    await db.delete(student)
    await db.commit()

    logger.info(f"Deleted student {student.id}")
