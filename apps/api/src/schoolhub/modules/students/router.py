"""
Students Router

Student endpoints for school admins. Every endpoint requires a short token
and a ``schoolId`` (query string or JSON body) the token may act on.

Endpoints:
- POST /students - Enroll a student
- GET /students - List students with filters, pagination and status counts
- GET /students/{student_id} - Get a student
- PATCH /students/{student_id} - Update a student's profile
- DELETE /students/{student_id} - Delete a student
- PATCH /students/{student_id}/transfer - Transfer to another classroom
- PATCH /students/{student_id}/enrollment-status - Change enrollment status
- GET /students/{student_id}/transfers - Transfer history
"""

import logging

from fastapi import APIRouter, Depends, Path, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from schoolhub.core.auth import AdminScope, require_admin_scope
from schoolhub.core.database import get_db
from schoolhub.core.responses import ok
from schoolhub.core.validators import ObjectId
from schoolhub.modules.shared.schemas import ListQuery
from schoolhub.modules.students import service
from schoolhub.modules.students.models import EnrollmentStatus
from schoolhub.modules.students.schemas import (
    EnrollmentStatusRequest,
    StudentCreate,
    StudentUpdate,
    TransferRequest,
)

logger = logging.getLogger(__name__)

router = APIRouter()

StudentId = Path(..., description="Student id")

ADMIN_RESPONSES = {
    400: {"description": "Validation error"},
    401: {"description": "Unauthorized - missing token or schoolId"},
    403: {"description": "Forbidden - school outside the token's scope"},
}

NOT_FOUND_RESPONSE = {404: {"description": "Student not found or access denied"}}


# ============================================
# CRUD Endpoints
# ============================================


@router.post(
    "",
    status_code=status.HTTP_201_CREATED,
    summary="Enroll Student",
    description="""
Enroll a student in the school given by `schoolId`, optionally into one of
its classrooms. Names are stored lower-cased; the same name and date of birth
cannot be enrolled twice in a school.
""",
    responses={
        **ADMIN_RESPONSES,
        404: {"description": "School or classroom not found"},
        409: {"description": "Student already enrolled"},
    },
)
async def enroll_student(
    data: StudentCreate,
    db: AsyncSession = Depends(get_db),
    scope: AdminScope = Depends(require_admin_scope),
):
    result = await service.enroll_student(db, scope, data)
    return ok(result, status.HTTP_201_CREATED)


@router.get(
    "",
    summary="List Students",
    description="""
Paginated list of the school's students, newest first, with a count of
students per enrollment status in `enrollmentStats`.

**Filters:**
- `search`: Case-insensitive match on first or last name
- `enrollmentStatus`: enrolled, transferred, graduated or suspended
- `classroomId`: Only students of this classroom
""",
    responses={
        **ADMIN_RESPONSES,
        404: {"description": "Classroom filter not found"},
    },
)
async def list_students(
    page: int = Query(1, ge=1, description="Page number"),
    limit: int = Query(10, ge=1, le=100, description="Page size"),
    search: str | None = Query(None, max_length=100, description="Search term"),
    enrollment_status: EnrollmentStatus | None = Query(
        None,
        alias="enrollmentStatus",
        description="Filter by enrollment status",
    ),
    classroom_id: ObjectId | None = Query(
        None,
        alias="classroomId",
        description="Filter by classroom",
    ),
    db: AsyncSession = Depends(get_db),
    scope: AdminScope = Depends(require_admin_scope),
):
    result = await service.list_students(
        db,
        scope,
        ListQuery(page=page, limit=limit, search=search),
        enrollment_status=enrollment_status,
        classroom_id=classroom_id,
    )
    return ok(result)


@router.get(
    "/{student_id}",
    summary="Get Student",
    responses={**ADMIN_RESPONSES, **NOT_FOUND_RESPONSE},
)
async def get_student(
    student_id: ObjectId = StudentId,
    db: AsyncSession = Depends(get_db),
    scope: AdminScope = Depends(require_admin_scope),
):
    student = await service.get_student(db, scope, student_id)
    return ok({"student": student})


@router.patch(
    "/{student_id}",
    summary="Update Student",
    responses={
        **ADMIN_RESPONSES,
        **NOT_FOUND_RESPONSE,
        409: {"description": "Another student has the same name and date of birth"},
    },
)
async def update_student(
    data: StudentUpdate,
    student_id: ObjectId = StudentId,
    db: AsyncSession = Depends(get_db),
    scope: AdminScope = Depends(require_admin_scope),
):
    result = await service.update_student(db, scope, student_id, data)
    return ok(result)


@router.delete(
    "/{student_id}",
    summary="Delete Student",
    responses={**ADMIN_RESPONSES, **NOT_FOUND_RESPONSE},
)
async def delete_student(
    student_id: ObjectId = StudentId,
    db: AsyncSession = Depends(get_db),
    scope: AdminScope = Depends(require_admin_scope),
):
    result = await service.delete_student(db, scope, student_id)
    return ok(result)


# ============================================
# Enrollment Endpoints
# ============================================


@router.patch(
    "/{student_id}/transfer",
    summary="Transfer Student",
    description="""
Move a student to another classroom of the same school and append a record
to the transfer history. An enrolled student who already had a classroom
becomes `transferred`; other statuses are kept. Graduated students cannot be
transferred.
""",
    responses={
        **ADMIN_RESPONSES,
        404: {"description": "Student or classroom not found"},
    },
)
async def transfer_student(
    data: TransferRequest,
    student_id: ObjectId = StudentId,
    db: AsyncSession = Depends(get_db),
    scope: AdminScope = Depends(require_admin_scope),
):
    result = await service.transfer_student(db, scope, student_id, data.classroom_id)
    return ok(result)


@router.patch(
    "/{student_id}/enrollment-status",
    summary="Update Enrollment Status",
    description="Set the enrollment status. Graduating a student clears its classroom.",
    responses={**ADMIN_RESPONSES, **NOT_FOUND_RESPONSE},
)
async def update_enrollment_status(
    data: EnrollmentStatusRequest,
    student_id: ObjectId = StudentId,
    db: AsyncSession = Depends(get_db),
    scope: AdminScope = Depends(require_admin_scope),
):
    result = await service.update_enrollment_status(
        db, scope, student_id, data.enrollment_status
    )
    return ok(result)


@router.get(
    "/{student_id}/transfers",
    summary="Get Transfer History",
    responses={**ADMIN_RESPONSES, **NOT_FOUND_RESPONSE},
)
async def get_transfer_history(
    student_id: ObjectId = StudentId,
    db: AsyncSession = Depends(get_db),
    scope: AdminScope = Depends(require_admin_scope),
):
    result = await service.get_transfer_history(db, scope, student_id)
    return ok(result)
