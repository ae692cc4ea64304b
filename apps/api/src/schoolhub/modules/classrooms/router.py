"""
Classrooms Router

Classroom endpoints for school admins. Every endpoint requires a short token
and a ``schoolId`` (query string or JSON body) the token may act on.

Endpoints:
- POST /classrooms - Create a classroom
- GET /classrooms - List classrooms with search and pagination
- GET /classrooms/{classroom_id} - Get a classroom with its student count
- PATCH /classrooms/{classroom_id} - Rename/resize a classroom
- DELETE /classrooms/{classroom_id} - Delete a classroom and unassign its students
- POST /classrooms/{classroom_id}/resources - Add resources
- DELETE /classrooms/{classroom_id}/resources - Remove resources
- PUT /classrooms/{classroom_id}/resources - Replace resources
"""

import logging

from fastapi import APIRouter, Depends, Path, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from schoolhub.core.auth import AdminScope, require_admin_scope
from schoolhub.core.database import get_db
from schoolhub.core.responses import ok
from schoolhub.core.validators import ObjectId
from schoolhub.modules.classrooms import service
from schoolhub.modules.classrooms.schemas import (
    ClassroomCreate,
    ClassroomUpdate,
    ReplaceResourcesRequest,
    ResourcesRequest,
)
from schoolhub.modules.shared.schemas import ListQuery

logger = logging.getLogger(__name__)

router = APIRouter()

ClassroomId = Path(..., description="Classroom id")

ADMIN_RESPONSES = {
    400: {"description": "Validation error"},
    401: {"description": "Unauthorized - missing token or schoolId"},
    403: {"description": "Forbidden - school outside the token's scope"},
}

NOT_FOUND_RESPONSE = {404: {"description": "Classroom not found or access denied"}}


# ============================================
# CRUD Endpoints
# ============================================


@router.post(
    "",
    status_code=status.HTTP_201_CREATED,
    summary="Create Classroom",
    description="""
Create a classroom in the school given by `schoolId`. The name is stored
lower-cased and must be unique within the school. Resources are trimmed,
lower-cased and de-duplicated.
""",
    responses={
        **ADMIN_RESPONSES,
        404: {"description": "School not found"},
        409: {"description": "Classroom name already exists in this school"},
    },
)
async def create_classroom(
    data: ClassroomCreate,
    db: AsyncSession = Depends(get_db),
    scope: AdminScope = Depends(require_admin_scope),
):
    classroom = await service.create_classroom(db, scope, data)
    return ok({"classroom": classroom}, status.HTTP_201_CREATED)


@router.get(
    "",
    summary="List Classrooms",
    description="""
Paginated list of the school's classrooms, newest first.

**Filters:**
- `search`: Case-insensitive match on name or any resource
""",
    responses=ADMIN_RESPONSES,
)
async def list_classrooms(
    page: int = Query(1, ge=1, description="Page number"),
    limit: int = Query(10, ge=1, le=100, description="Page size"),
    search: str | None = Query(None, max_length=100, description="Search term"),
    db: AsyncSession = Depends(get_db),
    scope: AdminScope = Depends(require_admin_scope),
):
    result = await service.list_classrooms(
        db, scope, ListQuery(page=page, limit=limit, search=search)
    )
    return ok(result)


@router.get(
    "/{classroom_id}",
    summary="Get Classroom",
    responses={**ADMIN_RESPONSES, **NOT_FOUND_RESPONSE},
)
async def get_classroom(
    classroom_id: ObjectId = ClassroomId,
    db: AsyncSession = Depends(get_db),
    scope: AdminScope = Depends(require_admin_scope),
):
    classroom = await service.get_classroom(db, scope, classroom_id)
    return ok({"classroom": classroom})


@router.patch(
    "/{classroom_id}",
    summary="Update Classroom",
    responses={
        **ADMIN_RESPONSES,
        **NOT_FOUND_RESPONSE,
        409: {"description": "Classroom name already exists in this school"},
    },
)
async def update_classroom(
    data: ClassroomUpdate,
    classroom_id: ObjectId = ClassroomId,
    db: AsyncSession = Depends(get_db),
    scope: AdminScope = Depends(require_admin_scope),
):
    classroom = await service.update_classroom(db, scope, classroom_id, data)
    return ok({"classroom": classroom, "message": "Classroom updated successfully"})


@router.delete(
    "/{classroom_id}",
    summary="Delete Classroom",
    description="""
Delete a classroom. Its students stay enrolled but lose their classroom;
`cleanup.studentsUnassigned` reports how many.
""",
    responses={**ADMIN_RESPONSES, **NOT_FOUND_RESPONSE},
)
async def delete_classroom(
    classroom_id: ObjectId = ClassroomId,
    db: AsyncSession = Depends(get_db),
    scope: AdminScope = Depends(require_admin_scope),
):
    result = await service.delete_classroom(db, scope, classroom_id)
    return ok(result)


# ============================================
# Resource Endpoints
# ============================================


@router.post(
    "/{classroom_id}/resources",
    summary="Add Resources",
    responses={**ADMIN_RESPONSES, **NOT_FOUND_RESPONSE},
)
async def add_resources(
    data: ResourcesRequest,
    classroom_id: ObjectId = ClassroomId,
    db: AsyncSession = Depends(get_db),
    scope: AdminScope = Depends(require_admin_scope),
):
    result = await service.add_resources(db, scope, classroom_id, data.resources)
    return ok(result)


@router.delete(
    "/{classroom_id}/resources",
    summary="Remove Resources",
    responses={**ADMIN_RESPONSES, **NOT_FOUND_RESPONSE},
)
async def remove_resources(
    data: ResourcesRequest,
    classroom_id: ObjectId = ClassroomId,
    db: AsyncSession = Depends(get_db),
    scope: AdminScope = Depends(require_admin_scope),
):
    result = await service.remove_resources(db, scope, classroom_id, data.resources)
    return ok(result)


@router.put(
    "/{classroom_id}/resources",
    summary="Replace Resources",
    description="Replace the resource list. An empty list clears it.",
    responses={**ADMIN_RESPONSES, **NOT_FOUND_RESPONSE},
)
async def replace_resources(
    data: ReplaceResourcesRequest,
    classroom_id: ObjectId = ClassroomId,
    db: AsyncSession = Depends(get_db),
    scope: AdminScope = Depends(require_admin_scope),
):
    result = await service.replace_resources(db, scope, classroom_id, data.resources)
    return ok(result)
