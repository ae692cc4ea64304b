"""
Schools Router

School (tenant) management endpoints. Every endpoint requires a superadmin
short token.

Endpoints:
- POST /schools - Create a school
- GET /schools - List schools with search and pagination
- GET /schools/{school_id} - Get a school
- PATCH /schools/{school_id} - Update a school
- DELETE /schools/{school_id} - Delete a school and detach its users/students
"""

import logging

from fastapi import APIRouter, Depends, Path, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from schoolhub.core.auth import TokenContext, require_superadmin
from schoolhub.core.database import get_db
from schoolhub.core.responses import ok
from schoolhub.core.validators import ObjectId
from schoolhub.modules.schools import service
from schoolhub.modules.schools.schemas import SchoolCreate, SchoolUpdate
from schoolhub.modules.shared.schemas import ListQuery

logger = logging.getLogger(__name__)

router = APIRouter()

SchoolId = Path(..., description="School id")

SUPERADMIN_RESPONSES = {
    400: {"description": "Validation error"},
    401: {"description": "Unauthorized - invalid or missing token"},
    403: {"description": "Forbidden - not a superadmin"},
}


@router.post(
    "",
    status_code=status.HTTP_201_CREATED,
    summary="Create School",
    description="""
Create a school. The name is stored lower-cased and must be unique.
`capacity` defaults to 0.

**Access:** Superadmin only
""",
    responses={
        **SUPERADMIN_RESPONSES,
        409: {"description": "School name already exists"},
    },
)
async def create_school(
    data: SchoolCreate,
    db: AsyncSession = Depends(get_db),
    superadmin: TokenContext = Depends(require_superadmin),
):
    school = await service.create_school(db, superadmin, data)
    return ok({"school": school}, status.HTTP_201_CREATED)


@router.get(
    "",
    summary="List Schools",
    description="""
Paginated list of schools, newest first.

**Filters:**
- `search`: Case-insensitive match on name or address

**Access:** Superadmin only
""",
    responses=SUPERADMIN_RESPONSES,
)
async def list_schools(
    page: int = Query(1, ge=1, description="Page number"),
    limit: int = Query(10, ge=1, le=100, description="Page size"),
    search: str | None = Query(None, max_length=100, description="Search term"),
    db: AsyncSession = Depends(get_db),
    superadmin: TokenContext = Depends(require_superadmin),
):
    result = await service.list_schools(db, ListQuery(page=page, limit=limit, search=search))
    return ok(result)


@router.get(
    "/{school_id}",
    summary="Get School",
    responses={
        **SUPERADMIN_RESPONSES,
        404: {"description": "School not found"},
    },
)
async def get_school(
    school_id: ObjectId = SchoolId,
    db: AsyncSession = Depends(get_db),
    superadmin: TokenContext = Depends(require_superadmin),
):
    school = await service.get_school(db, school_id)
    return ok({"school": school})


@router.patch(
    "/{school_id}",
    summary="Update School",
    description="""
Update name, address or capacity. Renaming to a name held by another school
fails with 409.

**Access:** Superadmin only
""",
    responses={
        **SUPERADMIN_RESPONSES,
        404: {"description": "School not found"},
        409: {"description": "School name already exists"},
    },
)
async def update_school(
    data: SchoolUpdate,
    school_id: ObjectId = SchoolId,
    db: AsyncSession = Depends(get_db),
    superadmin: TokenContext = Depends(require_superadmin),
):
    school = await service.update_school(db, school_id, data)
    return ok({"school": school, "message": "School updated successfully"})


@router.delete(
    "/{school_id}",
    summary="Delete School",
    description="""
Delete a school. The school is removed from every user's assignments and
every student of the school loses its school reference; the response reports
both counts under `cleanup`.

**Access:** Superadmin only
""",
    responses={
        **SUPERADMIN_RESPONSES,
        404: {"description": "School not found"},
    },
)
async def delete_school(
    school_id: ObjectId = SchoolId,
    db: AsyncSession = Depends(get_db),
    superadmin: TokenContext = Depends(require_superadmin),
):
    result = await service.delete_school(db, school_id)
    logger.info(f"Superadmin {superadmin.user_id} deleted school {school_id}")
    return ok(result)
