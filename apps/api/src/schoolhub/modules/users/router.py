"""
Users Router

User management endpoints. Every endpoint requires a superadmin short token.

Endpoints:
- POST /users - Create a user
- PATCH /users/{user_id}/schools - Assign schools to a user
- PATCH /users/{user_id}/role - Change a user's role
"""

import logging

from fastapi import APIRouter, Depends, Path, status
from sqlalchemy.ext.asyncio import AsyncSession

from schoolhub.core.auth import TokenContext, require_superadmin
from schoolhub.core.database import get_db
from schoolhub.core.responses import ok
from schoolhub.core.validators import ObjectId
from schoolhub.modules.users import service
from schoolhub.modules.users.schemas import (
    AssignSchoolsRequest,
    UpdateRoleRequest,
    UserCreate,
    UserMessageResponse,
    UserResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter()

UserId = Path(..., description="User id")

SUPERADMIN_RESPONSES = {
    400: {"description": "Validation error or business rule violation"},
    401: {"description": "Unauthorized - invalid or missing token"},
    403: {"description": "Forbidden - not a superadmin"},
}


@router.post(
    "",
    status_code=status.HTTP_201_CREATED,
    summary="Create User",
    description="""
Create an admin or superadmin account.

Username and email are stored lower-cased and must be unique. Every id in
`schoolIds` must name an existing school. The password is stored as a bcrypt
hash and never returned.

**Access:** Superadmin only
""",
    responses={
        **SUPERADMIN_RESPONSES,
        409: {"description": "Username or email already exists"},
    },
)
async def create_user(
    data: UserCreate,
    db: AsyncSession = Depends(get_db),
    superadmin: TokenContext = Depends(require_superadmin),
):
    user = await service.create_user(db, data)
    logger.info(f"Superadmin {superadmin.user_id} created user {user.id}")
    return ok({"user": UserResponse.model_validate(user)}, status.HTTP_201_CREATED)


@router.patch(
    "/{user_id}/schools",
    summary="Assign Schools",
    description="""
Append schools to a user's assignments. Schools already assigned are skipped;
the request fails if none are new.

**Access:** Superadmin only
""",
    responses={
        **SUPERADMIN_RESPONSES,
        404: {"description": "User not found"},
    },
)
async def assign_schools(
    data: AssignSchoolsRequest,
    user_id: ObjectId = UserId,
    db: AsyncSession = Depends(get_db),
    superadmin: TokenContext = Depends(require_superadmin),
):
    user, added = await service.assign_schools(db, user_id, data.school_ids)
    return ok(
        UserMessageResponse(
            user=UserResponse.model_validate(user),
            message=f"{added} school(s) added to user successfully",
        )
    )


@router.patch(
    "/{user_id}/role",
    summary="Update User Role",
    description="""
Change a user's role. A superadmin cannot change their own role.

Role changes take effect at the user's next login: tokens already issued keep
the role they were minted with.

**Access:** Superadmin only
""",
    responses={
        **SUPERADMIN_RESPONSES,
        404: {"description": "User not found"},
    },
)
async def update_role(
    data: UpdateRoleRequest,
    user_id: ObjectId = UserId,
    db: AsyncSession = Depends(get_db),
    superadmin: TokenContext = Depends(require_superadmin),
):
    user = await service.update_role(db, superadmin, user_id, data.role)
    return ok(
        UserMessageResponse(
            user=UserResponse.model_validate(user),
            message="User role updated successfully",
        )
    )
