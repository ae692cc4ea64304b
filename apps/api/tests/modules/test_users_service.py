"""
Tests for the users service layer.

These tests cover:
- User creation (uniqueness, school validation, password hashing)
- School assignment (append order, already-assigned schools)
- Role changes (self-change guard)
- Password reset (token email must match the account)
"""

import pytest

from schoolhub.core.auth import ResetTokenContext
from schoolhub.core.errors import BusinessRuleError, ConflictError, NotFoundError, ValidationError
from schoolhub.core.security import verify_password
from schoolhub.modules.users.models import UserRole
from schoolhub.modules.users.schemas import UserCreate
from schoolhub.modules.users.service import (
    assign_schools,
    create_user,
    reset_password,
    update_role,
)

MISSING_ID = "65a1b2c3d4e5f60718293a4f"


def user_payload(**overrides) -> UserCreate:
    data = {
        "username": "Bob",
        "email": "Bob@SchoolHub.dev",
        "password": "Password123!",
        "role": "admin",
        **overrides,
    }
    return UserCreate.model_validate(data)


class TestCreateUser:
    @pytest.mark.asyncio
    async def test_creates_with_hashed_password(self, db_session, school):
        user = await create_user(db_session, user_payload(schoolIds=[school.id]))

        assert user.username == "bob"
        assert user.email == "bob@schoolhub.dev"
        assert user.role == UserRole.ADMIN
        assert user.school_ids == [school.id]
        assert user.password_hash != "Password123!"
        assert verify_password("Password123!", user.password_hash)

    @pytest.mark.asyncio
    async def test_duplicate_username_conflicts(self, db_session, admin):
        with pytest.raises(ConflictError) as exc_info:
            await create_user(db_session, user_payload(username="ALICE", email="x@y.dev"))
        assert exc_info.value.message == "User with this email or username already exists"

    @pytest.mark.asyncio
    async def test_duplicate_email_conflicts(self, db_session, admin):
        with pytest.raises(ConflictError):
            await create_user(db_session, user_payload(email="alice@schoolhub.dev"))

    @pytest.mark.asyncio
    async def test_unknown_school_rejected(self, db_session, school):
        with pytest.raises(BusinessRuleError) as exc_info:
            await create_user(db_session, user_payload(schoolIds=[school.id, MISSING_ID]))
        assert exc_info.value.message == "One or more school IDs are invalid"


class TestAssignSchools:
    @pytest.mark.asyncio
    async def test_appends_new_schools_in_order(self, db_session, admin, school, other_school):
        user, added = await assign_schools(db_session, admin.id, [school.id, other_school.id])

        assert added == 1
        assert user.school_ids == [school.id, other_school.id]

    @pytest.mark.asyncio
    async def test_all_already_assigned(self, db_session, admin, school):
        with pytest.raises(BusinessRuleError) as exc_info:
            await assign_schools(db_session, admin.id, [school.id])
        assert exc_info.value.message == "All provided schools are already assigned to this user"

    @pytest.mark.asyncio
    async def test_unknown_user(self, db_session, school):
        with pytest.raises(NotFoundError):
            await assign_schools(db_session, MISSING_ID, [school.id])

    @pytest.mark.asyncio
    async def test_malformed_user_id(self, db_session, school):
        with pytest.raises(ValidationError) as exc_info:
            await assign_schools(db_session, "nope", [school.id])
        assert exc_info.value.errors == ["userId must be a valid ObjectId"]


class TestUpdateRole:
    @pytest.mark.asyncio
    async def test_cannot_change_own_role(self, db_session, superadmin, superadmin_token):
        with pytest.raises(BusinessRuleError) as exc_info:
            await update_role(db_session, superadmin_token, superadmin.id, UserRole.ADMIN)
        assert exc_info.value.message == "Cannot change your own role"

    @pytest.mark.asyncio
    async def test_promotes_other_user(self, db_session, admin, superadmin_token):
        user = await update_role(db_session, superadmin_token, admin.id, UserRole.SUPERADMIN)
        assert user.role == UserRole.SUPERADMIN


class TestResetPassword:
    @pytest.mark.asyncio
    async def test_sets_new_password(self, db_session, admin):
        reset = ResetTokenContext(user_id=admin.id, email=admin.email)
        user = await reset_password(db_session, reset, "BrandNew456!")

        assert verify_password("BrandNew456!", user.password_hash)
        assert user.last_password_reset is not None

    @pytest.mark.asyncio
    async def test_email_mismatch_rejected(self, db_session, admin):
        reset = ResetTokenContext(user_id=admin.id, email="old@schoolhub.dev")
        with pytest.raises(BusinessRuleError) as exc_info:
            await reset_password(db_session, reset, "BrandNew456!")
        assert exc_info.value.message == "Invalid reset token"

    @pytest.mark.asyncio
    async def test_unknown_user(self, db_session):
        reset = ResetTokenContext(user_id=MISSING_ID, email="a@b.dev")
        with pytest.raises(NotFoundError):
            await reset_password(db_session, reset, "BrandNew456!")
