"""
Unit tests for the shared field rules and error formatting.
"""

import pydantic
import pytest

from schoolhub.core.database import generate_object_id
from schoolhub.core.errors import ValidationError
from schoolhub.core.validators import (
    OBJECT_ID_ERROR,
    ObjectId,
    camelize,
    format_validation_errors,
    is_object_id,
    like_pattern,
    normalize_resources,
    require_object_id,
)
from schoolhub.modules.classrooms.schemas import ClassroomCreate, ClassroomUpdate
from schoolhub.modules.users.schemas import AssignSchoolsRequest, UserCreate


class TestObjectId:
    def test_valid(self):
        assert is_object_id("65a1b2c3d4e5f60718293a4b")
        assert is_object_id("65A1B2C3D4E5F60718293A4B")

    @pytest.mark.parametrize("value", ["", "123", "zz" * 12, None, 42, "65a1b2c3d4e5f60718293a4b0"])
    def test_invalid(self, value):
        assert not is_object_id(value)

    def test_generated_ids_are_valid_lower_hex(self):
        first, second = generate_object_id(), generate_object_id()
        assert first != second
        assert is_object_id(first)
        assert first == first.lower()

    def test_require_object_id_lower_cases(self):
        lowered = require_object_id("65A1B2C3D4E5F60718293A4B", "schoolId")
        assert lowered == "65a1b2c3d4e5f60718293a4b"

    def test_annotated_type_lower_cases(self):
        adapter = pydantic.TypeAdapter(ObjectId)
        assert adapter.validate_python("65A1B2C3D4E5F60718293A4B") == "65a1b2c3d4e5f60718293a4b"

    def test_annotated_type_rejects_malformed(self):
        with pytest.raises(pydantic.ValidationError) as exc_info:
            pydantic.TypeAdapter(ObjectId).validate_python("zz" * 12)
        assert exc_info.value.errors()[0]["type"] == OBJECT_ID_ERROR

    def test_require_object_id_raises_validation_error(self):
        with pytest.raises(ValidationError) as exc_info:
            require_object_id("bad", "schoolId")
        assert exc_info.value.errors == ["schoolId must be a valid ObjectId"]
        assert exc_info.value.status_code == 400


class TestFormatValidationErrors:
    def test_object_id_error(self):
        errors = [
            {
                "type": OBJECT_ID_ERROR,
                "loc": ("path", "school_id"),
                "msg": "must be a valid ObjectId",
            }
        ]
        assert format_validation_errors(errors) == ["schoolId must be a valid ObjectId"]

    def test_missing_field(self):
        errors = [{"type": "missing", "loc": ("body", "first_name"), "msg": "Field required"}]
        assert format_validation_errors(errors) == ["firstName is required"]

    def test_value_error_prefix_stripped(self):
        errors = [{"type": "value_error", "loc": ("body",), "msg": "Value error, Nope"}]
        assert format_validation_errors(errors) == ["Nope"]

    def test_from_pydantic_model(self):
        with pytest.raises(pydantic.ValidationError) as exc_info:
            AssignSchoolsRequest.model_validate({"schoolIds": ["bad"]})
        messages = format_validation_errors(exc_info.value.errors())
        assert messages == ["schoolIds.0 must be a valid ObjectId"]


class TestSchemas:
    def test_user_create_lower_cases_and_dedupes(self):
        school_id = "65a1b2c3d4e5f60718293a4b"
        data = UserCreate.model_validate(
            {
                "username": "  Alice ",
                "email": "Alice@Example.COM",
                "password": "Password123!",
                "role": "admin",
                "schoolIds": [school_id, school_id],
            }
        )
        assert data.username == "alice"
        assert data.email == "alice@example.com"
        assert data.school_ids == [school_id]

    def test_user_create_rejects_unknown_role(self):
        with pytest.raises(pydantic.ValidationError):
            UserCreate.model_validate(
                {
                    "username": "alice",
                    "email": "a@b.dev",
                    "password": "Password123!",
                    "role": "teacher",
                }
            )

    def test_classroom_create_normalises(self):
        data = ClassroomCreate.model_validate(
            {"name": " Room A ", "capacity": 30, "resources": [" Projector", "projector", ""]}
        )
        assert data.name == "room a"
        assert data.resources == ["projector"]

    def test_classroom_capacity_must_be_positive(self):
        with pytest.raises(pydantic.ValidationError):
            ClassroomCreate.model_validate({"name": "a", "capacity": 0})

    def test_classroom_update_requires_a_field(self):
        with pytest.raises(pydantic.ValidationError):
            ClassroomUpdate.model_validate({})


class TestHelpers:
    def test_camelize(self):
        assert camelize("school_ids") == "schoolIds"
        assert camelize("enrollment_status") == "enrollmentStatus"
        assert camelize("schoolIds") == "schoolIds"

    def test_normalize_resources(self):
        result = normalize_resources([" Projector ", "projector", "", "  ", 5, "Whiteboard"])
        assert result == ["projector", "whiteboard"]

    def test_like_pattern_escapes_wildcards(self):
        assert like_pattern("50%_a") == "%50\\%\\_a%"
        assert like_pattern("a\\b") == "%a\\\\b%"
