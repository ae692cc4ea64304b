"""
Tests for the service error boundary and the response envelope handlers.
"""

import pytest
import pytest_asyncio
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient
from pydantic import BaseModel

from schoolhub.core.errors import (
    ConflictError,
    InternalError,
    NotFoundError,
    RateLimitExceededError,
    ValidationError,
    service_operation,
)
from schoolhub.core.responses import ok, register_exception_handlers


class TestServiceOperation:
    @pytest.mark.asyncio
    async def test_service_errors_pass_through(self):
        @service_operation
        async def op():
            raise NotFoundError("School not found")

        with pytest.raises(NotFoundError):
            await op()

    @pytest.mark.asyncio
    async def test_unexpected_errors_become_internal(self):
        @service_operation
        async def op():
            raise RuntimeError("connection reset")

        with pytest.raises(InternalError) as exc_info:
            await op()
        assert exc_info.value.status_code == 500
        assert exc_info.value.message == "connection reset"

    @pytest.mark.asyncio
    async def test_return_value_untouched(self):
        @service_operation
        async def op(value):
            return value * 2

        assert await op(21) == 42


class Item(BaseModel):
    count: int


def build_app() -> FastAPI:
    app = FastAPI()
    register_exception_handlers(app)

    @app.get("/ok")
    async def success():
        return ok({"item": {"count": 1}}, 201)

    @app.get("/conflict")
    async def conflict():
        raise ConflictError("School with this name already exists")

    @app.get("/invalid")
    async def invalid():
        raise ValidationError(["name is required"])

    @app.get("/limited")
    async def limited():
        raise RateLimitExceededError(30)

    @app.post("/items")
    async def create(item: Item):
        return ok(item)

    @app.get("/boom")
    async def boom():
        raise RuntimeError("boom")

    return app


@pytest_asyncio.fixture
async def envelope_client():
    transport = ASGITransport(app=build_app(), raise_app_exceptions=False)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


class TestEnvelope:
    @pytest.mark.asyncio
    async def test_success(self, envelope_client):
        response = await envelope_client.get("/ok")
        assert response.status_code == 201
        assert response.json() == {"ok": True, "data": {"item": {"count": 1}}}

    @pytest.mark.asyncio
    async def test_service_error_message(self, envelope_client):
        response = await envelope_client.get("/conflict")
        assert response.status_code == 409
        assert response.json() == {"ok": False, "message": "School with this name already exists"}

    @pytest.mark.asyncio
    async def test_validation_error_list(self, envelope_client):
        response = await envelope_client.get("/invalid")
        assert response.status_code == 400
        assert response.json() == {"ok": False, "errors": ["name is required"]}

    @pytest.mark.asyncio
    async def test_request_validation_is_400(self, envelope_client):
        response = await envelope_client.post("/items", json={})
        assert response.status_code == 400
        assert response.json() == {"ok": False, "errors": ["count is required"]}

    @pytest.mark.asyncio
    async def test_rate_limit_sets_retry_after(self, envelope_client):
        response = await envelope_client.get("/limited")
        assert response.status_code == 429
        assert response.headers["retry-after"] == "30"

    @pytest.mark.asyncio
    async def test_unhandled_error_is_generic_500(self, envelope_client):
        response = await envelope_client.get("/boom")
        assert response.status_code == 500
        assert response.json() == {"ok": False, "message": "An unexpected error occurred."}
