"""Domain exceptions map to HTTP status codes and a JSON error body."""

import pytest
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient

from app.core.exception_handlers import register_exception_handlers
from app.domain.exceptions import (
    AuthorizationException,
    BusinessRuleException,
    PersistenceException,
    ResourceNotFoundException,
    ValidationException,
)
from app.middleware import RequestContextMiddleware


def _error_app() -> FastAPI:
    app = FastAPI()
    register_exception_handlers(app)
    errors = {
        "not-found": ResourceNotFoundException("task", "t1"),
        "invalid": ValidationException("Title must not be blank", field="title"),
        "rule": BusinessRuleException("derived", rule="progress_derived_from_subtasks"),
        "denied": AuthorizationException(resource="task", action="archive_task"),
        "storage": PersistenceException(),
    }

    @app.get("/errors/{kind}")
    async def raise_error(kind: str) -> dict:
        raise errors[kind]

    @app.get("/crash")
    async def crash() -> dict:
        raise RuntimeError("secret internals")

    @app.get("/typed/{number}")
    async def typed(number: int) -> dict:
        return {"number": number}

    return app


@pytest.fixture
async def error_client():
    transport = ASGITransport(app=_error_app(), raise_app_exceptions=False)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest.mark.parametrize(
    ("kind", "status", "code"),
    [
        ("not-found", 404, "RESOURCE_NOT_FOUND"),
        ("invalid", 400, "VALIDATION_ERROR"),
        ("rule", 409, "BUSINESS_RULE_VIOLATION"),
        ("denied", 403, "PERMISSION_DENIED"),
        ("storage", 500, "PERSISTENCE_ERROR"),
    ],
)
async def test_domain_exception_status(error_client, kind: str, status: int, code: str) -> None:
    response = await error_client.get(f"/errors/{kind}")
    assert response.status_code == status
    assert response.json()["error"] == code


async def test_error_body_carries_details(error_client) -> None:
    body = (await error_client.get("/errors/not-found")).json()
    assert body["details"] == {"resource_type": "task", "resource_id": "t1"}
    assert "t1" in body["message"]


async def test_unhandled_exception_hides_detail(error_client) -> None:
    response = await error_client.get("/crash")
    assert response.status_code == 500
    assert response.json() == {"error": "INTERNAL_ERROR", "message": "Internal server error"}


async def test_request_validation_error(error_client) -> None:
    response = await error_client.get("/typed/not-a-number")
    assert response.status_code == 422
    assert response.json()["error"] == "VALIDATION_ERROR"


async def test_unknown_route_uses_http_error_body(error_client) -> None:
    response = await error_client.get("/missing")
    assert response.status_code == 404
    assert response.json()["error"] == "HTTP_ERROR"


async def test_error_body_includes_request_id() -> None:
    app = _error_app()
    app.add_middleware(RequestContextMiddleware)
    transport = ASGITransport(app=app, raise_app_exceptions=False)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        response = await ac.get("/errors/denied", headers={"X-Request-ID": "req-403"})
    assert response.status_code == 403
    assert response.json()["trace_id"] == "req-403"
