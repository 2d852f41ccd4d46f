"""Unit tests for request log context: request ids and the calling identity."""

import logging
from unittest.mock import MagicMock

import pytest
from fastapi import Depends, FastAPI
from httpx import ASGITransport, AsyncClient
from libs.auth.dependencies import get_current_user, require_admin
from libs.common import middleware
from libs.common.logging import (
    RequestContextFilter,
    bind_caller,
    clear_request_context,
    set_request_context,
)
from tests.factories import admin_headers, customer_headers


def _app() -> FastAPI:
    app = FastAPI()
    app.add_middleware(middleware.RequestContextMiddleware)

    @app.get("/me")
    async def me(user=Depends(get_current_user)):
        return {"id": user.user_id}

    @app.get("/admin")
    async def admin(user=Depends(require_admin)):
        return {"id": user.user_id}

    @app.get("/open")
    async def open_route():
        return {}

    return app


def _completed_fields(logger: MagicMock) -> dict:
    for call in logger.info.call_args_list + logger.warning.call_args_list:
        if call.args and call.args[0] == "Request completed":
            return call.kwargs["extra"]["extra_fields"]
    raise AssertionError("no completion line logged")


async def _get(path, headers=None):
    async with AsyncClient(transport=ASGITransport(app=_app()), base_url="http://test") as ac:
        return await ac.get(path, headers=headers or {})


@pytest.mark.asyncio
@pytest.mark.unit
async def test_completion_line_names_the_customer(monkeypatch):
    logger = MagicMock()
    monkeypatch.setattr(middleware, "logger", logger)

    response = await _get("/me", customer_headers("cust-logged"))

    assert response.status_code == 200
    assert response.headers["X-Request-ID"]
    assert _completed_fields(logger)["caller"] == "customer:cust-logged"


@pytest.mark.asyncio
@pytest.mark.unit
async def test_completion_line_names_the_admin(monkeypatch):
    logger = MagicMock()
    monkeypatch.setattr(middleware, "logger", logger)

    response = await _get("/admin", admin_headers())

    assert response.status_code == 200
    assert _completed_fields(logger)["caller"] == f"admin:{response.json()['id']}"


@pytest.mark.asyncio
@pytest.mark.unit
async def test_anonymous_requests_have_no_caller(monkeypatch):
    logger = MagicMock()
    monkeypatch.setattr(middleware, "logger", logger)

    response = await _get("/open", {"X-Request-ID": "req-123"})

    assert response.headers["X-Request-ID"] == "req-123"
    assert _completed_fields(logger)["caller"] is None


@pytest.mark.unit
def test_filter_stamps_bound_caller_on_records():
    record = logging.LogRecord("orders", logging.INFO, __file__, 1, "Order placed", None, None)
    try:
        set_request_context(request_id="req-9", path="/store/checkout", method="POST")
        bind_caller("customer:cust-9")
        RequestContextFilter().filter(record)
    finally:
        clear_request_context()

    assert record.request_id == "req-9"
    assert record.caller == "customer:cust-9"

    fresh = logging.LogRecord("orders", logging.INFO, __file__, 1, "Idle", None, None)
    RequestContextFilter().filter(fresh)
    assert fresh.caller == "-"
