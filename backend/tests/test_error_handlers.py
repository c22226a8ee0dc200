from __future__ import annotations

import httpx
import pytest
from fastapi import FastAPI
from pydantic import BaseModel, Field
from sqlalchemy.exc import OperationalError

from vegbills.api.error_handlers import register_exception_handlers
from vegbills.core.exceptions import ConflictError, NotFoundError, ValidationError


class Payload(BaseModel):
    name: str = Field(min_length=1)
    quantity: float = Field(gt=0)


def _app() -> FastAPI:
    app = FastAPI()
    register_exception_handlers(app)

    @app.get("/conflict")
    async def conflict():
        raise ConflictError("lookup returned a foreign row", details={"id": "v1"})

    @app.get("/missing")
    async def missing():
        raise NotFoundError("Bill not found")

    @app.get("/invalid")
    async def invalid():
        raise ValidationError([
            {"field": "providerId", "message": "Unknown provider"},
            {"field": "signer", "message": "Unknown signer"},
        ])

    @app.get("/store")
    async def store():
        raise OperationalError("SELECT 1", {}, Exception("connection refused"))

    @app.get("/boom")
    async def boom():
        raise RuntimeError("unexpected")

    @app.post("/payload")
    async def payload(body: Payload):
        return {"ok": True}

    return app


@pytest.fixture
def handler_client():
    transport = httpx.ASGITransport(app=_app(), raise_app_exceptions=False)
    return httpx.AsyncClient(transport=transport, base_url="http://test")


@pytest.mark.asyncio
async def test_conflict_maps_to_500_with_details(handler_client):
    async with handler_client as c:
        resp = await c.get("/conflict")
    assert resp.status_code == 500
    assert resp.json() == {
        "error": "Catalogue integrity fault",
        "message": "lookup returned a foreign row",
        "details": {"id": "v1"},
    }


@pytest.mark.asyncio
async def test_not_found_maps_to_404(handler_client):
    async with handler_client as c:
        resp = await c.get("/missing")
    assert resp.status_code == 404
    assert resp.json()["message"] == "Bill not found"


@pytest.mark.asyncio
async def test_domain_validation_lists_every_violation(handler_client):
    async with handler_client as c:
        resp = await c.get("/invalid")
    assert resp.status_code == 400
    assert [d["field"] for d in resp.json()["details"]] == ["providerId", "signer"]


@pytest.mark.asyncio
async def test_request_validation_lists_every_field(handler_client):
    async with handler_client as c:
        resp = await c.post("/payload", json={"name": "", "quantity": 0})
    assert resp.status_code == 400
    body = resp.json()
    assert body["error"] == "Validation error"
    assert {d["field"] for d in body["details"]} == {"name", "quantity"}


@pytest.mark.asyncio
async def test_store_failure_maps_to_500(handler_client):
    async with handler_client as c:
        resp = await c.get("/store")
    assert resp.status_code == 500
    assert resp.json()["error"] == "Store unavailable"
    assert "connection refused" not in resp.text


@pytest.mark.asyncio
async def test_unhandled_exception_is_generic(handler_client):
    async with handler_client as c:
        resp = await c.get("/boom")
    assert resp.status_code == 500
    assert resp.json() == {"error": "Internal server error"}
