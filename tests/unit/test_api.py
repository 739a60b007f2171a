# Copyright (c) 2026 CondoGuard Contributors. All Rights Reserved.
"""Unit tests for the HTTP API (grants, credentials, observability)."""

import json
from datetime import timedelta

import pytest
from httpx import AsyncClient, ASGITransport

from condoguard.core.context import init_guard_context, reset_guard_context
from condoguard.main import app
from condoguard.protocols.schema import AccessGrant

ADMIN = {"X-Tenant-Id": "t1", "X-User-Id": "u-x", "X-User-Name": "Marta", "X-User-Role": "X"}
OCCUPANT = {
    "X-Tenant-Id": "t1", "X-User-Id": "u-b", "X-User-Name": "Luis",
    "X-User-Role": "B", "X-User-Unit": "101",
}
FRONT_DESK = {"X-Tenant-Id": "t1", "X-User-Id": "u-a", "X-User-Role": "A"}
OTHER_DESK = {"X-Tenant-Id": "t2", "X-User-Id": "u-z", "X-User-Role": "A"}


@pytest.fixture
def guard_ctx(clock):
    seed = [
        AccessGrant(id="r1", tenant_id="t1", display_name="Luis Perez", unit="101"),
        AccessGrant(id="r2", tenant_id="t1", display_name="Ana Gomez", unit="102",
                    expires_at=clock.now() - timedelta(minutes=1)),
        AccessGrant(id="r9", tenant_id="t2", display_name="Otro", unit="101"),
    ]
    ctx = init_guard_context(clock=clock, seed=seed)
    yield ctx
    reset_guard_context()


def _client():
    return AsyncClient(transport=ASGITransport(app=app), base_url="http://test")


class TestObservabilityAPI:
    @pytest.mark.asyncio
    async def test_health(self, guard_ctx):
        async with _client() as c:
            resp = await c.get("/health")
            assert resp.status_code == 200
            data = resp.json()
            assert data["status"] == "ok"
            assert data["sweeper"] == "idle"
            assert data["redis"] == "not_configured"
            assert "metrics" in data
            assert "X-Trace-Id" in resp.headers

    @pytest.mark.asyncio
    async def test_metrics(self, guard_ctx):
        async with _client() as c:
            resp = await c.get("/api/metrics")
            assert resp.status_code == 200
            assert "counters" in resp.json()

    @pytest.mark.asyncio
    async def test_manual_sweep(self, guard_ctx):
        async with _client() as c:
            denied = await c.post("/api/sweeper/run", headers=FRONT_DESK)
            assert denied.status_code == 403
            assert denied.json()["code"] == "ROLE_NOT_ALLOWED"

            resp = await c.post("/api/sweeper/run", headers=ADMIN)
            assert resp.status_code == 200
            assert resp.json() == {"removed": 1}
        assert guard_ctx.store.get("r2") is None


class TestGrantsAPI:
    @pytest.mark.asyncio
    async def test_missing_tenant(self, guard_ctx):
        async with _client() as c:
            resp = await c.get("/api/grants")
            assert resp.status_code == 401

    @pytest.mark.asyncio
    async def test_list_is_tenant_scoped(self, guard_ctx):
        async with _client() as c:
            resp = await c.get("/api/grants", headers=ADMIN)
            assert resp.json()["count"] == 2
            resp = await c.get("/api/grants", headers=OCCUPANT)
            assert [g["id"] for g in resp.json()["grants"]] == ["r1"]

    @pytest.mark.asyncio
    async def test_create_update_delete(self, guard_ctx):
        async with _client() as c:
            resp = await c.post(
                "/api/grants", headers=OCCUPANT,
                json={"display_name": "Primo", "kind": "FamilyMember", "vehicle_plate": "JKL456"},
            )
            assert resp.status_code == 201
            created = resp.json()
            assert created["tenant_id"] == "t1"
            assert created["unit"] == "101"

            resp = await c.patch(
                f"/api/grants/{created['id']}", headers=OCCUPANT,
                json={"display_name": "Primo Juan", "vehicle_plate": None},
            )
            assert resp.status_code == 200
            assert resp.json()["display_name"] == "Primo Juan"
            assert resp.json()["vehicle_plate"] is None

            resp = await c.put(
                f"/api/grants/{created['id']}/expiry", headers=OCCUPANT,
                json={"expires_at": "2026-03-05T12:00:00Z"},
            )
            assert resp.status_code == 200
            assert resp.json()["expires_at"].startswith("2026-03-05T12:00:00")

            resp = await c.delete(f"/api/grants/{created['id']}", headers=OCCUPANT)
            assert resp.status_code == 204
        assert guard_ctx.store.get(created["id"]) is None

    @pytest.mark.asyncio
    async def test_permission_errors(self, guard_ctx):
        async with _client() as c:
            resp = await c.post("/api/grants", headers=FRONT_DESK, json={"display_name": "X", "unit": "1"})
            assert resp.status_code == 403
            assert resp.json()["code"] == "PERMISSION_DENIED"

            resp = await c.patch("/api/grants/r2", headers=OCCUPANT, json={"display_name": "Hack"})
            assert resp.status_code == 403

            resp = await c.delete("/api/grants/r9", headers=ADMIN)
            assert resp.status_code == 404
            assert resp.json()["code"] == "GRANT_NOT_FOUND"


class TestCredentialsAPI:
    @pytest.mark.asyncio
    async def test_issue_and_validate(self, guard_ctx):
        async with _client() as c:
            resp = await c.post(
                "/api/credentials/issue", headers=OCCUPANT,
                json={"host_grant_id": "r1", "count": 3, "visitor_label": "Familia Gomez"},
            )
            assert resp.status_code == 200
            data = resp.json()
            assert len(data["credentials"]) == 3
            assert len({cred["credentialId"] for cred in data["credentials"]}) == 3
            assert data["credentials"][0]["visitorLabel"] == "Familia Gomez"

            payload = data["payloads"][0]
            resp = await c.post("/api/credentials/validate", headers=FRONT_DESK, json={"payload": payload})
            assert resp.json()["accepted"] is True

            resp = await c.post("/api/credentials/validate", headers=OTHER_DESK, json={"payload": payload})
            assert resp.json() == {
                "accepted": False,
                "reason": "tenant_mismatch",
                "message": "Credential belongs to another condominium (tenant t1)",
                "found_tenant": "t1",
            }

    @pytest.mark.asyncio
    async def test_validate_rejections(self, guard_ctx):
        async with _client() as c:
            resp = await c.post("/api/credentials/validate", headers=FRONT_DESK, json={"payload": "not-json"})
            assert resp.status_code == 200
            assert resp.json()["reason"] == "malformed_payload"

            resp = await c.post("/api/credentials/validate", headers=FRONT_DESK, json={"payload": 42})
            assert resp.json()["reason"] == "malformed_payload"

            out_of_range = json.dumps({
                "credentialId": "c1", "tenantId": "t1", "hostDisplayName": "Luis",
                "hostUnit": "101", "visitorLabel": "Invitado",
                "issuedBy": {"name": "Luis", "role": "B", "id": "u-b"},
                "expiresAt": "9999-12-31T23:59:59-01:00", "issuedAt": 0,
            })
            resp = await c.post("/api/credentials/validate", headers=FRONT_DESK, json={"payload": out_of_range})
            assert resp.status_code == 200
            assert resp.json()["reason"] == "malformed_payload"

            resp = await c.post("/api/credentials/validate", headers=OCCUPANT, json={"payload": "x"})
            assert resp.status_code == 403
            assert resp.json()["code"] == "ROLE_NOT_ALLOWED"

    @pytest.mark.asyncio
    async def test_issue_errors(self, guard_ctx):
        async with _client() as c:
            resp = await c.post("/api/credentials/issue", headers=ADMIN, json={"host_grant_id": "r1", "count": 50})
            assert resp.status_code == 422
            body = resp.json()
            assert body["code"] == "INVALID_QUANTITY"
            assert body["details"] == {"count": 50, "max": 20}

            resp = await c.post("/api/credentials/issue", headers=FRONT_DESK, json={"host_grant_id": "r1"})
            assert resp.status_code == 403

            resp = await c.post("/api/credentials/issue", headers=ADMIN, json={"host_grant_id": "r9"})
            assert resp.status_code == 404

            resp = await c.post("/api/credentials/issue", headers=OCCUPANT, json={"host_grant_id": "r2"})
            assert resp.status_code == 403
