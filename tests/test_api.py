import pytest
from fastapi import HTTPException
from fastapi.testclient import TestClient

from parcelcheck.api.main import app
from parcelcheck.api.routes import health as health_routes
from parcelcheck.api.routes import snapshot as snapshot_routes
from parcelcheck.api.routes.health import health_check
from parcelcheck.api.routes.rules import list_rules
from parcelcheck.api.routes.snapshot import create_snapshot
from parcelcheck.models import SnapshotRequest
from parcelcheck.models.snapshot import ActionCategory

ADDRESS = "123 Main St, Snohomish, WA 98290"


@pytest.fixture
def client():
    snapshot_routes._idempotency_cache.clear()
    with TestClient(app) as test_client:
        yield test_client
    snapshot_routes._idempotency_cache.clear()


def test_health(client) -> None:
    response = client.get("/health")

    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "healthy"
    assert body["services"] == {"rule_catalog": True, "snapshot_engine": True}


def test_health_degrades_when_snapshot_engine_fails(client, monkeypatch) -> None:
    def broken():
        raise RuntimeError("parcel service down")

    monkeypatch.setattr(health_routes, "get_snapshot_aggregator", broken)
    body = client.get("/health").json()

    assert body["status"] == "degraded"
    assert body["services"] == {"rule_catalog": True, "snapshot_engine": False}


@pytest.mark.asyncio
async def test_health_check_handler() -> None:
    response = await health_check()

    assert response.status == "healthy"
    assert response.services["snapshot_engine"] is True


@pytest.mark.asyncio
async def test_create_snapshot_handler_rejects_anonymous_user() -> None:
    with pytest.raises(HTTPException) as exc_info:
        await create_snapshot(SnapshotRequest(address="123 Main St", user_id=None))

    assert exc_info.value.status_code == 401


@pytest.mark.asyncio
async def test_list_rules_handler() -> None:
    response = await list_rules()
    assert response.rule_count == len(response.rules) == 12


@pytest.mark.parametrize("body", [{"userId": "user-1"}, {"address": "   ", "userId": "user-1"}, {"address": 42}])
def test_snapshot_requires_address(client, body) -> None:
    response = client.post("/api/v1/snapshot", json=body)

    assert response.status_code == 400
    assert response.json()["detail"] == "Address is required"


def test_snapshot_requires_user(client) -> None:
    response = client.post("/api/v1/snapshot", json={"address": ADDRESS})

    assert response.status_code == 401
    assert response.json()["detail"] == "Authentication required"


def test_snapshot_success_uses_camel_case(client) -> None:
    response = client.post("/api/v1/snapshot", json={"address": ADDRESS, "userId": "user-1"})

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["creditDeducted"] is True

    snapshot = body["snapshot"]
    assert snapshot["id"].startswith("snap_")
    assert snapshot["generatedAt"] is not None
    for key in ("overallStatus", "ruleChecks", "utilityResult", "environmentalFlags", "dataGaps", "dataSources"):
        assert key in snapshot
    assert snapshot["address"] == "123 Main St"


def test_idempotency_key_replays_response(client) -> None:
    body = {"address": ADDRESS, "userId": "user-1", "idempotencyKey": "retry-1"}

    first = client.post("/api/v1/snapshot", json=body)
    second = client.post("/api/v1/snapshot", json=body)

    assert first.status_code == second.status_code == 200
    assert first.json() == second.json()
    assert second.json()["idempotencyKey"] == "retry-1"


def test_idempotency_keys_are_per_user(client) -> None:
    client.post("/api/v1/snapshot", json={"address": ADDRESS, "userId": "user-1", "idempotencyKey": "k"})
    other = client.post(
        "/api/v1/snapshot",
        json={"address": "9 Elm Ave, Everett, WA", "userId": "user-2", "idempotencyKey": "k"},
    )

    assert other.json()["snapshot"]["address"] == "9 Elm Ave"


def test_snapshot_failure_returns_500(client, monkeypatch) -> None:
    def broken():
        raise RuntimeError("parcel service down")

    monkeypatch.setattr(snapshot_routes, "get_snapshot_aggregator", broken)
    response = client.post("/api/v1/snapshot", json={"address": ADDRESS, "userId": "user-1"})

    assert response.status_code == 500
    assert response.json()["detail"] == "Failed to generate snapshot"


def test_preview(client) -> None:
    assert client.get("/api/v1/snapshot").status_code == 400

    response = client.get("/api/v1/snapshot", params={"address": ADDRESS})

    assert response.status_code == 200
    body = response.json()
    assert body["preview"] is True
    assert body["overallStatus"] in {"pass", "warn", "fail", "unknown"}
    assert "ruleChecks" not in body


def test_checklist(client) -> None:
    response = client.post("/api/v1/snapshot/checklist", json={"address": ADDRESS})

    assert response.status_code == 200
    body = response.json()
    assert len(body["items"]) == 14
    assert set(body["byCategory"]) == {c.value for c in ActionCategory}
    assert set(body["categoryLabels"]) == set(body["byCategory"])
    assert body["categoryLabels"]["utilities"] == "Utilities & Wastewater"


def test_validate_project(client, parcel_factory) -> None:
    payload = {
        "property": parcel_factory().model_dump(mode="json", by_alias=True),
        "structures": [{"id": "house", "structureType": "primary_dwelling", "heightFeet": 36}],
    }
    response = client.post("/api/v1/validate", json=payload)

    assert response.status_code == 200
    body = response.json()
    assert body["id"] == "val-prop-test"
    assert body["overallStatus"] == "fail"
    height = next(c for c in body["checks"] if c["checkId"] == "check-height-house")
    assert height["excess"] == 1


def test_quick_validate(client) -> None:
    response = client.post(
        "/api/v1/validate/quick",
        json={"structure": {"id": "house", "structureType": "primary_dwelling", "heightFeet": 36}},
    )

    assert response.status_code == 200
    assert response.json() == {"valid": False, "issues": ["Height 36' exceeds 35' maximum"]}


def test_wastewater_with_overrides(client, parcel_factory, soil_factory, sewer_factory) -> None:
    payload = {
        "property": parcel_factory(area_sqft=20000).model_dump(mode="json", by_alias=True),
        "soil": soil_factory().model_dump(mode="json", by_alias=True),
        "sewer": sewer_factory(required=False, available=False).model_dump(mode="json", by_alias=True),
    }
    response = client.post("/api/v1/wastewater", json=payload)

    assert response.status_code == 200
    body = response.json()
    assert body["septicFeasibility"] == "feasible"
    assert body["septicRequired"] is True
    assert body["systemTypes"][0]["code"] == "TYPE-1"


def test_wastewater_required_sewer(client, parcel_factory, sewer_factory) -> None:
    payload = {
        "property": parcel_factory().model_dump(mode="json", by_alias=True),
        "sewer": sewer_factory().model_dump(mode="json", by_alias=True),
    }
    body = client.post("/api/v1/wastewater", json=payload).json()

    assert body["septicFeasibility"] == "not_feasible"
    assert [i["id"] for i in body["issues"]] == ["sewer-required"]


def test_rules(client) -> None:
    body = client.get("/api/v1/rules").json()

    assert body["ruleCount"] == 12
    assert len(body["rules"]) == 12
    assert body["rules"][0]["ruleType"] == "setback_front"
