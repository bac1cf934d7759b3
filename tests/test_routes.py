from __future__ import annotations

from datetime import UTC, datetime
from types import SimpleNamespace
from uuid import uuid4

import pytest
from httpx import AsyncClient

from sprout.errors import AlreadyDoneError, ConflictError, ForbiddenError, NotFoundError
from sprout.models.enums import DifficultyEnum, RarityEnum
from sprout.services.dispatch import SideEffectResult
from sprout.services.plant_service import PlantService, WateringResult


def _plant_obj(**overrides: object) -> SimpleNamespace:
    now = datetime.now(UTC)
    plant_type = SimpleNamespace(
        id=uuid4(),
        name="Sunflower",
        description=None,
        growth_stages=3,
        difficulty=DifficultyEnum.EASY,
        category="flower",
        rarity=RarityEnum.COMMON,
        is_basic=True,
        unlock_requirement=None,
        image_prefix="sunflower",
    )
    fields = {
        "id": uuid4(),
        "child_id": uuid4(),
        "plant_type_id": plant_type.id,
        "name": "Sunny",
        "current_stage": 1,
        "health": 100,
        "experience": 6,
        "experience_to_grow": 10,
        "can_grow": False,
        "last_watered": now,
        "is_completed": False,
        "started_at": now,
        "completed_at": None,
        "plant_type": plant_type,
    }
    fields.update(overrides)
    return SimpleNamespace(**fields)


@pytest.mark.asyncio
async def test_health(client: AsyncClient) -> None:
    response = await client.get("/health")

    assert response.status_code == 200
    assert response.json()["service"] == "sprout"


@pytest.mark.asyncio
async def test_water_plant_response(client: AsyncClient, monkeypatch: pytest.MonkeyPatch) -> None:
    plant = _plant_obj()
    log = SimpleNamespace(
        id=1,
        plant_id=plant.id,
        recorded_at=plant.last_watered,
        health_gain=0,
        experience_gain=6,
    )

    async def fake_water(self: PlantService, plant_id: object) -> WateringResult:
        return WateringResult(
            watering_log=log,
            plant=plant,
            watering_streak=1,
            side_effects=[SideEffectResult(name="watering_streak_rewards", ok=False, error="boom")],
        )

    monkeypatch.setattr(PlantService, "water_plant", fake_water)

    response = await client.post(f"/api/v1/plants/{plant.id}/water")

    assert response.status_code == 200
    body = response.json()
    assert body["watering_streak"] == 1
    assert body["plant"]["plant_type"]["name"] == "Sunflower"
    assert body["watering_log"]["experience_gain"] == 6
    assert body["side_effects"] == [{"name": "watering_streak_rewards", "ok": False, "error": "boom"}]


@pytest.mark.asyncio
@pytest.mark.parametrize(
    ("error", "status_code", "kind"),
    [
        (NotFoundError("Plant missing"), 404, "not_found"),
        (AlreadyDoneError("Plant was already watered today"), 400, "already_done"),
        (ConflictError("busy"), 409, "conflict"),
        (ForbiddenError("locked"), 403, "forbidden"),
    ],
)
async def test_engine_errors_map_to_status(
    client: AsyncClient,
    monkeypatch: pytest.MonkeyPatch,
    error: Exception,
    status_code: int,
    kind: str,
) -> None:
    async def fake_water(self: PlantService, plant_id: object) -> WateringResult:
        raise error

    monkeypatch.setattr(PlantService, "water_plant", fake_water)

    response = await client.post(f"/api/v1/plants/{uuid4()}/water")

    assert response.status_code == status_code
    assert response.json()["detail"] == {"error": kind, "message": str(error)}


@pytest.mark.asyncio
async def test_unexpected_error_is_500(client: AsyncClient, monkeypatch: pytest.MonkeyPatch) -> None:
    async def fake_water(self: PlantService, plant_id: object) -> WateringResult:
        raise RuntimeError("database exploded")

    monkeypatch.setattr(PlantService, "water_plant", fake_water)

    response = await client.post(f"/api/v1/plants/{uuid4()}/water")

    assert response.status_code == 500
    assert response.json()["detail"] == "Unexpected plant service failure"


@pytest.mark.asyncio
async def test_experience_payload_is_validated(client: AsyncClient) -> None:
    response = await client.post(f"/api/v1/plants/{uuid4()}/experience", json={"amount": 0})

    assert response.status_code == 422


@pytest.mark.asyncio
async def test_request_id_is_echoed(client: AsyncClient) -> None:
    response = await client.get("/health", headers={"x-request-id": "req-42"})

    assert response.headers["x-request-id"] == "req-42"


@pytest.mark.asyncio
async def test_openapi_lists_engine_routes(client: AsyncClient) -> None:
    response = await client.get("/openapi.json")

    paths = response.json()["paths"]
    for path in (
        "/api/v1/children",
        "/api/v1/children/{child_id}/plants",
        "/api/v1/plants/{plant_id}/water",
        "/api/v1/plants/{plant_id}/grow",
        "/api/v1/children/{child_id}/draws",
        "/api/v1/children/{child_id}/tickets/{ticket_id}/use",
        "/api/v1/children/{child_id}/stats",
        "/api/v1/missions/{mission_id}",
        "/api/v1/maintenance/health-decay",
        "/api/v1/maintenance/missions/cleanup",
    ):
        assert path in paths


@pytest.mark.asyncio
async def test_reward_loop_end_to_end(db_client: AsyncClient) -> None:
    user_id = str(uuid4())
    response = await db_client.post("/api/v1/children", json={"user_id": user_id, "display_name": "Mina"})
    assert response.status_code == 200
    child_id = response.json()["id"]

    again = await db_client.post("/api/v1/children", json={"user_id": user_id})
    assert again.json()["id"] == child_id

    seeded = await db_client.post("/api/v1/maintenance/seed")
    assert seeded.json() == {"plant_types_created": 9, "milestone_rules_created": 11, "missions_created": 4}

    types = await db_client.get("/api/v1/plants/types", params={"child_id": child_id})
    by_name = {item["name"]: item for item in types.json()}
    assert "Sunflower" in by_name
    assert "Cherry Blossom" not in by_name

    started = await db_client.post(
        f"/api/v1/children/{child_id}/plants",
        json={"plant_type_id": by_name["Sunflower"]["id"], "name": "Sunny"},
    )
    assert started.status_code == 201
    plant_id = started.json()["id"]

    conflict = await db_client.post(
        f"/api/v1/children/{child_id}/plants",
        json={"plant_type_id": by_name["Sunflower"]["id"]},
    )
    assert conflict.status_code == 409
    assert conflict.json()["detail"]["error"] == "conflict"

    watered = await db_client.post(f"/api/v1/plants/{plant_id}/water")
    assert watered.status_code == 200
    assert watered.json()["watering_streak"] == 1
    assert watered.json()["side_effects"] == [{"name": "watering_streak_rewards", "ok": True, "error": None}]

    twice = await db_client.post(f"/api/v1/plants/{plant_id}/water")
    assert twice.status_code == 400
    assert twice.json()["detail"]["error"] == "already_done"

    not_ready = await db_client.post(f"/api/v1/plants/{plant_id}/grow")
    assert not_ready.status_code == 400
    assert not_ready.json()["detail"]["error"] == "not_ready"

    verified = await db_client.post(f"/api/v1/children/{child_id}/verifications")
    assert verified.status_code == 202
    assert verified.json() == {"verification_count": 1}

    tickets = await db_client.get(f"/api/v1/children/{child_id}/tickets")
    assert tickets.json()["counts"] == {"BASIC": 1, "PREMIUM": 0, "SPECIAL": 0, "total": 1}
    ticket_id = tickets.json()["tickets"][0]["id"]

    used = await db_client.post(f"/api/v1/children/{child_id}/tickets/{ticket_id}/use")
    assert used.status_code == 200
    assert used.json()["ticket"]["is_used"] is True
    assert used.json()["draw"]["history"]["ticket_id"] == ticket_id

    inventory = await db_client.get(f"/api/v1/children/{child_id}/inventory")
    assert len(inventory.json()) == 1

    stats = await db_client.get(f"/api/v1/children/{child_id}/stats")
    body = stats.json()
    assert body["verification_count"] == 1
    assert body["watering_streak"] == 1
    assert body["tickets"]["total"] == 0
    weekly = next(m for m in body["missions"] if m["mission_type"] == "WEEKLY_VERIFICATION")
    assert (weekly["progress"], weekly["percent"]) == ("1/5", 20)


@pytest.mark.asyncio
async def test_unknown_child_is_404(db_client: AsyncClient) -> None:
    response = await db_client.get(f"/api/v1/children/{uuid4()}/tickets")

    assert response.status_code == 404
    assert response.json()["detail"]["error"] == "not_found"


@pytest.mark.asyncio
async def test_invalid_pack_type_is_400(db_client: AsyncClient) -> None:
    child = await db_client.post("/api/v1/children", json={"user_id": str(uuid4())})

    response = await db_client.post(
        f"/api/v1/children/{child.json()['id']}/draws",
        json={"pack_type": "golden"},
    )

    assert response.status_code == 400
    assert response.json()["detail"]["error"] == "invalid_argument"
