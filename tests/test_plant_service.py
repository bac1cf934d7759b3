from __future__ import annotations

import uuid

import pytest
from sqlalchemy import func, select
from structlog.testing import capture_logs

from sprout.errors import (
	AlreadyDoneError,
	ConflictError,
	ErrorKind,
	ForbiddenError,
	InvalidArgumentError,
	InvalidStateError,
	NotFoundError,
	NotReadyError,
)
from sprout.models import NotificationTypeEnum, PlantInventory, RarityEnum, TicketTypeEnum, WateringLog
from sprout.models.enums import DifficultyEnum
from sprout.models.rewards import DrawTicket


async def _grow_to_completion(engine, plant_id: uuid.UUID):
	while True:
		plant = await engine.plants.get_plant(plant_id)
		missing = plant.experience_to_grow - plant.experience
		if missing > 0:
			await engine.plants.add_experience_to_plant(plant_id, missing)
		result = await engine.plants.advance_plant_stage(plant_id)
		if result.is_completed:
			return result


async def _stock(session, child, plant_type, quantity: int = 1) -> PlantInventory:
	item = PlantInventory(child_id=child.id, plant_type_id=plant_type.id, quantity=quantity)
	session.add(item)
	await session.flush()
	return item


@pytest.mark.asyncio
async def test_start_basic_plant(engine, child, sunflower, clock) -> None:
	plant = await engine.plants.start_new_plant(child.id, sunflower.id, name="Sunny")

	assert plant.current_stage == 1
	assert plant.health == 100
	assert plant.experience == 0
	assert plant.experience_to_grow == 10
	assert plant.can_grow is False
	assert plant.last_watered is None
	assert plant.started_at == clock.now
	assert child.current_plant_id == plant.id
	assert (await engine.plants.get_current_plant(child.id)).id == plant.id


@pytest.mark.asyncio
async def test_experience_then_advance_stage(engine, child, sunflower) -> None:
	plant = await engine.plants.start_new_plant(child.id, sunflower.id)
	for _ in range(3):
		plant = await engine.plants.add_experience_to_plant(plant.id, 4)
	assert plant.experience == 12
	assert plant.can_grow is True

	result = await engine.plants.advance_plant_stage(plant.id)

	assert result.is_completed is False
	assert result.is_max_stage is False
	assert result.plant.current_stage == 2
	assert result.plant.experience == 0
	assert result.plant.experience_to_grow == 20
	assert result.plant.can_grow is False


@pytest.mark.asyncio
async def test_advance_without_experience_is_not_ready(engine, child, sunflower) -> None:
	plant = await engine.plants.start_new_plant(child.id, sunflower.id)
	await engine.plants.add_experience_to_plant(plant.id, 3)

	with pytest.raises(NotReadyError, match=r"\(3/10\)"):
		await engine.plants.advance_plant_stage(plant.id)


@pytest.mark.asyncio
async def test_add_experience_rejects_non_positive(engine, child, sunflower) -> None:
	plant = await engine.plants.start_new_plant(child.id, sunflower.id)
	with pytest.raises(InvalidArgumentError):
		await engine.plants.add_experience_to_plant(plant.id, 0)


@pytest.mark.asyncio
async def test_unknown_plant_is_not_found(engine) -> None:
	with pytest.raises(NotFoundError):
		await engine.plants.water_plant(uuid.uuid4())


@pytest.mark.asyncio
async def test_water_plant_once_per_day(engine, child, sunflower, session) -> None:
	plant = await engine.plants.start_new_plant(child.id, sunflower.id)

	result = await engine.plants.water_plant(plant.id)
	assert result.watering_streak == 1
	assert result.watering_log.health_gain == 0
	assert result.watering_log.experience_gain == 6
	assert result.plant.experience == 6
	assert [effect.ok for effect in result.side_effects] == [True]

	with pytest.raises(AlreadyDoneError) as excinfo:
		await engine.plants.water_plant(plant.id)
	assert excinfo.value.kind == ErrorKind.already_done

	logs = await session.execute(select(func.count(WateringLog.id)))
	assert logs.scalar_one() == 1


@pytest.mark.asyncio
async def test_watering_restores_health(engine, child, sunflower, session) -> None:
	plant = await engine.plants.start_new_plant(child.id, sunflower.id)
	plant.health = 55
	await session.flush()

	result = await engine.plants.water_plant(plant.id)

	assert result.watering_log.health_gain == 10
	assert result.plant.health == 65


@pytest.mark.asyncio
async def test_consecutive_days_extend_streak(engine, child, sunflower, clock) -> None:
	plant = await engine.plants.start_new_plant(child.id, sunflower.id)
	await engine.plants.water_plant(plant.id)
	clock.advance(days=1)

	result = await engine.plants.water_plant(plant.id)

	assert result.watering_streak == 2
	assert result.watering_log.experience_gain == 7
	assert child.watering_streak == 2


@pytest.mark.asyncio
async def test_skipped_day_resets_streak(engine, child, sunflower, clock) -> None:
	plant = await engine.plants.start_new_plant(child.id, sunflower.id)
	await engine.plants.water_plant(plant.id)
	clock.advance(days=2)

	result = await engine.plants.water_plant(plant.id)

	assert result.watering_streak == 1
	assert child.watering_streak == 1


@pytest.mark.asyncio
async def test_watering_survives_failing_streak_reward(engine, child, sunflower, session, monkeypatch) -> None:
	plant = await engine.plants.start_new_plant(child.id, sunflower.id)

	async def broken(*_args, **_kwargs):
		raise RuntimeError("ticket store offline")

	monkeypatch.setattr(engine.tickets, "handle_watering_streak", broken)
	with capture_logs() as captured:
		result = await engine.plants.water_plant(plant.id)

	assert result.plant.last_watered is not None
	assert result.side_effects[0].ok is False
	assert result.side_effects[0].error == "ticket store offline"
	failures = [entry for entry in captured if entry["event"] == "side_effect_failed"]
	assert failures and failures[0]["effect"] == "watering_streak_rewards"
	logs = await session.execute(select(func.count(WateringLog.id)))
	assert logs.scalar_one() == 1


@pytest.mark.asyncio
async def test_growing_to_completion_pays_rewards(engine, child, sunflower, notifier, session) -> None:
	await engine.tickets.create_default_milestone_rewards()
	plant = await engine.plants.start_new_plant(child.id, sunflower.id)

	result = await _grow_to_completion(engine, plant.id)

	assert result.is_completed is True
	assert result.is_max_stage is True
	assert result.plant.completed_at is not None
	assert [effect.ok for effect in result.side_effects] == [True, True]
	assert child.total_completed_plants == 1
	assert child.plant_completion_count == 1
	assert child.current_plant_id is None
	assert await engine.plants.get_current_plant(child.id) is None

	tickets = await session.execute(select(DrawTicket).where(DrawTicket.child_id == child.id))
	earned = list(tickets.scalars().all())
	assert [(t.ticket_type, t.earned_from) for t in earned] == [
		(TicketTypeEnum.BASIC, "PLANT_COMPLETION_1")
	]
	assert [call["notification_type"] for call in notifier.calls] == [
		NotificationTypeEnum.REWARD,
		NotificationTypeEnum.PLANT,
	]
	assert notifier.calls[-1]["related_id"] == plant.id


@pytest.mark.asyncio
async def test_completed_plant_rejects_further_actions(engine, child, sunflower) -> None:
	plant = await engine.plants.start_new_plant(child.id, sunflower.id)
	await _grow_to_completion(engine, plant.id)

	with pytest.raises(InvalidStateError):
		await engine.plants.water_plant(plant.id)
	with pytest.raises(InvalidStateError):
		await engine.plants.advance_plant_stage(plant.id)
	with pytest.raises(InvalidStateError):
		await engine.plants.add_experience_to_plant(plant.id, 5)


@pytest.mark.asyncio
async def test_completion_notification_failure_is_reported(engine, child, sunflower, notifier) -> None:
	plant = await engine.plants.start_new_plant(child.id, sunflower.id)
	notifier.fail = True

	result = await _grow_to_completion(engine, plant.id)

	assert result.is_completed is True
	assert {effect.name: effect.ok for effect in result.side_effects} == {
		"plant_completion_rewards": True,
		"plant_completion_notification": False,
	}


@pytest.mark.asyncio
async def test_second_active_plant_conflicts(engine, child, sunflower) -> None:
	await engine.plants.start_new_plant(child.id, sunflower.id)
	with pytest.raises(ConflictError):
		await engine.plants.start_new_plant(child.id, sunflower.id)


@pytest.mark.asyncio
async def test_locked_plant_type_is_forbidden(engine, child, session, make_plant_type) -> None:
	orchid = await make_plant_type("Orchid", rarity=RarityEnum.RARE, unlock_requirement=5)
	await _stock(session, child, orchid)

	with pytest.raises(ForbiddenError):
		await engine.plants.start_new_plant(child.id, orchid.id)


@pytest.mark.asyncio
async def test_start_unknown_plant_type(engine, child) -> None:
	with pytest.raises(NotFoundError):
		await engine.plants.start_new_plant(child.id, uuid.uuid4())


@pytest.mark.asyncio
async def test_non_basic_plant_requires_inventory(engine, child, make_plant_type) -> None:
	tulip = await make_plant_type("Tulip", rarity=RarityEnum.UNCOMMON)
	with pytest.raises(NotFoundError, match="draw it first"):
		await engine.plants.start_new_plant(child.id, tulip.id)


@pytest.mark.asyncio
async def test_starting_from_inventory_consumes_last_unit(engine, child, session, make_plant_type) -> None:
	tulip = await make_plant_type("Tulip", rarity=RarityEnum.UNCOMMON)
	await _stock(session, child, tulip, quantity=1)

	plant = await engine.plants.start_new_plant(child.id, tulip.id)
	remaining = await session.execute(
		select(PlantInventory).where(PlantInventory.child_id == child.id)
	)
	assert remaining.scalars().first() is None

	with pytest.raises(ConflictError):
		await engine.plants.start_new_plant(child.id, tulip.id)

	await _grow_to_completion(engine, plant.id)
	with pytest.raises(NotFoundError):
		await engine.plants.start_new_plant(child.id, tulip.id)


@pytest.mark.asyncio
async def test_starting_from_inventory_decrements_quantity(engine, child, session, make_plant_type) -> None:
	tulip = await make_plant_type("Tulip", rarity=RarityEnum.UNCOMMON)
	item = await _stock(session, child, tulip, quantity=3)

	await engine.plants.start_new_plant(child.id, tulip.id)

	assert item.quantity == 2


@pytest.mark.asyncio
async def test_plant_collection_groups_completed_plants(engine, child, sunflower, make_plant_type) -> None:
	first = await engine.plants.start_new_plant(child.id, sunflower.id)
	await _grow_to_completion(engine, first.id)
	second = await engine.plants.start_new_plant(child.id, sunflower.id)
	await _grow_to_completion(engine, second.id)
	await engine.plants.start_new_plant(child.id, sunflower.id)

	collection = await engine.plants.get_plant_collection(child.id)
	plants = await engine.plants.list_child_plants(child.id)

	assert len(collection) == 1
	assert collection[0].plant_type.id == sunflower.id
	assert {plant.id for plant in collection[0].plants} == {first.id, second.id}
	assert len(plants) == 3
	assert plants[0].is_completed is False


@pytest.mark.asyncio
async def test_hard_plant_thresholds(engine, child, make_plant_type) -> None:
	cactus = await make_plant_type(
		"Cactus", difficulty=DifficultyEnum.HARD, is_basic=True, growth_stages=2
	)
	plant = await engine.plants.start_new_plant(child.id, cactus.id)
	assert plant.experience_to_grow == 20

	await engine.plants.add_experience_to_plant(plant.id, 20)
	result = await engine.plants.advance_plant_stage(plant.id)

	assert result.plant.experience_to_grow == 40
	assert result.is_max_stage is True


@pytest.mark.asyncio
async def test_health_decay_respects_grace_period(engine, child, sunflower, clock) -> None:
	plant = await engine.plants.start_new_plant(child.id, sunflower.id)
	await engine.plants.water_plant(plant.id)

	clock.advance(days=2, hours=23)
	assert await engine.plants.decrease_plant_health() == []

	clock.advance(hours=1)
	results = await engine.plants.decrease_plant_health()
	assert [(r.plant_id, r.previous_health, r.new_health) for r in results] == [(plant.id, 100, 95)]
	assert results[0].days_since_last_watered == 3
	assert results[0].alerted is False


@pytest.mark.asyncio
async def test_never_watered_plant_decays_from_start(engine, child, sunflower, clock) -> None:
	await engine.plants.start_new_plant(child.id, sunflower.id)
	clock.advance(days=6)

	results = await engine.plants.decrease_plant_health()

	assert [r.new_health for r in results] == [80]


@pytest.mark.asyncio
async def test_health_decay_sends_low_health_alert(engine, child, sunflower, clock, notifier, session) -> None:
	plant = await engine.plants.start_new_plant(child.id, sunflower.id, name="Sunny")
	await engine.plants.water_plant(plant.id)
	plant.health = 35
	await session.flush()
	clock.advance(days=4)

	results = await engine.plants.decrease_plant_health()

	assert results[0].new_health == 25
	assert results[0].alerted is True
	assert notifier.calls[-1]["title"] == "Your plant needs water!"
	assert notifier.calls[-1]["related_id"] == plant.id
	assert notifier.calls[-1]["user_id"] == child.user_id


@pytest.mark.asyncio
async def test_health_decay_keeps_change_when_alert_fails(engine, child, sunflower, clock, notifier, session) -> None:
	plant = await engine.plants.start_new_plant(child.id, sunflower.id)
	plant.health = 20
	await session.flush()
	notifier.fail = True
	clock.advance(days=10)

	results = await engine.plants.decrease_plant_health()

	assert results[0].new_health == 0
	assert results[0].alerted is False
	assert plant.health == 0


@pytest.mark.asyncio
async def test_duplicate_draw_feeds_current_plant(engine, child, sunflower, session, make_plant_type) -> None:
	for name, rarity in (("Daisy", RarityEnum.COMMON), ("Tulip", RarityEnum.UNCOMMON), ("Lotus", RarityEnum.RARE)):
		owned = await make_plant_type(name, rarity=rarity)
		await _stock(session, child, owned)
	plant = await engine.plants.start_new_plant(child.id, sunflower.id)

	result = await engine.draws.draw_random_plant(child.id, TicketTypeEnum.BASIC)

	assert result.is_duplicate is True
	assert result.experience_gained in {10, 20, 30}
	assert plant.experience == result.experience_gained
	assert plant.can_grow is True


@pytest.mark.asyncio
async def test_duplicate_draw_without_plant_is_ignored(engine, child, session, make_plant_type) -> None:
	for name, rarity in (("Daisy", RarityEnum.COMMON), ("Tulip", RarityEnum.UNCOMMON), ("Lotus", RarityEnum.RARE)):
		owned = await make_plant_type(name, rarity=rarity)
		await _stock(session, child, owned)

	result = await engine.draws.draw_random_plant(child.id, "basic")

	assert result.is_duplicate is True
	assert await engine.plants.get_current_plant(child.id) is None
