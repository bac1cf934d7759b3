"""Plant lifecycle: start, water, gain experience, grow, complete, decay."""

from __future__ import annotations

import uuid
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime
from zoneinfo import ZoneInfo

import structlog
from sqlalchemy import false, select, true
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from sprout.config import get_settings
from sprout.errors import (
	AlreadyDoneError,
	ConflictError,
	ForbiddenError,
	InvalidArgumentError,
	InvalidStateError,
	NotFoundError,
	NotReadyError,
)
from sprout.models.base import utcnow
from sprout.models.catalog import PlantType
from sprout.models.enums import NotificationTypeEnum
from sprout.models.inventory import PlantInventory
from sprout.models.plant import Plant, WateringLog
from sprout.services import mechanics
from sprout.services.catalog_service import PlantCatalogService
from sprout.services.children import require_child
from sprout.services.dispatch import SideEffectResult, run_best_effort
from sprout.services.events import DuplicateDrawOccurred
from sprout.services.notifier import Notifier, RedisNotifier
from sprout.services.ticket_service import TicketService

logger = structlog.get_logger("sprout.plants")


@dataclass(slots=True)
class WateringResult:
	watering_log: WateringLog
	plant: Plant
	watering_streak: int
	side_effects: list[SideEffectResult] = field(default_factory=list)


@dataclass(slots=True)
class AdvanceResult:
	plant: Plant
	is_max_stage: bool
	is_completed: bool
	side_effects: list[SideEffectResult] = field(default_factory=list)


@dataclass(frozen=True, slots=True)
class HealthDecayResult:
	plant_id: uuid.UUID
	previous_health: int
	new_health: int
	days_since_last_watered: int
	alerted: bool = False


@dataclass(slots=True)
class PlantCollectionEntry:
	plant_type: PlantType
	plants: list[Plant] = field(default_factory=list)


class PlantService:
	"""Owns each child's single in-progress plant."""

	def __init__(
		self,
		db: AsyncSession,
		notifier: Notifier | None = None,
		*,
		rewards: TicketService | None = None,
		clock: Callable[[], datetime] | None = None,
		zone: ZoneInfo | None = None,
	):
		self.db = db
		self.notifier = notifier or RedisNotifier()
		self._rewards = rewards
		self._clock = clock or utcnow
		self.zone = zone or get_settings().game_zone

	@property
	def rewards(self) -> TicketService:
		if self._rewards is None:
			self._rewards = TicketService(self.db, self.notifier, clock=self._clock)
		return self._rewards

	# ── Queries ─────────────────────────────────────────────────────────────

	async def get_plant(self, plant_id: uuid.UUID) -> Plant:
		return await self._require_plant(plant_id)

	async def get_current_plant(self, child_id: uuid.UUID) -> Plant | None:
		await require_child(self.db, child_id)
		return await self._find_in_progress(child_id)

	async def list_child_plants(self, child_id: uuid.UUID) -> list[Plant]:
		await require_child(self.db, child_id)
		rows = await self.db.execute(
			select(Plant)
			.where(Plant.child_id == child_id)
			.order_by(Plant.is_completed.asc(), Plant.started_at.desc())
		)
		return list(rows.scalars().all())

	async def get_plant_collection(self, child_id: uuid.UUID) -> list[PlantCollectionEntry]:
		"""Completed plants grouped by type, groups ordered by their newest completion."""
		await require_child(self.db, child_id)
		rows = await self.db.execute(
			select(Plant)
			.where(Plant.child_id == child_id, Plant.is_completed == true())
			.order_by(Plant.completed_at.desc())
		)
		grouped: dict[uuid.UUID, PlantCollectionEntry] = {}
		for plant in rows.scalars().all():
			entry = grouped.get(plant.plant_type_id)
			if entry is None:
				entry = grouped[plant.plant_type_id] = PlantCollectionEntry(plant_type=plant.plant_type)
			entry.plants.append(plant)
		return list(grouped.values())

	# ── Lifecycle ───────────────────────────────────────────────────────────

	async def start_new_plant(
		self,
		child_id: uuid.UUID,
		plant_type_id: uuid.UUID,
		name: str | None = None,
	) -> Plant:
		child = await require_child(self.db, child_id, for_update=True)
		plant_type = await PlantCatalogService(self.db).get_plant_type(plant_type_id)

		if await self._find_in_progress(child_id) is not None:
			raise ConflictError(
				"Child already has a plant in progress; complete it before starting a new one"
			)

		if not plant_type.is_basic:
			if not PlantCatalogService.is_unlocked(plant_type, child.total_completed_plants):
				raise ForbiddenError(
					f"{plant_type.name} unlocks after {plant_type.unlock_requirement} completed plants"
				)
			await self._consume_inventory(child_id, plant_type)

		plant = Plant(
			child_id=child_id,
			plant_type_id=plant_type.id,
			plant_type=plant_type,
			name=name,
			current_stage=1,
			health=mechanics.MAX_HEALTH,
			experience=0,
			experience_to_grow=mechanics.initial_experience_to_grow(plant_type.difficulty),
			can_grow=False,
			last_watered=None,
			is_completed=False,
			started_at=self._clock(),
		)
		self.db.add(plant)
		try:
			await self.db.flush()
		except IntegrityError as exc:
			raise ConflictError("Child already has a plant in progress") from exc

		child.current_plant_id = plant.id
		await self.db.flush()
		logger.info(
			"plant_started",
			child_id=str(child_id),
			plant_id=str(plant.id),
			plant_type=plant_type.name,
			experience_to_grow=plant.experience_to_grow,
		)
		return plant

	async def water_plant(self, plant_id: uuid.UUID) -> WateringResult:
		plant = await self._require_plant(plant_id, for_update=True)
		if plant.is_completed:
			raise InvalidStateError("Plant is already fully grown")

		now = self._clock()
		if mechanics.is_same_local_day(plant.last_watered, now, self.zone):
			raise AlreadyDoneError("Plant was already watered today; try again tomorrow")

		child = await require_child(self.db, plant.child_id, for_update=True)
		outcome = mechanics.compute_watering(
			plant.health,
			plant.last_watered,
			now,
			child.watering_streak,
			self.zone,
		)

		watering_log = WateringLog(
			plant_id=plant.id,
			recorded_at=now,
			health_gain=outcome.health_gain,
			experience_gain=outcome.experience_gain,
		)
		self.db.add(watering_log)
		plant.health = outcome.new_health
		plant.last_watered = now
		self._apply_experience(plant, outcome.experience_gain)
		child.watering_streak = outcome.watering_streak
		await self.db.flush()

		child_id = child.id
		logger.info(
			"plant_watered",
			plant_id=str(plant.id),
			child_id=str(child_id),
			health=plant.health,
			experience=plant.experience,
			watering_streak=outcome.watering_streak,
		)

		streak_effect = await run_best_effort(
			self.db,
			"watering_streak_rewards",
			lambda: self.rewards.handle_watering_streak(child_id, outcome.watering_streak),
			child_id=str(child_id),
			plant_id=str(plant_id),
		)
		return WateringResult(
			watering_log=watering_log,
			plant=plant,
			watering_streak=outcome.watering_streak,
			side_effects=[streak_effect],
		)

	async def add_experience_to_plant(self, plant_id: uuid.UUID, amount: int) -> Plant:
		if amount <= 0:
			raise InvalidArgumentError("Experience amount must be positive")
		plant = await self._require_plant(plant_id, for_update=True)
		if plant.is_completed:
			raise InvalidStateError("Plant is already fully grown")
		self._apply_experience(plant, amount)
		await self.db.flush()
		return plant

	async def advance_plant_stage(self, plant_id: uuid.UUID) -> AdvanceResult:
		plant = await self._require_plant(plant_id, for_update=True)
		if plant.is_completed:
			raise InvalidStateError("Plant is already fully grown")
		if not plant.can_grow:
			raise NotReadyError(
				f"Not enough experience to grow ({plant.experience}/{plant.experience_to_grow}); "
				"water the plant or keep promises to earn more"
			)

		plant_type = plant.plant_type
		if plant.current_stage >= plant_type.growth_stages:
			return await self._complete_plant(plant)

		plant.current_stage += 1
		plant.experience = 0
		plant.experience_to_grow = mechanics.experience_to_grow_for_stage(
			plant_type.difficulty, plant.current_stage
		)
		plant.can_grow = False
		await self.db.flush()
		logger.info(
			"plant_advanced",
			plant_id=str(plant.id),
			stage=plant.current_stage,
			experience_to_grow=plant.experience_to_grow,
		)
		return AdvanceResult(
			plant=plant,
			is_max_stage=plant.current_stage >= plant_type.growth_stages,
			is_completed=False,
		)

	async def on_duplicate_draw(self, event: DuplicateDrawOccurred) -> None:
		plant = await self._find_in_progress(event.child_id, for_update=True)
		if plant is None:
			logger.debug("duplicate_draw_experience_skipped", child_id=str(event.child_id))
			return
		self._apply_experience(plant, event.experience)
		await self.db.flush()
		logger.info(
			"duplicate_draw_experience_applied",
			child_id=str(event.child_id),
			plant_id=str(plant.id),
			experience=event.experience,
		)

	# ── Maintenance ─────────────────────────────────────────────────────────

	async def decrease_plant_health(self) -> list[HealthDecayResult]:
		rows = await self.db.execute(select(Plant.id).where(Plant.is_completed == false()))
		plant_ids = list(rows.scalars().all())
		now = self._clock()
		results: list[HealthDecayResult] = []

		for plant_id in plant_ids:
			plant = await self._require_plant(plant_id, for_update=True)
			if plant.is_completed:
				continue
			reference = plant.last_watered or plant.started_at
			days = mechanics.whole_days_between(reference, now)
			new_health = mechanics.decayed_health(plant.health, days)
			if new_health is None:
				continue

			previous_health = plant.health
			plant.health = new_health
			await self.db.flush()

			alerted = False
			if new_health <= mechanics.LOW_HEALTH_THRESHOLD:
				alert = await run_best_effort(
					self.db,
					"low_health_alert",
					lambda plant=plant: self._send_low_health_alert(plant),
					plant_id=str(plant_id),
				)
				alerted = alert.ok

			results.append(
				HealthDecayResult(
					plant_id=plant_id,
					previous_health=previous_health,
					new_health=new_health,
					days_since_last_watered=days,
					alerted=alerted,
				)
			)

		logger.info("health_decay_sweep", checked=len(plant_ids), decayed=len(results))
		return results

	# ── Internals ───────────────────────────────────────────────────────────

	async def _complete_plant(self, plant: Plant) -> AdvanceResult:
		child = await require_child(self.db, plant.child_id, for_update=True)
		plant.is_completed = True
		plant.completed_at = self._clock()
		plant.can_grow = False
		child.total_completed_plants += 1
		child.current_plant_id = None
		await self.db.flush()

		child_id = child.id
		user_id = child.user_id
		plant_id = plant.id
		display_name = plant.name or plant.plant_type.name
		logger.info(
			"plant_completed",
			plant_id=str(plant_id),
			child_id=str(child_id),
			total_completed_plants=child.total_completed_plants,
		)

		side_effects = [
			await run_best_effort(
				self.db,
				"plant_completion_rewards",
				lambda: self.rewards.handle_plant_complete(child_id),
				child_id=str(child_id),
				plant_id=str(plant_id),
			),
			await run_best_effort(
				None,
				"plant_completion_notification",
				lambda: self.notifier.notify(
					user_id,
					"Your plant is fully grown!",
					f"{display_name} finished growing. Start a new plant from your inventory!",
					NotificationTypeEnum.PLANT,
					plant_id,
				),
				child_id=str(child_id),
			),
		]
		return AdvanceResult(plant=plant, is_max_stage=True, is_completed=True, side_effects=side_effects)

	async def _send_low_health_alert(self, plant: Plant) -> None:
		child = await require_child(self.db, plant.child_id)
		await self.notifier.notify(
			child.user_id,
			"Your plant needs water!",
			f"{plant.name or 'Your plant'} is not feeling well. Give it some water soon!",
			NotificationTypeEnum.PLANT,
			plant.id,
		)

	async def _consume_inventory(self, child_id: uuid.UUID, plant_type: PlantType) -> None:
		row = await self.db.execute(
			select(PlantInventory)
			.where(
				PlantInventory.child_id == child_id,
				PlantInventory.plant_type_id == plant_type.id,
			)
			.with_for_update(of=PlantInventory)
		)
		item = row.scalar_one_or_none()
		if item is None:
			raise NotFoundError(f"{plant_type.name} is not in the inventory; draw it first")
		if item.quantity <= 0:
			raise InvalidStateError(f"No {plant_type.name} left in the inventory")

		remaining = item.quantity - 1
		if remaining == 0:
			await self.db.delete(item)
		else:
			item.quantity = remaining
		logger.info(
			"inventory_consumed",
			child_id=str(child_id),
			plant_type_id=str(plant_type.id),
			remaining=remaining,
		)

	async def _require_plant(self, plant_id: uuid.UUID, *, for_update: bool = False) -> Plant:
		stmt = select(Plant).where(Plant.id == plant_id)
		if for_update:
			stmt = stmt.with_for_update(of=Plant)
		row = await self.db.execute(stmt)
		plant = row.scalar_one_or_none()
		if plant is None:
			raise NotFoundError(f"Plant {plant_id} not found")
		return plant

	async def _find_in_progress(self, child_id: uuid.UUID, *, for_update: bool = False) -> Plant | None:
		stmt = select(Plant).where(Plant.child_id == child_id, Plant.is_completed == false())
		if for_update:
			stmt = stmt.with_for_update(of=Plant)
		row = await self.db.execute(stmt)
		return row.scalars().first()

	@staticmethod
	def _apply_experience(plant: Plant, amount: int) -> None:
		plant.experience += amount
		plant.can_grow = mechanics.can_grow(plant.experience, plant.experience_to_grow)
