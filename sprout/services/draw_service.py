"""Random plant draws and the per-child inventory they fill."""

from __future__ import annotations

import random
import uuid
from collections.abc import Mapping
from dataclasses import dataclass, field

import structlog
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from sprout.errors import ConflictError, InvalidArgumentError, NotFoundError
from sprout.models.catalog import PlantType
from sprout.models.enums import RarityEnum, TicketTypeEnum
from sprout.models.inventory import PlantDrawHistory, PlantInventory
from sprout.models.rewards import DrawTicket
from sprout.services import mechanics
from sprout.services.catalog_service import PlantCatalogService
from sprout.services.children import require_child
from sprout.services.events import DomainEventBus, DuplicateDrawOccurred

logger = structlog.get_logger("sprout.draws")


@dataclass(frozen=True)
class DrawConfig:
	"""Rarity percentages per pack type and duplicate experience per rarity."""

	rarity_tables: Mapping[TicketTypeEnum, Mapping[RarityEnum, int]] = field(
		default_factory=lambda: mechanics.PACK_RARITY_TABLES
	)
	duplicate_experience: Mapping[RarityEnum, int] = field(
		default_factory=lambda: mechanics.DUPLICATE_EXPERIENCE
	)

	def __post_init__(self) -> None:
		for pack_type, table in self.rarity_tables.items():
			if any(weight < 0 for weight in table.values()):
				raise ValueError(f"{pack_type} table has a negative weight")
			if sum(table.values()) != 100:
				raise ValueError(f"{pack_type} table must sum to 100, got {sum(table.values())}")
		missing = set(RarityEnum) - set(self.duplicate_experience)
		if missing:
			raise ValueError(f"duplicate experience missing for {sorted(missing)}")

	def table_for(self, pack_type: TicketTypeEnum) -> Mapping[RarityEnum, int]:
		try:
			return self.rarity_tables[pack_type]
		except KeyError as exc:
			raise InvalidArgumentError(f"No rarity table for pack type {pack_type}") from exc


DEFAULT_DRAW_CONFIG = DrawConfig()


@dataclass(slots=True)
class DrawResult:
	plant_type: PlantType
	rarity: RarityEnum
	is_duplicate: bool
	experience_gained: int
	history: PlantDrawHistory
	inventory_item: PlantInventory | None = None


def parse_pack_type(value: str | TicketTypeEnum) -> TicketTypeEnum:
	if isinstance(value, TicketTypeEnum):
		return value
	try:
		return TicketTypeEnum(str(value).strip().upper())
	except ValueError as exc:
		allowed = ", ".join(member.value for member in TicketTypeEnum)
		raise InvalidArgumentError(f"Unknown pack type {value!r}; expected one of {allowed}") from exc


class DrawService:
	def __init__(
		self,
		db: AsyncSession,
		events: DomainEventBus | None = None,
		*,
		config: DrawConfig = DEFAULT_DRAW_CONFIG,
		rng: random.Random | None = None,
	):
		self.db = db
		self.events = events or DomainEventBus()
		self.config = config
		self.rng = rng or random.Random()

	async def draw_random_plant(
		self,
		child_id: uuid.UUID,
		pack_type: str | TicketTypeEnum,
		ticket: DrawTicket | None = None,
	) -> DrawResult:
		pack = parse_pack_type(pack_type)
		await require_child(self.db, child_id)

		roll = self.rng.random() * 100
		rarity = mechanics.choose_rarity(roll, self.config.table_for(pack))
		candidates = await PlantCatalogService(self.db).list_drawable(rarity)
		if not candidates:
			raise NotFoundError(f"No drawable plant types of rarity {rarity}")
		plant_type = self.rng.choice(candidates)

		row = await self.db.execute(
			select(PlantInventory)
			.where(
				PlantInventory.child_id == child_id,
				PlantInventory.plant_type_id == plant_type.id,
			)
			.with_for_update(of=PlantInventory)
		)
		existing = row.scalar_one_or_none()

		experience = 0
		inventory_item = existing
		if existing is not None:
			experience = self.config.duplicate_experience[rarity]
		else:
			inventory_item = PlantInventory(
				child_id=child_id,
				plant_type_id=plant_type.id,
				plant_type=plant_type,
				quantity=1,
			)
			self.db.add(inventory_item)

		history = PlantDrawHistory(
			child_id=child_id,
			plant_type_id=plant_type.id,
			pack_type=pack,
			is_duplicate=existing is not None,
			experience_gained=experience,
			ticket_used=ticket is not None,
			ticket_type=ticket.ticket_type if ticket is not None else None,
			ticket_id=ticket.id if ticket is not None else None,
		)
		self.db.add(history)
		try:
			await self.db.flush()
		except IntegrityError as exc:
			# a concurrent first draw of the same type inserted the inventory row
			raise ConflictError(f"Concurrent draw for {plant_type.name}; retry the draw") from exc

		logger.info(
			"plant_drawn",
			child_id=str(child_id),
			pack_type=pack.value,
			roll=round(roll, 3),
			rarity=rarity.value,
			plant_type=plant_type.name,
			duplicate=existing is not None,
			ticket_id=str(ticket.id) if ticket is not None else None,
		)

		if existing is not None:
			await self.events.publish(
				DuplicateDrawOccurred(
					child_id=child_id,
					plant_type_id=plant_type.id,
					experience=experience,
				)
			)

		return DrawResult(
			plant_type=plant_type,
			rarity=rarity,
			is_duplicate=existing is not None,
			experience_gained=experience,
			history=history,
			inventory_item=inventory_item,
		)

	async def remove_from_inventory(self, child_id: uuid.UUID, plant_type_id: uuid.UUID) -> None:
		row = await self.db.execute(
			select(PlantInventory)
			.where(
				PlantInventory.child_id == child_id,
				PlantInventory.plant_type_id == plant_type_id,
			)
			.with_for_update(of=PlantInventory)
		)
		item = row.scalar_one_or_none()
		if item is None:
			raise NotFoundError(f"Plant type {plant_type_id} is not in the inventory")
		await self.db.delete(item)
		await self.db.flush()
		logger.info("inventory_removed", child_id=str(child_id), plant_type_id=str(plant_type_id))

	async def get_plant_inventory(self, child_id: uuid.UUID) -> list[PlantInventory]:
		await require_child(self.db, child_id)
		rows = await self.db.execute(
			select(PlantInventory)
			.where(PlantInventory.child_id == child_id)
			.order_by(PlantInventory.acquired_at.desc())
		)
		return list(rows.scalars().all())

	async def list_draw_history(self, child_id: uuid.UUID, limit: int = 50) -> list[PlantDrawHistory]:
		if limit < 1:
			raise InvalidArgumentError("limit must be positive")
		await require_child(self.db, child_id)
		rows = await self.db.execute(
			select(PlantDrawHistory)
			.where(PlantDrawHistory.child_id == child_id)
			.order_by(PlantDrawHistory.recorded_at.desc(), PlantDrawHistory.id.desc())
			.limit(limit)
		)
		return list(rows.scalars().all())

