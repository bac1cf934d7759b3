"""Plant catalog queries and admin creation."""

from __future__ import annotations

import uuid

from sqlalchemy import false, or_, select, true
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from sprout.errors import ConflictError, InvalidArgumentError, NotFoundError
from sprout.models.catalog import PlantType
from sprout.models.enums import RarityEnum
from sprout.schemas.plant import PlantTypeCreate
from sprout.services.children import require_child


class PlantCatalogService:
	"""Read access to plant types plus the admin ``create`` operation."""

	def __init__(self, db: AsyncSession):
		self.db = db

	async def list_plant_types(self, child_id: uuid.UUID | None = None) -> list[PlantType]:
		stmt = select(PlantType).order_by(
			PlantType.unlock_requirement.asc().nulls_first(),
			PlantType.name.asc(),
		)
		if child_id is not None:
			child = await require_child(self.db, child_id)
			stmt = stmt.where(
				or_(
					PlantType.is_basic == true(),
					PlantType.unlock_requirement.is_(None),
					PlantType.unlock_requirement <= child.total_completed_plants,
				)
			)
		rows = await self.db.execute(stmt)
		return list(rows.scalars().all())

	async def get_plant_type(self, plant_type_id: uuid.UUID) -> PlantType:
		row = await self.db.execute(select(PlantType).where(PlantType.id == plant_type_id))
		plant_type = row.scalar_one_or_none()
		if plant_type is None:
			raise NotFoundError(f"Plant type {plant_type_id} not found")
		return plant_type

	async def create_plant_type(self, payload: PlantTypeCreate) -> PlantType:
		if payload.growth_stages < 1:
			raise InvalidArgumentError("growth_stages must be at least 1")
		if payload.unlock_requirement is not None and payload.unlock_requirement < 0:
			raise InvalidArgumentError("unlock_requirement must be non-negative")

		existing = await self.db.execute(select(PlantType.id).where(PlantType.name == payload.name))
		if existing.scalar_one_or_none() is not None:
			raise ConflictError(f"Plant type {payload.name!r} already exists")

		plant_type = PlantType(
			name=payload.name,
			description=payload.description,
			growth_stages=payload.growth_stages,
			difficulty=payload.difficulty,
			category=payload.category,
			rarity=payload.rarity,
			is_basic=payload.is_basic,
			unlock_requirement=payload.unlock_requirement,
			image_prefix=payload.image_prefix,
		)
		self.db.add(plant_type)
		try:
			await self.db.flush()
		except IntegrityError as exc:
			raise ConflictError(f"Plant type {payload.name!r} already exists") from exc
		return plant_type

	async def list_drawable(self, rarity: RarityEnum) -> list[PlantType]:
		"""Non-basic plant types of ``rarity``, in stable order for reproducible draws."""
		rows = await self.db.execute(
			select(PlantType)
			.where(PlantType.rarity == rarity, PlantType.is_basic == false())
			.order_by(PlantType.name.asc())
		)
		return list(rows.scalars().all())

	@staticmethod
	def is_unlocked(plant_type: PlantType, total_completed_plants: int) -> bool:
		if plant_type.is_basic or plant_type.unlock_requirement is None:
			return True
		return plant_type.unlock_requirement <= total_completed_plants
