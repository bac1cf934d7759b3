"""Default catalog, milestone rules and mission templates.

Run ``python -m sprout.seed`` against the configured database, or call
:func:`seed_defaults` with an open session.  Every step is idempotent.
"""

from __future__ import annotations

import asyncio
from typing import Any

import structlog
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from sprout.database import async_session_factory, engine
from sprout.middleware.logging import configure_structured_logging
from sprout.models.catalog import PlantType
from sprout.models.enums import DifficultyEnum, RarityEnum
from sprout.services.engine import build_engine

logger = structlog.get_logger("sprout.seed")

DEFAULT_PLANT_TYPES: tuple[dict[str, Any], ...] = (
	# Basic plants: always startable, never drawn.
	{"name": "Sunflower", "growth_stages": 3, "difficulty": DifficultyEnum.EASY, "category": "flower", "rarity": RarityEnum.COMMON, "is_basic": True, "image_prefix": "sunflower"},
	{"name": "Bean Sprout", "growth_stages": 3, "difficulty": DifficultyEnum.EASY, "category": "vegetable", "rarity": RarityEnum.COMMON, "is_basic": True, "image_prefix": "bean_sprout"},
	# Drawable plants, at least one per rarity.
	{"name": "Tomato", "growth_stages": 4, "difficulty": DifficultyEnum.EASY, "category": "vegetable", "rarity": RarityEnum.COMMON, "image_prefix": "tomato"},
	{"name": "Basil", "growth_stages": 3, "difficulty": DifficultyEnum.EASY, "category": "herb", "rarity": RarityEnum.COMMON, "image_prefix": "basil"},
	{"name": "Tulip", "growth_stages": 4, "difficulty": DifficultyEnum.MEDIUM, "category": "flower", "rarity": RarityEnum.UNCOMMON, "image_prefix": "tulip"},
	{"name": "Strawberry", "growth_stages": 4, "difficulty": DifficultyEnum.MEDIUM, "category": "fruit", "rarity": RarityEnum.UNCOMMON, "unlock_requirement": 1, "image_prefix": "strawberry"},
	{"name": "Lavender", "growth_stages": 5, "difficulty": DifficultyEnum.MEDIUM, "category": "herb", "rarity": RarityEnum.RARE, "unlock_requirement": 2, "image_prefix": "lavender"},
	{"name": "Cactus", "growth_stages": 5, "difficulty": DifficultyEnum.HARD, "category": "succulent", "rarity": RarityEnum.EPIC, "unlock_requirement": 3, "image_prefix": "cactus"},
	{"name": "Cherry Blossom", "growth_stages": 6, "difficulty": DifficultyEnum.HARD, "category": "tree", "rarity": RarityEnum.LEGENDARY, "unlock_requirement": 5, "image_prefix": "cherry_blossom"},
)


async def seed_plant_types(session: AsyncSession) -> int:
	rows = await session.execute(select(PlantType.name))
	existing = set(rows.scalars().all())
	created = 0
	for fields in DEFAULT_PLANT_TYPES:
		if fields["name"] in existing:
			continue
		session.add(PlantType(**fields))
		created += 1
	await session.flush()
	return created


async def seed_defaults(session: AsyncSession) -> dict[str, int]:
	services = build_engine(session)
	counts = {
		"plant_types_created": await seed_plant_types(session),
		"milestone_rules_created": await services.tickets.create_default_milestone_rewards(),
		"missions_created": await services.missions.create_default_missions(),
	}
	logger.info("defaults_seeded", **counts)
	return counts


async def main() -> None:
	configure_structured_logging()
	async with async_session_factory() as session:
		await seed_defaults(session)
		await session.commit()
	await engine.dispose()


if __name__ == "__main__":
	asyncio.run(main())
