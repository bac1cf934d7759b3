"""Pydantic request/response schemas for the catalog and plant lifecycle."""

from __future__ import annotations

import uuid
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from sprout.models.enums import DifficultyEnum, RarityEnum


class PlantTypeCreate(BaseModel):
	name: str = Field(min_length=1, max_length=100)
	description: str | None = None
	growth_stages: int
	difficulty: DifficultyEnum = DifficultyEnum.EASY
	category: str = Field(default="general", min_length=1, max_length=50)
	rarity: RarityEnum = RarityEnum.COMMON
	is_basic: bool = False
	unlock_requirement: int | None = None
	image_prefix: str = Field(min_length=1, max_length=100)


class PlantTypeRead(BaseModel):
	model_config = ConfigDict(from_attributes=True)

	id: uuid.UUID
	name: str
	description: str | None = None
	growth_stages: int
	difficulty: DifficultyEnum
	category: str
	rarity: RarityEnum
	is_basic: bool
	unlock_requirement: int | None = None
	image_prefix: str


class PlantStart(BaseModel):
	plant_type_id: uuid.UUID
	name: str | None = Field(default=None, max_length=100)


class ExperienceAdd(BaseModel):
	amount: int = Field(gt=0)


class PlantRead(BaseModel):
	model_config = ConfigDict(from_attributes=True)

	id: uuid.UUID
	child_id: uuid.UUID
	plant_type_id: uuid.UUID
	name: str | None = None
	current_stage: int
	health: int
	experience: int
	experience_to_grow: int
	can_grow: bool
	last_watered: datetime | None = None
	is_completed: bool
	started_at: datetime
	completed_at: datetime | None = None
	plant_type: PlantTypeRead


class WateringLogRead(BaseModel):
	model_config = ConfigDict(from_attributes=True)

	id: int
	plant_id: uuid.UUID
	recorded_at: datetime
	health_gain: int
	experience_gain: int


class SideEffectRead(BaseModel):
	name: str
	ok: bool
	error: str | None = None


class WateringResponse(BaseModel):
	watering_log: WateringLogRead
	plant: PlantRead
	watering_streak: int
	side_effects: list[SideEffectRead] = Field(default_factory=list)


class AdvanceResponse(BaseModel):
	plant: PlantRead
	is_max_stage: bool
	is_completed: bool
	side_effects: list[SideEffectRead] = Field(default_factory=list)


class PlantCollectionEntryRead(BaseModel):
	plant_type: PlantTypeRead
	count: int
	plants: list[PlantRead]


class HealthDecayItem(BaseModel):
	plant_id: uuid.UUID
	previous_health: int
	new_health: int
	days_since_last_watered: int
	alerted: bool


class HealthDecayResponse(BaseModel):
	decayed: int
	plants: list[HealthDecayItem]
