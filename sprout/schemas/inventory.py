"""Pydantic schemas for draws and the plant inventory."""

from __future__ import annotations

import uuid
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from sprout.models.enums import RarityEnum, TicketTypeEnum
from sprout.schemas.plant import PlantTypeRead


class DrawRequest(BaseModel):
	pack_type: str = Field(min_length=1, max_length=20)


class InventoryItemRead(BaseModel):
	model_config = ConfigDict(from_attributes=True)

	id: uuid.UUID
	child_id: uuid.UUID
	plant_type_id: uuid.UUID
	quantity: int
	acquired_at: datetime
	plant_type: PlantTypeRead


class DrawHistoryRead(BaseModel):
	model_config = ConfigDict(from_attributes=True)

	id: int
	child_id: uuid.UUID
	plant_type_id: uuid.UUID
	pack_type: TicketTypeEnum
	is_duplicate: bool
	experience_gained: int
	ticket_used: bool
	ticket_type: TicketTypeEnum | None = None
	ticket_id: uuid.UUID | None = None
	recorded_at: datetime


class DrawResponse(BaseModel):
	plant_type: PlantTypeRead
	rarity: RarityEnum
	is_duplicate: bool
	experience_gained: int
	history: DrawHistoryRead
