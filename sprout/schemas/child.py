"""Pydantic schemas for child reward profiles."""

from __future__ import annotations

import uuid
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class ChildProfileEnsure(BaseModel):
	user_id: uuid.UUID
	display_name: str | None = Field(default=None, max_length=100)


class ChildProfileRead(BaseModel):
	model_config = ConfigDict(from_attributes=True)

	id: uuid.UUID
	user_id: uuid.UUID
	display_name: str | None = None
	verification_count: int
	plant_completion_count: int
	watering_streak: int
	total_completed_plants: int
	current_plant_id: uuid.UUID | None = None
	created_at: datetime
