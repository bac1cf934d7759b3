"""Pydantic schemas for tickets, child stats and missions."""

from __future__ import annotations

import uuid
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from sprout.models.enums import MissionTypeEnum, TicketTypeEnum
from sprout.schemas.inventory import DrawResponse


class TicketRead(BaseModel):
	model_config = ConfigDict(from_attributes=True)

	id: uuid.UUID
	child_id: uuid.UUID
	ticket_type: TicketTypeEnum
	earned_from: str
	is_used: bool
	earned_at: datetime
	used_at: datetime | None = None


class TicketCounts(BaseModel):
	BASIC: int = 0
	PREMIUM: int = 0
	SPECIAL: int = 0
	total: int = 0


class TicketListRead(BaseModel):
	tickets: list[TicketRead]
	counts: TicketCounts


class TicketDrawResponse(BaseModel):
	ticket: TicketRead
	draw: DrawResponse


class GrantTicketsRequest(BaseModel):
	child_id: uuid.UUID
	ticket_type: TicketTypeEnum
	count: int = Field(ge=1, le=100)
	earned_from: str = Field(default="ADMIN_GRANT", min_length=1, max_length=100)


class MissionProgress(BaseModel):
	id: uuid.UUID
	title: str
	mission_type: MissionTypeEnum
	current_count: int
	target_count: int
	progress: str
	percent: int


class ChildStatsRead(BaseModel):
	child_id: uuid.UUID
	verification_count: int
	plant_completion_count: int
	watering_streak: int
	total_completed_plants: int
	tickets: TicketCounts
	missions: list[MissionProgress]


class MissionCreate(BaseModel):
	child_id: uuid.UUID | None = None
	title: str = Field(min_length=1, max_length=200)
	description: str | None = None
	mission_type: MissionTypeEnum
	target_count: int = Field(ge=1)
	ticket_reward: TicketTypeEnum = TicketTypeEnum.BASIC
	ticket_count: int = Field(default=1, ge=1)
	end_date: datetime | None = None


class MissionUpdate(BaseModel):
	title: str | None = Field(default=None, min_length=1, max_length=200)
	description: str | None = None
	target_count: int | None = Field(default=None, ge=1)
	ticket_reward: TicketTypeEnum | None = None
	ticket_count: int | None = Field(default=None, ge=1)
	end_date: datetime | None = None
	is_active: bool | None = None


class MissionRead(BaseModel):
	model_config = ConfigDict(from_attributes=True)

	id: uuid.UUID
	child_id: uuid.UUID | None = None
	template_id: uuid.UUID | None = None
	title: str
	description: str | None = None
	mission_type: MissionTypeEnum
	target_count: int
	current_count: int
	ticket_reward: TicketTypeEnum
	ticket_count: int
	is_active: bool
	is_completed: bool
	end_date: datetime | None = None
	completed_at: datetime | None = None


class CleanupResponse(BaseModel):
	deactivated: int


class SeedResponse(BaseModel):
	plant_types_created: int
	milestone_rules_created: int
	missions_created: int
