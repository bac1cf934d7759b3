"""Missions: counted goals that pay tickets on completion.

Global templates (``child_id`` NULL) are copied per child on the first
qualifying event, so every child progresses independently.
"""

from __future__ import annotations

import uuid
from collections.abc import Callable, Iterable
from datetime import datetime, time, timedelta
from typing import Any
from zoneinfo import ZoneInfo

import structlog
from sqlalchemy import and_, false, or_, select, true
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from sprout.config import get_settings
from sprout.errors import ConflictError, InvalidArgumentError, InvalidStateError, NotFoundError
from sprout.models.base import utcnow
from sprout.models.enums import MissionTypeEnum, NotificationTypeEnum, TicketTypeEnum
from sprout.models.rewards import Mission
from sprout.schemas.rewards import MissionCreate, MissionUpdate
from sprout.services import mechanics
from sprout.services.children import require_child
from sprout.services.dispatch import run_best_effort
from sprout.services.ledger import issue_tickets, mission_key
from sprout.services.notifier import Notifier, RedisNotifier

logger = structlog.get_logger("sprout.missions")

VERIFICATION_MISSION_TYPES: tuple[MissionTypeEnum, ...] = (
	MissionTypeEnum.DAILY_VERIFICATION,
	MissionTypeEnum.WEEKLY_VERIFICATION,
	MissionTypeEnum.MONTHLY_VERIFICATION,
)


def next_sunday_end(now: datetime, zone: ZoneInfo) -> datetime:
	"""23:59:59 local on the coming Sunday (a week ahead when today is Sunday), in UTC."""
	today = mechanics.local_date(now, zone)
	days_until_sunday = 6 - today.weekday() or 7
	sunday = today + timedelta(days=days_until_sunday)
	local_end = datetime.combine(sunday, time(23, 59, 59), tzinfo=zone)
	return mechanics.ensure_utc(local_end)


def _default_missions(now: datetime, zone: ZoneInfo) -> list[dict[str, Any]]:
	return [
		{
			"title": "Keep a promise every day",
			"description": "Verify one promise a day for 7 days.",
			"mission_type": MissionTypeEnum.DAILY_VERIFICATION,
			"target_count": 7,
			"ticket_reward": TicketTypeEnum.BASIC,
			"ticket_count": 1,
			"end_date": None,
		},
		{
			"title": "Promise week",
			"description": "Verify at least 5 promises this week.",
			"mission_type": MissionTypeEnum.WEEKLY_VERIFICATION,
			"target_count": 5,
			"ticket_reward": TicketTypeEnum.PREMIUM,
			"ticket_count": 1,
			"end_date": next_sunday_end(now, zone),
		},
		{
			"title": "Master gardener",
			"description": "Grow 3 plants to completion.",
			"mission_type": MissionTypeEnum.PLANT_COMPLETION,
			"target_count": 3,
			"ticket_reward": TicketTypeEnum.PREMIUM,
			"ticket_count": 2,
			"end_date": None,
		},
		{
			"title": "Watering champion",
			"description": "Water your plant 14 days in a row.",
			"mission_type": MissionTypeEnum.STREAK_MAINTENANCE,
			"target_count": 14,
			"ticket_reward": TicketTypeEnum.SPECIAL,
			"ticket_count": 1,
			"end_date": None,
		},
	]


class MissionService:
	def __init__(
		self,
		db: AsyncSession,
		notifier: Notifier | None = None,
		*,
		clock: Callable[[], datetime] | None = None,
		zone: ZoneInfo | None = None,
	):
		self.db = db
		self.notifier = notifier or RedisNotifier()
		self._clock = clock or utcnow
		self.zone = zone or get_settings().game_zone

	@staticmethod
	def _open_at(now: datetime):
		return and_(
			Mission.is_active == true(),
			Mission.is_completed == false(),
			or_(Mission.end_date.is_(None), Mission.end_date >= now),
		)

	@staticmethod
	def _materialized_templates(child_id: uuid.UUID):
		return select(Mission.template_id).where(
			Mission.child_id == child_id,
			Mission.template_id.is_not(None),
		)

	# ── Progress ────────────────────────────────────────────────────────────

	async def advance_progress(
		self,
		child_id: uuid.UUID,
		mission_types: Iterable[MissionTypeEnum],
	) -> list[Mission]:
		"""Count one qualifying event; return the missions it completed."""
		types = sorted(set(mission_types))
		if not types:
			return []
		child = await require_child(self.db, child_id)
		now = self._clock()
		missions = await self._progressable(child_id, types, now)

		completed: list[Mission] = []
		for mission in missions:
			mission.current_count += 1
			if mission.current_count < mission.target_count:
				continue
			mission.is_completed = True
			mission.completed_at = now
			await issue_tickets(
				self.db,
				child_id,
				mission.ticket_reward,
				mission.ticket_count,
				mission_key(mission.id),
				once=True,
				now=now,
			)
			completed.append(mission)
			logger.info(
				"mission_completed",
				child_id=str(child_id),
				mission_id=str(mission.id),
				mission_type=mission.mission_type.value,
			)
		await self.db.flush()

		user_id = child.user_id
		for mission in completed:
			await run_best_effort(
				None,
				"mission_completed_notification",
				lambda mission=mission: self.notifier.notify(
					user_id,
					"Mission complete!",
					f'You finished "{mission.title}" and earned '
					f"{mission.ticket_count} {mission.ticket_reward.value} ticket(s)!",
					NotificationTypeEnum.REWARD,
					mission.id,
				),
				child_id=str(child_id),
				mission_id=str(mission.id),
			)
		return completed

	async def _progressable(
		self,
		child_id: uuid.UUID,
		types: list[MissionTypeEnum],
		now: datetime,
	) -> list[Mission]:
		own = await self.db.execute(
			select(Mission)
			.where(
				Mission.child_id == child_id,
				Mission.mission_type.in_(types),
				self._open_at(now),
			)
			.order_by(Mission.created_at.asc())
			.with_for_update()
		)
		missions = list(own.scalars().all())

		templates = await self.db.execute(
			select(Mission)
			.where(
				Mission.child_id.is_(None),
				Mission.mission_type.in_(types),
				self._open_at(now),
				Mission.id.not_in(self._materialized_templates(child_id)),
			)
			.order_by(Mission.created_at.asc())
		)
		copies = [
			Mission(
				child_id=child_id,
				template_id=template.id,
				title=template.title,
				description=template.description,
				mission_type=template.mission_type,
				target_count=template.target_count,
				current_count=0,
				ticket_reward=template.ticket_reward,
				ticket_count=template.ticket_count,
				is_active=True,
				is_completed=False,
				end_date=template.end_date,
			)
			for template in templates.scalars().all()
		]
		if copies:
			self.db.add_all(copies)
			try:
				await self.db.flush()
			except IntegrityError as exc:
				raise ConflictError("Mission progress was updated concurrently; retry") from exc
			logger.debug("missions_materialized", child_id=str(child_id), count=len(copies))
		return missions + copies

	# ── CRUD ────────────────────────────────────────────────────────────────

	async def get_mission(self, mission_id: uuid.UUID) -> Mission:
		mission = await self.db.get(Mission, mission_id)
		if mission is None:
			raise NotFoundError(f"Mission {mission_id} not found")
		return mission

	async def create_mission(self, payload: MissionCreate) -> Mission:
		if payload.child_id is not None:
			await require_child(self.db, payload.child_id)
		mission = Mission(
			child_id=payload.child_id,
			title=payload.title,
			description=payload.description,
			mission_type=payload.mission_type,
			target_count=payload.target_count,
			current_count=0,
			ticket_reward=payload.ticket_reward,
			ticket_count=payload.ticket_count,
			is_active=True,
			is_completed=False,
			end_date=payload.end_date,
		)
		self.db.add(mission)
		await self.db.flush()
		logger.info("mission_created", mission_id=str(mission.id), child_id=str(payload.child_id))
		return mission

	async def update_mission(self, mission_id: uuid.UUID, payload: MissionUpdate) -> Mission:
		mission = await self.get_mission(mission_id)
		if mission.is_completed:
			raise InvalidStateError("Completed missions cannot be changed")
		if not mission.is_active:
			raise InvalidStateError("Inactive missions cannot be changed")
		if payload.is_active:
			raise InvalidArgumentError("Missions can only be deactivated")
		for field_name, value in payload.model_dump(exclude_unset=True).items():
			setattr(mission, field_name, value)
		await self.db.flush()
		return mission

	async def delete_mission(self, mission_id: uuid.UUID) -> None:
		mission = await self.get_mission(mission_id)
		await self.db.delete(mission)
		await self.db.flush()
		logger.info("mission_deleted", mission_id=str(mission_id))

	async def list_active_missions(self, child_id: uuid.UUID) -> list[Mission]:
		await require_child(self.db, child_id)
		now = self._clock()
		rows = await self.db.execute(
			select(Mission)
			.where(
				or_(
					Mission.child_id == child_id,
					and_(
						Mission.child_id.is_(None),
						Mission.id.not_in(self._materialized_templates(child_id)),
					),
				),
				self._open_at(now),
			)
			.order_by(Mission.end_date.asc().nulls_last(), Mission.created_at.desc())
		)
		return list(rows.scalars().all())

	async def list_completed_missions(self, child_id: uuid.UUID) -> list[Mission]:
		await require_child(self.db, child_id)
		rows = await self.db.execute(
			select(Mission)
			.where(Mission.child_id == child_id, Mission.is_completed == true())
			.order_by(Mission.completed_at.desc())
		)
		return list(rows.scalars().all())

	# ── Maintenance ─────────────────────────────────────────────────────────

	async def create_default_missions(self) -> int:
		"""Seed the global templates and return how many rows were created.

		An active, unexpired template with the same type and target is kept
		instead of duplicated. Deactivated or expired templates stay as they
		are and a fresh one is created (a weekly one ends on the coming Sunday).
		"""
		now = self._clock()
		created = 0
		for template in _default_missions(now, self.zone):
			row = await self.db.execute(
				select(Mission).where(
					Mission.child_id.is_(None),
					Mission.mission_type == template["mission_type"],
					Mission.target_count == template["target_count"],
					Mission.is_completed == false(),
					Mission.is_active == true(),
					or_(Mission.end_date.is_(None), Mission.end_date >= now),
				)
			)
			if row.scalars().first() is not None:
				continue
			self.db.add(Mission(child_id=None, current_count=0, is_active=True, is_completed=False, **template))
			created += 1
		await self.db.flush()
		logger.info("default_missions_seeded", created=created)
		return created

	async def cleanup_expired_missions(self) -> int:
		now = self._clock()
		rows = await self.db.execute(
			select(Mission)
			.where(
				Mission.is_active == true(),
				Mission.is_completed == false(),
				Mission.end_date.is_not(None),
				Mission.end_date < now,
			)
			.with_for_update()
		)
		expired = list(rows.scalars().all())
		for mission in expired:
			mission.is_active = False
		await self.db.flush()
		logger.info("expired_missions_deactivated", count=len(expired))
		return len(expired)
