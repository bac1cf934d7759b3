"""Counters, milestone rules and ticket issuance triggered by child activity."""

from __future__ import annotations

import uuid
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime

import structlog
from sqlalchemy import false, func, or_, select, true
from sqlalchemy.ext.asyncio import AsyncSession

from sprout.errors import NotFoundError
from sprout.models.base import utcnow
from sprout.models.child import ChildProfile
from sprout.models.enums import (
	MissionTypeEnum,
	NotificationTypeEnum,
	RewardTypeEnum,
	TicketTypeEnum,
)
from sprout.models.rewards import DrawTicket, Mission, TicketRewardRule
from sprout.services import mechanics
from sprout.services.children import require_child
from sprout.services.dispatch import run_best_effort
from sprout.services.draw_service import DrawResult, DrawService
from sprout.services.ledger import has_grant, issue_tickets, streak_key
from sprout.services.mission_service import VERIFICATION_MISSION_TYPES, MissionService
from sprout.services.notifier import Notifier, RedisNotifier

logger = structlog.get_logger("sprout.tickets")

DEFAULT_MILESTONE_RULES: tuple[tuple[RewardTypeEnum, int, TicketTypeEnum, str], ...] = (
	(RewardTypeEnum.VERIFICATION_MILESTONE, 1, TicketTypeEnum.BASIC, "First promise verified"),
	(RewardTypeEnum.VERIFICATION_MILESTONE, 5, TicketTypeEnum.BASIC, "5 promises verified"),
	(RewardTypeEnum.VERIFICATION_MILESTONE, 10, TicketTypeEnum.BASIC, "10 promises verified"),
	(RewardTypeEnum.VERIFICATION_MILESTONE, 25, TicketTypeEnum.PREMIUM, "25 promises verified"),
	(RewardTypeEnum.VERIFICATION_MILESTONE, 50, TicketTypeEnum.PREMIUM, "50 promises verified"),
	(RewardTypeEnum.VERIFICATION_MILESTONE, 100, TicketTypeEnum.SPECIAL, "100 promises verified"),
	(RewardTypeEnum.PLANT_COMPLETION, 1, TicketTypeEnum.BASIC, "First plant grown"),
	(RewardTypeEnum.PLANT_COMPLETION, 3, TicketTypeEnum.BASIC, "3 plants grown"),
	(RewardTypeEnum.PLANT_COMPLETION, 5, TicketTypeEnum.PREMIUM, "5 plants grown"),
	(RewardTypeEnum.PLANT_COMPLETION, 10, TicketTypeEnum.PREMIUM, "10 plants grown"),
	(RewardTypeEnum.PLANT_COMPLETION, 20, TicketTypeEnum.SPECIAL, "20 plants grown"),
)

_REWARD_LABELS = {
	RewardTypeEnum.VERIFICATION_MILESTONE: "promise verifications",
	RewardTypeEnum.PLANT_COMPLETION: "completed plants",
	RewardTypeEnum.DAILY_STREAK: "watering days in a row",
	RewardTypeEnum.WEEKLY_MISSION: "weekly missions",
	RewardTypeEnum.MONTHLY_MISSION: "monthly missions",
}


@dataclass(slots=True)
class TicketSummary:
	tickets: list[DrawTicket]
	counts: dict[str, int] = field(default_factory=dict)


@dataclass(slots=True)
class ChildStats:
	child: ChildProfile
	ticket_counts: dict[str, int]
	missions: list[Mission]


def summarize_counts(by_type: dict[TicketTypeEnum, int]) -> dict[str, int]:
	counts = {ticket_type.value: by_type.get(ticket_type, 0) for ticket_type in TicketTypeEnum}
	counts["total"] = sum(by_type.values())
	return counts


class TicketService:
	def __init__(
		self,
		db: AsyncSession,
		notifier: Notifier | None = None,
		*,
		draws: DrawService | None = None,
		missions: MissionService | None = None,
		clock: Callable[[], datetime] | None = None,
	):
		self.db = db
		self.notifier = notifier or RedisNotifier()
		self._clock = clock or utcnow
		self.draws = draws or DrawService(db)
		self.missions = missions or MissionService(db, self.notifier, clock=self._clock)

	# ── Activity hooks ──────────────────────────────────────────────────────

	async def handle_verification_complete(self, child_id: uuid.UUID) -> ChildProfile:
		child = await require_child(self.db, child_id, for_update=True)
		child.verification_count += 1
		await self.db.flush()
		logger.info(
			"verification_counted",
			child_id=str(child_id),
			verification_count=child.verification_count,
		)
		await self.check_and_grant_milestones(
			child_id, RewardTypeEnum.VERIFICATION_MILESTONE, child.verification_count
		)
		await self.missions.advance_progress(child_id, VERIFICATION_MISSION_TYPES)
		return child

	async def handle_plant_complete(self, child_id: uuid.UUID) -> ChildProfile:
		child = await require_child(self.db, child_id, for_update=True)
		child.plant_completion_count += 1
		await self.db.flush()
		await self.check_and_grant_milestones(
			child_id, RewardTypeEnum.PLANT_COMPLETION, child.plant_completion_count
		)
		await self.missions.advance_progress(child_id, [MissionTypeEnum.PLANT_COMPLETION])
		return child

	async def handle_watering_streak(self, child_id: uuid.UUID, streak_count: int) -> list[DrawTicket]:
		tickets: list[DrawTicket] = []
		reward = mechanics.streak_ticket_reward(streak_count)
		if reward is not None:
			ticket_type, count = reward
			tickets = await self.grant_tickets(child_id, ticket_type, count, streak_key(streak_count))
		await self.missions.advance_progress(child_id, [MissionTypeEnum.STREAK_MAINTENANCE])
		return tickets

	# ── Milestones ──────────────────────────────────────────────────────────

	async def check_and_grant_milestones(
		self,
		child_id: uuid.UUID,
		reward_type: RewardTypeEnum,
		current_count: int,
	) -> list[DrawTicket]:
		"""Grant every reached, not-yet-granted milestone; safe to call repeatedly."""
		user_id = (await require_child(self.db, child_id)).user_id
		rows = await self.db.execute(
			select(TicketRewardRule)
			.where(
				or_(TicketRewardRule.child_id == child_id, TicketRewardRule.child_id.is_(None)),
				TicketRewardRule.reward_type == reward_type,
				TicketRewardRule.required_count <= current_count,
				TicketRewardRule.is_active == true(),
			)
			.order_by(TicketRewardRule.required_count.desc())
		)
		granted: list[DrawTicket] = []
		for rule in rows.scalars().all():
			key = rule.milestone_key
			if await has_grant(self.db, child_id, key):
				continue
			tickets = await self.grant_tickets(
				child_id, rule.ticket_type, rule.ticket_count, key, once=True
			)
			granted.extend(tickets)
			await run_best_effort(
				None,
				"milestone_notification",
				lambda rule=rule: self._notify_milestone(user_id, rule),
				child_id=str(child_id),
				milestone=key,
			)
		return granted

	async def _notify_milestone(self, user_id: uuid.UUID, rule: TicketRewardRule) -> None:
		label = _REWARD_LABELS.get(rule.reward_type, rule.reward_type.value)
		await self.notifier.notify(
			user_id,
			"You earned a draw ticket!",
			f"{rule.required_count} {label} reached: {rule.ticket_count} "
			f"{rule.ticket_type.value} ticket(s) added.",
			NotificationTypeEnum.REWARD,
			rule.id,
		)

	# ── Tickets ─────────────────────────────────────────────────────────────

	async def grant_tickets(
		self,
		child_id: uuid.UUID,
		ticket_type: TicketTypeEnum,
		count: int,
		earned_from: str,
		*,
		once: bool = False,
	) -> list[DrawTicket]:
		await require_child(self.db, child_id)
		return await issue_tickets(
			self.db, child_id, ticket_type, count, earned_from, once=once, now=self._clock()
		)

	async def use_ticket_for_draw(
		self,
		child_id: uuid.UUID,
		ticket_id: uuid.UUID,
	) -> tuple[DrawTicket, DrawResult]:
		row = await self.db.execute(
			select(DrawTicket)
			.where(
				DrawTicket.id == ticket_id,
				DrawTicket.child_id == child_id,
				DrawTicket.is_used == false(),
			)
			.with_for_update()
		)
		ticket = row.scalar_one_or_none()
		if ticket is None:
			raise NotFoundError(f"No unused ticket {ticket_id} for child {child_id}")

		ticket.is_used = True
		ticket.used_at = self._clock()
		await self.db.flush()
		result = await self.draws.draw_random_plant(child_id, ticket.ticket_type, ticket=ticket)
		logger.info("ticket_used", child_id=str(child_id), ticket_id=str(ticket_id))
		return ticket, result

	async def list_child_tickets(self, child_id: uuid.UUID) -> TicketSummary:
		await require_child(self.db, child_id)
		rows = await self.db.execute(
			select(DrawTicket)
			.where(DrawTicket.child_id == child_id, DrawTicket.is_used == false())
			.order_by(DrawTicket.earned_at.desc())
		)
		tickets = list(rows.scalars().all())
		by_type: dict[TicketTypeEnum, int] = {}
		for ticket in tickets:
			by_type[ticket.ticket_type] = by_type.get(ticket.ticket_type, 0) + 1
		return TicketSummary(tickets=tickets, counts=summarize_counts(by_type))

	async def get_child_stats(self, child_id: uuid.UUID) -> ChildStats:
		child = await require_child(self.db, child_id)
		rows = await self.db.execute(
			select(DrawTicket.ticket_type, func.count(DrawTicket.id))
			.where(DrawTicket.child_id == child_id, DrawTicket.is_used == false())
			.group_by(DrawTicket.ticket_type)
		)
		by_type = {ticket_type: count for ticket_type, count in rows.all()}
		missions = await self.missions.list_active_missions(child_id)
		return ChildStats(child=child, ticket_counts=summarize_counts(by_type), missions=missions)

	# ── Seeding ─────────────────────────────────────────────────────────────

	async def create_default_milestone_rewards(self) -> int:
		created = 0
		for reward_type, required_count, ticket_type, description in DEFAULT_MILESTONE_RULES:
			row = await self.db.execute(
				select(TicketRewardRule.id).where(
					TicketRewardRule.child_id.is_(None),
					TicketRewardRule.reward_type == reward_type,
					TicketRewardRule.required_count == required_count,
				)
			)
			if row.scalars().first() is not None:
				continue
			self.db.add(
				TicketRewardRule(
					child_id=None,
					reward_type=reward_type,
					required_count=required_count,
					ticket_type=ticket_type,
					ticket_count=1,
					description=description,
					is_active=True,
				)
			)
			created += 1
		await self.db.flush()
		logger.info("default_milestone_rules_seeded", created=created)
		return created
