"""Ticket issuance shared by milestone, streak, mission and admin grants."""

from __future__ import annotations

import uuid
from datetime import datetime

import structlog
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from sprout.errors import ConflictError, InvalidArgumentError
from sprout.models.base import utcnow
from sprout.models.enums import TicketTypeEnum
from sprout.models.rewards import DrawTicket, TicketGrant

logger = structlog.get_logger("sprout.tickets")


def mission_key(mission_id: uuid.UUID) -> str:
	return f"MISSION_{mission_id}"


def streak_key(streak: int) -> str:
	return f"STREAK_{streak}_DAYS"


async def has_grant(db: AsyncSession, child_id: uuid.UUID, earned_from: str) -> bool:
	"""True when the key is in the ledger or any ticket already carries it."""
	row = await db.execute(
		select(TicketGrant.id).where(
			TicketGrant.child_id == child_id,
			TicketGrant.earned_from == earned_from,
		)
	)
	if row.scalar_one_or_none() is not None:
		return True
	row = await db.execute(
		select(DrawTicket.id)
		.where(DrawTicket.child_id == child_id, DrawTicket.earned_from == earned_from)
		.limit(1)
	)
	return row.scalar_one_or_none() is not None


async def issue_tickets(
	db: AsyncSession,
	child_id: uuid.UUID,
	ticket_type: TicketTypeEnum,
	count: int,
	earned_from: str,
	*,
	once: bool = False,
	now: datetime | None = None,
) -> list[DrawTicket]:
	"""Create ``count`` unused tickets.

	With ``once`` a ``TicketGrant`` row is written first; a second grant of
	the same ``earned_from`` key for the same child raises ``ConflictError``,
	as does a key that unkeyed tickets already carry.
	A count of zero issues nothing and records nothing.
	"""
	if count < 0:
		raise InvalidArgumentError("Ticket count must not be negative")
	if not earned_from:
		raise InvalidArgumentError("earned_from is required")
	if count == 0:
		return []

	now = now or utcnow()
	grant_id: uuid.UUID | None = None
	if once:
		if await has_grant(db, child_id, earned_from):
			raise ConflictError(f"Tickets for {earned_from} were already granted")
		grant = TicketGrant(
			child_id=child_id,
			earned_from=earned_from,
			ticket_type=ticket_type,
			ticket_count=count,
			granted_at=now,
		)
		db.add(grant)
		try:
			await db.flush()
		except IntegrityError as exc:
			raise ConflictError(f"Tickets for {earned_from} were already granted") from exc
		grant_id = grant.id

	tickets = [
		DrawTicket(
			child_id=child_id,
			ticket_type=ticket_type,
			earned_from=earned_from,
			grant_id=grant_id,
			is_used=False,
			earned_at=now,
		)
		for _ in range(count)
	]
	db.add_all(tickets)
	await db.flush()
	logger.info(
		"tickets_granted",
		child_id=str(child_id),
		ticket_type=ticket_type.value,
		count=count,
		earned_from=earned_from,
	)
	return tickets
