"""Child profile lookups shared by every engine service."""

from __future__ import annotations

import uuid

import structlog
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from sprout.errors import ConflictError, NotFoundError
from sprout.models.child import ChildProfile

logger = structlog.get_logger("sprout.children")


async def require_child(
	db: AsyncSession,
	child_id: uuid.UUID,
	*,
	for_update: bool = False,
) -> ChildProfile:
	stmt = select(ChildProfile).where(ChildProfile.id == child_id)
	if for_update:
		stmt = stmt.with_for_update()
	row = await db.execute(stmt)
	child = row.scalar_one_or_none()
	if child is None:
		raise NotFoundError(f"Child profile {child_id} not found")
	return child


async def ensure_child_profile(
	db: AsyncSession,
	user_id: uuid.UUID,
	display_name: str | None = None,
) -> ChildProfile:
	"""Return the reward profile for ``user_id``, creating an empty one on first use."""
	row = await db.execute(select(ChildProfile).where(ChildProfile.user_id == user_id))
	child = row.scalar_one_or_none()
	if child is not None:
		if display_name and child.display_name != display_name:
			child.display_name = display_name
			await db.flush()
		return child
	child = ChildProfile(user_id=user_id, display_name=display_name)
	db.add(child)
	try:
		await db.flush()
	except IntegrityError as exc:
		raise ConflictError(f"Child profile for user {user_id} was created concurrently; retry") from exc
	logger.info("child_profile_created", child_id=str(child.id), user_id=str(user_id))
	return child
