from __future__ import annotations

import uuid
from datetime import UTC, datetime, timedelta
from zoneinfo import ZoneInfo

import pytest
from sqlalchemy import select

from sprout.errors import InvalidArgumentError, InvalidStateError, NotFoundError
from sprout.models import DrawTicket, Mission, MissionTypeEnum, NotificationTypeEnum, TicketTypeEnum
from sprout.schemas.rewards import MissionCreate, MissionUpdate
from sprout.services.children import ensure_child_profile
from sprout.services.mission_service import next_sunday_end

SEOUL = ZoneInfo("Asia/Seoul")


@pytest.mark.parametrize(
	("now", "expected"),
	[
		# Monday noon in Seoul
		(datetime(2026, 3, 2, 3, 0, tzinfo=UTC), datetime(2026, 3, 8, 14, 59, 59, tzinfo=UTC)),
		# Saturday 23:00 in Seoul
		(datetime(2026, 3, 7, 14, 0, tzinfo=UTC), datetime(2026, 3, 8, 14, 59, 59, tzinfo=UTC)),
		# Sunday 08:00 in Seoul rolls over to the following week
		(datetime(2026, 3, 7, 23, 0, tzinfo=UTC), datetime(2026, 3, 15, 14, 59, 59, tzinfo=UTC)),
	],
)
def test_next_sunday_end(now: datetime, expected: datetime) -> None:
	assert next_sunday_end(now, SEOUL) == expected


@pytest.mark.asyncio
async def test_default_missions_are_idempotent(engine, session, clock) -> None:
	assert await engine.missions.create_default_missions() == 4
	assert await engine.missions.create_default_missions() == 0

	clock.advance(days=7)
	assert await engine.missions.create_default_missions() == 1

	rows = await session.execute(
		select(Mission).where(Mission.mission_type == MissionTypeEnum.WEEKLY_VERIFICATION)
	)
	weekly = rows.scalars().all()
	assert len(weekly) == 2


@pytest.mark.asyncio
async def test_templates_are_copied_per_child(engine, child, session) -> None:
	await engine.missions.create_default_missions()
	other = await ensure_child_profile(session, uuid.uuid4(), "Joon")

	await engine.missions.advance_progress(child.id, [MissionTypeEnum.PLANT_COMPLETION])
	await engine.missions.advance_progress(child.id, [MissionTypeEnum.PLANT_COMPLETION])
	await engine.missions.advance_progress(other.id, [MissionTypeEnum.PLANT_COMPLETION])

	rows = await session.execute(
		select(Mission).where(Mission.mission_type == MissionTypeEnum.PLANT_COMPLETION)
	)
	by_owner = {mission.child_id: mission.current_count for mission in rows.scalars().all()}
	assert by_owner == {None: 0, child.id: 2, other.id: 1}


@pytest.mark.asyncio
async def test_mission_completion_pays_tickets(engine, child, session, notifier) -> None:
	await engine.missions.create_default_missions()

	for _ in range(5):
		await engine.tickets.handle_verification_complete(child.id)

	[weekly] = await engine.missions.list_completed_missions(child.id)
	assert weekly.mission_type == MissionTypeEnum.WEEKLY_VERIFICATION
	assert weekly.template_id is not None
	assert weekly.completed_at is not None

	rows = await session.execute(select(DrawTicket).where(DrawTicket.child_id == child.id))
	tickets = rows.scalars().all()
	assert [(t.ticket_type, t.earned_from) for t in tickets] == [
		(TicketTypeEnum.PREMIUM, f"MISSION_{weekly.id}")
	]
	assert notifier.calls[-1]["notification_type"] == NotificationTypeEnum.REWARD
	assert notifier.calls[-1]["related_id"] == weekly.id

	active = await engine.missions.list_active_missions(child.id)
	assert weekly.id not in {mission.id for mission in active}
	daily = next(m for m in active if m.mission_type == MissionTypeEnum.DAILY_VERIFICATION)
	assert (daily.child_id, daily.current_count) == (child.id, 5)


@pytest.mark.asyncio
async def test_completed_mission_stops_counting(engine, child) -> None:
	mission = await engine.missions.create_mission(
		MissionCreate(
			child_id=child.id,
			title="Two plants",
			mission_type=MissionTypeEnum.PLANT_COMPLETION,
			target_count=1,
			ticket_reward=TicketTypeEnum.SPECIAL,
		)
	)

	first = await engine.missions.advance_progress(child.id, [MissionTypeEnum.PLANT_COMPLETION])
	second = await engine.missions.advance_progress(child.id, [MissionTypeEnum.PLANT_COMPLETION])

	assert [m.id for m in first] == [mission.id]
	assert second == []
	assert mission.current_count == 1


@pytest.mark.asyncio
async def test_expired_missions_do_not_progress(engine, child, clock) -> None:
	mission = await engine.missions.create_mission(
		MissionCreate(
			child_id=child.id,
			title="Quick streak",
			mission_type=MissionTypeEnum.STREAK_MAINTENANCE,
			target_count=3,
			end_date=clock.now + timedelta(hours=1),
		)
	)
	clock.advance(hours=2)

	await engine.missions.advance_progress(child.id, [MissionTypeEnum.STREAK_MAINTENANCE])

	assert mission.current_count == 0


@pytest.mark.asyncio
async def test_cleanup_expired_missions(engine, child, clock) -> None:
	expiring = await engine.missions.create_mission(
		MissionCreate(
			child_id=child.id,
			title="Weekend",
			mission_type=MissionTypeEnum.WEEKLY_VERIFICATION,
			target_count=2,
			end_date=clock.now + timedelta(days=1),
		)
	)
	open_ended = await engine.missions.create_mission(
		MissionCreate(title="Forever", mission_type=MissionTypeEnum.DAILY_VERIFICATION, target_count=9)
	)

	assert await engine.missions.cleanup_expired_missions() == 0
	clock.advance(days=2)
	assert await engine.missions.cleanup_expired_missions() == 1

	assert expiring.is_active is False
	assert open_ended.is_active is True


@pytest.mark.asyncio
async def test_update_and_delete_mission(engine, child) -> None:
	mission = await engine.missions.create_mission(
		MissionCreate(
			child_id=child.id,
			title="Water",
			mission_type=MissionTypeEnum.STREAK_MAINTENANCE,
			target_count=1,
		)
	)

	updated = await engine.missions.update_mission(mission.id, MissionUpdate(title="Water daily", target_count=3))
	assert (updated.title, updated.target_count, updated.ticket_count) == ("Water daily", 3, 1)

	await engine.missions.delete_mission(mission.id)
	with pytest.raises(NotFoundError):
		await engine.missions.get_mission(mission.id)


@pytest.mark.asyncio
async def test_completed_mission_is_read_only(engine, child) -> None:
	mission = await engine.missions.create_mission(
		MissionCreate(
			child_id=child.id,
			title="Once",
			mission_type=MissionTypeEnum.PLANT_COMPLETION,
			target_count=1,
		)
	)
	await engine.missions.advance_progress(child.id, [MissionTypeEnum.PLANT_COMPLETION])

	with pytest.raises(InvalidStateError):
		await engine.missions.update_mission(mission.id, MissionUpdate(title="Twice"))


@pytest.mark.asyncio
async def test_create_mission_for_unknown_child(engine) -> None:
	with pytest.raises(NotFoundError):
		await engine.missions.create_mission(
			MissionCreate(
				child_id=uuid.uuid4(),
				title="Ghost",
				mission_type=MissionTypeEnum.DAILY_VERIFICATION,
				target_count=1,
			)
		)


@pytest.mark.asyncio
async def test_expired_mission_cannot_be_revived(engine, child, clock) -> None:
	mission = await engine.missions.create_mission(
		MissionCreate(
			child_id=child.id,
			title="Sprint",
			mission_type=MissionTypeEnum.STREAK_MAINTENANCE,
			target_count=3,
			end_date=clock.now + timedelta(hours=1),
		)
	)
	clock.advance(hours=2)
	assert await engine.missions.cleanup_expired_missions() == 1

	with pytest.raises(InvalidStateError):
		await engine.missions.update_mission(
			mission.id, MissionUpdate(is_active=True, end_date=clock.now + timedelta(days=3))
		)
	await engine.missions.advance_progress(child.id, [MissionTypeEnum.STREAK_MAINTENANCE])

	assert (mission.is_active, mission.current_count) == (False, 0)


@pytest.mark.asyncio
async def test_update_can_only_deactivate(engine, child) -> None:
	mission = await engine.missions.create_mission(
		MissionCreate(
			child_id=child.id,
			title="Water",
			mission_type=MissionTypeEnum.STREAK_MAINTENANCE,
			target_count=2,
		)
	)

	with pytest.raises(InvalidArgumentError):
		await engine.missions.update_mission(mission.id, MissionUpdate(is_active=True))

	await engine.missions.update_mission(mission.id, MissionUpdate(is_active=False))
	with pytest.raises(InvalidStateError):
		await engine.missions.update_mission(mission.id, MissionUpdate(title="Back again"))


@pytest.mark.asyncio
async def test_seeding_leaves_deactivated_templates_alone(engine, session) -> None:
	await engine.missions.create_default_missions()
	rows = await session.execute(
		select(Mission).where(Mission.mission_type == MissionTypeEnum.PLANT_COMPLETION)
	)
	[template] = rows.scalars().all()
	await engine.missions.update_mission(template.id, MissionUpdate(is_active=False))

	assert await engine.missions.create_default_missions() == 1

	rows = await session.execute(
		select(Mission).where(Mission.mission_type == MissionTypeEnum.PLANT_COMPLETION)
	)
	assert sorted(m.is_active for m in rows.scalars().all()) == [False, True]
	assert template.is_active is False
