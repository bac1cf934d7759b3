"""Game-mechanics constants and pure rules.

Everything here is deterministic and free of I/O so the services can stay
focused on locking and persistence, and the numbers can be tested directly.
"""

from __future__ import annotations

import math
from collections.abc import Mapping
from dataclasses import dataclass
from datetime import UTC, date, datetime, timedelta
from types import MappingProxyType
from zoneinfo import ZoneInfo

from sprout.models.enums import DifficultyEnum, RarityEnum, TicketTypeEnum

# ── Growth ──────────────────────────────────────────────────────────────────

BASE_EXPERIENCE_TO_GROW = 10
STAGE_EXPERIENCE_STEP = 0.5

DIFFICULTY_MULTIPLIER: Mapping[DifficultyEnum, float] = MappingProxyType(
	{
		DifficultyEnum.EASY: 1.0,
		DifficultyEnum.MEDIUM: 1.5,
		DifficultyEnum.HARD: 2.0,
	}
)

# ── Watering & health ───────────────────────────────────────────────────────

MAX_HEALTH = 100
WATERING_HEALTH_GAIN = 10
WATERING_BASE_EXPERIENCE = 5
STREAK_BONUS_CAP = 5

HEALTH_DECAY_GRACE_DAYS = 2
HEALTH_DECAY_PER_DAY = 5
LOW_HEALTH_THRESHOLD = 30

# ── Streak tickets ──────────────────────────────────────────────────────────

STREAK_MILESTONES: frozenset[int] = frozenset({1, 3, 5, 7, 10, 13, 21, 28, 35, 42, 50, 70, 100})

# ── Draws ───────────────────────────────────────────────────────────────────

RARITY_ORDER: tuple[RarityEnum, ...] = (
	RarityEnum.COMMON,
	RarityEnum.UNCOMMON,
	RarityEnum.RARE,
	RarityEnum.EPIC,
	RarityEnum.LEGENDARY,
)

PACK_RARITY_TABLES: Mapping[TicketTypeEnum, Mapping[RarityEnum, int]] = MappingProxyType(
	{
		TicketTypeEnum.BASIC: MappingProxyType(
			{
				RarityEnum.COMMON: 70,
				RarityEnum.UNCOMMON: 25,
				RarityEnum.RARE: 5,
				RarityEnum.EPIC: 0,
				RarityEnum.LEGENDARY: 0,
			}
		),
		TicketTypeEnum.PREMIUM: MappingProxyType(
			{
				RarityEnum.COMMON: 40,
				RarityEnum.UNCOMMON: 35,
				RarityEnum.RARE: 18,
				RarityEnum.EPIC: 6,
				RarityEnum.LEGENDARY: 1,
			}
		),
		TicketTypeEnum.SPECIAL: MappingProxyType(
			{
				RarityEnum.COMMON: 0,
				RarityEnum.UNCOMMON: 30,
				RarityEnum.RARE: 40,
				RarityEnum.EPIC: 22,
				RarityEnum.LEGENDARY: 8,
			}
		),
	}
)

DUPLICATE_EXPERIENCE: Mapping[RarityEnum, int] = MappingProxyType(
	{
		RarityEnum.COMMON: 10,
		RarityEnum.UNCOMMON: 20,
		RarityEnum.RARE: 30,
		RarityEnum.EPIC: 50,
		RarityEnum.LEGENDARY: 100,
	}
)


def round_half_up(value: float) -> int:
	"""Round .5 away from zero for the non-negative values used here (37.5 -> 38)."""
	return int(math.floor(value + 0.5))


def initial_experience_to_grow(difficulty: DifficultyEnum) -> int:
	return round_half_up(BASE_EXPERIENCE_TO_GROW * DIFFICULTY_MULTIPLIER[difficulty])


def experience_to_grow_for_stage(difficulty: DifficultyEnum, stage: int) -> int:
	"""Threshold after advancing to ``stage`` (stage 2 on EASY -> 20)."""
	multiplier = DIFFICULTY_MULTIPLIER[difficulty]
	return round_half_up(BASE_EXPERIENCE_TO_GROW * multiplier * (1 + stage * STAGE_EXPERIENCE_STEP))


def can_grow(experience: int, experience_to_grow: int) -> bool:
	return experience >= experience_to_grow


# ── Calendar helpers ────────────────────────────────────────────────────────


def ensure_utc(value: datetime) -> datetime:
	"""Treat naive datetimes (as returned by some drivers) as UTC."""
	if value.tzinfo is None:
		return value.replace(tzinfo=UTC)
	return value.astimezone(UTC)


def local_date(value: datetime, zone: ZoneInfo) -> date:
	return ensure_utc(value).astimezone(zone).date()


def is_same_local_day(earlier: datetime | None, now: datetime, zone: ZoneInfo) -> bool:
	if earlier is None:
		return False
	return local_date(earlier, zone) == local_date(now, zone)


def next_watering_streak(
	last_watered: datetime | None,
	now: datetime,
	current_streak: int,
	zone: ZoneInfo,
) -> int:
	"""Continue the streak only if the previous watering was on the previous local day."""
	if last_watered is None:
		return 1
	if local_date(last_watered, zone) == local_date(now, zone) - timedelta(days=1):
		return current_streak + 1
	return 1


@dataclass(frozen=True, slots=True)
class WateringOutcome:
	health_gain: int
	new_health: int
	watering_streak: int
	experience_gain: int


def compute_watering(
	health: int,
	last_watered: datetime | None,
	now: datetime,
	current_streak: int,
	zone: ZoneInfo,
) -> WateringOutcome:
	health_gain = min(WATERING_HEALTH_GAIN, MAX_HEALTH - health)
	streak = next_watering_streak(last_watered, now, current_streak, zone)
	experience_gain = WATERING_BASE_EXPERIENCE + min(STREAK_BONUS_CAP, streak)
	return WateringOutcome(
		health_gain=health_gain,
		new_health=health + health_gain,
		watering_streak=streak,
		experience_gain=experience_gain,
	)


def whole_days_between(earlier: datetime, later: datetime) -> int:
	delta = ensure_utc(later) - ensure_utc(earlier)
	return max(0, delta // timedelta(days=1))


def decayed_health(health: int, days_since_watered: int) -> int | None:
	"""New health after neglect, or None when the plant is still within the grace period."""
	if days_since_watered <= HEALTH_DECAY_GRACE_DAYS:
		return None
	decrease = min(health, HEALTH_DECAY_PER_DAY * (days_since_watered - HEALTH_DECAY_GRACE_DAYS))
	return max(0, health - decrease)


# ── Streak tickets ──────────────────────────────────────────────────────────


def streak_ticket_reward(streak: int) -> tuple[TicketTypeEnum, int] | None:
	"""Ticket type and count for a streak milestone; None off-milestone.

	Milestones below 50 match but pay zero tickets.
	"""
	if streak not in STREAK_MILESTONES:
		return None
	ticket_type = TicketTypeEnum.PREMIUM if streak >= 100 else TicketTypeEnum.BASIC
	if streak >= 100:
		count = 3
	elif streak >= 70:
		count = 2
	elif streak >= 50:
		count = 1
	else:
		count = 0
	return ticket_type, count


# ── Rarity roll ─────────────────────────────────────────────────────────────


def choose_rarity(roll: float, table: Mapping[RarityEnum, int]) -> RarityEnum:
	"""Walk the cumulative distribution in ``RARITY_ORDER``; ``roll`` is in [0, 100)."""
	cumulative = 0
	for rarity in RARITY_ORDER:
		cumulative += table.get(rarity, 0)
		if roll < cumulative:
			return rarity
	return RarityEnum.COMMON
