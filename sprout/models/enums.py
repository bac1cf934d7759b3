"""PostgreSQL-backed enum types for all ORM models.

Each StrEnum maps 1:1 to a PostgreSQL CREATE TYPE ... AS ENUM.  Member
values are the upper-case tokens clients send and receive.
"""

from enum import StrEnum

# ── Catalog enums ───────────────────────────────────────────────────────────


class DifficultyEnum(StrEnum):
    """How demanding a plant type is to grow (scales experience thresholds)."""

    EASY = "EASY"
    MEDIUM = "MEDIUM"
    HARD = "HARD"


class RarityEnum(StrEnum):
    """Draw rarity bucket.  Declaration order is the draw walk order."""

    COMMON = "COMMON"
    UNCOMMON = "UNCOMMON"
    RARE = "RARE"
    EPIC = "EPIC"
    LEGENDARY = "LEGENDARY"


# ── Economy enums ───────────────────────────────────────────────────────────


class TicketTypeEnum(StrEnum):
    """Draw ticket tier; doubles as the pack type of the draw it pays for."""

    BASIC = "BASIC"
    PREMIUM = "PREMIUM"
    SPECIAL = "SPECIAL"


class RewardTypeEnum(StrEnum):
    """Counter a ticket milestone rule is evaluated against."""

    VERIFICATION_MILESTONE = "VERIFICATION_MILESTONE"
    PLANT_COMPLETION = "PLANT_COMPLETION"
    DAILY_STREAK = "DAILY_STREAK"
    WEEKLY_MISSION = "WEEKLY_MISSION"
    MONTHLY_MISSION = "MONTHLY_MISSION"


class MissionTypeEnum(StrEnum):
    """Event family that advances a mission."""

    DAILY_VERIFICATION = "DAILY_VERIFICATION"
    WEEKLY_VERIFICATION = "WEEKLY_VERIFICATION"
    MONTHLY_VERIFICATION = "MONTHLY_VERIFICATION"
    PLANT_COMPLETION = "PLANT_COMPLETION"
    STREAK_MAINTENANCE = "STREAK_MAINTENANCE"


class NotificationTypeEnum(StrEnum):
    """Notification category forwarded to the delivery collaborator."""

    SYSTEM = "SYSTEM"
    REWARD = "REWARD"
    PLANT = "PLANT"
