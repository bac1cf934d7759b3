"""ORM model registry: importing this module registers every table on Base.metadata.

Alembic ``env.py`` imports ``Base`` from here (not from ``base.py``) so that
autogenerate sees all tables.  Application code can also do::

    from sprout.models import Plant, PlantType, DrawTicket, ...
"""

# ── Base & Mixins ───────────────────────────────────────────────────────────
from sprout.models.base import (
    AppendOnlyMixin,
    Base,
    TimestampMixin,
    UUIDPrimaryKeyMixin,
)

# ── Catalog ─────────────────────────────────────────────────────────────────
from sprout.models.catalog import PlantType

# ── Child reward state ──────────────────────────────────────────────────────
from sprout.models.child import ChildProfile

# ── Enums ───────────────────────────────────────────────────────────────────
from sprout.models.enums import (
    DifficultyEnum,
    MissionTypeEnum,
    NotificationTypeEnum,
    RarityEnum,
    RewardTypeEnum,
    TicketTypeEnum,
)

# ── Inventory & draws ───────────────────────────────────────────────────────
from sprout.models.inventory import PlantDrawHistory, PlantInventory

# ── Plants ──────────────────────────────────────────────────────────────────
from sprout.models.plant import Plant, WateringLog

# ── Tickets & missions ──────────────────────────────────────────────────────
from sprout.models.rewards import DrawTicket, Mission, TicketGrant, TicketRewardRule

__all__ = [
    # Base & mixins
    "AppendOnlyMixin",
    "Base",
    # Child
    "ChildProfile",
    # Enums
    "DifficultyEnum",
    # Tickets & missions
    "DrawTicket",
    "Mission",
    "MissionTypeEnum",
    "NotificationTypeEnum",
    # Plants
    "Plant",
    # Inventory
    "PlantDrawHistory",
    "PlantInventory",
    # Catalog
    "PlantType",
    "RarityEnum",
    "RewardTypeEnum",
    "TicketGrant",
    "TicketRewardRule",
    "TicketTypeEnum",
    "TimestampMixin",
    "UUIDPrimaryKeyMixin",
    "WateringLog",
]
