"""Plant and WateringLog ORM models: a child's growing plant and its audit trail.

A child owns at most one plant with ``is_completed = false``.  The partial
unique index ``uq_plants_child_in_progress`` enforces that in the store so two
concurrent starts cannot both commit; the service translates the resulting
``IntegrityError`` into a conflict.
"""

from __future__ import annotations

import uuid
from datetime import datetime

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Uuid,
    text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from sprout.models.base import (
    AppendOnlyMixin,
    Base,
    TimestampMixin,
    UUIDPrimaryKeyMixin,
    utcnow,
)
from sprout.models.catalog import PlantType

# ═══════════════════════════════════════════════════════════════════════════
# Plant
# ═══════════════════════════════════════════════════════════════════════════


class Plant(Base, UUIDPrimaryKeyMixin, TimestampMixin):
    """A plant instance being grown (or already grown) by one child."""

    __tablename__ = "plants"
    __table_args__ = (
        CheckConstraint("current_stage >= 1", name="ck_plants_current_stage"),
        CheckConstraint("health >= 0 AND health <= 100", name="ck_plants_health"),
        CheckConstraint("experience >= 0", name="ck_plants_experience"),
        CheckConstraint("experience_to_grow > 0", name="ck_plants_experience_to_grow"),
        Index(
            "uq_plants_child_in_progress",
            "child_id",
            unique=True,
            postgresql_where=text("is_completed = false"),
            sqlite_where=text("is_completed = 0"),
        ),
        Index("ix_plants_child_started", "child_id", "started_at"),
    )

    child_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("child_profiles.id", ondelete="CASCADE"),
        nullable=False,
    )
    plant_type_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("plant_types.id", ondelete="RESTRICT"),
        nullable=False,
    )
    name: Mapped[str | None] = mapped_column(String(100), nullable=True)
    current_stage: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    health: Mapped[int] = mapped_column(Integer, nullable=False, default=100)
    experience: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    experience_to_grow: Mapped[int] = mapped_column(Integer, nullable=False)
    can_grow: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False, server_default=text("false")
    )
    last_watered: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    is_completed: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False, server_default=text("false")
    )
    started_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
    completed_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    # ── Relationships ────────────────────────────────────────────────────
    plant_type: Mapped[PlantType] = relationship(lazy="joined", innerjoin=True)

    def __repr__(self) -> str:
        return (
            f"<Plant id={self.id} child={self.child_id} stage={self.current_stage} "
            f"health={self.health} completed={self.is_completed}>"
        )


# ═══════════════════════════════════════════════════════════════════════════
# WateringLog
# ═══════════════════════════════════════════════════════════════════════════


class WateringLog(Base, AppendOnlyMixin):
    """Append-only; one row per successful watering."""

    __tablename__ = "watering_logs"
    __table_args__ = (Index("ix_watering_logs_plant_recorded", "plant_id", "recorded_at"),)

    plant_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("plants.id", ondelete="CASCADE"),
        nullable=False,
    )
    health_gain: Mapped[int] = mapped_column(Integer, nullable=False)
    experience_gain: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    def __repr__(self) -> str:
        return f"<WateringLog id={self.id} plant={self.plant_id} health_gain={self.health_gain}>"
