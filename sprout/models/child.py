"""ChildProfile ORM model: the reward-economy view of a child account.

Only the fields the engine owns live here; the account itself (credentials,
parent links) belongs to the authentication subsystem and is referenced by
``user_id``, which is also the notification target.
"""

from __future__ import annotations

import uuid

from sqlalchemy import CheckConstraint, Integer, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from sprout.models.base import Base, TimestampMixin, UUIDPrimaryKeyMixin


class ChildProfile(Base, UUIDPrimaryKeyMixin, TimestampMixin):
    """Counters and pointers the reward engine maintains per child."""

    __tablename__ = "child_profiles"
    __table_args__ = (
        CheckConstraint("verification_count >= 0", name="ck_child_verification_count"),
        CheckConstraint("plant_completion_count >= 0", name="ck_child_plant_completion_count"),
        CheckConstraint("watering_streak >= 0", name="ck_child_watering_streak"),
        CheckConstraint("total_completed_plants >= 0", name="ck_child_total_completed_plants"),
    )

    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True), unique=True, nullable=False, index=True
    )
    display_name: Mapped[str | None] = mapped_column(String(100), nullable=True)

    verification_count: Mapped[int] = mapped_column(
        Integer, nullable=False, default=0, server_default="0"
    )
    plant_completion_count: Mapped[int] = mapped_column(
        Integer, nullable=False, default=0, server_default="0"
    )
    watering_streak: Mapped[int] = mapped_column(
        Integer, nullable=False, default=0, server_default="0"
    )
    total_completed_plants: Mapped[int] = mapped_column(
        Integer, nullable=False, default=0, server_default="0"
    )
    # Denormalized pointer; the partial unique index on plants is authoritative.
    current_plant_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid(as_uuid=True), nullable=True
    )

    def __repr__(self) -> str:
        return (
            f"<ChildProfile id={self.id} streak={self.watering_streak} "
            f"completed={self.total_completed_plants}>"
        )
