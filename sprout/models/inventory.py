"""PlantInventory and PlantDrawHistory ORM models.

Inventory rows hold drawn-but-not-started plant types.  A row only exists
while ``quantity > 0``; consuming the last unit deletes it.
"""

from __future__ import annotations

import uuid
from datetime import datetime

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    DateTime,
    Enum,
    ForeignKey,
    Index,
    Integer,
    UniqueConstraint,
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
from sprout.models.enums import TicketTypeEnum


class PlantInventory(Base, UUIDPrimaryKeyMixin, TimestampMixin):
    """Quantity of one plant type owned by one child."""

    __tablename__ = "plant_inventory"
    __table_args__ = (
        UniqueConstraint("child_id", "plant_type_id", name="uq_plant_inventory_child_type"),
        CheckConstraint("quantity > 0", name="ck_plant_inventory_quantity"),
    )

    child_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("child_profiles.id", ondelete="CASCADE"),
        nullable=False,
    )
    plant_type_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("plant_types.id", ondelete="CASCADE"),
        nullable=False,
    )
    quantity: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    acquired_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )

    # ── Relationships ────────────────────────────────────────────────────
    plant_type: Mapped[PlantType] = relationship(lazy="joined", innerjoin=True)

    def __repr__(self) -> str:
        return (
            f"<PlantInventory child={self.child_id} type={self.plant_type_id} "
            f"quantity={self.quantity}>"
        )


class PlantDrawHistory(Base, AppendOnlyMixin):
    """One row per draw.  ``ticket_id`` links ticket-paid draws explicitly."""

    __tablename__ = "plant_draw_history"
    __table_args__ = (Index("ix_plant_draw_history_child_recorded", "child_id", "recorded_at"),)

    child_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("child_profiles.id", ondelete="CASCADE"),
        nullable=False,
    )
    plant_type_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("plant_types.id", ondelete="CASCADE"),
        nullable=False,
    )
    pack_type: Mapped[TicketTypeEnum] = mapped_column(
        Enum(
            TicketTypeEnum,
            name="ticket_type",
            create_constraint=False,
            native_enum=True,
        ),
        nullable=False,
    )
    is_duplicate: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False, server_default=text("false")
    )
    experience_gained: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    ticket_used: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False, server_default=text("false")
    )
    ticket_type: Mapped[TicketTypeEnum | None] = mapped_column(
        Enum(
            TicketTypeEnum,
            name="ticket_type",
            create_constraint=False,
            native_enum=True,
        ),
        nullable=True,
    )
    ticket_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("draw_tickets.id", ondelete="SET NULL"),
        nullable=True,
    )

    def __repr__(self) -> str:
        return (
            f"<PlantDrawHistory id={self.id} child={self.child_id} pack={self.pack_type} "
            f"duplicate={self.is_duplicate}>"
        )
