"""Ticket, grant ledger, milestone rule and mission ORM models.

``earned_from`` is a provenance key:

    VERIFICATION_MILESTONE_10   milestone rule (reward type + required count)
    PLANT_COMPLETION_3
    MISSION_<mission uuid>      mission completion
    STREAK_50_DAYS              watering streak milestone
    ADMIN_GRANT                 manual grant

Keyed grants (milestones and missions) additionally write one
``TicketGrant`` row; its unique ``(child_id, earned_from)`` constraint is the
store-level guarantee that a key is granted at most once per child.
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
    String,
    Text,
    UniqueConstraint,
    Uuid,
    text,
)
from sqlalchemy.orm import Mapped, mapped_column

from sprout.models.base import Base, TimestampMixin, UUIDPrimaryKeyMixin, utcnow
from sprout.models.enums import MissionTypeEnum, RewardTypeEnum, TicketTypeEnum


def _ticket_type_column() -> Enum:
    return Enum(
        TicketTypeEnum,
        name="ticket_type",
        create_constraint=False,
        native_enum=True,
    )


# ═══════════════════════════════════════════════════════════════════════════
# Tickets
# ═══════════════════════════════════════════════════════════════════════════


class TicketGrant(Base, UUIDPrimaryKeyMixin, TimestampMixin):
    """Idempotency ledger for keyed ticket grants."""

    __tablename__ = "ticket_grants"
    __table_args__ = (
        UniqueConstraint("child_id", "earned_from", name="uq_ticket_grants_child_key"),
    )

    child_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("child_profiles.id", ondelete="CASCADE"),
        nullable=False,
    )
    earned_from: Mapped[str] = mapped_column(String(100), nullable=False)
    ticket_type: Mapped[TicketTypeEnum] = mapped_column(_ticket_type_column(), nullable=False)
    ticket_count: Mapped[int] = mapped_column(Integer, nullable=False)
    granted_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )

    def __repr__(self) -> str:
        return f"<TicketGrant child={self.child_id} key={self.earned_from!r} count={self.ticket_count}>"


class DrawTicket(Base, UUIDPrimaryKeyMixin, TimestampMixin):
    """A single draw ticket owned by a child."""

    __tablename__ = "draw_tickets"
    __table_args__ = (
        Index("ix_draw_tickets_child_unused", "child_id", "is_used"),
        Index("ix_draw_tickets_child_earned_from", "child_id", "earned_from"),
    )

    child_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("child_profiles.id", ondelete="CASCADE"),
        nullable=False,
    )
    ticket_type: Mapped[TicketTypeEnum] = mapped_column(_ticket_type_column(), nullable=False)
    earned_from: Mapped[str] = mapped_column(String(100), nullable=False)
    grant_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("ticket_grants.id", ondelete="SET NULL"),
        nullable=True,
    )
    is_used: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False, server_default=text("false")
    )
    earned_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
    used_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    def __repr__(self) -> str:
        return (
            f"<DrawTicket id={self.id} child={self.child_id} type={self.ticket_type} "
            f"used={self.is_used}>"
        )


class TicketRewardRule(Base, UUIDPrimaryKeyMixin, TimestampMixin):
    """Milestone configuration: reaching ``required_count`` grants tickets.

    ``child_id`` NULL means the rule applies to every child.
    """

    __tablename__ = "ticket_reward_rules"
    __table_args__ = (
        CheckConstraint("required_count >= 1", name="ck_ticket_reward_rules_required_count"),
        CheckConstraint("ticket_count >= 1", name="ck_ticket_reward_rules_ticket_count"),
        Index("ix_ticket_reward_rules_type_count", "reward_type", "required_count"),
    )

    child_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("child_profiles.id", ondelete="CASCADE"),
        nullable=True,
    )
    reward_type: Mapped[RewardTypeEnum] = mapped_column(
        Enum(
            RewardTypeEnum,
            name="reward_type",
            create_constraint=False,
            native_enum=True,
        ),
        nullable=False,
    )
    required_count: Mapped[int] = mapped_column(Integer, nullable=False)
    ticket_type: Mapped[TicketTypeEnum] = mapped_column(_ticket_type_column(), nullable=False)
    ticket_count: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    description: Mapped[str | None] = mapped_column(String(255), nullable=True)
    is_active: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=True, server_default=text("true")
    )

    @property
    def milestone_key(self) -> str:
        return f"{self.reward_type.value}_{self.required_count}"

    def __repr__(self) -> str:
        return f"<TicketRewardRule key={self.milestone_key!r} ticket={self.ticket_type}x{self.ticket_count}>"


# ═══════════════════════════════════════════════════════════════════════════
# Missions
# ═══════════════════════════════════════════════════════════════════════════


class Mission(Base, UUIDPrimaryKeyMixin, TimestampMixin):
    """A counted goal that pays tickets once ``current_count`` reaches ``target_count``.

    Rows with ``child_id`` NULL are global templates; they never progress
    themselves.  Each child gets its own copy (``template_id`` set) the first
    time a qualifying event happens.
    """

    __tablename__ = "missions"
    __table_args__ = (
        CheckConstraint("target_count >= 1", name="ck_missions_target_count"),
        CheckConstraint("current_count >= 0", name="ck_missions_current_count"),
        CheckConstraint("ticket_count >= 1", name="ck_missions_ticket_count"),
        UniqueConstraint("template_id", "child_id", name="uq_missions_template_child"),
        Index("ix_missions_child_active", "child_id", "is_active", "is_completed"),
    )

    child_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("child_profiles.id", ondelete="CASCADE"),
        nullable=True,
    )
    template_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("missions.id", ondelete="SET NULL"),
        nullable=True,
    )
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    mission_type: Mapped[MissionTypeEnum] = mapped_column(
        Enum(
            MissionTypeEnum,
            name="mission_type",
            create_constraint=False,
            native_enum=True,
        ),
        nullable=False,
    )
    target_count: Mapped[int] = mapped_column(Integer, nullable=False)
    current_count: Mapped[int] = mapped_column(
        Integer, nullable=False, default=0, server_default="0"
    )
    ticket_reward: Mapped[TicketTypeEnum] = mapped_column(
        _ticket_type_column(), nullable=False, default=TicketTypeEnum.BASIC
    )
    ticket_count: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    is_active: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=True, server_default=text("true")
    )
    is_completed: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False, server_default=text("false")
    )
    end_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    completed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    @property
    def is_template(self) -> bool:
        return self.child_id is None

    def __repr__(self) -> str:
        return (
            f"<Mission id={self.id} type={self.mission_type} "
            f"progress={self.current_count}/{self.target_count} completed={self.is_completed}>"
        )
