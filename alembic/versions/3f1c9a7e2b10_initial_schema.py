"""initial_schema

Revision ID: 3f1c9a7e2b10
Revises:
Create Date: 2026-10-19 00:00:00.000000

Creates the plant catalog, child reward state, plants and watering logs,
inventory and draw history, tickets with their grant ledger, milestone rules
and missions, plus the five PostgreSQL enum types they use.
"""

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = "3f1c9a7e2b10"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None

# ── Enum type names (PostgreSQL CREATE TYPE) ────────────────────────────────
ENUM_DIFFICULTY = postgresql.ENUM(
    "EASY", "MEDIUM", "HARD", name="plant_difficulty", create_type=False
)
ENUM_RARITY = postgresql.ENUM(
    "COMMON", "UNCOMMON", "RARE", "EPIC", "LEGENDARY", name="plant_rarity", create_type=False
)
ENUM_TICKET_TYPE = postgresql.ENUM(
    "BASIC", "PREMIUM", "SPECIAL", name="ticket_type", create_type=False
)
ENUM_REWARD_TYPE = postgresql.ENUM(
    "VERIFICATION_MILESTONE",
    "PLANT_COMPLETION",
    "DAILY_STREAK",
    "WEEKLY_MISSION",
    "MONTHLY_MISSION",
    name="reward_type",
    create_type=False,
)
ENUM_MISSION_TYPE = postgresql.ENUM(
    "DAILY_VERIFICATION",
    "WEEKLY_VERIFICATION",
    "MONTHLY_VERIFICATION",
    "PLANT_COMPLETION",
    "STREAK_MAINTENANCE",
    name="mission_type",
    create_type=False,
)


def _uuid_pk() -> sa.Column:
    return sa.Column(
        "id",
        postgresql.UUID(as_uuid=True),
        server_default=sa.text("gen_random_uuid()"),
        nullable=False,
    )


def _uuid_fk(name: str, *, nullable: bool = False) -> sa.Column:
    return sa.Column(name, postgresql.UUID(as_uuid=True), nullable=nullable)


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
    ]


def _append_only_pk() -> list[sa.Column]:
    return [
        sa.Column("id", sa.BigInteger(), sa.Identity(always=False), nullable=False),
        sa.Column(
            "recorded_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
    ]


def upgrade() -> None:
    # ── 1. Enum types ───────────────────────────────────────────────────
    ENUM_DIFFICULTY.create(op.get_bind(), checkfirst=True)
    ENUM_RARITY.create(op.get_bind(), checkfirst=True)
    ENUM_TICKET_TYPE.create(op.get_bind(), checkfirst=True)
    ENUM_REWARD_TYPE.create(op.get_bind(), checkfirst=True)
    ENUM_MISSION_TYPE.create(op.get_bind(), checkfirst=True)

    # ── 2. Catalog & children ───────────────────────────────────────────

    op.create_table(
        "plant_types",
        _uuid_pk(),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("growth_stages", sa.Integer(), nullable=False),
        sa.Column("difficulty", ENUM_DIFFICULTY, nullable=False),
        sa.Column("category", sa.String(50), nullable=False),
        sa.Column("rarity", ENUM_RARITY, nullable=False),
        sa.Column("is_basic", sa.Boolean(), server_default=sa.text("false"), nullable=False),
        sa.Column("unlock_requirement", sa.Integer(), nullable=True),
        sa.Column("image_prefix", sa.String(100), nullable=False),
        *_timestamps(),
        sa.CheckConstraint("growth_stages >= 1", name="ck_plant_types_growth_stages"),
        sa.CheckConstraint(
            "unlock_requirement IS NULL OR unlock_requirement >= 0",
            name="ck_plant_types_unlock_requirement",
        ),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("name"),
    )

    op.create_table(
        "child_profiles",
        _uuid_pk(),
        _uuid_fk("user_id"),
        sa.Column("display_name", sa.String(100), nullable=True),
        sa.Column("verification_count", sa.Integer(), server_default="0", nullable=False),
        sa.Column("plant_completion_count", sa.Integer(), server_default="0", nullable=False),
        sa.Column("watering_streak", sa.Integer(), server_default="0", nullable=False),
        sa.Column("total_completed_plants", sa.Integer(), server_default="0", nullable=False),
        _uuid_fk("current_plant_id", nullable=True),
        *_timestamps(),
        sa.CheckConstraint("verification_count >= 0", name="ck_child_verification_count"),
        sa.CheckConstraint("plant_completion_count >= 0", name="ck_child_plant_completion_count"),
        sa.CheckConstraint("watering_streak >= 0", name="ck_child_watering_streak"),
        sa.CheckConstraint("total_completed_plants >= 0", name="ck_child_total_completed_plants"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_child_profiles_user_id", "child_profiles", ["user_id"], unique=True)

    # ── 3. Plants ───────────────────────────────────────────────────────

    op.create_table(
        "plants",
        _uuid_pk(),
        _uuid_fk("child_id"),
        _uuid_fk("plant_type_id"),
        sa.Column("name", sa.String(100), nullable=True),
        sa.Column("current_stage", sa.Integer(), nullable=False),
        sa.Column("health", sa.Integer(), nullable=False),
        sa.Column("experience", sa.Integer(), nullable=False),
        sa.Column("experience_to_grow", sa.Integer(), nullable=False),
        sa.Column("can_grow", sa.Boolean(), server_default=sa.text("false"), nullable=False),
        sa.Column("last_watered", sa.DateTime(timezone=True), nullable=True),
        sa.Column("is_completed", sa.Boolean(), server_default=sa.text("false"), nullable=False),
        sa.Column("started_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
        sa.CheckConstraint("current_stage >= 1", name="ck_plants_current_stage"),
        sa.CheckConstraint("health >= 0 AND health <= 100", name="ck_plants_health"),
        sa.CheckConstraint("experience >= 0", name="ck_plants_experience"),
        sa.CheckConstraint("experience_to_grow > 0", name="ck_plants_experience_to_grow"),
        sa.ForeignKeyConstraint(["child_id"], ["child_profiles.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["plant_type_id"], ["plant_types.id"], ondelete="RESTRICT"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        "uq_plants_child_in_progress",
        "plants",
        ["child_id"],
        unique=True,
        postgresql_where=sa.text("is_completed = false"),
    )
    op.create_index("ix_plants_child_started", "plants", ["child_id", "started_at"])

    op.create_table(
        "watering_logs",
        *_append_only_pk(),
        _uuid_fk("plant_id"),
        sa.Column("health_gain", sa.Integer(), nullable=False),
        sa.Column("experience_gain", sa.Integer(), nullable=False),
        sa.ForeignKeyConstraint(["plant_id"], ["plants.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_watering_logs_plant_recorded", "watering_logs", ["plant_id", "recorded_at"])

    # ── 4. Inventory ────────────────────────────────────────────────────

    op.create_table(
        "plant_inventory",
        _uuid_pk(),
        _uuid_fk("child_id"),
        _uuid_fk("plant_type_id"),
        sa.Column("quantity", sa.Integer(), nullable=False),
        sa.Column("acquired_at", sa.DateTime(timezone=True), nullable=False),
        *_timestamps(),
        sa.CheckConstraint("quantity > 0", name="ck_plant_inventory_quantity"),
        sa.ForeignKeyConstraint(["child_id"], ["child_profiles.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["plant_type_id"], ["plant_types.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("child_id", "plant_type_id", name="uq_plant_inventory_child_type"),
    )

    # ── 5. Tickets ──────────────────────────────────────────────────────

    op.create_table(
        "ticket_grants",
        _uuid_pk(),
        _uuid_fk("child_id"),
        sa.Column("earned_from", sa.String(100), nullable=False),
        sa.Column("ticket_type", ENUM_TICKET_TYPE, nullable=False),
        sa.Column("ticket_count", sa.Integer(), nullable=False),
        sa.Column("granted_at", sa.DateTime(timezone=True), nullable=False),
        *_timestamps(),
        sa.ForeignKeyConstraint(["child_id"], ["child_profiles.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("child_id", "earned_from", name="uq_ticket_grants_child_key"),
    )

    op.create_table(
        "draw_tickets",
        _uuid_pk(),
        _uuid_fk("child_id"),
        sa.Column("ticket_type", ENUM_TICKET_TYPE, nullable=False),
        sa.Column("earned_from", sa.String(100), nullable=False),
        _uuid_fk("grant_id", nullable=True),
        sa.Column("is_used", sa.Boolean(), server_default=sa.text("false"), nullable=False),
        sa.Column("earned_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("used_at", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(["child_id"], ["child_profiles.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["grant_id"], ["ticket_grants.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_draw_tickets_child_unused", "draw_tickets", ["child_id", "is_used"])
    op.create_index(
        "ix_draw_tickets_child_earned_from", "draw_tickets", ["child_id", "earned_from"]
    )

    op.create_table(
        "plant_draw_history",
        *_append_only_pk(),
        _uuid_fk("child_id"),
        _uuid_fk("plant_type_id"),
        sa.Column("pack_type", ENUM_TICKET_TYPE, nullable=False),
        sa.Column("is_duplicate", sa.Boolean(), server_default=sa.text("false"), nullable=False),
        sa.Column("experience_gained", sa.Integer(), nullable=False),
        sa.Column("ticket_used", sa.Boolean(), server_default=sa.text("false"), nullable=False),
        sa.Column("ticket_type", ENUM_TICKET_TYPE, nullable=True),
        _uuid_fk("ticket_id", nullable=True),
        sa.ForeignKeyConstraint(["child_id"], ["child_profiles.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["plant_type_id"], ["plant_types.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["ticket_id"], ["draw_tickets.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        "ix_plant_draw_history_child_recorded", "plant_draw_history", ["child_id", "recorded_at"]
    )

    # ── 6. Milestone rules & missions ───────────────────────────────────

    op.create_table(
        "ticket_reward_rules",
        _uuid_pk(),
        _uuid_fk("child_id", nullable=True),
        sa.Column("reward_type", ENUM_REWARD_TYPE, nullable=False),
        sa.Column("required_count", sa.Integer(), nullable=False),
        sa.Column("ticket_type", ENUM_TICKET_TYPE, nullable=False),
        sa.Column("ticket_count", sa.Integer(), nullable=False),
        sa.Column("description", sa.String(255), nullable=True),
        sa.Column("is_active", sa.Boolean(), server_default=sa.text("true"), nullable=False),
        *_timestamps(),
        sa.CheckConstraint("required_count >= 1", name="ck_ticket_reward_rules_required_count"),
        sa.CheckConstraint("ticket_count >= 1", name="ck_ticket_reward_rules_ticket_count"),
        sa.ForeignKeyConstraint(["child_id"], ["child_profiles.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        "ix_ticket_reward_rules_type_count",
        "ticket_reward_rules",
        ["reward_type", "required_count"],
    )

    op.create_table(
        "missions",
        _uuid_pk(),
        _uuid_fk("child_id", nullable=True),
        _uuid_fk("template_id", nullable=True),
        sa.Column("title", sa.String(200), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("mission_type", ENUM_MISSION_TYPE, nullable=False),
        sa.Column("target_count", sa.Integer(), nullable=False),
        sa.Column("current_count", sa.Integer(), server_default="0", nullable=False),
        sa.Column("ticket_reward", ENUM_TICKET_TYPE, nullable=False),
        sa.Column("ticket_count", sa.Integer(), nullable=False),
        sa.Column("is_active", sa.Boolean(), server_default=sa.text("true"), nullable=False),
        sa.Column("is_completed", sa.Boolean(), server_default=sa.text("false"), nullable=False),
        sa.Column("end_date", sa.DateTime(timezone=True), nullable=True),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
        sa.CheckConstraint("target_count >= 1", name="ck_missions_target_count"),
        sa.CheckConstraint("current_count >= 0", name="ck_missions_current_count"),
        sa.CheckConstraint("ticket_count >= 1", name="ck_missions_ticket_count"),
        sa.ForeignKeyConstraint(["child_id"], ["child_profiles.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["template_id"], ["missions.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("template_id", "child_id", name="uq_missions_template_child"),
    )
    op.create_index(
        "ix_missions_child_active", "missions", ["child_id", "is_active", "is_completed"]
    )


def downgrade() -> None:
    # ── Drop tables in reverse dependency order ─────────────────────────
    op.drop_table("missions")
    op.drop_table("ticket_reward_rules")
    op.drop_table("plant_draw_history")
    op.drop_table("draw_tickets")
    op.drop_table("ticket_grants")
    op.drop_table("plant_inventory")
    op.drop_table("watering_logs")
    op.drop_table("plants")
    op.drop_table("child_profiles")
    op.drop_table("plant_types")

    # ── Drop enum types ─────────────────────────────────────────────────
    ENUM_MISSION_TYPE.drop(op.get_bind(), checkfirst=True)
    ENUM_REWARD_TYPE.drop(op.get_bind(), checkfirst=True)
    ENUM_TICKET_TYPE.drop(op.get_bind(), checkfirst=True)
    ENUM_RARITY.drop(op.get_bind(), checkfirst=True)
    ENUM_DIFFICULTY.drop(op.get_bind(), checkfirst=True)
