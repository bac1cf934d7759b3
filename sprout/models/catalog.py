"""PlantType ORM model: the read-only plant catalog.

Catalog rows are written by the seed script or the admin endpoint and never
mutated afterwards.  ``image_prefix`` is the asset key clients append
``_{stage}.png`` to; the engine never resolves image URLs itself.
"""

from __future__ import annotations

from sqlalchemy import Boolean, CheckConstraint, Enum, Integer, String, Text, text
from sqlalchemy.orm import Mapped, mapped_column

from sprout.models.base import Base, TimestampMixin, UUIDPrimaryKeyMixin
from sprout.models.enums import DifficultyEnum, RarityEnum


class PlantType(Base, UUIDPrimaryKeyMixin, TimestampMixin):
    """A kind of plant a child can grow or draw."""

    __tablename__ = "plant_types"
    __table_args__ = (
        CheckConstraint("growth_stages >= 1", name="ck_plant_types_growth_stages"),
        CheckConstraint(
            "unlock_requirement IS NULL OR unlock_requirement >= 0",
            name="ck_plant_types_unlock_requirement",
        ),
    )

    name: Mapped[str] = mapped_column(String(100), unique=True, nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    growth_stages: Mapped[int] = mapped_column(Integer, nullable=False)
    difficulty: Mapped[DifficultyEnum] = mapped_column(
        Enum(
            DifficultyEnum,
            name="plant_difficulty",
            create_constraint=False,
            native_enum=True,
        ),
        nullable=False,
        default=DifficultyEnum.EASY,
    )
    category: Mapped[str] = mapped_column(String(50), nullable=False)
    rarity: Mapped[RarityEnum] = mapped_column(
        Enum(
            RarityEnum,
            name="plant_rarity",
            create_constraint=False,
            native_enum=True,
        ),
        nullable=False,
        default=RarityEnum.COMMON,
    )
    is_basic: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=False,
        server_default=text("false"),
    )
    unlock_requirement: Mapped[int | None] = mapped_column(Integer, nullable=True)
    image_prefix: Mapped[str] = mapped_column(String(100), nullable=False)

    def __repr__(self) -> str:
        return (
            f"<PlantType id={self.id} name={self.name!r} "
            f"rarity={self.rarity} stages={self.growth_stages}>"
        )
