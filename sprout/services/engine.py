"""Per-session wiring of the engine services and their domain-event subscriptions."""

from __future__ import annotations

import random
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime
from zoneinfo import ZoneInfo

from sqlalchemy.ext.asyncio import AsyncSession

from sprout.services.catalog_service import PlantCatalogService
from sprout.services.draw_service import DEFAULT_DRAW_CONFIG, DrawConfig, DrawService
from sprout.services.events import DomainEventBus, DuplicateDrawOccurred
from sprout.services.mission_service import MissionService
from sprout.services.notifier import Notifier, RedisNotifier
from sprout.services.plant_service import PlantService
from sprout.services.ticket_service import TicketService


@dataclass(slots=True)
class Engine:
	events: DomainEventBus
	catalog: PlantCatalogService
	plants: PlantService
	draws: DrawService
	tickets: TicketService
	missions: MissionService


def build_engine(
	db: AsyncSession,
	notifier: Notifier | None = None,
	*,
	draw_config: DrawConfig = DEFAULT_DRAW_CONFIG,
	rng: random.Random | None = None,
	clock: Callable[[], datetime] | None = None,
	zone: ZoneInfo | None = None,
) -> Engine:
	"""Build every service over one session so a request stays one transaction."""
	notifier = notifier or RedisNotifier()
	events = DomainEventBus()
	draws = DrawService(db, events, config=draw_config, rng=rng)
	missions = MissionService(db, notifier, clock=clock, zone=zone)
	tickets = TicketService(db, notifier, draws=draws, missions=missions, clock=clock)
	plants = PlantService(db, notifier, rewards=tickets, clock=clock, zone=zone)
	events.subscribe(DuplicateDrawOccurred, plants.on_duplicate_draw)
	return Engine(
		events=events,
		catalog=PlantCatalogService(db),
		plants=plants,
		draws=draws,
		tickets=tickets,
		missions=missions,
	)
