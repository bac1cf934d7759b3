"""In-process domain events.

Handlers run inline, in subscription order, inside the publisher's
transaction; a handler failure propagates to the publisher.  This keeps
cross-component reactions (a duplicate draw feeding the growing plant)
atomic with the action that caused them without the publisher knowing who
listens.
"""

from __future__ import annotations

import uuid
from collections import defaultdict
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any

import structlog

logger = structlog.get_logger("sprout.events")


@dataclass(frozen=True, slots=True)
class DuplicateDrawOccurred:
	"""A draw hit a plant type the child already owns."""

	child_id: uuid.UUID
	plant_type_id: uuid.UUID
	experience: int


EventHandler = Callable[[Any], Awaitable[None]]


class DomainEventBus:
	def __init__(self) -> None:
		self._handlers: dict[type, list[EventHandler]] = defaultdict(list)

	def subscribe(self, event_type: type, handler: EventHandler) -> None:
		self._handlers[event_type].append(handler)

	def handlers_for(self, event_type: type) -> list[EventHandler]:
		return list(self._handlers.get(event_type, ()))

	async def publish(self, event: object) -> int:
		handlers = self.handlers_for(type(event))
		logger.debug("domain_event", event_type=type(event).__name__, handlers=len(handlers))
		for handler in handlers:
			await handler(event)
		return len(handlers)
