"""Notification collaborator.

The engine only *requests* notifications; delivery (push, e-mail, in-app
inbox) belongs to the notification subsystem, which subscribes to the Redis
channel ``{prefix}:{user_id}``.  Without Redis the request is only logged.
"""

from __future__ import annotations

import json
import uuid
from datetime import UTC, datetime
from typing import Protocol

import structlog
from redis.asyncio import Redis

from sprout.config import get_settings
from sprout.models.enums import NotificationTypeEnum

logger = structlog.get_logger("sprout.notifier")


class Notifier(Protocol):
	async def notify(
		self,
		user_id: uuid.UUID,
		title: str,
		content: str,
		notification_type: NotificationTypeEnum = NotificationTypeEnum.SYSTEM,
		related_id: uuid.UUID | None = None,
	) -> None: ...


class RedisNotifier:
	"""Publishes notification requests as JSON on a per-user Redis channel."""

	def __init__(self, redis_client: Redis | None = None, channel_prefix: str | None = None):
		self.redis_client = redis_client
		self.channel_prefix = channel_prefix or get_settings().notification_channel_prefix

	async def notify(
		self,
		user_id: uuid.UUID,
		title: str,
		content: str,
		notification_type: NotificationTypeEnum = NotificationTypeEnum.SYSTEM,
		related_id: uuid.UUID | None = None,
	) -> None:
		payload = {
			"event_type": "notification",
			"user_id": str(user_id),
			"title": title,
			"content": content,
			"notification_type": notification_type.value,
			"related_id": str(related_id) if related_id is not None else None,
			"requested_at": datetime.now(UTC).isoformat(),
		}
		logger.info(
			"notification_requested",
			user_id=payload["user_id"],
			notification_type=payload["notification_type"],
			related_id=payload["related_id"],
		)
		if self.redis_client is None:
			return
		channel = f"{self.channel_prefix}:{user_id}"
		await self.redis_client.publish(channel, json.dumps(payload))
