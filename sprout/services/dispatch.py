"""Best-effort side-effect dispatch.

Reward bookkeeping and notifications triggered by watering, growth and the
health sweep must never fail the action that triggered them.  Each such
effect runs through :func:`run_best_effort`, inside its own SAVEPOINT when it
writes, and reports back a :class:`SideEffectResult` instead of raising.
Failures are logged with the effect name and caller-supplied context.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

logger = structlog.get_logger("sprout.dispatch")


@dataclass(frozen=True, slots=True)
class SideEffectResult:
	name: str
	ok: bool
	error: str | None = None

	def to_dict(self) -> dict[str, Any]:
		return {"name": self.name, "ok": self.ok, "error": self.error}


async def run_best_effort(
	db: AsyncSession | None,
	name: str,
	effect: Callable[[], Awaitable[object]],
	**context: Any,
) -> SideEffectResult:
	"""Run ``effect``; on failure roll back only its own writes and log.

	Pass ``db=None`` for effects that do not touch the database (e.g. pure
	notification delivery); no savepoint is opened then.
	"""
	try:
		if db is None:
			await effect()
		else:
			async with db.begin_nested():
				await effect()
	except Exception as exc:
		logger.warning(
			"side_effect_failed",
			effect=name,
			error=str(exc),
			error_type=type(exc).__name__,
			**context,
		)
		return SideEffectResult(name=name, ok=False, error=str(exc))

	logger.debug("side_effect_applied", effect=name, **context)
	return SideEffectResult(name=name, ok=True)
