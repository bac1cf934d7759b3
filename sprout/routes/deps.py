"""Request-scoped engine wiring and error mapping shared by the routers."""

from __future__ import annotations

import structlog
from fastapi import Depends, HTTPException, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from sprout.database import get_db
from sprout.errors import HTTP_STATUS_BY_KIND, EngineError
from sprout.services.engine import Engine, build_engine
from sprout.services.notifier import RedisNotifier

logger = structlog.get_logger("sprout.api")


async def get_engine(request: Request, db: AsyncSession = Depends(get_db)) -> Engine:
	notifier = RedisNotifier(getattr(request.app.state, "redis", None))
	return build_engine(db, notifier)


def map_engine_error(exc: Exception, detail: str) -> HTTPException:
	if isinstance(exc, HTTPException):
		return exc
	if isinstance(exc, EngineError):
		return HTTPException(status_code=HTTP_STATUS_BY_KIND[exc.kind], detail=exc.to_dict())
	logger.exception("unexpected_engine_failure", error=str(exc), error_type=type(exc).__name__)
	return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=detail)
