"""Structured logging setup and per-request context binding."""

from __future__ import annotations

import logging
import re
import time
import uuid
from typing import Any

import structlog
from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware

from sprout.config import LogFormat, Settings, get_settings

_configured = False

# /api/v1/children/<uuid>/... routes act on one child; bind it for every log line.
_CHILD_PATH = re.compile(r"/children/(?P<child_id>[0-9a-fA-F-]{36})(?:/|$)")


def _add_service(_logger: Any, _method: str, event_dict: dict[str, Any]) -> dict[str, Any]:
	event_dict.setdefault("service", "sprout")
	return event_dict


def configure_structured_logging(settings: Settings | None = None, *, force: bool = False) -> None:
	"""Configure stdlib logging and structlog once per process."""
	global _configured
	if _configured and not force:
		return

	settings = settings or get_settings()
	log_level = getattr(logging, settings.log_level.upper(), logging.INFO)

	processors: list[Any] = [
		structlog.contextvars.merge_contextvars,
		structlog.processors.add_log_level,
		structlog.processors.TimeStamper(fmt="iso", utc=True),
		_add_service,
		structlog.processors.format_exc_info,
	]
	if settings.log_format == LogFormat.json:
		logging.basicConfig(level=log_level, format="%(message)s")
		processors.append(structlog.processors.JSONRenderer())
	else:
		logging.basicConfig(level=log_level)
		processors.append(structlog.dev.ConsoleRenderer())

	structlog.configure(
		processors=processors,
		wrapper_class=structlog.make_filtering_bound_logger(log_level),
		logger_factory=structlog.PrintLoggerFactory(),
		cache_logger_on_first_use=True,
	)
	_configured = True


class RequestLoggingMiddleware(BaseHTTPMiddleware):
	"""Bind ``request_id`` (and ``child_id`` when present) and log request timing."""

	async def dispatch(self, request: Request, call_next):  # type: ignore[override]
		request_id = request.headers.get("x-request-id") or str(uuid.uuid4())
		request.state.request_id = request_id

		structlog.contextvars.clear_contextvars()
		context: dict[str, str] = {"request_id": request_id}
		match = _CHILD_PATH.search(request.url.path)
		if match is not None:
			context["child_id"] = match.group("child_id")
		structlog.contextvars.bind_contextvars(**context)

		logger = structlog.get_logger("sprout.request")
		start = time.perf_counter()
		try:
			response = await call_next(request)
		except Exception as exc:
			logger.exception(
				"http_request_failed",
				method=request.method,
				path=request.url.path,
				duration_ms=round((time.perf_counter() - start) * 1000.0, 2),
				error=str(exc),
			)
			raise

		response.headers["x-request-id"] = request_id
		logger.info(
			"http_request",
			method=request.method,
			path=request.url.path,
			status_code=response.status_code,
			duration_ms=round((time.perf_counter() - start) * 1000.0, 2),
		)
		return response
