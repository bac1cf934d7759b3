"""Engine error taxonomy.

Every failure raised by the engine carries a stable ``kind`` so callers can
map it (HTTP status, retry policy) without parsing messages.  ``NotFoundError``
and ``InvalidArgumentError`` also subclass ``LookupError`` / ``ValueError`` so
generic handlers written against the builtin hierarchy keep working.
"""

from __future__ import annotations

from enum import StrEnum


class ErrorKind(StrEnum):
	not_found = "not_found"
	conflict = "conflict"
	invalid_state = "invalid_state"
	already_done = "already_done"
	not_ready = "not_ready"
	forbidden = "forbidden"
	invalid_argument = "invalid_argument"


class EngineError(Exception):
	"""Base class for all engine failures."""

	kind: ErrorKind = ErrorKind.invalid_state

	def __init__(self, message: str) -> None:
		super().__init__(message)
		self.message = message

	def to_dict(self) -> dict[str, str]:
		return {"error": self.kind.value, "message": self.message}


class NotFoundError(EngineError, LookupError):
	kind = ErrorKind.not_found


class ConflictError(EngineError):
	kind = ErrorKind.conflict


class InvalidStateError(EngineError):
	kind = ErrorKind.invalid_state


class AlreadyDoneError(InvalidStateError):
	"""The action was already performed for the current period (e.g. watered today)."""

	kind = ErrorKind.already_done


class NotReadyError(EngineError):
	kind = ErrorKind.not_ready


class ForbiddenError(EngineError):
	kind = ErrorKind.forbidden


class InvalidArgumentError(EngineError, ValueError):
	kind = ErrorKind.invalid_argument


HTTP_STATUS_BY_KIND: dict[ErrorKind, int] = {
	ErrorKind.not_found: 404,
	ErrorKind.conflict: 409,
	ErrorKind.forbidden: 403,
	ErrorKind.invalid_state: 400,
	ErrorKind.already_done: 400,
	ErrorKind.not_ready: 400,
	ErrorKind.invalid_argument: 400,
}
