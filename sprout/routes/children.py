"""Child reward-profile routes."""

from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from sprout.database import get_db
from sprout.routes.deps import map_engine_error
from sprout.schemas.child import ChildProfileEnsure, ChildProfileRead
from sprout.services.children import ensure_child_profile, require_child

router = APIRouter(prefix="/children", tags=["children"])


def _map_error(exc: Exception) -> HTTPException:
	return map_engine_error(exc, "Unexpected child profile failure")


@router.post("", response_model=ChildProfileRead)
async def ensure_profile(payload: ChildProfileEnsure, db: AsyncSession = Depends(get_db)) -> ChildProfileRead:
	"""Idempotent: returns the existing profile for ``user_id`` or creates it."""
	try:
		child = await ensure_child_profile(db, payload.user_id, payload.display_name)
	except Exception as exc:
		raise _map_error(exc) from exc
	return ChildProfileRead.model_validate(child)


@router.get("/{child_id}", response_model=ChildProfileRead)
async def get_profile(child_id: uuid.UUID, db: AsyncSession = Depends(get_db)) -> ChildProfileRead:
	try:
		child = await require_child(db, child_id)
	except Exception as exc:
		raise _map_error(exc) from exc
	return ChildProfileRead.model_validate(child)
