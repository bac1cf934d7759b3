"""Scheduler-facing maintenance routes: health decay, mission expiry, default seeding."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from sprout.database import get_db
from sprout.routes.deps import get_engine, map_engine_error
from sprout.schemas.plant import HealthDecayItem, HealthDecayResponse
from sprout.schemas.rewards import CleanupResponse, SeedResponse
from sprout.seed import seed_defaults
from sprout.services.engine import Engine

router = APIRouter(prefix="/maintenance", tags=["maintenance"])


def _map_error(exc: Exception) -> HTTPException:
	return map_engine_error(exc, "Maintenance task failed")


@router.post("/health-decay", response_model=HealthDecayResponse)
async def run_health_decay(engine: Engine = Depends(get_engine)) -> HealthDecayResponse:
	try:
		results = await engine.plants.decrease_plant_health()
	except Exception as exc:
		raise _map_error(exc) from exc
	return HealthDecayResponse(
		decayed=len(results),
		plants=[
			HealthDecayItem(
				plant_id=result.plant_id,
				previous_health=result.previous_health,
				new_health=result.new_health,
				days_since_last_watered=result.days_since_last_watered,
				alerted=result.alerted,
			)
			for result in results
		],
	)


@router.post("/missions/cleanup", response_model=CleanupResponse)
async def cleanup_expired_missions(engine: Engine = Depends(get_engine)) -> CleanupResponse:
	try:
		deactivated = await engine.missions.cleanup_expired_missions()
	except Exception as exc:
		raise _map_error(exc) from exc
	return CleanupResponse(deactivated=deactivated)


@router.post("/seed", response_model=SeedResponse)
async def seed(db: AsyncSession = Depends(get_db)) -> SeedResponse:
	try:
		counts = await seed_defaults(db)
	except Exception as exc:
		raise _map_error(exc) from exc
	return SeedResponse(**counts)
