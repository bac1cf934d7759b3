"""Mission routes."""

from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends, HTTPException, status

from sprout.routes.deps import get_engine, map_engine_error
from sprout.schemas.rewards import MissionCreate, MissionRead, MissionUpdate
from sprout.services.engine import Engine

router = APIRouter(tags=["missions"])


def _map_error(exc: Exception) -> HTTPException:
	return map_engine_error(exc, "Unexpected mission service failure")


@router.get("/children/{child_id}/missions", response_model=list[MissionRead])
async def list_active_missions(child_id: uuid.UUID, engine: Engine = Depends(get_engine)) -> list[MissionRead]:
	try:
		missions = await engine.missions.list_active_missions(child_id)
	except Exception as exc:
		raise _map_error(exc) from exc
	return [MissionRead.model_validate(mission) for mission in missions]


@router.get("/children/{child_id}/missions/completed", response_model=list[MissionRead])
async def list_completed_missions(
	child_id: uuid.UUID,
	engine: Engine = Depends(get_engine),
) -> list[MissionRead]:
	try:
		missions = await engine.missions.list_completed_missions(child_id)
	except Exception as exc:
		raise _map_error(exc) from exc
	return [MissionRead.model_validate(mission) for mission in missions]


@router.post("/missions", response_model=MissionRead, status_code=status.HTTP_201_CREATED)
async def create_mission(payload: MissionCreate, engine: Engine = Depends(get_engine)) -> MissionRead:
	try:
		mission = await engine.missions.create_mission(payload)
	except Exception as exc:
		raise _map_error(exc) from exc
	return MissionRead.model_validate(mission)


@router.patch("/missions/{mission_id}", response_model=MissionRead)
async def update_mission(
	mission_id: uuid.UUID,
	payload: MissionUpdate,
	engine: Engine = Depends(get_engine),
) -> MissionRead:
	try:
		mission = await engine.missions.update_mission(mission_id, payload)
	except Exception as exc:
		raise _map_error(exc) from exc
	return MissionRead.model_validate(mission)


@router.delete("/missions/{mission_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_mission(mission_id: uuid.UUID, engine: Engine = Depends(get_engine)) -> None:
	try:
		await engine.missions.delete_mission(mission_id)
	except Exception as exc:
		raise _map_error(exc) from exc
