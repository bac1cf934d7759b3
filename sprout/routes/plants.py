"""Plant catalog and lifecycle routes."""

from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends, HTTPException, status

from sprout.routes.deps import get_engine, map_engine_error
from sprout.schemas.plant import (
	AdvanceResponse,
	ExperienceAdd,
	PlantCollectionEntryRead,
	PlantRead,
	PlantStart,
	PlantTypeCreate,
	PlantTypeRead,
	SideEffectRead,
	WateringLogRead,
	WateringResponse,
)
from sprout.services.engine import Engine

router = APIRouter(tags=["plants"])


def _map_error(exc: Exception) -> HTTPException:
	return map_engine_error(exc, "Unexpected plant service failure")


# ── Catalog ─────────────────────────────────────────────────────────────────


@router.get("/plants/types", response_model=list[PlantTypeRead])
async def list_plant_types(
	child_id: uuid.UUID | None = None,
	engine: Engine = Depends(get_engine),
) -> list[PlantTypeRead]:
	try:
		plant_types = await engine.catalog.list_plant_types(child_id)
	except Exception as exc:
		raise _map_error(exc) from exc
	return [PlantTypeRead.model_validate(plant_type) for plant_type in plant_types]


@router.get("/plants/types/{plant_type_id}", response_model=PlantTypeRead)
async def get_plant_type(
	plant_type_id: uuid.UUID,
	engine: Engine = Depends(get_engine),
) -> PlantTypeRead:
	try:
		plant_type = await engine.catalog.get_plant_type(plant_type_id)
	except Exception as exc:
		raise _map_error(exc) from exc
	return PlantTypeRead.model_validate(plant_type)


@router.post("/plants/types", response_model=PlantTypeRead, status_code=status.HTTP_201_CREATED)
async def create_plant_type(
	payload: PlantTypeCreate,
	engine: Engine = Depends(get_engine),
) -> PlantTypeRead:
	try:
		plant_type = await engine.catalog.create_plant_type(payload)
	except Exception as exc:
		raise _map_error(exc) from exc
	return PlantTypeRead.model_validate(plant_type)


# ── Child plants ────────────────────────────────────────────────────────────


@router.get("/children/{child_id}/plants", response_model=list[PlantRead])
async def list_child_plants(child_id: uuid.UUID, engine: Engine = Depends(get_engine)) -> list[PlantRead]:
	try:
		plants = await engine.plants.list_child_plants(child_id)
	except Exception as exc:
		raise _map_error(exc) from exc
	return [PlantRead.model_validate(plant) for plant in plants]


@router.get("/children/{child_id}/plants/current", response_model=PlantRead | None)
async def get_current_plant(child_id: uuid.UUID, engine: Engine = Depends(get_engine)) -> PlantRead | None:
	try:
		plant = await engine.plants.get_current_plant(child_id)
	except Exception as exc:
		raise _map_error(exc) from exc
	return PlantRead.model_validate(plant) if plant is not None else None


@router.get("/children/{child_id}/plants/collection", response_model=list[PlantCollectionEntryRead])
async def get_plant_collection(
	child_id: uuid.UUID,
	engine: Engine = Depends(get_engine),
) -> list[PlantCollectionEntryRead]:
	try:
		entries = await engine.plants.get_plant_collection(child_id)
	except Exception as exc:
		raise _map_error(exc) from exc
	return [
		PlantCollectionEntryRead(
			plant_type=PlantTypeRead.model_validate(entry.plant_type),
			count=len(entry.plants),
			plants=[PlantRead.model_validate(plant) for plant in entry.plants],
		)
		for entry in entries
	]


@router.post("/children/{child_id}/plants", response_model=PlantRead, status_code=status.HTTP_201_CREATED)
async def start_new_plant(
	child_id: uuid.UUID,
	payload: PlantStart,
	engine: Engine = Depends(get_engine),
) -> PlantRead:
	try:
		plant = await engine.plants.start_new_plant(child_id, payload.plant_type_id, payload.name)
	except Exception as exc:
		raise _map_error(exc) from exc
	return PlantRead.model_validate(plant)


# ── Plant actions ───────────────────────────────────────────────────────────


@router.post("/plants/{plant_id}/water", response_model=WateringResponse)
async def water_plant(plant_id: uuid.UUID, engine: Engine = Depends(get_engine)) -> WateringResponse:
	try:
		result = await engine.plants.water_plant(plant_id)
	except Exception as exc:
		raise _map_error(exc) from exc
	return WateringResponse(
		watering_log=WateringLogRead.model_validate(result.watering_log),
		plant=PlantRead.model_validate(result.plant),
		watering_streak=result.watering_streak,
		side_effects=[SideEffectRead(**effect.to_dict()) for effect in result.side_effects],
	)


@router.post("/plants/{plant_id}/grow", response_model=AdvanceResponse)
async def advance_plant_stage(plant_id: uuid.UUID, engine: Engine = Depends(get_engine)) -> AdvanceResponse:
	try:
		result = await engine.plants.advance_plant_stage(plant_id)
	except Exception as exc:
		raise _map_error(exc) from exc
	return AdvanceResponse(
		plant=PlantRead.model_validate(result.plant),
		is_max_stage=result.is_max_stage,
		is_completed=result.is_completed,
		side_effects=[SideEffectRead(**effect.to_dict()) for effect in result.side_effects],
	)


@router.post("/plants/{plant_id}/experience", response_model=PlantRead)
async def add_experience(
	plant_id: uuid.UUID,
	payload: ExperienceAdd,
	engine: Engine = Depends(get_engine),
) -> PlantRead:
	try:
		plant = await engine.plants.add_experience_to_plant(plant_id, payload.amount)
	except Exception as exc:
		raise _map_error(exc) from exc
	return PlantRead.model_validate(plant)
