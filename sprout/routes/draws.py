"""Draw and inventory routes."""

from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends, HTTPException, Query, status

from sprout.routes.deps import get_engine, map_engine_error
from sprout.schemas.inventory import DrawHistoryRead, DrawRequest, DrawResponse, InventoryItemRead
from sprout.schemas.plant import PlantTypeRead
from sprout.services.draw_service import DrawResult
from sprout.services.engine import Engine

router = APIRouter(prefix="/children/{child_id}", tags=["draws"])


def _map_error(exc: Exception) -> HTTPException:
	return map_engine_error(exc, "Unexpected draw service failure")


def to_draw_response(result: DrawResult) -> DrawResponse:
	return DrawResponse(
		plant_type=PlantTypeRead.model_validate(result.plant_type),
		rarity=result.rarity,
		is_duplicate=result.is_duplicate,
		experience_gained=result.experience_gained,
		history=DrawHistoryRead.model_validate(result.history),
	)


@router.post("/draws", response_model=DrawResponse, status_code=status.HTTP_201_CREATED)
async def draw_random_plant(
	child_id: uuid.UUID,
	payload: DrawRequest,
	engine: Engine = Depends(get_engine),
) -> DrawResponse:
	try:
		result = await engine.draws.draw_random_plant(child_id, payload.pack_type)
	except Exception as exc:
		raise _map_error(exc) from exc
	return to_draw_response(result)


@router.get("/draws", response_model=list[DrawHistoryRead])
async def list_draw_history(
	child_id: uuid.UUID,
	limit: int = Query(default=50, ge=1, le=500),
	engine: Engine = Depends(get_engine),
) -> list[DrawHistoryRead]:
	try:
		history = await engine.draws.list_draw_history(child_id, limit)
	except Exception as exc:
		raise _map_error(exc) from exc
	return [DrawHistoryRead.model_validate(row) for row in history]


@router.get("/inventory", response_model=list[InventoryItemRead])
async def get_plant_inventory(
	child_id: uuid.UUID,
	engine: Engine = Depends(get_engine),
) -> list[InventoryItemRead]:
	try:
		items = await engine.draws.get_plant_inventory(child_id)
	except Exception as exc:
		raise _map_error(exc) from exc
	return [InventoryItemRead.model_validate(item) for item in items]


@router.delete("/inventory/{plant_type_id}", status_code=status.HTTP_204_NO_CONTENT)
async def remove_from_inventory(
	child_id: uuid.UUID,
	plant_type_id: uuid.UUID,
	engine: Engine = Depends(get_engine),
) -> None:
	try:
		await engine.draws.remove_from_inventory(child_id, plant_type_id)
	except Exception as exc:
		raise _map_error(exc) from exc
