"""Ticket, child stats and activity-hook routes."""

from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends, HTTPException, status

from sprout.routes.deps import get_engine, map_engine_error
from sprout.routes.draws import to_draw_response
from sprout.schemas.rewards import (
	ChildStatsRead,
	GrantTicketsRequest,
	MissionProgress,
	TicketCounts,
	TicketDrawResponse,
	TicketListRead,
	TicketRead,
)
from sprout.services.engine import Engine

router = APIRouter(tags=["tickets"])


def _map_error(exc: Exception) -> HTTPException:
	return map_engine_error(exc, "Unexpected ticket service failure")


@router.get("/children/{child_id}/tickets", response_model=TicketListRead)
async def list_child_tickets(child_id: uuid.UUID, engine: Engine = Depends(get_engine)) -> TicketListRead:
	try:
		summary = await engine.tickets.list_child_tickets(child_id)
	except Exception as exc:
		raise _map_error(exc) from exc
	return TicketListRead(
		tickets=[TicketRead.model_validate(ticket) for ticket in summary.tickets],
		counts=TicketCounts(**summary.counts),
	)


@router.post("/children/{child_id}/tickets/{ticket_id}/use", response_model=TicketDrawResponse)
async def use_ticket_for_draw(
	child_id: uuid.UUID,
	ticket_id: uuid.UUID,
	engine: Engine = Depends(get_engine),
) -> TicketDrawResponse:
	try:
		ticket, result = await engine.tickets.use_ticket_for_draw(child_id, ticket_id)
	except Exception as exc:
		raise _map_error(exc) from exc
	return TicketDrawResponse(ticket=TicketRead.model_validate(ticket), draw=to_draw_response(result))


@router.get("/children/{child_id}/stats", response_model=ChildStatsRead)
async def get_child_stats(child_id: uuid.UUID, engine: Engine = Depends(get_engine)) -> ChildStatsRead:
	try:
		stats = await engine.tickets.get_child_stats(child_id)
	except Exception as exc:
		raise _map_error(exc) from exc
	child = stats.child
	return ChildStatsRead(
		child_id=child.id,
		verification_count=child.verification_count,
		plant_completion_count=child.plant_completion_count,
		watering_streak=child.watering_streak,
		total_completed_plants=child.total_completed_plants,
		tickets=TicketCounts(**stats.ticket_counts),
		missions=[
			MissionProgress(
				id=mission.id,
				title=mission.title,
				mission_type=mission.mission_type,
				current_count=mission.current_count,
				target_count=mission.target_count,
				progress=f"{mission.current_count}/{mission.target_count}",
				percent=min(100, mission.current_count * 100 // mission.target_count),
			)
			for mission in stats.missions
		],
	)


@router.post("/children/{child_id}/verifications", status_code=status.HTTP_202_ACCEPTED)
async def record_verification(child_id: uuid.UUID, engine: Engine = Depends(get_engine)) -> dict[str, int]:
	"""Hook called by the promise subsystem when a verification is approved."""
	try:
		child = await engine.tickets.handle_verification_complete(child_id)
	except Exception as exc:
		raise _map_error(exc) from exc
	return {"verification_count": child.verification_count}


@router.post("/tickets/grant", response_model=list[TicketRead], status_code=status.HTTP_201_CREATED)
async def grant_tickets(
	payload: GrantTicketsRequest,
	engine: Engine = Depends(get_engine),
) -> list[TicketRead]:
	try:
		tickets = await engine.tickets.grant_tickets(
			payload.child_id,
			payload.ticket_type,
			payload.count,
			payload.earned_from,
		)
	except Exception as exc:
		raise _map_error(exc) from exc
	return [TicketRead.model_validate(ticket) for ticket in tickets]
