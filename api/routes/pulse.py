"""Pulse table endpoints."""

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException

from api.dependencies import table_session
from api.schemas import PulseBetRequest, PulseStateResponse
from api.serializers import player_to_response
from api.session import TableSession
from core.pulse import PulseTable

router = APIRouter()

PulseSession = Annotated[TableSession, Depends(table_session("pulse"))]


def _state_response(table: PulseTable) -> PulseStateResponse:
    return PulseStateResponse(
        phase=table.phase.value,
        players=[player_to_response(p) for p in table.roster],
        current_player_id=table.current_player_id,
        current_bet=float(table.current_bet),
        outcome=table.last_outcome.value if table.last_outcome else None,
    )


@router.get("/state")
async def get_state(session: PulseSession) -> PulseStateResponse:
    """Get current table state."""
    return _state_response(session.table)


@router.post("/bet")
async def place_bet(request: PulseBetRequest, session: PulseSession) -> PulseStateResponse:
    """Set the wager for the next pulse."""
    async with session.lock:
        table = session.table
        if not table.place_bet(request.player_id, request.amount):
            raise HTTPException(status_code=400, detail="Invalid bet")
        return _state_response(table)


@router.post("/play")
async def play(session: PulseSession) -> PulseStateResponse:
    """Draw the outcome and settle the wager."""
    async with session.lock:
        table = session.table
        if table.play() is None:
            raise HTTPException(status_code=400, detail="Place a bet first")
        return _state_response(table)


@router.post("/next-round")
async def next_round(session: PulseSession) -> PulseStateResponse:
    """Clear the wager."""
    async with session.lock:
        session.table.reset_round()
        return _state_response(session.table)
