"""Roulette table endpoints."""

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException

from api.dependencies import table_session
from api.schemas import PlayerRequest, RouletteBetRequest, RouletteStateResponse
from api.serializers import player_to_response
from api.session import TableSession
from core.roulette import RouletteColor, RouletteTable

router = APIRouter()

RouletteSession = Annotated[TableSession, Depends(table_session("roulette"))]


def _state_response(table: RouletteTable) -> RouletteStateResponse:
    return RouletteStateResponse(
        phase=table.phase.value,
        players=[player_to_response(p) for p in table.roster],
        bets={
            player_id: {"color": bet.color.name, "amount": float(bet.amount)}
            for player_id, bet in table.bets.items()
        },
        result=table.current_result.name if table.current_result else None,
        winnings={player_id: float(net) for player_id, net in table.winnings.items()},
        history=[spin.result.name for spin in table.history],
    )


@router.get("/state")
async def get_state(session: RouletteSession) -> RouletteStateResponse:
    """Get current table state."""
    return _state_response(session.table)


@router.post("/bet")
async def place_bet(request: RouletteBetRequest, session: RouletteSession) -> RouletteStateResponse:
    """Back red or black."""
    async with session.lock:
        table = session.table
        if not table.place_bet(request.player_id, request.amount, RouletteColor[request.color]):
            raise HTTPException(status_code=400, detail="Invalid bet")
        return _state_response(table)


@router.post("/clear")
async def clear_bet(request: PlayerRequest, session: RouletteSession) -> RouletteStateResponse:
    """Withdraw a player's bet."""
    async with session.lock:
        table = session.table
        if not table.clear_bet(request.player_id):
            raise HTTPException(status_code=400, detail="No bet to clear")
        return _state_response(table)


@router.post("/spin")
async def spin(session: RouletteSession) -> RouletteStateResponse:
    """Spin the wheel. Spinning again before settling shows the same result."""
    async with session.lock:
        table = session.table
        table.spin()
        return _state_response(table)


@router.post("/resolve")
async def resolve(session: RouletteSession) -> RouletteStateResponse:
    """Settle every bet on the spun colour."""
    async with session.lock:
        table = session.table
        if not table.resolve_bets():
            raise HTTPException(status_code=400, detail="Spin the wheel before settling")
        return _state_response(table)


@router.post("/next-round")
async def next_round(session: RouletteSession) -> RouletteStateResponse:
    """Clear the table for new bets."""
    async with session.lock:
        session.table.reset_round()
        return _state_response(session.table)
