"""Baccarat table endpoints."""

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException

from api.dependencies import table_session
from api.schemas import (
    BaccaratBetRequest,
    BaccaratSettlementResponse,
    BaccaratStateResponse,
    PlayerRequest,
)
from api.serializers import card_to_response, player_to_response
from api.session import TableSession
from core.baccarat import BaccaratTable, BetType

router = APIRouter()

BaccaratSession = Annotated[TableSession, Depends(table_session("baccarat"))]


def _state_response(table: BaccaratTable) -> BaccaratStateResponse:
    result = table.last_result
    return BaccaratStateResponse(
        phase=table.phase.value,
        players=[player_to_response(p) for p in table.roster],
        bets={
            player_id: {bet_type.value: float(amount) for bet_type, amount in bets.items()}
            for player_id, bets in table.bets.items()
        },
        player_hand=[card_to_response(c) for c in table.player_hand],
        banker_hand=[card_to_response(c) for c in table.banker_hand],
        player_score=result.player_score if result else None,
        banker_score=result.banker_score if result else None,
        winner=result.winner.value if result else None,
        settlements=[
            BaccaratSettlementResponse(player_id=s.player_id, net=float(s.net))
            for s in table.last_settlements
        ],
    )


@router.get("/state")
async def get_state(session: BaccaratSession) -> BaccaratStateResponse:
    """Get current table state."""
    return _state_response(session.table)


@router.post("/bet")
async def place_bet(request: BaccaratBetRequest, session: BaccaratSession) -> BaccaratStateResponse:
    """Back Player, Banker or Tie."""
    async with session.lock:
        table = session.table
        if not table.place_bet(request.player_id, BetType(request.bet_type), request.amount):
            raise HTTPException(status_code=400, detail="Invalid bet")
        return _state_response(table)


@router.post("/clear")
async def clear_bets(request: PlayerRequest, session: BaccaratSession) -> BaccaratStateResponse:
    """Withdraw all of a player's bets."""
    async with session.lock:
        table = session.table
        if not table.clear_bets(request.player_id):
            raise HTTPException(status_code=400, detail="No bets to clear")
        return _state_response(table)


@router.post("/deal")
async def deal(session: BaccaratSession) -> BaccaratStateResponse:
    """Deal a coup and settle all bets."""
    async with session.lock:
        table = session.table
        if table.deal() is None:
            raise HTTPException(status_code=400, detail="Place a bet before dealing")
        return _state_response(table)


@router.post("/next-round")
async def next_round(session: BaccaratSession) -> BaccaratStateResponse:
    """Clear the table for new bets."""
    async with session.lock:
        session.table.reset_round()
        return _state_response(session.table)
