"""Blackjack table endpoints."""

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException

from api.dependencies import table_session
from api.schemas import (
    ActionRequest,
    BetRequest,
    BlackjackStateResponse,
    HandResultResponse,
    InsuranceRequest,
    PlayerRequest,
)
from api.serializers import event_to_response, hand_to_response, player_to_response
from api.session import TableSession
from core.game import BlackjackTable, GamePhase

router = APIRouter()

BlackjackSession = Annotated[TableSession, Depends(table_session("blackjack"))]


def _state_response(table: BlackjackTable) -> BlackjackStateResponse:
    """Convert table state to response, draining pending events."""
    hide = not table.hole_card_revealed
    dealer = table.roster.dealer
    current = table.current_player
    dealer_hand = None
    if dealer is not None and dealer.hand:
        dealer_hand = hand_to_response(dealer.seat.hands[0], hide_hole_card=hide)

    return BlackjackStateResponse(
        phase=table.phase.name,
        players=[player_to_response(p, hide_hole_card=hide) for p in table.players],
        dealer_id=dealer.id if dealer else None,
        dealer_hand=dealer_hand,
        hole_card_revealed=table.hole_card_revealed,
        current_player_id=current.id if current else None,
        can_hit=table.can_hit,
        can_stand=table.can_stand,
        can_double=table.can_double,
        can_split=table.can_split,
        dealer_should_hit=table.dealer_should_hit,
        shoe_remaining=table.shoe.remaining(),
        last_results=[
            HandResultResponse(
                player_id=r.player_id,
                hand_index=r.hand_index,
                outcome=r.outcome.value,
                amount=float(r.amount),
            )
            for r in table.last_results
        ],
        events=[event_to_response(e) for e in table.events.drain()],
    )


def _require(ok: bool, table: BlackjackTable, action: str) -> None:
    if not ok:
        raise HTTPException(
            status_code=400,
            detail=f"Cannot {action} during {table.phase.name}",
        )


@router.get("/state")
async def get_state(session: BlackjackSession) -> BlackjackStateResponse:
    """Get current table state."""
    return _state_response(session.table)


@router.post("/bet")
async def place_bet(request: BetRequest, session: BlackjackSession) -> BlackjackStateResponse:
    """Add to a player's bet."""
    async with session.lock:
        table = session.table
        _require(table.place_bet(request.player_id, request.amount), table, "bet")
        return _state_response(table)


@router.post("/clear-bet")
async def clear_bet(request: PlayerRequest, session: BlackjackSession) -> BlackjackStateResponse:
    """Reset a player's bet to zero."""
    async with session.lock:
        table = session.table
        _require(table.clear_bet(request.player_id), table, "clear bet")
        return _state_response(table)


@router.post("/deal")
async def deal(session: BlackjackSession) -> BlackjackStateResponse:
    """Deal the initial cards."""
    async with session.lock:
        table = session.table
        _require(table.deal(), table, "deal")
        return _state_response(table)


@router.post("/insurance")
async def insurance(request: InsuranceRequest, session: BlackjackSession) -> BlackjackStateResponse:
    """Current player accepts or declines insurance."""
    async with session.lock:
        table = session.table
        ok = table.take_insurance() if request.accept else table.decline_insurance()
        _require(ok, table, "answer insurance")
        return _state_response(table)


@router.post("/action")
async def player_action(request: ActionRequest, session: BlackjackSession) -> BlackjackStateResponse:
    """Execute a player action for the current player."""
    async with session.lock:
        table = session.table
        actions = {
            "hit": table.hit,
            "stand": table.stand,
            "double": table.double_down,
            "split": table.split,
        }
        _require(actions[request.action](), table, request.action)
        return _state_response(table)


@router.post("/dealer/hit")
async def dealer_hit(session: BlackjackSession) -> BlackjackStateResponse:
    """Draw one dealer card."""
    async with session.lock:
        table = session.table
        _require(table.dealer_hit(), table, "draw for the dealer")
        return _state_response(table)


@router.post("/dealer/play")
async def dealer_play(session: BlackjackSession) -> BlackjackStateResponse:
    """Play out the dealer and settle the round."""
    async with session.lock:
        table = session.table
        _require(table.play_dealer(), table, "play the dealer")
        return _state_response(table)


@router.post("/resolve")
async def resolve(session: BlackjackSession) -> BlackjackStateResponse:
    """Settle the round after the dealer has finished drawing."""
    async with session.lock:
        table = session.table
        _require(table.resolve_round(), table, "resolve")
        return _state_response(table)


@router.post("/next-round")
async def next_round(session: BlackjackSession) -> BlackjackStateResponse:
    """Clear the table and open betting."""
    async with session.lock:
        table = session.table
        if table.phase not in (GamePhase.BETTING, GamePhase.RESOLUTION):
            _require(False, table, "start a new round")
        table.reset_round()
        return _state_response(table)
