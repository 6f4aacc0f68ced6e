"""Conversion of core objects to response schemas."""

from core.cards import Card
from core.game import GameEvent
from core.hand import Hand
from core.players import Player, SplitSeat

from api.schemas import CardResponse, EventResponse, HandResponse, PlayerResponse


def card_to_response(card: Card) -> CardResponse:
    """Convert a Card to CardResponse."""
    return CardResponse(rank=str(card.rank), suit=card.suit.value, value=card.value)


def hand_to_response(hand: Hand, hide_hole_card: bool = False) -> HandResponse:
    """Convert a Hand to HandResponse, optionally masking the second card."""
    if hide_hole_card and len(hand.cards) >= 2:
        visible = [hand.cards[0]]
        up = Hand(cards=visible, bet=hand.bet)
        return HandResponse(
            cards=[card_to_response(c) for c in visible],
            value=None,
            is_soft=up.is_soft,
            is_blackjack=False,
            is_busted=False,
            bet=float(hand.bet),
        )

    info = hand.soft_info
    return HandResponse(
        cards=[card_to_response(c) for c in hand.cards],
        value=info.value,
        is_soft=info.is_soft,
        soft_value=info.soft_value,
        is_blackjack=hand.is_blackjack,
        is_busted=hand.is_busted,
        bet=float(hand.bet),
        is_doubled=hand.is_doubled,
        is_stood=hand.is_stood,
    )


def player_to_response(player: Player, hide_hole_card: bool = False) -> PlayerResponse:
    """Convert a Player to PlayerResponse."""
    seat = player.seat
    hands = [
        hand_to_response(h, hide_hole_card=hide_hole_card and player.is_dealer)
        for h in seat.hands
        if h.cards or h.bet
    ]
    return PlayerResponse(
        id=player.id,
        name=player.name,
        is_dealer=player.is_dealer,
        chips=float(player.chips),
        status=str(player.status),
        current_bet=float(player.current_bet),
        insurance_bet=float(player.insurance_bet),
        hands=hands,
        active_hand_index=seat.active_index if isinstance(seat, SplitSeat) else None,
        is_split_aces=player.is_split_aces,
    )


def event_to_response(event: GameEvent) -> EventResponse:
    return EventResponse(type=event.event_type.name, data=event.data)
