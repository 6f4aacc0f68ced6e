"""Pydantic schemas for API requests and responses."""

from pydantic import BaseModel, ConfigDict, Field, model_validator
from typing import Any, Literal

GameName = Literal["blackjack", "baccarat", "roulette", "pulse"]


# Session schemas
class CreateSessionRequest(BaseModel):
    """Roster and game for a new table."""

    game: GameName = "blackjack"
    players: list[str] = Field(..., min_length=2, description="Player names in seat order")
    dealer_index: int = Field(..., ge=0, description="Seat of the dealer")

    @model_validator(mode="after")
    def _check_roster(self) -> "CreateSessionRequest":
        names = [name.strip() for name in self.players]
        if any(not name for name in names):
            raise ValueError("Player names must not be blank")
        if len(set(names)) != len(names):
            raise ValueError("Player names must be distinct")
        if self.dealer_index >= len(names):
            raise ValueError("dealer_index is out of range")
        self.players = names
        return self


class CardResponse(BaseModel):
    """Card representation."""

    model_config = ConfigDict(from_attributes=True)

    rank: str
    suit: str
    value: int


class HandResponse(BaseModel):
    """Blackjack hand representation."""

    cards: list[CardResponse]
    value: int | None
    is_soft: bool
    soft_value: int | None = None
    is_blackjack: bool
    is_busted: bool
    bet: float
    is_doubled: bool = False
    is_stood: bool = False


class PlayerResponse(BaseModel):
    """Seat representation shared by all games."""

    id: str
    name: str
    is_dealer: bool
    chips: float
    status: str
    current_bet: float = 0.0
    insurance_bet: float = 0.0
    hands: list[HandResponse] = []
    active_hand_index: int | None = None
    is_split_aces: bool = False


class SessionResponse(BaseModel):
    """Created session."""

    session_id: str
    game: GameName
    players: list[PlayerResponse]


class EventResponse(BaseModel):
    """One recorded engine event."""

    type: str
    data: dict[str, Any]


# Blackjack schemas
class BetRequest(BaseModel):
    """Request to add to a bet."""

    player_id: str
    amount: float = Field(..., gt=0, description="Bet increment")


class PlayerRequest(BaseModel):
    """Request naming a player."""

    player_id: str


class InsuranceRequest(BaseModel):
    """Current player's insurance answer."""

    accept: bool


class ActionRequest(BaseModel):
    """Request for player action."""

    action: Literal["hit", "stand", "double", "split"]


class HandResultResponse(BaseModel):
    player_id: str
    hand_index: int
    outcome: str
    amount: float


class BlackjackStateResponse(BaseModel):
    """Current blackjack table state."""

    phase: str
    players: list[PlayerResponse]
    dealer_id: str | None
    dealer_hand: HandResponse | None
    hole_card_revealed: bool
    current_player_id: str | None
    can_hit: bool
    can_stand: bool
    can_double: bool
    can_split: bool
    dealer_should_hit: bool
    shoe_remaining: int
    last_results: list[HandResultResponse]
    events: list[EventResponse]


# Baccarat schemas
class BaccaratBetRequest(BaseModel):
    """Request to back Player, Banker or Tie."""

    player_id: str
    bet_type: Literal["PLAYER", "BANKER", "TIE"]
    amount: float = Field(..., gt=0)


class BaccaratSettlementResponse(BaseModel):
    player_id: str
    net: float


class BaccaratStateResponse(BaseModel):
    """Current baccarat table state."""

    phase: str
    players: list[PlayerResponse]
    bets: dict[str, dict[str, float]]
    player_hand: list[CardResponse]
    banker_hand: list[CardResponse]
    player_score: int | None
    banker_score: int | None
    winner: str | None
    settlements: list[BaccaratSettlementResponse]


# Roulette schemas
class RouletteBetRequest(BaseModel):
    """Request to back a colour."""

    player_id: str
    amount: float = Field(..., gt=0)
    color: Literal["RED", "BLACK"]


class RouletteStateResponse(BaseModel):
    """Current roulette table state."""

    phase: str
    players: list[PlayerResponse]
    bets: dict[str, dict[str, Any]]
    result: str | None
    winnings: dict[str, float]
    history: list[str]


# Pulse schemas
class PulseBetRequest(BaseModel):
    """Request to set the pulse wager."""

    player_id: str
    amount: float = Field(..., gt=0)


class PulseStateResponse(BaseModel):
    """Current pulse table state."""

    phase: str
    players: list[PlayerResponse]
    current_player_id: str | None
    current_bet: float
    outcome: str | None


# Ledger schemas
class DebtResponse(BaseModel):
    """One directed debt."""

    debtor: str
    creditor: str
    amount: float


class LedgerResponse(BaseModel):
    """All debts and each seated player's net position."""

    debts: list[DebtResponse]
    balances: dict[str, float]
