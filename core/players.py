"""Players, seats and the table roster shared by every game."""

from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import Iterator, Union
from uuid import uuid4

from core.cards import Card
from core.hand import Hand


class TableSetupError(ValueError):
    """Raised when a table cannot start with the current roster."""


class PlayerStatus(Enum):
    """Per-round player status."""

    IDLE = "idle"
    BETTING = "betting"
    PLAYING = "playing"
    STAND = "stand"
    BUST = "bust"
    BLACKJACK = "blackjack"
    SURRENDER = "surrender"

    def __str__(self) -> str:
        return self.value


@dataclass
class SingleSeat:
    """A seat playing one hand."""

    hand: Hand = field(default_factory=Hand)

    @property
    def hands(self) -> list[Hand]:
        return [self.hand]

    @property
    def active_hand(self) -> Hand:
        return self.hand


@dataclass
class SplitSeat:
    """
    A seat that has split into two or more hands.

    Each hand carries its own bet, so hands and bets can never drift apart.
    """

    hands: list[Hand]
    active_index: int = 0
    split_aces: bool = False

    @property
    def active_hand(self) -> Hand:
        return self.hands[self.active_index]

    @property
    def bets(self) -> list[Decimal]:
        return [hand.bet for hand in self.hands]

    def next_open_index(self) -> int | None:
        """Index of the first unfinished hand after the active one."""
        for index in range(self.active_index + 1, len(self.hands)):
            if not self.hands[index].is_done:
                return index
        return None


Seat = Union[SingleSeat, SplitSeat]


def _new_player_id() -> str:
    return uuid4().hex


@dataclass
class Player:
    """A person at the table. Chips may go negative; there is no credit limit."""

    name: str
    id: str = field(default_factory=_new_player_id)
    is_dealer: bool = False
    chips: Decimal = Decimal("0")
    insurance_bet: Decimal = Decimal("0")
    status: PlayerStatus = PlayerStatus.IDLE
    seat: Seat = field(default_factory=SingleSeat)

    @property
    def hand(self) -> list[Card]:
        """Cards of the primary hand (the first hand once split)."""
        return self.seat.hands[0].cards

    @property
    def current_bet(self) -> Decimal:
        """Main wager, i.e. the bet on the primary hand."""
        return self.seat.hands[0].bet

    @property
    def is_split(self) -> bool:
        return isinstance(self.seat, SplitSeat)

    @property
    def split_hands(self) -> list[list[Card]] | None:
        if isinstance(self.seat, SplitSeat):
            return [hand.cards for hand in self.seat.hands]
        return None

    @property
    def split_bets(self) -> list[Decimal] | None:
        if isinstance(self.seat, SplitSeat):
            return self.seat.bets
        return None

    @property
    def current_split_index(self) -> int | None:
        if isinstance(self.seat, SplitSeat):
            return self.seat.active_index
        return None

    @property
    def is_split_aces(self) -> bool:
        return isinstance(self.seat, SplitSeat) and self.seat.split_aces

    @property
    def active_hand(self) -> Hand:
        return self.seat.active_hand

    @property
    def total_wagered(self) -> Decimal:
        return sum((hand.bet for hand in self.seat.hands), Decimal("0"))

    def reset_round(self) -> None:
        """Clear per-round fields. Chips are kept."""
        self.seat = SingleSeat()
        self.insurance_bet = Decimal("0")
        self.status = PlayerStatus.IDLE if self.is_dealer else PlayerStatus.BETTING


class Roster:
    """Ordered list of players with one designated dealer."""

    def __init__(self) -> None:
        self._players: list[Player] = []
        self._dealer_id: str | None = None

    def add(self, name: str, chips: Decimal = Decimal("0")) -> Player:
        """Add a player in the next seat."""
        name = name.strip()
        if not name:
            raise TableSetupError("Player name must not be blank")
        player = Player(name=name, chips=chips)
        self._players.append(player)
        return player

    def get(self, player_id: str) -> Player | None:
        for player in self._players:
            if player.id == player_id:
                return player
        return None

    def set_dealer(self, player_id: str) -> bool:
        if self.get(player_id) is None:
            return False
        for player in self._players:
            player.is_dealer = player.id == player_id
        self._dealer_id = player_id
        return True

    @property
    def dealer(self) -> Player | None:
        if self._dealer_id is None:
            return None
        return self.get(self._dealer_id)

    def non_dealers(self) -> list[Player]:
        return [p for p in self._players if not p.is_dealer]

    def validate(self) -> Player:
        """
        Check the roster can start a session.

        Returns:
            The dealer

        Raises:
            TableSetupError: fewer than 2 players or no dealer
        """
        if len(self._players) < 2:
            raise TableSetupError("Need at least 2 players")
        dealer = self.dealer
        if dealer is None:
            raise TableSetupError("No dealer selected")
        return dealer

    def __len__(self) -> int:
        return len(self._players)

    def __iter__(self) -> Iterator[Player]:
        return iter(self._players)

    def __getitem__(self, index: int) -> Player:
        return self._players[index]
