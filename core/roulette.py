"""Red/black roulette settled through the debt ledger."""

import time
from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from random import Random

from config import config
from core.ledger import Amount, DebtLedger, to_decimal
from core.players import Player, Roster, TableSetupError


class RouletteColor(Enum):
    RED = 0
    BLACK = 1


class RoulettePhase(Enum):
    BETTING = "BETTING"
    SPINNING = "SPINNING"
    PAYOUT = "PAYOUT"


@dataclass(frozen=True)
class RouletteSpin:
    result: RouletteColor
    timestamp: float


@dataclass
class RouletteBet:
    color: RouletteColor
    amount: Decimal = Decimal("0")


class RouletteTable:
    """
    Even-money red/black wheel.

    Each player backs one colour. Winners are paid 1:1 by the dealer and
    losers owe the dealer their stake.
    """

    def __init__(
        self,
        ledger: DebtLedger | None = None,
        rng: Random | None = None,
        history_size: int = config.game.roulette_history,
    ) -> None:
        self._rng = rng or Random()
        self.ledger = ledger or DebtLedger()
        self.roster = Roster()
        self.phase = RoulettePhase.BETTING
        self.bets: dict[str, RouletteBet] = {}
        self.winnings: dict[str, Decimal] = {}
        self.current_result: RouletteColor | None = None
        self.history: list[RouletteSpin] = []
        self._history_size = history_size

    def add_player(self, name: str, chips: Amount = 0) -> Player:
        return self.roster.add(name, to_decimal(chips))

    def set_dealer(self, player_id: str) -> bool:
        return self.roster.set_dealer(player_id)

    def place_bet(self, player_id: str, amount: Amount, color: RouletteColor) -> bool:
        """Add to a player's stake. Switching colour restarts the stake."""
        if self.phase != RoulettePhase.BETTING:
            return False
        player = self.roster.get(player_id)
        value = to_decimal(amount)
        if player is None or player.is_dealer or value <= 0:
            return False

        bet = self.bets.get(player_id)
        if bet is None or bet.color != color:
            bet = RouletteBet(color)
            self.bets[player_id] = bet
        bet.amount += value
        return True

    def clear_bet(self, player_id: str) -> bool:
        if self.phase != RoulettePhase.BETTING:
            return False
        return self.bets.pop(player_id, None) is not None

    def spin(self) -> RouletteColor:
        """Pick red or black with equal probability. Repeated calls return the same result."""
        if self.phase != RoulettePhase.BETTING and self.current_result is not None:
            return self.current_result
        self.roster.validate()

        self.current_result = RouletteColor(self._rng.randrange(2))
        self.phase = RoulettePhase.SPINNING
        return self.current_result

    def resolve_bets(self) -> bool:
        """Settle all bets on the spun colour."""
        if self.phase != RoulettePhase.SPINNING or self.current_result is None:
            return False
        dealer = self.roster.dealer
        if dealer is None:
            raise TableSetupError("No dealer selected")

        for player_id, bet in self.bets.items():
            player = self.roster.get(player_id)
            if player is None or bet.amount <= 0:
                continue
            if bet.color == self.current_result:
                self.ledger.record_transfer(dealer.id, player.id, bet.amount)
                net = bet.amount
            else:
                self.ledger.record_transfer(player.id, dealer.id, bet.amount)
                net = -bet.amount
            player.chips += net
            dealer.chips -= net
            self.winnings[player_id] = net

        self.history.insert(0, RouletteSpin(self.current_result, time.time()))
        del self.history[self._history_size:]
        self.phase = RoulettePhase.PAYOUT
        return True

    def reset_round(self) -> None:
        self.phase = RoulettePhase.BETTING
        self.current_result = None
        self.bets.clear()
        self.winnings.clear()
