"""Pulse: a provably fair 50/50 wager against the dealer."""

import logging
from decimal import Decimal
from enum import Enum
from random import Random, SystemRandom

from core.ledger import Amount, DebtLedger, to_decimal
from core.players import Player, Roster, TableSetupError

logger = logging.getLogger(__name__)


class PulseOutcome(Enum):
    PLAYER = "PLAYER"
    HOUSE = "HOUSE"


class PulsePhase(Enum):
    IDLE = "IDLE"
    BETTING = "BETTING"
    RESULT = "RESULT"


class PulseTable:
    """
    One player at a time wagers against the dealer at even money.

    Outcomes come from the operating system's cryptographic random source
    so nobody at the table can claim the draw was rigged.
    """

    def __init__(self, ledger: DebtLedger | None = None, rng: Random | None = None) -> None:
        self._rng = rng or SystemRandom()
        self.ledger = ledger or DebtLedger()
        self.roster = Roster()
        self.phase = PulsePhase.IDLE
        self.current_bet = Decimal("0")
        self.current_player_id: str | None = None
        self.last_outcome: PulseOutcome | None = None

    def add_player(self, name: str, chips: Amount = 0) -> Player:
        return self.roster.add(name, to_decimal(chips))

    def set_dealer(self, player_id: str) -> bool:
        return self.roster.set_dealer(player_id)

    def place_bet(self, player_id: str, amount: Amount) -> bool:
        """Set the wager for the next pulse."""
        if self.phase == PulsePhase.RESULT:
            return False
        player = self.roster.get(player_id)
        value = to_decimal(amount)
        if player is None or player.is_dealer or value <= 0:
            return False

        self.current_bet = value
        self.current_player_id = player_id
        self.phase = PulsePhase.BETTING
        return True

    def determine_outcome(self) -> PulseOutcome | None:
        """Draw 32 random bits: even favours the player, odd the house."""
        if self.phase != PulsePhase.BETTING:
            return None
        bits = self._rng.getrandbits(32)
        self.last_outcome = PulseOutcome.PLAYER if bits % 2 == 0 else PulseOutcome.HOUSE
        return self.last_outcome

    def resolve_round(self, outcome: PulseOutcome) -> bool:
        """Settle the wager at even money."""
        if self.phase != PulsePhase.BETTING or self.current_player_id is None:
            return False
        self.roster.validate()
        dealer = self.roster.dealer
        player = self.roster.get(self.current_player_id)
        if dealer is None or player is None:
            raise TableSetupError("Pulse needs a dealer and a player")

        if outcome == PulseOutcome.PLAYER:
            self.ledger.record_transfer(dealer.id, player.id, self.current_bet)
            net = self.current_bet
        else:
            self.ledger.record_transfer(player.id, dealer.id, self.current_bet)
            net = -self.current_bet
        player.chips += net
        dealer.chips -= net

        self.last_outcome = outcome
        self.phase = PulsePhase.RESULT
        logger.info("Pulse resolved: %s (%s)", outcome.value, self.current_bet)
        return True

    def play(self) -> PulseOutcome | None:
        """Draw and settle in one call."""
        outcome = self.determine_outcome()
        if outcome is None:
            return None
        self.resolve_round(outcome)
        return outcome

    def reset_round(self) -> None:
        self.current_bet = Decimal("0")
        self.current_player_id = None
        self.last_outcome = None
        self.phase = PulsePhase.IDLE
