"""
Baccarat drawing rules and table.

Baccarat has fixed drawing rules - no decisions after betting. The rules
decide when Player and Banker draw a third card.
"""

import logging
from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from random import Random
from typing import Callable

from core.cards import Card, Shoe
from core.hand import baccarat_score
from core.ledger import Amount, DebtLedger, to_decimal
from core.players import Player, Roster, TableSetupError
from core.rules import BaccaratRules

logger = logging.getLogger(__name__)

NO_THIRD_CARD = -1


class BetType(Enum):
    """What a baccarat wager backs. Also used for the coup winner."""

    PLAYER = "PLAYER"
    BANKER = "BANKER"
    TIE = "TIE"


class BaccaratPhase(Enum):
    BETTING = "BETTING"
    RESOLUTION = "RESOLUTION"


@dataclass(frozen=True)
class BaccaratResult:
    """Final hands and winner of one coup."""

    winner: BetType
    player_score: int
    banker_score: int
    player_hand: list[Card]
    banker_hand: list[Card]

    @property
    def is_natural(self) -> bool:
        return len(self.player_hand) == 2 and len(self.banker_hand) == 2 and (
            self.player_score >= 8 or self.banker_score >= 8
        )


def is_natural_score(score: int) -> bool:
    return score >= 8


def player_draws(player_score: int) -> bool:
    """Player draws on 0-5 and stands on 6-7."""
    return player_score <= 5


def banker_draws(banker_score: int, player_third_value: int, player_card_count: int) -> bool:
    """
    Decide whether Banker draws a third card.

    Args:
        banker_score: Banker's two-card total
        player_third_value: Baccarat value of Player's third card, or -1 if none
        player_card_count: Number of cards Player holds

    Returns:
        True if Banker draws
    """
    # Player stood: Banker draws on 0-5 and stands on 6-7
    if player_card_count == 2:
        return banker_score <= 5

    if banker_score <= 2:
        return True
    if banker_score == 3:
        return player_third_value != 8
    if banker_score == 4:
        return 2 <= player_third_value <= 7
    if banker_score == 5:
        return 4 <= player_third_value <= 7
    if banker_score == 6:
        return player_third_value in (6, 7)
    return False


def decide_winner(player_score: int, banker_score: int) -> BetType:
    if player_score > banker_score:
        return BetType.PLAYER
    if banker_score > player_score:
        return BetType.BANKER
    return BetType.TIE


def resolve_coup(
    player_hand: list[Card],
    banker_hand: list[Card],
    draw: Callable[[], Card],
) -> BaccaratResult:
    """
    Apply the third-card rules to two dealt hands.

    ``player_hand`` and ``banker_hand`` are extended in place.
    """
    player_score = baccarat_score(player_hand)
    banker_score = baccarat_score(banker_hand)

    if not (is_natural_score(player_score) or is_natural_score(banker_score)):
        player_third_value = NO_THIRD_CARD
        if player_draws(player_score):
            card = draw()
            player_hand.append(card)
            player_third_value = card.baccarat_value
            player_score = baccarat_score(player_hand)

        if banker_draws(banker_score, player_third_value, len(player_hand)):
            banker_hand.append(draw())
            banker_score = baccarat_score(banker_hand)

    return BaccaratResult(
        winner=decide_winner(player_score, banker_score),
        player_score=player_score,
        banker_score=banker_score,
        player_hand=list(player_hand),
        banker_hand=list(banker_hand),
    )


def bet_net(
    bet_type: BetType,
    amount: Decimal,
    winner: BetType,
    rules: BaccaratRules | None = None,
) -> Decimal:
    """
    Net result of a wager from the bettor's side.

    Player pays 1:1, Banker 0.95:1, Tie 8:1. On a tie, Player and Banker
    bets push.
    """
    rules = rules or BaccaratRules()
    if bet_type == winner:
        if bet_type == BetType.BANKER:
            return amount * (1 - rules.banker_commission)
        if bet_type == BetType.TIE:
            return amount * rules.tie_payout
        return amount
    if winner == BetType.TIE:
        return Decimal("0")
    return -amount


@dataclass
class BaccaratSettlement:
    player_id: str
    net: Decimal
    bets: dict[BetType, Decimal] = field(default_factory=dict)


class BaccaratTable:
    """Shared-device baccarat table settling through the debt ledger."""

    def __init__(
        self,
        ledger: DebtLedger | None = None,
        rules: BaccaratRules | None = None,
        rng: Random | None = None,
        shoe: Shoe | None = None,
    ) -> None:
        self.rules = rules or BaccaratRules()
        self.shoe = shoe or Shoe(rng=rng)
        self.ledger = ledger or DebtLedger()
        self.roster = Roster()
        self.phase = BaccaratPhase.BETTING
        self.bets: dict[str, dict[BetType, Decimal]] = {}
        self.player_hand: list[Card] = []
        self.banker_hand: list[Card] = []
        self.last_result: BaccaratResult | None = None
        self.last_settlements: list[BaccaratSettlement] = []

    def add_player(self, name: str, chips: Amount = 0) -> Player:
        return self.roster.add(name, to_decimal(chips))

    def set_dealer(self, player_id: str) -> bool:
        return self.roster.set_dealer(player_id)

    @property
    def dealer(self) -> Player:
        dealer = self.roster.dealer
        if dealer is None:
            raise TableSetupError("No dealer selected")
        return dealer

    def place_bet(self, player_id: str, bet_type: BetType, amount: Amount) -> bool:
        """Add to a player's wager on one outcome. Debt is allowed."""
        if self.phase != BaccaratPhase.BETTING:
            return False
        player = self.roster.get(player_id)
        value = to_decimal(amount)
        if player is None or player.is_dealer or value <= 0:
            return False

        player_bets = self.bets.setdefault(player_id, {})
        player_bets[bet_type] = player_bets.get(bet_type, Decimal("0")) + value
        return True

    def clear_bets(self, player_id: str) -> bool:
        if self.phase != BaccaratPhase.BETTING:
            return False
        return self.bets.pop(player_id, None) is not None

    def _draw(self) -> Card:
        self.shoe.ensure(self.rules.reserve)
        card = self.shoe.draw()
        if card is None:  # ensure() keeps at least the reserve
            raise RuntimeError("Shoe exhausted")
        return card

    def deal(self) -> BaccaratResult | None:
        """
        Deal P, B, P, B, apply the drawing rules and settle every bet.

        Returns:
            The coup result, or None outside betting or with no bets placed

        Raises:
            TableSetupError: fewer than 2 players or no dealer
        """
        if self.phase != BaccaratPhase.BETTING or not self.bets:
            return None
        self.roster.validate()

        self.player_hand = []
        self.banker_hand = []
        for _ in range(2):
            self.player_hand.append(self._draw())
            self.banker_hand.append(self._draw())

        result = resolve_coup(self.player_hand, self.banker_hand, self._draw)
        self.last_result = result
        self._settle(result.winner)
        self.phase = BaccaratPhase.RESOLUTION
        logger.info(
            "Baccarat coup: %s wins %d-%d",
            result.winner.value,
            result.player_score,
            result.banker_score,
        )
        return result

    def _settle(self, winner: BetType) -> None:
        dealer = self.dealer
        settlements = []
        for player_id, player_bets in self.bets.items():
            player = self.roster.get(player_id)
            if player is None:
                continue
            net = sum(
                (bet_net(bet_type, amount, winner, self.rules) for bet_type, amount in player_bets.items()),
                Decimal("0"),
            )
            if net > 0:
                self.ledger.record_transfer(dealer.id, player.id, net)
            elif net < 0:
                self.ledger.record_transfer(player.id, dealer.id, -net)
            player.chips += net
            dealer.chips -= net
            settlements.append(BaccaratSettlement(player_id, net, dict(player_bets)))
        self.last_settlements = settlements

    def reset_round(self) -> None:
        self.bets.clear()
        self.player_hand = []
        self.banker_hand = []
        self.last_result = None
        self.last_settlements = []
        self.phase = BaccaratPhase.BETTING
