"""Table rule settings."""

from dataclasses import dataclass
from decimal import Decimal

from config import config


@dataclass(frozen=True)
class TableRules:
    """
    Blackjack table rules.

    The dealer always stands on 17, soft or hard. Insurance has no
    affordability check since players are allowed to go into debt.
    """

    # Shoe reserves (reshuffle below these counts)
    round_start_reserve: int = config.game.round_start_reserve
    play_reserve: int = config.game.play_reserve

    # Payouts
    blackjack_payout: Decimal = Decimal(config.game.blackjack_payout)
    insurance_payout: Decimal = Decimal(config.game.insurance_payout)

    # Dealer rules
    dealer_stands_on: int = config.game.dealer_stands_on

    # Split rules
    max_split_hands: int = config.game.max_split_hands

    def __post_init__(self) -> None:
        """Validate rule combinations."""
        if self.play_reserve < 1 or self.round_start_reserve < self.play_reserve:
            raise ValueError("round_start_reserve must be >= play_reserve >= 1")
        if self.blackjack_payout < 1:
            raise ValueError("blackjack_payout must be at least 1.0")
        if self.max_split_hands < 2:
            raise ValueError("max_split_hands must be at least 2")
        if not 12 <= self.dealer_stands_on <= 21:
            raise ValueError("dealer_stands_on must be between 12 and 21")


@dataclass(frozen=True)
class BaccaratRules:
    """
    Baccarat payouts.

    Attributes:
        banker_commission: Commission on Banker wins (0.05 = 5%)
        tie_payout: Payout ratio for Tie bets (8 = 8:1)
        reserve: Reshuffle when fewer cards than this remain
    """

    banker_commission: Decimal = Decimal(config.game.banker_commission)
    tie_payout: Decimal = Decimal(config.game.tie_payout)
    reserve: int = config.game.play_reserve

    def __post_init__(self) -> None:
        if not 0 <= self.banker_commission < 1:
            raise ValueError("banker_commission must be in [0, 1)")
        if self.tie_payout <= 0:
            raise ValueError("tie_payout must be positive")
