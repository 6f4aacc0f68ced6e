"""Hand evaluation for blackjack and baccarat."""

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Iterable, Iterator, NamedTuple

from core.cards import Card


class SoftInfo(NamedTuple):
    """Display information for a blackjack total, e.g. ``7/17``."""

    value: int
    is_soft: bool
    soft_value: int | None

    def __str__(self) -> str:
        if self.is_soft:
            return f"{self.soft_value}/{self.value}"
        return str(self.value)


def _reduce(cards: Iterable[Card]) -> tuple[int, int]:
    """Return (best total, aces still counted as 11)."""
    total = 0
    aces = 0

    for card in cards:
        total += card.value
        if card.is_ace:
            aces += 1

    # Reduce aces from 11 to 1 as needed
    while total > 21 and aces > 0:
        total -= 10
        aces -= 1

    return total, aces


def hard_value(cards: Iterable[Card]) -> int:
    """
    Calculate the best blackjack total.

    Returns the highest value that doesn't bust, or the lowest bust value.
    """
    return _reduce(cards)[0]


def soft_info(cards: Iterable[Card]) -> SoftInfo:
    """
    Report the best total and whether an Ace still counts as 11.

    When soft, ``soft_value`` is the total with that Ace counted as 1.
    """
    total, aces = _reduce(cards)
    if aces > 0:
        return SoftInfo(total, True, total - 10)
    return SoftInfo(total, False, None)


def baccarat_score(cards: Iterable[Card]) -> int:
    """Baccarat total: tens and faces 0, Ace 1, modulo 10."""
    return sum(card.baccarat_value for card in cards) % 10


def is_natural(cards: list[Card]) -> bool:
    """Two-card 21."""
    return len(cards) == 2 and hard_value(cards) == 21


@dataclass
class Hand:
    """A blackjack hand with its wager."""

    cards: list[Card] = field(default_factory=list)
    bet: Decimal = Decimal("0")
    is_doubled: bool = False
    is_split_hand: bool = False
    is_stood: bool = False

    def add_card(self, card: Card) -> None:
        """Add a card to the hand."""
        self.cards.append(card)

    @property
    def value(self) -> int:
        return hard_value(self.cards)

    @property
    def soft_info(self) -> SoftInfo:
        return soft_info(self.cards)

    @property
    def is_soft(self) -> bool:
        return self.soft_info.is_soft

    @property
    def is_blackjack(self) -> bool:
        """Check if the hand is a natural blackjack (21 with 2 cards, never after a split)."""
        return not self.is_split_hand and is_natural(self.cards)

    @property
    def is_busted(self) -> bool:
        return self.value > 21

    @property
    def is_pair(self) -> bool:
        """Two cards of equal blackjack value (10-J counts as a pair)."""
        return len(self.cards) == 2 and self.cards[0].value == self.cards[1].value

    @property
    def is_done(self) -> bool:
        """No further cards will be taken on this hand."""
        return self.is_stood or self.is_busted

    def __len__(self) -> int:
        return len(self.cards)

    def __iter__(self) -> Iterator[Card]:
        return iter(self.cards)

    def __str__(self) -> str:
        cards_str = " ".join(str(card) for card in self.cards)
        value_str = f"({self.soft_info})"
        if self.is_blackjack:
            value_str = "(BLACKJACK)"
        elif self.is_busted:
            value_str = "(BUST)"
        return f"{cards_str} {value_str}"

    def __repr__(self) -> str:
        return f"Hand({self.cards!r}, value={self.value}, bet={self.bet})"
