"""Pytest fixtures for casino table tests."""

import pytest
from random import Random

from hypothesis import strategies as st

from core.baccarat import BaccaratTable
from core.cards import Card, Shoe, Rank, Suit
from core.game import BlackjackTable
from core.hand import Hand
from core.ledger import DebtLedger
from core.pulse import PulseTable
from core.roulette import RouletteTable
from core.storage import InMemoryStore


def card(text: str) -> Card:
    """Shorthand for Card.from_string."""
    return Card.from_string(text)


def hand_of(*cards: str) -> Hand:
    """Build a hand from card strings like 'AS', '10H'."""
    return Hand(cards=[card(c) for c in cards])


class StackedShoe(Shoe):
    """Shoe that deals the given cards first, then the shuffled remainder."""

    def __init__(self, cards: list[str], rng: Random | None = None) -> None:
        self._stack = [card(c) for c in cards]
        super().__init__(rng=rng or Random(0))

    def initialize(self) -> None:
        super().initialize()
        # draw() pops from the end
        self._cards.extend(reversed(self._stack))
        self._stack = []


@pytest.fixture
def rng():
    """Seeded random number generator for reproducible tests."""
    return Random(42)


@pytest.fixture
def shoe(rng):
    """A shuffled single-deck shoe."""
    return Shoe(rng=rng)


@pytest.fixture
def store():
    return InMemoryStore()


@pytest.fixture
def ledger(store):
    """An empty ledger backed by an in-memory store."""
    return DebtLedger(store)


@pytest.fixture
def blackjack_hand():
    """A natural blackjack hand."""
    return hand_of("AS", "KH")


@pytest.fixture
def soft_17_hand():
    """A soft 17 hand (A-6)."""
    return hand_of("AS", "6H")


@pytest.fixture
def hard_16_hand():
    """A hard 16 hand (10-6)."""
    return hand_of("10S", "6H")


@pytest.fixture
def pair_8s_hand():
    """A pair of 8s hand."""
    return hand_of("8S", "8H")


@pytest.fixture
def bust_hand():
    """A busted hand."""
    return hand_of("10S", "6H", "KC")


def seat_blackjack(cards: list[str], ledger: DebtLedger, names=("Dealer", "Alice", "Bob")):
    """
    Open a blackjack table with a stacked shoe.

    The first name is the dealer, seated first. Cards are dealt in seat
    order: first pass to every seat, then the second pass, then hits.
    """
    table = BlackjackTable(ledger=ledger, shoe=StackedShoe(cards))
    players = [table.add_player(name) for name in names]
    table.set_dealer(players[0].id)
    table.start_session()
    return table, players


@pytest.fixture
def blackjack_table(ledger, rng):
    """A started table: Dealer, Alice and Bob with a shuffled shoe."""
    table = BlackjackTable(ledger=ledger, rng=rng)
    players = [table.add_player(name) for name in ("Dealer", "Alice", "Bob")]
    table.set_dealer(players[0].id)
    table.start_session()
    return table


@pytest.fixture
def baccarat_table(ledger, rng):
    table = BaccaratTable(ledger=ledger, rng=rng)
    players = [table.add_player(name) for name in ("Banker", "Alice", "Bob")]
    table.set_dealer(players[0].id)
    return table


@pytest.fixture
def roulette_table(ledger, rng):
    table = RouletteTable(ledger=ledger, rng=rng)
    players = [table.add_player(name) for name in ("Croupier", "Alice", "Bob")]
    table.set_dealer(players[0].id)
    return table


@pytest.fixture
def pulse_table(ledger, rng):
    table = PulseTable(ledger=ledger, rng=rng)
    players = [table.add_player(name) for name in ("House", "Alice")]
    table.set_dealer(players[0].id)
    return table


# Hypothesis strategies for property-based testing
@st.composite
def card_strategy(draw):
    """Generate a random card."""
    rank = draw(st.sampled_from(list(Rank)))
    suit = draw(st.sampled_from(list(Suit)))
    return Card(rank, suit)


@st.composite
def hand_strategy(draw, min_cards=2, max_cards=5):
    """Generate a random hand."""
    cards = draw(st.lists(card_strategy(), min_size=min_cards, max_size=max_cards))
    return Hand(cards=cards)
