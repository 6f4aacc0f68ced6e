"""Tests for Card and Shoe classes."""

import pytest
from random import Random

from core.cards import Card, Shoe, Rank, Suit


class TestCard:
    """Tests for the Card class."""

    def test_card_creation(self):
        card = Card(Rank.ACE, Suit.SPADES)
        assert card.rank == Rank.ACE
        assert card.suit == Suit.SPADES

    def test_card_immutability(self):
        """Cards are frozen."""
        card = Card(Rank.ACE, Suit.SPADES)
        with pytest.raises(AttributeError):
            card.rank = Rank.KING

    def test_blackjack_values(self):
        assert Card(Rank.TWO, Suit.HEARTS).value == 2
        assert Card(Rank.TEN, Suit.HEARTS).value == 10
        assert Card(Rank.JACK, Suit.HEARTS).value == 10
        assert Card(Rank.QUEEN, Suit.HEARTS).value == 10
        assert Card(Rank.KING, Suit.HEARTS).value == 10
        assert Card(Rank.ACE, Suit.HEARTS).value == 11

    def test_baccarat_values(self):
        assert Card(Rank.ACE, Suit.HEARTS).baccarat_value == 1
        assert Card(Rank.NINE, Suit.HEARTS).baccarat_value == 9
        for rank in (Rank.TEN, Rank.JACK, Rank.QUEEN, Rank.KING):
            assert Card(rank, Suit.CLUBS).baccarat_value == 0

    def test_card_is_ace(self):
        assert Card(Rank.ACE, Suit.SPADES).is_ace
        assert not Card(Rank.KING, Suit.SPADES).is_ace

    def test_card_from_string(self):
        assert Card.from_string("AS") == Card(Rank.ACE, Suit.SPADES)
        assert Card.from_string("2H") == Card(Rank.TWO, Suit.HEARTS)
        assert Card.from_string("10D") == Card(Rank.TEN, Suit.DIAMONDS)
        assert Card.from_string("TD") == Card(Rank.TEN, Suit.DIAMONDS)
        assert Card.from_string("kc") == Card(Rank.KING, Suit.CLUBS)

    def test_card_from_string_with_symbols(self):
        assert Card.from_string("A♠") == Card(Rank.ACE, Suit.SPADES)
        assert Card.from_string("K♥") == Card(Rank.KING, Suit.HEARTS)

    @pytest.mark.parametrize("text", ["", "A", "1S", "AX"])
    def test_card_from_string_invalid(self, text):
        with pytest.raises(ValueError):
            Card.from_string(text)

    def test_card_str(self):
        card = Card(Rank.ACE, Suit.SPADES)
        assert str(card) == "A♠"

    def test_card_hash(self):
        """Equal cards collapse in a set."""
        cards = {Card(Rank.ACE, Suit.SPADES), Card(Rank.ACE, Suit.SPADES)}
        assert len(cards) == 1


class TestShoe:
    """Tests for the Shoe class."""

    def test_new_shoe_holds_one_deck(self, shoe):
        assert shoe.remaining() == 52
        assert len(set(shoe)) == 52

    def test_shuffle_is_reproducible(self):
        first = list(Shoe(rng=Random(7)))
        second = list(Shoe(rng=Random(7)))
        assert first == second

    def test_shuffle_changes_order(self):
        ordered = [Card(rank, suit) for suit in Suit for rank in Rank]
        assert list(Shoe(rng=Random(7))) != ordered

    def test_draw_removes_card(self, shoe):
        card = shoe.draw()
        assert isinstance(card, Card)
        assert shoe.remaining() == 51
        assert card not in list(shoe)

    def test_draw_empty_returns_none(self, shoe):
        for _ in range(52):
            assert shoe.draw() is not None
        assert shoe.draw() is None
        assert len(shoe) == 0

    def test_ensure_keeps_shoe_above_reserve(self, shoe):
        for _ in range(40):
            shoe.draw()
        assert shoe.ensure(10) is False
        assert shoe.remaining() == 12

        shoe.draw()
        shoe.draw()
        shoe.draw()
        assert shoe.ensure(10) is True
        assert shoe.remaining() == 52
