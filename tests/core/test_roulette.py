"""Tests for the red/black roulette table."""

from decimal import Decimal
from random import Random

import pytest

from core.players import TableSetupError
from core.roulette import RouletteColor, RoulettePhase, RouletteTable


class FixedWheel(Random):
    """Wheel that lands on a scripted sequence of pockets."""

    def __init__(self, *pockets: int) -> None:
        super().__init__(0)
        self._pockets = list(pockets)

    def randrange(self, *args, **kwargs):
        return self._pockets.pop(0)


def seat(ledger, *pockets, history_size=20):
    table = RouletteTable(ledger=ledger, rng=FixedWheel(*pockets), history_size=history_size)
    croupier, alice, bob = (table.add_player(n) for n in ("Croupier", "Alice", "Bob"))
    table.set_dealer(croupier.id)
    return table, croupier, alice, bob


class TestBetting:
    def test_bets_accumulate_on_same_colour(self, roulette_table):
        alice = roulette_table.roster[1]
        roulette_table.place_bet(alice.id, 5, RouletteColor.RED)
        roulette_table.place_bet(alice.id, 5, RouletteColor.RED)
        assert roulette_table.bets[alice.id].amount == Decimal("10")

    def test_switching_colour_restarts_stake(self, roulette_table):
        alice = roulette_table.roster[1]
        roulette_table.place_bet(alice.id, 5, RouletteColor.RED)
        roulette_table.place_bet(alice.id, 3, RouletteColor.BLACK)
        bet = roulette_table.bets[alice.id]
        assert bet.color == RouletteColor.BLACK
        assert bet.amount == Decimal("3")

    def test_invalid_bets(self, roulette_table):
        croupier = roulette_table.roster.dealer
        alice = roulette_table.roster[1]
        assert not roulette_table.place_bet(croupier.id, 5, RouletteColor.RED)
        assert not roulette_table.place_bet(alice.id, 0, RouletteColor.RED)
        assert not roulette_table.place_bet("nobody", 5, RouletteColor.RED)

    def test_clear_bet(self, roulette_table):
        alice = roulette_table.roster[1]
        roulette_table.place_bet(alice.id, 5, RouletteColor.RED)
        assert roulette_table.clear_bet(alice.id)
        assert not roulette_table.clear_bet(alice.id)


class TestSpin:
    def test_winners_and_losers_settle_even_money(self, ledger):
        table, croupier, alice, bob = seat(ledger, RouletteColor.RED.value)
        table.place_bet(alice.id, 10, RouletteColor.RED)
        table.place_bet(bob.id, 4, RouletteColor.BLACK)

        assert table.spin() == RouletteColor.RED
        assert table.phase == RoulettePhase.SPINNING
        assert table.resolve_bets()

        assert table.phase == RoulettePhase.PAYOUT
        assert table.winnings == {alice.id: Decimal("10"), bob.id: Decimal("-4")}
        assert croupier.chips == Decimal("-6")
        assert ledger.get_debt(croupier.id, alice.id) == Decimal("10")
        assert ledger.get_debt(bob.id, croupier.id) == Decimal("4")

    def test_spin_is_stable_until_reset(self, ledger):
        table, *_ = seat(ledger, 1, 0)
        assert table.spin() == RouletteColor.BLACK
        assert table.spin() == RouletteColor.BLACK
        table.resolve_bets()
        assert not table.resolve_bets()

        table.reset_round()
        assert table.phase == RoulettePhase.BETTING
        assert table.current_result is None
        assert table.spin() == RouletteColor.RED

    def test_resolve_before_spin(self, roulette_table):
        assert not roulette_table.resolve_bets()

    def test_history_is_newest_first_and_bounded(self, ledger):
        table, *_ = seat(ledger, 0, 1, 1, history_size=2)
        for _ in range(3):
            table.spin()
            table.resolve_bets()
            table.reset_round()
        assert [s.result for s in table.history] == [RouletteColor.BLACK, RouletteColor.BLACK]

    def test_spin_needs_dealer(self, ledger):
        table = RouletteTable(ledger=ledger)
        table.add_player("Alice")
        table.add_player("Bob")
        with pytest.raises(TableSetupError):
            table.spin()
