"""Blackjack table engine with a phase state machine."""

import logging
from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from random import Random

from transitions import Machine

from core.cards import Card, Shoe
from core.hand import Hand, hard_value, is_natural
from core.ledger import Amount, DebtLedger, to_decimal
from core.players import (
    Player,
    PlayerStatus,
    Roster,
    SingleSeat,
    SplitSeat,
    TableSetupError,
)
from core.rules import TableRules
from core.game.events import EventLog, EventType
from core.game.state import GamePhase

logger = logging.getLogger(__name__)


class Outcome(Enum):
    """How a single hand finished."""

    WIN = "win"
    BLACKJACK = "blackjack"
    LOSE = "lose"
    BUST = "bust"
    PUSH = "push"


@dataclass(frozen=True)
class HandResult:
    """Settlement of one hand. ``amount`` is signed from the player's side."""

    player_id: str
    hand_index: int
    outcome: Outcome
    amount: Decimal


# Phases in which each public action is accepted
ACTION_PHASES: dict[str, frozenset[GamePhase]] = {
    "set_dealer": frozenset({GamePhase.SETUP}),
    "reset_round": frozenset({GamePhase.BETTING, GamePhase.RESOLUTION}),
    "place_bet": frozenset({GamePhase.BETTING}),
    "clear_bet": frozenset({GamePhase.BETTING}),
    "deal": frozenset({GamePhase.BETTING}),
    "insurance": frozenset({GamePhase.INSURANCE}),
    "hit": frozenset({GamePhase.PLAYER_TURN}),
    "stand": frozenset({GamePhase.PLAYER_TURN}),
    "double_down": frozenset({GamePhase.PLAYER_TURN}),
    "split": frozenset({GamePhase.PLAYER_TURN}),
    "dealer_hit": frozenset({GamePhase.DEALER_TURN}),
    "resolve_round": frozenset({GamePhase.DEALER_TURN}),
}


def _hand_index(player: Player, hand: Hand) -> int:
    # Split hands can compare equal, so match by identity
    return next(i for i, h in enumerate(player.seat.hands) if h is hand)


class BlackjackTable:
    """
    Multi-player blackjack table using a state machine.

    One seat is the dealer; every other seat plays against it. Wins and
    losses are recorded in the debt ledger between dealer and player, so
    nobody has to exchange chips.

    This is the core game logic, completely UI-agnostic. Every action
    runs to completion and returns; the caller reads ``events`` and the
    exposed state to animate what happened.
    """

    # State machine states
    STATES = [p.name.lower() for p in GamePhase]

    # State machine transitions
    TRANSITIONS = [
        {"trigger": "open_betting", "source": ["setup", "betting", "resolution"], "dest": "betting"},
        {"trigger": "deal_cards", "source": "betting", "dest": "dealing"},
        {"trigger": "offer_insurance", "source": "dealing", "dest": "insurance"},
        {"trigger": "start_turns", "source": ["dealing", "insurance"], "dest": "player_turn"},
        {"trigger": "dealer_blackjack", "source": "insurance", "dest": "resolution"},
        {"trigger": "start_dealer", "source": "player_turn", "dest": "dealer_turn"},
        {"trigger": "settle", "source": "dealer_turn", "dest": "resolution"},
    ]

    def __init__(
        self,
        ledger: DebtLedger | None = None,
        rules: TableRules | None = None,
        rng: Random | None = None,
        shoe: Shoe | None = None,
    ) -> None:
        """
        Initialize a new table in the SETUP phase.

        Args:
            ledger: Debt ledger shared by the session (in-memory if not provided)
            rules: Table rules (uses defaults if not provided)
            rng: Random number generator for reproducible shuffles
            shoe: Pre-built shoe, mainly for scripted rounds
        """
        self.rules = rules or TableRules()
        self.shoe = shoe or Shoe(rng=rng)
        self.ledger = ledger or DebtLedger()
        self.roster = Roster()
        self.events = EventLog()

        self.current_player_index: int = -1
        self.hole_card_revealed: bool = False
        self.last_results: list[HandResult] = []

        # Initialize state machine
        self.machine = Machine(
            model=self,
            states=self.STATES,
            transitions=self.TRANSITIONS,
            initial="setup",
            auto_transitions=False,
            model_attribute="_machine_state",
            after_state_change="_on_phase_change",
        )

    @property
    def phase(self) -> GamePhase:
        """Get current phase as enum."""
        return GamePhase[self._machine_state.upper()]  # type: ignore[attr-defined]

    def _on_phase_change(self) -> None:
        self.events.record(EventType.PHASE_CHANGED, phase=self.phase.name)

    def _can_act(self, action: str) -> bool:
        """Single phase guard for every public action."""
        if self.phase in ACTION_PHASES[action]:
            return True
        self.events.record(
            EventType.INVALID_ACTION,
            action=action,
            message=f"Cannot {action} during {self.phase}",
        )
        return False

    def _reject(self, action: str, message: str) -> bool:
        self.events.record(EventType.INVALID_ACTION, action=action, message=message)
        return False

    # -- Roster ---------------------------------------------------------------

    @property
    def players(self) -> list[Player]:
        return list(self.roster)

    @property
    def dealer(self) -> Player:
        dealer = self.roster.dealer
        if dealer is None:
            raise TableSetupError("No dealer selected")
        return dealer

    @property
    def current_player(self) -> Player | None:
        if 0 <= self.current_player_index < len(self.roster):
            return self.roster[self.current_player_index]
        return None

    def add_player(self, name: str, chips: Amount = 0) -> Player:
        """Seat a new player. Only allowed before the session starts."""
        if self.phase != GamePhase.SETUP:
            raise TableSetupError("Players can only join during setup")
        return self.roster.add(name, to_decimal(chips))

    def set_dealer(self, player_id: str) -> bool:
        """Designate the dealer seat."""
        if not self._can_act("set_dealer"):
            return False
        if not self.roster.set_dealer(player_id):
            return self._reject("set_dealer", f"Unknown player {player_id}")
        return True

    def start_session(self) -> None:
        """
        Leave setup and open betting for the first round.

        Raises:
            TableSetupError: already started, fewer than 2 players, or no dealer
        """
        if self.phase != GamePhase.SETUP:
            raise TableSetupError("Session already started")
        dealer = self.roster.validate()

        self.open_betting()
        self._clear_round()
        self.events.record(
            EventType.SESSION_STARTED,
            players=[p.id for p in self.roster],
            dealer_id=dealer.id,
        )
        logger.info("Blackjack session started with %d players", len(self.roster))

    # -- Betting --------------------------------------------------------------

    def reset_round(self) -> bool:
        """
        Clear per-round state and return to betting.

        Chips and ledger debts are left alone, so calling this twice in a
        row changes nothing the second time.
        """
        if not self._can_act("reset_round"):
            return False
        self._clear_round()
        if self.phase != GamePhase.BETTING:
            self.open_betting()
        return True

    def _clear_round(self) -> None:
        for player in self.roster:
            player.reset_round()
        self.current_player_index = -1
        self.hole_card_revealed = False
        self.last_results = []
        if self.shoe.ensure(self.rules.round_start_reserve):
            self.events.record(EventType.SHOE_SHUFFLED)
        self.events.record(EventType.ROUND_RESET)

    def _bettor(self, action: str, player_id: str) -> Player | None:
        player = self.roster.get(player_id)
        if player is None or player.is_dealer:
            self._reject(action, f"{player_id} cannot bet")
            return None
        return player

    def place_bet(self, player_id: str, amount: Amount) -> bool:
        """
        Add ``amount`` to a player's wager.

        Only positive increments are accepted. There is no cap against the
        player's chips since debt is allowed.
        """
        if not self._can_act("place_bet"):
            return False
        player = self._bettor("place_bet", player_id)
        if player is None:
            return False

        value = to_decimal(amount)
        if value <= 0:
            return self._reject("place_bet", "Bet increments must be positive")

        hand = player.seat.hands[0]
        hand.bet += value
        self.events.record(
            EventType.BET_PLACED,
            player_id=player.id,
            amount=float(value),
            total=float(hand.bet),
        )
        return True

    def clear_bet(self, player_id: str) -> bool:
        """Reset a player's wager to zero."""
        if not self._can_act("clear_bet"):
            return False
        player = self._bettor("clear_bet", player_id)
        if player is None:
            return False
        player.seat.hands[0].bet = Decimal("0")
        self.events.record(EventType.BET_CLEARED, player_id=player.id)
        return True

    # -- Dealing --------------------------------------------------------------

    def deal(self) -> bool:
        """
        Deal two cards to every seat, dealer included.

        Players first to last, one card per pass. The dealer's second card
        is the hole card; it stays hidden until ``hole_card_revealed``.
        """
        if not self._can_act("deal"):
            return False
        if not any(p.current_bet > 0 for p in self.roster.non_dealers()):
            return self._reject("deal", "At least one player must bet")

        self.deal_cards()
        for pass_number in range(2):
            for player in self.roster:
                hole_card = player.is_dealer and pass_number == 1
                self._deal_to(player, player.seat.hands[0], face_up=not hole_card)
        self.events.record(EventType.ROUND_STARTED)

        if self.dealer.hand[0].is_ace:
            self.offer_insurance()
            self.events.record(EventType.INSURANCE_OFFERED)
            self.current_player_index = -1
            self._advance_insurance()
        else:
            self._start_player_turns()
        return True

    def _draw(self) -> Card:
        if self.shoe.ensure(self.rules.play_reserve):
            self.events.record(EventType.SHOE_SHUFFLED)
        card = self.shoe.draw()
        if card is None:  # ensure() keeps at least play_reserve cards
            raise RuntimeError("Shoe exhausted")
        return card

    def _deal_to(self, player: Player, hand: Hand, face_up: bool = True) -> Card:
        card = self._draw()
        hand.add_card(card)
        self.events.record(
            EventType.CARD_DEALT,
            player_id=player.id,
            hand_index=_hand_index(player, hand),
            card=str(card) if face_up else "??",
            hand_value=hand.value if face_up else None,
        )
        return card

    # -- Insurance ------------------------------------------------------------

    def _advance_insurance(self) -> None:
        """Move to the next bettor who has not answered, or settle insurance."""
        for index in range(self.current_player_index + 1, len(self.roster)):
            player = self.roster[index]
            if not player.is_dealer and player.current_bet > 0:
                self.current_player_index = index
                self.events.record(EventType.TURN_CHANGED, player_id=player.id)
                return
        self.current_player_index = -1
        self._resolve_insurance()

    def take_insurance(self) -> bool:
        """Current player buys insurance for half their main bet."""
        if not self._can_act("insurance"):
            return False
        player = self.current_player
        if player is None:
            return self._reject("insurance", "Nobody is deciding on insurance")

        player.insurance_bet = player.current_bet / 2
        self.events.record(
            EventType.INSURANCE_TAKEN,
            player_id=player.id,
            amount=float(player.insurance_bet),
        )
        self._advance_insurance()
        return True

    def decline_insurance(self) -> bool:
        """Current player declines insurance."""
        if not self._can_act("insurance"):
            return False
        player = self.current_player
        if player is None:
            return self._reject("insurance", "Nobody is deciding on insurance")

        self.events.record(EventType.INSURANCE_DECLINED, player_id=player.id)
        self._advance_insurance()
        return True

    def _resolve_insurance(self) -> None:
        dealer = self.dealer
        dealer_has_blackjack = is_natural(dealer.hand)

        for player in self.roster.non_dealers():
            stake = player.insurance_bet
            if stake <= 0:
                continue
            if dealer_has_blackjack:
                payout = stake * self.rules.insurance_payout
                self._settle(player, payout)
                self.events.record(EventType.INSURANCE_WINS, player_id=player.id, amount=float(payout))
            else:
                self._settle(player, -stake)
                self.events.record(EventType.INSURANCE_LOSES, player_id=player.id, amount=float(stake))
            player.insurance_bet = Decimal("0")

        if dealer_has_blackjack:
            dealer.status = PlayerStatus.BLACKJACK
            self._reveal_hole_card()
            self.events.record(EventType.DEALER_BLACKJACK)
            self.dealer_blackjack()
            self._resolve_hands()
        else:
            self._start_player_turns()

    # -- Player turns ---------------------------------------------------------

    def _start_player_turns(self) -> None:
        self.start_turns()
        for player in self.roster.non_dealers():
            if player.current_bet <= 0:
                player.status = PlayerStatus.IDLE
            elif player.seat.hands[0].is_blackjack:
                player.status = PlayerStatus.BLACKJACK
                self.events.record(EventType.PLAYER_BLACKJACK, player_id=player.id)
            else:
                player.status = PlayerStatus.PLAYING
        self.current_player_index = -1
        self._next_turn()

    def _next_turn(self) -> None:
        """Hand the turn to the next player still playing, or to the dealer."""
        for index in range(self.current_player_index + 1, len(self.roster)):
            player = self.roster[index]
            if not player.is_dealer and player.status == PlayerStatus.PLAYING:
                self.current_player_index = index
                self.events.record(EventType.TURN_CHANGED, player_id=player.id, hand_index=0)
                self._continue_player(player)
                return
        self.current_player_index = -1
        self._start_dealer_turn()

    def _continue_player(self, player: Player) -> None:
        """Advance through finished hands until one needs a decision."""
        seat = player.seat
        while True:
            hand = seat.active_hand
            if not hand.is_done and hand.value == 21:
                hand.is_stood = True
            if not hand.is_done:
                return

            if isinstance(seat, SplitSeat):
                next_index = seat.next_open_index()
                if next_index is not None:
                    seat.active_index = next_index
                    self.events.record(
                        EventType.TURN_CHANGED,
                        player_id=player.id,
                        hand_index=next_index,
                    )
                    continue

            if all(h.is_busted for h in seat.hands):
                player.status = PlayerStatus.BUST
            else:
                player.status = PlayerStatus.STAND
            self._next_turn()
            return

    def _acting_hand(self, action: str) -> tuple[Player, Hand] | None:
        if not self._can_act(action):
            return None
        player = self.current_player
        if player is None or player.status != PlayerStatus.PLAYING:
            self._reject(action, "No player is acting")
            return None
        hand = player.active_hand
        if hand.is_done:
            self._reject(action, "Hand is already finished")
            return None
        return player, hand

    def hit(self) -> bool:
        """Current hand takes one card. Busting ends the hand."""
        acting = self._acting_hand("hit")
        if acting is None:
            return False
        player, hand = acting
        if player.is_split_aces:
            return self._reject("hit", "Split aces receive one card only")

        self._deal_to(player, hand)
        self.events.record(
            EventType.PLAYER_HIT,
            player_id=player.id,
            hand_index=_hand_index(player, hand),
            hand_value=hand.value,
        )
        if hand.is_busted:
            self.events.record(EventType.PLAYER_BUSTS, player_id=player.id)

        self._continue_player(player)
        return True

    def stand(self) -> bool:
        """Lock the current hand."""
        acting = self._acting_hand("stand")
        if acting is None:
            return False
        player, hand = acting

        hand.is_stood = True
        self.events.record(EventType.PLAYER_STAND, player_id=player.id, hand_value=hand.value)
        self._continue_player(player)
        return True

    def double_down(self) -> bool:
        """Double the bet on a two-card hand, take exactly one card, then stand."""
        acting = self._acting_hand("double_down")
        if acting is None:
            return False
        player, hand = acting
        if not self._can_double(player, hand):
            return self._reject("double_down", "Cannot double")

        hand.bet *= 2
        hand.is_doubled = True
        self._deal_to(player, hand)
        self.events.record(
            EventType.PLAYER_DOUBLE,
            player_id=player.id,
            hand_value=hand.value,
            new_bet=float(hand.bet),
        )

        if hand.is_busted:
            self.events.record(EventType.PLAYER_BUSTS, player_id=player.id)
        else:
            hand.is_stood = True

        self._continue_player(player)
        return True

    def split(self) -> bool:
        """
        Split a two-card pair into two hands.

        The new hand carries a bet equal to the one being split. Each hand
        gets one new card and play continues on the first. Split aces get
        one card each and stand.
        """
        acting = self._acting_hand("split")
        if acting is None:
            return False
        player, hand = acting
        if not self._can_split(player, hand):
            return self._reject("split", "Cannot split")

        seat = player.seat
        if isinstance(seat, SingleSeat):
            seat = SplitSeat(hands=[seat.hand])
            player.seat = seat

        first, second = hand.cards
        hand.cards = [first]
        hand.is_split_hand = True
        new_hand = Hand(cards=[second], bet=hand.bet, is_split_hand=True)
        seat.hands.append(new_hand)
        if first.is_ace:
            seat.split_aces = True

        self._deal_to(player, hand)
        self._deal_to(player, new_hand)
        self.events.record(
            EventType.PLAYER_SPLIT,
            player_id=player.id,
            hand_values=[h.value for h in seat.hands],
            bets=[float(b) for b in seat.bets],
        )

        if seat.split_aces:
            for split_hand in seat.hands:
                split_hand.is_stood = True

        self._continue_player(player)
        return True

    def _can_double(self, player: Player, hand: Hand) -> bool:
        return len(hand.cards) == 2 and not player.is_split_aces and not hand.is_done

    def _can_split(self, player: Player, hand: Hand) -> bool:
        return (
            hand.is_pair
            and not hand.is_done
            and not player.is_split_aces
            and len(player.seat.hands) < self.rules.max_split_hands
        )

    @property
    def can_hit(self) -> bool:
        player = self.current_player
        return (
            self.phase == GamePhase.PLAYER_TURN
            and player is not None
            and player.status == PlayerStatus.PLAYING
            and not player.active_hand.is_done
            and not player.is_split_aces
        )

    @property
    def can_stand(self) -> bool:
        player = self.current_player
        return (
            self.phase == GamePhase.PLAYER_TURN
            and player is not None
            and player.status == PlayerStatus.PLAYING
        )

    @property
    def can_double(self) -> bool:
        player = self.current_player
        return self.can_stand and self._can_double(player, player.active_hand)  # type: ignore[union-attr]

    @property
    def can_split(self) -> bool:
        player = self.current_player
        return self.can_stand and self._can_split(player, player.active_hand)  # type: ignore[union-attr]

    # -- Dealer ---------------------------------------------------------------

    def _reveal_hole_card(self) -> None:
        self.hole_card_revealed = True
        hand = self.dealer.hand
        if len(hand) >= 2:
            self.events.record(
                EventType.DEALER_REVEALS,
                card=str(hand[1]),
                hand_value=hard_value(hand),
            )

    def _start_dealer_turn(self) -> None:
        self.start_dealer()
        self.dealer.status = PlayerStatus.PLAYING
        self._reveal_hole_card()

    @property
    def dealer_should_hit(self) -> bool:
        """Dealer draws below 17 and stands on every 17, soft ones included."""
        return (
            self.phase == GamePhase.DEALER_TURN
            and hard_value(self.dealer.hand) < self.rules.dealer_stands_on
        )

    def dealer_hit(self) -> bool:
        """Draw one dealer card. Lets the caller pace the dealer's play."""
        if not self._can_act("dealer_hit"):
            return False
        if not self.dealer_should_hit:
            return self._reject("dealer_hit", "Dealer stands")

        dealer = self.dealer
        self._deal_to(dealer, dealer.seat.hands[0])
        self.events.record(EventType.DEALER_HITS, hand_value=hard_value(dealer.hand))
        return True

    def play_dealer(self) -> bool:
        """Draw until the dealer stands, then settle the round."""
        if not self._can_act("resolve_round"):
            return False
        while self.dealer_should_hit:
            self.dealer_hit()
        return self.resolve_round()

    def resolve_round(self) -> bool:
        """Settle every hand once the dealer has finished drawing."""
        if not self._can_act("resolve_round"):
            return False
        if self.dealer_should_hit:
            return self._reject("resolve_round", "Dealer must keep drawing")

        dealer = self.dealer
        value = hard_value(dealer.hand)
        if value > 21:
            dealer.status = PlayerStatus.BUST
            self.events.record(EventType.DEALER_BUSTS, hand_value=value)
        else:
            dealer.status = PlayerStatus.STAND
            self.events.record(EventType.DEALER_STANDS, hand_value=value)

        self.settle()
        self._resolve_hands()
        return True

    # -- Resolution -----------------------------------------------------------

    def _score_hand(
        self, hand: Hand, dealer_value: int, dealer_natural: bool
    ) -> tuple[Outcome, Decimal]:
        bet = hand.bet
        if hand.is_busted:
            return Outcome.BUST, -bet
        if hand.is_blackjack:
            if dealer_natural:
                return Outcome.PUSH, Decimal("0")
            return Outcome.BLACKJACK, bet * self.rules.blackjack_payout

        value = hand.value
        if dealer_value > 21 or value > dealer_value:
            return Outcome.WIN, bet
        if value < dealer_value:
            return Outcome.LOSE, -bet
        return Outcome.PUSH, Decimal("0")

    def _settle(self, player: Player, amount: Decimal) -> None:
        """Move ``amount`` from dealer to player (negative: player to dealer)."""
        dealer = self.dealer
        if amount > 0:
            self.ledger.record_transfer(dealer.id, player.id, amount)
        elif amount < 0:
            self.ledger.record_transfer(player.id, dealer.id, -amount)
        player.chips += amount
        dealer.chips -= amount

    def _resolve_hands(self) -> None:
        dealer_cards = self.dealer.hand
        dealer_value = hard_value(dealer_cards)
        dealer_natural = is_natural(dealer_cards)

        results: list[HandResult] = []
        for player in self.roster.non_dealers():
            if player.current_bet <= 0:
                continue
            for index, hand in enumerate(player.seat.hands):
                outcome, amount = self._score_hand(hand, dealer_value, dealer_natural)
                self._settle(player, amount)
                results.append(HandResult(player.id, index, outcome, amount))

                if amount > 0:
                    event_type = EventType.PLAYER_WINS
                elif amount < 0:
                    event_type = EventType.PLAYER_LOSES
                else:
                    event_type = EventType.PUSH
                self.events.record(
                    event_type,
                    player_id=player.id,
                    hand_index=index,
                    outcome=outcome.value,
                    amount=float(amount),
                )

        self.last_results = results
        self.events.record(
            EventType.ROUND_ENDED,
            results=len(results),
            net=float(sum((r.amount for r in results), Decimal("0"))),
        )
        logger.debug("Round resolved: %s", results)
