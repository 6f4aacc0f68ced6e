"""Game phase enumeration."""

from enum import Enum, auto


class GamePhase(Enum):
    """
    Blackjack round phases.

    Flow: SETUP → BETTING → DEALING → (INSURANCE) → PLAYER_TURN → DEALER_TURN → RESOLUTION → BETTING
    """

    # Roster being assembled
    SETUP = auto()

    # Players placing wagers
    BETTING = auto()

    # Initial two cards going out
    DEALING = auto()

    # Dealer shows an Ace
    INSURANCE = auto()

    # Players act in seat order
    PLAYER_TURN = auto()

    # Dealer draws to 17
    DEALER_TURN = auto()

    # Bets settled, waiting for the next round
    RESOLUTION = auto()

    def __str__(self) -> str:
        return self.name.replace("_", " ").title()


# Valid phase transitions
VALID_TRANSITIONS: dict[GamePhase, list[GamePhase]] = {
    GamePhase.SETUP: [GamePhase.BETTING],
    GamePhase.BETTING: [GamePhase.BETTING, GamePhase.DEALING],
    GamePhase.DEALING: [GamePhase.INSURANCE, GamePhase.PLAYER_TURN],
    GamePhase.INSURANCE: [GamePhase.PLAYER_TURN, GamePhase.RESOLUTION],  # RESOLUTION on dealer BJ
    GamePhase.PLAYER_TURN: [GamePhase.DEALER_TURN],
    GamePhase.DEALER_TURN: [GamePhase.RESOLUTION],
    GamePhase.RESOLUTION: [GamePhase.BETTING],
}


def is_valid_transition(from_phase: GamePhase, to_phase: GamePhase) -> bool:
    """
    Check if a phase transition is valid.

    Args:
        from_phase: Current phase
        to_phase: Desired phase

    Returns:
        True if the transition is allowed
    """
    return to_phase in VALID_TRANSITIONS.get(from_phase, [])
