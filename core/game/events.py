"""Game events recorded for the presentation layer."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum, auto
from typing import Any


class EventType(Enum):
    """Types of game events."""

    # Game flow events
    SESSION_STARTED = auto()
    ROUND_STARTED = auto()
    ROUND_RESET = auto()
    ROUND_ENDED = auto()
    PHASE_CHANGED = auto()

    # Betting events
    BET_PLACED = auto()
    BET_CLEARED = auto()

    # Card events
    CARD_DEALT = auto()
    SHOE_SHUFFLED = auto()

    # Player action events
    PLAYER_HIT = auto()
    PLAYER_STAND = auto()
    PLAYER_DOUBLE = auto()
    PLAYER_SPLIT = auto()
    TURN_CHANGED = auto()

    # Insurance events
    INSURANCE_OFFERED = auto()
    INSURANCE_TAKEN = auto()
    INSURANCE_DECLINED = auto()
    INSURANCE_WINS = auto()
    INSURANCE_LOSES = auto()

    # Dealer events
    DEALER_REVEALS = auto()
    DEALER_HITS = auto()
    DEALER_STANDS = auto()
    DEALER_BUSTS = auto()
    DEALER_BLACKJACK = auto()

    # Outcome events
    PLAYER_BLACKJACK = auto()
    PLAYER_BUSTS = auto()
    PLAYER_WINS = auto()
    PLAYER_LOSES = auto()
    PUSH = auto()

    # Error events
    INVALID_ACTION = auto()


@dataclass(frozen=True)
class GameEvent:
    """
    Immutable game event.

    The engine never calls back into the caller. It records what happened
    and the presentation layer reads the log after each call to decide
    what to animate.
    """

    event_type: EventType
    data: dict[str, Any] = field(default_factory=dict)
    timestamp: datetime = field(default_factory=datetime.now)

    def __str__(self) -> str:
        return f"{self.event_type.name}: {self.data}"


class EventLog:
    """Append-only log of game events that callers drain."""

    def __init__(self) -> None:
        self._pending: list[GameEvent] = []
        self._history: list[GameEvent] = []

    def record(self, event_type: EventType, **data: Any) -> GameEvent:
        """
        Create and record a new event.

        Args:
            event_type: Type of event
            **data: Event data

        Returns:
            The created event
        """
        event = GameEvent(event_type=event_type, data=data)
        self._pending.append(event)
        self._history.append(event)
        return event

    def drain(self) -> list[GameEvent]:
        """Return events recorded since the last drain."""
        pending = self._pending
        self._pending = []
        return pending

    @property
    def history(self) -> list[GameEvent]:
        """Return the full event history."""
        return self._history.copy()

    def clear_history(self) -> None:
        """Clear the event history."""
        self._history.clear()
        self._pending.clear()
