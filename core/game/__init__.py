"""Blackjack engine and phase management."""

from core.game.events import EventLog, EventType, GameEvent
from core.game.state import GamePhase
from core.game.engine import BlackjackTable, HandResult, Outcome

__all__ = [
    "EventLog",
    "EventType",
    "GameEvent",
    "GamePhase",
    "BlackjackTable",
    "HandResult",
    "Outcome",
]
