"""Core table games and debt ledger - 100% UI-agnostic."""

from core.cards import Card, Shoe, Rank, Suit
from core.hand import Hand, baccarat_score, hard_value, soft_info
from core.ledger import Debt, DebtLedger
from core.players import Player, PlayerStatus, TableSetupError

__all__ = [
    "Card",
    "Shoe",
    "Rank",
    "Suit",
    "Hand",
    "baccarat_score",
    "hard_value",
    "soft_info",
    "Debt",
    "DebtLedger",
    "Player",
    "PlayerStatus",
    "TableSetupError",
]
