"""Core blackjack engine - 100% transport-agnostic."""

from core.cards import Card, Deck, Rank, Suit
from core.hand import DealtCard, Hand
from core.rules import TableRules
from core.settlement import Outcome, Settlement, settle

__all__ = [
    "Card",
    "Deck",
    "Rank",
    "Suit",
    "DealtCard",
    "Hand",
    "TableRules",
    "Outcome",
    "Settlement",
    "settle",
]
