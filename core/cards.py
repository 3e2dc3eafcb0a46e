"""Card and Deck classes - immutable card representations."""

from dataclasses import dataclass
from enum import Enum
from random import Random
from typing import Iterator

from core.errors import DeckExhausted

DECK_SIZE = 52


class Suit(Enum):
    """Card suits."""

    CLUBS = "clubs"
    DIAMONDS = "diamonds"
    HEARTS = "hearts"
    SPADES = "spades"

    def __str__(self) -> str:
        symbols = {
            Suit.CLUBS: "♣",
            Suit.DIAMONDS: "♦",
            Suit.HEARTS: "♥",
            Suit.SPADES: "♠",
        }
        return symbols[self]


class Rank(Enum):
    """Card ranks, valued by their face label."""

    ACE = "A"
    TWO = "2"
    THREE = "3"
    FOUR = "4"
    FIVE = "5"
    SIX = "6"
    SEVEN = "7"
    EIGHT = "8"
    NINE = "9"
    TEN = "10"
    JACK = "J"
    QUEEN = "Q"
    KING = "K"

    def __str__(self) -> str:
        return self.value

    @property
    def blackjack_value(self) -> int:
        """Return the blackjack point value (Ace = 11, face cards = 10)."""
        if self == Rank.ACE:
            return 11
        if self in (Rank.JACK, Rank.QUEEN, Rank.KING):
            return 10
        return int(self.value)

    @property
    def is_ace(self) -> bool:
        """Check if this rank is an Ace."""
        return self == Rank.ACE


@dataclass(frozen=True, slots=True)
class Card:
    """Immutable playing card."""

    rank: Rank
    suit: Suit

    def __str__(self) -> str:
        return f"{self.rank}{self.suit}"

    def __repr__(self) -> str:
        return f"Card({self.rank.name}, {self.suit.name})"

    @property
    def value(self) -> int:
        """Return the blackjack point value."""
        return self.rank.blackjack_value

    @property
    def is_ace(self) -> bool:
        """Check if this card is an Ace."""
        return self.rank.is_ace

    @classmethod
    def from_string(cls, s: str) -> "Card":
        """Create a card from a string like '2♣', 'AS', 'Kh', '10d'."""
        s = s.strip().upper()
        if len(s) < 2:
            raise ValueError(f"Invalid card string: {s}")

        rank_str = s[:-1]
        suit_str = s[-1]
        if rank_str == "T":
            rank_str = "10"

        suit_map = {
            "C": Suit.CLUBS,
            "♣": Suit.CLUBS,
            "D": Suit.DIAMONDS,
            "♦": Suit.DIAMONDS,
            "H": Suit.HEARTS,
            "♥": Suit.HEARTS,
            "S": Suit.SPADES,
            "♠": Suit.SPADES,
        }

        try:
            rank = Rank(rank_str)
        except ValueError:
            raise ValueError(f"Invalid rank: {rank_str}") from None
        if suit_str not in suit_map:
            raise ValueError(f"Invalid suit: {suit_str}")

        return cls(rank, suit_map[suit_str])


def full_deck() -> list[Card]:
    """Return the 52 distinct cards in a fixed order."""
    return [Card(rank, suit) for suit in Suit for rank in Rank]


@dataclass(frozen=True)
class Deck:
    """
    A single 52-card deck with a deal cursor.

    The deck is a value: drawing returns a new Deck whose cursor has moved
    one position forward. Cards are never removed, so the persisted deck
    always holds the full permutation and ``index`` marks the next card.
    """

    cards: tuple[Card, ...]
    index: int = 0

    def __post_init__(self) -> None:
        if len(self.cards) != DECK_SIZE:
            raise ValueError(f"Deck must hold {DECK_SIZE} cards, got {len(self.cards)}")
        if len(set(self.cards)) != DECK_SIZE:
            raise ValueError("Deck contains duplicate cards")
        if not 0 <= self.index <= DECK_SIZE:
            raise ValueError(f"Deck index out of range: {self.index}")

    @classmethod
    def new_shuffled(cls, rng: Random | None = None) -> "Deck":
        """Build a fresh deck and shuffle it (Fisher-Yates via Random.shuffle)."""
        rng = rng or Random()
        cards = full_deck()
        rng.shuffle(cards)
        return cls(tuple(cards))

    def draw(self) -> tuple[Card, "Deck"]:
        """Return the card at the cursor and the advanced deck."""
        if self.index >= DECK_SIZE:
            raise DeckExhausted()
        return self.cards[self.index], Deck(self.cards, self.index + 1)

    @property
    def cards_remaining(self) -> int:
        """Return the number of undealt cards."""
        return DECK_SIZE - self.index

    def __len__(self) -> int:
        return self.cards_remaining

    def __iter__(self) -> Iterator[Card]:
        return iter(self.cards[self.index:])
