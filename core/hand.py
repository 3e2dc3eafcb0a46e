"""Hand evaluation for blackjack."""

from dataclasses import dataclass, field, replace
from typing import Iterable, Iterator

from core.cards import Card

BLACKJACK = 21


@dataclass(frozen=True, slots=True)
class DealtCard:
    """A card as it sits in a hand.

    ``index`` is the card's position in the round's deal sequence and stays
    fixed for the life of the session, so presentation layers can key
    animation state off it. ``face_up`` is the table state of the card, not
    a property of the card itself.
    """

    card: Card
    index: int
    face_up: bool = True

    def flipped_up(self) -> "DealtCard":
        """Return this card turned face up."""
        return self if self.face_up else replace(self, face_up=True)


def hand_value(cards: Iterable[Card]) -> int:
    """
    Calculate the best value for a set of cards.

    Aces start at 11 and are demoted to 1 one at a time while the total is
    over 21, so the result is the highest value that doesn't bust, or the
    lowest bust value.
    """
    total = 0
    aces = 0

    for card in cards:
        if card.is_ace:
            aces += 1
        total += card.value

    while total > BLACKJACK and aces > 0:
        total -= 10
        aces -= 1

    return total


@dataclass(frozen=True)
class Hand:
    """An immutable blackjack hand.

    Adding or revealing cards returns a new Hand; the original is never
    modified.
    """

    dealt: tuple[DealtCard, ...] = field(default_factory=tuple)

    @classmethod
    def of(cls, *cards: Card, start_index: int = 0) -> "Hand":
        """Build a face-up hand from plain cards (handy for fixtures)."""
        return cls(tuple(DealtCard(c, start_index + i) for i, c in enumerate(cards)))

    def with_card(self, card: Card, index: int, face_up: bool = True) -> "Hand":
        """Return a new hand with one more card."""
        return Hand(self.dealt + (DealtCard(card, index, face_up),))

    def revealed(self) -> "Hand":
        """Return a new hand with every card face up."""
        return Hand(tuple(d.flipped_up() for d in self.dealt))

    @property
    def cards(self) -> list[Card]:
        """Return the cards regardless of face state."""
        return [d.card for d in self.dealt]

    @property
    def value(self) -> int:
        """Authoritative hand value, counting face-down cards."""
        return hand_value(self.cards)

    @property
    def visible_value(self) -> int:
        """Value of the face-up cards only, as an opponent sees it."""
        return hand_value(d.card for d in self.dealt if d.face_up)

    @property
    def is_soft(self) -> bool:
        """
        Check if the hand is soft (has an ace counted as 11).

        A hand is soft if it contains an ace that can be counted as 11
        without busting.
        """
        if not any(card.is_ace for card in self.cards):
            return False

        total_hard = sum(1 if card.is_ace else card.value for card in self.cards)
        return total_hard + 10 <= BLACKJACK

    @property
    def is_blackjack(self) -> bool:
        """Check if the hand is a natural blackjack (21 with 2 cards)."""
        return len(self.dealt) == 2 and self.value == BLACKJACK

    @property
    def is_busted(self) -> bool:
        """Check if the hand has busted (value > 21)."""
        return self.value > BLACKJACK

    @property
    def has_hidden_card(self) -> bool:
        """Check if any card in the hand is face down."""
        return any(not d.face_up for d in self.dealt)

    def __len__(self) -> int:
        return len(self.dealt)

    def __iter__(self) -> Iterator[DealtCard]:
        return iter(self.dealt)

    def __str__(self) -> str:
        cards_str = " ".join(str(d.card) if d.face_up else "??" for d in self.dealt)
        if self.has_hidden_card:
            return f"{cards_str} ({self.visible_value})"
        value_str = f"({self.value})"
        if self.is_soft:
            value_str = f"(soft {self.value})"
        if self.is_blackjack:
            value_str = "(BLACKJACK)"
        if self.is_busted:
            value_str = "(BUST)"
        return f"{cards_str} {value_str}"

    def __repr__(self) -> str:
        return f"Hand({self.cards!r}, value={self.value})"
