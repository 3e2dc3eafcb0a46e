"""Pytest fixtures for blackjack engine tests."""

import os

os.environ.setdefault("RATE_LIMIT_ENABLED", "false")

import pytest
from random import Random

from core.cards import Card, Deck, full_deck
from core.game import BlackjackRound
from core.hand import Hand
from core.rules import TableRules


def stacked_deck(*codes: str) -> Deck:
    """A deck whose first cards are ``codes`` in order, e.g. stacked_deck("AS", "KH")."""
    top = [Card.from_string(code) for code in codes]
    rest = [card for card in full_deck() if card not in top]
    return Deck(tuple(top + rest))


def hand(*codes: str) -> Hand:
    """A face-up hand built from card strings."""
    return Hand.of(*(Card.from_string(code) for code in codes))


@pytest.fixture
def rng():
    """Seeded random number generator for reproducible tests."""
    return Random(42)


@pytest.fixture
def deck(rng):
    """A shuffled deck."""
    return Deck.new_shuffled(rng)


@pytest.fixture
def rules():
    """Default table rules."""
    return TableRules()


@pytest.fixture
def stack():
    """Factory for decks with known top cards."""
    return stacked_deck


@pytest.fixture
def make_hand():
    """Factory for face-up hands from card strings."""
    return hand


@pytest.fixture
def empty_hand():
    """An empty hand."""
    return Hand()


@pytest.fixture
def blackjack_hand():
    """A natural blackjack hand."""
    return hand("AS", "KH")


@pytest.fixture
def soft_17_hand():
    """A soft 17 hand (A-6)."""
    return hand("AS", "6H")


@pytest.fixture
def hard_16_hand():
    """A hard 16 hand (10-6)."""
    return hand("10S", "6H")


@pytest.fixture
def bust_hand():
    """A busted hand."""
    return hand("10S", "6H", "KC")


@pytest.fixture
def start_round(rules):
    """Start a round for user-1 dealt from a stacked deck.

    Deal order is player, dealer, player, dealer, so the first four codes
    give the player cards 1 and 3 and the dealer cards 2 and 4.
    """

    def _start(*codes: str, bet: int = 100, user_id: str = "user-1"):
        return BlackjackRound.start(user_id, bet, rules=rules, deck=stacked_deck(*codes))

    return _start

