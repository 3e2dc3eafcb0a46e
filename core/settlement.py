"""Round settlement: result label and payout from the final hands."""

import math
from dataclasses import dataclass
from enum import Enum

from core.hand import Hand

# Total return on a winning bet, stake included.
WIN_RETURN = 2
BLACKJACK_RETURN = 2.5


class Outcome(Enum):
    """Round results."""

    WIN = "win"
    LOSE = "lose"
    DRAW = "draw"
    BLACKJACK = "blackjack"

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class Settlement:
    """Outcome of a finished round.

    ``payout`` is what gets credited back to the player, stake included.
    """

    result: Outcome
    payout: int
    bet: int

    @property
    def points_change(self) -> int:
        """Net effect of the round on the player's balance."""
        return self.payout - self.bet

    @property
    def multiplier(self) -> float:
        """Payout as a multiple of the bet (0 for a loss)."""
        if self.payout <= 0 or self.bet <= 0:
            return 0.0
        return self.payout / self.bet


def settle(
    player_hand: Hand,
    dealer_hand: Hand,
    bet: int,
    blackjack_return: float = BLACKJACK_RETURN,
) -> Settlement:
    """
    Settle a round.

    Precedence, first match wins:
        player bust                 -> lose, 0
        dealer bust                 -> win, 2x
        both blackjack              -> draw, stake returned
        player blackjack            -> blackjack, 2.5x floored
        dealer blackjack            -> lose, 0
        higher / lower / equal      -> win 2x / lose 0 / draw 1x
    """
    if player_hand.is_busted:
        return Settlement(Outcome.LOSE, 0, bet)

    if dealer_hand.is_busted:
        return Settlement(Outcome.WIN, bet * WIN_RETURN, bet)

    player_bj = player_hand.is_blackjack
    dealer_bj = dealer_hand.is_blackjack

    if player_bj and dealer_bj:
        return Settlement(Outcome.DRAW, bet, bet)
    if player_bj:
        return Settlement(Outcome.BLACKJACK, math.floor(bet * blackjack_return), bet)
    if dealer_bj:
        return Settlement(Outcome.LOSE, 0, bet)

    player_value = player_hand.value
    dealer_value = dealer_hand.value
    if player_value > dealer_value:
        return Settlement(Outcome.WIN, bet * WIN_RETURN, bet)
    if player_value < dealer_value:
        return Settlement(Outcome.LOSE, 0, bet)
    return Settlement(Outcome.DRAW, bet, bet)


def bust_settlement(bet: int) -> Settlement:
    """Settlement for a player who busted before the dealer played."""
    return Settlement(Outcome.LOSE, 0, bet)
