"""Table rules for the blackjack engine."""

from dataclasses import dataclass

from core.errors import InvalidBet


@dataclass(frozen=True)
class TableRules:
    """
    Blackjack table rules configuration.

    Single 52-card deck per round, dealer stands on all 17s, no insurance,
    no splits and no surrender.
    """

    # Betting limits
    min_bet: int = 1
    max_bet: int = 1_000_000

    # Dealer draws while below this total
    dealer_stands_on: int = 17

    # Blackjack payout (3:2 = 1.5), paid on top of the returned stake
    blackjack_payout: float = 1.5

    # Doubling only on the first two cards
    double_first_two_only: bool = True

    def __post_init__(self) -> None:
        """Validate rule combinations."""
        if self.min_bet < 1:
            raise ValueError("min_bet must be at least 1")
        if self.max_bet < self.min_bet:
            raise ValueError("max_bet must not be below min_bet")
        if self.blackjack_payout < 1.0:
            raise ValueError("blackjack_payout must be at least 1.0")
        if not 12 <= self.dealer_stands_on <= 21:
            raise ValueError("dealer_stands_on must be between 12 and 21")

    @property
    def blackjack_return(self) -> float:
        """Total return on a natural, stake included."""
        return 1 + self.blackjack_payout

    def validate_bet(self, amount: object) -> int:
        """Return the bet as an int or raise InvalidBet."""
        if isinstance(amount, bool) or not isinstance(amount, int):
            raise InvalidBet("Bet amount must be a whole number of points")
        if amount < self.min_bet or amount > self.max_bet:
            raise InvalidBet(f"Bet must be between {self.min_bet:,} and {self.max_bet:,}")
        return amount
