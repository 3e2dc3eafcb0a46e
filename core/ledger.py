"""Point ledger entries produced by game actions."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Iterable

from core.errors import InsufficientFunds


@dataclass(frozen=True)
class LedgerEntry:
    """A signed change to one user's point balance.

    Debits are negative, credits positive. Entries are applied by the store
    in the same commit as the session write that produced them.
    """

    user_id: str
    amount: int
    reason: str

    @classmethod
    def debit(cls, user_id: str, amount: int, reason: str = "bet") -> "LedgerEntry":
        """Create a debit entry."""
        if amount < 0:
            raise ValueError("Debit amount must be non-negative")
        return cls(user_id, -amount, reason)

    @classmethod
    def credit(cls, user_id: str, amount: int, reason: str = "payout") -> "LedgerEntry":
        """Create a credit entry."""
        if amount < 0:
            raise ValueError("Credit amount must be non-negative")
        return cls(user_id, amount, reason)


def apply_entries(balance: int, entries: Iterable[LedgerEntry]) -> int:
    """
    Apply entries in order and return the new balance.

    Raises InsufficientFunds if any intermediate balance would go negative,
    in which case the caller must write nothing.
    """
    for entry in entries:
        if balance + entry.amount < 0:
            raise InsufficientFunds(required=-entry.amount, available=balance)
        balance += entry.amount
    return balance


@dataclass(frozen=True)
class GameLogEntry:
    """Record of one settled round."""

    session_id: str
    user_id: str
    bet_amount: int
    payout: int
    result: str
    multiplier: float
    settled_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def profit(self) -> int:
        """Net points won or lost in the round."""
        return self.payout - self.bet_amount

    def to_dict(self) -> dict:
        """Serialize for storage."""
        return {
            "session_id": self.session_id,
            "user_id": self.user_id,
            "bet_amount": self.bet_amount,
            "payout": self.payout,
            "profit": self.profit,
            "result": self.result,
            "multiplier": self.multiplier,
            "settled_at": self.settled_at.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "GameLogEntry":
        """Deserialize from storage."""
        return cls(
            session_id=data["session_id"],
            user_id=data["user_id"],
            bet_amount=data["bet_amount"],
            payout=data["payout"],
            result=data["result"],
            multiplier=data["multiplier"],
            settled_at=datetime.fromisoformat(data["settled_at"]),
        )
