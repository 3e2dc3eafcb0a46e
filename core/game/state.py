"""Session status and round phase enumerations."""

from enum import Enum


class SessionStatus(Enum):
    """Persisted session status."""

    PENDING = "pending"
    SETTLED = "settled"

    def __str__(self) -> str:
        return self.value


class RoundPhase(Enum):
    """
    Round state machine phases.

    Flow: DEALING → PLAYER_TURN → DEALER_TURN → SETTLED

    DEALING and DEALER_TURN only exist inside a single action; between
    requests a pending session always rests in PLAYER_TURN.
    """

    DEALING = "dealing"
    PLAYER_TURN = "player_turn"
    DEALER_TURN = "dealer_turn"
    SETTLED = "settled"

    def __str__(self) -> str:
        return self.name.replace("_", " ").title()

    @classmethod
    def resting(cls, status: SessionStatus) -> "RoundPhase":
        """Phase a persisted session is in between requests."""
        if status == SessionStatus.SETTLED:
            return cls.SETTLED
        return cls.PLAYER_TURN

