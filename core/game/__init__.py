"""Round engine and session state."""

from core.game.events import GameEvent, EventType, EventEmitter
from core.game.state import RoundPhase, SessionStatus
from core.game.session import GameSession
from core.game.engine import BlackjackRound, RoundResult

__all__ = [
    "GameEvent",
    "EventType",
    "EventEmitter",
    "RoundPhase",
    "SessionStatus",
    "GameSession",
    "BlackjackRound",
    "RoundResult",
]
