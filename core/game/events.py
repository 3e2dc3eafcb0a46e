"""Round events published while an action runs."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum, auto
from typing import Any, Callable


class EventType(Enum):
    """Kinds of things that happen during a round."""

    # Round lifecycle
    ROUND_STARTED = auto()
    ROUND_SETTLED = auto()

    CARD_DEALT = auto()

    # Player
    PLAYER_HIT = auto()
    PLAYER_STAND = auto()
    PLAYER_DOUBLE = auto()
    PLAYER_BUSTS = auto()

    # Dealer
    DEALER_REVEALS = auto()
    DEALER_HITS = auto()
    DEALER_STANDS = auto()
    DEALER_BUSTS = auto()


@dataclass(frozen=True)
class GameEvent:
    """
    Something that happened during a round.

    Events are an observation channel for loggers and tests. The
    RoundResult an action returns is what gets persisted.
    """

    event_type: EventType
    seq: int = 0
    data: dict[str, Any] = field(default_factory=dict)
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def __str__(self) -> str:
        details = " ".join(f"{k}={v}" for k, v in self.data.items())
        return f"#{self.seq} {self.event_type.name} {details}".rstrip()


EventHandler = Callable[[GameEvent], None]


class EventEmitter:
    """
    Collects the events of one action and fans them out to subscribers.

    Handlers subscribed to a specific type run before catch-all handlers.
    """

    def __init__(self) -> None:
        self._handlers: dict[EventType | None, list[EventHandler]] = {}
        self._events: list[GameEvent] = []

    def subscribe(
        self,
        handler: EventHandler,
        event_type: EventType | None = None,
    ) -> Callable[[], None]:
        """
        Register a handler.

        Args:
            handler: Called with each matching event
            event_type: Only deliver this type; None delivers everything

        Returns:
            A callable that removes the handler again
        """
        handlers = self._handlers.setdefault(event_type, [])
        handlers.append(handler)
        return lambda: handlers.remove(handler)

    def emit(self, event: GameEvent) -> None:
        """Record an event and deliver it."""
        self._events.append(event)
        for handler in (*self._handlers.get(event.event_type, ()), *self._handlers.get(None, ())):
            handler(event)

    def emit_new(self, event_type: EventType, **data: Any) -> GameEvent:
        """Build the next event in sequence and emit it."""
        event = GameEvent(event_type=event_type, seq=len(self._events), data=data)
        self.emit(event)
        return event

    @property
    def history(self) -> list[GameEvent]:
        """Events emitted so far, oldest first."""
        return list(self._events)

    def of_type(self, event_type: EventType) -> list[GameEvent]:
        """Emitted events of one type."""
        return [e for e in self._events if e.event_type == event_type]
