"""
Game error hierarchy.

Every error the engine raises derives from GameError and carries the HTTP
status the API layer reports along with a message that is safe to show a
client.
"""


class GameError(Exception):
    """Base exception for the blackjack engine."""

    status_code = 400
    message = "Request rejected"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.message
        super().__init__(self.message)


class AuthenticationError(GameError):
    """Missing, malformed or expired credentials."""

    status_code = 401
    message = "Authentication required"


class ValidationError(GameError):
    """Malformed request or an action that is not valid right now."""

    message = "Invalid request"


class InvalidBet(ValidationError):
    """Bet amount outside the table limits."""

    message = "Invalid bet amount"


class InvalidAction(ValidationError):
    """Unknown action, or one not allowed for the current hand."""

    message = "Invalid action"


class CardConcealed(ValidationError):
    """A dealer card was requested while it must stay hidden."""

    message = "Dealer card is not revealed yet"


class InsufficientFunds(GameError):
    """A ledger debit would take the balance below zero."""

    message = "Insufficient points"

    def __init__(self, required: int | None = None, available: int | None = None) -> None:
        self.required = required
        self.available = available
        super().__init__()


class SessionNotFoundOrForbidden(GameError):
    """Unknown session id, or a session owned by someone else.

    Both cases share one error so a caller cannot probe for other users'
    sessions.
    """

    message = "Invalid game session"


class AlreadySettled(GameError):
    """Action against a session that has already been settled."""

    message = "Game already finished"


class InternalError(GameError):
    """Storage, ledger or engine failure."""

    status_code = 500
    message = "Internal server error"


class DeckExhausted(InternalError):
    """Draw attempted past the end of the deck."""

    message = "Deck exhausted"


class StorageError(InternalError):
    """The session store or ledger backend failed."""

    message = "Storage failure"
