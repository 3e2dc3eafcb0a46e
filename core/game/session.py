"""The game session aggregate and its storage representation."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

from core.cards import Card, Deck, Rank, Suit
from core.errors import AlreadySettled, SessionNotFoundOrForbidden
from core.game.state import RoundPhase, SessionStatus
from core.hand import DealtCard, Hand
from core.settlement import Outcome

GAME_TYPE = "blackjack"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class GameSession:
    """
    One blackjack round.

    Sessions are values. Every engine transition returns a new GameSession
    and leaves its input untouched.
    """

    id: str
    user_id: str
    bet_amount: int
    deck: Deck
    player_hand: Hand = field(default_factory=Hand)
    dealer_hand: Hand = field(default_factory=Hand)
    status: SessionStatus = SessionStatus.PENDING
    doubled: bool = False
    result: Outcome | None = None
    payout: int | None = None
    created_at: datetime = field(default_factory=_utcnow)
    settled_at: datetime | None = None

    @property
    def is_settled(self) -> bool:
        """Check if the round is finished."""
        return self.status == SessionStatus.SETTLED

    @property
    def phase(self) -> RoundPhase:
        """Phase the session rests in between requests."""
        return RoundPhase.resting(self.status)

    @property
    def hole_card(self) -> DealtCard | None:
        """The dealer's second card, if dealt."""
        if len(self.dealer_hand) < 2:
            return None
        return self.dealer_hand.dealt[1]

    @property
    def points_change(self) -> int | None:
        """Net balance effect once settled."""
        if self.payout is None:
            return None
        return self.payout - self.bet_amount

    def ensure_owner(self, user_id: str) -> None:
        """Reject access from anyone but the owning user."""
        if self.user_id != user_id:
            raise SessionNotFoundOrForbidden()

    def ensure_pending(self) -> None:
        """Reject mutation of a settled session."""
        if self.is_settled:
            raise AlreadySettled()


# Storage serialization


def serialize_card(card: Card) -> dict[str, str]:
    """Serialize a card to a dict."""
    return {"suit": card.suit.value, "value": card.rank.value}


def deserialize_card(data: dict[str, str]) -> Card:
    """Deserialize a card from a dict."""
    return Card(Rank(data["value"]), Suit(data["suit"]))


def serialize_hand(hand: Hand) -> list[dict[str, Any]]:
    """Serialize a hand to a list of dicts."""
    return [
        {**serialize_card(d.card), "index": d.index, "faceUp": d.face_up}
        for d in hand
    ]


def deserialize_hand(data: list[dict[str, Any]]) -> Hand:
    """Deserialize a hand from a list of dicts."""
    return Hand(
        tuple(
            DealtCard(deserialize_card(c), index=c["index"], face_up=c["faceUp"])
            for c in data
        )
    )


def serialize_session(session: GameSession) -> dict[str, Any]:
    """Serialize a session for storage."""
    return {
        "id": session.id,
        "userId": session.user_id,
        "gameType": GAME_TYPE,
        "betAmount": session.bet_amount,
        "status": session.status.value,
        "doubled": session.doubled,
        "gameData": {
            "deck": [serialize_card(c) for c in session.deck.cards],
            "playerCards": serialize_hand(session.player_hand),
            "dealerCards": serialize_hand(session.dealer_hand),
            "deckIndex": session.deck.index,
        },
        "result": session.result.value if session.result else None,
        "payout": session.payout,
        "createdAt": session.created_at.isoformat(),
        "settledAt": session.settled_at.isoformat() if session.settled_at else None,
    }


def deserialize_session(data: dict[str, Any]) -> GameSession:
    """Restore a session from storage."""
    game_data = data["gameData"]
    deck = Deck(
        tuple(deserialize_card(c) for c in game_data["deck"]),
        index=game_data["deckIndex"],
    )
    settled_at = data.get("settledAt")
    return GameSession(
        id=data["id"],
        user_id=data["userId"],
        bet_amount=data["betAmount"],
        deck=deck,
        player_hand=deserialize_hand(game_data["playerCards"]),
        dealer_hand=deserialize_hand(game_data["dealerCards"]),
        status=SessionStatus(data["status"]),
        doubled=data.get("doubled", False),
        result=Outcome(data["result"]) if data.get("result") else None,
        payout=data.get("payout"),
        created_at=datetime.fromisoformat(data["createdAt"]),
        settled_at=datetime.fromisoformat(settled_at) if settled_at else None,
    )
