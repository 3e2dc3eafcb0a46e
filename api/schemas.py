"""Pydantic schemas for API requests and responses."""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, StrictInt
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base model serialized with camelCase keys."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ResponseModel(CamelModel):
    """Action response body; unknown keys are rejected so each body matches one model."""

    model_config = ConfigDict(extra="forbid")


# Game schemas
class BlackjackActionRequest(CamelModel):
    """Single action envelope for the blackjack endpoint."""

    action: Literal["start", "hit", "stand", "double", "getDealerSecondCard", "dealerHit"]
    bet_amount: StrictInt | None = Field(default=None, description="Wager for start")
    session_id: str | None = Field(default=None, description="Session for every other action")
    card_index: StrictInt | None = Field(default=None, ge=0, description="Dealer card position for dealerHit")


class CardResponse(ResponseModel):
    """Card as shown to the player.

    A face-down card carries only its deal index; suit and value are left
    out entirely.
    """

    index: int
    face_up: bool
    hidden: bool = False
    suit: str | None = None
    value: str | None = None
    points: int | None = None


class StartResponse(ResponseModel):
    """A new round was dealt."""

    session_id: str
    bet_amount: int
    player_cards: list[CardResponse]
    dealer_cards: list[CardResponse]
    player_score: int
    dealer_score: int
    points: int


class HitResponse(ResponseModel):
    """Player drew a card. Settlement fields are present on a bust."""

    player_cards: list[CardResponse]
    player_score: int
    result: Literal["pending", "lose"]
    bust: bool
    payout: int | None = None
    points: int | None = None
    points_change: int | None = None
    dealer_cards: list[CardResponse] | None = None
    dealer_score: int | None = None


class SettleResponse(ResponseModel):
    """Round settled after stand or double."""

    result: Literal["win", "lose", "draw", "blackjack"]
    payout: int
    points: int
    points_change: int
    bet_amount: int
    bust: bool
    player_cards: list[CardResponse]
    player_score: int
    dealer_cards: list[CardResponse]
    dealer_score: int
    dealer_card_count: int


class DealerSecondCardResponse(ResponseModel):
    """Dealer's hole card, revealed after settlement."""

    card: CardResponse
    dealer_score: int


class DealerCardResponse(ResponseModel):
    """One of the dealer's cards, for replaying dealer draws."""

    card: CardResponse
    card_index: int
    dealer_card_count: int
    dealer_score: int


class BalanceResponse(CamelModel):
    """Current point balance."""

    points: int


class GameLogResponse(CamelModel):
    """One settled round."""

    session_id: str
    bet_amount: int
    payout: int
    profit: int
    result: str
    multiplier: float
    settled_at: datetime


class HistoryResponse(CamelModel):
    """Settled rounds, newest first."""

    games: list[GameLogResponse]


class ErrorResponse(BaseModel):
    """Error body."""

    error: str
