"""Blackjack game API endpoints."""

import logging
from random import SystemRandom
from typing import Annotated, Awaitable, Callable, Union

from fastapi import APIRouter, Depends, Query, Request

from api.auth import get_current_user_id
from api.limiter import limiter
from api.schemas import (
    BalanceResponse,
    BlackjackActionRequest,
    CardResponse,
    DealerCardResponse,
    DealerSecondCardResponse,
    ErrorResponse,
    GameLogResponse,
    HistoryResponse,
    HitResponse,
    SettleResponse,
    StartResponse,
)
from api.session import SessionStore, get_session_store
from config import config
from core.errors import InternalError, InvalidAction, SessionNotFoundOrForbidden, ValidationError
from core.game import BlackjackRound, EventEmitter, GameEvent, GameSession, RoundResult
from core.game.session import deserialize_session, serialize_session
from core.hand import DealtCard, Hand
from core.ledger import GameLogEntry
from core.rules import TableRules

logger = logging.getLogger(__name__)

router = APIRouter()

# Shuffles draw from the OS entropy pool
_rng = SystemRandom()

ActionResponse = Union[
    StartResponse,
    HitResponse,
    SettleResponse,
    DealerSecondCardResponse,
    DealerCardResponse,
]

UserId = Annotated[str, Depends(get_current_user_id)]
Store = Annotated[SessionStore, Depends(get_session_store)]


def _table_rules() -> TableRules:
    """Build table rules from configuration."""
    return TableRules(
        min_bet=config.game.min_bet,
        max_bet=config.game.max_bet,
        dealer_stands_on=config.game.dealer_stands_on,
        blackjack_payout=config.game.blackjack_payout,
    )


def _log_event(event: GameEvent) -> None:
    logger.debug("%s", event)


def _events() -> EventEmitter:
    emitter = EventEmitter()
    emitter.subscribe(_log_event)
    return emitter


def _card_response(dealt: DealtCard) -> CardResponse:
    """Render a card, leaving out suit and value while it is face down."""
    if not dealt.face_up:
        return CardResponse(index=dealt.index, face_up=False, hidden=True)
    return CardResponse(
        index=dealt.index,
        face_up=True,
        suit=dealt.card.suit.value,
        value=dealt.card.rank.value,
        points=dealt.card.value,
    )


def _cards(hand: Hand) -> list[CardResponse]:
    return [_card_response(d) for d in hand]


def _settle_response(result: RoundResult, points: int) -> SettleResponse:
    session = result.session
    settlement = result.settlement
    if settlement is None:
        raise InternalError("Round ended without a settlement")
    return SettleResponse(
        result=settlement.result.value,
        payout=settlement.payout,
        points=points,
        points_change=settlement.points_change,
        bet_amount=session.bet_amount,
        bust=session.player_hand.is_busted,
        player_cards=_cards(session.player_hand),
        player_score=session.player_hand.value,
        dealer_cards=_cards(session.dealer_hand),
        dealer_score=session.dealer_hand.value,
        dealer_card_count=len(session.dealer_hand),
    )


def _require_session_id(body: BlackjackActionRequest) -> str:
    if not body.session_id:
        raise ValidationError("sessionId is required")
    return body.session_id


async def _load(store: SessionStore, session_id: str, user_id: str) -> GameSession:
    """Load a session owned by the caller."""
    data = await store.get(session_id)
    if data is None:
        raise SessionNotFoundOrForbidden()

    session = deserialize_session(data)
    session.ensure_owner(user_id)
    return session


async def _commit(store: SessionStore, result: RoundResult) -> int:
    """Persist the session, its ledger entries and, once settled, the game log."""
    log = None
    session = result.session
    if result.settlement is not None:
        log = GameLogEntry(
            session_id=session.id,
            user_id=session.user_id,
            bet_amount=session.bet_amount,
            payout=result.settlement.payout,
            result=result.settlement.result.value,
            multiplier=result.settlement.multiplier,
            settled_at=session.settled_at or session.created_at,
        )

    points = await store.commit(serialize_session(session), result.entries, log)

    if log is not None:
        logger.info(
            "Settled session %s for user %s: %s, bet %d, payout %d",
            session.id,
            session.user_id,
            log.result,
            log.bet_amount,
            log.payout,
        )
    return points


async def _start(body: BlackjackActionRequest, user_id: str, store: SessionStore) -> StartResponse:
    result = BlackjackRound.start(
        user_id,
        body.bet_amount,  # type: ignore[arg-type]
        rules=_table_rules(),
        rng=_rng,
        events=_events(),
    )
    points = await _commit(store, result)

    session = result.session
    logger.info("Started session %s for user %s, bet %d", session.id, user_id, session.bet_amount)
    return StartResponse(
        session_id=session.id,
        bet_amount=session.bet_amount,
        player_cards=_cards(session.player_hand),
        dealer_cards=_cards(session.dealer_hand),
        player_score=session.player_hand.value,
        dealer_score=session.dealer_hand.visible_value,
        points=points,
    )


async def _hit(body: BlackjackActionRequest, user_id: str, store: SessionStore) -> HitResponse:
    session_id = _require_session_id(body)
    async with store.lock(session_id):
        session = await _load(store, session_id, user_id)
        result = BlackjackRound(session, rules=_table_rules(), events=_events()).hit(user_id)
        points = await _commit(store, result)

    session = result.session
    settled = {}
    if result.settlement is not None:
        settled = {
            "payout": result.settlement.payout,
            "points": points,
            "points_change": result.settlement.points_change,
            "dealer_cards": _cards(session.dealer_hand),
            "dealer_score": session.dealer_hand.value,
        }
    return HitResponse(
        player_cards=_cards(session.player_hand),
        player_score=session.player_hand.value,
        result="lose" if result.bust else "pending",
        bust=result.bust,
        **settled,
    )


async def _stand(body: BlackjackActionRequest, user_id: str, store: SessionStore) -> SettleResponse:
    session_id = _require_session_id(body)
    async with store.lock(session_id):
        session = await _load(store, session_id, user_id)
        result = BlackjackRound(session, rules=_table_rules(), events=_events()).stand(user_id)
        points = await _commit(store, result)
    return _settle_response(result, points)


async def _double(body: BlackjackActionRequest, user_id: str, store: SessionStore) -> SettleResponse:
    session_id = _require_session_id(body)
    async with store.lock(session_id):
        session = await _load(store, session_id, user_id)
        result = BlackjackRound(session, rules=_table_rules(), events=_events()).double(user_id)
        points = await _commit(store, result)
    return _settle_response(result, points)


async def _dealer_second_card(
    body: BlackjackActionRequest, user_id: str, store: SessionStore
) -> DealerSecondCardResponse:
    session = await _load(store, _require_session_id(body), user_id)
    card = BlackjackRound(session, rules=_table_rules()).dealer_second_card(user_id)
    return DealerSecondCardResponse(
        card=_card_response(card),
        dealer_score=session.dealer_hand.value,
    )


async def _dealer_hit(
    body: BlackjackActionRequest, user_id: str, store: SessionStore
) -> DealerCardResponse:
    if body.card_index is None:
        raise ValidationError("cardIndex is required")

    session = await _load(store, _require_session_id(body), user_id)
    card = BlackjackRound(session, rules=_table_rules()).dealer_card(user_id, body.card_index)
    return DealerCardResponse(
        card=_card_response(card),
        card_index=body.card_index,
        dealer_card_count=len(session.dealer_hand),
        dealer_score=session.dealer_hand.value,
    )


_ACTIONS: dict[str, Callable[[BlackjackActionRequest, str, SessionStore], Awaitable[ActionResponse]]] = {
    "start": _start,
    "hit": _hit,
    "stand": _stand,
    "double": _double,
    "getDealerSecondCard": _dealer_second_card,
    "dealerHit": _dealer_hit,
}


@router.post(
    "/blackjack",
    response_model_exclude_none=True,
    responses={
        400: {"model": ErrorResponse},
        401: {"model": ErrorResponse},
        500: {"model": ErrorResponse},
    },
)
@limiter.limit(f"{config.rate_limit.requests_per_minute}/minute")
async def blackjack_action(
    request: Request,
    body: BlackjackActionRequest,
    user_id: UserId,
    store: Store,
) -> ActionResponse:
    """Apply one blackjack action for the authenticated user."""
    handler = _ACTIONS.get(body.action)
    if handler is None:
        raise InvalidAction(f"Unknown action: {body.action}")
    return await handler(body, user_id, store)


@router.get("/blackjack/balance")
async def get_balance(user_id: UserId, store: Store) -> BalanceResponse:
    """Get the caller's point balance."""
    return BalanceResponse(points=await store.get_balance(user_id))


@router.get("/blackjack/history")
async def get_history(
    user_id: UserId,
    store: Store,
    limit: Annotated[int, Query(ge=1, le=100)] = 20,
) -> HistoryResponse:
    """Get the caller's settled rounds, newest first."""
    entries = await store.history(user_id, limit)
    return HistoryResponse(
        games=[
            GameLogResponse(
                session_id=e.session_id,
                bet_amount=e.bet_amount,
                payout=e.payout,
                profit=e.profit,
                result=e.result,
                multiplier=e.multiplier,
                settled_at=e.settled_at,
            )
            for e in entries
        ]
    )
