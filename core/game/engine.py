"""Blackjack round engine with state machine."""

from dataclasses import dataclass, replace
from datetime import datetime, timezone
from random import Random
from typing import Callable
from uuid import uuid4

from transitions import Machine

from core.cards import Deck
from core.errors import AlreadySettled, CardConcealed, InvalidAction
from core.game.events import EventEmitter, EventType, GameEvent
from core.game.session import GameSession
from core.game.state import RoundPhase, SessionStatus
from core.hand import DealtCard, Hand
from core.ledger import LedgerEntry
from core.rules import TableRules
from core.settlement import Settlement, bust_settlement, settle


@dataclass(frozen=True)
class RoundResult:
    """What an action produced: the new session and its ledger entries.

    The caller persists ``session`` and applies ``entries`` in one commit.
    """

    session: GameSession
    entries: tuple[LedgerEntry, ...] = ()
    settlement: Settlement | None = None

    @property
    def bust(self) -> bool:
        """Check if the player busted this round."""
        return self.session.player_hand.is_busted


class BlackjackRound:
    """
    One blackjack round driven by a state machine.

    The round wraps a GameSession value. Each action validates the request
    against the current phase, computes the next session value and the
    ledger entries it implies, and returns both in a RoundResult. Nothing is
    persisted here.
    """

    # State machine states
    STATES = [p.value for p in RoundPhase]

    # State machine transitions
    TRANSITIONS = [
        {"trigger": "deal_cards", "source": "dealing", "dest": "player_turn"},
        {"trigger": "player_action", "source": "player_turn", "dest": "player_turn"},
        {"trigger": "player_busts", "source": "player_turn", "dest": "settled"},
        {"trigger": "player_done", "source": "player_turn", "dest": "dealer_turn"},
        {"trigger": "dealer_plays", "source": "dealer_turn", "dest": "settled"},
    ]

    def __init__(
        self,
        session: GameSession,
        rules: TableRules | None = None,
        events: EventEmitter | None = None,
        phase: RoundPhase | None = None,
    ) -> None:
        """
        Wrap a session for one action.

        Args:
            session: Session as loaded from the store
            rules: Table rules (uses defaults if not provided)
            events: Emitter to publish round events on
            phase: Starting phase, defaults to the session's resting phase
        """
        self.session = session
        self.rules = rules or TableRules()
        self.events = events or EventEmitter()
        self._entries: list[LedgerEntry] = []

        self.machine = Machine(
            model=self,
            states=self.STATES,
            transitions=self.TRANSITIONS,
            initial=(phase or session.phase).value,
            auto_transitions=False,
            model_attribute="_machine_state",
        )

    @property
    def phase(self) -> RoundPhase:
        """Get current round phase as enum."""
        return RoundPhase(self._machine_state)  # type: ignore[attr-defined]

    def subscribe(
        self,
        handler: Callable[[GameEvent], None],
        event_type: EventType | None = None,
    ) -> None:
        """Subscribe to round events."""
        self.events.subscribe(handler, event_type)

    @classmethod
    def start(
        cls,
        user_id: str,
        bet_amount: int,
        rules: TableRules | None = None,
        rng: Random | None = None,
        events: EventEmitter | None = None,
        session_id: str | None = None,
        deck: Deck | None = None,
    ) -> RoundResult:
        """
        Open a new round: take the bet and deal two cards to each side.

        Args:
            user_id: Owner of the new session
            bet_amount: Wager, debited from the ledger on commit
            rules: Table rules
            rng: Random number generator for reproducible deals
            events: Emitter to publish round events on
            session_id: Id for the new session (random UUID if omitted)
            deck: Pre-built deck to deal from (a fresh shuffle if omitted)

        Returns:
            RoundResult holding the pending session and the bet debit
        """
        rules = rules or TableRules()
        bet = rules.validate_bet(bet_amount)

        session = GameSession(
            id=session_id or str(uuid4()),
            user_id=user_id,
            bet_amount=bet,
            deck=deck if deck is not None else Deck.new_shuffled(rng),
        )
        round_ = cls(session, rules=rules, events=events, phase=RoundPhase.DEALING)
        round_._entries.append(LedgerEntry.debit(user_id, bet, reason="bet"))
        return round_._deal_initial_cards()

    def _deal_initial_cards(self) -> RoundResult:
        """Deal: player, dealer, player, dealer (face down)."""
        self._deal_card("player")
        self._deal_card("dealer")
        self._deal_card("player")
        self._deal_card("dealer", face_up=False)

        self.events.emit_new(
            EventType.ROUND_STARTED,
            session_id=self.session.id,
            bet=self.session.bet_amount,
            player_value=self.session.player_hand.value,
            dealer_showing=self.session.dealer_hand.visible_value,
        )
        self.deal_cards()  # type: ignore[attr-defined]
        return self._result()

    def _deal_card(self, side: str, face_up: bool = True) -> DealtCard:
        """Draw the next card from the deck into one side's hand."""
        card, deck = self.session.deck.draw()
        dealt = DealtCard(card, index=self.session.deck.index, face_up=face_up)

        if side == "player":
            hand = Hand(self.session.player_hand.dealt + (dealt,))
            self.session = replace(self.session, deck=deck, player_hand=hand)
        else:
            hand = Hand(self.session.dealer_hand.dealt + (dealt,))
            self.session = replace(self.session, deck=deck, dealer_hand=hand)

        self.events.emit_new(
            EventType.CARD_DEALT,
            card=str(card) if face_up else "??",
            index=dealt.index,
            hand=side,
            hand_value=hand.value if side == "player" else hand.visible_value,
        )
        return dealt

    def _ensure_player_turn(self, user_id: str) -> None:
        """Reject actions from other users or against a finished round."""
        self.session.ensure_owner(user_id)
        self.session.ensure_pending()
        if self.phase != RoundPhase.PLAYER_TURN:
            raise AlreadySettled()

    def hit(self, user_id: str) -> RoundResult:
        """Player takes another card; a bust settles the round as a loss."""
        self._ensure_player_turn(user_id)

        self._deal_card("player")
        hand = self.session.player_hand
        self.events.emit_new(EventType.PLAYER_HIT, hand_value=hand.value)

        if hand.is_busted:
            return self._bust()

        self.player_action()  # type: ignore[attr-defined]
        return self._result()

    def stand(self, user_id: str) -> RoundResult:
        """Player stands; the dealer completes and the round settles."""
        self._ensure_player_turn(user_id)

        self.events.emit_new(
            EventType.PLAYER_STAND,
            hand_value=self.session.player_hand.value,
        )
        self.player_done()  # type: ignore[attr-defined]
        return self._play_dealer()

    def double(self, user_id: str) -> RoundResult:
        """
        Player doubles down.

        The additional stake equals the current bet. Exactly one card is
        drawn, then the player is forced to stand.
        """
        self._ensure_player_turn(user_id)

        if self.rules.double_first_two_only and len(self.session.player_hand) != 2:
            raise InvalidAction("Double down is only allowed on the first two cards")

        additional = self.session.bet_amount
        self._entries.append(LedgerEntry.debit(user_id, additional, reason="double"))
        self.session = replace(
            self.session,
            bet_amount=self.session.bet_amount + additional,
            doubled=True,
        )

        self._deal_card("player")
        hand = self.session.player_hand
        self.events.emit_new(
            EventType.PLAYER_DOUBLE,
            hand_value=hand.value,
            new_bet=self.session.bet_amount,
        )

        if hand.is_busted:
            return self._bust()

        self.player_done()  # type: ignore[attr-defined]
        return self._play_dealer()

    def dealer_second_card(self, user_id: str) -> DealtCard:
        """Return the dealer's hole card once the round is past concealment."""
        return self.dealer_card(user_id, 1)

    def dealer_card(self, user_id: str, position: int) -> DealtCard:
        """
        Return the dealer card at ``position`` in the dealer's hand.

        Read-only. Only allowed once the round is settled, so a client can
        replay the dealer's draws one at a time.
        """
        self.session.ensure_owner(user_id)
        if not self.session.is_settled:
            raise CardConcealed()

        dealt = self.session.dealer_hand.dealt
        if not 0 <= position < len(dealt):
            raise InvalidAction(f"Dealer has no card at position {position}")
        return dealt[position]

    def _bust(self) -> RoundResult:
        """Settle a busted player hand without dealer play."""
        self.events.emit_new(
            EventType.PLAYER_BUSTS,
            hand_value=self.session.player_hand.value,
        )
        self.player_busts()  # type: ignore[attr-defined]
        # The hole card is turned for display only; it takes no part in settlement.
        return self._settle(bust_settlement(self.session.bet_amount))

    def _play_dealer(self) -> RoundResult:
        """Dealer reveals the hole card and draws to the standing total."""
        self.session = replace(self.session, dealer_hand=self.session.dealer_hand.revealed())
        hole = self.session.hole_card
        if hole is not None:
            self.events.emit_new(
                EventType.DEALER_REVEALS,
                card=str(hole.card),
                hand_value=self.session.dealer_hand.value,
            )

        while self._dealer_should_hit():
            self._deal_card("dealer")
            self.events.emit_new(
                EventType.DEALER_HITS,
                hand_value=self.session.dealer_hand.value,
            )

        if self.session.dealer_hand.is_busted:
            self.events.emit_new(EventType.DEALER_BUSTS)
        else:
            self.events.emit_new(
                EventType.DEALER_STANDS,
                hand_value=self.session.dealer_hand.value,
            )

        self.dealer_plays()  # type: ignore[attr-defined]
        return self._settle(
            settle(
                self.session.player_hand,
                self.session.dealer_hand,
                self.session.bet_amount,
                blackjack_return=self.rules.blackjack_return,
            )
        )

    def _dealer_should_hit(self) -> bool:
        """Dealer hits below the standing total, soft 17 included."""
        return self.session.dealer_hand.value < self.rules.dealer_stands_on

    def _settle(self, settlement: Settlement) -> RoundResult:
        """Close the session and credit the payout."""
        self.session = replace(
            self.session,
            dealer_hand=self.session.dealer_hand.revealed(),
            status=SessionStatus.SETTLED,
            result=settlement.result,
            payout=settlement.payout,
            settled_at=datetime.now(timezone.utc),
        )
        if settlement.payout > 0:
            self._entries.append(
                LedgerEntry.credit(self.session.user_id, settlement.payout, reason="payout")
            )

        self.events.emit_new(
            EventType.ROUND_SETTLED,
            session_id=self.session.id,
            result=settlement.result.value,
            payout=settlement.payout,
            points_change=settlement.points_change,
        )
        return self._result(settlement)

    def _result(self, settlement: Settlement | None = None) -> RoundResult:
        return RoundResult(
            session=self.session,
            entries=tuple(self._entries),
            settlement=settlement,
        )
