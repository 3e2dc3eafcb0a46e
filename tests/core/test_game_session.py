"""Tests for the session value, its phases and its storage format."""

import json

import pytest
from transitions import MachineError

from core.errors import AlreadySettled, SessionNotFoundOrForbidden
from core.game import BlackjackRound, RoundPhase, SessionStatus
from core.game.session import deserialize_session, serialize_session


class TestPhases:
    """Tests for phase bookkeeping on the round state machine."""

    def test_player_turn_triggers(self, start_round):
        """A pending round only accepts player moves."""
        round_ = BlackjackRound(start_round("10S", "9H", "10H", "8C").session)

        assert round_.phase == RoundPhase.PLAYER_TURN
        assert set(round_.machine.get_triggers("player_turn")) == {
            "player_action",
            "player_busts",
            "player_done",
        }

    def test_settled_is_terminal(self, start_round):
        """No trigger leaves the settled phase."""
        session = start_round("10S", "9H", "10H", "8C").session
        round_ = BlackjackRound(BlackjackRound(session).stand("user-1").session)

        assert round_.phase == RoundPhase.SETTLED
        assert round_.machine.get_triggers("settled") == []
        with pytest.raises(MachineError):
            round_.player_action()

    def test_dealing_only_leads_to_player_turn(self, start_round):
        round_ = BlackjackRound(
            start_round("10S", "9H", "10H", "8C").session, phase=RoundPhase.DEALING
        )

        assert round_.machine.get_triggers("dealing") == ["deal_cards"]
        with pytest.raises(MachineError):
            round_.player_done()

    def test_dealer_turn_only_settles(self, start_round):
        round_ = BlackjackRound(
            start_round("10S", "9H", "10H", "8C").session, phase=RoundPhase.DEALER_TURN
        )

        assert round_.machine.get_triggers("dealer_turn") == ["dealer_plays"]
        with pytest.raises(MachineError):
            round_.player_action()

    def test_resting_phase(self):
        assert RoundPhase.resting(SessionStatus.PENDING) == RoundPhase.PLAYER_TURN
        assert RoundPhase.resting(SessionStatus.SETTLED) == RoundPhase.SETTLED

    def test_str(self):
        assert str(RoundPhase.PLAYER_TURN) == "Player Turn"
        assert str(SessionStatus.SETTLED) == "settled"


class TestGameSession:
    """Tests for GameSession guards."""

    def test_immutable(self, start_round):
        session = start_round("10S", "9H", "10H", "8C").session
        with pytest.raises(AttributeError):
            session.bet_amount = 5

    def test_ensure_owner(self, start_round):
        session = start_round("10S", "9H", "10H", "8C").session
        session.ensure_owner("user-1")
        with pytest.raises(SessionNotFoundOrForbidden):
            session.ensure_owner("someone-else")

    def test_ensure_pending(self, start_round):
        session = start_round("10S", "9H", "10H", "8C").session
        session.ensure_pending()
        settled = BlackjackRound(session).stand("user-1").session
        with pytest.raises(AlreadySettled):
            settled.ensure_pending()

    def test_points_change(self, start_round):
        session = start_round("10S", "9H", "10H", "8C").session
        assert session.points_change is None
        settled = BlackjackRound(session).stand("user-1").session
        assert settled.points_change == 100


class TestSerialization:
    """Tests for the stored session document."""

    def test_document_layout(self, start_round):
        session = start_round("10S", "9H", "10H", "8C").session
        data = serialize_session(session)

        assert data["userId"] == "user-1"
        assert data["gameType"] == "blackjack"
        assert data["betAmount"] == 100
        assert data["status"] == "pending"
        assert data["result"] is None
        assert data["gameData"]["deckIndex"] == 4
        assert len(data["gameData"]["deck"]) == 52
        assert data["gameData"]["playerCards"][0] == {
            "suit": "spades",
            "value": "10",
            "index": 0,
            "faceUp": True,
        }
        assert data["gameData"]["dealerCards"][1]["faceUp"] is False

    def test_pending_session_survives_json(self, start_round):
        """A stored session resumes with the hole card still face down."""
        session = start_round("10S", "9H", "10H", "8C").session
        restored = deserialize_session(json.loads(json.dumps(serialize_session(session))))

        assert restored == session
        assert restored.dealer_hand.has_hidden_card

    def test_settled_session_survives_json(self, start_round):
        session = start_round("5S", "10D", "6H", "7C", "9S").session
        settled = BlackjackRound(session).double("user-1").session
        restored = deserialize_session(json.loads(json.dumps(serialize_session(settled))))

        assert restored == settled
        assert restored.doubled
        assert restored.status == SessionStatus.SETTLED
        assert restored.phase == RoundPhase.SETTLED

    def test_restored_session_keeps_dealing(self, start_round):
        """Dealing continues from the stored deck cursor."""
        session = start_round("2S", "9H", "3H", "7C", "4D").session
        restored = deserialize_session(serialize_session(session))
        after = BlackjackRound(restored).hit("user-1").session

        assert after.player_hand.dealt[-1].index == 4
        assert str(after.player_hand.cards[-1]) == "4♦"
