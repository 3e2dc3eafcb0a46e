"""Tests for ledger entries and game log records."""

import pytest
from datetime import datetime, timezone

from core.errors import InsufficientFunds
from core.ledger import GameLogEntry, LedgerEntry, apply_entries


class TestLedgerEntry:
    """Tests for LedgerEntry."""

    def test_debit_is_negative(self):
        entry = LedgerEntry.debit("user-1", 100)
        assert entry.amount == -100
        assert entry.reason == "bet"

    def test_credit_is_positive(self):
        entry = LedgerEntry.credit("user-1", 250)
        assert entry.amount == 250
        assert entry.reason == "payout"

    def test_negative_amounts_rejected(self):
        with pytest.raises(ValueError):
            LedgerEntry.debit("user-1", -1)
        with pytest.raises(ValueError):
            LedgerEntry.credit("user-1", -1)


class TestApplyEntries:
    """Tests for apply_entries()."""

    def test_applies_in_order(self):
        entries = [LedgerEntry.debit("u", 100), LedgerEntry.credit("u", 200)]
        assert apply_entries(1000, entries) == 1100

    def test_exact_balance_allowed(self):
        assert apply_entries(100, [LedgerEntry.debit("u", 100)]) == 0

    def test_insufficient_funds(self):
        """Test that overdrawing reports required and available points."""
        with pytest.raises(InsufficientFunds) as exc_info:
            apply_entries(50, [LedgerEntry.debit("u", 100)])

        assert exc_info.value.required == 100
        assert exc_info.value.available == 50
        assert exc_info.value.status_code == 400

    def test_intermediate_balance_checked(self):
        """A later credit does not cover an earlier overdraft."""
        entries = [LedgerEntry.debit("u", 100), LedgerEntry.credit("u", 400)]
        with pytest.raises(InsufficientFunds):
            apply_entries(50, entries)

    def test_no_entries(self):
        assert apply_entries(10, []) == 10


class TestGameLogEntry:
    """Tests for GameLogEntry."""

    def test_profit(self):
        entry = GameLogEntry("s-1", "user-1", 200, 400, "win", 2.0)
        assert entry.profit == 200

    def test_dict_round_trip(self):
        settled = datetime(2024, 5, 1, 12, 30, tzinfo=timezone.utc)
        entry = GameLogEntry("s-1", "user-1", 100, 0, "lose", 0.0, settled_at=settled)

        data = entry.to_dict()
        assert data["profit"] == -100
        assert data["settled_at"] == "2024-05-01T12:30:00+00:00"
        assert GameLogEntry.from_dict(data) == entry
