"""
Tests for statement reconstruction and rendering.
"""

from datetime import datetime, timezone

import pytest

from conftest import ALICE, BOB, CHASE, MOM


@pytest.fixture
def busy_store(store, clock):
    """Alice has a mix of incoming and outgoing transfers."""
    moves = [
        (ALICE, BOB, 1200, "pizza"),
        (BOB, ALICE, 300, None),
        (MOM, ALICE, 500, "allowance"),
        (ALICE, CHASE, 75, "gum"),
        (CHASE, ALICE, 25, None),
        (ALICE, BOB, 4000, "game"),
    ]
    for sender, receiver, amount, memo in moves:
        clock.advance(hours=1)
        store.append(sender, receiver, amount, memo=memo)
    return store


class TestStatement:
    @pytest.mark.parametrize("limit", [1, 2, 3, 5, 7, 50])
    def test_top_row_equals_current_balance(self, busy_store, formatter, balance_manager, limit):
        entries = formatter.statement(ALICE, limit)
        assert entries[0].balance == balance_manager.get_balance(ALICE)
        assert len(entries) == min(limit, 7)

    def test_running_balance_has_no_drift(self, busy_store, formatter):
        entries = formatter.statement(ALICE, 50)

        for newer, older in zip(entries, entries[1:]):
            assert older.balance == newer.balance - newer.amount

        # peeling off the oldest (seed) row lands on the empty balance
        oldest = entries[-1]
        assert oldest.balance - oldest.amount == 0

    def test_signed_amounts_and_counterparties(self, busy_store, formatter):
        entries = formatter.statement(ALICE, 3)

        assert [(e.counterparty, e.amount) for e in entries] == [
            (BOB, -4000),
            (CHASE, 25),
            (CHASE, -75),
        ]
        assert entries[0].memo == "game"

    def test_seed_row_has_no_counterparty(self, store, formatter):
        [seed] = formatter.statement(ALICE, 5)
        assert seed.counterparty is None
        assert seed.amount == 100000
        assert seed.balance == 100000

    def test_empty_account(self, formatter):
        assert formatter.statement("UNOBODY", 5) == []

    @pytest.mark.parametrize("limit", [0, -3])
    def test_non_positive_limit_is_empty(self, busy_store, formatter, limit):
        assert formatter.statement(ALICE, limit) == []

    def test_default_limit_comes_from_config(self, busy_store, formatter, monkeypatch):
        from allowance_bot.config import Config

        monkeypatch.setattr(Config, "LEDGER_LIMIT", 2)
        assert len(formatter.statement(ALICE)) == 2


class TestPlainText:
    def test_sent_and_received_lines(self, busy_store, formatter):
        text = formatter.format_plain(formatter.statement(ALICE, 2))
        sent, received = text.split("\n")

        assert "<@UBOB>" in sent
        assert "$40.00" in sent
        assert "送金しました（game）" in sent
        assert "<@UCHASE>" in received
        assert "$0.25" in received
        assert "受け取りました。" in received

    def test_minted_line(self, formatter):
        text = formatter.format_plain(formatter.statement(ALICE, 1))
        assert "発行" in text
        assert "$1,000.00" in text
        assert "（seed value）" in text

    def test_empty_statement(self, formatter):
        assert "まだありません" in formatter.format_plain([])

    def test_dates_use_configured_timezone(self, store, clock, formatter):
        # 05:00 UTC on Mar 2 is still Mar 1 in Los Angeles
        clock.now = datetime(2024, 3, 2, 5, 0, tzinfo=timezone.utc)
        store.append(BOB, ALICE, 100)

        entries = formatter.statement(ALICE, 1)
        assert formatter.format_plain(entries).startswith("Mar 01")


class TestBlocks:
    def test_two_column_table(self, busy_store, formatter):
        entries = formatter.statement(ALICE, 2)
        blocks = formatter.format_blocks(ALICE, entries)

        assert blocks[0]["type"] == "section"
        assert "<@UALICE>" in blocks[0]["text"]["text"]

        rows = [block for block in blocks if "fields" in block]
        assert len(rows) == 2
        first = [field["text"] for field in rows[0]["fields"]]
        assert first[0] == "*残高*\n$955.50"
        assert first[1] == "*金額*\n-$40.00"
        assert first[2] == "*相手*\n<@UBOB>"
        assert first[4] == "*メモ*\ngame"

    def test_row_without_memo_has_four_fields(self, busy_store, formatter):
        entries = formatter.statement(ALICE, 2)
        rows = [block for block in formatter.format_blocks(ALICE, entries) if "fields" in block]
        assert len(rows[1]["fields"]) == 4
