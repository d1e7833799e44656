"""Tests for commit message parsing."""
from __future__ import annotations

import pytest

from cycle_digest.parser import classify_status, extract_events, parse_commit

TS = "2026-10-19T08:15:00Z"


class TestManualCommits:
    def test_non_cycle_message_is_manual(self):
        record = parse_commit("Loop adoption: new loop\n\nLonger body here", TS)
        assert record.status == "manual"
        assert record.cycle is None
        assert record.headline == "Loop adoption: new loop"
        assert record.events == ["Loop adoption: new loop"]
        assert record.heartbeat is None
        assert record.balance is None
        assert record.balance_delta is None

    def test_cycle_prefix_must_be_at_start(self):
        record = parse_commit("Fix Cycle 3: idle detection", TS)
        assert record.status == "manual"
        assert record.events == ["Fix Cycle 3: idle detection"]

    def test_fields_are_not_extracted_from_manual_commits(self):
        record = parse_commit("Manual top-up, balance 5,000 sats (+5,000)", TS)
        assert record.status == "manual"
        assert record.balance is None
        assert record.balance_delta is None

    def test_empty_message(self):
        record = parse_commit("", TS)
        assert record.status == "manual"
        assert record.headline == ""
        assert record.events == [""]

    def test_timestamp_is_copied(self):
        assert parse_commit("Update README", TS).timestamp == TS


class TestCycleReports:
    def test_idle_report_with_heartbeat_and_balance(self):
        record = parse_commit("Cycle 7: idle, heartbeat #3, balance 1,200 sats", TS)
        assert record.cycle == 7
        assert record.status == "idle"
        assert record.heartbeat == 3
        assert record.balance == 1200
        assert record.balance_delta is None
        assert record.events == []

    def test_active_report_with_delta(self):
        record = parse_commit(
            "Cycle 8: replied to request, balance 1,500 sats (+300)",
            TS,
        )
        assert record.cycle == 8
        assert record.status == "active"
        assert record.balance == 1500
        assert record.balance_delta == 300
        assert record.events == ["replied to request"]

    def test_negative_delta_with_commas(self):
        record = parse_commit(
            "Cycle 4: paid invoice, balance 1,000 sats (-1,200)",
            TS,
        )
        assert record.balance == 1000
        assert record.balance_delta == -1200
        assert record.events == ["paid invoice"]

    def test_cycle_range_keeps_first_number(self):
        record = parse_commit("Cycle 12-13: idle, heartbeat #40", TS)
        assert record.cycle == 12
        assert record.status == "idle"

    def test_headline_is_first_line_only(self):
        record = parse_commit("Cycle 5: shipped fix\n\nDetails follow", TS)
        assert record.headline == "Cycle 5: shipped fix"

    def test_empty_body_is_active(self):
        record = parse_commit("Cycle 14:", TS)
        assert record.cycle == 14
        assert record.status == "active"
        assert record.events == []

    def test_github_clean_is_routine(self):
        record = parse_commit("Cycle 3: idle, GitHub clean, heartbeat #12", TS)
        assert record.events == []
        assert record.heartbeat == 12

    def test_only_first_heartbeat_is_kept(self):
        record = parse_commit("Cycle 2: heartbeat #5, heartbeat #6", TS)
        assert record.heartbeat == 5
        assert record.events == []

    def test_field_in_prose_is_extracted_and_kept_as_event(self):
        record = parse_commit("Cycle 6: sent heartbeat #4 to relay", TS)
        assert record.heartbeat == 4
        assert record.events == ["sent heartbeat #4 to relay"]

    def test_malformed_balance_does_not_raise(self):
        record = parse_commit("Cycle 15: balance , sats", TS)
        assert record.balance is None
        assert record.events == ["balance", "sats"]

    def test_oversized_balance_is_absent(self):
        record = parse_commit("Cycle 1: balance " + "9" * 5000 + " sats", TS)
        assert record.cycle == 1
        assert record.balance is None

    def test_oversized_delta_and_heartbeat_are_absent(self):
        message = "Cycle 1: heartbeat #" + "7" * 5000 + ", (+" + "1" * 5000 + ")"
        record = parse_commit(message, TS)
        assert record.heartbeat is None
        assert record.balance_delta is None

    def test_oversized_cycle_number_falls_back_to_manual(self):
        message = "Cycle " + "1" * 5000 + ": idle"
        record = parse_commit(message, TS)
        assert record.status == "manual"
        assert record.cycle is None
        assert record.events == [message]

    def test_dotless_i_is_not_a_routine_segment(self):
        record = parse_commit("Cycle 3: ıdle", TS)
        assert record.status == "active"
        assert record.events == ["ıdle"]

    def test_cycle_is_present_for_every_non_manual_status(self):
        messages = [
            "Cycle 1: idle",
            "Cycle 2: relay blocked",
            "Cycle 3: posted update",
        ]
        for message in messages:
            record = parse_commit(message, TS)
            assert record.status != "manual"
            assert record.cycle is not None


class TestClassifyStatus:
    @pytest.mark.parametrize(
        ("body", "expected"),
        [
            ("idle, heartbeat #3", "idle"),
            ("IDLE", "idle"),
            ("send fail, retrying", "error"),
            ("API error on inbox", "error"),
            ("blocked by rate limit", "error"),
            ("replied to 2 messages", "active"),
            ("errors", "active"),
            ("idler loop", "active"),
        ],
    )
    def test_rules(self, body, expected):
        assert classify_status(body) == expected

    def test_idle_wins_over_error_words(self):
        assert classify_status("idle, error retrying") == "idle"
        record = parse_commit("Cycle 5: idle, error retrying", TS)
        assert record.status == "idle"
        assert record.events == ["error retrying"]


class TestExtractEvents:
    def test_routine_segments_are_dropped(self):
        body = "idle, heartbeat #9, balance 800 sats (-100), GitHub clean"
        assert extract_events(body) == []

    def test_order_and_duplicates_are_preserved(self):
        body = "checked inbox, replied, checked inbox"
        assert extract_events(body) == ["checked inbox", "replied", "checked inbox"]

    def test_empty_segments_are_skipped(self):
        assert extract_events("a, , b,") == ["a", "b"]
