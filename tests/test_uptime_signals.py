"""
Unit tests for uptime_signals.py
"""
from datetime import datetime, timezone

import pytest

import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from conftest import HOOT
from uptime_signals import NOT_FOUND, SOURCE_ERROR, UptimeRecord, build_uptime_record, is_record


class TestBuildUptimeRecord:
    def test_full_payload(self):
        record = build_uptime_record({
            "account": HOOT,
            "alias": "Hoot",
            "uptime_over": {"day": "100", "week": 87.25, "month": 90},
            "score": 93,
            "closing": True,
            "lastVoted": "2026-10-18T10:00:00Z",
            "donation": {"account": HOOT},
        })

        assert record.day == 100.0
        assert record.week == 87.25
        assert record.month == 90.0
        assert record.score == 93.0
        assert record.closing is True
        assert record.last_voted == datetime(2026, 10, 18, 10, 0, tzinfo=timezone.utc)
        assert record.alias == "Hoot"
        assert record.donation_address == HOOT

    def test_minimal_payload(self):
        record = build_uptime_record({"account": HOOT, "uptime_over": {}})

        assert record.week == 0.0
        assert record.score is None
        assert record.last_voted is None
        assert record.closing is False
        assert record.alias is None
        assert record.donation_address is None

    def test_naive_timestamp_is_utc(self):
        record = build_uptime_record({"uptime_over": {}, "lastVoted": "2026-10-18T10:00:00"})
        assert record.last_voted.tzinfo == timezone.utc

    def test_unparseable_timestamp(self):
        record = build_uptime_record({"uptime_over": {}, "lastVoted": "yesterday"})
        assert record.last_voted is None

    def test_closing_must_be_true(self):
        assert build_uptime_record({"uptime_over": {}, "closing": "yes"}).closing is False

    @pytest.mark.parametrize("payload", [None, [], {"account": HOOT}, {"uptime_over": 5}])
    def test_rejects_non_records(self, payload):
        with pytest.raises(ValueError):
            build_uptime_record(payload)


def test_is_record():
    assert is_record(UptimeRecord(account=HOOT, day=1, week=1, month=1))
    assert not is_record(NOT_FOUND)
    assert not is_record(SOURCE_ERROR)
