"""
Pytest fixtures for representative monitoring tests.

Fakes stand in for the ledger node, crawler and reputation provider so the
orchestration and classification paths run without network access.
"""

from __future__ import annotations

import os
import sys
import threading
import time
from datetime import datetime, timezone
from decimal import Decimal

import pytest

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from core.reps.errors import SourceTransportError
from core.reps.models import LedgerAccountInfo
from core.reps.storage import MemoryKeyValueStore
from uptime_signals import SOURCE_ERROR

HOOT = "ban_1hootubxy68fhhrctjmaias148tz91tsse3pq1pgmfedsm3cubhobuihqnxd"
BANANO = "ban_1bananobh5rat99qfgt1ptpieie5swmoth87thi74qgbfrij7dcgjiij94xr"
KALIUM = "ban_1ka1ium4pfue3uxtntqsrib8mumxgazsjf58gidh1xeo5te3whsq8z476goo"
BATMAN = "ban_3batmanuenphd7osrez9c45b3uqw9d9u81ne8xa6m43e1py56y9p48ap69zg"

RAW = Decimal(10) ** 29
NOW = datetime(2026, 10, 19, 12, 0, tzinfo=timezone.utc)


class FakeLedger:
    def __init__(self, weights=None, failing=(), delays=None, online=None, quorum=None,
                 online_error=False, quorum_error=False):
        self.weights = weights or {}
        self.failing = set(failing)
        self.delays = delays or {}
        self.online = online
        self.quorum = quorum
        self.online_error = online_error
        self.quorum_error = quorum_error
        self.info_calls = []
        self._lock = threading.Lock()

    def account_info(self, account):
        with self._lock:
            self.info_calls.append(account)
        time.sleep(self.delays.get(account, 0))
        if account in self.failing:
            raise SourceTransportError("rpc", f"account_info failed for {account}")
        return LedgerAccountInfo(
            balance=Decimal(0),
            representative=account,
            weight=self.weights.get(account, Decimal(0)),
            block_count=1,
        )

    def representatives_online(self):
        if self.online_error:
            raise SourceTransportError("rpc", "representatives_online failed")
        return self.online

    def confirmation_quorum(self):
        if self.quorum_error:
            raise SourceTransportError("rpc", "confirmation_quorum failed")
        return self.quorum


class FakeReputation:
    def __init__(self, results=None, failing=()):
        self.results = results or {}
        self.failing = set(failing)
        self.calls = []

    def account_reputation(self, account):
        self.calls.append(account)
        if account in self.failing:
            raise SourceTransportError("ninja", "unreachable")
        return self.results.get(account, SOURCE_ERROR)


class FakeCrawler:
    def __init__(self, reps=None, error=False):
        self.reps = reps
        self.error = error
        self.calls = []

    def representatives(self, min_weight, online_only):
        self.calls.append((min_weight, online_only))
        if self.error:
            raise SourceTransportError("creeper", "unreachable")
        return self.reps


@pytest.fixture
def store():
    return MemoryKeyValueStore()

