"""
API tests for main.py

The session is replaced with one built from in-memory fakes, so no
ledger node, crawler or reputation provider is contacted.
"""
import json
from decimal import Decimal

import pytest
from fastapi.testclient import TestClient

import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import main
from conftest import BANANO, HOOT, KALIUM, NOW, RAW, FakeLedger, FakeReputation
from core.reps.known_list import DEFAULT_STORE_KEY, KnownListManager
from core.reps.models import KnownEntry
from core.reps.orchestrator import ReputationSourceOrchestrator
from core.reps.session import RepresentativeSession
from uptime_signals import NOT_FOUND, UptimeRecord


@pytest.fixture
def ledger():
    return FakeLedger(
        weights={HOOT: 120000 * RAW, KALIUM: 1000 * RAW},
        online={"representatives": [HOOT, KALIUM]},
        quorum={"online_stake_total": str(1000000 * RAW)},
    )


@pytest.fixture
def client(monkeypatch, store, ledger):
    reputation = FakeReputation(results={
        HOOT: UptimeRecord(account=HOOT, day=99, week=99, month=99),
        KALIUM: UptimeRecord(account=KALIUM, day=99, week=99, month=99),
        BANANO: NOT_FOUND,
    })
    session = RepresentativeSession(
        orchestrator=ReputationSourceOrchestrator(ledger, reputation, max_workers=2),
        known_list=KnownListManager(store, defaults=[KnownEntry(id=KALIUM, name="Kalium", trusted=True)]),
        clock=lambda: NOW,
    )
    monkeypatch.setattr(main, "_session", session)
    return TestClient(main.app)


def _accounts(*reps):
    return {"accounts": [
        {"id": f"wallet_{i}", "balance": str(Decimal(5) * RAW), "representative": rep}
        for i, rep in enumerate(reps)
    ]}


class TestInfoRoutes:
    def test_root(self, client):
        response = client.get("/")
        assert response.status_code == 200
        assert response.json()["status"] == "ok"

    def test_health(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json()["services"]["api"] == "operational"


class TestOverview:
    """Test overview and change detection routes"""

    def test_overview(self, client):
        response = client.post("/representatives/overview", json=_accounts(HOOT, KALIUM, HOOT))

        assert response.status_code == 200
        data = response.json()
        assert [r["id"] for r in data] == [HOOT, KALIUM]
        assert data[0]["status_text"] == "alert"
        assert data[0]["status"]["very_high_weight"] is True
        assert len(data[0]["accounts"]) == 2
        assert data[1]["status_text"] == "trusted"
        assert data[1]["label"] == "Kalium"

    def test_changeable(self, client):
        response = client.post("/representatives/changeable", json=_accounts(HOOT, KALIUM, BANANO))

        assert response.status_code == 200
        assert [r["id"] for r in response.json()] == [HOOT, BANANO]

        cached = client.get("/representatives/changeable")
        assert [r["id"] for r in cached.json()] == [HOOT, BANANO]

    def test_ledger_failure_is_503(self, client, ledger):
        ledger.failing.add(HOOT)
        response = client.post("/representatives/overview", json=_accounts(HOOT))
        assert response.status_code == 503

    def test_invalid_body(self, client):
        response = client.post("/representatives/overview", json={"wallets": []})
        assert response.status_code == 422


class TestKnownList:
    """Test known-representative management routes"""

    def test_list(self, client):
        response = client.get("/representatives/known")
        assert response.status_code == 200
        assert response.json() == [{"id": KALIUM, "name": "Kalium", "trusted": True, "warn": False}]

    def test_save_and_sorted(self, client, store):
        response = client.post("/representatives/known", json={"id": HOOT.upper(), "name": " Hoot ", "warn": True})

        assert response.status_code == 200
        assert response.json()["id"] == HOOT
        assert response.json()["name"] == "Hoot"
        assert store.get(DEFAULT_STORE_KEY) is not None

        ids = [r["id"] for r in client.get("/representatives/known", params={"sorted": "true"}).json()]
        assert ids == [KALIUM, HOOT]

    def test_rename_same_entry_allowed(self, client):
        response = client.post("/representatives/known", json={"id": KALIUM, "name": "kalium", "trusted": False})
        assert response.status_code == 200

    def test_duplicate_name_conflict(self, client):
        response = client.post("/representatives/known", json={"id": HOOT, "name": "KALIUM"})
        assert response.status_code == 409

    def test_invalid_address(self, client):
        response = client.post("/representatives/known", json={"id": "ban_nope", "name": "Nope"})
        assert response.status_code == 422

    def test_delete(self, client):
        assert client.delete(f"/representatives/known/{KALIUM}").status_code == 200
        assert client.get("/representatives/known").json() == []
        assert client.delete(f"/representatives/known/{KALIUM}").status_code == 404

    def test_reset(self, client):
        client.post("/representatives/known", json={"id": HOOT, "name": "Hoot"})

        response = client.post("/representatives/known/reset")

        assert response.status_code == 200
        assert [r["id"] for r in response.json()] == [KALIUM]

    def test_corrupted_store_is_500(self, client, store):
        store.set(DEFAULT_STORE_KEY, "{broken")
        response = client.get("/representatives/known")
        assert response.status_code == 500


class TestStartup:
    def test_startup_migrates_legacy_prefixes(self, client, store):
        store.set(DEFAULT_STORE_KEY, json.dumps([{"id": HOOT.replace("ban_", "xrb_"), "name": "Hoot"}]))

        with TestClient(main.app) as started:
            ids = [r["id"] for r in started.get("/representatives/known").json()]

        assert ids == [HOOT]
