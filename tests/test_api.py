"""Tests for the REST API: routing, caller identity and error mapping."""

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

import pytest
from fastapi.testclient import TestClient

from timevault.api.app import create_app
from timevault.api.ledger_manager import LedgerManager
from timevault.config import DAY_SECONDS, WEI_PER_COIN, LedgerConfig
from timevault.systems.clock import ManualClock

ALICE = {"X-Caller": "0xalice"}
BOB = {"X-Caller": "0xbob"}
ORACLE = {"X-Caller": "0xoracle"}
ADMIN = {"X-Caller": "0xadmin"}


@pytest.fixture
def clock():
    return ManualClock()


@pytest.fixture
def client(clock):
    manager = LedgerManager(LedgerConfig(beneficiary="0xcharity"), clock=clock)
    with TestClient(create_app(manager=manager)) as c:
        for who in ("0xalice", "0xbob"):
            c.post(f"/api/v1/accounts/{who}/fund", json={"amount": 10 * WEI_PER_COIN}, headers=ADMIN)
        yield c


def _create(client, clock, stake=WEI_PER_COIN, headers=ALICE):
    resp = client.post(
        "/api/v1/goals",
        json={"deadline": clock() + 7 * DAY_SECONDS, "category": 3,
              "description": "Run 50km", "stake": stake},
        headers=headers,
    )
    assert resp.status_code == 201, resp.text
    return resp.json()["goal_id"]


class TestGoalsApi:

    def test_create_and_read(self, client, clock):
        gid = _create(client, clock)
        goal = client.get(f"/api/v1/goals/{gid}").json()
        assert goal["owner"] == "0xalice"
        assert goal["status"] == "ACTIVE"
        assert goal["category"] == "FITNESS"
        assert goal["stake_amount"] == WEI_PER_COIN
        assert client.get("/api/v1/users/0xalice/goals").json() == [gid]

    def test_missing_caller_header(self, client, clock):
        resp = client.post("/api/v1/goals", json={
            "deadline": clock() + DAY_SECONDS, "category": 0, "description": "x", "stake": WEI_PER_COIN,
        })
        assert resp.status_code == 401

    def test_unknown_goal_is_404(self, client):
        resp = client.get("/api/v1/goals/99")
        assert resp.status_code == 404
        assert resp.json()["error"] == "GoalNotFoundError"

    def test_validation_error_is_422(self, client, clock):
        resp = client.post(
            "/api/v1/goals",
            json={"deadline": clock() - 1, "category": 0, "description": "late", "stake": WEI_PER_COIN},
            headers=ALICE,
        )
        assert resp.status_code == 422
        assert resp.json()["error"] == "LedgerValidationError"

    def test_insufficient_funds_is_402(self, client, clock):
        resp = client.post(
            "/api/v1/goals",
            json={"deadline": clock() + DAY_SECONDS, "category": 0, "description": "big", "stake": 1000 * WEI_PER_COIN},
            headers=ALICE,
        )
        assert resp.status_code == 402
        assert resp.json()["error"] == "InsufficientFundsError"

    def test_proof_then_full_completion(self, client, clock):
        gid = _create(client, clock)
        assert client.post(f"/api/v1/goals/{gid}/proof", json={"proof_reference": "QmProof"},
                           headers=ALICE).status_code == 200
        resp = client.post(f"/api/v1/goals/{gid}/score", json={"score": 88, "reason": "clear"}, headers=ORACLE)
        assert resp.json() == {"goal_id": gid, "status": "COMPLETED"}

        streak = client.get("/api/v1/users/0xalice/streak").json()
        assert streak == {"owner": "0xalice", "current": 1, "highest": 1}

        resp = client.post(f"/api/v1/goals/{gid}/withdraw", headers=ALICE)
        assert resp.json() == {"goal_id": gid, "amount": WEI_PER_COIN}
        assert client.post(f"/api/v1/goals/{gid}/withdraw", headers=ALICE).status_code == 409

    def test_non_owner_proof_is_403(self, client, clock):
        gid = _create(client, clock)
        resp = client.post(f"/api/v1/goals/{gid}/proof", json={"proof_reference": "QmX"}, headers=BOB)
        assert resp.status_code == 403


class TestOracleApi:

    def test_non_oracle_score_is_403(self, client, clock):
        gid = _create(client, clock)
        resp = client.post(f"/api/v1/goals/{gid}/score", json={"score": 90}, headers=BOB)
        assert resp.status_code == 403
        assert client.get(f"/api/v1/goals/{gid}").json()["scored"] is False

    def test_out_of_range_score_is_422(self, client, clock):
        gid = _create(client, clock)
        resp = client.post(f"/api/v1/goals/{gid}/score", json={"score": 101}, headers=ORACLE)
        assert resp.status_code == 422

    def test_binary_verdict_fail_donates(self, client, clock):
        gid = _create(client, clock, stake=2 * WEI_PER_COIN)
        resp = client.post(f"/api/v1/goals/{gid}/verdict", json={"passed": False}, headers=ORACLE)
        assert resp.json()["status"] == "FAILED"
        assert client.get("/api/v1/accounts/0xcharity").json()["balance"] == WEI_PER_COIN

    def test_next_nonce(self, client, clock):
        gid = _create(client, clock)
        assert client.get(f"/api/v1/goals/{gid}/nonce").json() == {"goal_id": gid, "next_nonce": 1}


class TestVotesApi:

    def test_vote_flow(self, client, clock):
        gid = _create(client, clock)
        assert client.get(f"/api/v1/goals/{gid}/votes").status_code == 404
        client.post(f"/api/v1/goals/{gid}/score", json={"score": 50}, headers=ORACLE)

        assert client.post(f"/api/v1/goals/{gid}/votes", json={"support": True}, headers=BOB).status_code == 200
        assert client.post(f"/api/v1/goals/{gid}/votes", json={"support": True}, headers=BOB).status_code == 409

        vote = client.get(f"/api/v1/goals/{gid}/votes").json()
        assert vote["yes_count"] == 1
        assert vote["voters"] == ["0xbob"]

        resp = client.post(f"/api/v1/goals/{gid}/votes/resolve", headers=BOB)
        assert resp.json() == {"goal_id": gid, "outcome": True, "status": "COMPLETED"}


class TestBadgesApi:

    def test_holdings_and_soulbound_transfer(self, client, clock):
        gid = _create(client, clock)
        client.post(f"/api/v1/goals/{gid}/score", json={"score": 95}, headers=ORACLE)

        holdings = client.get("/api/v1/users/0xalice/badges").json()
        assert holdings["balance"] == 1
        assert holdings["by_category"]["FITNESS"] == 1
        badge_id = holdings["badges"][0]["badge_id"]
        assert client.get(f"/api/v1/badges/{badge_id}").json()["holder"] == "0xalice"

        resp = client.post(f"/api/v1/badges/{badge_id}/transfer", json={"to": "0xbob"}, headers=ALICE)
        assert resp.status_code == 403
        assert resp.json()["error"] == "SoulboundError"

        assert client.post(f"/api/v1/badges/{badge_id}/burn", headers=BOB).status_code == 403
        assert client.post(f"/api/v1/badges/{badge_id}/burn", headers=ALICE).status_code == 200
        assert client.get("/api/v1/users/0xalice/badges").json()["balance"] == 0


class TestAdminApi:

    def test_admin_only(self, client):
        assert client.put("/api/v1/admin/min-stake", json={"value": 5}, headers=BOB).status_code == 403
        assert client.put("/api/v1/admin/min-stake", json={"value": 5}, headers=ADMIN).status_code == 200
        assert client.get("/api/v1/config").json()["min_stake"] == 5

    def test_share_out_of_bounds(self, client):
        resp = client.put("/api/v1/admin/beneficiary-share", json={"value": 10_001}, headers=ADMIN)
        assert resp.status_code == 422

    def test_oracle_rotation(self, client, clock):
        gid = _create(client, clock)
        client.put("/api/v1/admin/oracle", json={"oracle": "0xoracle2"}, headers=ADMIN)
        assert client.post(f"/api/v1/goals/{gid}/score", json={"score": 90}, headers=ORACLE).status_code == 403
        resp = client.post(f"/api/v1/goals/{gid}/score", json={"score": 90}, headers={"X-Caller": "0xoracle2"})
        assert resp.status_code == 200

    def test_badge_registry_toggle(self, client, clock):
        client.put("/api/v1/admin/badge-registry", json={"enabled": False}, headers=ADMIN)
        assert client.get("/api/v1/config").json()["badge_registry"] is None
        gid = _create(client, clock)
        client.post(f"/api/v1/goals/{gid}/score", json={"score": 90}, headers=ORACLE)
        assert client.get("/api/v1/users/0xalice/badges").json()["balance"] == 0


class TestStateApi:

    def test_events_feed_resumes(self, client, clock):
        gid = _create(client, clock)
        first = client.get("/api/v1/events").json()
        assert [e["kind"] for e in first["events"]] == ["GOAL_CREATED"]

        client.post(f"/api/v1/goals/{gid}/proof", json={"proof_reference": "QmP"}, headers=ALICE)
        more = client.get("/api/v1/events", params={"since": first["next_seq"]}).json()
        assert [e["kind"] for e in more["events"]] == ["PROOF_SUBMITTED"]
        assert more["events"][0]["data"]["proof_reference"] == "QmP"

    def test_events_kind_filter(self, client, clock):
        _create(client, clock)
        _create(client, clock)
        resp = client.get("/api/v1/events", params={"kind": "goal_created"}).json()
        assert len(resp["events"]) == 2
        assert client.get("/api/v1/events", params={"kind": "NOPE"}).status_code == 422

    def test_stats_accounting(self, client, clock):
        gid = _create(client, clock, stake=2 * WEI_PER_COIN)
        client.post(f"/api/v1/goals/{gid}/verdict", json={"passed": False}, headers=ORACLE)
        stats = client.get("/api/v1/stats").json()
        assert stats["goal_count"] == 1
        assert stats["goals_by_status"]["FAILED"] == 1
        assert stats["total_donated"] == WEI_PER_COIN
        assert stats["total_stranded"] == WEI_PER_COIN
        assert stats["total_staked"] == 2 * WEI_PER_COIN
        assert stats["custody_balance"] == stats["total_staked"] - stats["total_donated"]
        assert len(stats["fingerprint"]) == 16

    def test_config(self, client):
        cfg = client.get("/api/v1/config").json()
        assert cfg["admission_mode"] == "AUTHORIZED_CALLER"
        assert cfg["pass_threshold"] == 75
        assert cfg["fail_threshold"] == 40
        assert cfg["beneficiary"] == "0xcharity"
