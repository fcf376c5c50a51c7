"""
Tests for the TrustMesh REST API.
"""

import pytest
from fastapi.testclient import TestClient

from trustmesh import Settings, TrustMesh
from trustmesh.api import create_app


@pytest.fixture
def mesh():
    mesh = TrustMesh(Settings(db_path=":memory:"))
    yield mesh
    mesh.close()


@pytest.fixture
def client(mesh):
    """Create test client."""
    return TestClient(create_app(mesh))


def register(client, name, capabilities=None, **extra):
    response = client.post("/agents", json={
        "name": name,
        "description": f"{name} agent",
        "capabilities": capabilities or [],
        **extra,
    })
    assert response.status_code == 200
    return response.json()


def create_mission(client, creator_id, **extra):
    body = {"creator_agent_id": creator_id, "title": "Research", "description": "Survey"}
    body.update(extra)
    response = client.post("/missions", json=body)
    assert response.status_code == 200
    return response.json()


class TestHealth:
    def test_health(self, client):
        register(client, "Bot")
        response = client.get("/health")
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "ok"
        assert data["agents"] == 1
        assert data["active_missions"] == 0


class TestAgentEndpoints:
    def test_register_agent(self, client):
        data = register(client, "Scout", ["search", "summarize"], endpoint="http://scout")
        assert data["name"] == "Scout"
        assert data["capabilities"] == ["search", "summarize"]
        assert data["endpoint"] == "http://scout"

    def test_register_validation_error(self, client):
        response = client.post("/agents", json={"name": "", "description": "x"})
        assert response.status_code == 400
        assert response.json()["error"]["kind"] == "validation_error"

    def test_list_agents(self, client):
        register(client, "A")
        register(client, "B")
        data = client.get("/agents").json()
        assert data["count"] == 2
        assert [a["name"] for a in data["agents"]] == ["A", "B"]

    def test_list_online_agents(self, client):
        register(client, "A")
        data = client.get("/agents", params={"online_only": "true"}).json()
        assert data["count"] == 1

    def test_get_agent(self, client):
        agent = register(client, "Scout")
        response = client.get(f"/agents/{agent['id']}")
        assert response.status_code == 200
        data = response.json()
        assert data["agent"]["id"] == agent["id"]
        assert data["reputation"]["trust_level"] == "unverified"
        assert data["online"] is True

    def test_get_missing_agent(self, client):
        response = client.get("/agents/nonexistent")
        assert response.status_code == 404
        assert response.json()["error"]["kind"] == "not_found"

    def test_update_agent(self, client):
        agent = register(client, "Scout", ["search"])
        response = client.patch(f"/agents/{agent['id']}", json={"capabilities": ["search", "code"]})
        assert response.status_code == 200
        assert response.json()["capabilities"] == ["code", "search"]
        assert response.json()["name"] == "Scout"

    def test_heartbeat(self, client):
        agent = register(client, "Scout")
        assert client.post(f"/agents/{agent['id']}/heartbeat").json()["known"] is True
        assert client.post("/agents/ghost/heartbeat").json()["known"] is False

    def test_discover(self, client, mesh):
        partial = register(client, "Partial", ["a"])
        full = register(client, "Full", ["a", "b"])
        register(client, "Unrelated", ["z"])

        response = client.get("/agents/discover", params={"capability": ["a", "b"]})
        assert response.status_code == 200
        data = response.json()
        assert data["count"] == 2
        assert [r["agent"]["id"] for r in data["results"]] == [full["id"], partial["id"]]
        assert [r["match_score"] for r in data["results"]] == [1.0, 0.5]

    def test_discover_min_trust(self, client, mesh):
        trusted = register(client, "Trusted", ["a"])
        register(client, "New", ["a"])
        for i in range(3):
            mesh.ledger.record_event(trusted["id"], f"m{i}", 20, "completion", "v")

        data = client.get("/agents/discover", params={"capability": "a", "min_trust_level": "bronze"}).json()
        assert [r["agent"]["id"] for r in data["results"]] == [trusted["id"]]

    def test_discover_bad_trust_level(self, client):
        response = client.get("/agents/discover", params={"min_trust_level": "legendary"})
        assert response.status_code == 422


class TestReputationEndpoints:
    def test_reputation_zero_state(self, client):
        data = client.get("/agents/unknown/reputation").json()
        assert data["reputation"]["total_score"] == 0
        assert data["reputation"]["last_active"] is None
        assert data["history"] == []

    def test_contribution_and_history(self, client):
        response = client.post("/contributions", json={
            "agent_id": "a1",
            "score": 30,
            "category": "collaboration",
            "verified_by": "a2",
        })
        assert response.status_code == 200
        assert response.json()["mission_id"].startswith("contribution-")

        history = client.get("/agents/a1/history").json()
        assert history["count"] == 1
        assert history["events"][0]["score"] == 30

    def test_verify_trust(self, client):
        data = client.get("/agents/a1/trust", params={"min_level": "unverified"}).json()
        assert data["verified"] is True
        data = client.get("/agents/a1/trust", params={"min_level": "bronze"}).json()
        assert data["verified"] is False
        assert data["current_reputation"]["trust_level"] == "unverified"

    def test_leaderboard(self, client, mesh):
        for agent_id, score in [("low", 10), ("high", 200), ("mid", 50)]:
            mesh.ledger.record_event(agent_id, "m1", score, "completion", "v")

        data = client.get("/leaderboard", params={"limit": 2}).json()
        assert [r["agent_id"] for r in data["leaderboard"]] == ["high", "mid"]


class TestMissionEndpoints:
    def test_full_lifecycle(self, client):
        creator = register(client, "Lead", ["planning"])
        worker = register(client, "Worker", ["search"])
        mission = create_mission(client, creator["id"], required_capabilities=["search"], reward=150)
        assert mission["status"] == "open"

        joined = client.post(f"/missions/{mission['id']}/join", json={"agent_id": worker["id"], "role": "researcher"})
        assert joined.status_code == 200
        assert len(joined.json()["participants"]) == 2

        rated = client.post(f"/missions/{mission['id']}/rate", json={
            "rater_agent_id": creator["id"],
            "target_agent_id": worker["id"],
            "rating": 5,
        })
        assert rated.status_code == 200

        started = client.post(f"/missions/{mission['id']}/start", json={"agent_id": creator["id"]})
        assert started.json()["status"] == "in_progress"

        completed = client.post(f"/missions/{mission['id']}/complete", json={
            "agent_id": creator["id"],
            "success": True,
            "summary": "done",
        })
        assert completed.status_code == 200
        assert completed.json()["status"] == "completed"

        rep = client.get(f"/agents/{worker['id']}/reputation").json()["reputation"]
        assert rep["total_score"] == 250
        assert rep["avg_quality"] == 100.0

    def test_error_statuses(self, client):
        creator = register(client, "Lead")
        worker = register(client, "Worker")
        mission = create_mission(client, creator["id"])

        response = client.post(f"/missions/{mission['id']}/start", json={"agent_id": worker["id"]})
        assert response.status_code == 403
        assert response.json()["error"]["kind"] == "authorization_error"

        client.post(f"/missions/{mission['id']}/join", json={"agent_id": worker["id"]})
        response = client.post(f"/missions/{mission['id']}/join", json={"agent_id": worker["id"]})
        assert response.status_code == 409
        assert response.json()["error"]["kind"] == "duplicate_participant"

        response = client.post(f"/missions/{mission['id']}/complete", json={
            "agent_id": creator["id"], "success": True,
        })
        assert response.status_code == 409
        assert response.json()["error"]["kind"] == "invalid_state"

        response = client.post("/missions/missing/join", json={"agent_id": worker["id"]})
        assert response.status_code == 404

    def test_trust_gate(self, client):
        creator = register(client, "Lead")
        response = client.post("/missions", json={
            "creator_agent_id": creator["id"],
            "title": "Gated",
            "min_trust_level": "gold",
        })
        assert response.status_code == 403
        assert response.json()["error"]["kind"] == "trust_error"

    def test_list_and_find(self, client):
        creator = register(client, "Lead")
        search = create_mission(client, creator["id"], title="Search", required_capabilities=["search"])
        code = create_mission(client, creator["id"], title="Code", required_capabilities=["code"], reward=300)
        client.post(f"/missions/{code['id']}/cancel", json={"agent_id": creator["id"]})

        assert client.get("/missions").json()["count"] == 2
        active = client.get("/missions", params={"active_only": "true"}).json()
        assert [m["id"] for m in active["missions"]] == [search["id"]]

        mine = client.get("/missions", params={"agent_id": creator["id"]}).json()
        assert mine["count"] == 2

        found = client.get("/missions/open", params={"capability": ["search", "code"]}).json()
        assert [m["id"] for m in found["missions"]] == [search["id"]]

    def test_get_mission(self, client):
        creator = register(client, "Lead")
        mission = create_mission(client, creator["id"])
        assert client.get(f"/missions/{mission['id']}").json()["title"] == "Research"
        assert client.get("/missions/missing").status_code == 404

    def test_contribute(self, client):
        creator = register(client, "Lead")
        mission = create_mission(client, creator["id"])
        response = client.post(f"/missions/{mission['id']}/contribute", json={
            "agent_id": creator["id"],
            "contribution": "Drafted outline",
        })
        assert response.status_code == 200
        assert response.json()["participants"][0]["contribution"] == "Drafted outline"


class TestAnchorEndpoints:
    def test_status(self, client):
        data = client.get("/anchor/status").json()
        assert data["configured"] is False
        assert data["chain_id"] == 11155111

    def test_register_and_proof(self, client):
        response = client.post("/anchor/agents", json={"agent_id": "a1", "name": "Scout", "wallet_address": "0xabc"})
        assert response.status_code == 200

        client.post("/anchor/credentials", json={"agent_id": "a1", "trust_level": "silver", "total_score": 250})
        data = client.get("/anchor/agents/a1").json()
        assert data["agent"]["wallet_address"] == "0xabc"
        assert len(data["credentials"]) == 1

        proof = client.get("/anchor/agents/a1/proof").json()
        assert proof["trust_level"] == "silver"
        assert client.get("/anchor/agents/ghost/proof").status_code == 404

    def test_escrow(self, client):
        response = client.post("/anchor/escrows", json={
            "mission_id": "m1",
            "participants": ["0xa"],
            "amount_wei": 1000,
        })
        assert response.json()["amount_wei"] == "1000"

        settled = client.post("/anchor/escrows/m1/settle", json={"rewards": {"0xa": 1000}})
        assert settled.json()["status"] == "completed"
        assert client.post("/anchor/escrows/missing/settle", json={}).status_code == 404
