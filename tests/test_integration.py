"""
Integration tests: full agent collaboration flows through the service container.
"""

import pytest

from trustmesh import (
    AuthorizationError,
    MissionResult,
    MissionStatus,
    ReputationCategory,
    Settings,
    TrustError,
    TrustLevel,
    TrustMesh,
)


@pytest.fixture
def mesh(tmp_path):
    mesh = TrustMesh(Settings(db_path=str(tmp_path / "mesh.db")))
    yield mesh
    mesh.close()


class TestMissionScenario:
    def test_two_agent_mission(self, mesh):
        """Register, collaborate, complete, and check the resulting ranking."""
        a = mesh.directory.register("Planner", "Plans research", ["planning", "search"])
        b = mesh.directory.register("Analyst", "Analyses data", ["analysis", "search"])

        mission = mesh.missions.create(a.id, "Market study", "Size the market", ["search"], reward=150)
        mesh.missions.join(mission.id, b.id, "analyst")
        with pytest.raises(AuthorizationError):
            mesh.missions.start(mission.id, b.id)
        mesh.missions.start(mission.id, a.id)
        completed = mesh.missions.complete(mission.id, a.id, MissionResult(
            success=True,
            summary="Report delivered",
            participant_scores={a.id: 150, b.id: 180},
        ))

        assert completed.status == MissionStatus.COMPLETED

        completion_scores = sorted(
            e.score
            for agent in (a, b)
            for e in mesh.ledger.get_history(agent.id)
            if e.mission_id == mission.id and e.category == ReputationCategory.COMPLETION
        )
        assert completion_scores == [150, 180]

        rep_a = mesh.ledger.get_reputation(a.id)
        rep_b = mesh.ledger.get_reputation(b.id)
        assert rep_a.total_score == 150
        assert rep_b.total_score == 180
        assert rep_b.completed_missions == 1
        assert rep_b.trust_level == TrustLevel.UNVERIFIED

        results = mesh.directory.discover(["search"])
        assert [r.agent.id for r in results] == [a.id, b.id]
        assert all(r.match_score == 1.0 for r in results)

        partial = mesh.directory.discover(["search", "design"])
        assert [r.agent.id for r in partial] == [b.id, a.id]
        assert partial[0].match_score == pytest.approx(0.68)
        assert partial[1].match_score == pytest.approx(0.65)

        board = mesh.ledger.get_leaderboard()
        assert [r.agent_id for r in board] == [b.id, a.id]

        assert [m.id for m in mesh.missions.list_for_agent(b.id)] == [mission.id]
        assert mesh.missions.list_active() == []

    def test_earning_access_to_gated_missions(self, mesh):
        """An agent climbs to bronze and then qualifies for gated work."""
        lead = mesh.directory.register("Lead", "Coordinates", ["planning"])
        worker = mesh.directory.register("Worker", "Does the work", ["search"])

        for i in range(3):
            mission = mesh.missions.create(lead.id, f"Warmup {i}", "small task", reward=20)
            mesh.missions.join(mission.id, worker.id, "contributor")
            mesh.missions.start(mission.id, lead.id)
            mesh.missions.complete(mission.id, lead.id, MissionResult(success=True))

        assert mesh.ledger.get_reputation(worker.id).trust_level == TrustLevel.BRONZE
        assert mesh.ledger.get_reputation(lead.id).trust_level == TrustLevel.BRONZE

        gated = mesh.missions.create(lead.id, "Gated", "needs bronze", min_trust_level="bronze")
        newcomer = mesh.directory.register("Newcomer", "Just arrived", ["search"])
        with pytest.raises(TrustError):
            mesh.missions.join(gated.id, newcomer.id, "contributor")
        mesh.missions.join(gated.id, worker.id, "contributor")

        trusted = mesh.directory.discover(["search"], min_trust_level="bronze")
        assert [r.agent.id for r in trusted] == [worker.id]

    def test_state_survives_restart(self, tmp_path):
        settings = Settings(db_path=str(tmp_path / "restart.db"))
        mesh = TrustMesh(settings)
        agent = mesh.directory.register("Bot", "bot", ["x"])
        mission = mesh.missions.create(agent.id, "Task", "d")
        mesh.missions.start(mission.id, agent.id)
        mesh.close()

        mesh = TrustMesh(settings)
        assert mesh.missions.get(mission.id).status == MissionStatus.IN_PROGRESS
        mesh.missions.complete(mission.id, agent.id, MissionResult(success=True))
        assert mesh.ledger.get_reputation(agent.id).total_score == 100
        mesh.close()
