"""
Tests for the credential anchor and its background notifier.
"""

import logging

import pytest

from trustmesh.anchor import AnchorNotifier, CredentialAnchor
from trustmesh.errors import NotFoundError
from trustmesh.ledger import ReputationLedger
from trustmesh.missions import MissionEngine, MissionResult
from trustmesh.registry import AgentDirectory


@pytest.fixture
def anchor():
    return CredentialAnchor(client_id="client", wallet_address="0xowner")


@pytest.fixture
def notifier(anchor):
    notifier = AnchorNotifier(anchor)
    yield notifier
    notifier.shutdown()


class FailingAnchor(CredentialAnchor):
    def register_agent(self, agent_id, name, wallet_address):
        raise ConnectionError("rpc unavailable")


class TestCredentialAnchor:
    def test_status(self, anchor):
        status = anchor.status()
        assert status["configured"] is True
        assert status["chain_id"] == 11155111
        assert status["network"] == "Sepolia Testnet"
        assert not CredentialAnchor().is_configured()

    def test_register_agent(self, anchor):
        agent = anchor.register_agent("a1", "Scout", "0xabc")
        assert agent.tx_hash.startswith("0x")
        assert anchor.get_agent("a1").wallet_address == "0xabc"

    def test_mint_credential_links_agent(self, anchor):
        anchor.register_agent("a1", "Scout", "0xabc")
        credential = anchor.mint_credential("a1", "bronze", 60)

        assert credential.token_id.startswith("rep-")
        assert anchor.get_agent("a1").credential_id == credential.token_id
        assert anchor.agent_credentials("a1") == [credential]

    def test_update_credential(self, anchor):
        credential = anchor.mint_credential("a1", "bronze", 60)
        updated = anchor.update_credential(credential.token_id, "silver", 220)
        assert anchor.get_credential(credential.token_id).trust_level == "silver"
        assert updated.total_score == 220

        with pytest.raises(NotFoundError):
            anchor.update_credential("rep-missing", "gold", 1)

    def test_escrow_lifecycle(self, anchor):
        escrow = anchor.create_escrow("m1", ["0xa", "0xb"], 10**20)
        assert escrow.status == "active"
        assert escrow.to_dict()["amount_wei"] == str(10**20)

        settled = anchor.settle_escrow("m1", {"0xa": 5 * 10**19})
        assert settled.status == "completed"
        assert settled.to_dict()["rewards"] == {"0xa": str(5 * 10**19)}

    def test_settle_missing_escrow(self, anchor):
        assert anchor.settle_escrow("nope") is None

    def test_verify_ownership(self, anchor):
        anchor.register_agent("a1", "Scout", "0xabc")
        assert anchor.verify_ownership("a1", "0xsig", "hello")
        assert not anchor.verify_ownership("a1", "", "hello")
        assert not anchor.verify_ownership("a2", "0xsig", "hello")

    def test_credential_proof(self, anchor):
        assert anchor.credential_proof("a1") is None

        anchor.register_agent("a1", "Scout", "0xabc")
        assert anchor.credential_proof("a1")["trust_level"] == "unverified"

        anchor.mint_credential("a1", "silver", 250)
        proof = anchor.credential_proof("a1")
        assert proof["trust_level"] == "silver"
        assert proof["wallet_address"] == "0xabc"


class TestAnchorNotifier:
    def test_submit_runs_in_background(self, anchor, notifier):
        notifier.submit("register_agent", "a1", "Scout", "0xabc")
        notifier.drain(timeout=5)
        assert anchor.get_agent("a1") is not None

    def test_failures_logged_not_raised(self, caplog):
        notifier = AnchorNotifier(FailingAnchor())
        with caplog.at_level(logging.WARNING, logger="trustmesh.anchor"):
            future = notifier.submit("register_agent", "a1", "Scout", "0xabc")
            notifier.drain(timeout=5)
            notifier.shutdown()

        assert isinstance(future.exception(), ConnectionError)
        assert "register_agent failed" in caplog.text

    def test_submit_after_shutdown(self, anchor):
        notifier = AnchorNotifier(anchor)
        notifier.shutdown()
        assert notifier.submit("register_agent", "a1", "Scout", "0xabc") is None


class TestAnchorIntegration:
    def test_registration_with_wallet_is_anchored(self, anchor, notifier):
        directory = AgentDirectory(ReputationLedger(db_path=":memory:"), db_path=":memory:", anchor=notifier)
        with_wallet = directory.register("Scout", "bot", wallet_address="0xabc")
        without_wallet = directory.register("Plain", "bot")
        notifier.drain(timeout=5)

        assert anchor.get_agent(with_wallet.id).wallet_address == "0xabc"
        assert anchor.get_agent(without_wallet.id) is None

    def test_failing_anchor_does_not_block_registration(self):
        notifier = AnchorNotifier(FailingAnchor())
        directory = AgentDirectory(ReputationLedger(db_path=":memory:"), db_path=":memory:", anchor=notifier)

        agent = directory.register("Scout", "bot", wallet_address="0xabc")
        notifier.drain(timeout=5)
        notifier.shutdown()
        assert directory.get(agent.id) is not None

    def test_tier_promotion_mints_credential(self, anchor, notifier):
        ledger = ReputationLedger(db_path=":memory:")
        engine = MissionEngine(ledger, db_path=":memory:", anchor=notifier)
        for i in range(2):
            ledger.record_event("worker", f"warmup-{i}", 20, "completion", "v")

        mission = engine.create("creator", "Task", "d", reward=20)
        engine.join(mission.id, "worker", "r")
        engine.start(mission.id, "creator")
        anchor.create_escrow(mission.id, ["0xc", "0xw"], 1000)
        engine.complete(mission.id, "creator", MissionResult(success=True))
        notifier.drain(timeout=5)

        credentials = anchor.agent_credentials("worker")
        assert [c.trust_level for c in credentials] == ["bronze"]
        assert anchor.agent_credentials("creator") == []
        assert anchor.get_escrow(mission.id).status == "completed"

    def test_failed_mission_not_anchored(self, anchor, notifier):
        ledger = ReputationLedger(db_path=":memory:")
        engine = MissionEngine(ledger, db_path=":memory:", anchor=notifier)
        mission = engine.create("creator", "Task", "d")
        engine.start(mission.id, "creator")
        anchor.create_escrow(mission.id, ["0xc"], 1000)
        engine.complete(mission.id, "creator", MissionResult(success=False))
        notifier.drain(timeout=5)

        assert anchor.get_escrow(mission.id).status == "active"
