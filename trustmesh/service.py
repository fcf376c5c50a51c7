"""
TrustMesh service container.

Builds one ledger, directory, mission engine and anchor from ``Settings``
and hands the same instances to every consumer (REST API, MCP tools):

    mesh = TrustMesh(Settings(db_path=":memory:"))
    agent = mesh.directory.register("Scout", "Finds papers", ["search"])
"""

import logging
from datetime import timedelta
from typing import Optional

from .anchor import AnchorNotifier, CredentialAnchor
from .config import Settings
from .ledger import ReputationLedger
from .missions import MissionEngine, MissionPolicy
from .registry import AgentDirectory

logger = logging.getLogger(__name__)


class TrustMesh:
    """Explicitly constructed set of TrustMesh services."""

    def __init__(self, settings: Optional[Settings] = None, anchor: Optional[CredentialAnchor] = None):
        self.settings = settings or Settings()

        self.anchor = anchor or CredentialAnchor(
            client_id=self.settings.anchor_client_id,
            wallet_address=self.settings.anchor_wallet,
            chain_id=self.settings.chain_id,
        )
        self.notifier = AnchorNotifier(self.anchor)

        self.ledger = ReputationLedger(db_path=self.settings.db_path)
        self.directory = AgentDirectory(
            self.ledger,
            db_path=self.settings.db_path,
            online_window=timedelta(seconds=self.settings.online_window_seconds),
            anchor=self.notifier,
        )
        self.missions = MissionEngine(
            self.ledger,
            db_path=self.settings.db_path,
            policy=MissionPolicy(
                quality_points_per_star=self.settings.quality_points_per_star,
                failure_penalty=self.settings.failure_penalty,
            ),
            default_reward=self.settings.default_reward,
            anchor=self.notifier,
        )
        logger.info("TrustMesh ready (db: %s)", self.settings.db_path)

    @classmethod
    def from_env(cls) -> "TrustMesh":
        return cls(Settings.from_env())

    def close(self):
        self.notifier.shutdown()
        for store in (self.missions, self.directory, self.ledger):
            store.close()
