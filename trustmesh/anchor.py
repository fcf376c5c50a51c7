"""
Credential anchor - best-effort on-chain mirror of agent credentials.

Simulates the blockchain collaborator: wallet registration, reputation
credentials (NFT-style tokens) and mission escrows. Transaction hashes are
random references; nothing here is a source of truth for trust decisions.

The ledger and mission engine only reach the anchor through
``AnchorNotifier``, which runs calls in the background and logs failures
instead of raising them, so anchor problems never block or roll back a
state change.
"""

import logging
import threading
import uuid
from concurrent.futures import Future, ThreadPoolExecutor, wait
from dataclasses import dataclass, field
from typing import Optional

from .clock import utcnow
from .errors import NotFoundError

logger = logging.getLogger(__name__)


def _tx_hash() -> str:
    return "0x" + uuid.uuid4().hex


@dataclass
class OnChainAgent:
    id: str
    name: str
    wallet_address: str
    chain_id: int
    registered_at: str = field(default_factory=lambda: utcnow().isoformat())
    credential_id: Optional[str] = None
    tx_hash: str = field(default_factory=_tx_hash)

    def to_dict(self) -> dict:
        return dict(self.__dict__)


@dataclass
class ReputationCredential:
    token_id: str
    agent_id: str
    trust_level: str
    total_score: int
    minted_at: str = field(default_factory=lambda: utcnow().isoformat())
    tx_hash: str = field(default_factory=_tx_hash)

    def to_dict(self) -> dict:
        return dict(self.__dict__)


@dataclass
class MissionEscrow:
    mission_id: str
    amount_wei: int
    participants: list[str]
    status: str = "active"  # active, completed, disputed
    rewards: dict = field(default_factory=dict)
    tx_hash: str = field(default_factory=_tx_hash)

    def to_dict(self) -> dict:
        data = dict(self.__dict__)
        # wei amounts overflow JSON numbers in some clients
        data["amount_wei"] = str(self.amount_wei)
        data["rewards"] = {k: str(v) for k, v in self.rewards.items()}
        return data


class CredentialAnchor:
    """In-memory simulation of the on-chain credential registry."""

    def __init__(
        self,
        client_id: Optional[str] = None,
        wallet_address: Optional[str] = None,
        chain_id: int = 11155111,
    ):
        self.client_id = client_id
        self.wallet_address = wallet_address
        self.chain_id = chain_id
        self._lock = threading.Lock()
        self._agents: dict[str, OnChainAgent] = {}
        self._credentials: dict[str, ReputationCredential] = {}
        self._escrows: dict[str, MissionEscrow] = {}

    def is_configured(self) -> bool:
        return self.client_id is not None

    def status(self) -> dict:
        return {
            "configured": self.is_configured(),
            "wallet_address": self.wallet_address,
            "network": "Sepolia Testnet" if self.chain_id == 11155111 else f"chain {self.chain_id}",
            "chain_id": self.chain_id,
        }

    def register_agent(self, agent_id: str, name: str, wallet_address: str) -> OnChainAgent:
        """Register an agent's wallet on chain."""
        agent = OnChainAgent(
            id=agent_id,
            name=name,
            wallet_address=wallet_address,
            chain_id=self.chain_id,
        )
        with self._lock:
            previous = self._agents.get(agent_id)
            if previous is not None:
                agent.credential_id = previous.credential_id
            self._agents[agent_id] = agent
        logger.info("Agent %s registered on chain %s", agent_id, self.chain_id)
        return agent

    def mint_credential(self, agent_id: str, trust_level: str, total_score: int) -> ReputationCredential:
        """Mint a reputation credential marking a trust milestone."""
        credential = ReputationCredential(
            token_id=f"rep-{uuid.uuid4().hex[:8]}",
            agent_id=agent_id,
            trust_level=trust_level,
            total_score=total_score,
        )
        with self._lock:
            self._credentials[credential.token_id] = credential
            if agent_id in self._agents:
                self._agents[agent_id].credential_id = credential.token_id
        logger.info("Credential %s minted for agent %s (%s)", credential.token_id, agent_id, trust_level)
        return credential

    def update_credential(self, token_id: str, trust_level: str, total_score: int) -> ReputationCredential:
        with self._lock:
            credential = self._credentials.get(token_id)
            if credential is None:
                raise NotFoundError(f"Credential {token_id} not found")
            credential.trust_level = trust_level
            credential.total_score = total_score
            credential.tx_hash = _tx_hash()
        return credential

    def create_escrow(self, mission_id: str, participants: list[str], amount_wei: int) -> MissionEscrow:
        escrow = MissionEscrow(
            mission_id=mission_id,
            amount_wei=int(amount_wei),
            participants=list(participants),
        )
        with self._lock:
            self._escrows[mission_id] = escrow
        logger.info("Escrow created for mission %s: %s wei", mission_id, escrow.amount_wei)
        return escrow

    def settle_escrow(self, mission_id: str, rewards: Optional[dict] = None) -> Optional[MissionEscrow]:
        """Mark a mission escrow completed. Returns None if no escrow exists."""
        with self._lock:
            escrow = self._escrows.get(mission_id)
            if escrow is None:
                return None
            escrow.status = "completed"
            escrow.rewards = {k: int(v) for k, v in (rewards or {}).items()}
            escrow.tx_hash = _tx_hash()
        logger.info("Escrow for mission %s settled", mission_id)
        return escrow

    def verify_ownership(self, agent_id: str, signature: str, message: str) -> bool:
        """Simulated signature check: a registered agent and a non-empty signature."""
        with self._lock:
            registered = agent_id in self._agents
        return registered and len(signature) > 0

    def get_agent(self, agent_id: str) -> Optional[OnChainAgent]:
        with self._lock:
            return self._agents.get(agent_id)

    def get_credential(self, token_id: str) -> Optional[ReputationCredential]:
        with self._lock:
            return self._credentials.get(token_id)

    def agent_credentials(self, agent_id: str) -> list[ReputationCredential]:
        with self._lock:
            return [c for c in self._credentials.values() if c.agent_id == agent_id]

    def get_escrow(self, mission_id: str) -> Optional[MissionEscrow]:
        with self._lock:
            return self._escrows.get(mission_id)

    def credential_proof(self, agent_id: str) -> Optional[dict]:
        """Credential summary for cross-chain verification (unsigned simulation)."""
        agent = self.get_agent(agent_id)
        if agent is None:
            return None

        credentials = sorted(self.agent_credentials(agent_id), key=lambda c: c.minted_at)
        latest = credentials[-1] if credentials else None
        return {
            "agent_id": agent_id,
            "wallet_address": agent.wallet_address,
            "trust_level": latest.trust_level if latest else "unverified",
            "timestamp": utcnow().isoformat(),
            "signature": _tx_hash(),
        }


class AnchorNotifier:
    """
    Fire-and-forget dispatcher in front of a ``CredentialAnchor``.

    ``submit`` queues a call and returns immediately. Exceptions raised by
    the anchor are logged at WARNING and dropped.
    """

    def __init__(self, anchor: CredentialAnchor, max_workers: int = 2):
        self.anchor = anchor
        self._executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="trustmesh-anchor")
        self._pending: set[Future] = set()
        self._lock = threading.Lock()

    def submit(self, method: str, *args, **kwargs) -> Optional[Future]:
        """Queue ``anchor.<method>(*args, **kwargs)``."""
        try:
            future = self._executor.submit(getattr(self.anchor, method), *args, **kwargs)
        except RuntimeError as e:
            # executor already shut down
            logger.warning("Anchor call %s not queued: %s", method, e)
            return None

        with self._lock:
            self._pending.add(future)
        future.add_done_callback(lambda f: self._finished(method, f))
        return future

    def drain(self, timeout: Optional[float] = None):
        """Wait for queued anchor calls to finish."""
        with self._lock:
            pending = list(self._pending)
        wait(pending, timeout=timeout)

    def shutdown(self):
        self._executor.shutdown(wait=True)

    def _finished(self, method: str, future: Future):
        with self._lock:
            self._pending.discard(future)
        error = future.exception()
        if error is not None:
            logger.warning("Anchor call %s failed: %s", method, error)
