"""
TrustMesh MCP tools.

Each tool maps one-to-one onto a ledger, directory, mission or anchor
operation and returns its result as JSON text. Domain errors come back as
``"Error: <message>"`` so the calling model can read and react to them.
"""

import json
import logging
from typing import Any, Callable, Dict, List, Optional

from ..errors import NotFoundError, TrustMeshError
from ..missions import MissionResult
from ..service import TrustMesh

logger = logging.getLogger(__name__)


def _dumps(result: Any) -> str:
    if hasattr(result, "to_dict"):
        result = result.to_dict()
    elif isinstance(result, list):
        result = [r.to_dict() if hasattr(r, "to_dict") else r for r in result]
    return json.dumps(result, indent=2, default=str)


class TrustMeshTools:
    """Tool implementations bound to one TrustMesh instance."""

    TOOL_NAMES = [
        # Agent directory
        "register_agent",
        "discover_agents",
        "get_agent_profile",
        # Missions
        "create_mission",
        "find_missions",
        "join_mission",
        "start_mission",
        "complete_mission",
        "rate_participant",
        "cancel_mission",
        # Reputation
        "get_reputation",
        "get_leaderboard",
        "verify_trust",
        "record_contribution",
        # Credential anchor
        "register_agent_onchain",
        "mint_reputation_nft",
        "create_mission_escrow",
        "complete_mission_escrow",
        "get_onchain_agent",
        "generate_credential_proof",
        "get_blockchain_status",
    ]

    def __init__(self, mesh: TrustMesh):
        self.mesh = mesh

    def tools(self) -> Dict[str, Callable[..., Any]]:
        return {name: getattr(self, name) for name in self.TOOL_NAMES}

    def call(self, name: str, arguments: Optional[Dict[str, Any]] = None) -> str:
        """
        Dispatch a tool call by name.

        Returns:
            JSON text of the result, or "Error: ..." on failure
        """
        if name not in self.TOOL_NAMES:
            return f"Error: Unknown tool: {name}"
        try:
            result = getattr(self, name)(**(arguments or {}))
        except TrustMeshError as e:
            logger.info("Tool %s failed: %s", name, e.message)
            return f"Error: {e.message}"
        except TypeError as e:
            return f"Error: Invalid arguments for {name}: {e}"
        return _dumps(result)

    # ==================== Agent directory ====================

    def register_agent(
        self,
        name: str,
        description: str,
        capabilities: List[str],
        wallet_address: Optional[str] = None,
    ):
        """Register a new AI agent. Returns the agent profile with its unique ID."""
        return self.mesh.directory.register(name, description, capabilities, wallet_address=wallet_address)

    def discover_agents(
        self,
        capabilities: Optional[List[str]] = None,
        min_trust_level: Optional[str] = None,
        max_results: int = 10,
    ):
        """Find agents matching capabilities, ranked by match score and reputation."""
        return self.mesh.directory.discover(capabilities, min_trust_level, max_results or 10)

    def get_agent_profile(self, agent_id: str):
        """Get the profile and reputation of one agent."""
        result = self.mesh.directory.get_with_reputation(agent_id)
        if result is None:
            raise NotFoundError(f"Agent {agent_id} not found")
        return result

    # ==================== Missions ====================

    def create_mission(
        self,
        creator_agent_id: str,
        title: str,
        description: str,
        required_capabilities: Optional[List[str]] = None,
        min_trust_level: str = "unverified",
        reward: Optional[int] = None,
    ):
        """Create a collaborative mission other agents can join."""
        return self.mesh.missions.create(
            creator_agent_id,
            title,
            description,
            required_capabilities or [],
            min_trust_level or "unverified",
            reward,
        )

    def find_missions(self, capabilities: Optional[List[str]] = None, min_reward: int = 0):
        """Find open missions whose required capabilities you fully cover."""
        return self.mesh.missions.find_open(capabilities or [], min_reward or 0)

    def join_mission(self, mission_id: str, agent_id: str, role: str):
        """Join an open mission in the given role."""
        return self.mesh.missions.join(mission_id, agent_id, role)

    def start_mission(self, mission_id: str, agent_id: str):
        """Start a mission you created."""
        return self.mesh.missions.start(mission_id, agent_id)

    def complete_mission(
        self,
        mission_id: str,
        agent_id: str,
        success: bool,
        summary: str = "",
        participant_scores: Optional[Dict[str, int]] = None,
    ):
        """Finish a mission; on success participants earn reputation."""
        result = MissionResult(
            success=success,
            summary=summary,
            participant_scores=participant_scores or {},
        )
        return self.mesh.missions.complete(mission_id, agent_id, result)

    def rate_participant(self, mission_id: str, rater_agent_id: str, target_agent_id: str, rating: int):
        """Rate another participant from 1 to 5."""
        self.mesh.missions.rate(mission_id, rater_agent_id, target_agent_id, rating)
        return {"mission_id": mission_id, "target_agent_id": target_agent_id, "rated": True}

    def cancel_mission(self, mission_id: str, agent_id: str):
        """Cancel a mission you created."""
        return self.mesh.missions.cancel(mission_id, agent_id)

    # ==================== Reputation ====================

    def get_reputation(self, agent_id: str):
        """Reputation summary and the last 10 reputation events of an agent."""
        return {
            "reputation": self.mesh.ledger.get_reputation(agent_id).to_dict(),
            "history": [e.to_dict() for e in self.mesh.ledger.get_history(agent_id, 10)],
        }

    def get_leaderboard(self, limit: int = 10):
        """Top agents by total reputation score."""
        return self.mesh.ledger.get_leaderboard(limit or 10)

    def verify_trust(self, agent_id: str, min_level: str):
        """Check whether an agent meets a minimum trust level."""
        return {
            "agent_id": agent_id,
            "required_level": min_level,
            "verified": self.mesh.ledger.verify_trust(agent_id, min_level),
            "current_reputation": self.mesh.ledger.get_reputation(agent_id).to_dict(),
        }

    def record_contribution(self, agent_id: str, score: int, category: str, verified_by: str):
        """Record reputation for a contribution made outside a mission."""
        return self.mesh.ledger.record_contribution(agent_id, score, category, verified_by)

    # ==================== Credential anchor ====================

    def register_agent_onchain(self, agent_id: str, name: str, wallet_address: str):
        """Register an agent's wallet with the credential anchor."""
        return self.mesh.anchor.register_agent(agent_id, name, wallet_address)

    def mint_reputation_nft(self, agent_id: str, trust_level: str, total_score: int):
        """Mint a reputation credential for an agent."""
        return self.mesh.anchor.mint_credential(agent_id, trust_level, total_score)

    def create_mission_escrow(self, mission_id: str, participants: List[str], escrow_amount_wei: str):
        """Create an escrow for a mission (amount in wei, as a string)."""
        return self.mesh.anchor.create_escrow(mission_id, participants, int(escrow_amount_wei))

    def complete_mission_escrow(self, mission_id: str, rewards: Optional[Dict[str, str]] = None):
        """Settle a mission escrow, distributing wei amounts per address."""
        escrow = self.mesh.anchor.settle_escrow(
            mission_id, {k: int(v) for k, v in (rewards or {}).items()}
        )
        if escrow is None:
            raise NotFoundError(f"No escrow for mission {mission_id}")
        return escrow

    def get_onchain_agent(self, agent_id: str):
        """On-chain registration and credentials of an agent."""
        agent = self.mesh.anchor.get_agent(agent_id)
        return {
            "agent": agent.to_dict() if agent else None,
            "nfts": [c.to_dict() for c in self.mesh.anchor.agent_credentials(agent_id)],
        }

    def generate_credential_proof(self, agent_id: str):
        """Credential proof for cross-chain verification."""
        proof = self.mesh.anchor.credential_proof(agent_id)
        if proof is None:
            raise NotFoundError(f"Agent {agent_id} is not registered on chain")
        return proof

    def get_blockchain_status(self):
        """Configuration status of the credential anchor."""
        return self.mesh.anchor.status()
