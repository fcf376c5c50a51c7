"""
Data models for the Agent Directory.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional, Union

from ..clock import utcnow
from ..ledger.models import AgentReputation

# Values allowed in the open metadata bag: anything json.dumps accepts.
JSONValue = Union[str, int, float, bool, None, list, dict]
Metadata = dict[str, JSONValue]


@dataclass
class AgentProfile:
    """
    A registered agent in the network.

    Agents advertise capabilities and are discovered by other agents
    needing those capabilities.
    """
    id: str
    name: str
    description: str = ""
    capabilities: set[str] = field(default_factory=set)
    wallet_address: Optional[str] = None
    endpoint: Optional[str] = None  # How to reach this agent (MCP endpoint, URL, ...)
    metadata: Metadata = field(default_factory=dict)

    # Timestamps
    created_at: datetime = field(default_factory=utcnow)
    last_seen: datetime = field(default_factory=utcnow)

    def has_capability(self, name: str) -> bool:
        return name in self.capabilities

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "capabilities": sorted(self.capabilities),
            "wallet_address": self.wallet_address,
            "endpoint": self.endpoint,
            "metadata": self.metadata,
            "created_at": self.created_at.isoformat(),
            "last_seen": self.last_seen.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "AgentProfile":
        return cls(
            id=data["id"],
            name=data["name"],
            description=data.get("description", ""),
            capabilities=set(data.get("capabilities", [])),
            wallet_address=data.get("wallet_address"),
            endpoint=data.get("endpoint"),
            metadata=data.get("metadata", {}),
            created_at=datetime.fromisoformat(data["created_at"]) if "created_at" in data else utcnow(),
            last_seen=datetime.fromisoformat(data["last_seen"]) if "last_seen" in data else utcnow(),
        )


@dataclass
class DiscoveryResult:
    """An agent matched by discovery, with the score used to rank it."""
    agent: AgentProfile
    reputation: AgentReputation
    match_score: float

    def to_dict(self) -> dict:
        return {
            "agent": self.agent.to_dict(),
            "reputation": self.reputation.to_dict(),
            "match_score": self.match_score,
        }
