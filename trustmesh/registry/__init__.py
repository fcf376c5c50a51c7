"""
Agent Directory - registration and discovery for multi-agent systems.

Enables agents to:
- Register themselves with capabilities
- Discover other agents by capability, ranked by reputation
- Track online/offline status with heartbeats
"""

from .models import AgentProfile, DiscoveryResult, Metadata
from .directory import AgentDirectory, match_score

__all__ = [
    "AgentDirectory",
    "AgentProfile",
    "DiscoveryResult",
    "Metadata",
    "match_score",
]
