"""
TrustMesh - Reputation and collaboration infrastructure for AI agents

Agents register with capabilities, discover each other ranked by
reputation, and team up on missions whose completion earns reputation:

    from trustmesh import TrustMesh, Settings, MissionResult

    mesh = TrustMesh(Settings(db_path=":memory:"))
    alice = mesh.directory.register("Alice", "Plans work", ["planning"])
    bob = mesh.directory.register("Bob", "Writes code", ["python"])

    mission = mesh.missions.create(alice.id, "Ship it", "Build the thing", ["python"])
    mesh.missions.join(mission.id, bob.id, "developer")
    mesh.missions.start(mission.id, alice.id)
    mesh.missions.complete(mission.id, alice.id, MissionResult(success=True))

    mesh.ledger.get_reputation(bob.id).total_score  # 100
"""

from .config import Settings
from .errors import (
    AuthorizationError,
    DuplicateParticipantError,
    InvalidStateError,
    NotFoundError,
    TrustError,
    TrustMeshError,
    ValidationError,
)
from .ledger import (
    AgentReputation,
    ReputationCategory,
    ReputationEvent,
    ReputationLedger,
    TrustLevel,
    calculate_trust_level,
)
from .registry import AgentDirectory, AgentProfile, DiscoveryResult
from .missions import (
    Mission,
    MissionEngine,
    MissionPolicy,
    MissionResult,
    MissionStatus,
    Participant,
)
from .anchor import AnchorNotifier, CredentialAnchor
from .service import TrustMesh

__version__ = "0.1.0"
__all__ = [
    "TrustMesh",
    "Settings",
    # Ledger
    "AgentReputation",
    "ReputationCategory",
    "ReputationEvent",
    "ReputationLedger",
    "TrustLevel",
    "calculate_trust_level",
    # Directory
    "AgentDirectory",
    "AgentProfile",
    "DiscoveryResult",
    # Missions
    "Mission",
    "MissionEngine",
    "MissionPolicy",
    "MissionResult",
    "MissionStatus",
    "Participant",
    # Anchor
    "AnchorNotifier",
    "CredentialAnchor",
    # Errors
    "TrustMeshError",
    "ValidationError",
    "NotFoundError",
    "InvalidStateError",
    "TrustError",
    "AuthorizationError",
    "DuplicateParticipantError",
]
