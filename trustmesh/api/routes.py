"""
REST API routes for agents, missions, reputation and the credential anchor.
"""

from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request
from pydantic import BaseModel, Field

from ..errors import NotFoundError
from ..ledger import ReputationCategory, TrustLevel
from ..missions import MissionResult
from ..service import TrustMesh

router = APIRouter()


def get_mesh(request: Request) -> TrustMesh:
    """The TrustMesh instance the app was created with."""
    return request.app.state.mesh


# === Request Models ===

class RegisterAgentRequest(BaseModel):
    name: str
    description: str
    capabilities: list[str] = Field(default_factory=list)
    wallet_address: Optional[str] = None
    endpoint: Optional[str] = None
    metadata: dict = Field(default_factory=dict)


class UpdateAgentRequest(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = None
    capabilities: Optional[list[str]] = None
    wallet_address: Optional[str] = None
    endpoint: Optional[str] = None
    metadata: Optional[dict] = None


class CreateMissionRequest(BaseModel):
    creator_agent_id: str
    title: str
    description: str = ""
    required_capabilities: list[str] = Field(default_factory=list)
    min_trust_level: TrustLevel = TrustLevel.UNVERIFIED
    reward: Optional[int] = None
    deadline: Optional[datetime] = None


class AgentActionRequest(BaseModel):
    agent_id: str


class JoinMissionRequest(BaseModel):
    agent_id: str
    role: str = "contributor"


class CompleteMissionRequest(BaseModel):
    agent_id: str
    success: bool
    summary: str = ""
    participant_scores: dict[str, int] = Field(default_factory=dict)
    outputs: dict = Field(default_factory=dict)


class RateParticipantRequest(BaseModel):
    rater_agent_id: str
    target_agent_id: str
    rating: float


class ContributeRequest(BaseModel):
    agent_id: str
    contribution: str


class ContributionRequest(BaseModel):
    agent_id: str
    score: int
    category: ReputationCategory
    verified_by: str


class RegisterOnChainRequest(BaseModel):
    agent_id: str
    name: str
    wallet_address: str


class MintCredentialRequest(BaseModel):
    agent_id: str
    trust_level: TrustLevel
    total_score: int


class CreateEscrowRequest(BaseModel):
    mission_id: str
    participants: list[str]
    amount_wei: int


class SettleEscrowRequest(BaseModel):
    rewards: dict[str, int] = Field(default_factory=dict)


# ==================== Agents ====================

@router.post("/agents", tags=["agents"])
def register_agent(request: RegisterAgentRequest, mesh: TrustMesh = Depends(get_mesh)):
    """Register a new agent."""
    agent = mesh.directory.register(
        name=request.name,
        description=request.description,
        capabilities=request.capabilities,
        wallet_address=request.wallet_address,
        endpoint=request.endpoint,
        metadata=request.metadata,
    )
    return agent.to_dict()


@router.get("/agents", tags=["agents"])
def list_agents(
    online_only: bool = Query(False, description="Only return online agents"),
    mesh: TrustMesh = Depends(get_mesh),
):
    """List registered agents."""
    agents = mesh.directory.list_online() if online_only else mesh.directory.list_all()
    return {"agents": [a.to_dict() for a in agents], "count": len(agents)}


@router.get("/agents/discover", tags=["agents"])
def discover_agents(
    capability: Optional[list[str]] = Query(None, description="Required capabilities"),
    min_trust_level: Optional[TrustLevel] = Query(None),
    max_results: int = Query(10, ge=1, le=100),
    mesh: TrustMesh = Depends(get_mesh),
):
    """Discover agents ranked by capability match and reputation."""
    results = mesh.directory.discover(capability, min_trust_level, max_results)
    return {"results": [r.to_dict() for r in results], "count": len(results)}


@router.get("/agents/{agent_id}", tags=["agents"])
def get_agent(agent_id: str, mesh: TrustMesh = Depends(get_mesh)):
    """Get an agent profile with its reputation."""
    result = mesh.directory.get_with_reputation(agent_id)
    if result is None:
        raise NotFoundError(f"Agent {agent_id} not found")
    data = result.to_dict()
    data["online"] = mesh.directory.is_online(agent_id)
    return data


@router.patch("/agents/{agent_id}", tags=["agents"])
def update_agent(agent_id: str, request: UpdateAgentRequest, mesh: TrustMesh = Depends(get_mesh)):
    """Update fields of an agent profile."""
    fields = request.model_dump(exclude_unset=True)
    return mesh.directory.update(agent_id, **fields).to_dict()


@router.post("/agents/{agent_id}/heartbeat", tags=["agents"])
def heartbeat(agent_id: str, mesh: TrustMesh = Depends(get_mesh)):
    """Record that an agent is alive. Unknown agents are ignored."""
    updated = mesh.directory.heartbeat(agent_id)
    return {"status": "ok", "agent_id": agent_id, "known": updated}


# ==================== Reputation ====================

@router.get("/agents/{agent_id}/reputation", tags=["reputation"])
def get_reputation(
    agent_id: str,
    history_limit: int = Query(10, ge=0, le=500),
    mesh: TrustMesh = Depends(get_mesh),
):
    """Aggregate reputation and recent history for an agent."""
    return {
        "reputation": mesh.ledger.get_reputation(agent_id).to_dict(),
        "history": [e.to_dict() for e in mesh.ledger.get_history(agent_id, history_limit)],
    }


@router.get("/agents/{agent_id}/history", tags=["reputation"])
def get_history(
    agent_id: str,
    limit: int = Query(50, ge=0, le=500),
    mesh: TrustMesh = Depends(get_mesh),
):
    events = mesh.ledger.get_history(agent_id, limit)
    return {"events": [e.to_dict() for e in events], "count": len(events)}


@router.get("/agents/{agent_id}/trust", tags=["reputation"])
def verify_trust(
    agent_id: str,
    min_level: TrustLevel = Query(...),
    mesh: TrustMesh = Depends(get_mesh),
):
    """Check an agent against a minimum trust level."""
    return {
        "agent_id": agent_id,
        "required_level": min_level.value,
        "verified": mesh.ledger.verify_trust(agent_id, min_level),
        "current_reputation": mesh.ledger.get_reputation(agent_id).to_dict(),
    }


@router.get("/leaderboard", tags=["reputation"])
def get_leaderboard(limit: int = Query(10, ge=1, le=100), mesh: TrustMesh = Depends(get_mesh)):
    """Top agents by total score."""
    leaderboard = mesh.ledger.get_leaderboard(limit)
    return {"leaderboard": [r.to_dict() for r in leaderboard], "count": len(leaderboard)}


@router.post("/contributions", tags=["reputation"])
def record_contribution(request: ContributionRequest, mesh: TrustMesh = Depends(get_mesh)):
    """Record reputation for work done outside a mission."""
    event = mesh.ledger.record_contribution(
        request.agent_id, request.score, request.category, request.verified_by
    )
    return event.to_dict()


# ==================== Missions ====================

@router.post("/missions", tags=["missions"])
def create_mission(request: CreateMissionRequest, mesh: TrustMesh = Depends(get_mesh)):
    mission = mesh.missions.create(
        creator_id=request.creator_agent_id,
        title=request.title,
        description=request.description,
        required_capabilities=request.required_capabilities,
        min_trust_level=request.min_trust_level,
        reward=request.reward,
        deadline=request.deadline,
    )
    return mission.to_dict()


@router.get("/missions", tags=["missions"])
def list_missions(
    agent_id: Optional[str] = Query(None, description="Only missions this agent takes part in"),
    active_only: bool = Query(False),
    mesh: TrustMesh = Depends(get_mesh),
):
    if agent_id:
        missions = mesh.missions.list_for_agent(agent_id)
        if active_only:
            missions = [m for m in missions if not m.status.is_terminal]
    elif active_only:
        missions = mesh.missions.list_active()
    else:
        missions = mesh.missions.list_all()
    return {"missions": [m.to_dict() for m in missions], "count": len(missions)}


@router.get("/missions/open", tags=["missions"])
def find_missions(
    capability: Optional[list[str]] = Query(None, description="Capabilities on offer"),
    min_reward: int = Query(0),
    mesh: TrustMesh = Depends(get_mesh),
):
    """Open missions the given capabilities fully cover."""
    missions = mesh.missions.find_open(capability or [], min_reward)
    return {"missions": [m.to_dict() for m in missions], "count": len(missions)}


@router.get("/missions/{mission_id}", tags=["missions"])
def get_mission(mission_id: str, mesh: TrustMesh = Depends(get_mesh)):
    mission = mesh.missions.get(mission_id)
    if mission is None:
        raise NotFoundError(f"Mission {mission_id} not found")
    return mission.to_dict()


@router.post("/missions/{mission_id}/join", tags=["missions"])
def join_mission(mission_id: str, request: JoinMissionRequest, mesh: TrustMesh = Depends(get_mesh)):
    return mesh.missions.join(mission_id, request.agent_id, request.role).to_dict()


@router.post("/missions/{mission_id}/start", tags=["missions"])
def start_mission(mission_id: str, request: AgentActionRequest, mesh: TrustMesh = Depends(get_mesh)):
    return mesh.missions.start(mission_id, request.agent_id).to_dict()


@router.post("/missions/{mission_id}/complete", tags=["missions"])
def complete_mission(mission_id: str, request: CompleteMissionRequest, mesh: TrustMesh = Depends(get_mesh)):
    result = MissionResult(
        success=request.success,
        summary=request.summary,
        participant_scores=request.participant_scores,
        outputs=request.outputs,
    )
    return mesh.missions.complete(mission_id, request.agent_id, result).to_dict()


@router.post("/missions/{mission_id}/rate", tags=["missions"])
def rate_participant(mission_id: str, request: RateParticipantRequest, mesh: TrustMesh = Depends(get_mesh)):
    mesh.missions.rate(mission_id, request.rater_agent_id, request.target_agent_id, request.rating)
    return {"status": "ok", "mission_id": mission_id, "target_agent_id": request.target_agent_id}


@router.post("/missions/{mission_id}/cancel", tags=["missions"])
def cancel_mission(mission_id: str, request: AgentActionRequest, mesh: TrustMesh = Depends(get_mesh)):
    return mesh.missions.cancel(mission_id, request.agent_id).to_dict()


@router.post("/missions/{mission_id}/contribute", tags=["missions"])
def contribute(mission_id: str, request: ContributeRequest, mesh: TrustMesh = Depends(get_mesh)):
    return mesh.missions.contribute(mission_id, request.agent_id, request.contribution).to_dict()


# ==================== Credential Anchor ====================

@router.get("/anchor/status", tags=["anchor"])
def anchor_status(mesh: TrustMesh = Depends(get_mesh)):
    return mesh.anchor.status()


@router.post("/anchor/agents", tags=["anchor"])
def register_onchain(request: RegisterOnChainRequest, mesh: TrustMesh = Depends(get_mesh)):
    return mesh.anchor.register_agent(request.agent_id, request.name, request.wallet_address).to_dict()


@router.get("/anchor/agents/{agent_id}", tags=["anchor"])
def get_onchain_agent(agent_id: str, mesh: TrustMesh = Depends(get_mesh)):
    agent = mesh.anchor.get_agent(agent_id)
    return {
        "agent": agent.to_dict() if agent else None,
        "credentials": [c.to_dict() for c in mesh.anchor.agent_credentials(agent_id)],
    }


@router.get("/anchor/agents/{agent_id}/proof", tags=["anchor"])
def credential_proof(agent_id: str, mesh: TrustMesh = Depends(get_mesh)):
    proof = mesh.anchor.credential_proof(agent_id)
    if proof is None:
        raise NotFoundError(f"Agent {agent_id} is not registered on chain")
    return proof


@router.post("/anchor/credentials", tags=["anchor"])
def mint_credential(request: MintCredentialRequest, mesh: TrustMesh = Depends(get_mesh)):
    credential = mesh.anchor.mint_credential(request.agent_id, request.trust_level.value, request.total_score)
    return credential.to_dict()


@router.post("/anchor/escrows", tags=["anchor"])
def create_escrow(request: CreateEscrowRequest, mesh: TrustMesh = Depends(get_mesh)):
    escrow = mesh.anchor.create_escrow(request.mission_id, request.participants, request.amount_wei)
    return escrow.to_dict()


@router.post("/anchor/escrows/{mission_id}/settle", tags=["anchor"])
def settle_escrow(mission_id: str, request: SettleEscrowRequest, mesh: TrustMesh = Depends(get_mesh)):
    escrow = mesh.anchor.settle_escrow(mission_id, request.rewards)
    if escrow is None:
        raise NotFoundError(f"No escrow for mission {mission_id}")
    return escrow.to_dict()
