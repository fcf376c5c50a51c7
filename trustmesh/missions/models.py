"""
Data models for collaborative missions.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Optional

from ..clock import utcnow
from ..ledger.models import TrustLevel


class MissionStatus(str, Enum):
    """Mission lifecycle state."""
    OPEN = "open"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"

    @property
    def is_terminal(self) -> bool:
        return self in (MissionStatus.COMPLETED, MissionStatus.FAILED, MissionStatus.CANCELLED)


CREATOR_ROLE = "creator"


@dataclass
class Participant:
    """An agent taking part in a mission."""
    agent_id: str
    role: str
    joined_at: datetime = field(default_factory=utcnow)
    rating: Optional[int] = None  # 1-5 peer rating
    contribution: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "agent_id": self.agent_id,
            "role": self.role,
            "joined_at": self.joined_at.isoformat(),
            "rating": self.rating,
            "contribution": self.contribution,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Participant":
        return cls(
            agent_id=data["agent_id"],
            role=data["role"],
            joined_at=datetime.fromisoformat(data["joined_at"]),
            rating=data.get("rating"),
            contribution=data.get("contribution"),
        )


@dataclass
class MissionResult:
    """
    Outcome reported when a mission finishes.

    ``participant_scores`` overrides the mission reward per agent;
    ``outputs`` is opaque and only stored.
    """
    success: bool
    summary: str = ""
    participant_scores: dict[str, int] = field(default_factory=dict)
    outputs: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict:
        return {
            "success": self.success,
            "summary": self.summary,
            "participant_scores": dict(self.participant_scores),
            "outputs": self.outputs,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "MissionResult":
        return cls(
            success=data["success"],
            summary=data.get("summary", ""),
            participant_scores=data.get("participant_scores", {}),
            outputs=data.get("outputs", {}),
        )


@dataclass
class MissionPolicy:
    """
    Reward rules applied when a mission finishes.

    ``failure_penalty`` of None means a failed mission writes no
    reputation events at all; an integer writes that score as a
    completion event for every participant.
    """
    quality_points_per_star: int = 20
    failure_penalty: Optional[int] = None


@dataclass
class Mission:
    """A collaborative task with a reward and a trust gate."""
    id: str
    title: str
    description: str
    creator_agent_id: str
    required_capabilities: set[str] = field(default_factory=set)
    min_trust_level: TrustLevel = TrustLevel.UNVERIFIED
    reward: int = 100
    status: MissionStatus = MissionStatus.OPEN
    participants: list[Participant] = field(default_factory=list)
    created_at: datetime = field(default_factory=utcnow)
    deadline: Optional[datetime] = None  # advisory only
    completed_at: Optional[datetime] = None
    result: Optional[MissionResult] = None

    def participant(self, agent_id: str) -> Optional[Participant]:
        for p in self.participants:
            if p.agent_id == agent_id:
                return p
        return None

    def is_participant(self, agent_id: str) -> bool:
        return self.participant(agent_id) is not None

    @property
    def participant_ids(self) -> list[str]:
        return [p.agent_id for p in self.participants]

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "creator_agent_id": self.creator_agent_id,
            "required_capabilities": sorted(self.required_capabilities),
            "min_trust_level": self.min_trust_level.value,
            "reward": self.reward,
            "status": self.status.value,
            "participants": [p.to_dict() for p in self.participants],
            "created_at": self.created_at.isoformat(),
            "deadline": self.deadline.isoformat() if self.deadline else None,
            "completed_at": self.completed_at.isoformat() if self.completed_at else None,
            "result": self.result.to_dict() if self.result else None,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Mission":
        return cls(
            id=data["id"],
            title=data["title"],
            description=data.get("description", ""),
            creator_agent_id=data["creator_agent_id"],
            required_capabilities=set(data.get("required_capabilities", [])),
            min_trust_level=TrustLevel(data.get("min_trust_level", "unverified")),
            reward=data.get("reward", 100),
            status=MissionStatus(data.get("status", "open")),
            participants=[Participant.from_dict(p) for p in data.get("participants", [])],
            created_at=datetime.fromisoformat(data["created_at"]) if data.get("created_at") else utcnow(),
            deadline=datetime.fromisoformat(data["deadline"]) if data.get("deadline") else None,
            completed_at=datetime.fromisoformat(data["completed_at"]) if data.get("completed_at") else None,
            result=MissionResult.from_dict(data["result"]) if data.get("result") else None,
        )
