"""
Data models for the Reputation Ledger.
"""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional, Union

from ..errors import ValidationError


class TrustLevel(str, Enum):
    """Ordinal trust tier derived from reputation."""
    UNVERIFIED = "unverified"
    BRONZE = "bronze"
    SILVER = "silver"
    GOLD = "gold"
    DIAMOND = "diamond"

    @property
    def rank(self) -> int:
        return _TRUST_ORDER.index(self)

    @classmethod
    def parse(cls, value: Union[str, "TrustLevel"]) -> "TrustLevel":
        """Accept a TrustLevel or its string value (case-insensitive)."""
        if isinstance(value, TrustLevel):
            return value
        try:
            return cls(str(value).lower())
        except ValueError:
            raise ValidationError(
                f"Invalid trust level {value!r}. Must be one of: {[t.value for t in cls]}"
            )


_TRUST_ORDER = [
    TrustLevel.UNVERIFIED,
    TrustLevel.BRONZE,
    TrustLevel.SILVER,
    TrustLevel.GOLD,
    TrustLevel.DIAMOND,
]

# (tier, min score, min distinct missions), checked top-down
TRUST_THRESHOLDS = [
    (TrustLevel.DIAMOND, 1000, 50),
    (TrustLevel.GOLD, 500, 25),
    (TrustLevel.SILVER, 200, 10),
    (TrustLevel.BRONZE, 50, 3),
]


def calculate_trust_level(score: int, missions: int) -> TrustLevel:
    """
    Derive the trust tier from total score and distinct mission count.

    Both thresholds of a tier must hold; a large score over few missions
    stays at a lower tier.
    """
    if missions < 1:
        return TrustLevel.UNVERIFIED
    for level, min_score, min_missions in TRUST_THRESHOLDS:
        if score >= min_score and missions >= min_missions:
            return level
    return TrustLevel.UNVERIFIED


class ReputationCategory(str, Enum):
    """What a reputation event is awarded for."""
    COMPLETION = "completion"
    QUALITY = "quality"
    COLLABORATION = "collaboration"
    SPEED = "speed"

    @classmethod
    def parse(cls, value: Union[str, "ReputationCategory"]) -> "ReputationCategory":
        if isinstance(value, ReputationCategory):
            return value
        try:
            return cls(str(value).lower())
        except ValueError:
            raise ValidationError(
                f"Invalid category {value!r}. Must be one of: {[c.value for c in cls]}"
            )


@dataclass(frozen=True)
class ReputationEvent:
    """An immutable entry in the reputation ledger."""
    id: str
    agent_id: str
    mission_id: str
    score: int
    category: ReputationCategory
    timestamp: datetime
    verified_by: str
    proof_ref: Optional[str] = None  # external anchor reference, informational

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "agent_id": self.agent_id,
            "mission_id": self.mission_id,
            "score": self.score,
            "category": self.category.value,
            "timestamp": self.timestamp.isoformat(),
            "verified_by": self.verified_by,
            "proof_ref": self.proof_ref,
        }


@dataclass(frozen=True)
class AgentReputation:
    """Aggregate reputation, re-derived from the event stream on every read."""
    agent_id: str
    total_score: int = 0
    completed_missions: int = 0
    avg_quality: float = 0.0
    trust_level: TrustLevel = TrustLevel.UNVERIFIED
    last_active: Optional[datetime] = None

    def to_dict(self) -> dict:
        return {
            "agent_id": self.agent_id,
            "total_score": self.total_score,
            "completed_missions": self.completed_missions,
            "avg_quality": self.avg_quality,
            "trust_level": self.trust_level.value,
            "last_active": self.last_active.isoformat() if self.last_active else None,
        }
