"""
Missions - multi-agent collaborative tasks with trust-gated participation
and reputation rewards on completion.
"""

from .models import (
    CREATOR_ROLE,
    Mission,
    MissionPolicy,
    MissionResult,
    MissionStatus,
    Participant,
)
from .engine import MissionEngine

__all__ = [
    "CREATOR_ROLE",
    "Mission",
    "MissionEngine",
    "MissionPolicy",
    "MissionResult",
    "MissionStatus",
    "Participant",
]
