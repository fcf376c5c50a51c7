"""
Reputation Ledger - append-only scoring and trust-tier derivation.

Agents earn reputation by completing missions; the resulting trust tier
gates which missions they may join.
"""

from .models import (
    AgentReputation,
    ReputationCategory,
    ReputationEvent,
    TrustLevel,
    TRUST_THRESHOLDS,
    calculate_trust_level,
)
from .ledger import ReputationLedger

__all__ = [
    "AgentReputation",
    "ReputationCategory",
    "ReputationEvent",
    "ReputationLedger",
    "TrustLevel",
    "TRUST_THRESHOLDS",
    "calculate_trust_level",
]
