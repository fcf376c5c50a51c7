"""
ReputationLedger - append-only reputation events with derived aggregates.

Aggregates (total score, trust tier, ...) are never stored: every read
re-derives them from the agent's full event stream, so a read always
reflects every append committed before it.
"""

import logging
import uuid
from datetime import datetime
from typing import Iterable, Optional, Union

from ..clock import to_millis, utcnow
from ..storage import SQLiteStore
from .models import (
    AgentReputation,
    ReputationCategory,
    ReputationEvent,
    TrustLevel,
    calculate_trust_level,
)

logger = logging.getLogger(__name__)

CategoryLike = Union[str, ReputationCategory]


class ReputationLedger(SQLiteStore):
    """
    Append-only store of reputation events.

    The ledger never raises domain errors for unknown agents: an agent
    without events simply has the zero-value reputation, so trust checks
    are safe to call speculatively.
    """

    SCHEMA = """
        CREATE TABLE IF NOT EXISTS reputation_events (
            seq INTEGER PRIMARY KEY AUTOINCREMENT,
            id TEXT NOT NULL UNIQUE,
            agent_id TEXT NOT NULL,
            mission_id TEXT NOT NULL,
            score INTEGER NOT NULL,
            category TEXT NOT NULL,
            timestamp TEXT NOT NULL,
            verified_by TEXT NOT NULL,
            proof_ref TEXT
        );

        CREATE INDEX IF NOT EXISTS idx_reputation_agent ON reputation_events(agent_id);
        CREATE INDEX IF NOT EXISTS idx_reputation_mission ON reputation_events(mission_id);
    """

    def record_event(
        self,
        agent_id: str,
        mission_id: str,
        score: int,
        category: CategoryLike,
        verified_by: str,
        proof_ref: Optional[str] = None,
    ) -> ReputationEvent:
        """
        Append a reputation event.

        Args:
            agent_id: Agent receiving the score
            mission_id: Mission (or synthetic contribution id) the score is for
            score: Signed score; neither sign nor magnitude is validated
            category: completion, quality, collaboration or speed
            verified_by: Agent attesting the event
            proof_ref: Optional external anchor reference

        Returns:
            The stored event
        """
        return self.record_events([
            (agent_id, mission_id, score, category, verified_by, proof_ref)
        ])[0]

    def record_events(self, entries: Iterable[tuple]) -> list[ReputationEvent]:
        """
        Append several events in a single transaction.

        Each entry is ``(agent_id, mission_id, score, category, verified_by)``
        with an optional trailing ``proof_ref``. Either all are stored or none.
        """
        events = []
        for entry in entries:
            agent_id, mission_id, score, category, verified_by, *rest = entry
            events.append(ReputationEvent(
                id=str(uuid.uuid4()),
                agent_id=agent_id,
                mission_id=mission_id,
                score=int(score),
                category=ReputationCategory.parse(category),
                timestamp=utcnow(),
                verified_by=verified_by,
                proof_ref=rest[0] if rest else None,
            ))

        with self.transaction() as conn:
            conn.executemany("""
                INSERT INTO reputation_events
                (id, agent_id, mission_id, score, category, timestamp, verified_by, proof_ref)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?)
            """, [
                (
                    e.id,
                    e.agent_id,
                    e.mission_id,
                    e.score,
                    e.category.value,
                    e.timestamp.isoformat(),
                    e.verified_by,
                    e.proof_ref,
                )
                for e in events
            ])

        for e in events:
            logger.debug("Recorded %s event %+d for agent %s (%s)",
                         e.category.value, e.score, e.agent_id, e.mission_id)
        return events

    def record_contribution(
        self,
        agent_id: str,
        score: int,
        category: CategoryLike,
        verified_by: str,
    ) -> ReputationEvent:
        """Record an out-of-mission contribution under a synthetic mission id."""
        mission_id = f"contribution-{to_millis(utcnow())}-{uuid.uuid4().hex[:8]}"
        return self.record_event(agent_id, mission_id, score, category, verified_by)

    def get_reputation(self, agent_id: str) -> AgentReputation:
        """
        Get aggregated reputation for an agent.

        Returns the zero-value record (score 0, unverified) when the agent
        has no events.
        """
        rows = self.query(
            "SELECT mission_id, score, category, timestamp FROM reputation_events WHERE agent_id = ?",
            (agent_id,),
        )

        if not rows:
            return AgentReputation(agent_id=agent_id)

        total_score = sum(r["score"] for r in rows)
        quality = [r["score"] for r in rows if r["category"] == ReputationCategory.QUALITY.value]
        avg_quality = sum(quality) / len(quality) if quality else 0.0
        missions = len({r["mission_id"] for r in rows})
        last_active = max(datetime.fromisoformat(r["timestamp"]) for r in rows)

        return AgentReputation(
            agent_id=agent_id,
            total_score=total_score,
            completed_missions=missions,
            avg_quality=avg_quality,
            trust_level=calculate_trust_level(total_score, missions),
            last_active=last_active,
        )

    def get_history(self, agent_id: str, limit: int = 50) -> list[ReputationEvent]:
        """Events for an agent, most recent first."""
        rows = self.query("""
            SELECT * FROM reputation_events
            WHERE agent_id = ?
            ORDER BY timestamp DESC, seq DESC
            LIMIT ?
        """, (agent_id, max(0, limit)))
        return [self._row_to_event(r) for r in rows]

    def mission_event_keys(self, mission_id: str) -> set[tuple[str, ReputationCategory]]:
        """(agent_id, category) pairs already recorded for a mission."""
        rows = self.query(
            "SELECT DISTINCT agent_id, category FROM reputation_events WHERE mission_id = ?",
            (mission_id,),
        )
        return {(r["agent_id"], ReputationCategory(r["category"])) for r in rows}

    def agent_ids(self) -> list[str]:
        """Agents with at least one event, in order of their first event."""
        rows = self.query("""
            SELECT agent_id, MIN(seq) AS first_seq FROM reputation_events
            GROUP BY agent_id
            ORDER BY first_seq
        """)
        return [r["agent_id"] for r in rows]

    def get_leaderboard(self, limit: int = 10) -> list[AgentReputation]:
        """
        Top agents by total score.

        Ties keep the order in which agents first appeared in the ledger.
        """
        reputations = [self.get_reputation(agent_id) for agent_id in self.agent_ids()]
        reputations.sort(key=lambda r: r.total_score, reverse=True)
        return reputations[:max(0, limit)]

    def verify_trust(self, agent_id: str, min_level: Union[str, TrustLevel]) -> bool:
        """True iff the agent's current tier ranks at or above ``min_level``."""
        required = TrustLevel.parse(min_level)
        return self.get_reputation(agent_id).trust_level.rank >= required.rank

    def _row_to_event(self, row) -> ReputationEvent:
        return ReputationEvent(
            id=row["id"],
            agent_id=row["agent_id"],
            mission_id=row["mission_id"],
            score=row["score"],
            category=ReputationCategory(row["category"]),
            timestamp=datetime.fromisoformat(row["timestamp"]),
            verified_by=row["verified_by"],
            proof_ref=row["proof_ref"],
        )
