"""
MissionEngine - mission lifecycle and reputation payout.

State machine:

    open ──start──> in_progress ──complete──> completed | failed
      │                  │
      └──────cancel──────┴──> cancelled

Terminal states (completed, failed, cancelled) accept no transitions.
Every mutation of a mission runs under that mission's lock, so concurrent
joins cannot both see "not yet a participant".
"""

import json
import logging
import math
import threading
import uuid
from contextlib import contextmanager
from datetime import datetime
from typing import TYPE_CHECKING, Iterable, Iterator, Optional, Union

from ..clock import utcnow
from ..errors import (
    AuthorizationError,
    DuplicateParticipantError,
    InvalidStateError,
    NotFoundError,
    TrustError,
    ValidationError,
)
from ..ledger import ReputationCategory, ReputationLedger, TrustLevel
from ..storage import SQLiteStore
from .models import (
    CREATOR_ROLE,
    Mission,
    MissionPolicy,
    MissionResult,
    MissionStatus,
    Participant,
)

if TYPE_CHECKING:
    from ..anchor import AnchorNotifier

logger = logging.getLogger(__name__)

MIN_RATING = 1
MAX_RATING = 5


class MissionEngine(SQLiteStore):
    """
    Creates missions, gates participation on trust, and pays out
    reputation when a mission succeeds.
    """

    SCHEMA = """
        CREATE TABLE IF NOT EXISTS missions (
            seq INTEGER PRIMARY KEY AUTOINCREMENT,
            id TEXT NOT NULL UNIQUE,
            status TEXT NOT NULL,
            reward INTEGER NOT NULL,
            creator_agent_id TEXT NOT NULL,
            data TEXT NOT NULL
        );

        CREATE INDEX IF NOT EXISTS idx_missions_status ON missions(status);
    """

    def __init__(
        self,
        ledger: ReputationLedger,
        db_path: Optional[str] = None,
        policy: Optional[MissionPolicy] = None,
        default_reward: int = 100,
        anchor: Optional["AnchorNotifier"] = None,
    ):
        self.ledger = ledger
        self.policy = policy or MissionPolicy()
        self.default_reward = default_reward
        self.anchor = anchor
        self._mission_locks: dict[str, threading.Lock] = {}
        self._locks_guard = threading.Lock()
        super().__init__(db_path)

    # ==================== Lifecycle ====================

    def create(
        self,
        creator_id: str,
        title: str,
        description: str,
        required_capabilities: Optional[Iterable[str]] = None,
        min_trust_level: Union[str, TrustLevel] = TrustLevel.UNVERIFIED,
        reward: Optional[int] = None,
        deadline: Optional[datetime] = None,
    ) -> Mission:
        """
        Create an open mission with the creator as first participant.

        Raises:
            ValidationError: Empty title or negative reward
            TrustError: Creator is below the mission's own trust minimum
        """
        if not title or not title.strip():
            raise ValidationError("Mission title must not be empty")
        reward = self.default_reward if reward is None else int(reward)
        if reward < 0:
            raise ValidationError("Mission reward must not be negative")
        min_level = TrustLevel.parse(min_trust_level)

        if not self.ledger.verify_trust(creator_id, min_level):
            raise TrustError(
                f"Agent {creator_id} does not meet minimum trust level: {min_level.value}"
            )

        now = utcnow()
        mission = Mission(
            id=str(uuid.uuid4()),
            title=title,
            description=description or "",
            creator_agent_id=creator_id,
            required_capabilities=set(required_capabilities or []),
            min_trust_level=min_level,
            reward=reward,
            status=MissionStatus.OPEN,
            participants=[Participant(agent_id=creator_id, role=CREATOR_ROLE, joined_at=now)],
            created_at=now,
            deadline=deadline,
        )

        with self.transaction() as conn:
            conn.execute("""
                INSERT INTO missions (id, status, reward, creator_agent_id, data)
                VALUES (?, ?, ?, ?, ?)
            """, (mission.id, mission.status.value, mission.reward, creator_id, json.dumps(mission.to_dict())))

        logger.info("Mission %s created by %s (reward %d, min trust %s)",
                    mission.id, creator_id, reward, min_level.value)
        return mission

    def join(self, mission_id: str, agent_id: str, role: str) -> Mission:
        """
        Join an open mission.

        Raises:
            NotFoundError: Unknown mission
            InvalidStateError: Mission is not open
            TrustError: Agent is below the mission's trust minimum
            DuplicateParticipantError: Agent already participates
        """
        with self._mission_lock(mission_id):
            mission = self._load(mission_id)
            if mission.status != MissionStatus.OPEN:
                raise InvalidStateError(
                    f"Mission {mission_id} is not accepting participants (status: {mission.status.value})"
                )
            if not self.ledger.verify_trust(agent_id, mission.min_trust_level):
                raise TrustError(
                    f"Agent {agent_id} does not meet minimum trust level: {mission.min_trust_level.value}"
                )
            if mission.is_participant(agent_id):
                raise DuplicateParticipantError(f"Agent {agent_id} is already a participant")

            mission.participants.append(Participant(agent_id=agent_id, role=role, joined_at=utcnow()))
            self._save(mission)

        logger.info("Agent %s joined mission %s as %s", agent_id, mission_id, role)
        return mission

    def start(self, mission_id: str, agent_id: str) -> Mission:
        """
        Move a mission from open to in_progress. Creator only.

        Raises:
            NotFoundError: Unknown mission
            AuthorizationError: Caller is not the creator
            InvalidStateError: Mission is not open
        """
        with self._mission_lock(mission_id):
            mission = self._load(mission_id)
            if mission.creator_agent_id != agent_id:
                raise AuthorizationError("Only the creator can start a mission")
            if mission.status != MissionStatus.OPEN:
                raise InvalidStateError(
                    f"Mission {mission_id} cannot be started (status: {mission.status.value})"
                )

            mission.status = MissionStatus.IN_PROGRESS
            self._save(mission)

        logger.info("Mission %s started", mission_id)
        return mission

    def complete(self, mission_id: str, agent_id: str, result: MissionResult) -> Mission:
        """
        Finish an in-progress mission and distribute reputation.

        On success every participant receives a completion event (their
        entry in ``result.participant_scores``, else the mission reward),
        verified by the calling agent, plus a quality event of
        ``rating * 20`` if they were rated. Failure writes nothing unless
        the policy sets a failure penalty.

        Raises:
            NotFoundError: Unknown mission
            InvalidStateError: Mission is not in progress
            AuthorizationError: Caller is not a participant
        """
        with self._mission_lock(mission_id):
            mission = self._load(mission_id)
            if mission.status != MissionStatus.IN_PROGRESS:
                raise InvalidStateError(
                    f"Mission {mission_id} is not in progress (status: {mission.status.value})"
                )
            if not mission.is_participant(agent_id):
                raise AuthorizationError("Only participants can complete a mission")

            tiers_before = {
                p.agent_id: self.ledger.get_reputation(p.agent_id).trust_level
                for p in mission.participants
            }

            # A retry after a failed save must not pay out twice
            paid = self.ledger.mission_event_keys(mission.id)
            entries = [
                e for e in self._payout_entries(mission, agent_id, result)
                if (e[0], e[3]) not in paid
            ]
            if entries:
                self.ledger.record_events(entries)

            mission.status = MissionStatus.COMPLETED if result.success else MissionStatus.FAILED
            mission.completed_at = utcnow()
            mission.result = result
            self._save(mission)

        logger.info("Mission %s %s by %s (%d reputation events)",
                    mission_id, mission.status.value, agent_id, len(entries))

        if result.success:
            self._anchor_milestones(mission, tiers_before)
        return mission

    def cancel(self, mission_id: str, agent_id: str) -> Mission:
        """
        Cancel an open or in-progress mission. Creator only; no reputation
        is written.
        """
        with self._mission_lock(mission_id):
            mission = self._load(mission_id)
            if mission.creator_agent_id != agent_id:
                raise AuthorizationError("Only the creator can cancel a mission")
            if mission.status.is_terminal:
                raise InvalidStateError(
                    f"Mission {mission_id} cannot be cancelled (status: {mission.status.value})"
                )

            mission.status = MissionStatus.CANCELLED
            mission.completed_at = utcnow()
            self._save(mission)

        logger.info("Mission %s cancelled by %s", mission_id, agent_id)
        return mission

    # ==================== Participants ====================

    def rate(self, mission_id: str, rater_id: str, target_id: str, rating: Union[int, float]) -> None:
        """
        Rate a participant 1-5. Out-of-range ratings are clamped; a new
        rating replaces the old one.

        Raises:
            ValidationError: Rating is not a finite number
            NotFoundError: Unknown mission, or target is not a participant
            AuthorizationError: Rater is not a participant
        """
        if not math.isfinite(rating):
            raise ValidationError(f"Rating must be a finite number, got {rating!r}")

        with self._mission_lock(mission_id):
            mission = self._load(mission_id)
            if not mission.is_participant(rater_id):
                raise AuthorizationError("Only participants can rate")
            target = mission.participant(target_id)
            if target is None:
                raise NotFoundError(f"Agent {target_id} is not a participant")

            target.rating = int(round(max(MIN_RATING, min(MAX_RATING, rating))))
            self._save(mission)

        logger.info("Agent %s rated %s %d/5 on mission %s", rater_id, target_id, target.rating, mission_id)

    def contribute(self, mission_id: str, agent_id: str, contribution: str) -> Mission:
        """Record a participant's contribution note on an active mission."""
        with self._mission_lock(mission_id):
            mission = self._load(mission_id)
            participant = mission.participant(agent_id)
            if participant is None:
                raise AuthorizationError("Only participants can record contributions")
            if mission.status.is_terminal:
                raise InvalidStateError(
                    f"Mission {mission_id} is closed (status: {mission.status.value})"
                )

            participant.contribution = contribution
            self._save(mission)
        return mission

    # ==================== Queries ====================

    def get(self, mission_id: str) -> Optional[Mission]:
        row = self.query_one("SELECT data FROM missions WHERE id = ?", (mission_id,))
        if row:
            return Mission.from_dict(json.loads(row["data"]))
        return None

    def list_all(self) -> list[Mission]:
        rows = self.query("SELECT data FROM missions ORDER BY seq")
        return [Mission.from_dict(json.loads(r["data"])) for r in rows]

    def list_active(self) -> list[Mission]:
        """Open and in-progress missions."""
        rows = self.query(
            "SELECT data FROM missions WHERE status IN (?, ?) ORDER BY seq",
            (MissionStatus.OPEN.value, MissionStatus.IN_PROGRESS.value),
        )
        return [Mission.from_dict(json.loads(r["data"])) for r in rows]

    def list_for_agent(self, agent_id: str) -> list[Mission]:
        return [m for m in self.list_all() if m.is_participant(agent_id)]

    def find_open(self, capabilities: Iterable[str], min_reward: int = 0) -> list[Mission]:
        """
        Open missions paying at least ``min_reward`` whose every required
        capability is in ``capabilities``.
        """
        offered = set(capabilities or [])
        rows = self.query(
            "SELECT data FROM missions WHERE status = ? AND reward >= ? ORDER BY seq",
            (MissionStatus.OPEN.value, min_reward),
        )
        missions = [Mission.from_dict(json.loads(r["data"])) for r in rows]
        return [m for m in missions if m.required_capabilities <= offered]

    # ==================== Internals ====================

    @contextmanager
    def _mission_lock(self, mission_id: str) -> Iterator[None]:
        """Lock for an existing mission; unknown ids raise NotFoundError without a table entry."""
        with self._locks_guard:
            lock = self._mission_locks.get(mission_id)
            if lock is None:
                if self.query_one("SELECT 1 FROM missions WHERE id = ?", (mission_id,)) is None:
                    raise NotFoundError(f"Mission {mission_id} not found")
                lock = self._mission_locks[mission_id] = threading.Lock()
        with lock:
            yield

    def _load(self, mission_id: str) -> Mission:
        mission = self.get(mission_id)
        if mission is None:
            raise NotFoundError(f"Mission {mission_id} not found")
        return mission

    def _save(self, mission: Mission):
        with self.transaction() as conn:
            conn.execute(
                "UPDATE missions SET status = ?, reward = ?, data = ? WHERE id = ?",
                (mission.status.value, mission.reward, json.dumps(mission.to_dict()), mission.id),
            )

    def _payout_entries(self, mission: Mission, verifier_id: str, result: MissionResult) -> list[tuple]:
        entries = []
        if result.success:
            for p in mission.participants:
                score = result.participant_scores.get(p.agent_id)
                if score is None:
                    score = mission.reward
                entries.append((p.agent_id, mission.id, score, ReputationCategory.COMPLETION, verifier_id))

                if p.rating is not None:
                    entries.append((
                        p.agent_id,
                        mission.id,
                        p.rating * self.policy.quality_points_per_star,
                        ReputationCategory.QUALITY,
                        verifier_id,
                    ))
        elif self.policy.failure_penalty is not None:
            for p in mission.participants:
                entries.append((
                    p.agent_id, mission.id, self.policy.failure_penalty,
                    ReputationCategory.COMPLETION, verifier_id,
                ))
        return entries

    def _anchor_milestones(self, mission: Mission, tiers_before: dict[str, TrustLevel]):
        """Mirror tier promotions and escrow settlement to the anchor."""
        if self.anchor is None:
            return

        for agent_id, before in tiers_before.items():
            reputation = self.ledger.get_reputation(agent_id)
            if reputation.trust_level.rank > before.rank:
                self.anchor.submit(
                    "mint_credential", agent_id, reputation.trust_level.value, reputation.total_score
                )

        scores = mission.result.participant_scores if mission.result else {}
        rewards = {agent_id: scores.get(agent_id, mission.reward) for agent_id in mission.participant_ids}
        self.anchor.submit("settle_escrow", mission.id, rewards)
