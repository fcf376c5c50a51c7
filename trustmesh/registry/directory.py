"""
AgentDirectory - agent profiles, heartbeats and trust-gated discovery.
"""

import json
import logging
import uuid
from datetime import timedelta
from typing import TYPE_CHECKING, Iterable, Optional, Union

from ..clock import utcnow
from ..errors import NotFoundError, ValidationError
from ..ledger import ReputationLedger, TrustLevel
from ..storage import SQLiteStore
from .models import AgentProfile, DiscoveryResult

if TYPE_CHECKING:
    from ..anchor import AnchorNotifier

logger = logging.getLogger(__name__)

# Reputation can add at most this much to a partial capability match
MAX_REPUTATION_BONUS = 0.5
REPUTATION_BONUS_SCALE = 1000

UPDATABLE_FIELDS = {"name", "description", "capabilities", "wallet_address", "endpoint", "metadata"}


def match_score(
    required: set[str],
    capabilities: set[str],
    total_score: int,
) -> Optional[float]:
    """
    Score how well an agent fits a capability query.

    Base score is the fraction of required capabilities the agent has
    (1.0 when nothing is required). Reputation adds up to 0.5 and the sum
    is clamped to 1.0. Returns None when capabilities were required and
    none match: such agents are excluded regardless of reputation.
    """
    if required:
        base = len(required & capabilities) / len(required)
        if base == 0:
            return None
    else:
        base = 1.0

    bonus = min(total_score / REPUTATION_BONUS_SCALE, MAX_REPUTATION_BONUS)
    return min(1.0, base + bonus)


class AgentDirectory(SQLiteStore):
    """
    Central directory for agent registration and discovery.

    Features:
    - Register agents with capabilities
    - Track liveness with heartbeats
    - Discover agents ranked by capability match and reputation
    """

    SCHEMA = """
        CREATE TABLE IF NOT EXISTS agent_profiles (
            seq INTEGER PRIMARY KEY AUTOINCREMENT,
            id TEXT NOT NULL UNIQUE,
            name TEXT NOT NULL,
            description TEXT DEFAULT '',
            capabilities TEXT DEFAULT '[]',
            wallet_address TEXT,
            endpoint TEXT,
            metadata TEXT DEFAULT '{}',
            created_at TEXT NOT NULL,
            last_seen TEXT NOT NULL
        );

        CREATE INDEX IF NOT EXISTS idx_profiles_last_seen ON agent_profiles(last_seen);
    """

    def __init__(
        self,
        ledger: ReputationLedger,
        db_path: Optional[str] = None,
        online_window: timedelta = timedelta(minutes=5),
        anchor: Optional["AnchorNotifier"] = None,
    ):
        """
        Args:
            ledger: Ledger consulted for reputation when ranking
            db_path: SQLite path (":memory:" allowed)
            online_window: How recently an agent must have been seen to be online
            anchor: Optional best-effort credential anchor
        """
        self.ledger = ledger
        self.online_window = online_window
        self.anchor = anchor
        super().__init__(db_path)

    def register(
        self,
        name: str,
        description: str,
        capabilities: Optional[Iterable[str]] = None,
        wallet_address: Optional[str] = None,
        endpoint: Optional[str] = None,
        metadata: Optional[dict] = None,
    ) -> AgentProfile:
        """
        Register a new agent.

        Raises:
            ValidationError: If name or description is empty
        """
        if not name or not name.strip():
            raise ValidationError("Agent name must not be empty")
        if not description or not description.strip():
            raise ValidationError("Agent description must not be empty")

        now = utcnow()
        agent = AgentProfile(
            id=str(uuid.uuid4()),
            name=name,
            description=description,
            capabilities=set(capabilities or []),
            wallet_address=wallet_address,
            endpoint=endpoint,
            metadata=dict(metadata or {}),
            created_at=now,
            last_seen=now,
        )
        metadata_json = self._dump_metadata(agent.metadata)

        with self.transaction() as conn:
            conn.execute("""
                INSERT INTO agent_profiles
                (id, name, description, capabilities, wallet_address, endpoint, metadata, created_at, last_seen)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
            """, (
                agent.id,
                agent.name,
                agent.description,
                json.dumps(sorted(agent.capabilities)),
                agent.wallet_address,
                agent.endpoint,
                metadata_json,
                agent.created_at.isoformat(),
                agent.last_seen.isoformat(),
            ))

        logger.info("Registered agent %s (%s) with capabilities %s",
                    agent.name, agent.id, sorted(agent.capabilities))

        if self.anchor is not None and agent.wallet_address:
            self.anchor.submit("register_agent", agent.id, agent.name, agent.wallet_address)

        return agent

    def update(self, agent_id: str, **fields) -> AgentProfile:
        """
        Merge the given fields into an agent's profile and refresh last_seen.

        Raises:
            NotFoundError: If the agent is unknown
            ValidationError: On unknown or empty fields
        """
        unknown = set(fields) - UPDATABLE_FIELDS
        if unknown:
            raise ValidationError(f"Cannot update fields: {sorted(unknown)}")
        if "name" in fields and not (fields["name"] or "").strip():
            raise ValidationError("Agent name must not be empty")
        if "description" in fields and not (fields["description"] or "").strip():
            raise ValidationError("Agent description must not be empty")

        with self.transaction() as conn:
            agent = self.get(agent_id)
            if agent is None:
                raise NotFoundError(f"Agent {agent_id} not found")

            for key, value in fields.items():
                if key == "capabilities":
                    value = set(value or [])
                elif key == "metadata":
                    value = dict(value or {})
                setattr(agent, key, value)
            agent.last_seen = utcnow()

            conn.execute("""
                UPDATE agent_profiles
                SET name = ?, description = ?, capabilities = ?, wallet_address = ?,
                    endpoint = ?, metadata = ?, last_seen = ?
                WHERE id = ?
            """, (
                agent.name,
                agent.description,
                json.dumps(sorted(agent.capabilities)),
                agent.wallet_address,
                agent.endpoint,
                self._dump_metadata(agent.metadata),
                agent.last_seen.isoformat(),
                agent.id,
            ))

        logger.info("Updated agent %s: %s", agent_id, sorted(fields))
        return agent

    def heartbeat(self, agent_id: str) -> bool:
        """
        Update an agent's last_seen timestamp.

        Heartbeats from unknown agents are ignored.

        Returns:
            True if the agent exists and was updated
        """
        with self.transaction() as conn:
            cursor = conn.execute(
                "UPDATE agent_profiles SET last_seen = ? WHERE id = ?",
                (utcnow().isoformat(), agent_id),
            )
        return cursor.rowcount > 0

    def get(self, agent_id: str) -> Optional[AgentProfile]:
        """Get an agent by ID, or None."""
        row = self.query_one("SELECT * FROM agent_profiles WHERE id = ?", (agent_id,))
        if row:
            return self._row_to_agent(row)
        return None

    def get_with_reputation(self, agent_id: str) -> Optional[DiscoveryResult]:
        """Agent profile together with its current reputation."""
        agent = self.get(agent_id)
        if agent is None:
            return None
        return DiscoveryResult(
            agent=agent,
            reputation=self.ledger.get_reputation(agent_id),
            match_score=1.0,
        )

    def list_all(self) -> list[AgentProfile]:
        """All agents, in registration order."""
        rows = self.query("SELECT * FROM agent_profiles ORDER BY seq")
        return [self._row_to_agent(row) for row in rows]

    def count(self) -> int:
        return self.query_one("SELECT COUNT(*) FROM agent_profiles")[0]

    def is_online(self, agent_id: str) -> bool:
        """True iff the agent was seen within the online window."""
        agent = self.get(agent_id)
        if agent is None:
            return False
        return self._seen_recently(agent)

    def list_online(self) -> list[AgentProfile]:
        return [agent for agent in self.list_all() if self._seen_recently(agent)]

    def discover(
        self,
        required_capabilities: Optional[Iterable[str]] = None,
        min_trust_level: Optional[Union[str, TrustLevel]] = None,
        max_results: int = 10,
    ) -> list[DiscoveryResult]:
        """
        Discover agents ranked by capability match and reputation.

        Args:
            required_capabilities: Capabilities wanted (partial matches count)
            min_trust_level: Drop agents below this tier
            max_results: Maximum number of results

        Returns:
            Results sorted by match score, ties in registration order
        """
        required = set(required_capabilities or [])
        min_level = TrustLevel.parse(min_trust_level) if min_trust_level else None

        results = []
        for agent in self.list_all():
            reputation = self.ledger.get_reputation(agent.id)

            if min_level is not None and reputation.trust_level.rank < min_level.rank:
                continue

            score = match_score(required, agent.capabilities, reputation.total_score)
            if score is None:
                continue

            results.append(DiscoveryResult(agent=agent, reputation=reputation, match_score=score))

        results.sort(key=lambda r: r.match_score, reverse=True)
        return results[:max(0, max_results)]

    def find_by_capability(self, capability: str) -> list[DiscoveryResult]:
        return self.discover([capability])

    def _seen_recently(self, agent: AgentProfile) -> bool:
        return utcnow() - agent.last_seen < self.online_window

    def _dump_metadata(self, metadata: dict) -> str:
        try:
            return json.dumps(metadata)
        except TypeError as e:
            raise ValidationError(f"Agent metadata must be JSON-serializable: {e}")

    def _row_to_agent(self, row) -> AgentProfile:
        """Convert database row to AgentProfile."""
        return AgentProfile.from_dict({
            "id": row["id"],
            "name": row["name"],
            "description": row["description"],
            "capabilities": json.loads(row["capabilities"]),
            "wallet_address": row["wallet_address"],
            "endpoint": row["endpoint"],
            "metadata": json.loads(row["metadata"]),
            "created_at": row["created_at"],
            "last_seen": row["last_seen"],
        })
