"""
Runtime configuration for TrustMesh.

Everything can be set through ``TRUSTMESH_*`` environment variables, e.g.:

    TRUSTMESH_DB_PATH=/var/lib/trustmesh/mesh.db
    TRUSTMESH_ONLINE_WINDOW_SECONDS=300
    TRUSTMESH_FAILURE_PENALTY=-25
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Mapping, Optional

from .errors import ValidationError

MEMORY_DB = ":memory:"


def default_db_path() -> str:
    """Default database location: ~/.trustmesh/trustmesh.db"""
    db_dir = Path.home() / ".trustmesh"
    db_dir.mkdir(exist_ok=True)
    return str(db_dir / "trustmesh.db")


def _int(env: Mapping[str, str], name: str, default: Optional[int]) -> Optional[int]:
    raw = env.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValidationError(f"{name} must be an integer, got {raw!r}")


@dataclass
class Settings:
    """TrustMesh settings."""
    db_path: str = MEMORY_DB
    online_window_seconds: int = 300
    default_reward: int = 100
    quality_points_per_star: int = 20
    failure_penalty: Optional[int] = None  # None: failed missions write no events
    anchor_client_id: Optional[str] = None
    anchor_wallet: Optional[str] = None
    chain_id: int = 11155111  # Sepolia
    cors_origins: list[str] = field(default_factory=lambda: ["*"])
    api_url: str = "http://localhost:8090"
    log_level: str = "INFO"

    @classmethod
    def from_env(cls, env: Optional[Mapping[str, str]] = None) -> "Settings":
        """Build settings from environment variables."""
        env = os.environ if env is None else env

        online_window = _int(env, "TRUSTMESH_ONLINE_WINDOW_SECONDS", 300)
        if online_window <= 0:
            raise ValidationError("TRUSTMESH_ONLINE_WINDOW_SECONDS must be positive")

        return cls(
            db_path=env.get("TRUSTMESH_DB_PATH") or default_db_path(),
            online_window_seconds=online_window,
            default_reward=_int(env, "TRUSTMESH_DEFAULT_REWARD", 100),
            quality_points_per_star=_int(env, "TRUSTMESH_QUALITY_POINTS_PER_STAR", 20),
            failure_penalty=_int(env, "TRUSTMESH_FAILURE_PENALTY", None),
            anchor_client_id=env.get("TRUSTMESH_ANCHOR_CLIENT_ID") or None,
            anchor_wallet=env.get("TRUSTMESH_ANCHOR_WALLET") or None,
            chain_id=_int(env, "TRUSTMESH_CHAIN_ID", 11155111),
            cors_origins=env.get("TRUSTMESH_CORS_ORIGINS", "*").split(","),
            api_url=env.get("TRUSTMESH_URL", "http://localhost:8090"),
            log_level=env.get("TRUSTMESH_LOG_LEVEL", "INFO").upper(),
        )
