"""
Storage layer - SQLite persistence shared by all TrustMesh stores.
"""

from .sqlite import SQLiteStore

__all__ = ["SQLiteStore"]
