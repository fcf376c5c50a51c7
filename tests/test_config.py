"""
Tests for settings, logging setup and the service container.
"""

import logging

import pytest

from trustmesh import Settings, TrustMesh
from trustmesh.errors import ValidationError
from trustmesh.log import configure_logging


class TestSettings:
    def test_defaults(self):
        settings = Settings()
        assert settings.db_path == ":memory:"
        assert settings.online_window_seconds == 300
        assert settings.default_reward == 100
        assert settings.failure_penalty is None

    def test_from_env(self, tmp_path):
        db_path = str(tmp_path / "mesh.db")
        settings = Settings.from_env({
            "TRUSTMESH_DB_PATH": db_path,
            "TRUSTMESH_ONLINE_WINDOW_SECONDS": "60",
            "TRUSTMESH_DEFAULT_REWARD": "250",
            "TRUSTMESH_FAILURE_PENALTY": "-20",
            "TRUSTMESH_CORS_ORIGINS": "http://a,http://b",
            "TRUSTMESH_LOG_LEVEL": "debug",
        })

        assert settings.db_path == db_path
        assert settings.online_window_seconds == 60
        assert settings.default_reward == 250
        assert settings.failure_penalty == -20
        assert settings.cors_origins == ["http://a", "http://b"]
        assert settings.log_level == "DEBUG"

    def test_bad_integer(self):
        with pytest.raises(ValidationError):
            Settings.from_env({"TRUSTMESH_DB_PATH": ":memory:", "TRUSTMESH_DEFAULT_REWARD": "lots"})

    def test_non_positive_window(self):
        with pytest.raises(ValidationError):
            Settings.from_env({"TRUSTMESH_DB_PATH": ":memory:", "TRUSTMESH_ONLINE_WINDOW_SECONDS": "0"})


class TestLogging:
    def test_configure_logging(self):
        handler = logging.NullHandler()
        logger = configure_logging("debug", handler=handler)
        assert logger.name == "trustmesh"
        assert logger.level == logging.DEBUG
        assert logger.handlers == [handler]

    def test_reconfigure_replaces_handler(self):
        configure_logging(logging.INFO, handler=logging.NullHandler())
        handler = logging.NullHandler()
        logger = configure_logging(logging.WARNING, handler=handler)
        assert logger.handlers == [handler]

    def test_unknown_level_falls_back_to_info(self):
        logger = configure_logging("chatty", handler=logging.NullHandler())
        assert logger.level == logging.INFO


class TestTrustMesh:
    def test_wires_shared_ledger(self):
        mesh = TrustMesh(Settings(db_path=":memory:"))
        assert mesh.directory.ledger is mesh.ledger
        assert mesh.missions.ledger is mesh.ledger
        mesh.close()

    def test_settings_flow_through(self):
        mesh = TrustMesh(Settings(db_path=":memory:", default_reward=42, failure_penalty=-5))
        assert mesh.missions.default_reward == 42
        assert mesh.missions.policy.failure_penalty == -5
        mesh.close()

    def test_file_database_shared(self, tmp_path):
        settings = Settings(db_path=str(tmp_path / "mesh.db"))
        mesh = TrustMesh(settings)
        agent = mesh.directory.register("Bot", "bot")
        mesh.ledger.record_event(agent.id, "m1", 10, "completion", "v")
        mesh.close()

        reopened = TrustMesh(settings)
        assert reopened.directory.get(agent.id).name == "Bot"
        assert reopened.ledger.get_reputation(agent.id).total_score == 10
        reopened.close()
