"""Tests for configuration management."""

import os
from unittest.mock import patch

import pytest

from memo.config import Config
from memo.constants import DUE_BATCH_SIZE, RATING_KEYS, REQUEUE_THRESHOLD_MINUTES
from memo.srs.parameters import DEFAULT_LEARNING_STEPS, DEFAULT_RELEARNING_STEPS, parse_steps


class TestConfigConstants:
    """Tests for shared constants."""

    def test_due_batch_size_is_positive(self):
        assert isinstance(DUE_BATCH_SIZE, int)
        assert DUE_BATCH_SIZE > 0

    def test_requeue_threshold(self):
        assert REQUEUE_THRESHOLD_MINUTES == 30

    def test_rating_keys_cover_all_ratings(self):
        assert list(RATING_KEYS.values()) == ["again", "hard", "good", "easy"]


class TestConfigDefaults:
    """Tests for Config dataclass defaults."""

    def test_config_default_values(self):
        """Config should have sensible defaults."""
        config = Config()
        assert config.database_path == "data/memo.db"
        assert config.api_host == "127.0.0.1"
        assert config.api_port == 8000
        assert config.request_retention == 0.9
        assert config.maximum_interval == 365
        assert config.enable_fuzz is True
        assert config.learning_steps == DEFAULT_LEARNING_STEPS
        assert config.relearning_steps == DEFAULT_RELEARNING_STEPS

    def test_base_url_defaults_to_host_and_port(self):
        assert Config(api_host="localhost", api_port=9000).base_url == "http://localhost:9000"

    def test_base_url_override(self):
        assert Config(api_base_url="https://memo.example.com/").base_url == "https://memo.example.com"

    def test_scheduler_parameters(self):
        params = Config(request_retention=0.85, enable_fuzz=False).scheduler_parameters()
        assert params.request_retention == 0.85
        assert params.enable_fuzz is False


class TestConfigFromEnv:
    """Tests for Config.from_env() loading."""

    def test_loads_from_environment(self):
        env = {
            "DATABASE_PATH": "/tmp/cards.db",
            "API_PORT": "9001",
            "REQUEST_RETENTION": "0.8",
            "MAXIMUM_INTERVAL": "180",
            "ENABLE_FUZZ": "false",
            "LEARNING_STEPS": "1m, 10m, 1h",
            "RELEARNING_STEPS": "5m",
            "DUE_BATCH_SIZE": "50",
        }
        with patch.dict(os.environ, env, clear=True), patch("memo.config.load_dotenv"):
            config = Config.from_env()

        assert config.database_path == "/tmp/cards.db"
        assert config.api_port == 9001
        assert config.request_retention == 0.8
        assert config.maximum_interval == 180
        assert config.enable_fuzz is False
        assert config.learning_steps == (1.0, 10.0, 60.0)
        assert config.relearning_steps == (5.0,)
        assert config.due_batch_size == 50

    def test_invalid_values_fall_back_to_defaults(self):
        env = {"API_PORT": "not-a-port", "REQUEST_RETENTION": "high", "LEARNING_STEPS": "soon"}
        with patch.dict(os.environ, env, clear=True), patch("memo.config.load_dotenv"):
            config = Config.from_env()

        assert config.api_port == 8000
        assert config.request_retention == 0.9
        assert config.learning_steps == DEFAULT_LEARNING_STEPS

    def test_env_file(self, tmp_path):
        env_file = tmp_path / ".env"
        env_file.write_text("API_HOST=0.0.0.0\n")
        with patch.dict(os.environ, {}, clear=True):
            config = Config.from_env(str(env_file))
        assert config.api_host == "0.0.0.0"

    def test_ensure_database_dir(self, tmp_path):
        config = Config(database_path=str(tmp_path / "nested" / "memo.db"))
        config.ensure_database_dir()
        assert (tmp_path / "nested").is_dir()


class TestParseSteps:
    """Tests for parse_steps."""

    @pytest.mark.parametrize(
        "value,expected",
        [
            ("1m, 10m", (1.0, 10.0)),
            ("10", (10.0,)),
            ("30s", (0.5,)),
            ("1h,1d", (60.0, 1440.0)),
        ],
    )
    def test_parses_units(self, value, expected):
        assert parse_steps(value) == expected

    def test_rejects_unknown_unit(self):
        with pytest.raises(ValueError):
            parse_steps("3 weeks")
