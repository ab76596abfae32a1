"""Configuration management for Memo."""

# This module centralizes all environment variable loading and configuration
# for the Memo application, including server settings, database paths and the
# scheduler's tunable parameters.

from dataclasses import dataclass
import os
from pathlib import Path

from dotenv import load_dotenv

from memo.constants import DUE_BATCH_SIZE, REQUEUE_THRESHOLD_MINUTES
from memo.srs.parameters import (
    DEFAULT_LEARNING_STEPS,
    DEFAULT_RELEARNING_STEPS,
    SchedulerParameters,
    parse_steps,
)


@dataclass
class Config:
    """Application configuration loaded from environment variables."""

    # Database
    database_path: str = "data/memo.db"

    # API server
    api_host: str = "127.0.0.1"
    api_port: int = 8000
    api_base_url: str = ""  # e.g. http://study.example.com; defaults to host/port
    request_timeout: float = 10.0  # seconds, for study-session HTTP calls

    # Study sessions
    due_batch_size: int = DUE_BATCH_SIZE
    requeue_threshold_minutes: float = REQUEUE_THRESHOLD_MINUTES

    # Scheduler
    request_retention: float = 0.9
    maximum_interval: int = 365
    enable_fuzz: bool = True
    learning_steps: tuple[float, ...] = DEFAULT_LEARNING_STEPS  # minutes
    relearning_steps: tuple[float, ...] = DEFAULT_RELEARNING_STEPS  # minutes

    @staticmethod
    def _safe_int(value: str | None, default: int = 0) -> int:
        """Safely parse an integer, returning default if invalid."""
        try:
            return int(value)
        except (ValueError, TypeError):
            return default

    @staticmethod
    def _safe_float(value: str | None, default: float = 0.0) -> float:
        """Safely parse a float, returning default if invalid."""
        try:
            return float(value)
        except (ValueError, TypeError):
            return default

    @staticmethod
    def _safe_bool(value: str | None, default: bool = False) -> bool:
        if value is None:
            return default
        return value.strip().lower() in ("1", "true", "yes", "on")

    @staticmethod
    def _safe_steps(value: str | None, default: tuple[float, ...]) -> tuple[float, ...]:
        if not value:
            return default
        try:
            return parse_steps(value) or default
        except ValueError:
            return default

    @classmethod
    def from_env(cls, env_file: str | None = None) -> "Config":
        """Load configuration from environment variables."""
        if env_file:
            load_dotenv(env_file)
        else:
            load_dotenv()

        return cls(
            database_path=os.environ.get("DATABASE_PATH", "data/memo.db"),
            api_host=os.environ.get("API_HOST", "127.0.0.1"),
            api_port=cls._safe_int(os.environ.get("API_PORT", "8000"), 8000),
            api_base_url=os.environ.get("API_BASE_URL", ""),
            request_timeout=cls._safe_float(os.environ.get("REQUEST_TIMEOUT"), 10.0),
            due_batch_size=cls._safe_int(os.environ.get("DUE_BATCH_SIZE"), DUE_BATCH_SIZE),
            requeue_threshold_minutes=cls._safe_float(
                os.environ.get("REQUEUE_THRESHOLD_MINUTES"), REQUEUE_THRESHOLD_MINUTES
            ),
            request_retention=cls._safe_float(os.environ.get("REQUEST_RETENTION"), 0.9),
            maximum_interval=cls._safe_int(os.environ.get("MAXIMUM_INTERVAL"), 365),
            enable_fuzz=cls._safe_bool(os.environ.get("ENABLE_FUZZ"), True),
            learning_steps=cls._safe_steps(os.environ.get("LEARNING_STEPS"), DEFAULT_LEARNING_STEPS),
            relearning_steps=cls._safe_steps(
                os.environ.get("RELEARNING_STEPS"), DEFAULT_RELEARNING_STEPS
            ),
        )

    @property
    def base_url(self) -> str:
        """Base URL study clients use to reach the API server."""
        if self.api_base_url:
            return self.api_base_url.rstrip("/")
        return f"http://{self.api_host}:{self.api_port}"

    def scheduler_parameters(self) -> SchedulerParameters:
        """Build the immutable scheduler parameter vector."""
        return SchedulerParameters(
            request_retention=self.request_retention,
            maximum_interval=self.maximum_interval,
            enable_fuzz=self.enable_fuzz,
            learning_steps=self.learning_steps,
            relearning_steps=self.relearning_steps,
        )

    def ensure_database_dir(self) -> None:
        """Ensure the database directory exists."""
        Path(self.database_path).parent.mkdir(parents=True, exist_ok=True)
