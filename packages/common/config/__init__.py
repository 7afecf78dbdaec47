"""Configuration management for the content indexer.

Loads environment variables using pydantic-settings for type-safe configuration.
Service URLs, credentials, stream names and indexing tunables are defined here.
"""

import os
from functools import lru_cache
from pathlib import Path
from threading import Lock

from dotenv import load_dotenv
from pydantic import Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

_ENV_LOADED = False
_ENV_LOCK = Lock()


def _resolve_env_file() -> str | None:
    """Locate the .env file regardless of the current working directory.

    Preference order:
        1. INDEXER_ENV_FILE environment variable (explicit override)
        2. Current working directory (common for local runs)
        3. Ancestors of this file (covers package execution within Docker)
    """
    override = os.getenv("INDEXER_ENV_FILE")
    if override:
        override_path = Path(override).expanduser()
        if override_path.is_file():
            return str(override_path)

    cwd_candidate = Path.cwd() / ".env"
    if cwd_candidate.is_file():
        return str(cwd_candidate)

    for parent in Path(__file__).resolve().parents:
        candidate = parent / ".env"
        if candidate.is_file():
            return str(candidate)

    return None


_DEFAULT_ENV_FILE = _resolve_env_file()


def ensure_env_loaded() -> None:
    """Load environment variables from disk exactly once."""
    global _ENV_LOADED

    with _ENV_LOCK:
        if _ENV_LOADED:
            return

        env_path = _DEFAULT_ENV_FILE or _resolve_env_file()
        if env_path:
            load_dotenv(env_path, override=False)

        _ENV_LOADED = True


ensure_env_loaded()


class IndexerConfig(BaseSettings):
    """Main configuration class for the content indexer.

    Loads service URLs, credentials, and tuning parameters from environment variables.
    Uses pydantic-settings for validation and type safety.
    """

    model_config = SettingsConfigDict(
        env_file=_DEFAULT_ENV_FILE,
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ========== Change Events (Redis Streams) ==========
    redis_url: str = "redis://localhost:6379"
    change_events_stream: str = "stream:content-changes"
    change_events_group: str = "content-indexer"
    change_events_consumer_prefix: str = "indexer"
    change_events_batch_size: int = Field(default=10, ge=1, le=500)
    change_events_block_ms: int = Field(default=5000, ge=0)
    change_events_maxlen: int | None = 10000
    # Pending entries idle this long are claimed back and redelivered.
    change_events_reclaim_idle_ms: int = Field(default=60000, ge=0)

    # ========== Search Index (Elasticsearch) ==========
    elasticsearch_url: str = "http://localhost:9200"
    elasticsearch_api_key: SecretStr | None = None
    elasticsearch_index: str = "content"
    elasticsearch_timeout: int = Field(default=30, ge=1, le=300)
    index_max_attempts: int = Field(default=3, ge=1, le=10)

    # ========== Content Store (PostgreSQL) ==========
    postgres_user: str = "indexer"
    postgres_password: SecretStr = SecretStr("changeme")
    postgres_db: str = "content"
    postgres_host: str = "localhost"
    postgres_port: int = 5432
    postgres_min_pool_size: int = Field(default=1, ge=1)
    postgres_max_pool_size: int = Field(default=20, ge=1)

    # ========== Handler Tuning ==========
    content_child_name: str = "jcr:content"
    extraction_encoding: str = "utf-8"

    # ========== Observability ==========
    log_level: str = "INFO"

    @field_validator("elasticsearch_index", "change_events_stream", "change_events_group")
    @classmethod
    def _validate_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("value cannot be blank")
        return value

    @field_validator("elasticsearch_index")
    @classmethod
    def _validate_index_name(cls, value: str) -> str:
        if value != value.lower():
            raise ValueError("elasticsearch_index must be lowercase")
        return value

    @property
    def postgres_connection_string(self) -> str:
        """Get PostgreSQL connection string."""
        pwd = self.postgres_password.get_secret_value()
        return f"postgresql://{self.postgres_user}:{pwd}@{self.postgres_host}:{self.postgres_port}/{self.postgres_db}"


@lru_cache(maxsize=1)
def get_config() -> IndexerConfig:
    """Return cached Settings instance (thread-safe, process-local).

    Returns:
        IndexerConfig: The configuration instance loaded from environment variables.
    """
    return IndexerConfig()


# Export convenience accessors
__all__ = ["IndexerConfig", "ensure_env_loaded", "get_config"]
