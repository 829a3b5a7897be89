from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache
from typing import Any

from pydantic import Field, SecretStr, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from ._utils import resolve_env_file_path

DEFAULT_STOP_WORDS = (
    "the,a,an,and,or,but,in,on,at,to,for,of,with,by,from,about,as,into,through,"
    "after,me,all,show,get,find,list,display,give,tell,their,our,my,your,his,her,"
    "its,they,we,you,details,information,data,full,complete,everything,itinerary,"
    "trip,travel,accommodation,transportation,activities,please,need,want,would,"
    "could,should,can,will"
)


class Settings(BaseSettings):
    """Resolver service configuration.

    Values are loaded from:
    1. OS environment variables prefixed with TRIPSEARCH_ (highest priority)
    2. .env file (config/.env.dev or config/.env)
    3. Default values
    """

    log_level: str = "INFO"

    # Database. A PostgreSQL host switches the URL to asyncpg; otherwise the
    # plain database_url (SQLite by default) is used.
    database_url_override: str = Field(
        default="sqlite+aiosqlite:///./tripsearch.db",
        validation_alias="TRIPSEARCH_DATABASE_URL",
    )
    postgres_host: str | None = None
    postgres_port: int = 5432
    postgres_user: str = "postgres"
    postgres_password: SecretStr = SecretStr("")
    postgres_db: str = "tripsearch"
    database_echo: bool = False

    # Latency budget. The guard deadline must stay below the datastore's own
    # execution ceiling so a response can still be produced.
    datastore_ceiling_ms: int = 1000
    query_timeout_ms: int = 800

    # Term optimizer
    max_search_terms: int = 3
    min_term_length: int = 2
    max_pattern_length: int = 48
    stop_words: str = DEFAULT_STOP_WORDS

    # Query classifier thresholds
    moderate_min_tokens: int = 3
    moderate_min_length: int = 24
    complex_min_tokens: int = 7
    complex_min_length: int = 60

    # Result shaping
    candidate_limit: int = 5
    max_alternatives: int = 4
    surface_candidate_limit: int = 25
    semantic_min_score: float = 0.3
    recent_trips_limit: int = 5
    recent_clients_limit: int = 3

    record_errors: bool = True

    model_config = SettingsConfigDict(
        env_file=resolve_env_file_path(),
        env_file_encoding="utf-8",
        env_prefix="TRIPSEARCH_",
        extra="ignore",
    )

    @field_validator("stop_words", mode="before")
    @classmethod
    def _validate_stop_words(cls, v: Any) -> str:
        """Ensure stop words are stored as a comma-separated string."""
        if isinstance(v, (list, tuple, set, frozenset)):
            return ",".join(sorted(v))
        return str(v) if v else ""

    @model_validator(mode="after")
    def _check_timeout_budget(self) -> Settings:
        if self.query_timeout_ms <= 0:
            raise ValueError("query_timeout_ms must be positive")
        if self.query_timeout_ms >= self.datastore_ceiling_ms:
            raise ValueError(
                "query_timeout_ms must be strictly below datastore_ceiling_ms "
                f"({self.query_timeout_ms} >= {self.datastore_ceiling_ms})"
            )
        if self.complex_min_tokens < self.moderate_min_tokens:
            raise ValueError("complex_min_tokens must be >= moderate_min_tokens")
        if self.complex_min_length < self.moderate_min_length:
            raise ValueError("complex_min_length must be >= moderate_min_length")
        return self

    @property
    def database_url(self) -> str:
        """Construct the database URL."""
        if self.postgres_host:
            return (
                f"postgresql+asyncpg://{self.postgres_user}:"
                f"{self.postgres_password.get_secret_value()}"
                f"@{self.postgres_host}:{self.postgres_port}/{self.postgres_db}"
            )
        return self.database_url_override

    @property
    def stop_word_set(self) -> frozenset[str]:
        words = (w.strip().lower() for w in self.stop_words.split(","))
        return frozenset(w for w in words if w)


@dataclass(frozen=True)
class ResolverConfig:
    """Tuning knobs handed to the resolver at construction.

    Kept separate from Settings so tests can build one directly with short
    timeouts, without touching the environment.
    """

    query_timeout_ms: int = 800
    max_search_terms: int = 3
    min_term_length: int = 2
    max_pattern_length: int = 48
    stop_words: frozenset[str] = frozenset(DEFAULT_STOP_WORDS.split(","))
    moderate_min_tokens: int = 3
    moderate_min_length: int = 24
    complex_min_tokens: int = 7
    complex_min_length: int = 60
    candidate_limit: int = 5
    max_alternatives: int = 4
    surface_candidate_limit: int = 25
    semantic_min_score: float = 0.3
    recent_trips_limit: int = 5
    recent_clients_limit: int = 3
    record_errors: bool = True

    @property
    def query_timeout(self) -> float:
        """Guard deadline in seconds."""
        return self.query_timeout_ms / 1000

    @classmethod
    def from_settings(cls, settings: Settings) -> ResolverConfig:
        return cls(
            query_timeout_ms=settings.query_timeout_ms,
            max_search_terms=settings.max_search_terms,
            min_term_length=settings.min_term_length,
            max_pattern_length=settings.max_pattern_length,
            stop_words=settings.stop_word_set,
            moderate_min_tokens=settings.moderate_min_tokens,
            moderate_min_length=settings.moderate_min_length,
            complex_min_tokens=settings.complex_min_tokens,
            complex_min_length=settings.complex_min_length,
            candidate_limit=settings.candidate_limit,
            max_alternatives=settings.max_alternatives,
            surface_candidate_limit=settings.surface_candidate_limit,
            semantic_min_score=settings.semantic_min_score,
            recent_trips_limit=settings.recent_trips_limit,
            recent_clients_limit=settings.recent_clients_limit,
            record_errors=settings.record_errors,
        )


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


def clear_settings_cache() -> None:
    """Clear the settings cache (useful for tests)."""
    get_settings.cache_clear()
