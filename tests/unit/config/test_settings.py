"""Tests for settings loading and the resolver configuration."""

from pathlib import Path

import pytest
from pydantic import ValidationError

from tripsearch.config import ResolverConfig, Settings
from tripsearch.config._utils import ENV_FILE_VAR, resolve_env_file_path


@pytest.fixture(autouse=True)
def _no_env_file(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in (
        "TRIPSEARCH_DATABASE_URL",
        "TRIPSEARCH_POSTGRES_HOST",
        "TRIPSEARCH_QUERY_TIMEOUT_MS",
        "TRIPSEARCH_DATASTORE_CEILING_MS",
    ):
        monkeypatch.delenv(name, raising=False)


class TestSettings:
    def test_defaults(self) -> None:
        settings = Settings(_env_file=None)

        assert settings.query_timeout_ms < settings.datastore_ceiling_ms
        assert settings.database_url.startswith("sqlite+aiosqlite://")
        assert "the" in settings.stop_word_set

    def test_reads_prefixed_environment(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("TRIPSEARCH_QUERY_TIMEOUT_MS", "300")
        monkeypatch.setenv("TRIPSEARCH_DATABASE_URL", "sqlite+aiosqlite:///tmp.db")

        settings = Settings(_env_file=None)

        assert settings.query_timeout_ms == 300
        assert settings.database_url == "sqlite+aiosqlite:///tmp.db"

    def test_postgres_host_switches_driver(self) -> None:
        settings = Settings(
            _env_file=None,
            postgres_host="db",
            postgres_user="search",
            postgres_password="secret",
        )
        assert settings.database_url == (
            "postgresql+asyncpg://search:secret@db:5432/tripsearch"
        )

    def test_timeout_must_stay_below_ceiling(self) -> None:
        with pytest.raises(ValidationError, match="strictly below"):
            Settings(_env_file=None, query_timeout_ms=1000, datastore_ceiling_ms=1000)

    def test_timeout_must_be_positive(self) -> None:
        with pytest.raises(ValidationError):
            Settings(_env_file=None, query_timeout_ms=0)

    def test_stop_words_accept_lists(self) -> None:
        settings = Settings(_env_file=None, stop_words=["The", "trip"])
        assert settings.stop_word_set == frozenset({"the", "trip"})

    def test_loads_explicit_env_file(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        env_file = tmp_path / "custom.env"
        env_file.write_text("TRIPSEARCH_MAX_ALTERNATIVES=2\n")
        monkeypatch.setenv(ENV_FILE_VAR, str(env_file))

        assert resolve_env_file_path() == env_file
        assert Settings(_env_file=resolve_env_file_path()).max_alternatives == 2

    def test_missing_explicit_env_file_is_ignored(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv(ENV_FILE_VAR, str(tmp_path / "absent.env"))

        assert resolve_env_file_path() != tmp_path / "absent.env"


class TestResolverConfig:
    def test_from_settings(self) -> None:
        settings = Settings(
            _env_file=None, query_timeout_ms=250, stop_words="foo,bar"
        )

        config = ResolverConfig.from_settings(settings)

        assert config.query_timeout_ms == 250
        assert config.query_timeout == 0.25
        assert config.stop_words == frozenset({"foo", "bar"})

    def test_is_immutable(self) -> None:
        config = ResolverConfig()
        with pytest.raises(AttributeError):
            config.query_timeout_ms = 1  # type: ignore[misc]
