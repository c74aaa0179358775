"""Tests for application configuration."""
import pytest

from core.config import Settings


class TestCorsOriginsParsing:
    """Tests for CORS origins parsing from environment variables."""

    def test_parse_single_origin_string(self) -> None:
        """Single origin string is parsed correctly."""
        settings = Settings(
            _env_file=None,
            database_url="postgresql://test",
            CORS_ORIGINS="http://localhost:5173",
            DEV_MODE="false",
        )
        assert settings.cors_origins == ["http://localhost:5173"]

    def test_parse_origins_with_whitespace_and_trailing_comma(self) -> None:
        """Whitespace is stripped and empty entries are dropped."""
        settings = Settings(
            _env_file=None,
            database_url="postgresql://test",
            CORS_ORIGINS="  http://localhost:5173 , https://example.com,",
            DEV_MODE="false",
        )
        assert settings.cors_origins == [
            "http://localhost:5173",
            "https://example.com",
        ]

    def test_parse_empty_string(self) -> None:
        """Empty string results in empty list."""
        settings = Settings(
            _env_file=None,
            database_url="postgresql://test",
            CORS_ORIGINS="",
            DEV_MODE="false",
        )
        assert settings.cors_origins == []


class TestListingConfig:
    """Tests for story listing settings."""

    def test__defaults(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Page size and timeout defaults."""
        for name in ("STORIES_PER_PAGE_DEFAULT", "STORIES_PER_PAGE_MAX", "QUERY_TIMEOUT_SECONDS"):
            monkeypatch.delenv(name, raising=False)

        settings = Settings(_env_file=None, database_url="postgresql://test", DEV_MODE="false")

        assert settings.stories_per_page_default == 10
        assert settings.stories_per_page_max == 100
        assert settings.query_timeout_seconds == 10.0

    def test__reads_environment(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Listing settings are read from environment variables."""
        monkeypatch.setenv("STORIES_PER_PAGE_DEFAULT", "20")
        monkeypatch.setenv("STORIES_PER_PAGE_MAX", "50")
        monkeypatch.setenv("QUERY_TIMEOUT_SECONDS", "2.5")
        monkeypatch.setenv("PUBLISHER_LOGO_URL_TEMPLATE", "https://cdn.test/{id}.png")

        settings = Settings(_env_file=None, database_url="postgresql://test", DEV_MODE="false")

        assert settings.stories_per_page_default == 20
        assert settings.stories_per_page_max == 50
        assert settings.query_timeout_seconds == 2.5
        assert settings.publisher_logo_url_template == "https://cdn.test/{id}.png"

    def test__default_page_size_above_maximum_is_rejected(self) -> None:
        """The default page size must not exceed the ceiling."""
        with pytest.raises(ValueError, match="STORIES_PER_PAGE_DEFAULT cannot exceed"):
            Settings(
                _env_file=None,
                database_url="postgresql://test",
                DEV_MODE="false",
                STORIES_PER_PAGE_DEFAULT="200",
                STORIES_PER_PAGE_MAX="100",
            )

    def test__timeout_must_be_positive(self) -> None:
        """A zero timeout is rejected."""
        with pytest.raises(ValueError):
            Settings(
                _env_file=None,
                database_url="postgresql://test",
                DEV_MODE="false",
                QUERY_TIMEOUT_SECONDS="0",
            )


class TestDevModeSecurityValidation:
    """Tests for DEV_MODE security guard against production database usage."""

    @pytest.mark.parametrize(
        "database_url",
        [
            "postgresql://localhost:5432/test",
            "postgresql://127.0.0.1:5432/test",
            "postgresql://[::1]:5432/test",
            "sqlite+aiosqlite:///:memory:",
        ],
    )
    def test__dev_mode_allowed_with_local_database(self, database_url: str) -> None:
        """DEV_MODE can be enabled with a local database."""
        settings = Settings(_env_file=None, database_url=database_url, DEV_MODE="true")
        assert settings.dev_mode is True

    @pytest.mark.parametrize(
        "database_url",
        [
            "postgresql://prod-db.example.com:5432/stories",
            "postgresql://192.168.1.100:5432/test",
            "postgresql:///stories",
        ],
    )
    def test__dev_mode_blocked_with_non_local_database(self, database_url: str) -> None:
        """DEV_MODE raises error when the database is not known to be local."""
        with pytest.raises(
            ValueError,
            match="DEV_MODE cannot be enabled with a non-local database",
        ):
            Settings(_env_file=None, database_url=database_url, DEV_MODE="true")

    def test__dev_mode_disabled_allows_production_database(self) -> None:
        """Production database is allowed when DEV_MODE is disabled."""
        settings = Settings(
            _env_file=None,
            database_url="postgresql://prod-db.example.com:5432/stories",
            DEV_MODE="false",
        )
        assert settings.dev_mode is False
