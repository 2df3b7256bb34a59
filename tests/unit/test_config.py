"""Unit tests for configuration loading."""

from __future__ import annotations

import platformdirs
import pytest
from pydantic import ValidationError

from columnindex.config import (
    _DEFAULT_DATA_DIR,
    _DEFAULT_DB_PATH,
    DEFAULT_LISTING_URL,
    CacheSettings,
    Settings,
    SpySettings,
)


class TestPlatformDefaults:
    """Verify config defaults use platformdirs instead of hardcoded Unix paths."""

    def test_default_data_dir_matches_platformdirs(self) -> None:
        expected = platformdirs.user_data_dir("columnindex")
        assert expected == _DEFAULT_DATA_DIR

    def test_default_db_path_under_data_dir(self) -> None:
        assert _DEFAULT_DB_PATH.startswith(_DEFAULT_DATA_DIR)
        assert _DEFAULT_DB_PATH.endswith("cache.db")

    def test_cache_settings_uses_platform_default(self) -> None:
        assert CacheSettings().db_path == _DEFAULT_DB_PATH


class TestDefaults:
    def test_settings_defaults(self) -> None:
        settings = Settings()
        assert settings.remote.listing_url == DEFAULT_LISTING_URL
        assert settings.remote.page_size == 100
        assert settings.cache.ttl_hours == 24
        assert (settings.spy.band_top, settings.spy.band_bottom) == (0.0, 0.2)
        assert settings.logging.format == "json"


class TestOverrides:
    def test_env_override(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("COLUMNINDEX__REMOTE__PAGE_SIZE", "50")
        monkeypatch.setenv("COLUMNINDEX__CACHE__TTL_HOURS", "6")
        settings = Settings()
        assert settings.remote.page_size == 50
        assert settings.cache.ttl_hours == 6

    def test_init_args_beat_env(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("COLUMNINDEX__CACHE__DB_PATH", "/tmp/env.db")
        settings = Settings(cache={"db_path": ":memory:"})
        assert settings.cache.db_path == ":memory:"

    def test_page_size_must_be_positive(self) -> None:
        with pytest.raises(ValidationError):
            Settings(remote={"page_size": 0})


class TestSpySettings:
    def test_inverted_band_rejected(self) -> None:
        with pytest.raises(ValidationError):
            SpySettings(band_top=0.5, band_bottom=0.2)

    def test_out_of_range_rejected(self) -> None:
        with pytest.raises(ValidationError):
            SpySettings(band_bottom=1.5)
