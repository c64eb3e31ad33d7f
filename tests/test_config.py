"""Unit tests for the config module."""

import os
from pathlib import Path
from unittest.mock import patch

from pydantic import ValidationError
import pytest

from docs_index.config import Settings


pytestmark = pytest.mark.unit


class TestConfig:
    """Test configuration loading and validation."""

    def test_config_defaults_are_applied(self):
        settings = Settings()
        assert settings.index_path == Path("search.db")
        assert settings.default_search_limit == 20
        assert settings.max_search_limit == 100
        assert settings.progress_interval == 100
        assert settings.package_progress_interval == 500

    def test_source_directories_are_optional(self):
        settings = Settings()
        assert settings.docs_dir is None
        assert settings.evolution_dir is None
        assert settings.packages_catalog is None

    @patch.dict(os.environ, {"DOCS_INDEX_DOCS_DIR": "/data/docs", "DOCS_INDEX_MAX_SEARCH_LIMIT": "50"}, clear=False)
    def test_environment_overrides(self):
        settings = Settings()
        assert settings.docs_dir == Path("/data/docs")
        assert settings.max_search_limit == 50

    def test_default_limit_must_not_exceed_max(self):
        with pytest.raises(ValidationError, match="DEFAULT_SEARCH_LIMIT"):
            Settings(default_search_limit=200, max_search_limit=100)

    def test_overfetch_ceiling_must_cover_max_limit(self):
        with pytest.raises(ValidationError, match="OVERFETCH_CEILING"):
            Settings(max_search_limit=100, overfetch_ceiling=50)

    def test_progress_interval_must_be_positive(self):
        with pytest.raises(ValidationError):
            Settings(progress_interval=0)


class TestLimits:
    @pytest.mark.parametrize(
        ("requested", "expected"),
        [(None, 20), (0, 20), (-5, 20), (5, 5), (100, 100), (500, 100)],
    )
    def test_clamp_limit(self, requested, expected):
        assert Settings().clamp_limit(requested) == expected

    def test_fetch_limit_overfetches_up_to_ceiling(self):
        settings = Settings(overfetch_factor=20, overfetch_ceiling=1000)
        assert settings.fetch_limit(10) == 200
        assert settings.fetch_limit(100) == 1000
