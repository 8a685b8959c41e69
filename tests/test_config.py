from pathlib import Path

import pytest
from hypothesis import given, strategies as st

from snapsift.config import Settings


class TestSettings:
    def test_default_values(self):
        """Test that Settings has sensible defaults."""
        settings = Settings()
        assert settings.store_path == Path("snapsift.json")
        assert settings.duplicate_threshold == 5
        assert settings.workers == 4
        assert settings.ocr_languages == "deu+eng"
        assert ".png" in settings.image_extensions

    def test_custom_values(self):
        settings = Settings(store_path=Path("/data/shots.json"), duplicate_threshold=8, workers=1)
        assert settings.store_path == Path("/data/shots.json")
        assert settings.duplicate_threshold == 8
        assert settings.workers == 1

    def test_validate_returns_settings(self):
        settings = Settings()
        assert settings.validate() is settings


class TestConfigValidation:
    @given(threshold=st.integers(min_value=0, max_value=64))
    def test_thresholds_within_hash_length_are_valid(self, threshold):
        Settings(duplicate_threshold=threshold).validate()

    @given(threshold=st.one_of(st.integers(max_value=-1), st.integers(min_value=65)))
    def test_thresholds_outside_hash_length_are_rejected(self, threshold):
        with pytest.raises(ValueError):
            Settings(duplicate_threshold=threshold).validate()

    @given(workers=st.integers(max_value=0))
    def test_non_positive_workers_are_rejected(self, workers):
        with pytest.raises(ValueError):
            Settings(workers=workers).validate()
