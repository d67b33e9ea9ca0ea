"""Tests for settings, run options and YAML loading."""

from __future__ import annotations

from pathlib import Path

import pytest
from pydantic import ValidationError

from integration_harness.exceptions import ConfigurationError
from integration_harness.utils.config import (
    HarnessSettings,
    RunOptions,
    get_settings,
    load_yaml_config,
)


class TestRunOptions:
    """Test suite for RunOptions selection state."""

    def test_no_category_resolves_to_all(self):
        """Selecting nothing means running everything."""
        resolved = RunOptions().resolve()

        assert resolved.selected_categories() == ["storage", "database", "api"]

    def test_all_false_equals_all_true(self):
        """All-false and all-true select the same categories."""
        implicit = RunOptions().resolve()
        explicit = RunOptions(storage=True, database=True, api=True).resolve()

        assert implicit.selected_categories() == explicit.selected_categories()

    def test_explicit_selection_is_kept(self):
        """An explicit selection is not widened."""
        resolved = RunOptions(api=True).resolve()

        assert resolved.selected_categories() == ["api"]

    def test_resolve_preserves_behaviour_flags(self):
        """Resolution keeps failure and verbosity switches."""
        resolved = RunOptions(simulate_failures=True, verbose=True).resolve()

        assert resolved.simulate_failures is True
        assert resolved.verbose is True

    def test_options_are_immutable(self):
        """Options are values, not shared mutable flags."""
        options = RunOptions()

        with pytest.raises(ValidationError):
            options.storage = True  # type: ignore[misc]

    def test_resolve_does_not_mutate_original(self):
        """Resolution returns a new object."""
        options = RunOptions()
        options.resolve()

        assert options.any_category is False


class TestHarnessSettings:
    """Test suite for environment-driven settings."""

    def test_defaults(self, settings):
        """Defaults need no environment."""
        assert settings.log_level == "INFO"
        assert settings.max_retries == 3
        assert settings.max_workers == 1
        assert settings.catalog_path is None
        assert settings.suite_timeout_seconds is None

    def test_type_labels_default_to_mock(self, settings):
        """Absent type variables fall back to the mock label."""
        assert settings.type_label("storage") == "mock"
        assert settings.type_label("database") == "mock"
        assert settings.type_label("api") == "mock"

    def test_type_labels_from_environment(self, monkeypatch):
        """STORAGE_TYPE, DB_TYPE and API_TYPE set the descriptive labels."""
        monkeypatch.setenv("STORAGE_TYPE", "s3")
        monkeypatch.setenv("DB_TYPE", "postgres")
        monkeypatch.setenv("API_TYPE", "rest")

        settings = HarnessSettings(_env_file=None)

        assert settings.type_label("storage") == "s3"
        assert settings.type_label("database") == "postgres"
        assert settings.type_label("api") == "rest"

    def test_blank_type_label_is_mock(self, monkeypatch):
        """An empty type variable counts as absent."""
        monkeypatch.setenv("API_TYPE", "  ")

        assert HarnessSettings(_env_file=None).api_type == "mock"

    def test_unknown_category_label(self, settings):
        """Unknown categories are configuration errors."""
        with pytest.raises(ConfigurationError):
            settings.type_label("queue")

    def test_prefixed_overrides(self, monkeypatch):
        """HARNESS_ variables override defaults."""
        monkeypatch.setenv("HARNESS_LOG_LEVEL", "debug")
        monkeypatch.setenv("HARNESS_MAX_RETRIES", "5")
        monkeypatch.setenv("HARNESS_MAX_WORKERS", "4")

        settings = HarnessSettings(_env_file=None)

        assert settings.log_level == "DEBUG"
        assert settings.max_retries == 5
        assert settings.max_workers == 4

    def test_invalid_retry_count_rejected(self):
        """At least one connect attempt is required."""
        with pytest.raises(ValidationError):
            HarnessSettings(_env_file=None, max_retries=0)

    def test_get_settings_is_cached(self):
        """Settings are cached until reloaded."""
        first = get_settings()

        assert get_settings() is first
        assert get_settings(reload=True) is not first


class TestLoadYamlConfig:
    """Test suite for YAML loading."""

    def test_loads_mapping(self, tmp_path: Path):
        path = tmp_path / "catalog.yaml"
        path.write_text("categories:\n  storage:\n    label: Storage\n")

        assert load_yaml_config(path) == {"categories": {"storage": {"label": "Storage"}}}

    def test_empty_file_is_empty_mapping(self, tmp_path: Path):
        path = tmp_path / "empty.yaml"
        path.write_text("")

        assert load_yaml_config(path) == {}

    def test_missing_file(self, tmp_path: Path):
        with pytest.raises(ConfigurationError, match="Configuration file not found"):
            load_yaml_config(tmp_path / "missing.yaml")

    def test_invalid_yaml(self, tmp_path: Path):
        path = tmp_path / "broken.yaml"
        path.write_text("categories: [unclosed\n")

        with pytest.raises(ConfigurationError, match="Invalid YAML"):
            load_yaml_config(path)
