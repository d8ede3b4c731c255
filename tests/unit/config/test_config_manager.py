"""Tests for layered configuration loading (defaults, user file, LEGALMD_* env)."""
from __future__ import annotations

from pathlib import Path

import pytest

from legalmd.core.config import ConfigManager, clear_all_caches, get_cached_config, is_cached
from legalmd.core.exceptions import ConfigError


def write_config(tmp_path: Path, text: str) -> Path:
    path = tmp_path / "legalmd.yaml"
    path.write_text(text, encoding="utf-8")
    return path


# ============================================================================
# Defaults and user file
# ============================================================================


def test_bundled_defaults() -> None:
    cfg = ConfigManager().load_config()
    assert cfg["pipeline"]["logLevel"] == "warn"
    assert cfg["pipeline"]["fieldTracking"]["mode"] == "distributed"
    assert cfg["processing"]["imports"]["maxDepth"] == 10
    assert cfg["logging"]["level"] == "WARNING"


def test_get_by_dotted_key() -> None:
    manager = ConfigManager()
    assert manager.get("processing.currency.default") == "USD"
    assert manager.get("processing.nope.deeper", "fallback") == "fallback"


class TestUserFile:
    def test_user_file_overrides_defaults(self, tmp_path: Path) -> None:
        path = write_config(tmp_path, "processing:\n  currency:\n    default: EUR\n")
        cfg = ConfigManager(path).load_config()
        assert cfg["processing"]["currency"]["default"] == "EUR"
        assert cfg["processing"]["imports"]["maxDepth"] == 10

    def test_config_path_from_environment(self, tmp_path: Path, monkeypatch) -> None:
        path = write_config(tmp_path, "pipeline:\n  continueOnError: true\n")
        monkeypatch.setenv("LEGALMD_CONFIG", str(path))
        assert ConfigManager().load_config()["pipeline"]["continueOnError"] is True

    def test_empty_file(self, tmp_path: Path) -> None:
        path = write_config(tmp_path, "")
        assert ConfigManager(path).load_config()["pipeline"]["logLevel"] == "warn"

    @pytest.mark.parametrize(
        ("text", "message"),
        [
            ("pipeline: [unclosed", "Invalid YAML"),
            ("- a\n- b\n", "must contain a mapping"),
        ],
    )
    def test_malformed_file(self, tmp_path: Path, text: str, message: str) -> None:
        with pytest.raises(ConfigError, match=message):
            ConfigManager(write_config(tmp_path, text)).load_config()

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(ConfigError, match="Config file not found"):
            ConfigManager(tmp_path / "absent.yaml").load_config()


# ============================================================================
# Environment overrides
# ============================================================================


class TestEnvOverrides:
    def test_nested_key_matches_camel_case(self, monkeypatch) -> None:
        monkeypatch.setenv("LEGALMD_PIPELINE__CONTINUEONERROR", "true")
        monkeypatch.setenv("LEGALMD_PROCESSING__IMPORTS__MAXDEPTH", "3")
        cfg = ConfigManager().load_config()
        assert cfg["pipeline"]["continueOnError"] is True
        assert cfg["processing"]["imports"]["maxDepth"] == 3

    def test_new_keys_are_created(self, monkeypatch) -> None:
        monkeypatch.setenv("LEGALMD_PIPELINE__STEPTIMEOUTS__IMPORTS", "2.5")
        cfg = ConfigManager().load_config()
        assert cfg["pipeline"]["stepTimeouts"] == {"imports": 2.5}

    def test_env_beats_user_file(self, tmp_path: Path, monkeypatch) -> None:
        path = write_config(tmp_path, "pipeline:\n  logLevel: info\n")
        monkeypatch.setenv("LEGALMD_PIPELINE__LOGLEVEL", "debug")
        assert ConfigManager(path).load_config()["pipeline"]["logLevel"] == "debug"

    @pytest.mark.parametrize(
        ("raw", "expected"),
        [
            ("true", True),
            ("False", False),
            ("42", 42),
            ("-1.5", -1.5),
            ('{"a": 1}', {"a": 1}),
            ("[1, 2]", [1, 2]),
            (" EUR ", "EUR"),
            ("{not json}", "{not json}"),
        ],
    )
    def test_value_coercion(self, raw: str, expected) -> None:
        assert ConfigManager()._coerce_type(raw) == expected

    def test_malformed_key(self, monkeypatch) -> None:
        monkeypatch.setenv("LEGALMD_PIPELINE____LOGLEVEL", "info")
        with pytest.raises(ConfigError, match="empty segment"):
            ConfigManager().load_config()


# ============================================================================
# Validation and caching
# ============================================================================


class TestSchemaValidation:
    def test_invalid_enum(self, monkeypatch) -> None:
        monkeypatch.setenv("LEGALMD_PIPELINE__LOGLEVEL", "verbose")
        with pytest.raises(ConfigError, match="pipeline.logLevel") as excinfo:
            ConfigManager().load_config()
        assert excinfo.value.context["errors"]

    def test_invalid_type_in_user_file(self, tmp_path: Path) -> None:
        path = write_config(tmp_path, "processing:\n  imports:\n    maxDepth: 0\n")
        with pytest.raises(ConfigError, match="processing.imports.maxDepth"):
            ConfigManager(path).load_config()

    def test_validation_can_be_skipped(self, monkeypatch) -> None:
        monkeypatch.setenv("LEGALMD_PIPELINE__LOGLEVEL", "verbose")
        assert ConfigManager().load_config(validate=False)["pipeline"]["logLevel"] == "verbose"


class TestCache:
    def test_cached_per_environment(self, monkeypatch) -> None:
        first = get_cached_config()
        assert get_cached_config() is first
        assert is_cached()
        monkeypatch.setenv("LEGALMD_PROCESSING__CURRENCY__DEFAULT", "GBP")
        assert not is_cached()
        assert get_cached_config()["processing"]["currency"]["default"] == "GBP"

    def test_clear(self) -> None:
        get_cached_config()
        clear_all_caches()
        assert not is_cached()
