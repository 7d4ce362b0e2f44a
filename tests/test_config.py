"""Tests for sysdash.config."""

from __future__ import annotations

import tomllib
from pathlib import Path

import pytest

import sysdash.config as config_mod
from sysdash.config import DEFAULT_CONFIG, dump_default_config, load_config, merge_config


@pytest.fixture(autouse=True)
def _no_user_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Point the default location somewhere empty so ~/.config is never read."""
    path = tmp_path / "home" / "config.toml"
    monkeypatch.setattr(config_mod, "_DEFAULT_PATH", path)
    return path


class TestLoadConfigDefaults:
    def test_defaults_returned_when_no_file(self) -> None:
        cfg = load_config(None)
        assert cfg["show_fps"] is True
        assert cfg["tick_interval"] == 1.0
        assert cfg["max_table_rows"] == 10
        assert cfg["disk_path"] == "/"
        assert cfg["exit_keys"] == ["escape", "q"]
        assert cfg["network"] == {"up_only": False, "max_interfaces": 3}

    def test_all_default_keys_present(self) -> None:
        cfg = load_config(None)
        assert set(cfg.keys()) == set(DEFAULT_CONFIG.keys())

    def test_returned_config_is_a_copy(self) -> None:
        cfg = load_config(None)
        cfg["network"]["up_only"] = True
        assert DEFAULT_CONFIG["network"]["up_only"] is False


class TestTomlOverlay:
    def test_overrides_nested_value(self, tmp_path: Path) -> None:
        toml_file = tmp_path / "config.toml"
        toml_file.write_text("[network]\nup_only = true\n")
        cfg = load_config(toml_file)
        assert cfg["network"]["up_only"] is True
        # Sibling keys remain at defaults
        assert cfg["network"]["max_interfaces"] == 3

    def test_overrides_scalar(self, tmp_path: Path) -> None:
        toml_file = tmp_path / "config.toml"
        toml_file.write_text("show_fps = false\ntick_interval = 2.5\n")
        cfg = load_config(toml_file)
        assert cfg["show_fps"] is False
        assert cfg["tick_interval"] == 2.5
        assert cfg["max_table_rows"] == 10
        assert cfg["disk_path"] == "/"

    def test_default_location_used(self, _no_user_config: Path) -> None:
        _no_user_config.parent.mkdir(parents=True)
        _no_user_config.write_text('exit_keys = ["x"]\n')
        assert load_config(None)["exit_keys"] == ["x"]

    def test_invalid_default_file_ignored(
        self, _no_user_config: Path, capsys: pytest.CaptureFixture[str]
    ) -> None:
        _no_user_config.parent.mkdir(parents=True)
        _no_user_config.write_text("not = [valid\n")
        cfg = load_config(None)
        assert cfg["tick_interval"] == 1.0
        assert "ignoring invalid TOML" in capsys.readouterr().err


class TestExplicitPath:
    def test_explicit_path_used(self, tmp_path: Path) -> None:
        cfg_file = tmp_path / "custom.toml"
        cfg_file.write_text("max_table_rows = 5\n")
        assert load_config(cfg_file)["max_table_rows"] == 5

    def test_missing_explicit_path_errors(self, tmp_path: Path) -> None:
        with pytest.raises(SystemExit):
            load_config(tmp_path / "nonexistent.toml")

    def test_invalid_toml_errors(self, tmp_path: Path) -> None:
        bad_file = tmp_path / "bad.toml"
        bad_file.write_text("this is [not valid toml\n")
        with pytest.raises(SystemExit):
            load_config(bad_file)


class TestDumpDefaultConfig:
    def test_roundtrips_defaults(self) -> None:
        parsed = tomllib.loads(dump_default_config())
        assert parsed == DEFAULT_CONFIG


class TestMergeConfig:
    def test_scalar_overwrite(self) -> None:
        assert merge_config({"a": 1, "b": 2}, {"a": 10}) == {"a": 10, "b": 2}

    def test_nested_dict_merge(self) -> None:
        result = merge_config({"x": {"a": 1, "b": 2}}, {"x": {"b": 3, "c": 4}})
        assert result["x"] == {"a": 1, "b": 3, "c": 4}
