"""
Tests for interpreter configuration loading.
"""

import pytest

from eucalyptus import InterpreterConfig, load_config
from eucalyptus.config import (
    EUCALYPTUS_CONFIG,
    DEFAULT_MAX_CALL_DEPTH,
    clear_cache,
    user_config_path,
)


@pytest.fixture(autouse=True)
def isolated_config(tmp_path, monkeypatch):
    """No env override and an empty home directory for every test."""
    monkeypatch.delenv(EUCALYPTUS_CONFIG, raising=False)
    monkeypatch.setenv("HOME", str(tmp_path / "home"))
    clear_cache()
    yield
    clear_cache()


def write_config(path, text):
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")
    return path


class TestInterpreterConfig:
    """Test the settings object itself."""

    def test_defaults(self):
        config = InterpreterConfig()
        assert config.max_call_depth == DEFAULT_MAX_CALL_DEPTH == 128
        assert config.filename is None

    def test_with_filename(self):
        config = InterpreterConfig(max_call_depth=7).with_filename("a.eu")
        assert config.filename == "a.eu"
        assert config.max_call_depth == 7

    @pytest.mark.parametrize("depth", [0, -1, "deep", True, 2.5])
    def test_invalid_depth(self, depth):
        with pytest.raises(ValueError):
            InterpreterConfig(max_call_depth=depth)


class TestLoadConfig:
    """Test locating and reading the YAML config file."""

    def test_no_file_gives_defaults(self):
        assert load_config() == InterpreterConfig()

    def test_explicit_path(self, tmp_path):
        path = write_config(tmp_path / "eu.yaml", "max_call_depth: 256\n")
        assert load_config(path).max_call_depth == 256

    def test_explicit_path_as_string(self, tmp_path):
        path = write_config(tmp_path / "eu.yaml", "max_call_depth: 64\n")
        assert load_config(str(path)).max_call_depth == 64

    def test_env_var(self, tmp_path, monkeypatch):
        path = write_config(tmp_path / "env.yaml", "max_call_depth: 32\n")
        monkeypatch.setenv(EUCALYPTUS_CONFIG, str(path))
        assert load_config().max_call_depth == 32

    def test_user_config_file(self):
        path = user_config_path()
        assert path.name == "config.yaml"
        write_config(path, "max_call_depth: 16\n")
        assert load_config().max_call_depth == 16

    def test_env_var_wins_over_user_file(self, tmp_path, monkeypatch):
        write_config(user_config_path(), "max_call_depth: 16\n")
        path = write_config(tmp_path / "env.yaml", "max_call_depth: 32\n")
        monkeypatch.setenv(EUCALYPTUS_CONFIG, str(path))
        assert load_config().max_call_depth == 32

    def test_explicit_path_wins_over_env_var(self, tmp_path, monkeypatch):
        env_path = write_config(tmp_path / "env.yaml", "max_call_depth: 32\n")
        monkeypatch.setenv(EUCALYPTUS_CONFIG, str(env_path))
        path = write_config(tmp_path / "eu.yaml", "max_call_depth: 8\n")
        assert load_config(path).max_call_depth == 8

    def test_empty_file_gives_defaults(self, tmp_path):
        path = write_config(tmp_path / "empty.yaml", "")
        assert load_config(path) == InterpreterConfig()

    def test_filename_setting(self, tmp_path):
        path = write_config(tmp_path / "eu.yaml", "filename: main.eu\n")
        config = load_config(path)
        assert config.filename == "main.eu"
        assert config.max_call_depth == DEFAULT_MAX_CALL_DEPTH

    def test_missing_explicit_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_config(tmp_path / "missing.yaml")

    def test_env_var_to_missing_file(self, tmp_path, monkeypatch):
        monkeypatch.setenv(EUCALYPTUS_CONFIG, str(tmp_path / "missing.yaml"))
        with pytest.raises(FileNotFoundError) as exc_info:
            load_config()
        assert EUCALYPTUS_CONFIG in str(exc_info.value)

    def test_non_mapping_root(self, tmp_path):
        path = write_config(tmp_path / "list.yaml", "- 1\n- 2\n")
        with pytest.raises(ValueError) as exc_info:
            load_config(path)
        assert "expected mapping" in str(exc_info.value)

    def test_unknown_keys(self, tmp_path):
        path = write_config(tmp_path / "eu.yaml", "max_depth: 3\ncolour: green\n")
        with pytest.raises(ValueError) as exc_info:
            load_config(path)
        assert "colour, max_depth" in str(exc_info.value)

    def test_invalid_value(self, tmp_path):
        path = write_config(tmp_path / "eu.yaml", "max_call_depth: 0\n")
        with pytest.raises(ValueError):
            load_config(path)


class TestConfigCache:
    """Loaded settings are cached until clear_cache() is called."""

    def test_cached(self, tmp_path):
        path = write_config(tmp_path / "eu.yaml", "max_call_depth: 10\n")
        first = load_config(path)
        write_config(path, "max_call_depth: 20\n")
        assert load_config(path) is first

    def test_clear_cache(self, tmp_path):
        path = write_config(tmp_path / "eu.yaml", "max_call_depth: 10\n")
        load_config(path)
        write_config(path, "max_call_depth: 20\n")
        clear_cache()
        assert load_config(path).max_call_depth == 20

    def test_env_change_is_not_stale(self, tmp_path, monkeypatch):
        a = write_config(tmp_path / "a.yaml", "max_call_depth: 1\n")
        b = write_config(tmp_path / "b.yaml", "max_call_depth: 2\n")
        monkeypatch.setenv(EUCALYPTUS_CONFIG, str(a))
        assert load_config().max_call_depth == 1
        monkeypatch.setenv(EUCALYPTUS_CONFIG, str(b))
        assert load_config().max_call_depth == 2
