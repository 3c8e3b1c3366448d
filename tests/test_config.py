"""
Tests for configuration loading and validation.
"""

import argparse

import pytest

from profile_reset import config as config_module
from profile_reset.config import Config, DEFAULT_CLEAN_ALWAYS
from profile_reset.errors import ConfigError


@pytest.fixture(autouse=True)
def isolated_env(monkeypatch):
    for var in ("PROFILE_RESET_CONFIG", "PROFILE_RESET_STORAGE_ROOT", "PROFILE_RESET_PROFILES_ROOT"):
        monkeypatch.delenv(var, raising=False)
    monkeypatch.setattr(config_module, "CONFIG_SEARCH_PATHS", [])


def write_config(tmp_path, text):
    path = tmp_path / "config.toml"
    path.write_text(text)
    return path


class TestLoad:

    def test_defaults(self):
        config = Config.load()
        assert config.storage.root == "/var/lib/.profile_reset"
        assert config.profiles.root == "/home"
        assert config.policy.default_clean_after_days == 1
        assert config.policy.default_clean_always == DEFAULT_CLEAN_ALWAYS
        assert config.mirror.tool == "rsync"
        assert config.log.max_bytes == 8192
        assert config.validate() == []

    def test_from_file(self, tmp_path):
        path = write_config(tmp_path, """
[storage]
root = "/srv/.snapshots"

[policy]
default_clean_after_days = 3
default_clean_always = ["Downloads"]

[mirror]
tool = "copytree"
timeout = 120
""")
        config = Config.load(str(path))
        assert config.storage.root == "/srv/.snapshots"
        assert config.profiles.root == "/home"
        assert config.policy.default_clean_after_days == 3
        assert config.policy.default_clean_always == ["Downloads"]
        assert config.mirror.tool == "copytree"
        assert config.mirror.timeout == 120
        assert "Config: " + str(path) in config.summary()

    def test_env_config_path(self, tmp_path, monkeypatch):
        path = write_config(tmp_path, '[profiles]\nroot = "/Users"\n')
        monkeypatch.setenv("PROFILE_RESET_CONFIG", str(path))
        assert Config.load().profiles.root == "/Users"

    def test_missing_explicit_file(self, tmp_path):
        with pytest.raises(ConfigError):
            Config.load(str(tmp_path / "absent.toml"))

    def test_invalid_toml(self, tmp_path):
        path = write_config(tmp_path, "[storage\nroot = ")
        with pytest.raises(ConfigError) as exc:
            Config.load(str(path))
        assert "Invalid TOML" in str(exc.value)

    def test_search_path_used(self, tmp_path, monkeypatch):
        path = write_config(tmp_path, '[mirror]\ntool = "copytree"\n')
        monkeypatch.setattr(config_module, "CONFIG_SEARCH_PATHS", [tmp_path / "nope.toml", path])
        assert Config.load().mirror.tool == "copytree"


class TestOverrides:

    def test_env_beats_file(self, tmp_path, monkeypatch):
        path = write_config(tmp_path, '[storage]\nroot = "/from/file"\n')
        monkeypatch.setenv("PROFILE_RESET_STORAGE_ROOT", "/from/env")
        assert Config.load(str(path)).storage.root == "/from/env"

    def test_args_beat_env(self, monkeypatch):
        monkeypatch.setenv("PROFILE_RESET_PROFILES_ROOT", "/from/env")
        config = Config.load()
        args = argparse.Namespace(
            storage_root=None, profiles_root="/from/args", mirror_tool="copytree", log="/tmp/run.log"
        )
        config.override_from_args(args)
        assert config.profiles.root == "/from/args"
        assert config.storage.root == "/var/lib/.profile_reset"
        assert config.mirror.tool == "copytree"
        assert config.log.path == "/tmp/run.log"

    def test_bare_log_flag_keeps_configured_path(self):
        config = Config()
        config.override_from_args(argparse.Namespace(log=True))
        assert config.log.path == "/var/log/profile_reset.log"


class TestValidate:

    def test_nested_roots(self):
        config = Config()
        config.storage.root = "/home/.profile_reset"
        assert any("contain each other" in e for e in config.validate())

    @pytest.mark.parametrize("days", [-1, "1", True, 1.5])
    def test_bad_default_days(self, days):
        config = Config()
        config.policy.default_clean_after_days = days
        assert config.validate()

    def test_bad_default_paths(self):
        config = Config()
        config.policy.default_clean_always = [".cache", "/etc", "../x"]
        errors = config.validate()
        assert len(errors) == 2

    def test_bad_mirror(self):
        config = Config()
        config.mirror.tool = "robocopy"
        config.mirror.timeout = 0
        assert len(config.validate()) == 2
