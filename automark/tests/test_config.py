"""Tests for configuration loading"""

from pathlib import Path

import pytest

from automark.core import config
from automark.core.config import (
    DEFAULT_LOCK_FILE,
    AutomarkConfig,
    load_config,
    parse_keep_list,
)


@pytest.fixture(autouse=True)
def clean_cache():
    config.reset_cache()
    yield
    config.reset_cache()


@pytest.fixture
def no_system_config(monkeypatch, tmp_path):
    """Point the standard locations at files that don't exist."""
    monkeypatch.delenv(config.CONFIG_ENV_VAR, raising=False)
    monkeypatch.setattr(config, 'SYSTEM_CONFIG_PATH', tmp_path / 'missing-system.conf')
    monkeypatch.setattr(config, 'USER_CONFIG_PATH', tmp_path / 'missing-user.conf')


class TestParseKeepList:

    def test_commas_and_spaces(self):
        assert parse_keep_list("vim, openssh-server  mutt,,") == {'vim', 'openssh-server', 'mutt'}

    def test_empty(self):
        assert parse_keep_list("") == set()


class TestLoadConfig:
    """Tests for load_config()."""

    def test_explicit_file(self, tmp_path):
        path = tmp_path / "automark.conf"
        path.write_text(
            "# keep these\n"
            "keep=vim, mutt\n"
            "keep=openssh-server\n"
            "\n"
            "lock_file=/tmp/automark-test.lock\n"
            "apt_get=/usr/local/bin/apt-get\n"
        )
        cfg = load_config(path)
        assert cfg.keep == {'vim', 'mutt', 'openssh-server'}
        assert cfg.lock_file == Path("/tmp/automark-test.lock")
        assert cfg.apt_get == "/usr/local/bin/apt-get"
        assert cfg.apt_mark == "apt-mark"
        assert cfg.loaded_from == path

    def test_unknown_keys_and_garbage_ignored(self, tmp_path):
        path = tmp_path / "automark.conf"
        path.write_text("colour=yes\nno equals sign here\nkeep=vim\n")
        assert load_config(path).keep == {'vim'}

    def test_empty_command_keeps_default(self, tmp_path):
        path = tmp_path / "automark.conf"
        path.write_text("dpkg_query=\n")
        assert load_config(path).dpkg_query == "dpkg-query"

    def test_explicit_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_config(tmp_path / "nope.conf")

    def test_defaults_without_file(self, no_system_config):
        cfg = load_config()
        assert cfg == AutomarkConfig()
        assert cfg.lock_file == DEFAULT_LOCK_FILE

    def test_env_var(self, no_system_config, monkeypatch, tmp_path):
        path = tmp_path / "env.conf"
        path.write_text("keep=firmware-linux\n")
        monkeypatch.setenv(config.CONFIG_ENV_VAR, str(path))
        cfg = load_config()
        assert cfg.keep == {'firmware-linux'}
        assert cfg.loaded_from == path

    def test_cached(self, no_system_config, monkeypatch, tmp_path):
        first = load_config()
        path = tmp_path / "late.conf"
        path.write_text("keep=vim\n")
        monkeypatch.setenv(config.CONFIG_ENV_VAR, str(path))
        assert load_config() is first

        config.reset_cache()
        assert load_config().keep == {'vim'}
