"""Shared fixtures: isolated git environment and settings."""

import pytest

from pac.config import Settings


@pytest.fixture(autouse=True)
def git_env(monkeypatch, tmp_path):
    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.setenv("HOME", str(home))
    monkeypatch.setenv("GIT_CONFIG_NOSYSTEM", "1")
    monkeypatch.setenv("GIT_AUTHOR_NAME", "pac tests")
    monkeypatch.setenv("GIT_AUTHOR_EMAIL", "tests@example.com")
    monkeypatch.setenv("GIT_COMMITTER_NAME", "pac tests")
    monkeypatch.setenv("GIT_COMMITTER_EMAIL", "tests@example.com")
    # local submodule URLs are refused by default since git 2.38.1
    monkeypatch.setenv("GIT_CONFIG_COUNT", "2")
    monkeypatch.setenv("GIT_CONFIG_KEY_0", "protocol.file.allow")
    monkeypatch.setenv("GIT_CONFIG_VALUE_0", "always")
    monkeypatch.setenv("GIT_CONFIG_KEY_1", "init.defaultBranch")
    monkeypatch.setenv("GIT_CONFIG_VALUE_1", "main")
    monkeypatch.delenv("VIM_CONFIG_PATH", raising=False)
    monkeypatch.delenv("PAC_THREADS", raising=False)
    monkeypatch.delenv("PAC_GIT_TIMEOUT", raising=False)


@pytest.fixture
def settings(tmp_path):
    return Settings(vim_dir=tmp_path / "vim")

