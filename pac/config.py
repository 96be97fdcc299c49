"""Runtime settings — where plugins, the packfile and generated files live.

All paths hang off a single root, the editor config directory::

    <vim_dir>/
        pack/                    installed packages (pack_dir)
            packfile.yaml        persisted package set
            <category>/start/    eagerly loaded plugins
            <category>/opt/      plugins loaded on demand
        .pac/<category>/<name>.vim   per-plugin config files
        plugin/_pac.vim          generated loader
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

VIM_DIR_ENV = "VIM_CONFIG_PATH"
THREADS_ENV = "PAC_THREADS"
GIT_TIMEOUT_ENV = "PAC_GIT_TIMEOUT"

PACKFILE_NAME = "packfile.yaml"
CONFIG_DIR_NAME = ".pac"
LOADER_FILE = Path("plugin") / "_pac.vim"


def default_vim_dir() -> Path:
    env = os.environ.get(VIM_DIR_ENV)
    if env:
        return Path(env).expanduser()
    return Path.home() / ".vim"


def default_threads() -> int:
    env = os.environ.get(THREADS_ENV)
    if env:
        try:
            return int(env)
        except ValueError:
            raise ValueError(f"{THREADS_ENV} must be an integer, got {env!r}")
    return os.cpu_count() or 1


def default_git_timeout() -> float | None:
    env = os.environ.get(GIT_TIMEOUT_ENV)
    if not env:
        return None
    try:
        timeout = float(env)
    except ValueError:
        raise ValueError(f"{GIT_TIMEOUT_ENV} must be a number of seconds, got {env!r}")
    return timeout if timeout > 0 else None


@dataclass
class Settings:
    """Resolved locations and defaults for one pac invocation."""

    vim_dir: Path
    git_timeout: float | None = None

    @classmethod
    def from_env(cls, vim_dir: str | Path | None = None) -> "Settings":
        root = Path(vim_dir).expanduser() if vim_dir else default_vim_dir()
        return cls(vim_dir=root, git_timeout=default_git_timeout())

    @property
    def pack_dir(self) -> Path:
        return self.vim_dir / "pack"

    @property
    def packfile(self) -> Path:
        return self.pack_dir / PACKFILE_NAME

    @property
    def config_dir(self) -> Path:
        return self.vim_dir / CONFIG_DIR_NAME

    @property
    def loader_file(self) -> Path:
        return self.vim_dir / LOADER_FILE
