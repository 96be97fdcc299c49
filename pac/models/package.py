"""Package — one plugin's identity, placement and sync parameters."""

from __future__ import annotations

import re
from dataclasses import dataclass, field, replace
from pathlib import Path

from pac.config import CONFIG_DIR_NAME, default_vim_dir
from pac.models.reference import Reference

DEFAULT_CATEGORY = "default"
GITHUB_PREFIX = "https://github.com/"

_SCHEME_RE = re.compile(r"^[a-zA-Z][a-zA-Z0-9+.-]*://")
_SCP_RE = re.compile(r"^(?:[^@/]+@)?([^:/]+):(.+)$")


def _default_base_dir() -> Path:
    return default_vim_dir() / "pack"


@dataclass
class Package:
    """A single installable plugin.

    ``idname`` is the merge key across the packfile and command targets;
    ``(category, opt, name)`` decides where the plugin lives on disk.
    """

    name: str
    idname: str
    remote: str = ""
    reference: Reference | None = None
    category: str = DEFAULT_CATEGORY
    opt: bool = False

    # Consumed by the loader generator only
    for_types: list[str] = field(default_factory=list)
    load_command: str | None = None
    build_command: str | None = None

    base_dir: Path = field(default_factory=_default_base_dir, compare=False, repr=False)

    @classmethod
    def from_remote(cls, remote: str, name: str | None = None, **kwargs) -> "Package":
        """Create a package for *remote*, naming it after the last path segment."""
        return cls(
            name=name or name_from_remote(remote),
            idname=idname_from_remote(remote),
            remote=remote,
            **kwargs,
        )

    @property
    def bucket(self) -> str:
        return "opt" if self.opt else "start"

    @property
    def placement(self) -> tuple[str, bool, str]:
        return (self.category, self.opt, self.name)

    def path(self) -> Path:
        """Directory the plugin is cloned into."""
        return self.base_dir / self.category / self.bucket / self.name

    def config_path(self) -> Path:
        """Per-plugin config file owned by the loader generator."""
        return self.base_dir.parent / CONFIG_DIR_NAME / self.category / f"{self.name}.vim"

    def is_installed(self) -> bool:
        return self.path().is_dir()

    @property
    def is_local(self) -> bool:
        return not self.remote

    def matches(self, query: str) -> bool:
        """True if *query* names this package by idname, idname suffix or name."""
        return (
            query == self.idname
            or self.idname.endswith("/" + query.strip("/"))
            or query == self.name
        )

    def copy(self, **changes) -> "Package":
        changes.setdefault("for_types", list(self.for_types))
        return replace(self, **changes)


def expand_remote(spec: str) -> str:
    """Turn ``owner/repo`` shorthand into a GitHub URL; leave real addresses alone."""
    if _SCHEME_RE.match(spec) or _SCP_RE.match(spec) or spec.startswith(("/", ".", "~")):
        return spec
    return GITHUB_PREFIX + spec.strip("/")


def name_from_remote(remote: str) -> str:
    last = remote.rstrip("/").rsplit("/", 1)[-1]
    last = last.rsplit(":", 1)[-1]
    if last.endswith(".git"):
        last = last[: -len(".git")]
    return last


def idname_from_remote(remote: str) -> str:
    """Normalize a remote address to ``host/path`` without scheme, user or ``.git``.

    >>> idname_from_remote("https://github.com/tpope/vim-fugitive.git")
    'github.com/tpope/vim-fugitive'
    >>> idname_from_remote("git@github.com:tpope/vim-fugitive")
    'github.com/tpope/vim-fugitive'
    """
    addr = remote.strip()
    if _SCHEME_RE.match(addr):
        addr = _SCHEME_RE.sub("", addr, count=1)
        # drop user@ from the authority part
        head, sep, tail = addr.partition("/")
        addr = head.rsplit("@", 1)[-1] + sep + tail
    else:
        m = _SCP_RE.match(addr)
        if m and not addr.startswith(("/", ".", "~")):
            addr = f"{m.group(1)}/{m.group(2)}"
    addr = addr.rstrip("/")
    if addr.endswith(".git"):
        addr = addr[: -len(".git")]
    return addr.strip("/")
