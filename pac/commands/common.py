"""Shared plumbing for commands: loading, persisting and run results."""

from __future__ import annotations

from dataclasses import dataclass, field

from pac.config import Settings
from pac.generators.loader_config import update_loader_config
from pac.models.package import Package
from pac.store.packfile import PackfileStore
from pac.tasks.executor import TaskOutcome


@dataclass
class RunResult:
    """Outcome of an install or update batch."""

    packages: list[Package] = field(default_factory=list)
    failed: set[str] = field(default_factory=set)
    outcomes: list[TaskOutcome] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)
    missing: list[str] = field(default_factory=list)

    @property
    def kept(self) -> list[str]:
        return [p.idname for p in self.packages]


def open_store(settings: Settings) -> PackfileStore:
    return PackfileStore(settings.packfile, settings.pack_dir)


def persist(settings: Settings, packages: list[Package]) -> list[Package]:
    """Save *packages* sorted by idname, then regenerate the loader."""
    packages = sorted(packages, key=lambda p: p.idname)
    open_store(settings).save(packages)
    update_loader_config(packages, settings.loader_file)
    return packages


def regenerate(settings: Settings) -> list[Package]:
    """Rebuild the loader from the packfile without changing it."""
    packages = sorted(open_store(settings).fetch(), key=lambda p: p.idname)
    update_loader_config(packages, settings.loader_file)
    return packages
