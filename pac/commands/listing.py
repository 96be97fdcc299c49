"""List command: show persisted packages and untracked plugin directories."""

from __future__ import annotations

from pathlib import Path
from typing import Optional

from pac.commands.common import open_store
from pac.config import Settings
from pac.models.package import Package


def list_packages(
    settings: Settings,
    start: bool = False,
    opt: bool = False,
    category: Optional[str] = None,
) -> list[Package]:
    """Persisted packages, optionally narrowed to one bucket and/or category."""
    packages = open_store(settings).fetch()
    if start:
        packages = [p for p in packages if not p.opt]
    if opt:
        packages = [p for p in packages if p.opt]
    if category:
        packages = [p for p in packages if p.category == category]
    return sorted(packages, key=lambda p: p.idname)


def detached_dirs(settings: Settings) -> list[Path]:
    """Plugin directories under the pack dir that no persisted package owns."""
    owned = {p.path() for p in open_store(settings).fetch()}
    pack_dir = settings.pack_dir
    if not pack_dir.is_dir():
        return []

    found = []
    for category in sorted(pack_dir.iterdir()):
        if not category.is_dir():
            continue
        for bucket in ("start", "opt"):
            bucket_dir = category / bucket
            if not bucket_dir.is_dir():
                continue
            for plugin in sorted(bucket_dir.iterdir()):
                if plugin.is_dir() and plugin not in owned:
                    found.append(plugin)
    return found
