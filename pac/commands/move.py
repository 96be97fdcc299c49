"""Move command: change a package's category or make it optional."""

from __future__ import annotations

import logging
import shutil
from typing import Optional

from pac.commands.common import open_store, persist
from pac.config import Settings
from pac.errors import NoPluginError, PluginInstalledError
from pac.models.package import Package
from pac.sync.reconcile import check_collisions

logger = logging.getLogger(__name__)


def move_plugin(
    settings: Settings,
    name: str,
    category: Optional[str] = None,
    opt: bool = False,
) -> Package:
    """Relocate the package called *name*, renaming its directory if installed.

    Raises:
        NoPluginError: If no persisted package has that name.
        PluginInstalledError: If the destination directory already exists.
        PathCollisionError: If another package already owns the destination.
    """
    packages = open_store(settings).fetch()
    package = next((p for p in packages if p.name == name), None)
    if package is None:
        raise NoPluginError(name)

    moved = package.copy(category=category or package.category, opt=opt or package.opt)
    if moved.placement == package.placement:
        return package

    updated = [moved if p.idname == package.idname else p for p in packages]
    check_collisions(updated)

    src, dest = package.path(), moved.path()
    if src.is_dir():
        if dest.exists():
            raise PluginInstalledError(dest)
        dest.parent.mkdir(parents=True, exist_ok=True)
        logger.debug("Moving %s to %s", src, dest)
        shutil.move(str(src), str(dest))

    config_src, config_dest = package.config_path(), moved.config_path()
    if config_src.is_file() and not config_dest.exists():
        config_dest.parent.mkdir(parents=True, exist_ok=True)
        shutil.move(str(config_src), str(config_dest))

    persist(settings, updated)
    return moved
