"""Uninstall command: delete plugin directories and forget them."""

from __future__ import annotations

import logging
import shutil

from pac.commands.common import open_store, persist
from pac.config import Settings
from pac.errors import PluginNotInstalledError
from pac.models.package import Package

logger = logging.getLogger(__name__)


def uninstall_plugins(settings: Settings, names: list[str], purge: bool = False) -> list[Package]:
    """Remove the packages called *names*; *purge* also deletes their config files.

    Every name is looked up before anything is deleted.

    Raises:
        PluginNotInstalledError: If a name matches no persisted package.
    """
    packages = open_store(settings).fetch()
    by_name = {p.name: p for p in packages}

    to_remove = []
    for name in names:
        if name not in by_name:
            raise PluginNotInstalledError(name)
        to_remove.append(by_name[name])

    for package in to_remove:
        uninstall_plugin(package, purge)

    removed = {p.idname for p in to_remove}
    persist(settings, [p for p in packages if p.idname not in removed])
    return to_remove


def uninstall_plugin(package: Package, purge: bool = False) -> None:
    config_file = package.config_path()
    if purge and config_file.is_file():
        config_file.unlink()

    path = package.path()
    if path.is_dir():
        logger.debug("Removing %s", path)
        shutil.rmtree(path)
