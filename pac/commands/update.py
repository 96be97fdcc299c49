"""Update command: pull installed packages to their pinned reference."""

from __future__ import annotations

import logging
from typing import Optional

from pac.commands.common import RunResult, open_store, persist
from pac.config import Settings
from pac.errors import PluginNotInstalledError, SkipLocalError
from pac.models.package import Package
from pac.sync.reconcile import apply_failures, reconcile
from pac.tasks.executor import Reporter, TaskExecutor, TaskType
from pac.utils import git_ops
from pac.utils.build import run_build

logger = logging.getLogger(__name__)


def update_one(package: Package, timeout: Optional[float] = None) -> str:
    """Pull *package* and rebuild it.

    Raises:
        PluginNotInstalledError: If the package directory is missing.
        SkipLocalError: If the package has no remote.
    """
    path = package.path()
    if not path.is_dir():
        raise PluginNotInstalledError(package.idname)
    if package.is_local:
        raise SkipLocalError()

    commit = git_ops.pull(package.remote, path, package.reference, timeout=timeout)
    if package.build_command:
        run_build(package.build_command, path)
    return commit.hexsha[:7]


def select_packages(
    packages: list[Package],
    names: list[str],
    skip: Optional[list[str]] = None,
) -> tuple[list[Package], list[str], list[str]]:
    """Pick the packages an update run targets.

    Without *names* every package is picked except those whose idname
    contains one of the *skip* patterns.

    Returns:
        ``(selected, skipped_idnames, unknown_names)``
    """
    skip = skip or []
    if not names:
        selected, skipped = [], []
        for package in packages:
            if any(pattern in package.idname for pattern in skip):
                skipped.append(package.idname)
                continue
            selected.append(package)
        return selected, skipped, []

    selected, unknown = [], []
    for name in names:
        matches = [p for p in packages if p.matches(name)]
        if not matches:
            unknown.append(name)
        selected.extend(matches)
    return selected, [], unknown


def update_plugins(
    settings: Settings,
    names: list[str],
    threads: int,
    skip: Optional[list[str]] = None,
    reporter: Optional[Reporter] = None,
) -> RunResult:
    """Update the named packages (all by default) and persist the survivors."""
    persisted = open_store(settings).fetch()
    selected, skipped, unknown = select_packages(persisted, names, skip)
    for name in unknown:
        logger.warning("No installed package matches %s", name)

    plan = reconcile(persisted, selected)
    if not selected:
        # an empty target would otherwise mean "everything"
        plan.operands = []

    executor = TaskExecutor(TaskType.UPDATE, threads, reporter=reporter)
    executor.extend(plan.operands)
    failed = executor.run(lambda p: update_one(p, timeout=settings.git_timeout))

    packages = persist(settings, apply_failures(plan.packages, failed))
    return RunResult(
        packages=packages,
        failed=failed,
        outcomes=executor.outcomes,
        skipped=skipped,
        missing=unknown,
    )
