"""Install command: clone declared packages and record them in the packfile."""

from __future__ import annotations

import logging
from typing import Optional

from pac.commands.common import RunResult, open_store, persist
from pac.config import Settings
from pac.errors import PluginInstalledError, SkipLocalError
from pac.models.package import DEFAULT_CATEGORY, Package, expand_remote
from pac.models.reference import Reference
from pac.sync.reconcile import apply_failures, reconcile
from pac.tasks.executor import Reporter, TaskExecutor, TaskType
from pac.utils import git_ops
from pac.utils.build import run_build

logger = logging.getLogger(__name__)


def build_targets(
    specs: list[str],
    settings: Settings,
    name: Optional[str] = None,
    category: str = DEFAULT_CATEGORY,
    opt: bool = False,
    reference: Optional[Reference] = None,
    load_command: Optional[str] = None,
    for_types: Optional[list[str]] = None,
    build_command: Optional[str] = None,
) -> list[Package]:
    """Turn command-line package specs into target packages.

    ``owner/repo`` expands to a GitHub URL. A load command or filetypes
    imply an opt package.

    Raises:
        ValueError: If *name* is given together with more than one spec.
    """
    if name and len(specs) > 1:
        raise ValueError("Multiple plugins cannot be specified with --as")

    opt = opt or bool(load_command) or bool(for_types)
    return [
        Package.from_remote(
            expand_remote(spec),
            name=name,
            reference=reference,
            category=category or DEFAULT_CATEGORY,
            opt=opt,
            for_types=list(for_types or []),
            load_command=load_command,
            build_command=build_command,
            base_dir=settings.pack_dir,
        )
        for spec in specs
    ]


def install_one(package: Package, timeout: Optional[float] = None) -> str:
    """Clone *package* and run its build command.

    Raises:
        PluginInstalledError: If the package directory already exists.
    """
    path = package.path()
    if path.is_dir():
        raise PluginInstalledError(path)
    if package.is_local:
        raise SkipLocalError()

    commit = git_ops.clone(package.remote, path, package.reference, timeout=timeout)
    if package.build_command:
        try:
            run_build(package.build_command, path)
        except Exception:
            git_ops.remove_tree(path)
            raise
    return commit.hexsha[:7]


def install_plugins(
    settings: Settings,
    targets: list[Package],
    threads: int,
    reporter: Optional[Reporter] = None,
) -> RunResult:
    """Merge *targets* into the packfile, install them and persist the result.

    With no targets every persisted package is installed.
    """
    persisted = open_store(settings).fetch()
    plan = reconcile(persisted, targets)

    executor = TaskExecutor(TaskType.INSTALL, threads, reporter=reporter)
    executor.extend(plan.operands)
    failed = executor.run(lambda p: install_one(p, timeout=settings.git_timeout))

    packages = persist(settings, apply_failures(plan.packages, failed))
    return RunResult(packages=packages, failed=failed, outcomes=executor.outcomes)
