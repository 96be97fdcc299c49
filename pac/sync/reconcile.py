"""Reconciliation of a command's target packages against the packfile.

Precedence when a target matches a persisted entry by idname:

- persisted but not on disk: the target's placement and loader metadata win
- persisted and on disk: the installed placement is kept and the target
  follows it, so re-declaring a package never relocates it
- not persisted: the target is appended as a new entry
"""

from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import dataclass, field
from typing import Callable, Iterable, Optional

from pac.errors import PathCollisionError
from pac.models.package import Package

logger = logging.getLogger(__name__)


@dataclass
class ReconcilePlan:
    """Result of merging: the list to persist and the packages to operate on."""

    packages: list[Package] = field(default_factory=list)
    operands: list[Package] = field(default_factory=list)

    @property
    def idnames(self) -> set[str]:
        return {p.idname for p in self.packages}


def reconcile(
    persisted: Iterable[Package],
    target: Iterable[Package],
    is_installed: Optional[Callable[[Package], bool]] = None,
) -> ReconcilePlan:
    """Merge *target* into a copy of *persisted*.

    With an empty target every persisted package is an operand. A repeated
    persisted idname keeps its first entry.

    Raises:
        PathCollisionError: If two distinct packages end up sharing a directory.
    """
    is_installed = is_installed or Package.is_installed
    packages: list[Package] = []
    by_id: dict[str, Package] = {}
    for package in persisted:
        if package.idname in by_id:
            logger.warning("Ignoring repeated entry for %s", package.idname)
            continue
        by_id[package.idname] = package.copy()
        packages.append(by_id[package.idname])
    target = list(target)

    if not target:
        plan = ReconcilePlan(packages=packages, operands=list(packages))
        check_collisions(plan.packages)
        return plan

    operands: list[Package] = []
    seen: set[str] = set()

    for declared in target:
        wanted = declared.copy()
        existing = by_id.get(wanted.idname)

        if existing is None:
            packages.append(wanted)
            by_id[wanted.idname] = wanted
            operand = wanted
        elif not is_installed(existing):
            existing.category = wanted.category
            existing.opt = wanted.opt
            existing.for_types = list(wanted.for_types)
            existing.load_command = wanted.load_command
            existing.build_command = wanted.build_command
            operand = existing
        else:
            wanted.category = existing.category
            wanted.opt = existing.opt
            wanted.name = existing.name
            operand = wanted

        if operand.idname in seen:
            continue
        seen.add(operand.idname)
        operands.append(operand)

    check_collisions(packages)
    return ReconcilePlan(packages=packages, operands=operands)


def check_collisions(packages: Iterable[Package]) -> None:
    """Reject distinct packages that map to the same ``(category, opt, name)``."""
    owners: dict[tuple[str, bool, str], list[Package]] = defaultdict(list)
    for package in packages:
        owners[package.placement].append(package)

    for group in owners.values():
        idnames = sorted({p.idname for p in group})
        if len(idnames) > 1:
            raise PathCollisionError(group[0].path(), idnames)


def apply_failures(packages: Iterable[Package], failed: set[str]) -> list[Package]:
    """Drop packages whose idname failed and sort the rest by idname."""
    packages = list(packages)
    kept = [p for p in packages if p.idname not in failed]
    if len(kept) != len(packages):
        logger.info("Dropping %s", ", ".join(sorted(failed)))
    return sorted(kept, key=lambda p: p.idname)
