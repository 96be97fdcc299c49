"""Bounded worker pool for per-package operations.

The executor owns scheduling and outcome classification only. It never
touches the package list itself: callers get back the set of idnames that
failed terminally and decide what to do with them.
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Iterable, Optional

from pac.errors import GitSyncError, PluginInstalledError, SkipLocalError
from pac.models.package import Package

logger = logging.getLogger(__name__)

Operation = Callable[[Package], Optional[str]]
Reporter = Callable[["TaskOutcome"], None]


class TaskType(Enum):
    """Kind of batch; decides which errors still keep a package."""

    INSTALL = "install"
    UPDATE = "update"

    def keep_on_error(self, error: Exception) -> bool:
        if self is TaskType.INSTALL:
            # already on disk: an idempotent re-run, not a failure
            return isinstance(error, PluginInstalledError)
        # one failed update round must not evict the package
        return isinstance(error, (SkipLocalError, GitSyncError))


@dataclass
class TaskOutcome:
    """What happened to one package."""

    package: Package
    error: Exception | None = None
    keep: bool = True
    detail: str = ""

    @property
    def succeeded(self) -> bool:
        return self.error is None

    @property
    def skipped(self) -> bool:
        return isinstance(self.error, SkipLocalError)

    @property
    def message(self) -> str:
        if self.error is not None:
            return str(self.error)
        return self.detail


class TaskExecutor:
    """Run an operation over packages with a fixed number of worker threads."""

    def __init__(self, task_type: TaskType, threads: int, reporter: Optional[Reporter] = None):
        if threads < 1:
            raise ValueError(f"threads must be at least 1, got {threads}")
        self.task_type = task_type
        self.threads = threads
        self.reporter = reporter
        self.outcomes: list[TaskOutcome] = []
        self._pending: list[Package] = []
        self._queued: set[str] = set()

    def add(self, package: Package) -> None:
        if package.idname in self._queued:
            logger.debug("%s already queued", package.idname)
            return
        self._queued.add(package.idname)
        self._pending.append(package)

    def extend(self, packages: Iterable[Package]) -> None:
        for package in packages:
            self.add(package)

    def __len__(self) -> int:
        return len(self._pending)

    def run(self, operation: Operation) -> set[str]:
        """Run *operation* for every queued package and wait for all of them.

        Outcomes are handed to the reporter as they complete. Operation errors
        are classified by the task type and never stop the other tasks.

        Returns:
            Idnames of packages that should be dropped.
        """
        pending, self._pending = self._pending, []
        self._queued.clear()
        if not pending:
            return set()

        logger.debug(
            "Running %s over %d package(s) with %d thread(s)",
            self.task_type.value,
            len(pending),
            self.threads,
        )
        dropped: set[str] = set()
        with ThreadPoolExecutor(max_workers=self.threads, thread_name_prefix="pac") as pool:
            futures = [pool.submit(self._run_one, operation, package) for package in pending]
            for future in as_completed(futures):
                outcome = future.result()
                self.outcomes.append(outcome)
                if not outcome.keep:
                    dropped.add(outcome.package.idname)
                if self.reporter is not None:
                    self.reporter(outcome)

        return dropped

    def _run_one(self, operation: Operation, package: Package) -> TaskOutcome:
        try:
            detail = operation(package)
        except Exception as e:
            keep = self.task_type.keep_on_error(e)
            logger.debug("%s %s: %s (keep=%s)", self.task_type.value, package.idname, e, keep)
            return TaskOutcome(package=package, error=e, keep=keep)
        return TaskOutcome(package=package, detail=detail or "")
