"""Tests for the task executor and its failure policies."""

import threading
import time
from pathlib import Path

import pytest

from pac.errors import (
    BuildError,
    FormatError,
    GitSyncError,
    PluginInstalledError,
    PluginNotInstalledError,
    SkipLocalError,
)
from pac.models.package import Package
from pac.tasks.executor import TaskExecutor, TaskType


def _packages(count: int) -> list[Package]:
    return [
        Package.from_remote(f"https://github.com/owner/plugin{i:02d}", base_dir=Path("/pack"))
        for i in range(count)
    ]


# --- Policy Tests ---


def test_install_policy():
    policy = TaskType.INSTALL
    assert policy.keep_on_error(PluginInstalledError("/pack/x"))
    assert not policy.keep_on_error(GitSyncError("network down"))
    assert not policy.keep_on_error(FormatError())
    assert not policy.keep_on_error(BuildError("make"))


def test_update_policy():
    policy = TaskType.UPDATE
    assert policy.keep_on_error(SkipLocalError())
    assert policy.keep_on_error(GitSyncError("timeout"))
    assert not policy.keep_on_error(PluginNotInstalledError("x"))
    assert not policy.keep_on_error(BuildError("make"))
    assert not policy.keep_on_error(FormatError())
    assert not policy.keep_on_error(OSError("read-only file system"))


# --- Executor Tests ---


def test_executor_rejects_zero_threads():
    with pytest.raises(ValueError):
        TaskExecutor(TaskType.INSTALL, 0)


def test_executor_empty_run():
    executor = TaskExecutor(TaskType.UPDATE, 2)
    assert executor.run(lambda p: None) == set()


def test_update_run_drops_not_installed():
    packages = _packages(10)
    missing = {packages[1].idname, packages[4].idname, packages[7].idname}

    def op(pack):
        if pack.idname in missing:
            raise PluginNotInstalledError(pack.idname)
        if pack.idname == packages[2].idname:
            raise GitSyncError("connection reset")
        return "abc1234"

    executor = TaskExecutor(TaskType.UPDATE, 4)
    executor.extend(packages)
    failed = executor.run(op)

    assert failed == missing
    assert len(executor.outcomes) == 10
    kept_error = [o for o in executor.outcomes if o.error and o.keep]
    assert [o.package.idname for o in kept_error] == [packages[2].idname]


def test_failed_ids_are_subset_of_input():
    packages = _packages(6)
    executor = TaskExecutor(TaskType.INSTALL, 3)
    executor.extend(packages)

    def op(pack):
        raise RuntimeError("boom")

    failed = executor.run(op)
    assert failed == {p.idname for p in packages}
    assert len(failed) <= len(packages)


def test_reporter_sees_every_outcome():
    packages = _packages(5)
    seen = []
    executor = TaskExecutor(TaskType.INSTALL, 2, reporter=seen.append)
    executor.extend(packages)
    executor.run(lambda p: "done")

    assert sorted(o.package.idname for o in seen) == sorted(p.idname for p in packages)
    assert all(o.succeeded and o.message == "done" for o in seen)


def test_skipped_outcome():
    executor = TaskExecutor(TaskType.UPDATE, 1)
    executor.extend(_packages(1))

    def op(pack):
        raise SkipLocalError()

    assert executor.run(op) == set()
    outcome = executor.outcomes[0]
    assert outcome.skipped
    assert outcome.keep
    assert "Local plugin" in outcome.message


def test_worker_count_is_bounded():
    lock = threading.Lock()
    active = 0
    peak = 0

    def op(pack):
        nonlocal active, peak
        with lock:
            active += 1
            peak = max(peak, active)
        time.sleep(0.02)
        with lock:
            active -= 1

    executor = TaskExecutor(TaskType.UPDATE, 3)
    executor.extend(_packages(12))
    executor.run(op)

    assert 1 <= peak <= 3
    assert len(executor.outcomes) == 12


def test_duplicate_packages_run_once():
    calls = []
    packages = _packages(2)
    executor = TaskExecutor(TaskType.INSTALL, 2)
    executor.extend(packages + [packages[0].copy()])
    executor.run(lambda p: calls.append(p.idname))
    assert sorted(calls) == sorted(p.idname for p in packages)
