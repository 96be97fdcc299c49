"""Task execution — run one repository operation per package on a worker pool."""

from pac.tasks.executor import TaskExecutor, TaskOutcome, TaskType

__all__ = ["TaskExecutor", "TaskOutcome", "TaskType"]
