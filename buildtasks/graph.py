"""
graph.py

Responsibility: run named tasks after their prerequisites.

Rules:
- Prerequisites run in declared order, before the task body.
- The first failure anywhere aborts the whole chain; the dependent body never runs.
- By default a prerequisite shared by two sibling branches runs once per branch.
  With `dedupe=True` every task runs at most once per invocation.
- Cycles are reported instead of recursing forever.
"""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass
from typing import Callable, Iterable

from buildtasks.errors import TaskCycleError, TaskNotFoundError

log = logging.getLogger(__name__)


class TaskStatus(enum.Enum):
    NOT_STARTED = "not started"
    RUNNING = "running"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


@dataclass(frozen=True)
class Task:
    name: str
    body: Callable[[], None]
    deps: tuple[str, ...] = ()
    help: str = ""


class TaskGraph:
    def __init__(self, *, dedupe: bool = False) -> None:
        self.dedupe = dedupe
        self._tasks: dict[str, Task] = {}
        self.status: dict[str, TaskStatus] = {}

    def add(self, task: Task) -> Task:
        self._tasks[task.name] = task
        return task

    def task(self, name: str | None = None, *, deps: Iterable[str] = (), help: str = "") -> Callable[[Callable[[], None]], Callable[[], None]]:
        """
        Decorator registering a plain callable as a task body.
        """

        def register(fn: Callable[[], None]) -> Callable[[], None]:
            task_name = name or fn.__name__.replace("_", "-")
            self.add(Task(name=task_name, body=fn, deps=tuple(deps), help=help or (fn.__doc__ or "").strip()))
            return fn

        return register

    def get(self, name: str) -> Task:
        try:
            return self._tasks[name]
        except KeyError:
            raise TaskNotFoundError(f"Unknown task: {name}") from None

    def names(self) -> list[str]:
        return sorted(self._tasks)

    def run(self, *names: str) -> list[str]:
        """
        Run the named tasks (and their prerequisites) as one invocation.

        Returns the task names whose bodies executed, in execution order.
        """
        for name in names:
            self.get(name)
        self.status = {name: TaskStatus.NOT_STARTED for name in self._tasks}
        executed: list[str] = []
        for name in names:
            self._run_one(name, stack=[], executed=executed)
        return executed

    def _run_one(self, name: str, *, stack: list[str], executed: list[str]) -> None:
        if name in stack:
            cycle = " -> ".join([*stack[stack.index(name):], name])
            raise TaskCycleError(f"Task dependency cycle: {cycle}")
        task = self.get(name)

        if self.dedupe and self.status.get(name) is TaskStatus.SUCCEEDED:
            log.debug("skipping %s (already ran)", name)
            return

        stack.append(name)
        try:
            for dep in task.deps:
                self._run_one(dep, stack=stack, executed=executed)
        finally:
            stack.pop()

        log.info("task %s", name)
        self.status[name] = TaskStatus.RUNNING
        try:
            task.body()
        except BaseException:
            self.status[name] = TaskStatus.FAILED
            raise
        self.status[name] = TaskStatus.SUCCEEDED
        executed.append(name)
