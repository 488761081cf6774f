"""Task graph scheduling for the site build.

A :class:`TaskGraph` holds named tasks, each with a set of prerequisites
and an optional asynchronous action. Running a target schedules the target
and its transitive prerequisites as asyncio tasks:

- a task's action starts only after every prerequisite finished with
  status ``ok``;
- a task with a failed (or blocked) prerequisite is never started and is
  recorded as ``blocked`` with a :class:`TaskDependencyError`;
- a failure does not cancel tasks that are already running; independent
  tasks run to completion;
- nothing is rolled back. Every task's output is idempotent, so a re-run
  recovers.

The run returns a :class:`PipelineResult` whose ``first_failure`` names the
task (and error) that halted the build.

Typical usage::

    graph = TaskGraph()
    graph.add_task("update", updater.update)
    graph.add_task("lib", sync.run, ["update"])
    graph.add_task("default", None, ["lib"])
    result = asyncio.run(graph.run(["default"]))
    result.raise_for_failure()
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable, Iterable, Sequence
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from sitebuild.exceptions import (
    AppError,
    ConfigurationError,
    TaskDependencyError,
    UserInputError,
)

logger = logging.getLogger(__name__)

TaskAction = Callable[[], Awaitable[Any]]


class TaskStatus(str, Enum):
    """Lifecycle states of a task within one run."""

    WAITING = "waiting"
    RUNNING = "running"
    OK = "ok"
    FAILED = "fail"
    BLOCKED = "blocked"


StatusCallback = Callable[[str, TaskStatus], None]


@dataclass(frozen=True)
class Task:
    """A named unit of work.

    Attributes
    ----------
    name : str
        Unique identifier used on the command line.
    action : TaskAction | None
        Coroutine function run once prerequisites succeeded; ``None`` for
        aggregate tasks that only group others.
    prerequisites : tuple[str, ...]
        Names of tasks that must succeed first.
    description : str
        One-line help text.
    """

    name: str
    action: TaskAction | None
    prerequisites: tuple[str, ...] = ()
    description: str = ""


@dataclass
class TaskOutcome:
    name: str
    status: TaskStatus = TaskStatus.WAITING
    error: BaseException | None = None
    started: float | None = None
    finished: float | None = None

    @property
    def duration(self) -> float | None:
        if self.started is None or self.finished is None:
            return None
        return self.finished - self.started


@dataclass
class PipelineResult:
    """Outcome of one :meth:`TaskGraph.run` call.

    Attributes
    ----------
    outcomes : dict[str, TaskOutcome]
        One entry per scheduled task, in scheduling (topological) order.
    first_failure : TaskOutcome | None
        The task whose action failed first, or ``None`` when every action
        succeeded.
    """

    outcomes: dict[str, TaskOutcome] = field(default_factory=dict)
    first_failure: TaskOutcome | None = None

    @property
    def ok(self) -> bool:
        return all(o.status is TaskStatus.OK for o in self.outcomes.values())

    def failure_message(self) -> str | None:
        """One-line report of the first failure, or ``None`` after a clean run.

        Application errors render as ``CODE: message``; any other exception
        is prefixed with its class name.

        Examples
        --------
        >>> outcome = TaskOutcome("lib", TaskStatus.FAILED, error=OSError("disk full"))
        >>> PipelineResult({"lib": outcome}, outcome).failure_message()
        "task 'lib' failed: OSError: disk full"
        """
        if self.first_failure is None:
            return None
        error = self.first_failure.error
        if isinstance(error, AppError):
            detail = str(error)
        else:
            detail = f"{type(error).__name__}: {error}"
        return f"task '{self.first_failure.name}' failed: {detail}"

    def raise_for_failure(self) -> None:
        """Re-raise the error of the first failed task, if any."""
        if self.first_failure is not None and self.first_failure.error is not None:
            raise self.first_failure.error


class TaskGraph:
    """Registry and scheduler of interdependent asynchronous tasks."""

    def __init__(self) -> None:
        self._tasks: dict[str, Task] = {}

    def add_task(
        self,
        name: str,
        action: TaskAction | None = None,
        prerequisites: Iterable[str] = (),
        description: str = "",
    ) -> Task:
        """Register a task.

        Prerequisites may name tasks that are registered later; they are
        checked when the graph is resolved.

        Raises
        ------
        ConfigurationError
            If ``name`` is already registered or lists itself as a
            prerequisite.
        """
        if name in self._tasks:
            raise ConfigurationError(f"Task '{name}' is already registered")
        prereqs = tuple(dict.fromkeys(prerequisites))
        if name in prereqs:
            raise ConfigurationError(f"Task '{name}' cannot depend on itself")
        task = Task(name, action, prereqs, description)
        self._tasks[name] = task
        return task

    @property
    def tasks(self) -> dict[str, Task]:
        return dict(self._tasks)

    def __contains__(self, name: object) -> bool:
        return name in self._tasks

    def resolve(self, targets: Sequence[str]) -> list[str]:
        """Return ``targets`` and their prerequisites in topological order.

        Raises
        ------
        UserInputError
            If a target is not registered.
        ConfigurationError
            If a prerequisite is not registered or the graph has a cycle.
        """
        unknown = [t for t in targets if t not in self._tasks]
        if unknown:
            raise UserInputError(
                f"Unknown task(s): {', '.join(unknown)}",
                context={"unknown": unknown, "available": sorted(self._tasks)},
            )
        order: list[str] = []
        state: dict[str, str] = {}

        def visit(name: str, path: tuple[str, ...]) -> None:
            if state.get(name) == "done":
                return
            if state.get(name) == "visiting":
                cycle = " -> ".join(path[path.index(name) :] + (name,))
                raise ConfigurationError(
                    f"Task graph has a cycle: {cycle}", context={"cycle": cycle}
                )
            state[name] = "visiting"
            for prereq in self._tasks[name].prerequisites:
                if prereq not in self._tasks:
                    raise ConfigurationError(
                        f"Task '{name}' depends on unknown task '{prereq}'",
                        context={"task": name, "prerequisite": prereq},
                    )
                visit(prereq, path + (name,))
            state[name] = "done"
            order.append(name)

        for target in targets:
            visit(target, ())
        return order

    async def run(
        self,
        targets: Sequence[str] = ("default",),
        on_status: StatusCallback | None = None,
    ) -> PipelineResult:
        """Run ``targets`` and everything they require.

        Parameters
        ----------
        targets : Sequence[str]
            Task names to bring up to date.
        on_status : StatusCallback | None
            Called with ``(name, status)`` on every status change.

        Returns
        -------
        PipelineResult
            Per-task outcomes and the first failure.

        Raises
        ------
        UserInputError, ConfigurationError
            From :meth:`resolve`, before anything runs.
        """
        order = self.resolve(targets)
        result = PipelineResult(outcomes={name: TaskOutcome(name) for name in order})

        def set_status(outcome: TaskOutcome, status: TaskStatus) -> None:
            outcome.status = status
            logger.debug("task %s: %s", outcome.name, status.value)
            if on_status is not None:
                on_status(outcome.name, status)

        async def execute(task: Task) -> None:
            outcome = result.outcomes[task.name]
            if task.prerequisites:
                await asyncio.gather(*(handles[p] for p in task.prerequisites))
            failed = [
                p
                for p in task.prerequisites
                if result.outcomes[p].status is not TaskStatus.OK
            ]
            if failed:
                outcome.error = TaskDependencyError(
                    f"Task '{task.name}' not started: prerequisite(s) "
                    f"{', '.join(failed)} did not succeed",
                    context={"task": task.name, "failed_prerequisites": failed},
                )
                logger.warning(str(outcome.error))
                set_status(outcome, TaskStatus.BLOCKED)
                return
            outcome.started = time.monotonic()
            set_status(outcome, TaskStatus.RUNNING)
            if task.action is not None:
                logger.info("Starting '%s'", task.name)
            try:
                if task.action is not None:
                    await task.action()
            except Exception as exc:
                outcome.finished = time.monotonic()
                outcome.error = exc
                if result.first_failure is None:
                    result.first_failure = outcome
                logger.error("Task '%s' failed: %s", task.name, exc, exc_info=True)
                set_status(outcome, TaskStatus.FAILED)
                return
            outcome.finished = time.monotonic()
            if task.action is not None:
                logger.info("Finished '%s' in %.2fs", task.name, outcome.duration)
            set_status(outcome, TaskStatus.OK)

        handles: dict[str, asyncio.Task[None]] = {}
        for name in order:
            handles[name] = asyncio.create_task(execute(self._tasks[name]), name=name)
        await asyncio.gather(*handles.values())
        return result


__all__ = [
    "PipelineResult",
    "Task",
    "TaskAction",
    "TaskGraph",
    "TaskOutcome",
    "TaskStatus",
]
