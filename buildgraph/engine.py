"""Sequential executor for a resolved task graph.

The engine runs a target and its transitive dependencies one task at a
time, in the order produced by `TaskGraph.resolve`:

1. criteria are evaluated with (context, report); a false one marks the
   task SKIPPED
2. the action runs; a failure is isolated when the task has an error
   handler, otherwise it aborts the remaining tasks
3. finally handlers of every visited task run, in registration order
4. an aborting failure is raised to the caller

Example:
    from buildgraph import BuildEngine, TaskGraph

    graph = TaskGraph()
    graph.task('Clean').does(clean)
    graph.task('Build').depends_on('Clean').does(build)

    report = BuildEngine(graph, context).run('Build')
    print(report.outcome('Clean'))
"""

import logging
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Union

from .exceptions import ActionFailure
from .graph import TaskGraph
from .task import Task, TaskId, TaskOutcome, invoke

logger = logging.getLogger(__name__)


@dataclass
class TaskRecord:
    """Outcome of one task in a run."""

    task_id: TaskId
    outcome: TaskOutcome = TaskOutcome.NOT_RUN
    duration: float = 0.0
    """Seconds spent on criteria, hooks and action."""

    error: Optional[ActionFailure] = None

    @property
    def name(self) -> str:
        return self.task_id.name


@dataclass
class RunReport:
    """Result of running a target with the BuildEngine."""

    target: str
    order: List[TaskId] = field(default_factory=list)
    """Resolved execution order."""

    records: Dict[TaskId, TaskRecord] = field(default_factory=dict)

    handled_failures: List[ActionFailure] = field(default_factory=list)
    """Failures isolated by an error handler, in execution order."""

    finally_failures: List[ActionFailure] = field(default_factory=list)

    failure: Optional[ActionFailure] = None
    """First aborting failure, None if the run succeeded."""

    @property
    def succeeded(self) -> bool:
        return self.failure is None

    @property
    def has_errors(self) -> bool:
        """True if any failure happened, handled or not."""
        return bool(self.failure or self.handled_failures
                    or self.finally_failures)

    def record(self, task: Union[str, TaskId]) -> TaskRecord:
        if isinstance(task, TaskId):
            return self.records[task]
        for task_id, record in self.records.items():
            if task_id.name == task:
                return record
        raise KeyError(task)

    def outcome(self, task: Union[str, TaskId]) -> TaskOutcome:
        return self.record(task).outcome

    def names_with(self, outcome: TaskOutcome) -> List[str]:
        """task names with `outcome`, in execution order"""
        return [task_id.name for task_id in self.order
                if self.records[task_id].outcome is outcome]

    @property
    def duration(self) -> float:
        return sum(r.duration for r in self.records.values())

    def raise_for_failure(self) -> None:
        if self.failure is not None:
            raise self.failure


class BuildEngine:
    """Run targets of a TaskGraph.

    :param graph: TaskGraph with the task declarations
    :param context: opaque object passed to actions, criteria and handlers
    :param setup: callable(context) run once before the first task
    :param teardown: callable(context, report) run once at the very end
    :param task_setup: callable(context, task) run before each task action
    :param task_teardown: callable(context, task) run after each task action
    """

    def __init__(self, graph: TaskGraph, context: Any = None,
                 setup: Optional[Callable] = None,
                 teardown: Optional[Callable] = None,
                 task_setup: Optional[Callable] = None,
                 task_teardown: Optional[Callable] = None):
        self.graph = graph
        self.context = context
        self.setup = setup
        self.teardown = teardown
        self.task_setup = task_setup
        self.task_teardown = task_teardown

    def run(self, target: str, raise_on_failure: bool = True) -> RunReport:
        """Run `target` and its dependencies.

        Configuration errors (unknown target or dependency, cycles) are
        raised before anything executes.

        Raises:
            ActionFailure: if the run aborted and `raise_on_failure` is set.
                Its `report` attribute holds the RunReport.
        """
        order = self.graph.resolve(target)
        report = RunReport(
            target=target,
            order=[task.id for task in order],
            records={task.id: TaskRecord(task.id) for task in order},
        )
        logger.info("Running target '%s': %s", target,
                    ", ".join(task.name for task in order))

        visited: List[Task] = []
        if self._run_setup(report):
            for task in order:
                visited.append(task)
                if not self._execute_task(task, report):
                    break

        self._run_finally(visited, report)
        self._run_teardown(report)

        if report.failure is None:
            logger.info("Target '%s' succeeded (%d handled failure(s))",
                        target, len(report.handled_failures))
            return report

        report.failure.report = report
        logger.error("Target '%s' failed: %s", target, report.failure)
        if raise_on_failure:
            raise report.failure
        return report

    def _run_setup(self, report: RunReport) -> bool:
        if self.setup is None:
            return True
        try:
            invoke(self.setup, self.context)
        except Exception as exc:
            report.failure = ActionFailure(None, exc, 'setup')
            return False
        return True

    def _execute_task(self, task: Task, report: RunReport) -> bool:
        """run a single task, return False if the run must abort"""
        record = report.records[task.id]
        start = time.perf_counter()
        try:
            try:
                met = task.criteria_met(self.context, report)
            except Exception as exc:
                failure = ActionFailure(task.name, exc, 'criteria')
                return self._handle_failure(task, failure, report)

            if not met:
                logger.info("Skipping task: %s", task.name)
                record.outcome = TaskOutcome.SKIPPED
                return True

            logger.info("Executing task: %s", task.name)
            failure = self._perform(task)
            if failure is None:
                record.outcome = TaskOutcome.SUCCEEDED
                return True
            return self._handle_failure(task, failure, report)
        finally:
            record.duration = time.perf_counter() - start

    def _perform(self, task: Task) -> Optional[ActionFailure]:
        """task setup, action and task teardown; return the failure if any"""
        if self.task_setup is not None:
            try:
                invoke(self.task_setup, self.context, task)
            except Exception as exc:
                return ActionFailure(task.name, exc, 'task_setup')

        failure = None
        if task.action is not None:
            try:
                invoke(task.action, self.context)
            except Exception as exc:
                failure = ActionFailure(task.name, exc, 'action')

        if self.task_teardown is not None:
            try:
                invoke(self.task_teardown, self.context, task)
            except Exception as exc:
                if failure is None:
                    failure = ActionFailure(task.name, exc, 'task_teardown')
                else:
                    logger.error("Task teardown of '%s' failed: %s",
                                 task.name, exc)
        return failure

    def _handle_failure(self, task: Task, failure: ActionFailure,
                        report: RunReport) -> bool:
        record = report.records[task.id]
        record.outcome = TaskOutcome.FAILED
        record.error = failure

        if task.on_error is None:
            logger.error("%s", failure)
            report.failure = failure
            return False

        logger.warning("%s; continuing with next task", failure)
        try:
            invoke(task.on_error, failure, self.context, report)
        except Exception as exc:
            report.failure = ActionFailure(task.name, exc, 'on_error')
            return False
        report.handled_failures.append(failure)
        return True

    def _run_finally(self, visited: List[Task], report: RunReport) -> None:
        for task in sorted(visited, key=lambda t: t.id):
            if task.finally_ is None:
                continue
            try:
                invoke(task.finally_, self.context, report)
            except Exception as exc:
                failure = ActionFailure(task.name, exc, 'finally')
                report.finally_failures.append(failure)
                if report.failure is None:
                    report.failure = failure
                else:
                    logger.error("%s", failure)

    def _run_teardown(self, report: RunReport) -> None:
        if self.teardown is None:
            return
        try:
            invoke(self.teardown, self.context, report)
        except Exception as exc:
            failure = ActionFailure(None, exc, 'teardown')
            if report.failure is None:
                report.failure = failure
            else:
                logger.error("%s", failure)
