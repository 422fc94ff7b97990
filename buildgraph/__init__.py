"""buildgraph - dependency-ordered build task runner.

Declare tasks on a TaskGraph, then run a target with BuildEngine:

    from buildgraph import BuildEngine, BuildContext, TaskGraph

    graph = TaskGraph()
    graph.task('Clean').does(lambda ctx: ctx.run('rm -rf build'))
    graph.task('Build').depends_on('Clean').does(lambda ctx: ctx.run('make'))

    report = BuildEngine(graph, BuildContext()).run('Build')
"""

__version__ = "0.1.0"

from .context import BuildContext
from .engine import BuildEngine, RunReport, TaskRecord
from .exceptions import (
    ActionFailure,
    BuildGraphError,
    ConfigurationError,
    CyclicDependencyError,
    DuplicateTaskError,
    HandledFailuresError,
    InvalidTask,
    TargetNotFoundError,
    UnknownDependencyError,
)
from .graph import TaskBuilder, TaskGraph
from .task import Task, TaskId, TaskOutcome

__all__ = [
    "__version__",
    "BuildContext",
    "BuildEngine",
    "RunReport",
    "TaskRecord",
    "ActionFailure",
    "BuildGraphError",
    "ConfigurationError",
    "CyclicDependencyError",
    "DuplicateTaskError",
    "HandledFailuresError",
    "InvalidTask",
    "TargetNotFoundError",
    "UnknownDependencyError",
    "TaskBuilder",
    "TaskGraph",
    "Task",
    "TaskId",
    "TaskOutcome",
]
