"""Task registry and dependency resolution.

Tasks are registered by name, either directly with `TaskGraph.register`
or through the fluent `TaskGraph.task` builder:

    graph = TaskGraph()
    graph.task('Clean').does(clean)
    graph.task('Build').depends_on('Clean').does(build)
    (graph.task('Publish')
        .depends_on('Build')
        .with_criteria(lambda ctx: ctx.has_environment_variable('TOKEN'))
        .does(publish)
        .on_error(lambda failure: print(failure)))

    for task in graph.resolve('Publish'):
        print(task.name)

Dependency names are resolved to TaskIds once, when the graph is frozen.
Freezing happens on the first call to `resolve`; after that the topology
can no longer change.
"""

from typing import Dict, Iterator, List, Optional

from .exceptions import (
    CyclicDependencyError,
    DuplicateTaskError,
    InvalidTask,
    TargetNotFoundError,
    UnknownDependencyError,
)
from .task import Task, TaskId


class TaskBuilder:
    """Fluent declaration of a registered task."""

    def __init__(self, graph: 'TaskGraph', task_id: TaskId):
        self._graph = graph
        self.id = task_id

    @property
    def task(self) -> Task:
        return self._graph[self.id]

    def _mutable_task(self) -> Task:
        self._graph._check_not_frozen(self.id.name)
        return self.task

    def depends_on(self, *names: str) -> 'TaskBuilder':
        task = self._mutable_task()
        for name in names:
            task.add_dependency(name)
        return self

    def with_criteria(self, predicate) -> 'TaskBuilder':
        self._mutable_task().add_criteria(predicate)
        return self

    def does(self, action) -> 'TaskBuilder':
        self._mutable_task().set_handler('action', action)
        return self

    def on_error(self, handler) -> 'TaskBuilder':
        self._mutable_task().set_handler('on_error', handler)
        return self

    def finally_(self, handler) -> 'TaskBuilder':
        self._mutable_task().set_handler('finally_', handler)
        return self

    def description(self, text: str) -> 'TaskBuilder':
        task = self._mutable_task()
        Task.check_attr(task.name, 'doc', text, Task.valid_attr['doc'])
        task.doc = text.strip()
        return self

    def __repr__(self):
        return f"TaskBuilder({self.id.name!r})"


class TaskGraph:
    """Registry of tasks keyed by TaskId."""

    def __init__(self):
        self._tasks: Dict[TaskId, Task] = {}
        self._ids: Dict[str, TaskId] = {}
        self._frozen = False

    def register(self, name, dependencies=(), criteria=(), action=None,
                 on_error=None, finally_=None, doc=None) -> TaskId:
        """Add a task to the graph and return its id.

        Raises:
            DuplicateTaskError: if `name` is already registered
            InvalidTask: on malformed attributes or if the graph is frozen
        """
        self._check_not_frozen(name)
        if name in self._ids:
            raise DuplicateTaskError(name)
        task = Task(name, dependencies=dependencies, criteria=criteria,
                    action=action, on_error=on_error, finally_=finally_,
                    doc=doc)
        task_id = TaskId(len(self._tasks), name)
        task.id = task_id
        self._tasks[task_id] = task
        self._ids[name] = task_id
        return task_id

    def task(self, name: str) -> TaskBuilder:
        """Register `name` and return a builder to declare the rest."""
        return TaskBuilder(self, self.register(name))

    def _check_not_frozen(self, name):
        if self._frozen:
            raise InvalidTask(
                f"Task '{name}': graph is frozen, topology can not change.")

    @property
    def frozen(self) -> bool:
        return self._frozen

    def freeze(self) -> None:
        """Resolve dependency names into TaskIds.

        Raises:
            UnknownDependencyError: a declared dependency was never registered
        """
        if self._frozen:
            return
        for task in self._tasks.values():
            dep_ids = []
            for dep_name in task.dependencies:
                if dep_name not in self._ids:
                    raise UnknownDependencyError(task.name, dep_name)
                dep_ids.append(self._ids[dep_name])
            task.dependency_ids = tuple(dep_ids)
        self._frozen = True

    def resolve(self, target: str) -> List[Task]:
        """Return tasks to evaluate for `target`, dependencies first.

        Depth-first post-order from the target. Each task appears once.

        Raises:
            TargetNotFoundError: `target` is not registered
            UnknownDependencyError: see `freeze`
            CyclicDependencyError: a task depends on itself, directly or not
        """
        if target not in self._ids:
            raise TargetNotFoundError(target)
        self.freeze()

        order: List[Task] = []
        done = set()
        # stack of (task_id, iterator over its remaining dependencies),
        # `in_progress` mirrors it for cycle detection and reporting
        root = self._ids[target]
        stack = [(root, iter(self._tasks[root].dependency_ids))]
        in_progress: List[TaskId] = [root]
        on_path = {root}

        while stack:
            task_id, deps = stack[-1]
            for dep_id in deps:
                if dep_id in done:
                    continue
                if dep_id in on_path:
                    start = in_progress.index(dep_id)
                    chain = in_progress[start:] + [dep_id]
                    raise CyclicDependencyError([t.name for t in chain])
                stack.append((dep_id, iter(self._tasks[dep_id].dependency_ids)))
                in_progress.append(dep_id)
                on_path.add(dep_id)
                break
            else:
                stack.pop()
                in_progress.pop()
                on_path.discard(task_id)
                done.add(task_id)
                order.append(self._tasks[task_id])
        return order

    def get(self, name: str) -> Optional[Task]:
        task_id = self._ids.get(name)
        if task_id is None:
            return None
        return self._tasks[task_id]

    def id_of(self, name: str) -> TaskId:
        """Return the TaskId registered under `name`."""
        try:
            return self._ids[name]
        except KeyError:
            raise TargetNotFoundError(name) from None

    def names(self) -> List[str]:
        return list(self._ids)

    def __getitem__(self, key) -> Task:
        if isinstance(key, TaskId):
            return self._tasks[key]
        return self._tasks[self._ids[key]]

    def __contains__(self, name) -> bool:
        if isinstance(name, TaskId):
            return name in self._tasks
        return name in self._ids

    def __iter__(self) -> Iterator[Task]:
        return iter(self._tasks.values())

    def __len__(self) -> int:
        return len(self._tasks)

    def __repr__(self):
        return f"<TaskGraph: {len(self)} task(s)>"
