"""Convert YAML definitions to a TaskGraph.

This module handles converting parsed YAML task definitions into
tasks registered on a TaskGraph that can be run with BuildEngine.
"""

from dataclasses import dataclass
from typing import Dict, Any, Optional

from buildgraph.graph import TaskGraph
from buildgraph.task import TaskId
from .action import (
    ShellAction,
    ShellErrorHandler,
    ShellFinallyHandler,
    ShellSequence,
)
from .parser import BuildFile


FALSE_VALUES = {'', '0', 'false', 'no', 'off'}


@dataclass
class Criterion:
    """A single declarative criteria check, evaluated against the context."""

    kind: str
    value: str
    variables: Dict[str, str]

    def __call__(self, context) -> bool:
        kind = self.kind
        negate = kind.startswith('not_')
        if negate:
            kind = kind[len('not_'):]

        if kind == 'env':
            result = context.has_environment_variable(self.value)
        elif kind == 'file_exists':
            result = context.file_exists(self.value)
        elif kind == 'var':
            value = self.variables.get(self.value, '')
            result = value.strip().lower() not in FALSE_VALUES
        else:
            raise ValueError(f"Unknown criteria check: {self.kind}")
        return not result if negate else result

    def __repr__(self) -> str:
        return f"Criterion({self.kind}={self.value!r})"


def yaml_to_graph(
    build_file: BuildFile,
    variables: Optional[Dict[str, str]] = None,
) -> TaskGraph:
    """Register all tasks from a BuildFile on a new TaskGraph.

    Args:
        build_file: Parsed build file
        variables: Override variables from the build file config

    Returns:
        TaskGraph, not yet frozen
    """
    merged = build_file.variables
    if variables:
        merged.update(variables)

    graph = TaskGraph()
    for task_dict in build_file.tasks:
        yaml_to_task(task_dict, graph, merged)
    return graph


def yaml_to_task(
    task_dict: Dict[str, Any],
    graph: TaskGraph,
    variables: Dict[str, str],
) -> TaskId:
    """Register a validated YAML task definition on `graph`.

    Args:
        task_dict: Task definition dictionary (see parser)
        graph: TaskGraph to register on
        variables: Variables for command substitution and `var` criteria

    Returns:
        TaskId of the registered task
    """
    name = task_dict['name']

    def shell(templates):
        return [ShellAction(t, variables, name) for t in templates]

    criteria = []
    for item in task_dict.get('criteria', []):
        if isinstance(item, bool):
            criteria.append(item)
        else:
            kind, value = next(iter(item.items()))
            criteria.append(Criterion(kind, value, variables))

    action = None
    if task_dict.get('action'):
        action = ShellSequence(shell(task_dict['action']))

    on_error = None
    error_spec = task_dict.get('on_error')
    if error_spec is not None:
        commands = [] if error_spec == 'continue' else [error_spec]
        on_error = ShellErrorHandler(shell(commands))

    finally_ = None
    fail_on_errors = task_dict.get('fail_on_errors', False)
    if task_dict.get('finally') or fail_on_errors:
        finally_ = ShellFinallyHandler(shell(task_dict.get('finally', [])),
                                       fail_on_errors)

    return graph.register(
        name,
        dependencies=task_dict.get('depends_on', []),
        criteria=criteria,
        action=action,
        on_error=on_error,
        finally_=finally_,
        doc=task_dict.get('doc'),
    )
