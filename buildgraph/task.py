"""Tasks are the units of work managed by buildgraph"""

import inspect
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum

from .exceptions import InvalidTask


def first_line(doc):
    """extract first non-blank line from text, to extract docstring title"""
    if doc is not None:
        for line in doc.splitlines():
            striped = line.strip()
            if striped:
                return striped
    return ''


class TaskOutcome(Enum):
    """Outcome of a task within a single run."""
    NOT_RUN = 'not-run'
    SKIPPED = 'skipped'
    SUCCEEDED = 'succeeded'
    FAILED = 'failed'

    @property
    def is_terminal(self) -> bool:
        return self is not TaskOutcome.NOT_RUN


@dataclass(frozen=True, order=True)
class TaskId:
    """Opaque identifier handed out by TaskGraph.register.

    Ordering follows registration order.
    """
    index: int
    name: str

    def __str__(self):
        return self.name


def positional_arity(func):
    """number of required positional arguments of `func`, None if unbounded

    parameters with a default are left to their default
    """
    try:
        sig = inspect.signature(func)
    except (TypeError, ValueError):
        # builtins without signature: pass everything
        return None
    count = 0
    for param in sig.parameters.values():
        if param.kind == param.VAR_POSITIONAL:
            return None
        if (param.kind in (param.POSITIONAL_ONLY, param.POSITIONAL_OR_KEYWORD)
                and param.default is param.empty):
            count += 1
    return count


def invoke(func, *args):
    """call `func` with as many leading `args` as it accepts"""
    arity = positional_arity(func)
    if arity is None:
        return func(*args)
    return func(*args[:arity])


class Task(object):
    """Task

    @ivar id: (TaskId) set by TaskGraph on registration
    @ivar name: string
    @ivar dependencies: (list - string) names of tasks that must run first
    @ivar dependency_ids: (tuple - TaskId) resolved when the graph is frozen
    @ivar criteria: (list - bool/callable(context, report)) guards evaluated
                    before the action
    @ivar action: callable(context) doing the work, None for aggregate tasks
    @ivar on_error: callable(failure, context, report) isolating failures
    @ivar finally_: callable(context, report) run once the target finished
    @ivar doc: (string) task documentation, first line only
    """

    string_types = (str, )
    # list of valid types/values for each task attribute.
    valid_attr = {'name': (string_types, ()),
                  'dependencies': ((list, tuple), ()),
                  'criteria': ((list, tuple), ()),
                  'action': ((Callable,), (None,)),
                  'on_error': ((Callable,), (None,)),
                  'finally_': ((Callable,), (None,)),
                  'doc': (string_types, (None,)),
                  }

    def __init__(self, name, dependencies=(), criteria=(), action=None,
                 on_error=None, finally_=None, doc=None):
        self.check_attr(name, 'name', name, self.valid_attr['name'])
        self.check_attr(name, 'dependencies', dependencies,
                        self.valid_attr['dependencies'])
        self.check_attr(name, 'criteria', criteria,
                        self.valid_attr['criteria'])
        self.check_attr(name, 'action', action, self.valid_attr['action'])
        self.check_attr(name, 'on_error', on_error,
                        self.valid_attr['on_error'])
        self.check_attr(name, 'finally_', finally_,
                        self.valid_attr['finally_'])
        self.check_attr(name, 'doc', doc, self.valid_attr['doc'])

        if not name.strip():
            raise InvalidTask("Task name must not be empty.")
        self.name = name
        self.id = None
        self.dependencies = []
        for dep in dependencies:
            self.add_dependency(dep)
        self.dependency_ids = ()
        self.criteria = []
        for item in criteria:
            self.add_criteria(item)
        self.action = action
        self.on_error = on_error
        self.finally_ = finally_
        self.doc = first_line(doc)

    def add_dependency(self, dep_name):
        """add a dependency by task name, duplicates are ignored"""
        if not isinstance(dep_name, str):
            msg = ("%s. dependencies must be task names. "
                   "Got '%r' (%s)")
            raise InvalidTask(msg % (self.name, dep_name, type(dep_name)))
        if dep_name not in self.dependencies:
            self.dependencies.append(dep_name)

    def add_criteria(self, item):
        """append a guard, either a bool or a callable returning a bool"""
        if isinstance(item, bool) or callable(item):
            self.criteria.append(item)
        else:
            msg = ("%s. task invalid 'criteria' item '%r'. "
                   "Must be bool or callable.")
            raise InvalidTask(msg % (self.name, item))

    def set_handler(self, attr, value):
        """set one of action/on_error/finally_ after validation"""
        self.check_attr(self.name, attr, value, self.valid_attr[attr])
        setattr(self, attr, value)

    @staticmethod
    def check_attr(task, attr, value, valid):
        """check input task attribute is correct type/value

        @param task (string): task name
        @param attr (string): attribute name
        @param value: actual input from user
        @param valid (list): of valid types/value accepted
        @raises InvalidTask if invalid input
        """
        if isinstance(value, valid[0]):
            return
        if value in valid[1]:
            return

        # input value didnt match any valid type/value, raise exception
        msg = "Task '%s' attribute '%s' must be " % (task, attr)
        accept = ", ".join([getattr(v, '__name__', str(v)) for v in
                            (valid[0] + valid[1])])
        msg += "{%s} got:%r %s" % (accept, value, type(value))
        raise InvalidTask(msg)

    def criteria_met(self, context, report=None):
        """evaluate criteria in declaration order, stop at the first false

        callables get a prefix of (context, report), `report` holds the
        outcomes of tasks already evaluated in this run
        """
        for item in self.criteria:
            if isinstance(item, bool):
                met = item
            else:
                met = invoke(item, context, report)
            if not met:
                return False
        return True

    def title(self):
        """String representation on output."""
        if self.doc:
            return f"{self.name} - {self.doc}"
        return self.name

    def __repr__(self):
        return f"<Task: {self.name}>"

    def __eq__(self, other):
        if not isinstance(other, Task):
            return NotImplemented
        return self.name == other.name

    def __hash__(self):
        return hash(self.name)

    def __lt__(self, other):
        """used on default sorting of tasks (alphabetically by name)"""
        return self.name < other.name
