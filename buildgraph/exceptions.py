"""Exceptions raised while building and running a task graph"""


class BuildGraphError(Exception):
    """Base class for all buildgraph errors"""


class InvalidTask(BuildGraphError):
    """Invalid task declaration or mutation of a frozen graph"""


class ConfigurationError(BuildGraphError):
    """Graph configuration error, always detected before any task executes"""


class DuplicateTaskError(ConfigurationError):
    def __init__(self, name):
        self.name = name
        super().__init__(f"Task '{name}' is already registered.")


class UnknownDependencyError(ConfigurationError):
    def __init__(self, task_name, dependency):
        self.task_name = task_name
        self.dependency = dependency
        super().__init__(
            f"Task '{task_name}' depends on '{dependency}' "
            "which is not registered.")


class CyclicDependencyError(ConfigurationError):
    """Dependency cycle found while resolving a target.

    :ivar cycle: (list - str) task names forming the cycle, first and last
                 entries are the same task
    """
    def __init__(self, cycle):
        self.cycle = list(cycle)
        super().__init__(
            "Dependency cycle detected: %s" % " -> ".join(self.cycle))


class TargetNotFoundError(ConfigurationError):
    def __init__(self, target):
        self.target = target
        super().__init__(f"Target '{target}' is not registered.")


class ActionFailure(BuildGraphError):
    """Run-time failure of a task action, handler or hook.

    :ivar task_name: (str) task being executed, None for run level hooks
    :ivar cause: original exception
    :ivar phase: (str) which part of the task was running
    :ivar report: RunReport of the run, set once the run finished
    """
    def __init__(self, task_name, cause, phase='action'):
        self.task_name = task_name
        self.cause = cause
        self.phase = phase
        self.report = None
        self.__cause__ = cause
        super().__init__(self._message())

    def _message(self):
        where = f"Task '{self.task_name}'" if self.task_name else "Build"
        return "%s failed during %s: %s: %s" % (
            where, self.phase, type(self.cause).__name__, self.cause)


class HandledFailuresError(BuildGraphError):
    """Raised from a finally handler to escalate handled failures.

    :ivar failures: (list - ActionFailure) failures isolated during the run
    """
    def __init__(self, failures):
        self.failures = list(failures)
        names = ", ".join(f.task_name or '<build>' for f in self.failures)
        super().__init__(
            "%d task(s) failed and were handled: %s. "
            "All remaining tasks have been attempted." % (
                len(self.failures), names))
