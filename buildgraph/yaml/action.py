"""Shell actions with variable injection for YAML-defined tasks.

This module provides the ShellAction class that executes shell commands
with automatic variable injection from build variables, plus the handler
wrappers used for `on_error` and `finally` commands.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional

from buildgraph.exceptions import HandledFailuresError


@dataclass
class ShellAction:
    """Shell command action with variable injection.

    Variables are injected in TWO ways:
    1. Format string substitution: {configuration}, {task}
    2. Environment variables: configuration=Release, task=Build

    Example:
        template = "dotnet build -c {configuration}"

        With configuration=Release:
        - Command: dotnet build -c Release
        - Env: configuration=Release, task=Build
    """

    template: str
    variables: Dict[str, str] = field(default_factory=dict)
    task_name: str = ''

    def _build_substitutions(self, extra: Optional[Dict[str, str]] = None
                             ) -> Dict[str, str]:
        """Build the substitution dictionary for format strings and env vars.

        Returns:
            Dictionary mapping variable names to their values
        """
        subs: Dict[str, str] = {}
        subs.update(self.variables)
        subs['task'] = self.task_name
        if extra:
            subs.update(extra)
        return subs

    def _format_command(self, subs: Dict[str, str]) -> str:
        """Format the command template with substitutions.

        Raises:
            KeyError: template references an unknown variable
        """
        try:
            return self.template.format(**subs)
        except KeyError as e:
            # Provide helpful error message
            available = ', '.join(sorted(subs.keys()))
            raise KeyError(
                f"Unknown variable {e} in action template. "
                f"Available variables: {available}"
            )

    def execute(self, context, extra: Optional[Dict[str, str]] = None):
        """Run the command through the context.

        Raises:
            subprocess.CalledProcessError: If the command fails
        """
        subs = self._build_substitutions(extra)
        cmd = self._format_command(subs)
        return context.run(cmd, env=subs)

    def __call__(self, context) -> bool:
        """Execute the shell command.

        This is called by the engine when the task runs.

        Returns:
            True on success
        """
        self.execute(context)
        return True

    def __repr__(self) -> str:
        return f"ShellAction({self.template!r})"


@dataclass
class ShellSequence:
    """Several shell actions run in order, stopping at the first failure."""

    actions: List[ShellAction] = field(default_factory=list)

    def __call__(self, context) -> bool:
        for action in self.actions:
            action(context)
        return True


@dataclass
class ShellErrorHandler:
    """`on_error` handler, optionally running commands.

    Commands get the extra variables {failed_task} and {error}.
    An empty command list just lets the run continue.
    """

    actions: List[ShellAction] = field(default_factory=list)

    def __call__(self, failure, context) -> None:
        context.warning("%s failed, but continuing with next task...",
                        failure.task_name)
        extra = {
            'failed_task': failure.task_name or '',
            'error': str(failure.cause),
        }
        for action in self.actions:
            action.execute(context, extra)


@dataclass
class ShellFinallyHandler:
    """`finally` handler.

    Runs its commands, then, with `fail_on_errors`, escalates the handled
    failures of the run into a final abort.
    """

    actions: List[ShellAction] = field(default_factory=list)
    fail_on_errors: bool = False

    def __call__(self, context, report) -> None:
        for action in self.actions:
            action(context)
        if self.fail_on_errors and report.handled_failures:
            raise HandledFailuresError(report.handled_failures)
