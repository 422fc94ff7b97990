"""Execution environment handed to task actions, criteria and handlers.

The engine treats the context as opaque. `BuildContext` is the one used by
the YAML runner and the command line; it exposes logging, environment
lookup, file system queries and shell command execution.
"""

import logging
import os
import subprocess
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Union


@dataclass
class BuildContext:
    """Context shared by all tasks of a run.

    Example:
        ctx = BuildContext(base_path='.')
        if ctx.file_exists('setup.cfg'):
            ctx.run('python -m build')
        ctx.data['publishing_error'] = True
    """

    base_path: Union[str, Path] = '.'
    """Directory used to resolve relative paths and run commands."""

    environ: Dict[str, str] = field(default_factory=lambda: dict(os.environ))
    """Environment variables visible to tasks and child processes."""

    data: Dict[str, Any] = field(default_factory=dict)
    """Free-form state shared between actions and handlers of a run."""

    logger: logging.Logger = field(
        default_factory=lambda: logging.getLogger('buildgraph.build'))

    def __post_init__(self):
        self.base_path = Path(self.base_path).resolve()

    # logging

    def information(self, msg, *args):
        self.logger.info(msg, *args)

    def warning(self, msg, *args):
        self.logger.warning(msg, *args)

    def error(self, msg, *args):
        self.logger.error(msg, *args)

    def debug(self, msg, *args):
        self.logger.debug(msg, *args)

    # environment

    def environment_variable(self, name: str,
                             default: Optional[str] = None) -> Optional[str]:
        return self.environ.get(name, default)

    def has_environment_variable(self, name: str) -> bool:
        """True if `name` is set to a non-empty value."""
        return bool(self.environ.get(name))

    # file system

    def path(self, path: Union[str, Path]) -> Path:
        """Resolve `path` relative to base_path."""
        return self.base_path / path

    def file_exists(self, path: Union[str, Path]) -> bool:
        return self.path(path).is_file()

    def directory_exists(self, path: Union[str, Path]) -> bool:
        return self.path(path).is_dir()

    def get_files(self, pattern: str) -> List[Path]:
        """Files matching a glob pattern relative to base_path, sorted."""
        return sorted(p for p in self.base_path.glob(pattern) if p.is_file())

    # processes

    def run(self, command: str, env: Optional[Mapping[str, str]] = None,
            check: bool = True) -> subprocess.CompletedProcess:
        """Run a shell command in base_path and wait for it.

        Args:
            command: Shell command line
            env: Extra environment variables for this command only
            check: Raise on non-zero exit status

        Returns:
            CompletedProcess with captured stdout/stderr text

        Raises:
            subprocess.CalledProcessError: If the command fails and `check`
        """
        full_env = dict(self.environ)
        if env:
            full_env.update({k: str(v) for k, v in env.items()})

        self.logger.debug("Running: %s", command)
        result = subprocess.run(
            command,
            shell=True,
            cwd=str(self.base_path),
            env=full_env,
            capture_output=True,
            text=True,
        )

        if result.stdout:
            self.logger.debug(result.stdout.rstrip())
        if result.returncode != 0 and check:
            # Print stderr for debugging
            if result.stderr:
                print(result.stderr, file=sys.stderr)
            raise subprocess.CalledProcessError(
                result.returncode,
                command,
                result.stdout,
                result.stderr,
            )
        return result
