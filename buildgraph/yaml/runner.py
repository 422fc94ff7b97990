"""YAML build runner with BuildEngine integration.

This module provides the main entry point for running tasks from YAML files.
"""

import sys
from pathlib import Path
from typing import Dict, List, Optional, Union

from buildgraph.context import BuildContext
from buildgraph.engine import BuildEngine, RunReport
from buildgraph.exceptions import BuildGraphError
from buildgraph.logging_setup import setup_logging
from .parser import parse_yaml_file, YAMLParseError
from .converter import yaml_to_graph


DEFAULT_TARGET = 'Default'


def run_yaml(
    yaml_path: Union[str, Path],
    target: Optional[str] = None,
    base_path: Optional[Union[str, Path]] = None,
    variables: Optional[Dict[str, str]] = None,
    verbose: bool = False,
) -> RunReport:
    """Load a build file and run a target.

    Args:
        yaml_path: Path to the YAML file
        target: Task to run (defaults to config target, then 'Default')
        base_path: Override base path from config
        variables: Override build variables from config
        verbose: Print progress information

    Returns:
        RunReport; check `succeeded` for the overall result

    Raises:
        ConfigurationError: unknown target/dependency or a dependency cycle

    Example:
        report = run_yaml('build.yaml', target='Package')
        if report.succeeded:
            print(f"Ran {len(report.order)} tasks")
    """
    yaml_path = Path(yaml_path)
    build_file = parse_yaml_file(yaml_path)

    # Determine base path, relative to the build file
    if base_path is None:
        base_path = yaml_path.parent / build_file.config.get('base_path', '.')
    base_path = Path(base_path).resolve()

    if target is None:
        target = build_file.config.get('target', DEFAULT_TARGET)

    graph = yaml_to_graph(build_file, variables)

    if verbose:
        print(f"Loaded {len(graph)} task(s) from {yaml_path}")

    context = BuildContext(base_path=base_path)
    engine = BuildEngine(graph, context)
    report = engine.run(target, raise_on_failure=False)

    if verbose:
        print(format_summary(report))

    return report


def format_duration(seconds: float) -> str:
    minutes, secs = divmod(seconds, 60)
    hours, minutes = divmod(int(minutes), 60)
    return f"{hours:02d}:{minutes:02d}:{secs:06.3f}"


def format_summary(report: RunReport) -> str:
    """Task / outcome / duration table for a finished run."""
    width = max([len(t.name) for t in report.order] + [len('Task')]) + 2
    lines = [
        f"{'Task':<{width}}{'Outcome':<12}Duration",
        '-' * (width + 24),
    ]
    for task_id in report.order:
        record = report.records[task_id]
        lines.append(f"{task_id.name:<{width}}{record.outcome.value:<12}"
                     f"{format_duration(record.duration)}")
    lines.append('-' * (width + 24))
    lines.append(f"{'Total:':<{width}}{'':<12}"
                 f"{format_duration(report.duration)}")
    return '\n'.join(lines)


def _parse_assignments(items: List[str]) -> Dict[str, str]:
    variables = {}
    for item in items:
        key, sep, value = item.partition('=')
        if not sep or not key:
            raise ValueError(f"Invalid --set value {item!r}, expected KEY=VALUE")
        variables[key] = value
    return variables


def main(args: Optional[List[str]] = None) -> int:
    """CLI entry point for running YAML builds.

    Usage:
        python -m buildgraph.yaml [options] [build_file]

    Args:
        args: Command line arguments (defaults to sys.argv[1:])

    Returns:
        Exit code (0 for success, 1 for failure)
    """
    import argparse

    parser = argparse.ArgumentParser(
        description='Run a target from a YAML build file',
        prog='buildgraph',
    )
    parser.add_argument(
        'yaml_file',
        nargs='?',
        default='build.yaml',
        help='Path to the YAML file (default: build.yaml)',
    )
    parser.add_argument(
        '-t', '--target',
        default=None,
        help='Task to run (default: config target or Default)',
    )
    parser.add_argument(
        '--set',
        dest='assignments',
        action='append',
        default=[],
        metavar='KEY=VALUE',
        help='Override a build variable (repeatable)',
    )
    parser.add_argument(
        '--base-path',
        type=str,
        default=None,
        help='Override base path for commands and file checks',
    )
    parser.add_argument(
        '-v', '--verbose',
        action='count',
        default=0,
        help='Print progress information (-vv for debug output)',
    )
    parser.add_argument(
        '--log-file',
        default=None,
        help='Also write debug logs to this file',
    )
    group = parser.add_mutually_exclusive_group()
    group.add_argument(
        '--list',
        action='store_true',
        help='List tasks with their description',
    )
    group.add_argument(
        '--dry-run',
        action='store_true',
        help='Show the resolved task order without executing',
    )

    parsed = parser.parse_args(args)

    try:
        variables = _parse_assignments(parsed.assignments)
    except ValueError as e:
        parser.error(str(e))

    setup_logging(parsed.verbose, parsed.log_file)

    try:
        yaml_path = Path(parsed.yaml_file)

        if parsed.list or parsed.dry_run:
            build_file = parse_yaml_file(yaml_path)
            graph = yaml_to_graph(build_file, variables)

            if parsed.list:
                print(f"Tasks in {yaml_path}:")
                for task in graph:
                    print(f"  {task.title()}")
                return 0

            target = parsed.target or build_file.config.get(
                'target', DEFAULT_TARGET)
            print(f"Target '{target}' would run:")
            for i, task in enumerate(graph.resolve(target), 1):
                guard = ' (conditional)' if task.criteria else ''
                print(f"  {i}. {task.name}{guard}")
            return 0

        report = run_yaml(
            yaml_path,
            target=parsed.target,
            base_path=parsed.base_path,
            variables=variables,
        )

        print(format_summary(report))
        if report.succeeded:
            return 0
        print(f"Error: {report.failure}", file=sys.stderr)
        return 1

    except (FileNotFoundError, YAMLParseError, BuildGraphError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        if parsed.verbose:
            import traceback
            traceback.print_exc()
        return 1


if __name__ == '__main__':
    sys.exit(main())
