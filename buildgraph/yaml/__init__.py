"""YAML-based build definitions for buildgraph.

This module provides a declarative YAML format for defining build tasks
with shell command actions, dependencies and criteria.

Example build.yaml:
    config:
      target: Default
      vars:
        configuration: Release

    tasks:
      - name: Clean
        action: "rm -rf build"
      - name: Build
        depends_on: [Clean]
        action: "make CONFIG={configuration}"
      - name: Default
        depends_on: [Build]

Usage:
    from buildgraph.yaml import run_yaml
    report = run_yaml('build.yaml', target='Build')

CLI:
    python -m buildgraph.yaml build.yaml --target Build
"""

from .parser import parse_yaml_file, parse_yaml_string, BuildFile, YAMLParseError
from .converter import yaml_to_graph, yaml_to_task
from .action import ShellAction
from .runner import run_yaml, main

__all__ = [
    'parse_yaml_file',
    'parse_yaml_string',
    'BuildFile',
    'YAMLParseError',
    'yaml_to_graph',
    'yaml_to_task',
    'ShellAction',
    'run_yaml',
    'main',
]
