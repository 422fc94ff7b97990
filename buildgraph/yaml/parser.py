"""YAML parsing and validation for build files.

This module handles parsing build.yaml files and validating their structure.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Any, Union

import yaml


CRITERIA_KINDS = {'env', 'not_env', 'file_exists', 'not_file_exists',
                  'var', 'not_var'}

TASK_FIELDS = {'name', 'doc', 'depends_on', 'criteria', 'action',
               'on_error', 'finally', 'fail_on_errors'}


@dataclass
class BuildFile:
    """Parsed build file."""
    config: Dict[str, Any] = field(default_factory=dict)
    tasks: List[Dict[str, Any]] = field(default_factory=list)

    @property
    def variables(self) -> Dict[str, str]:
        return {k: _scalar_text(v)
                for k, v in self.config.get('vars', {}).items()}


class YAMLParseError(Exception):
    """Error parsing or validating YAML file."""
    pass


def _scalar_text(value: Any) -> str:
    if isinstance(value, bool):
        return 'true' if value else 'false'
    if value is None:
        return ''
    return str(value)


def parse_yaml_file(path: Union[str, Path]) -> BuildFile:
    """Parse and validate a build.yaml file.

    Args:
        path: Path to the YAML file

    Returns:
        BuildFile with parsed configuration and tasks

    Raises:
        YAMLParseError: If the file is invalid or missing required fields
        FileNotFoundError: If the file doesn't exist
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Build file not found: {path}")

    with open(path, encoding='utf-8') as f:
        return parse_yaml_string(f.read())


def parse_yaml_string(content: str) -> BuildFile:
    """Parse YAML content from a string.

    Args:
        content: YAML content as string

    Returns:
        BuildFile with parsed configuration and tasks
    """
    try:
        data = yaml.safe_load(content)
    except yaml.YAMLError as e:
        raise YAMLParseError(f"Invalid YAML syntax: {e}")

    if data is None:
        data = {}

    if not isinstance(data, dict):
        raise YAMLParseError("YAML root must be a mapping")

    return _validate_yaml_data(data)


def _validate_yaml_data(data: Dict[str, Any]) -> BuildFile:
    """Validate parsed YAML data structure.

    Raises:
        YAMLParseError: If validation fails
    """
    unknown = set(data) - {'config', 'tasks'}
    if unknown:
        raise YAMLParseError(
            f"Unknown top-level key(s): {', '.join(sorted(unknown))}")

    config = data.get('config') or {}
    if not isinstance(config, dict):
        raise YAMLParseError("'config' must be a mapping")
    _validate_config(config)

    tasks = data.get('tasks') or []
    if not isinstance(tasks, list):
        raise YAMLParseError("'tasks' must be a list")

    validated_tasks = []
    seen = set()
    for i, task in enumerate(tasks):
        task = _validate_task(task, i)
        if task['name'] in seen:
            raise YAMLParseError(f"Task '{task['name']}' is defined twice")
        seen.add(task['name'])
        validated_tasks.append(task)

    return BuildFile(config=config, tasks=validated_tasks)


def _validate_config(config: Dict[str, Any]) -> None:
    for key in ('target', 'base_path'):
        if key in config and not isinstance(config[key], str):
            raise YAMLParseError(f"config '{key}' must be a string")

    variables = config.get('vars', {})
    if not isinstance(variables, dict):
        raise YAMLParseError("config 'vars' must be a mapping")
    for name, value in variables.items():
        if isinstance(value, (dict, list)):
            raise YAMLParseError(f"config variable '{name}' must be a scalar")


def _validate_task(task: Dict[str, Any], index: int) -> Dict[str, Any]:
    """Validate a single task definition.

    Args:
        task: Task dictionary
        index: Index in tasks list (for error messages)

    Returns:
        Validated task dictionary, `depends_on`, `action` and `finally`
        normalized to lists

    Raises:
        YAMLParseError: If validation fails
    """
    if not isinstance(task, dict):
        raise YAMLParseError(f"Task {index} must be a mapping")

    # Required fields
    if 'name' not in task:
        raise YAMLParseError(f"Task {index} missing required field 'name'")
    if not isinstance(task['name'], str) or not task['name'].strip():
        raise YAMLParseError(f"Task {index}: 'name' must be a non-empty string")
    name = task['name']

    invalid = set(task) - TASK_FIELDS
    if invalid:
        raise YAMLParseError(
            f"Task '{name}' contains invalid field(s): "
            f"{', '.join(sorted(invalid))}")

    task = dict(task)
    task['depends_on'] = _string_list(task.get('depends_on'), name,
                                      'depends_on')
    task['action'] = _string_list(task.get('action'), name, 'action')
    task['finally'] = _string_list(task.get('finally'), name, 'finally')

    criteria = task.get('criteria') or []
    if not isinstance(criteria, list):
        raise YAMLParseError(f"Task '{name}': 'criteria' must be a list")
    for i, item in enumerate(criteria):
        _validate_criteria(item, name, i)
    task['criteria'] = criteria

    on_error = task.get('on_error')
    if on_error is not None and not isinstance(on_error, str):
        raise YAMLParseError(
            f"Task '{name}': 'on_error' must be 'continue' or a command")

    if not isinstance(task.get('fail_on_errors', False), bool):
        raise YAMLParseError(f"Task '{name}': 'fail_on_errors' must be a bool")

    # Optional fields
    if 'doc' in task and not isinstance(task.get('doc'), str):
        raise YAMLParseError(f"Task '{name}': 'doc' must be a string")

    return task


def _string_list(value: Any, task_name: str, field_name: str) -> List[str]:
    """Accept a string or a list of strings, return a list."""
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    if isinstance(value, list) and all(isinstance(v, str) for v in value):
        return list(value)
    raise YAMLParseError(
        f"Task '{task_name}': '{field_name}' must be a string "
        "or a list of strings")


def _validate_criteria(item: Any, task_name: str, index: int) -> None:
    """Validate a criteria entry.

    Either a bool, or a mapping with exactly one check, e.g.
    ``{env: NUGET_API_KEY}`` or ``{file_exists: dist/app.zip}``.

    Raises:
        YAMLParseError: If validation fails
    """
    if isinstance(item, bool):
        return

    if not isinstance(item, dict) or len(item) != 1:
        raise YAMLParseError(
            f"Task '{task_name}': criteria {index} must be a bool or a "
            "mapping with a single check")

    kind, value = next(iter(item.items()))
    if kind not in CRITERIA_KINDS:
        raise YAMLParseError(
            f"Task '{task_name}': criteria {index} has invalid check "
            f"'{kind}'. Valid checks: {sorted(CRITERIA_KINDS)}")
    if not isinstance(value, str):
        raise YAMLParseError(
            f"Task '{task_name}': criteria {index} '{kind}' must be a string")
