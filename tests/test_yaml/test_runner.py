"""Tests for the YAML build command line."""

import pytest
from unittest.mock import MagicMock

pytest.importorskip("yaml")

from buildgraph.engine import RunReport, TaskRecord
from buildgraph.task import TaskId, TaskOutcome
from buildgraph.yaml import runner
from buildgraph.yaml.runner import format_duration, format_summary, main


BUILD = """
config:
  target: Package
tasks:
  - name: Clean
    doc: Remove build outputs
    action: "echo Clean >> log.txt"
  - name: Build
    depends_on: [Clean]
    action: "echo {configuration} >> log.txt"
  - name: Package
    depends_on: [Build]
  - name: Publish
    depends_on: [Package]
    criteria:
      - env: NUGET_API_KEY
    action: "exit 1"
"""


@pytest.fixture(autouse=True)
def no_logging_setup(monkeypatch):
    mock = MagicMock()
    monkeypatch.setattr(runner, 'setup_logging', mock)
    return mock


@pytest.fixture
def build_file(tmp_path):
    path = tmp_path / 'build.yaml'
    path.write_text(BUILD)
    return path


class TestFormatting:

    def test_format_duration(self):
        assert format_duration(0) == '00:00:00.000'
        assert format_duration(3723.5) == '01:02:03.500'

    def test_format_summary(self):
        clean, build = TaskId(0, 'Clean'), TaskId(1, 'Build')
        report = RunReport(
            target='Build',
            order=[clean, build],
            records={
                clean: TaskRecord(clean, TaskOutcome.SUCCEEDED, 1.5),
                build: TaskRecord(build, TaskOutcome.FAILED, 2.0),
            },
        )
        lines = format_summary(report).splitlines()
        assert lines[0].split() == ['Task', 'Outcome', 'Duration']
        assert lines[2].split() == ['Clean', 'succeeded', '00:00:01.500']
        assert lines[3].split() == ['Build', 'failed', '00:00:02.000']
        assert lines[-1].split() == ['Total:', '00:00:03.500']


class TestMain:
    """Tests for the CLI entry point."""

    def test_run_config_target(self, build_file, tmp_path, capsys,
                               no_logging_setup):
        code = main([str(build_file), '--set', 'configuration=Release'])

        assert code == 0
        assert (tmp_path / 'log.txt').read_text().split() == [
            'Clean', 'Release']
        out = capsys.readouterr().out
        assert 'Package' in out
        assert 'Publish' not in out
        no_logging_setup.assert_called_once_with(0, None)

    def test_verbosity_and_log_file(self, build_file, tmp_path,
                                    no_logging_setup):
        log_file = str(tmp_path / 'build.log')
        main([str(build_file), '-vv', '--log-file', log_file,
              '--set', 'configuration=Debug'])
        no_logging_setup.assert_called_once_with(2, log_file)

    def test_skipped_target(self, build_file, monkeypatch, capsys):
        monkeypatch.delenv('NUGET_API_KEY', raising=False)
        code = main([str(build_file), '-t', 'Publish',
                     '--set', 'configuration=Release'])
        assert code == 0
        assert 'skipped' in capsys.readouterr().out

    def test_failure_exit_code(self, build_file, monkeypatch, capsys):
        monkeypatch.setenv('NUGET_API_KEY', 'key')
        code = main([str(build_file), '--target', 'Publish',
                     '--set', 'configuration=Release'])

        assert code == 1
        captured = capsys.readouterr()
        assert 'failed' in captured.out
        assert "Error: Task 'Publish' failed during action" in captured.err

    def test_unknown_variable_fails(self, build_file, capsys):
        code = main([str(build_file)])
        assert code == 1
        assert 'configuration' in capsys.readouterr().err

    def test_list(self, build_file, capsys):
        code = main([str(build_file), '--list'])
        assert code == 0
        out = capsys.readouterr().out.splitlines()
        assert out[0] == f"Tasks in {build_file}:"
        assert out[1].strip().startswith('Clean')
        assert 'Remove build outputs' in out[1]
        assert [line.split()[0] for line in out[1:]] == [
            'Clean', 'Build', 'Package', 'Publish']

    def test_dry_run(self, build_file, tmp_path, capsys):
        code = main([str(build_file), '--dry-run', '-t', 'Publish'])
        assert code == 0
        out = capsys.readouterr().out.splitlines()
        assert out == [
            "Target 'Publish' would run:",
            "  1. Clean",
            "  2. Build",
            "  3. Package",
            "  4. Publish (conditional)",
        ]
        assert not (tmp_path / 'log.txt').exists()

    def test_dry_run_default_target_from_config(self, build_file, capsys):
        assert main([str(build_file), '--dry-run']) == 0
        assert "Target 'Package' would run:" in capsys.readouterr().out

    def test_unknown_target(self, build_file, capsys):
        assert main([str(build_file), '-t', 'Deploy']) == 1
        assert 'Deploy' in capsys.readouterr().err

    def test_missing_file(self, tmp_path, capsys):
        assert main([str(tmp_path / 'missing.yaml')]) == 1
        assert 'Build file not found' in capsys.readouterr().err

    def test_invalid_yaml(self, tmp_path, capsys):
        path = tmp_path / 'build.yaml'
        path.write_text("tasks: nope")
        assert main([str(path)]) == 1
        assert "'tasks' must be a list" in capsys.readouterr().err

    def test_bad_assignment(self, build_file):
        with pytest.raises(SystemExit) as exc_info:
            main([str(build_file), '--set', 'novalue'])
        assert exc_info.value.code == 2

    def test_list_and_dry_run_exclusive(self, build_file):
        with pytest.raises(SystemExit):
            main([str(build_file), '--list', '--dry-run'])
