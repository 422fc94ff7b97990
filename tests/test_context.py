"""Tests for BuildContext."""

import logging
import subprocess

import pytest

from buildgraph.context import BuildContext


@pytest.fixture
def ctx(tmp_path):
    return BuildContext(base_path=tmp_path, environ={'PATH': '/usr/bin:/bin'})


class TestEnvironment:

    def test_environment_variable(self, ctx):
        ctx.environ['NUGET_API_KEY'] = 'secret'
        assert ctx.environment_variable('NUGET_API_KEY') == 'secret'
        assert ctx.environment_variable('MISSING') is None
        assert ctx.environment_variable('MISSING', 'x') == 'x'

    def test_has_environment_variable(self, ctx):
        ctx.environ['EMPTY'] = ''
        ctx.environ['SET'] = '1'
        assert ctx.has_environment_variable('SET') is True
        assert ctx.has_environment_variable('EMPTY') is False
        assert ctx.has_environment_variable('MISSING') is False

    def test_defaults_to_process_environment(self, monkeypatch):
        monkeypatch.setenv('BUILDGRAPH_TEST_VAR', 'here')
        assert BuildContext().environment_variable('BUILDGRAPH_TEST_VAR') == 'here'

    def test_data_is_per_context(self):
        a = BuildContext()
        b = BuildContext()
        a.data['publishing_error'] = True
        assert b.data == {}


class TestFileSystem:

    def test_base_path_resolved(self, tmp_path):
        (tmp_path / 'sub').mkdir()
        ctx = BuildContext(base_path=str(tmp_path / 'sub' / '..'))
        assert ctx.base_path == tmp_path.resolve()

    def test_file_and_directory_exists(self, ctx, tmp_path):
        (tmp_path / 'artifacts').mkdir()
        (tmp_path / 'artifacts' / 'app.zip').write_text('zip')

        assert ctx.file_exists('artifacts/app.zip')
        assert not ctx.file_exists('artifacts')
        assert ctx.directory_exists('artifacts')
        assert not ctx.directory_exists('artifacts/app.zip')
        assert not ctx.file_exists('missing.txt')

    def test_get_files(self, ctx, tmp_path):
        src = tmp_path / 'src'
        (src / 'lib').mkdir(parents=True)
        (src / 'b.py').write_text('')
        (src / 'a.py').write_text('')
        (src / 'lib' / 'c.py').write_text('')
        (src / 'notes.txt').write_text('')

        assert ctx.get_files('src/*.py') == [src / 'a.py', src / 'b.py']
        assert ctx.get_files('src/**/*.py') == [
            src / 'a.py', src / 'b.py', src / 'lib' / 'c.py']
        assert ctx.get_files('src/*') == [
            src / 'a.py', src / 'b.py', src / 'notes.txt']


class TestRun:
    """Tests for running shell commands."""

    def test_run_in_base_path(self, ctx, tmp_path):
        ctx.run('echo built > out.txt')
        assert (tmp_path / 'out.txt').read_text().strip() == 'built'

    def test_captures_output(self, ctx):
        result = ctx.run('echo hello')
        assert result.returncode == 0
        assert result.stdout.strip() == 'hello'

    def test_extra_env(self, ctx):
        result = ctx.run('echo $configuration', env={'configuration': 'Release'})
        assert result.stdout.strip() == 'Release'
        assert 'configuration' not in ctx.environ

    def test_context_environ_passed(self, ctx):
        ctx.environ['VERSION'] = '1.2.3'
        assert ctx.run('echo $VERSION').stdout.strip() == '1.2.3'

    def test_failure_raises(self, ctx):
        with pytest.raises(subprocess.CalledProcessError) as exc_info:
            ctx.run('echo broken >&2; exit 3')
        assert exc_info.value.returncode == 3
        assert 'broken' in exc_info.value.stderr

    def test_failure_without_check(self, ctx):
        result = ctx.run('exit 2', check=False)
        assert result.returncode == 2


class TestLogging:

    def test_log_helpers(self, ctx, caplog):
        with caplog.at_level(logging.DEBUG, logger='buildgraph.build'):
            ctx.information("Building version %s", '1.0')
            ctx.warning("No version in %s", 'project.json')
            ctx.error("failed")
            ctx.debug("details")

        messages = [(r.levelname, r.getMessage()) for r in caplog.records]
        assert ('INFO', 'Building version 1.0') in messages
        assert ('WARNING', 'No version in project.json') in messages
        assert ('ERROR', 'failed') in messages
        assert ('DEBUG', 'details') in messages
