"""Tests for the command line logging configuration."""

import logging

import pytest

from buildgraph.logging_setup import setup_logging


@pytest.fixture
def root_logger():
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield root
    for h in list(root.handlers):
        root.removeHandler(h)
        h.close()
    for h in handlers:
        root.addHandler(h)
    root.setLevel(level)
    logging.captureWarnings(False)


class TestSetupLogging:

    @pytest.mark.parametrize('verbosity, level', [
        (0, logging.WARNING),
        (1, logging.INFO),
        (2, logging.DEBUG),
        (5, logging.DEBUG),
    ])
    def test_console_level(self, root_logger, verbosity, level):
        setup_logging(verbosity)
        assert len(root_logger.handlers) == 1
        assert root_logger.handlers[0].level == level

    def test_replaces_existing_handlers(self, root_logger):
        setup_logging(1)
        setup_logging(1)
        assert len(root_logger.handlers) == 1

    def test_log_file(self, root_logger, tmp_path):
        log_file = tmp_path / 'logs' / 'build.log'
        setup_logging(0, log_file)
        assert len(root_logger.handlers) == 2

        logging.getLogger('buildgraph.engine').debug("Executing task: %s",
                                                     'Clean')
        for h in root_logger.handlers:
            h.flush()
        assert 'Executing task: Clean' in log_file.read_text()

    def test_third_party_noise_filtered(self, root_logger):
        setup_logging(2)
        console = root_logger.handlers[0]

        def make(name, level):
            return logging.LogRecord(name, level, __file__, 1, 'msg', (), None)

        assert console.filter(make('buildgraph.engine', logging.DEBUG))
        assert not console.filter(make('urllib3', logging.INFO))
        assert console.filter(make('urllib3', logging.ERROR))
