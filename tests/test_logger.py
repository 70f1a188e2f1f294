"""Tests for logging setup and configuration logging."""

import logging
import logging.handlers

import colorlog
import pytest

from confluence_exporter.converters import HtmlCleaner, MacroHandler, MarkdownConverter, TableFormatter
from confluence_exporter.logger import (
    LOGGER_NAME,
    _sanitize_config,
    log_config,
    setup_logging,
)


class TestSetupLogging:
    @pytest.mark.parametrize('verbosity, expected', [
        (0, logging.WARNING),
        (1, logging.INFO),
        (2, logging.DEBUG),
        (5, logging.DEBUG),
    ])
    def test_verbosity_levels(self, verbosity, expected):
        logger = setup_logging(verbosity=verbosity)
        assert logger.name == LOGGER_NAME
        assert logger.level == expected

    def test_explicit_level_wins(self):
        logger = setup_logging(verbosity=0, level='debug')
        assert logger.level == logging.DEBUG

    def test_invalid_level(self):
        with pytest.raises(ValueError, match='Invalid log level'):
            setup_logging(level='chatty')

    def test_console_handler_is_colored(self):
        logger = setup_logging()
        assert len(logger.handlers) == 1
        assert isinstance(logger.handlers[0].formatter, colorlog.ColoredFormatter)

    def test_repeated_setup_does_not_stack_handlers(self):
        setup_logging()
        logger = setup_logging()
        assert len(logger.handlers) == 1

    def test_log_file(self, tmp_path):
        log_file = tmp_path / 'export.log'
        logger = setup_logging(verbosity=1, log_file=str(log_file))

        assert any(isinstance(h, logging.handlers.RotatingFileHandler) for h in logger.handlers)
        logger.info('hello file')
        for handler in logger.handlers:
            handler.flush()
        assert 'hello file' in log_file.read_text(encoding='utf-8')

    def test_child_loggers_inherit_level(self):
        setup_logging(verbosity=2)
        child = logging.getLogger('confluence_exporter.converters.markdownconverter')
        assert child.getEffectiveLevel() == logging.DEBUG


class TestConfigLogging:
    def test_sensitive_values_are_masked(self):
        config = {'export': {'input_directory': 'in'}, 'remote': {'api_token': 'abc', 'nested': [{'password': 'pw'}]}}

        sanitized = _sanitize_config(config)

        assert sanitized['remote']['api_token'] == '***REDACTED***'
        assert sanitized['remote']['nested'][0]['password'] == '***REDACTED***'
        assert sanitized['export']['input_directory'] == 'in'
        assert config['remote']['api_token'] == 'abc'

    def test_log_config_writes_settings(self, tmp_path):
        log_file = tmp_path / 'config.log'
        setup_logging(verbosity=1, log_file=str(log_file))

        log_config({'export': {'input_directory': 'storage-in'}, 'converter': {'attachment_path': 'files'}})
        for handler in logging.getLogger(LOGGER_NAME).handlers:
            handler.flush()

        text = log_file.read_text(encoding='utf-8')
        assert 'Input Directory: storage-in' in text
        assert 'Attachment Path: files' in text


class TestComponentLoggers:
    def test_default_loggers_are_package_children(self):
        components = [MarkdownConverter(), MacroHandler(), TableFormatter(), HtmlCleaner()]

        for component in components:
            assert component.logger.name.startswith(LOGGER_NAME + '.')

    def test_converter_logs_through_package_handlers(self, tmp_path):
        log_file = tmp_path / 'convert.log'
        setup_logging(verbosity=2, log_file=str(log_file))

        MarkdownConverter().convert('<p>x</p>')
        for handler in logging.getLogger(LOGGER_NAME).handlers:
            handler.flush()

        assert 'confluence_exporter.converters.markdownconverter' in log_file.read_text(encoding='utf-8')
