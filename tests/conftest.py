"""Shared fixtures for the exporter test suite."""

import logging

import pytest

from confluence_exporter.logger import LOGGER_NAME


@pytest.fixture(autouse=True)
def reset_package_logger():
    """Drop handlers added by setup_logging so they never outlive a test's captured streams."""
    yield
    package_logger = logging.getLogger(LOGGER_NAME)
    for handler in list(package_logger.handlers):
        package_logger.removeHandler(handler)
        handler.close()
    package_logger.setLevel(logging.NOTSET)


STORAGE_PAGE = (
    '<h1>Getting Started</h1>'
    '<p>Install the <strong>CLI</strong> first.</p>'
    '<ac:structured-macro ac:name="code">'
    '<ac:parameter ac:name="language">bash</ac:parameter>'
    '<ac:plain-text-body><![CDATA[pip install tool]]></ac:plain-text-body>'
    '</ac:structured-macro>'
)

PARTIAL_PAGE = (
    '<p>Tracked in</p>'
    '<ac:structured-macro ac:name="jira">'
    '<ac:parameter ac:name="key">ABC-1</ac:parameter>'
    '</ac:structured-macro>'
)


@pytest.fixture
def storage_dir(tmp_path):
    """Input directory with one clean page, one page with an unsupported macro and one empty file."""
    input_dir = tmp_path / 'storage'
    (input_dir / 'team').mkdir(parents=True)
    (input_dir / 'Getting Started.xml').write_text(STORAGE_PAGE, encoding='utf-8')
    (input_dir / 'team' / 'Page: One.xhtml').write_text(PARTIAL_PAGE, encoding='utf-8')
    (input_dir / 'empty.html').write_text('', encoding='utf-8')
    (input_dir / 'notes.txt').write_text('not markup', encoding='utf-8')
    return input_dir
