"""Converters package for Confluence storage-format to Markdown conversion."""

import logging

from .html_cleaner import HtmlCleaner
from .macro_handler import MacroHandler
from .markdown_converter import MarkdownConverter, NodeKind, TreeWalker
from .table_formatter import TableFormatter


def convert_markup(markup, config=None):
    """
    Convenience function to convert one storage-format document to Markdown.

    Args:
        markup: Storage-format markup string
        config: Optional configuration dictionary for converter behavior

    Returns:
        str: Markdown text

    Raises:
        EmptyInputError: If markup is empty
        ParseError: If markup could not be parsed

    Example:
        >>> from confluence_exporter.converters import convert_markup
        >>> convert_markup('<h2>Setup</h2><p>Run it.</p>')
        '## Setup\\n\\nRun it.'
    """
    return MarkdownConverter(config=config).convert(markup)


def convert_page(page, config=None, logger=None):
    """
    Convenience function to convert a ConfluencePage from storage format to Markdown.

    Sets page.markdown_content and page.conversion_metadata. Conversion errors
    are recorded on the page, never raised, so batch callers can continue.

    Args:
        page: ConfluencePage object with markup in page.content
        config: Optional configuration dictionary for converter behavior
        logger: Optional logger instance (uses module logger if not provided)

    Returns:
        bool: True if conversion succeeded, False otherwise
    """
    if logger is None:
        logger = logging.getLogger('confluence_exporter.converters')

    converter = MarkdownConverter(config=config, logger=logger)
    return converter.convert_page(page)


__all__ = [
    'convert_markup',
    'convert_page',
    'MarkdownConverter',
    'TreeWalker',
    'NodeKind',
    'HtmlCleaner',
    'MacroHandler',
    'TableFormatter',
]
