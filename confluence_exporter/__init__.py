"""
Confluence Storage Format to Markdown Exporter

Converts Confluence storage-format markup (XHTML with ``ac:`` and ``ri:``
extension elements) to Markdown, and exports directories of such documents
to Markdown files.

Features:
- Headings, paragraphs, nested lists, links, inline formatting and code blocks
- Pipe tables with header detection
- Confluence macro conversion (code, noformat, info, note, warning, tip, expand, panel)
- Task lists, images, links and emoticons
- Lossy text fallback for unsupported macros, reported in conversion statistics
- YAML front matter with conversion status and warnings

Basic Usage:
    >>> from confluence_exporter import convert_markup
    >>> convert_markup('<h1>Title</h1><p>Hello <strong>world</strong></p>')
    '# Title\\n\\nHello **world**'

    confluence-export --input-dir ./storage --output-dir ./markdown

Example Configuration (config.yaml):
    converter:
        attachment_path: "attachments"

    export:
        input_directory: ${CONFLUENCE_STORAGE_DIR}
        output_directory: "./confluence-export"
        include_front_matter: true
"""

__version__ = "1.0.0"

from .converters import convert_markup, convert_page, MarkdownConverter
from .errors import ConversionError, EmptyInputError, ExporterError, ParseError
from .models import ConfluencePage, ConversionStats

__all__ = [
    '__version__',
    'convert_markup',
    'convert_page',
    'MarkdownConverter',
    'ConfluencePage',
    'ConversionStats',
    'ExporterError',
    'ConversionError',
    'EmptyInputError',
    'ParseError',
]
