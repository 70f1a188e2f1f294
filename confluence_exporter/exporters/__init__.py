"""Markdown export package.

Converts every storage-format file under an input directory and writes one
Markdown file per document, with optional YAML front matter.

Configuration Referenced:
- export.input_directory: Directory scanned for storage-format files
- export.output_directory: Base output path for exported files
- export.include_front_matter: Enable/disable the YAML front matter block
- export.input_extensions: File extensions treated as storage-format input
"""

from .markdown_exporter import MarkdownExporter

__all__ = [
    'MarkdownExporter',
]
