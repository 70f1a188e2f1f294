"""Pipe-table rendering for storage-format tables."""

import logging
import re
from typing import Any, Iterator, List, Optional, Tuple

from bs4 import Tag


CELL_TAGS = ('th', 'td')
SECTION_TAGS = ('thead', 'tbody', 'tfoot')


class TableFormatter:
    """Buffers the rows of one table node and renders them as a Markdown pipe table.

    Ragged rows are emitted with however many cells they have; nothing is
    padded to the header width.
    """

    def __init__(self, logger: logging.Logger = None):
        """Initialize table formatter with optional logger."""
        self.logger = logger or logging.getLogger('confluence_exporter.converters.tableformatter')

    def format(self, table: Tag, walker: Any, depth: int = 0) -> str:
        """
        Convert a table element to Markdown.

        Args:
            table: The ``table`` element
            walker: Tree walker used to render cell contents inline
            depth: Current list depth, passed through to cell rendering

        Returns:
            Rendered table followed by a blank line, or '' for a table without rows
        """
        header, rows = self._collect_rows(table, walker, depth)
        self.logger.debug(
            f"Formatting table: header={'yes' if header else 'no'}, body rows={len(rows)}"
        )
        return self.render(header, rows)

    @staticmethod
    def render(header: Optional[List[str]], rows: List[List[str]]) -> str:
        """Render a header row (may be None) and body rows as pipe-joined lines."""
        lines = []

        if header:
            lines.append(' | '.join(header))
            lines.append(' | '.join('---' for _ in header))

        for row in rows:
            lines.append(' | '.join(row))

        if not lines:
            return ''

        return '\n'.join(lines) + '\n\n'

    def _collect_rows(self, table: Tag, walker: Any, depth: int) -> Tuple[Optional[List[str]], List[List[str]]]:
        """Split the table's rows into an optional header row and body rows."""
        header = None
        rows = []
        has_thead = table.find('thead', recursive=False) is not None

        for section, row in self._iter_rows(table):
            cells = [cell for cell in row.children if isinstance(cell, Tag) and cell.name in CELL_TAGS]
            if not cells:
                continue

            texts = [self._get_cell_text(cell, walker, depth) for cell in cells]

            if header is None and not rows:
                if has_thead and section == 'thead':
                    header = texts
                    continue
                # Storage format keeps the header row inside tbody
                if not has_thead and all(cell.name == 'th' for cell in cells):
                    header = texts
                    continue

            rows.append(texts)

        return header, rows

    @staticmethod
    def _iter_rows(table: Tag) -> Iterator[Tuple[Optional[str], Tag]]:
        """Yield (section name, row) for the table's own rows, skipping nested tables."""
        for child in table.children:
            if not isinstance(child, Tag):
                continue
            if child.name == 'tr':
                yield None, child
            elif child.name in SECTION_TAGS:
                for row in child.children:
                    if isinstance(row, Tag) and row.name == 'tr':
                        yield child.name, row

    @staticmethod
    def _get_cell_text(cell: Tag, walker: Any, depth: int) -> str:
        """Render a cell on a single line with pipes escaped."""
        text = walker.render_children(cell, depth)
        text = re.sub(r'\s*\n\s*', ' ', text).strip()
        return text.replace('|', '\\|')


__all__ = ['TableFormatter']
