"""Tests for Markdown pipe-table rendering."""

import pytest

from confluence_exporter.converters.markdown_converter import MarkdownConverter
from confluence_exporter.converters.table_formatter import TableFormatter


@pytest.fixture
def converter():
    return MarkdownConverter()


class TestRender:
    """Test rendering of already-collected rows."""

    def test_header_and_body(self):
        assert TableFormatter.render(['A', 'B'], [['1', '2']]) == 'A | B\n--- | ---\n1 | 2\n\n'

    def test_body_only(self):
        assert TableFormatter.render(None, [['1', '2'], ['3', '4']]) == '1 | 2\n3 | 4\n\n'

    def test_nothing_to_render(self):
        assert TableFormatter.render(None, []) == ''


class TestTableConversion:
    """Test tables converted through the full pipeline."""

    def test_thead_header(self, converter):
        html = (
            '<table><thead><tr><th>A</th><th>B</th></tr></thead>'
            '<tbody><tr><td>1</td><td>2</td></tr></tbody></table>'
        )
        assert converter.convert(html) == 'A | B\n--- | ---\n1 | 2'

    def test_storage_format_header_row_in_tbody(self, converter):
        html = (
            '<table><tbody>\n'
            '<tr><th>Name</th><th>Value</th></tr>\n'
            '<tr><td>alpha</td><td>1</td></tr>\n'
            '<tr><td>beta</td><td>2</td></tr>\n'
            '</tbody></table>'
        )
        assert converter.convert(html) == 'Name | Value\n--- | ---\nalpha | 1\nbeta | 2'

    def test_no_header(self, converter):
        html = '<table><tr><td>1</td><td>2</td></tr><tr><td>3</td><td>4</td></tr></table>'
        assert converter.convert(html) == '1 | 2\n3 | 4'

    def test_ragged_rows_are_not_padded(self, converter):
        html = (
            '<table><tr><th>A</th><th>B</th></tr>'
            '<tr><td>1</td></tr>'
            '<tr><td>x</td><td>y</td><td>z</td></tr></table>'
        )
        assert converter.convert(html) == 'A | B\n--- | ---\n1\nx | y | z'

    def test_cell_content_is_inlined(self, converter):
        html = (
            '<table><tr><th>Key</th></tr>'
            '<tr><td><p>first</p><p><strong>second</strong></p></td></tr></table>'
        )
        assert converter.convert(html) == 'Key\n---\nfirst **second**'

    def test_pipes_in_cells_are_escaped(self, converter):
        html = '<table><tr><td>a|b</td><td>c</td></tr></table>'
        assert converter.convert(html) == 'a\\|b | c'

    def test_empty_table(self, converter):
        assert converter.convert('<p>before</p><table></table><p>after</p>') == 'before\n\nafter'

    def test_table_between_paragraphs(self, converter):
        html = '<p>before</p><table><tr><th>A</th></tr><tr><td>1</td></tr></table><p>after</p>'
        assert converter.convert(html) == 'before\n\nA\n---\n1\n\nafter'

    def test_nested_table_rows_are_not_lifted(self, converter):
        html = (
            '<table><tr><td>outer</td><td>'
            '<table><tr><td>inner</td></tr></table>'
            '</td></tr></table>'
        )
        result = converter.convert(html)
        assert result.splitlines()[0].startswith('outer | inner')
        assert len(result.splitlines()) == 1
