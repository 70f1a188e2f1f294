"""Markdown converter for Confluence storage-format markup."""

import logging
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Tuple

from bs4 import BeautifulSoup
from bs4.element import Comment, Declaration, Doctype, NavigableString, ProcessingInstruction, Tag

from ..config_loader import get_nested
from ..errors import ConversionError, EmptyInputError, ParseError
from ..models import ConversionStats
from .html_cleaner import HtmlCleaner
from .macro_handler import MacroHandler
from .table_formatter import TableFormatter

PARSER_FEATURES = 'html.parser'
EXTENSION_PREFIXES = ('ac:', 'ri:')


class NodeKind(Enum):
    """Closed set of element kinds the walker knows how to emit."""
    HEADING = 'heading'
    PARAGRAPH = 'paragraph'
    LIST = 'list'
    LIST_ITEM = 'list_item'
    LINK = 'link'
    STRONG = 'strong'
    EMPHASIS = 'emphasis'
    CODE = 'code'
    PREFORMATTED = 'preformatted'
    LINE_BREAK = 'line_break'
    RULE = 'rule'
    IMAGE = 'image'
    TABLE = 'table'
    SKIP = 'skip'
    CONTAINER = 'container'


TAG_KINDS: Dict[str, NodeKind] = {
    'h1': NodeKind.HEADING,
    'h2': NodeKind.HEADING,
    'h3': NodeKind.HEADING,
    'h4': NodeKind.HEADING,
    'h5': NodeKind.HEADING,
    'h6': NodeKind.HEADING,
    'p': NodeKind.PARAGRAPH,
    'ul': NodeKind.LIST,
    'ol': NodeKind.LIST,
    'li': NodeKind.LIST_ITEM,
    'a': NodeKind.LINK,
    'strong': NodeKind.STRONG,
    'b': NodeKind.STRONG,
    'em': NodeKind.EMPHASIS,
    'i': NodeKind.EMPHASIS,
    'code': NodeKind.CODE,
    'pre': NodeKind.PREFORMATTED,
    'br': NodeKind.LINE_BREAK,
    'hr': NodeKind.RULE,
    'img': NodeKind.IMAGE,
    'table': NodeKind.TABLE,
    'script': NodeKind.SKIP,
    'style': NodeKind.SKIP,
}

INLINE_KINDS = {NodeKind.LINK, NodeKind.STRONG, NodeKind.EMPHASIS, NodeKind.CODE, NodeKind.IMAGE}
INLINE_CONTAINERS = {'span', 'u', 's', 'sub', 'sup', 'del', 'ins', 'ac:link', 'ac:emoticon'}


def node_kind(tag_name: str) -> NodeKind:
    """Map a tag name to its NodeKind; anything unrecognized is a container."""
    return TAG_KINDS.get(tag_name, NodeKind.CONTAINER)


def is_inline(node: Any) -> bool:
    """Check whether a sibling node flows inline with surrounding text."""
    if isinstance(node, Tag):
        return node_kind(node.name) in INLINE_KINDS or node.name in INLINE_CONTAINERS
    return False


class TreeWalker:
    """
    Depth-first transformer from a parsed tree to Markdown fragments.

    One walker is created per conversion call, so its stats are never shared
    between documents. Fragments are appended to the buffer passed down the
    recursion; inline renders use a fresh buffer and return a string.
    """

    def __init__(self, macro_handler: MacroHandler, table_formatter: TableFormatter,
                 logger: logging.Logger = None):
        self.macro_handler = macro_handler
        self.table_formatter = table_formatter
        self.logger = logger or logging.getLogger('confluence_exporter.converters.markdownconverter')
        self.stats = ConversionStats()

        self._handlers = {
            NodeKind.HEADING: self._convert_heading,
            NodeKind.PARAGRAPH: self._convert_paragraph,
            NodeKind.LIST: self._convert_list,
            NodeKind.LIST_ITEM: self._convert_list_item,
            NodeKind.LINK: self._convert_link,
            NodeKind.STRONG: self._convert_strong,
            NodeKind.EMPHASIS: self._convert_emphasis,
            NodeKind.CODE: self._convert_code,
            NodeKind.PREFORMATTED: self._convert_pre,
            NodeKind.LINE_BREAK: self._convert_line_break,
            NodeKind.RULE: self._convert_rule,
            NodeKind.IMAGE: self._convert_image,
            NodeKind.TABLE: self._convert_table,
            NodeKind.SKIP: self._skip,
            NodeKind.CONTAINER: self._convert_container,
        }

    def walk(self, node: Any, out: List[str], depth: int = 0) -> None:
        """Emit Markdown for one node and its subtree into ``out``."""
        if isinstance(node, (Comment, Declaration, Doctype, ProcessingInstruction)):
            return

        if isinstance(node, NavigableString):
            self._convert_text(node, out)
            return

        if not isinstance(node, Tag):
            return

        if self._is_extension(node) and self.macro_handler.handle(node, out, depth, self):
            return

        self._handlers[node_kind(node.name)](node, out, depth)

    def render_children(self, node: Tag, depth: int = 0, lead: str = '') -> str:
        """
        Render a node's children into a fresh buffer and return the text.

        ``lead`` seeds the buffer with the character preceding the node, so
        text spacing inside an inline element sees what came before it. It is
        not part of the returned text.
        """
        out: List[str] = [lead] if lead else []
        for child in node.children:
            self.walk(child, out, depth)
        return ''.join(out)[len(lead):]

    @staticmethod
    def ensure_line_start(out: List[str]) -> None:
        """Terminate the current line if the buffer does not already end with a newline."""
        for fragment in reversed(out):
            if fragment:
                if not fragment.endswith('\n'):
                    out.append('\n')
                return

    @staticmethod
    def _last_char(out: List[str]) -> str:
        for fragment in reversed(out):
            if fragment:
                return fragment[-1]
        return ''

    @staticmethod
    def _is_extension(node: Tag) -> bool:
        return node.name.startswith(EXTENSION_PREFIXES) or node.has_attr('data-macro-name')

    # Text

    def _convert_text(self, node: NavigableString, out: List[str]) -> None:
        """Emit a trimmed text node, keeping one separating space next to inline siblings."""
        raw = str(node)
        text = raw.strip()
        previous = self._last_char(out)

        if not text:
            if previous and not previous.isspace() and is_inline(node.next_sibling):
                out.append(' ')
            return

        if raw[0].isspace() and previous and not previous.isspace():
            text = ' ' + text
        if raw[-1].isspace() and is_inline(node.next_sibling):
            text += ' '
        out.append(text)

    # Block elements

    def _convert_heading(self, node: Tag, out: List[str], depth: int) -> None:
        level = int(node.name[1])
        text = ' '.join(self.render_children(node, depth).split('\n')).strip()
        self.ensure_line_start(out)
        out.append(f"{'#' * level} {text}\n\n")

    def _convert_paragraph(self, node: Tag, out: List[str], depth: int) -> None:
        text = self.render_children(node, depth).strip()
        if not text:
            return
        self.ensure_line_start(out)
        out.append(text + '\n\n')

    def _convert_list(self, node: Tag, out: List[str], depth: int) -> None:
        self.ensure_line_start(out)
        for child in node.children:
            self.walk(child, out, depth)
        out.append('\n')

    def _convert_list_item(self, node: Tag, out: List[str], depth: int) -> None:
        """Emit one list item; numbering comes from the item's position under its ``ol`` parent."""
        parent = node.parent
        if parent is not None and parent.name == 'ol':
            position = 1 + sum(
                1 for sibling in node.previous_siblings
                if isinstance(sibling, Tag) and sibling.name == 'li'
            )
            prefix = f"{position}. "
        else:
            prefix = '- '

        indent = '  ' * depth
        nested_indent = '  ' * (depth + 1)
        continuation = indent + ' ' * len(prefix)

        content = self.render_children(node, depth + 1).rstrip()
        if self._starts_with_list(node):
            head, rest = '', content.lstrip('\n').split('\n')
        else:
            lines = content.lstrip().split('\n')
            head, rest = lines[0], lines[1:]

        item_lines = [f"{indent}{prefix}{head}".rstrip()]
        for line in rest:
            if not line.strip():
                item_lines.append('')
            elif line.startswith(nested_indent):
                item_lines.append(line)
            else:
                item_lines.append(continuation + line)

        self.ensure_line_start(out)
        out.append('\n'.join(item_lines) + '\n')

    @staticmethod
    def _starts_with_list(node: Tag) -> bool:
        """Check whether the first non-blank child of a list item is itself a list."""
        for child in node.children:
            if isinstance(child, Tag):
                return child.name in ('ul', 'ol')
            if isinstance(child, NavigableString) and not isinstance(child, Comment) and child.strip():
                return False
        return False

    def _convert_pre(self, node: Tag, out: List[str], depth: int) -> None:
        language = ''
        code_el = node.find('code')
        if code_el is not None:
            language = self._extract_code_language(code_el)

        code = node.get_text().strip('\n')
        self.ensure_line_start(out)
        out.append(f"```{language}\n{code}\n```\n\n")

    def _convert_rule(self, node: Tag, out: List[str], depth: int) -> None:
        self.ensure_line_start(out)
        out.append('---\n\n')

    def _convert_table(self, node: Tag, out: List[str], depth: int) -> None:
        self.ensure_line_start(out)
        out.append(self.table_formatter.format(node, self, depth))

    # Inline elements

    def _render_inline(self, node: Tag, out: List[str], depth: int) -> Tuple[str, bool]:
        """Render an inline element's text and report whether it opened with a separating space."""
        rendered = self.render_children(node, depth, self._last_char(out))
        text = rendered.strip()
        return text, bool(text) and rendered[0] == ' '

    def _convert_link(self, node: Tag, out: List[str], depth: int) -> None:
        text, spaced = self._render_inline(node, out, depth)
        if spaced:
            out.append(' ')
        href = node.get('href')
        if href is not None:
            out.append(f"[{text}]({href})")
        else:
            out.append(text)

    def _convert_strong(self, node: Tag, out: List[str], depth: int) -> None:
        text, spaced = self._render_inline(node, out, depth)
        if text:
            out.append(f" **{text}**" if spaced else f"**{text}**")

    def _convert_emphasis(self, node: Tag, out: List[str], depth: int) -> None:
        text, spaced = self._render_inline(node, out, depth)
        if text:
            out.append(f" *{text}*" if spaced else f"*{text}*")

    def _convert_code(self, node: Tag, out: List[str], depth: int) -> None:
        text = node.get_text().strip()
        if text:
            out.append(f"`{text}`")

    def _convert_line_break(self, node: Tag, out: List[str], depth: int) -> None:
        out.append('\n')

    def _convert_image(self, node: Tag, out: List[str], depth: int) -> None:
        src = node.get('src')
        if src is None:
            return
        alt = node.get('alt', '')
        out.append(f"![{alt}]({src})")

    # Containers

    def _convert_container(self, node: Tag, out: List[str], depth: int) -> None:
        """Walk a transparent element's children, descending into nested containers without recursion."""
        pending = [iter(node.children)]
        while pending:
            child = next(pending[-1], None)
            if child is None:
                pending.pop()
            elif self._is_plain_container(child):
                pending.append(iter(child.children))
            else:
                self.walk(child, out, depth)

    def _is_plain_container(self, node: Any) -> bool:
        return (isinstance(node, Tag) and not self._is_extension(node)
                and node_kind(node.name) is NodeKind.CONTAINER)

    def _skip(self, node: Tag, out: List[str], depth: int) -> None:
        return None

    @staticmethod
    def _extract_code_language(element: Tag) -> str:
        """Extract a fence language from a code element's class attribute."""
        classes = element.get('class') or []
        if isinstance(classes, str):
            classes = classes.split()

        for cls in classes:
            if cls.startswith('language-'):
                return cls[len('language-'):]

        return classes[0] if classes else ''


class MarkdownConverter:
    """
    Converts Confluence storage-format markup to Markdown.

    The converter holds configuration only. Each call parses its own tree,
    walks it with its own TreeWalker and post-processes the joined output,
    so one instance can serve concurrent callers.
    """

    def __init__(self, config: Dict[str, Any] = None, logger: logging.Logger = None):
        """Initialize markdown converter with configuration and logger."""
        self.config = config or {}
        self.logger = logger or logging.getLogger('confluence_exporter.converters.markdownconverter')

        self.html_cleaner = HtmlCleaner(self.logger)
        self.macro_handler = MacroHandler(
            self.logger,
            attachment_path=get_nested(self.config, 'converter.attachment_path', ''),
            default_language=get_nested(self.config, 'converter.code_language_default', ''),
        )
        self.table_formatter = TableFormatter(self.logger)

    def convert(self, markup: str) -> str:
        """
        Convert storage-format markup to Markdown.

        Args:
            markup: Source markup for one document

        Returns:
            Markdown text with no leading/trailing whitespace

        Raises:
            EmptyInputError: If markup is empty
            ParseError: If the markup could not be parsed, or is nested too deeply to walk
        """
        markdown, _ = self.convert_with_stats(markup)
        return markdown

    def convert_with_stats(self, markup: str) -> Tuple[str, ConversionStats]:
        """Convert markup and return the Markdown with this call's macro statistics."""
        if not markup:
            raise EmptyInputError()

        soup = self._parse(markup)

        walker = TreeWalker(self.macro_handler, self.table_formatter, self.logger)
        out: List[str] = []
        try:
            for child in soup.children:
                walker.walk(child, out, 0)
        except RecursionError as e:
            raise ParseError(e) from e

        markdown = self._post_process_markdown(''.join(out))
        self.logger.debug(
            f"Converted {len(markup)} chars of markup to {len(markdown)} chars of markdown "
            f"({walker.stats.macros_converted}/{walker.stats.macros_found} macros converted)"
        )
        return markdown, walker.stats

    def convert_page(self, page: Any) -> bool:
        """
        Convert a ConfluencePage's storage-format content to Markdown.

        Sets ``page.markdown_content`` and records conversion metadata. A
        conversion error is recorded on the page rather than raised.

        Args:
            page: ConfluencePage object with markup in page.content

        Returns:
            bool: True if conversion succeeded, False otherwise
        """
        self.logger.info(f"Converting page {page.id} to markdown")

        try:
            markdown, stats = self.convert_with_stats(page.content)
        except ConversionError as e:
            self.logger.error(f"Conversion failed for page {page.id}: {str(e)}")
            self._update_failed_conversion_metadata(page, str(e))
            return False

        page.markdown_content = markdown
        self._update_conversion_metadata(page, stats, HtmlCleaner.detect_format(page.content))

        self.logger.info(f"Page {page.id} conversion successful")
        return True

    def _parse(self, markup: str) -> BeautifulSoup:
        """Parse cleaned markup into a tree, wrapping parser failures in ParseError."""
        cleaned = self.html_cleaner.clean(markup)
        try:
            return BeautifulSoup(cleaned, PARSER_FEATURES)
        except Exception as e:
            raise ParseError(e) from e

    def _post_process_markdown(self, markdown: str) -> str:
        """Collapse runs of three or more newlines to two and trim the result."""
        while '\n\n\n' in markdown:
            markdown = markdown.replace('\n\n\n', '\n\n')
        return markdown.strip()

    def _update_conversion_metadata(self, page: Any, stats: ConversionStats, format_type: str) -> None:
        """Update page conversion metadata with conversion statistics."""
        if not getattr(page, 'conversion_metadata', None):
            page.conversion_metadata = {}

        page.conversion_metadata.update(stats.to_dict())
        page.conversion_metadata.update({
            'conversion_status': stats.status,
            'format_detected': format_type,
            'conversion_timestamp': datetime.now(timezone.utc).isoformat(),
        })
        page.conversion_metadata.pop('conversion_error', None)

    def _update_failed_conversion_metadata(self, page: Any, error_message: str) -> None:
        """Update metadata for failed conversions."""
        if not getattr(page, 'conversion_metadata', None):
            page.conversion_metadata = {}

        page.conversion_metadata.update({
            'conversion_status': 'failed',
            'conversion_error': error_message,
            'conversion_timestamp': datetime.now(timezone.utc).isoformat()
        })


__all__ = ['MarkdownConverter', 'TreeWalker', 'NodeKind', 'node_kind']
