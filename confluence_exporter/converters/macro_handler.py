"""Confluence extension element handler for macros, task lists, images and links."""

import logging
import posixpath
import re
from typing import Any, Callable, Dict, List, Optional

from bs4 import Tag


TASK_COMPLETE = 'complete'


class MacroHandler:
    """Approximates Confluence extension elements that have no native Markdown form.

    ``handle`` returns True when it claimed the node, in which case the caller
    must not process the node again. Missing sub-elements are substituted with
    empty strings; a malformed macro never aborts the conversion.
    """

    def __init__(self, logger: logging.Logger = None, attachment_path: str = '',
                 default_language: str = ''):
        """Initialize macro handler with optional logger and reference settings."""
        self.logger = logger or logging.getLogger('confluence_exporter.converters.macrohandler')
        self.attachment_path = attachment_path or ''
        self.default_language = default_language or ''

        # Structured macro converters, keyed by macro name
        self.macro_converters: Dict[str, Callable] = {
            'code': self._convert_code_macro,
            'noformat': self._convert_noformat_macro,
            'info': self._convert_admonition_macro,
            'note': self._convert_admonition_macro,
            'warning': self._convert_admonition_macro,
            'tip': self._convert_admonition_macro,
            'expand': self._convert_section_macro,
            'panel': self._convert_section_macro,
        }

        # Extension element converters, keyed by tag name
        self.element_converters: Dict[str, Callable] = {
            'ac:structured-macro': self._convert_structured_macro,
            'ac:macro': self._convert_structured_macro,
            'ac:task-list': self._convert_task_list,
            'ac:image': self._convert_image,
            'ac:link': self._convert_link,
            'ac:emoticon': self._convert_emoticon,
            'ac:placeholder': self._drop_element,
        }

        self._emoticon_map = {
            'smile': '😊',
            'sad': '😢',
            'cheeky': '😛',
            'laugh': '😄',
            'wink': '😉',
            'thumbs-up': '👍',
            'thumbs-down': '👎',
            'information': 'ℹ️',
            'tick': '✅',
            'cross': '❌',
            'warning': '⚠️',
            'plus': '➕',
            'minus': '➖',
            'question': '❓',
            'light-on': '💡',
            'light-off': '💡',
            'yellow-star': '⭐',
            'heart': '❤️',
            'broken-heart': '💔',
        }

    def handle(self, node: Tag, out: List[str], depth: int, walker: Any) -> bool:
        """
        Convert an extension element if it is one this handler recognizes.

        Args:
            node: Element to inspect
            out: Output buffer of the current walk
            depth: Current list depth
            walker: Tree walker, used to render rich-text bodies and to record stats

        Returns:
            True if the node was claimed and fully emitted
        """
        if node.has_attr('data-macro-name'):
            self._convert_structured_macro(node, out, depth, walker)
            return True

        converter = self.element_converters.get(node.name)
        if converter is None:
            return False

        converter(node, out, depth, walker)
        return True

    # Structured macros

    def _convert_structured_macro(self, node: Tag, out: List[str], depth: int, walker: Any) -> None:
        """Dispatch a structured macro on its type name."""
        macro_name = self._get_macro_name(node)
        self.logger.debug(f"Converting macro: {macro_name or '<unnamed>'}")

        converter = self.macro_converters.get(macro_name)
        if converter is None:
            self._convert_unknown_macro(node, out, depth, walker)
            walker.stats.record_unsupported(macro_name or 'unnamed')
            return

        converter(node, macro_name, out, depth, walker)
        walker.stats.record_converted(macro_name)

    def _convert_code_macro(self, node: Tag, macro_name: str, out: List[str], depth: int, walker: Any) -> None:
        """Convert code macro to a fenced block using its language parameter."""
        language = self._extract_parameter(node, 'language') or self.default_language
        code = self._extract_plain_text_body(node)
        self._emit_fenced_block(out, language, code, walker)

    def _convert_noformat_macro(self, node: Tag, macro_name: str, out: List[str], depth: int, walker: Any) -> None:
        """Convert noformat macro to a fenced block without language."""
        self._emit_fenced_block(out, '', self._extract_plain_text_body(node), walker)

    def _convert_admonition_macro(self, node: Tag, macro_name: str, out: List[str], depth: int, walker: Any) -> None:
        """Convert info/note/warning/tip macros to a labelled blockquote."""
        body = self._find_rich_text_body(node)
        text = walker.render_children(body, depth).strip() if body is not None else ''

        lines = text.split('\n') if text else ['']
        quoted = [f"> **{macro_name.upper()}:** {lines[0]}".rstrip()]
        for line in lines[1:]:
            quoted.append(f"> {line}" if line.strip() else '>')

        walker.ensure_line_start(out)
        out.append('\n'.join(quoted) + '\n\n')

    def _convert_section_macro(self, node: Tag, macro_name: str, out: List[str], depth: int, walker: Any) -> None:
        """Convert expand/panel macros to an optional bold title followed by the body."""
        title = self._extract_parameter(node, 'title')
        body = self._find_rich_text_body(node)
        text = walker.render_children(body, depth).strip() if body is not None else ''

        walker.ensure_line_start(out)
        if title:
            out.append(f"**{title}**\n\n")
        if text:
            out.append(text + '\n\n')

    def _convert_unknown_macro(self, node: Tag, out: List[str], depth: int, walker: Any) -> None:
        """Lossy fallback: emit the macro's flattened text content."""
        self.logger.warning(f"Converting unknown macro: {self._get_macro_name(node) or '<unnamed>'}")

        text = node.get_text(' ', strip=True)
        walker.ensure_line_start(out)
        out.append(text + '\n\n')

    # Other extension elements

    def _convert_task_list(self, node: Tag, out: List[str], depth: int, walker: Any) -> None:
        """Convert a task list to Markdown checkboxes."""
        tasks = node.find_all('ac:task', recursive=False) or node.find_all('ac:task')
        lines = []

        for task in tasks:
            status_el = task.find('ac:task-status')
            if status_el is not None:
                status = status_el.get_text(strip=True)
            else:
                status = (task.get('status') or task.get('ac:task-status') or '').strip()

            body = task.find('ac:task-body')
            text = ''
            if body is not None:
                text = re.sub(r'\s*\n\s*', ' ', walker.render_children(body, depth)).strip()

            checkbox = '[x]' if status == TASK_COMPLETE else '[ ]'
            lines.append(f"- {checkbox} {text}".rstrip() + '\n')

        walker.ensure_line_start(out)
        out.append(''.join(lines) + '\n')

    def _convert_image(self, node: Tag, out: List[str], depth: int, walker: Any) -> None:
        """Convert an embedded image to Markdown image syntax."""
        url = self._resolve_resource(node) or ''

        alt = node.get('ac:alt') or node.get('ac:title') or ''
        if not alt:
            alt_el = node.find('ac:caption') or node.find('ac:plain-text-body')
            if alt_el is not None:
                alt = alt_el.get_text(' ', strip=True)

        out.append(f"![{alt}]({url})\n\n")

    def _convert_link(self, node: Tag, out: List[str], depth: int, walker: Any) -> None:
        """Convert an ac:link to a Markdown link where it points at a URL or attachment."""
        text = ''
        plain_body = node.find('ac:plain-text-link-body')
        if plain_body is not None:
            text = plain_body.get_text().strip()
        else:
            rich_body = node.find('ac:link-body')
            if rich_body is not None:
                text = walker.render_children(rich_body, depth).strip()

        target = self._resolve_resource(node)
        if target:
            out.append(f"[{text or target}]({target})")
            return

        # Page and user references are not resolved to URLs
        page = node.find('ri:page')
        if not text and page is not None:
            text = page.get('ri:content-title', '')
        out.append(text)

    def _convert_emoticon(self, node: Tag, out: List[str], depth: int, walker: Any) -> None:
        """Convert an emoticon to a Unicode emoji, falling back to :name:."""
        fallback = node.get('ac:emoji-fallback', '')
        name = node.get('ac:name', '')

        if name in self._emoticon_map:
            out.append(self._emoticon_map[name])
        elif fallback and not fallback.startswith(':'):
            out.append(fallback)
        elif name:
            out.append(f":{name}:")

    def _drop_element(self, node: Tag, out: List[str], depth: int, walker: Any) -> None:
        """Editor-only elements produce no output."""
        return None

    # Helpers

    @staticmethod
    def _get_macro_name(node: Tag) -> str:
        """Extract macro name from a storage-format or export-format element."""
        return (node.get('ac:name') or node.get('data-macro-name') or '').strip()

    @staticmethod
    def _find(node: Tag, name: str, attrs: Optional[Dict[str, str]] = None) -> Optional[Tag]:
        """Find a direct child first, then any descendant."""
        attrs = attrs or {}
        found = node.find(name, attrs=attrs, recursive=False)
        if found is None:
            found = node.find(name, attrs=attrs)
        return found

    def _extract_parameter(self, node: Tag, param_name: str) -> Optional[str]:
        """Extract a macro parameter value from ac:parameter or data-macro-param-* attribute."""
        if node.has_attr('data-macro-name'):
            return node.get(f'data-macro-param-{param_name}')

        param = self._find(node, 'ac:parameter', {'ac:name': param_name})
        return param.get_text(strip=True) if param is not None else None

    def _extract_plain_text_body(self, node: Tag) -> str:
        """Return the raw text of a macro's plain-text body, or '' if it has none."""
        if node.has_attr('data-macro-name'):
            return node.get_text()

        body = self._find(node, 'ac:plain-text-body')
        return body.get_text() if body is not None else ''

    def _find_rich_text_body(self, node: Tag) -> Optional[Tag]:
        """Return the element holding a macro's rich-text body."""
        if node.has_attr('data-macro-name'):
            body = node.find(class_='confluence-information-macro-body')
            return body if body is not None else node
        return self._find(node, 'ac:rich-text-body')

    def _resolve_resource(self, node: Tag) -> Optional[str]:
        """Return the URL or attachment reference a node points at, if any."""
        url_el = node.find('ri:url')
        if url_el is not None:
            return url_el.get('ri:value', '')

        attachment = node.find('ri:attachment')
        if attachment is not None:
            return self._attachment_reference(attachment.get('ri:filename', ''))

        return None

    def _attachment_reference(self, filename: str) -> str:
        """Prefix an attachment file name with the configured attachment path."""
        if self.attachment_path and filename:
            return posixpath.join(self.attachment_path, filename)
        return filename

    @staticmethod
    def _emit_fenced_block(out: List[str], language: str, code: str, walker: Any) -> None:
        """Append a fenced code block, starting it on a fresh line."""
        code = code.strip('\n')
        walker.ensure_line_start(out)
        out.append(f"```{language}\n{code}\n```\n\n")


__all__ = ['MacroHandler', 'TASK_COMPLETE']
