"""Markup cleaner applied to raw storage-format text before it is parsed."""

import html
import logging
import re



class HtmlCleaner:
    """Normalizes Confluence storage-format markup so the HTML parser sees plain text bodies."""

    CDATA_PATTERN = re.compile(r'<!\[CDATA\[(.*?)\]\]>', re.DOTALL)
    XML_DECLARATION_PATTERN = re.compile(r'^\s*<\?xml[^>]*\?>')

    def __init__(self, logger: logging.Logger = None):
        """Initialize HTML cleaner with optional logger."""
        self.logger = logger or logging.getLogger('confluence_exporter.converters.htmlcleaner')

    def clean(self, markup: str) -> str:
        """
        Prepare markup for parsing.

        CDATA sections (used by code and noformat macro bodies) are replaced
        with their escaped text, so the parser yields them as ordinary text
        nodes whatever its CDATA support. A leading XML declaration is dropped.

        Args:
            markup: Raw storage-format markup

        Returns:
            Markup ready for the parser
        """
        markup = self.XML_DECLARATION_PATTERN.sub('', markup)

        sections = 0

        def escape_section(match):
            nonlocal sections
            sections += 1
            return html.escape(match.group(1), quote=False)

        markup = self.CDATA_PATTERN.sub(escape_section, markup)
        if sections:
            self.logger.debug(f"Unwrapped {sections} CDATA section(s)")
        return markup

    @staticmethod
    def detect_format(markup: str) -> str:
        """Detect markup flavour: 'storage' (ac: elements) or 'export' (rendered HTML)."""
        if not markup:
            return 'export'

        if 'ac:' in markup or 'ri:' in markup:
            return 'storage'

        return 'export'


__all__ = ['HtmlCleaner']
