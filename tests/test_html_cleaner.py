"""Tests for pre-parse markup cleaning."""

import unittest

from confluence_exporter.converters.html_cleaner import HtmlCleaner


class TestHtmlCleaner(unittest.TestCase):
    def setUp(self):
        self.cleaner = HtmlCleaner()

    def test_cdata_becomes_escaped_text(self):
        result = self.cleaner.clean('<ac:plain-text-body><![CDATA[a < b & c > d]]></ac:plain-text-body>')
        self.assertEqual(result, '<ac:plain-text-body>a &lt; b &amp; c &gt; d</ac:plain-text-body>')

    def test_multiple_cdata_sections(self):
        result = self.cleaner.clean('<![CDATA[one]]> and <![CDATA[<two>]]>')
        self.assertEqual(result, 'one and &lt;two&gt;')

    def test_multiline_cdata(self):
        result = self.cleaner.clean('<![CDATA[line1\nline2]]>')
        self.assertEqual(result, 'line1\nline2')

    def test_quotes_are_not_escaped(self):
        self.assertEqual(self.cleaner.clean('<![CDATA[say "hi"]]>'), 'say "hi"')

    def test_xml_declaration_is_removed(self):
        result = self.cleaner.clean('<?xml version="1.0" encoding="UTF-8"?>\n<p>x</p>')
        self.assertEqual(result, '\n<p>x</p>')

    def test_markup_without_cdata_is_unchanged(self):
        markup = '<p>plain <strong>text</strong></p>'
        self.assertEqual(self.cleaner.clean(markup), markup)

    def test_detect_format(self):
        self.assertEqual(HtmlCleaner.detect_format('<ac:structured-macro ac:name="info"/>'), 'storage')
        self.assertEqual(HtmlCleaner.detect_format('<ri:page ri:content-title="x"/>'), 'storage')
        self.assertEqual(HtmlCleaner.detect_format('<div data-macro-name="info"></div>'), 'export')
        self.assertEqual(HtmlCleaner.detect_format(''), 'export')


if __name__ == '__main__':
    unittest.main()
