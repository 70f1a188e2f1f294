"""Local exporter that converts a directory of storage-format files to Markdown files."""

import logging
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml
from tqdm import tqdm

from ..config_loader import DEFAULT_INPUT_EXTENSIONS, DEFAULT_OUTPUT_DIRECTORY, get_nested
from ..converters.markdown_converter import MarkdownConverter
from ..models import ConfluencePage

# Characters that are unsafe in file names on common filesystems
FILENAME_REPLACEMENTS = {
    '/': '-',
    '\\': '-',
    ':': '-',
    '*': '-',
    '?': '-',
    '"': '-',
    '<': '-',
    '>': '-',
    '|': '-',
    ' ': '_',
}


class MarkdownExporter:
    """
    Exports every storage-format document under an input directory to Markdown.

    Each input file becomes one ConfluencePage (title taken from the file
    stem), is converted independently and is written as ``<safe-name>.md``
    under the output directory, keeping the input's relative subdirectories.
    A document that fails to convert or write is logged and counted; the
    batch always continues.
    """

    def __init__(self, config: Dict[str, Any], logger: Optional[logging.Logger] = None,
                 output_dir: Optional[str] = None):
        """
        Initialize the markdown exporter.

        Args:
            config: Configuration dictionary with export and converter settings
            logger: Logger instance
            output_dir: Optional output directory override (takes precedence over config)
        """
        self.config = config
        self.logger = logger or logging.getLogger('confluence_exporter.exporters.markdown_exporter')

        self.input_directory = Path(get_nested(config, 'export.input_directory', '.'))
        self.output_directory = Path(
            output_dir or get_nested(config, 'export.output_directory', DEFAULT_OUTPUT_DIRECTORY)
        )
        self.include_front_matter = get_nested(config, 'export.include_front_matter', True)
        self.input_extensions = {
            ext.lower() for ext in get_nested(config, 'export.input_extensions', DEFAULT_INPUT_EXTENSIONS)
        }

        self.converter = MarkdownConverter(config=config, logger=self.logger)

        self.stats = {
            'files_scanned': 0,
            'documents_converted': 0,
            'documents_partial': 0,
            'documents_failed': 0,
            'files_written': 0,
            'errors': []
        }

        self.logger.info("MarkdownExporter initialized")

    def export_directory(self) -> Dict[str, Any]:
        """
        Convert every matching file under the input directory.

        Returns:
            Statistics dictionary with export results

        Raises:
            OSError: If the output directory cannot be created
        """
        self.logger.info(f"Starting markdown export from {self.input_directory} to {self.output_directory}")

        try:
            self.output_directory.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            self.logger.error(f"Failed to create output directory: {e}")
            raise

        source_files = self._scan_source_files()
        self.stats['files_scanned'] = len(source_files)

        if not source_files:
            self.logger.warning(f"No storage-format files found in {self.input_directory}")
            self._log_export_summary()
            return self.stats.copy()

        with tqdm(total=len(source_files), desc="Converting documents", unit="file") as pbar:
            for file_path in source_files:
                try:
                    self._export_file(file_path)
                except Exception as e:
                    self.logger.error(f"Failed to export {file_path}: {e}", exc_info=True)
                    self.stats['documents_failed'] += 1
                    self.stats['errors'].append({'file': str(file_path), 'error': str(e)})
                finally:
                    pbar.update(1)

        self._log_export_summary()

        return self.stats.copy()

    def export_page(self, page: ConfluencePage, relative_dir: Path = Path('.')) -> Optional[Path]:
        """
        Convert one page and write it to the output directory.

        Args:
            page: Page with storage-format markup in ``content``
            relative_dir: Subdirectory of the output directory to write into

        Returns:
            Path of the written file, or None if conversion or writing failed
        """
        if not self.converter.convert_page(page):
            self.stats['documents_failed'] += 1
            self.stats['errors'].append({
                'page_id': page.id,
                'error': page.conversion_metadata.get('conversion_error', 'conversion failed')
            })
            return None

        page_dir = self.output_directory / relative_dir
        page_file = page_dir / f"{self._sanitize_filename(page.title)}.md"

        content = page.markdown_content
        if self.include_front_matter:
            content = f"{self._generate_frontmatter(page)}\n\n{content}"

        try:
            page_dir.mkdir(parents=True, exist_ok=True)
            page_file.write_text(content + '\n', encoding='utf-8')
        except OSError as e:
            self.logger.error(f"IO error writing to {page_file}: {e}")
            self.stats['documents_failed'] += 1
            self.stats['errors'].append({'page_id': page.id, 'error': f"IO error: {e}"})
            return None

        if page.conversion_metadata.get('conversion_status') == 'partial':
            self.stats['documents_partial'] += 1
        self.stats['documents_converted'] += 1
        self.stats['files_written'] += 1
        self.logger.debug(f"Wrote {len(content)} chars to {page_file}")

        return page_file

    def _export_file(self, file_path: Path) -> bool:
        """Read one source file and export it. Returns False on any failure."""
        relative = file_path.relative_to(self.input_directory)

        try:
            markup = file_path.read_text(encoding='utf-8')
        except (OSError, UnicodeDecodeError) as e:
            self.logger.error(f"Failed to read {file_path}: {e}")
            self.stats['documents_failed'] += 1
            self.stats['errors'].append({'file': str(file_path), 'error': str(e)})
            return False

        page = ConfluencePage(
            id=relative.with_suffix('').as_posix(),
            title=file_path.stem,
            content=markup,
            metadata={'source_file': relative.as_posix()}
        )

        return self.export_page(page, relative.parent) is not None

    def _scan_source_files(self) -> List[Path]:
        """Return matching input files in a stable order."""
        if not self.input_directory.is_dir():
            self.logger.error(f"Input directory does not exist: {self.input_directory}")
            return []

        return sorted(
            path for path in self.input_directory.rglob('*')
            if path.is_file() and path.suffix.lower() in self.input_extensions
        )

    def _generate_frontmatter(self, page: ConfluencePage) -> str:
        """
        Generate YAML front matter for one converted page.

        Args:
            page: Converted ConfluencePage

        Returns:
            YAML front matter block delimited by ``---`` lines
        """
        frontmatter = {
            'title': page.title,
            'confluence_page_id': page.id,
        }
        if page.space_key:
            frontmatter['space_key'] = page.space_key
        if page.parent_id:
            frontmatter['parent_id'] = page.parent_id
        if page.url:
            frontmatter['confluence_url'] = page.url
        if page.metadata.get('source_file'):
            frontmatter['source_file'] = page.metadata['source_file']

        frontmatter['conversion_status'] = page.conversion_metadata.get('conversion_status', 'pending')

        conversion_warnings = page.conversion_metadata.get('conversion_warnings', [])
        if conversion_warnings:
            frontmatter['conversion_warnings'] = list(conversion_warnings)

        yaml_str = yaml.dump(
            frontmatter,
            default_flow_style=False,
            allow_unicode=True,
            sort_keys=False,
            width=1000
        )

        return f"---\n{yaml_str}---"

    @staticmethod
    def _sanitize_filename(title: str) -> str:
        """
        Convert a document title to a filesystem-safe file name.

        Args:
            title: Document title

        Returns:
            Sanitized file name without extension
        """
        if not title:
            return "untitled"

        return ''.join(FILENAME_REPLACEMENTS.get(char, char) for char in title)

    def _log_export_summary(self) -> None:
        """Log final export statistics."""
        self.logger.info("=" * 60)
        self.logger.info("MARKDOWN EXPORT SUMMARY")
        self.logger.info("=" * 60)
        self.logger.info(f"Files scanned: {self.stats['files_scanned']}")
        self.logger.info(f"Documents converted: {self.stats['documents_converted']}")
        if self.stats['documents_partial'] > 0:
            self.logger.info(f"Documents with unsupported macros: {self.stats['documents_partial']}")
        self.logger.info(f"Documents failed: {self.stats['documents_failed']}")
        self.logger.info(f"Files written: {self.stats['files_written']}")
        self.logger.info(f"Output directory: {self.output_directory}")
        self.logger.info("=" * 60)


__all__ = ['MarkdownExporter', 'FILENAME_REPLACEMENTS']
