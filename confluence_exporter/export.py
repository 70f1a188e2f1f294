"""
Confluence Storage Format to Markdown Exporter - CLI Entry Point

Converts a directory of Confluence storage-format documents to Markdown
files, optionally prefixed with YAML front matter.
"""

import argparse
import logging
import sys
from typing import List, Optional

import yaml

from . import __version__
from .config_loader import ConfigLoader, get_nested
from .exporters import MarkdownExporter
from .logger import log_config, log_section, setup_logging


def create_argument_parser() -> argparse.ArgumentParser:
    """Create and configure the argument parser for CLI."""
    parser = argparse.ArgumentParser(
        prog='confluence-export',
        description="Convert Confluence storage-format documents to Markdown files",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Convert using a configuration file
  confluence-export --config config.yaml

  # Convert a directory without a configuration file
  confluence-export --input-dir ./storage --output-dir ./markdown

  # Plain Markdown output, debug logging
  confluence-export --input-dir ./storage --no-front-matter -vv
        """
    )

    parser.add_argument(
        '--version',
        action='version',
        version=f'%(prog)s {__version__}'
    )

    parser.add_argument(
        '--config',
        type=str,
        help='Path to configuration YAML file'
    )

    parser.add_argument(
        '--input-dir',
        type=str,
        help='Directory of storage-format files (overrides config)'
    )

    parser.add_argument(
        '--output-dir',
        type=str,
        help='Output directory for Markdown files (overrides config)'
    )

    parser.add_argument(
        '--attachment-path',
        type=str,
        help='Prefix for attachment references in images and links (overrides config)'
    )

    parser.add_argument(
        '--no-front-matter',
        action='store_true',
        help='Write Markdown without YAML front matter'
    )

    parser.add_argument(
        '--log-file',
        type=str,
        help='Path to log file (overrides config)'
    )

    parser.add_argument(
        '-v', '--verbose',
        action='count',
        default=0,
        help='Increase verbosity (-v for INFO, -vv for DEBUG)'
    )

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the CLI."""
    parser = create_argument_parser()
    args = parser.parse_args(argv)

    try:
        config = ConfigLoader.load(args.config) if args.config else {}
        config = ConfigLoader.merge_with_args(config, args)
        ConfigLoader.validate(config)
    except FileNotFoundError as e:
        print(f"ERROR: File not found: {e}", file=sys.stderr)
        return 2
    except (ValueError, yaml.YAMLError) as e:
        print(f"ERROR: Configuration error: {e}", file=sys.stderr)
        return 2

    setup_logging(
        verbosity=args.verbose,
        log_file=get_nested(config, 'logging.file'),
        level=get_nested(config, 'logging.level')
    )
    logger = logging.getLogger('confluence_exporter.export')

    log_section("Confluence Storage Format Exporter")
    logger.info(f"Version: {__version__}")
    log_config(config)

    try:
        stats = MarkdownExporter(config).export_directory()
    except OSError as e:
        logger.error(f"Export failed: {e}")
        return 1
    except KeyboardInterrupt:
        print("\nExport interrupted by user", file=sys.stderr)
        return 130

    if stats['documents_failed'] > 0:
        logger.warning(f"{stats['documents_failed']} of {stats['files_scanned']} documents failed to convert")
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
