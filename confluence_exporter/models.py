"""Data models for the Confluence to Markdown export pipeline."""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


@dataclass
class ConversionStats:
    """Per-conversion macro statistics.

    A fresh instance is allocated for every conversion call and never shared
    between calls.
    """

    macros_found: int = 0
    macros_converted: int = 0
    macros_unsupported: List[str] = field(default_factory=list)
    by_type: Dict[str, int] = field(default_factory=dict)
    warnings: List[str] = field(default_factory=list)

    def record_converted(self, macro_name: str) -> None:
        """Count a macro that had a dedicated conversion rule."""
        self.macros_found += 1
        self.macros_converted += 1
        self.by_type[macro_name] = self.by_type.get(macro_name, 0) + 1

    def record_unsupported(self, macro_name: str) -> None:
        """Count a macro that went through the lossy text fallback."""
        self.macros_found += 1
        self.macros_unsupported.append(macro_name)
        self.warnings.append(f"Unsupported macro type: {macro_name}")

    @property
    def status(self) -> str:
        return 'partial' if self.warnings else 'success'

    def to_dict(self) -> Dict[str, Any]:
        """Serialize stats to dictionary."""
        return {
            'macros_found': self.macros_found,
            'macros_converted': self.macros_converted,
            'macros_unsupported': list(self.macros_unsupported),
            'by_type': dict(self.by_type),
            'conversion_warnings': list(self.warnings),
        }


@dataclass
class ConfluencePage:
    """
    A Confluence page with storage-format content and conversion tracking.

    ``space_key``, ``parent_id``, ``url`` and the ``source_file`` entry of
    ``metadata`` are optional; the exporter copies whichever are set into the
    page's front matter.
    """

    id: str
    title: str
    content: str  # storage-format markup
    space_key: str = ''
    parent_id: Optional[str] = None
    url: Optional[str] = None
    metadata: Dict[str, Any] = field(default_factory=dict)
    markdown_content: Optional[str] = None
    conversion_metadata: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if not self.conversion_metadata:
            self.conversion_metadata = {
                'conversion_status': 'pending',
                'macros_found': 0,
                'macros_converted': 0,
                'macros_unsupported': [],
                'conversion_warnings': []
            }


__all__ = ['ConversionStats', 'ConfluencePage']
