"""Exception hierarchy for the Confluence Markdown exporter."""


class ExporterError(Exception):
    """Base exception for all exporter errors."""
    pass


class ConversionError(ExporterError):
    """Base exception for a document that could not be converted to Markdown."""
    pass


class EmptyInputError(ConversionError):
    """Raised when the markup handed to the converter has zero length."""

    def __init__(self, message: str = "content cannot be empty"):
        super().__init__(message)


class ParseError(ConversionError):
    """Raised when the markup could not be parsed into a tree, or the tree is too deep to walk.

    The parser's own exception is chained as ``__cause__`` and kept on
    ``reason`` for callers that report it.
    """

    def __init__(self, reason: Exception):
        super().__init__(f"failed to parse markup: {reason}")
        self.reason = reason


__all__ = [
    'ExporterError',
    'ConversionError',
    'EmptyInputError',
    'ParseError',
]
