"""Exception types raised by md2gslides.

All of them are ``ValueError`` subclasses so callers that already catch bad
input as ``ValueError`` keep working.
"""


class SlideGenerationError(ValueError):
    """Base class for every md2gslides failure."""


class MarkdownStructureError(SlideGenerationError):
    """The markdown has a shape the compiler cannot represent."""


class LayoutError(SlideGenerationError):
    """A compiled slide exceeds what the target presentation can express."""

    def __init__(self, message: str, slide_index: int = None):
        if slide_index is not None:
            message = f"Slide #{slide_index + 1}: {message}"
        super().__init__(message)
        self.slide_index = slide_index


class ImageError(SlideGenerationError):
    """An image could not be generated, probed or uploaded."""
