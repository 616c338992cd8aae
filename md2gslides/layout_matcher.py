"""
Pick the predefined Slides layout that fits a compiled slide.

Rules are checked in order and the first match wins, so more specific
shapes must come before the generic ones.
"""
import logging
from typing import Callable, Dict, List, Optional

from .errors import LayoutError
from .models import SlideModel, TextBlock
from .presentation_helpers import find_layout_name_by_display_name

logger = logging.getLogger(__name__)


class LayoutRule:
    """A layout name plus the condition a slide must meet to use it."""

    def __init__(self, name: str, condition: Callable[[SlideModel], bool]):
        self.name = name
        self.condition = condition

    def matches(self, slide: SlideModel) -> bool:
        return self.condition(slide)

    def __repr__(self):
        return f"LayoutRule({self.name!r})"


def _has_text(text: Optional[TextBlock]) -> bool:
    return text is not None and text.has_text()


def _has_big_title(slide: SlideModel) -> bool:
    return _has_text(slide.title) and slide.title.big


def _has_text_content(slide: SlideModel) -> bool:
    return len(slide.bodies) != 0


def _has_content(slide: SlideModel) -> bool:
    """Anything which takes up the main body space."""
    return len(slide.bodies) != 0 or len(slide.tables) != 0


LAYOUT_RULES: List[LayoutRule] = [
    LayoutRule(
        "TITLE",
        lambda s: _has_text(s.title) and _has_text(s.subtitle) and not _has_content(s),
    ),
    LayoutRule("MAIN_POINT", lambda s: _has_big_title(s) and not _has_content(s)),
    LayoutRule(
        "SECTION_HEADER",
        lambda s: _has_text(s.title) and not _has_text(s.subtitle) and not _has_content(s),
    ),
    LayoutRule(
        "SECTION_TITLE_AND_DESCRIPTION",
        lambda s: _has_text(s.title) and _has_text(s.subtitle) and _has_text_content(s),
    ),
    LayoutRule("BIG_NUMBER", lambda s: _has_big_title(s) and _has_text_content(s)),
    LayoutRule("TITLE_AND_TWO_COLUMNS", lambda s: _has_text(s.title) and len(s.bodies) == 2),
    LayoutRule("TITLE_AND_BODY", lambda s: _has_text(s.title) or len(s.bodies) != 0),
    LayoutRule("BLANK", lambda s: True),
]


def match_layout(presentation: Optional[Dict], slide: SlideModel) -> str:
    """
    Return the layout name (``layoutProperties.name``) to build *slide* from.

    Args:
        presentation: Presentation JSON, only consulted for custom layouts
        slide: Compiled slide

    Raises:
        LayoutError: If a custom layout isn't in the presentation
    """
    if slide.custom_layout is not None:
        name = find_layout_name_by_display_name(presentation or {}, slide.custom_layout)
        if name is None:
            raise LayoutError(f"Unknown layout '{slide.custom_layout}'", slide.index)
        logger.debug("Slide %d uses custom layout %s", slide.index + 1, name)
        return name

    for rule in LAYOUT_RULES:
        if rule.matches(slide):
            logger.debug("Slide %d matched layout %s", slide.index + 1, rule.name)
            return rule.name
    raise LayoutError("Failed to match layout for slide", slide.index)
