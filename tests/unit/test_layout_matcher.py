"""Test choosing a predefined layout for compiled slides."""

import pytest

from md2gslides.compiler import extract_slides
from md2gslides.errors import LayoutError
from md2gslides.layout_matcher import LAYOUT_RULES, match_layout


@pytest.mark.parametrize("markdown, expected", [
    ("# Title\n## Subtitle\n", "TITLE"),
    ("{.big}\n# Title\n", "MAIN_POINT"),
    ("# Title\n", "SECTION_HEADER"),
    ("# Title\n## Subtitle\nHello world\n", "SECTION_TITLE_AND_DESCRIPTION"),
    ("{.big}\n# 100%\nHello world\n", "BIG_NUMBER"),
    ("{.big}\n# 1\na\n\n{.column}\n\nb\n", "BIG_NUMBER"),
    ("# 42 {.big}\n\nbody\n", "BIG_NUMBER"),
    ("# Title\nhello\n\n{.column}\n\nworld\n", "TITLE_AND_TWO_COLUMNS"),
    ("# Title\nHello world\n", "TITLE_AND_BODY"),
    ("Hello world\n", "TITLE_AND_BODY"),
    ("![](https://example.com/a.png)\n", "TITLE_AND_BODY"),
    ("# Title\n\nA | B\n---|---\n1 | 2\n", "TITLE_AND_BODY"),
    ("![](https://example.com/a.png){.background}\n", "BLANK"),
    ("---\n\n", "BLANK"),
])
def test_match_layout(mock_presentation, markdown, expected):
    """Each slide shape maps onto its predefined layout."""
    slide = extract_slides(markdown)[0]

    assert match_layout(mock_presentation, slide) == expected


def test_custom_layout_resolved_by_display_name(mock_presentation):
    slide = extract_slides('{layout="my custom layout"}\n# Title\n## Subtitle\n')[0]

    assert match_layout(mock_presentation, slide) == "CUSTOM_1"


def test_unknown_custom_layout(mock_presentation):
    """A layout name not in the presentation is an error naming the slide."""
    slides = extract_slides('# One\n\n---\n\n{layout="nope"}\n# Two\n')

    with pytest.raises(LayoutError, match="Slide #2"):
        match_layout(mock_presentation, slides[1])


def test_blank_is_last_resort():
    assert LAYOUT_RULES[-1].name == "BLANK"
    assert [rule.name for rule in LAYOUT_RULES].index("TITLE") == 0
