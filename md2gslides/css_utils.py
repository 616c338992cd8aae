"""
CSS utilities for slide generation.

Stylesheets (highlight themes and user CSS) are parsed with tinycss2 into a
``{class name: {property: value}}`` mapping. Inline ``style`` attributes are
parsed into a single ``{property: value}`` dict. :func:`update_style` then
maps the handful of CSS properties Google Slides understands onto a
:class:`~md2gslides.models.TextStyle`.
"""
import logging
import re
from typing import Dict, Optional

import tinycss2
from PIL import ImageColor

from .models import TextStyle

logger = logging.getLogger(__name__)

_CLASS_RE = re.compile(r"\.([\w-]+)")
_FONT_SIZE_RE = re.compile(r"^(\d+(?:\.\d+)?)\s*(pt)?$", re.IGNORECASE)


def _declarations(content) -> Dict[str, str]:
    declarations: Dict[str, str] = {}
    for item in tinycss2.parse_declaration_list(
        content, skip_comments=True, skip_whitespace=True
    ):
        if item.type != "declaration":
            continue
        declarations[item.lower_name] = tinycss2.serialize(item.value).strip()
    return declarations


def _selector_key(selector: str) -> str:
    """Key a selector by the last class it names, or by itself."""
    compound = selector.strip().split()[-1] if selector.strip() else ""
    classes = _CLASS_RE.findall(compound)
    if classes:
        return classes[-1]
    return compound


def parse_stylesheet(css: Optional[str]) -> Dict[str, Dict[str, str]]:
    """Parse *css* into ``{selector key: declarations}``.

    Rules sharing a key are merged, later declarations win.
    """
    stylesheet: Dict[str, Dict[str, str]] = {}
    if not css:
        return stylesheet
    for rule in tinycss2.parse_stylesheet(css, skip_comments=True, skip_whitespace=True):
        if rule.type != "qualified-rule":
            continue
        declarations = _declarations(rule.content)
        for selector in tinycss2.serialize(rule.prelude).split(","):
            key = _selector_key(selector)
            if not key:
                continue
            stylesheet.setdefault(key, {}).update(declarations)
    return stylesheet


def parse_inline_style(style: Optional[str]) -> Dict[str, str]:
    """Parse the value of a ``style="..."`` attribute."""
    if not style:
        return {}
    return _declarations(style)


def parse_color(value: str) -> Optional[Dict]:
    """Convert a CSS color into a Slides ``OptionalColor``, or ``None``."""
    try:
        rgb = ImageColor.getrgb(value.strip())
    except ValueError:
        logger.debug("Unable to parse color %r", value)
        return None
    red, green, blue = rgb[:3]
    return {
        "opaqueColor": {
            "rgbColor": {"red": red / 255, "green": green / 255, "blue": blue / 255}
        }
    }


def _font_weight_is_bold(value: str) -> Optional[bool]:
    value = value.lower()
    if value in ("bold", "bolder"):
        return True
    if value in ("normal", "lighter"):
        return False
    if value.isdigit():
        return int(value) >= 600
    return None


def update_style(css: Dict[str, str], style: Optional[TextStyle] = None) -> TextStyle:
    """Apply the CSS declarations in *css* to *style* (mutated and returned)."""
    if style is None:
        style = TextStyle()
    for name, value in css.items():
        if name == "color":
            color = parse_color(value)
            if color:
                style.foreground_color = color
        elif name == "background-color":
            color = parse_color(value)
            if color:
                style.background_color = color
        elif name == "font-weight":
            bold = _font_weight_is_bold(value)
            if bold is not None:
                style.bold = bold
        elif name == "font-style":
            if value.lower() in ("italic", "oblique"):
                style.italic = True
            elif value.lower() == "normal":
                style.italic = False
        elif name == "text-decoration":
            value = value.lower()
            if "underline" in value:
                style.underline = True
            if "line-through" in value:
                style.strikethrough = True
        elif name == "font-family":
            style.font_family = value.strip("'\"")
        elif name == "font-variant":
            if value.lower() == "small-caps":
                style.small_caps = True
        elif name == "font-size":
            match = _FONT_SIZE_RE.match(value)
            if match:
                style.font_size = float(match.group(1))
            else:
                logger.info("Font size %r not supported, use points", value)
        else:
            logger.debug("Unsupported CSS property %s", name)
    return style


class CSSParser:
    """
    Resolves styles for tokens against a parsed stylesheet.

    Holds the stylesheet built from the highlight theme plus any user CSS so
    the compiler and its notes sub-compilers share one parsed copy.
    """

    def __init__(self, css: Optional[str] = None):
        self.css_content = css or ""
        self.rules = parse_stylesheet(self.css_content)

    def extend(self, css: Optional[str]) -> None:
        """Merge more CSS over the existing rules."""
        if not css:
            return
        self.css_content = f"{self.css_content}\n{css}"
        for key, declarations in parse_stylesheet(css).items():
            self.rules.setdefault(key, {}).update(declarations)

    def rule_for(self, class_name: str) -> Dict[str, str]:
        return self.rules.get(class_name, {})

    def style_for(self, classes=(), inline_style: Optional[str] = None) -> TextStyle:
        """Style from stylesheet rules for *classes*, then *inline_style* on top."""
        style = TextStyle()
        for class_name in classes:
            rule = self.rules.get(class_name)
            if rule:
                update_style(rule, style)
        if inline_style:
            update_style(parse_inline_style(inline_style), style)
        return style
