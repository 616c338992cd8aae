"""Pygments based highlighting of fenced code into style runs."""
import logging
from typing import Optional

from pygments import lex
from pygments.lexers import get_lexer_by_name
from pygments.token import STANDARD_TYPES
from pygments.util import ClassNotFound

logger = logging.getLogger(__name__)

LINE_BREAK = "\u000b"


def css_class_for(token_type) -> Optional[str]:
    """Short pygments CSS class (``k``, ``s2``, ...) for *token_type*.

    Falls back to the closest parent type that has a class.
    """
    while token_type is not None:
        css_class = STANDARD_TYPES.get(token_type)
        if css_class:
            return css_class
        token_type = token_type.parent
    return None


def highlight_into(context, content: str, language: str) -> bool:
    """Append highlighted *content* to the context's current text block.

    Returns ``False`` when *language* has no lexer so the caller can fall
    back to plain text.
    """
    try:
        lexer = get_lexer_by_name(language, stripnl=False, ensurenl=False)
    except ClassNotFound:
        logger.info("No highlighter for language %r, rendering as plain text", language)
        return False

    for token_type, value in lex(content, lexer):
        if not value:
            continue
        css_class = css_class_for(token_type)
        context.start_style(context.css.style_for([css_class] if css_class else []))
        context.append_text(value.replace("\n", LINE_BREAK))
        context.end_style()
    return True
