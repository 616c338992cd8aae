"""Trailing `{...}` attribute blocks on headings, e.g. `# 42 {.big}`."""
from typing import Optional, Tuple

from markdown_it import MarkdownIt
from markdown_it.rules_core import StateCore
from mdit_py_plugins.attrs.parse import ParseError, parse


def split_trailing_attrs(content: str) -> Tuple[str, Optional[dict]]:
    """Split ``"42 {.big}"`` into ``("42", {"class": "big"})``.

    Returns the content unchanged and ``None`` when it does not end in a
    well-formed attribute block.
    """
    stripped = content.rstrip()
    if not stripped.endswith("}"):
        return content, None

    start = stripped.rfind("{")
    while start != -1:
        tail = stripped[start:]
        try:
            end, attrs = parse(tail)
        except ParseError:
            end, attrs = -1, None
        # parse() reports the index of the closing brace
        if attrs is not None and end == len(tail) - 1:
            return stripped[:start].rstrip(), attrs
        start = stripped.rfind("{", 0, start)
    return content, None


def heading_attrs_plugin(md: MarkdownIt):
    """Move a heading's trailing attribute block onto its `heading_open`
    token.  Classes merge with any set by a preceding `{...}` line.
    """

    def _heading_attrs(state: StateCore) -> None:
        tokens = state.tokens
        for i, token in enumerate(tokens[:-1]):
            if token.type != "heading_open" or tokens[i + 1].type != "inline":
                continue
            inline = tokens[i + 1]
            content, attrs = split_trailing_attrs(inline.content)
            if attrs is None:
                continue
            inline.content = content
            for key, value in attrs.items():
                if key == "class" and token.attrGet("class"):
                    token.attrJoin("class", value)
                else:
                    token.attrSet(key, value)

    md.core.ruler.before("inline", "heading_attrs", _heading_attrs)
