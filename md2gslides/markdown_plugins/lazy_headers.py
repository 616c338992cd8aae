"""ATX headings without a space after the hashes, e.g. `#Title`."""
import re

from markdown_it import MarkdownIt
from markdown_it.rules_block import StateBlock

CLOSING_RE = re.compile(r"(^|[ \t])#+[ \t]*$")


def lazy_headers_plugin(md: MarkdownIt):
    """Accept `#Title` as a level-1 heading.  Lines with a space after the
    hashes are left to the regular heading rule.
    """

    def _lazy_heading(state: StateBlock, start_line: int, end_line: int, silent: bool) -> bool:
        if state.sCount[start_line] - state.blkIndent >= 4:
            return False

        pos = state.bMarks[start_line] + state.tShift[start_line]
        maximum = state.eMarks[start_line]
        level = 0
        while pos + level < maximum and state.src[pos + level] == "#" and level <= 6:
            level += 1
        if level == 0 or level > 6:
            return False
        pos += level
        if pos >= maximum or state.src[pos] in " \t":
            return False
        if silent:
            return True

        content = CLOSING_RE.sub("", state.src[pos:maximum]).strip()
        state.line = start_line + 1

        token = state.push("heading_open", f"h{level}", 1)
        token.markup = "#" * level
        token.map = [start_line, state.line]

        token = state.push("inline", "", 0)
        token.content = content
        token.map = [start_line, state.line]
        token.children = []

        token = state.push("heading_close", f"h{level}", -1)
        token.markup = "#" * level
        return True

    md.block.ruler.before(
        "heading", "lazy_heading", _lazy_heading,
        {"alt": ["paragraph", "reference", "blockquote"]},
    )
