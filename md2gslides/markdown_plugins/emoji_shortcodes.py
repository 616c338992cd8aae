"""`:shortcode:` emoji, resolved with the ``emoji`` package."""
import re

import emoji as emoji_data
from markdown_it import MarkdownIt
from markdown_it.rules_inline import StateInline

SHORTCODE_RE = re.compile(r":([a-zA-Z0-9_+\-]+):")


def emoji_plugin(md: MarkdownIt):
    """Emit an `emoji` token whose content is the emoji itself for known
    shortcodes such as `:smile:`.  Unknown shortcodes stay plain text.
    """

    def _emoji(state: StateInline, silent: bool) -> bool:
        if state.src[state.pos] != ":":
            return False
        match = SHORTCODE_RE.match(state.src, state.pos)
        if not match:
            return False
        shortcode = match.group(0)
        char = emoji_data.emojize(shortcode, language="alias")
        if char == shortcode:
            return False

        if not silent:
            token = state.push("emoji", "", 0)
            token.markup = match.group(1)
            token.content = char

        state.pos = match.end()
        return True

    md.inline.ruler.push("emoji", _emoji)
