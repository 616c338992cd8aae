"""
Markdown tokenizer for the slide dialect, built on markdown-it-py.
"""
import logging
from typing import List

from markdown_it import MarkdownIt
from markdown_it.token import Token
from mdit_py_plugins.attrs import attrs_block_plugin, attrs_plugin

from .markdown_plugins import (
    emoji_plugin,
    generated_image_plugin,
    heading_attrs_plugin,
    lazy_headers_plugin,
    speaker_notes_plugin,
    video_plugin,
)

logger = logging.getLogger(__name__)


class MarkdownParser:
    """
    Turns slide markdown into a flat markdown-it-py token stream.
    """

    def __init__(self):
        self.markdown_processor = MarkdownIt('commonmark', {
            'html': True,          # Inline HTML and <!-- notes -->
            'typographer': False,
        })

        # Enable additional features
        self.markdown_processor.enable(['table', 'strikethrough'])

        # ---------------------------------------------------------
        # PLUGIN ECOSYSTEM
        # ---------------------------------------------------------
        # 1) attrs_plugin         : `{.class key=val}` after images, code, links
        #                           and `[text]{...}` spans.
        # 2) attrs_block_plugin   : `{.column}`, `{.big}`, `{layout="..."}` lines
        #                           attached to the following block.
        # 3) heading_attrs_plugin : trailing `# 42 {.big}` on headings.
        # 4) lazy_headers_plugin  : `#Title` without the space.
        # 5) emoji_plugin         : `:smile:` shortcodes.
        # 6) speaker_notes_plugin : `???` speaker notes.
        # 7) video_plugin         : `@[youtube](id)` embeds.
        # 8) generated_image_plugin: `$$$ math` and `$$$ svg` fences rendered to images.
        self.markdown_processor = (
            self.markdown_processor
                .use(attrs_plugin, spans=True)
                .use(attrs_block_plugin)
                .use(heading_attrs_plugin)
                .use(lazy_headers_plugin)
                .use(emoji_plugin)
                .use(speaker_notes_plugin)
                .use(video_plugin)
                .use(generated_image_plugin)
        )

    def parse(self, markdown_text: str) -> List[Token]:
        """Tokenize *markdown_text*."""
        tokens = self.markdown_processor.parse(markdown_text)
        logger.debug("Tokenized markdown into %d tokens", len(tokens))
        return tokens


def parse_markdown(markdown_text: str) -> List[Token]:
    """Convenience wrapper returning the tokens for *markdown_text*."""
    return MarkdownParser().parse(markdown_text)
