"""
Token to slide compiler.

Walks the markdown-it token stream once, in order, feeding every token to a
rule looked up by ``token.type`` in a dispatch table.  Rules mutate a
:class:`StyleContext`, which owns the slides being built, the current text
block, the style stack and the list/table accumulators.

Two rule tables exist:

``INLINE_RULES``
    Text level formatting only.  Used for speaker notes, which are compiled
    by a child context spawned from an HTML comment block.
``FULL_RULES``
    ``INLINE_RULES`` plus slide structure: slide breaks, titles, tables,
    images, videos and notes.
"""
import logging
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Dict, List, Optional, Sequence

from bs4 import BeautifulSoup
from bs4.element import Comment, Tag
from markdown_it.token import Token

from .css_utils import CSSParser
from .errors import MarkdownStructureError
from .markdown_parser import MarkdownParser
from .models import (
    BodyRegion,
    ImageRef,
    ListMarker,
    SlideModel,
    StyleRun,
    TableModel,
    TextBlock,
    TextStyle,
    VideoRef,
)
from .paths import resolve_asset
from .syntax_highlight import LINE_BREAK, highlight_into

logger = logging.getLogger(__name__)

Rule = Callable[[Token, "StyleContext"], None]

MONOSPACE_FONT = "Courier New"
HTML_COMMENT_RE = re.compile(r"<!--([\s\S]*)-->")

# Tables are not theme aware placeholders, so match the theme text color.
TABLE_TEXT_COLOR = {"opaqueColor": {"themeColor": "TEXT1"}}


@dataclass
class _OpenStyle:
    style: TextStyle
    block: Optional[TextBlock]
    start: int


@dataclass
class _OpenList:
    tag: str
    start: int
    depth: int = 0


class StyleContext:
    """
    Mutable state of one compilation pass.

    A style's start offset is only trusted if the text block it was opened
    on is still the current block when it closes; otherwise the run starts
    at 0 of the block being closed.
    """

    def __init__(
        self,
        css: Optional[CSSParser] = None,
        *,
        rules: Optional[Dict[str, Rule]] = None,
        parser: Optional[MarkdownParser] = None,
        base_dir: Optional[Path] = None,
    ):
        self.css = css or CSSParser()
        self.rules = FULL_RULES if rules is None else rules
        self.parser = parser or MarkdownParser()
        self.base_dir = Path(base_dir) if base_dir else Path.cwd()

        self.slides: List[SlideModel] = []
        self.current_slide: Optional[SlideModel] = None
        self.text: Optional[TextBlock] = None
        self.styles: List[_OpenStyle] = [_OpenStyle(TextStyle(), None, 0)]
        self.list: Optional[_OpenList] = None
        self.column_marker: Optional[int] = None
        self.row: List[TextBlock] = []
        self.table: Optional[TableModel] = None
        self.images: List[ImageRef] = []
        self.videos: List[VideoRef] = []
        self._saved_text: List[Optional[TextBlock]] = []

        self.start_slide()

    def child(self) -> "StyleContext":
        """Fresh context for speaker notes, sharing only the stylesheet."""
        return StyleContext(
            self.css, rules=INLINE_RULES, parser=self.parser, base_dir=self.base_dir
        )

    # ------------------------------------------------------------------
    # Slides and bodies
    # ------------------------------------------------------------------

    def start_slide(self) -> None:
        if len(self.styles) > 1:
            logger.debug("Dropping %d unclosed styles at slide break", len(self.styles) - 1)
            self.styles = self.styles[:1]
        self.current_slide = SlideModel()

    def end_slide(self) -> None:
        if self.current_slide is not None:
            if self.images or self.videos or (self.text and self.text.raw_text.strip()):
                self.end_body()
            self.current_slide.index = len(self.slides)
            self.slides.append(self.current_slide)
        self.current_slide = None
        self.text = None
        self.images = []
        self.videos = []

    def end_body(self) -> None:
        """Seal the text, images and videos gathered so far as one column."""
        self.current_slide.bodies.append(
            BodyRegion(text=self.text, images=self.images, videos=self.videos)
        )
        self.text = None
        self.images = []
        self.videos = []

    def done(self) -> List[SlideModel]:
        self.end_slide()
        return self.slides

    # ------------------------------------------------------------------
    # Text
    # ------------------------------------------------------------------

    def start_text_block(self) -> TextBlock:
        self.text = TextBlock()
        return self.text

    def append_text(self, content: str) -> None:
        if self.text is None:
            self.start_text_block()
        self.text.raw_text += content

    def save_text(self) -> None:
        """Park the current block while a heading or table is compiled."""
        self._saved_text.append(self.text)
        self.text = None

    def restore_text(self) -> None:
        self.text = self._saved_text.pop()

    # ------------------------------------------------------------------
    # Styles
    # ------------------------------------------------------------------

    def current_style(self) -> TextStyle:
        return self.styles[-1].style

    def start_style(self, new_style: TextStyle) -> None:
        merged = new_style.merged_over(self.current_style())
        start = len(self.text.raw_text) if self.text is not None else 0
        self.styles.append(_OpenStyle(merged, self.text, start))

    def end_style(self) -> None:
        if len(self.styles) == 1:
            logger.debug("Ignoring unbalanced style close")
            return
        opened = self.styles.pop()
        if self.text is None:
            return
        start = opened.start if opened.block is self.text else 0
        end = len(self.text.raw_text)
        if start >= end:
            return
        if opened.style.is_empty():
            return
        run = StyleRun(start, end, opened.style)
        if run in self.text.style_runs:
            return
        self.text.style_runs.append(run)


# ---------------------------------------------------------------------------
# Token helpers
# ---------------------------------------------------------------------------

def _attr(token: Token, name: str) -> Optional[str]:
    value = token.attrGet(name)
    if value is None:
        return None
    return str(value)


def _classes(token: Token) -> List[str]:
    return (_attr(token, "class") or "").split()


def _has_class(token: Token, name: str) -> bool:
    return name in _classes(token)


def _int_attr(token: Token, name: str) -> int:
    value = _attr(token, name)
    if not value:
        return 0
    try:
        return int(value)
    except ValueError:
        logger.warning("Ignoring non-integer %s=%r", name, value)
        return 0


def _token_style(token: Token, context: StyleContext, **base) -> TextStyle:
    """*base* style updated with the token's class rules and inline style."""
    style = context.css.style_for(_classes(token), _attr(token, "style"))
    return style.merged_over(TextStyle(**base))


def _apply_layout(token: Token, context: StyleContext) -> None:
    layout = _attr(token, "layout")
    if layout:
        context.current_slide.custom_layout = layout


def process_token(token: Token, context: StyleContext) -> None:
    rule = context.rules.get(token.type)
    if rule is None:
        logger.debug("Ignoring token %s", token.type)
        return
    rule(token, context)


def process_tokens(tokens: Sequence[Token], context: StyleContext) -> None:
    for index, token in enumerate(tokens):
        if token.type == "hr" and index == 0:
            continue  # nothing to seal before a leading break
        process_token(token, context)


# ---------------------------------------------------------------------------
# Inline rules
# ---------------------------------------------------------------------------

def _ignore(token: Token, context: StyleContext) -> None:
    pass


def _end_style(token: Token, context: StyleContext) -> None:
    context.end_style()


def _styled(**base) -> Rule:
    def _open(token: Token, context: StyleContext) -> None:
        context.start_style(_token_style(token, context, **base))
    return _open


def _inline(token: Token, context: StyleContext) -> None:
    for child in token.children or []:
        process_token(child, context)


def _text(token: Token, context: StyleContext) -> None:
    context.start_style(_token_style(token, context))
    context.append_text(token.content)
    context.end_style()


def _code_inline(token: Token, context: StyleContext) -> None:
    context.start_style(_token_style(token, context, font_family=MONOSPACE_FONT))
    context.append_text(token.content)
    context.end_style()


def _link_open(token: Token, context: StyleContext) -> None:
    context.start_style(_token_style(token, context, link=_attr(token, "href") or "#"))


def _notes_heading_close(token: Token, context: StyleContext) -> None:
    context.end_style()
    context.append_text("\n")


def _hardbreak(token: Token, context: StyleContext) -> None:
    context.append_text(LINE_BREAK)


def _softbreak(token: Token, context: StyleContext) -> None:
    context.append_text(" ")


def _paragraph_open(token: Token, context: StyleContext) -> None:
    if _has_class(token, "column"):
        context.end_body()
        context.start_text_block()
        context.column_marker = 0
    elif context.text is None:
        context.start_text_block()
    _apply_layout(token, context)


def _paragraph_close(token: Token, context: StyleContext) -> None:
    marker, context.column_marker = context.column_marker, None
    if marker is not None and context.text is not None and len(context.text) == marker:
        return  # bare column marker
    context.append_text("\n")


def _fence(token: Token, context: StyleContext) -> None:
    context.start_style(_token_style(token, context, font_family=MONOSPACE_FONT))
    info = token.info.split() if token.info else []
    language = info[0] if info else None
    if not (language and highlight_into(context, token.content, language)):
        context.append_text(token.content.replace("\n", LINE_BREAK))
    context.append_text("\n")
    context.end_style()


_INLINE_TAG_STYLES = {
    "b": {"bold": True},
    "strong": {"bold": True},
    "i": {"italic": True},
    "em": {"italic": True},
    "u": {"underline": True},
    "s": {"strikethrough": True},
    "del": {"strikethrough": True},
    "strike": {"strikethrough": True},
    "code": {"font_family": MONOSPACE_FONT},
    "sub": {"baseline_offset": "SUBSCRIPT"},
    "sup": {"baseline_offset": "SUPERSCRIPT"},
    "mark": {"background_color": {"opaqueColor": {"rgbColor": {"red": 1.0, "green": 1.0, "blue": 0.0}}}},
    "span": {},
}


def _html_inline(token: Token, context: StyleContext) -> None:
    fragment = BeautifulSoup(token.content, "html.parser")
    if not fragment.contents:
        context.end_style()  # closing tag
        return

    node = fragment.contents[0]
    if isinstance(node, Comment):
        # Depending on spacing, comments can show up inline
        html_block = context.rules.get("html_block")
        if html_block is not None:
            html_block(token, context)
        return
    if not isinstance(node, Tag):
        raise MarkdownStructureError(f"Unsupported inline HTML: {token.content}")
    if node.name == "br":
        context.append_text(LINE_BREAK)
        return
    if node.name not in _INLINE_TAG_STYLES:
        raise MarkdownStructureError(f"Unsupported inline HTML element: {node.name}")

    style = context.css.style_for(node.get("class") or [], node.get("style"))
    context.start_style(style.merged_over(TextStyle(**_INLINE_TAG_STYLES[node.name])))


def _list_open(token: Token, context: StyleContext) -> None:
    if context.list is None:
        if _has_class(token, "column"):
            context.end_body()
        _apply_layout(token, context)
        if context.text is None:
            context.start_text_block()
        context.list = _OpenList(token.tag, len(context.text))
    else:
        if context.list.tag != token.tag:
            raise MarkdownStructureError("Nested lists must match parent style")
        context.list.depth += 1
    context.start_style(_token_style(token, context))


def _list_close(token: Token, context: StyleContext) -> None:
    if context.list.depth == 0:
        context.text.list_markers.append(
            ListMarker(context.list.start, len(context.text), ordered=token.tag == "ol")
        )
        context.list = None
    else:
        context.list.depth -= 1
    context.end_style()


def _list_item_open(token: Token, context: StyleContext) -> None:
    context.start_style(_token_style(token, context))
    context.append_text("\t" * context.list.depth)


INLINE_RULES: Dict[str, Rule] = {
    "inline": _inline,
    "text": _text,
    "emoji": _text,
    "code_inline": _code_inline,
    "hardbreak": _hardbreak,
    "softbreak": _softbreak,
    "html_inline": _html_inline,
    "paragraph_open": _paragraph_open,
    "paragraph_close": _paragraph_close,
    "heading_open": _styled(bold=True),
    "heading_close": _notes_heading_close,
    "em_open": _styled(italic=True),
    "em_close": _end_style,
    "strong_open": _styled(bold=True),
    "strong_close": _end_style,
    "s_open": _styled(strikethrough=True),
    "s_close": _end_style,
    "span_open": _styled(),
    "span_close": _end_style,
    "link_open": _link_open,
    "link_close": _end_style,
    "blockquote_open": _styled(italic=True),
    "blockquote_close": _end_style,
    "fence": _fence,
    "code_block": _fence,
    "bullet_list_open": _list_open,
    "ordered_list_open": _list_open,
    "bullet_list_close": _list_close,
    "ordered_list_close": _list_close,
    "list_item_open": _list_item_open,
    "list_item_close": _end_style,
}


# ---------------------------------------------------------------------------
# Slide level rules
# ---------------------------------------------------------------------------

def _hr(token: Token, context: StyleContext) -> None:
    context.end_slide()
    context.start_slide()


def _heading_open(token: Token, context: StyleContext) -> None:
    _apply_layout(token, context)
    context.save_text()
    context.start_text_block().big = _has_class(token, "big")
    context.start_style(_token_style(token, context))


def _heading_close(token: Token, context: StyleContext) -> None:
    if token.tag == "h1":
        context.current_slide.title = context.text
    elif token.tag == "h2":
        context.current_slide.subtitle = context.text
    else:
        logger.debug("Ignoring header element %s", token.tag)
    context.end_style()
    context.restore_text()


def _html_block(token: Token, context: StyleContext) -> None:
    match = HTML_COMMENT_RE.search(token.content)
    if match is None:
        raise MarkdownStructureError(f"Unsupported HTML block: {token.content.strip()}")

    # Notes may hold markdown of their own, compile them in a child context
    # that appends to whatever notes the slide already has.
    notes_context = context.child()
    if context.current_slide.notes is not None:
        notes_context.text = context.current_slide.notes
    else:
        notes_context.start_text_block()
    process_tokens(context.parser.parse(match.group(1)), notes_context)
    if notes_context.text is not None and notes_context.text.raw_text.strip():
        context.current_slide.notes = notes_context.text


def _add_image(image: ImageRef, context: StyleContext) -> None:
    if image.background:
        if context.current_slide.background_image is not None:
            logger.debug("Replacing background image on slide %d", len(context.slides) + 1)
        context.current_slide.background_image = image
    else:
        context.images.append(image)


def _image(token: Token, context: StyleContext) -> None:
    src = _attr(token, "src") or ""
    image = ImageRef(
        url=resolve_asset(src, base_dir=context.base_dir),
        pad=_int_attr(token, "pad"),
        offset_x=_int_attr(token, "offset-x"),
        offset_y=_int_attr(token, "offset-y"),
        explicit_width=_int_attr(token, "width") or None,
        explicit_height=_int_attr(token, "height") or None,
        style=_attr(token, "style"),
        background=_has_class(token, "background"),
    )
    _add_image(image, context)


def _generated_image(token: Token, context: StyleContext) -> None:
    image = ImageRef(
        source=token.content,
        type=token.info.strip(),
        pad=_int_attr(token, "pad"),
        offset_x=_int_attr(token, "offset-x"),
        offset_y=_int_attr(token, "offset-y"),
        explicit_width=_int_attr(token, "width") or None,
        explicit_height=_int_attr(token, "height") or None,
        style=_attr(token, "style"),
        background=_has_class(token, "background"),
    )
    _add_image(image, context)


def _video(token: Token, context: StyleContext) -> None:
    meta = token.meta or {}
    service = meta.get("service")
    if service != "youtube":
        raise MarkdownStructureError(f"Only YouTube videos allowed, got {service!r}")
    # Assume 16:9
    context.videos.append(VideoRef(id=meta["video_id"], width=1600, height=900, auto_play=True))


def _table_open(token: Token, context: StyleContext) -> None:
    context.save_text()
    context.table = TableModel()
    context.start_style(_token_style(token, context))


def _table_close(token: Token, context: StyleContext) -> None:
    context.current_slide.tables.append(context.table)
    context.table = None
    context.end_style()
    context.restore_text()


def _tr_open(token: Token, context: StyleContext) -> None:
    context.start_style(_token_style(token, context))
    context.row = []


def _tr_close(token: Token, context: StyleContext) -> None:
    table = context.table
    table.cells.append(context.row)
    table.columns = max(table.columns, len(context.row))
    table.rows = len(table.cells)
    context.end_style()


def _cell_open(**base) -> Rule:
    def _open(token: Token, context: StyleContext) -> None:
        context.start_text_block()
        context.start_style(
            _token_style(token, context, foreground_color=TABLE_TEXT_COLOR, **base)
        )
    return _open


def _cell_close(token: Token, context: StyleContext) -> None:
    context.end_style()
    context.row.append(context.text)
    context.text = None


FULL_RULES: Dict[str, Rule] = dict(INLINE_RULES)
FULL_RULES.update({
    "hr": _hr,
    "heading_open": _heading_open,
    "heading_close": _heading_close,
    "html_block": _html_block,
    "image": _image,
    "generated_image": _generated_image,
    "video": _video,
    "table_open": _table_open,
    "table_close": _table_close,
    "thead_open": _ignore,
    "thead_close": _ignore,
    "tbody_open": _ignore,
    "tbody_close": _ignore,
    "tr_open": _tr_open,
    "tr_close": _tr_close,
    "th_open": _cell_open(bold=True),
    "td_open": _cell_open(),
    "th_close": _cell_close,
    "td_close": _cell_close,
})


def extract_slides(
    markdown_text: str,
    css: Optional[str] = None,
    *,
    base_dir: Optional[Path] = None,
    parser: Optional[MarkdownParser] = None,
) -> List[SlideModel]:
    """
    Compile *markdown_text* into slides.

    Args:
        markdown_text: Slide markdown, slides separated by ``---``
        css: Stylesheet text (highlight theme and/or user CSS)
        base_dir: Directory relative image paths are resolved against
        parser: Tokenizer to reuse

    Returns:
        Ordered list of :class:`SlideModel`

    Raises:
        MarkdownStructureError: If the markdown can't be represented
    """
    parser = parser or MarkdownParser()
    context = StyleContext(CSSParser(css), parser=parser, base_dir=base_dir)
    process_tokens(parser.parse(markdown_text), context)
    slides = context.done()
    logger.debug("Compiled %d slides", len(slides))
    return slides
