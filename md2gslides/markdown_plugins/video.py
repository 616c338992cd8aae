"""Inline `@[service](id)` video embeds."""
import re
from urllib.parse import parse_qs, urlparse

from markdown_it import MarkdownIt
from markdown_it.rules_inline import StateInline

VIDEO_RE = re.compile(r"@\[([a-zA-Z][\w-]*)\]\(\s*([^)\s]+)\s*\)")


def youtube_id(reference: str) -> str:
    """Return the video id for a bare id or any common YouTube URL."""
    if "/" not in reference:
        return reference
    parsed = urlparse(reference)
    host = parsed.netloc.lower()
    if host.endswith("youtu.be"):
        return parsed.path.lstrip("/")
    query = parse_qs(parsed.query)
    if "v" in query:
        return query["v"][0]
    # /embed/<id>, /v/<id>, /shorts/<id>
    return parsed.path.rstrip("/").rsplit("/", 1)[-1]


def video_plugin(md: MarkdownIt):
    """Emit a `video` token with ``meta = {"service", "video_id"}`` for
    `@[youtube](dQw4w9WgXcQ)`.  Provider validation is left to the compiler.
    """

    def _video(state: StateInline, silent: bool) -> bool:
        if state.src[state.pos] != "@":
            return False
        match = VIDEO_RE.match(state.src, state.pos)
        if not match:
            return False

        if not silent:
            service = match.group(1).lower()
            reference = match.group(2)
            token = state.push("video", "", 0)
            token.markup = "@"
            token.meta = {
                "service": service,
                "video_id": youtube_id(reference) if service == "youtube" else reference,
            }

        state.pos = match.end()
        return True

    md.inline.ruler.before("link", "video", _video)
