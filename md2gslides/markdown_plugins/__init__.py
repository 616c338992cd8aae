"""markdown-it-py plugins for the slide markdown dialect."""
from .emoji_shortcodes import emoji_plugin
from .generated_image import generated_image_plugin
from .heading_attrs import heading_attrs_plugin
from .lazy_headers import lazy_headers_plugin
from .speaker_notes import speaker_notes_plugin
from .video import video_plugin

__all__ = [
    "emoji_plugin",
    "generated_image_plugin",
    "heading_attrs_plugin",
    "lazy_headers_plugin",
    "speaker_notes_plugin",
    "video_plugin",
]
