"""
Data models for the markdown to Google Slides compiler.

Everything here is produced by :mod:`md2gslides.compiler` and consumed by
:mod:`md2gslides.layout_matcher` and :mod:`md2gslides.gslide_renderer`.
Offsets in :class:`StyleRun` and :class:`ListMarker` are character offsets
into the final ``raw_text`` of the owning :class:`TextBlock`.
"""
import uuid
from dataclasses import dataclass, field, fields, replace
from typing import Dict, List, Optional


def new_object_id() -> str:
    """Return a fresh object id usable for Slides API objects."""
    return str(uuid.uuid4())


@dataclass
class TextStyle:
    """
    Style payload of a text run.

    Colors are kept in Slides API form (``{"opaqueColor": ...}``) so they can
    be forwarded to ``updateTextStyle`` untouched.
    """
    bold: Optional[bool] = None
    italic: Optional[bool] = None
    underline: Optional[bool] = None
    strikethrough: Optional[bool] = None
    small_caps: Optional[bool] = None
    font_family: Optional[str] = None
    font_size: Optional[float] = None  # points
    foreground_color: Optional[Dict] = None
    background_color: Optional[Dict] = None
    link: Optional[str] = None
    baseline_offset: Optional[str] = None

    def is_empty(self) -> bool:
        return all(getattr(self, f.name) is None for f in fields(self))

    def merged_over(self, parent: "TextStyle") -> "TextStyle":
        """Return *parent* with every field set on this style overriding it."""
        overrides = {
            f.name: getattr(self, f.name)
            for f in fields(self)
            if getattr(self, f.name) is not None
        }
        return replace(parent, **overrides)

    def to_api(self) -> Dict:
        """Slides API ``TextStyle`` containing only the fields that are set."""
        api: Dict = {}
        if self.bold is not None:
            api["bold"] = self.bold
        if self.italic is not None:
            api["italic"] = self.italic
        if self.underline is not None:
            api["underline"] = self.underline
        if self.strikethrough is not None:
            api["strikethrough"] = self.strikethrough
        if self.small_caps is not None:
            api["smallCaps"] = self.small_caps
        if self.font_family is not None:
            api["fontFamily"] = self.font_family
        if self.font_size is not None:
            api["fontSize"] = {"magnitude": self.font_size, "unit": "PT"}
        if self.foreground_color is not None:
            api["foregroundColor"] = self.foreground_color
        if self.background_color is not None:
            api["backgroundColor"] = self.background_color
        if self.link is not None:
            api["link"] = {"url": self.link}
        if self.baseline_offset is not None:
            api["baselineOffset"] = self.baseline_offset
        return api


@dataclass
class StyleRun:
    """Half-open ``[start, end)`` range carrying a merged style."""
    start: int
    end: int
    style: TextStyle


@dataclass
class ListMarker:
    start: int
    end: int
    ordered: bool = False

    @property
    def type(self) -> str:
        return "ordered" if self.ordered else "unordered"


@dataclass
class TextBlock:
    """Raw text plus the style runs and list ranges laid over it."""
    raw_text: str = ""
    big: bool = False
    style_runs: List[StyleRun] = field(default_factory=list)
    list_markers: List[ListMarker] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.raw_text)

    def has_text(self) -> bool:
        return len(self.raw_text) > 0


@dataclass
class ImageRef:
    """
    An image to place on a slide.

    ``url`` is ``None`` for generated images until they are rasterised;
    ``source`` then holds the generator input and ``type`` its kind.
    """
    url: Optional[str] = None
    source: Optional[str] = None
    type: Optional[str] = None
    width: Optional[int] = None  # probed, pixels
    height: Optional[int] = None
    explicit_width: Optional[int] = None  # from {width=...}
    explicit_height: Optional[int] = None
    pad: int = 0
    offset_x: int = 0
    offset_y: int = 0
    style: Optional[str] = None
    background: bool = False

    @property
    def locator(self) -> str:
        """Human readable reference used in log and error messages."""
        if self.url:
            return self.url
        return f"<generated {self.type}>"

    def layout_size(self) -> tuple:
        """Size used for packing: explicit dimensions win over probed ones."""
        width, height = self.width or 0, self.height or 0
        if self.explicit_width and self.explicit_height:
            return self.explicit_width, self.explicit_height
        if self.explicit_width:
            if width:
                height = round(height * self.explicit_width / width)
            return self.explicit_width, height
        if self.explicit_height:
            if height:
                width = round(width * self.explicit_height / height)
            return width, self.explicit_height
        return width, height


@dataclass
class VideoRef:
    id: str
    width: int = 1600
    height: int = 900
    auto_play: bool = True


@dataclass
class BodyRegion:
    """A single column of slide content."""
    text: Optional[TextBlock] = None
    images: List[ImageRef] = field(default_factory=list)
    videos: List[VideoRef] = field(default_factory=list)


@dataclass
class TableModel:
    rows: int = 0
    columns: int = 0
    cells: List[List[TextBlock]] = field(default_factory=list)


@dataclass
class SlideModel:
    """One compiled slide."""
    object_id: str = field(default_factory=new_object_id)
    index: int = 0
    custom_layout: Optional[str] = None
    title: Optional[TextBlock] = None
    subtitle: Optional[TextBlock] = None
    background_image: Optional[ImageRef] = None
    bodies: List[BodyRegion] = field(default_factory=list)
    tables: List[TableModel] = field(default_factory=list)
    notes: Optional[TextBlock] = None

    def images(self) -> List[ImageRef]:
        """Every image on the slide, background first."""
        found = [self.background_image] if self.background_image else []
        for body in self.bodies:
            found.extend(body.images)
        return found
