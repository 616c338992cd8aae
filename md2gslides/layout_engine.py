#!/usr/bin/env python3
"""Placement geometry for images and videos on a slide.

All placement happens in EMU.  Images are measured in pixels; the scale
factor computed when fitting a packed arrangement into its container box
converts pixels to EMU at the same time.
"""
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Tuple

from .errors import LayoutError
from .models import ImageRef, VideoRef
from .presentation_helpers import page_size

logger = logging.getLogger(__name__)


@dataclass
class BoundingBox:
    x: float
    y: float
    width: float
    height: float


@dataclass
class PackedItem:
    x: float
    y: float
    width: float
    height: float
    meta: Any = None


@dataclass
class PackedLayout:
    width: float = 0
    height: float = 0
    items: List[PackedItem] = field(default_factory=list)


def bounding_box(element: Dict) -> BoundingBox:
    """Box covered by a page element, taking its transform into account."""
    size = element["size"]
    transform = element.get("transform") or {}
    width = size["width"]["magnitude"]
    height = size["height"]["magnitude"]
    scale_x = transform.get("scaleX") or 1
    scale_y = transform.get("scaleY") or 1
    shear_x = transform.get("shearX") or 0
    shear_y = transform.get("shearY") or 0
    return BoundingBox(
        x=transform.get("translateX") or 0,
        y=transform.get("translateY") or 0,
        width=scale_x * width + shear_x * height,
        height=scale_y * height + shear_y * width,
    )


def page_box(presentation: Dict) -> BoundingBox:
    width, height = page_size(presentation)
    return BoundingBox(x=0, y=0, width=width, height=height)


def pack_left_right(items: List[Tuple[float, float, Any]]) -> PackedLayout:
    """Pack ``(width, height, meta)`` items into a single left to right row.

    Items are ordered by height (stable for equal heights), so the result
    doesn't depend on anything but the sizes and the input order of ties.
    """
    layout = PackedLayout()
    for width, height, meta in sorted(items, key=lambda item: item[1]):
        layout.items.append(PackedItem(x=layout.width, y=0, width=width, height=height, meta=meta))
        layout.width += width
        layout.height = max(layout.height, height)
    return layout


@dataclass
class Placement:
    """Final size and position of an element, in EMU."""
    x: float
    y: float
    width: float
    height: float

    def element_properties(self, page_id: str) -> Dict:
        return {
            "pageObjectId": page_id,
            "size": {
                "height": {"magnitude": self.height, "unit": "EMU"},
                "width": {"magnitude": self.width, "unit": "EMU"},
            },
            "transform": {
                "scaleX": 1,
                "scaleY": 1,
                "translateX": self.x,
                "translateY": self.y,
                "shearX": 0,
                "shearY": 0,
                "unit": "EMU",
            },
        }


def fit_scale(box: BoundingBox, width: float, height: float) -> float:
    """Largest uniform scale at which ``width x height`` fits in *box*."""
    if width <= 0 or height <= 0:
        raise LayoutError(f"Can't fit content of size {width}x{height}")
    return min(box.width / width, box.height / height)


def place_images(images: List[ImageRef], box: BoundingBox) -> List[Tuple[ImageRef, Placement]]:
    """
    Pack *images* side by side, scale the arrangement to fit *box* and
    centre it.

    Args:
        images: Images with known pixel sizes
        box: Container in EMU

    Returns:
        ``(image, placement)`` pairs in packing order
    """
    items = []
    for image in images:
        width, height = image.layout_size()
        items.append((width + image.pad * 2, height + image.pad * 2, image))
    packed = pack_left_right(items)

    scale = fit_scale(box, packed.width, packed.height)
    base_x = box.x + (box.width - packed.width * scale) / 2
    base_y = box.y + (box.height - packed.height * scale) / 2
    logger.debug("Packed %d images at scale %.2f", len(images), scale)

    placements = []
    for item in packed.items:
        image = item.meta
        width, height = image.layout_size()
        placements.append((image, Placement(
            x=base_x + (item.x + image.pad + image.offset_x) * scale,
            y=base_y + (item.y + image.pad + image.offset_y) * scale,
            width=width * scale,
            height=height * scale,
        )))
    return placements


def place_video(video: VideoRef, box: BoundingBox) -> Placement:
    """Centre *video* in *box*, keeping its aspect ratio."""
    scale = fit_scale(box, video.width, video.height)
    width = video.width * scale
    height = video.height * scale
    return Placement(
        x=box.x + (box.width - width) / 2,
        y=box.y + (box.height - height) / 2,
        width=width,
        height=height,
    )
