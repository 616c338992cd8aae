"""Google Slides request builder for md2gslides.

Turns compiled :class:`~md2gslides.models.SlideModel` records into
``presentations.batchUpdate`` requests:

- Text with style runs and bullets, for titles, bodies, table cells and
  speaker notes
- Background images
- Inline images packed into the body placeholder
- YouTube videos
- Tables

Design notes
------------
1.  Two passes.  ``create_slide_requests`` only instantiates slides from
    layouts.  Placeholder ids exist once those requests are applied, so
    ``content_requests`` must be built from a re-fetched presentation.
2.  Style requests carry a field mask of exactly the fields set on the
    run, so untouched properties keep the layout's styling.
"""
from __future__ import annotations

import logging
from typing import Dict, List, Optional, Sequence

from .errors import LayoutError
from .layout_engine import BoundingBox, bounding_box, page_box, place_images, place_video
from .layout_matcher import match_layout
from .models import BodyRegion, SlideModel, TextBlock, new_object_id
from .presentation_helpers import (
    find_layout_id_by_name,
    find_placeholders,
    find_speaker_notes_object_id,
)

logger = logging.getLogger(__name__)

ORDERED_BULLET_PRESET = "NUMBERED_DIGIT_ALPHA_ROMAN"
UNORDERED_BULLET_PRESET = "BULLET_DISC_CIRCLE_SQUARE"

# ---------------------------------------------------------------------------
# Helper utilities
# ---------------------------------------------------------------------------

def compute_shallow_field_mask(obj: Dict) -> str:
    """Comma separated top level keys of *obj* whose value is set."""
    return ",".join(key for key, value in obj.items() if value is not None)


def _utf16_index(text: str, index: int) -> int:
    return len(text[:index].encode("utf-16-le")) // 2


def _fixed_range(text: str, start: int, end: int) -> Dict:
    """Range over *text* in the UTF-16 code units the Slides API counts."""
    return {
        "type": "FIXED_RANGE",
        "startIndex": _utf16_index(text, start),
        "endIndex": _utf16_index(text, end),
    }


# ---------------------------------------------------------------------------
# Main renderer class
# ---------------------------------------------------------------------------

class GSlideRenderer:
    """Build Slides API requests for compiled slides against one presentation."""

    def __init__(self, presentation: Dict, *, debug: bool = False) -> None:
        self.presentation = presentation
        self.debug = debug

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def create_slide_requests(self, slides: Sequence[SlideModel]) -> List[Dict]:
        """``createSlide`` requests, one per slide, in order.

        Assigns each slide a fresh ``object_id``.

        Raises
        ------
        LayoutError
            If a slide's layout can't be matched or isn't in the presentation.
        """
        requests: List[Dict] = []
        for slide in slides:
            self._append_create_slide_request(slide, requests)
        return requests

    def content_requests(self, slides: Sequence[SlideModel]) -> List[Dict]:
        """Requests filling previously created slides with their content.

        Raises
        ------
        LayoutError
            On more than one table or video on a slide.
        """
        requests: List[Dict] = []
        for slide in slides:
            self._append_content_requests(slide, requests)
        return requests

    # ------------------------------------------------------------------
    # Slide creation
    # ------------------------------------------------------------------

    def _append_create_slide_request(self, slide: SlideModel, requests: List[Dict]) -> None:
        layout_name = match_layout(self.presentation, slide)
        layout_id = find_layout_id_by_name(self.presentation, layout_name)
        if not layout_id:
            raise LayoutError(f"Unable to find layout {layout_name}", slide.index)

        slide.object_id = new_object_id()
        logger.debug("Creating slide %s with layout %s", slide.object_id, layout_name)
        requests.append({
            "createSlide": {
                "slideLayoutReference": {"layoutId": layout_id},
                "objectId": slide.object_id,
            }
        })

    # ------------------------------------------------------------------
    # Slide content
    # ------------------------------------------------------------------

    def _append_content_requests(self, slide: SlideModel, requests: List[Dict]) -> None:
        title = [slide.title] if slide.title else []
        self._append_fill_placeholder_text_requests(slide, title, "TITLE", requests)
        self._append_fill_placeholder_text_requests(slide, title, "CENTERED_TITLE", requests)
        subtitle = [slide.subtitle] if slide.subtitle else []
        self._append_fill_placeholder_text_requests(slide, subtitle, "SUBTITLE", requests)
        bodies = [body.text for body in slide.bodies]
        self._append_fill_placeholder_text_requests(slide, bodies, "BODY", requests)

        if slide.background_image:
            self._append_background_image_request(slide, requests)

        if slide.tables:
            self._append_create_table_requests(slide, requests)

        for index, body in enumerate(slide.bodies):
            if body.images:
                self._append_create_image_requests(slide, body, self._body_box(slide, index), requests)

        videos = [(index, video) for index, body in enumerate(slide.bodies) for video in body.videos]
        if len(videos) > 1:
            raise LayoutError("Multiple videos per slide are not supported.", slide.index)
        if videos:
            index, video = videos[0]
            self._append_create_video_requests(slide, video, self._body_box(slide, index), requests)

        if slide.notes:
            notes_id = find_speaker_notes_object_id(self.presentation, slide.object_id)
            if notes_id:
                self._append_insert_text_requests(slide.notes, {"objectId": notes_id}, requests)
            else:
                logger.warning("Slide #%d has no speaker notes shape, dropping notes", slide.index + 1)

    def _append_fill_placeholder_text_requests(
        self,
        slide: SlideModel,
        values: List[Optional[TextBlock]],
        placeholder_type: str,
        requests: List[Dict],
    ) -> None:
        if not values:
            return

        placeholders = find_placeholders(self.presentation, slide.object_id, placeholder_type)
        if not placeholders:
            logger.debug("Skipping undefined placeholder %s", placeholder_type)
            return

        for placeholder, value in zip(placeholders, values):
            if value is None:
                continue
            if self.debug:
                logger.debug("Slide #%d: setting %s to %r", slide.index + 1, placeholder_type, value.raw_text)
            self._append_insert_text_requests(value, {"objectId": placeholder["objectId"]}, requests)

    def _append_insert_text_requests(self, text: TextBlock, location: Dict, requests: List[Dict]) -> None:
        if not text.raw_text:
            return

        requests.append({"insertText": {"text": text.raw_text, **location}})

        # Style runs were resolved by the compiler, only the mask is left.
        for run in text.style_runs:
            style = run.style.to_api()
            fields = compute_shallow_field_mask(style)
            if not fields:
                continue
            requests.append({
                "updateTextStyle": {
                    "textRange": _fixed_range(text.raw_text, run.start, run.end),
                    "style": style,
                    "fields": fields,
                    **location,
                }
            })

        # Leading tabs of nested items are consumed by createParagraphBullets,
        # markers go last-first so earlier ranges stay valid.
        for marker in reversed(text.list_markers):
            requests.append({
                "createParagraphBullets": {
                    "textRange": _fixed_range(text.raw_text, marker.start, marker.end),
                    "bulletPreset": ORDERED_BULLET_PRESET if marker.ordered else UNORDERED_BULLET_PRESET,
                    **location,
                }
            })

    def _append_background_image_request(self, slide: SlideModel, requests: List[Dict]) -> None:
        image = slide.background_image
        logger.debug("Slide #%d: setting background image to %s", slide.index + 1, image.url)
        requests.append({
            "updatePageProperties": {
                "objectId": slide.object_id,
                "fields": "pageBackgroundFill.stretchedPictureFill.contentUrl",
                "pageProperties": {
                    "pageBackgroundFill": {
                        "stretchedPictureFill": {"contentUrl": image.url},
                    },
                },
            }
        })

    def _append_create_image_requests(
        self, slide: SlideModel, body: BodyRegion, box: BoundingBox, requests: List[Dict]
    ) -> None:
        for image, placement in place_images(body.images, box):
            logger.debug("Slide #%d: adding inline image %s", slide.index + 1, image.url)
            requests.append({
                "createImage": {
                    "objectId": new_object_id(),
                    "url": image.url,
                    "elementProperties": placement.element_properties(slide.object_id),
                }
            })

    def _append_create_video_requests(self, slide: SlideModel, video, box: BoundingBox, requests: List[Dict]) -> None:
        logger.debug("Slide #%d: adding video %s", slide.index + 1, video.id)
        placement = place_video(video, box)
        object_id = new_object_id()
        requests.append({
            "createVideo": {
                "source": "YOUTUBE",
                "objectId": object_id,
                "id": video.id,
                "elementProperties": placement.element_properties(slide.object_id),
            }
        })
        requests.append({
            "updateVideoProperties": {
                "objectId": object_id,
                "fields": "autoPlay",
                "videoProperties": {"autoPlay": video.auto_play},
            }
        })

    def _append_create_table_requests(self, slide: SlideModel, requests: List[Dict]) -> None:
        if len(slide.tables) > 1:
            raise LayoutError("Multiple tables per slide are not supported.", slide.index)
        table = slide.tables[0]
        table_id = new_object_id()

        requests.append({
            "createTable": {
                "objectId": table_id,
                # Default size and position
                "elementProperties": {"pageObjectId": slide.object_id},
                "rows": table.rows,
                "columns": table.columns,
            }
        })

        for row_index, row in enumerate(table.cells):
            for column_index, cell in enumerate(row):
                self._append_insert_text_requests(
                    cell,
                    {
                        "objectId": table_id,
                        "cellLocation": {"rowIndex": row_index, "columnIndex": column_index},
                    },
                    requests,
                )

    # ------------------------------------------------------------------
    # Geometry
    # ------------------------------------------------------------------

    def _body_box(self, slide: SlideModel, index: int) -> BoundingBox:
        """Box of the *index*-th body placeholder, or the whole page."""
        bodies = find_placeholders(self.presentation, slide.object_id, "BODY")
        if index < len(bodies) and "size" in bodies[index]:
            return bounding_box(bodies[index])
        return page_box(self.presentation)
