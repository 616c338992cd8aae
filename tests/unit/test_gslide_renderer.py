"""Test building Slides API requests from compiled slides."""

import pytest

from md2gslides.compiler import extract_slides
from md2gslides.errors import LayoutError
from md2gslides.gslide_renderer import GSlideRenderer, compute_shallow_field_mask
from md2gslides.models import TextBlock


def _slide(markdown, page_id):
    """Compile a single slide and bind it to a page of the mock presentation."""
    slide = extract_slides(markdown)[0]
    slide.object_id = page_id
    return slide


def _requests_of(requests, kind):
    return [request[kind] for request in requests if kind in request]


def test_compute_shallow_field_mask():
    style = {"bold": True, "fontSize": {"magnitude": 5, "unit": "PT"}, "italic": None}

    assert compute_shallow_field_mask(style) == "bold,fontSize"
    assert compute_shallow_field_mask({}) == ""


class TestCreateSlides:
    """Test the first, slide creation, pass."""

    def test_slides_created_from_matched_layouts(self, mock_presentation):
        slides = extract_slides("# Title\n## Subtitle\n\n---\n\n# Title\nbody\n")
        old_ids = [slide.object_id for slide in slides]
        requests = GSlideRenderer(mock_presentation).create_slide_requests(slides)

        created = _requests_of(requests, "createSlide")
        assert [c["slideLayoutReference"]["layoutId"] for c in created] == [
            "layout-title",
            "layout-title-body",
        ]
        assert [c["objectId"] for c in created] == [slide.object_id for slide in slides]
        assert [slide.object_id for slide in slides] != old_ids

    def test_custom_layout(self, mock_presentation):
        slides = extract_slides('{layout="my custom layout"}\n# Title\n')
        requests = GSlideRenderer(mock_presentation).create_slide_requests(slides)

        assert requests[0]["createSlide"]["slideLayoutReference"]["layoutId"] == "layout-custom"

    def test_layout_missing_from_presentation(self, mock_presentation):
        mock_presentation["layouts"] = [
            layout for layout in mock_presentation["layouts"]
            if layout["layoutProperties"]["name"] != "SECTION_HEADER"
        ]
        slides = extract_slides("# Title\n")

        with pytest.raises(LayoutError):
            GSlideRenderer(mock_presentation).create_slide_requests(slides)


class TestContent:
    """Test the second, content, pass."""

    def test_title_subtitle_and_notes(self, mock_presentation):
        slide = _slide("# Title\n## Subtitle\n\n<!-- my notes -->\n", "title-slide")
        requests = GSlideRenderer(mock_presentation).content_requests([slide])

        inserts = {r["objectId"]: r["text"] for r in _requests_of(requests, "insertText")}
        assert inserts == {
            "centered-title-element": "Title",
            "subtitle-element": "Subtitle",
            "speaker-notes-element": "my notes\n",
        }

    def test_body_text_and_styles(self, mock_presentation):
        slide = _slide("# Title\n*Hello*\n", "body-slide")
        requests = GSlideRenderer(mock_presentation).content_requests([slide])

        inserts = {r["objectId"]: r["text"] for r in _requests_of(requests, "insertText")}
        assert inserts == {"title-element": "Title", "body-element": "Hello\n"}

        [update] = _requests_of(requests, "updateTextStyle")
        assert update["objectId"] == "body-element"
        assert update["textRange"] == {"type": "FIXED_RANGE", "startIndex": 0, "endIndex": 5}
        assert update["style"] == {"italic": True}
        assert update["fields"] == "italic"

    def test_ranges_count_utf16_code_units(self, mock_presentation):
        slide = _slide("# Title\n:rocket: *Hello*\n", "body-slide")
        requests = GSlideRenderer(mock_presentation).content_requests([slide])

        [update] = _requests_of(requests, "updateTextStyle")
        assert update["textRange"] == {"type": "FIXED_RANGE", "startIndex": 3, "endIndex": 8}

    def test_two_columns(self, mock_presentation):
        slide = _slide("# Title\nhello\n\n{.column}\n\nworld\n", "two-column-slide")
        requests = GSlideRenderer(mock_presentation).content_requests([slide])

        inserts = {r["objectId"]: r["text"] for r in _requests_of(requests, "insertText")}
        assert inserts["left-body-element"] == "hello\n"
        assert inserts["right-body-element"] == "world\n"

    def test_bullets_are_created_last_first(self, mock_presentation):
        slide = _slide("* a\n* b\n\n1. c\n", "body-slide")
        requests = GSlideRenderer(mock_presentation).content_requests([slide])

        bullets = _requests_of(requests, "createParagraphBullets")
        assert [(b["textRange"]["startIndex"], b["textRange"]["endIndex"]) for b in bullets] == [(4, 6), (0, 4)]
        assert bullets[0]["bulletPreset"] == "NUMBERED_DIGIT_ALPHA_ROMAN"
        assert bullets[1]["bulletPreset"] == "BULLET_DISC_CIRCLE_SQUARE"

    def test_background_image(self, mock_presentation):
        slide = _slide("# Title\n\n![](https://example.com/bg.png){.background}\n", "body-slide")
        requests = GSlideRenderer(mock_presentation).content_requests([slide])

        [update] = _requests_of(requests, "updatePageProperties")
        assert update["objectId"] == "body-slide"
        assert update["fields"] == "pageBackgroundFill.stretchedPictureFill.contentUrl"
        assert update["pageProperties"]["pageBackgroundFill"]["stretchedPictureFill"]["contentUrl"] == (
            "https://example.com/bg.png"
        )

    def test_image_placed_in_body(self, mock_presentation):
        slide = _slide("# Title\n\n![](https://example.com/a.png)\n", "body-slide")
        image = slide.bodies[0].images[0]
        image.width, image.height = 100, 50
        requests = GSlideRenderer(mock_presentation).content_requests([slide])

        [create] = _requests_of(requests, "createImage")
        properties = create["elementProperties"]
        assert create["url"] == "https://example.com/a.png"
        assert create["objectId"]
        assert properties["pageObjectId"] == "body-slide"
        assert properties["size"]["width"]["magnitude"] == 6000000
        assert properties["size"]["height"]["magnitude"] == 3000000
        assert properties["transform"]["translateX"] == 1500000
        assert properties["transform"]["translateY"] == 1500000

    def test_image_without_body_fills_page(self, mock_presentation):
        slide = _slide("![](https://example.com/a.png)\n", "blank-slide")
        image = slide.bodies[0].images[0]
        image.width, image.height = 16, 9
        requests = GSlideRenderer(mock_presentation).content_requests([slide])

        [create] = _requests_of(requests, "createImage")
        properties = create["elementProperties"]
        assert properties["size"]["width"]["magnitude"] == 9144000
        assert properties["size"]["height"]["magnitude"] == 5143500
        assert properties["transform"]["translateX"] == 0
        assert properties["transform"]["translateY"] == 0

    def test_video(self, mock_presentation):
        slide = _slide("@[youtube](12345)\n", "body-slide")
        requests = GSlideRenderer(mock_presentation).content_requests([slide])

        [video] = _requests_of(requests, "createVideo")
        [update] = _requests_of(requests, "updateVideoProperties")
        assert video["source"] == "YOUTUBE"
        assert video["id"] == "12345"
        assert video["elementProperties"]["pageObjectId"] == "body-slide"
        assert update["objectId"] == video["objectId"]
        assert update["videoProperties"] == {"autoPlay": True}

    def test_table(self, mock_presentation):
        slide = _slide("# Title\n\nA | B\n---|---\n1 | 2\n", "body-slide")
        requests = GSlideRenderer(mock_presentation).content_requests([slide])

        [table] = _requests_of(requests, "createTable")
        assert (table["rows"], table["columns"]) == (2, 2)

        cells = {
            (r["cellLocation"]["rowIndex"], r["cellLocation"]["columnIndex"]): r["text"]
            for r in _requests_of(requests, "insertText")
            if r["objectId"] == table["objectId"]
        }
        assert cells == {(0, 0): "A", (0, 1): "B", (1, 0): "1", (1, 1): "2"}

        header_style = next(
            r for r in _requests_of(requests, "updateTextStyle")
            if r.get("cellLocation") == {"rowIndex": 0, "columnIndex": 0}
        )
        assert header_style["fields"] == "bold,foregroundColor"

    def test_multiple_tables_rejected(self, mock_presentation):
        slide = _slide("A | B\n---|---\n1 | 2\n\nC | D\n---|---\n3 | 4\n", "body-slide")

        with pytest.raises(LayoutError, match="Multiple tables"):
            GSlideRenderer(mock_presentation).content_requests([slide])

    def test_multiple_videos_rejected(self, mock_presentation):
        slide = _slide("@[youtube](1)\n\n@[youtube](2)\n", "body-slide")

        with pytest.raises(LayoutError, match="Multiple videos"):
            GSlideRenderer(mock_presentation).content_requests([slide])

    def test_notes_without_notes_shape_are_dropped(self, mock_presentation):
        slide = _slide("# Title\nhello\n\n{.column}\n\nworld\n\n<!-- notes -->\n", "two-column-slide")
        requests = GSlideRenderer(mock_presentation).content_requests([slide])

        assert all(r["text"] != "notes\n" for r in _requests_of(requests, "insertText"))

    def test_empty_text_is_not_inserted(self, mock_presentation):
        requests = []
        GSlideRenderer(mock_presentation)._append_insert_text_requests(
            TextBlock(), {"objectId": "body-element"}, requests
        )

        assert requests == []
