#!/usr/bin/env python3
"""
Test the slide generator lifecycle and CLI against an in-memory Slides API.
"""

import asyncio
import copy

import pytest

from md2gslides import auth
from md2gslides.generator import SlideGenerator, main


class _Call:
    """Stands in for a googleapiclient ``HttpRequest``."""

    def __init__(self, fn):
        self.fn = fn

    def execute(self):
        return self.fn()


class FakeSlidesService:
    """Records batches and applies slide creation and deletion to a presentation."""

    def __init__(self, presentation):
        self.presentation = copy.deepcopy(presentation)
        self.templates = copy.deepcopy(presentation["slides"])
        self.batches = []
        self.gets = []
        self.created = []

    def presentations(self):
        return self

    def create(self, body):
        def _create():
            self.created.append(body)
            self.presentation["title"] = body["title"]
            return copy.deepcopy(self.presentation)
        return _Call(_create)

    def get(self, presentationId):
        def _get():
            self.gets.append(presentationId)
            presentation = copy.deepcopy(self.presentation)
            presentation["presentationId"] = presentationId
            return presentation
        return _Call(_get)

    def batchUpdate(self, presentationId, body):
        def _batch_update():
            self.batches.append(body["requests"])
            for request in body["requests"]:
                self._apply(request)
            return {"presentationId": presentationId, "replies": [{} for _ in body["requests"]]}
        return _Call(_batch_update)

    def _apply(self, request):
        if "createSlide" in request:
            layout_id = request["createSlide"]["slideLayoutReference"]["layoutId"]
            template = next(
                (page for page in self.templates
                 if page["slideProperties"]["layoutObjectId"] == layout_id),
                {"pageElements": [], "slideProperties": {"layoutObjectId": layout_id}},
            )
            page = copy.deepcopy(template)
            page["objectId"] = request["createSlide"]["objectId"]
            self.presentation["slides"].append(page)
        elif "deleteObject" in request:
            object_id = request["deleteObject"]["objectId"]
            self.presentation["slides"] = [
                page for page in self.presentation["slides"] if page["objectId"] != object_id
            ]


class FakeDriveService:
    def __init__(self):
        self.copies = []

    def files(self):
        return self

    def copy(self, fileId, body):
        def _copy():
            self.copies.append((fileId, body))
            return {"id": "copied-presentation"}
        return _Call(_copy)


@pytest.fixture
def service(mock_presentation):
    return FakeSlidesService(mock_presentation)


def _request_kinds(batch):
    return {kind for request in batch for kind in request}


class TestSlideGenerator:
    """Test generating into a presentation."""

    def test_erase(self, service):
        generator = SlideGenerator.for_presentation(service, "test-presentation")
        generator.erase()

        [batch] = service.batches
        assert [r["deleteObject"]["objectId"] for r in batch] == [
            "title-slide", "body-slide", "two-column-slide", "blank-slide",
        ]

    def test_erase_empty_presentation_sends_nothing(self, service):
        service.presentation["slides"] = []
        generator = SlideGenerator.for_presentation(service, "test-presentation")
        generator.erase()

        assert service.batches == []

    def test_generate_from_markdown(self, service, tmp_path):
        generator = SlideGenerator.for_presentation(service, "test-presentation", tmp_dir=tmp_path)
        gets_before = len(service.gets)

        presentation_id = asyncio.run(generator.generate_from_markdown("# Title\nHello\n"))

        assert presentation_id == "test-presentation"
        create_batch, content_batch = service.batches
        assert _request_kinds(create_batch) == {"createSlide"}
        inserts = {r["insertText"]["objectId"]: r["insertText"]["text"]
                   for r in content_batch if "insertText" in r}
        assert inserts == {"title-element": "Title", "body-element": "Hello\n"}
        # content is built from a re-fetched presentation
        assert len(service.gets) == gets_before + 1
        assert [slide.object_id for slide in generator.slides] == [
            create_batch[0]["createSlide"]["objectId"]
        ]

    def test_new_presentation(self, service):
        generator = SlideGenerator.new_presentation(service, "My deck")

        assert service.created == [{"title": "My deck"}]
        assert generator.presentation_id == "test-presentation"

    def test_copy_presentation(self, service):
        drive = FakeDriveService()
        generator = SlideGenerator.copy_presentation(service, drive, "My copy", "template-id")

        assert drive.copies == [("template-id", {"name": "My copy"})]
        assert generator.presentation_id == "copied-presentation"


class TestMain:
    """Test the command line entry point."""

    def test_list_styles(self, capsys):
        assert main(["--list-styles"]) == 0
        assert "monokai" in capsys.readouterr().out.split()

    def test_missing_file(self, tmp_path):
        assert main([str(tmp_path / "missing.md"), "-n"]) == 1

    def test_unknown_style(self, tmp_path):
        markdown = tmp_path / "deck.md"
        markdown.write_text("# Title\n")

        assert main([str(markdown), "-n", "--style", "nonexistent"]) == 1

    def test_generates_new_presentation(self, service, tmp_path, monkeypatch):
        opened = []
        monkeypatch.setattr(auth, "get_credentials", lambda path, open_browser=True: object())
        monkeypatch.setattr(auth, "build_services", lambda credentials: (service, FakeDriveService()))
        monkeypatch.setattr("webbrowser.open", opened.append)
        markdown = tmp_path / "deck.md"
        markdown.write_text("# Title\n## Subtitle\n\n---\n\n# Body\nHello\n")

        assert main([str(markdown), "-n", "--title", "Deck"]) == 0

        erase_batch, create_batch, content_batch = service.batches
        assert _request_kinds(erase_batch) == {"deleteObject"}
        assert len(create_batch) == 2
        assert "insertText" in _request_kinds(content_batch)
        assert service.created == [{"title": "Deck"}]
        assert opened == []
