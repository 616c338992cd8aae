#!/usr/bin/env python3
"""
Main slide generator module that ties together the compiler, the image
pipeline and the Google Slides request builder.
"""

import logging
from pathlib import Path
from typing import Dict, List, Optional

from googleapiclient.errors import HttpError

from .compiler import extract_slides
from .gslide_renderer import GSlideRenderer
from .images import prepare_images
from .models import SlideModel
from .paths import prepare_workspace

logger = logging.getLogger(__name__)

PRESENTATION_URL = "https://docs.google.com/presentation/d/{}"


class SlideGenerator:
    """
    Generates Google Slides from markdown into one presentation.
    """

    def __init__(self, service, presentation: Dict, *, debug: bool = False, tmp_dir: Optional[Path] = None):
        """Create a new :class:`SlideGenerator`.

        Parameters
        ----------
        service
            Slides API client (``build("slides", "v1")``).
        presentation
            Presentation resource as returned by ``presentations.get``.
        debug
            Log request batches.
        tmp_dir
            Directory for generated images.  A throw-away directory is used
            when omitted.
        """
        self.service = service
        self.presentation = presentation
        self.debug = debug
        self.tmp_dir = Path(tmp_dir) if tmp_dir else None
        self.slides: List[SlideModel] = []

    @property
    def presentation_id(self) -> str:
        return self.presentation["presentationId"]

    # ------------------------------------------------------------------
    # Construction
    # ------------------------------------------------------------------

    @classmethod
    def new_presentation(cls, service, title: str, **kwargs) -> "SlideGenerator":
        presentation = service.presentations().create(body={"title": title}).execute()
        logger.info("Created presentation %s", presentation["presentationId"])
        return cls(service, presentation, **kwargs)

    @classmethod
    def copy_presentation(cls, service, drive_service, title: str, presentation_id: str, **kwargs) -> "SlideGenerator":
        copied = drive_service.files().copy(fileId=presentation_id, body={"name": title}).execute()
        logger.info("Copied presentation %s to %s", presentation_id, copied["id"])
        return cls.for_presentation(service, copied["id"], **kwargs)

    @classmethod
    def for_presentation(cls, service, presentation_id: str, **kwargs) -> "SlideGenerator":
        presentation = service.presentations().get(presentationId=presentation_id).execute()
        return cls(service, presentation, **kwargs)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def generate_from_markdown(
        self,
        markdown_text: str,
        *,
        css: Optional[str] = None,
        use_fileio: bool = False,
        base_dir: Optional[Path] = None,
    ) -> str:
        """
        Append the slides described by *markdown_text* to the presentation.

        Args:
            markdown_text: The markdown content to convert
            css: Stylesheet for code highlighting and custom classes
            use_fileio: Allow local and generated images to be uploaded to file.io
            base_dir: Base directory for resolving relative image paths

        Returns:
            str: The presentation id
        """
        self.slides = extract_slides(markdown_text, css, base_dir=base_dir)
        logger.info("Compiled %d slides", len(self.slides))

        if self.tmp_dir is None:
            self.tmp_dir = prepare_workspace()["tmp_dir"]
        await prepare_images(self.slides, tmp_dir=self.tmp_dir, use_fileio=use_fileio, debug=self.debug)

        self._update_presentation(GSlideRenderer(self.presentation, debug=self.debug).create_slide_requests(self.slides))
        self.reload_presentation()
        self._update_presentation(GSlideRenderer(self.presentation, debug=self.debug).content_requests(self.slides))
        return self.presentation_id

    def erase(self) -> None:
        """Delete every slide currently in the presentation."""
        logger.debug("Erasing previous slides")
        requests = [
            {"deleteObject": {"objectId": slide["objectId"]}}
            for slide in self.presentation.get("slides") or []
        ]
        self._update_presentation(requests)

    def reload_presentation(self) -> None:
        self.presentation = (
            self.service.presentations()
            .get(presentationId=self.presentation_id)
            .execute()
        )

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _update_presentation(self, requests: List[Dict]) -> Optional[Dict]:
        """Apply *requests* as one batch; empty batches are not sent."""
        if not requests:
            return None
        if self.debug:
            logger.debug("Updating presentation with %d requests: %s", len(requests), requests)
        try:
            response = (
                self.service.presentations()
                .batchUpdate(presentationId=self.presentation_id, body={"requests": requests})
                .execute()
            )
        except HttpError as e:
            logger.error("Google Slides API error: %s", e)
            raise
        if self.debug:
            logger.info("✓ Executed batch of %s requests", len(requests))
        return response


def main(argv=None):
    """Command-line entry point for md2gslides."""
    import argparse
    import asyncio
    import sys
    import webbrowser

    from .auth import build_services, get_credentials
    from .errors import SlideGenerationError
    from .theme_loader import DEFAULT_THEME, get_css, list_available_themes

    def _build_parser() -> argparse.ArgumentParser:
        p = argparse.ArgumentParser(prog="md2gslides", description="Markdown to Google Slides converter.")
        p.add_argument("file", nargs="?", type=Path, help="Markdown file to convert, reads stdin if omitted")
        p.add_argument("--append", "-a", dest="presentation_id", help="Appends slides to an existing presentation")
        p.add_argument("--erase", "-e", action="store_true", help="Erase existing slides prior to appending")
        p.add_argument("--copy", "-c", dest="copy_id", help="Id of the presentation to copy and use as a base")
        p.add_argument("--title", "-t", help="Title of the presentation")
        p.add_argument("--style", "-s", default=DEFAULT_THEME, help="Pygments style for code highlighting")
        p.add_argument("--css", type=Path, help="Extra stylesheet for custom classes")
        p.add_argument("--use-fileio", action="store_true",
                       help="Acknowledge local and generated images are uploaded to https://file.io")
        p.add_argument("--no-browser", "-n", dest="headless", action="store_true",
                       help="Do not launch a browser, just show the URL")
        p.add_argument("--credentials", help="Service-account key file (default: $GOOGLE_SLIDES_CREDENTIALS)")
        p.add_argument("--list-styles", action="store_true", help="List code highlight styles and exit")
        p.add_argument("--debug", action="store_true", help="Enable verbose logging")
        return p

    def _load_css(args) -> str:
        css = get_css(args.style)
        if args.css:
            css = f"{css}\n{args.css.read_text(encoding='utf-8')}"
        return css

    def _build_generator(args, slides_service, drive_service) -> SlideGenerator:
        title = args.title or (str(args.file) if args.file else "Untitled presentation")
        if args.presentation_id:
            generator = SlideGenerator.for_presentation(slides_service, args.presentation_id, debug=args.debug)
        elif args.copy_id:
            generator = SlideGenerator.copy_presentation(
                slides_service, drive_service, title, args.copy_id, debug=args.debug
            )
        else:
            generator = SlideGenerator.new_presentation(slides_service, title, debug=args.debug)
        # New presentations start with a title slide of their own
        if args.erase or not args.presentation_id:
            generator.erase()
            generator.reload_presentation()
        return generator

    async def _generate_async(args) -> str:
        if args.file:
            md_path: Path = args.file
            if not md_path.exists():
                raise SlideGenerationError(f"Markdown file '{md_path}' not found")
            markdown_text = md_path.read_text(encoding="utf-8")
            base_dir = md_path.resolve().parent
        else:
            markdown_text = sys.stdin.read()
            base_dir = Path.cwd()

        css = _load_css(args)
        credentials = get_credentials(args.credentials, open_browser=not args.headless)
        slides_service, drive_service = build_services(credentials)
        generator = _build_generator(args, slides_service, drive_service)
        return await generator.generate_from_markdown(
            markdown_text, css=css, use_fileio=args.use_fileio, base_dir=base_dir
        )

    # Set up logging
    logging.basicConfig(level=logging.INFO, format="%(levelname)s  %(message)s")

    # Parse arguments
    parser = _build_parser()
    args = parser.parse_args(argv)
    if args.debug:
        logging.getLogger("md2gslides").setLevel(logging.DEBUG)

    if args.list_styles:
        print("\n".join(list_available_themes()))
        return 0

    try:
        presentation_id = asyncio.run(_generate_async(args))
    except (SlideGenerationError, HttpError, FileNotFoundError) as e:
        logger.error("Unable to generate slides: %s", e)
        return 1

    url = PRESENTATION_URL.format(presentation_id)
    if args.headless:
        logger.info("View your presentation at: %s", url)
    else:
        logger.info("✅ Opening your presentation (%s)", url)
        webbrowser.open(url)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
