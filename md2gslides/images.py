"""
Image pipeline run before slides are rendered.

Every image of every slide goes through three steps, all images in
parallel:

1. generate  - ``$$$`` sources are rasterised to a local PNG
2. probe     - natural pixel size is read (local file or remote URL)
3. upload    - local files are uploaded so Slides can fetch them

Placement needs final dimensions, so the whole pipeline completes before
any request is built.
"""
import asyncio
import logging
import os
import random
import time
from dataclasses import dataclass
from io import BytesIO
from pathlib import Path
from typing import Callable, Dict, List, Optional, Sequence, Tuple, TypeVar

import requests
from PIL import Image, UnidentifiedImageError

from .errors import ImageError
from .math_renderer import MathRenderer
from .models import ImageRef, SlideModel
from .paths import file_uri_to_path, is_local_url
from .svg_renderer import SvgRenderer

logger = logging.getLogger(__name__)

T = TypeVar("T")

FILEIO_URL = "https://file.io"
REQUEST_TIMEOUT = 30


# ---------------------------------------------------------------------------
# Retry policy
# ---------------------------------------------------------------------------

@dataclass
class RetryConfig:
    """Configuration for retry behavior."""
    max_attempts: int = 3
    base_delay: float = 0.5
    max_delay: float = 10.0


DEFAULT_RETRY = RetryConfig()


def calculate_delay(attempt: int, config: RetryConfig) -> float:
    """Exponential back-off with jitter for the 1-based *attempt*."""
    base_delay = config.base_delay * (2 ** (attempt - 1))
    return min(base_delay * (0.5 + random.random()), config.max_delay)


def is_transient(exc: Exception) -> bool:
    """Connection problems, timeouts and 5xx responses are worth retrying."""
    if isinstance(exc, (requests.ConnectionError, requests.Timeout)):
        return True
    if isinstance(exc, requests.HTTPError) and exc.response is not None:
        return exc.response.status_code >= 500
    return False


def with_retry(func: Callable[..., T], *args, config: RetryConfig = DEFAULT_RETRY, **kwargs) -> T:
    for attempt in range(1, config.max_attempts + 1):
        try:
            return func(*args, **kwargs)
        except requests.RequestException as e:
            if not is_transient(e) or attempt >= config.max_attempts:
                raise
            delay = calculate_delay(attempt, config)
            logger.info(
                "Retry %d/%d for %s in %.2fs: %s",
                attempt, config.max_attempts, func.__name__, delay, e,
            )
            time.sleep(delay)
    raise AssertionError("unreachable")


# ---------------------------------------------------------------------------
# Generate
# ---------------------------------------------------------------------------

class ImageGenerator:
    """Rasterises generated images into *tmp_dir*."""

    def __init__(self, tmp_dir: Path, debug: bool = False):
        self.math_renderer = MathRenderer(str(tmp_dir), debug=debug)
        self.svg_renderer = SvgRenderer(str(tmp_dir), debug=debug)
        self.renderers: Dict[str, Callable[[ImageRef], Path]] = {
            "math": self._render_math,
            "svg": self._render_svg,
        }

    def _render_math(self, image: ImageRef) -> Path:
        return self.math_renderer.render_to_png(image.source or "")

    def _render_svg(self, image: ImageRef) -> Path:
        return self.svg_renderer.render_to_png(image.source or "")

    def __call__(self, image: ImageRef) -> ImageRef:
        if image.url is not None:
            return image
        renderer = self.renderers.get(image.type or "")
        if renderer is None:
            raise ImageError(f"Unsupported generated image type: {image.type}")
        try:
            path = renderer(image)
        except ValueError as e:
            raise ImageError(f"Unable to render {image.type} image: {e}") from e
        image.url = Path(path).resolve().as_uri()
        logger.debug("Generated %s image %s", image.type, image.url)
        return image


# ---------------------------------------------------------------------------
# Probe
# ---------------------------------------------------------------------------

def _fetch(url: str) -> bytes:
    response = requests.get(url, timeout=REQUEST_TIMEOUT)
    response.raise_for_status()
    return response.content


def image_size(url: str) -> Tuple[int, int]:
    """Natural ``(width, height)`` of the image at *url*."""
    try:
        if is_local_url(url):
            with Image.open(file_uri_to_path(url)) as img:
                return img.size
        data = with_retry(_fetch, url)
        with Image.open(BytesIO(data)) as img:
            return img.size
    except (OSError, UnidentifiedImageError, requests.RequestException) as e:
        raise ImageError(f"Unable to read image {url}: {e}") from e


def probe_image(image: ImageRef) -> ImageRef:
    image.width, image.height = image_size(image.url)
    logger.debug("Image %s is %dx%d", image.url, image.width, image.height)
    return image


# ---------------------------------------------------------------------------
# Upload
# ---------------------------------------------------------------------------

def upload_local_image(path: Path, api_key: Optional[str] = None) -> str:
    """Upload *path* to file.io and return its download link."""
    headers = {}
    api_key = api_key or os.getenv("FILEIO_API_KEY")
    if api_key:
        headers["Authorization"] = f"Bearer {api_key}"

    def _post() -> Dict:
        with open(path, "rb") as fh:
            response = requests.post(
                FILEIO_URL,
                files={"file": (path.name, fh)},
                data={"expires": "1h", "autoDelete": "true"},
                headers=headers,
                timeout=REQUEST_TIMEOUT,
            )
        response.raise_for_status()
        return response.json()

    try:
        payload = with_retry(_post)
    except (OSError, requests.RequestException, ValueError) as e:
        raise ImageError(f"Unable to upload {path}: {e}") from e
    if not payload.get("success") or not payload.get("link"):
        raise ImageError(f"Unable to upload {path}: {payload}")
    logger.info("Uploaded %s to %s", path, payload["link"])
    return payload["link"]


def make_uploader(use_fileio: bool) -> Callable[[ImageRef], ImageRef]:
    def _upload(image: ImageRef) -> ImageRef:
        if not is_local_url(image.url):
            return image
        if not use_fileio:
            raise ImageError(
                f"Local image {image.url} needs to be uploaded, use the --use-fileio option"
            )
        image.url = upload_local_image(file_uri_to_path(image.url))
        return image
    return _upload


# ---------------------------------------------------------------------------
# Pipeline
# ---------------------------------------------------------------------------

def _all_images(slides: Sequence[SlideModel]) -> List[ImageRef]:
    return [image for slide in slides for image in slide.images()]


async def process_images(slides: Sequence[SlideModel], step: Callable[[ImageRef], ImageRef]) -> None:
    """Run *step* on every image of *slides* concurrently.

    Every image is attempted. If any fail, one :class:`ImageError` listing
    all of them is raised afterwards.
    """
    images = _all_images(slides)
    if not images:
        return
    results = await asyncio.gather(
        *(asyncio.to_thread(step, image) for image in images),
        return_exceptions=True,
    )
    failures = []
    for image, result in zip(images, results):
        if isinstance(result, Exception):
            logger.error("Image %s failed: %s", image.locator, result)
            failures.append(f"{image.locator}: {result}")
    if failures:
        raise ImageError("Image processing failed:\n  " + "\n  ".join(failures))


async def prepare_images(
    slides: Sequence[SlideModel],
    *,
    tmp_dir: Path,
    use_fileio: bool = False,
    debug: bool = False,
) -> None:
    """Generate, probe and upload every image on *slides*."""
    await process_images(slides, ImageGenerator(tmp_dir, debug=debug))
    await process_images(slides, probe_image)
    await process_images(slides, make_uploader(use_fileio))


__all__ = [
    "RetryConfig",
    "calculate_delay",
    "with_retry",
    "ImageGenerator",
    "image_size",
    "probe_image",
    "upload_local_image",
    "make_uploader",
    "process_images",
    "prepare_images",
]
