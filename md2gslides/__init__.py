"""md2gslides – markdown to Google Slides

Exposes the public API (`SlideGenerator`, `extract_slides`, etc.) **and**
sets up a minimal logging configuration so that every sub-module can call

```python
import logging
logger = logging.getLogger(__name__)
```

and honour a single environment variable `MD2GSLIDES_LOG_LEVEL`.
"""

from __future__ import annotations

import logging
import os

# ------------------------------------------------------------------
# Default logging – honour env var, otherwise INFO.
# ------------------------------------------------------------------
LOG_LEVEL = os.getenv("MD2GSLIDES_LOG_LEVEL", "INFO").upper()
if not logging.getLogger().handlers:
    logging.basicConfig(
        level=LOG_LEVEL,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )

# Public API re-exports ------------------------------------------------
from .compiler import extract_slides  # noqa: E402  (import after logger)
from .errors import (  # noqa: E402
    ImageError,
    LayoutError,
    MarkdownStructureError,
    SlideGenerationError,
)
from .generator import SlideGenerator  # noqa: E402
from .gslide_renderer import GSlideRenderer  # noqa: E402
from .layout_matcher import match_layout  # noqa: E402
from .models import SlideModel, TextBlock  # noqa: E402

__all__ = [
    "SlideGenerator",
    "GSlideRenderer",
    "extract_slides",
    "match_layout",
    "SlideModel",
    "TextBlock",
    "SlideGenerationError",
    "MarkdownStructureError",
    "LayoutError",
    "ImageError",
]
