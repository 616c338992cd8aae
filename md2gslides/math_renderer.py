#!/usr/bin/env python3
"""
Math renderer - rasterises LaTeX math to PNG with matplotlib's mathtext.
"""
import hashlib
import logging
from pathlib import Path

import matplotlib

matplotlib.use("Agg")

from matplotlib import mathtext  # noqa: E402

from .paths import atomic_output  # noqa: E402

logger = logging.getLogger(__name__)


class MathRenderer:
    """
    Renders ``$$$ math`` sources to PNG files, cached by content hash.
    """

    def __init__(self, cache_dir: str, debug: bool = False, dpi: int = 300):
        """
        Initialize the math renderer.

        Args:
            cache_dir: Directory the PNG files are written to
            debug: Enable debug output
            dpi: Resolution of the rendered images
        """
        self.debug = debug
        self.dpi = dpi
        self.cache_dir = Path(cache_dir)
        self.cache_dir.mkdir(parents=True, exist_ok=True)

    @staticmethod
    def to_mathtext(latex: str) -> str:
        """Wrap *latex* in ``$...$`` unless it is already delimited."""
        latex = latex.strip()
        if latex.startswith("$$") and latex.endswith("$$") and len(latex) > 4:
            latex = latex[2:-2].strip()
        if not (latex.startswith("$") and latex.endswith("$")):
            latex = f"${latex}$"
        return latex

    def render_to_png(self, latex: str) -> Path:
        """
        Render *latex* and return the PNG path.

        Raises:
            ValueError: If mathtext can't parse the expression
        """
        cache_key = hashlib.md5(latex.encode('utf-8')).hexdigest()
        png_path = self.cache_dir / f"math_{cache_key}.png"
        if png_path.exists():
            if self.debug:
                logger.debug("Using cached math image %s", png_path)
            return png_path

        if self.debug:
            logger.info("Rendering math: %s", latex[:50])
        with atomic_output(png_path) as scratch:
            mathtext.math_to_image(self.to_mathtext(latex), str(scratch), dpi=self.dpi, format="png")
        return png_path
