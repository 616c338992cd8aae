"""
SVG renderer - rasterises ``$$$ svg`` sources to PNG with CairoSVG.
"""
import hashlib
import logging
from pathlib import Path

from .paths import atomic_output

logger = logging.getLogger(__name__)


class SvgRenderer:
    """
    Renders inline SVG markup to PNG files, cached by content hash.
    """

    def __init__(self, cache_dir: str, debug: bool = False):
        self.debug = debug
        self.cache_dir = Path(cache_dir)
        self.cache_dir.mkdir(parents=True, exist_ok=True)

    def render_to_png(self, svg: str) -> Path:
        """
        Render *svg* and return the PNG path.

        Raises:
            ValueError: If the markup is not a valid SVG document
        """
        # cairosvg loads libcairo on import
        import cairosvg

        cache_key = hashlib.md5(svg.encode('utf-8')).hexdigest()
        png_path = self.cache_dir / f"svg_{cache_key}.png"
        if png_path.exists():
            if self.debug:
                logger.debug("Using cached svg image %s", png_path)
            return png_path

        if self.debug:
            logger.info("Rendering svg (%d bytes)", len(svg))
        try:
            with atomic_output(png_path) as scratch:
                cairosvg.svg2png(bytestring=svg.encode('utf-8'), write_to=str(scratch))
        except SyntaxError as e:
            # xml.etree's ParseError
            raise ValueError(f"Invalid SVG: {e}") from e
        return png_path
