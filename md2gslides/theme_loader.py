"""Theme loader for code highlighting stylesheets."""
from typing import List

from pygments.formatters import HtmlFormatter
from pygments.styles import get_all_styles
from pygments.util import ClassNotFound

DEFAULT_THEME = "default"


def get_css(theme: str = DEFAULT_THEME) -> str:
    """
    Load the highlight stylesheet for the specified theme.

    Args:
        theme: Pygments style name (default, monokai, github-dark, ...)

    Returns:
        CSS content as string, with rules scoped under ``.highlight``

    Raises:
        FileNotFoundError: If the theme doesn't exist
        ValueError: If theme name is invalid
    """
    if not theme or not theme.replace("_", "").replace("-", "").isalnum():
        raise ValueError(f"Invalid theme name: {theme}")

    try:
        formatter = HtmlFormatter(style=theme)
    except ClassNotFound:
        raise FileNotFoundError(
            f"Theme '{theme}' not found. Available themes: {list_available_themes()}"
        )

    return formatter.get_style_defs(".highlight")


def list_available_themes() -> List[str]:
    """
    List all available themes.

    Returns:
        Sorted list of theme names
    """
    return sorted(get_all_styles())


def validate_theme(theme: str) -> bool:
    """
    Check if a theme exists.

    Args:
        theme: Theme name to validate

    Returns:
        True if theme exists, False otherwise
    """
    try:
        get_css(theme)
        return True
    except (FileNotFoundError, ValueError):
        return False
