"""Console colours for the ftclean CLI.

The bundled ``data/theme.toml`` provides the defaults. A ``[colors]`` table in
``~/.config/ftclean/theme.toml`` may override any subset of its keys.
"""

import logging
import re
import sys
import tomllib
from importlib import resources
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, ValidationError, field_validator
from rich.theme import Theme

from ftclean.core.paths import get_theme_path

logger = logging.getLogger(__name__)

_HEX_COLOR = re.compile(r"^#(?:[0-9a-fA-F]{3}){1,2}$")


class ThemeColors(BaseModel):
    """Validated colour palette. Every value is a ``#RGB`` or ``#RRGGBB`` code."""

    model_config = ConfigDict(extra="forbid")

    text: str = "#ffffff"
    muted: str = "#b2bec3"
    header: str = "#69B9A1"
    border: str = "#29526d"

    success: str = "#03b971"
    warning: str = "#f5b332"
    error: str = "#f53263"
    info: str = "#0ec1c8"

    # Rows of a deletion preview
    planned: str = "#f5b332"

    role_original: str = "#69B9A1"
    role_encoded: str = "#0e8ac8"
    role_other: str = "#b2bec3"

    @field_validator("*", mode="before")
    @classmethod
    def validate_hex_color(cls, v: object, info: Any) -> str:
        if not isinstance(v, str) or not _HEX_COLOR.match(v.strip()):
            msg = f"{info.field_name}: expected a #RGB or #RRGGBB colour, got {v!r}"
            raise ValueError(msg)
        return v.strip()


# Rich style name -> (palette field, modifier)
_STYLES: dict[str, tuple[str, str]] = {
    "text": ("text", ""),
    "muted": ("muted", ""),
    "dim": ("muted", ""),
    "header": ("header", ""),
    "bold_header": ("header", "bold"),
    "border": ("border", ""),
    "success": ("success", ""),
    "warning": ("warning", ""),
    "error": ("error", "bold"),
    "info": ("info", ""),
    "planned": ("planned", ""),
    "role.original": ("role_original", ""),
    "role.encoded": ("role_encoded", ""),
    "role.other": ("role_other", ""),
    "entity.label": ("text", "bold"),
    "entity.size": ("info", ""),
}


def _read_colors(path: Path) -> dict[str, str] | None:
    """Read the ``[colors]`` table of a theme file.

    Returns:
        The string-valued entries, or None if the file is missing or unusable.
    """
    try:
        with path.open("rb") as f:
            data = tomllib.load(f)
    except FileNotFoundError:
        return None
    except tomllib.TOMLDecodeError as e:
        logger.warning("Failed to parse theme file %s: %s", path, e)
        print(f"Warning: Failed to parse {path}: {e}", file=sys.stderr)
        return None
    except OSError as e:
        logger.warning("Failed to read theme file %s: %s", path, e)
        return None

    colors = data.get("colors", {})
    if not isinstance(colors, dict):
        logger.warning("Ignoring non-table 'colors' entry in %s", path)
        return None
    return {key: value for key, value in colors.items() if isinstance(value, str)}


def load_theme() -> ThemeColors:
    """Merge the user overrides over the bundled palette.

    An invalid merged palette falls back to the built-in defaults.
    """
    bundled = resources.files("ftclean.data").joinpath("theme.toml")
    merged = _read_colors(Path(str(bundled))) or {}

    user_path = get_theme_path()
    overrides = _read_colors(user_path)
    if overrides:
        logger.debug("Applying theme overrides from %s", user_path)
        merged.update(overrides)

    try:
        return ThemeColors(**merged)
    except ValidationError as e:
        logger.warning("Theme validation failed, using defaults: %s", e)
        print(f"Warning: Invalid theme configuration: {e}", file=sys.stderr)
        return ThemeColors()


def get_rich_theme(colors: ThemeColors | None = None) -> Theme:
    """Build the Rich theme used by the shared consoles."""
    palette = colors if colors is not None else load_theme()
    styles = {}
    for name, (field, modifier) in _STYLES.items():
        color = getattr(palette, field)
        styles[name] = f"{modifier} {color}" if modifier else color
    return Theme(styles)


_cached_theme: Theme | None = None


def get_theme() -> Theme:
    """Return the Rich theme, loading it on first use."""
    global _cached_theme
    if _cached_theme is None:
        _cached_theme = get_rich_theme()
    return _cached_theme
