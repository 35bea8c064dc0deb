"""Human-readable size strings such as ``10m`` or ``512KiB``."""

from __future__ import annotations

import logging
import re

logger = logging.getLogger(__name__)

DEFAULT_SIZE = 10 * 1024 * 1024

_SIZE_RE = re.compile(r"^\s*(\d+(?:\.\d+)?)\s*(?:([kmgt])(?:i?b)?|b)?\s*$", re.IGNORECASE)

MULTIPLIERS: dict[str, int] = {
    "": 1,
    "k": 1024,
    "m": 1024**2,
    "g": 1024**3,
    "t": 1024**4,
}


def parse_size(text: str, default: int = DEFAULT_SIZE) -> int:
    """Parse a size string into a byte count using binary multiples.

    Unparseable or zero sizes log a warning and return ``default``.
    """
    match = _SIZE_RE.match(str(text))
    if not match:
        logger.warning("Invalid size '%s', using %s", text, format_size(default))
        return default
    number, unit = match.groups()
    size = int(float(number) * MULTIPLIERS[(unit or "").lower()])
    if size <= 0:
        logger.warning("Size '%s' must be positive, using %s", text, format_size(default))
        return default
    return size


def format_size(size: int) -> str:
    """Render a byte count compactly, e.g. ``10.0 MiB``."""
    value = float(size)
    for unit in ("B", "KiB", "MiB", "GiB"):
        if value < 1024:
            return f"{int(value)} B" if unit == "B" else f"{value:.1f} {unit}"
        value /= 1024
    return f"{value:.1f} TiB"
