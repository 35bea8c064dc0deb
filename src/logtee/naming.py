"""Log file naming and retention eviction."""

from __future__ import annotations

import logging
from pathlib import Path

logger = logging.getLogger(__name__)


def log_file_name(prefix: str, suffix: str, index: int) -> str:
    """Return the file name for sequence ``index``.

    The index is zero-padded to at least three digits. An empty suffix
    produces no trailing period: ``temp_007`` rather than ``temp_007.``.
    """
    name = f"{prefix}_{index:03d}"
    if suffix:
        name = f"{name}.{suffix}"
    return name


def evict_expired(prefix: str, suffix: str, file_count: int, index: int) -> Path | None:
    """Delete the file that falls out of the retention window.

    On creating ``index``, the file for ``index - file_count`` is removed if
    it exists. A missing file is not an error and a failed delete is only
    logged. Returns the path that was removed, or None.
    """
    expired = index - file_count
    if expired < 0:
        return None
    target = Path(log_file_name(prefix, suffix, expired))
    if not target.exists():
        return None
    try:
        target.unlink()
    except OSError as exc:
        logger.warning("Could not remove expired log file %s: %s", target, exc)
        return None
    logger.debug("Removed expired log file %s", target)
    return target
