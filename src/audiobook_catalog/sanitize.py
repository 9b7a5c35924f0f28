"""Filename sanitization for files written next to audiobooks."""

import re

from loguru import logger

log = logger.bind(stage="sanitize")

MAX_FILENAME_BYTES = 255


def sanitize_filename(filename: str, suffix: str = "") -> str:
    """Sanitize a filename component (not a full path).

    Replaces path separators and shell-hostile chars with underscores,
    strips leading dots so the result is never hidden, collapses repeated
    underscores, and truncates the stem so stem + suffix fits in 255 bytes.
    """
    sanitized = re.sub(r'[/\\:"*?<>|;\x00]+', "_", filename)
    sanitized = re.sub(r"^\.+", "", sanitized)
    sanitized = re.sub(r"__+", "_", sanitized)

    limit = MAX_FILENAME_BYTES - len(suffix.encode("utf-8"))
    if len(sanitized.encode("utf-8")) > limit:
        original_len = len(sanitized.encode("utf-8"))
        while len(sanitized.encode("utf-8")) > limit and sanitized:
            sanitized = sanitized[:-1]
        log.debug(
            f"Truncated filename from {original_len} to "
            f"{len(sanitized.encode('utf-8'))} bytes: '{sanitized}'"
        )

    return sanitized + suffix
