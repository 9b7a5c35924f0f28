"""Cover art extraction -- embedded pictures are cached next to the book.

The presentation layer receives cover art as a file path. The first parse of
a book writes the embedded picture to ``cover_<book name>.jpg`` in the
book's directory; later parses find that file and never rewrite it.
"""

from __future__ import annotations

from pathlib import Path

from loguru import logger

from .errors import NoParentDirectoryError, NotFileError
from .models import COVER_PICTURE_PRIORITY
from .sanitize import sanitize_filename
from .sources.base import Picture, TagSource

log = logger.bind(stage="cover_art")


def cover_art_path(name: str, book_file_path: Path) -> Path:
    """Deterministic cache path for a book's cover art.

    Raises:
        NotFileError: ``book_file_path`` is not a regular file.
        NoParentDirectoryError: ``book_file_path`` has no parent directory.
    """
    if not book_file_path.is_file():
        raise NotFileError(f"Not a file: {book_file_path}")
    parent = book_file_path.parent
    if parent == book_file_path:
        raise NoParentDirectoryError(f"No parent directory for {book_file_path}")
    return parent / sanitize_filename(f"cover_{name}", ".jpg")


def locate_extracted_cover_art(name: str, book_file_path: Path) -> Path | None:
    """Return the cached cover art path if a previous parse wrote it."""
    path = cover_art_path(name, book_file_path)
    return path if path.exists() else None


def select_picture(tag: TagSource) -> Picture | None:
    """Pick the best cover candidate: by role priority, then any picture."""
    for picture_type in COVER_PICTURE_PRIORITY:
        pic = tag.get_picture_type(picture_type)
        if pic is not None:
            return pic
    pictures = tag.pictures()
    return pictures[0] if pictures else None


def extract_cover_art(tag: TagSource, name: str, book_file_path: Path) -> Path | None:
    """Write the embedded cover picture to the cache path.

    Returns None when the tag has no pictures or the file cannot be opened
    or written; I/O failures never fail the surrounding parse.
    """
    target = cover_art_path(name, book_file_path)

    pic = select_picture(tag)
    if pic is None:
        log.debug(f"No embedded pictures in {book_file_path.name}")
        return None

    try:
        f = open(target, "wb")
    except OSError as e:
        log.warning(f"Could not open {target} for cover art, continuing without: {e}")
        return None

    try:
        with f:
            f.write(pic.data)
    except OSError as e:
        log.warning(f"Could not write cover art to {target}, continuing without: {e}")
        # No partial file may remain at the cache path
        try:
            target.unlink(missing_ok=True)
        except OSError as unlink_error:
            log.warning(f"Could not remove partial cover art {target}: {unlink_error}")
        return None

    log.info(f"Extracted cover art ({len(pic.data)} bytes) to {target}")
    return target


def resolve_cover_art(tag: TagSource, name: str, book_file_path: Path) -> Path | None:
    """Cached cover art if present, otherwise extract it."""
    existing = locate_extracted_cover_art(name, book_file_path)
    if existing is not None:
        log.debug(f"Using cached cover art {existing}")
        return existing
    return extract_cover_art(tag, name, book_file_path)
