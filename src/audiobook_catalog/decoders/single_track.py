"""Single-track decoding -- one file, exactly one chapter."""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path

from loguru import logger

from ..errors import PrimaryTagMissingError
from ..fields import get_author, get_book_name, get_chapter_title
from ..models import Book, BookFile, Chapter
from ..sources.base import TaggedFile
from ..sources.tags import read_tagged_file

log = logger.bind(stage="single_track")


def build_from_single_track(
    path: Path,
    read_tags: Callable[[Path], TaggedFile] = read_tagged_file,
) -> Book:
    """Build a one-chapter Book from a file's tags and media duration.

    Cover art is not extracted on this path.

    Raises:
        PrimaryTagMissingError: The file has no primary tag.
        TagDecodeError: The tags could not be read.
    """
    path = Path(path)
    tagged = read_tags(path)
    tag = tagged.tag
    if tag is None:
        raise PrimaryTagMissingError(f"No primary tag in {path}")

    chapter = Chapter(title=get_chapter_title(tag), duration=tagged.duration)
    log.debug(f"Single chapter {chapter.title!r} ({chapter.duration}) from {path.name}")

    return Book(
        name=get_book_name(tag),
        author=get_author(tag),
        duration=chapter.duration,
        cover_art_path=None,
        files=(BookFile(chapters=(chapter,), path=path),),
    )
