"""Book builders -- the public entry points.

build_from_file   -- One file. Tries container decoding for per-chapter
                     structure, falls back to single-track decoding.
build_from_folder -- A directory of single-chapter MP3s merged into one Book
                     after checking every file names the same book and author.
"""

from __future__ import annotations

import dataclasses
from pathlib import Path

from loguru import logger

from .decoders.container import build_from_container
from .decoders.single_track import build_from_single_track
from .errors import (
    BookError,
    EmptyFolderError,
    MixedFilesInFolderError,
    NotDirectoryError,
)
from .models import SINGLE_CHAPTER_EXTENSION, Book, calculate_duration

log = logger.bind(stage="builder")


def build_from_file(path: Path) -> Book:
    """Build a Book from a single audio file.

    Container errors are logged and trigger the single-track fallback; errors
    from the fallback propagate.
    """
    path = Path(path)
    try:
        return build_from_container(path)
    except (BookError, OSError) as e:
        log.warning(
            f"Failed to parse {path.name} as a chaptered container ({e}), "
            "falling back to single track"
        )
    return build_from_single_track(path)


def find_chapter_files(dir_path: Path) -> list[Path]:
    """Regular files directly in ``dir_path`` with the single-chapter
    extension, sorted by path."""
    return sorted(
        p
        for p in dir_path.iterdir()
        if p.is_file() and p.suffix.lower() == SINGLE_CHAPTER_EXTENSION
    )


def build_from_folder(dir_path: Path) -> Book:
    """Build a Book from a folder of single-chapter files.

    Raises:
        NotDirectoryError: ``dir_path`` is not a directory.
        EmptyFolderError: No qualifying files in the folder.
        MixedFilesInFolderError: Files disagree on book name or author.
    """
    dir_path = Path(dir_path)
    if not dir_path.is_dir():
        raise NotDirectoryError(f"Not a directory: {dir_path}")

    file_paths = find_chapter_files(dir_path)
    if not file_paths:
        raise EmptyFolderError(f"No {SINGLE_CHAPTER_EXTENSION} files in {dir_path}")

    log.debug(f"Found {len(file_paths)} chapter files in {dir_path}")

    if len(file_paths) == 1:
        return build_from_file(file_paths[0])

    result = build_from_file(file_paths[0])
    files = list(result.files)
    for file_path in file_paths[1:]:
        new_book = build_from_file(file_path)
        if (new_book.name, new_book.author) != (result.name, result.author):
            raise MixedFilesInFolderError(
                expected=(result.name, result.author),
                found=(new_book.name, new_book.author),
                path=file_path,
            )
        files.extend(new_book.files)

    # Duration so far only covers the first file
    merged = dataclasses.replace(
        result,
        files=tuple(files),
        duration=calculate_duration([c for f in files for c in f.chapters]),
    )
    log.info(
        f"Merged {len(file_paths)} files into {merged.name!r} by {merged.author!r} "
        f"({len(merged.chapters())} chapters, {merged.duration})"
    )
    return merged
