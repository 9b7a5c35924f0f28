"""Chaptered container decoding -- one M4B file, many chapters.

Chapter titles and durations live in an auxiliary text track. Audio and
video tracks classify to a known media type; the chapter track does not, so
the first track whose classification fails is taken as the chapter track.
"""

from __future__ import annotations

from collections.abc import Callable
from datetime import timedelta
from pathlib import Path

from loguru import logger

from ..cover_art import resolve_cover_art
from ..errors import (
    NoChapterTrackError,
    PrimaryTagMissingError,
    UnsupportedMediaTypeError,
)
from ..fields import get_author, get_book_name
from ..models import (
    CHAPTER_TITLE_PREFIX_BYTES,
    CHAPTER_TITLE_SUFFIX_BYTES,
    Book,
    BookFile,
    ChapterBuilder,
    build_chapters,
    calculate_duration,
)
from ..sources.base import ContainerSource, Sample, TaggedFile, Track
from ..sources.mp4 import open_container as open_mp4
from ..sources.tags import read_tagged_file

log = logger.bind(stage="container")


def find_chapter_track(tracks: list[Track]) -> Track:
    """First track whose media type cannot be classified.

    Raises:
        NoChapterTrackError: Every track has a known media type.
    """
    for track in tracks:
        try:
            track.media_type()
        except UnsupportedMediaTypeError:
            return track
    raise NoChapterTrackError("No chapter track found")


def decode_chapter_title(payload: bytes) -> str | None:
    """Strip the text sample envelope and decode the title.

    Returns None for an empty payload, a payload too short to hold the
    envelope, an empty title, or bytes that are not UTF-8.
    """
    if not payload:
        return None
    if len(payload) < CHAPTER_TITLE_PREFIX_BYTES + CHAPTER_TITLE_SUFFIX_BYTES:
        log.warning(f"Chapter sample of {len(payload)} bytes is too short for a title")
        return None
    body = payload[CHAPTER_TITLE_PREFIX_BYTES:len(payload) - CHAPTER_TITLE_SUFFIX_BYTES]
    try:
        title = body.decode("utf-8")
    except UnicodeDecodeError:
        log.warning("Decoding chapter title as utf-8 failed, falling back to chapter number")
        return None
    return title or None


def chapter_duration(sample: Sample, total_duration: timedelta) -> timedelta:
    """Explicit sample duration, or the time left in the file when it is zero."""
    if sample.duration_ms == 0:
        remaining = total_duration - timedelta(milliseconds=sample.start_time_ms)
        return max(remaining, timedelta(0))
    return timedelta(milliseconds=sample.duration_ms)


def build_from_container(
    path: Path,
    read_tags: Callable[[Path], TaggedFile] = read_tagged_file,
    open_container: Callable[[Path], ContainerSource] = open_mp4,
) -> Book:
    """Build a Book from a chaptered container file.

    Raises:
        PrimaryTagMissingError: The file has no primary tag.
        NoChapterTrackError: No chapter track, or a listed sample is missing.
        ContainerDecodeError: The container or a sample could not be read.
        TagDecodeError: The tags could not be read.
    """
    path = Path(path)
    tagged = read_tags(path)
    tag = tagged.tag
    if tag is None:
        raise PrimaryTagMissingError(f"No primary tag in {path}")

    builders: list[ChapterBuilder] = []
    with open_container(path) as container:
        track = find_chapter_track(container.tracks())
        log.debug(
            f"Chapter track {track.track_id} in {path.name}: {track.sample_count} samples"
        )
        for sample_id in range(1, track.sample_count + 1):
            sample = container.read_sample(track.track_id, sample_id)
            if sample is None:
                raise NoChapterTrackError(
                    f"Sample {sample_id} of chapter track {track.track_id} is missing"
                )
            builders.append(
                ChapterBuilder(
                    title=decode_chapter_title(sample.payload),
                    duration=chapter_duration(sample, tagged.duration),
                )
            )

    chapters = build_chapters(builders)
    name = get_book_name(tag)
    author = get_author(tag)
    cover = resolve_cover_art(tag, name, path)

    log.info(f"Decoded {len(chapters)} chapters from {path.name}: {name!r} by {author!r}")
    return Book(
        name=name,
        author=author,
        duration=calculate_duration(chapters),
        cover_art_path=cover,
        files=(BookFile(chapters=tuple(chapters), path=path),),
    )

