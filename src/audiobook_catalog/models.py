"""Core enums, constants, and the Book data model.

Enums:
    ItemKey     -- Format-independent tag field names. Each tag reader maps
                   these onto its own atoms/frames.
    PictureType -- Embedded picture roles (ID3 APIC numbering).
    MediaType   -- Track media types a container reader can classify.
    ErrorKind   -- Closed error taxonomy, one value per BookError subclass.

Data model:
    Chapter, BookFile, Book are frozen dataclasses. ChapterBuilder is the
    transient, decoder-only form of a Chapter whose title may be unknown.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import timedelta
from enum import IntEnum, StrEnum
from pathlib import Path


class ItemKey(StrEnum):
    ALBUM_TITLE = "album_title"
    ALBUM_TITLE_SORT_ORDER = "album_title_sort_order"
    ORIGINAL_ALBUM_TITLE = "original_album_title"
    TRACK_TITLE = "track_title"
    TRACK_TITLE_SORT_ORDER = "track_title_sort_order"
    TRACK_SUBTITLE = "track_subtitle"
    ALBUM_ARTIST = "album_artist"
    ALBUM_ARTIST_SORT_ORDER = "album_artist_sort_order"
    ORIGINAL_ARTIST = "original_artist"
    TRACK_ARTIST = "track_artist"
    TRACK_ARTIST_SORT_ORDER = "track_artist_sort_order"


class PictureType(IntEnum):
    OTHER = 0
    ICON = 1
    OTHER_ICON = 2
    COVER_FRONT = 3
    COVER_BACK = 4
    LEAFLET = 5
    MEDIA = 6
    LEAD_ARTIST = 7
    ARTIST = 8
    CONDUCTOR = 9
    BAND = 10
    COMPOSER = 11
    LYRICIST = 12
    RECORDING_LOCATION = 13
    DURING_RECORDING = 14
    DURING_PERFORMANCE = 15
    SCREEN_CAPTURE = 16
    BRIGHT_FISH = 17
    ILLUSTRATION = 18
    BAND_LOGO = 19
    PUBLISHER_LOGO = 20


class MediaType(StrEnum):
    H264 = "h264"
    H265 = "h265"
    VP9 = "vp9"
    AAC = "aac"
    TTXT = "ttxt"


class ErrorKind(StrEnum):
    NOT_A_DIRECTORY = "not_a_directory"
    NOT_A_FILE = "not_a_file"
    EMPTY_FOLDER = "empty_folder"
    MIXED_FILES_IN_FOLDER = "mixed_files_in_folder"
    NO_PARENT_DIRECTORY = "no_parent_directory"
    PRIMARY_TAG_MISSING = "primary_tag_missing"
    NO_CHAPTER_TRACK = "no_chapter_track"
    CONTAINER_DECODE = "container_decode"
    TAG_DECODE = "tag_decode"


# Fallback chains, highest priority first
CHAPTER_TITLE_KEYS: tuple[ItemKey, ...] = (
    ItemKey.TRACK_TITLE,
    ItemKey.TRACK_TITLE_SORT_ORDER,
    ItemKey.TRACK_SUBTITLE,
)

AUTHOR_KEYS: tuple[ItemKey, ...] = (
    ItemKey.ALBUM_ARTIST,
    ItemKey.ALBUM_ARTIST_SORT_ORDER,
    ItemKey.ORIGINAL_ARTIST,
    ItemKey.TRACK_ARTIST,
    ItemKey.TRACK_ARTIST_SORT_ORDER,
)

BOOK_NAME_KEYS: tuple[ItemKey, ...] = (
    ItemKey.ALBUM_TITLE,
    ItemKey.ALBUM_TITLE_SORT_ORDER,
    ItemKey.ORIGINAL_ALBUM_TITLE,
    ItemKey.TRACK_TITLE,
    ItemKey.TRACK_TITLE_SORT_ORDER,
    ItemKey.TRACK_SUBTITLE,
)

DEFAULT_CHAPTER_TITLE = "Unnamed Chapter"
DEFAULT_AUTHOR = "Uncredited Author"
DEFAULT_BOOK_NAME = "Untitled Book"

# Cover art is picked by role in this order, then first picture of any role
COVER_PICTURE_PRIORITY: tuple[PictureType, ...] = (
    PictureType.COVER_FRONT,
    PictureType.OTHER,
    PictureType.ICON,
    PictureType.ILLUSTRATION,
)

# Chapter text samples: 2-byte length prefix, then text, then a 12-byte encd atom
CHAPTER_TITLE_PREFIX_BYTES = 2
CHAPTER_TITLE_SUFFIX_BYTES = 12

# A folder-of-files book is built from these, one chapter per file
SINGLE_CHAPTER_EXTENSION = ".mp3"


def _duration_dict(duration: timedelta) -> dict[str, int]:
    """Split a timedelta into whole seconds and nanoseconds."""
    micros = duration // timedelta(microseconds=1)
    secs, rem = divmod(micros, 1_000_000)
    return {"secs": secs, "nanos": rem * 1000}


@dataclass(frozen=True)
class Chapter:
    title: str
    duration: timedelta

    def to_dict(self) -> dict:
        return {"title": self.title, "duration": _duration_dict(self.duration)}


@dataclass
class ChapterBuilder:
    """A decoded chapter whose title may still be unknown."""

    title: str | None
    duration: timedelta


@dataclass(frozen=True)
class BookFile:
    """One on-disk audio file and the chapters it contributes."""

    chapters: tuple[Chapter, ...]
    path: Path

    def to_dict(self) -> dict:
        return {
            "chapters": [c.to_dict() for c in self.chapters],
            "path": str(self.path),
        }


@dataclass(frozen=True)
class Book:
    """Canonical description of one audiobook.

    ``duration`` always equals the sum of every chapter across ``files``;
    builders recompute it rather than trusting the source format.
    """

    name: str
    author: str
    duration: timedelta
    cover_art_path: Path | None = None
    files: tuple[BookFile, ...] = field(default_factory=tuple)

    def chapters(self) -> list[Chapter]:
        """All chapters of all files, in order."""
        return [chapter for book_file in self.files for chapter in book_file.chapters]

    def to_dict(self) -> dict:
        """JSON-serializable form for the presentation layer."""
        return {
            "name": self.name,
            "author": self.author,
            "duration": _duration_dict(self.duration),
            "cover_art_path": str(self.cover_art_path) if self.cover_art_path else None,
            "files": [f.to_dict() for f in self.files],
        }


def build_chapters(builders: list[ChapterBuilder]) -> list[Chapter]:
    """Resolve builders into chapters, naming untitled ones by position."""
    return [
        Chapter(
            title=b.title if b.title is not None else f"Chapter {idx}",
            duration=b.duration,
        )
        for idx, b in enumerate(builders, start=1)
    ]


def calculate_duration(chapters: list[Chapter] | tuple[Chapter, ...]) -> timedelta:
    """Total duration as the sum of chapter durations."""
    return sum((c.duration for c in chapters), timedelta(0))
