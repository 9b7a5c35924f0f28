"""Tag reading via mutagen for MP4 (ilst atoms) and MP3 (ID3 frames)."""

from __future__ import annotations

from datetime import timedelta
from pathlib import Path

import mutagen
from loguru import logger
from mutagen.id3 import ID3
from mutagen.mp4 import MP4Cover, MP4Tags

from ..errors import TagDecodeError
from ..models import ItemKey, PictureType
from .base import Picture, TaggedFile, TagSource

log = logger.bind(stage="tags")

# ItemKey -> ID3v2 frame id
ID3_KEYS: dict[ItemKey, str] = {
    ItemKey.ALBUM_TITLE: "TALB",
    ItemKey.ALBUM_TITLE_SORT_ORDER: "TSOA",
    ItemKey.ORIGINAL_ALBUM_TITLE: "TOAL",
    ItemKey.TRACK_TITLE: "TIT2",
    ItemKey.TRACK_TITLE_SORT_ORDER: "TSOT",
    ItemKey.TRACK_SUBTITLE: "TIT3",
    ItemKey.ALBUM_ARTIST: "TPE2",
    ItemKey.ALBUM_ARTIST_SORT_ORDER: "TSO2",
    ItemKey.ORIGINAL_ARTIST: "TOPE",
    ItemKey.TRACK_ARTIST: "TPE1",
    ItemKey.TRACK_ARTIST_SORT_ORDER: "TSOP",
}

# ItemKey -> MP4 ilst atom. MP4 has no original album/artist atoms.
MP4_KEYS: dict[ItemKey, str] = {
    ItemKey.ALBUM_TITLE: "\xa9alb",
    ItemKey.ALBUM_TITLE_SORT_ORDER: "soal",
    ItemKey.TRACK_TITLE: "\xa9nam",
    ItemKey.TRACK_TITLE_SORT_ORDER: "sonm",
    ItemKey.TRACK_SUBTITLE: "----:com.apple.iTunes:SUBTITLE",
    ItemKey.ALBUM_ARTIST: "aART",
    ItemKey.ALBUM_ARTIST_SORT_ORDER: "soaa",
    ItemKey.TRACK_ARTIST: "\xa9ART",
    ItemKey.TRACK_ARTIST_SORT_ORDER: "soar",
}

_MP4_COVER_MIME = {
    MP4Cover.FORMAT_JPEG: "image/jpeg",
    MP4Cover.FORMAT_PNG: "image/png",
}


class ID3TagSource(TagSource):
    """TagSource over a mutagen ID3 tag."""

    def __init__(self, tags: ID3) -> None:
        self._tags = tags

    def get_string(self, key: ItemKey) -> str | None:
        frame_id = ID3_KEYS.get(key)
        if frame_id is None:
            return None
        for frame in self._tags.getall(frame_id):
            if frame.text:
                return str(frame.text[0])
        return None

    def pictures(self) -> list[Picture]:
        return [
            Picture(
                picture_type=PictureType(int(frame.type)),
                data=frame.data,
                mime_type=frame.mime,
            )
            for frame in self._tags.getall("APIC")
        ]


class MP4TagSource(TagSource):
    """TagSource over a mutagen MP4 ilst tag.

    ``covr`` atoms carry no picture role, so every cover is reported as
    PictureType.OTHER.
    """

    def __init__(self, tags: MP4Tags) -> None:
        self._tags = tags

    def get_string(self, key: ItemKey) -> str | None:
        atom = MP4_KEYS.get(key)
        if atom is None:
            return None
        values = self._tags.get(atom) or []
        for value in values:
            # Freeform atoms hold raw bytes
            if isinstance(value, bytes):
                return value.decode("utf-8", errors="replace")
            return str(value)
        return None

    def pictures(self) -> list[Picture]:
        return [
            Picture(
                picture_type=PictureType.OTHER,
                data=bytes(cover),
                mime_type=_MP4_COVER_MIME.get(cover.imageformat, ""),
            )
            for cover in self._tags.get("covr") or []
        ]


def tag_source_for(tags) -> TagSource | None:
    """Wrap a mutagen tag object, or return None if there is none."""
    if tags is None:
        return None
    if isinstance(tags, ID3):
        return ID3TagSource(tags)
    if isinstance(tags, MP4Tags):
        return MP4TagSource(tags)
    raise TagDecodeError(f"Unsupported tag format: {type(tags).__name__}")


def read_tagged_file(path: Path) -> TaggedFile:
    """Read the primary tag and media duration of an audio file.

    Raises:
        TagDecodeError: mutagen could not open or recognize the file, or the
            file uses a tag format other than ID3 or MP4.
    """
    try:
        audio = mutagen.File(path)
    except (mutagen.MutagenError, OSError) as e:
        raise TagDecodeError(f"Failed to read tags from {path}: {e}") from e

    if audio is None:
        raise TagDecodeError(f"Unrecognized audio format: {path}")

    tag = tag_source_for(audio.tags)
    duration = timedelta(seconds=audio.info.length)
    log.debug(
        f"Read {type(audio).__name__} tags from {path.name}: "
        f"primary_tag={tag is not None} duration={duration}"
    )
    return TaggedFile(tag=tag, duration=duration)
