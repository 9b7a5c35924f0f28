"""Capability interfaces the decoders are written against.

TagSource and ContainerSource isolate decoder logic from the libraries that
read tags and container structure, so either can be swapped without
touching the decoders.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import timedelta

from ..models import ItemKey, MediaType, PictureType


@dataclass(frozen=True)
class Picture:
    """An embedded picture and its declared role."""

    picture_type: PictureType
    data: bytes
    mime_type: str = ""


@dataclass(frozen=True)
class Sample:
    """One sample read from a container track.

    Times are in milliseconds regardless of the track's own timescale.
    ``duration_ms`` is zero only when the stored duration is zero.
    """

    payload: bytes
    duration_ms: int
    start_time_ms: int


class TagSource(ABC):
    """Field lookup and picture enumeration over one metadata tag."""

    @abstractmethod
    def get_string(self, key: ItemKey) -> str | None:
        """Return the first text value stored under ``key``, or None.

        Keys the underlying format has no field for return None.
        """
        ...

    @abstractmethod
    def pictures(self) -> list[Picture]:
        """All embedded pictures, in stored order."""
        ...

    def get_picture_type(self, picture_type: PictureType) -> Picture | None:
        """First picture with the given role, or None."""
        for pic in self.pictures():
            if pic.picture_type == picture_type:
                return pic
        return None


@dataclass(frozen=True)
class TaggedFile:
    """Result of reading a file's tags.

    ``tag`` is the primary tag (None when the file carries none) and
    ``duration`` is the media duration the tag reader reports.
    """

    tag: TagSource | None
    duration: timedelta


class Track(ABC):
    """One stream of a container file."""

    @property
    @abstractmethod
    def track_id(self) -> int: ...

    @property
    @abstractmethod
    def sample_count(self) -> int: ...

    @abstractmethod
    def media_type(self) -> MediaType:
        """Classify the track.

        Raises:
            UnsupportedMediaTypeError: The track does not map to a known
                media type (chapter text tracks land here).
        """
        ...


class ContainerSource(ABC):
    """Track enumeration and sample access over an open container file."""

    @abstractmethod
    def tracks(self) -> list[Track]:
        """Tracks in file order."""
        ...

    @abstractmethod
    def read_sample(self, track_id: int, sample_id: int) -> Sample | None:
        """Read a sample by one-based index.

        Returns None when the track has no such sample.

        Raises:
            ContainerDecodeError: The sample's bytes could not be read.
        """
        ...

    def close(self) -> None:
        """Release the underlying file handle."""

    def __enter__(self) -> ContainerSource:
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()
