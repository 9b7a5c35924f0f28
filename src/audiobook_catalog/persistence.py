"""Hand-off records for the persistence layer.

The book store keeps (name, length, file_location) and stores length as a
Postgres-style interval of months, days, and microseconds. Intervals with a
months component have no fixed length and are rejected.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta
from pathlib import Path
from typing import NamedTuple

from .models import Book

MICROSECONDS_PER_DAY = 24 * 3600 * 1_000_000


class Interval(NamedTuple):
    months: int
    days: int
    microseconds: int


def timedelta_to_microseconds(td: timedelta) -> int:
    """Exact integer microseconds of a timedelta."""
    return td // timedelta(microseconds=1)


def timedelta_to_interval(td: timedelta) -> Interval:
    """Split a timedelta into whole days and leftover microseconds."""
    days, micros = divmod(timedelta_to_microseconds(td), MICROSECONDS_PER_DAY)
    return Interval(months=0, days=days, microseconds=micros)


def interval_to_timedelta(interval: Interval) -> timedelta:
    """Convert an interval back to a timedelta.

    Raises:
        ValueError: The interval has a non-zero months component.
    """
    if interval.months != 0:
        raise ValueError(f"Intervals with months are not supported: {interval}")
    return timedelta(
        microseconds=interval.days * MICROSECONDS_PER_DAY + interval.microseconds
    )


@dataclass(frozen=True)
class BookRecord:
    """Row-shaped view of a Book for the books table."""

    name: str
    length: timedelta
    file_location: Path

    @classmethod
    def from_book(cls, book: Book) -> BookRecord:
        """Record a Book under the path of its first file."""
        if not book.files:
            raise ValueError(f"Book {book.name!r} has no files")
        return cls(name=book.name, length=book.duration, file_location=book.files[0].path)

    @property
    def interval(self) -> Interval:
        return timedelta_to_interval(self.length)

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "length_us": timedelta_to_microseconds(self.length),
            "file_location": str(self.file_location),
        }
