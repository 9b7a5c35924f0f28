"""Tests for models.py -- data model, chapter resolution, duration invariants."""

import dataclasses
from datetime import timedelta
from pathlib import Path

import pytest

from audiobook_catalog.models import (
    AUTHOR_KEYS,
    BOOK_NAME_KEYS,
    CHAPTER_TITLE_KEYS,
    Book,
    BookFile,
    Chapter,
    ChapterBuilder,
    ItemKey,
    build_chapters,
    calculate_duration,
)


class TestBuildChapters:
    def test_untitled_entries_named_by_position(self):
        builders = [
            ChapterBuilder(title=None, duration=timedelta(seconds=10)),
            ChapterBuilder(title="Prologue", duration=timedelta(seconds=20)),
            ChapterBuilder(title=None, duration=timedelta(seconds=30)),
        ]
        chapters = build_chapters(builders)
        assert [c.title for c in chapters] == ["Chapter 1", "Prologue", "Chapter 3"]

    @pytest.mark.parametrize("n", [1, 5, 12])
    def test_all_untitled(self, n: int):
        builders = [ChapterBuilder(title=None, duration=timedelta(0)) for _ in range(n)]
        assert [c.title for c in build_chapters(builders)] == [
            f"Chapter {i}" for i in range(1, n + 1)
        ]

    def test_keeps_durations(self):
        builders = [ChapterBuilder(title="A", duration=timedelta(milliseconds=1500))]
        assert build_chapters(builders)[0].duration == timedelta(milliseconds=1500)

    def test_empty(self):
        assert build_chapters([]) == []


class TestCalculateDuration:
    def test_sums_chapters(self):
        chapters = [
            Chapter("a", timedelta(seconds=1.5)),
            Chapter("b", timedelta(minutes=2)),
        ]
        assert calculate_duration(chapters) == timedelta(seconds=121.5)

    def test_no_chapters_is_zero(self):
        assert calculate_duration([]) == timedelta(0)


class TestBook:
    def _book(self) -> Book:
        files = (
            BookFile(chapters=(Chapter("One", timedelta(seconds=60)),), path=Path("/b/1.mp3")),
            BookFile(
                chapters=(
                    Chapter("Two", timedelta(seconds=30)),
                    Chapter("Three", timedelta(microseconds=1_500_001)),
                ),
                path=Path("/b/2.mp3"),
            ),
        )
        return Book(
            name="Book",
            author="Author",
            duration=calculate_duration([c for f in files for c in f.chapters]),
            cover_art_path=Path("/b/cover_Book.jpg"),
            files=files,
        )

    def test_chapters_flattens_in_order(self):
        assert [c.title for c in self._book().chapters()] == ["One", "Two", "Three"]

    def test_is_frozen(self):
        book = self._book()
        with pytest.raises(dataclasses.FrozenInstanceError):
            book.name = "Other"  # type: ignore[misc]

    def test_to_dict(self):
        data = self._book().to_dict()
        assert data["name"] == "Book"
        assert data["author"] == "Author"
        assert data["cover_art_path"] == "/b/cover_Book.jpg"
        assert data["duration"] == {"secs": 91, "nanos": 500_001_000}
        assert data["files"][1]["path"] == "/b/2.mp3"
        assert data["files"][1]["chapters"][0] == {
            "title": "Two",
            "duration": {"secs": 30, "nanos": 0},
        }

    def test_to_dict_without_cover(self):
        book = dataclasses.replace(self._book(), cover_art_path=None)
        assert book.to_dict()["cover_art_path"] is None


class TestFallbackChains:
    def test_chapter_title_chain(self):
        assert CHAPTER_TITLE_KEYS == (
            ItemKey.TRACK_TITLE,
            ItemKey.TRACK_TITLE_SORT_ORDER,
            ItemKey.TRACK_SUBTITLE,
        )

    def test_author_prefers_album_artist(self):
        assert AUTHOR_KEYS[0] == ItemKey.ALBUM_ARTIST
        assert AUTHOR_KEYS[-1] == ItemKey.TRACK_ARTIST_SORT_ORDER

    def test_book_name_prefers_album_title(self):
        assert BOOK_NAME_KEYS[0] == ItemKey.ALBUM_TITLE
        assert ItemKey.TRACK_SUBTITLE in BOOK_NAME_KEYS
