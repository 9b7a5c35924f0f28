"""Tag field resolution with fallback chains.

Tagging conventions vary between encoders: a book name may live in the
album title, its sort form, or only in the track title. Each resolver walks
a fixed key chain and settles on a named default.
"""

from collections.abc import Iterable

from .models import (
    AUTHOR_KEYS,
    BOOK_NAME_KEYS,
    CHAPTER_TITLE_KEYS,
    DEFAULT_AUTHOR,
    DEFAULT_BOOK_NAME,
    DEFAULT_CHAPTER_TITLE,
    ItemKey,
)
from .sources.base import TagSource


def resolve(tag: TagSource, candidate_keys: Iterable[ItemKey], default: str) -> str:
    """Return the first non-empty value among ``candidate_keys``, else ``default``."""
    for key in candidate_keys:
        value = tag.get_string(key)
        if value:
            return value
    return default


def get_chapter_title(tag: TagSource) -> str:
    return resolve(tag, CHAPTER_TITLE_KEYS, DEFAULT_CHAPTER_TITLE)


def get_author(tag: TagSource) -> str:
    return resolve(tag, AUTHOR_KEYS, DEFAULT_AUTHOR)


def get_book_name(tag: TagSource) -> str:
    return resolve(tag, BOOK_NAME_KEYS, DEFAULT_BOOK_NAME)
