"""Audiobook Catalog -- describe an audiobook on disk as a Book record.

Core modules:
    builder     -- Public entry points. build_from_file() tries chaptered
                   container decoding and falls back to single-track;
                   build_from_folder() merges a folder of single-chapter MP3s
                   after checking they agree on name and author.
    models      -- Book/BookFile/Chapter dataclasses, tag key enums, fallback
                   chains, and duration invariants.
    errors      -- BookError hierarchy. Every error carries an ErrorKind.
    fields      -- Tag field resolution through fallback chains.
    cover_art   -- Embedded cover art cached as cover_<name>.jpg next to the
                   book. I/O failures degrade to no cover art.
    persistence -- BookRecord and interval conversions for the book store.
    config      -- Configuration via pydantic-settings (CATALOG_* env vars)
                   and loguru setup.
    cli         -- Click CLI printing a Book as JSON or a chapter summary.
    sanitize    -- Filename sanitization for the cover art cache file.

Subpackages:
    sources  -- TagSource/ContainerSource interfaces, mutagen tag reader,
                MP4 box reader.
    decoders -- Container and single-track decoders.
"""

from .builder import build_from_file, build_from_folder
from .models import Book, BookFile, Chapter

__all__ = ["Book", "BookFile", "Chapter", "build_from_file", "build_from_folder"]
