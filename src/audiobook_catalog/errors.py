"""Exception hierarchy for building books from audio files."""

from pathlib import Path

from .models import ErrorKind


class BookError(Exception):
    """Base exception for all catalog errors."""

    kind: ErrorKind


class NotDirectoryError(BookError):
    """Passed a path which wasn't a directory."""

    kind = ErrorKind.NOT_A_DIRECTORY


class NotFileError(BookError):
    """Passed a path which wasn't a regular file."""

    kind = ErrorKind.NOT_A_FILE


class EmptyFolderError(BookError):
    """Folder holds no single-chapter audio files."""

    kind = ErrorKind.EMPTY_FOLDER


class MixedFilesInFolderError(BookError):
    """Folder files disagree on book name or author."""

    kind = ErrorKind.MIXED_FILES_IN_FOLDER

    def __init__(self, expected: tuple[str, str], found: tuple[str, str], path: Path) -> None:
        super().__init__(
            f"{path} belongs to {found[0]!r} by {found[1]!r}, "
            f"expected {expected[0]!r} by {expected[1]!r}"
        )
        self.expected = expected
        self.found = found
        self.path = path


class NoParentDirectoryError(BookError):
    """Cover art target path has no parent directory."""

    kind = ErrorKind.NO_PARENT_DIRECTORY


class PrimaryTagMissingError(BookError):
    """File carries no primary metadata tag."""

    kind = ErrorKind.PRIMARY_TAG_MISSING


class NoChapterTrackError(BookError):
    """Container has no readable chapter track."""

    kind = ErrorKind.NO_CHAPTER_TRACK


class ContainerDecodeError(BookError):
    """The container structure could not be read."""

    kind = ErrorKind.CONTAINER_DECODE


class UnsupportedMediaTypeError(ContainerDecodeError):
    """A track's sample entry does not map to a known media type."""

    def __init__(self, sample_entry: str) -> None:
        super().__init__(f"Unsupported media type: {sample_entry!r}")
        self.sample_entry = sample_entry


class TagDecodeError(BookError):
    """The tag reader could not read the file."""

    kind = ErrorKind.TAG_DECODE
