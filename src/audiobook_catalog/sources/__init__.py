"""Tag and container readers behind the TagSource/ContainerSource interfaces.

Modules:
    base -- Capability interfaces (TagSource, ContainerSource, Track) and the
            value types they return (Picture, Sample, TaggedFile).
    tags -- mutagen-backed TagSource for ID3 (MP3) and ilst (MP4) tags.
            read_tagged_file() returns the primary tag plus media duration.
    mp4  -- MP4/M4B box reader. Enumerates tracks, classifies them by sample
            entry, and reads samples with times converted to milliseconds.
"""

from .base import ContainerSource, Picture, Sample, TaggedFile, TagSource, Track

__all__ = [
    "ContainerSource",
    "Picture",
    "Sample",
    "TagSource",
    "TaggedFile",
    "Track",
]
