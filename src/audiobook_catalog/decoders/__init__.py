"""Per-file decoders.

Decoders:
    container    -- Chaptered MP4/M4B files. Finds the chapter text track
                    (first track with no known media type), decodes each
                    sample's title and duration, recomputes the total, and
                    extracts cover art.
    single_track -- Any tagged file as exactly one chapter, using the tag
                    reader's media duration. No cover art.
"""

from .container import build_from_container
from .single_track import build_from_single_track

__all__ = ["build_from_container", "build_from_single_track"]
