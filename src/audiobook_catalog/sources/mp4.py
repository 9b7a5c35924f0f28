"""MP4/M4B container reading -- track enumeration and sample access.

Only the boxes needed to locate and read samples are parsed:

    moov/trak/tkhd            track id
    moov/trak/mdia/mdhd       timescale
    moov/trak/mdia/minf/stbl  stsd (sample entry), stts, stsc, stsz, stco/co64

The whole moov box is read into memory; sample payloads are read from the
file on demand. Sample times are converted from the track timescale to
milliseconds before they leave this module.
"""

from __future__ import annotations

import struct
from dataclasses import dataclass, field
from pathlib import Path
from typing import BinaryIO, Iterator

from loguru import logger

from ..errors import ContainerDecodeError, UnsupportedMediaTypeError
from ..models import MediaType
from .base import ContainerSource, Sample, Track

log = logger.bind(stage="mp4")

# Sample entry fourcc -> media type. Anything else fails classification.
SAMPLE_ENTRY_MEDIA_TYPES: dict[str, MediaType] = {
    "avc1": MediaType.H264,
    "hev1": MediaType.H265,
    "hvc1": MediaType.H265,
    "vp09": MediaType.VP9,
    "mp4a": MediaType.AAC,
    "tx3g": MediaType.TTXT,
}

_HEADER = struct.Struct(">I4s")
_U32 = struct.Struct(">I")
_U64 = struct.Struct(">Q")


def _iter_boxes(data: bytes, start: int = 0, end: int | None = None) -> Iterator[tuple[str, int, int]]:
    """Yield (box_type, payload_start, payload_end) for boxes in data[start:end]."""
    end = len(data) if end is None else end
    pos = start
    while pos + _HEADER.size <= end:
        size, raw_type = _HEADER.unpack_from(data, pos)
        header = _HEADER.size
        if size == 1:
            if pos + 16 > end:
                raise ContainerDecodeError("Truncated 64-bit box header")
            (size,) = _U64.unpack_from(data, pos + 8)
            header = 16
        elif size == 0:
            size = end - pos
        if size < header or pos + size > end:
            raise ContainerDecodeError(
                f"Invalid size {size} for box {raw_type!r} at offset {pos}"
            )
        yield raw_type.decode("latin-1"), pos + header, pos + size
        pos += size


def _find_box(data: bytes, path: list[str], start: int = 0, end: int | None = None) -> tuple[int, int] | None:
    """Follow a path of nested box types, returning the last payload span."""
    for box_type, p_start, p_end in _iter_boxes(data, start, end):
        if box_type != path[0]:
            continue
        if len(path) == 1:
            return p_start, p_end
        return _find_box(data, path[1:], p_start, p_end)
    return None


def _require_box(data: bytes, path: list[str], start: int, end: int) -> tuple[int, int]:
    span = _find_box(data, path, start, end)
    if span is None:
        raise ContainerDecodeError(f"Missing box: {'/'.join(path)}")
    return span


def _check_payload(box_type: str, start: int, end: int, needed: int) -> None:
    if end - start < needed:
        raise ContainerDecodeError(
            f"Truncated {box_type} box: {end - start} bytes, need {needed}"
        )


def _full_box_version(data: bytes, box_type: str, start: int, end: int) -> int:
    _check_payload(box_type, start, end, 4)
    return data[start]


def _read_table(data: bytes, box_type: str, start: int, end: int, fmt: str) -> list[tuple]:
    """Read a full box holding ``entry_count`` followed by fixed-size entries."""
    entry = struct.Struct(fmt)
    _check_payload(box_type, start, end, 8)
    (count,) = _U32.unpack_from(data, start + 4)
    offset = start + 8
    if offset + count * entry.size > end:
        raise ContainerDecodeError(f"{box_type} table of {count} entries runs past end of box")
    return [entry.unpack_from(data, offset + i * entry.size) for i in range(count)]


@dataclass
class Mp4Track(Track):
    """A parsed trak box."""

    _track_id: int
    timescale: int
    handler_type: str
    sample_entry: str
    # stts: (sample_count, sample_delta)
    time_to_sample: list[tuple[int, int]] = field(default_factory=list)
    # stsc: (first_chunk, samples_per_chunk, sample_description_index)
    sample_to_chunk: list[tuple[int, int, int]] = field(default_factory=list)
    sample_sizes: list[int] = field(default_factory=list)
    chunk_offsets: list[int] = field(default_factory=list)

    @property
    def track_id(self) -> int:
        return self._track_id

    @property
    def sample_count(self) -> int:
        return len(self.sample_sizes)

    def media_type(self) -> MediaType:
        try:
            return SAMPLE_ENTRY_MEDIA_TYPES[self.sample_entry]
        except KeyError:
            raise UnsupportedMediaTypeError(self.sample_entry) from None

    def sample_times(self, sample_id: int) -> tuple[int, int]:
        """(start_time, duration) of a one-based sample, in timescale units."""
        elapsed = 0
        remaining = sample_id - 1
        for count, delta in self.time_to_sample:
            if remaining < count:
                return elapsed + remaining * delta, delta
            elapsed += count * delta
            remaining -= count
        raise ContainerDecodeError(
            f"Sample {sample_id} missing from time-to-sample table of track {self.track_id}"
        )

    def sample_offset(self, sample_id: int) -> int:
        """Absolute file offset of a one-based sample."""
        index = sample_id - 1
        first_sample = 0
        for i, (first_chunk, per_chunk, _desc) in enumerate(self.sample_to_chunk):
            if i + 1 < len(self.sample_to_chunk):
                last_chunk = self.sample_to_chunk[i + 1][0] - 1
            else:
                last_chunk = len(self.chunk_offsets)
            run_samples = (last_chunk - first_chunk + 1) * per_chunk
            if per_chunk and index < first_sample + run_samples:
                chunk = first_chunk + (index - first_sample) // per_chunk
                first_in_chunk = index - (index - first_sample) % per_chunk
                if chunk > len(self.chunk_offsets):
                    break
                return self.chunk_offsets[chunk - 1] + sum(
                    self.sample_sizes[first_in_chunk:index]
                )
            first_sample += run_samples
        raise ContainerDecodeError(
            f"Sample {sample_id} missing from sample-to-chunk table of track {self.track_id}"
        )


def _parse_track(data: bytes, start: int, end: int, file_size: int) -> Mp4Track:
    tkhd_start, tkhd_end = _require_box(data, ["tkhd"], start, end)
    if _full_box_version(data, "tkhd", tkhd_start, tkhd_end) == 1:
        _check_payload("tkhd", tkhd_start, tkhd_end, 4 + 16 + 4)
        (track_id,) = _U32.unpack_from(data, tkhd_start + 4 + 16)
    else:
        _check_payload("tkhd", tkhd_start, tkhd_end, 4 + 8 + 4)
        (track_id,) = _U32.unpack_from(data, tkhd_start + 4 + 8)

    mdhd_start, mdhd_end = _require_box(data, ["mdia", "mdhd"], start, end)
    if _full_box_version(data, "mdhd", mdhd_start, mdhd_end) == 1:
        _check_payload("mdhd", mdhd_start, mdhd_end, 4 + 16 + 4)
        (timescale,) = _U32.unpack_from(data, mdhd_start + 4 + 16)
    else:
        _check_payload("mdhd", mdhd_start, mdhd_end, 4 + 8 + 4)
        (timescale,) = _U32.unpack_from(data, mdhd_start + 4 + 8)
    if timescale == 0:
        raise ContainerDecodeError(f"Track {track_id} has a zero timescale")

    hdlr_start, hdlr_end = _require_box(data, ["mdia", "hdlr"], start, end)
    _check_payload("hdlr", hdlr_start, hdlr_end, 12)
    handler_type = data[hdlr_start + 8:hdlr_start + 12].decode("latin-1")

    stbl_start, stbl_end = _require_box(data, ["mdia", "minf", "stbl"], start, end)

    stsd_start, stsd_end = _require_box(data, ["stsd"], stbl_start, stbl_end)
    _check_payload("stsd", stsd_start, stsd_end, 8)
    entries = list(_iter_boxes(data, stsd_start + 8, stsd_end))
    sample_entry = entries[0][0] if entries else ""

    stts_start, stts_end = _require_box(data, ["stts"], stbl_start, stbl_end)
    stsc_start, stsc_end = _require_box(data, ["stsc"], stbl_start, stbl_end)

    stsz_start, stsz_end = _require_box(data, ["stsz"], stbl_start, stbl_end)
    _check_payload("stsz", stsz_start, stsz_end, 12)
    uniform_size, count = struct.unpack_from(">II", data, stsz_start + 4)
    if uniform_size:
        # Every sample must fit in the file
        if uniform_size * count > file_size:
            raise ContainerDecodeError(
                f"stsz lists {count} samples of {uniform_size} bytes, "
                f"more than the {file_size} byte file holds"
            )
        sample_sizes = [uniform_size] * count
    else:
        table_start = stsz_start + 12
        if table_start + count * 4 > stsz_end:
            raise ContainerDecodeError("Sample size table runs past end of box")
        sample_sizes = list(struct.unpack_from(f">{count}I", data, table_start))

    stco = _find_box(data, ["stco"], stbl_start, stbl_end)
    if stco is not None:
        chunk_offsets = [o for (o,) in _read_table(data, "stco", *stco, ">I")]
    else:
        co64 = _require_box(data, ["co64"], stbl_start, stbl_end)
        chunk_offsets = [o for (o,) in _read_table(data, "co64", *co64, ">Q")]

    return Mp4Track(
        _track_id=track_id,
        timescale=timescale,
        handler_type=handler_type,
        sample_entry=sample_entry,
        time_to_sample=_read_table(data, "stts", stts_start, stts_end, ">II"),
        sample_to_chunk=_read_table(data, "stsc", stsc_start, stsc_end, ">III"),
        sample_sizes=sample_sizes,
        chunk_offsets=chunk_offsets,
    )


def _read_moov(fileobj: BinaryIO, file_size: int) -> bytes:
    """Walk top-level boxes and return the moov payload.

    The file must start with an ftyp box.
    """
    pos = 0
    seen_ftyp = False
    while pos + _HEADER.size <= file_size:
        fileobj.seek(pos)
        header = fileobj.read(16)
        if len(header) < _HEADER.size:
            break
        size, raw_type = _HEADER.unpack_from(header)
        box_type = raw_type.decode("latin-1")
        header_size = _HEADER.size
        if size == 1:
            if len(header) < 16:
                raise ContainerDecodeError("Truncated 64-bit box header")
            (size,) = _U64.unpack_from(header, 8)
            header_size = 16
        elif size == 0:
            size = file_size - pos
        if size < header_size or pos + size > file_size:
            raise ContainerDecodeError(
                f"Invalid size {size} for top-level box {raw_type!r} at offset {pos}"
            )
        if pos == 0 and box_type != "ftyp":
            raise ContainerDecodeError(f"Not an MP4 container (first box {raw_type!r})")
        if box_type == "ftyp":
            seen_ftyp = True
        elif box_type == "moov":
            if not seen_ftyp:
                raise ContainerDecodeError("moov box before ftyp box")
            fileobj.seek(pos + header_size)
            payload = fileobj.read(size - header_size)
            if len(payload) != size - header_size:
                raise ContainerDecodeError("Truncated moov box")
            return payload
        pos += size
    raise ContainerDecodeError("No moov box found")


class Mp4Reader(ContainerSource):
    """ContainerSource over an MP4-family file."""

    def __init__(self, fileobj: BinaryIO, file_size: int) -> None:
        self._file = fileobj
        moov = _read_moov(fileobj, file_size)
        self._tracks: dict[int, Mp4Track] = {}
        for box_type, start, end in _iter_boxes(moov):
            if box_type == "trak":
                track = _parse_track(moov, start, end, file_size)
                self._tracks[track.track_id] = track
        log.debug(
            f"Parsed {len(self._tracks)} tracks: "
            + ", ".join(
                f"{t.track_id}={t.handler_type}/{t.sample_entry}"
                for t in self._tracks.values()
            )
        )

    @classmethod
    def open(cls, path: Path) -> Mp4Reader:
        """Open and parse the header of an MP4 file.

        Raises:
            ContainerDecodeError: The file is not a readable MP4 container.
            OSError: The file could not be opened.
        """
        fileobj = open(path, "rb")
        try:
            return cls(fileobj, path.stat().st_size)
        except (struct.error, IndexError) as e:
            fileobj.close()
            raise ContainerDecodeError(f"Malformed MP4 box in {path}: {e}") from e
        except BaseException:
            fileobj.close()
            raise

    def close(self) -> None:
        self._file.close()

    def tracks(self) -> list[Track]:
        return list(self._tracks.values())

    def read_sample(self, track_id: int, sample_id: int) -> Sample | None:
        track = self._tracks.get(track_id)
        if track is None:
            raise ContainerDecodeError(f"No track with id {track_id}")
        if sample_id < 1 or sample_id > track.sample_count:
            return None

        start, duration = track.sample_times(sample_id)
        offset = track.sample_offset(sample_id)
        size = track.sample_sizes[sample_id - 1]

        self._file.seek(offset)
        payload = self._file.read(size)
        if len(payload) != size:
            raise ContainerDecodeError(
                f"Short read for sample {sample_id} of track {track_id}: "
                f"{len(payload)} of {size} bytes"
            )

        return Sample(
            payload=payload,
            # Zero marks a chapter running to the end; shorter-than-1ms stays non-zero
            duration_ms=max(1, duration * 1000 // track.timescale) if duration else 0,
            start_time_ms=start * 1000 // track.timescale,
        )


def open_container(path: Path) -> ContainerSource:
    """Open ``path`` as an MP4 container."""
    return Mp4Reader.open(path)
