"""Shared fakes and fixture builders for catalog tests."""

import struct
from datetime import timedelta
from pathlib import Path

import pytest

from audiobook_catalog.errors import UnsupportedMediaTypeError
from audiobook_catalog.models import ItemKey, MediaType
from audiobook_catalog.sources.base import (
    ContainerSource,
    Picture,
    Sample,
    TaggedFile,
    TagSource,
    Track,
)


class FakeTag(TagSource):
    def __init__(self, values: dict[ItemKey, str] | None = None, pictures: list[Picture] | None = None):
        self.values = dict(values or {})
        self._pictures = list(pictures or [])

    def get_string(self, key: ItemKey) -> str | None:
        return self.values.get(key)

    def pictures(self) -> list[Picture]:
        return list(self._pictures)


class FakeTrack(Track):
    """A track whose samples may include exceptions to raise on read."""

    def __init__(self, track_id: int, media: MediaType | None = None, samples=()):
        self._track_id = track_id
        self._media = media
        self.samples = list(samples)

    @property
    def track_id(self) -> int:
        return self._track_id

    @property
    def sample_count(self) -> int:
        return len(self.samples)

    def media_type(self) -> MediaType:
        if self._media is None:
            raise UnsupportedMediaTypeError("text")
        return self._media


class FakeContainer(ContainerSource):
    def __init__(self, tracks: list[FakeTrack]):
        self._tracks = list(tracks)
        self.closed = False

    def tracks(self) -> list[Track]:
        return list(self._tracks)

    def read_sample(self, track_id: int, sample_id: int) -> Sample | None:
        track = {t.track_id: t for t in self._tracks}[track_id]
        if not 1 <= sample_id <= len(track.samples):
            return None
        sample = track.samples[sample_id - 1]
        if isinstance(sample, Exception):
            raise sample
        return sample

    def close(self) -> None:
        self.closed = True


def chapter_payload(title: bytes) -> bytes:
    """Wrap title bytes the way M4B chapter text samples are stored."""
    encd = struct.pack(">I", 12) + b"encd" + struct.pack(">I", 0x100)
    return struct.pack(">H", len(title)) + title + encd


# -- Minimal MP4 writer --


def _box(kind: bytes, payload: bytes) -> bytes:
    return struct.pack(">I", 8 + len(payload)) + kind + payload


def _full_box(kind: bytes, payload: bytes, version: int = 0) -> bytes:
    return _box(kind, struct.pack(">I", version << 24) + payload)


def _trak(track: dict, chunk_offset: int) -> bytes:
    sizes = [len(p) for p in track["payloads"]]
    durations = track["durations"]
    tkhd = _full_box(b"tkhd", struct.pack(">III", 0, 0, track["track_id"]) + b"\x00" * 68)
    mdhd = _full_box(
        b"mdhd",
        struct.pack(">IIII", 0, 0, track["timescale"], sum(durations)) + b"\x00" * 4,
    )
    hdlr = _full_box(b"hdlr", struct.pack(">I", 0) + track["handler"] + b"\x00" * 13)
    stsd = _full_box(b"stsd", struct.pack(">I", 1) + _box(track["entry"], b"\x00" * 8))
    stts = _full_box(
        b"stts",
        struct.pack(">I", len(durations))
        + b"".join(struct.pack(">II", 1, d) for d in durations),
    )
    # Every sample in a single chunk
    stsc = _full_box(b"stsc", struct.pack(">I", 1) + struct.pack(">III", 1, len(sizes), 1))
    stsz = _full_box(
        b"stsz",
        struct.pack(">II", 0, len(sizes)) + b"".join(struct.pack(">I", s) for s in sizes),
    )
    stco = _full_box(b"stco", struct.pack(">II", 1, chunk_offset))
    stbl = _box(b"stbl", stsd + stts + stsc + stsz + stco)
    mdia = _box(b"mdia", mdhd + hdlr + _box(b"minf", stbl))
    return _box(b"trak", tkhd + mdia)


def write_mp4(path: Path, tracks: list[dict]) -> Path:
    """Write an ftyp/moov/mdat file with the given tracks.

    Each track dict has track_id, handler, entry, timescale, durations
    (timescale units) and payloads (bytes per sample).
    """
    ftyp = _box(b"ftyp", b"M4B " + struct.pack(">I", 0) + b"M4B isom")

    def moov_at(base: int) -> bytes:
        traks = []
        offset = base
        for track in tracks:
            traks.append(_trak(track, offset))
            offset += sum(len(p) for p in track["payloads"])
        mvhd = _full_box(b"mvhd", b"\x00" * 96)
        return _box(b"moov", mvhd + b"".join(traks))

    mdat_data_start = len(ftyp) + len(moov_at(0)) + 8
    moov = moov_at(mdat_data_start)
    mdat = _box(b"mdat", b"".join(p for t in tracks for p in t["payloads"]))
    path.write_bytes(ftyp + moov + mdat)
    return path


def audio_track(track_id: int = 1) -> dict:
    return {
        "track_id": track_id,
        "handler": b"soun",
        "entry": b"mp4a",
        "timescale": 44100,
        "durations": [1024, 1024],
        "payloads": [b"\x01" * 16, b"\x02" * 16],
    }


def chapter_track(titles: list[bytes], durations: list[int], track_id: int = 2, timescale: int = 1000) -> dict:
    return {
        "track_id": track_id,
        "handler": b"text",
        "entry": b"text",
        "timescale": timescale,
        "durations": durations,
        "payloads": [chapter_payload(t) if t else b"" for t in titles],
    }


@pytest.fixture
def fake_tag():
    return FakeTag


@pytest.fixture
def fake_track():
    return FakeTrack


@pytest.fixture
def fake_container():
    return FakeContainer


@pytest.fixture
def tagged():
    """Factory for TaggedFile results."""

    def _make(tag: TagSource | None, seconds: float = 3600.0) -> TaggedFile:
        return TaggedFile(tag=tag, duration=timedelta(seconds=seconds))

    return _make


@pytest.fixture
def mp4_writer():
    return write_mp4


@pytest.fixture
def make_payload():
    return chapter_payload


@pytest.fixture
def audio_track_spec():
    return audio_track


@pytest.fixture
def chapter_track_spec():
    return chapter_track
