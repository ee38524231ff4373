"""Shared fakes for scheduler, recorder and pipeline tests."""

from __future__ import annotations

import asyncio

import numpy as np
import pytest

from livedetect.pipeline.errors import EncoderError, FinalizeFailed


def _make_raw(rows, num_classes=2, channels_first=True):
    """Build a detector output from ``(cx, cy, w, h, class_id, score)`` rows."""
    data = np.zeros((1, 4 + num_classes, len(rows)), dtype=np.float32)
    for i, (cx, cy, w, h, class_id, score) in enumerate(rows):
        data[0, :4, i] = (cx, cy, w, h)
        data[0, 4 + class_id, i] = score
    if channels_first:
        return data
    return np.ascontiguousarray(data.transpose(0, 2, 1))


class FakeSource:
    """In-memory frame source; ``close`` mimics a stopped camera."""

    def __init__(self, frame=None, width=64, height=48, live=True):
        self.frame = frame
        self._width = width
        self._height = height
        self._live = live
        self.closed = False
        self.error: Exception | None = None

    @property
    def width(self):
        return self._width

    @property
    def height(self):
        return self._height

    @property
    def is_live(self):
        return self._live

    def current_frame(self):
        if self.error is not None:
            raise self.error
        return self.frame

    def close(self):
        self.closed = True
        self._width = 0
        self._height = 0
        self._live = False


class FakeEngine:
    """Detector stand-in returning a canned output, optionally held by a gate."""

    def __init__(self, output, input_size=(64, 64), num_classes=2, delay=0.0):
        self.output = output
        self._input_size = input_size
        self._num_classes = num_classes
        self.delay = delay
        self.gate: asyncio.Event | None = None
        self.error: Exception | None = None
        self.calls = 0
        self.tensors = []

    @property
    def input_size(self):
        return self._input_size

    @property
    def num_classes(self):
        return self._num_classes

    async def infer(self, tensor):
        self.calls += 1
        self.tensors.append(tensor.shape)
        if self.gate is not None:
            await self.gate.wait()
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return self.output


class FakeWriter:
    """Records encoder calls instead of producing a container."""

    def __init__(self, config=None):
        self.config = config
        self.encoded = []
        self.fail_on = set()
        self.flushed = False
        self.finalized = False
        self.fail_finalize = False

    def encode(self, image, timestamp_us, *, keyframe):
        if len(self.encoded) in self.fail_on:
            self.fail_on.discard(len(self.encoded))
            raise EncoderError("codec rejected frame")
        self.encoded.append((timestamp_us, keyframe, image.shape))

    def flush(self):
        self.flushed = True

    def finalize(self):
        if self.fail_finalize:
            raise FinalizeFailed("trailer write failed")
        self.finalized = True
        return b"fake-mp4"


class CollectingExporter:
    def __init__(self):
        self.exports = []

    def export(self, data, filename):
        self.exports.append((data, filename))


@pytest.fixture
def make_raw():
    """Factory for raw detector outputs."""
    return _make_raw


@pytest.fixture
def person_raw():
    """One person box centered in a 64x64 model input plus a distant car."""
    return _make_raw([(32, 32, 20, 30, 0, 0.9), (8, 8, 6, 6, 1, 0.6)])


@pytest.fixture
def source_frame():
    return np.full((48, 64, 3), 100, dtype=np.uint8)


@pytest.fixture
def fake_writer():
    return FakeWriter()


@pytest.fixture
def exporter():
    return CollectingExporter()


@pytest.fixture
def engine(person_raw):
    return FakeEngine(person_raw)


@pytest.fixture
def source(source_frame):
    return FakeSource(source_frame)
