from __future__ import annotations

import os
import wave

os.environ.setdefault("SDL_VIDEODRIVER", "dummy")
os.environ.setdefault("SDL_AUDIODRIVER", "dummy")

import numpy as np
import pygame
import pytest

from assets import AssetCache, AssetLibrary
from events import EventManager
from timeline import AnimationType, TimelineSegment, TransitionType

pygame.init()


# ── fakes ──────────────────────────────────────────────────────────────────
class FakeTransport:
    """Stands in for the GStreamer transport; time moves only when told to."""

    def __init__(self, source_path: str = "voice.wav", duration: float = 3.0):
        self.source_path = source_path
        self.duration = duration
        self.paused = True
        self.ended = False
        self.routing_graph = None
        self._pos = 0.0
        self.seeks: list[float] = []

    @property
    def position(self) -> float:
        return self._pos

    def play(self):
        if self.ended:
            self._pos = 0.0
        self.paused = False
        self.ended = False

    def pause(self):
        self.paused = True

    def seek(self, sec: float):
        self.ended = False
        self._pos = sec
        self.seeks.append(sec)

    def close(self):
        self.paused = True

    def advance(self, dt: float):
        self._pos = min(self.duration, self._pos + dt)

    def finish(self, events: EventManager):
        self._pos = self.duration
        self.paused = True
        self.ended = True
        events.post({"type": "ended"})


class FakeRecorder:
    instances: list["FakeRecorder"] = []

    def __init__(self, width, height, fps=30, audio=True):
        self.size = (width, height)
        self.fps = fps
        self.state = "inactive"
        self.frames: list[float] = []
        self.audio_batches = 0
        self.discarded = False
        self.ondataavailable = None
        self.onstop = None
        FakeRecorder.instances.append(self)

    def start(self):
        self.state = "recording"

    def add_frame(self, rgb, t):
        self.frames.append(t)
        return True

    def add_audio(self, frames):
        self.audio_batches += 1

    def stop(self):
        self.state = "inactive"
        self.ondataavailable(b"\x1a\x45\xdf\xa3")
        self.ondataavailable(b"payload")
        self.onstop()

    def discard(self):
        self.state = "inactive"
        self.discarded = True


class FakeGraph:
    built: list["FakeGraph"] = []

    def __init__(self, transport):
        self.transport = transport
        self.rewinds = 0
        self.reads: list[float] = []
        transport.routing_graph = self
        FakeGraph.built.append(self)

    def rewind(self):
        self.rewinds += 1

    def read_until(self, t):
        self.reads.append(t)
        return []

    def drain(self):
        return []


@pytest.fixture(autouse=True)
def _reset_fakes():
    FakeRecorder.instances.clear()
    FakeGraph.built.clear()
    yield


# ── files ──────────────────────────────────────────────────────────────────
@pytest.fixture
def make_image(tmp_path):
    def _make(w=160, h=90, color=(255, 0, 0), name="img.bmp") -> str:
        surf = pygame.Surface((w, h))
        surf.fill(color)
        path = tmp_path / name
        pygame.image.save(surf, str(path))
        return str(path)
    return _make


@pytest.fixture
def wav_file(tmp_path):
    """One second of a 440 Hz stereo tone at 44.1 kHz."""
    rate = 44100
    t = np.arange(rate) / rate
    tone = (0.2 * np.sin(2 * np.pi * 440 * t) * 32767).astype(np.int16)
    pcm = np.repeat(tone[:, None], 2, axis=1)
    path = tmp_path / "voice.wav"
    with wave.open(str(path), "wb") as w:
        w.setnchannels(2)
        w.setsampwidth(2)
        w.setframerate(rate)
        w.writeframes(pcm.tobytes())
    return str(path)


# ── session pieces ─────────────────────────────────────────────────────────
@pytest.fixture
def library():
    return AssetLibrary()


@pytest.fixture
def cache(library):
    return AssetCache(library)


@pytest.fixture
def red_asset(library, cache, make_image):
    item = library.add(make_image(color=(255, 0, 0), name="red.bmp"))
    assert cache.load_now(item.id) is not None
    return item


@pytest.fixture
def events():
    return EventManager()


@pytest.fixture
def transport():
    return FakeTransport()


def segment(start, end, asset_id="a", caption="", animation=AnimationType.STATIC,
            transition=TransitionType.CUT) -> TimelineSegment:
    return TimelineSegment(start, end, asset_id, caption, animation, transition)
