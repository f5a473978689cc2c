"""
audio_graph.py

Audio routing for capture.

The transport keeps playing through its own sink (the "speakers" branch);
the graph adds a second branch, the capture tap, that decodes the same source
with PyAV and hands out resampled frames in step with the clock.  One graph
is built per transport and stays attached for the transport's lifetime; a
second build against the same transport is an error, not a silent reuse.
"""

from __future__ import annotations

import logging
import math
from typing import Iterator, List, Optional

import av
from av.error import FFmpegError

import config

logger = logging.getLogger(__name__)


class RoutingGraphError(RuntimeError):
    """Capture routing could not be built for the transport."""


class AudioRoutingGraph:
    def __init__(self, transport):
        if getattr(transport, "routing_graph", None) is not None:
            raise RoutingGraphError("transport already has a routing graph")
        src = getattr(transport, "source_path", "")
        if not src:
            raise RoutingGraphError("transport has no source loaded")

        try:
            self._container = av.open(src)
        except (FFmpegError, OSError) as exc:
            raise RoutingGraphError(f"cannot open {src}: {exc}") from exc

        self._stream = next((s for s in self._container.streams if s.type == "audio"), None)
        if self._stream is None:
            self._container.close()
            raise RoutingGraphError(f"{src} has no audio stream")

        self.transport = transport
        self.source_path = src
        self.closed = False
        self._decoder: Optional[Iterator[av.AudioFrame]] = None
        self._resampler: Optional[av.AudioResampler] = None
        self._until = 0.0
        self._exhausted = False
        self.rewind()

        transport.routing_graph = self
        logger.info("[audio_graph] routed %s → speakers + capture", src)

    # ── capture tap ────────────────────────────────────────────────────────
    def rewind(self) -> None:
        """Restart the capture tap at 0 s (the clock is reset on arm)."""
        self._ensure_open()
        self._container.seek(0)
        self._decoder = self._container.decode(self._stream)
        self._resampler = av.AudioResampler(
            format=config.CAPTURE_AUDIO_FORMAT,
            layout=config.CAPTURE_AUDIO_LAYOUT,
            rate=config.CAPTURE_AUDIO_RATE,
        )
        self._until = 0.0
        self._exhausted = False

    @property
    def position(self) -> float:
        """Seconds of source audio handed out so far."""
        return self._until

    def read_until(self, t: float) -> List[av.AudioFrame]:
        """Resampled frames covering source time up to at least *t*."""
        self._ensure_open()
        out: List[av.AudioFrame] = []
        try:
            while not self._exhausted and self._until < t:
                frame = next(self._decoder, None)
                if frame is None:
                    self._exhausted = True
                    out.extend(self._resampler.resample(None))
                    break
                self._until += frame.samples / frame.sample_rate
                out.extend(self._resampler.resample(frame))
        except FFmpegError as exc:
            raise RoutingGraphError(f"audio decode failed: {exc}") from exc
        return out

    def drain(self) -> List[av.AudioFrame]:
        return self.read_until(math.inf)

    # ── teardown ───────────────────────────────────────────────────────────
    def close(self) -> None:
        if self.closed:
            return
        self._container.close()
        self.closed = True
        if getattr(self.transport, "routing_graph", None) is self:
            self.transport.routing_graph = None

    def _ensure_open(self) -> None:
        if self.closed:
            raise RoutingGraphError("routing graph already closed")
