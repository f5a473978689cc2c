"""
capture.py

Capture pipeline: records the composited canvas and the routed audio into a
single WebM artifact.

    IDLE → ARMED → RECORDING → FINALIZING → COMPLETE → IDLE
                 ↘ ERROR → IDLE ↙

One session at a time.  The pipeline listens for the transport's "ended"
event only while ARMED or RECORDING and unsubscribes on every terminal
transition.
"""

from __future__ import annotations

import io
import logging
import os
from dataclasses import dataclass
from enum import Enum
from fractions import Fraction
from typing import Callable, List, Optional

import av
import numpy as np
from av.error import FFmpegError

import config
from audio_graph import AudioRoutingGraph, RoutingGraphError
from playback import CAPTURE, PlaybackClock, Scheduler

logger = logging.getLogger(__name__)


class CaptureError(RuntimeError):
    """A capture session failed; no artifact is produced."""


class RecorderUnavailable(CaptureError):
    """The encoder/muxer could not be set up."""


class CaptureState(Enum):
    IDLE       = "idle"
    ARMED      = "armed"
    RECORDING  = "recording"
    FINALIZING = "finalizing"
    COMPLETE   = "complete"
    ERROR      = "error"


_BUSY = (CaptureState.ARMED, CaptureState.RECORDING, CaptureState.FINALIZING)


@dataclass(frozen=True)
class CaptureArtifact:
    data: bytes
    filename: str
    mime: str
    path: Optional[str] = None

    @property
    def size(self) -> int:
        return len(self.data)


# ── Recorder ────────────────────────────────────────────────────────────────
class Recorder:
    """
    Encodes RGB frames (VP8) and audio frames (Opus) to WebM in memory.
    start() → add_frame()/add_audio() … → stop(); on stop the encoded bytes go
    to `ondataavailable`, then `onstop` fires.
    """

    def __init__(self, width: int, height: int, fps: int = config.FPS,
                 audio: bool = True) -> None:
        self.width, self.height = width, height
        self.fps = fps
        self.audio = audio
        self.state = "inactive"
        self.ondataavailable: Optional[Callable[[bytes], None]] = None
        self.onstop: Optional[Callable[[], None]] = None

        self._buffer = io.BytesIO()
        self._container = None
        self._vstream = None
        self._astream = None
        self._fifo: Optional[av.AudioFifo] = None
        self._last_index = -1
        self._samples = 0
        self._frame_count = 0

    @property
    def frame_count(self) -> int:
        return self._frame_count

    def start(self) -> None:
        try:
            self._container = av.open(self._buffer, "w", format=config.CAPTURE_FORMAT)
            self._vstream = self._container.add_stream(config.CAPTURE_VIDEO_CODEC, rate=self.fps)
            self._vstream.width = self.width
            self._vstream.height = self.height
            self._vstream.pix_fmt = config.CAPTURE_PIX_FMT
            if self.audio:
                self._astream = self._container.add_stream(
                    config.CAPTURE_AUDIO_CODEC, rate=config.CAPTURE_AUDIO_RATE)
                ctx = self._astream.codec_context
                ctx.layout = config.CAPTURE_AUDIO_LAYOUT
                ctx.format = config.CAPTURE_AUDIO_FORMAT
                self._fifo = av.AudioFifo()
        except (FFmpegError, ValueError) as exc:
            self._abandon()
            raise RecorderUnavailable(f"cannot set up {config.CAPTURE_FORMAT} recorder: {exc}") from exc
        self.state = "recording"

    def add_frame(self, rgb: np.ndarray, t: float) -> bool:
        """Encode the frame for time *t*; repeats within one 1/fps slot are dropped."""
        if self.state != "recording":
            return False
        index = int(round(t * self.fps))
        if index <= self._last_index:
            return False
        frame = av.VideoFrame.from_ndarray(rgb, format="rgb24").reformat(format=config.CAPTURE_PIX_FMT)
        frame.pts = index
        frame.time_base = Fraction(1, self.fps)
        self._mux(self._vstream, frame)
        self._last_index = index
        self._frame_count += 1
        return True

    def add_audio(self, frames: List[av.AudioFrame]) -> None:
        if self.state != "recording" or self._astream is None:
            return
        for f in frames:
            f.pts = None
            self._fifo.write(f)
        size = self._astream.codec_context.frame_size or 960
        while self._fifo.samples >= size:
            self._encode_audio(self._fifo.read(size))

    def stop(self) -> None:
        if self.state != "recording":
            return
        self.state = "inactive"
        if self._fifo is not None and self._fifo.samples:
            self._encode_audio(self._fifo.read())
        for stream in (self._vstream, self._astream):
            if stream is not None:
                self._mux(stream, None)
        try:
            self._container.close()
        except FFmpegError as exc:
            raise CaptureError(f"muxer close failed: {exc}") from exc
        self._container = None
        data = self._buffer.getvalue()
        self._buffer = io.BytesIO()
        if data and self.ondataavailable is not None:
            self.ondataavailable(data)
        if self.onstop is not None:
            self.onstop()

    def discard(self) -> None:
        """Drop everything recorded so far without delivering it."""
        self.state = "inactive"
        self._abandon()

    # ── internals ───────────────────────────────────────────────────────────
    def _encode_audio(self, frame: av.AudioFrame) -> None:
        frame.pts = self._samples
        frame.time_base = Fraction(1, config.CAPTURE_AUDIO_RATE)
        self._samples += frame.samples
        self._mux(self._astream, frame)

    def _mux(self, stream, frame) -> None:
        try:
            for packet in stream.encode(frame):
                self._container.mux(packet)
        except FFmpegError as exc:
            raise CaptureError(f"encode failed: {exc}") from exc

    def _abandon(self) -> None:
        if self._container is not None:
            try:
                self._container.close()
            except FFmpegError as exc:
                logger.debug("[capture] closing abandoned recorder: %s", exc)
            self._container = None
        self._buffer = io.BytesIO()


# ── Pipeline ────────────────────────────────────────────────────────────────
class CapturePipeline:
    def __init__(
        self,
        clock: PlaybackClock,
        scheduler: Scheduler,
        events,
        cache,
        *,
        recorder_factory: Callable[..., Recorder] = Recorder,
        graph_factory: Callable[..., AudioRoutingGraph] = AudioRoutingGraph,
        output_dir: Optional[str] = config.CAPTURE_OUTPUT_DIR,
        filename: str = config.CAPTURE_FILENAME,
        on_complete: Optional[Callable[[CaptureArtifact], None]] = None,
        on_error: Optional[Callable[[str], None]] = None,
    ):
        self.clock = clock
        self.scheduler = scheduler
        self.events = events
        self.cache = cache
        self.recorder_factory = recorder_factory
        self.graph_factory = graph_factory
        self.output_dir = output_dir
        self.filename = filename
        self.on_complete = on_complete
        self.on_error = on_error

        self.state = CaptureState.IDLE
        self.history: List[CaptureState] = [CaptureState.IDLE]
        self.last_artifact: Optional[CaptureArtifact] = None
        self.last_error: Optional[str] = None
        self.artifacts = 0

        self._graph: Optional[AudioRoutingGraph] = None
        self._recorder: Optional[Recorder] = None
        self._chunks: List[bytes] = []

    # ── queries ─────────────────────────────────────────────────────────────
    @property
    def active(self) -> bool:
        return self.state in _BUSY

    @property
    def graph(self) -> Optional[AudioRoutingGraph]:
        return self._graph

    @property
    def progress(self) -> float:
        """0–100 through the track while a session is running."""
        tr = self.clock.transport
        if not self.active or tr is None or tr.duration <= 0:
            return 0.0
        return min(100.0, self.clock.current_time / tr.duration * 100.0)

    # ── IDLE → ARMED → RECORDING ────────────────────────────────────────────
    def request(self, width: int, height: int) -> bool:
        """Start a capture session.  False (nothing changed) if not allowed now."""
        if self.active:
            logger.info("[capture] request rejected: session already %s", self.state.value)
            return False
        tr = self.clock.transport
        if tr is None or not tr.source_path:
            logger.info("[capture] request rejected: no audio transport")
            return False
        if not self.cache.available_ids():
            logger.info("[capture] request rejected: no image is available")
            return False

        self._chunks = []
        self.last_error = None
        self._set(CaptureState.ARMED)
        try:
            self.scheduler.deactivate()
            tr.pause()
            self.clock.reset()

            graph = self._graph_for(tr)
            graph.rewind()

            rec = self.recorder_factory(width, height, config.FPS, audio=True)
            rec.ondataavailable = self._on_data
            rec.onstop = self._on_stop
            self._recorder = rec
            self.events.subscribe("ended", self._on_ended)
            self.events.subscribe("transport_error", self._on_transport_error)

            rec.start()
            self._set(CaptureState.RECORDING)
            tr.play()
            self.scheduler.activate(CAPTURE)
        except (CaptureError, RoutingGraphError) as exc:
            self._fail(exc)
            return False
        logger.info("[capture] recording %dx%d @ %d fps", width, height, config.FPS)
        return True

    def _graph_for(self, tr) -> AudioRoutingGraph:
        if self._graph is None or self._graph.transport is not tr:
            self._graph = self.graph_factory(tr)
        return self._graph

    # ── RECORDING ───────────────────────────────────────────────────────────
    def capture_frame(self, rgb: np.ndarray, t: float) -> None:
        """Feed one rendered canvas (HxWx3) plus the audio up to *t*."""
        if self.state is not CaptureState.RECORDING:
            return
        try:
            self._recorder.add_frame(rgb, t)
            self._recorder.add_audio(self._graph.read_until(t))
        except (CaptureError, RoutingGraphError) as exc:
            self._fail(exc)

    # ── RECORDING → FINALIZING → COMPLETE ───────────────────────────────────
    def _on_ended(self, _action=None) -> None:
        if self.state is not CaptureState.RECORDING:
            return
        self._set(CaptureState.FINALIZING)
        self._unsubscribe()
        self.scheduler.deactivate(CAPTURE)
        try:
            self._recorder.add_audio(self._graph.drain())
            self._recorder.stop()
        except (CaptureError, RoutingGraphError) as exc:
            self._fail(exc)

    def _on_data(self, data: bytes) -> None:
        self._chunks.append(data)

    def _on_stop(self) -> None:
        if self.state is not CaptureState.FINALIZING:
            return
        artifact = CaptureArtifact(b"".join(self._chunks), self.filename, config.CAPTURE_MIME)
        if self.output_dir is not None:
            path = os.path.join(self.output_dir, self.filename)
            try:
                os.makedirs(self.output_dir, exist_ok=True)
                with open(path, "wb") as f:
                    f.write(artifact.data)
            except OSError as exc:
                self._fail(CaptureError(f"cannot write {path}: {exc}"))
                return
            artifact = CaptureArtifact(artifact.data, artifact.filename, artifact.mime, path)

        self._set(CaptureState.COMPLETE)
        self.last_artifact = artifact
        self.artifacts += 1
        logger.info("[capture] wrote %d bytes → %s", artifact.size, artifact.path or artifact.filename)
        self._teardown()
        self._set(CaptureState.IDLE)
        if self.on_complete is not None:
            self.on_complete(artifact)

    # ── aborts and failures ─────────────────────────────────────────────────
    def abort(self) -> bool:
        """Leave ARMED/RECORDING without producing an artifact."""
        if self.state not in (CaptureState.ARMED, CaptureState.RECORDING):
            return False
        logger.info("[capture] aborted at %.2fs", self.clock.current_time)
        self._unsubscribe()
        self.scheduler.deactivate(CAPTURE)
        if self._recorder is not None:
            self._recorder.discard()
        self._teardown()
        self._set(CaptureState.IDLE)
        return True

    def _on_transport_error(self, action) -> None:
        if self.state in (CaptureState.ARMED, CaptureState.RECORDING):
            self._fail(CaptureError(action.get("message", "transport error")))

    def _fail(self, exc: Exception) -> None:
        logger.error("[capture] %s failed: %s", self.state.value, exc)
        self._set(CaptureState.ERROR)
        self.last_error = str(exc)
        self._unsubscribe()
        self.scheduler.deactivate(CAPTURE)
        if self._recorder is not None:
            self._recorder.discard()
        self._teardown()
        self._set(CaptureState.IDLE)
        if self.on_error is not None:
            self.on_error(f"Capture failed: {exc}")

    # ── helpers ─────────────────────────────────────────────────────────────
    def _teardown(self) -> None:
        # the routing graph stays attached to the transport
        self._recorder = None
        self._chunks = []
        tr = self.clock.transport
        if tr is not None:
            tr.pause()

    def _unsubscribe(self) -> None:
        self.events.unsubscribe("ended", self._on_ended)
        self.events.unsubscribe("transport_error", self._on_transport_error)

    def _set(self, state: CaptureState) -> None:
        if state is not self.state:
            logger.debug("[capture] %s → %s", self.state.value, state.value)
        self.state = state
        self.history.append(state)
