# =========  transport.py  =========
"""
GStreamer audio transport – the authoritative clock for playback and capture.

Public API
----------
open(path)
play() / pause()
seek(sec)
close()
Properties
----------
.position     → seconds, queried from the pipeline
.duration     → seconds (0.0 until metadata is known)
.paused / .ended
.source_path  → file currently loaded
Lifecycle events ("loadedmetadata", "ended", "transport_error") are posted
to the EventManager from the bus thread and dispatched on the main loop.
"""
from __future__ import annotations

import logging
import threading
from typing import Optional

import gi
gi.require_version("Gst", "1.0")
from gi.repository import GLib, Gst

from events import EventManager

logger = logging.getLogger(__name__)


class TransportError(RuntimeError):
    """The audio source could not be opened or decoded."""


# ────────────────────────────────────────────────────────────────────────────
class AudioTransport:
    def __init__(self, events: EventManager):
        Gst.init(None)
        self.events = events

        self.player = Gst.ElementFactory.make("playbin", "transport")
        if self.player is None:
            raise TransportError("GStreamer playbin element unavailable")
        self.player.set_property("audio-sink",
                                 Gst.ElementFactory.make("autoaudiosink", "aud"))
        self.player.set_property("video-sink",
                                 Gst.ElementFactory.make("fakesink", "novideo"))

        # state
        self.source_path = ""
        self.duration    = 0.0
        self.paused      = True
        self.ended       = False
        self.routing_graph = None          # set by audio_graph.AudioRoutingGraph
        self._ml: Optional[GLib.MainLoop] = None
        self._ml_thread: Optional[threading.Thread] = None

    # ── public API ──────────────────────────────────────────────────────────
    def open(self, fp: str):
        self.close()
        self.source_path = fp
        self.player.set_property("uri", Gst.filename_to_uri(fp))
        self.player.set_state(Gst.State.PAUSED)

        # wait for preroll
        bus = self.player.get_bus()
        msg = bus.timed_pop_filtered(
            5 * Gst.SECOND,
            Gst.MessageType.ASYNC_DONE | Gst.MessageType.ERROR,
        )
        if msg and msg.type == Gst.MessageType.ERROR:
            raise TransportError(msg.parse_error()[0].message)

        ok, dur = self.player.query_duration(Gst.Format.TIME)
        self.duration = dur / Gst.SECOND if ok else 0.0
        self.paused, self.ended = True, False
        self.events.post({"type": "loadedmetadata", "duration": self.duration})
        logger.info("[transport] opened %s (%.2fs)", fp, self.duration)

        # bus watch in a side loop
        self._ml = GLib.MainLoop()
        bus.add_signal_watch()
        bus.connect("message", self._on_bus_msg)
        self._ml_thread = threading.Thread(target=self._ml.run, daemon=True)
        self._ml_thread.start()

    def play(self):
        if self.ended:
            self.seek(0.0)
        self.ended  = False
        self.paused = False
        self.player.set_state(Gst.State.PLAYING)

    def pause(self):
        self.paused = True
        self.player.set_state(Gst.State.PAUSED)

    @property
    def position(self) -> float:
        ok, pos = self.player.query_position(Gst.Format.TIME)
        return pos / Gst.SECOND if ok else 0.0

    def seek(self, sec: float):
        self.ended = False
        self.player.seek_simple(
            Gst.Format.TIME,
            Gst.SeekFlags.FLUSH | Gst.SeekFlags.ACCURATE,
            int(max(0.0, sec) * Gst.SECOND),
        )

    def close(self):
        if self._ml:
            self._ml.quit()
            self._ml = None
            self.player.get_bus().remove_signal_watch()
        if self._ml_thread and threading.current_thread() is not self._ml_thread:
            self._ml_thread.join(timeout=0.5)
        self._ml_thread = None
        self.player.set_state(Gst.State.NULL)
        self.paused = True

    # ── internals ───────────────────────────────────────────────────────────
    def _on_bus_msg(self, bus, msg):
        if msg.type == Gst.MessageType.EOS:
            self.paused = True
            self.ended  = True
            self.events.post({"type": "ended"})
        elif msg.type == Gst.MessageType.ERROR:
            err, _ = msg.parse_error()
            logger.error("[transport] GStreamer error: %s", err.message)
            self.paused = True
            self.events.post({"type": "transport_error", "message": err.message})
        return True
