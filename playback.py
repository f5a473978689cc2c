# =========  playback.py  =========
"""
Playback clock and animation scheduler.

The clock follows the transport while it plays and is set directly by
seeks.  The scheduler renders once per display refresh for whichever owner
("playback" or "capture") activated it, and stops by itself when the
transport ends.  Neither ever blocks: each render runs to completion inside
the refresh callback.
"""

from __future__ import annotations

import logging
from typing import Callable, Optional, Protocol

logger = logging.getLogger(__name__)

PLAYBACK = "playback"
CAPTURE  = "capture"


class Transport(Protocol):
    source_path: str
    duration: float
    paused: bool
    ended: bool
    routing_graph: object

    @property
    def position(self) -> float: ...
    def play(self) -> None: ...
    def pause(self) -> None: ...
    def seek(self, sec: float) -> None: ...


# ── Clock ───────────────────────────────────────────────────────────────────
class PlaybackClock:
    def __init__(self, transport: Optional[Transport] = None):
        self.transport = transport
        self._t = 0.0
        self._seek_listeners: list[Callable[[float], None]] = []

    @property
    def current_time(self) -> float:
        return self._t

    @property
    def running(self) -> bool:
        tr = self.transport
        return tr is not None and not tr.paused and not tr.ended

    def on_seek(self, fn: Callable[[float], None]) -> None:
        self._seek_listeners.append(fn)

    def sync(self) -> float:
        """Pull the transport position while it is advancing."""
        if self.running:
            self._t = max(0.0, self.transport.position)
        return self._t

    def seek(self, t: float) -> float:
        dur = self.transport.duration if self.transport is not None else 0.0
        t = max(0.0, t)
        if dur > 0:
            t = min(t, dur)
        if self.transport is not None:
            self.transport.seek(t)
        self._t = t
        for fn in list(self._seek_listeners):
            fn(t)
        return t

    def reset(self) -> float:
        return self.seek(0.0)


# ── Scheduler ───────────────────────────────────────────────────────────────
class Scheduler:
    def __init__(self, clock: PlaybackClock, render: Callable[[float], None]):
        self.clock   = clock
        self.render  = render
        self._owner: Optional[str] = None
        self._pending = False
        self.frames   = 0

    @property
    def owner(self) -> Optional[str]:
        return self._owner

    @property
    def active(self) -> bool:
        return self._owner is not None

    @property
    def pending(self) -> bool:
        return self._pending

    def activate(self, owner: str) -> bool:
        """Start per-refresh rendering for *owner*; False if another owns it."""
        if self._owner is not None and self._owner != owner:
            logger.info("[scheduler] %s rejected: %s is active", owner, self._owner)
            return False
        self._owner   = owner
        self._pending = True
        return True

    def deactivate(self, owner: Optional[str] = None) -> None:
        if owner is not None and owner != self._owner:
            return
        self.cancel()

    def cancel(self) -> None:
        self._pending = False
        self._owner   = None

    def render_now(self) -> None:
        """One immediate render at the clock's time (seek while paused)."""
        self.render(self.clock.current_time)

    def on_refresh(self) -> bool:
        """Display-refresh callback.  Returns True when a frame was rendered."""
        if not self._pending:
            return False
        self._pending = False
        self.render(self.clock.sync())
        self.frames += 1

        if self._owner is None:
            # cancelled from inside render
            return True
        if self.clock.running:
            self._pending = True
        else:
            logger.debug("[scheduler] transport stopped; %s idle", self._owner)
            self._owner = None
        return True
