#!/usr/bin/env python3
"""
events.py  – central hub

• Translates raw Pygame events to high-level action dicts.
• Exposes a thread-safe queue so *any* source can inject the same actions;
  the transport's bus thread posts its lifecycle events ("ended",
  "loadedmetadata", "transport_error") here.
• Lets components subscribe to one action type for as long as they need it
  (the capture pipeline listens for "ended" only while it is recording).
"""

from __future__ import annotations

import queue
from collections import defaultdict
from typing import Callable, Dict, List

from pygame.locals import *

Action = dict      # alias for readability
Handler = Callable[[Action], None]


class EventManager:
    def __init__(self) -> None:
        self._fifo: "queue.Queue[Action]" = queue.Queue()      # thread-safe
        self._subs: Dict[str, List[Handler]] = defaultdict(list)

    # ── SDL / keyboard path ────────────────────────────────────────────
    def handle(self, event) -> None:
        """Translate one Pygame event → action and enqueue it."""
        act = self._translate_pygame(event)
        if act:
            self._fifo.put(act)

    # ── external / programmatic path ───────────────────────────────────
    def post(self, action: Action) -> None:
        """
        Any thread may call this to inject an already-formed action dict, e.g.:
            events.post({"type": "seek", "delta": 5.0})
        """
        self._fifo.put(action)

    # ── subscriptions ──────────────────────────────────────────────────
    def subscribe(self, kind: str, handler: Handler) -> None:
        if handler not in self._subs[kind]:
            self._subs[kind].append(handler)

    def unsubscribe(self, kind: str, handler: Handler) -> None:
        handlers = self._subs.get(kind)
        if handlers and handler in handlers:
            handlers.remove(handler)

    def subscribers(self, kind: str) -> int:
        return len(self._subs.get(kind, ()))

    # ── main-loop consumer ─────────────────────────────────────────────
    def poll(self) -> Action | None:
        """Return next queued action or None (non-blocking)."""
        try:
            return self._fifo.get_nowait()
        except queue.Empty:
            return None

    def dispatch(self, action: Action) -> None:
        """Deliver *action* to its current subscribers, on the caller's thread."""
        for handler in list(self._subs.get(action.get("type", ""), ())):
            handler(action)

    def pump(self) -> List[Action]:
        """Drain the queue, dispatching each action; return them all."""
        out: List[Action] = []
        while (act := self.poll()):
            self.dispatch(act)
            out.append(act)
        return out

    # ── internal translator ───────────────────────────────────────────
    @staticmethod
    def _translate_pygame(event) -> Action | None:
        if event.type == QUIT:
            return {"type": "quit"}

        if event.type == KEYDOWN:
            if event.key in (K_ESCAPE, K_q):
                return {"type": "quit"}
            if event.key == K_SPACE:
                return {"type": "toggle_play"}
            if event.key in (K_RIGHT, K_LEFT):
                return {"type": "seek", "delta": 1.0 if event.key == K_RIGHT else -1.0}
            if event.key == K_r:
                return {"type": "capture"}
            if event.key == K_a:
                return {"type": "abort_capture"}
            if event.key == K_s:
                return {"type": "save_project"}
            if event.key == K_i:
                return {"type": "toggle_overlay"}
            if event.key == K_f:
                return {"type": "toggle_fullscreen"}

        return None
