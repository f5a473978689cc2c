#!/usr/bin/env python3
"""
app.py – interactive slideshow studio

Plays a voice-over, composites the timeline in step with it and, on request,
captures the composited canvas plus audio into one WebM file.  Input is
dispatched by events.py; the scheduler renders once per loop iteration.
"""
from __future__ import annotations

import logging
import os
from typing import Optional, Sequence

import pygame

import config
from assets      import AssetCache, AssetKind, AssetLibrary
from capture     import CaptureArtifact, CapturePipeline, CaptureState
from compositor  import render
from events      import EventManager
from overlays    import draw_overlay, draw_render_overlay
from playback    import PLAYBACK, PlaybackClock, Scheduler
from project     import load_generation, save_snapshot
from renderer    import frame_array, present, rasterize
from timeline    import Timeline, TimelineError, VideoConfig, adopt_generation

logger = logging.getLogger(__name__)


# ── main application ───────────────────────────────────────────────────────
class StudioApp:
    def __init__(self,
                 audio_path: Optional[str],
                 image_paths: Sequence[str],
                 video_config: VideoConfig,
                 *,
                 timeline_path: Optional[str] = None,
                 output_dir: str = config.CAPTURE_OUTPUT_DIR,
                 render_and_exit: bool = False,
                 transport=None):
        # window ----------------------------------------------------------
        pygame.init()
        self.video_config = video_config
        fw, fh = video_config.frame_size
        win = (int(fw * config.WINDOW_SCALE), int(fh * config.WINDOW_SCALE))
        self.screen = pygame.display.set_mode(
            (0, 0) if config.FULLSCREEN else win,
            pygame.FULLSCREEN if config.FULLSCREEN else 0,
        )
        pygame.display.set_caption("Slideshow Studio")
        self.clock  = pygame.time.Clock()
        self.canvas = pygame.Surface((fw, fh))

        # assets ----------------------------------------------------------
        self.events  = EventManager()
        self.library = AssetLibrary()
        self.cache   = AssetCache(self.library)
        for fp in image_paths:
            item = self.library.add(fp, AssetKind.IMAGE)
            self.cache.get_or_load(item.id)       # start decoding right away
        self.audio = self.library.add(audio_path, AssetKind.AUDIO) if audio_path else None

        # transport / clock -----------------------------------------------
        self.transport = transport
        if self.transport is None and self.audio is not None:
            from transport import AudioTransport, TransportError
            try:
                self.transport = AudioTransport(self.events)
                self.transport.open(self.audio.path)
            except TransportError as exc:
                self._notify(f"Cannot play {self.audio.name}: {exc}")
                self.transport = None
        self.duration = self.transport.duration if self.transport else 0.0

        self.pclock    = PlaybackClock(self.transport)
        self.scheduler = Scheduler(self.pclock, self._render)
        self.pclock.on_seek(lambda _t: self.scheduler.render_now())

        self.capture = CapturePipeline(
            self.pclock, self.scheduler, self.events, self.cache,
            output_dir=output_dir,
            on_complete=self._on_capture_done,
            on_error=self._notify,
        )
        self.events.subscribe("loadedmetadata", self._on_metadata)

        # state -----------------------------------------------------------
        self.timeline = Timeline()
        self.output_dir = output_dir
        self.force_overlay = config.SHOW_OVERLAYS
        self.render_and_exit = render_and_exit
        self.running = False
        self.exit_code = 0

        if timeline_path:
            self.load_timeline(timeline_path)
        self.scheduler.render_now()

    # ── timeline ------------------------------------------------------------
    def load_timeline(self, path: str) -> bool:
        """Adopt a generator result; the current timeline survives any failure."""
        images = self.library.images()
        if self.audio is None or not images:
            logger.info("[app] timeline needs a voice-over and at least one image")
            return False
        try:
            self.timeline = adopt_generation(load_generation(path), [i.id for i in images])
        except TimelineError as exc:
            self._notify(f"Error loading timeline: {exc}")
            return False
        self.scheduler.render_now()
        return True

    def save_project(self) -> Optional[str]:
        path = os.path.join(self.output_dir, config.PROJECT_FILENAME)
        try:
            return str(save_snapshot(path, self.video_config, self.timeline, self.library))
        except OSError as exc:
            self._notify(f"Cannot save project to {path}: {exc}")
            return None

    # ── rendering -----------------------------------------------------------
    def _render(self, t: float) -> None:
        frame = render(t, self.timeline, self.video_config, self.cache)
        rasterize(frame, self.cache, self.canvas)
        if self.capture.state is CaptureState.RECORDING:
            self.capture.capture_frame(frame_array(self.canvas), t)

    # ── transport control ---------------------------------------------------
    @property
    def playing(self) -> bool:
        return self.pclock.running

    def toggle_play(self) -> None:
        if self.transport is None or self.capture.active:
            return
        if self.playing:
            self.transport.pause()
            self.scheduler.deactivate(PLAYBACK)
            self.scheduler.render_now()
        else:
            self.transport.play()
            self.scheduler.activate(PLAYBACK)

    def seek(self, delta: float) -> None:
        if self.transport is None or self.capture.active:
            return
        self.pclock.seek(self.pclock.current_time + delta)

    def start_capture(self) -> bool:
        for item in self.library.images():
            self.cache.load_now(item.id)
        return self.capture.request(*self.video_config.frame_size)

    # ── event callbacks -----------------------------------------------------
    def _on_metadata(self, act) -> None:
        self.duration = act.get("duration", 0.0)

    def _on_capture_done(self, artifact: CaptureArtifact) -> None:
        logger.info("[app] download ready: %s", artifact.path or artifact.filename)
        if self.render_and_exit:
            self.running = False

    def _notify(self, message: str) -> None:
        logger.error("[app] %s", message)
        if self.render_and_exit:
            self.exit_code = 1
            self.running = False

    # ── main loop ---------------------------------------------------------
    def run(self) -> int:
        self.running = True
        if self.render_and_exit and not self.start_capture():
            logger.error("[app] nothing to capture")
            self.running = False
            self.exit_code = 1

        while self.running:
            for e in pygame.event.get():
                self.events.handle(e)

            for act in self.events.pump():
                t = act["type"]
                if t == "quit":
                    self.running = False
                elif t == "toggle_play":
                    self.toggle_play()
                elif t == "seek":
                    self.seek(act.get("delta", 0.0) * config.SEEK_STEP)
                elif t == "capture":
                    self.start_capture()
                elif t == "abort_capture":
                    self.capture.abort()
                elif t == "save_project":
                    self.save_project()
                elif t == "toggle_overlay":
                    self.force_overlay ^= True
                elif t == "toggle_fullscreen":
                    config.FULLSCREEN ^= True
                    fw, fh = self.video_config.frame_size
                    self.screen = pygame.display.set_mode(
                        (0, 0) if config.FULLSCREEN
                        else (int(fw * config.WINDOW_SCALE), int(fh * config.WINDOW_SCALE)),
                        pygame.FULLSCREEN if config.FULLSCREEN else 0)

            self.scheduler.on_refresh()

            # draw
            present(self.screen, self.canvas)
            if self.capture.active:
                draw_render_overlay(self.screen, self.capture.progress)
            elif self.force_overlay:
                draw_overlay(self.screen, self.pclock.current_time, self.duration,
                             self.playing, len(self.timeline))

            pygame.display.flip()
            self.clock.tick(config.FPS)

        if self.capture.active:
            self.capture.abort()
        if self.transport is not None:
            self.transport.close()
        pygame.quit()
        return self.exit_code
