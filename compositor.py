"""
compositor.py

Pure frame compositor.

`render(t, timeline, video_config, cache)` returns a Frame: an immutable list
of draw commands (fill, transformed blit, rectangle, text).  Nothing is drawn
here; renderer.rasterize() applies the commands to a pygame surface.  Same
inputs and same cache contents always give an equal Frame, so scrubbing to a
time and capturing that time produce the same picture.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Protocol, Union, assert_never

import config
from captions import layout_caption
from timeline import (AnimationType, CaptionStyle, Timeline, TimelineSegment,
                      TransitionType, VideoConfig)


class RasterSource(Protocol):
    def get_or_load(self, asset_id: str): ...


# ── Draw commands ───────────────────────────────────────────────────────────
@dataclass(frozen=True)
class Transform:
    scale: float = 1.0
    tx: float = 0.0
    ty: float = 0.0


IDENTITY = Transform()


@dataclass(frozen=True)
class Fill:
    color: tuple[int, int, int]


@dataclass(frozen=True)
class Blit:
    asset_id: str
    rect: tuple[float, float, float, float]   # x, y, w, h after transform
    alpha: float
    transform: Transform


@dataclass(frozen=True)
class FillRect:
    rect: tuple[int, int, int, int]
    color: tuple[int, int, int, int]


@dataclass(frozen=True)
class Text:
    text: str
    anchor: tuple[int, int]                   # centre-x, bottom
    style: CaptionStyle
    color: tuple[int, int, int]
    shadow_color: tuple[int, int, int, int]
    shadow_offset: tuple[int, int]


DrawCommand = Union[Fill, Blit, FillRect, Text]


@dataclass(frozen=True)
class Frame:
    width: int
    height: int
    commands: tuple[DrawCommand, ...]
    segment: Optional[TimelineSegment] = None

    @property
    def size(self) -> tuple[int, int]:
        return self.width, self.height

    @property
    def blit(self) -> Optional[Blit]:
        return next((c for c in self.commands if isinstance(c, Blit)), None)

    @property
    def is_blank(self) -> bool:
        return all(isinstance(c, Fill) for c in self.commands)


# ── Segment math ────────────────────────────────────────────────────────────
def progress(seg: TimelineSegment, t: float) -> float:
    span = seg.end_time - seg.start_time
    if span <= 0:
        return 1.0
    return max(0.0, min(1.0, (t - seg.start_time) / span))


def animation_transform(kind: AnimationType, p: float) -> Transform:
    if kind is AnimationType.ZOOM_IN:
        return Transform(scale=1.0 + config.ZOOM_IN_GAIN * p)
    elif kind is AnimationType.PAN_ZOOM:
        return Transform(scale=config.PAN_ZOOM_SCALE, tx=(p - 0.5) * config.PAN_ZOOM_TRAVEL)
    elif kind is AnimationType.SLIDE_LEFT:
        return Transform(tx=-config.SLIDE_LEFT_TRAVEL * p)
    elif kind is AnimationType.STATIC or kind is AnimationType.SLIDE_RIGHT:
        # SLIDE_RIGHT has no motion of its own yet
        return IDENTITY
    else:
        assert_never(kind)


def transition_alpha(kind: TransitionType, seg: TimelineSegment, t: float) -> float:
    if kind is TransitionType.FADE:
        elapsed = t - seg.start_time
        if elapsed < config.FADE_DURATION:
            return max(0.0, elapsed / config.FADE_DURATION)
        return 1.0
    elif kind is TransitionType.CUT or kind is TransitionType.DISSOLVE:
        return 1.0
    else:
        assert_never(kind)


def cover_fit(img_w: int, img_h: int, frame_w: int, frame_h: int
              ) -> tuple[float, float, float, float]:
    """
    Scale (img_w, img_h) to cover the frame, keeping aspect; overflow on the
    long axis is split evenly so the crop is centred.
    """
    img_aspect   = img_w / img_h
    frame_aspect = frame_w / frame_h
    if img_aspect > frame_aspect:
        dh = float(frame_h)
        dw = frame_h * img_aspect
        return (frame_w - dw) / 2, 0.0, dw, dh
    dw = float(frame_w)
    dh = frame_w / img_aspect
    return 0.0, (frame_h - dh) / 2, dw, dh


def place(fit: tuple[float, float, float, float], xf: Transform,
          frame_w: int, frame_h: int) -> tuple[float, float, float, float]:
    """Apply *xf* about the frame centre to a cover-fit rectangle."""
    x, y, w, h = fit
    cx, cy = frame_w / 2, frame_h / 2
    s = xf.scale
    return (cx + s * (x - cx + xf.tx),
            cy + s * (y - cy + xf.ty),
            s * w,
            s * h)


# ── Entry point ─────────────────────────────────────────────────────────────
def render(t: float, timeline: Timeline, video_config: VideoConfig,
           cache: RasterSource) -> Frame:
    w, h = video_config.frame_size
    cmds: list[DrawCommand] = [Fill(config.BACKGROUND)]

    seg = timeline.active_segment(t)
    if seg is None:
        return Frame(w, h, tuple(cmds))

    raster = cache.get_or_load(seg.asset_id)
    if raster is None:
        return Frame(w, h, tuple(cmds), seg)

    p     = progress(seg, t)
    xf    = animation_transform(seg.animation, p)
    alpha = transition_alpha(seg.transition, seg, t)
    iw, ih = raster.get_size()
    if iw and ih:
        rect = place(cover_fit(iw, ih, w, h), xf, w, h)
        cmds.append(Blit(seg.asset_id, rect, alpha, xf))

    # captions are drawn at full opacity regardless of the fade
    if seg.caption:
        for line in layout_caption(seg.caption, w, h, video_config.caption_style):
            cmds.append(FillRect(line.box, config.CAPTION_BOX_COLOR))
            cmds.append(Text(
                line.text, line.anchor, video_config.caption_style,
                config.CAPTION_TEXT_COLOR,
                config.CAPTION_SHADOW_COLOR,
                config.CAPTION_SHADOW_OFFSET,
            ))

    return Frame(w, h, tuple(cmds), seg)
