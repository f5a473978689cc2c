"""
timeline.py

Timeline model for the slideshow studio.

A Timeline is an immutable, ordered tuple of TimelineSegment records.  It is
never edited in place: a new generation result is adopted wholesale via
`adopt_generation()`, and the caller swaps its reference only on success, so
a malformed result leaves the previous timeline untouched.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Iterable, Mapping, Optional, Sequence

import config

logger = logging.getLogger(__name__)


class TimelineError(ValueError):
    """Generation result that cannot be adopted as a timeline."""


# ── Enums ───────────────────────────────────────────────────────────────────
class _Tagged(Enum):
    @classmethod
    def parse(cls, raw: Any):
        """Accept the wire value ('pan_zoom'), the member name or a member."""
        if isinstance(raw, cls):
            return raw
        if isinstance(raw, str):
            key = raw.strip()
            for member in cls:
                if key.lower() == member.value or key.upper() == member.name:
                    return member
        raise TimelineError(f"unknown {cls.__name__}: {raw!r}")


class AnimationType(_Tagged):
    PAN_ZOOM    = "pan_zoom"
    ZOOM_IN     = "zoom_in"
    STATIC      = "static"
    SLIDE_LEFT  = "slide_left"
    SLIDE_RIGHT = "slide_right"


class TransitionType(_Tagged):
    FADE     = "fade"
    CUT      = "cut"
    DISSOLVE = "dissolve"


class CaptionStyle(Enum):
    CLASSIC = "Classic"
    KARAOKE = "Karaoke"
    BOLD    = "Bold"


# ── Data structures ─────────────────────────────────────────────────────────
@dataclass(frozen=True)
class TimelineSegment:
    start_time: float
    end_time: float
    asset_id: str
    caption: str = ""
    animation: AnimationType = AnimationType.STATIC
    transition: TransitionType = TransitionType.CUT

    def __post_init__(self) -> None:
        if self.end_time < self.start_time:
            raise TimelineError(
                f"segment ends before it starts ({self.start_time} > {self.end_time})"
            )

    @property
    def duration(self) -> float:
        return self.end_time - self.start_time

    def contains(self, t: float) -> bool:
        return self.start_time <= t <= self.end_time

    def to_dict(self) -> dict:
        return {
            "startTime":  self.start_time,
            "endTime":    self.end_time,
            "assetId":    self.asset_id,
            "caption":    self.caption,
            "animation":  self.animation.value,
            "transition": self.transition.value,
        }


@dataclass(frozen=True)
class VideoConfig:
    aspect_ratio: str = config.DEFAULT_ASPECT_RATIO
    style: str = config.DEFAULT_STYLE
    caption_style: CaptionStyle = CaptionStyle(config.DEFAULT_CAPTION_STYLE)

    def __post_init__(self) -> None:
        if self.aspect_ratio not in config.FRAME_SIZES:
            raise ValueError(f"unsupported aspect ratio: {self.aspect_ratio!r}")

    @property
    def frame_size(self) -> tuple[int, int]:
        return config.FRAME_SIZES[self.aspect_ratio]

    def to_dict(self) -> dict:
        return {
            "aspectRatio":  self.aspect_ratio,
            "style":        self.style,
            "captionStyle": self.caption_style.value,
        }


@dataclass(frozen=True)
class Timeline:
    segments: tuple[TimelineSegment, ...] = field(default_factory=tuple)

    def __len__(self) -> int:
        return len(self.segments)

    def __iter__(self):
        return iter(self.segments)

    def active_segment(self, t: float) -> Optional[TimelineSegment]:
        """
        First segment, in declaration order, whose closed range holds *t*.
        Overlaps are allowed; the earlier declaration wins.
        """
        for seg in self.segments:
            if seg.contains(t):
                return seg
        return None

    @property
    def end_time(self) -> float:
        return max((s.end_time for s in self.segments), default=0.0)


# ── Generation adoption ─────────────────────────────────────────────────────
def _number(rec: Mapping[str, Any], key: str, idx: int) -> float:
    val = rec.get(key)
    if isinstance(val, bool) or not isinstance(val, (int, float)):
        raise TimelineError(f"record {idx}: {key} must be a number, got {val!r}")
    return float(val)


def adopt_generation(records: Iterable[Mapping[str, Any]],
                     image_ids: Sequence[str]) -> Timeline:
    """
    Build a new Timeline from generator records.

    Each record is ``{startTime, endTime, imageIndex, caption, animation,
    transition}``; ``imageIndex`` is 0-based into *image_ids* and falls back
    to the first image when missing or out of range.
    """
    if not image_ids:
        raise TimelineError("no image assets to map the timeline onto")
    if isinstance(records, Mapping) or isinstance(records, (str, bytes)):
        raise TimelineError("generation result must be a list of records")

    segments: list[TimelineSegment] = []
    for idx, rec in enumerate(records):
        if not isinstance(rec, Mapping):
            raise TimelineError(f"record {idx}: expected an object, got {type(rec).__name__}")

        img = rec.get("imageIndex")
        if isinstance(img, bool) or not isinstance(img, int) or not 0 <= img < len(image_ids):
            logger.debug("[timeline] record %d: imageIndex %r → first image", idx, img)
            img = 0

        caption = rec.get("caption") or ""
        if not isinstance(caption, str):
            raise TimelineError(f"record {idx}: caption must be text")

        segments.append(TimelineSegment(
            start_time=_number(rec, "startTime", idx),
            end_time=_number(rec, "endTime", idx),
            asset_id=image_ids[img],
            caption=caption,
            animation=AnimationType.parse(rec.get("animation")),
            transition=TransitionType.parse(rec.get("transition")),
        ))

    logger.info("[timeline] adopted %d segments", len(segments))
    return Timeline(tuple(segments))
