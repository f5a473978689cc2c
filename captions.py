"""
captions.py

Caption layout: greedy word-wrap against the active font, plus the geometry
of the translucent box drawn behind each line.
"""

from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache

import pygame

import config
from timeline import CaptionStyle

pygame.font.init()


@dataclass(frozen=True)
class CaptionLine:
    text: str
    width: int
    box: tuple[int, int, int, int]   # x, y, w, h
    anchor: tuple[int, int]          # centre-x, text bottom


@lru_cache(maxsize=None)
def caption_font(style: CaptionStyle) -> pygame.font.Font:
    """Bold → bold weight, Karaoke → italic, Classic → regular."""
    font = pygame.font.Font(config.CAPTION_FONT_PATH, config.CAPTION_FONT_SIZES[style.value])
    font.set_bold(style is CaptionStyle.BOLD)
    font.set_italic(style is CaptionStyle.KARAOKE)
    return font


def wrap(text: str, max_width: float, font: pygame.font.Font) -> list[str]:
    words = text.split()
    lines: list[str] = []
    line = ""
    for word in words:
        trial = f"{line} {word}" if line else word
        if line and font.size(trial)[0] > max_width:
            lines.append(line)
            line = word
        else:
            line = trial
    if line:
        lines.append(line)
    return lines


def layout_caption(text: str, frame_w: int, frame_h: int,
                   style: CaptionStyle) -> list[CaptionLine]:
    """
    Lines are listed top to bottom; the block grows upward from the bottom
    margin as more lines are added.
    """
    font  = caption_font(style)
    lines = wrap(text, frame_w * config.CAPTION_WIDTH_RATIO, font)
    lh    = config.CAPTION_LINE_HEIGHT
    pad   = config.CAPTION_PAD_X
    y0    = frame_h - config.CAPTION_BOTTOM_MARGIN - len(lines) * lh

    out: list[CaptionLine] = []
    for i, ln in enumerate(lines):
        tw = font.size(ln)[0]
        y  = y0 + i * lh
        out.append(CaptionLine(
            text=ln,
            width=tw,
            box=((frame_w - tw) // 2 - pad, y - config.CAPTION_BOX_RISE, tw + 2 * pad, lh),
            anchor=(frame_w // 2, y),
        ))
    return out
