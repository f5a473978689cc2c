"""
renderer.py

Turns compositor Frames into pixels and puts pixels on screen.
"""

from __future__ import annotations

import numpy as np
import pygame

from captions import caption_font
from compositor import Blit, Fill, FillRect, Frame, Text


def rasterize(frame: Frame, cache, surface: pygame.Surface | None = None) -> pygame.Surface:
    """
    Apply *frame*'s draw commands in order to *surface* (a new surface of the
    frame's size when omitted) and return it.
    """
    if surface is None or surface.get_size() != frame.size:
        surface = pygame.Surface(frame.size)

    for cmd in frame.commands:
        if isinstance(cmd, Fill):
            surface.fill(cmd.color)
        elif isinstance(cmd, Blit):
            _blit(surface, cmd, cache)
        elif isinstance(cmd, FillRect):
            box = pygame.Surface(cmd.rect[2:], pygame.SRCALPHA)
            box.fill(cmd.color)
            surface.blit(box, cmd.rect[:2])
        elif isinstance(cmd, Text):
            _text(surface, cmd)
    return surface


def _blit(surface: pygame.Surface, cmd: Blit, cache) -> None:
    raster = cache.get_or_load(cmd.asset_id)
    if raster is None or cmd.alpha <= 0.0:
        return
    x, y, w, h = cmd.rect
    size = (max(1, round(w)), max(1, round(h)))
    img  = pygame.transform.smoothscale(raster, size)
    if cmd.alpha < 1.0:
        img.set_alpha(round(cmd.alpha * 255))
    surface.blit(img, (round(x), round(y)))


def _text(surface: pygame.Surface, cmd: Text) -> None:
    font = caption_font(cmd.style)
    cx, bottom = cmd.anchor
    sx, sy = cmd.shadow_offset

    shadow = font.render(cmd.text, True, cmd.shadow_color[:3])
    shadow.set_alpha(cmd.shadow_color[3])
    fg = font.render(cmd.text, True, cmd.color)

    x = cx - fg.get_width() // 2
    y = bottom - fg.get_height()
    surface.blit(shadow, (x + sx, y + sy))
    surface.blit(fg, (x, y))


def frame_array(surface: pygame.Surface) -> np.ndarray:
    """HxWx3 uint8 copy of *surface* (row-major, ready for av.VideoFrame)."""
    return np.ascontiguousarray(pygame.surfarray.array3d(surface).swapaxes(0, 1))


def present(screen: pygame.Surface, canvas: pygame.Surface) -> None:
    """
    Scale and letter-/pillar-box the canvas onto `screen`.
    """
    sw, sh = screen.get_size()
    vw, vh = canvas.get_size()
    scale = min(sw / vw, sh / vh)
    surf = pygame.transform.smoothscale(canvas, (int(vw * scale), int(vh * scale)))
    screen.fill((0, 0, 0))
    x = (sw - surf.get_width()) // 2
    y = (sh - surf.get_height()) // 2
    screen.blit(surf, (x, y))
