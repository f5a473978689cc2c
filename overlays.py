"""
overlays.py

Pygame on-screen display for the slideshow studio.  Drawn on the window
only, after the canvas has been presented, so nothing here is captured.
"""

from __future__ import annotations

import pygame

# ── colours ────────────────────────────────────────────────────────────────
WHITE  = (255, 255, 255)
GREEN  = (0, 255, 0)
ACCENT = (139, 92, 246)
GREY   = (60, 60, 60)
BG     = (0, 0, 0, 180)

pygame.font.init()


# ── helpers ────────────────────────────────────────────────────────────────
def _compute_font_sizes(h: int) -> tuple[int, int, int]:
    return max(12, h // 60), max(16, h // 45), max(24, h // 15)


def _fmt_hms(sec: float) -> str:
    sec = int(max(0, sec))
    m, s = divmod(sec, 60)
    h, m = divmod(m, 60)
    return f"{h:02d}:{m:02d}:{s:02d}"


def _badge(surface: pygame.Surface, txt: pygame.Surface, pt: int, pos: tuple[int, int]) -> pygame.Rect:
    bg = pygame.Surface(
        (txt.get_width() + pt // 3, txt.get_height() + pt // 5),
        pygame.SRCALPHA,
    )
    bg.fill(BG)
    bg.blit(txt, (pt // 6, pt // 10))
    return surface.blit(bg, pos)


# ── transport HUD ───────────────────────────────────────────────────────────
def draw_overlay(surface: pygame.Surface, current: float, duration: float,
                 playing: bool, segments: int) -> None:
    sw, sh = surface.get_size()
    tiny_pt, small_pt, _ = _compute_font_sizes(sh)
    FT = pygame.font.SysFont("monospace", tiny_pt)
    FS = pygame.font.SysFont("monospace", small_pt)

    state = "▶" if playing else "❚❚"
    tsurf = FS.render(f"{state} {current:5.1f}s / {duration:5.1f}s", True, WHITE)
    _badge(surface, tsurf, small_pt, (10, sh - tsurf.get_height() - 20))

    info = FT.render(f"{segments} segments  {_fmt_hms(duration)}", True, GREEN)
    _badge(surface, info, tiny_pt, (sw - info.get_width() - 20, 10))


# ── capture modal ──────────────────────────────────────────────────────────
def draw_render_overlay(surface: pygame.Surface, progress: float) -> None:
    """Dimmed screen, title and a progress bar while a capture runs."""
    sw, sh = surface.get_size()
    _, small_pt, large_pt = _compute_font_sizes(sh)
    FS = pygame.font.SysFont("monospace", small_pt)
    FL = pygame.font.SysFont("monospace", large_pt)

    dim = pygame.Surface((sw, sh), pygame.SRCALPHA)
    dim.fill((0, 0, 0, 200))
    surface.blit(dim, (0, 0))

    title = FL.render("Rendering Video", True, WHITE)
    surface.blit(title, ((sw - title.get_width()) // 2, sh // 2 - title.get_height() * 2))

    bar_w, bar_h = sw // 2, max(8, sh // 40)
    bar = pygame.Rect((sw - bar_w) // 2, sh // 2, bar_w, bar_h)
    pygame.draw.rect(surface, GREY, bar, border_radius=bar_h // 2)
    fill = bar.copy()
    fill.width = int(bar_w * max(0.0, min(100.0, progress)) / 100)
    if fill.width:
        pygame.draw.rect(surface, ACCENT, fill, border_radius=bar_h // 2)

    pct = FS.render(f"{round(progress)}%", True, ACCENT)
    surface.blit(pct, ((sw - pct.get_width()) // 2, bar.bottom + small_pt))
