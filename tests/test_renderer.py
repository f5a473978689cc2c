import numpy as np
import pygame

from captions import layout_caption
from compositor import render
from conftest import segment
from renderer import frame_array, present, rasterize
from timeline import AnimationType, CaptionStyle, Timeline, TransitionType, VideoConfig

CFG = VideoConfig(aspect_ratio="1:1")


def test_blank_frame_is_black(cache):
    frame = render(1, Timeline(), CFG, cache)
    arr = frame_array(rasterize(frame, cache))
    assert arr.shape == (720, 720, 3)
    assert arr.dtype == np.uint8
    assert not arr.any()


def test_image_covers_the_frame(cache, red_asset):
    tl = Timeline((segment(0, 5, red_asset.id),))
    arr = frame_array(rasterize(render(1, tl, CFG, cache), cache))
    assert tuple(arr[360, 360]) == (255, 0, 0)
    assert tuple(arr[0, 0]) == (255, 0, 0)
    assert tuple(arr[719, 719]) == (255, 0, 0)


def test_fade_start_shows_background(cache, red_asset):
    tl = Timeline((segment(0, 5, red_asset.id, transition=TransitionType.FADE),))
    arr = frame_array(rasterize(render(0, tl, CFG, cache), cache))
    assert not arr.any()
    half = frame_array(rasterize(render(0.25, tl, CFG, cache), cache))
    assert 100 < half[360, 360, 0] < 155


def test_caption_draws_box_and_text(cache, red_asset):
    plain = Timeline((segment(0, 5, red_asset.id),))
    captioned = Timeline((segment(0, 5, red_asset.id, caption="Hello there"),))
    a = frame_array(rasterize(render(1, plain, CFG, cache), cache))
    b = frame_array(rasterize(render(1, captioned, CFG, cache), cache))
    assert (a != b).any()
    bx, by, _, _ = layout_caption("Hello there", 720, 720, CaptionStyle.CLASSIC)[0].box
    # translucent box over red, clear of the glyphs
    assert 120 < b[by + 2, bx + 3, 0] < 180
    assert (a[:500] == b[:500]).all()


def test_rasterize_is_deterministic(cache, red_asset):
    tl = Timeline((segment(0, 5, red_asset.id, "Same words every time",
                           AnimationType.PAN_ZOOM, TransitionType.FADE),))
    for t in (0.1, 2.5, 4.9):
        frame = render(t, tl, CFG, cache)
        first = frame_array(rasterize(frame, cache))
        second = frame_array(rasterize(frame, cache, pygame.Surface((720, 720))))
        assert np.array_equal(first, second)


def test_reuses_surface_of_matching_size(cache):
    surf = pygame.Surface((720, 720))
    assert rasterize(render(0, Timeline(), CFG, cache), cache, surf) is surf


def test_present_letterboxes():
    screen = pygame.Surface((200, 200))
    canvas = pygame.Surface((100, 50))
    canvas.fill((0, 255, 0))
    present(screen, canvas)
    assert screen.get_at((100, 100))[:3] == (0, 255, 0)
    assert screen.get_at((100, 10))[:3] == (0, 0, 0)
