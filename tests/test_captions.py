import pytest

from captions import caption_font, layout_caption, wrap
from timeline import CaptionStyle

TEXT = ("The quick brown fox jumps over the lazy dog while the narrator keeps "
        "talking about compositing frames in real time for the capture")


@pytest.mark.parametrize("style", list(CaptionStyle))
@pytest.mark.parametrize("width", [200, 640, 1280])
def test_lines_fit_within_eighty_percent(style, width):
    font = caption_font(style)
    limit = width * 0.8
    for line in wrap(TEXT, limit, font):
        assert font.size(line)[0] <= limit or " " not in line


def test_wrap_keeps_every_word_in_order():
    font = caption_font(CaptionStyle.CLASSIC)
    lines = wrap(TEXT, 300, font)
    assert len(lines) > 1
    assert " ".join(lines).split() == TEXT.split()


def test_overlong_word_sits_alone():
    font = caption_font(CaptionStyle.CLASSIC)
    word = "Supercalifragilisticexpialidocious"
    lines = wrap(f"a {word} b", font.size(word)[0] - 10, font)
    assert word in lines


def test_blank_caption_has_no_lines():
    font = caption_font(CaptionStyle.CLASSIC)
    assert wrap("", 500, font) == []
    assert wrap("   ", 500, font) == []


def test_font_per_style():
    assert caption_font(CaptionStyle.BOLD).get_bold()
    assert caption_font(CaptionStyle.KARAOKE).get_italic()
    classic = caption_font(CaptionStyle.CLASSIC)
    assert not classic.get_bold() and not classic.get_italic()
    assert classic.get_height() < caption_font(CaptionStyle.BOLD).get_height()


def test_layout_geometry_stacks_above_bottom_margin():
    lines = layout_caption(TEXT, 640, 360, CaptionStyle.CLASSIC)
    n = len(lines)
    assert n > 1
    for i, ln in enumerate(lines):
        x, y, w, h = ln.box
        assert w == ln.width + 20
        assert h == 40
        assert x == (640 - ln.width) // 2 - 10
        assert ln.anchor == (320, 360 - 50 - n * 40 + i * 40)
        assert y == ln.anchor[1] - 30
    assert lines[-1].anchor[1] == 360 - 90
