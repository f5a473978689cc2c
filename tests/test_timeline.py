import pytest

from conftest import segment
from timeline import (AnimationType, CaptionStyle, Timeline, TimelineError,
                      TimelineSegment, TransitionType, VideoConfig, adopt_generation)


def _rec(**kw):
    rec = {"startTime": 0, "endTime": 4, "imageIndex": 0, "caption": "hi",
           "animation": "zoom_in", "transition": "fade"}
    rec.update(kw)
    return rec


class TestTimeline:
    def test_first_declared_segment_wins_on_overlap(self):
        a = segment(0, 10, "A")
        b = segment(5, 15, "B")
        assert Timeline((a, b)).active_segment(7) is a

    def test_range_is_closed_at_both_ends(self):
        seg = segment(2, 4)
        tl = Timeline((seg,))
        assert tl.active_segment(2.0) is seg
        assert tl.active_segment(4.0) is seg

    def test_time_past_last_segment_has_no_match(self):
        tl = Timeline((segment(0, 5), segment(5, 10)))
        assert tl.active_segment(10.000001) is None
        assert tl.active_segment(-0.1) is None

    def test_empty_timeline(self):
        assert Timeline().active_segment(0) is None
        assert Timeline().end_time == 0.0

    def test_segment_rejects_reversed_range(self):
        with pytest.raises(TimelineError):
            TimelineSegment(5, 4, "a")

    def test_zero_length_segment_is_allowed(self):
        assert TimelineSegment(3, 3, "a").duration == 0


class TestVideoConfig:
    def test_frame_size_follows_aspect_ratio(self):
        assert VideoConfig().frame_size == (1280, 720)
        assert VideoConfig(aspect_ratio="9:16").frame_size == (720, 1280)
        assert VideoConfig(aspect_ratio="1:1").frame_size == (720, 720)

    def test_unknown_aspect_ratio(self):
        with pytest.raises(ValueError):
            VideoConfig(aspect_ratio="4:3")

    def test_to_dict(self):
        cfg = VideoConfig(caption_style=CaptionStyle.BOLD)
        assert cfg.to_dict() == {"aspectRatio": "16:9", "style": "Professional",
                                 "captionStyle": "Bold"}


class TestAdoptGeneration:
    def test_maps_image_index_to_asset_id(self):
        tl = adopt_generation([_rec(imageIndex=1), _rec(startTime=4, endTime=8, imageIndex=0)],
                              ["id0", "id1"])
        assert [s.asset_id for s in tl] == ["id1", "id0"]
        first = tl.segments[0]
        assert first.animation is AnimationType.ZOOM_IN
        assert first.transition is TransitionType.FADE
        assert first.caption == "hi"

    @pytest.mark.parametrize("index", [7, -1, None, "2", True])
    def test_bad_image_index_falls_back_to_first_asset(self, index):
        tl = adopt_generation([_rec(imageIndex=index)], ["id0", "id1"])
        assert tl.segments[0].asset_id == "id0"

    def test_enum_accepts_member_names(self):
        tl = adopt_generation([_rec(animation="SLIDE_LEFT", transition="Dissolve")], ["x"])
        assert tl.segments[0].animation is AnimationType.SLIDE_LEFT
        assert tl.segments[0].transition is TransitionType.DISSOLVE

    def test_missing_caption_becomes_empty(self):
        rec = _rec()
        del rec["caption"]
        assert adopt_generation([rec], ["x"]).segments[0].caption == ""

    @pytest.mark.parametrize("bad", [
        {"startTime": "0"},
        {"endTime": None},
        {"animation": "spin"},
        {"transition": 3},
        {"caption": ["a"]},
        {"startTime": 9, "endTime": 1},
    ])
    def test_malformed_record_is_rejected(self, bad):
        with pytest.raises(TimelineError):
            adopt_generation([_rec(**bad)], ["x"])

    def test_non_list_result_is_rejected(self):
        with pytest.raises(TimelineError):
            adopt_generation({"startTime": 0}, ["x"])
        with pytest.raises(TimelineError):
            adopt_generation(["nope"], ["x"])

    def test_needs_images(self):
        with pytest.raises(TimelineError):
            adopt_generation([_rec()], [])

    def test_previous_timeline_survives_failed_adoption(self):
        current = adopt_generation([_rec()], ["x"])
        try:
            current = adopt_generation([_rec(), _rec(animation="bogus")], ["x"])
        except TimelineError:
            pass
        assert len(current) == 1
