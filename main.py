import argparse
import logging
import sys

import config
from timeline import CaptionStyle, VideoConfig


def parse_args(argv=None):
    ap = argparse.ArgumentParser(description="Composite a timed slideshow over a voice-over")
    ap.add_argument("--audio", help="voice-over or music track")
    ap.add_argument("--images", nargs="+", default=[], help="image assets, in order")
    ap.add_argument("--timeline", help="generator result (JSON list of segment records)")
    ap.add_argument("--aspect", default=config.DEFAULT_ASPECT_RATIO,
                    choices=sorted(config.FRAME_SIZES))
    ap.add_argument("--style", default=config.DEFAULT_STYLE,
                    choices=["Professional", "Modern", "Minimal"])
    ap.add_argument("--caption-style", default=config.DEFAULT_CAPTION_STYLE,
                    choices=[s.value for s in CaptionStyle])
    ap.add_argument("--out", default=config.CAPTURE_OUTPUT_DIR,
                    help="folder for the captured video and project snapshot")
    ap.add_argument("--render", action="store_true",
                    help="capture once and exit when the file is written")
    ap.add_argument("-v", "--verbose", action="store_true")
    return ap.parse_args(argv)


def main(argv=None):
    args = parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else config.LOG_LEVEL,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    from app import StudioApp

    video_config = VideoConfig(
        aspect_ratio=args.aspect,
        style=args.style,
        caption_style=CaptionStyle(args.caption_style),
    )
    studio = StudioApp(
        args.audio, args.images, video_config,
        timeline_path=args.timeline,
        output_dir=args.out,
        render_and_exit=args.render,
    )
    return studio.run()


if __name__ == "__main__":
    sys.exit(main())
