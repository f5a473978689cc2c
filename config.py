# config.py
"""
Configuration settings for the slideshow studio.
"""

FPS = 30

# ── Basic Application Settings ──────────────────────────────────────────────

LOG_LEVEL = "INFO"

# Display settings
FULLSCREEN = False
WINDOW_SCALE = 0.75          # on-screen preview size relative to the frame

# Seconds skipped per ←/→ key press
SEEK_STEP = 5.0

SHOW_OVERLAYS = True

# ── Frame geometry ─────────────────────────────────────────────────────────

FRAME_SIZES = {
    "16:9": (1280, 720),
    "9:16": (720, 1280),
    "1:1":  (720, 720),
}
DEFAULT_ASPECT_RATIO = "16:9"
DEFAULT_STYLE        = "Professional"
DEFAULT_CAPTION_STYLE = "Classic"

BACKGROUND = (0, 0, 0)

# ── Animation / transition knobs ───────────────────────────────────────────

ZOOM_IN_GAIN      = 0.15    # ZOOM_IN scales 1.0 → 1.15
PAN_ZOOM_SCALE    = 1.1
PAN_ZOOM_TRAVEL   = 40.0    # px, centred on the segment midpoint
SLIDE_LEFT_TRAVEL = 50.0    # px over the whole segment
FADE_DURATION     = 0.5     # s of linear fade-in at segment start

# ── Captions ───────────────────────────────────────────────────────────────

CAPTION_FONT_PATH     = None     # None → pygame default font
CAPTION_FONT_SIZES    = {"Classic": 28, "Karaoke": 32, "Bold": 32}
CAPTION_WIDTH_RATIO   = 0.8
CAPTION_LINE_HEIGHT   = 40
CAPTION_BOTTOM_MARGIN = 50
CAPTION_PAD_X         = 10
CAPTION_BOX_RISE      = 30       # box top sits this far above the text bottom
CAPTION_BOX_COLOR     = (0, 0, 0, 102)
CAPTION_TEXT_COLOR    = (255, 255, 255)
CAPTION_SHADOW_COLOR  = (0, 0, 0, 204)
CAPTION_SHADOW_OFFSET = (2, 2)

# ── Capture ────────────────────────────────────────────────────────────────

CAPTURE_FILENAME     = "ai-video.webm"
CAPTURE_MIME         = "video/webm"
CAPTURE_OUTPUT_DIR   = "."
CAPTURE_FORMAT       = "webm"
CAPTURE_VIDEO_CODEC  = "libvpx"
CAPTURE_PIX_FMT      = "yuv420p"
CAPTURE_AUDIO_CODEC  = "libopus"
CAPTURE_AUDIO_RATE   = 48000
CAPTURE_AUDIO_LAYOUT = "stereo"
CAPTURE_AUDIO_FORMAT = "s16"

# ── Project snapshot ───────────────────────────────────────────────────────

PROJECT_FILENAME = "project_data.json"
