"""
project.py  – project snapshot export and generation-result loading

The snapshot is metadata only (config, timeline, asset list); asset bytes
are never written, so it cannot be reloaded into a session.
"""
from __future__ import annotations

import json
import logging
import pathlib
from typing import Any, List

from assets import AssetLibrary
from timeline import Timeline, TimelineError, VideoConfig

logger = logging.getLogger(__name__)


def snapshot(video_config: VideoConfig, timeline: Timeline, library: AssetLibrary) -> dict:
    return {
        "config":   video_config.to_dict(),
        "timeline": [s.to_dict() for s in timeline],
        "images":   [a.to_dict() for a in library.images()],
    }


def save_snapshot(path: str, video_config: VideoConfig, timeline: Timeline,
                  library: AssetLibrary) -> pathlib.Path:
    out = pathlib.Path(path)
    out.parent.mkdir(parents=True, exist_ok=True)
    out.write_text(json.dumps(snapshot(video_config, timeline, library), indent=2))
    logger.info("[project] snapshot written → %s", out)
    return out


def load_generation(path: str) -> List[dict[str, Any]]:
    """
    Read generator output saved as JSON: either a bare list of records or an
    object with a "timeline" list.
    """
    try:
        data = json.loads(pathlib.Path(path).read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        raise TimelineError(f"cannot read generation result {path}: {exc}") from exc

    if isinstance(data, dict):
        data = data.get("timeline")
    if not isinstance(data, list):
        raise TimelineError(f"{path}: expected a list of timeline records")
    return data
