"""
assets.py

Uploaded assets and the decoded-raster cache.

Public API
----------
AssetLibrary.add(path, kind)     → AssetItem (owns its source bytes)
AssetLibrary.remove(asset_id)    → releases the source and evicts the raster
AssetCache.get_or_load(asset_id) → pygame.Surface or None (pending/unavailable)
AssetCache.load_now(asset_id)    → synchronous decode
"""

from __future__ import annotations

import io
import logging
import os
import queue
import threading
import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional

import pygame

logger = logging.getLogger(__name__)


class AssetKind(Enum):
    IMAGE = "image"
    AUDIO = "audio"
    MUSIC = "music"


class AssetStatus(Enum):
    PENDING     = "pending"
    READY       = "ready"
    UNAVAILABLE = "unavailable"


# ── Source resource ─────────────────────────────────────────────────────────
class AssetResource:
    """
    In-memory copy of an uploaded file.  Owned by exactly one AssetItem and
    released when that item leaves the library.
    """

    def __init__(self, data: bytes, name: str):
        self.name = name
        self._buf: Optional[io.BytesIO] = io.BytesIO(data)

    @classmethod
    def from_path(cls, path: str) -> "AssetResource":
        with open(path, "rb") as f:
            return cls(f.read(), os.path.basename(path))

    @property
    def released(self) -> bool:
        return self._buf is None

    def open(self) -> io.BytesIO:
        if self._buf is None:
            raise ValueError(f"resource {self.name!r} already released")
        return io.BytesIO(self._buf.getbuffer())

    def release(self) -> None:
        if self._buf is not None:
            self._buf.close()
            self._buf = None


@dataclass
class AssetItem:
    id: str
    kind: AssetKind
    name: str
    resource: AssetResource = field(repr=False)
    path: Optional[str] = None

    def to_dict(self) -> dict:
        return {"id": self.id, "type": self.kind.value, "name": self.name}


def _new_id() -> str:
    return uuid.uuid4().hex[:9]


# ── Library ─────────────────────────────────────────────────────────────────
class AssetLibrary:
    """Session-owned, ordered set of uploaded assets."""

    def __init__(self) -> None:
        self._items: Dict[str, AssetItem] = {}
        self._cache: Optional["AssetCache"] = None

    def attach_cache(self, cache: "AssetCache") -> None:
        self._cache = cache

    def add(self, path: str, kind: AssetKind = AssetKind.IMAGE) -> AssetItem:
        item = AssetItem(
            id=_new_id(),
            kind=kind,
            name=os.path.basename(path),
            resource=AssetResource.from_path(path),
            path=os.path.abspath(path),
        )
        self._items[item.id] = item
        logger.info("[assets] added %s %s (%s)", kind.value, item.name, item.id)
        return item

    def add_bytes(self, data: bytes, name: str,
                  kind: AssetKind = AssetKind.IMAGE) -> AssetItem:
        item = AssetItem(id=_new_id(), kind=kind, name=name,
                         resource=AssetResource(data, name))
        self._items[item.id] = item
        return item

    def remove(self, asset_id: str) -> None:
        item = self._items.pop(asset_id, None)
        if item is None:
            return
        if self._cache is not None:
            self._cache.evict(asset_id)
        item.resource.release()
        logger.info("[assets] removed %s (%s)", item.name, asset_id)

    def get(self, asset_id: str) -> Optional[AssetItem]:
        return self._items.get(asset_id)

    def images(self) -> List[AssetItem]:
        return [a for a in self._items.values() if a.kind is AssetKind.IMAGE]

    def audio(self) -> Optional[AssetItem]:
        """Most recently added voice-over / music track, if any."""
        tracks = [a for a in self._items.values() if a.kind is not AssetKind.IMAGE]
        return tracks[-1] if tracks else None

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self):
        return iter(list(self._items.values()))


# ── Cache ───────────────────────────────────────────────────────────────────
class AssetCache:
    """
    Lazily decodes image assets into pygame Surfaces on a background thread.

    A render never waits: until a decode finishes `get_or_load()` returns
    None and the compositor draws the background only.  Entries live until
    the asset is removed from the library.
    """

    def __init__(self, library: AssetLibrary):
        self.library = library
        library.attach_cache(self)
        self._rasters: Dict[str, pygame.Surface] = {}
        self._status: Dict[str, AssetStatus] = {}
        self._lock = threading.Lock()
        self._q: "queue.Queue[str]" = queue.Queue()
        self._worker: Optional[threading.Thread] = None

    # ── public API ──────────────────────────────────────────────────────────
    def get_or_load(self, asset_id: str) -> Optional[pygame.Surface]:
        with self._lock:
            raster = self._rasters.get(asset_id)
            if raster is not None:
                return raster
            if asset_id in self._status:
                return None
            self._status[asset_id] = AssetStatus.PENDING
        self._q.put(asset_id)
        self._ensure_worker()
        return None

    def load_now(self, asset_id: str) -> Optional[pygame.Surface]:
        with self._lock:
            raster = self._rasters.get(asset_id)
            if raster is not None:
                return raster
            self._status[asset_id] = AssetStatus.PENDING
        self._decode(asset_id)
        with self._lock:
            return self._rasters.get(asset_id)

    def status(self, asset_id: str) -> Optional[AssetStatus]:
        with self._lock:
            return self._status.get(asset_id)

    def available_ids(self) -> List[str]:
        with self._lock:
            return list(self._rasters)

    def evict(self, asset_id: str) -> None:
        with self._lock:
            self._rasters.pop(asset_id, None)
            self._status.pop(asset_id, None)

    def wait_idle(self, timeout: float = 5.0) -> bool:
        """Block until queued decodes finish (tests, pre-capture warm-up)."""
        done = threading.Event()

        def _join():
            self._q.join()
            done.set()

        threading.Thread(target=_join, daemon=True).start()
        return done.wait(timeout)

    # ── internals ───────────────────────────────────────────────────────────
    def _ensure_worker(self) -> None:
        if self._worker is not None and self._worker.is_alive():
            return
        self._worker = threading.Thread(target=self._run, name="asset-decoder", daemon=True)
        self._worker.start()

    def _run(self) -> None:
        while True:
            asset_id = self._q.get()
            try:
                self._decode(asset_id)
            finally:
                self._q.task_done()

    def _decode(self, asset_id: str) -> None:
        item = self.library.get(asset_id)
        if item is None or item.kind is not AssetKind.IMAGE:
            logger.warning("[assets] no image asset %s; rendering without it", asset_id)
            self._mark(asset_id, None)
            return
        try:
            loaded = pygame.image.load(item.resource.open(), item.name)
            # 32-bit with alpha so smoothscale and set_alpha accept any source
            raster = pygame.Surface(loaded.get_size(), pygame.SRCALPHA, 32)
            raster.blit(loaded, (0, 0))
        except (pygame.error, ValueError, OSError) as exc:
            logger.warning("[assets] decode failed for %s: %s", item.name, exc)
            raster = None
        self._mark(asset_id, raster)

    def _mark(self, asset_id: str, raster: Optional[pygame.Surface]) -> None:
        with self._lock:
            # removed while decoding
            if asset_id not in self._status:
                return
            if raster is None:
                self._status[asset_id] = AssetStatus.UNAVAILABLE
            else:
                self._rasters[asset_id] = raster
                self._status[asset_id] = AssetStatus.READY
