import pygame
import pytest

from assets import AssetCache, AssetKind, AssetLibrary, AssetResource, AssetStatus


def test_first_request_is_pending_then_ready(library, cache, make_image):
    item = library.add(make_image(w=40, h=20))
    assert cache.get_or_load(item.id) is None
    assert cache.wait_idle()
    raster = cache.get_or_load(item.id)
    assert isinstance(raster, pygame.Surface)
    assert raster.get_size() == (40, 20)
    assert cache.status(item.id) is AssetStatus.READY
    assert cache.get_or_load(item.id) is raster


def test_decode_failure_is_not_fatal(library, cache):
    item = library.add_bytes(b"definitely not an image", "broken.png")
    assert cache.get_or_load(item.id) is None
    assert cache.wait_idle()
    assert cache.status(item.id) is AssetStatus.UNAVAILABLE
    assert cache.get_or_load(item.id) is None
    assert cache.available_ids() == []


def test_missing_reference_is_unavailable(cache):
    assert cache.load_now("nope") is None
    assert cache.status("nope") is AssetStatus.UNAVAILABLE


def test_audio_assets_are_not_decoded_as_images(library, cache, tmp_path):
    path = tmp_path / "voice.wav"
    path.write_bytes(b"RIFF0000WAVE")
    item = library.add(str(path), AssetKind.AUDIO)
    assert cache.load_now(item.id) is None
    assert library.audio() is item
    assert library.images() == []


def test_load_now_is_synchronous(red_asset, cache):
    assert red_asset.id in cache.available_ids()
    assert cache.status(red_asset.id) is AssetStatus.READY


def test_remove_releases_resource_and_evicts(library, cache, red_asset):
    resource = red_asset.resource
    library.remove(red_asset.id)
    assert resource.released
    assert cache.status(red_asset.id) is None
    assert cache.available_ids() == []
    assert library.get(red_asset.id) is None
    # a segment still pointing at it now renders without an image
    assert cache.load_now(red_asset.id) is None


def test_remove_unknown_is_noop(library):
    library.remove("ghost")
    assert len(library) == 0


def test_released_resource_cannot_be_opened():
    res = AssetResource(b"abc", "x.bin")
    assert res.open().read() == b"abc"
    res.release()
    res.release()
    with pytest.raises(ValueError):
        res.open()


def test_item_metadata(library, make_image):
    item = library.add(make_image(name="cover.bmp"))
    assert item.to_dict() == {"id": item.id, "type": "image", "name": "cover.bmp"}
    assert len(item.id) == 9


def test_ids_are_unique(library, make_image):
    path = make_image()
    ids = {library.add(path).id for _ in range(20)}
    assert len(ids) == 20


def test_cache_keeps_every_loaded_asset(make_image):
    lib = AssetLibrary()
    cache = AssetCache(lib)
    items = [lib.add(make_image(name=f"{i}.bmp")) for i in range(5)]
    for it in items:
        cache.get_or_load(it.id)
    assert cache.wait_idle()
    assert sorted(cache.available_ids()) == sorted(i.id for i in items)
