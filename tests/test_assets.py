"""Tests for cover and lyrics synchronization"""

import asyncio

import pytest

from tests.conftest import (
    COVER_BYTES,
    LYRICS_TEXT,
    PLACEHOLDER_BYTES,
    SLOW_COVER_BYTES,
)
from tuna.media.assets import AssetSync
from tuna.models.song import Capability


@pytest.fixture
def assets(asset_paths, fetcher):
    return AssetSync(asset_paths, fetcher)


async def test_sync_cover_replaces_live_cover(assets, asset_paths, make_song, media_server):
    asset_paths.cover_path.write_bytes(b"old cover")
    song = make_song(cover_url=media_server.url("/cover.png"))

    assert await assets.sync_cover(song) is True
    assert asset_paths.cover_path.read_bytes() == COVER_BYTES
    assert not asset_paths.cover_tmp_path.exists()
    assert assets.stats.covers_fetched == 1


async def test_live_cover_is_never_partially_written(
    assets, asset_paths, make_song, media_server
):
    asset_paths.cover_path.write_bytes(b"old")
    song = make_song(cover_url=media_server.url("/slow.png"))
    seen = []
    done = asyncio.Event()

    async def watch_cover():
        while not done.is_set():
            try:
                seen.append(asset_paths.cover_path.read_bytes())
            except FileNotFoundError:
                seen.append(None)
            await asyncio.sleep(0.005)

    async def sync():
        try:
            return await assets.sync_cover(song)
        finally:
            done.set()

    result, _ = await asyncio.gather(sync(), watch_cover())

    assert result is True
    assert len(seen) > 1
    assert set(seen) <= {None, b"old", SLOW_COVER_BYTES}
    assert asset_paths.cover_path.read_bytes() == SLOW_COVER_BYTES


async def test_failed_cover_sync_leaves_no_cover(
    assets, asset_paths, make_song, media_server
):
    asset_paths.cover_path.write_bytes(b"stale cover")
    song = make_song(cover_url=media_server.url("/missing"))

    assert await assets.sync_cover(song) is False
    assert not asset_paths.cover_path.exists()
    assert not asset_paths.cover_tmp_path.exists()
    assert assets.stats.covers_failed == 1


async def test_reset_cover_copies_placeholder(assets, asset_paths):
    asset_paths.cover_path.write_bytes(b"stale cover")

    assert await assets.reset_cover() is True
    assert asset_paths.cover_path.read_bytes() == PLACEHOLDER_BYTES
    assert asset_paths.cover_placeholder.read_bytes() == PLACEHOLDER_BYTES
    assert not asset_paths.cover_tmp_path.exists()


async def test_reset_cover_without_placeholder_fails(assets, asset_paths, caplog):
    asset_paths.cover_placeholder.unlink()

    assert await assets.reset_cover() is False
    assert "Couldn't move placeholder cover" in caplog.text
    assert not asset_paths.cover_path.exists()


async def test_sync_lyrics_fetches_once_per_value(
    assets, asset_paths, make_song, media_server
):
    song = make_song(lyrics_url=media_server.url("/lyrics.txt"))

    await assets.sync_lyrics(song)
    await assets.sync_lyrics(song)

    assert asset_paths.lyrics_path.read_text(encoding="utf-8") == LYRICS_TEXT
    assert media_server.count("/lyrics.txt") == 1
    assert assets.stats.lyrics_fetched == 1


async def test_sync_lyrics_requires_capability(
    assets, asset_paths, make_song, media_server
):
    song = make_song(
        lyrics_url=media_server.url("/lyrics.txt"),
        capabilities=int(Capability.TITLE),
    )

    await assets.sync_lyrics(song)

    assert not asset_paths.lyrics_path.exists()
    assert media_server.count("/lyrics.txt") == 0


async def test_failed_lyrics_are_not_retried(assets, make_song, media_server):
    song = make_song(lyrics_url=media_server.url("/missing"))

    await assets.sync_lyrics(song)
    await assets.sync_lyrics(song)

    assert media_server.count("/missing") == 1
    assert assets.stats.lyrics_failed == 1


async def test_update_skips_unchanged_cover(assets, asset_paths, make_song, media_server):
    song = make_song(cover_url=media_server.url("/cover.png"))

    await assets.update(song)
    await assets.update(song)

    assert media_server.count("/cover.png") == 1
    assert asset_paths.cover_path.read_bytes() == COVER_BYTES


async def test_update_fetches_new_cover(assets, asset_paths, make_song, media_server):
    await assets.update(make_song(cover_url=media_server.url("/cover.png")))
    await assets.update(make_song(cover_url=media_server.url("/other.png")))

    assert asset_paths.cover_path.read_bytes() == b"other-cover"


async def test_update_falls_back_to_placeholder(
    assets, asset_paths, make_song, media_server
):
    await assets.update(make_song(cover_url=media_server.url("/missing")))

    assert asset_paths.cover_path.read_bytes() == PLACEHOLDER_BYTES
    assert assets.stats.covers_failed == 1
    assert assets.stats.covers_reset == 1


async def test_update_without_cover_resets_once(assets, asset_paths, make_song):
    song = make_song()

    await assets.update(song)
    asset_paths.cover_path.write_bytes(b"touched")
    await assets.update(song)

    assert asset_paths.cover_path.read_bytes() == b"touched"
    assert assets.stats.covers_reset == 1


async def test_failed_cover_url_is_not_retried(assets, make_song, media_server):
    song = make_song(cover_url=media_server.url("/missing"))

    await assets.update(song)
    await assets.update(song)

    assert media_server.count("/missing") == 1
    assert assets.stats.covers_reset == 1
