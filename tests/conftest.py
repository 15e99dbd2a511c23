"""Test configuration and fixtures"""

import asyncio
import tempfile
from pathlib import Path

import pytest
import pytest_asyncio
from aiohttp import web
from aiohttp.test_utils import TestServer

from tuna.media.fetcher import Fetcher
from tuna.models.config import AssetPaths, OutputTarget, TunaConfig
from tuna.models.song import Song

COVER_BYTES = b"cover-bytes"
PLACEHOLDER_BYTES = b"placeholder-bytes"
LYRICS_TEXT = "first line\nsecond line\n"
SLOW_COVER_BYTES = b"x" * 50


@pytest.fixture
def temp_dir():
    """Create temporary directory for tests"""
    with tempfile.TemporaryDirectory() as temp_dir:
        yield Path(temp_dir)


@pytest.fixture
def make_song():
    """Factory for song snapshots; keyword arguments override the defaults."""

    def _make(**fields) -> Song:
        data = {
            "state": "playing",
            "title": "Blue Monday",
            "artists": ["New Order"],
            "album": "Power, Corruption & Lies",
        }
        data.update(fields)
        return Song.model_validate(data)

    return _make


@pytest.fixture
def asset_paths(temp_dir):
    placeholder = temp_dir / "placeholder.png"
    placeholder.write_bytes(PLACEHOLDER_BYTES)
    return AssetPaths(
        cover_path=temp_dir / "cover.png",
        cover_placeholder=placeholder,
        lyrics_path=temp_dir / "lyrics.txt",
    )


@pytest.fixture
def tuna_config(temp_dir, asset_paths):
    return TunaConfig(
        placeholder="Nothing playing",
        assets=asset_paths,
        outputs=[
            OutputTarget(path=temp_dir / "song.txt", format="{title} - {artists}")
        ],
    )


class MediaServer:
    """A local HTTP server serving cover and lyrics files, counting requests."""

    def __init__(self, server: TestServer):
        self.server = server
        self.requests: dict[str, int] = {}

    def url(self, path: str) -> str:
        return str(self.server.make_url(path))

    def count(self, path: str) -> int:
        return self.requests.get(path, 0)


@pytest_asyncio.fixture
async def media_server():
    requests: dict[str, int] = {}

    @web.middleware
    async def count_requests(request, handler):
        requests[request.path] = requests.get(request.path, 0) + 1
        return await handler(request)

    async def cover(request):
        return web.Response(body=COVER_BYTES, content_type="image/png")

    async def other_cover(request):
        return web.Response(body=b"other-cover", content_type="image/png")

    async def slow_cover(request):
        response = web.StreamResponse(headers={"Content-Type": "image/png"})
        response.content_length = len(SLOW_COVER_BYTES)
        await response.prepare(request)
        for start in range(0, len(SLOW_COVER_BYTES), 10):
            await response.write(SLOW_COVER_BYTES[start : start + 10])
            await asyncio.sleep(0.02)
        await response.write_eof()
        return response

    async def lyrics(request):
        return web.Response(text=LYRICS_TEXT)

    async def missing(request):
        raise web.HTTPNotFound()

    app = web.Application(middlewares=[count_requests])
    app.router.add_get("/cover.png", cover)
    app.router.add_get("/other.png", other_cover)
    app.router.add_get("/slow.png", slow_cover)
    app.router.add_get("/lyrics.txt", lyrics)
    app.router.add_get("/missing", missing)

    server = TestServer(app)
    await server.start_server()
    media = MediaServer(server)
    media.requests = requests
    try:
        yield media
    finally:
        await server.close()


@pytest_asyncio.fixture
async def fetcher():
    async with Fetcher() as f:
        yield f
