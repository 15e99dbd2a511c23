"""Tests for the HTTP fetcher"""

import aiohttp

from tests.conftest import COVER_BYTES
from tuna.media.fetcher import Fetcher


async def test_fetch_writes_response_body(fetcher, media_server, temp_dir):
    dest = temp_dir / "cover.png"

    assert await fetcher.fetch(media_server.url("/cover.png"), dest) is True
    assert dest.read_bytes() == COVER_BYTES
    assert media_server.count("/cover.png") == 1


async def test_fetch_overwrites_existing_file(fetcher, media_server, temp_dir):
    dest = temp_dir / "cover.png"
    dest.write_bytes(b"a much longer stale file that should disappear")

    assert await fetcher.fetch(media_server.url("/cover.png"), dest)
    assert dest.read_bytes() == COVER_BYTES


async def test_fetch_non_success_status_returns_false(
    fetcher, media_server, temp_dir, caplog
):
    dest = temp_dir / "cover.png"

    assert await fetcher.fetch(media_server.url("/missing"), dest) is False
    assert "Couldn't fetch file" in caplog.text


async def test_fetch_unopenable_destination_skips_network(
    fetcher, media_server, temp_dir
):
    dest = temp_dir / "no-such-dir" / "cover.png"

    assert await fetcher.fetch(media_server.url("/cover.png"), dest) is False
    assert media_server.count("/cover.png") == 0


async def test_fetch_connection_error_returns_false(fetcher, temp_dir):
    # Nothing listens on port 1
    assert await fetcher.fetch("http://127.0.0.1:1/cover.png", temp_dir / "x") is False


async def test_fetch_invalid_url_returns_false(fetcher, temp_dir):
    assert await fetcher.fetch("not a url", temp_dir / "x") is False


async def test_close_keeps_borrowed_session(media_server, temp_dir):
    async with aiohttp.ClientSession() as session:
        fetcher = Fetcher(session)
        assert await fetcher.fetch(media_server.url("/cover.png"), temp_dir / "c")
        await fetcher.close()
        assert not session.closed
