"""
Handles the low-level fetching of remote files over HTTP(S) into local paths.
"""

import asyncio
import logging
import os

import aiofiles
import aiohttp

from tuna.exceptions import TransferError

log = logging.getLogger(__name__)


class Fetcher:
    """
    A plain HTTP(S) GET of a URL into a file: no caching, no retries.

    The underlying ClientSession is created on first use and kept for the
    lifetime of the fetcher; call `close()` (or use `async with`) when done.
    """

    CHUNK_SIZE = 65536  # 64 KB

    def __init__(self, session: aiohttp.ClientSession | None = None):
        self._session = session
        self._owns_session = session is None
        self._session_lock = asyncio.Lock()

    async def _get_session(self) -> aiohttp.ClientSession:
        async with self._session_lock:
            if self._session is None or self._session.closed:
                self._session = aiohttp.ClientSession()
                self._owns_session = True
                log.debug("Created HTTP session for fetcher.")
            return self._session

    async def close(self) -> None:
        """Closes the HTTP session if this fetcher created it."""
        async with self._session_lock:
            if self._owns_session and self._session and not self._session.closed:
                await self._session.close()
                log.debug("Fetcher HTTP session closed.")
            self._session = None

    async def __aenter__(self) -> "Fetcher":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()
        return False

    async def _stream_to_file(self, url: str, dest_path: str) -> int:
        """
        Streams the response body of `url` into `dest_path`.

        The destination is opened before the request is made, so an unwritable
        path fails without touching the network. Returns the number of bytes written.
        """
        try:
            f = await aiofiles.open(dest_path, "wb")
        except OSError as e:
            raise TransferError(f"Cannot open '{dest_path}' for writing: {e}") from e

        bytes_written = 0
        try:
            session = await self._get_session()
            async with session.get(url, allow_redirects=True) as response:
                response.raise_for_status()
                async for chunk in response.content.iter_chunked(self.CHUNK_SIZE):
                    await f.write(chunk)
                    bytes_written += len(chunk)
        except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as e:
            raise TransferError(f"{type(e).__name__}: {e}") from e
        finally:
            await f.close()
        return bytes_written

    async def fetch(self, url: str, dest_path: str | os.PathLike) -> bool:
        """
        Downloads `url` into `dest_path`, creating or overwriting it.

        Returns False (and logs an error) if the destination cannot be opened,
        the transfer fails or the server answers with a non-success status.
        On failure the destination may be left empty or partially written;
        callers needing atomic replacement must fetch into a temporary path.
        """
        dest_path = os.fspath(dest_path)
        try:
            size = await self._stream_to_file(url, dest_path)
        except TransferError as e:
            log.error(f"Couldn't fetch file from '{url}' to '{dest_path}': {e}")
            return False
        except OSError as e:
            log.error(f"Couldn't write '{url}' to '{dest_path}': {e}")
            return False

        log.debug(f"Fetched '{url}' to '{dest_path}' ({size} bytes)")
        return True
