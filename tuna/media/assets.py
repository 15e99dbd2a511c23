"""
Keeps the local cover image and lyrics file in sync with the current song.
"""

import asyncio
import logging
import shutil
from contextlib import suppress
from pathlib import Path

from tuna.exceptions import AssetError
from tuna.models.config import AssetPaths
from tuna.models.song import Capability, Song
from tuna.models.stats import SyncStats

from .fetcher import Fetcher

log = logging.getLogger(__name__)


def _remove(path: Path) -> None:
    try:
        path.unlink(missing_ok=True)
    except OSError as e:
        raise AssetError(f"Couldn't remove '{path}': {e}") from e


class AssetSync:
    """
    Fetches cover art and lyrics to the configured paths.

    The cover is downloaded next to the live file and only renamed onto it once
    the transfer completed, so the live cover is never partially written.
    `last_lyrics` and `last_cover` remember the remote values seen last and
    live as long as this instance.
    """

    def __init__(
        self,
        paths: AssetPaths,
        fetcher: Fetcher,
        stats: SyncStats | None = None,
    ):
        self.paths = paths
        self.fetcher = fetcher
        self.stats = stats or SyncStats()
        self.last_lyrics = ""
        # None: nothing synced yet, "": placeholder is live
        self.last_cover: str | None = None

    async def sync_cover(self, song: Song) -> bool:
        """
        Replaces the live cover with the one at `song.cover_url`.

        The existing live cover is removed whether or not the download worked,
        so a failed sync leaves no cover rather than a stale one; follow a
        failed sync with `reset_cover()`.
        """
        cover = self.paths.cover_path
        tmp = self.paths.cover_tmp_path
        result = await self.fetcher.fetch(song.cover_url, tmp)

        try:
            # Replace cover only after download is done
            await asyncio.to_thread(_remove, cover)
            if result:
                await asyncio.to_thread(tmp.replace, cover)
        except AssetError as e:
            log.error(f"[red]✗ {e}[/red]")
            result = False
        except OSError as e:
            log.error(f"[red]✗ Couldn't rename temporary cover file:[/] {e}")
            result = False
        finally:
            if tmp.exists():
                with suppress(OSError):
                    tmp.unlink()

        if result:
            self.stats.covers_fetched += 1
        else:
            self.stats.covers_failed += 1
        return result

    async def reset_cover(self) -> bool:
        """Removes the live cover and puts a copy of the placeholder cover in its place."""
        cover = self.paths.cover_path
        tmp = self.paths.cover_tmp_path

        def _copy_placeholder() -> None:
            _remove(cover)
            shutil.copyfile(self.paths.cover_placeholder, tmp)
            tmp.replace(cover)

        try:
            await asyncio.to_thread(_copy_placeholder)
        except (AssetError, OSError) as e:
            log.error(f"[red]✗ Couldn't move placeholder cover:[/] {e}")
            with suppress(OSError):
                tmp.unlink(missing_ok=True)
            return False

        self.stats.covers_reset += 1
        return True

    async def sync_lyrics(self, song: Song) -> None:
        """
        Fetches the song's lyrics straight into the lyrics file if they changed.

        Only runs when the song reports lyrics and they differ from the last
        value synced. The remembered value is updated before fetching and not
        rolled back on failure, so a failed fetch is not retried for the same song.
        """
        if not song.has(Capability.LYRICS) or not song.lyrics_url:
            return
        if song.lyrics_url == self.last_lyrics:
            return

        self.last_lyrics = song.lyrics_url
        if await self.fetcher.fetch(song.lyrics_url, self.paths.lyrics_path):
            self.stats.lyrics_fetched += 1
        else:
            self.stats.lyrics_failed += 1
            log.error(
                f"[red]✗ Couldn't download lyrics from '{song.lyrics_url}' "
                f"to '{self.paths.lyrics_path}'[/red]"
            )

    async def update(self, song: Song) -> None:
        """
        Brings cover and lyrics up to date with `song`.

        A cover URL equal to the last one seen is not fetched again; a song
        without a cover gets the placeholder, once.
        """
        if song.has(Capability.COVER) and song.cover_url:
            if song.cover_url != self.last_cover:
                self.last_cover = song.cover_url
                if not await self.sync_cover(song):
                    await self.reset_cover()
        elif self.last_cover != "":
            self.last_cover = ""
            await self.reset_cover()

        await self.sync_lyrics(song)
