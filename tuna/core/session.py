"""
Coordinates one refresh cycle per song snapshot supplied by the host.
"""

import logging

from tuna.media.assets import AssetSync
from tuna.media.fetcher import Fetcher
from tuna.models.config import TunaConfig
from tuna.models.song import Song
from tuna.models.stats import SyncStats

from .compat import HOST_API_VERSION, CompatibilityGate
from .formatter import Renderer, SongFormatter
from .outputs import OutputWriter

log = logging.getLogger(__name__)


class SyncSession:
    """
    Owns the fetcher, asset sync and output writer for the lifetime of the
    host, and optionally the compatibility gate for the VLC module.
    """

    def __init__(
        self,
        config: TunaConfig,
        renderer: Renderer | None = None,
        fetcher: Fetcher | None = None,
        gate: CompatibilityGate | None = None,
    ):
        self.config = config
        self.stats = SyncStats()
        self.fetcher = fetcher or Fetcher()
        self.gate = gate
        self.assets = AssetSync(config.assets, self.fetcher, self.stats)
        self.writer = OutputWriter(
            config.outputs,
            config.placeholder,
            renderer or SongFormatter(),
            self.stats,
        )

    def startup(self, host_version: int = HOST_API_VERSION) -> bool:
        """Runs the VLC compatibility gate, if any. Returns True if VLC got loaded."""
        if self.gate is None:
            return False
        return self.gate.start(host_version)

    async def refresh(self, song: Song) -> None:
        """Passes a fresh snapshot to the asset sync and the output writer."""
        self.stats.cycles += 1
        log.debug(
            f"Refresh cycle {self.stats.cycles}: '{song.title}' ({song.state.name})"
        )
        await self.assets.update(song)
        await self.writer.handle_outputs(song)

    async def shutdown(self) -> None:
        if self.gate is not None:
            self.gate.unload()
        await self.fetcher.close()

    async def __aenter__(self) -> "SyncSession":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.shutdown()
        return False
