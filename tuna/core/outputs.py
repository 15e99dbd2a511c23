"""
Renders the current song into the configured output files.
"""

import logging

import aiofiles

from tuna.models.config import SPACE_MARKER, OutputTarget
from tuna.models.song import Song
from tuna.models.stats import SyncStats

from .formatter import Renderer

log = logging.getLogger(__name__)


class OutputWriter:
    """
    Writes the rendered song text to every configured output target.

    Each target remembers the text it last wrote, so identical consecutive
    renders never touch the file. Targets are handled in configured order and
    independently: a failing target does not affect the others.
    """

    def __init__(
        self,
        outputs: list[OutputTarget],
        placeholder: str,
        renderer: Renderer,
        stats: SyncStats | None = None,
    ):
        self.outputs = outputs
        self.placeholder = placeholder
        self.renderer = renderer
        self.stats = stats or SyncStats()

    def render_text(self, output: OutputTarget, song: Song) -> str:
        """Renders the target's format, falling back to the placeholder text."""
        text = self.renderer(output.format, song)
        if not text or not song.is_playing:
            # configparser strips leading and trailing spaces from values,
            # so they are stored as the marker and decoded here
            text = self.placeholder.replace(SPACE_MARKER, " ")
        return text

    async def handle_outputs(self, song: Song) -> int:
        """Renders `song` into every output target. Returns the number of files written."""
        written = 0
        for output in self.outputs:
            text = self.render_text(output, song)

            if output.log_mode and not song.is_playing:
                # No song playing text doesn't make sense in the log
                self.stats.outputs_suppressed += 1
                continue

            if output.last_output == text:
                self.stats.outputs_unchanged += 1
                continue

            if await self.write_song(output, text):
                written += 1
        return written

    async def write_song(self, output: OutputTarget, text: str) -> bool:
        """
        Overwrites (or, in log mode, appends a line to) the target file.

        The cache is only updated once the write completed, so a target that
        could not be written is retried on the next call.
        """
        mode = "ab" if output.log_mode else "wb"
        try:
            # Encoded before opening, so unencodable text never truncates the file
            payload = (text + "\n" if output.log_mode else text).encode("utf-8")
            async with aiofiles.open(output.path, mode) as f:
                await f.write(payload)
                await f.flush()
        except (OSError, UnicodeError) as e:
            self.stats.outputs_failed += 1
            log.error(f"[red]✗ Couldn't write song output file '{output.path}':[/] {e}")
            return False

        output.last_output = text
        self.stats.outputs_written += 1
        log.debug(f"Wrote song output to '{output.path}'")
        return True
