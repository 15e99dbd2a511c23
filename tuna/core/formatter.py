"""
Default renderer turning a song into text using a format template.
"""

import logging
import re
from typing import Any, Callable, Dict

from tuna.models.song import Song
from tuna.utils.formatting import format_timestamp

log = logging.getLogger(__name__)

# render(template, song) -> text
Renderer = Callable[[str, Song], str]

# Fields that also get {name_upper} and {name_lower} variants
_CASED_FIELDS = ("title", "artists", "artist", "album", "label")


class _TemplateVars(dict):
    """Unknown placeholders render as empty text."""

    def __missing__(self, key: str) -> str:
        return ""


class SongFormatter:
    """
    Formats a format template string using song metadata.

    Placeholders use `{name}` syntax ({title}, {artists}, {album}, {duration}, ...),
    and `%{?name,text if set|text if empty}` picks a branch depending on
    whether a field has a value.
    """

    _CONDITIONAL = re.compile(r"%\{\?(\w+),([^|]*?)\|([^}]*?)\}")

    def __call__(self, template: str, song: Song) -> str:
        return self.render(template, song)

    def render(self, template: str, song: Song) -> str:
        """Renders `template` for `song`. A malformed template renders as empty text."""
        template_vars = self._get_template_vars(song)
        formatted_str = self._resolve_conditionals(template, template_vars)
        try:
            return formatted_str.format_map(template_vars)
        except (ValueError, IndexError, KeyError, AttributeError) as e:
            log.warning(f"Invalid format template '{template}': {e}")
            return ""

    def _resolve_conditionals(self, template_str: str, variables: Dict[str, Any]) -> str:
        def replacer(match: re.Match) -> str:
            key, true_val, false_val = match.groups()
            return true_val if variables.get(key) else false_val

        return self._CONDITIONAL.sub(replacer, template_str)

    def _get_template_vars(self, song: Song) -> _TemplateVars:
        """Builds the variable dictionary for template formatting."""
        template_vars = _TemplateVars(
            title=song.title,
            artists=", ".join(song.artists),
            artist=song.artists[0] if song.artists else "",
            album=song.album,
            label=song.label,
            year=str(song.year) if song.year else "",
            track_number=str(song.track_number) if song.track_number else "",
            disc_number=str(song.disc_number) if song.disc_number else "",
            duration=format_timestamp(song.duration_ms) if song.duration_ms else "",
            progress=format_timestamp(song.progress_ms) if song.progress_ms else "",
            status=song.state.name.lower(),
            cover_url=song.cover_url,
            lyrics_url=song.lyrics_url,
        )
        for name in _CASED_FIELDS:
            template_vars[f"{name}_upper"] = template_vars[name].upper()
            template_vars[f"{name}_lower"] = template_vars[name].lower()
        return template_vars
