from __future__ import annotations

import locale
import logging
from pathlib import Path
from typing import Callable, Iterable, Optional, Sequence, TypeVar

from . import meta_keys as keys
from .artists import FRAGMENTATION_CUTOFF, MAJORITY_THRESHOLD, choose_album_artist
from .heuristics import folder_fallback_artist
from .models import Album, RawTrack, Track, normalize_year

logger = logging.getLogger(__name__)

T = TypeVar("T")


def _first(tracks: Iterable[RawTrack], getter: Callable[[RawTrack], Optional[T]]) -> Optional[T]:
    for track in tracks:
        value = getter(track)
        if value:
            return value
    return None


def collation_key(text: str) -> str:
    """Case-insensitive key ordered by the process LC_COLLATE setting.

    Callers get locale-aware ordering once they run
    ``locale.setlocale(locale.LC_COLLATE, "")``; the CLI does this at startup.
    """
    # strxfrm rejects embedded NULs, which Vorbis and MP4 text may carry.
    folded = text.replace("\x00", "").casefold()
    try:
        return locale.strxfrm(folded)
    except (ValueError, OSError):
        return folded


def playback_sort_key(track: RawTrack) -> tuple[int, int, str]:
    label = track.title_sort or track.title
    return (track.disc_number or 0, track.track_number or 0, collation_key(label))


class AlbumAssembler:
    """Builds one Album from the RawTracks of a single album folder."""

    def __init__(
        self,
        *,
        majority_threshold: float = MAJORITY_THRESHOLD,
        fragmentation_cutoff: int = FRAGMENTATION_CUTOFF,
    ) -> None:
        self.majority_threshold = majority_threshold
        self.fragmentation_cutoff = fragmentation_cutoff

    def assemble(self, folder: Path, raw_tracks: Sequence[RawTrack], cover: Optional[bytes] = None) -> Optional[Album]:
        if not raw_tracks:
            logger.debug("No readable tracks in %s; skipping", folder)
            return None

        original_year = _first(raw_tracks, lambda t: normalize_year(t.original_year))
        year = original_year or _first(raw_tracks, lambda t: normalize_year(t.year))

        artist = choose_album_artist(
            _first(raw_tracks, lambda t: t.album_artist),
            any(track.is_compilation for track in raw_tracks),
            [track.artist for track in raw_tracks],
            folder_fallback_artist(folder),
            majority_threshold=self.majority_threshold,
            fragmentation_cutoff=self.fragmentation_cutoff,
        )

        tracks = tuple(self._track(raw) for raw in sorted(raw_tracks, key=playback_sort_key))
        album_ids: dict[str, str] = {}
        for key in keys.ALBUM_ID_KEYS.values():
            value = _first(raw_tracks, lambda t: t.external_ids.get(key))
            if value:
                album_ids[key] = value

        return Album(
            title=raw_tracks[0].album_title or folder.name,
            title_sort=_first(raw_tracks, lambda t: t.album_title_sort),
            artist=artist,
            artist_sort=_first(raw_tracks, lambda t: t.album_artist_sort),
            year=year or "",
            original_year=original_year,
            cover=cover,
            tracks=tracks,
            external_ids=album_ids,
        )

    @staticmethod
    def _track(raw: RawTrack) -> Track:
        track_ids = {
            key: raw.external_ids[key]
            for key in keys.TRACK_ID_KEYS.values()
            if raw.external_ids.get(key)
        }
        return Track(
            path=raw.path,
            title=raw.title,
            title_sort=raw.title_sort,
            duration=raw.duration,
            track_number=raw.track_number or 0,
            artist=raw.artist or keys.UNKNOWN_ARTIST,
            artist_sort=raw.artist_sort,
            external_ids=track_ids,
        )
