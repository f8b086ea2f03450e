from __future__ import annotations

from collections import Counter
from typing import Iterable, Optional

from .meta_keys import UNKNOWN_ARTIST, VARIOUS_ARTISTS

# Share of tracks the most frequent artist needs to be the album artist.
MAJORITY_THRESHOLD = 0.6
# Distinct artists (without a majority) at which an album counts as a compilation.
FRAGMENTATION_CUTOFF = 3

DELIMITER_REPLACEMENTS = (
    (" / ", ", "),
    ("/", ", "),
    (";", ", "),
    (" ,", ", "),
    (",,", ","),
    ("  ", " "),
)


def normalize_delimiters(value: str) -> str:
    """Collapse ``/``, ``;`` and doubled separators into ``", "`` and trim.

    Replacements are applied until the string stops changing, so the result
    is a fixed point and normalizing it again is a no-op.
    """
    current = value.strip()
    while True:
        previous = current
        for old, new in DELIMITER_REPLACEMENTS:
            while old in current:
                current = current.replace(old, new)
        current = current.strip()
        if current == previous:
            return current


def normalize_artist(value: Optional[str]) -> Optional[str]:
    if value is None or not value.strip():
        return None
    return normalize_delimiters(value) or None


def choose_album_artist(
    explicit: Optional[str],
    is_compilation: bool,
    track_artists: Iterable[Optional[str]],
    folder_fallback: Optional[str],
    *,
    majority_threshold: float = MAJORITY_THRESHOLD,
    fragmentation_cutoff: int = FRAGMENTATION_CUTOFF,
) -> str:
    """Pick the album artist from tag data and heuristics.

    Order: explicit album-artist tag, folder fallback when no track has an
    artist, "Various Artists" for compilations, the majority track artist,
    "Various Artists" for fragmented albums, then the most frequent artist.
    Equal counts resolve to the artist seen first.
    """
    explicit_artist = normalize_artist(explicit)
    if explicit_artist:
        return explicit_artist

    normalized = [name for name in (normalize_artist(artist) for artist in track_artists) if name]
    if not normalized:
        return normalize_artist(folder_fallback) or UNKNOWN_ARTIST

    if is_compilation:
        return VARIOUS_ARTISTS

    counts = Counter(normalized)
    candidate, count = counts.most_common(1)[0]
    if count / len(normalized) >= majority_threshold:
        return candidate

    if len(counts) >= fragmentation_cutoff:
        return VARIOUS_ARTISTS

    return candidate or normalize_artist(folder_fallback) or UNKNOWN_ARTIST
