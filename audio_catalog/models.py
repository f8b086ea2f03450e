from __future__ import annotations

import re
import uuid
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Optional, Tuple

YEAR_PATTERN = re.compile(r"^(\d{4})(?!\d)")


def _new_id() -> str:
    return uuid.uuid4().hex


@dataclass(slots=True)
class RawTrack:
    """Per-file parse result; only lives for the duration of a scan."""

    path: Path
    title: str
    artist: Optional[str] = None
    album_title: Optional[str] = None
    title_sort: Optional[str] = None
    artist_sort: Optional[str] = None
    album_title_sort: Optional[str] = None
    album_artist: Optional[str] = None
    album_artist_sort: Optional[str] = None
    year: Optional[str] = None
    original_year: Optional[str] = None
    track_number: Optional[int] = None
    disc_number: Optional[int] = None
    is_compilation: bool = False
    duration: float = 0.0
    external_ids: Dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class Track:
    path: Path
    title: str
    duration: float
    track_number: int
    artist: str
    title_sort: Optional[str] = None
    artist_sort: Optional[str] = None
    external_ids: Dict[str, str] = field(default_factory=dict, hash=False)
    id: str = field(default_factory=_new_id, compare=False)


@dataclass(frozen=True, slots=True)
class Album:
    title: str
    artist: str
    year: str
    tracks: Tuple[Track, ...]
    title_sort: Optional[str] = None
    artist_sort: Optional[str] = None
    original_year: Optional[str] = None
    cover: Optional[bytes] = field(default=None, repr=False)
    external_ids: Dict[str, str] = field(default_factory=dict, hash=False)
    id: str = field(default_factory=_new_id, compare=False)

    def __post_init__(self) -> None:
        if not self.tracks:
            raise ValueError(f"Album {self.title!r} must contain at least one track")

    @property
    def duration(self) -> float:
        return sum(track.duration for track in self.tracks)

    @property
    def display_year(self) -> str:
        return self.original_year or self.year


class ScanError(Exception):
    """Raised when a scan cannot produce a catalog."""


class LibraryAccessError(ScanError):
    """Raised when the library root is missing or unreadable."""


def parse_slash_number(value: object) -> Tuple[Optional[int], Optional[int]]:
    """Split "N" or "N/total" into its parts; unparseable parts become None."""
    if value is None:
        return None, None
    if isinstance(value, int) and not isinstance(value, bool):
        return value, None
    if isinstance(value, (tuple, list)):
        parts = [str(part) for part in value[:2]]
    else:
        parts = str(value).split("/", 1)
    main = _parse_int(parts[0]) if parts else None
    total = _parse_int(parts[1]) if len(parts) > 1 else None
    return main, total


def normalize_year(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    cleaned = str(value).strip()
    if not cleaned:
        return None
    match = YEAR_PATTERN.match(cleaned)
    if match:
        # Year zero is a tagger placeholder, not a date.
        return match.group(1) if int(match.group(1)) > 0 else None
    return cleaned


def _parse_int(value: object) -> Optional[int]:
    if value is None:
        return None
    cleaned = str(value).strip()
    if cleaned.isdigit():
        return int(cleaned)
    return None
