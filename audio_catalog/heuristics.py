from __future__ import annotations

import re
from pathlib import Path
from typing import NamedTuple, Optional

# "03 - Song", "03. Song", "03_Song"
LEADING_NUMBER = re.compile(r"^(?P<num>\d{1,3})[\s._-]+(?P<rest>.+)$")
# "Artist - Album - 03 - Song"
DASHED_NUMBER = re.compile(r"^(?:.+? - )+?(?P<num>\d{1,3}) - (?P<rest>.+)$")
FOLDER_ARTIST_SEPARATORS = (" - ", " – ")


class FilenameGuess(NamedTuple):
    title: Optional[str]
    track_number: Optional[int]


def guess_from_filename(path: Path) -> FilenameGuess:
    """Derive a title and track number from names like ``03 - Song.flac``."""
    stem = path.stem
    for pattern in (LEADING_NUMBER, DASHED_NUMBER):
        match = pattern.match(stem)
        if match:
            title = _tidy(match.group("rest"))
            if title:
                return FilenameGuess(title, int(match.group("num")))
    return FilenameGuess(_tidy(stem), None)


def folder_fallback_artist(folder: Path) -> Optional[str]:
    """``Artist - Album`` folders yield ``Artist``; anything else the whole name."""
    name = folder.name
    for separator in FOLDER_ARTIST_SEPARATORS:
        head, sep, _ = name.partition(separator)
        if sep:
            return head.strip() or None
    return name.strip() or None


def _tidy(text: str) -> Optional[str]:
    text = text.replace("_", " ").strip(" ._-")
    return re.sub(r"\s{2,}", " ", text) or None
