from __future__ import annotations

import logging
from pathlib import Path
from typing import Callable, Optional, TypeVar

from mutagen import MutagenError

from . import meta_keys as keys
from .heuristics import guess_from_filename
from .models import RawTrack, parse_slash_number
from .tagging import TagReader, TagReadError, open_tag_reader

logger = logging.getLogger(__name__)

T = TypeVar("T")
ReaderFactory = Callable[[Path], TagReader]

TRUTHY_FLAGS = {"1", "true", "yes", "y", "on"}


def first_present(*providers: Callable[[], Optional[T]]) -> Optional[T]:
    """Evaluate providers in order and return the first non-empty value."""
    for provider in providers:
        value = provider()
        if value is None:
            continue
        if isinstance(value, str) and not value.strip():
            continue
        return value
    return None


class MetadataExtractor:
    """Turns one audio file into a RawTrack, or None when it cannot be read."""

    def __init__(self, reader_factory: ReaderFactory = open_tag_reader) -> None:
        self.reader_factory = reader_factory

    def read(self, path: Path) -> Optional[RawTrack]:
        try:
            reader = self.reader_factory(path)
            return self.build(path, reader)
        except TagReadError as exc:
            logger.warning("Skipping unreadable file %s: %s", path, exc)
        except (MutagenError, OSError, ValueError) as exc:
            logger.warning("Failed to read tags for %s: %s", path, exc)
        return None

    def build(self, path: Path, reader: TagReader) -> RawTrack:
        guess = guess_from_filename(path)
        album_artist = reader.property(keys.ALBUMARTIST)
        track_number = first_present(
            lambda: parse_slash_number(reader.property(keys.TRACKNUMBER))[0] or None,
            lambda: parse_slash_number(reader.basic(keys.TRACK))[0] or None,
            lambda: guess.track_number or None,
        )
        raw = RawTrack(
            path=path,
            title=first_present(
                lambda: reader.basic(keys.TITLE),
                lambda: guess.title,
                lambda: path.stem,
            )
            or "",
            artist=reader.basic(keys.ARTIST),
            album_title=reader.basic(keys.ALBUM),
            title_sort=reader.property(keys.TITLESORT),
            artist_sort=reader.property(keys.ARTISTSORT),
            album_title_sort=reader.property(keys.ALBUMSORT),
            album_artist=album_artist,
            album_artist_sort=reader.property(keys.ALBUMARTISTSORT),
            year=first_present(
                lambda: reader.property(keys.DATE),
                lambda: reader.basic(keys.YEAR),
            ),
            original_year=first_present(
                lambda: reader.property(keys.ORIGINALYEAR),
                lambda: reader.property(keys.ORIGINALDATE),
            ),
            track_number=track_number,
            disc_number=parse_slash_number(reader.property(keys.DISCNUMBER))[0] or None,
            is_compilation=self._is_compilation(reader, album_artist),
            duration=reader.duration or 0.0,
            external_ids=self._external_ids(reader),
        )
        logger.debug("Read %s: %s / %s / %s", path, raw.artist, raw.album_title, raw.title)
        return raw

    @staticmethod
    def _is_compilation(reader: TagReader, album_artist: Optional[str]) -> bool:
        flag = reader.property(keys.COMPILATION)
        if flag and flag.strip().lower() in TRUTHY_FLAGS:
            return True
        release_type = reader.property(keys.RELEASETYPE)
        if release_type and "compilation" in release_type.lower():
            return True
        return bool(album_artist) and album_artist.strip().lower() == keys.VARIOUS_ARTISTS.lower()

    @staticmethod
    def _external_ids(reader: TagReader) -> dict[str, str]:
        ids: dict[str, str] = {}
        for prop, key in {**keys.TRACK_ID_KEYS, **keys.ALBUM_ID_KEYS}.items():
            value = reader.property(prop)
            if value:
                ids[key] = value
        return ids
