from __future__ import annotations

import base64
import binascii
import logging
import os
import re
import shutil
import tempfile
from pathlib import Path
from threading import Lock
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, ValidationError
from pydantic.alias_generators import to_camel

from .models import Album, Track
from .signature import Signature, SignatureEntry

logger = logging.getLogger(__name__)

# Bump whenever the shape of the cache file changes; other versions are discarded.
CACHE_VERSION = 1

UNSAFE_PATH_CHARS = re.compile(r"[/\\:]")


class _CacheModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class CachedSignatureItem(_CacheModel):
    path: str
    mod_time: float


class CachedTrack(_CacheModel):
    title: str
    title_sort: Optional[str] = None
    duration: float
    track_number: int
    artist: str
    artist_sort: Optional[str] = None
    external_ids: Optional[Dict[str, str]] = None
    locator: str

    @classmethod
    def from_track(cls, track: Track) -> "CachedTrack":
        return cls(
            title=track.title,
            title_sort=track.title_sort,
            duration=track.duration,
            track_number=track.track_number,
            artist=track.artist,
            artist_sort=track.artist_sort,
            external_ids=dict(track.external_ids) or None,
            locator=str(track.path),
        )

    def to_track(self) -> Track:
        return Track(
            path=Path(self.locator),
            title=self.title,
            title_sort=self.title_sort,
            duration=self.duration,
            track_number=self.track_number,
            artist=self.artist,
            artist_sort=self.artist_sort,
            external_ids=dict(self.external_ids or {}),
        )


class CachedAlbum(_CacheModel):
    title: str
    title_sort: Optional[str] = None
    artist: str
    artist_sort: Optional[str] = None
    year: str
    original_year: Optional[str] = None
    cover: Optional[str] = None
    external_ids: Optional[Dict[str, str]] = None
    tracks: List[CachedTrack]

    @classmethod
    def from_album(cls, album: Album) -> "CachedAlbum":
        return cls(
            title=album.title,
            title_sort=album.title_sort,
            artist=album.artist,
            artist_sort=album.artist_sort,
            year=album.year,
            original_year=album.original_year,
            cover=base64.b64encode(album.cover).decode("ascii") if album.cover else None,
            external_ids=dict(album.external_ids) or None,
            tracks=[CachedTrack.from_track(track) for track in album.tracks],
        )

    def to_album(self) -> Album:
        cover = base64.b64decode(self.cover, validate=True) if self.cover else None
        return Album(
            title=self.title,
            title_sort=self.title_sort,
            artist=self.artist,
            artist_sort=self.artist_sort,
            year=self.year,
            original_year=self.original_year,
            cover=cover,
            tracks=tuple(track.to_track() for track in self.tracks),
            external_ids=dict(self.external_ids or {}),
        )


class CacheContainer(_CacheModel):
    version: int
    signature: List[CachedSignatureItem]
    albums: List[CachedAlbum]

    def signature_entries(self) -> Signature:
        return tuple(SignatureEntry(item.path, item.mod_time) for item in self.signature)


def cache_identifier(root: Path) -> str:
    return UNSAFE_PATH_CHARS.sub("_", str(root))


class LibraryCache:
    """JSON file cache of scanned albums, one file per library root."""

    def __init__(self, directory: Path, version: int = CACHE_VERSION) -> None:
        self.directory = directory
        self.version = version
        self._lock = Lock()

    def path_for(self, root: Path) -> Path:
        return self.directory / f"{cache_identifier(root)}.json"

    def load(self, root: Path, signature: Signature) -> Optional[List[Album]]:
        path = self.path_for(root)
        try:
            payload = path.read_bytes()
        except FileNotFoundError:
            logger.debug("No cached scan for %s", root)
            return None
        except OSError as exc:
            logger.debug("Cannot read cache file %s: %s", path, exc)
            return None
        try:
            container = CacheContainer.model_validate_json(payload)
        except ValidationError as exc:
            logger.debug("Discarding undecodable cache %s: %s", path, exc)
            return None
        if container.version != self.version:
            logger.debug("Discarding cache %s with version %s (want %s)", path, container.version, self.version)
            return None
        if container.signature_entries() != tuple(signature):
            logger.debug("Cache signature mismatch for %s", root)
            return None
        try:
            albums = [album.to_album() for album in container.albums]
        except (binascii.Error, ValueError) as exc:
            logger.debug("Discarding corrupt cache %s: %s", path, exc)
            return None
        logger.info("Loaded %d albums for %s from cache", len(albums), root)
        return albums

    def save(self, albums: List[Album], root: Path, signature: Signature) -> Path:
        container = CacheContainer(
            version=self.version,
            signature=[CachedSignatureItem(path=entry.path, mod_time=entry.mod_time) for entry in signature],
            albums=[CachedAlbum.from_album(album) for album in albums],
        )
        payload = container.model_dump_json(by_alias=True, indent=2)
        target = self.path_for(root)
        with self._lock:
            self.directory.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(prefix=f".{target.stem}.", suffix=".tmp", dir=self.directory)
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as fh:
                    fh.write(payload)
                    fh.flush()
                    os.fsync(fh.fileno())
                os.replace(tmp_name, target)
            except BaseException:
                try:
                    os.unlink(tmp_name)
                except FileNotFoundError:
                    pass
                raise
        logger.debug("Saved %d albums for %s to %s", len(albums), root, target)
        return target

    def clear_root(self, root: Path) -> None:
        with self._lock:
            try:
                self.path_for(root).unlink()
            except FileNotFoundError:
                pass

    def clear(self) -> None:
        with self._lock:
            if self.directory.exists():
                shutil.rmtree(self.directory)
        logger.info("Cleared library cache at %s", self.directory)
