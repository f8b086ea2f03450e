from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Tuple

from .library import CatalogScanner
from .meta_keys import UNKNOWN_ARTIST
from .models import Album

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Catalog:
    root: Optional[Path] = None
    albums: Tuple[Album, ...] = ()

    @property
    def artists(self) -> list[str]:
        names = {album.artist or UNKNOWN_ARTIST for album in self.albums}
        return sorted(names, key=lambda name: (name.casefold(), name))

    @property
    def track_count(self) -> int:
        return sum(len(album.tracks) for album in self.albums)

    def albums_by(self, artist: str) -> list[Album]:
        return [album for album in self.albums if (album.artist or UNKNOWN_ARTIST) == artist]


class Library:
    """Holds the catalog a consumer browses.

    The catalog is replaced in a single assignment once a scan finishes, so
    readers see either the previous catalog or the new one, never a mix. A
    failed or cancelled scan leaves the previous catalog untouched.
    """

    def __init__(self, scanner: CatalogScanner) -> None:
        self.scanner = scanner
        self._catalog = Catalog()

    @property
    def catalog(self) -> Catalog:
        return self._catalog

    async def load(self, root: Path, *, use_cache: bool = True) -> Catalog:
        albums = await self.scanner.scan(root, use_cache=use_cache)
        catalog = Catalog(root=Path(root), albums=tuple(albums))
        self._catalog = catalog
        logger.debug("Catalog now holds %d albums from %s", len(albums), root)
        return catalog

    async def rescan(self, *, use_cache: bool = True) -> Catalog:
        if self._catalog.root is None:
            return self._catalog
        return await self.load(self._catalog.root, use_cache=use_cache)

    def clear_cache(self) -> None:
        self.scanner.clear_cache()
