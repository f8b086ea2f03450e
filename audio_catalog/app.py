from __future__ import annotations

from dataclasses import dataclass

from .cache import LibraryCache
from .catalog import Library
from .config import Settings
from .library import CatalogScanner
from .scanner import LibraryScanner


@dataclass
class AudioCatalogApp:
    settings: Settings
    cache: LibraryCache | None
    scanner: CatalogScanner
    library: Library

    @classmethod
    def create(cls, settings: Settings) -> "AudioCatalogApp":
        cache = LibraryCache(settings.cache.directory) if settings.cache.enabled else None
        scanner = CatalogScanner(
            settings,
            cache=cache,
            scanner=LibraryScanner(settings.library),
        )
        return cls(
            settings=settings,
            cache=cache,
            scanner=scanner,
            library=Library(scanner),
        )
