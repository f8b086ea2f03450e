from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Optional

from .artwork import CoverArtLocator
from .assembler import AlbumAssembler
from .cache import LibraryCache
from .config import Settings
from .extractor import MetadataExtractor
from .models import Album
from .scanner import LibraryScanner
from .signature import build_signature

logger = logging.getLogger(__name__)


class CatalogScanner:
    """Drives a full scan of one library root into a sorted album list.

    A folder that fails unexpectedly is logged and left out of the result,
    and the scan is then not cached so the next scan retries it. A scan
    cancelled before its save starts never touches the cache; one cancelled
    during the save still leaves a complete file behind.
    """

    def __init__(
        self,
        settings: Settings,
        cache: LibraryCache | None = None,
        scanner: LibraryScanner | None = None,
        extractor: MetadataExtractor | None = None,
        locator: CoverArtLocator | None = None,
        assembler: AlbumAssembler | None = None,
    ) -> None:
        self.settings = settings
        if cache is None and settings.cache.enabled:
            cache = LibraryCache(settings.cache.directory)
        self.cache = cache
        self.scanner = scanner or LibraryScanner(settings.library)
        self.extractor = extractor or MetadataExtractor()
        self.locator = locator or CoverArtLocator(settings.library.sidecar_cover_names)
        self.assembler = assembler or AlbumAssembler(
            majority_threshold=settings.artists.majority_threshold,
            fragmentation_cutoff=settings.artists.fragmentation_cutoff,
        )

    async def scan(self, root: Path, *, use_cache: bool = True) -> list[Album]:
        root = Path(root).expanduser().absolute()
        loop = asyncio.get_running_loop()
        logger.debug("Starting scan of %s", root)
        folders = await loop.run_in_executor(None, self.scanner.find_album_folders, root)
        if not folders:
            logger.info("No audio files found under %s", root)
            return []

        signature = await loop.run_in_executor(None, build_signature, folders, self.scanner.extensions)
        cache = self.cache if use_cache else None
        if cache is not None:
            cached = await loop.run_in_executor(None, cache.load, root, signature)
            if cached is not None:
                return cached

        albums, failed = await self._build_albums(folders)
        # Losing the root mid-scan fails the scan instead of caching a truncated library.
        await loop.run_in_executor(None, self.scanner.check_root, root)
        logger.info("Scanned %d albums in %d folders under %s", len(albums), len(folders), root)

        if failed:
            logger.warning("Not caching scan of %s: %d folder(s) failed to process", root, len(failed))
        elif cache is not None:
            # Once started in its thread the save cannot be interrupted, so a
            # cancellation arriving now still leaves a complete cache file.
            try:
                await loop.run_in_executor(None, cache.save, albums, root, signature)
            except OSError as exc:
                logger.warning("Failed to write library cache for %s: %s", root, exc)
        return albums

    def scan_sync(self, root: Path, *, use_cache: bool = True) -> list[Album]:
        return asyncio.run(self.scan(root, use_cache=use_cache))

    def clear_cache(self, root: Optional[Path] = None) -> None:
        if self.cache is None:
            return
        if root is None:
            self.cache.clear()
        else:
            self.cache.clear_root(Path(root).expanduser().absolute())

    async def _build_albums(self, folders: list[Path]) -> tuple[list[Album], list[Path]]:
        queue: asyncio.Queue[Path] = asyncio.Queue()
        for folder in folders:
            queue.put_nowait(folder)
        results: dict[Path, Album] = {}
        failed: list[Path] = []
        workers = self._start_workers(queue, results, failed)
        try:
            await queue.join()
        finally:
            await self._stop_workers(workers)
        return [results[folder] for folder in sorted(results, key=str)], failed

    def _start_workers(
        self,
        queue: asyncio.Queue[Path],
        results: dict[Path, Album],
        failed: list[Path],
    ) -> list[asyncio.Task[None]]:
        concurrency = max(1, self.settings.scan.worker_concurrency)
        return [asyncio.create_task(self._worker(i, queue, results, failed)) for i in range(concurrency)]

    async def _stop_workers(self, workers: list[asyncio.Task[None]]) -> None:
        for worker in workers:
            worker.cancel()
        await asyncio.gather(*workers, return_exceptions=True)

    async def _worker(
        self,
        worker_id: int,
        queue: asyncio.Queue[Path],
        results: dict[Path, Album],
        failed: list[Path],
    ) -> None:
        loop = asyncio.get_running_loop()
        while True:
            folder = await queue.get()
            try:
                album = await loop.run_in_executor(None, self.process_folder, folder)
                if album is not None:
                    results[folder] = album
            except Exception:
                failed.append(folder)
                logger.exception("Worker %s failed to process %s", worker_id, folder)
            finally:
                queue.task_done()

    def process_folder(self, folder: Path) -> Optional[Album]:
        batch = self.scanner.collect_directory(folder)
        if batch is None:
            return None
        raw_tracks = []
        readable = []
        for path in batch.files:
            raw = self.extractor.read(path)
            if raw is not None:
                raw_tracks.append(raw)
                readable.append(path)
        if not raw_tracks:
            logger.warning("No readable audio files in %s", folder)
            return None
        cover = self.locator.locate(folder, readable)
        return self.assembler.assemble(folder, raw_tracks, cover)
