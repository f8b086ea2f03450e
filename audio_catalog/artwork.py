from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Iterable, Optional, Sequence

from mutagen import MutagenError

from .config import DEFAULT_SIDECAR_NAMES
from .extractor import ReaderFactory
from .tagging import TagReadError, open_tag_reader

logger = logging.getLogger(__name__)


class CoverArtLocator:
    """Finds one cover image per album folder.

    Embedded art is tried file by file (front cover, then any attached
    picture); sidecar images in the folder are the last resort.
    """

    def __init__(
        self,
        sidecar_names: Sequence[str] = DEFAULT_SIDECAR_NAMES,
        reader_factory: ReaderFactory = open_tag_reader,
    ) -> None:
        self.sidecar_names = list(sidecar_names)
        self.reader_factory = reader_factory

    def locate(self, folder: Path, files: Iterable[Path]) -> Optional[bytes]:
        for path in files:
            data = self._embedded(path)
            if data:
                logger.debug("Using embedded cover from %s", path)
                return data
        return self._sidecar(folder)

    def _embedded(self, path: Path) -> Optional[bytes]:
        try:
            reader = self.reader_factory(path)
        except TagReadError as exc:
            logger.debug("No artwork from %s: %s", path, exc)
            return None
        try:
            cover = reader.front_cover()
            if cover:
                return cover
            for picture in reader.attached_pictures():
                if picture:
                    return picture
        except (MutagenError, ValueError) as exc:
            logger.debug("Failed to read artwork from %s: %s", path, exc)
        return None

    def _sidecar(self, folder: Path) -> Optional[bytes]:
        try:
            with os.scandir(folder) as it:
                by_name: dict[str, str] = {}
                for entry in sorted(it, key=lambda e: e.name):
                    if entry.is_file():
                        by_name.setdefault(entry.name.lower(), entry.name)
        except OSError as exc:
            logger.debug("Cannot list %s for sidecar artwork: %s", folder, exc)
            return None
        for candidate in self.sidecar_names:
            actual = by_name.get(candidate.lower())
            if not actual:
                continue
            try:
                data = (folder / actual).read_bytes()
            except OSError as exc:
                logger.warning("Failed to read cover image %s: %s", folder / actual, exc)
                continue
            if data:
                logger.debug("Using sidecar cover %s", folder / actual)
                return data
        return None
